import logging
import sys
import unittest
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from domain.curation import ListStatus
from infrastructure.utils import EventLogger, format_kv


class TestLogFormat(unittest.TestCase):
    def test_format_kv(self) -> None:
        line = format_kv(event="lookup", title="Heat", found=True, n=3, skipped=None, status=ListStatus.WATCHED)
        self.assertEqual(line, 'event="lookup" title="Heat" found=true n=3 status="watched"')

    def test_secrets_are_masked(self) -> None:
        self.assertEqual(format_kv(apikey="abc123", key="k"), 'apikey="***" key="***"')

    def test_long_text_is_truncated(self) -> None:
        line = format_kv(reply="x" * 500)
        self.assertLess(len(line), 140)
        self.assertTrue(line.endswith('..."'))

    def test_event_logger_sequences_events(self) -> None:
        logger = logging.getLogger("test.curator.events")
        events = EventLogger(logger, "[curator]", base_fields={"user_id": "u1"})
        with self.assertLogs("test.curator.events", level="INFO") as captured:
            events.info("movie_added", id="m1")
            events.warning("analysis_failed", kind="schema")
        self.assertEqual(events.seq, 2)
        self.assertIn('seq=1 event="movie_added"', captured.output[0])
        self.assertIn('user_id="u1" id="m1"', captured.output[0])
        self.assertTrue(captured.output[1].startswith("WARNING"))


if __name__ == "__main__":
    unittest.main()

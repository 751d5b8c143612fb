import sys
import unittest
from datetime import datetime, timezone
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from domain.curation import SchemaError
from domain.curation.movie_record import (
    movie_document_path,
    movies_collection_path,
    normalize_title_key,
    record_from_document,
)


class TestMovieRecordSchema(unittest.TestCase):
    def test_valid_document(self) -> None:
        rec = record_from_document(
            "m1",
            {
                "title": "Heat",
                "watched": True,
                "onWatchlist": False,
                "posterUrl": "https://img/heat.jpg",
                "description": None,
                "createdAt": {"seconds": 1700000000, "nanoseconds": 500000000},
            },
        )
        self.assertEqual(rec.id, "m1")
        self.assertTrue(rec.watched)
        self.assertFalse(rec.on_watchlist)
        self.assertTrue(rec.has_details)
        self.assertEqual(rec.created_at, datetime.fromtimestamp(1700000000.5, tz=timezone.utc))

    def test_missing_flags_default_false(self) -> None:
        rec = record_from_document("m2", {"title": "Ran"})
        self.assertFalse(rec.watched)
        self.assertFalse(rec.on_watchlist)
        self.assertIsNone(rec.created_at)
        self.assertFalse(rec.has_details)

    def test_timestamp_forms(self) -> None:
        naive = datetime(2024, 5, 1, 12, 0)
        self.assertEqual(
            record_from_document("a", {"title": "A", "createdAt": naive}).created_at,
            naive.replace(tzinfo=timezone.utc),
        )
        self.assertEqual(
            record_from_document("b", {"title": "B", "createdAt": "2024-05-01T12:00:00Z"}).created_at,
            datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        )
        self.assertIsNone(record_from_document("c", {"title": "C", "createdAt": "not a date"}).created_at)

    def test_malformed_documents_raise(self) -> None:
        bad = [
            {},
            {"title": "   "},
            {"title": 42},
            {"title": "Heat", "watched": "yes"},
            {"title": "Heat", "posterUrl": 7},
        ]
        for data in bad:
            with self.subTest(data=data):
                with self.assertRaises(SchemaError):
                    record_from_document("x", data)

    def test_paths(self) -> None:
        path = movies_collection_path(app_id="", user_id="u1")
        self.assertEqual(path, "artifacts/default-app-id/users/u1/movies")
        self.assertEqual(movie_document_path(path + "/", "m1"), path + "/m1")
        with self.assertRaises(ValueError):
            movies_collection_path(app_id="app", user_id=" ")

    def test_title_key(self) -> None:
        self.assertEqual(normalize_title_key("  The MATRIX "), "the matrix")


if __name__ == "__main__":
    unittest.main()

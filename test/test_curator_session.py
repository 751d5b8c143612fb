import asyncio
import json
import sys
import unittest
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from application.curation.curator_session import (
    ANALYSIS_BUSY_MESSAGE,
    SEARCH_FAILED_MESSAGE,
    CuratorOptions,
    CuratorSession,
)
from domain.curation import (
    ConfigurationError,
    CurationValidationError,
    InsufficientWatchHistoryError,
    ListStatus,
    MovieDetails,
    RecordNotFoundError,
    SchemaError,
    SearchResult,
    TransportError,
    ViewTab,
)
from infrastructure.persistence.memory.movie_store import InMemoryMovieStore

_REPLY = json.dumps(
    {
        "title": "The Noir Fan",
        "suggestion": "Moody crime suits you.",
        "recommendations": ["Chinatown", "The Third Man", "Double Indemnity"],
    }
)


class _StubLookup:
    def __init__(self) -> None:
        self.lookups: list[str] = []
        self.searches: list[str] = []
        self.search_error: Exception | None = None
        self.search_delays: dict[str, float] = {}
        self.found = True

    async def lookup_by_title(self, title: str) -> MovieDetails:
        self.lookups.append(title)
        if not self.found:
            return MovieDetails.not_found()
        return MovieDetails(found=True, poster_url=f"https://img/{title}.jpg", description=f"About {title}.")

    async def search_by_query(self, text: str) -> list[SearchResult]:
        self.searches.append(text)
        if text in self.search_delays:
            await asyncio.sleep(self.search_delays[text])
        if self.search_error is not None:
            raise self.search_error
        return [SearchResult(title=text.title(), year="1995", external_id=f"tt-{text}")]

    async def close(self) -> None:
        return None


class _StubGenerator:
    def __init__(self) -> None:
        self.replies: list[str] = []
        self.delays: list[float] = []
        self.calls = 0

    async def generate(self, prompt: str, *, json_mode: bool = True) -> str:
        self.calls += 1
        if self.delays:
            await asyncio.sleep(self.delays.pop(0))
        return self.replies.pop(0) if self.replies else _REPLY

    async def close(self) -> None:
        return None


class _BrokenWritesStore(InMemoryMovieStore):
    async def insert(self, collection_path, fields):
        raise TransportError("store unavailable")


class _SlowInsertStore(InMemoryMovieStore):
    async def insert(self, collection_path, fields):
        await asyncio.sleep(0.01)
        return await super().insert(collection_path, fields)


class _SessionCase(unittest.IsolatedAsyncioTestCase):
    store_cls = InMemoryMovieStore

    async def asyncSetUp(self) -> None:
        self.store = self.store_cls()
        self.lookup = _StubLookup()
        self.generator = _StubGenerator()
        self.session = CuratorSession(
            store=self.store,
            lookup=self.lookup,
            generator=self.generator,
            options=CuratorOptions(app_id="app", search_debounce_s=0.01, feedback_ttl_s=0.05),
        )
        await self.session.start("u1")
        await self.session.wait_for_movies(lambda movies: self.session.snapshot_count >= 1)

    async def asyncTearDown(self) -> None:
        await self.session.close()

    async def _add(self, title: str, status: ListStatus = ListStatus.WATCHED, **kw) -> str:
        record_id = await self.session.add_movie(title, status, **kw)
        await self.session.wait_for_movies(lambda movies: any(m.id == record_id for m in movies))
        return record_id

    def _by_id(self, record_id: str):
        return next(m for m in self.session.movies if m.id == record_id)


class TestCuratorSessionLists(_SessionCase):
    async def test_add_inserts_and_enriches_in_background(self) -> None:
        record_id = await self._add("Heat")
        await self.session.drain()
        movies = await self.session.wait_for_movies(
            lambda movies: any(m.id == record_id and m.has_details for m in movies)
        )
        self.assertEqual(movies[0].description, "About Heat.")
        self.assertEqual(self.lookup.lookups, ["Heat"])
        self.assertEqual(self.session.pending_ids, frozenset())

    async def test_duplicate_title_updates_existing_record(self) -> None:
        record_id = await self._add("The Matrix", ListStatus.WATCHED)
        again = await self.session.add_movie("  the MATRIX ", ListStatus.TO_WATCH)
        self.assertEqual(again, record_id)
        movies = await self.session.wait_for_movies(lambda movies: movies[0].on_watchlist)
        self.assertEqual(len(movies), 1)
        self.assertTrue(movies[0].watched)

    async def test_blank_title_is_rejected_without_write(self) -> None:
        with self.assertRaises(CurationValidationError):
            await self.session.add_movie("   ", ListStatus.WATCHED)
        self.assertEqual(self.store.snapshot("artifacts/app/users/u1/movies"), [])

    async def test_remove_degrades_then_deletes(self) -> None:
        record_id = await self._add("Ran", ListStatus.WATCHED)
        await self.session.add_movie("Ran", ListStatus.TO_WATCH)
        await self.session.wait_for_movies(lambda movies: movies[0].on_watchlist)

        change = await self.session.remove_from_list(record_id, ViewTab.TO_WATCH)
        self.assertFalse(change.delete)
        await self.session.wait_for_movies(lambda movies: not movies[0].on_watchlist)
        self.assertTrue(self._by_id(record_id).watched)

        change = await self.session.remove_from_list(record_id, ViewTab.WATCHED)
        self.assertTrue(change.delete)
        await self.session.wait_for_movies(lambda movies: not movies)

    async def test_remove_uses_active_tab(self) -> None:
        record_id = await self._add("Ikiru", ListStatus.TO_WATCH)
        self.session.set_active_tab("to-watch")
        change = await self.session.remove_from_list(record_id)
        self.assertTrue(change.delete)

    async def test_unknown_record_raises_not_found(self) -> None:
        with self.assertRaises(RecordNotFoundError):
            await self.session.toggle_status("missing")

    async def test_toggle_moves_between_lists_and_enriches_bare_record(self) -> None:
        self.lookup.found = False
        record_id = await self._add("Alien", ListStatus.TO_WATCH)
        await self.session.drain()
        self.assertFalse(self._by_id(record_id).has_details)

        self.lookup.found = True
        change = await self.session.toggle_status(record_id)
        self.assertEqual(change.fields, {"watched": True})
        await self.session.drain()
        movies = await self.session.wait_for_movies(lambda movies: movies[0].watched and movies[0].has_details)
        self.assertTrue(movies[0].on_watchlist)
        self.assertEqual(self.session.view(ViewTab.WATCHED).cards[0].record.id, record_id)
        self.assertEqual(self.lookup.lookups, ["Alien", "Alien"])

    async def test_feedback_flag_clears_after_ttl(self) -> None:
        await self._add("Heat", ListStatus.TO_WATCH, external_id="tt0113277")
        self.assertEqual(self.session.feedback.external_id, "tt0113277")
        await asyncio.sleep(0.1)
        self.assertIsNone(self.session.feedback)

    async def test_identity_switch_replaces_subscription_and_state(self) -> None:
        await self._add("Heat")
        self.session.set_active_tab(ViewTab.WATCHED)

        await self.session.switch_identity("u2")
        await self.session.wait_for_movies(lambda movies: self.session.snapshot_count >= 1)
        self.assertEqual(self.session.user_id, "u2")
        self.assertEqual(self.session.movies, ())
        self.assertIs(self.session.active_tab, ViewTab.SEARCH)
        self.assertEqual(self.store.subscriber_count("artifacts/app/users/u1/movies"), 0)
        self.assertEqual(self.store.subscriber_count("artifacts/app/users/u2/movies"), 1)

    async def test_store_failure_surfaces_error(self) -> None:
        session = CuratorSession(
            store=_BrokenWritesStore(),
            lookup=self.lookup,
            generator=self.generator,
            options=CuratorOptions(app_id="app"),
        )
        await session.start("u1")
        try:
            with self.assertRaises(TransportError):
                await session.add_movie("Heat", ListStatus.WATCHED)
            self.assertIsNotNone(session.error)
        finally:
            await session.close()


class TestCuratorSessionConcurrentAdds(_SessionCase):
    store_cls = _SlowInsertStore

    async def test_overlapping_adds_of_one_title_share_a_record(self) -> None:
        first, second = await asyncio.gather(
            self.session.add_movie("Heat", ListStatus.WATCHED),
            self.session.add_movie("heat", ListStatus.TO_WATCH),
        )
        self.assertEqual(first, second)
        await self.session.drain()

        docs = self.store.snapshot("artifacts/app/users/u1/movies")
        self.assertEqual(len(docs), 1)
        self.assertEqual(docs[0].data["title"], "Heat")
        self.assertTrue(docs[0].data["watched"])
        self.assertTrue(docs[0].data["onWatchlist"])
        self.assertEqual(self.lookup.lookups, ["Heat"])

    async def test_readding_after_delete_inserts_a_new_record(self) -> None:
        record_id = await self._add("Heat", ListStatus.WATCHED)
        await self.session.remove_from_list(record_id, ViewTab.WATCHED)
        await self.session.wait_for_movies(lambda movies: not movies)

        again = await self._add("heat", ListStatus.TO_WATCH)
        self.assertNotEqual(again, record_id)
        self.assertEqual(len(self.store.snapshot("artifacts/app/users/u1/movies")), 1)


class TestCuratorSessionSearch(_SessionCase):
    async def test_debounced_query_searches_once(self) -> None:
        for text in ("he", "hea", "heat"):
            self.session.set_search_query(text)
        await self.session.drain()
        self.assertEqual(self.lookup.searches, ["heat"])
        self.assertEqual([r.title for r in self.session.search_results], ["Heat"])
        self.assertFalse(self.session.is_searching)

    async def test_short_query_clears_without_request(self) -> None:
        await self.session.search("heat")
        await self.session.search(" h ")
        self.assertEqual(self.session.search_results, ())
        self.assertEqual(self.lookup.searches, ["heat"])

    async def test_search_failures_set_messages(self) -> None:
        self.lookup.search_error = TransportError("timeout")
        await self.session.search("heat")
        self.assertEqual(self.session.error, SEARCH_FAILED_MESSAGE)

        self.session.clear_error()
        self.lookup.search_error = ConfigurationError("no key", user_message="OMDb API key not configured.")
        with self.assertLogs("application.curation.curator_session", level="WARNING") as captured:
            await self.session.search("heat")
        self.assertEqual(self.session.error, "OMDb API key not configured.")
        self.assertIn("no key", captured.output[0])

    async def test_slow_older_search_does_not_replace_newer_results(self) -> None:
        self.lookup.search_delays["alien"] = 0.2
        self.session.set_search_query("alien")
        await asyncio.sleep(0.05)
        self.session.set_search_query("aliens")
        await asyncio.sleep(0.05)
        self.assertEqual([r.title for r in self.session.search_results], ["Aliens"])

        await self.session.drain()
        self.assertEqual(self.lookup.searches, ["alien", "aliens"])
        self.assertEqual([r.title for r in self.session.search_results], ["Aliens"])
        self.assertFalse(self.session.is_searching)

    async def test_searching_flag_follows_the_latest_search(self) -> None:
        self.lookup.search_delays.update({"alien": 0.02, "aliens": 0.2})
        older = asyncio.create_task(self.session.search("alien"))
        await asyncio.sleep(0)
        newer = asyncio.create_task(self.session.search("aliens"))

        await older
        self.assertTrue(self.session.is_searching)
        self.assertEqual(self.session.search_results, ())

        await newer
        self.assertFalse(self.session.is_searching)
        self.assertEqual([r.title for r in self.session.search_results], ["Aliens"])


class TestCuratorSessionAnalysis(_SessionCase):
    async def test_insufficient_history_sets_message(self) -> None:
        await self._add("Heat")
        with self.assertRaises(InsufficientWatchHistoryError):
            await self.session.analyze_taste()
        self.assertIn("at least 3", self.session.error)
        self.assertEqual(self.generator.calls, 0)

    async def test_malformed_reply_keeps_prior_result(self) -> None:
        for title in ("Laura", "Gilda", "Detour"):
            await self._add(title)
        first = await self.session.analyze_taste()
        self.assertEqual(self.session.analysis, first)

        self.generator.replies.append('{"title": "Broken"}')
        with self.assertRaises(SchemaError) as ctx:
            await self.session.analyze_taste()
        self.assertEqual(ctx.exception.user_message, ANALYSIS_BUSY_MESSAGE)
        self.assertEqual(self.session.error, ANALYSIS_BUSY_MESSAGE)
        self.assertIs(self.session.analysis, first)
        self.assertFalse(self.session.is_analyzing)

    async def test_analyzing_flag_holds_until_last_run_finishes(self) -> None:
        for title in ("Laura", "Gilda", "Detour"):
            await self._add(title)
        self.generator.delays.extend([0.01, 0.2])
        fast = asyncio.create_task(self.session.analyze_taste())
        await asyncio.sleep(0)
        slow = asyncio.create_task(self.session.analyze_taste())

        await fast
        self.assertTrue(self.session.is_analyzing)
        await slow
        self.assertFalse(self.session.is_analyzing)
        self.assertEqual(self.generator.calls, 2)


if __name__ == "__main__":
    unittest.main()

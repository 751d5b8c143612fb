import sys
import unittest
from datetime import datetime, timezone
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from domain.curation import RecordNotFoundError
from infrastructure.persistence.factory import MovieStoreFactory
from infrastructure.persistence.memory.movie_store import InMemoryMovieStore

_PATH = "artifacts/app/users/u1/movies"


class TestInMemoryMovieStore(unittest.IsolatedAsyncioTestCase):
    async def test_insert_stamps_created_at_and_update_keeps_it(self) -> None:
        store = InMemoryMovieStore()
        doc_id = await store.insert(_PATH, {"title": "Heat", "watched": True})
        created = store.snapshot(_PATH)[0].data["createdAt"]
        self.assertIsInstance(created, datetime)
        self.assertEqual(created.tzinfo, timezone.utc)

        await store.update(f"{_PATH}/{doc_id}", {"watched": False, "createdAt": "overwritten?"})
        data = store.snapshot(_PATH)[0].data
        self.assertFalse(data["watched"])
        self.assertEqual(data["createdAt"], created)

    async def test_subscription_delivers_initial_state_then_changes(self) -> None:
        store = InMemoryMovieStore()
        store.put_raw(_PATH, "seed", {"title": "Ran"})
        async with store.subscribe(_PATH) as snapshots:
            it = snapshots.__aiter__()
            self.assertEqual([d.id for d in await anext(it)], ["seed"])
            doc_id = await store.insert(_PATH, {"title": "Heat"})
            self.assertEqual([d.id for d in await anext(it)], ["seed", doc_id])
            await store.delete(f"{_PATH}/seed")
            self.assertEqual([d.id for d in await anext(it)], [doc_id])
        self.assertEqual(store.subscriber_count(_PATH), 0)

    async def test_collections_are_isolated_per_user(self) -> None:
        store = InMemoryMovieStore()
        await store.insert(_PATH, {"title": "Heat"})
        self.assertEqual(store.snapshot("artifacts/app/users/u2/movies"), [])

    async def test_update_missing_document_raises(self) -> None:
        store = InMemoryMovieStore()
        with self.assertRaises(RecordNotFoundError):
            await store.update(f"{_PATH}/nope", {"watched": True})
        # Deleting a missing document is a no-op.
        await store.delete(f"{_PATH}/nope")


class TestMovieStoreFactory(unittest.TestCase):
    def test_memory_provider(self) -> None:
        self.assertIsInstance(MovieStoreFactory.create("memory"), InMemoryMovieStore)
        self.assertIsInstance(MovieStoreFactory.create(""), InMemoryMovieStore)

    def test_unknown_provider(self) -> None:
        with self.assertRaises(ValueError):
            MovieStoreFactory.create("redis")  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()

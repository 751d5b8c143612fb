"""
Cloud Firestore implementation of the movie store.

firebase-admin's client is synchronous: reads and writes run in a worker
thread via `asyncio.to_thread`, and `on_snapshot` callbacks (delivered on the
listener's own thread) are handed to the event loop with
`call_soon_threadsafe`.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from application.ports.movie_store_port import MovieStorePort, StoredDocument
from domain.curation.errors import RecordNotFoundError, TransportError
from domain.curation.movie_record import FIELD_CREATED_AT
from infrastructure.persistence.firestore.client import get_firebase_app

logger = logging.getLogger(__name__)

# Sentinel pushed into a subscription queue when the listener reports an error.
_LISTENER_FAILED = object()


def _documents(snapshot: Any) -> list[StoredDocument]:
    return [StoredDocument(id=doc.id, data=doc.to_dict() or {}) for doc in snapshot]


class FirestoreMovieStore(MovieStorePort):
    def __init__(self, *, db: Any | None = None) -> None:
        self._db = db

    def _client(self) -> Any:
        if self._db is None:
            self._db = firestore.client(get_firebase_app())
        return self._db

    @asynccontextmanager
    async def subscribe(self, collection_path: str) -> AsyncIterator[AsyncIterator[list[StoredDocument]]]:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[Any] = asyncio.Queue()

        def _on_snapshot(col_snapshot: Any, _changes: Any, _read_time: Any) -> None:
            try:
                docs = _documents(col_snapshot)
            except Exception:
                logger.exception("Failed to read Firestore snapshot path=%s", collection_path)
                loop.call_soon_threadsafe(queue.put_nowait, _LISTENER_FAILED)
                return
            loop.call_soon_threadsafe(queue.put_nowait, docs)

        try:
            watch = await asyncio.to_thread(
                self._client().collection(collection_path).on_snapshot, _on_snapshot
            )
        except google_exceptions.GoogleAPIError as exc:
            raise TransportError(f"Firestore subscribe failed: {exc}") from exc
        logger.info("Firestore listener attached path=%s", collection_path)

        async def _iterate() -> AsyncIterator[list[StoredDocument]]:
            while True:
                item = await queue.get()
                if item is _LISTENER_FAILED:
                    raise TransportError(f"Firestore listener failed for {collection_path}")
                yield item

        try:
            yield _iterate()
        finally:
            await asyncio.to_thread(watch.unsubscribe)
            logger.info("Firestore listener detached path=%s", collection_path)

    async def insert(self, collection_path: str, fields: dict[str, Any]) -> str:
        data = dict(fields)
        data[FIELD_CREATED_AT] = firestore.SERVER_TIMESTAMP
        try:
            _, ref = await asyncio.to_thread(self._client().collection(collection_path).add, data)
        except google_exceptions.GoogleAPIError as exc:
            raise TransportError(f"Firestore insert failed: {exc}") from exc
        return ref.id

    async def update(self, doc_path: str, fields: dict[str, Any]) -> None:
        patch = {k: v for k, v in fields.items() if k != FIELD_CREATED_AT}
        try:
            await asyncio.to_thread(self._client().document(doc_path).update, patch)
        except google_exceptions.NotFound as exc:
            raise RecordNotFoundError(
                f"document {doc_path} does not exist",
                user_message="That movie is no longer in your lists.",
            ) from exc
        except google_exceptions.GoogleAPIError as exc:
            raise TransportError(f"Firestore update failed: {exc}") from exc

    async def delete(self, doc_path: str) -> None:
        try:
            await asyncio.to_thread(self._client().document(doc_path).delete)
        except google_exceptions.GoogleAPIError as exc:
            raise TransportError(f"Firestore delete failed: {exc}") from exc

    async def close(self) -> None:
        if self._db is not None and hasattr(self._db, "close"):
            await asyncio.to_thread(self._db.close)
        self._db = None

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator

from application.ports.movie_store_port import MovieStorePort, StoredDocument
from domain.curation.errors import RecordNotFoundError
from domain.curation.movie_record import FIELD_CREATED_AT

logger = logging.getLogger(__name__)


def _split_doc_path(doc_path: str) -> tuple[str, str]:
    collection_path, _, doc_id = (doc_path or "").rstrip("/").rpartition("/")
    if not collection_path or not doc_id:
        raise ValueError(f"invalid document path: {doc_path!r}")
    return collection_path, doc_id


class InMemoryMovieStore(MovieStorePort):
    """Process-local document store with live snapshot subscriptions.

    Every write pushes the full collection to each open subscriber, mirroring
    the delivery model of a realtime document database.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self._subscribers: dict[str, set[asyncio.Queue[list[StoredDocument]]]] = defaultdict(set)

    def snapshot(self, collection_path: str) -> list[StoredDocument]:
        docs = self._collections.get(collection_path, {})
        return [StoredDocument(id=doc_id, data=dict(data)) for doc_id, data in docs.items()]

    def subscriber_count(self, collection_path: str) -> int:
        return len(self._subscribers.get(collection_path, ()))

    def put_raw(self, collection_path: str, doc_id: str, data: dict[str, Any]) -> None:
        """Write a document as-is (no timestamp stamping), e.g. to seed fixtures."""
        self._collections[collection_path][doc_id] = dict(data)
        self._publish(collection_path)

    def _publish(self, collection_path: str) -> None:
        subscribers = self._subscribers.get(collection_path)
        if not subscribers:
            return
        docs = self.snapshot(collection_path)
        for queue in subscribers:
            queue.put_nowait(docs)

    @asynccontextmanager
    async def subscribe(self, collection_path: str) -> AsyncIterator[AsyncIterator[list[StoredDocument]]]:
        queue: asyncio.Queue[list[StoredDocument]] = asyncio.Queue()
        queue.put_nowait(self.snapshot(collection_path))
        self._subscribers[collection_path].add(queue)
        logger.debug("memory store subscribe path=%s", collection_path)

        async def _iterate() -> AsyncIterator[list[StoredDocument]]:
            while True:
                yield await queue.get()

        try:
            yield _iterate()
        finally:
            subscribers = self._subscribers.get(collection_path)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    del self._subscribers[collection_path]
            logger.debug("memory store unsubscribe path=%s", collection_path)

    async def insert(self, collection_path: str, fields: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        data = dict(fields)
        data[FIELD_CREATED_AT] = datetime.now(timezone.utc)
        self._collections[collection_path][doc_id] = data
        self._publish(collection_path)
        return doc_id

    async def update(self, doc_path: str, fields: dict[str, Any]) -> None:
        collection_path, doc_id = _split_doc_path(doc_path)
        docs = self._collections.get(collection_path, {})
        if doc_id not in docs:
            raise RecordNotFoundError(
                f"document {doc_path} does not exist",
                user_message="That movie is no longer in your lists.",
            )
        patch = {k: v for k, v in fields.items() if k != FIELD_CREATED_AT}
        docs[doc_id].update(patch)
        self._publish(collection_path)

    async def delete(self, doc_path: str) -> None:
        collection_path, doc_id = _split_doc_path(doc_path)
        docs = self._collections.get(collection_path, {})
        if docs.pop(doc_id, None) is not None:
            self._publish(collection_path)

    async def close(self) -> None:
        self._subscribers.clear()

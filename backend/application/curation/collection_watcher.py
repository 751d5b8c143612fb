from __future__ import annotations

import logging
from typing import AsyncIterator, Iterable

from application.curation.movie_collection import UserMovieCollection
from application.ports.movie_store_port import StoredDocument
from domain.curation.errors import SchemaError, TransportError
from domain.curation.movie_record import MovieRecord, record_from_document
from domain.curation.policy import sort_records

logger = logging.getLogger(__name__)


def records_from_snapshot(documents: Iterable[StoredDocument]) -> list[MovieRecord]:
    """Validate and order one snapshot; malformed documents are skipped."""
    records: list[MovieRecord] = []
    for doc in documents:
        try:
            records.append(record_from_document(doc.id, doc.data))
        except SchemaError as exc:
            logger.warning("Skipping malformed movie document: %s", exc)
    return sort_records(records)


class CollectionWatcher:
    """Live, ordered view of one user's movie collection."""

    def __init__(self, collection: UserMovieCollection) -> None:
        self._collection = collection

    @property
    def collection(self) -> UserMovieCollection:
        return self._collection

    async def watch(self) -> AsyncIterator[list[MovieRecord]]:
        """Yield the full sorted record set on every remote change.

        The store listener lives exactly as long as this generator; close it
        (or cancel its consumer) to release the subscription.
        """
        try:
            async with self._collection.subscribe() as snapshots:
                async for documents in snapshots:
                    yield records_from_snapshot(documents)
        except TransportError as exc:
            logger.warning("Movie subscription ended for user=%s: %s", self._collection.user_id, exc)

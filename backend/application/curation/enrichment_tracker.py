from __future__ import annotations

import logging

from application.curation.movie_collection import UserMovieCollection
from application.ports.metadata_lookup_port import MetadataLookupPort
from domain.curation.movie_record import FIELD_DESCRIPTION, FIELD_POSTER_URL

logger = logging.getLogger(__name__)


class EnrichmentTracker:
    """Fetch poster/description for records, at most one fetch per id at a time."""

    def __init__(self, *, collection: UserMovieCollection, lookup: MetadataLookupPort) -> None:
        self._collection = collection
        self._lookup = lookup
        self._pending: set[str] = set()

    @property
    def pending_ids(self) -> frozenset[str]:
        return frozenset(self._pending)

    def is_pending(self, record_id: str) -> bool:
        return record_id in self._pending

    async def enrich(self, record_id: str, title: str) -> bool:
        """Look up `title` and write its metadata onto `record_id`.

        Returns True when metadata was written. Failures leave the record
        untouched; the id always leaves the pending set.
        """
        # Membership check and insert happen before the first await.
        if record_id in self._pending:
            return False
        self._pending.add(record_id)
        try:
            details = await self._lookup.lookup_by_title(title)
            if not details.found:
                logger.info("No metadata found for %r (record=%s)", title, record_id)
                return False
            await self._collection.update(
                record_id,
                {FIELD_DESCRIPTION: details.description, FIELD_POSTER_URL: details.poster_url},
            )
            return True
        except Exception as exc:
            logger.warning("Failed to get details for %r (record=%s): %s", title, record_id, exc)
            return False
        finally:
            self._pending.discard(record_id)

from __future__ import annotations

from typing import Protocol

from domain.curation import MovieDetails, SearchResult


class MetadataLookupPort(Protocol):
    async def lookup_by_title(self, title: str) -> MovieDetails:
        """Exact-title lookup; a miss returns MovieDetails.not_found()."""
        ...

    async def search_by_query(self, text: str) -> list[SearchResult]:
        ...

    async def close(self) -> None:
        ...

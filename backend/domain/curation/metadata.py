from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

NO_DETAILS_DESCRIPTION = "No details found."


@dataclass(frozen=True)
class MovieDetails:
    """Result of an exact-title metadata lookup."""

    found: bool
    poster_url: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def not_found(cls) -> "MovieDetails":
        return cls(found=False, poster_url=None, description=NO_DETAILS_DESCRIPTION)


@dataclass(frozen=True)
class SearchResult:
    """One hit of a free-text title search."""

    title: str
    year: Optional[str] = None
    poster_url: Optional[str] = None
    external_id: Optional[str] = None

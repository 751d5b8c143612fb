from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from application.ports.metadata_lookup_port import MetadataLookupPort
from application.ports.taste_generation_port import TasteGenerationPort
from domain.curation.errors import InsufficientWatchHistoryError
from domain.curation.movie_record import MovieRecord
from domain.curation.policy import watched_records
from domain.curation.taste_analysis import (
    Recommendation,
    TasteAnalysisResult,
    build_taste_prompt,
    parse_taste_reply,
)

logger = logging.getLogger(__name__)

DEFAULT_MIN_WATCHED = 3


class TasteAnalysisService:
    """Watched titles -> one generation request -> per-title detail lookups.

    The result is built completely before it is returned; any generation or
    schema failure aborts the run, while a failed detail lookup only blanks that
    recommendation's poster/description.
    """

    def __init__(
        self,
        *,
        generator: TasteGenerationPort,
        lookup: MetadataLookupPort,
        min_watched: int = DEFAULT_MIN_WATCHED,
    ) -> None:
        self._generator = generator
        self._lookup = lookup
        self._min_watched = max(1, int(min_watched))

    @property
    def min_watched(self) -> int:
        return self._min_watched

    async def analyze(self, records: Sequence[MovieRecord]) -> TasteAnalysisResult:
        watched = watched_records(records)
        if len(watched) < self._min_watched:
            raise InsufficientWatchHistoryError(watched_count=len(watched), required=self._min_watched)

        prompt = build_taste_prompt(r.title for r in watched)
        text = await self._generator.generate(prompt, json_mode=True)
        reply = parse_taste_reply(text)

        recommendations = await asyncio.gather(*(self._recommendation(t) for t in reply.recommendations))
        logger.info(
            "Taste analysis complete: watched=%d title=%r recommendations=%d",
            len(watched),
            reply.title,
            len(recommendations),
        )
        return TasteAnalysisResult(
            title=reply.title,
            suggestion=reply.suggestion,
            recommendations=tuple(recommendations),
        )

    async def _recommendation(self, title: str) -> Recommendation:
        try:
            details = await self._lookup.lookup_by_title(title)
        except Exception as exc:
            logger.warning("Recommendation lookup failed for %r: %s", title, exc)
            return Recommendation(title=title)
        return Recommendation(title=title, description=details.description, poster_url=details.poster_url)

"""
OMDb API HTTP client for movie metadata.

Async aiohttp client with a lazily created, lock-guarded session and a bounded
total timeout per request. Failures surface as TransportError; a missing API key
surfaces as ConfigurationError before any request is made.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from application.ports.metadata_lookup_port import MetadataLookupPort
from domain.curation import ConfigurationError, MovieDetails, SearchResult, TransportError
from infrastructure.config.settings import OMDB_API_KEY, OMDB_BASE_URL, OMDB_TIMEOUT_S
from infrastructure.utils import format_kv

logger = logging.getLogger(__name__)

_MISSING = "N/A"


def _clean(value: Any) -> str | None:
    """OMDb marks absent fields with "N/A"; treat those as null."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or value == _MISSING:
        return None
    return value


def _is_found(payload: dict[str, Any]) -> bool:
    return str(payload.get("Response") or "").strip().lower() == "true"


def parse_details(payload: Any) -> MovieDetails:
    """Map an OMDb `?t=` response to MovieDetails."""
    if not isinstance(payload, dict) or not _is_found(payload):
        return MovieDetails.not_found()
    return MovieDetails(
        found=True,
        poster_url=_clean(payload.get("Poster")),
        description=_clean(payload.get("Plot")),
    )


def parse_search(payload: Any) -> list[SearchResult]:
    """Map an OMDb `?s=` response to SearchResults (empty on "not found")."""
    if not isinstance(payload, dict) or not _is_found(payload):
        return []
    raw = payload.get("Search")
    if not isinstance(raw, list):
        return []
    results: list[SearchResult] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        title = _clean(item.get("Title"))
        if not title:
            continue
        results.append(
            SearchResult(
                title=title,
                year=_clean(item.get("Year")),
                poster_url=_clean(item.get("Poster")),
                external_id=_clean(item.get("imdbID")),
            )
        )
    return results


class OmdbClient(MetadataLookupPort):
    """Async HTTP client for the OMDb API.

    Attributes:
        _base_url: OMDb endpoint (query-string API, single path)
        _api_key: OMDb API key
        _timeout_s: Total timeout per request in seconds
        _session: aiohttp ClientSession (lazily initialized)
        _lock: Async lock guarding session creation
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout_s: float | None = None,
    ) -> None:
        self._base_url = (base_url or OMDB_BASE_URL or "").strip()
        self._api_key = (api_key if api_key is not None else OMDB_API_KEY or "").strip()
        self._timeout_s = float(timeout_s or OMDB_TIMEOUT_S or 10.0)
        self._session: aiohttp.ClientSession | None = None
        self._lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return bool(self._base_url and self._api_key)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is not None and not self._session.closed:
            return self._session

        async with self._lock:
            # Another coroutine may have created the session while we waited.
            if self._session is not None and not self._session.closed:
                return self._session

            timeout = aiohttp.ClientTimeout(total=self._timeout_s)
            self._session = aiohttp.ClientSession(timeout=timeout)
            return self._session

    async def _get(self, params: dict[str, str]) -> Any:
        if not self.configured:
            raise ConfigurationError(
                "OMDB_API_KEY is not set",
                user_message="OMDb API key not configured.",
            )
        session = await self._get_session()
        query = {**params, "apikey": self._api_key}
        try:
            async with session.get(self._base_url, params=query) as resp:
                if resp.status >= 400:
                    error_text = await resp.text()
                    raise TransportError(f"OMDb request failed ({resp.status}): {error_text[:200]}")
                return await resp.json(content_type=None)
        except asyncio.TimeoutError as exc:
            raise TransportError(f"OMDb request timed out after {self._timeout_s}s") from exc
        except aiohttp.ClientError as exc:
            raise TransportError(f"OMDb request failed: {exc}") from exc
        except ValueError as exc:
            raise TransportError(f"OMDb returned invalid JSON: {exc}") from exc

    async def lookup_by_title(self, title: str) -> MovieDetails:
        """Exact-title lookup (`?t=`), not a fuzzy search."""
        payload = await self._get({"t": title})
        details = parse_details(payload)
        logger.debug("OMDb %s", format_kv(event="lookup", title=title, found=details.found))
        return details

    async def search_by_query(self, text: str) -> list[SearchResult]:
        payload = await self._get({"s": text})
        results = parse_search(payload)
        logger.debug("OMDb %s", format_kv(event="search", query=text, results=len(results)))
        return results

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

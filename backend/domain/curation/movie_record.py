from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional

from domain.curation.errors import SchemaError

DEFAULT_APP_ID = "default-app-id"

# Remote document field names (camelCase on the wire).
FIELD_TITLE = "title"
FIELD_WATCHED = "watched"
FIELD_ON_WATCHLIST = "onWatchlist"
FIELD_DESCRIPTION = "description"
FIELD_POSTER_URL = "posterUrl"
FIELD_CREATED_AT = "createdAt"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class ListStatus(str, Enum):
    TO_WATCH = "to-watch"
    WATCHED = "watched"


@dataclass(frozen=True)
class MovieRecord:
    """A user-scoped movie entry mirrored from the remote collection."""

    id: str
    title: str
    watched: bool = False
    on_watchlist: bool = False
    description: Optional[str] = None
    poster_url: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def has_details(self) -> bool:
        return bool(self.description) or bool(self.poster_url)

    def sort_key(self) -> float:
        # Records without a server timestamp yet sort as epoch.
        return (self.created_at or _EPOCH).timestamp()


def movies_collection_path(*, app_id: str, user_id: str) -> str:
    app = (app_id or "").strip() or DEFAULT_APP_ID
    uid = (user_id or "").strip()
    if not uid:
        raise ValueError("user_id is required")
    return f"artifacts/{app}/users/{uid}/movies"


def movie_document_path(collection_path: str, record_id: str) -> str:
    return f"{collection_path.rstrip('/')}/{record_id}"


def normalize_title_key(title: str) -> str:
    """Key used for the per-user case-insensitive title uniqueness check."""
    return (title or "").strip().casefold()


def _coerce_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    if isinstance(value, Mapping):
        # {"seconds": ..., "nanoseconds": ...} as serialized by web clients.
        seconds = value.get("seconds")
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            nanos = value.get("nanoseconds") or 0
            return datetime.fromtimestamp(float(seconds) + float(nanos) / 1e9, tz=timezone.utc)
        return None
    if isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=timezone.utc)
    return None


def _optional_text(data: Mapping[str, Any], key: str, doc_id: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise SchemaError(f"movie {doc_id}: field {key!r} must be a string or null")
    return value


def _flag(data: Mapping[str, Any], key: str, doc_id: str) -> bool:
    value = data.get(key, False)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise SchemaError(f"movie {doc_id}: field {key!r} must be a boolean")
    return value


def record_from_document(doc_id: str, data: Mapping[str, Any]) -> MovieRecord:
    """Validate a raw store document into a MovieRecord.

    Raises SchemaError for payloads that would otherwise leak null-shaped
    objects into the view layer.
    """
    if not doc_id:
        raise SchemaError("movie document without id")
    if not isinstance(data, Mapping):
        raise SchemaError(f"movie {doc_id}: document body must be an object")
    title = data.get(FIELD_TITLE)
    if not isinstance(title, str) or not title.strip():
        raise SchemaError(f"movie {doc_id}: title must be a non-empty string")
    return MovieRecord(
        id=str(doc_id),
        title=title,
        watched=_flag(data, FIELD_WATCHED, doc_id),
        on_watchlist=_flag(data, FIELD_ON_WATCHLIST, doc_id),
        description=_optional_text(data, FIELD_DESCRIPTION, doc_id),
        poster_url=_optional_text(data, FIELD_POSTER_URL, doc_id),
        created_at=_coerce_timestamp(data.get(FIELD_CREATED_AT)),
    )

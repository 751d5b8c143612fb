from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Sequence

from domain.curation.errors import CurationValidationError
from domain.curation.metadata import SearchResult
from domain.curation.movie_record import (
    FIELD_ON_WATCHLIST,
    FIELD_TITLE,
    FIELD_WATCHED,
    ListStatus,
    MovieRecord,
    normalize_title_key,
)


class ViewTab(str, Enum):
    SEARCH = "search"
    TO_WATCH = "to-watch"
    WATCHED = "watched"


class ListLayout(str, Enum):
    # dual: independent `watched` / `onWatchlist` flags.
    # single: one collection where to-watch means `watched == False`.
    DUAL = "dual"
    SINGLE = "single"


@dataclass(frozen=True)
class FeedbackFlag:
    """Short-lived "Added!" marker for a search result button."""

    external_id: str
    status: ListStatus


@dataclass(frozen=True)
class MovieCard:
    record: MovieRecord
    loading: bool = False

    @property
    def details_available(self) -> bool:
        return self.record.has_details


@dataclass(frozen=True)
class SearchCard:
    result: SearchResult
    added_to_watched: bool = False
    added_to_watchlist: bool = False


@dataclass(frozen=True)
class ViewProjection:
    tab: ViewTab
    cards: tuple[MovieCard, ...] = ()
    search_cards: tuple[SearchCard, ...] = ()
    is_searching: bool = False


@dataclass(frozen=True)
class RecordChange:
    """Write to apply to one record: a partial update or a delete."""

    delete: bool = False
    fields: dict[str, Any] = field(default_factory=dict)


def sort_records(records: Iterable[MovieRecord]) -> list[MovieRecord]:
    # sorted() is stable: equal timestamps keep store order.
    return sorted(records, key=lambda r: r.sort_key())


def in_tab(record: MovieRecord, tab: ViewTab, layout: ListLayout = ListLayout.DUAL) -> bool:
    if tab is ViewTab.WATCHED:
        return record.watched
    if tab is ViewTab.TO_WATCH:
        if layout is ListLayout.SINGLE:
            return not record.watched
        return record.on_watchlist
    return False


def watched_records(records: Iterable[MovieRecord]) -> list[MovieRecord]:
    return [r for r in records if r.watched]


def find_by_title(records: Iterable[MovieRecord], title: str) -> Optional[MovieRecord]:
    key = normalize_title_key(title)
    if not key:
        return None
    for record in records:
        if normalize_title_key(record.title) == key:
            return record
    return None


def find_by_id(records: Iterable[MovieRecord], record_id: str) -> Optional[MovieRecord]:
    for record in records:
        if record.id == record_id:
            return record
    return None


def project_view(
    *,
    records: Sequence[MovieRecord],
    tab: ViewTab,
    layout: ListLayout = ListLayout.DUAL,
    search_results: Sequence[SearchResult] = (),
    feedback: Optional[FeedbackFlag] = None,
    pending_ids: Iterable[str] = (),
    is_searching: bool = False,
) -> ViewProjection:
    """Derive the visible cards for `tab`.

    The search tab shows lookup-service results, never canonical records. List
    tabs only mark a card as loading while its enrichment is in flight.
    """
    if tab is ViewTab.SEARCH:
        cards = []
        for result in search_results:
            flagged = feedback is not None and result.external_id is not None and feedback.external_id == result.external_id
            cards.append(
                SearchCard(
                    result=result,
                    added_to_watched=flagged and feedback.status is ListStatus.WATCHED,
                    added_to_watchlist=flagged and feedback.status is ListStatus.TO_WATCH,
                )
            )
        return ViewProjection(tab=tab, search_cards=tuple(cards), is_searching=is_searching)

    pending = frozenset(pending_ids)
    return ViewProjection(
        tab=tab,
        cards=tuple(
            MovieCard(record=r, loading=r.id in pending)
            for r in records
            if in_tab(r, tab, layout)
        ),
    )


def status_fields(status: ListStatus, layout: ListLayout = ListLayout.DUAL) -> dict[str, Any]:
    """Flags to set on an existing record when the same title is added again."""
    if status is ListStatus.WATCHED:
        return {FIELD_WATCHED: True}
    if layout is ListLayout.SINGLE:
        return {FIELD_WATCHED: False}
    return {FIELD_ON_WATCHLIST: True}


def new_record_fields(title: str, status: ListStatus, layout: ListLayout = ListLayout.DUAL) -> dict[str, Any]:
    fields: dict[str, Any] = {
        FIELD_TITLE: title.strip(),
        FIELD_WATCHED: status is ListStatus.WATCHED,
    }
    if layout is ListLayout.DUAL:
        fields[FIELD_ON_WATCHLIST] = status is ListStatus.TO_WATCH
    return fields


def plan_removal(record: MovieRecord, tab: ViewTab, layout: ListLayout = ListLayout.DUAL) -> RecordChange:
    """Remove `record` from the list shown in `tab`.

    A record that also belongs to the other list only loses this membership;
    otherwise it is deleted.
    """
    if tab is ViewTab.SEARCH:
        raise CurationValidationError(
            "cannot remove a movie from the search tab",
            user_message="Switch to a list tab to remove a movie.",
        )
    if layout is ListLayout.SINGLE:
        return RecordChange(delete=True)
    if tab is ViewTab.TO_WATCH:
        if record.watched:
            return RecordChange(fields={FIELD_ON_WATCHLIST: False})
        return RecordChange(delete=True)
    if record.on_watchlist:
        return RecordChange(fields={FIELD_WATCHED: False})
    return RecordChange(delete=True)


def plan_toggle(record: MovieRecord, layout: ListLayout = ListLayout.DUAL) -> RecordChange:
    """Flip `watched`; a transition that empties both memberships deletes."""
    now_watched = not record.watched
    if layout is ListLayout.DUAL and not now_watched and not record.on_watchlist:
        return RecordChange(delete=True)
    return RecordChange(fields={FIELD_WATCHED: now_watched})

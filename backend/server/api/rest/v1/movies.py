from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Sequence

from fastapi import APIRouter, Depends, Query

from application.curation.curator_session import CuratorSession
from domain.curation.errors import CurationError
from domain.curation.movie_record import FIELD_ON_WATCHLIST, FIELD_WATCHED, MovieRecord
from domain.curation.policy import RecordChange, find_by_id
from infrastructure.utils import EventLogger
from server.api.rest.dependencies import get_action_log, get_started_session
from server.api.rest.errors import http_error
from server.models.schemas import (
    AddMovieRequest,
    AddMovieResponse,
    RecordChangeResponse,
    TabValue,
    ViewResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["movies-v1"])

# Upper bound on waiting for a write to come back through the subscription.
_ECHO_TIMEOUT_S = 2.0

MoviesPredicate = Callable[[Sequence[MovieRecord]], bool]


async def _await_echo(session: CuratorSession, predicate: MoviesPredicate) -> None:
    try:
        await session.wait_for_movies(predicate, timeout_s=_ECHO_TIMEOUT_S)
    except asyncio.TimeoutError:
        logger.info("Write not yet visible on the movie subscription; responding anyway")


def _has_record(record_id: str) -> MoviesPredicate:
    return lambda movies: find_by_id(movies, record_id) is not None


def _change_visible(record_id: str, change: RecordChange) -> MoviesPredicate:
    def _check(movies: Sequence[MovieRecord]) -> bool:
        record = find_by_id(movies, record_id)
        if change.delete:
            return record is None
        if record is None:
            return False
        if FIELD_WATCHED in change.fields and record.watched != change.fields[FIELD_WATCHED]:
            return False
        if FIELD_ON_WATCHLIST in change.fields and record.on_watchlist != change.fields[FIELD_ON_WATCHLIST]:
            return False
        return True

    return _check


@router.get("/movies", response_model=ViewResponse)
async def list_movies(
    tab: Optional[TabValue] = Query(default=None, description="search / to-watch / watched (defaults to the active tab)"),
    session: CuratorSession = Depends(get_started_session),
) -> ViewResponse:
    return ViewResponse.from_projection(session.view(tab))


@router.post("/movies", response_model=AddMovieResponse, status_code=201)
async def add_movie(
    req: AddMovieRequest,
    session: CuratorSession = Depends(get_started_session),
    events: EventLogger = Depends(get_action_log),
) -> AddMovieResponse:
    try:
        record_id = await session.add_movie(req.title, req.status, external_id=req.external_id)
    except CurationError as exc:
        raise http_error(exc)
    events.info("movie_added", id=record_id, title=req.title, status=req.status)
    await _await_echo(session, _has_record(record_id))
    return AddMovieResponse(id=record_id)


@router.delete("/movies/{record_id}", response_model=RecordChangeResponse)
async def remove_movie(
    record_id: str,
    tab: Optional[TabValue] = Query(default=None, description="List the removal applies to (defaults to the active tab)"),
    session: CuratorSession = Depends(get_started_session),
    events: EventLogger = Depends(get_action_log),
) -> RecordChangeResponse:
    try:
        change = await session.remove_from_list(record_id, tab)
    except CurationError as exc:
        raise http_error(exc)
    events.info("movie_removed", id=record_id, tab=tab or session.active_tab, deleted=change.delete)
    await _await_echo(session, _change_visible(record_id, change))
    return RecordChangeResponse.from_change(record_id, change)


@router.post("/movies/{record_id}/toggle", response_model=RecordChangeResponse)
async def toggle_movie(
    record_id: str,
    session: CuratorSession = Depends(get_started_session),
    events: EventLogger = Depends(get_action_log),
) -> RecordChangeResponse:
    try:
        change = await session.toggle_status(record_id)
    except CurationError as exc:
        raise http_error(exc)
    events.info("movie_toggled", id=record_id, deleted=change.delete)
    await _await_echo(session, _change_visible(record_id, change))
    return RecordChangeResponse.from_change(record_id, change)

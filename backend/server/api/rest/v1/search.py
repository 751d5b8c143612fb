from __future__ import annotations

from fastapi import APIRouter, Depends

from application.curation.curator_session import CuratorSession
from server.api.rest.dependencies import get_curator_session, get_started_session
from server.models.schemas import SearchQueryRequest, SessionResponse, TabRequest, ViewResponse

router = APIRouter(prefix="/api/v1", tags=["search-v1"])


@router.put("/search", response_model=SessionResponse, status_code=202)
async def set_search_query(
    req: SearchQueryRequest,
    session: CuratorSession = Depends(get_started_session),
) -> SessionResponse:
    """Accept search input; the lookup runs once typing pauses."""
    session.set_search_query(req.query)
    return SessionResponse.from_session(session)


@router.get("/search", response_model=ViewResponse)
async def get_search_results(session: CuratorSession = Depends(get_started_session)) -> ViewResponse:
    return ViewResponse.from_projection(session.view("search"))


@router.put("/tab", response_model=SessionResponse)
async def set_active_tab(
    req: TabRequest,
    session: CuratorSession = Depends(get_curator_session),
) -> SessionResponse:
    session.set_active_tab(req.tab)
    return SessionResponse.from_session(session)

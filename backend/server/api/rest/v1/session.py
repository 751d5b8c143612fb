from __future__ import annotations

from fastapi import APIRouter, Depends

from application.curation.curator_session import CuratorSession
from server.api.rest.dependencies import get_curator_session
from server.models.schemas import SessionResponse

router = APIRouter(prefix="/api/v1", tags=["session-v1"])


@router.get("/session", response_model=SessionResponse)
async def get_session_state(session: CuratorSession = Depends(get_curator_session)) -> SessionResponse:
    return SessionResponse.from_session(session)


@router.delete("/session/error", response_model=SessionResponse)
async def clear_session_error(session: CuratorSession = Depends(get_curator_session)) -> SessionResponse:
    session.clear_error()
    return SessionResponse.from_session(session)

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from application.curation.curator_session import CuratorSession
from domain.curation.errors import CurationError
from infrastructure.utils import EventLogger
from server.api.rest.dependencies import get_action_log, get_curator_session, get_started_session
from server.api.rest.errors import http_error
from server.models.schemas import AnalysisResponse

router = APIRouter(prefix="/api/v1", tags=["analysis-v1"])


@router.post("/analysis", response_model=AnalysisResponse)
async def run_analysis(
    session: CuratorSession = Depends(get_started_session),
    events: EventLogger = Depends(get_action_log),
) -> AnalysisResponse:
    if session.is_analyzing:
        raise HTTPException(status_code=409, detail="an analysis is already running")
    try:
        result = await session.analyze_taste()
    except CurationError as exc:
        events.warning("analysis_failed", kind=exc.kind)
        raise http_error(exc)
    events.info("analysis_completed", title=result.title)
    return AnalysisResponse.from_result(result)


@router.get("/analysis", response_model=AnalysisResponse)
async def get_analysis(session: CuratorSession = Depends(get_curator_session)) -> AnalysisResponse:
    if session.analysis is None:
        raise HTTPException(status_code=404, detail="no analysis yet")
    return AnalysisResponse.from_result(session.analysis)

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, HTTPException

from application.curation.curator_session import CuratorSession
from infrastructure.bootstrap import CuratorRuntime, build_curator_runtime
from infrastructure.utils import EventLogger

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _build_runtime() -> CuratorRuntime:
    return build_curator_runtime()


def get_curator_session() -> CuratorSession:
    return _build_runtime().session


def get_started_session(session: CuratorSession = Depends(get_curator_session)) -> CuratorSession:
    if not session.started:
        raise HTTPException(status_code=503, detail="curator session is not started")
    return session


def get_action_log() -> EventLogger:
    return _build_runtime().events


async def startup_dependencies() -> None:
    """Resolve the identity and open the live movie subscription."""
    user_id = await _build_runtime().start()
    logger.info("Curator API ready for user=%s", user_id)


async def shutdown_dependencies() -> None:
    """Close the session and its adapters if they were ever built."""
    if _build_runtime.cache_info().currsize == 0:
        return
    await _build_runtime().close()
    _build_runtime.cache_clear()

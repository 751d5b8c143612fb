from __future__ import annotations

import logging

from fastapi import HTTPException

from domain.curation.errors import CurationError

logger = logging.getLogger(__name__)

_STATUS_BY_KIND = {
    "validation": 400,
    "not_found": 404,
    "configuration": 503,
    "transport": 502,
    "schema": 502,
}


def http_error(exc: CurationError) -> HTTPException:
    """Map a curation error to an HTTPException carrying its user message."""
    status = _STATUS_BY_KIND.get(exc.kind, 500)
    if status >= 500:
        logger.warning("Curation request failed kind=%s: %s", exc.kind, exc)
    return HTTPException(status_code=status, detail={"kind": exc.kind, "message": exc.user_message})

import logging
import time
from typing import Any, Dict, Optional

from infrastructure.utils.log_format import format_kv


class EventLogger:
    """
    Emit single-line structured logs for one curator session or request.

    Keeps a sequence counter and the elapsed time since creation so a user's
    actions (add, remove, toggle, analyze) read as a flow in the log.
    """

    def __init__(
        self,
        logger: logging.Logger,
        prefix: str,
        *,
        base_fields: Optional[Dict[str, Any]] = None,
        started_at: Optional[float] = None,
    ) -> None:
        self._logger = logger
        self._prefix = prefix
        self._base_fields: Dict[str, Any] = dict(base_fields or {})
        self._started_at = started_at if started_at is not None else time.monotonic()
        self._seq = 0

    @property
    def seq(self) -> int:
        return self._seq

    def bind(self, **fields: Any) -> None:
        self._base_fields.update({k: v for k, v in fields.items() if v is not None})

    def info(self, event: str, **fields: Any) -> None:
        self._log(logging.INFO, event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._log(logging.WARNING, event, **fields)

    def error(self, event: str, **fields: Any) -> None:
        self._log(logging.ERROR, event, **fields)

    def _log(self, level: int, event: str, **fields: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        self._seq += 1
        payload: Dict[str, Any] = {
            "seq": self._seq,
            "event": event,
            "elapsed_s": round(time.monotonic() - self._started_at, 3),
        }
        payload.update(self._base_fields)
        payload.update(fields)
        self._logger.log(level, "%s %s", self._prefix, format_kv(**payload), stacklevel=3)

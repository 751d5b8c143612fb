from __future__ import annotations

from typing import Protocol


class IdentityPort(Protocol):
    async def current_user_id(self) -> str:
        """Stable opaque user id for this session."""
        ...

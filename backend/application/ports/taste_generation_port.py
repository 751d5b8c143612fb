from __future__ import annotations

from typing import Protocol


class TasteGenerationPort(Protocol):
    async def generate(self, prompt: str, *, json_mode: bool = True) -> str:
        """Return the raw generated text; callers validate its shape."""
        ...

    async def close(self) -> None:
        ...

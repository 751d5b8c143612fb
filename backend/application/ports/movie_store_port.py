from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, AsyncContextManager, AsyncIterator, Protocol


@dataclass(frozen=True)
class StoredDocument:
    """Raw document as delivered by a store snapshot (unvalidated)."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)


class MovieStorePort(Protocol):
    def subscribe(self, collection_path: str) -> AsyncContextManager[AsyncIterator[list[StoredDocument]]]:
        """Open a live subscription to a collection.

        Entering the context registers the listener; every remote change (and
        the initial state) is delivered as the full document list. Leaving the
        context must release the listener. Transport failures surface from the
        iterator as TransportError.
        """
        ...

    async def insert(self, collection_path: str, fields: dict[str, Any]) -> str:
        """Create a document and return its id; the store stamps `createdAt`."""
        ...

    async def update(self, doc_path: str, fields: dict[str, Any]) -> None:
        ...

    async def delete(self, doc_path: str) -> None:
        ...

    async def close(self) -> None:
        ...

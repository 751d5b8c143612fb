from __future__ import annotations

from typing import Any, AsyncContextManager, AsyncIterator

from application.ports.movie_store_port import MovieStorePort, StoredDocument
from domain.curation.movie_record import movie_document_path, movies_collection_path


class UserMovieCollection:
    """One user's movie collection on the remote store (path handling only)."""

    def __init__(self, *, store: MovieStorePort, app_id: str, user_id: str) -> None:
        self._store = store
        self._user_id = str(user_id)
        self._path = movies_collection_path(app_id=app_id, user_id=self._user_id)

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def path(self) -> str:
        return self._path

    def document_path(self, record_id: str) -> str:
        return movie_document_path(self._path, record_id)

    def subscribe(self) -> AsyncContextManager[AsyncIterator[list[StoredDocument]]]:
        return self._store.subscribe(self._path)

    async def insert(self, fields: dict[str, Any]) -> str:
        return await self._store.insert(self._path, dict(fields))

    async def update(self, record_id: str, fields: dict[str, Any]) -> None:
        await self._store.update(self.document_path(record_id), dict(fields))

    async def delete(self, record_id: str) -> None:
        await self._store.delete(self.document_path(record_id))

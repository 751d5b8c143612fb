"""Movie store factory.

Chooses the MovieStorePort implementation from MOVIE_STORE_PROVIDER so the
application layer never imports a concrete store.
"""

from __future__ import annotations

import logging
from typing import Literal

from application.ports.movie_store_port import MovieStorePort
from infrastructure.config.settings import MOVIE_STORE_PROVIDER

logger = logging.getLogger(__name__)

ProviderType = Literal["memory", "firestore", ""]


class MovieStoreFactory:
    """Factory for creating movie store instances based on configuration."""

    @staticmethod
    def create(provider: ProviderType | None = None) -> MovieStorePort:
        """Create a movie store for `provider` (defaults to MOVIE_STORE_PROVIDER).

        Raises:
            ValueError: If an unsupported provider is specified.
        """
        if provider is None:
            provider = MOVIE_STORE_PROVIDER  # type: ignore[assignment]

        provider = (provider or "").strip().lower()

        match provider:
            case "firestore":
                from infrastructure.persistence.firestore.movie_store import FirestoreMovieStore

                return FirestoreMovieStore()

            case "memory" | "":
                from infrastructure.persistence.memory.movie_store import InMemoryMovieStore

                logger.info("Using in-memory movie store; lists are lost on restart")
                return InMemoryMovieStore()

            case _:
                raise ValueError(
                    f"Unsupported MOVIE_STORE_PROVIDER: {provider!r}. "
                    f"Supported values: 'memory', 'firestore'"
                )


def create_movie_store(provider: ProviderType | None = None) -> MovieStorePort:
    return MovieStoreFactory.create(provider)

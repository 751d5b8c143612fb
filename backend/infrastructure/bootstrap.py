from __future__ import annotations

import logging
from dataclasses import dataclass, field

from application.curation.curator_session import CuratorOptions, CuratorSession
from application.ports.identity_port import IdentityPort
from application.ports.metadata_lookup_port import MetadataLookupPort
from application.ports.movie_store_port import MovieStorePort
from application.ports.taste_generation_port import TasteGenerationPort
from domain.curation.policy import ListLayout
from infrastructure.config.settings import (
    CURATOR_APP_ID,
    CURATOR_ID_TOKEN,
    CURATOR_LIST_LAYOUT,
    CURATOR_USER_ID,
    FEEDBACK_TTL_S,
    MIN_WATCHED_FOR_ANALYSIS,
    SEARCH_DEBOUNCE_S,
)
from infrastructure.enrichment.omdb_client import OmdbClient
from infrastructure.identity import create_identity
from infrastructure.llm.gemini_client import GeminiClient
from infrastructure.persistence.factory import create_movie_store
from infrastructure.utils import EventLogger

logger = logging.getLogger(__name__)


@dataclass
class CuratorRuntime:
    """Adapters plus the session wired on top of them."""

    session: CuratorSession
    identity: IdentityPort
    store: MovieStorePort
    lookup: MetadataLookupPort
    generator: TasteGenerationPort
    events: EventLogger = field(default_factory=lambda: EventLogger(logging.getLogger("curator.actions"), "[curator]"))

    async def start(self) -> str:
        user_id = await self.identity.current_user_id()
        await self.session.start(user_id)
        self.events.bind(user_id=user_id)
        self.events.info("session_started", store=type(self.store).__name__)
        return user_id

    async def close(self) -> None:
        self.events.info("session_closed", movies=len(self.session.movies))
        await self.session.close()
        await self.lookup.close()
        await self.generator.close()
        await self.store.close()


def curator_options_from_settings() -> CuratorOptions:
    return CuratorOptions(
        app_id=CURATOR_APP_ID,
        layout=ListLayout(CURATOR_LIST_LAYOUT),
        search_debounce_s=SEARCH_DEBOUNCE_S,
        feedback_ttl_s=FEEDBACK_TTL_S,
        min_watched_for_analysis=MIN_WATCHED_FOR_ANALYSIS,
    )


def build_curator_runtime(
    *,
    store: MovieStorePort | None = None,
    lookup: MetadataLookupPort | None = None,
    generator: TasteGenerationPort | None = None,
    identity: IdentityPort | None = None,
    options: CuratorOptions | None = None,
) -> CuratorRuntime:
    """Wire adapters from settings; any piece can be passed in instead."""
    store = store or create_movie_store()
    lookup = lookup or OmdbClient()
    generator = generator or GeminiClient()
    identity = identity or create_identity(user_id=CURATOR_USER_ID, id_token=CURATOR_ID_TOKEN)
    options = options or curator_options_from_settings()
    session = CuratorSession(store=store, lookup=lookup, generator=generator, options=options)
    logger.info(
        "Curator runtime built store=%s layout=%s app_id=%s",
        type(store).__name__,
        options.layout.value,
        options.app_id,
    )
    return CuratorRuntime(session=session, identity=identity, store=store, lookup=lookup, generator=generator)

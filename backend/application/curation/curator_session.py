from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any, Callable, Coroutine, Optional, Sequence

from application.curation.collection_watcher import CollectionWatcher
from application.curation.debounce import Debouncer
from application.curation.enrichment_tracker import EnrichmentTracker
from application.curation.movie_collection import UserMovieCollection
from application.curation.taste_analysis_service import DEFAULT_MIN_WATCHED, TasteAnalysisService
from application.ports.metadata_lookup_port import MetadataLookupPort
from application.ports.movie_store_port import MovieStorePort
from application.ports.taste_generation_port import TasteGenerationPort
from domain.curation.errors import (
    ConfigurationError,
    CurationError,
    CurationValidationError,
    RecordNotFoundError,
    SchemaError,
    TransportError,
)
from domain.curation.metadata import SearchResult
from domain.curation.movie_record import DEFAULT_APP_ID, ListStatus, MovieRecord, normalize_title_key
from domain.curation.policy import (
    FeedbackFlag,
    ListLayout,
    RecordChange,
    ViewProjection,
    ViewTab,
    find_by_id,
    find_by_title,
    new_record_fields,
    plan_removal,
    plan_toggle,
    project_view,
    status_fields,
)
from domain.curation.taste_analysis import TasteAnalysisResult

logger = logging.getLogger(__name__)

ANALYSIS_BUSY_MESSAGE = "The AI curator is busy. Please try again in a moment."
SEARCH_FAILED_MESSAGE = "Failed to fetch search results."
MIN_SEARCH_QUERY_CHARS = 2


@dataclass(frozen=True)
class CuratorOptions:
    app_id: str = DEFAULT_APP_ID
    layout: ListLayout = ListLayout.DUAL
    search_debounce_s: float = 0.3
    feedback_ttl_s: float = 2.0
    min_watched_for_analysis: int = DEFAULT_MIN_WATCHED


class CuratorSession:
    """State and actions for one signed-in user.

    The subscription stream is the only writer of the canonical movie list;
    user actions write to the store and observe their effect through it.
    """

    def __init__(
        self,
        *,
        store: MovieStorePort,
        lookup: MetadataLookupPort,
        generator: TasteGenerationPort,
        options: CuratorOptions | None = None,
    ) -> None:
        self._store = store
        self._lookup = lookup
        self._options = options or CuratorOptions()
        self._analysis_service = TasteAnalysisService(
            generator=generator,
            lookup=lookup,
            min_watched=self._options.min_watched_for_analysis,
        )
        self._search_debouncer: Debouncer[str] = Debouncer(
            self._options.search_debounce_s, self.search, name="search"
        )
        self._feedback_reset: Debouncer[None] = Debouncer(
            self._options.feedback_ttl_s, self._clear_feedback, name="feedback"
        )

        self._collection: UserMovieCollection | None = None
        self._tracker: EnrichmentTracker | None = None
        self._watch_task: asyncio.Task[None] | None = None
        self._background: set[asyncio.Task[Any]] = set()
        self._changed = asyncio.Condition()
        self._write_lock = asyncio.Lock()

        self._movies: list[MovieRecord] = []
        self._snapshots = 0
        # title key -> id of a record inserted but not yet seen on the subscription
        self._unconfirmed: dict[str, str] = {}
        self._reset_view_state()

    def _reset_view_state(self) -> None:
        self._active_tab = ViewTab.SEARCH
        self._search_query = ""
        self._search_results: list[SearchResult] = []
        self._search_seq = 0
        self._is_searching = False
        self._feedback: FeedbackFlag | None = None
        self._analysis: TasteAnalysisResult | None = None
        self._analyses_running = 0
        self._error: str | None = None

    # ----- state

    @property
    def options(self) -> CuratorOptions:
        return self._options

    @property
    def user_id(self) -> Optional[str]:
        return self._collection.user_id if self._collection is not None else None

    @property
    def started(self) -> bool:
        return self._collection is not None

    @property
    def movies(self) -> tuple[MovieRecord, ...]:
        return tuple(self._movies)

    @property
    def snapshot_count(self) -> int:
        return self._snapshots

    @property
    def active_tab(self) -> ViewTab:
        return self._active_tab

    @property
    def search_query(self) -> str:
        return self._search_query

    @property
    def search_results(self) -> tuple[SearchResult, ...]:
        return tuple(self._search_results)

    @property
    def is_searching(self) -> bool:
        return self._is_searching

    @property
    def feedback(self) -> FeedbackFlag | None:
        return self._feedback

    @property
    def analysis(self) -> TasteAnalysisResult | None:
        return self._analysis

    @property
    def is_analyzing(self) -> bool:
        return self._analyses_running > 0

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def pending_ids(self) -> frozenset[str]:
        return self._tracker.pending_ids if self._tracker is not None else frozenset()

    def clear_error(self) -> None:
        self._error = None

    # ----- lifecycle

    async def start(self, user_id: str) -> None:
        """Open the live subscription for `user_id`."""
        if self._collection is not None:
            if self._collection.user_id == str(user_id):
                return
            raise RuntimeError("session already started; use switch_identity()")
        collection = UserMovieCollection(store=self._store, app_id=self._options.app_id, user_id=user_id)
        self._collection = collection
        self._tracker = EnrichmentTracker(collection=collection, lookup=self._lookup)
        self._watch_task = asyncio.create_task(
            self._consume(CollectionWatcher(collection)),
            name=f"movie-watch-{collection.user_id}",
        )
        logger.info("Curator session started for user=%s path=%s", collection.user_id, collection.path)

    async def switch_identity(self, user_id: str) -> None:
        """Tear down the current user's subscription and state, then start `user_id`."""
        if self._collection is not None and self._collection.user_id == str(user_id):
            return
        await self._stop()
        await self.start(user_id)

    async def close(self) -> None:
        await self._stop()

    async def _stop(self) -> None:
        await self._search_debouncer.aclose()
        await self._feedback_reset.aclose()
        task, self._watch_task = self._watch_task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        background = list(self._background)
        for t in background:
            t.cancel()
        if background:
            await asyncio.gather(*background, return_exceptions=True)
        if self._collection is not None:
            logger.info("Curator session closed for user=%s", self._collection.user_id)
        self._collection = None
        self._tracker = None
        async with self._changed:
            self._movies = []
            self._snapshots = 0
            self._unconfirmed.clear()
            self._changed.notify_all()
        self._reset_view_state()

    async def _consume(self, watcher: CollectionWatcher) -> None:
        async with aclosing(watcher.watch()) as snapshots:
            async for records in snapshots:
                async with self._changed:
                    self._movies = records
                    self._snapshots += 1
                    if self._unconfirmed:
                        seen = {record.id for record in records}
                        self._unconfirmed = {k: v for k, v in self._unconfirmed.items() if v not in seen}
                    self._changed.notify_all()

    async def wait_for_movies(
        self,
        predicate: Callable[[Sequence[MovieRecord]], bool],
        *,
        timeout_s: float = 2.0,
    ) -> tuple[MovieRecord, ...]:
        """Block until the canonical list satisfies `predicate`."""
        async with self._changed:
            await asyncio.wait_for(self._changed.wait_for(lambda: predicate(self._movies)), timeout_s)
            return tuple(self._movies)

    async def drain(self) -> None:
        """Wait for background enrichment and pending debounced work."""
        await self._search_debouncer.drain()
        while True:
            running = [t for t in self._background if not t.done()]
            if not running:
                return
            await asyncio.gather(*running, return_exceptions=True)

    def _spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    def _require_started(self) -> tuple[UserMovieCollection, EnrichmentTracker]:
        if self._collection is None or self._tracker is None:
            raise RuntimeError("curator session is not started")
        return self._collection, self._tracker

    def _record(self, record_id: str) -> MovieRecord:
        record = find_by_id(self._movies, record_id)
        if record is None:
            raise RecordNotFoundError(f"movie {record_id} not found", user_message="That movie is no longer in your lists.")
        return record

    # ----- view

    def set_active_tab(self, tab: ViewTab | str) -> ViewTab:
        self._active_tab = ViewTab(tab)
        return self._active_tab

    def view(self, tab: ViewTab | str | None = None) -> ViewProjection:
        return project_view(
            records=self._movies,
            tab=ViewTab(tab) if tab is not None else self._active_tab,
            layout=self._options.layout,
            search_results=self._search_results,
            feedback=self._feedback,
            pending_ids=self.pending_ids,
            is_searching=self._is_searching,
        )

    # ----- search

    def set_search_query(self, text: str) -> None:
        """Record new search input; the lookup fires after the quiet period."""
        self._search_query = text or ""
        self._search_debouncer.trigger(self._search_query)

    async def search(self, query: str) -> None:
        """Look up `query`; results of a search superseded by a newer one are dropped."""
        self._search_seq += 1
        seq = self._search_seq
        q = (query or "").strip()
        if len(q) < MIN_SEARCH_QUERY_CHARS:
            self._search_results = []
            self._is_searching = False
            return
        self._is_searching = True
        try:
            results = list(await self._lookup.search_by_query(q))
        except ConfigurationError as exc:
            logger.warning("Search unavailable for %r: %s", q, exc)
            if seq == self._search_seq:
                self._error = exc.user_message
        except CurationError as exc:
            logger.warning("Search failed for %r: %s", q, exc)
            if seq == self._search_seq:
                self._error = SEARCH_FAILED_MESSAGE
        else:
            if seq == self._search_seq:
                self._search_results = results
            else:
                logger.debug("Dropping stale search results for %r", q)
        finally:
            if seq == self._search_seq:
                self._is_searching = False

    # ----- list actions

    async def add_movie(
        self,
        title: str,
        status: ListStatus | str,
        *,
        external_id: str | None = None,
    ) -> str:
        """Add `title` to a list; an existing title (any case) only gains the status."""
        collection, tracker = self._require_started()
        clean = (title or "").strip()
        if not clean:
            raise CurationValidationError("title is required", user_message="Please enter a movie title.")
        status = ListStatus(status)

        key = normalize_title_key(clean)
        # Check and write under one lock so overlapping adds of a title share a record.
        async with self._write_lock:
            existing = find_by_title(self._movies, clean)
            existing_id = existing.id if existing is not None else self._unconfirmed.get(key)
            try:
                if existing_id is not None:
                    await collection.update(existing_id, status_fields(status, self._options.layout))
                    record_id = existing_id
                else:
                    record_id = await collection.insert(new_record_fields(clean, status, self._options.layout))
                    if find_by_id(self._movies, record_id) is None:
                        self._unconfirmed[key] = record_id
                    self._spawn(tracker.enrich(record_id, clean), name=f"enrich-{record_id}")
            except TransportError as exc:
                logger.error("Error adding movie %r: %s", clean, exc)
                self._error = exc.user_message
                raise

        if external_id:
            self._feedback = FeedbackFlag(external_id=str(external_id), status=status)
            self._feedback_reset.trigger(None)
        return record_id

    async def remove_from_list(self, record_id: str, tab: ViewTab | str | None = None) -> RecordChange:
        collection, _ = self._require_started()
        record = self._record(record_id)
        change = plan_removal(record, ViewTab(tab) if tab is not None else self._active_tab, self._options.layout)
        await self._apply(collection, record, change)
        return change

    async def toggle_status(self, record_id: str) -> RecordChange:
        collection, tracker = self._require_started()
        record = self._record(record_id)
        change = plan_toggle(record, self._options.layout)
        await self._apply(collection, record, change)
        if not change.delete and not record.has_details:
            self._spawn(tracker.enrich(record.id, record.title), name=f"enrich-{record.id}")
        return change

    async def _apply(self, collection: UserMovieCollection, record: MovieRecord, change: RecordChange) -> None:
        try:
            if change.delete:
                await collection.delete(record.id)
                self._unconfirmed = {k: v for k, v in self._unconfirmed.items() if v != record.id}
            else:
                await collection.update(record.id, change.fields)
        except TransportError as exc:
            logger.error("Error updating movie %s: %s", record.id, exc)
            self._error = exc.user_message
            raise

    async def _clear_feedback(self, _: None) -> None:
        self._feedback = None

    # ----- taste analysis

    async def analyze_taste(self) -> TasteAnalysisResult:
        """Run one analysis and publish it; a failed run keeps the prior result."""
        self._require_started()
        self._error = None
        self._analyses_running += 1
        try:
            result = await self._analysis_service.analyze(self._movies)
        except (TransportError, SchemaError) as exc:
            logger.error("Error analyzing taste: %s", exc)
            self._error = ANALYSIS_BUSY_MESSAGE
            raise type(exc)(str(exc), user_message=ANALYSIS_BUSY_MESSAGE) from exc
        except CurationError as exc:
            self._error = exc.user_message
            raise
        finally:
            self._analyses_running -= 1
        self._analysis = result
        return result

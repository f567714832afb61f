"""
Autocomplete search controller.

Turns raw keystrokes into a short, ordered series of backend searches:

    keystroke -> threshold gate -> debounce -> cache check -> cancel in-flight -> fetch

Views do not read controller internals; they subscribe() and receive an
immutable SearchState on every change, and on_selection() to learn which
entity the user picked.

One controller per autocomplete box. It owns its cache, its debounce timer
and its in-flight request, and must be closed (close()/aclose() or
``async with``) when the owning view goes away.
"""

import asyncio
from typing import Callable, List, Optional, Set, Tuple

from ..api.client import ApiClient
from ..config.settings import Settings, get_settings
from ..logging_config import get_logger
from ..models.entities import Entity
from ..models.search import (
    ControllerStatus,
    NoOptionsReason,
    ResultSource,
    SearchRequest,
    SearchResult,
    SearchState,
)
from .cache import SearchCache
from .debounce import Debouncer
from .endpoints import CUSTOMER_SEARCH, EntitySearchBackend, SearchBackend, SearchEndpoint

logger = get_logger("admin_lookup.search")

StateListener = Callable[[SearchState], None]
SelectionListener = Callable[[Optional[Entity]], None]


class SearchController:
    """Debounced, cancelable, cached autocomplete search for one input box."""

    def __init__(
        self,
        backend: SearchBackend,
        endpoint: SearchEndpoint = CUSTOMER_SEARCH,
        *,
        min_query_length: int = 2,
        debounce_ms: int = 300,
        page_size: int = 10,
        cache: Optional[SearchCache] = None,
        messages: Optional[dict] = None
    ):
        """
        Args:
            backend: Fetcher for one page of results
            endpoint: Lookup description (option mapper and wording)
            min_query_length: Trimmed queries shorter than this never reach the network
            debounce_ms: Quiet period after the last keystroke
            page_size: Results per page
            cache: Cache instance; a 300s/50-entry one is created when omitted
            messages: Overrides for the no-options texts, keyed by NoOptionsReason
        """
        self.backend = backend
        self.endpoint = endpoint
        self.min_query_length = min_query_length
        self.page_size = page_size
        self._cache = cache if cache is not None else SearchCache()
        self._debouncer = Debouncer(delay=debounce_ms / 1000)

        self._state = SearchState(
            min_query_length=min_query_length,
            noun=endpoint.noun,
            messages=dict(messages or {}),
        )
        self._entities: Tuple[Entity, ...] = ()
        self._active_query = ""
        self._inflight: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._listeners: List[StateListener] = []
        self._selection_listeners: List[SelectionListener] = []
        self._closed = False

    @classmethod
    def from_settings(
        cls,
        client: ApiClient,
        endpoint: SearchEndpoint = CUSTOMER_SEARCH,
        settings: Optional[Settings] = None,
        **kwargs
    ) -> "SearchController":
        """Controller for a REST endpoint, configured from the [search] settings section."""
        search = (settings or get_settings()).search
        return cls(
            EntitySearchBackend(client, endpoint),
            endpoint,
            min_query_length=search.min_query_length,
            debounce_ms=search.debounce_ms,
            page_size=search.page_size,
            cache=SearchCache(
                ttl_seconds=search.cache_ttl_seconds,
                max_entries=search.cache_max_entries,
            ),
            **kwargs
        )

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def cache(self) -> SearchCache:
        return self._cache

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def has_inflight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    @property
    def no_options_reason(self) -> NoOptionsReason:
        return self._state.no_options_reason

    @property
    def no_options_text(self) -> str:
        """Message for an empty dropdown in the current state."""
        return self._state.no_options_text

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener. Returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_selection(self, listener: SelectionListener) -> Callable[[], None]:
        """Register a selection listener. Returns a function that unregisters it."""
        self._selection_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._selection_listeners:
                self._selection_listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Input side
    # ------------------------------------------------------------------

    def on_query_changed(self, raw_input: str) -> None:
        """
        Handle one input event.

        The visible query is updated immediately. A trimmed query below the
        threshold clears the suggestions and cancels all pending work;
        anything else (re)starts the debounce timer.
        """
        if self._closed:
            logger.warning("on_query_changed called on a closed search controller")
            return

        raw_input = raw_input or ""
        trimmed = raw_input.strip()

        if len(trimmed) < self.min_query_length:
            self._debouncer.cancel()
            self._cancel_inflight()
            self._entities = ()
            self._publish(
                query=raw_input,
                options=(),
                is_loading=False,
                has_more=False,
                page=0,
                status=ControllerStatus.IDLE,
            )
            return

        self._cancel_inflight()
        task = self._debouncer.schedule(lambda: self.search(trimmed, 0, False))
        self._track(task)
        self._publish(query=raw_input, is_loading=False, status=ControllerStatus.DEBOUNCING)

    def on_select(self, entity: Optional[Entity]) -> None:
        """
        Handle a pick from the dropdown (or a clear, with None).

        Shows the entity's label in the input, empties the suggestions and
        notifies selection listeners. Never starts a search.
        """
        if self._closed:
            logger.warning("on_select called on a closed search controller")
            return

        self._debouncer.cancel()
        self._cancel_inflight()
        self._entities = ()
        label = self.endpoint.to_option(entity).label if entity is not None else ""
        self._publish(
            query=label,
            options=(),
            is_loading=False,
            has_more=False,
            page=0,
            status=ControllerStatus.IDLE,
        )
        for listener in list(self._selection_listeners):
            try:
                listener(entity)
            except Exception:
                logger.error("Selection listener failed", exc_info=True)

    def dismiss(self) -> None:
        """Close the dropdown but keep the typed query (Enter in a grid search box)."""
        if self._closed:
            return
        self._debouncer.cancel()
        self._cancel_inflight()
        self._entities = ()
        self._publish(options=(), is_loading=False, has_more=False, page=0, status=ControllerStatus.IDLE)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(self, query: str, page: int = 0, append: bool = False) -> SearchResult:
        """
        Fetch one page of suggestions and publish it.

        Args:
            query: Search text; trimmed before use
            page: Zero-based page index
            append: Add to the current options ("load more") instead of replacing them

        Returns:
            The page with its source: network, cache, aborted, error or skipped.
            Failures never raise; an aborted call leaves state and cache untouched.
        """
        if self._closed:
            return SearchResult(source=ResultSource.SKIPPED)

        trimmed = (query or "").strip()
        if len(trimmed) < self.min_query_length:
            self._cancel_inflight()
            self._entities = ()
            self._publish(options=(), is_loading=False, has_more=False, page=0, status=ControllerStatus.IDLE)
            return SearchResult(source=ResultSource.SKIPPED)

        # Continuation pages always go to the network
        if not append:
            cached = self._cache.get(trimmed, page)
            if cached is not None:
                logger.debug(f"Cache hit | {self.endpoint.noun} query={trimmed!r} page={page}")
                # The in-flight request is left running: if it completes after this
                # hit it still replaces the visible list, so the list can show an
                # older query than the last one issued.
                self._apply(trimmed, page, cached, append=False)
                return cached.with_source(ResultSource.CACHE)

        self._cancel_inflight()
        request = SearchRequest(query=trimmed, page=page, page_size=self.page_size)
        task = asyncio.get_running_loop().create_task(self.backend.fetch(request))
        self._inflight = task
        self._publish(is_loading=True, status=ControllerStatus.SEARCHING)

        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            # The caller went away (teardown); take the request down with it.
            if self._inflight is task:
                self._inflight = None
            task.cancel()
            raise

        superseded = self._inflight is not task
        if not superseded:
            self._inflight = None

        if task.cancelled() or superseded:
            if not task.cancelled():
                # Retrieve the outcome so a late failure is not reported as unhandled
                task.exception()
            logger.debug(f"Search aborted | {self.endpoint.noun} query={trimmed!r} page={page}")
            return SearchResult(source=ResultSource.ABORTED)

        error = task.exception()
        if error is not None:
            logger.error(
                f"Error searching {self.endpoint.noun} | query={trimmed!r} page={page} | error={error!r}"
            )
            self._entities = ()
            self._publish(options=(), is_loading=False, has_more=False, status=ControllerStatus.ERROR)
            return SearchResult(source=ResultSource.ERROR)

        entities, has_more = task.result()
        result = SearchResult(results=tuple(entities), has_more=has_more, source=ResultSource.NETWORK)
        self._cache.set(trimmed, page, result)
        self._apply(trimmed, page, result, append=append)
        logger.debug(
            f"Search resolved | {self.endpoint.noun} query={trimmed!r} page={page} "
            f"results={len(result.results)} has_more={has_more}"
        )
        return result

    async def load_more(self) -> SearchResult:
        """Fetch the next page of the last resolved query, appending it."""
        state = self._state
        if self._closed or not state.has_more or state.is_loading or not self._active_query:
            return SearchResult(results=self._entities, has_more=state.has_more, source=ResultSource.SKIPPED)
        return await self.search(self._active_query, state.page + 1, append=True)

    async def settle(self) -> SearchState:
        """Wait until scheduled (debounced) searches have run, then return the state."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        return self._state

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Cancel the debounce timer and the in-flight request; drop listeners."""
        if self._closed:
            return
        self._closed = True
        self._debouncer.cancel()
        self._cancel_inflight()
        for task in list(self._tasks):
            task.cancel()
        self._listeners.clear()
        self._selection_listeners.clear()
        logger.debug(f"Search controller closed | {self.endpoint.noun}")

    async def aclose(self) -> None:
        """close(), then wait until the cancelled work has actually finished."""
        pending = set(self._tasks)
        if self._inflight is not None:
            pending.add(self._inflight)
        self.close()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def __aenter__(self) -> "SearchController":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _cancel_inflight(self) -> None:
        # Empty the slot first so the old request sees itself as superseded
        task, self._inflight = self._inflight, None
        if task is not None and not task.done():
            task.cancel()

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _apply(self, query: str, page: int, result: SearchResult, append: bool) -> None:
        entities = self._entities + result.results if append else result.results
        self._entities = entities
        self._active_query = query
        self._publish(
            options=tuple(self.endpoint.to_option(entity) for entity in entities),
            is_loading=False,
            has_more=result.has_more,
            page=page,
            status=ControllerStatus.RESOLVED,
        )

    def _publish(self, **changes) -> None:
        self._state = self._state.evolve(**changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.error("State listener failed", exc_info=True)

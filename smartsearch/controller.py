"""Search/filter/sort/pagination/selection state for a listing view.

``SearchStateController`` owns the item collection (or a remote loader), the
active query, filters, sort order, selection, and pagination cursor, and
notifies subscribers whenever the visible state changes.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable, Coroutine, Hashable, Iterable, Mapping, Sequence
from functools import cmp_to_key
from types import MappingProxyType
from typing import Any, Generic, TypeVar

from .cache import CacheKey, ResultCache
from .config import SearchConfiguration, SearchTriggerMode, validate_fuzzy_threshold
from .debounce import Debouncer
from .search.fuzzy import contains_query, fuzzy_rank
from .search.highlight import split_search_terms
from .signal import Signal
from .state import ViewState, resolve_view_state

_logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Hashable)
R = TypeVar("R")

AsyncLoader = Callable[[str, int, int], Awaitable[Sequence[T]]]
Comparator = Callable[[T, T], int]
Predicate = Callable[[T], bool]
FieldExtractor = Callable[[T], Iterable[str]]

_FAILED_SEARCH = "search"
_FAILED_LOAD_MORE = "load_more"


def _unless_disposed(method: Callable[..., R]) -> Callable[..., R | None]:
    """Turn a public entry point into an inert no-op after ``dispose()``."""

    @functools.wraps(method)
    def wrapper(self: SearchStateController, *args: Any, **kwargs: Any) -> R | None:
        if self._disposed:
            return None
        return method(self, *args, **kwargs)

    return wrapper


def _requires_loop_for_loader(method: Callable[..., R]) -> Callable[..., R]:
    """Reject loader-backed calls up front when no event loop can run the fetch."""

    @functools.wraps(method)
    def wrapper(self: SearchStateController, *args: Any, **kwargs: Any) -> R:
        if self._async_loader is not None and self._resolve_loop() is None:
            raise RuntimeError(
                f"{method.__name__}() with an async loader needs a running event loop or an explicit loop="
            )
        return method(self, *args, **kwargs)

    return wrapper


class SearchStateController(Generic[T]):
    """Coordinates a live, filtered, sorted, paginated, multi-select view.

    Without an async loader every query is answered synchronously from the
    local collection: filters are ANDed, the query is matched (substring or
    fuzzy-ranked) against ``searchable_fields(item)``, and the comparator is
    applied last. With a loader, queries dispatch an asyncio task per request.
    Each dispatch takes a fresh request token and only the newest token may
    touch visible state, so late completions of superseded requests are
    dropped. Remote pages are cached by query, page, filter keys, and filter
    generation.

    Methods that may start a fetch return the ``asyncio.Task`` they scheduled
    (or ``None``) so embedders can await completion. Loader failures never
    escape: they are stored in ``error`` and can be retried. With a loader
    set, those methods need a running event loop (or ``loop=``); without one
    they raise ``RuntimeError`` before changing any state.
    """

    def __init__(
        self,
        searchable_fields: FieldExtractor[T] | None = None,
        configuration: SearchConfiguration | None = None,
        async_loader: AsyncLoader[T] | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._config = configuration if configuration is not None else SearchConfiguration()
        self._searchable_fields = searchable_fields
        self._async_loader = async_loader
        self._loop = loop

        self._all_items: list[T] = []
        self._visible: list[T] = []
        self._search_query = ""
        self._has_searched = False
        self._is_loading = False
        self._is_loading_more = False
        self._error: BaseException | None = None
        self._failed_operation: str | None = None
        self._disposed = False

        self._debouncer = Debouncer(self._config.debounce_seconds, loop=loop)
        self._request_token = 0
        self._tasks: set[asyncio.Task[None]] = set()

        self._current_page = 0
        self._has_more_pages = True

        self._cache: ResultCache[T] = ResultCache(self._config.max_cache_size if self._config.cache_results else 0)

        self._filters: dict[str, Predicate[T]] = {}
        self._filter_generation = 0
        self._comparator: Comparator[T] | None = None

        self._selected: set[T] = set()

        self._warned_missing_fields = False
        self.changed = Signal()

    # observable state
    @property
    def configuration(self) -> SearchConfiguration:
        return self._config

    @property
    def items(self) -> tuple[T, ...]:
        return tuple(self._visible)

    @property
    def all_items(self) -> tuple[T, ...]:
        return tuple(self._all_items)

    @property
    def search_query(self) -> str:
        return self._search_query

    @property
    def has_searched(self) -> bool:
        return self._has_searched

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_loading_more(self) -> bool:
        return self._is_loading_more

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def has_more_pages(self) -> bool:
        return self._has_more_pages

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def active_filters(self) -> Mapping[str, Predicate[T]]:
        return MappingProxyType(dict(self._filters))

    @property
    def filter_generation(self) -> int:
        return self._filter_generation

    @property
    def current_comparator(self) -> Comparator[T] | None:
        return self._comparator

    @property
    def selected_items(self) -> frozenset[T]:
        return frozenset(self._selected)

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def has_async_loader(self) -> bool:
        return self._async_loader is not None

    @property
    def view_state(self) -> ViewState:
        return resolve_view_state(
            self._visible,
            is_loading=self._is_loading,
            error=self._error,
            has_searched=self._has_searched,
            search_query=self._search_query,
        )

    def matched_terms(self) -> list[str]:
        """Search terms renderers should highlight for the current query."""
        return split_search_terms(self._search_query)

    def build_items(self, item_builder: Callable[[T, int, list[str]], R]) -> list[R]:
        """Call ``item_builder(item, index, matched_terms)`` for every visible item."""
        terms = self.matched_terms()
        return [item_builder(item, index, list(terms)) for index, item in enumerate(self._visible)]

    def is_selected(self, item: T) -> bool:
        return item in self._selected

    # subscription
    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register ``listener`` and return a callable that unsubscribes it."""
        if self._disposed:
            return lambda: None
        self.changed.connect(listener)
        return functools.partial(self.changed.disconnect, listener)

    def unsubscribe(self, listener: Callable[[], None]) -> None:
        self.changed.disconnect(listener)

    def _notify(self) -> None:
        if not self._disposed:
            self.changed.emit()

    # data source
    @_unless_disposed
    def set_items(self, items: Iterable[T]) -> None:
        self._all_items = list(items)
        self._apply_local()
        self._notify()

    @_unless_disposed
    def set_async_loader(self, loader: AsyncLoader[T] | None) -> None:
        """Route future searches through ``loader``; does not search by itself."""
        self._async_loader = loader

    # search
    @_unless_disposed
    @_requires_loop_for_loader
    def search(self, query: str) -> None:
        """Search for ``query`` once the debounce window passes without another call."""
        self._debouncer.call(self._perform_search, query)

    @_unless_disposed
    @_requires_loop_for_loader
    def search_immediate(self, query: str) -> asyncio.Task[None] | None:
        self._debouncer.cancel()
        return self._perform_search(query)

    @_unless_disposed
    @_requires_loop_for_loader
    def on_query_changed(self, text: str) -> None:
        """Feed typed text; searches only in ``ON_EDIT`` trigger mode."""
        if self._config.trigger_mode is SearchTriggerMode.ON_EDIT:
            self.search(text)

    @_unless_disposed
    @_requires_loop_for_loader
    def submit_query(self, text: str) -> asyncio.Task[None] | None:
        return self.search_immediate(text)

    @_unless_disposed
    @_requires_loop_for_loader
    def clear_search(self) -> asyncio.Task[None] | None:
        return self.search_immediate("")

    @_unless_disposed
    @_requires_loop_for_loader
    def refresh(self) -> asyncio.Task[None] | None:
        """Drop cached pages and reload the current query from page zero."""
        self._cache.clear()
        self._current_page = 0
        self._has_more_pages = True
        return self._perform_search(self._search_query)

    @_unless_disposed
    @_requires_loop_for_loader
    def retry(self) -> asyncio.Task[None] | None:
        """Clear the error and repeat whatever failed.

        A failed ``load_more`` is retried as another page fetch so the pages
        already shown are kept; anything else re-runs the current search.
        """
        failed = self._failed_operation
        self._error = None
        self._failed_operation = None
        if failed == _FAILED_LOAD_MORE and self._async_loader is not None:
            self._notify()
            return self.load_more()
        return self._perform_search(self._search_query)

    def _perform_search(self, query: str) -> asyncio.Task[None] | None:
        if self._disposed:
            return None
        if query and len(query) < self._config.min_search_length:
            return None

        self._search_query = query
        self._has_searched = True
        self._current_page = 0
        self._has_more_pages = True
        self._is_loading_more = False
        self._error = None
        self._failed_operation = None

        if self._async_loader is not None:
            return self._dispatch_fetch(self._async_loader)
        self._apply_local()
        self._notify()
        return None

    # remote mode
    def _cache_key(self, page: int) -> CacheKey:
        return CacheKey.build(self._search_query, page, self._filters, self._filter_generation)

    def _next_token(self) -> int:
        self._request_token += 1
        return self._request_token

    def _is_current(self, token: int) -> bool:
        return not self._disposed and token == self._request_token

    def _resolve_loop(self) -> asyncio.AbstractEventLoop | None:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        loop = self._resolve_loop()
        if loop is None:
            coro.close()
            raise RuntimeError("no event loop to run the search loader on")
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _dispatch_fetch(self, loader: AsyncLoader[T]) -> asyncio.Task[None] | None:
        token = self._next_token()
        key = self._cache_key(0)

        if self._config.cache_results:
            cached = self._cache.get(key)
            if cached is not None:
                _logger.debug("Cache hit for %r", key)
                self._visible = cached
                self._has_more_pages = len(cached) == self._config.page_size
                self._is_loading = False
                self._notify()
                return None

        self._is_loading = True
        self._notify()
        return self._spawn(self._fetch_first_page(token, key, loader))

    async def _fetch_first_page(self, token: int, key: CacheKey, loader: AsyncLoader[T]) -> None:
        page_size = self._config.page_size
        try:
            results = list(await loader(key.query, key.page, page_size))
        except Exception as exc:
            if self._is_current(token):
                _logger.warning("Search loader failed for query %r: %s", key.query, exc)
                self._error = exc
                self._failed_operation = _FAILED_SEARCH
            else:
                _logger.debug("Ignoring failure of superseded request %d", token)
        else:
            if self._is_current(token):
                self._visible = results
                self._has_more_pages = len(results) == page_size
                if self._config.cache_results:
                    self._cache.put(key, results)
            else:
                _logger.debug("Discarding results of superseded request %d", token)
        finally:
            if self._is_current(token):
                self._is_loading = False
                self._notify()

    @_unless_disposed
    @_requires_loop_for_loader
    def load_more(self) -> asyncio.Task[None] | None:
        """Fetch and append the next page.

        No-op without a loader, while another page is loading, or once the
        last page came back short. Unlike a plain page guard, it is also a
        no-op while the first page of a search is still loading.
        """
        loader = self._async_loader
        if loader is None or self._is_loading_more or self._is_loading or not self._has_more_pages:
            return None

        token = self._next_token()
        key = self._cache_key(self._current_page + 1)

        if self._config.cache_results:
            cached = self._cache.get(key)
            if cached is not None:
                _logger.debug("Cache hit for %r", key)
                self._append_page(key, cached)
                self._notify()
                return None

        self._is_loading_more = True
        self._notify()
        return self._spawn(self._fetch_next_page(token, key, loader))

    async def _fetch_next_page(self, token: int, key: CacheKey, loader: AsyncLoader[T]) -> None:
        try:
            results = list(await loader(key.query, key.page, self._config.page_size))
        except Exception as exc:
            if self._is_current(token):
                _logger.warning("Loading page %d failed for query %r: %s", key.page, key.query, exc)
                self._error = exc
                self._failed_operation = _FAILED_LOAD_MORE
        else:
            if self._is_current(token):
                self._append_page(key, results)
                if self._config.cache_results:
                    self._cache.put(key, results)
            else:
                _logger.debug("Discarding page %d of superseded request %d", key.page, token)
        finally:
            if self._is_current(token):
                self._is_loading_more = False
                self._notify()

    def _append_page(self, key: CacheKey, results: list[T]) -> None:
        if not results:
            self._has_more_pages = False
            return
        self._current_page = key.page
        self._visible.extend(results)
        self._has_more_pages = len(results) == self._config.page_size

    # local mode
    def _apply_local(self) -> None:
        items = list(self._all_items)
        for predicate in self._filters.values():
            items = [item for item in items if predicate(item)]

        query = self._search_query
        if query:
            fields = self._searchable_fields
            if fields is None:
                if not self._warned_missing_fields:
                    _logger.warning("No searchable_fields configured; query %r does not filter local items", query)
                    self._warned_missing_fields = True
            elif self._config.fuzzy_search_enabled:
                ranked = fuzzy_rank(
                    query,
                    items,
                    fields,
                    threshold=self._config.fuzzy_threshold,
                    case_sensitive=self._config.case_sensitive,
                )
                items = [item for _, item, _ in ranked]
            else:
                case_sensitive = self._config.case_sensitive
                items = [item for item in items if contains_query(query, fields(item), case_sensitive)]

        # An explicit sort order overrides fuzzy relevance.
        if self._comparator is not None:
            items.sort(key=cmp_to_key(self._comparator))
        self._visible = items

    # filters and sorting
    @_unless_disposed
    @_requires_loop_for_loader
    def set_filter(self, key: str, predicate: Predicate[T]) -> asyncio.Task[None] | None:
        """Add or replace the filter named ``key`` and re-run the search now.

        With an async loader the predicate is not applied to loaded pages; the
        loader owns remote filtering. The change still partitions the cache.
        """
        self._filters[key] = predicate
        self._filter_generation += 1
        return self._perform_search(self._search_query)

    @_unless_disposed
    @_requires_loop_for_loader
    def remove_filter(self, key: str) -> asyncio.Task[None] | None:
        self._filters.pop(key, None)
        self._filter_generation += 1
        return self._perform_search(self._search_query)

    @_unless_disposed
    @_requires_loop_for_loader
    def clear_filters(self) -> asyncio.Task[None] | None:
        self._filters.clear()
        self._filter_generation += 1
        return self._perform_search(self._search_query)

    @_unless_disposed
    @_requires_loop_for_loader
    def set_sort_by(self, comparator: Comparator[T] | None) -> asyncio.Task[None] | None:
        self._comparator = comparator
        self._cache.clear()
        return self._perform_search(self._search_query)

    # runtime reconfiguration
    def _reconfigure(self, **changes: Any) -> asyncio.Task[None] | None:
        self._config = self._config.with_changes(**changes)
        self._cache.clear()
        if self._search_query:
            return self._perform_search(self._search_query)
        if self._async_loader is None and self._all_items:
            self._apply_local()
            self._notify()
        return None

    @_unless_disposed
    @_requires_loop_for_loader
    def update_case_sensitive(self, value: bool) -> asyncio.Task[None] | None:
        if self._config.case_sensitive == value:
            return None
        return self._reconfigure(case_sensitive=value)

    @_unless_disposed
    @_requires_loop_for_loader
    def update_min_search_length(self, value: int) -> asyncio.Task[None] | None:
        if self._config.min_search_length == value:
            return None
        return self._reconfigure(min_search_length=value)

    @_unless_disposed
    @_requires_loop_for_loader
    def update_fuzzy_search_enabled(self, value: bool) -> asyncio.Task[None] | None:
        if self._config.fuzzy_search_enabled == value:
            return None
        return self._reconfigure(fuzzy_search_enabled=value)

    @_unless_disposed
    @_requires_loop_for_loader
    def update_fuzzy_threshold(self, value: float) -> asyncio.Task[None] | None:
        validate_fuzzy_threshold(value)
        if self._config.fuzzy_threshold == value:
            return None
        return self._reconfigure(fuzzy_threshold=value)

    # selection
    @_unless_disposed
    def select(self, item: T) -> None:
        self._selected.add(item)
        self._notify()

    @_unless_disposed
    def deselect(self, item: T) -> None:
        self._selected.discard(item)
        self._notify()

    @_unless_disposed
    def toggle_selection(self, item: T) -> None:
        if item in self._selected:
            self._selected.remove(item)
        else:
            self._selected.add(item)
        self._notify()

    @_unless_disposed
    def select_all(self) -> None:
        """Select every currently visible item; hidden selections are kept."""
        self._selected.update(self._visible)
        self._notify()

    @_unless_disposed
    def deselect_all(self) -> None:
        self._selected.clear()
        self._notify()

    @_unless_disposed
    def select_where(self, predicate: Predicate[T]) -> None:
        self._selected.update(item for item in self._visible if predicate(item))
        self._notify()

    @_unless_disposed
    def deselect_where(self, predicate: Predicate[T]) -> None:
        for item in self._visible:
            if predicate(item):
                self._selected.discard(item)
        self._notify()

    # lifecycle
    @_unless_disposed
    def dispose(self) -> None:
        """Tear down once: cancel the debounce, invalidate in-flight requests.

        In-flight loader calls are not aborted; their completions see a stale
        token and change nothing.
        """
        self._disposed = True
        self._debouncer.cancel()
        self._request_token += 1
        self._selected.clear()
        self._cache.clear()
        self.changed.clear()

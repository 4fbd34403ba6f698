"""
Harvest session: the explicit context tying a navigation to its filter,
its harvest run and its published view.

Hosts drive a session through command methods and receive every rebuilt
View through ``on_view_changed``. The session never renders anything.
"""

import threading
from dataclasses import replace
from typing import Callable, Optional

from topic_harvest.config import get_config
from topic_harvest.core.continuation import ContinuationHandoff, ContinuationStore
from topic_harvest.core.extractor import ItemExtractor
from topic_harvest.core.fetcher import Document, DocumentSource, create_document_source
from topic_harvest.core.filter_engine import parse_keywords
from topic_harvest.core.harvester import Harvester, HarvestRun
from topic_harvest.core.locator import (
    NavigationContext,
    PageLocationError,
    PageLocator,
    build_page_address,
)
from topic_harvest.core.pagination import View, build_view, clamp_page
from topic_harvest.core.store import ItemStore
from topic_harvest.core.traversal import build_traversal_order
from topic_harvest.logger import get_logger
from topic_harvest.models.filter import FilterRequest
from topic_harvest.models.item import Item, PageInfo

logger = get_logger(__name__)

ViewCallback = Callable[[View], None]
NavigateCallback = Callable[[str], None]
ItemsCallback = Callable[[list[Item]], None]

LOCATION_ERROR_MESSAGE = "Could not determine the pages of this collection."


def needs_harvest(request: Optional[FilterRequest]) -> bool:
    """Whether a request should start (or attach to) a harvest.

    A request with an author always harvests; pending keyword input only
    suspends keyword evaluation. A keyword-only request harvests once its
    keywords are applied.
    """
    if request is None:
        return False
    return bool(request.author_key) or request.keywords_active


class HarvestSession:
    """Filter session for one navigation context.

    In ``corpus`` mode the whole collection is harvested once and every
    author or keyword change re-filters the cached corpus. In ``author``
    mode each request harvests only its author's items, and a superseded
    run is cancelled.
    """

    def __init__(
        self,
        context: NavigationContext,
        extractor: ItemExtractor,
        source: Optional[DocumentSource] = None,
        source_factory: Optional[Callable[[PageInfo], DocumentSource]] = None,
        locator: Optional[PageLocator] = None,
        continuation_store: Optional[ContinuationStore] = None,
        on_view_changed: Optional[ViewCallback] = None,
        on_navigate: Optional[NavigateCallback] = None,
        on_items_appended: Optional[ItemsCallback] = None,
        mode: Optional[str] = None,
        per_page: Optional[int] = None,
        max_workers: Optional[int] = None,
        yield_seconds: Optional[float] = None,
    ) -> None:
        """Initialize the session.

        Args:
            context: Where the reader currently is
            extractor: Turns page documents into items
            source: Page source; built from ``source_factory`` when omitted
            source_factory: Builds a source once the location is resolved
            locator: Page locator (a fresh one if omitted)
            continuation_store: Storage for redirect handoff; None disables it
            on_view_changed: Called with every rebuilt View
            on_navigate: Called with the page 1 address when redirecting
            on_items_appended: Called with items newly added to the store
            mode: ``corpus`` or ``author`` (default from config)
            per_page: Items per view page (default from config)
            max_workers: Harvest pool size (default from config)
            yield_seconds: Pause between pages (default from config)
        """
        config = get_config()

        self.context = context
        self.extractor = extractor
        self.locator = locator or PageLocator()
        self.mode = mode or config.harvester.mode
        self.per_page = per_page or config.view.per_page
        self.window_radius = config.view.window_radius
        self.max_workers = max_workers
        self.yield_seconds = yield_seconds

        self.on_view_changed = on_view_changed
        self.on_navigate = on_navigate
        self.on_items_appended = on_items_appended

        self.handoff: Optional[ContinuationHandoff] = None
        if continuation_store is not None and config.continuation.enabled:
            self.handoff = ContinuationHandoff(continuation_store)

        self._source = source
        self._source_factory = source_factory or create_document_source
        self._owned_source: Optional[DocumentSource] = None
        self._harvester: Optional[Harvester] = None
        self._pending_runs: dict[str, HarvestRun] = {}

        self._lock = threading.RLock()
        self._closed = False
        self._error: Optional[str] = None
        self._run: Optional[HarvestRun] = None
        self._corpus = ItemStore()

        self.request: Optional[FilterRequest] = None
        self.current_page = 1
        self.view: Optional[View] = None

    # ------------------------------------------------------------------
    # Command methods
    # ------------------------------------------------------------------

    def select_author(self, author_key: str, author_name: Optional[str] = None) -> Optional[str]:
        """Filter by an author, or drop the author filter if already active.

        Args:
            author_key: Author to keep
            author_name: Display name for messages

        Returns:
            Redirect address if the filter was handed off, else None
        """
        with self._lock:
            base = self.request or FilterRequest()
            if base.author_key == author_key:
                request = base.model_copy(update={"author_key": None, "author_name": None})
            else:
                request = base.model_copy(
                    update={"author_key": author_key, "author_name": author_name or author_key}
                )
            self.current_page = 1

        if request.is_empty:
            self.clear_filter()
            return None
        return self.request_filter(request)

    def set_keyword_input(self, text: str) -> Optional[View]:
        """Record typed keyword input without applying it.

        The request is marked as awaiting apply whenever the typed text
        parses to a different keyword set than the applied one.
        """
        with self._lock:
            base = self.request or FilterRequest()
            pending = parse_keywords(text) != base.keywords
            request = base.model_copy(update={"raw_keyword_input": text, "awaiting_apply": pending})

        if request.is_empty:
            self.clear_filter()
            return self.view
        self.request_filter(request)
        return self.view

    def apply_keywords(self, text: Optional[str] = None) -> Optional[str]:
        """Apply keyword input.

        Args:
            text: Keyword text; defaults to the last typed input

        Returns:
            Redirect address if the filter was handed off, else None
        """
        with self._lock:
            base = self.request or FilterRequest()
            raw = base.raw_keyword_input if text is None else text
            request = base.model_copy(
                update={
                    "keywords": parse_keywords(raw),
                    "raw_keyword_input": raw,
                    "awaiting_apply": False,
                }
            )
            self.current_page = 1

        if request.is_empty:
            self.clear_filter()
            return None
        return self.request_filter(request)

    def goto_page(self, page_number: int) -> Optional[View]:
        """Move the view to another page, clamped into range."""
        with self._lock:
            if self.request is None or self.view is None:
                return self.view
            page_number = clamp_page(page_number, self.view.total_pages)
            if page_number == self.current_page:
                return self.view
            self.current_page = page_number
            return self._publish()

    def clear_filter(self) -> Optional[View]:
        """Drop the active filter.

        In corpus mode the corpus harvest keeps running so a later filter can
        reuse it.
        """
        with self._lock:
            self.request = None
            self.current_page = 1
            self._error = None
            if self.mode == "author":
                self._cancel_run()
            return self._publish()

    def request_filter(self, request: FilterRequest) -> Optional[str]:
        """Make ``request`` the active filter.

        When the reader is not on page 1 and a continuation store is
        configured, the request is stashed and the page 1 address is
        returned instead of harvesting here.

        Args:
            request: New filter intent

        Returns:
            Redirect address if the filter was handed off, else None
        """
        address = None
        with self._lock:
            if self._closed:
                logger.debug("Ignoring filter request on a closed session")
                return None

            page_info = self._resolve()
            if page_info is None:
                self.request = request
                self._publish()
                return None

            if (
                self.handoff is not None
                and page_info.current_page != 1
                and needs_harvest(request)
                and not self._has_usable_run(request)
            ):
                self.handoff.stash(request, scope=page_info.base_address)
                self.request = request
                address = build_page_address(1, page_info)
            else:
                self._activate(request, page_info)

        if address is not None:
            logger.info(f"Redirecting to {address} before harvesting")
            if self.on_navigate is not None:
                self.on_navigate(address)
        return address

    def restore_pending_filter(self) -> Optional[FilterRequest]:
        """Re-enter a filter handed off by a previous navigation.

        Returns:
            The restored request, or None if nothing was pending
        """
        if self.handoff is None:
            return None

        page_info = self._resolve()
        if page_info is None:
            return None

        request = self.handoff.restore(page_info)
        if request is not None:
            self.request_filter(request)
        return request

    def harvest_corpus(self) -> Optional[HarvestRun]:
        """Start harvesting the whole collection ahead of any filter."""
        with self._lock:
            if self._closed or self.mode != "corpus":
                return None
            page_info = self._resolve()
            if page_info is None:
                return None
            if self._run is None:
                self._start_run(page_info, scope=None)
            return self._run

    def refresh(self) -> View:
        """Rebuild and publish the view from current state."""
        with self._lock:
            return self._publish()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the current harvest run to finish.

        Returns:
            True if there is no run or it finished within the timeout
        """
        run = self._run
        if run is None:
            return True
        return run.wait(timeout)

    def close(self) -> None:
        """Cancel any running harvest; later commands are ignored.

        The last view is kept, marked as cancelled. A page source built by
        this session is closed once no run is still using it.
        """
        with self._lock:
            self._closed = True
            self._cancel_run()
            if self.view is not None and not self.view.cancelled:
                self.view = replace(self.view, cancelled=True, loading=False)
            if not self._pending_runs:
                self._release_source()

    @property
    def run(self) -> Optional[HarvestRun]:
        return self._run

    @property
    def corpus(self) -> ItemStore:
        return self._corpus

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve(self) -> Optional[PageInfo]:
        try:
            page_info = self.locator.resolve(self.context)
        except PageLocationError as e:
            logger.error(f"Cannot harvest: {e}")
            self._error = LOCATION_ERROR_MESSAGE
            return None
        self._error = None
        return page_info

    def _has_usable_run(self, request: FilterRequest) -> bool:
        """Whether an existing run can serve ``request`` without a new harvest."""
        run = self._run
        if run is None or run.cancelled:
            return False
        if self.mode == "corpus":
            return True
        return run.scope == request.author_key

    def _activate(self, request: FilterRequest, page_info: PageInfo) -> None:
        self.request = request

        if needs_harvest(request) and not self._has_usable_run(request):
            scope = None if self.mode == "corpus" else request.author_key
            self._start_run(page_info, scope=scope)

        self._publish()

    def _start_run(self, page_info: PageInfo, scope: Optional[str]) -> HarvestRun:
        self._cancel_run()

        if self._harvester is None:
            source = self._source
            if source is None:
                source = self._owned_source = self._source_factory(page_info)
            self._harvester = Harvester(
                source,
                self.extractor,
                max_workers=self.max_workers,
                yield_seconds=self.yield_seconds,
            )

        store = self._corpus if self.mode == "corpus" else ItemStore()
        plan = build_traversal_order(page_info.current_page, page_info.total_pages)
        run = self._harvester.create_run(plan, store=store, scope=scope)
        self._run = run
        self._pending_runs[run.run_id] = run

        current_document = None
        if self.context.content:
            current_document = Document(
                page_number=page_info.current_page,
                content=self.context.content,
                address=self.context.url,
            )

        self._harvester.start(
            run,
            page_info,
            current_document=current_document,
            author_key=scope,
            is_live=lambda: self._is_live(run),
            on_items_added=self._on_items_added,
            on_progress=self._on_run_update,
            on_complete=self._on_run_complete,
        )
        return run

    def _cancel_run(self) -> None:
        if self._run is not None and not self._run.cancelled:
            logger.debug(f"Cancelling harvest run {self._run.run_id}")
            self._run.cancel()
        if self.mode == "author" or self._closed:
            self._run = None

    def _is_live(self, run: HarvestRun) -> bool:
        if self._closed or run.cancelled or self._run is not run:
            return False
        if self.mode == "author":
            request = self.request
            return request is not None and request.author_key == run.scope
        return True

    def _on_items_added(self, run: HarvestRun, items: list[Item]) -> None:
        if self.on_items_appended is not None and self._is_live(run):
            self.on_items_appended(items)

    def _on_run_update(self, run: HarvestRun) -> None:
        with self._lock:
            if not self._is_live(run):
                return
            self._publish()

    def _on_run_complete(self, run: HarvestRun) -> None:
        with self._lock:
            self._pending_runs.pop(run.run_id, None)
            if self._is_live(run):
                self._publish()
            if self._closed and not self._pending_runs:
                self._release_source()

    def _release_source(self) -> None:
        source, self._owned_source = self._owned_source, None
        close = getattr(source, "close", None)
        if close is not None:
            close()
            logger.debug("Closed the page source of a closed session")

    def _publish(self) -> View:
        """Rebuild the view from current state and notify the host."""
        run = self._run
        request = self.request

        if request is not None and run is not None and needs_harvest(request):
            author_key = request.author_key if self.mode == "corpus" else None
            items = run.store.items(author_key=author_key)
            progress = run.progress
            loading = run.active
        else:
            items = []
            progress = run.progress if run is not None else None
            loading = run is not None and run.active

        view = build_view(
            request,
            items,
            per_page=self.per_page,
            current_page=self.current_page,
            progress=progress,
            loading=loading,
            error=self._error,
            window_radius=self.window_radius,
        )
        if self._closed:
            view = replace(view, cancelled=True, loading=False)
        self.current_page = view.current_page
        self.view = view

        if self.on_view_changed is not None and not view.cancelled:
            self.on_view_changed(view)
        return view

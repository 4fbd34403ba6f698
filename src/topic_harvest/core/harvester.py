"""
Bounded worker pool that harvests items from every page of a collection.

Workers share one page cursor and one item store. Claiming a page and
inserting items are each single locked steps, so no page is visited twice
and no item is stored twice.
"""

import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, Optional

from topic_harvest.config import get_config
from topic_harvest.core.extractor import ItemExtractor
from topic_harvest.core.fetcher import Document, DocumentSource, FetchFailure
from topic_harvest.core.pagination import Progress
from topic_harvest.core.store import ItemStore
from topic_harvest.logger import get_logger, get_run_logger
from topic_harvest.models.item import Item, PageInfo

logger = get_logger(__name__)

ItemsAddedCallback = Callable[["HarvestRun", list[Item]], None]
RunCallback = Callable[["HarvestRun"], None]


@dataclass
class HarvestRun:
    """State of one execution of the worker pool.

    A run is owned by one harvester invocation. Once cancelled it must not
    publish anything; fetches already in flight finish but their results are
    discarded.
    """

    plan: list[int]
    store: ItemStore = field(default_factory=ItemStore)
    scope: Optional[str] = None
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    next_cursor: int = 0
    processed_count: int = 0
    active: bool = False
    cancelled: bool = False
    failed_pages: list[int] = field(default_factory=list)
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _done: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def total_count(self) -> int:
        return len(self.plan)

    @property
    def items(self) -> list[Item]:
        return self.store.items()

    @property
    def seen_ids(self) -> frozenset[str]:
        return self.store.seen_ids

    @property
    def finished(self) -> bool:
        """True once every worker has exited."""
        return self._done.is_set()

    @property
    def progress(self) -> Progress:
        with self._lock:
            processed = self.processed_count
        return Progress(processed=processed, total=self.total_count, items_found=len(self.store))

    def claim_next_page(self) -> Optional[int]:
        """Claim the next unvisited page.

        Returns:
            Page number, or None when the plan is exhausted
        """
        with self._lock:
            if self.next_cursor >= len(self.plan):
                return None
            page_number = self.plan[self.next_cursor]
            self.next_cursor += 1
            return page_number

    def mark_processed(self, page_number: int, failed: bool = False) -> None:
        """Count one page as processed."""
        with self._lock:
            self.processed_count += 1
            if failed:
                self.failed_pages.append(page_number)

    def cancel(self) -> None:
        """Mark the run as superseded."""
        self.cancelled = True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the run has finished.

        Args:
            timeout: Seconds to wait, or None to wait forever

        Returns:
            True if the run finished within the timeout
        """
        return self._done.wait(timeout)

    def __repr__(self) -> str:
        return (
            f"<HarvestRun(id={self.run_id}, scope={self.scope}, "
            f"processed={self.processed_count}/{self.total_count}, "
            f"active={self.active}, cancelled={self.cancelled})>"
        )


class Harvester:
    """Runs a bounded pool of workers over a traversal plan."""

    def __init__(
        self,
        source: DocumentSource,
        extractor: ItemExtractor,
        max_workers: Optional[int] = None,
        yield_seconds: Optional[float] = None,
    ) -> None:
        """Initialize harvester.

        Args:
            source: Provides raw page documents
            extractor: Turns documents into items
            max_workers: Maximum concurrent workers (default from config)
            yield_seconds: Pause after each page (default from config)
        """
        config = get_config()

        self.source = source
        self.extractor = extractor
        self.max_workers = max_workers or config.harvester.max_workers
        self.yield_seconds = (
            yield_seconds if yield_seconds is not None else config.harvester.yield_seconds
        )

    def create_run(
        self,
        plan: list[int],
        store: Optional[ItemStore] = None,
        scope: Optional[str] = None,
    ) -> HarvestRun:
        """Create a run over a traversal plan.

        Args:
            plan: Page numbers in visiting order
            store: Store to accumulate into (a fresh one if omitted)
            scope: Author key for a per-author run, None for the corpus

        Returns:
            New, not yet started HarvestRun
        """
        return HarvestRun(plan=list(plan), store=store if store is not None else ItemStore(), scope=scope)

    def run(
        self,
        run: HarvestRun,
        page_info: PageInfo,
        current_document: Optional[Document] = None,
        author_key: Optional[str] = None,
        is_live: Optional[Callable[[], bool]] = None,
        on_items_added: Optional[ItemsAddedCallback] = None,
        on_progress: Optional[RunCallback] = None,
        on_complete: Optional[RunCallback] = None,
    ) -> HarvestRun:
        """Harvest every page of the plan and block until all workers exit.

        Args:
            run: Run to execute
            page_info: Location of the collection
            current_document: The page the reader is on, read without fetching
            author_key: Keep only this author's items
            is_live: Extra liveness predicate checked before each page
            on_items_added: Called after a page added new items
            on_progress: Called after every processed page
            on_complete: Called once after all workers have exited

        Returns:
            The finished run
        """
        run_logger = get_run_logger(__name__, run.run_id)
        run.active = True
        run.started_at = time.time()

        worker_count = min(self.max_workers, len(run.plan))
        run_logger.info(
            f"Harvest run {run.run_id} started: {run.total_count} pages, "
            f"{worker_count} workers, scope={run.scope or 'corpus'}"
        )

        def should_stop() -> bool:
            return run.cancelled or (is_live is not None and not is_live())

        try:
            try:
                if worker_count > 0:
                    with ThreadPoolExecutor(
                        max_workers=worker_count, thread_name_prefix=f"harvest-{run.run_id}"
                    ) as executor:
                        futures = [
                            executor.submit(
                                self._worker,
                                run,
                                page_info,
                                current_document,
                                author_key,
                                should_stop,
                                on_items_added,
                                on_progress,
                            )
                            for _ in range(worker_count)
                        ]
                        wait(futures)
                        for future in futures:
                            error = future.exception()
                            if error is not None:
                                run_logger.opt(exception=error).error(
                                    f"Harvest worker crashed in run {run.run_id}"
                                )
            finally:
                run.active = False
                run.finished_at = time.time()

            elapsed = run.finished_at - run.started_at
            if run.cancelled:
                run_logger.debug(f"Harvest run {run.run_id} cancelled after {elapsed:.2f}s")
            else:
                run_logger.info(
                    f"Harvest run {run.run_id} finished in {elapsed:.2f}s: "
                    f"{run.processed_count}/{run.total_count} pages, {len(run.store)} items, "
                    f"{len(run.failed_pages)} failed pages"
                )

            self._notify(on_complete, run)
        finally:
            # Waiters wake only after the final publication
            run._done.set()
        return run

    def start(self, run: HarvestRun, page_info: PageInfo, **kwargs) -> HarvestRun:
        """Run the harvest on a background thread.

        Takes the same arguments as :meth:`run`. Use :meth:`HarvestRun.wait`
        to await completion.

        Returns:
            The run, already marked active
        """
        run.active = True
        thread = threading.Thread(
            target=self.run,
            args=(run, page_info),
            kwargs=kwargs,
            name=f"harvest-{run.run_id}",
            daemon=True,
        )
        thread.start()
        return run

    def _worker(
        self,
        run: HarvestRun,
        page_info: PageInfo,
        current_document: Optional[Document],
        author_key: Optional[str],
        should_stop: Callable[[], bool],
        on_items_added: Optional[ItemsAddedCallback],
        on_progress: Optional[RunCallback],
    ) -> None:
        while True:
            if should_stop():
                return

            page_number = run.claim_next_page()
            if page_number is None:
                return

            if current_document is not None and page_number == page_info.current_page:
                outcome = current_document
            else:
                outcome = self.source.fetch(page_number)

            if should_stop():
                # Superseded while fetching: discard the result
                return

            added: list[Item] = []
            if isinstance(outcome, FetchFailure):
                logger.warning(f"Skipping page {page_number}: {outcome.error}")
                run.mark_processed(page_number, failed=True)
            else:
                try:
                    items = self.extractor.extract(outcome, page_number)
                except Exception:
                    logger.exception(f"Extraction failed for page {page_number}")
                    run.mark_processed(page_number, failed=True)
                else:
                    if author_key is not None:
                        items = [item for item in items if item.author_key == author_key]
                    added = run.store.add(items)
                    run.mark_processed(page_number)

            if added and not should_stop():
                self._notify(on_items_added, run, added)
            self._notify(on_progress, run)

            time.sleep(self.yield_seconds)

    @staticmethod
    def _notify(callback: Optional[Callable[..., None]], run: HarvestRun, *args) -> None:
        """Invoke a host callback; a failing callback never stops the run."""
        if callback is None:
            return
        try:
            callback(run, *args)
        except Exception:
            logger.exception(f"Harvest callback failed in run {run.run_id}")

"""
Document sources for the pages of a collection.

A source never raises for ordinary network or availability problems; it
returns a FetchFailure instead. There is no retry: a failed page is skipped
for the rest of the run.
"""

import time
from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol, Union

import httpx

from topic_harvest.config import get_config
from topic_harvest.core.locator import build_page_address
from topic_harvest.logger import get_logger
from topic_harvest.models.item import PageInfo

logger = get_logger(__name__)


@dataclass
class Document:
    """Raw content of one page."""

    page_number: int
    content: str
    address: Optional[str] = None

    def __repr__(self) -> str:
        return f"<Document(page={self.page_number}, size={len(self.content)})>"


@dataclass
class FetchFailure:
    """A page that could not be obtained."""

    page_number: int
    error: str = "Unknown error"
    address: Optional[str] = None
    http_status: Optional[int] = None
    fetch_time_seconds: float = 0.0


FetchOutcome = Union[Document, FetchFailure]


@dataclass
class FetchStats:
    """Statistics for page fetching operations."""

    total_pages: int = 0
    successful_fetches: int = 0
    failed_fetches: int = 0
    total_bytes: int = 0
    total_time_seconds: float = 0.0
    errors_by_type: dict = field(default_factory=dict)

    def add_result(self, result: FetchOutcome, fetch_time_seconds: float = 0.0) -> None:
        """Add a fetch outcome to statistics.

        Args:
            result: Document or FetchFailure
            fetch_time_seconds: Time spent fetching
        """
        self.total_pages += 1
        self.total_time_seconds += fetch_time_seconds

        if isinstance(result, Document):
            self.successful_fetches += 1
            self.total_bytes += len(result.content)
        else:
            self.failed_fetches += 1
            error_type = result.error.split(":")[0] if result.error else "unknown"
            self.errors_by_type[error_type] = self.errors_by_type.get(error_type, 0) + 1

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        if self.total_pages == 0:
            return 0.0
        return self.successful_fetches / self.total_pages


class DocumentSource(Protocol):
    """Provides the raw content of a page by number."""

    def fetch(self, page_number: int) -> FetchOutcome:
        ...


class HttpDocumentSource:
    """Fetches collection pages over HTTP."""

    def __init__(
        self,
        page_info: PageInfo,
        timeout_seconds: Optional[int] = None,
        user_agent: Optional[str] = None,
        max_content_length: Optional[int] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        """Initialize the HTTP document source.

        Args:
            page_info: Location of the collection
            timeout_seconds: Request timeout in seconds
            user_agent: User-Agent header for HTTP requests
            max_content_length: Maximum accepted document size in bytes
            client: Preconfigured httpx client (mainly for tests)
        """
        config = get_config()

        self.page_info = page_info
        self.timeout_seconds = timeout_seconds or config.fetcher.timeout_seconds
        self.user_agent = user_agent or config.fetcher.user_agent
        self.max_content_length = max_content_length or config.fetcher.max_content_length

        self._client = client or httpx.Client(
            timeout=httpx.Timeout(self.timeout_seconds),
            follow_redirects=config.fetcher.follow_redirects,
            max_redirects=config.fetcher.max_redirects,
            headers={"User-Agent": self.user_agent},
        )

        self.stats = FetchStats()

    def fetch(self, page_number: int) -> FetchOutcome:
        """Fetch one page of the collection.

        Args:
            page_number: 1-indexed page number

        Returns:
            Document on success, FetchFailure otherwise
        """
        start_time = time.time()
        address = build_page_address(page_number, self.page_info)
        logger.debug(f"Fetching page {page_number}: {address}")

        result: FetchOutcome
        try:
            response = self._client.get(address)
            response.raise_for_status()

            if len(response.content) > self.max_content_length:
                result = FetchFailure(
                    page_number=page_number,
                    error=f"Too large: {len(response.content)} bytes",
                    address=address,
                    http_status=response.status_code,
                )
            else:
                result = Document(page_number=page_number, content=response.text, address=address)

        except httpx.TimeoutException as e:
            result = FetchFailure(page_number, f"Timeout: {e}", address)

        except httpx.HTTPStatusError as e:
            result = FetchFailure(
                page_number,
                f"HTTP {e.response.status_code}: {e}",
                address,
                http_status=e.response.status_code,
            )

        except (httpx.HTTPError, httpx.InvalidURL) as e:
            result = FetchFailure(page_number, f"Request error: {e}", address)

        fetch_time = time.time() - start_time
        if isinstance(result, FetchFailure):
            result.fetch_time_seconds = fetch_time
            logger.warning(f"Failed to fetch page {page_number}: {result.error}")
        else:
            logger.debug(f"Fetched page {page_number} in {fetch_time:.2f}s")

        self.stats.add_result(result, fetch_time)
        return result

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> "HttpDocumentSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class StaticDocumentSource:
    """Serves pages from an in-memory mapping of page number to markup."""

    def __init__(self, pages: Mapping[int, str]) -> None:
        self.pages = dict(pages)
        self.stats = FetchStats()

    def fetch(self, page_number: int) -> FetchOutcome:
        content = self.pages.get(page_number)
        if content is None:
            result: FetchOutcome = FetchFailure(page_number, f"Missing: page {page_number}")
        else:
            result = Document(page_number=page_number, content=content)
        self.stats.add_result(result)
        return result


def create_document_source(page_info: PageInfo) -> HttpDocumentSource:
    """Create a configured HttpDocumentSource.

    Args:
        page_info: Location of the collection

    Returns:
        Configured HttpDocumentSource instance
    """
    return HttpDocumentSource(page_info)

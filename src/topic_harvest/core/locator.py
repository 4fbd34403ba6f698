"""
Page locator resolving where the reader is inside a paginated collection.
"""

import re
import threading
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, quote, urlparse

from bs4 import BeautifulSoup

from topic_harvest.config import LocatorConfig, get_config
from topic_harvest.logger import get_logger
from topic_harvest.models.item import PageInfo

logger = get_logger(__name__)

_PAGE_IN_PATH = re.compile(r"/page/(\d+)")


class PageLocationError(ValueError):
    """The collection location or page count could not be resolved."""


@dataclass(frozen=True)
class NavigationContext:
    """Ambient location state of the reader.

    Attributes:
        url: Address of the page the reader is on
        content: Raw markup of that page, when available
    """

    url: str
    content: Optional[str] = None

    @property
    def signature(self) -> str:
        """Key identifying one navigation; a new URL means a new location."""
        return self.url


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


class PageLocator:
    """Resolves PageInfo from a navigation context, cached per signature."""

    def __init__(self, config: Optional[LocatorConfig] = None) -> None:
        """Initialize page locator.

        Args:
            config: Locator configuration (defaults to global config)
        """
        self.config = config or get_config().locator
        self._base_pattern = re.compile(self.config.base_pattern)
        self._cache: dict[str, PageInfo] = {}
        self._lock = threading.Lock()

    def resolve(self, context: NavigationContext) -> PageInfo:
        """Resolve page location for a navigation context.

        Args:
            context: Current navigation context

        Returns:
            PageInfo for the context

        Raises:
            PageLocationError: If the URL cannot be interpreted
        """
        with self._lock:
            cached = self._cache.get(context.signature)
        if cached is not None:
            return cached

        page_info = self._resolve(context)
        with self._lock:
            self._cache[context.signature] = page_info

        logger.debug(
            f"Resolved {context.url}: page {page_info.current_page}/{page_info.total_pages}"
        )
        return page_info

    def invalidate(self) -> None:
        """Drop every cached location."""
        with self._lock:
            self._cache.clear()

    def _resolve(self, context: NavigationContext) -> PageInfo:
        parsed = urlparse(context.url)
        if not parsed.scheme or not parsed.netloc:
            raise PageLocationError(f"Cannot resolve collection location from {context.url!r}")

        total_pages, current_page = self._read_pagination(context.content)

        if current_page is None or current_page < 1:
            match = _PAGE_IN_PATH.search(parsed.path)
            current_page = int(match.group(1)) if match else 1

        total_pages = max(total_pages or 1, 1)
        if current_page > total_pages:
            # The marker may be missing on the last page; trust the URL
            total_pages = current_page

        base_match = self._base_pattern.match(parsed.path)
        base_path = base_match.group(1) if base_match else parsed.path
        base_address = f"{parsed.scheme}://{parsed.netloc}{base_path}".rstrip("/")

        variant_values = parse_qs(parsed.query).get(self.config.variant_param)
        variant = variant_values[0] if variant_values else None

        return PageInfo(
            base_address=base_address,
            total_pages=total_pages,
            current_page=current_page,
            variant=variant,
        )

    def _read_pagination(self, content: Optional[str]) -> tuple[Optional[int], Optional[int]]:
        """Read total and active page numbers from pagination markup."""
        if not content:
            return None, None

        soup = BeautifulSoup(content, "html.parser")
        pagination = soup.select_one(self.config.pagination_selector)
        if pagination is None:
            return None, None

        total = _parse_int(pagination.get("data-pages")) or _parse_int(
            pagination.get("data-ipspagination-pages")
        )
        active = pagination.select_one(self.config.active_page_selector)
        current = _parse_int(active.get("data-page")) if active is not None else None
        return total, current


def build_page_address(page_number: int, page_info: PageInfo) -> str:
    """Build the address of one page of the collection.

    Args:
        page_number: 1-indexed page number
        page_info: Location of the collection

    Returns:
        ``<base>/`` for page 1, ``<base>/page/<n>/`` otherwise, with the
        view variant appended as a query parameter
    """
    base = page_info.base_address.rstrip("/")
    if page_number <= 1:
        address = f"{base}/"
    else:
        address = f"{base}/page/{page_number}/"

    if page_info.variant:
        param = get_config().locator.variant_param
        address = f"{address.rstrip('/')}?{param}={quote(page_info.variant, safe='')}"
    return address

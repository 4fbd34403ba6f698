"""
Item extraction from page markup.

Turns one page into its content items, each with a stable identity, author
and display order key.
"""

import copy
import json
import re
from dataclasses import dataclass
from typing import Optional, Protocol

from bs4 import BeautifulSoup, Tag

from topic_harvest.config import ExtractorConfig, get_config
from topic_harvest.core.fetcher import Document
from topic_harvest.core.filter_engine import normalize_text
from topic_harvest.logger import get_logger
from topic_harvest.models.item import Item

logger = get_logger(__name__)

_PROFILE_ID = re.compile(r"profile/(\d+)")


@dataclass(frozen=True)
class Author:
    """Author identity found on an item."""

    key: str
    display_name: str
    user_id: Optional[str] = None


def compute_author_key(user_id: Optional[str], username: Optional[str]) -> Optional[str]:
    """Derive a stable author key.

    Args:
        user_id: Numeric user id, if known
        username: Display name, if known

    Returns:
        ``id:<user_id>``, ``name:<lower username>`` or None
    """
    if user_id:
        return f"id:{user_id}"
    if username:
        return f"name:{username.lower()}"
    return None


class ItemExtractor(Protocol):
    """Extracts items from one raw document."""

    def extract(self, document: Document, page_number: int) -> list[Item]:
        ...


class HtmlItemExtractor:
    """Extracts items from forum-style HTML pages using BeautifulSoup."""

    def __init__(
        self,
        config: Optional[ExtractorConfig] = None,
        sort_key_multiplier: Optional[int] = None,
    ) -> None:
        """Initialize the extractor.

        Args:
            config: Selector configuration (defaults to global config)
            sort_key_multiplier: K in ``page * K + position``
        """
        app_config = get_config()
        self.config = config or app_config.extractor
        self.sort_key_multiplier = sort_key_multiplier or app_config.harvester.sort_key_multiplier

    def extract(self, document: Document, page_number: int) -> list[Item]:
        """Extract every item on a page.

        A malformed item is dropped and logged; the rest of the page is
        still returned.

        Args:
            document: Raw page
            page_number: Page the document belongs to

        Returns:
            Items in on-page order
        """
        soup = BeautifulSoup(document.content, "html.parser")
        items = []

        for index, node in enumerate(soup.select(self.config.item_selector)):
            try:
                items.append(self._build_item(node, page_number, index))
            except (ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Dropping item {index} on page {page_number}: {e}")

        logger.debug(f"Extracted {len(items)} items from page {page_number}")
        return items

    def extract_author(self, node: Tag) -> Optional[Author]:
        """Find the author of one item node.

        Tries the embedded quote data first, then the profile link, then the
        author pane text.

        Args:
            node: Item node

        Returns:
            Author, or None when no identity can be found
        """
        user_id = None
        username = None

        quote_node = node.select_one(self.config.quote_data_selector)
        if quote_node is not None:
            try:
                data = json.loads(quote_node.get("data-quotedata") or "{}")
            except json.JSONDecodeError:
                data = {}
            if isinstance(data, dict):
                if data.get("userid") is not None:
                    user_id = str(data["userid"])
                if isinstance(data.get("username"), str):
                    username = data["username"].strip() or None

        if not username:
            link = node.select_one(self.config.profile_link_selector)
            if link is not None:
                username = link.get_text(strip=True) or None
                match = _PROFILE_ID.search(link.get("href") or "")
                if not user_id and match:
                    user_id = match.group(1)

        if not username:
            pane = node.select_one(self.config.author_pane_selector)
            if pane is not None:
                username = pane.get_text(strip=True) or None

        key = compute_author_key(user_id, username)
        if key is None:
            return None
        return Author(key=key, display_name=username or user_id or self.config.placeholder_name, user_id=user_id)

    def _build_item(self, node: Tag, page_number: int, index: int) -> Item:
        item_id = self._item_id(node, page_number, index)

        author = self.extract_author(node)
        if author is None:
            author = Author(
                key=f"anon:{page_number}_{index}",
                display_name=self.config.placeholder_name,
            )

        return Item(
            id=item_id,
            page_number=page_number,
            sort_key=page_number * self.sort_key_multiplier + index,
            rendered_content=f'<a id="comment-{item_id}"></a>{node}',
            searchable_text=self._searchable_text(node),
            author_key=author.key,
            author_name=author.display_name,
        )

    def _item_id(self, node: Tag, page_number: int, index: int) -> str:
        id_node = node.select_one(self.config.item_id_selector)
        if id_node is not None and id_node.get("data-commentid"):
            return str(id_node["data-commentid"])
        if node.get("id"):
            return str(node["id"])
        return f"{page_number}_{index}"

    def _searchable_text(self, node: Tag) -> str:
        """Normalized item text without quoted content."""
        clone = copy.copy(node)
        for quoted in clone.select(self.config.quote_selector):
            quoted.decompose()
        return normalize_text(clone.get_text(" "))


def create_extractor() -> HtmlItemExtractor:
    """Create a configured HtmlItemExtractor."""
    return HtmlItemExtractor()

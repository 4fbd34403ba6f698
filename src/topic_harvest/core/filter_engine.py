"""
Filter engine for narrowing harvested items.

Combines an exact author filter with a keyword filter by logical AND.
"""

import re
from typing import Iterable, Optional

from topic_harvest.logger import get_logger
from topic_harvest.models.filter import FilterRequest
from topic_harvest.models.item import Item

logger = get_logger(__name__)

_KEYWORD_SEPARATORS = re.compile(r"[,;\n]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: Optional[str]) -> str:
    """Collapse whitespace and lower-case text.

    Args:
        text: Raw text

    Returns:
        Trimmed, single-spaced, lower-case text
    """
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip().lower()


def parse_keywords(text: Optional[str]) -> list[str]:
    """Split free-text keyword input into normalized keywords.

    Input is split on comma, semicolon or newline. Each token is trimmed,
    single-spaced and lower-cased; empty tokens and duplicates are dropped.

    Args:
        text: Keyword input as typed

    Returns:
        Keywords in first-seen order

    Example:
        >>> parse_keywords("Urgent;  NEW  release,urgent\\n")
        ['urgent', 'new release']
    """
    if not text:
        return []

    keywords: list[str] = []
    seen: set[str] = set()
    for token in _KEYWORD_SEPARATORS.split(text):
        keyword = normalize_text(token)
        if keyword and keyword not in seen:
            seen.add(keyword)
            keywords.append(keyword)
    return keywords


class FilterResult:
    """Result of filtering an item."""

    def __init__(
        self,
        passed: bool,
        matched_keywords: list[str],
        excluded_by: Optional[str] = None,
    ) -> None:
        """Initialize filter result.

        Args:
            passed: Whether the item passed all filters
            matched_keywords: Keywords found in the item
            excluded_by: Which filter rejected the item ("author" or "keywords")
        """
        self.passed = passed
        self.matched_keywords = matched_keywords
        self.excluded_by = excluded_by

    def __repr__(self) -> str:
        return f"<FilterResult(passed={self.passed}, excluded_by={self.excluded_by})>"


class FilterEngine:
    """Applies one filter request to items.

    Keyword matching is literal substring containment against the item's
    normalized searchable text, not whole-word matching: "защ" matches
    "защита". An empty keyword set, or a request still awaiting apply,
    matches everything.
    """

    def __init__(self, request: Optional[FilterRequest]) -> None:
        """Initialize filter engine.

        Args:
            request: Active filter request, or None to pass everything
        """
        self.request = request
        self.author_key = request.author_key if request else None
        if request is not None and request.keywords_active:
            self.keywords = [normalize_text(k) for k in request.keywords if normalize_text(k)]
        else:
            self.keywords = []

    def _match_keywords(self, text: str) -> list[str]:
        """Return the keywords contained in already-normalized text."""
        return [keyword for keyword in self.keywords if keyword in text]

    def matches(self, item: Item) -> FilterResult:
        """Filter one item.

        Args:
            item: Item to check

        Returns:
            FilterResult with pass/fail status
        """
        if self.author_key and item.author_key != self.author_key:
            return FilterResult(passed=False, matched_keywords=[], excluded_by="author")

        if not self.keywords:
            return FilterResult(passed=True, matched_keywords=[])

        matched = self._match_keywords(normalize_text(item.searchable_text))
        if not matched:
            return FilterResult(passed=False, matched_keywords=[], excluded_by="keywords")

        return FilterResult(passed=True, matched_keywords=matched)

    def filter_items(self, items: Iterable[Item]) -> list[Item]:
        """Filter items, preserving their order.

        Args:
            items: Items to filter

        Returns:
            Items that passed
        """
        items = list(items)
        passed = [item for item in items if self.matches(item).passed]

        logger.debug(
            f"Filtered {len(items)} items: {len(passed)} passed, "
            f"{len(items) - len(passed)} excluded"
        )
        return passed

"""
Paginated view over filtered items.

A View is rebuilt, never mutated, whenever items, the current page or the
filter request change.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Union

from topic_harvest.core.filter_engine import FilterEngine
from topic_harvest.models.filter import FilterRequest
from topic_harvest.models.item import Item

PAGE_GAP = "gap"

PageWindowEntry = Union[int, str]


class ViewStatus(str, Enum):
    """What the view currently communicates to the reader."""

    IDLE = "idle"
    AWAITING_INPUT = "awaiting_input"
    LOADING = "loading"
    EMPTY = "empty"
    POPULATED = "populated"
    ERROR = "error"


@dataclass(frozen=True)
class Progress:
    """Harvest progress readout."""

    processed: int = 0
    total: int = 0
    items_found: int = 0

    @property
    def message(self) -> str:
        total = self.total if self.total else "?"
        return f"Pages processed: {self.processed}/{total}. Items found: {self.items_found}"


@dataclass(frozen=True)
class NavigationLink:
    """One of the first/prev/next/last controls."""

    kind: str
    target: int
    enabled: bool


@dataclass
class View:
    """A rendered state of the filtered, paginated result.

    ``cancelled`` is set on views of a closed session. Such views are kept
    as the session's last state and are never pushed to the host.
    """

    request: Optional[FilterRequest]
    visible_items: list[Item] = field(default_factory=list)
    per_page: int = 20
    current_page: int = 1
    total_pages: int = 1
    cancelled: bool = False
    loading: bool = False
    progress: Progress = field(default_factory=Progress)
    status: ViewStatus = ViewStatus.IDLE
    message: str = ""
    page_window: list[PageWindowEntry] = field(default_factory=list)
    navigation: list[NavigationLink] = field(default_factory=list)

    @property
    def page_items(self) -> list[Item]:
        """Items on the current view page."""
        start = (self.current_page - 1) * self.per_page
        return self.visible_items[start:start + self.per_page]

    @property
    def total_items(self) -> int:
        return len(self.visible_items)

    def __repr__(self) -> str:
        return (
            f"<View(status={self.status.value}, page={self.current_page}/{self.total_pages}, "
            f"items={self.total_items})>"
        )


def count_pages(item_count: int, per_page: int) -> int:
    """Number of view pages for ``item_count`` items, never less than 1."""
    if per_page < 1:
        raise ValueError(f"per_page must be at least 1, got {per_page}")
    return max(1, math.ceil(item_count / per_page))


def clamp_page(page: int, total_pages: int) -> int:
    """Clamp ``page`` into ``[1, total_pages]``."""
    return min(max(page, 1), max(total_pages, 1))


def build_page_window(current: int, total: int, radius: int = 2) -> list[PageWindowEntry]:
    """Build the list of page links to render.

    Always includes the first page, the last page and the current page,
    plus up to ``radius`` neighbours on each side of the current page.
    Any gap of more than one missing page between consecutive entries is
    collapsed into a single ``PAGE_GAP`` marker.

    Args:
        current: Current view page
        total: Total number of view pages
        radius: Neighbours to include on each side

    Returns:
        Ascending page numbers with ``PAGE_GAP`` markers

    Example:
        >>> build_page_window(6, 12)
        [1, 'gap', 4, 5, 6, 7, 8, 'gap', 12]
    """
    total = max(total, 1)
    current = clamp_page(current, total)

    pages = {1, total, current}
    for offset in range(1, radius + 1):
        if current - offset > 1:
            pages.add(current - offset)
        if current + offset < total:
            pages.add(current + offset)

    ordered = sorted(pages)
    window: list[PageWindowEntry] = []
    for index, page in enumerate(ordered):
        window.append(page)
        if index + 1 < len(ordered) and ordered[index + 1] - page > 1:
            window.append(PAGE_GAP)
    return window


def build_navigation(current: int, total: int) -> list[NavigationLink]:
    """Build first/prev/next/last controls.

    Controls pointing past a boundary are disabled.
    """
    total = max(total, 1)
    current = clamp_page(current, total)
    at_start = current <= 1
    at_end = current >= total
    return [
        NavigationLink("first", 1, not at_start),
        NavigationLink("prev", clamp_page(current - 1, total), not at_start),
        NavigationLink("next", clamp_page(current + 1, total), not at_end),
        NavigationLink("last", total, not at_end),
    ]


def build_view(
    request: Optional[FilterRequest],
    items: Sequence[Item],
    per_page: int = 20,
    current_page: int = 1,
    progress: Optional[Progress] = None,
    loading: bool = False,
    error: Optional[str] = None,
    window_radius: int = 2,
) -> View:
    """Filter items and slice them into a view.

    Args:
        request: Active filter request (None means no filter is active)
        items: Harvested items in display order
        per_page: Items per view page
        current_page: Requested view page, clamped into range
        progress: Harvest progress readout
        loading: Whether the harvest is still running
        error: Explanation when the collection could not be located
        window_radius: Neighbours shown around the current page

    Returns:
        A new View
    """
    progress = progress or Progress()

    if error is not None:
        return View(
            request=request,
            per_page=per_page,
            progress=progress,
            status=ViewStatus.ERROR,
            message=error,
            page_window=[1],
            navigation=build_navigation(1, 1),
        )

    if request is None:
        return View(request=None, per_page=per_page, progress=progress, message="No filter is active.")

    if not request.author_key and request.awaiting_apply:
        # Keyword-only request: nothing is filtered until the input is applied
        return View(
            request=request,
            per_page=per_page,
            progress=progress,
            loading=loading,
            status=ViewStatus.AWAITING_INPUT,
            message="Keyword input is pending. Apply it to filter.",
            page_window=[1],
            navigation=build_navigation(1, 1),
        )

    visible = FilterEngine(request).filter_items(items)
    total_pages = count_pages(len(visible), per_page)
    current_page = clamp_page(current_page, total_pages)

    view = View(
        request=request,
        visible_items=visible,
        per_page=per_page,
        current_page=current_page,
        total_pages=total_pages,
        loading=loading,
        progress=progress,
        page_window=build_page_window(current_page, total_pages, window_radius),
        navigation=build_navigation(current_page, total_pages),
    )

    if not visible:
        if loading:
            view.status = ViewStatus.LOADING
            view.message = progress.message
        else:
            view.status = ViewStatus.EMPTY
            view.message = "No matching items in this collection."
    else:
        view.status = ViewStatus.POPULATED
        view.message = (
            f"{len(visible)} items · page {current_page} of {total_pages}"
            + (f" · {progress.message}" if loading else "")
        )

    if request.awaiting_apply:
        view.message += " · keyword input is pending"

    return view

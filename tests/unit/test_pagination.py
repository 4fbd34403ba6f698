"""Tests for the paginated view."""

import pytest

from topic_harvest.core.pagination import (
    PAGE_GAP,
    Progress,
    ViewStatus,
    build_navigation,
    build_page_window,
    build_view,
    clamp_page,
    count_pages,
)
from topic_harvest.models.filter import FilterRequest

from conftest import make_item


def _items(count, author="id:1"):
    return [make_item(str(i), page=1 + i // 20, position=i % 20, author=author) for i in range(count)]


class TestPageMath:
    """Tests for page counting and clamping."""

    @pytest.mark.parametrize(
        "count,per_page,expected",
        [(0, 20, 1), (1, 20, 1), (20, 20, 1), (21, 20, 2), (45, 10, 5)],
    )
    def test_count_pages(self, count, per_page, expected):
        """Test the page count is never below one."""
        assert count_pages(count, per_page) == expected

    def test_count_pages_rejects_bad_per_page(self):
        """Test per_page must be positive."""
        with pytest.raises(ValueError):
            count_pages(10, 0)

    def test_clamp_page(self):
        """Test clamping into range."""
        assert clamp_page(0, 5) == 1
        assert clamp_page(9, 5) == 5
        assert clamp_page(3, 5) == 3
        assert clamp_page(3, 0) == 1


class TestPageWindow:
    """Tests for page link windows."""

    def test_middle_page(self):
        """Test gaps on both sides."""
        assert build_page_window(6, 12) == [1, PAGE_GAP, 4, 5, 6, 7, 8, PAGE_GAP, 12]

    def test_near_start(self):
        """Test no gap when neighbours reach the first page."""
        assert build_page_window(2, 10) == [1, 2, 3, 4, PAGE_GAP, 10]

    def test_single_missing_page_is_not_a_gap(self):
        """Test only gaps of more than one page collapse."""
        assert build_page_window(4, 10) == [1, 2, 3, 4, 5, 6, PAGE_GAP, 10]

    def test_small_total(self):
        """Test a short collection lists every page."""
        assert build_page_window(1, 1) == [1]
        assert build_page_window(2, 3) == [1, 2, 3]

    def test_navigation_disabled_at_edges(self):
        """Test first/prev disabled on page one, next/last on the last page."""
        first = {link.kind: link for link in build_navigation(1, 3)}
        last = {link.kind: link for link in build_navigation(3, 3)}

        assert not first["first"].enabled and not first["prev"].enabled
        assert first["next"].enabled and first["next"].target == 2
        assert last["prev"].enabled and last["prev"].target == 2
        assert not last["next"].enabled and not last["last"].enabled


class TestBuildView:
    """Tests for build_view."""

    def test_no_request_is_idle(self):
        """Test an inactive filter."""
        view = build_view(None, _items(3))

        assert view.status == ViewStatus.IDLE
        assert view.visible_items == []

    def test_populated_view_slices_current_page(self):
        """Test slicing of the visible items."""
        items = _items(45)
        view = build_view(FilterRequest(author_key="id:1"), items, per_page=20, current_page=3)

        assert view.status == ViewStatus.POPULATED
        assert view.total_pages == 3
        assert view.total_items == 45
        assert [item.id for item in view.page_items] == ["40", "41", "42", "43", "44"]

    def test_current_page_is_clamped(self):
        """Test an out of range page is clamped to the last page."""
        view = build_view(FilterRequest(author_key="id:1"), _items(25), per_page=10, current_page=99)

        assert view.current_page == 3
        assert len(view.page_items) == 5

    def test_empty_while_loading(self):
        """Test no matches yet while harvesting shows progress."""
        progress = Progress(processed=1, total=4, items_found=7)
        view = build_view(FilterRequest(author_key="id:2"), _items(5), progress=progress, loading=True)

        assert view.status == ViewStatus.LOADING
        assert view.message == "Pages processed: 1/4. Items found: 7"
        assert view.total_pages == 1

    def test_empty_after_harvest(self):
        """Test no matches once harvesting has finished."""
        view = build_view(FilterRequest(author_key="id:2"), _items(5))

        assert view.status == ViewStatus.EMPTY
        assert view.current_page == 1

    def test_keyword_only_request_awaiting_apply(self):
        """Test pending keyword input without an author filters nothing."""
        request = FilterRequest(raw_keyword_input="urgent", awaiting_apply=True)
        view = build_view(request, _items(5))

        assert view.status == ViewStatus.AWAITING_INPUT
        assert view.visible_items == []

    def test_author_with_pending_keywords(self):
        """Test pending keywords do not narrow an author filter."""
        request = FilterRequest(author_key="id:1", keywords=["nothing"], awaiting_apply=True)
        view = build_view(request, _items(5))

        assert view.status == ViewStatus.POPULATED
        assert view.total_items == 5
        assert view.message.endswith("keyword input is pending")

    def test_error_view(self):
        """Test an error replaces everything else."""
        view = build_view(FilterRequest(author_key="id:1"), _items(5), error="Broken")

        assert view.status == ViewStatus.ERROR
        assert view.message == "Broken"
        assert view.visible_items == []

    def test_loading_message_includes_progress(self):
        """Test the populated message carries progress while harvesting."""
        progress = Progress(processed=2, total=3, items_found=5)
        view = build_view(FilterRequest(author_key="id:1"), _items(5), progress=progress, loading=True)

        assert view.status == ViewStatus.POPULATED
        assert "Pages processed: 2/3" in view.message

"""Tests for traversal order planning."""

import pytest

from topic_harvest.core.traversal import build_traversal_order


class TestBuildTraversalOrder:
    """Tests for build_traversal_order."""

    def test_alternates_around_current(self):
        """Test the documented example."""
        assert build_traversal_order(4, 7) == [4, 3, 5, 2, 6, 1, 7]

    def test_starts_on_first_page(self):
        """Test starting from page 1 walks forward."""
        assert build_traversal_order(1, 4) == [1, 2, 3, 4]

    def test_starts_on_last_page(self):
        """Test starting from the last page walks backward."""
        assert build_traversal_order(5, 5) == [5, 4, 3, 2, 1]

    def test_single_page(self):
        """Test a one page collection."""
        assert build_traversal_order(1, 1) == [1]

    def test_asymmetric_position(self):
        """Test pages past one edge continue on the other side."""
        assert build_traversal_order(2, 6) == [2, 1, 3, 4, 5, 6]

    @pytest.mark.parametrize("current,total", [(1, 1), (3, 10), (10, 10), (7, 13), (1, 50)])
    def test_is_permutation_starting_at_current(self, current, total):
        """Test every page appears exactly once, current page first."""
        order = build_traversal_order(current, total)

        assert order[0] == current
        assert sorted(order) == list(range(1, total + 1))

    def test_distance_never_decreases(self):
        """Test pages are visited in order of distance from the reader."""
        current = 6
        order = build_traversal_order(current, 20)
        distances = [abs(page - current) for page in order]

        assert distances == sorted(distances)

    def test_out_of_range_current_is_clamped(self):
        """Test a current page past the end is clamped."""
        assert build_traversal_order(9, 3) == [3, 2, 1]
        assert build_traversal_order(0, 2) == [1, 2]

    def test_invalid_total(self):
        """Test a collection without pages is rejected."""
        with pytest.raises(ValueError):
            build_traversal_order(1, 0)

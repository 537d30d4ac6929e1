"""Tests for placement validation."""

import pytest

from app.services.slides.layouts import CellRect, GridLayout, OverlapValidator, RejectionReason
from tests.fixtures.layout import place


class TestCellRect:
    """Test suite for inclusive cell rectangles."""

    def test_from_origin(self):
        assert CellRect.from_origin(1, 2, 2, 3) == CellRect(top=1, left=2, bottom=2, right=4)

    @pytest.mark.parametrize("other,expected", [
        (CellRect(0, 0, 0, 0), True),   # same cell
        (CellRect(1, 1, 2, 2), True),   # shares corner cell (1, 1)
        (CellRect(0, 2, 0, 2), False),  # directly right
        (CellRect(2, 0, 2, 1), False),  # directly below
        (CellRect(2, 2, 3, 3), False),  # diagonal neighbour
    ])
    def test_intersects(self, other, expected):
        rect = CellRect.from_origin(0, 0, 2, 2)

        assert rect.intersects(other) is expected
        assert other.intersects(rect) is expected

    def test_contains(self):
        rect = CellRect.from_origin(1, 1, 2, 2)

        assert rect.contains(1, 1)
        assert rect.contains(2, 2)
        assert not rect.contains(0, 1)
        assert not rect.contains(3, 2)


class TestOverlapValidator:
    """Test suite for the placement checker."""

    @pytest.fixture
    def layout(self):
        """3x4 grid: 'a' covers (0,0)-(1,1), 'b' sits on (2,3)."""
        layout = place(GridLayout(3, 4), "a", 0, 0, 2, 2)
        return place(layout, "b", 2, 3)

    def test_free_rectangle_passes(self, layout):
        assert OverlapValidator.check(layout, "c", 0, 2, 2, 2)

    def test_bounds_checked_before_overlap(self, layout):
        """A rectangle both out of bounds and overlapping reports bounds."""
        reason = OverlapValidator.explain(layout, "c", 1, 1, 3, 1)

        assert reason == RejectionReason.OUT_OF_BOUNDS

    def test_overlap_detected(self, layout):
        assert not OverlapValidator.check(layout, "c", 1, 1)
        assert OverlapValidator.explain(layout, "c", 1, 1) == RejectionReason.OVERLAP

    def test_block_never_compared_with_itself(self, layout):
        assert OverlapValidator.check(layout, "a", 0, 0, 3, 2)

    def test_find_conflicts(self, layout):
        assert OverlapValidator.find_conflicts(layout, "c", 1, 1, 2, 3) == ["a", "b"]
        assert OverlapValidator.find_conflicts(layout, "a", 1, 1, 2, 3) == ["b"]
        assert OverlapValidator.find_conflicts(layout, None, 0, 2) == []

    def test_in_bounds(self, layout):
        assert OverlapValidator.in_bounds(layout, 2, 3)
        assert not OverlapValidator.in_bounds(layout, 2, 3, 1, 2)
        assert not OverlapValidator.in_bounds(layout, -1, 0)

    def test_find_overlaps_on_clean_layout(self, layout):
        assert OverlapValidator.find_overlaps(layout) == []

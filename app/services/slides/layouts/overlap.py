"""
Overlap Validation

Decides whether a block's proposed rectangle is legal on a layout: it must
stay inside the grid and must not share a cell with any other positioned
block. Every layout mutation delegates here.
"""

from typing import List, Optional, Tuple, TYPE_CHECKING

from .base import BlockId, CellRect, RejectionReason

if TYPE_CHECKING:
    from .grid import GridLayout


class OverlapValidator:
    """
    Stateless placement checker.

    All methods are static; the class only groups them so callers can
    reference a single validator.
    """

    @staticmethod
    def in_bounds(layout: 'GridLayout', row: int, column: int,
                  row_span: int = 1, column_span: int = 1) -> bool:
        """Check a rectangle against the grid dimensions"""
        rect = CellRect.from_origin(row, column, row_span, column_span)
        return rect.fits_within(layout.rows, layout.columns)

    @staticmethod
    def find_conflicts(layout: 'GridLayout', block_id: Optional[BlockId],
                       row: int, column: int,
                       row_span: int = 1, column_span: int = 1) -> List[BlockId]:
        """
        List the positioned blocks whose rectangles intersect the proposal

        Args:
            layout: Current layout snapshot
            block_id: Block being placed; never compared with itself
            row, column: Proposed origin
            row_span, column_span: Proposed extent

        Returns:
            Conflicting block ids in positions order
        """
        proposed = CellRect.from_origin(row, column, row_span, column_span)
        conflicts = []

        for other_id in layout.positions:
            if other_id == block_id:
                continue
            if proposed.intersects(layout.rect_of(other_id)):
                conflicts.append(other_id)

        return conflicts

    @classmethod
    def explain(cls, layout: 'GridLayout', block_id: Optional[BlockId],
                row: int, column: int,
                row_span: int = 1, column_span: int = 1) -> Optional[RejectionReason]:
        """Return why the proposal is illegal, or None when it fits"""
        # Bounds first; it is cheaper than the scan
        if not cls.in_bounds(layout, row, column, row_span, column_span):
            return RejectionReason.OUT_OF_BOUNDS

        if cls.find_conflicts(layout, block_id, row, column, row_span, column_span):
            return RejectionReason.OVERLAP

        return None

    @classmethod
    def check(cls, layout: 'GridLayout', block_id: Optional[BlockId],
              row: int, column: int,
              row_span: int = 1, column_span: int = 1) -> bool:
        """
        Check whether a block may occupy the given rectangle

        Returns:
            True when the rectangle is inside the grid and free of other blocks
        """
        return cls.explain(layout, block_id, row, column, row_span, column_span) is None

    @staticmethod
    def find_overlaps(layout: 'GridLayout') -> List[Tuple[BlockId, BlockId]]:
        """List every pair of positioned blocks whose rectangles intersect"""
        block_ids = list(layout.positions)
        pairs = []

        for i, first in enumerate(block_ids):
            first_rect = layout.rect_of(first)
            for second in block_ids[i + 1:]:
                if first_rect.intersects(layout.rect_of(second)):
                    pairs.append((first, second))

        return pairs

"""
Grid Geometry Records

Value types shared by the grid layout, the overlap validator and the
connection inferencer. Coordinates are integer cell indices; rectangles
are closed intervals on those indices.
"""

from dataclasses import dataclass
from typing import Dict, Optional, TYPE_CHECKING
from enum import Enum

if TYPE_CHECKING:
    from .grid import GridLayout


BlockId = str


class RejectionReason(str, Enum):
    """Why a layout mutation was refused"""
    OUT_OF_BOUNDS = "out_of_bounds"
    CELL_OCCUPIED = "cell_occupied"
    CELL_COVERED = "cell_covered"
    SPAN_CONFLICT = "span_conflict"
    OVERLAP = "overlap"
    GRID_LIMIT = "grid_limit"
    NO_DRAG = "no_drag"


@dataclass(frozen=True)
class GridPosition:
    """Origin (top-left) cell of a block"""
    row: int
    column: int

    def to_dict(self) -> Dict[str, int]:
        return {'row': self.row, 'column': self.column}


@dataclass(frozen=True)
class BlockSpan:
    """Number of rows/columns a block extends from its origin"""
    row_span: int = 1
    column_span: int = 1

    @property
    def is_single_cell(self) -> bool:
        return self.row_span == 1 and self.column_span == 1

    def to_dict(self) -> Dict[str, int]:
        return {'rowSpan': self.row_span, 'columnSpan': self.column_span}


SINGLE_CELL = BlockSpan(1, 1)


@dataclass(frozen=True)
class CellRect:
    """
    Rectangle of occupied cells, inclusive on every edge.

    A 1x1 block at (2, 3) is CellRect(top=2, left=3, bottom=2, right=3).
    """
    top: int
    left: int
    bottom: int
    right: int

    @classmethod
    def from_origin(cls, row: int, column: int,
                    row_span: int = 1, column_span: int = 1) -> 'CellRect':
        return cls(
            top=row,
            left=column,
            bottom=row + row_span - 1,
            right=column + column_span - 1
        )

    def intersects(self, other: 'CellRect') -> bool:
        """Check whether two rectangles share at least one cell"""
        return (self.left <= other.right and
                self.right >= other.left and
                self.top <= other.bottom and
                self.bottom >= other.top)

    def contains(self, row: int, column: int) -> bool:
        return self.top <= row <= self.bottom and self.left <= column <= self.right

    def fits_within(self, rows: int, columns: int) -> bool:
        """Check the rectangle lies inside [0, rows) x [0, columns)"""
        return (self.top >= 0 and self.left >= 0 and
                self.bottom < rows and self.right < columns)


@dataclass(frozen=True)
class GridPlacement:
    """1-based CSS grid lines for rendering a block"""
    row_start: int
    row_end: int
    column_start: int
    column_end: int

    @classmethod
    def from_geometry(cls, position: GridPosition, span: BlockSpan) -> 'GridPlacement':
        return cls(
            row_start=position.row + 1,
            row_end=position.row + 1 + span.row_span,
            column_start=position.column + 1,
            column_end=position.column + 1 + span.column_span
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            'gridRowStart': self.row_start,
            'gridRowEnd': self.row_end,
            'gridColumnStart': self.column_start,
            'gridColumnEnd': self.column_end
        }


@dataclass(frozen=True)
class LayoutResult:
    """
    Outcome of a layout mutation.

    Truthy when the mutation was accepted. `layout` is always the layout
    the caller should keep: the new snapshot on success, the unchanged
    one on rejection.
    """
    accepted: bool
    layout: 'GridLayout'
    reason: Optional[RejectionReason] = None

    def __bool__(self) -> bool:
        return self.accepted

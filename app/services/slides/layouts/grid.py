"""
Grid Layout Implementation

Immutable snapshot of a slide's block grid: dimensions, the origin cell of
every placed block and the span of blocks larger than one cell. Mutations
return a new snapshot, or the unchanged one with a rejection reason.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from app.core.config import AssignPolicy, settings
from app.core.exceptions import (
    LayoutContractError,
    LayoutDeserializationError,
    UnknownBlockError,
)
from app.core.logging import get_logger, log_rejection_details
from app.domain.schemas.layout import GridLayoutSchema

from .base import (
    SINGLE_CELL,
    BlockId,
    BlockSpan,
    CellRect,
    GridPlacement,
    GridPosition,
    LayoutResult,
    RejectionReason,
)
from .overlap import OverlapValidator

logger = get_logger(__name__)


def _require_positive(name: str, value: int) -> None:
    if not isinstance(value, int) or value < 1:
        raise LayoutContractError(f"{name} must be a positive integer, got {value!r}", field=name)


@dataclass(frozen=True, eq=False)
class GridLayout:
    """
    Block arrangement on a rows x columns grid

    Blocks missing from `positions` are unassigned and not rendered.
    Blocks missing from `spans` occupy a single cell.
    """
    rows: int = 1
    columns: int = 1
    positions: Mapping[BlockId, GridPosition] = field(default_factory=dict)
    spans: Mapping[BlockId, BlockSpan] = field(default_factory=dict)

    def __post_init__(self):
        _require_positive("rows", self.rows)
        _require_positive("columns", self.columns)
        # Snapshots never share mutable state with their callers
        object.__setattr__(self, "positions", MappingProxyType(dict(self.positions)))
        object.__setattr__(self, "spans", MappingProxyType(dict(self.spans)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GridLayout):
            return NotImplemented
        return (self.rows == other.rows and
                self.columns == other.columns and
                dict(self.positions) == dict(other.positions) and
                dict(self.spans) == dict(other.spans))

    @classmethod
    def empty(cls) -> 'GridLayout':
        """Layout of a freshly created slide"""
        return cls()

    def _replace(self, rows: Optional[int] = None, columns: Optional[int] = None,
                 positions: Optional[Mapping[BlockId, GridPosition]] = None,
                 spans: Optional[Mapping[BlockId, BlockSpan]] = None) -> 'GridLayout':
        return GridLayout(
            rows=self.rows if rows is None else rows,
            columns=self.columns if columns is None else columns,
            positions=self.positions if positions is None else positions,
            spans=self.spans if spans is None else spans,
        )

    def _reject(self, operation: str, block_id: BlockId, reason: RejectionReason,
                **context: Any) -> LayoutResult:
        logger.debug(
            "layout_mutation_rejected",
            **log_rejection_details(operation, block_id, reason.value, **context)
        )
        return LayoutResult(accepted=False, layout=self, reason=reason)

    # Queries

    @property
    def uses_grid(self) -> bool:
        """Whether the slide renders as a grid rather than a single column"""
        return self.rows > 1 or self.columns > 1

    def position_of(self, block_id: BlockId) -> Optional[GridPosition]:
        return self.positions.get(block_id)

    def span_of(self, block_id: BlockId) -> BlockSpan:
        return self.spans.get(block_id, SINGLE_CELL)

    def rect_of(self, block_id: BlockId) -> CellRect:
        """Occupied rectangle of a positioned block"""
        position = self.positions.get(block_id)
        if position is None:
            raise UnknownBlockError(block_id, "compute its rectangle")
        span = self.span_of(block_id)
        return CellRect.from_origin(position.row, position.column,
                                    span.row_span, span.column_span)

    def cell_occupant(self, row: int, column: int) -> Optional[BlockId]:
        """Block whose origin is the given cell; span coverage does not count"""
        for block_id, position in self.positions.items():
            if position.row == row and position.column == column:
                return block_id
        return None

    def is_cell_covered(self, row: int, column: int,
                        exclude: Optional[BlockId] = None) -> bool:
        """
        Check whether a cell lies inside another block's span

        The origin cell of a block is not covered by that block.

        Args:
            row, column: Cell to test
            exclude: Block to ignore, usually the one being moved
        """
        for block_id, position in self.positions.items():
            if block_id == exclude:
                continue
            if position.row == row and position.column == column:
                continue
            if self.rect_of(block_id).contains(row, column):
                return True
        return False

    def placement_for(self, block_id: BlockId) -> Optional[GridPlacement]:
        """CSS grid lines for a positioned block, None if unassigned"""
        position = self.positions.get(block_id)
        if position is None:
            return None
        return GridPlacement.from_geometry(position, self.span_of(block_id))

    def blocks_by_cell(self, block_ids: Iterable[BlockId],
                       include_unassigned: bool = False) -> Dict[str, List[BlockId]]:
        """
        Group blocks by origin cell, keyed "row-column"

        Every cell of the grid gets a key. Unassigned blocks are left out
        unless `include_unassigned` is set, in which case they are listed
        under "0-0" the way the single-cell student view shows them.
        """
        result: Dict[str, List[BlockId]] = {
            f"{row}-{column}": []
            for row in range(self.rows)
            for column in range(self.columns)
        }

        for block_id in block_ids:
            position = self.positions.get(block_id)
            if position is None:
                if not include_unassigned:
                    continue
                position = GridPosition(0, 0)
            result.setdefault(f"{position.row}-{position.column}", []).append(block_id)

        return result

    def validate(self) -> Tuple[bool, List[str]]:
        """
        Check the bounds and no-overlap invariants

        Returns:
            Tuple of (is_valid, list_of_issues)
        """
        issues = []

        for block_id in self.positions:
            if not self.rect_of(block_id).fits_within(self.rows, self.columns):
                issues.append(f"Block {block_id} extends outside the grid")

        for first, second in OverlapValidator.find_overlaps(self):
            issues.append(f"Blocks {first} and {second} overlap")

        return len(issues) == 0, issues

    # Mutations

    def assign(self, block_id: BlockId, row: int, column: int,
               policy: Optional[AssignPolicy] = None) -> LayoutResult:
        """
        Place a block's origin on a cell

        Args:
            block_id: Block to place (may already be placed elsewhere)
            row, column: Target origin cell
            policy: Occupancy check to apply, defaults to settings.ASSIGN_POLICY

        Returns:
            LayoutResult, truthy when the block was placed
        """
        if row < 0 or column < 0:
            raise LayoutContractError(
                f"Cell ({row}, {column}) has a negative coordinate",
                block_id=block_id,
            )
        policy = AssignPolicy(policy or settings.ASSIGN_POLICY)
        context = {"row": row, "column": column, "policy": policy.value}

        if not OverlapValidator.in_bounds(self, row, column):
            return self._reject("assign", block_id, RejectionReason.OUT_OF_BOUNDS, **context)

        occupant = self.cell_occupant(row, column)
        if occupant is not None and occupant != block_id:
            return self._reject("assign", block_id, RejectionReason.CELL_OCCUPIED,
                                occupant=occupant, **context)

        if policy == AssignPolicy.COVERAGE:
            if self.is_cell_covered(row, column, exclude=block_id):
                return self._reject("assign", block_id, RejectionReason.CELL_COVERED, **context)

            span = self.span_of(block_id)
            if not OverlapValidator.check(self, block_id, row, column,
                                          span.row_span, span.column_span):
                return self._reject("assign", block_id, RejectionReason.SPAN_CONFLICT,
                                    row_span=span.row_span,
                                    column_span=span.column_span, **context)

        positions = dict(self.positions)
        positions[block_id] = GridPosition(row, column)
        return LayoutResult(accepted=True, layout=self._replace(positions=positions))

    def set_span(self, block_id: BlockId, row_span: int, column_span: int) -> LayoutResult:
        """
        Change how many rows/columns a positioned block covers

        Returns:
            LayoutResult, truthy when the span was applied
        """
        position = self.positions.get(block_id)
        if position is None:
            raise UnknownBlockError(block_id, "set its span")
        _require_positive("row_span", row_span)
        _require_positive("column_span", column_span)

        span = BlockSpan(row_span, column_span)
        if span == self.span_of(block_id):
            return LayoutResult(accepted=True, layout=self)

        reason = OverlapValidator.explain(self, block_id, position.row, position.column,
                                          row_span, column_span)
        if reason is not None:
            return self._reject("set_span", block_id, reason,
                                row_span=row_span, column_span=column_span)

        spans = dict(self.spans)
        spans[block_id] = span
        return LayoutResult(accepted=True, layout=self._replace(spans=spans))

    def resize(self, new_rows: int, new_columns: int) -> 'GridLayout':
        """
        Change the grid dimensions, truncating blocks that no longer fit

        Blocks already inside the new bounds keep their geometry. Each block
        that sticks out has its origin clamped to the last row/column and its
        span cut at the new edge. A clamped block that lands on a kept block
        drops to a single cell, then moves to the first free cell in reading
        order, and is unassigned if the grid is full.
        """
        _require_positive("rows", new_rows)
        _require_positive("columns", new_columns)

        placed = GridLayout(new_rows, new_columns)
        displaced = []

        for block_id, position in self.positions.items():
            span = self.span_of(block_id)
            if OverlapValidator.check(placed, block_id, position.row, position.column,
                                      span.row_span, span.column_span):
                placed = placed._place(block_id, position, span, block_id in self.spans)
            else:
                displaced.append((block_id, position, span))

        truncated, relocated, unassigned = [], [], []

        for block_id, position, span in displaced:
            row = min(position.row, new_rows - 1)
            column = min(position.column, new_columns - 1)
            clamped = BlockSpan(min(span.row_span, new_rows - row),
                                min(span.column_span, new_columns - column))
            has_span = block_id in self.spans

            if OverlapValidator.check(placed, block_id, row, column,
                                      clamped.row_span, clamped.column_span):
                placed = placed._place(block_id, GridPosition(row, column), clamped, has_span)
                truncated.append(block_id)
                continue

            free_cell = placed._first_free_cell(prefer=(row, column))
            if free_cell is None:
                unassigned.append(block_id)
                continue

            placed = placed._place(block_id, free_cell, SINGLE_CELL, has_span)
            relocated.append(block_id)

        # Restore the original key order so cell_occupant stays deterministic
        positions = {bid: placed.positions[bid] for bid in self.positions if bid in placed.positions}
        # Unpositioned blocks keep their stored span for the next assign
        spans = {
            bid: placed.spans[bid] if bid in placed.spans else span
            for bid, span in self.spans.items()
            if bid in placed.spans or bid not in self.positions
        }

        if truncated or relocated or unassigned:
            logger.info(
                "grid_resized_with_truncation",
                rows=new_rows,
                columns=new_columns,
                truncated=truncated,
                relocated=relocated,
                unassigned=unassigned,
            )

        return GridLayout(new_rows, new_columns, positions, spans)

    def _place(self, block_id: BlockId, position: GridPosition, span: BlockSpan,
               keep_span_entry: bool) -> 'GridLayout':
        positions = dict(self.positions)
        positions[block_id] = position
        spans = dict(self.spans)
        if keep_span_entry or not span.is_single_cell:
            spans[block_id] = span
        return self._replace(positions=positions, spans=spans)

    def _first_free_cell(self, prefer: Tuple[int, int]) -> Optional[GridPosition]:
        candidates = [prefer] + [
            (row, column)
            for row in range(self.rows)
            for column in range(self.columns)
        ]
        for row, column in candidates:
            if OverlapValidator.check(self, None, row, column):
                return GridPosition(row, column)
        return None

    def unassign(self, block_id: BlockId) -> 'GridLayout':
        """Remove a block from the grid; it keeps existing on the slide"""
        if block_id not in self.positions and block_id not in self.spans:
            return self
        positions = {k: v for k, v in self.positions.items() if k != block_id}
        spans = {k: v for k, v in self.spans.items() if k != block_id}
        return self._replace(positions=positions, spans=spans)

    def prune(self, block_ids: Iterable[BlockId]) -> 'GridLayout':
        """Drop position and span entries for blocks no longer on the slide"""
        alive = set(block_ids)
        positions = {k: v for k, v in self.positions.items() if k in alive}
        spans = {k: v for k, v in self.spans.items() if k in alive}
        if len(positions) == len(self.positions) and len(spans) == len(self.spans):
            return self
        logger.debug(
            "layout_pruned",
            removed=sorted((set(self.positions) | set(self.spans)) - alive),
        )
        return self._replace(positions=positions, spans=spans)

    # Serialization

    def to_dict(self) -> Dict[str, Any]:
        """Convert layout to the persisted JSON shape"""
        return {
            'gridRows': self.rows,
            'gridColumns': self.columns,
            'blockPositions': {
                block_id: position.to_dict()
                for block_id, position in self.positions.items()
            },
            'blockSpans': {
                block_id: span.to_dict()
                for block_id, span in self.spans.items()
            }
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'GridLayout':
        """
        Restore a layout from its persisted JSON shape

        Geometry is loaded as stored; call validate() to check it.

        Raises:
            LayoutDeserializationError: If the payload does not parse
        """
        if data is None:
            return cls.empty()
        try:
            schema = GridLayoutSchema.model_validate(data)
        except ValidationError as e:
            raise LayoutDeserializationError(
                "Invalid grid layout payload", errors=e.errors(include_url=False)
            ) from e

        return cls(
            rows=schema.grid_rows,
            columns=schema.grid_columns,
            positions={
                block_id: GridPosition(p.row, p.column)
                for block_id, p in schema.block_positions.items()
            },
            spans={
                block_id: BlockSpan(s.row_span, s.column_span)
                for block_id, s in schema.block_spans.items()
            },
        )

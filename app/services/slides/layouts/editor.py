"""
Slide Layout Editor

Host-side owner of a slide's current grid layout. The authoring UI calls
into this class on drag/drop and resize actions; it applies the change to
the immutable GridLayout, swaps in the new snapshot when accepted and
notifies listeners so the slide can be persisted and overlays redrawn.
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional
from uuid import uuid4

from pydantic import ValidationError

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import LayoutContractError, LayoutDeserializationError
from app.core.logging import get_logger
from app.domain.schemas.layout import LessonBlockSchema, SlideLayoutSchema

from .base import BlockId, LayoutResult, RejectionReason
from .columns import ColumnLayout
from .connections import Connection, ConnectionInferencer
from .grid import GridLayout

logger = get_logger(__name__)

LayoutListener = Callable[[str, GridLayout], None]
ConnectionsListener = Callable[[str, List[Connection]], None]


class SlideLayoutEditor:
    """
    Grid editing session for one slide

    Args:
        slide_id: Slide the layout belongs to
        blocks: Blocks on the slide, in display order
        layout: Starting layout, an empty 1x1 grid when omitted
        columns: Legacy column layout stored on the same slide, one column when omitted
        settings: Grid bounds and placement policy
        on_layout_change: Called with (slide_id, layout) after every accepted change
        on_connections_change: Called with (slide_id, connections) after every accepted change
    """

    def __init__(
        self,
        slide_id: str,
        blocks: Iterable[LessonBlockSchema] = (),
        layout: Optional[GridLayout] = None,
        columns: Optional[ColumnLayout] = None,
        settings: Optional[Settings] = None,
        on_layout_change: Optional[LayoutListener] = None,
        on_connections_change: Optional[ConnectionsListener] = None,
    ):
        self.slide_id = slide_id
        self.settings = settings or default_settings
        self.blocks: List[LessonBlockSchema] = list(blocks)
        self.inferencer = ConnectionInferencer(color=self.settings.CONNECTION_COLOR)
        self.on_layout_change = on_layout_change
        self.on_connections_change = on_connections_change
        self._dragged_block_id: Optional[BlockId] = None
        self._layout = (layout or GridLayout.empty()).prune(self.block_ids)
        self._columns = (columns or ColumnLayout(settings=self.settings)).prune(self.block_ids)

    @property
    def layout(self) -> GridLayout:
        return self._layout

    @property
    def columns(self) -> ColumnLayout:
        return self._columns

    @property
    def block_ids(self) -> List[BlockId]:
        return [block.id for block in self.blocks]

    @property
    def dragged_block_id(self) -> Optional[BlockId]:
        return self._dragged_block_id

    def _require_block(self, block_id: BlockId) -> None:
        if block_id not in self.block_ids:
            raise LayoutContractError(
                f"Block {block_id} is not on slide {self.slide_id}",
                block_id=block_id,
                slide_id=self.slide_id,
            )

    def _commit(self, layout: GridLayout) -> None:
        self._layout = layout
        self._notify()

    def _notify(self) -> None:
        if self.on_layout_change:
            self.on_layout_change(self.slide_id, self._layout)
        if self.on_connections_change:
            self.on_connections_change(self.slide_id, self.connections())

    def _apply(self, result: LayoutResult) -> LayoutResult:
        if result:
            self._commit(result.layout)
        return result

    # Grid operations

    def resize(self, rows: int, columns: int) -> LayoutResult:
        """
        Resize the grid within the authoring bounds

        Sizes outside GRID_MIN_SIZE..GRID_MAX_ROWS/GRID_MAX_COLUMNS are
        refused; within them the engine truncates blocks as needed.
        """
        minimum = self.settings.GRID_MIN_SIZE
        if not (minimum <= rows <= self.settings.GRID_MAX_ROWS and
                minimum <= columns <= self.settings.GRID_MAX_COLUMNS):
            logger.debug(
                "grid_resize_rejected",
                slide_id=self.slide_id,
                rows=rows,
                columns=columns,
                reason=RejectionReason.GRID_LIMIT.value,
            )
            return LayoutResult(False, self._layout, RejectionReason.GRID_LIMIT)

        return self._apply(LayoutResult(True, self._layout.resize(rows, columns)))

    def assign(self, block_id: BlockId, row: int, column: int) -> LayoutResult:
        self._require_block(block_id)
        return self._apply(
            self._layout.assign(block_id, row, column, policy=self.settings.ASSIGN_POLICY)
        )

    def set_span(self, block_id: BlockId, row_span: int, column_span: int) -> LayoutResult:
        self._require_block(block_id)
        return self._apply(self._layout.set_span(block_id, row_span, column_span))

    def unassign(self, block_id: BlockId) -> None:
        """Take a block off the grid without deleting it"""
        self._require_block(block_id)
        layout = self._layout.unassign(block_id)
        if layout is not self._layout:
            self._commit(layout)

    # Legacy columns

    def set_column_count(self, count: int) -> None:
        self._columns = self._columns.with_column_count(count)
        self._notify()

    def set_column_width(self, index: int, value: int) -> bool:
        accepted, columns = self._columns.with_column_width(index, value)
        if accepted:
            self._columns = columns
            self._notify()
        return accepted

    def assign_column(self, block_id: BlockId, column_index: int) -> None:
        self._require_block(block_id)
        self._columns = self._columns.with_assignment(block_id, column_index)
        self._notify()

    # Drag and drop

    def on_drag_start(self, block_id: BlockId) -> None:
        self._require_block(block_id)
        self._dragged_block_id = block_id

    def on_drag_cancel(self) -> None:
        self._dragged_block_id = None

    def on_drop(self, row: int, column: int) -> LayoutResult:
        """
        Drop the dragged block on a cell

        The drag ends whether or not the drop is accepted.
        """
        block_id = self._dragged_block_id
        self._dragged_block_id = None
        if block_id is None:
            return LayoutResult(False, self._layout, RejectionReason.NO_DRAG)
        return self.assign(block_id, row, column)

    # Block list maintenance

    def set_blocks(self, blocks: Iterable[LessonBlockSchema]) -> None:
        """Replace the slide's blocks, pruning layout entries for removed ones"""
        self.blocks = list(blocks)
        if self._dragged_block_id not in self.block_ids:
            self._dragged_block_id = None
        self._columns = self._columns.prune(self.block_ids)
        self._commit(self._layout.prune(self.block_ids))

    def add_block(self, block: LessonBlockSchema) -> None:
        if block.id in self.block_ids:
            raise LayoutContractError(f"Block {block.id} already exists", block_id=block.id)
        self.blocks.append(block)
        self._notify()

    def remove_block(self, block_id: BlockId) -> None:
        self.set_blocks(block for block in self.blocks if block.id != block_id)

    def group_blocks(self, block_ids: Iterable[BlockId], group_id: Optional[str] = None) -> str:
        """
        Put blocks in one group so they are drawn linked

        Returns:
            The group id, generated when not supplied
        """
        members = list(block_ids)
        for block_id in members:
            self._require_block(block_id)

        group_id = group_id or f"group-{uuid4().hex[:12]}"
        self.blocks = [
            block.model_copy(update={"group_id": group_id}) if block.id in members else block
            for block in self.blocks
        ]
        logger.debug("blocks_grouped", slide_id=self.slide_id, group_id=group_id, blocks=members)
        self._notify()
        return group_id

    def ungroup_block(self, block_id: BlockId) -> None:
        self._require_block(block_id)
        self.blocks = [
            block.model_copy(update={"group_id": None}) if block.id == block_id else block
            for block in self.blocks
        ]
        self._notify()

    # Derived data and persistence

    def connections(self) -> List[Connection]:
        return self.inferencer.derive(self._layout, self.blocks)

    def to_dict(self) -> Dict[str, Any]:
        """Slide payload for persistence: blocks, layout and cached connections"""
        return {
            'id': self.slide_id,
            'blocks': [
                block.model_dump(by_alias=True, exclude_none=True)
                for block in self.blocks
            ],
            'layout': {**self._layout.to_dict(), **self._columns.to_dict()},
            'connections': [connection.to_dict() for connection in self.connections()],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], settings: Optional[Settings] = None,
                  **listeners: Any) -> 'SlideLayoutEditor':
        """
        Open an editor on a persisted slide payload

        Stored connections are ignored; they are derived again from the layout.

        Raises:
            LayoutDeserializationError: If the payload does not parse
        """
        try:
            schema = SlideLayoutSchema.model_validate(data)
        except ValidationError as e:
            raise LayoutDeserializationError(
                "Invalid slide payload", errors=e.errors(include_url=False)
            ) from e

        stored = schema.layout.model_dump(by_alias=True)
        layout = GridLayout.from_dict(stored)
        columns = ColumnLayout.from_dict(stored, settings=settings)
        return cls(schema.id, schema.blocks, layout, columns, settings=settings, **listeners)

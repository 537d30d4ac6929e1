"""
Block Connection Inference

Derives the overlay hints drawn on top of the grid editor: a highlight
for every block that spans more than one cell, and link lines between
blocks that share a group. Connections are recomputed from the layout
on every call and never stored as a source of truth.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from app.core.config import settings
from app.domain.schemas.layout import ConnectionKind, ConnectionSchema, LessonBlockSchema

from .base import BlockId, GridPosition
from .grid import GridLayout


@dataclass(frozen=True)
class Connection:
    """Directed display relationship between two blocks"""
    from_block: BlockId
    to_block: BlockId
    kind: ConnectionKind
    color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return ConnectionSchema(
            from_block=self.from_block,
            to_block=self.to_block,
            kind=self.kind,
            color=self.color,
        ).model_dump(by_alias=True, mode="json", exclude_none=True)


class ConnectionInferencer:
    """
    Builds span and group connections for a slide

    Args:
        color: Overlay color attached to every connection,
            defaults to settings.CONNECTION_COLOR
    """

    def __init__(self, color: Optional[str] = None):
        self.color = color or settings.CONNECTION_COLOR

    def derive_span_connections(self, layout: GridLayout,
                                blocks: Optional[Sequence[LessonBlockSchema]] = None
                                ) -> List[Connection]:
        """
        One self-referential connection per block larger than 1x1

        Order follows the block list when given, else the layout's span entries.
        """
        block_ids = [block.id for block in blocks] if blocks is not None else list(layout.spans)

        connections = []
        for block_id in block_ids:
            span = layout.span_of(block_id)
            if span.row_span > 1 or span.column_span > 1:
                connections.append(Connection(block_id, block_id, ConnectionKind.SPAN, self.color))
        return connections

    @staticmethod
    def group_members(blocks: Iterable[LessonBlockSchema]) -> Dict[str, List[BlockId]]:
        """Partition block ids by non-empty group id, groups in first-seen order"""
        groups: Dict[str, List[BlockId]] = {}
        for block in blocks:
            group_id = getattr(block, "group_id", None)
            if group_id:
                groups.setdefault(group_id, []).append(block.id)
        return groups

    def derive_group_connections(self, layout: GridLayout,
                                 blocks: Sequence[LessonBlockSchema]) -> List[Connection]:
        """
        Chain the members of each group in reading order

        Members are sorted by (row, column); unassigned members sort as
        (0, 0). A group of k blocks yields k - 1 connections.
        """
        origin = GridPosition(0, 0)
        connections = []

        for member_ids in self.group_members(blocks).values():
            if len(member_ids) < 2:
                continue

            # sorted() is stable, so ties keep block-list order
            ordered = sorted(
                member_ids,
                key=lambda block_id: (
                    (layout.position_of(block_id) or origin).row,
                    (layout.position_of(block_id) or origin).column,
                )
            )

            for current, following in zip(ordered, ordered[1:]):
                connections.append(Connection(current, following, ConnectionKind.GROUP, self.color))

        return connections

    def derive(self, layout: GridLayout,
               blocks: Sequence[LessonBlockSchema]) -> List[Connection]:
        """Span connections followed by group connections"""
        return (self.derive_span_connections(layout, blocks) +
                self.derive_group_connections(layout, blocks))

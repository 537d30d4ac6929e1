"""
Column Layout

Column-based arrangement used by slides authored before the grid editor:
one to four columns with percentage widths and a block -> column map.
Kept so those slides still load, render and can be edited.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import LayoutContractError, LayoutDeserializationError
from app.core.logging import get_logger
from app.domain.schemas.layout import ColumnLayoutSchema

from .base import BlockId

logger = get_logger(__name__)


def equal_widths(count: int) -> List[int]:
    """Split 100% into `count` integer widths, remainder on the last column"""
    width = 100 // count
    widths = [width] * count
    widths[-1] = 100 - width * (count - 1)
    return widths


@dataclass(frozen=True, eq=False)
class ColumnLayout:
    """Immutable column layout snapshot"""
    column_count: int = 1
    column_widths: Tuple[int, ...] = (100,)
    block_assignments: Mapping[BlockId, int] = field(default_factory=dict)
    settings: Optional[Settings] = field(default=None, repr=False)

    def __post_init__(self):
        if self.settings is None:
            object.__setattr__(self, "settings", default_settings)
        if self.column_count < 1:
            raise LayoutContractError("column_count must be at least 1", field="column_count")
        if len(self.column_widths) != self.column_count:
            raise LayoutContractError(
                f"Expected {self.column_count} column widths, got {len(self.column_widths)}",
                field="column_widths",
            )
        object.__setattr__(self, "column_widths", tuple(self.column_widths))
        object.__setattr__(self, "block_assignments", MappingProxyType(dict(self.block_assignments)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColumnLayout):
            return NotImplemented
        return (self.column_count == other.column_count and
                self.column_widths == other.column_widths and
                dict(self.block_assignments) == dict(other.block_assignments))

    def _replace(self, **changes: Any) -> 'ColumnLayout':
        values = {
            'column_count': self.column_count,
            'column_widths': self.column_widths,
            'block_assignments': self.block_assignments,
            'settings': self.settings,
        }
        values.update(changes)
        return ColumnLayout(**values)

    def with_column_count(self, count: int) -> 'ColumnLayout':
        """
        Switch to `count` equal-width columns

        Blocks assigned to a column that no longer exists move to column 0.
        """
        if not 1 <= count <= self.settings.MAX_COLUMN_COUNT:
            raise LayoutContractError(
                f"column count must be between 1 and {self.settings.MAX_COLUMN_COUNT}",
                field="column_count",
            )

        assignments = {
            block_id: (index if index < count else 0)
            for block_id, index in self.block_assignments.items()
        }
        return self._replace(
            column_count=count,
            column_widths=tuple(equal_widths(count)),
            block_assignments=assignments,
        )

    def with_column_width(self, index: int, value: int) -> Tuple[bool, 'ColumnLayout']:
        """
        Resize one column, taking the difference from its neighbour

        The neighbour is the next column, or the first one when the last
        column is resized. Widths outside the configured min/max are refused.

        Returns:
            Tuple of (accepted, layout)
        """
        if not 0 <= index < self.column_count:
            raise LayoutContractError(f"No column at index {index}", field="index")

        minimum = self.settings.MIN_COLUMN_WIDTH
        maximum = self.settings.MAX_COLUMN_WIDTH
        if value < minimum or value > maximum:
            logger.debug("column_width_rejected", index=index, value=value, reason="width_limit")
            return False, self

        if self.column_count == 1:
            return False, self

        diff = value - self.column_widths[index]
        widths = list(self.column_widths)
        widths[index] = value

        neighbour = index + 1 if index < self.column_count - 1 else 0
        widths[neighbour] -= diff
        if widths[neighbour] < minimum:
            logger.debug("column_width_rejected", index=index, value=value, reason="neighbour_limit")
            return False, self

        return True, self._replace(column_widths=tuple(widths))

    def with_assignment(self, block_id: BlockId, column_index: int) -> 'ColumnLayout':
        if not 0 <= column_index < self.column_count:
            raise LayoutContractError(f"No column at index {column_index}", field="column_index")
        assignments = dict(self.block_assignments)
        assignments[block_id] = column_index
        return self._replace(block_assignments=assignments)

    def blocks_in_column(self, column_index: int, block_ids: Iterable[BlockId]) -> List[BlockId]:
        """Blocks shown in a column; unassigned blocks belong to column 0"""
        return [
            block_id for block_id in block_ids
            if self.block_assignments.get(block_id, 0) == column_index
        ]

    def prune(self, block_ids: Iterable[BlockId]) -> 'ColumnLayout':
        alive = set(block_ids)
        return self._replace(block_assignments={
            k: v for k, v in self.block_assignments.items() if k in alive
        })

    def to_dict(self) -> Dict[str, Any]:
        return {
            'columnCount': self.column_count,
            'columnWidths': list(self.column_widths),
            'blockAssignments': dict(self.block_assignments),
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]],
                  settings: Optional[Settings] = None) -> 'ColumnLayout':
        settings = settings or default_settings
        if data is None:
            return cls(settings=settings)
        try:
            schema = ColumnLayoutSchema.model_validate(data)
        except ValidationError as e:
            raise LayoutDeserializationError(
                "Invalid column layout payload", errors=e.errors(include_url=False)
            ) from e

        widths = schema.column_widths
        if len(widths) != schema.column_count:
            # Widths out of sync with the count are rebuilt rather than rejected
            widths = equal_widths(schema.column_count)

        return cls(
            column_count=schema.column_count,
            column_widths=tuple(widths),
            block_assignments=schema.block_assignments,
            settings=settings,
        )

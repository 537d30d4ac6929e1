"""
Schemas for the persisted slide layout and its derived connections.

Field aliases match the camelCase JSON the authoring client stores
alongside a slide's block list.
"""
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GridPositionSchema(BaseModel):
    """Origin cell of a block."""
    row: int = Field(..., ge=0)
    column: int = Field(..., ge=0)


class BlockSpanSchema(BaseModel):
    """Extent of a block from its origin."""
    model_config = ConfigDict(populate_by_name=True)

    row_span: int = Field(default=1, ge=1, alias="rowSpan")
    column_span: int = Field(default=1, ge=1, alias="columnSpan")


class GridLayoutSchema(BaseModel):
    """
    Persisted grid layout.

    Older slides may omit the grid fields entirely; they load as a
    1x1 grid with nothing placed.
    """
    model_config = ConfigDict(populate_by_name=True)

    grid_rows: int = Field(default=1, ge=1, alias="gridRows")
    grid_columns: int = Field(default=1, ge=1, alias="gridColumns")
    block_positions: Dict[str, GridPositionSchema] = Field(
        default_factory=dict, alias="blockPositions"
    )
    block_spans: Dict[str, BlockSpanSchema] = Field(
        default_factory=dict, alias="blockSpans"
    )

    @field_validator("grid_rows", "grid_columns", mode="before")
    @classmethod
    def default_missing_dimension(cls, v):
        # Stored as null or 0 by clients that never opened the grid editor
        return v or 1

    @field_validator("block_positions", "block_spans", mode="before")
    @classmethod
    def default_missing_map(cls, v):
        return {} if v is None else v


class ConnectionKind(str, Enum):
    """Kinds of derived block connections."""
    SPAN = "span"
    GROUP = "group"


class ConnectionSchema(BaseModel):
    """Display-only relationship between two blocks."""
    model_config = ConfigDict(populate_by_name=True)

    from_block: str = Field(..., alias="from")
    to_block: str = Field(..., alias="to")
    kind: ConnectionKind
    color: Optional[str] = None


class LessonBlockSchema(BaseModel):
    """
    Block reference as the host sends it.

    Only `id`, `type` and `groupId` matter to the layout engine; any
    content fields (text, url, question, options...) are kept as-is.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    group_id: Optional[str] = Field(default=None, alias="groupId")


class ColumnLayoutSchema(BaseModel):
    """Legacy column-based slide layout."""
    model_config = ConfigDict(populate_by_name=True)

    column_count: int = Field(default=1, ge=1, alias="columnCount")
    column_widths: List[int] = Field(default_factory=lambda: [100], alias="columnWidths")
    block_assignments: Dict[str, int] = Field(default_factory=dict, alias="blockAssignments")

    @field_validator("block_assignments")
    @classmethod
    def check_assignment_indexes(cls, v: Dict[str, int]) -> Dict[str, int]:
        if any(index < 0 for index in v.values()):
            raise ValueError("column index must not be negative")
        return v


class SlideLayoutFieldsSchema(GridLayoutSchema, ColumnLayoutSchema):
    """
    Layout object stored on a slide.

    Carries the grid fields and the legacy column fields side by side.
    """


class SlideLayoutSchema(BaseModel):
    """Slide payload handed to and returned by the layout editor."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    blocks: List[LessonBlockSchema] = Field(default_factory=list)
    layout: SlideLayoutFieldsSchema = Field(default_factory=SlideLayoutFieldsSchema)
    connections: List[ConnectionSchema] = Field(default_factory=list)

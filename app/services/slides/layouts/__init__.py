"""
Slide Layout Package

Grid layout engine for lesson slides: block placement on a resizable
grid, overlap validation, connection inference and the editor that
hosts them.
"""

from .base import (
    BlockSpan,
    CellRect,
    GridPlacement,
    GridPosition,
    LayoutResult,
    RejectionReason,
)
from .overlap import OverlapValidator
from .grid import GridLayout
from .connections import Connection, ConnectionInferencer
from .columns import ColumnLayout
from .editor import SlideLayoutEditor

__all__ = [
    # Geometry records
    'BlockSpan',
    'CellRect',
    'GridPlacement',
    'GridPosition',
    'LayoutResult',
    'RejectionReason',

    # Grid engine
    'GridLayout',
    'OverlapValidator',

    # Connections
    'Connection',
    'ConnectionInferencer',

    # Legacy columns
    'ColumnLayout',

    # Host boundary
    'SlideLayoutEditor',
]

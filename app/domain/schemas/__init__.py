"""
Domain schemas for the LessonGrid layout engine.
"""

from .layout import *

__all__ = [
    "GridPositionSchema",
    "BlockSpanSchema",
    "GridLayoutSchema",
    "ConnectionKind",
    "ConnectionSchema",
    "LessonBlockSchema",
    "ColumnLayoutSchema",
    "SlideLayoutFieldsSchema",
    "SlideLayoutSchema",
]

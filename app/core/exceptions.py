"""
Custom exceptions for the layout engine.

Expected rejections (occupied cell, overlap, out of bounds) are not
exceptions; they come back as falsy results. These classes cover
programming errors in the host and malformed persisted data.
"""
from typing import Any, Dict, Optional


class LessonGridException(Exception):
    """Base exception for all LessonGrid exceptions."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class LayoutContractError(LessonGridException):
    """A layout operation was called with input no well-behaved host sends."""

    def __init__(self, message: str, field: Optional[str] = None, **details: Any):
        if field:
            details["field"] = field
        super().__init__(message, details=details)


class UnknownBlockError(LayoutContractError):
    """Operation targeted a block that is not positioned in the layout."""

    def __init__(self, block_id: str, operation: str):
        message = f"Block {block_id} has no position; cannot {operation}"
        super().__init__(message, block_id=block_id, operation=operation)


class LayoutDeserializationError(LessonGridException):
    """Persisted layout payload could not be parsed."""

    def __init__(self, message: str, errors: Optional[list] = None):
        details = {"errors": errors} if errors else {}
        super().__init__(message, details=details)

"""Slide services package.

Currently hosts the grid layout engine used by the lesson editor.
"""

from .layouts import ConnectionInferencer, GridLayout, SlideLayoutEditor

__all__ = [
    "ConnectionInferencer",
    "GridLayout",
    "SlideLayoutEditor",
]

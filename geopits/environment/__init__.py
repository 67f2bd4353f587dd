"""Grid addressing for geopits."""

from .grid import Cell, CellBounds, GridIndex
from .helpers import render_ascii_window

__all__ = [
    "Cell",
    "CellBounds",
    "GridIndex",
    "render_ascii_window",
]

"""Grid addressing for geographic coordinates.

Continuous ``(lat, lng)`` positions are mapped onto square cells of
``cell_size`` degrees. Cell ``(i, j)`` covers latitudes
``[i * cell_size, (i + 1) * cell_size)`` and longitudes
``[j * cell_size, (j + 1) * cell_size)``.

Every ``Cell`` handed out by a ``GridIndex`` is canonical: asking for the same
``(i, j)`` twice returns the very same object, so callers may key dictionaries
or compare with ``is`` without re-deriving coordinate strings.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Tuple

from ..errors import ConfigurationError


@dataclass(frozen=True)
class Cell:
    """One tile of the grid."""

    i: int
    j: int

    @property
    def key(self) -> str:
        """Stable string key used by the pit store and serialized mementos."""
        return f"{self.i},{self.j}"


@dataclass(frozen=True)
class CellBounds:
    """Geographic rectangle covered by a cell (half-open on the max edges)."""

    lat_min: float
    lng_min: float
    lat_max: float
    lng_max: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.lat_min <= lat < self.lat_max and self.lng_min <= lng < self.lng_max

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.lat_min, self.lng_min, self.lat_max, self.lng_max)

    def corners(self) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        """South-west and north-east corners, the shape map widgets expect."""
        return ((self.lat_min, self.lng_min), (self.lat_max, self.lng_max))


class GridIndex:
    """Canonicalizing index from coordinates to cells.

    Attributes:
        cell_size: Edge length of one cell in coordinate units (degrees)
        visibility_radius: Default neighborhood half-width used by
            ``cells_near_point``
    """

    def __init__(self, cell_size: float, visibility_radius: int = 0):
        """
        Initialize a grid index.

        Args:
            cell_size: Cell edge length (must be positive and finite)
            visibility_radius: Neighborhood half-width in cells (must be >= 0)

        Raises:
            ConfigurationError: If either value is out of range
        """
        if not (cell_size > 0 and math.isfinite(cell_size)):
            raise ConfigurationError(f"cell_size must be a positive number: {cell_size}")
        if visibility_radius < 0:
            raise ConfigurationError(
                f"visibility_radius must be non-negative: {visibility_radius}"
            )

        self.cell_size = cell_size
        self.visibility_radius = visibility_radius
        self._cells: Dict[Tuple[int, int], Cell] = {}

    def __len__(self) -> int:
        """Number of distinct cells handed out so far."""
        return len(self._cells)

    def cell(self, i: int, j: int) -> Cell:
        """Return the canonical cell for ``(i, j)`` (first-seen wins)."""
        key = (i, j)
        found = self._cells.get(key)
        if found is not None:
            return found
        canonical = Cell(i, j)
        self._cells[key] = canonical
        return canonical

    def cell_for_point(self, lat: float, lng: float) -> Cell:
        """Return the canonical cell containing ``(lat, lng)``."""
        return self.cell(self._axis_index(lat), self._axis_index(lng))

    def _axis_index(self, value: float) -> int:
        index = math.floor(value / self.cell_size)
        # Division can round across a cell edge; nudge so bounds_for_cell
        # (computed by multiplication) always contains the value.
        if index * self.cell_size > value:
            index -= 1
        elif (index + 1) * self.cell_size <= value:
            index += 1
        return index

    def bounds_for_cell(self, cell: Cell) -> CellBounds:
        size = self.cell_size
        return CellBounds(
            lat_min=cell.i * size,
            lng_min=cell.j * size,
            lat_max=(cell.i + 1) * size,
            lng_max=(cell.j + 1) * size,
        )

    def neighborhood(self, center: Cell, radius: int) -> List[Cell]:
        """Return the ``(2 * radius + 1) ** 2`` cells around ``center``.

        Order is row-major: the outer loop walks ``i`` offsets, the inner loop
        ``j`` offsets, both from ``-radius`` to ``radius``. The center itself is
        included.

        Raises:
            ValueError: If radius is negative
        """
        if radius < 0:
            raise ValueError(f"radius must be non-negative: {radius}")

        cells: List[Cell] = []
        for di in range(-radius, radius + 1):
            for dj in range(-radius, radius + 1):
                cells.append(self.cell(center.i + di, center.j + dj))
        return cells

    def cells_near_point(self, lat: float, lng: float) -> List[Cell]:
        """Neighborhood of the point's cell at the configured visibility radius."""
        return self.neighborhood(self.cell_for_point(lat, lng), self.visibility_radius)

    def center_of_cell(self, cell: Cell) -> Tuple[float, float]:
        """Midpoint of the cell, handy for placing a player exactly on a tile."""
        bounds = self.bounds_for_cell(cell)
        return (
            (bounds.lat_min + bounds.lat_max) / 2,
            (bounds.lng_min + bounds.lng_max) / 2,
        )

    @staticmethod
    def describe_cell(cell: Cell) -> str:
        return f"({cell.i}, {cell.j})"

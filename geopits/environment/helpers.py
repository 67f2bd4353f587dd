"""Helper utilities for inspecting the grid from a terminal."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional

from .grid import Cell, GridIndex


_DEFAULT_TILE_SYMBOLS: Dict[str, str] = {
    "player": "@ ",
    "empty_pit": "o ",
    "ground": ". ",
}


def render_ascii_window(
    grid: GridIndex,
    center: Cell,
    *,
    radius: int,
    pits: Optional[Mapping[Cell, int]] = None,
    player: Optional[Cell] = None,
    symbols: Optional[Dict[str, str]] = None,
) -> str:
    """Render the neighborhood around ``center`` as text, north at the top.

    Pits show their token count (``9`` for nine or more), empty pits ``o`` and
    the player's cell ``@``. ``pits`` maps cells to token counts; cells are
    looked up by identity-equal canonical ``Cell`` values from ``grid``.
    """

    mapping = {**_DEFAULT_TILE_SYMBOLS}
    if symbols:
        mapping.update(symbols)
    pits = pits or {}

    radius = max(int(radius), 0)
    lines: List[str] = []
    for di in range(radius, -radius - 1, -1):
        row: List[str] = []
        for dj in range(-radius, radius + 1):
            cell = grid.cell(center.i + di, center.j + dj)
            if player is not None and cell == player:
                row.append(mapping["player"])
            elif cell in pits:
                count = pits[cell]
                row.append(f"{min(count, 9)} " if count else mapping["empty_pit"])
            else:
                row.append(mapping["ground"])
        lines.append("".join(row).rstrip())

    return "\n".join(lines)

"""Tests for environment helper utilities."""

from geopits.environment import GridIndex, render_ascii_window


def test_render_ascii_window_puts_north_on_top():
    grid = GridIndex(1.0)
    center = grid.cell(0, 0)

    text = render_ascii_window(
        grid,
        center,
        radius=1,
        pits={grid.cell(1, 1): 3, grid.cell(-1, -1): 0},
        player=center,
    )

    assert text.splitlines() == [
        ". . 3",
        ". @ .",
        "o . .",
    ]


def test_render_ascii_window_caps_counts_and_accepts_symbols():
    grid = GridIndex(1.0)
    center = grid.cell(5, 5)

    text = render_ascii_window(
        grid,
        center,
        radius=0,
        pits={center: 14},
    )
    assert text == "9"

    text = render_ascii_window(grid, center, radius=1, symbols={"ground": "_ "})
    assert text.splitlines() == ["_ _ _"] * 3

"""
World controller: the thin layer between player input and the game core.

On every move it asks the GridIndex for the visible neighborhood, decides
which of those cells hold a pit, materializes the pits through the CacheStore
and hands back read-only views. Player actions (collect/deposit) are forwarded
to the store. Session save/load goes through an injected PersistenceStrategy.

Nothing here renders anything; callers turn ``VisibleWorld`` into map markers,
buttons or terminal text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from .cache_store import CacheStore
from .config import Config
from .environment.grid import Cell, CellBounds, GridIndex
from .errors import ConfigurationError
from .logging_utils import log_info, log_success
from .luck import LuckFunction, luck
from .persistence import (
    SESSION_BLOBS,
    PersistenceStrategy,
    decode_session,
    encode_session,
)
from .schemas import PlayerInventory, SessionSnapshot, Token, TrailPoint


@dataclass(frozen=True)
class PitView:
    """Read model for one visible pit."""

    cell: Cell
    label: str
    bounds: CellBounds
    tokens: Tuple[Token, ...]

    @property
    def value(self) -> int:
        return len(self.tokens)


@dataclass(frozen=True)
class VisibleWorld:
    """Everything a UI needs after a move."""

    position: Tuple[float, float]
    player_cell: Cell
    cells: Tuple[Cell, ...]
    pits: Tuple[PitView, ...]
    points: int

    def pit_at(self, cell: Cell) -> Optional[PitView]:
        for pit in self.pits:
            if pit.cell is cell:
                return pit
        return None


MoveListener = Callable[[VisibleWorld], None]


@dataclass
class WorldController:
    """Orchestrates grid queries, pit materialization and player actions.

    Construct it, optionally ``await load_session(...)``, then call
    ``refresh()`` (or move) to get the first ``VisibleWorld``. Pits are only
    touched on refresh, so a session restored beforehand always wins over
    procedural generation.
    """

    grid: GridIndex
    store: CacheStore
    spawn_probability: float = 0.1
    origin: Tuple[float, float] = (0.0, 0.0)
    luck_fn: LuckFunction = luck
    inventory: PlayerInventory = field(default_factory=PlayerInventory)
    move_listeners: List[MoveListener] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not 0 <= self.spawn_probability < 1:
            raise ConfigurationError(
                f"spawn_probability must be in [0, 1): {self.spawn_probability}"
            )
        self.position: Tuple[float, float] = self.origin
        self.trail: List[TrailPoint] = [TrailPoint(lat=self.origin[0], lng=self.origin[1])]
        self.visible: Optional[VisibleWorld] = None

    @classmethod
    def from_config(cls, config: type[Config] = Config, **overrides) -> "WorldController":
        """Build a controller (grid, store, origin) from ``Config`` values."""
        config.validate()
        grid = GridIndex(config.CELL_SIZE, config.VISIBILITY_RADIUS)
        store = CacheStore(config.MAX_INITIAL_TOKENS)
        params = {
            "spawn_probability": config.SPAWN_PROBABILITY,
            "origin": (config.ORIGIN_LAT, config.ORIGIN_LNG),
        }
        params.update(overrides)
        return cls(grid=grid, store=store, **params)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def player_cell(self) -> Cell:
        return self.grid.cell_for_point(*self.position)

    @property
    def points(self) -> int:
        return self.inventory.points

    def status_text(self) -> str:
        if self.points == 0:
            return "No points yet..."
        return f"{self.points} points accumulated"

    def has_pit(self, cell: Cell) -> bool:
        """Whether ``cell`` holds a pit. Same answer for the same cell, every session."""
        return self.luck_fn(cell.i, cell.j) < self.spawn_probability

    def pit_view(self, cell: Cell) -> PitView:
        return PitView(
            cell=cell,
            label=self.grid.describe_cell(cell),
            bounds=self.grid.bounds_for_cell(cell),
            tokens=tuple(self.store.contents(cell)),
        )

    # ------------------------------------------------------------------
    # Movement
    # ------------------------------------------------------------------

    def move_to(self, lat: float, lng: float) -> VisibleWorld:
        """Handle a new position sample."""
        self.position = (lat, lng)
        self.trail.append(TrailPoint(lat=lat, lng=lng))
        return self.refresh()

    def step(self, di: int, dj: int) -> VisibleWorld:
        """Move by whole cells (positive ``di`` is north, positive ``dj`` east)."""
        lat, lng = self.position
        size = self.grid.cell_size
        return self.move_to(lat + di * size, lng + dj * size)

    def refresh(self) -> VisibleWorld:
        """Recompute the visible neighborhood, evicting pits that left view."""
        cells = self.grid.cells_near_point(*self.position)
        pit_cells = [cell for cell in cells if self.has_pit(cell)]
        self.store.retain_only(pit_cells)

        world = VisibleWorld(
            position=self.position,
            player_cell=self.player_cell,
            cells=tuple(cells),
            pits=tuple(self.pit_view(cell) for cell in pit_cells),
            points=self.points,
        )
        self.visible = world
        for listener in self.move_listeners:
            listener(world)
        return world

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def collect(self, cell: Cell) -> Optional[Token]:
        """Take the top token from the pit in ``cell``. None if it is empty or there is no pit."""
        if not self.has_pit(cell):
            return None
        return self.store.withdraw(cell, self.inventory)

    def deposit(self, cell: Cell) -> Optional[Token]:
        """Drop the player's most recent token into the pit in ``cell``.

        None if the player holds nothing or ``cell`` has no pit.
        """
        if not self.has_pit(cell):
            return None
        return self.store.deposit_from_player(cell, self.inventory)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            mementos=self.store.snapshot_all(),
            player_inventory=list(self.inventory.tokens),
            trail=list(self.trail),
        )

    async def save_session(self, persistence: PersistenceStrategy) -> None:
        snapshot = self.snapshot()
        await persistence.save_blobs(encode_session(snapshot))
        log_success(
            f"Saved session: {len(snapshot.mementos)} pit(s), "
            f"{len(snapshot.player_inventory)} token(s), {len(snapshot.trail)} trail point(s)"
        )

    async def load_session(self, persistence: PersistenceStrategy) -> VisibleWorld:
        """Restore a saved session and return the refreshed view.

        Mementos are restored before any pit is touched. The player resumes at
        the last trail point, or at the origin when no trail was saved.
        """
        snapshot = decode_session(await persistence.load_blobs(SESSION_BLOBS))
        restored = self.store.restore_all(snapshot.mementos)
        self.inventory = PlayerInventory(tokens=snapshot.player_inventory)

        if snapshot.trail:
            self.trail = list(snapshot.trail)
            last = snapshot.trail[-1]
            self.position = (last.lat, last.lng)
        log_info(
            f"Loaded session: {restored} pit(s), {self.points} token(s), "
            f"{len(snapshot.trail)} trail point(s)"
        )
        return self.refresh()

    async def reset_session(self, persistence: PersistenceStrategy) -> VisibleWorld:
        """Erase saved and in-memory state and start over at the origin."""
        for name in SESSION_BLOBS:
            await persistence.delete_blob(name)
        self.store.clear()
        self.inventory = PlayerInventory()
        self.position = self.origin
        self.trail = [TrailPoint(lat=self.origin[0], lng=self.origin[1])]
        log_info("Session erased")
        return self.refresh()

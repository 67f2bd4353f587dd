"""
Sparse per-cell pit store with memento persistence.

Each cell key moves through three states:

- UNKNOWN: no memento yet. The first access seeds the pit from the procedural
  generator and immediately writes a memento.
- STORED: a memento exists but no live ``PitState`` is loaded (never touched
  this session, or evicted when the cell scrolled out of view). The next access
  rebuilds the pit from the memento, never from the generator.
- LOADED: a live ``PitState`` is held in memory alongside its memento.

The memento table only grows; mutations overwrite a pit's entry in place.
The store works on already-resolved ``Cell`` values and never consults a
``GridIndex`` itself.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from .environment.grid import Cell
from .errors import ConfigurationError, InvariantViolation, MalformedMementoError
from .logging_utils import log_error, log_grid
from .luck import LuckFunction, luck
from .memento import from_memento, to_memento
from .schemas import Memento, PitState, PlayerInventory, Token

# Third key part of the initial-contents draw
INITIAL_VALUE_SALT = "initialValue"


class PitStatus(str, Enum):
    UNKNOWN = "unknown"
    STORED = "stored"
    LOADED = "loaded"


class CacheStore:
    """Owns every pit's contents and their mementos.

    Args:
        max_initial_tokens: Exclusive upper bound on a fresh pit's token count
        luck_fn: Deterministic ``[0, 1)`` function of its arguments; override in tests
        strict: Raise ``InvariantViolation`` on broken internal contracts
            (default). When False they are logged and the call becomes a no-op.
        verbose: Log materialization and eviction events
    """

    def __init__(
        self,
        max_initial_tokens: int = 4,
        *,
        luck_fn: LuckFunction = luck,
        strict: bool = True,
        verbose: bool = False,
    ):
        if max_initial_tokens < 1:
            raise ConfigurationError(
                f"max_initial_tokens must be at least 1: {max_initial_tokens}"
            )

        self.max_initial_tokens = max_initial_tokens
        self.luck_fn = luck_fn
        self.strict = strict
        self.verbose = verbose

        # cell key -> latest memento (source of current truth)
        self._mementos: Dict[str, Memento] = {}
        # cell key -> live pit for cells currently in view
        self._live: Dict[str, PitState] = {}

    def __len__(self) -> int:
        return len(self._mementos)

    # ------------------------------------------------------------------
    # State inspection
    # ------------------------------------------------------------------

    def status(self, cell: Cell) -> PitStatus:
        key = cell.key
        if key in self._live:
            return PitStatus.LOADED
        if key in self._mementos:
            return PitStatus.STORED
        return PitStatus.UNKNOWN

    def has_memento(self, cell: Cell) -> bool:
        return cell.key in self._mementos

    def memento_for(self, cell: Cell) -> Optional[Memento]:
        return self._mementos.get(cell.key)

    @property
    def live_keys(self) -> List[str]:
        return list(self._live)

    # ------------------------------------------------------------------
    # Procedural generation
    # ------------------------------------------------------------------

    def initial_count(self, cell: Cell) -> int:
        """Token count a never-visited pit starts with, in ``[0, max_initial_tokens)``."""
        draw = self.luck_fn(cell.i, cell.j, INITIAL_VALUE_SALT)
        count = math.floor(draw * self.max_initial_tokens)
        return min(max(count, 0), self.max_initial_tokens - 1)

    def procedural_fill(self, cell: Cell) -> PitState:
        """Build the first-touch contents of ``cell`` without storing anything."""
        count = self.initial_count(cell)
        tokens = [Token(owner_i=cell.i, owner_j=cell.j, serial=serial) for serial in range(count)]
        return PitState(cell_key=cell.key, tokens=tokens)

    # ------------------------------------------------------------------
    # Materialization
    # ------------------------------------------------------------------

    def materialize_if_absent(self, cell: Cell) -> PitState:
        """Return a snapshot of the pit for ``cell``, creating or re-hydrating it as needed.

        The returned ``PitState`` is a copy; changing it does not touch the store.
        Use ``withdraw``/``deposit`` to mutate a pit.
        """
        return self._live_pit(cell).model_copy(deep=True)

    def _live_pit(self, cell: Cell) -> PitState:
        key = cell.key
        live = self._live.get(key)
        if live is not None:
            return live

        pit: Optional[PitState] = None
        memento = self._mementos.get(key)
        if memento is not None:
            try:
                pit = from_memento(memento)
            except MalformedMementoError as exc:
                log_error(f"{exc}; regenerating pit {key}")
            else:
                if self.verbose:
                    log_grid(f"Re-hydrated pit {key} ({len(pit)} tokens)")

        if pit is None:
            pit = self.procedural_fill(cell)
            self._mementos[key] = to_memento(pit)
            if self.verbose:
                log_grid(f"Generated pit {key} ({len(pit)} tokens)")

        self._live[key] = pit
        return pit

    def contents(self, cell: Cell) -> List[Token]:
        """Copy of the pit's tokens, bottom to top."""
        return list(self._live_pit(cell).tokens)

    def evict(self, cell: Cell) -> bool:
        """Drop the live pit for ``cell``; its memento stays. Returns True if one was loaded."""
        return self._live.pop(cell.key, None) is not None

    def retain_only(self, cells: Iterable[Cell]) -> int:
        """Evict every live pit whose cell is not in ``cells``. Returns the number evicted."""
        keep = {cell.key for cell in cells}
        stale = [key for key in self._live if key not in keep]
        for key in stale:
            del self._live[key]
        if stale and self.verbose:
            log_grid(f"Evicted {len(stale)} pit(s) from view")
        return len(stale)

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def withdraw(self, cell: Cell, inventory: PlayerInventory) -> Optional[Token]:
        """Move the pit's top token to the player. None (and no change) if the pit is empty."""
        pit = self._live_pit(cell)
        token = pit.pop()
        if token is None:
            return None
        inventory.push(token)
        self._record(pit)
        return token

    def deposit(self, cell: Cell, token: Token, inventory: PlayerInventory) -> bool:
        """Move ``token`` from the player onto the top of the pit.

        The token keeps its original owner and serial. Returns False when the
        player does not hold the token (only reachable if the caller bypassed
        the player's stack; raises in strict mode).
        """
        pit = self._live_pit(cell)
        if not inventory.remove(token):
            self._violation(f"deposit of {token.label} into {pit.cell_key}: token not held by player")
            return False
        pit.push(token)
        self._record(pit)
        return True

    def deposit_from_player(self, cell: Cell, inventory: PlayerInventory) -> Optional[Token]:
        """Deposit the player's most recently collected token. None if the player holds nothing."""
        token = inventory.peek()
        if token is None:
            return None
        self.deposit(cell, token, inventory)
        return token

    # ------------------------------------------------------------------
    # Snapshot / restore
    # ------------------------------------------------------------------

    def snapshot_all(self) -> List[Memento]:
        """Every pit's current memento, in first-materialized order."""
        return list(self._mementos.values())

    def restore_all(self, mementos: Sequence[Memento]) -> int:
        """Load saved mementos so the matching cells skip procedural generation.

        Intended to run at session start before any pit is touched. A live pit
        for a restored key is dropped so the next access reflects the restored
        contents. Entries that fail to decode are logged and skipped, leaving
        that cell UNKNOWN.

        Returns:
            Number of mementos accepted
        """
        restored = 0
        for memento in mementos:
            try:
                from_memento(memento)
            except MalformedMementoError as exc:
                log_error(f"{exc}; dropping entry")
                continue
            self._mementos[memento.cell_key] = memento
            self._live.pop(memento.cell_key, None)
            restored += 1
        return restored

    def clear(self) -> None:
        """Forget every pit (used when a session is erased)."""
        self._mementos.clear()
        self._live.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _record(self, pit: PitState) -> None:
        self._mementos[pit.cell_key] = to_memento(pit)

    def _violation(self, message: str) -> None:
        if self.strict:
            raise InvariantViolation(message)
        log_error(f"Invariant violation ignored: {message}")

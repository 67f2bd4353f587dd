"""
Geopits - location-based token collecting game core.

A player walks a geographic grid, finds pits holding tokens, and moves tokens
between pits and their own inventory. The core provides:

- GridIndex: canonical cells, cell bounds and neighborhoods
- CacheStore: lazily generated pit contents with memento persistence
- WorldController: the thin orchestrator tying both to player input

No rendering, no geolocation, no storage transport; persistence backends are
injected by the caller.
"""

__version__ = "0.1.0"

from .world import WorldController, VisibleWorld, PitView
from .cache_store import CacheStore, PitStatus
from .environment import Cell, CellBounds, GridIndex, render_ascii_window
from .memento import (
    serialize_tokens,
    deserialize_tokens,
    to_memento,
    from_memento,
)
from .persistence import (
    PersistenceStrategy,
    InMemoryPersistence,
    JsonPersistence,
    encode_session,
    decode_session,
)
from .schemas import (
    Token,
    PitState,
    PlayerInventory,
    Memento,
    TrailPoint,
    SessionSnapshot,
)
from .errors import (
    GeopitsError,
    ConfigurationError,
    MalformedMementoError,
    InvariantViolation,
)

__all__ = [
    # Orchestration
    "WorldController",
    "VisibleWorld",
    "PitView",
    # Pit store
    "CacheStore",
    "PitStatus",
    # Grid
    "Cell",
    "CellBounds",
    "GridIndex",
    "render_ascii_window",
    # Memento codec
    "serialize_tokens",
    "deserialize_tokens",
    "to_memento",
    "from_memento",
    # Persistence
    "PersistenceStrategy",
    "InMemoryPersistence",
    "JsonPersistence",
    "encode_session",
    "decode_session",
    # Schemas
    "Token",
    "PitState",
    "PlayerInventory",
    "Memento",
    "TrailPoint",
    "SessionSnapshot",
    # Errors
    "GeopitsError",
    "ConfigurationError",
    "MalformedMementoError",
    "InvariantViolation",
]

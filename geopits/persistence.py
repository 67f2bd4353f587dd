"""
PersistenceStrategy interface for the session blob store.

The game core only defines the bytes it produces and consumes. Getting those
bytes to and from storage is the job of a PersistenceStrategy: a small async
key-value store of named text blobs.

A session is saved as three blobs:

- ``mementos``: JSON list of ``{"cell_key", "serialized_tokens"}`` records
- ``playerInventory``: JSON list of tokens, bottom of the player's stack first
- ``trail``: JSON list of ``{"lat", "lng"}`` visited positions

Two included implementations:
1. InMemoryPersistence - Dict-based storage, data lost on exit (testing)
2. JsonPersistence - One file per blob in a directory (local play)

Usage pattern:
    persistence = JsonPersistence("saves")
    await persistence.initialize()
    await persistence.save_blobs(encode_session(snapshot))
    snapshot = decode_session(await persistence.load_blobs(SESSION_BLOBS))
    await persistence.close()
"""

import asyncio
import json
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import TypeAdapter, ValidationError

from .errors import MalformedMementoError
from .logging_utils import log_error, log_warning
from .schemas import Memento, SessionSnapshot, Token, TrailPoint

MEMENTOS_BLOB = "mementos"
PLAYER_INVENTORY_BLOB = "playerInventory"
TRAIL_BLOB = "trail"
SESSION_BLOBS = (MEMENTOS_BLOB, PLAYER_INVENTORY_BLOB, TRAIL_BLOB)

_MEMENTO_LIST = TypeAdapter(List[Memento])
_TOKEN_LIST = TypeAdapter(List[Token])
_TRAIL = TypeAdapter(List[TrailPoint])

_BLOB_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")


class PersistenceStrategy(ABC):
    """Abstract base class for the session blob store.

    All methods are async so file or network backed stores never block the
    game loop. initialize() and close() bracket a session.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the backend (create directories, open connections)."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources. Stored data must survive close()."""
        pass

    @abstractmethod
    async def save_blob(self, name: str, data: str) -> None:
        """
        Store ``data`` under ``name``, replacing any previous value.

        Args:
            name: Blob name (letters, digits, ``_``, ``-``, ``.``)
            data: Encoded payload
        """
        pass

    @abstractmethod
    async def load_blob(self, name: str) -> Optional[str]:
        """
        Retrieve a blob.

        Returns:
            The stored payload, or None if nothing was saved under ``name``
        """
        pass

    @abstractmethod
    async def delete_blob(self, name: str) -> None:
        """Remove a blob. Deleting a missing blob is not an error."""
        pass

    async def save_blobs(self, blobs: Mapping[str, str]) -> None:
        for name, data in blobs.items():
            await self.save_blob(name, data)

    async def load_blobs(self, names: Iterable[str]) -> Dict[str, Optional[str]]:
        return {name: await self.load_blob(name) for name in names}


class InMemoryPersistence(PersistenceStrategy):
    """Dict-backed blob store. Data is lost when the process exits."""

    def __init__(self):
        self.blobs: Dict[str, str] = {}

    async def initialize(self) -> None:
        pass

    async def close(self) -> None:
        # Keep data after close so tests can inspect what was written.
        pass

    async def save_blob(self, name: str, data: str) -> None:
        self.blobs[_check_name(name)] = data

    async def load_blob(self, name: str) -> Optional[str]:
        return self.blobs.get(_check_name(name))

    async def delete_blob(self, name: str) -> None:
        self.blobs.pop(_check_name(name), None)


class JsonPersistence(PersistenceStrategy):
    """File-based blob store: ``{base_path}/{name}.json`` per blob.

    Writes go to a temporary sibling first and are moved into place, so a crash
    mid-save leaves the previous blob intact. File I/O runs in a worker thread
    (``asyncio.to_thread``) to keep the event loop responsive.
    """

    def __init__(self, base_path: Path | str = "saves"):
        self.base_path = Path(base_path)

    async def initialize(self) -> None:
        await asyncio.to_thread(self.base_path.mkdir, parents=True, exist_ok=True)

    async def close(self) -> None:
        return None

    async def save_blob(self, name: str, data: str) -> None:
        path = self._path(name)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_name(path.name + ".tmp")
            tmp.write_text(data, "utf-8")
            tmp.replace(path)

        await asyncio.to_thread(_write)

    async def load_blob(self, name: str) -> Optional[str]:
        path = self._path(name)

        def _read() -> Optional[str]:
            try:
                return path.read_text("utf-8")
            except FileNotFoundError:
                return None

        return await asyncio.to_thread(_read)

    async def delete_blob(self, name: str) -> None:
        path = self._path(name)
        await asyncio.to_thread(path.unlink, missing_ok=True)

    def _path(self, name: str) -> Path:
        return self.base_path / f"{_check_name(name)}.json"


def _check_name(name: str) -> str:
    if not _BLOB_NAME.match(name):
        raise ValueError(f"Invalid blob name: {name!r}")
    return name


# ============================================================================
# Session codec
# ============================================================================


def encode_session(snapshot: SessionSnapshot) -> Dict[str, str]:
    """Encode a snapshot into the three named session blobs."""
    return {
        MEMENTOS_BLOB: _MEMENTO_LIST.dump_json(snapshot.mementos).decode("utf-8"),
        PLAYER_INVENTORY_BLOB: _TOKEN_LIST.dump_json(snapshot.player_inventory).decode("utf-8"),
        TRAIL_BLOB: _TRAIL.dump_json(snapshot.trail).decode("utf-8"),
    }


def decode_mementos(blob: str) -> List[Memento]:
    """Decode the ``mementos`` blob, dropping individual records that are malformed.

    Only the outer record shape is checked here; token payloads are validated
    by ``CacheStore.restore_all``.

    Raises:
        MalformedMementoError: If the blob is not a JSON list at all
    """
    try:
        raw = json.loads(blob)
    except (TypeError, ValueError) as exc:
        raise MalformedMementoError(None, f"mementos blob is not JSON ({exc})") from exc
    if not isinstance(raw, list):
        raise MalformedMementoError(None, "mementos blob is not a list")

    mementos: List[Memento] = []
    for position, item in enumerate(raw):
        try:
            mementos.append(Memento.model_validate(item))
        except ValidationError:
            log_warning(f"Dropping malformed memento record #{position}: {_preview(item)}")
    return mementos


def decode_inventory(blob: str) -> List[Token]:
    try:
        return _TOKEN_LIST.validate_json(blob)
    except ValidationError as exc:
        raise MalformedMementoError(None, f"playerInventory blob invalid ({exc.error_count()} error(s))") from exc


def decode_trail(blob: str) -> List[TrailPoint]:
    try:
        return _TRAIL.validate_json(blob)
    except ValidationError as exc:
        raise MalformedMementoError(None, f"trail blob invalid ({exc.error_count()} error(s))") from exc


def decode_session(blobs: Mapping[str, Optional[str]]) -> SessionSnapshot:
    """Decode whatever session blobs are present.

    Missing blobs decode as empty. A blob that fails to decode is logged and
    treated as empty so one corrupt entry never aborts a session load.
    """
    snapshot = SessionSnapshot()
    decoders = (
        (MEMENTOS_BLOB, "mementos", decode_mementos),
        (PLAYER_INVENTORY_BLOB, "player_inventory", decode_inventory),
        (TRAIL_BLOB, "trail", decode_trail),
    )
    for blob_name, field_name, decoder in decoders:
        blob = blobs.get(blob_name)
        if blob is None:
            continue
        try:
            setattr(snapshot, field_name, decoder(blob))
        except MalformedMementoError as exc:
            log_error(f"{exc}; starting with empty {blob_name}")
    return snapshot


def _preview(item: Any, limit: int = 60) -> str:
    text = repr(item)
    return text if len(text) <= limit else text[: limit - 3] + "..."

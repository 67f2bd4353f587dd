"""
Memento codec for pit contents.

Serialization is a pure function pair over token sequences:

    deserialize_tokens(serialize_tokens(tokens)) == tokens

The wire form is a compact JSON array of field-tagged records, e.g.
``[{"owner_i":5,"owner_j":5,"serial":0}]``. Order, owners and serials are
preserved exactly. Any blob that does not validate back into a list of tokens
raises ``MalformedMementoError``.
"""

from typing import List, Optional, Sequence

from pydantic import TypeAdapter, ValidationError

from .errors import MalformedMementoError
from .schemas import Memento, PitState, Token

_TOKEN_LIST = TypeAdapter(List[Token])


def serialize_tokens(tokens: Sequence[Token]) -> str:
    return _TOKEN_LIST.dump_json(list(tokens)).decode("utf-8")


def deserialize_tokens(blob: str, *, cell_key: Optional[str] = None) -> List[Token]:
    """Decode a token sequence produced by ``serialize_tokens``.

    Raises:
        MalformedMementoError: If the blob is not a JSON list of valid tokens
    """
    if not isinstance(blob, (str, bytes)):
        raise MalformedMementoError(cell_key, f"expected a string blob, got {type(blob).__name__}")
    try:
        return _TOKEN_LIST.validate_json(blob)
    except ValidationError as exc:
        raise MalformedMementoError(cell_key, f"{exc.error_count()} validation error(s)") from exc


def to_memento(pit: PitState) -> Memento:
    return Memento(cell_key=pit.cell_key, serialized_tokens=serialize_tokens(pit.tokens))


def from_memento(memento: Memento) -> PitState:
    """Rebuild live pit state from a memento.

    Raises:
        MalformedMementoError: If the memento's payload cannot be decoded
    """
    tokens = deserialize_tokens(memento.serialized_tokens, cell_key=memento.cell_key)
    return PitState(cell_key=memento.cell_key, tokens=tokens)

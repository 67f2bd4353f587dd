"""
Pydantic schemas for geopits game state.

Everything that crosses the persistence boundary is defined here so it can be
validated on the way back in:

- ``Token``: an immutable collectible with identity ``(owner_i, owner_j, serial)``
- ``PitState``: live contents of one pit (a stack of tokens)
- ``Memento``: opaque serialized snapshot of one pit, keyed by cell key
- ``PlayerInventory``: the player's own token stack
- ``TrailPoint`` / ``SessionSnapshot``: what is written at session end
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Token(BaseModel):
    """A collectible minted in a cell.

    ``(owner_i, owner_j)`` is the cell the token was minted in and ``serial``
    tells apart tokens minted in the same cell. Tokens move between pits and the
    player but are never re-minted, so the triple stays globally unique.
    """

    model_config = ConfigDict(frozen=True)

    owner_i: int = Field(..., description="Row index of the minting cell")
    owner_j: int = Field(..., description="Column index of the minting cell")
    serial: int = Field(..., ge=0, description="Mint order within the owning cell")

    @property
    def label(self) -> str:
        """Short human label, e.g. ``"5:5#2"``."""
        return f"{self.owner_i}:{self.owner_j}#{self.serial}"


class TokenStack(BaseModel):
    """Ordered token container with stack (LIFO) access.

    Shared base for pit contents and the player's inventory; the last element
    of ``tokens`` is the top of the stack.
    """

    tokens: List[Token] = Field(default_factory=list, description="Bottom-to-top token order")

    def __len__(self) -> int:
        return len(self.tokens)

    def push(self, token: Token) -> None:
        self.tokens.append(token)

    def pop(self) -> Optional[Token]:
        """Remove and return the top token, or None when empty."""
        if not self.tokens:
            return None
        return self.tokens.pop()

    def peek(self) -> Optional[Token]:
        return self.tokens[-1] if self.tokens else None

    def remove(self, token: Token) -> bool:
        """Remove the top-most occurrence of ``token``; False if not held."""
        for index in range(len(self.tokens) - 1, -1, -1):
            if self.tokens[index] == token:
                del self.tokens[index]
                return True
        return False


class PitState(TokenStack):
    """Current contents of one pit."""

    cell_key: str = Field(..., description="Key of the cell this pit lives in ('i,j')")


class PlayerInventory(TokenStack):
    """Tokens held by the player.

    Points are simply the number of held tokens.
    """

    @property
    def points(self) -> int:
        return len(self.tokens)


class Memento(BaseModel):
    """Serialized snapshot of one pit.

    ``serialized_tokens`` is opaque to everyone except ``geopits.memento``.
    """

    model_config = ConfigDict(frozen=True)

    cell_key: str
    serialized_tokens: str


class TrailPoint(BaseModel):
    """A position the player has visited."""

    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float


class SessionSnapshot(BaseModel):
    """Everything saved at the end of a session, before blob encoding."""

    mementos: List[Memento] = Field(default_factory=list)
    player_inventory: List[Token] = Field(default_factory=list)
    trail: List[TrailPoint] = Field(default_factory=list)

"""Exception taxonomy for geopits.

The domain is closed-world, so the list is short. Empty pits and empty hands
are ordinary game states and are reported through return values, not here.
"""


class GeopitsError(Exception):
    """Base class for all geopits errors."""


class ConfigurationError(GeopitsError, ValueError):
    """Raised at construction time when a grid or store is misconfigured.

    Not recoverable at runtime: fix the configuration and restart.
    """


class MalformedMementoError(GeopitsError, ValueError):
    """Raised when a stored blob does not decode into a valid token sequence."""

    def __init__(self, cell_key: str | None, reason: str) -> None:
        self.cell_key = cell_key
        self.reason = reason
        where = f" for cell {cell_key}" if cell_key is not None else ""
        super().__init__(f"Malformed memento{where}: {reason}")


class InvariantViolation(GeopitsError, AssertionError):
    """An internal contract was broken (e.g. depositing a token the player does not hold)."""

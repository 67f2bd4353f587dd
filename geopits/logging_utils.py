"""Console logging for geopits.

Every line is prefixed with a color-blind-safe tag and, unless
GEOPITS_NO_COLOR is set, tinted by kind so grid/store activity, warnings
and errors stand apart in a terminal session.
"""

import os
from enum import Enum

_RESET = "\033[0m"


class LogKind(Enum):
    """Tag and ANSI color for each kind of message."""

    GRID = ("[•]", "\033[94m")       # Deterministic grid / pit-store work
    WARNING = ("[?]", "\033[93m")
    ERROR = ("[!]", "\033[91m")      # Dropped or rejected data
    SUCCESS = ("[✓]", "\033[92m")
    INFO = ("[i]", "\033[96m")

    @property
    def tag(self) -> str:
        return self.value[0]

    @property
    def ansi(self) -> str:
        return self.value[1]


def colors_enabled() -> bool:
    return not os.getenv("GEOPITS_NO_COLOR")


def colored(text: str, kind: LogKind) -> str:
    """Tint ``text`` with the color of ``kind`` (plain text when colors are off)."""
    if not colors_enabled():
        return text
    return f"{kind.ansi}{text}{_RESET}"


def emit(kind: LogKind, message: str) -> None:
    print(colored(f"{kind.tag} {message}", kind))


def log_grid(message: str) -> None:
    emit(LogKind.GRID, message)


def log_warning(message: str) -> None:
    emit(LogKind.WARNING, message)


def log_error(message: str) -> None:
    emit(LogKind.ERROR, message)


def log_success(message: str) -> None:
    emit(LogKind.SUCCESS, message)


def log_info(message: str) -> None:
    emit(LogKind.INFO, message)

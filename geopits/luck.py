"""Deterministic pseudo-random numbers keyed by arbitrary values.

Pit placement and initial pit contents must be reproducible from cell
coordinates alone, so every draw is made from a fresh generator seeded with a
string key. String seeds are hashed with SHA-512 by ``random.Random``, which
keeps results stable across processes regardless of ``PYTHONHASHSEED``.
"""

import random
from typing import Callable

# Signature shared by ``luck`` and test doubles injected into the store/controller.
LuckFunction = Callable[..., float]


def luck_key(*parts: object) -> str:
    """Join key parts with commas: ``luck_key(2, 3, "initialValue") == "2,3,initialValue"``."""
    return ",".join(str(part) for part in parts)


def luck(*parts: object) -> float:
    """Return a float in ``[0, 1)`` that depends only on ``parts``."""
    return random.Random(luck_key(*parts)).random()

"""
Geopits Configuration

Loads configuration from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

from .errors import ConfigurationError

# Load .env file if it exists
load_dotenv()


class Config:
    """Game configuration loaded from environment variables."""

    # Grid resolution in degrees (one cell is roughly 11m of latitude)
    CELL_SIZE: float = float(os.getenv("GEOPITS_CELL_SIZE", "1e-4"))
    # Half-width of the visible neighborhood, in cells
    VISIBILITY_RADIUS: int = int(os.getenv("GEOPITS_VISIBILITY_RADIUS", "8"))

    # Pit generation
    MAX_INITIAL_TOKENS: int = int(os.getenv("GEOPITS_MAX_INITIAL_TOKENS", "4"))
    SPAWN_PROBABILITY: float = float(os.getenv("GEOPITS_SPAWN_PROBABILITY", "0.1"))

    # Starting position (UCSC Merrill College classroom)
    ORIGIN_LAT: float = float(os.getenv("GEOPITS_ORIGIN_LAT", "36.9995"))
    ORIGIN_LNG: float = float(os.getenv("GEOPITS_ORIGIN_LNG", "-122.0533"))

    # Where JsonPersistence keeps session blobs
    SAVE_DIR: Path = Path(os.getenv("GEOPITS_SAVE_DIR", "saves"))

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise ConfigurationError on bad values."""
        if cls.CELL_SIZE <= 0:
            raise ConfigurationError(
                f"GEOPITS_CELL_SIZE must be positive, got {cls.CELL_SIZE}"
            )

        if cls.VISIBILITY_RADIUS < 0:
            raise ConfigurationError(
                f"GEOPITS_VISIBILITY_RADIUS must be non-negative, got {cls.VISIBILITY_RADIUS}"
            )

        if cls.MAX_INITIAL_TOKENS < 1:
            raise ConfigurationError(
                f"GEOPITS_MAX_INITIAL_TOKENS must be at least 1, got {cls.MAX_INITIAL_TOKENS}"
            )

        if not 0 <= cls.SPAWN_PROBABILITY < 1:
            raise ConfigurationError(
                "GEOPITS_SPAWN_PROBABILITY must be in [0, 1), "
                f"got {cls.SPAWN_PROBABILITY}"
            )

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "Geopits Configuration:",
            f"  Cell Size: {cls.CELL_SIZE}°",
            f"  Visibility Radius: {cls.VISIBILITY_RADIUS} cells",
            f"  Max Initial Tokens: {cls.MAX_INITIAL_TOKENS}",
            f"  Spawn Probability: {cls.SPAWN_PROBABILITY}",
            f"  Origin: ({cls.ORIGIN_LAT}, {cls.ORIGIN_LNG})",
            f"  Save Dir: {cls.SAVE_DIR}",
        ]
        return "\n".join(lines)

"""Game modes and engine configuration."""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class GameMode(enum.Enum):
    """Selectable game modes.

    Modes differ only in their starting tick interval. ``WALL`` applies
    no extra collision rules.
    """

    CLASSIC = "classic"
    SPEED = "speed"
    WALL = "wall"

    @property
    def base_speed(self) -> int:
        """Starting tick interval in milliseconds."""
        return _BASE_SPEEDS[self]


_BASE_SPEEDS: dict[GameMode, int] = {
    GameMode.CLASSIC: 100,
    GameMode.SPEED: 70,
    GameMode.WALL: 120,
}


@dataclass(frozen=True)
class GameConfig:
    """Tunable rules for a game engine.

    Supports JSON serialization so a server or CLI run can be reproduced.
    """

    grid_width: int = 20
    grid_height: int = 20
    mode: str = "classic"

    # Scoring and speed progression
    score_increment: int = 10
    speed_step: int = 10
    speed_floor: int = 50
    speed_threshold: int = 50

    # Food placement; None means 4 draws per tile
    max_spawn_attempts: int | None = None
    seed: int | None = None

    # Score persistence; None keeps scores in memory only
    storage_path: str | None = None

    def __post_init__(self) -> None:
        if self.grid_width < 4 or self.grid_height < 4:
            raise ValueError("grid_width and grid_height must each be at least 4.")
        GameMode(self.mode)
        if self.score_increment < 1:
            raise ValueError("score_increment must be at least 1.")
        if self.speed_step < 0:
            raise ValueError("speed_step must be >= 0.")
        if self.speed_floor < 1:
            raise ValueError("speed_floor must be at least 1.")
        if self.speed_threshold < 1:
            raise ValueError("speed_threshold must be at least 1.")

    @property
    def game_mode(self) -> GameMode:
        return GameMode(self.mode)

    def to_dict(self) -> dict:
        return asdict(self)

    def save(self, path: str | Path) -> None:
        """Write config to a JSON file."""
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(self.to_dict(), indent=2))
        logger.info("Config saved to %s", p)

    @classmethod
    def load(cls, path: str | Path) -> GameConfig:
        """Load config from a JSON file."""
        raw = json.loads(Path(path).read_text())
        return cls(**raw)

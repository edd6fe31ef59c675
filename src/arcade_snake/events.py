"""Domain events emitted by the game engine."""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass


class GameOverReason(enum.Enum):
    WALL = "wall"
    SELF = "self"
    BOARD_FULL = "board_full"


@dataclass(frozen=True)
class GameEvent:
    """Base class for everything the engine reports."""

    @property
    def kind(self) -> str:
        return _KINDS[type(self)]

    def to_dict(self) -> dict:
        data = {"type": self.kind}
        for key, value in asdict(self).items():
            data[key] = value.value if isinstance(value, enum.Enum) else value
        return data


@dataclass(frozen=True)
class GameStarted(GameEvent):
    mode: str
    speed: int


@dataclass(frozen=True)
class Moved(GameEvent):
    """The snake advanced one tile. Carries a snapshot of the board."""

    score: int
    snake: tuple[tuple[int, int], ...]
    food: tuple[int, int] | None


@dataclass(frozen=True)
class FoodEaten(GameEvent):
    position: tuple[int, int]
    score: int


@dataclass(frozen=True)
class SpeedChanged(GameEvent):
    """The tick interval changed; schedulers should re-arm their timer."""

    speed: int


@dataclass(frozen=True)
class Paused(GameEvent):
    pass


@dataclass(frozen=True)
class Resumed(GameEvent):
    pass


@dataclass(frozen=True)
class GameOver(GameEvent):
    score: int
    reason: GameOverReason
    high_score: bool = False


_KINDS: dict[type, str] = {
    GameStarted: "game_started",
    Moved: "moved",
    FoodEaten: "food_eaten",
    SpeedChanged: "speed_changed",
    Paused: "paused",
    Resumed: "resumed",
    GameOver: "game_over",
}

"""Arcade Snake — core game engine."""

from arcade_snake.collision import CollisionResult
from arcade_snake.config import GameConfig, GameMode
from arcade_snake.engine import GameEngine, GameSnapshot, GameStatus, TickResult
from arcade_snake.events import (
    FoodEaten,
    GameEvent,
    GameOver,
    GameOverReason,
    GameStarted,
    Moved,
    Paused,
    Resumed,
    SpeedChanged,
)
from arcade_snake.food import BoardFullError, FoodSpawner
from arcade_snake.grid import Grid, Position
from arcade_snake.score import InMemoryStorage, JsonFileStorage, ScoreTracker
from arcade_snake.snake import Direction, Snake

__all__ = [
    "BoardFullError",
    "CollisionResult",
    "Direction",
    "FoodEaten",
    "FoodSpawner",
    "GameConfig",
    "GameEngine",
    "GameEvent",
    "GameMode",
    "GameOver",
    "GameOverReason",
    "GameSnapshot",
    "GameStarted",
    "GameStatus",
    "Grid",
    "InMemoryStorage",
    "JsonFileStorage",
    "Moved",
    "Paused",
    "Position",
    "Resumed",
    "ScoreTracker",
    "Snake",
    "SpeedChanged",
    "TickResult",
]

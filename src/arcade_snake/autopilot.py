"""Greedy autopilot and headless simulation runs."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

import numpy as np

from arcade_snake.config import GameConfig
from arcade_snake.engine import GameEngine, GameStatus
from arcade_snake.score import ScoreTracker
from arcade_snake.snake import Direction

logger = logging.getLogger(__name__)

_MOVES = (Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT)


def choose_direction(engine: GameEngine) -> Direction:
    """Pick a safe move that gets closer to the food.

    Safe moves are those that do not hit a wall or a body segment that is
    still there next tick. Among them, the one minimising Manhattan
    distance to the food wins; ties keep the current direction. With no
    safe move the current direction is returned.
    """
    snake = engine.snake
    current = snake.direction
    hx, hy = snake.head
    blocked = set(snake.blocking_segments(grow=False))

    best: tuple[int, int, Direction] | None = None
    for move in _MOVES:
        if move.is_reverse_of(current) and len(snake) > 1:
            continue
        dx, dy = move.value
        nxt = (hx + dx, hy + dy)
        if not engine.grid.in_bounds(nxt) or nxt in blocked:
            continue
        if engine.food is not None:
            dist = abs(nxt[0] - engine.food.x) + abs(nxt[1] - engine.food.y)
        else:
            dist = 0
        rank = (dist, 0 if move is current else 1, move)
        if best is None or rank[:2] < best[:2]:
            best = rank
    if best is None:
        return current if current is not Direction.NONE else Direction.RIGHT
    return best[2]


@dataclass
class SimulationResult:
    """Aggregate results from a batch of headless games."""

    scores: list[int] = field(default_factory=list)
    total_ticks: int = 0
    wall_time_seconds: float = 0.0
    high_score: int = 0
    games_played: int = 0

    @property
    def games(self) -> int:
        return len(self.scores)

    @property
    def mean_score(self) -> float:
        return float(np.mean(self.scores)) if self.scores else 0.0

    @property
    def best_score(self) -> int:
        return max(self.scores, default=0)

    @property
    def ticks_per_second(self) -> float:
        return self.total_ticks / max(self.wall_time_seconds, 1e-9)

    def summary(self) -> str:
        return (
            f"Simulation: {self.games} games, {self.total_ticks} ticks in "
            f"{self.wall_time_seconds:.2f}s | "
            f"mean score {self.mean_score:.1f}, best {self.best_score} | "
            f"{self.ticks_per_second:.1f} ticks/s | "
            f"high score {self.high_score}, games played {self.games_played}"
        )


def simulate(
    config: GameConfig,
    *,
    games: int = 10,
    max_ticks: int = 5_000,
    tracker: ScoreTracker | None = None,
) -> SimulationResult:
    """Play *games* autopilot games back to back on one engine.

    A game that is still running after *max_ticks* is abandoned and not
    recorded with the tracker.
    """
    engine = GameEngine(config, tracker=tracker)
    result = SimulationResult()
    start = time.perf_counter()

    for _ in range(games):
        engine.reset()
        for _ in range(max_ticks):
            engine.set_direction(choose_direction(engine))
            engine.tick()
            if engine.status is GameStatus.OVER:
                break
        result.total_ticks += engine.tick_count
        result.scores.append(engine.score)

    result.wall_time_seconds = time.perf_counter() - start
    result.high_score = engine.tracker.high_score
    result.games_played = engine.tracker.games_played
    logger.info(result.summary())
    return result

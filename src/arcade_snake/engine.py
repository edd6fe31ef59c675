"""Tick-driven game engine composing grid, snake, food and score logic."""

from __future__ import annotations

import enum
import logging
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from arcade_snake import collision
from arcade_snake.collision import CollisionResult
from arcade_snake.config import GameConfig, GameMode
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
from arcade_snake.score import ScoreTracker
from arcade_snake.snake import Direction, Snake

logger = logging.getLogger(__name__)

# Score at which the speed progress indicator reads 100%.
_PROGRESS_FULL_SCORE = 500

_EVENT_BUFFER = 1024

EventListener = Callable[[GameEvent], None]


class GameStatus(str, enum.Enum):
    """Lifecycle states of a single game."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    OVER = "over"


_COLLISION_REASONS: dict[CollisionResult, GameOverReason] = {
    CollisionResult.WALL: GameOverReason.WALL,
    CollisionResult.SELF: GameOverReason.SELF,
}


@dataclass(frozen=True)
class TickResult:
    """What a single :meth:`GameEngine.tick` call did."""

    events: tuple[GameEvent, ...] = ()

    @property
    def moved(self) -> bool:
        return any(isinstance(e, Moved) for e in self.events)

    @property
    def ate(self) -> bool:
        return any(isinstance(e, FoodEaten) for e in self.events)

    @property
    def game_over(self) -> GameOver | None:
        for event in self.events:
            if isinstance(event, GameOver):
                return event
        return None

    @property
    def speed_changed(self) -> SpeedChanged | None:
        for event in self.events:
            if isinstance(event, SpeedChanged):
                return event
        return None


@dataclass(frozen=True)
class GameSnapshot:
    """Immutable view of the engine for renderers."""

    status: GameStatus
    mode: str
    snake: tuple[tuple[int, int], ...]
    direction: str
    food: tuple[int, int] | None
    score: int
    high_score: int
    games_played: int
    speed: int
    speed_progress: float
    tick: int
    elapsed_seconds: float
    grid: dict

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "mode": self.mode,
            "snake": [list(seg) for seg in self.snake],
            "direction": self.direction,
            "food": list(self.food) if self.food is not None else None,
            "score": self.score,
            "high_score": self.high_score,
            "games_played": self.games_played,
            "speed": self.speed,
            "speed_progress": self.speed_progress,
            "tick": self.tick,
            "elapsed_seconds": self.elapsed_seconds,
            "grid": self.grid,
        }


class GameEngine:
    """Single-snake game state machine.

    The engine never owns a timer. An external scheduler calls
    :meth:`tick` every :attr:`speed` milliseconds and re-arms itself when a
    :class:`SpeedChanged` event is emitted. Input handlers call
    :meth:`set_direction` and the pause methods. Calls must be serialized
    by the caller.

    Events are delivered three ways: returned from :meth:`tick`, pushed to
    listeners registered with :meth:`subscribe`, and queued for
    :meth:`drain_events`.
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        tracker: ScoreTracker | None = None,
        rng: np.random.Generator | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config if config is not None else GameConfig()
        self.grid = Grid(self.config.grid_width, self.config.grid_height)
        self.tracker = tracker if tracker is not None else ScoreTracker()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.spawner = FoodSpawner(
            self.grid, rng=self.rng, max_attempts=self.config.max_spawn_attempts,
        )
        self._clock = clock

        self.status = GameStatus.IDLE
        self.mode = self.config.game_mode
        self.snake = Snake(self.grid.center)
        self.food: Position | None = None
        self.speed = self.mode.base_speed
        self.tick_count = 0
        self._pending_direction: Direction | None = None
        self._started_at: float | None = None
        self._ended_at: float | None = None

        self._listeners: list[EventListener] = []
        self._queue: deque[GameEvent] = deque(maxlen=_EVENT_BUFFER)
        self._current: list[GameEvent] | None = None

    @property
    def score(self) -> int:
        return self.tracker.score

    @property
    def direction(self) -> Direction:
        """The committed direction the snake moves in on the next tick."""
        return self.snake.direction

    # --- events ---

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Register *listener* for every event. Returns an unsubscribe hook."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def drain_events(self) -> list[GameEvent]:
        """Return and clear the events queued since the last drain."""
        events = list(self._queue)
        self._queue.clear()
        return events

    def _emit(self, event: GameEvent) -> None:
        self._queue.append(event)
        if self._current is not None:
            self._current.append(event)
        for listener in list(self._listeners):
            listener(event)

    # --- lifecycle ---

    def reset(self, mode: GameMode | str | None = None) -> None:
        """Start a fresh game. Valid from any state."""
        if mode is not None:
            self.mode = GameMode(mode)
        self.snake = Snake(self.grid.center)
        self._pending_direction = None
        self.tracker.reset_score()
        self.speed = self.mode.base_speed
        self.tick_count = 0
        self._started_at = self._clock()
        self._ended_at = None
        self.status = GameStatus.RUNNING
        self.food = self.spawner.spawn(self.snake.body)
        logger.info(
            "Game started in %s mode (speed %d ms).", self.mode.value, self.speed,
        )
        self._emit(GameStarted(mode=self.mode.value, speed=self.speed))

    def pause(self) -> bool:
        """Pause a running game. Returns True if the status changed."""
        if self.status is not GameStatus.RUNNING:
            return False
        self.status = GameStatus.PAUSED
        self._emit(Paused())
        return True

    def resume(self) -> bool:
        """Resume a paused game. Returns True if the status changed."""
        if self.status is not GameStatus.PAUSED:
            return False
        self.status = GameStatus.RUNNING
        self._emit(Resumed())
        return True

    def toggle_pause(self) -> bool:
        if self.status is GameStatus.PAUSED:
            return self.resume()
        return self.pause()

    # --- input ---

    def set_direction(self, direction: Direction) -> bool:
        """Buffer a direction change for the next tick.

        Reversals of the committed direction are ignored, as is any input
        while the game is idle or over. Returns True if accepted.
        """
        if self.status not in (GameStatus.RUNNING, GameStatus.PAUSED):
            return False
        if direction is Direction.NONE:
            return False
        if direction.is_reverse_of(self.snake.direction):
            return False
        self._pending_direction = direction
        return True

    # --- simulation ---

    def tick(self) -> TickResult:
        """Advance the game by one step and report what happened."""
        if self.status is not GameStatus.RUNNING:
            return TickResult()

        if self._pending_direction is not None:
            self.snake.direction = self._pending_direction
            self._pending_direction = None
        if self.snake.direction is Direction.NONE:
            return TickResult()

        self._current = []
        try:
            self._step()
            return TickResult(tuple(self._current))
        finally:
            self._current = None

    def _step(self) -> None:
        new_head = self.snake.next_head()
        will_grow = new_head == self.food

        hit = collision.check(
            new_head, self.grid, self.snake.blocking_segments(will_grow),
        )
        if hit:
            self._end_game(_COLLISION_REASONS[hit])
            return

        self.snake.advance(grow=will_grow)
        self.tick_count += 1

        board_full = False
        if will_grow:
            score = self.tracker.add(self.config.score_increment)
            self._emit(FoodEaten(position=tuple(new_head), score=score))
            self._maybe_speed_up(score)
            try:
                self.food = self.spawner.spawn(self.snake.body)
            except BoardFullError:
                logger.warning("Board is full at score %d.", score)
                self.food = None
                board_full = True

        self._emit(
            Moved(
                score=self.score,
                snake=tuple(tuple(seg) for seg in self.snake.body),
                food=tuple(self.food) if self.food is not None else None,
            )
        )
        if board_full:
            self._end_game(GameOverReason.BOARD_FULL)

    def _maybe_speed_up(self, score: int) -> None:
        cfg = self.config
        if score % cfg.speed_threshold != 0 or self.speed <= cfg.speed_floor:
            return
        new_speed = max(cfg.speed_floor, self.speed - cfg.speed_step)
        if new_speed == self.speed:
            return
        self.speed = new_speed
        logger.info("Speed increased to %d ms at score %d.", self.speed, score)
        self._emit(SpeedChanged(speed=self.speed))

    def _end_game(self, reason: GameOverReason) -> None:
        self.status = GameStatus.OVER
        self._ended_at = self._clock()
        new_high = self.tracker.record_game_over(self.score)
        logger.info(
            "Game over (%s) after %d ticks with score %d.",
            reason.value, self.tick_count, self.score,
        )
        self._emit(GameOver(score=self.score, reason=reason, high_score=new_high))

    # --- views ---

    @property
    def elapsed_seconds(self) -> float:
        if self._started_at is None:
            return 0.0
        end = self._ended_at if self._ended_at is not None else self._clock()
        return max(0.0, end - self._started_at)

    @property
    def speed_progress(self) -> float:
        """Percentage towards the top of the speed curve, capped at 100."""
        return min(100.0, self.score / _PROGRESS_FULL_SCORE * 100)

    def snapshot(self) -> GameSnapshot:
        """Capture the current state, with counters re-read from storage."""
        self.tracker.refresh()
        return GameSnapshot(
            status=self.status,
            mode=self.mode.value,
            snake=tuple(tuple(seg) for seg in self.snake.body),
            direction=self.snake.direction.name.lower(),
            food=tuple(self.food) if self.food is not None else None,
            score=self.score,
            high_score=self.tracker.high_score,
            games_played=self.tracker.games_played,
            speed=self.speed,
            speed_progress=self.speed_progress,
            tick=self.tick_count,
            elapsed_seconds=round(self.elapsed_seconds, 3),
            grid=self.grid.to_dict(),
        )

    def get_state(self) -> dict:
        """Return the full, serializable game state."""
        return self.snapshot().to_dict()

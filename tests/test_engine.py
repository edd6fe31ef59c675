"""Tests for the GameEngine module."""

import json

import pytest

from arcade_snake.config import GameConfig
from arcade_snake.engine import GameEngine, GameStatus
from arcade_snake.events import (
    FoodEaten,
    GameOver,
    GameOverReason,
    GameStarted,
    Moved,
    Paused,
    Resumed,
    SpeedChanged,
)
from arcade_snake.food import BoardFullError
from arcade_snake.grid import Position
from arcade_snake.score import GAMES_PLAYED_KEY, InMemoryStorage, ScoreTracker
from arcade_snake.snake import Direction, Snake

# Far corner used to park food out of the snake's path.
_PARKED = Position(0, 0)


def _started(width=20, height=20, mode="classic", seed=0, **kwargs) -> GameEngine:
    engine = GameEngine(
        GameConfig(grid_width=width, grid_height=height, mode=mode, seed=seed),
        **kwargs,
    )
    engine.reset()
    return engine


def _feed(engine: GameEngine):
    """Place food where the next tick moves the head, then tick."""
    direction = engine._pending_direction or engine.direction
    dx, dy = direction.value
    x, y = engine.snake.head
    engine.food = Position(x + dx, y + dy)
    return engine.tick()


def _step(engine: GameEngine, direction: Direction | None = None):
    """Tick once with the food parked out of the way."""
    if direction is not None:
        engine.set_direction(direction)
    engine.food = _PARKED
    return engine.tick()


class TestEngineInit:
    def test_idle_at_construction(self):
        engine = GameEngine()
        assert engine.status is GameStatus.IDLE
        assert engine.food is None
        assert engine.score == 0

    def test_tick_before_reset_is_noop(self):
        engine = GameEngine()
        result = engine.tick()
        assert result.events == ()
        assert engine.status is GameStatus.IDLE

    def test_direction_ignored_while_idle(self):
        engine = GameEngine()
        assert not engine.set_direction(Direction.UP)


class TestEngineReset:
    def test_reset_centres_head(self):
        engine = _started(20, 20)
        assert list(engine.snake.body) == [(10, 10)]
        assert engine.direction is Direction.NONE
        assert engine.status is GameStatus.RUNNING
        assert engine.score == 0
        assert engine.speed == 100

    def test_food_spawned_off_snake(self):
        engine = _started()
        assert engine.food is not None
        assert engine.food != engine.snake.head

    def test_first_tick_without_direction_is_noop(self):
        engine = _started()
        before = list(engine.snake.body)
        result = engine.tick()
        assert result.events == ()
        assert list(engine.snake.body) == before
        assert engine.tick_count == 0

    @pytest.mark.parametrize(
        ("mode", "speed"), [("classic", 100), ("speed", 70), ("wall", 120)],
    )
    def test_mode_base_speed(self, mode, speed):
        engine = GameEngine()
        engine.reset(mode)
        assert engine.speed == speed
        assert engine.mode.value == mode

    def test_reset_from_over(self):
        engine = _started()
        engine.snake = Snake((0, 5), Direction.LEFT)
        engine.tick()
        assert engine.status is GameStatus.OVER
        engine.reset()
        assert engine.status is GameStatus.RUNNING
        assert engine.score == 0
        assert len(engine.snake) == 1

    def test_reset_emits_game_started(self):
        engine = GameEngine()
        engine.reset("speed")
        assert engine.drain_events() == [GameStarted(mode="speed", speed=70)]


class TestEngineMovement:
    def test_moves_in_buffered_direction(self):
        engine = _started()
        engine.set_direction(Direction.RIGHT)
        assert engine.direction is Direction.NONE  # not committed yet
        result = _step(engine)
        assert engine.snake.head == (11, 10)
        assert engine.direction is Direction.RIGHT
        assert result.moved
        assert not result.ate

    def test_moved_event_carries_snapshot(self):
        engine = _started()
        result = _step(engine, Direction.UP)
        (moved,) = [e for e in result.events if isinstance(e, Moved)]
        assert moved.snake == ((10, 9),)
        assert moved.food == tuple(_PARKED)
        assert moved.score == 0

    def test_length_constant_without_food(self):
        engine = _started()
        _feed_direction(engine, Direction.RIGHT, times=2)
        length = len(engine.snake)
        for _ in range(3):
            _step(engine)
        assert len(engine.snake) == length

    def test_tail_following_is_allowed(self):
        engine = _started()
        _feed_direction(engine, Direction.RIGHT, times=3)
        # Snake is 4 long; a tight square lands the head on the old tail.
        _step(engine, Direction.DOWN)
        _step(engine, Direction.LEFT)
        _step(engine, Direction.UP)
        assert engine.status is GameStatus.RUNNING
        assert len(set(engine.snake.body)) == len(engine.snake)


class TestEngineReversal:
    def test_reverse_ignored(self):
        engine = _started()
        _step(engine, Direction.RIGHT)
        assert not engine.set_direction(Direction.LEFT)
        _step(engine)
        assert engine.snake.head == (12, 10)
        assert engine.direction is Direction.RIGHT

    def test_reversal_checked_against_committed_direction(self):
        engine = _started()
        _feed_direction(engine, Direction.RIGHT, times=2)
        # UP is buffered, but LEFT is still the reverse of committed RIGHT.
        assert engine.set_direction(Direction.UP)
        assert not engine.set_direction(Direction.LEFT)
        _step(engine)
        assert engine.direction is Direction.UP
        assert engine.status is GameStatus.RUNNING

    def test_last_accepted_intent_wins(self):
        engine = _started()
        _step(engine, Direction.RIGHT)
        engine.set_direction(Direction.UP)
        engine.set_direction(Direction.DOWN)
        _step(engine)
        assert engine.direction is Direction.DOWN

    def test_none_direction_ignored(self):
        engine = _started()
        assert not engine.set_direction(Direction.NONE)

    def test_direction_buffered_while_paused(self):
        engine = _started()
        _step(engine, Direction.RIGHT)
        engine.pause()
        assert engine.set_direction(Direction.UP)
        engine.resume()
        _step(engine)
        assert engine.direction is Direction.UP


class TestEngineEating:
    def test_eat_grows_and_scores(self):
        engine = _started()
        engine.set_direction(Direction.RIGHT)
        old_head = engine.snake.head
        result = _feed(engine)
        assert len(engine.snake) == 2
        assert engine.score == 10
        assert engine.food not in {old_head, engine.snake.head}
        assert result.ate
        assert FoodEaten(position=(11, 10), score=10) in result.events

    def test_food_never_inside_snake(self):
        engine = _started(8, 8, seed=3)
        engine.set_direction(Direction.RIGHT)
        _feed(engine)
        engine.set_direction(Direction.DOWN)
        for _ in range(2):
            _feed(engine)
            assert engine.food not in engine.snake.body

    def test_score_multiple_of_ten(self):
        engine = _started()
        _feed_direction(engine, Direction.RIGHT, times=4)
        assert engine.score == 40
        assert engine.score % 10 == 0


class TestEngineSpeed:
    def test_speed_changes_once_at_fifty(self):
        engine = _started()
        engine.set_direction(Direction.RIGHT)
        changes = []
        for _ in range(5):
            result = _feed(engine)
            changes.extend(e for e in result.events if isinstance(e, SpeedChanged))
        assert engine.score == 50
        assert engine.speed == 90
        assert changes == [SpeedChanged(speed=90)]

    def test_no_change_between_thresholds(self):
        engine = _started()
        engine.set_direction(Direction.RIGHT)
        for _ in range(4):
            assert _feed(engine).speed_changed is None
        assert engine.speed == 100

    def test_speed_floored(self):
        engine = _started(width=40, mode="speed")
        engine.set_direction(Direction.RIGHT)
        speeds = []
        for _ in range(15):
            _feed(engine)
            speeds.append(engine.speed)
        assert engine.score == 150
        assert engine.speed == 50
        assert speeds == sorted(speeds, reverse=True)
        assert speeds[4] == 60
        assert speeds[9] == 50

    def test_no_event_at_floor(self):
        engine = _started(width=40, mode="speed")
        engine.set_direction(Direction.RIGHT)
        for _ in range(10):
            _feed(engine)
        engine.drain_events()
        for _ in range(5):
            _feed(engine)
        assert not any(isinstance(e, SpeedChanged) for e in engine.drain_events())


class TestEngineCollisions:
    def test_wall_collision(self):
        engine = _started()
        engine.snake = Snake((0, 5), Direction.LEFT)
        result = engine.tick()
        assert engine.status is GameStatus.OVER
        over = result.game_over
        assert over is not None
        assert over.reason is GameOverReason.WALL
        assert over.score == 0

    def test_wall_collision_after_walking(self):
        engine = _started(10, 10)
        engine.set_direction(Direction.UP)
        for _ in range(20):
            _step(engine)
            if engine.status is GameStatus.OVER:
                break
        assert engine.status is GameStatus.OVER
        assert engine.snake.head == (5, 0)

    def test_self_collision(self):
        engine = _started()
        _feed_direction(engine, Direction.RIGHT, times=4)
        assert len(engine.snake) == 5
        _step(engine, Direction.DOWN)
        _step(engine, Direction.LEFT)
        result = _step(engine, Direction.UP)
        assert engine.status is GameStatus.OVER
        assert result.game_over.reason is GameOverReason.SELF
        assert result.game_over.score == 40

    def test_game_over_freezes_engine(self):
        engine = _started()
        engine.snake = Snake((19, 5), Direction.RIGHT)
        engine.tick()
        assert engine.tick().events == ()
        assert not engine.set_direction(Direction.UP)
        assert not engine.pause()

    def test_game_over_recorded(self):
        storage = InMemoryStorage()
        engine = _started(tracker=ScoreTracker(storage))
        engine.set_direction(Direction.RIGHT)
        _feed(engine)
        engine.snake = Snake((0, 5), Direction.LEFT)
        result = engine.tick()
        assert result.game_over.high_score
        assert engine.tracker.high_score == 10
        assert storage.get(GAMES_PLAYED_KEY) == "1"

    def test_board_full_ends_game(self, monkeypatch):
        engine = _started()
        engine.set_direction(Direction.RIGHT)

        def _no_room(occupied):
            raise BoardFullError("full")

        monkeypatch.setattr(engine.spawner, "spawn", _no_room)
        result = _feed(engine)
        assert engine.status is GameStatus.OVER
        assert engine.food is None
        assert result.moved
        assert result.game_over.reason is GameOverReason.BOARD_FULL
        assert result.game_over.score == 10

    def test_snapshot_sees_high_score_from_shared_storage(self):
        storage = InMemoryStorage()
        a = _started(tracker=ScoreTracker(storage))
        b = _started(tracker=ScoreTracker(storage))
        b.set_direction(Direction.RIGHT)
        for _ in range(3):
            _feed(b)
        b.snake = Snake((0, 5), Direction.LEFT)
        b.tick()
        snap = a.snapshot()
        assert snap.high_score == 30
        assert snap.games_played == 1
        assert a.get_state()["high_score"] == 30


class TestEnginePause:
    def test_pause_and_resume(self):
        engine = _started()
        assert engine.pause()
        assert engine.status is GameStatus.PAUSED
        assert not engine.pause()
        assert engine.resume()
        assert engine.status is GameStatus.RUNNING
        assert not engine.resume()

    def test_tick_noop_while_paused(self):
        engine = _started()
        _step(engine, Direction.RIGHT)
        engine.pause()
        head = engine.snake.head
        assert engine.tick().events == ()
        assert engine.snake.head == head

    def test_toggle(self):
        engine = _started()
        engine.drain_events()
        engine.toggle_pause()
        engine.toggle_pause()
        assert engine.drain_events() == [Paused(), Resumed()]

    def test_pause_noop_when_idle(self):
        engine = GameEngine()
        assert not engine.pause()
        assert not engine.toggle_pause()
        assert engine.status is GameStatus.IDLE


class TestEngineEvents:
    def test_subscribe_and_unsubscribe(self):
        engine = GameEngine()
        seen = []
        unsubscribe = engine.subscribe(seen.append)
        engine.reset()
        unsubscribe()
        engine.pause()
        assert [type(e) for e in seen] == [GameStarted]

    def test_drain_clears_queue(self):
        engine = _started()
        assert engine.drain_events()
        assert engine.drain_events() == []

    def test_event_to_dict(self):
        event = GameOver(score=30, reason=GameOverReason.SELF)
        assert event.to_dict() == {
            "type": "game_over", "score": 30, "reason": "self", "high_score": False,
        }


class TestEngineSnapshot:
    def test_state_is_json_serializable(self):
        engine = _started()
        _step(engine, Direction.RIGHT)
        assert isinstance(json.dumps(engine.get_state()), str)

    def test_state_structure(self):
        state = _started().get_state()
        for key in ("status", "snake", "food", "score", "speed", "tick", "grid"):
            assert key in state
        assert state["status"] == "running"
        assert state["snake"] == [[10, 10]]

    def test_elapsed_time_uses_clock(self):
        now = [100.0]
        engine = GameEngine(clock=lambda: now[0])
        engine.reset()
        now[0] = 112.5
        assert engine.snapshot().elapsed_seconds == 12.5

    def test_speed_progress(self):
        engine = _started()
        engine.set_direction(Direction.RIGHT)
        _feed(engine)
        assert engine.snapshot().speed_progress == pytest.approx(2.0)


class TestEngineDeterminism:
    def test_same_seed_same_food(self):
        a = _started(seed=123)
        b = _started(seed=123)
        assert a.food == b.food

    def test_no_duplicate_segments_over_long_run(self):
        engine = _started(seed=9)
        pattern = [Direction.RIGHT, Direction.DOWN, Direction.LEFT, Direction.DOWN]
        for i in range(40):
            if i % 3 == 0:
                engine.set_direction(pattern[(i // 3) % 4])
            engine.tick()
            if engine.status is GameStatus.OVER:
                break
            assert len(set(engine.snake.body)) == len(engine.snake)


def _feed_direction(engine: GameEngine, direction: Direction, times: int) -> None:
    engine.set_direction(direction)
    for _ in range(times):
        _feed(engine)

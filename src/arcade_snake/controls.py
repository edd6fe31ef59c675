"""Keyboard bindings and input dispatch."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

from arcade_snake.snake import Direction

if TYPE_CHECKING:
    from arcade_snake.engine import GameEngine


class Action(enum.Enum):
    """Non-steering intents an input source can send."""

    PAUSE = "pause"
    RESUME = "resume"
    TOGGLE_PAUSE = "toggle_pause"
    RESET = "reset"


KEY_BINDINGS: dict[str, Direction | Action] = {
    "ArrowUp": Direction.UP,
    "w": Direction.UP,
    "W": Direction.UP,
    "ArrowDown": Direction.DOWN,
    "s": Direction.DOWN,
    "S": Direction.DOWN,
    "ArrowLeft": Direction.LEFT,
    "a": Direction.LEFT,
    "A": Direction.LEFT,
    "ArrowRight": Direction.RIGHT,
    "d": Direction.RIGHT,
    "D": Direction.RIGHT,
    " ": Action.TOGGLE_PAUSE,
}

DIRECTION_NAMES: dict[str, Direction] = {
    "up": Direction.UP,
    "down": Direction.DOWN,
    "left": Direction.LEFT,
    "right": Direction.RIGHT,
}


def parse_direction(name: str) -> Direction | None:
    return DIRECTION_NAMES.get(name.strip().lower())


def parse_action(name: str) -> Action | None:
    try:
        return Action(name.strip().lower())
    except ValueError:
        return None


def handle_key(engine: GameEngine, key: str) -> bool:
    """Apply a key press to *engine*.

    Returns True if the key is bound, meaning the embedding UI should
    suppress its default behaviour for it. Keys are ignored while no game
    is in progress.
    """
    intent = KEY_BINDINGS.get(key)
    if intent is None:
        return False
    if isinstance(intent, Direction):
        engine.set_direction(intent)
    else:
        apply_action(engine, intent)
    return True


def apply_action(engine: GameEngine, action: Action) -> bool:
    """Dispatch a non-steering intent. Returns True if the engine changed."""
    if action is Action.PAUSE:
        return engine.pause()
    if action is Action.RESUME:
        return engine.resume()
    if action is Action.TOGGLE_PAUSE:
        return engine.toggle_pause()
    engine.reset()
    return True

"""Snake representation and movement logic."""

from __future__ import annotations

import enum
from collections import deque

from arcade_snake.grid import Position


class Direction(enum.Enum):
    """Movement directions with (dx, dy) tile deltas.

    ``NONE`` is the resting direction of a freshly reset snake that has not
    been steered yet.
    """

    NONE = (0, 0)
    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)

    @property
    def opposite(self) -> Direction:
        dx, dy = self.value
        return Direction((-dx, -dy))

    def is_reverse_of(self, other: Direction) -> bool:
        """True if turning from *other* to this direction is a 180° turn."""
        return self is not Direction.NONE and self.opposite is other


class Snake:
    """A snake stored as a deque of positions.

    The head is ``body[0]``; the tail is ``body[-1]``.
    """

    def __init__(
        self,
        head: tuple[int, int],
        direction: Direction = Direction.NONE,
    ) -> None:
        self.body: deque[Position] = deque([Position(*head)])
        self.direction = direction

    @property
    def head(self) -> Position:
        return self.body[0]

    @property
    def tail(self) -> Position:
        return self.body[-1]

    def __len__(self) -> int:
        return len(self.body)

    def next_head(self) -> Position:
        """Compute the next head position without moving."""
        dx, dy = self.direction.value
        x, y = self.head
        return Position(x + dx, y + dy)

    def advance(self, grow: bool = False) -> Position | None:
        """Move one tile in the current direction.

        Returns the vacated tail tile, or ``None`` if the snake grew.
        """
        self.body.appendleft(self.next_head())
        if grow:
            return None
        return self.body.pop()

    def occupies(self, pos: tuple[int, int]) -> bool:
        return Position(*pos) in self.body

    def blocking_segments(self, grow: bool) -> list[Position]:
        """Segments the next head must avoid.

        The tail is excluded unless the snake grows this tick, since it
        will have moved out of the way by the time the head arrives.
        """
        segments = list(self.body)
        if not grow:
            segments.pop()
        return segments

    def to_dict(self) -> dict:
        return {
            "body": [list(seg) for seg in self.body],
            "direction": self.direction.name.lower(),
        }

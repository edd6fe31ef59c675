"""Collision detection for a proposed head position."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from arcade_snake.grid import Grid


class CollisionResult(enum.Enum):
    """Outcome of checking a proposed head position."""

    NONE = "none"
    WALL = "wall"
    SELF = "self"

    def __bool__(self) -> bool:
        return self is not CollisionResult.NONE


def check(
    head: tuple[int, int],
    grid: Grid,
    body: Iterable[tuple[int, int]],
) -> CollisionResult:
    """Test *head* against the board edges and the given body segments.

    *body* should already exclude a tail segment that is vacated on the
    same tick. Walls are checked first.
    """
    if not grid.in_bounds(head):
        return CollisionResult.WALL
    if tuple(head) in {tuple(seg) for seg in body}:
        return CollisionResult.SELF
    return CollisionResult.NONE

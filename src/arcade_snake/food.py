"""Food spawning logic."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

import numpy as np

from arcade_snake.grid import Position

if TYPE_CHECKING:
    from arcade_snake.grid import Grid

logger = logging.getLogger(__name__)


class BoardFullError(RuntimeError):
    """Raised when no free tile is left for food."""


class FoodSpawner:
    """Places food on a uniformly random free tile.

    Draws candidates with a NumPy RNG and rejects occupied tiles. After
    ``max_attempts`` rejections it falls back to choosing among the free
    tiles directly, so a nearly full board never loops indefinitely.
    """

    def __init__(
        self,
        grid: Grid,
        rng: np.random.Generator | None = None,
        max_attempts: int | None = None,
    ) -> None:
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        self.grid = grid
        self.rng = rng if rng is not None else np.random.default_rng()
        self.max_attempts = (
            max_attempts if max_attempts is not None else 4 * grid.size
        )

    def spawn(self, occupied: Iterable[tuple[int, int]]) -> Position:
        """Return a free position not in *occupied*.

        Raises :class:`BoardFullError` if every tile is occupied.
        """
        taken = {
            Position(*pos) for pos in occupied if self.grid.in_bounds(pos)
        }
        if len(taken) >= self.grid.size:
            raise BoardFullError("No free tiles left for food.")

        for _ in range(self.max_attempts):
            candidate = Position(
                int(self.rng.integers(self.grid.width)),
                int(self.rng.integers(self.grid.height)),
            )
            if candidate not in taken:
                return candidate

        free = self.grid.free_cells(taken)
        if not free:
            raise BoardFullError("No free tiles left for food.")
        logger.debug(
            "Rejection sampling exhausted after %d draws; choosing among %d free tiles.",
            self.max_attempts, len(free),
        )
        return free[int(self.rng.integers(len(free)))]

"""Board geometry for the snake game."""

from __future__ import annotations

from collections.abc import Iterable
from typing import NamedTuple

import numpy as np


class Position(NamedTuple):
    """A tile coordinate, ``x`` across and ``y`` down."""

    x: int
    y: int


class Grid:
    """Fixed rectangular board measured in tiles.

    The grid is pure geometry: it holds no snake or food state. Occupancy
    masks are built on demand as NumPy arrays indexed ``[y, x]``.
    """

    def __init__(self, width: int = 20, height: int = 20) -> None:
        if width < 4 or height < 4:
            raise ValueError("Grid dimensions must be at least 4×4.")
        self.width = width
        self.height = height

    @property
    def size(self) -> int:
        """Total number of tiles on the board."""
        return self.width * self.height

    @property
    def center(self) -> Position:
        return Position(self.width // 2, self.height // 2)

    def in_bounds(self, pos: tuple[int, int]) -> bool:
        """Check whether a coordinate lies within the board."""
        x, y = pos
        return 0 <= x < self.width and 0 <= y < self.height

    def occupancy(self, occupied: Iterable[tuple[int, int]]) -> np.ndarray:
        """Return a boolean ``(height, width)`` mask of occupied tiles."""
        mask = np.zeros((self.height, self.width), dtype=bool)
        for x, y in occupied:
            if self.in_bounds((x, y)):
                mask[y, x] = True
        return mask

    def free_cells(self, occupied: Iterable[tuple[int, int]]) -> list[Position]:
        """Return every tile not in *occupied*, in row-major order."""
        ys, xs = np.nonzero(~self.occupancy(occupied))
        return [
            Position(x, y)
            for x, y in zip(xs.tolist(), ys.tolist(), strict=True)
        ]

    def to_dict(self) -> dict:
        return {"width": self.width, "height": self.height}

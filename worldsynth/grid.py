from __future__ import annotations

import math

import numpy as np


def freeze(a: np.ndarray) -> np.ndarray:
    """Return a read-only array that does not alias ``a``."""
    out = np.array(a, copy=True)
    out.setflags(write=False)
    return out


def as_grid(a: np.ndarray, name: str = "grid") -> np.ndarray:
    g = np.asarray(a, dtype=np.float64)
    if g.ndim != 2:
        raise ValueError(f"{name} must be a 2D array")
    return g


def cell_value(grid: np.ndarray, x: float, y: float, default):
    """Point query at cell (floor(x), floor(y)).

    Off-grid and non-finite coordinates return ``default``.
    """
    H, W = grid.shape
    # NaN fails every comparison and lands here too.
    if not (0 <= x < W and 0 <= y < H):
        return default
    return grid[math.floor(y), math.floor(x)]

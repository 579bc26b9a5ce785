from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable

import numpy as np

from worldsynth.config import ErosionSettings
from worldsynth.errors import GenerationCancelled
from worldsynth.events import WorldObserver
from worldsynth.grid import as_grid, freeze

logger = logging.getLogger(__name__)

Rows = list[list[float]]


@dataclass
class Droplet:
    """One water particle. Lives only for the duration of its own walk."""

    x: float
    y: float
    dir_x: float = 0.0
    dir_y: float = 0.0
    volume: float = 1.0
    speed: float = 0.0
    sediment: float = 0.0
    steps: int = 0


@dataclass(frozen=True)
class ErosionResult:
    height: np.ndarray
    droplets: int
    total_steps: int
    max_steps: int
    thermal_passes: int
    eroded: float
    deposited: float


def _inside(W: int, H: int, cx: int, cy: int) -> bool:
    return 0 <= cx < W - 1 and 0 <= cy < H - 1


def interpolate_height(rows: Rows, x: float, y: float) -> float:
    """Bilinear height at a continuous position; 0.0 off the interior."""

    H = len(rows)
    W = len(rows[0]) if H else 0
    cx = math.floor(x)
    cy = math.floor(y)
    if not _inside(W, H, cx, cy):
        return 0.0
    fx = x - cx
    fy = y - cy
    r0 = rows[cy]
    r1 = rows[cy + 1]
    return (
        r0[cx] * (1.0 - fx) * (1.0 - fy)
        + r0[cx + 1] * fx * (1.0 - fy)
        + r1[cx] * (1.0 - fx) * fy
        + r1[cx + 1] * fx * fy
    )


def gradient(rows: Rows, x: float, y: float) -> tuple[float, float]:
    """Bilinearly interpolated (dh/dx, dh/dy) from the four cell corners."""

    H = len(rows)
    W = len(rows[0])
    cx = math.floor(x)
    cy = math.floor(y)
    fx = x - cx
    fy = y - cy
    cx1 = min(cx + 1, W - 1)
    cy1 = min(cy + 1, H - 1)

    h00 = rows[cy][cx]
    h10 = rows[cy][cx1]
    h01 = rows[cy1][cx]
    h11 = rows[cy1][cx1]

    gx = (h10 - h00) * (1.0 - fy) + (h11 - h01) * fy
    gy = (h01 - h00) * (1.0 - fx) + (h11 - h10) * fx
    return gx, gy


def splat(rows: Rows, x: float, y: float, amount: float) -> bool:
    """Add ``amount`` bilinearly around (x, y).

    Positions whose cell touches the last row/column (or lie off-grid) are
    ignored; returns whether anything was written.
    """

    H = len(rows)
    W = len(rows[0]) if H else 0
    cx = math.floor(x)
    cy = math.floor(y)
    if not _inside(W, H, cx, cy):
        return False
    fx = x - cx
    fy = y - cy
    r0 = rows[cy]
    r1 = rows[cy + 1]
    r0[cx] += amount * (1.0 - fx) * (1.0 - fy)
    r0[cx + 1] += amount * fx * (1.0 - fy)
    r1[cx] += amount * (1.0 - fx) * fy
    r1[cx + 1] += amount * fx * fy
    return True


def thermal_pass_buffered(
    height: np.ndarray,
    *,
    talus: float = 1.0,
    smoothness: float = 0.15,
) -> np.ndarray:
    """One talus relaxation pass computed from a snapshot of the grid.

    Cells with x <= W-2 and y <= H-2 shed material to each lower axis
    neighbour whose drop exceeds ``talus``; half the excess times
    ``smoothness`` leaves the cell and the same amount arrives next door.
    All transfers read the pre-pass heights, so the result does not depend
    on visiting order.
    """

    src = as_grid(height, "height")
    H, W = src.shape
    talus = float(talus)
    smoothness = float(smoothness)

    delta = np.zeros_like(src)
    for dy, dx in ((0, 1), (0, -1), (1, 0), (-1, 0)):
        y0, y1 = max(0, -dy), min(H - 1, H - dy)
        x0, x1 = max(0, -dx), min(W - 1, W - dx)
        if y1 <= y0 or x1 <= x0:
            continue
        c = src[y0:y1, x0:x1]
        n = src[y0 + dy : y1 + dy, x0 + dx : x1 + dx]
        moved = np.maximum(0.0, (c - n) - talus) * smoothness * 0.5
        delta[y0:y1, x0:x1] -= moved
        delta[y0 + dy : y1 + dy, x0 + dx : x1 + dx] += moved

    return src + delta


def _thermal_raster_inplace(rows: Rows, talus: float, smoothness: float) -> None:
    H = len(rows)
    W = len(rows[0]) if H else 0
    for y in range(H - 1):
        row = rows[y]
        for x in range(W - 1):
            # Centre height is read once; neighbours see earlier updates.
            current = row[x]
            for nx, ny in ((x + 1, y), (x - 1, y), (x, y + 1), (x, y - 1)):
                if nx < 0 or nx >= W or ny < 0 or ny >= H:
                    continue
                slope = current - rows[ny][nx]
                if slope > talus:
                    amount = (slope - talus) * smoothness
                    row[x] -= amount * 0.5
                    rows[ny][nx] += amount * 0.5


def thermal_pass_raster(
    height: np.ndarray,
    *,
    talus: float = 1.0,
    smoothness: float = 0.15,
) -> np.ndarray:
    """One in-place raster-order talus pass (returns a new array).

    Later cells in the pass see the already-updated heights of earlier
    cells, which reproduces the reference numeric trajectory.
    """

    rows = as_grid(height, "height").tolist()
    _thermal_raster_inplace(rows, float(talus), float(smoothness))
    return np.asarray(rows, dtype=np.float64)


class ErosionSimulator:
    """Droplet-based hydraulic erosion followed by thermal (talus) erosion."""

    def __init__(
        self,
        settings: ErosionSettings | None = None,
        *,
        observer: WorldObserver | None = None,
    ):
        self.settings = settings or ErosionSettings()
        self.observer = observer or WorldObserver()

    def simulate(
        self, height: np.ndarray, *, cancel: Callable[[], bool] | None = None
    ) -> np.ndarray:
        """Return an eroded copy of ``height``; the input is left untouched."""
        return np.array(self.run(height, cancel=cancel).height)

    def run(
        self, height: np.ndarray, *, cancel: Callable[[], bool] | None = None
    ) -> ErosionResult:
        h = as_grid(height, "height")
        rows = h.tolist()

        t0 = time.perf_counter()
        droplets, total_steps, max_steps, eroded, deposited = self._hydraulic(rows, cancel)
        logger.debug(
            "hydraulic erosion: %d droplets, %d steps in %.1f ms",
            droplets,
            total_steps,
            (time.perf_counter() - t0) * 1000.0,
        )

        t0 = time.perf_counter()
        out, passes = self._thermal(rows, cancel)
        logger.debug(
            "thermal erosion: %d passes (%s) in %.1f ms",
            passes,
            self.settings.thermal_mode,
            (time.perf_counter() - t0) * 1000.0,
        )

        return ErosionResult(
            height=freeze(out),
            droplets=droplets,
            total_steps=total_steps,
            max_steps=max_steps,
            thermal_passes=passes,
            eroded=eroded,
            deposited=deposited,
        )

    def step(self, rows: Rows, d: Droplet) -> tuple[bool, float, float]:
        """Advance a droplet by one unit.

        Returns (alive, eroded, deposited). A droplet whose cell is outside
        the interior is dead before it moves.
        """

        s = self.settings
        H = len(rows)
        W = len(rows[0]) if H else 0
        if not _inside(W, H, math.floor(d.x), math.floor(d.y)):
            return False, 0.0, 0.0

        gx, gy = gradient(rows, d.x, d.y)
        sign = -1.0 if s.descend else 1.0
        pull = 1.0 - s.inertia
        d.dir_x = d.dir_x * s.inertia + sign * gx * pull
        d.dir_y = d.dir_y * s.inertia + sign * gy * pull
        length = math.sqrt(d.dir_x * d.dir_x + d.dir_y * d.dir_y)
        if length != 0.0:
            d.dir_x /= length
            d.dir_y /= length

        old_x, old_y = d.x, d.y
        d.x += d.dir_x
        d.y += d.dir_y

        height_diff = interpolate_height(rows, d.x, d.y) - interpolate_height(rows, old_x, old_y)

        d.speed = math.sqrt(max(0.0, d.speed * d.speed + height_diff * s.gravity))
        d.volume *= s.evaporation
        d.steps += 1

        capacity = max(-height_diff, s.min_slope) * d.speed * d.volume * s.strength

        if d.sediment > capacity:
            amount = (d.sediment - capacity) * s.deposition
            d.sediment -= amount
            splat(rows, d.x, d.y, amount)
            return True, 0.0, amount

        amount = min((capacity - d.sediment) * s.strength, -height_diff)
        d.sediment += amount
        splat(rows, d.x, d.y, -amount)
        return True, amount, 0.0

    def _hydraulic(
        self, rows: Rows, cancel: Callable[[], bool] | None
    ) -> tuple[int, int, int, float, float]:
        s = self.settings
        total = int(s.iterations)
        H = len(rows)
        W = len(rows[0]) if H else 0
        if total == 0:
            return 0, 0, 0, 0.0, 0.0

        rng = np.random.default_rng(0 if s.seed is None else int(s.seed))
        spawn = rng.random((total, 2))
        spawn[:, 0] *= max(W - 1, 0)
        spawn[:, 1] *= max(H - 1, 0)

        total_steps = 0
        max_steps = 0
        eroded = 0.0
        deposited = 0.0
        every = int(s.progress_interval)
        check = int(s.cancel_interval)

        for i, (x, y) in enumerate(spawn.tolist()):
            if cancel is not None and i % check == 0 and cancel():
                logger.info("hydraulic erosion cancelled after %d droplets", i)
                raise GenerationCancelled(f"cancelled after {i} of {total} droplets")

            d = Droplet(x=x, y=y)
            while d.volume > s.min_volume:
                alive, e, dep = self.step(rows, d)
                if not alive:
                    break
                eroded += e
                deposited += dep

            total_steps += d.steps
            max_steps = max(max_steps, d.steps)

            done = i + 1
            if done % every == 0 or done == total:
                self.observer.erosion_progress(done / total)

        return total, total_steps, max_steps, eroded, deposited

    def _thermal(
        self, rows: Rows, cancel: Callable[[], bool] | None
    ) -> tuple[np.ndarray, int]:
        s = self.settings
        passes = s.thermal_passes
        talus = float(s.talus)
        smoothness = float(s.smoothness)

        if s.thermal_mode == "raster":
            for i in range(passes):
                self._check_thermal(i, passes, cancel)
                _thermal_raster_inplace(rows, talus, smoothness)
                self._thermal_progress(i, passes)
            return np.asarray(rows, dtype=np.float64), passes

        out = np.asarray(rows, dtype=np.float64)
        for i in range(passes):
            self._check_thermal(i, passes, cancel)
            out = thermal_pass_buffered(out, talus=talus, smoothness=smoothness)
            self._thermal_progress(i, passes)
        return out, passes

    def _check_thermal(self, i: int, passes: int, cancel: Callable[[], bool] | None) -> None:
        if cancel is not None and i % int(self.settings.cancel_interval) == 0 and cancel():
            logger.info("thermal erosion cancelled after %d passes", i)
            raise GenerationCancelled(f"cancelled after {i} of {passes} thermal passes")

    def _thermal_progress(self, i: int, passes: int) -> None:
        done = i + 1
        if done % 10 == 0 or done == passes:
            self.observer.thermal_progress(done / passes)

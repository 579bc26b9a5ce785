from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import numpy as np

from noisefield.field import NoiseField
from noisefield.fractal import FractalCompositor, sample_grid
from worldsynth.config import TerrainSettings
from worldsynth.events import WorldObserver
from worldsynth.grid import cell_value, freeze

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HeightmapResult:
    height: np.ndarray
    temperature: np.ndarray
    humidity: np.ndarray

    @property
    def shape(self) -> tuple[int, int]:
        return self.height.shape

    def height_at(self, x: int, y: int) -> float:
        return float(cell_value(self.height, x, y, 0.0))


class HeightmapGenerator:
    """Compose base terrain, mountain ridges and ocean depth into one grid.

    Climate grids are derived from the final height. Every step is
    vectorized over the whole grid and runs in a fixed order, since later
    steps read the output of earlier ones.
    """

    def __init__(
        self,
        settings: TerrainSettings | None = None,
        *,
        observer: WorldObserver | None = None,
    ):
        self.settings = settings or TerrainSettings()
        self.observer = observer or WorldObserver()
        self.field = NoiseField(self.settings.seed)
        self.compositor = FractalCompositor(self.field)

    def generate(self) -> HeightmapResult:
        s = self.settings
        xg, yg = sample_grid(s.width, s.height)

        t0 = time.perf_counter()
        height = self.base_height(xg, yg)
        self._done("base", t0)

        t0 = time.perf_counter()
        height = self.add_mountains(height, xg, yg)
        self._done("mountains", t0)

        t0 = time.perf_counter()
        height = self.add_oceans(height, xg, yg)
        self._done("oceans", t0)

        t0 = time.perf_counter()
        temperature, humidity = self.climate(height, xg, yg)
        self._done("climate", t0)

        return HeightmapResult(
            height=freeze(height),
            temperature=freeze(temperature),
            humidity=freeze(humidity),
        )

    def base_height(self, xg: np.ndarray, yg: np.ndarray) -> np.ndarray:
        base = self.compositor.sample("fractal", xg, yg, self.settings.base)
        return (base + 1.0) * 0.5

    def add_mountains(self, height: np.ndarray, xg: np.ndarray, yg: np.ndarray) -> np.ndarray:
        w = float(self.settings.mountain_weight)
        ridges = self.compositor.sample("ridged", xg, yg, self.settings.mountain)
        return height * (1.0 - w) + ridges * w

    def add_oceans(self, height: np.ndarray, xg: np.ndarray, yg: np.ndarray) -> np.ndarray:
        level = float(self.settings.ocean_level)
        depth = self.compositor.sample("billow", xg, yg, self.settings.ocean)
        below = height < level
        depth_factor = (level - height) / level
        return np.where(below, height - depth * depth_factor * 0.3, height)

    def climate(
        self, height: np.ndarray, xg: np.ndarray, yg: np.ndarray
    ) -> tuple[np.ndarray, np.ndarray]:
        s = self.settings
        # Equator at mid-height, poles at the top and bottom rows.
        latitude = np.cos((yg / float(s.height) - 0.5) * np.pi)
        height_factor = 1.0 - height
        t_noise = self.compositor.sample("fractal", xg, yg, s.temperature_noise)
        temperature = (latitude * 0.6 + height_factor * 0.3 + t_noise * 0.1 + 1.0) * 0.5
        temperature = temperature + float(s.temperature_offset)

        off = float(s.humidity_sample_offset)
        h_noise = self.compositor.sample("fractal", xg + off, yg + off, s.humidity_noise)
        humidity = (h_noise + 1.0) * 0.5
        humidity = humidity * (1.0 - np.abs(temperature - 0.5))
        humidity = humidity + float(s.humidity_offset)
        return temperature, humidity

    def _done(self, stage: str, t0: float) -> None:
        logger.debug("%s stage took %.1f ms", stage, (time.perf_counter() - t0) * 1000.0)
        self.observer.stage_completed(stage)

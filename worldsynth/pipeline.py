from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Sequence

import numpy as np

from noisefield.core import seed_to_int
from worldsynth.biomes import DEFAULT_BIOME_RULES, BiomeClassifier, BiomeResult, BiomeRule, BiomeType
from worldsynth.config import TerrainSettings
from worldsynth.erosion import ErosionResult, ErosionSimulator
from worldsynth.events import WorldObserver
from worldsynth.grid import cell_value
from worldsynth.heightmap import HeightmapGenerator, HeightmapResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorldResult:
    """Completed, read-only snapshot of one generation run."""

    heightmap: HeightmapResult
    erosion: ErosionResult
    biomes: BiomeResult

    @property
    def height(self) -> np.ndarray:
        return self.erosion.height

    @property
    def temperature(self) -> np.ndarray:
        return self.heightmap.temperature

    @property
    def humidity(self) -> np.ndarray:
        return self.heightmap.humidity

    @property
    def biome(self) -> np.ndarray:
        return self.biomes.biome

    @property
    def transition(self) -> np.ndarray:
        return self.biomes.transition

    def height_at(self, x: int, y: int) -> float:
        return float(cell_value(self.height, x, y, 0.0))

    def biome_at(self, x: int, y: int) -> BiomeType:
        return self.biomes.biome_at(x, y)

    def transition_at(self, x: int, y: int) -> float:
        return self.biomes.transition_at(x, y)


class WorldPipeline:
    """Heightmap generation, erosion and biome classification, in that order."""

    def __init__(
        self,
        settings: TerrainSettings | None = None,
        *,
        rules: Sequence[BiomeRule] = DEFAULT_BIOME_RULES,
        default_biome: BiomeType = BiomeType.PLAINS,
        observer: WorldObserver | None = None,
    ):
        self.settings = settings or TerrainSettings()
        self.observer = observer or WorldObserver()
        self.generator = HeightmapGenerator(self.settings, observer=self.observer)
        erosion = self.settings.erosion
        if erosion.seed is None:
            erosion = replace(erosion, seed=seed_to_int(self.settings.seed))
        self.simulator = ErosionSimulator(erosion, observer=self.observer)
        self.classifier = BiomeClassifier(rules, default=default_biome, observer=self.observer)

    def run(self, *, cancel: Callable[[], bool] | None = None) -> WorldResult:
        s = self.settings
        logger.info("generating %dx%d world (seed=%r)", s.width, s.height, s.seed)
        t0 = time.perf_counter()

        heightmap = self.generator.generate()

        erosion = self.simulator.run(heightmap.height, cancel=cancel)
        self.observer.stage_completed("erosion")

        biomes = self.classifier.classify_result(
            erosion.height, heightmap.temperature, heightmap.humidity
        )
        self.observer.stage_completed("biomes")

        logger.info("world generated in %.1f ms", (time.perf_counter() - t0) * 1000.0)
        return WorldResult(heightmap=heightmap, erosion=erosion, biomes=biomes)


def generate_world(
    settings: TerrainSettings | None = None,
    *,
    rules: Sequence[BiomeRule] = DEFAULT_BIOME_RULES,
    observer: WorldObserver | None = None,
    cancel: Callable[[], bool] | None = None,
    **overrides: Any,
) -> WorldResult:
    """Run the full pipeline once.

    Keyword overrides are merged over ``settings`` (or the defaults) with
    ``TerrainSettings.from_mapping`` semantics for nested groups.
    """

    if overrides:
        settings = TerrainSettings.from_mapping(overrides, base=settings)
    return WorldPipeline(settings, rules=rules, observer=observer).run(cancel=cancel)

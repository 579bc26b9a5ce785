from __future__ import annotations

from worldsynth.biomes import (
    BIOME_INFO,
    DEFAULT_BIOME_RULES,
    BiomeClassifier,
    BiomeInfo,
    BiomeResult,
    BiomeRule,
    BiomeType,
    range_match,
    threshold_biome_map,
    transition_value,
)
from worldsynth.config import (
    DEFAULT_TERRAIN_SETTINGS,
    ErosionSettings,
    HeightThresholds,
    TerrainSettings,
)
from worldsynth.erosion import (
    Droplet,
    ErosionResult,
    ErosionSimulator,
    thermal_pass_buffered,
    thermal_pass_raster,
)
from worldsynth.errors import ConfigError, GenerationCancelled
from worldsynth.events import LoggingObserver, WorldObserver
from worldsynth.heightmap import HeightmapGenerator, HeightmapResult
from worldsynth.pipeline import WorldPipeline, WorldResult, generate_world

__all__ = [
    "BIOME_INFO",
    "BiomeClassifier",
    "BiomeInfo",
    "BiomeResult",
    "BiomeRule",
    "BiomeType",
    "ConfigError",
    "DEFAULT_BIOME_RULES",
    "DEFAULT_TERRAIN_SETTINGS",
    "Droplet",
    "ErosionResult",
    "ErosionSettings",
    "ErosionSimulator",
    "GenerationCancelled",
    "HeightThresholds",
    "HeightmapGenerator",
    "HeightmapResult",
    "LoggingObserver",
    "TerrainSettings",
    "WorldObserver",
    "WorldPipeline",
    "WorldResult",
    "generate_world",
    "range_match",
    "thermal_pass_buffered",
    "thermal_pass_raster",
    "threshold_biome_map",
    "transition_value",
]

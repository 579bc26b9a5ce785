from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from typing import Any, Mapping

from noisefield.settings import ConfigError, NoiseSettings

THERMAL_MODES = ("buffered", "raster")


@dataclass(frozen=True)
class ErosionSettings:
    """Tunables for the droplet and talus erosion passes.

    ``thermal_iterations=None`` means ``int(0.2 * iterations)`` passes.
    ``seed=None`` lets ``WorldPipeline`` derive the droplet seed from the
    terrain seed; a standalone simulator then uses 0.
    """

    iterations: int = 50000
    strength: float = 0.3
    deposition: float = 0.1
    smoothness: float = 0.15
    thermal_iterations: int | None = None
    talus: float = math.tan(math.pi * 0.25)
    inertia: float = 0.9
    gravity: float = 9.81
    evaporation: float = 0.99
    min_volume: float = 0.01
    min_slope: float = 0.01
    descend: bool = True
    thermal_mode: str = "buffered"
    seed: int | None = None
    progress_interval: int = 1000
    cancel_interval: int = 1000

    def __post_init__(self) -> None:
        if int(self.iterations) < 0:
            raise ConfigError("iterations must be >= 0")
        if self.thermal_iterations is not None and int(self.thermal_iterations) < 0:
            raise ConfigError("thermal_iterations must be >= 0")
        for name in ("strength", "deposition", "smoothness", "talus", "gravity"):
            if float(getattr(self, name)) < 0.0:
                raise ConfigError(f"{name} must be >= 0")
        if not (0.0 <= float(self.inertia) <= 1.0):
            raise ConfigError("inertia must be in [0, 1]")
        if not (0.0 < float(self.evaporation) < 1.0):
            raise ConfigError("evaporation must be in (0, 1)")
        if not (0.0 < float(self.min_volume) < 1.0):
            raise ConfigError("min_volume must be in (0, 1)")
        if str(self.thermal_mode) not in THERMAL_MODES:
            raise ConfigError(f"unknown thermal_mode: {self.thermal_mode}")
        if int(self.progress_interval) < 1 or int(self.cancel_interval) < 1:
            raise ConfigError("progress_interval and cancel_interval must be >= 1")

    @property
    def thermal_passes(self) -> int:
        if self.thermal_iterations is None:
            return int(int(self.iterations) * 0.2)
        return int(self.thermal_iterations)

    @property
    def max_droplet_steps(self) -> int:
        """Upper bound on steps per droplet implied by evaporation."""
        return int(math.ceil(math.log(self.min_volume) / math.log(self.evaporation)))


@dataclass(frozen=True)
class HeightThresholds:
    """Upper height bounds for the threshold biome bucketing."""

    deep_ocean: float = 0.2
    ocean: float = 0.4
    beach: float = 0.45
    lowland: float = 0.55
    hills: float = 0.7
    mountains: float = 0.85
    peaks: float = 0.95

    def __post_init__(self) -> None:
        values = [float(getattr(self, f.name)) for f in fields(self)]
        if any(b < a for a, b in zip(values, values[1:])):
            raise ConfigError("height thresholds must be non-decreasing")


@dataclass(frozen=True)
class TerrainSettings:
    width: int = 256
    height: int = 256
    seed: str = "biome-default-seed"

    base: NoiseSettings = NoiseSettings(octaves=6, persistence=0.5, lacunarity=2.0, scale=100.0)
    mountain: NoiseSettings = NoiseSettings(octaves=4, persistence=0.5, lacunarity=2.0, scale=150.0)
    mountain_weight: float = 0.35
    ocean: NoiseSettings = NoiseSettings(octaves=2, persistence=0.6, lacunarity=2.0, scale=200.0)
    ocean_level: float = 0.4

    temperature_noise: NoiseSettings = NoiseSettings(octaves=3, persistence=0.5, lacunarity=2.0, scale=250.0)
    humidity_noise: NoiseSettings = NoiseSettings(octaves=3, persistence=0.5, lacunarity=2.0, scale=300.0)
    temperature_offset: float = 0.0
    humidity_offset: float = 0.2
    humidity_sample_offset: float = 1000.0

    erosion: ErosionSettings = field(default_factory=ErosionSettings)
    thresholds: HeightThresholds = field(default_factory=HeightThresholds)

    def __post_init__(self) -> None:
        if int(self.width) <= 0 or int(self.height) <= 0:
            raise ConfigError("width and height must be > 0")
        for name in ("base", "mountain", "ocean", "temperature_noise", "humidity_noise"):
            if not isinstance(getattr(self, name), NoiseSettings):
                raise ConfigError(f"{name} must be a NoiseSettings")
        if not (0.0 <= float(self.mountain_weight) <= 1.0):
            raise ConfigError("mountain_weight must be in [0, 1]")
        if not (0.0 < float(self.ocean_level) <= 1.0):
            raise ConfigError("ocean_level must be in (0, 1]")

    def with_overrides(self, **changes: Any) -> "TerrainSettings":
        return replace(self, **changes)

    @classmethod
    def from_mapping(
        cls, mapping: Mapping[str, Any], base: "TerrainSettings | None" = None
    ) -> "TerrainSettings":
        """Merge a partial mapping over ``base`` (the defaults if omitted).

        Nested groups may be given as mappings, e.g.
        ``{"base": {"octaves": 3}, "erosion": {"iterations": 0}}``; missing
        keys keep the values from ``base``.
        """

        defaults = base or cls()
        known = {f.name for f in fields(cls)}
        unknown = set(mapping) - known
        if unknown:
            raise ConfigError(f"unknown settings: {sorted(unknown)}")

        changes: dict[str, Any] = {}
        for key, value in mapping.items():
            current = getattr(defaults, key)
            if isinstance(value, Mapping) and hasattr(current, "__dataclass_fields__"):
                try:
                    changes[key] = replace(current, **dict(value))
                except TypeError as exc:
                    raise ConfigError(f"invalid {key} settings: {exc}") from exc
            else:
                changes[key] = value
        return replace(defaults, **changes)


DEFAULT_TERRAIN_SETTINGS = TerrainSettings()

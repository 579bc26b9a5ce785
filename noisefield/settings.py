from __future__ import annotations

from dataclasses import dataclass


class ConfigError(ValueError):
    """Invalid generation parameters, raised before any work starts."""


@dataclass(frozen=True)
class NoiseSettings:
    """Octave falloff parameters for one noise layer."""

    octaves: int = 4
    persistence: float = 0.5
    lacunarity: float = 2.0
    scale: float = 100.0

    def __post_init__(self) -> None:
        if int(self.octaves) != self.octaves or self.octaves < 1:
            raise ConfigError(f"octaves must be an integer >= 1, got {self.octaves!r}")
        if not (0.0 < float(self.persistence) <= 1.0):
            raise ConfigError(f"persistence must be in (0, 1], got {self.persistence!r}")
        if not float(self.lacunarity) > 1.0:
            raise ConfigError(f"lacunarity must be > 1, got {self.lacunarity!r}")
        if not float(self.scale) > 0.0:
            raise ConfigError(f"scale must be > 0, got {self.scale!r}")

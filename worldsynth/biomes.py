from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Sequence

import numpy as np

from worldsynth.config import HeightThresholds
from worldsynth.errors import ConfigError
from worldsynth.events import WorldObserver
from worldsynth.grid import as_grid, cell_value, freeze


class BiomeType(IntEnum):
    DEEP_OCEAN = 0
    OCEAN = 1
    BEACH = 2
    TUNDRA = 3
    PLAINS = 4
    FOREST = 5
    DESERT = 6
    RAINFOREST = 7
    HILLS = 8
    MOUNTAINS = 9
    SNOW_PEAKS = 10


@dataclass(frozen=True)
class BiomeRule:
    """Acceptance box for one biome on normalized height/temperature/humidity."""

    biome: BiomeType
    min_height: float
    max_height: float
    min_temp: float
    max_temp: float
    min_humidity: float
    max_humidity: float
    transition_range: float = 0.05

    def __post_init__(self) -> None:
        for lo, hi in self.ranges():
            if lo > hi:
                raise ConfigError(f"{self.biome.name}: min must be <= max")
        if not float(self.transition_range) > 0.0:
            raise ConfigError(f"{self.biome.name}: transition_range must be > 0")

    def ranges(self) -> tuple[tuple[float, float], ...]:
        return (
            (float(self.min_height), float(self.max_height)),
            (float(self.min_temp), float(self.max_temp)),
            (float(self.min_humidity), float(self.max_humidity)),
        )


@dataclass(frozen=True)
class BiomeInfo:
    base_color: tuple[int, int, int]
    vegetation_density: float
    resource_types: tuple[str, ...] = ()
    structure_types: tuple[str, ...] = ()


DEFAULT_BIOME_RULES: tuple[BiomeRule, ...] = (
    BiomeRule(BiomeType.DEEP_OCEAN, 0.0, 0.2, 0.0, 1.0, 0.4, 1.2, 0.05),
    BiomeRule(BiomeType.OCEAN, 0.15, 0.4, 0.0, 1.0, 0.4, 1.2, 0.05),
    BiomeRule(BiomeType.BEACH, 0.38, 0.47, 0.3, 1.0, 0.2, 1.0, 0.05),
    BiomeRule(BiomeType.TUNDRA, 0.45, 0.75, -0.2, 0.3, 0.0, 0.8, 0.1),
    BiomeRule(BiomeType.PLAINS, 0.45, 0.65, 0.3, 0.7, 0.2, 0.7, 0.1),
    BiomeRule(BiomeType.FOREST, 0.45, 0.7, 0.25, 0.65, 0.5, 1.0, 0.1),
    BiomeRule(BiomeType.DESERT, 0.45, 0.7, 0.6, 1.2, -0.1, 0.35, 0.1),
    BiomeRule(BiomeType.RAINFOREST, 0.45, 0.65, 0.6, 1.1, 0.6, 1.2, 0.1),
    BiomeRule(BiomeType.HILLS, 0.6, 0.8, 0.2, 0.8, 0.2, 0.9, 0.05),
    BiomeRule(BiomeType.MOUNTAINS, 0.7, 0.9, 0.0, 0.6, 0.0, 1.0, 0.05),
    BiomeRule(BiomeType.SNOW_PEAKS, 0.85, 1.2, -0.3, 0.35, 0.0, 1.0, 0.05),
)

BIOME_INFO: dict[BiomeType, BiomeInfo] = {
    BiomeType.DEEP_OCEAN: BiomeInfo((0, 20, 80), 0.1, ("fish", "coral"), ("shipwreck", "ruins")),
    BiomeType.OCEAN: BiomeInfo((0, 40, 120), 0.2, ("fish", "seaweed"), ("coral_reef",)),
    BiomeType.BEACH: BiomeInfo((240, 230, 140), 0.3, ("shells", "palm_trees"), ("beach_hut",)),
    BiomeType.TUNDRA: BiomeInfo((230, 230, 230), 0.2, ("ice", "moss"), ("ice_cave",)),
    BiomeType.PLAINS: BiomeInfo((120, 170, 80), 0.6, ("grass", "flowers"), ("village", "farm")),
    BiomeType.FOREST: BiomeInfo((34, 110, 50), 0.9, ("wood", "berries"), ("cabin",)),
    BiomeType.DESERT: BiomeInfo((220, 190, 110), 0.05, ("sand", "cactus"), ("oasis", "ruins")),
    BiomeType.RAINFOREST: BiomeInfo((20, 90, 35), 1.0, ("hardwood", "fruit"), ("temple",)),
    BiomeType.HILLS: BiomeInfo((110, 130, 70), 0.5, ("stone", "herbs"), ("watchtower",)),
    BiomeType.MOUNTAINS: BiomeInfo((120, 110, 100), 0.2, ("ore", "stone"), ("mine",)),
    BiomeType.SNOW_PEAKS: BiomeInfo((245, 245, 250), 0.0, ("ice", "crystal"), ("shrine",)),
}


def range_match(value, lo: float, hi: float):
    """Triangular membership: 1 at the interval midpoint, 0 at and beyond the edges."""

    v = np.asarray(value, dtype=np.float64)
    lo = float(lo)
    hi = float(hi)
    half = (hi - lo) / 2.0
    inside = (v >= lo) & (v <= hi)
    if half == 0.0:
        return np.where(inside, 1.0, 0.0)
    center = (lo + hi) / 2.0
    return np.where(inside, np.maximum(0.0, 1.0 - np.abs(v - center) / half), 0.0)


def transition_value(rule: BiomeRule, neighbor: BiomeRule) -> float:
    """Blend weight between two rules, maximized over the three axes."""

    best = 0.0
    for (lo1, hi1), (lo2, hi2) in zip(rule.ranges(), neighbor.ranges()):
        distance = abs((lo1 + hi1) / 2.0 - (lo2 + hi2) / 2.0)
        max_half = max(hi1 - lo1, hi2 - lo2) / 2.0
        t = (distance - max_half) / float(rule.transition_range)
        best = max(best, min(1.0, max(0.0, t)))
    return best


@dataclass(frozen=True)
class BiomeResult:
    biome: np.ndarray
    transition: np.ndarray
    default: BiomeType = BiomeType.PLAINS

    def biome_at(self, x: int, y: int) -> BiomeType:
        return BiomeType(int(cell_value(self.biome, x, y, int(self.default))))

    def transition_at(self, x: int, y: int) -> float:
        return float(cell_value(self.transition, x, y, 0.0))


class BiomeClassifier:
    """Score height/temperature/humidity against an ordered rule table.

    Scoring is pure. ``classify`` additionally remembers the last winner and
    tells the observer when it changes, which is how a point-of-interest
    (e.g. the player position) learns about biome crossings.
    """

    def __init__(
        self,
        rules: Sequence[BiomeRule] = DEFAULT_BIOME_RULES,
        *,
        default: BiomeType = BiomeType.PLAINS,
        observer: WorldObserver | None = None,
    ):
        rules = tuple(rules)
        if not rules:
            raise ConfigError("at least one biome rule is required")
        seen = [r.biome for r in rules]
        if len(set(seen)) != len(seen):
            raise ConfigError("biome rules must have unique biomes")

        self.rules = rules
        self.default = BiomeType(default)
        self.observer = observer or WorldObserver()
        self.current = self.default

        self._codes = np.array([int(r.biome) for r in rules], dtype=np.uint8)
        self._rule_index = {r.biome: i for i, r in enumerate(rules)}
        n = len(rules)
        self._pair = np.zeros((n, n), dtype=np.float64)
        for i, a in enumerate(rules):
            for j, b in enumerate(rules):
                if i != j:
                    self._pair[i, j] = transition_value(a, b)

    def rule_for(self, biome: BiomeType) -> BiomeRule | None:
        i = self._rule_index.get(BiomeType(biome))
        return None if i is None else self.rules[i]

    def score(self, height, temperature, humidity) -> np.ndarray:
        """Mean per-axis match for every rule, stacked on axis 0 in rule order."""

        h = np.asarray(height, dtype=np.float64)
        t = np.asarray(temperature, dtype=np.float64)
        m = np.asarray(humidity, dtype=np.float64)
        out = []
        for r in self.rules:
            s = (
                range_match(h, r.min_height, r.max_height)
                + range_match(t, r.min_temp, r.max_temp)
                + range_match(m, r.min_humidity, r.max_humidity)
            ) / 3.0
            out.append(s)
        return np.stack(out, axis=0)

    def classify(self, height: float, temperature: float, humidity: float) -> BiomeType:
        scores = self.score(height, temperature, humidity)
        # argmax returns the first maximum, i.e. the first registered rule.
        i = int(np.argmax(scores))
        best = self.default if float(scores[i]) <= 0.0 else self.rules[i].biome

        if best != self.current:
            previous = self.current
            self.current = best
            self.observer.biome_changed(best, previous)
        return best

    def classify_grid(self, height, temperature, humidity) -> np.ndarray:
        h = as_grid(height, "height")
        t = as_grid(temperature, "temperature")
        m = as_grid(humidity, "humidity")
        if t.shape != h.shape or m.shape != h.shape:
            raise ValueError("temperature/humidity must match height shape")

        scores = self.score(h, t, m)
        idx = np.argmax(scores, axis=0)
        best = np.take_along_axis(scores, idx[None, ...], axis=0)[0]
        out = self._codes[idx]
        return np.where(best > 0.0, out, np.uint8(int(self.default))).astype(np.uint8)

    def compute_transitions(self, biome: np.ndarray) -> np.ndarray:
        b = np.asarray(biome)
        if b.ndim != 2:
            raise ValueError("biome must be a 2D array")
        H, W = b.shape

        # Rule index per cell; -1 where the biome has no rule.
        lookup = np.full(256, -1, dtype=np.int64)
        lookup[self._codes.astype(np.int64)] = np.arange(len(self.rules))
        ri = lookup[b.astype(np.int64)]

        out = np.zeros((H, W), dtype=np.float64)
        for dy, dx in ((0, -1), (0, 1), (-1, 0), (1, 0)):
            y0, y1 = max(0, -dy), min(H, H - dy)
            x0, x1 = max(0, -dx), min(W, W - dx)
            if y1 <= y0 or x1 <= x0:
                continue
            c = ri[y0:y1, x0:x1]
            n = ri[y0 + dy : y1 + dy, x0 + dx : x1 + dx]
            cb = b[y0:y1, x0:x1]
            nb = b[y0 + dy : y1 + dy, x0 + dx : x1 + dx]
            valid = (cb != nb) & (c >= 0) & (n >= 0)
            t = np.where(valid, self._pair[np.maximum(c, 0), np.maximum(n, 0)], 0.0)
            out[y0:y1, x0:x1] = np.maximum(out[y0:y1, x0:x1], t)
        return out

    def classify_result(self, height, temperature, humidity) -> BiomeResult:
        biome = self.classify_grid(height, temperature, humidity)
        transition = self.compute_transitions(biome)
        return BiomeResult(
            biome=freeze(biome),
            transition=freeze(transition),
            default=self.default,
        )


def threshold_biome_map(
    height: np.ndarray,
    temperature: np.ndarray,
    humidity: np.ndarray,
    *,
    thresholds: HeightThresholds | None = None,
) -> np.ndarray:
    """Bucket biomes by height bands, splitting lowlands by climate.

    A cheaper alternative to rule scoring. Codes are ``BiomeType`` values.
    """

    h = as_grid(height, "height")
    t = as_grid(temperature, "temperature")
    m = as_grid(humidity, "humidity")
    if t.shape != h.shape or m.shape != h.shape:
        raise ValueError("temperature/humidity must match height shape")
    th = thresholds or HeightThresholds()

    out = np.full(h.shape, int(BiomeType.SNOW_PEAKS), dtype=np.uint8)
    out[h < th.mountains] = np.uint8(BiomeType.MOUNTAINS)
    out[h < th.hills] = np.uint8(BiomeType.HILLS)

    lowland = (h >= th.beach) & (h < th.lowland)
    cold = lowland & (t < 0.2)
    temperate = lowland & (t >= 0.2) & (t < 0.4)
    warm = lowland & (t >= 0.4)
    out[cold] = np.uint8(BiomeType.TUNDRA)
    out[temperate & (m < 0.5)] = np.uint8(BiomeType.PLAINS)
    out[temperate & (m >= 0.5)] = np.uint8(BiomeType.FOREST)
    out[warm & (m < 0.3)] = np.uint8(BiomeType.DESERT)
    out[warm & (m >= 0.3)] = np.uint8(BiomeType.RAINFOREST)

    out[h < th.beach] = np.uint8(BiomeType.BEACH)
    out[h < th.ocean] = np.uint8(BiomeType.OCEAN)
    out[h < th.deep_ocean] = np.uint8(BiomeType.DEEP_OCEAN)
    return out

from __future__ import annotations

import numpy as np

from .core import smoothstep01
from .field import Noise2D
from .settings import ConfigError, NoiseSettings

# Coordinate shift for the second warp sample.
WARP_OFFSET = 31.416


def _accumulate(noise: Noise2D, x, y, *, octaves, persistence, lacunarity, scale, shape):
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)

    octaves = int(octaves)
    persistence = float(persistence)
    lacunarity = float(lacunarity)
    scale = float(scale)

    amp = 1.0
    freq = 1.0
    total = np.zeros(np.broadcast(x, y).shape, dtype=np.float64)
    amp_sum = 0.0

    for _ in range(max(octaves, 1)):
        total += amp * shape(noise.noise(x * freq / scale, y * freq / scale))
        amp_sum += amp
        amp *= persistence
        freq *= lacunarity

    if amp_sum == 0.0:
        return total
    return total / amp_sum


def fractal(
    noise: Noise2D,
    x: np.ndarray,
    y: np.ndarray,
    *,
    octaves: int = 4,
    persistence: float = 0.5,
    lacunarity: float = 2.0,
    scale: float = 1.0,
) -> np.ndarray:
    """Fractal Brownian motion, renormalized by total amplitude to [-1, 1]."""
    return _accumulate(
        noise,
        x,
        y,
        octaves=octaves,
        persistence=persistence,
        lacunarity=lacunarity,
        scale=scale,
        shape=lambda n: n,
    )


def ridged(
    noise: Noise2D,
    x: np.ndarray,
    y: np.ndarray,
    *,
    octaves: int = 4,
    persistence: float = 0.5,
    lacunarity: float = 2.0,
    scale: float = 1.0,
) -> np.ndarray:
    """Ridged multifractal: each octave contributes (1 - |n|)^2. Range [0, 1]."""

    def shape(n: np.ndarray) -> np.ndarray:
        signal = 1.0 - np.abs(n)
        return signal * signal

    return _accumulate(
        noise,
        x,
        y,
        octaves=octaves,
        persistence=persistence,
        lacunarity=lacunarity,
        scale=scale,
        shape=shape,
    )


def billow(
    noise: Noise2D,
    x: np.ndarray,
    y: np.ndarray,
    *,
    octaves: int = 4,
    persistence: float = 0.5,
    lacunarity: float = 2.0,
    scale: float = 1.0,
) -> np.ndarray:
    """Billowed noise: each octave contributes |n|. Range [0, 1]."""
    return _accumulate(
        noise,
        x,
        y,
        octaves=octaves,
        persistence=persistence,
        lacunarity=lacunarity,
        scale=scale,
        shape=np.abs,
    )


def terraced(
    noise: Noise2D,
    x: np.ndarray,
    y: np.ndarray,
    *,
    octaves: int = 4,
    persistence: float = 0.5,
    lacunarity: float = 2.0,
    scale: float = 1.0,
    terraces: int = 8,
) -> np.ndarray:
    """Step-quantized fractal noise with smoothstep ramps between steps."""

    terraces = int(terraces)
    if terraces < 1:
        raise ConfigError("terraces must be >= 1")

    v = fractal(
        noise,
        x,
        y,
        octaves=octaves,
        persistence=persistence,
        lacunarity=lacunarity,
        scale=scale,
    )
    step = 1.0 / terraces
    k = np.floor(v / step)
    t = (v - k * step) / step
    return (k + smoothstep01(t)) * step


def domain_warp(
    noise: Noise2D,
    x: np.ndarray,
    y: np.ndarray,
    *,
    frequency: float = 1.0,
    amplitude: float = 1.0,
) -> tuple[np.ndarray, np.ndarray]:
    """Return coordinates displaced by two decorrelated noise samples."""

    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    frequency = float(frequency)
    amplitude = float(amplitude)

    wx = noise.noise(x * frequency, y * frequency)
    wy = noise.noise((x + WARP_OFFSET) * frequency, (y + WARP_OFFSET) * frequency)
    return x + wx * amplitude, y + wy * amplitude


def hybrid_multifractal(
    noise: Noise2D,
    x: np.ndarray,
    y: np.ndarray,
    *,
    octaves: int = 4,
    persistence: float = 0.5,
    lacunarity: float = 2.0,
    scale: float = 1.0,
    offset: float = 0.7,
    gain: float = 1.0,
) -> np.ndarray:
    """Hybrid multifractal (Musgrave).

    Higher octaves are weighted by the running result where it is positive,
    which flattens valleys and keeps detail on plateaus. The output is not
    renormalized.
    """

    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    octaves = int(octaves)
    persistence = float(persistence)
    lacunarity = float(lacunarity)
    scale = float(scale)
    offset = float(offset)

    result = (noise.noise(x / scale, y / scale) + offset) * float(gain)
    amp = 1.0
    freq = 1.0

    for _ in range(1, octaves):
        freq *= lacunarity
        amp *= persistence
        weight = np.where(result > 0.0, result, 1.0)
        n = noise.noise(x * freq / scale, y * freq / scale)
        result = result + (n + offset) * amp * weight

    return result


def warped(
    noise: Noise2D,
    x: np.ndarray,
    y: np.ndarray,
    *,
    strength: float = 10.0,
    scale: float = 1.0,
) -> np.ndarray:
    """Single-octave noise sampled at a noise-displaced position."""

    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    strength = float(strength)
    scale = float(scale)

    wx = noise.noise(x / scale, y / scale) * strength
    wy = noise.noise((x + WARP_OFFSET) / scale, y / scale) * strength
    return noise.noise((x + wx) / scale, (y + wy) / scale)


def voronoi(
    noise: Noise2D,
    x: np.ndarray,
    y: np.ndarray,
    *,
    frequency: float = 1.0,
    amplitude: float = 1.0,
) -> np.ndarray:
    """Distance to the nearest jittered feature point (capped at 1)."""

    x = np.asarray(x, dtype=np.float64) * float(frequency)
    y = np.asarray(y, dtype=np.float64) * float(frequency)
    cx = np.floor(x)
    cy = np.floor(y)

    best = np.ones(np.broadcast(x, y).shape, dtype=np.float64)
    for ox in (-1.0, 0.0, 1.0):
        for oy in (-1.0, 0.0, 1.0):
            px = cx + ox
            py = cy + oy
            fx = px + noise.noise(px, py)
            fy = py + noise.noise(px + WARP_OFFSET, py + WARP_OFFSET)
            d = np.sqrt((x - fx) ** 2 + (y - fy) ** 2)
            best = np.minimum(best, d)

    return best * float(amplitude)


def remap(v, in_min: float, in_max: float, out_min: float, out_max: float):
    return out_min + (v - in_min) * (out_max - out_min) / (in_max - in_min)


def sample_grid(
    width: int,
    height: int,
    *,
    offset_x: float = 0.0,
    offset_y: float = 0.0,
) -> tuple[np.ndarray, np.ndarray]:
    """Integer cell coordinates (x, y) for an H x W grid."""

    width = int(width)
    height = int(height)
    if width <= 0 or height <= 0:
        raise ConfigError("width and height must be > 0")
    xs = np.arange(width, dtype=np.float64) + float(offset_x)
    ys = np.arange(height, dtype=np.float64) + float(offset_y)
    return np.meshgrid(xs, ys)


class FractalCompositor:
    """Bind a noise field and evaluate named fractal variants."""

    VARIANTS = ("fractal", "ridged", "billow", "terraced", "hybrid")

    def __init__(self, noise: Noise2D):
        self.noise = noise

    def sample(
        self,
        variant: str,
        x: np.ndarray,
        y: np.ndarray,
        settings: NoiseSettings,
        **extra: float,
    ) -> np.ndarray:
        params = dict(
            octaves=settings.octaves,
            persistence=settings.persistence,
            lacunarity=settings.lacunarity,
            scale=settings.scale,
        )
        variant = str(variant)
        if variant == "fractal":
            return fractal(self.noise, x, y, **params)
        if variant == "ridged":
            return ridged(self.noise, x, y, **params)
        if variant == "billow":
            return billow(self.noise, x, y, **params)
        if variant == "terraced":
            return terraced(self.noise, x, y, terraces=int(extra.get("terraces", 8)), **params)
        if variant == "hybrid":
            return hybrid_multifractal(
                self.noise,
                x,
                y,
                offset=float(extra.get("offset", 0.7)),
                gain=float(extra.get("gain", 1.0)),
                **params,
            )
        raise ConfigError(f"unknown variant: {variant}")

    def grid(
        self,
        variant: str,
        width: int,
        height: int,
        settings: NoiseSettings,
        *,
        offset_x: float = 0.0,
        offset_y: float = 0.0,
        **extra: float,
    ) -> np.ndarray:
        xg, yg = sample_grid(width, height, offset_x=offset_x, offset_y=offset_y)
        return self.sample(variant, xg, yg, settings, **extra)

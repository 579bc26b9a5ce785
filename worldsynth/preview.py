from __future__ import annotations

import io

import numpy as np
from PIL import Image

from worldsynth.biomes import BIOME_INFO, BiomeType


def _encode_png(pixels: np.ndarray) -> bytes:
    buf = io.BytesIO()
    Image.fromarray(pixels).save(buf, format="PNG")
    return buf.getvalue()


def array_to_png_bytes(z: np.ndarray) -> bytes:
    """Grayscale PNG of a 2D grid, stretched so its min is black and max white.

    A flat grid has no range to stretch and renders black.
    """

    grid = np.asarray(z, dtype=np.float64)
    if grid.ndim != 2:
        raise ValueError("expected a 2D array")

    lo, hi = float(grid.min()), float(grid.max())
    span = hi - lo
    scaled = (grid - lo) / span if span > 0.0 else np.zeros_like(grid)
    return _encode_png(np.clip(scaled * 255.0, 0.0, 255.0).astype(np.uint8))


def biome_rgb(
    biome: np.ndarray,
    *,
    transition: np.ndarray | None = None,
    edge_strength: float = 0.35,
) -> np.ndarray:
    """Color a biome grid with each biome's base color, RGB in 0..1.

    When a transition grid is given, boundary cells are darkened in
    proportion to their blend weight.
    """

    b = np.asarray(biome)
    if b.ndim != 2:
        raise ValueError("biome must be a 2D array")

    palette = np.zeros((256, 3), dtype=np.float64)
    for kind, info in BIOME_INFO.items():
        palette[int(kind)] = np.asarray(info.base_color, dtype=np.float64) / 255.0
    rgb = palette[b.astype(np.int64)]

    if transition is not None:
        t = np.asarray(transition, dtype=np.float64)
        if t.shape != b.shape:
            raise ValueError("transition must have the same shape as biome")
        k = float(np.clip(float(edge_strength), 0.0, 1.0))
        rgb = rgb * (1.0 - k * np.clip(t, 0.0, 1.0))[..., None]

    return np.clip(rgb, 0.0, 1.0)


def rgb_to_png_bytes(rgb01: np.ndarray) -> bytes:
    rgb = np.asarray(rgb01, dtype=np.float64)
    if rgb.ndim != 3 or rgb.shape[2] != 3:
        raise ValueError("rgb01 must be HxWx3")
    return _encode_png(np.clip(rgb * 255.0, 0.0, 255.0).astype(np.uint8))


def legend() -> list[tuple[str, tuple[int, int, int]]]:
    return [(kind.name.lower(), BIOME_INFO[kind].base_color) for kind in BiomeType]

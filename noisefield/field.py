from __future__ import annotations

from typing import Protocol

import numpy as np

from .core import fade, grad2_from_hash, grad3_from_hash, lerp, make_permutation, seed_to_int


class Noise2D(Protocol):
    def noise(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:  # pragma: no cover
        ...


class NoiseField:
    """Seeded gradient noise over 2D and 3D coordinates, values in [-1, 1].

    The permutation table is built once from the seed and is read-only.
    Reseeding means constructing a new field.
    """

    def __init__(self, seed: str | int = 0):
        self.seed = seed
        self.seed_int = seed_to_int(seed)
        self.perm = make_permutation(self.seed_int)

    def __repr__(self) -> str:
        return f"NoiseField(seed={self.seed!r})"

    def noise(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)

        xi0 = np.floor(x).astype(np.int64) & 255
        yi0 = np.floor(y).astype(np.int64) & 255
        xi1 = (xi0 + 1) & 255
        yi1 = (yi0 + 1) & 255

        xf = x - np.floor(x)
        yf = y - np.floor(y)
        u = fade(xf)
        v = fade(yf)

        p = self.perm
        aa = p[p[xi0] + yi0]
        ab = p[p[xi0] + yi1]
        ba = p[p[xi1] + yi0]
        bb = p[p[xi1] + yi1]

        gxaa, gyaa = grad2_from_hash(aa)
        gxab, gyab = grad2_from_hash(ab)
        gxba, gyba = grad2_from_hash(ba)
        gxbb, gybb = grad2_from_hash(bb)

        x1 = xf - 1.0
        y1 = yf - 1.0

        d00 = gxaa * xf + gyaa * yf
        d01 = gxab * xf + gyab * y1
        d10 = gxba * x1 + gyba * yf
        d11 = gxbb * x1 + gybb * y1

        x_lerp0 = lerp(d00, d10, u)
        x_lerp1 = lerp(d01, d11, u)
        return np.clip(lerp(x_lerp0, x_lerp1, v), -1.0, 1.0)

    def noise3(self, x: np.ndarray, y: np.ndarray, z: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        z = np.asarray(z, dtype=np.float64)

        xi0 = np.floor(x).astype(np.int64) & 255
        yi0 = np.floor(y).astype(np.int64) & 255
        zi0 = np.floor(z).astype(np.int64) & 255
        xi1 = (xi0 + 1) & 255
        yi1 = (yi0 + 1) & 255
        zi1 = (zi0 + 1) & 255

        xf = x - np.floor(x)
        yf = y - np.floor(y)
        zf = z - np.floor(z)
        u = fade(xf)
        v = fade(yf)
        w = fade(zf)

        p = self.perm
        x1 = xf - 1.0
        y1 = yf - 1.0
        z1 = zf - 1.0

        def corner(h: np.ndarray, dx: np.ndarray, dy: np.ndarray, dz: np.ndarray) -> np.ndarray:
            gx, gy, gz = grad3_from_hash(h)
            return gx * dx + gy * dy + gz * dz

        a0 = p[xi0] + yi0
        a1 = p[xi0] + yi1
        b0 = p[xi1] + yi0
        b1 = p[xi1] + yi1

        d000 = corner(p[p[a0] + zi0], xf, yf, zf)
        d100 = corner(p[p[b0] + zi0], x1, yf, zf)
        d010 = corner(p[p[a1] + zi0], xf, y1, zf)
        d110 = corner(p[p[b1] + zi0], x1, y1, zf)
        d001 = corner(p[p[a0] + zi1], xf, yf, z1)
        d101 = corner(p[p[b0] + zi1], x1, yf, z1)
        d011 = corner(p[p[a1] + zi1], xf, y1, z1)
        d111 = corner(p[p[b1] + zi1], x1, y1, z1)

        y_lerp0 = lerp(lerp(d000, d100, u), lerp(d010, d110, u), v)
        y_lerp1 = lerp(lerp(d001, d101, u), lerp(d011, d111, u), v)
        return np.clip(lerp(y_lerp0, y_lerp1, w), -1.0, 1.0)

from __future__ import annotations

import hashlib
from itertools import product

import numpy as np


def fade(t: np.ndarray) -> np.ndarray:
    """6t^5 - 15t^4 + 10t^3: zero first and second derivative at 0 and 1."""
    t3 = t * t * t
    return t3 * (10.0 + t * (6.0 * t - 15.0))


def lerp(a: np.ndarray, b: np.ndarray, t: np.ndarray) -> np.ndarray:
    return (1.0 - t) * a + t * b


def smoothstep01(t: np.ndarray) -> np.ndarray:
    """Cubic Hermite 3t^2 - 2t^3 (no clamping)."""
    return t * t * (3.0 - 2.0 * t)


def seed_to_int(seed: str | int) -> int:
    """Derive a stable integer seed.

    Integers are reduced to 64 bits (non-negative ones below 2**64 pass
    through unchanged). Strings are hashed with SHA-256 so the same seed
    string maps to the same permutation in every process.
    """

    if isinstance(seed, (int, np.integer)):
        return int(seed) & 0xFFFFFFFFFFFFFFFF
    digest = hashlib.sha256(str(seed).encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "little")


def make_permutation(seed: str | int) -> np.ndarray:
    rng = np.random.default_rng(seed_to_int(seed))
    p = rng.permutation(256).astype(np.int32)
    table = np.concatenate([p, p])
    table.setflags(write=False)
    return table


# Eight unit directions, 45 degrees apart.
_ANGLES = np.arange(8, dtype=np.float64) * (np.pi / 4.0)
_GRAD2 = np.stack([np.cos(_ANGLES), np.sin(_ANGLES)], axis=1)


def grad2_from_hash(h: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    idx = (h & 7).astype(np.int32)
    g = _GRAD2[idx]
    return g[..., 0], g[..., 1]


# Directions to the twelve edge midpoints of the unit cube.
_GRAD3 = np.array(
    [
        [a if k == i else (b if k == j else 0.0) for k in range(3)]
        for i, j in ((0, 1), (0, 2), (1, 2))
        for a, b in product((1.0, -1.0), repeat=2)
    ],
    dtype=np.float64,
) / np.sqrt(2.0)


def grad3_from_hash(h: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    idx = (h % 12).astype(np.int32)
    g = _GRAD3[idx]
    return g[..., 0], g[..., 1], g[..., 2]

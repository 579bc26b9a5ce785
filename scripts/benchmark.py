from __future__ import annotations

import time
from typing import Callable

import numpy as np

from noisefield import FractalCompositor, NoiseField, NoiseSettings
from worldsynth import ErosionSettings, ErosionSimulator, TerrainSettings, WorldPipeline


def _best_of(fn: Callable[[], object], repeat: int) -> float:
    """Fastest wall time of ``repeat`` calls, in milliseconds."""
    times = []
    for _ in range(repeat):
        start = time.perf_counter()
        fn()
        times.append(time.perf_counter() - start)
    return min(times) * 1000.0


def _cases() -> list[tuple[str, Callable[[], object], int]]:
    compositor = FractalCompositor(NoiseField("benchmark"))
    noise = NoiseSettings(octaves=6, persistence=0.5, lacunarity=2.0, scale=100.0)
    terrain = np.random.default_rng(0).random((256, 256))

    cases = [
        ("noise: fbm 512x512", lambda: compositor.grid("fractal", 512, 512, noise), 3),
        ("noise: ridged 512x512", lambda: compositor.grid("ridged", 512, 512, noise), 3),
    ]
    for mode in ("buffered", "raster"):
        thermal = ErosionSimulator(
            ErosionSettings(iterations=0, thermal_iterations=20, thermal_mode=mode)
        )
        cases.append((f"erosion: 20 thermal passes ({mode})", lambda s=thermal: s.simulate(terrain), 1))

    droplets = ErosionSimulator(ErosionSettings(iterations=5000, thermal_iterations=0))
    cases.append(("erosion: 5000 droplets 256x256", lambda: droplets.simulate(terrain), 1))

    world = TerrainSettings(width=128, height=128, erosion=ErosionSettings(iterations=2000))
    cases.append(("world: 128x128, 2000 droplets", lambda: WorldPipeline(world).run(), 1))
    return cases


def main() -> None:
    """CPU timings for each generation stage.

    The droplet loop is plain Python and dominates; expect seconds for
    the erosion rows and tens of milliseconds for the noise rows.
    """

    cases = _cases()
    width = max(len(label) for label, _, _ in cases)
    for label, fn, repeat in cases:
        print(f"{label:<{width}}  {_best_of(fn, repeat):10.2f} ms")


if __name__ == "__main__":
    main()

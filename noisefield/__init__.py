from .field import NoiseField
from .fractal import (
    FractalCompositor,
    billow,
    domain_warp,
    fractal,
    hybrid_multifractal,
    ridged,
    terraced,
    voronoi,
    warped,
)
from .settings import ConfigError, NoiseSettings

__all__ = [
    "ConfigError",
    "FractalCompositor",
    "NoiseField",
    "NoiseSettings",
    "billow",
    "domain_warp",
    "fractal",
    "hybrid_multifractal",
    "ridged",
    "terraced",
    "voronoi",
    "warped",
]

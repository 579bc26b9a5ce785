import numpy as np
import pytest

from noisefield.field import NoiseField
from noisefield.fractal import (
    FractalCompositor,
    billow,
    domain_warp,
    fractal,
    hybrid_multifractal,
    remap,
    ridged,
    sample_grid,
    terraced,
    voronoi,
    warped,
)
from noisefield.settings import ConfigError, NoiseSettings


def _grid():
    return np.meshgrid(np.linspace(0.0, 300.0, 48), np.linspace(0.0, 200.0, 32))


@pytest.mark.parametrize(
    "octaves,persistence,lacunarity,scale",
    [(1, 1.0, 2.0, 10.0), (4, 0.5, 2.0, 50.0), (8, 0.9, 3.5, 0.5), (6, 0.01, 1.01, 100.0)],
)
def test_fractal_within_unit_range(octaves, persistence, lacunarity, scale):
    f = NoiseField("range")
    xg, yg = _grid()
    z = fractal(
        f,
        xg,
        yg,
        octaves=octaves,
        persistence=persistence,
        lacunarity=lacunarity,
        scale=scale,
    )
    assert z.shape == xg.shape
    assert np.isfinite(z).all()
    assert float(np.min(z)) >= -1.0
    assert float(np.max(z)) <= 1.0


def test_fractal_single_octave_is_scaled_noise():
    f = NoiseField(5)
    xg, yg = _grid()
    z = fractal(f, xg, yg, octaves=1, persistence=0.5, lacunarity=2.0, scale=40.0)
    assert np.allclose(z, f.noise(xg / 40.0, yg / 40.0))


def test_fractal_deterministic():
    xg, yg = _grid()
    a = fractal(NoiseField("d"), xg, yg, octaves=5, scale=30.0)
    b = fractal(NoiseField("d"), xg, yg, octaves=5, scale=30.0)
    assert np.array_equal(a, b)


def test_ridged_and_billow_in_zero_one():
    f = NoiseField(1)
    xg, yg = _grid()
    r = ridged(f, xg, yg, octaves=4, scale=25.0)
    b = billow(f, xg, yg, octaves=4, scale=25.0)
    for z in (r, b):
        assert np.isfinite(z).all()
        assert float(np.min(z)) >= 0.0
        assert float(np.max(z)) <= 1.0


def test_single_octave_ridged_and_billow_shapes():
    f = NoiseField(2)
    xg, yg = _grid()
    n = f.noise(xg / 20.0, yg / 20.0)
    r = ridged(f, xg, yg, octaves=1, scale=20.0)
    b = billow(f, xg, yg, octaves=1, scale=20.0)
    assert np.allclose(r, (1.0 - np.abs(n)) ** 2)
    assert np.allclose(b, np.abs(n))


def test_terraced_matches_step_quantization():
    f = NoiseField(3)
    xg, yg = _grid()
    v = fractal(f, xg, yg, octaves=3, scale=60.0)
    out = terraced(f, xg, yg, octaves=3, scale=60.0, terraces=4)

    step = 0.25
    k = np.floor(v / step)
    t = (v - k * step) / step
    expected = (k + t * t * (3.0 - 2.0 * t)) * step
    assert np.allclose(out, expected)
    # Terracing never moves a value out of its own step.
    assert np.all(out >= k * step - 1e-12)
    assert np.all(out <= (k + 1.0) * step + 1e-12)


def test_terraced_rejects_zero_terraces():
    f = NoiseField(0)
    with pytest.raises(ConfigError):
        terraced(f, 1.0, 1.0, terraces=0)


def test_domain_warp_zero_amplitude_is_identity():
    f = NoiseField(4)
    xg, yg = _grid()
    wx, wy = domain_warp(f, xg, yg, frequency=0.05, amplitude=0.0)
    assert np.array_equal(wx, xg)
    assert np.array_equal(wy, yg)


def test_domain_warp_uses_offset_second_sample():
    f = NoiseField(4)
    x = np.array([1.3, 7.9, 20.25])
    y = np.array([2.1, 0.4, 13.5])
    wx, wy = domain_warp(f, x, y, frequency=0.1, amplitude=5.0)
    assert np.allclose(wx, x + f.noise(x * 0.1, y * 0.1) * 5.0)
    assert np.allclose(wy, y + f.noise((x + 31.416) * 0.1, (y + 31.416) * 0.1) * 5.0)


def test_hybrid_multifractal_single_octave():
    f = NoiseField(6)
    xg, yg = _grid()
    out = hybrid_multifractal(f, xg, yg, octaves=1, scale=50.0, offset=0.7, gain=1.5)
    assert np.allclose(out, (f.noise(xg / 50.0, yg / 50.0) + 0.7) * 1.5)


def test_hybrid_multifractal_weights_by_running_result():
    f = NoiseField(6)
    x = np.array([3.7, 91.2])
    y = np.array([12.5, 40.1])
    out = hybrid_multifractal(
        f, x, y, octaves=2, persistence=0.5, lacunarity=2.0, scale=10.0, offset=0.7, gain=1.0
    )
    r0 = f.noise(x / 10.0, y / 10.0) + 0.7
    w = np.where(r0 > 0.0, r0, 1.0)
    expected = r0 + (f.noise(x * 2.0 / 10.0, y * 2.0 / 10.0) + 0.7) * 0.5 * w
    assert np.allclose(out, expected)


def test_voronoi_bounded_by_amplitude():
    f = NoiseField(8)
    xg, yg = _grid()
    out = voronoi(f, xg, yg, frequency=0.05, amplitude=2.0)
    assert float(np.min(out)) >= 0.0
    assert float(np.max(out)) <= 2.0


def test_warped_finite_and_bounded():
    f = NoiseField(9)
    xg, yg = _grid()
    out = warped(f, xg, yg, strength=10.0, scale=40.0)
    assert np.isfinite(out).all()
    assert float(np.max(np.abs(out))) <= 1.0


def test_remap_linear():
    assert remap(0.5, 0.0, 1.0, -1.0, 1.0) == 0.0
    assert remap(-1.0, -1.0, 1.0, 0.0, 10.0) == 0.0


def test_sample_grid_shape_and_offsets():
    xg, yg = sample_grid(5, 3, offset_x=10.0, offset_y=-2.0)
    assert xg.shape == (3, 5)
    assert xg[0, 0] == 10.0
    assert xg[0, 4] == 14.0
    assert yg[2, 0] == 0.0


def test_sample_grid_rejects_empty():
    with pytest.raises(ConfigError):
        sample_grid(0, 3)


def test_compositor_dispatches_variants():
    f = NoiseField("compositor")
    c = FractalCompositor(f)
    settings = NoiseSettings(octaves=3, persistence=0.5, lacunarity=2.0, scale=30.0)
    xg, yg = sample_grid(16, 12)

    assert np.array_equal(
        c.sample("fractal", xg, yg, settings),
        fractal(f, xg, yg, octaves=3, persistence=0.5, lacunarity=2.0, scale=30.0),
    )
    assert np.array_equal(c.grid("ridged", 16, 12, settings), c.sample("ridged", xg, yg, settings))
    assert c.grid("billow", 16, 12, settings).shape == (12, 16)
    assert c.grid("terraced", 16, 12, settings, terraces=3).shape == (12, 16)
    assert c.grid("hybrid", 16, 12, settings, offset=0.5, gain=2.0).shape == (12, 16)


def test_compositor_unknown_variant():
    c = FractalCompositor(NoiseField(0))
    with pytest.raises(ConfigError):
        c.sample("perlin-ish", 0.0, 0.0, NoiseSettings())

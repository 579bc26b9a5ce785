from __future__ import annotations

import numpy as np

from noisefield.fractal import billow, fractal, ridged, sample_grid
from worldsynth.config import TerrainSettings
from worldsynth.events import WorldObserver
from worldsynth.heightmap import HeightmapGenerator


def _settings(**kw) -> TerrainSettings:
    params = dict(width=40, height=24, seed="heightmap-test")
    params.update(kw)
    return TerrainSettings(**params)


class Recorder(WorldObserver):
    def __init__(self) -> None:
        self.stages: list[str] = []

    def stage_completed(self, stage: str) -> None:
        self.stages.append(stage)


def test_generate_shapes_finite_and_read_only() -> None:
    res = HeightmapGenerator(_settings()).generate()
    for grid in (res.height, res.temperature, res.humidity):
        assert grid.shape == (24, 40)
        assert np.isfinite(grid).all()
        assert not grid.flags.writeable


def test_generate_deterministic() -> None:
    a = HeightmapGenerator(_settings()).generate()
    b = HeightmapGenerator(_settings()).generate()
    assert np.array_equal(a.height, b.height)
    assert np.array_equal(a.temperature, b.temperature)
    assert np.array_equal(a.humidity, b.humidity)


def test_generate_changes_with_seed() -> None:
    a = HeightmapGenerator(_settings(seed="one")).generate()
    b = HeightmapGenerator(_settings(seed="two")).generate()
    assert not np.allclose(a.height, b.height)


def test_base_height_maps_fractal_to_unit_range() -> None:
    s = _settings()
    gen = HeightmapGenerator(s)
    xg, yg = sample_grid(s.width, s.height)
    base = gen.base_height(xg, yg)
    f = fractal(
        gen.field,
        xg,
        yg,
        octaves=s.base.octaves,
        persistence=s.base.persistence,
        lacunarity=s.base.lacunarity,
        scale=s.base.scale,
    )
    assert np.allclose(base, (f + 1.0) * 0.5)
    assert float(np.min(base)) >= 0.0
    assert float(np.max(base)) <= 1.0


def test_mountain_blend() -> None:
    s = _settings(mountain_weight=0.25)
    gen = HeightmapGenerator(s)
    xg, yg = sample_grid(s.width, s.height)
    h = np.full(xg.shape, 0.5)
    r = ridged(
        gen.field,
        xg,
        yg,
        octaves=s.mountain.octaves,
        persistence=s.mountain.persistence,
        lacunarity=s.mountain.lacunarity,
        scale=s.mountain.scale,
    )
    assert np.allclose(gen.add_mountains(h, xg, yg), h * 0.75 + r * 0.25)

    flat = HeightmapGenerator(_settings(mountain_weight=0.0))
    assert np.allclose(flat.add_mountains(h, xg, yg), h)


def test_ocean_carve_only_below_level() -> None:
    s = _settings(ocean_level=0.4)
    gen = HeightmapGenerator(s)
    xg, yg = sample_grid(s.width, s.height)
    h = np.tile(np.linspace(0.0, 1.0, s.width), (s.height, 1))
    out = gen.add_oceans(h, xg, yg)

    above = h >= 0.4
    assert np.array_equal(out[above], h[above])
    assert np.all(out[~above] <= h[~above])

    depth = billow(
        gen.field,
        xg,
        yg,
        octaves=s.ocean.octaves,
        persistence=s.ocean.persistence,
        lacunarity=s.ocean.lacunarity,
        scale=s.ocean.scale,
    )
    expected = h - depth * ((0.4 - h) / 0.4) * 0.3
    assert np.allclose(out[~above], expected[~above])


def test_climate_colder_at_altitude() -> None:
    s = _settings()
    gen = HeightmapGenerator(s)
    xg, yg = sample_grid(s.width, s.height)
    t_low, _ = gen.climate(np.zeros(xg.shape), xg, yg)
    t_high, _ = gen.climate(np.ones(xg.shape), xg, yg)
    assert np.allclose(t_low - t_high, 0.15)


def test_climate_formula() -> None:
    s = _settings(temperature_offset=0.1, humidity_offset=0.05)
    gen = HeightmapGenerator(s)
    xg, yg = sample_grid(s.width, s.height)
    h = np.full(xg.shape, 0.3)
    temp, hum = gen.climate(h, xg, yg)

    lat = np.cos((yg / s.height - 0.5) * np.pi)
    tn = gen.compositor.sample("fractal", xg, yg, s.temperature_noise)
    expected_t = (lat * 0.6 + 0.7 * 0.3 + tn * 0.1 + 1.0) * 0.5 + 0.1
    assert np.allclose(temp, expected_t)

    hn = gen.compositor.sample("fractal", xg + 1000.0, yg + 1000.0, s.humidity_noise)
    expected_h = (hn + 1.0) * 0.5 * (1.0 - np.abs(expected_t - 0.5)) + 0.05
    assert np.allclose(hum, expected_h)


def test_equator_warmer_than_poles() -> None:
    s = _settings(height=64)
    gen = HeightmapGenerator(s)
    xg, yg = sample_grid(s.width, s.height)
    temp, _ = gen.climate(np.full(xg.shape, 0.5), xg, yg)
    assert float(np.mean(temp[32])) > float(np.mean(temp[0]))


def test_stage_notifications_in_order() -> None:
    rec = Recorder()
    HeightmapGenerator(_settings(), observer=rec).generate()
    assert rec.stages == ["base", "mountains", "oceans", "climate"]


def test_height_at_defaults_off_grid() -> None:
    res = HeightmapGenerator(_settings()).generate()
    assert res.height_at(3, 5) == float(res.height[5, 3])
    assert res.height_at(-1, 0) == 0.0
    assert res.height_at(40, 0) == 0.0
    assert res.height_at(0, 24) == 0.0

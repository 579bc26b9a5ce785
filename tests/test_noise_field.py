import numpy as np

from noisefield.field import NoiseField


def test_noise_deterministic_for_seed_string():
    f1 = NoiseField("biome-default-seed")
    f2 = NoiseField("biome-default-seed")
    x = np.array([0.1, 1.25, 10.5])
    y = np.array([0.2, 2.75, 9.0])
    assert np.array_equal(f1.noise(x, y), f2.noise(x, y))


def test_noise_changes_with_seed():
    f1 = NoiseField("alpha")
    f2 = NoiseField("beta")
    x = np.array([0.1, 1.25, 10.5, 3.3])
    y = np.array([0.2, 2.75, 9.0, 7.7])
    assert not np.allclose(f1.noise(x, y), f2.noise(x, y))


def test_new_field_does_not_touch_existing_table():
    f1 = NoiseField("alpha")
    before = f1.perm.copy()
    NoiseField("beta")
    assert np.array_equal(f1.perm, before)
    assert not f1.perm.flags.writeable


def test_noise_zero_on_lattice_points():
    f = NoiseField(7)
    xg, yg = np.meshgrid(np.arange(-4.0, 5.0), np.arange(-3.0, 4.0))
    assert np.allclose(f.noise(xg, yg), 0.0)


def test_noise_range_and_shape():
    f = NoiseField(0)
    xg, yg = np.meshgrid(np.linspace(-20, 20, 96), np.linspace(-5, 35, 80))
    z = f.noise(xg, yg)
    assert z.shape == xg.shape
    assert np.isfinite(z).all()
    assert float(np.min(z)) >= -1.0
    assert float(np.max(z)) <= 1.0


def test_noise_continuity_small_step():
    f = NoiseField(0)
    xg, yg = np.meshgrid(np.linspace(0, 5, 64), np.linspace(0, 5, 64))
    d = 1e-4
    z0 = f.noise(xg, yg)
    z1 = f.noise(xg + d, yg)
    assert float(np.max(np.abs(z1 - z0))) < 0.1


def test_noise_accepts_scalars():
    f = NoiseField(3)
    out = f.noise(0.5, 0.25)
    assert np.ndim(out) == 0
    assert -1.0 <= float(out) <= 1.0


def test_noise3_deterministic_and_bounded():
    f1 = NoiseField("three")
    f2 = NoiseField("three")
    xg, yg, zg = np.meshgrid(
        np.linspace(0.0, 2.0, 16),
        np.linspace(0.0, 2.0, 12),
        np.linspace(0.0, 2.0, 8),
        indexing="xy",
    )
    a = f1.noise3(xg, yg, zg)
    b = f2.noise3(xg, yg, zg)
    assert a.shape == xg.shape
    assert np.array_equal(a, b)
    assert float(np.max(np.abs(a))) <= 1.0


def test_noise3_zero_on_lattice_points():
    f = NoiseField(11)
    x = np.array([0.0, 1.0, 5.0, -2.0])
    y = np.array([0.0, 3.0, 2.0, 7.0])
    z = np.array([0.0, 4.0, -1.0, 2.0])
    assert np.allclose(f.noise3(x, y, z), 0.0)


def test_noise3_changes_with_seed():
    x = np.array([0.1, 1.25, 10.5])
    y = np.array([0.2, 2.75, 9.0])
    z = np.array([0.3, 0.5, 1.7])
    assert not np.allclose(NoiseField(1).noise3(x, y, z), NoiseField(2).noise3(x, y, z))

import numpy as np

from perlin import PerlinNoise


def test_noise_stays_in_unit_interval():
    noise = PerlinNoise(seed=3)
    values = [noise.noise(x * 0.37, y * 0.53, z * 0.11)
              for x in range(12) for y in range(12) for z in range(3)]
    assert min(values) >= 0.0
    assert max(values) < 1.0


def test_noise_is_deterministic_for_a_seed():
    a = PerlinNoise(seed=11)
    b = PerlinNoise(seed=11)
    samples = [(0.1, 0.2, 0.3), (4.5, 1.25, 0.0), (-3.3, 7.7, 2.2)]
    assert [a.noise(*p) for p in samples] == [b.noise(*p) for p in samples]


def test_noise_varies_smoothly():
    noise = PerlinNoise(seed=5)
    for x in np.linspace(0.0, 5.0, 50):
        assert abs(noise.noise(x, 1.3, 0.7) - noise.noise(x + 0.001, 1.3, 0.7)) < 0.02


def test_different_seeds_give_different_fields():
    a = PerlinNoise(seed=1)
    b = PerlinNoise(seed=2)
    samples = [(x * 0.31, 0.5, 0.0) for x in range(20)]
    assert [a.noise(*p) for p in samples] != [b.noise(*p) for p in samples]

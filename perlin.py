# perlin.py
"""
Coherent 3D gradient noise.

Improved Perlin noise summed over several octaves and normalized into
[0, 1). The kernels are Numba-jitted so the flow field can sample every
grid cell each frame without leaving compiled code.
"""
import numpy as np
from numba import jit

from constants import NOISE_OCTAVES, NOISE_FALLOFF

# --- Data Contracts ---
#
# class PerlinNoise:
#   - __init__(self, seed: int, octaves: int, falloff: float):
#     - Side Effects: builds a 512-entry permutation table from the seed.
#   - noise(self, x: float, y: float, z: float) -> float:
#     - Outputs: a value in [0, 1). Identical inputs and seed always give
#       identical outputs; nearby inputs give nearby outputs.

_MAX_NOISE = 1.0 - 1e-12


@jit(nopython=True)
def _fade(t):
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


@jit(nopython=True)
def _lerp(t, a, b):
    return a + t * (b - a)


@jit(nopython=True)
def _grad(hash_value, x, y, z):
    h = hash_value & 15
    u = x if h < 8 else y
    if h < 4:
        v = y
    elif h == 12 or h == 14:
        v = x
    else:
        v = z
    if (h & 1) != 0:
        u = -u
    if (h & 2) != 0:
        v = -v
    return u + v


@jit(nopython=True)
def _perlin3(perm, x, y, z):
    """Single octave of improved Perlin noise in roughly [-1, 1]."""
    fx = np.floor(x)
    fy = np.floor(y)
    fz = np.floor(z)
    xi = int(fx) & 255
    yi = int(fy) & 255
    zi = int(fz) & 255
    x -= fx
    y -= fy
    z -= fz
    u = _fade(x)
    v = _fade(y)
    w = _fade(z)

    a = perm[xi] + yi
    aa = perm[a] + zi
    ab = perm[a + 1] + zi
    b = perm[xi + 1] + yi
    ba = perm[b] + zi
    bb = perm[b + 1] + zi

    return _lerp(w,
                 _lerp(v,
                       _lerp(u, _grad(perm[aa], x, y, z), _grad(perm[ba], x - 1.0, y, z)),
                       _lerp(u, _grad(perm[ab], x, y - 1.0, z), _grad(perm[bb], x - 1.0, y - 1.0, z))),
                 _lerp(v,
                       _lerp(u, _grad(perm[aa + 1], x, y, z - 1.0), _grad(perm[ba + 1], x - 1.0, y, z - 1.0)),
                       _lerp(u, _grad(perm[ab + 1], x, y - 1.0, z - 1.0), _grad(perm[bb + 1], x - 1.0, y - 1.0, z - 1.0))))


@jit(nopython=True)
def fractal_noise(perm, x, y, z, octaves, falloff):
    """Octave-summed noise normalized into [0, 1)."""
    total = 0.0
    norm = 0.0
    amplitude = 1.0
    frequency = 1.0
    for _ in range(octaves):
        total += amplitude * (_perlin3(perm, x * frequency, y * frequency, z * frequency) + 1.0) * 0.5
        norm += amplitude
        amplitude *= falloff
        frequency *= 2.0
    value = total / norm
    if value < 0.0:
        return 0.0
    if value > _MAX_NOISE:
        return _MAX_NOISE
    return value


class PerlinNoise:
    """
    Seeded noise source used for flow field generation.
    """
    def __init__(self, seed: int = 0, octaves: int = NOISE_OCTAVES, falloff: float = NOISE_FALLOFF):
        self.seed = seed
        self.octaves = octaves
        self.falloff = falloff
        rng = np.random.default_rng(seed)
        permutation = rng.permutation(256).astype(np.int64)
        # Doubled so lookups of perm[i + 1] never need wrapping.
        self.perm = np.concatenate((permutation, permutation))

    def noise(self, x: float, y: float, z: float = 0.0) -> float:
        return fractal_noise(self.perm, float(x), float(y), float(z), self.octaves, self.falloff)

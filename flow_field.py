# flow_field.py
"""
The grid-based vector field that particles follow.

This module defines the FlowField class, which stores one direction and
magnitude vector per grid cell in a flat NumPy array indexed by
x + y * cols. The field can be regenerated from evolving noise or locally
blended toward a brush direction.
"""
import logging
import numpy as np
from numba import jit
from typing import Optional, Tuple

from constants import FIELD_ROTATION
from perlin import PerlinNoise, fractal_noise

# --- Data Contracts ---
#
# class FlowField:
#   - resize(self, cols: int, rows: int) -> None:
#     - Side Effects: reallocates self.vectors to shape (cols * rows, 2),
#       zero-filled.
#     - Invariants: len(self.vectors) == cols * rows at all times.
#
#   - update(self, time_offset, noise_scale, rotation, magnitude) -> None:
#     - Side Effects: overwrites every cell with a vector of length
#       `magnitude` at angle noise(x * scale, y * scale, t) * 2pi * rotation.
#
#   - paint(self, center, radius, direction, strength) -> int:
#     - Side Effects: blends cells whose centers lie strictly within
#       `radius` of `center` toward `direction`. Cells outside are untouched.
#     - Outputs: number of cells modified.
#
#   - lookup(self, x, y) -> Optional[np.ndarray]:
#     - Outputs: the cell vector, or None if the derived index is outside
#       [0, cols * rows).


@jit(nopython=True)
def _generate_field_numba(vectors, cols, rows, perm, noise_scale, time_offset,
                          rotation, magnitude, octaves, falloff):
    """
    Numba-jitted regeneration of every cell from the noise function.

    Sampling coordinates advance by noise_scale per cell, starting at the
    origin, so neighbouring cells receive similar angles.
    """
    two_pi = 2.0 * np.pi
    yoff = 0.0
    for y in range(rows):
        xoff = 0.0
        for x in range(cols):
            index = x + y * cols
            angle = fractal_noise(perm, xoff, yoff, time_offset, octaves, falloff) * two_pi * rotation
            vectors[index, 0] = np.cos(angle) * magnitude
            vectors[index, 1] = np.sin(angle) * magnitude
            xoff += noise_scale
        yoff += noise_scale


@jit(nopython=True)
def _paint_field_numba(vectors, cols, rows, cell_size, center_x, center_y,
                       radius, direction_x, direction_y, strength):
    """
    Numba-jitted brush stroke. Influence falls off linearly from 1 at the
    brush center to 0 at the radius.
    """
    painted = 0
    half = cell_size / 2.0
    for y in range(rows):
        for x in range(cols):
            px = x * cell_size + half
            py = y * cell_size + half
            dx = px - center_x
            dy = py - center_y
            distance = np.sqrt(dx * dx + dy * dy)
            if distance < radius:
                index = x + y * cols
                amount = strength * (1.0 - distance / radius)
                vectors[index, 0] += (direction_x - vectors[index, 0]) * amount
                vectors[index, 1] += (direction_y - vectors[index, 1]) * amount
                painted += 1
    return painted


class FlowField:
    """
    A cols x rows grid of 2D vectors covering the canvas.
    """
    def __init__(self, width: float, height: float, cell_size: int, noise: PerlinNoise):
        """
        Initializes a zero-filled field sized for the given canvas.

        Args:
            width (float): Canvas width in pixels.
            height (float): Canvas height in pixels.
            cell_size (int): Edge length of one grid cell in pixels.
            noise (PerlinNoise): Noise source for regeneration.
        """
        self.noise = noise
        self.cell_size = cell_size
        self.cols = 0
        self.rows = 0
        self.vectors = np.zeros((0, 2), dtype=np.float64)
        self.fit_canvas(width, height, cell_size)

    def fit_canvas(self, width: float, height: float, cell_size: Optional[int] = None) -> None:
        """Recomputes the grid dimensions for a canvas and reallocates."""
        if cell_size is not None:
            self.cell_size = cell_size
        self.resize(int(width // self.cell_size), int(height // self.cell_size))

    def resize(self, cols: int, rows: int) -> None:
        self.cols = max(cols, 0)
        self.rows = max(rows, 0)
        self.vectors = np.zeros((self.cols * self.rows, 2), dtype=np.float64)
        logging.info(f"Flow field grid updated: {self.cols}x{self.rows} cells")

    def reset(self) -> None:
        """Zero-fills every cell without changing the grid dimensions."""
        self.vectors.fill(0.0)

    def update(self, time_offset: float, noise_scale: float,
               rotation: float = FIELD_ROTATION, magnitude: float = 1.0) -> None:
        _generate_field_numba(
            self.vectors, self.cols, self.rows, self.noise.perm,
            float(noise_scale), float(time_offset), float(rotation), float(magnitude),
            self.noise.octaves, float(self.noise.falloff)
        )

    def paint(self, center: Tuple[float, float], radius: float,
              direction: Tuple[float, float], strength: float) -> int:
        if radius <= 0:
            return 0
        return _paint_field_numba(
            self.vectors, self.cols, self.rows, float(self.cell_size),
            float(center[0]), float(center[1]), float(radius),
            float(direction[0]), float(direction[1]), float(strength)
        )

    def cell_index(self, x: float, y: float) -> int:
        return int(np.floor(x / self.cell_size)) + int(np.floor(y / self.cell_size)) * self.cols

    def lookup(self, x: float, y: float) -> Optional[np.ndarray]:
        index = self.cell_index(x, y)
        if 0 <= index < len(self.vectors):
            return self.vectors[index]
        return None

    def lookup_many(self, positions: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Vectorized lookup for an (N, 2) array of positions.

        Returns:
            Tuple[np.ndarray, np.ndarray]: (N, 2) forces, zero where the
            position maps outside the grid, and the (N,) validity mask.
        """
        cell_x = np.floor(positions[:, 0] / self.cell_size).astype(np.int64)
        cell_y = np.floor(positions[:, 1] / self.cell_size).astype(np.int64)
        indices = cell_x + cell_y * self.cols
        valid = (indices >= 0) & (indices < len(self.vectors))
        forces = np.zeros_like(positions)
        forces[valid] = self.vectors[indices[valid]]
        return forces, valid

    def cell_center(self, x: int, y: int) -> Tuple[float, float]:
        half = self.cell_size / 2
        return x * self.cell_size + half, y * self.cell_size + half

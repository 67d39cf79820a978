# particle.py
"""
Manages the state of all particles in the simulation.

This module defines the ParticleSystem class, the single dense container
that owns every particle's kinetic state (in efficient NumPy arrays), its
visual attributes and its recorded trail. Row i of every array and entry i
of `trails` always describe the same particle; membership only changes
through add(), evict_oldest() and clear(), which update all of them
together.
"""
import logging
import numpy as np
from typing import List, Optional

from constants import FORCE_SCALE, SPAWN_JITTER
from flow_field import FlowField
from settings import SimulationSettings
from trails import Trail
from utils import parse_color_palette

# --- Data Contracts ---
#
# class ParticleSystem:
#   - __init__(self, settings: SimulationSettings, rng: np.random.Generator):
#     - Side Effects: creates empty state arrays.
#     - Invariants:
#       - positions, velocities, accelerations, prev_positions are float64
#         arrays of shape (N, 2).
#       - max_speeds and size_multipliers are float64 arrays of shape (N,).
#       - len(colors) == len(trails) == N.
#
#   - integrate(self) -> None:
#     - Side Effects: velocity += acceleration, velocity clamped to
#       max_speed, position += velocity, acceleration zeroed.
#
#   - wrap_boundaries(self, width, height) -> np.ndarray:
#     - Outputs: (N,) bool mask of particles that wrapped on any axis.
#     - Side Effects: teleports escaped particles to the opposite edge and
#       resets the previous position on the wrapped axis.


class ParticleSystem:
    """
    A container for all particles, managing their state via NumPy arrays.
    """
    def __init__(self, settings: SimulationSettings, rng: np.random.Generator):
        """
        Initializes an empty particle system.

        Args:
            settings (SimulationSettings): Shared simulation settings.
            rng (np.random.Generator): Random source for colors, sizes and
                turbulence.
        """
        self.settings = settings
        self.rng = rng
        self.palette: List[str] = parse_color_palette(settings.color_palette)
        self._allocate(0)

    def _allocate(self, count: int) -> None:
        self.positions = np.zeros((count, 2), dtype=np.float64)
        self.velocities = np.zeros((count, 2), dtype=np.float64)
        self.accelerations = np.zeros((count, 2), dtype=np.float64)
        self.prev_positions = np.zeros((count, 2), dtype=np.float64)
        self.max_speeds = np.zeros(count, dtype=np.float64)
        self.size_multipliers = np.ones(count, dtype=np.float64)
        self.colors: List[str] = []
        self.trails: List[Trail] = []

    def __len__(self) -> int:
        return len(self.positions)

    # --- Population management ---

    def reload_palette(self) -> None:
        self.palette = parse_color_palette(self.settings.color_palette)

    def _pick_color(self) -> str:
        if self.settings.use_color_palette and self.palette:
            return self.palette[int(self.rng.integers(len(self.palette)))]
        return self.settings.particle_color

    def _roll_sizes(self, count: int) -> np.ndarray:
        variation = self.settings.particle_size_variation / 100.0
        return self.rng.uniform(1.0 - variation, 1.0 + variation, size=count)

    def add(self, x: float, y: float) -> None:
        """Appends one particle at rest at (x, y) with an empty trail."""
        point = np.array([[x, y]], dtype=np.float64)
        self.positions = np.vstack((self.positions, point))
        self.prev_positions = np.vstack((self.prev_positions, point))
        self.velocities = np.vstack((self.velocities, np.zeros((1, 2))))
        self.accelerations = np.vstack((self.accelerations, np.zeros((1, 2))))
        self.max_speeds = np.append(self.max_speeds, self.settings.particle_speed)
        self.size_multipliers = np.append(self.size_multipliers, self._roll_sizes(1))
        self.colors.append(self._pick_color())
        self.trails.append(Trail())

    def evict_oldest(self, count: int = 1) -> None:
        """Removes the `count` earliest-inserted particles and their trails."""
        count = min(count, len(self))
        if count <= 0:
            return
        self.positions = self.positions[count:]
        self.prev_positions = self.prev_positions[count:]
        self.velocities = self.velocities[count:]
        self.accelerations = self.accelerations[count:]
        self.max_speeds = self.max_speeds[count:]
        self.size_multipliers = self.size_multipliers[count:]
        del self.colors[:count]
        del self.trails[:count]

    def clear(self) -> None:
        self._allocate(0)
        logging.info("All particles cleared.")

    def populate_grid(self, width: float, height: float) -> None:
        """
        Replaces the population with particles on a centered, jittered grid.

        The grid has one slot per `particle_spacing` pixels, so at most
        cols * rows particles are created even if particle_count is higher.
        """
        spacing = self.settings.particle_spacing
        cols = int(width // spacing)
        rows = int(height // spacing)
        count = min(self.settings.particle_count, cols * rows)

        offset_x = (width - (cols - 1) * spacing) / 2
        offset_y = (height - (rows - 1) * spacing) / 2
        indices = np.arange(count)
        jitter = self.rng.uniform(-spacing * SPAWN_JITTER, spacing * SPAWN_JITTER, size=(count, 2))

        self._allocate(count)
        if count:
            self.positions[:, 0] = (indices % cols) * spacing + offset_x
            self.positions[:, 1] = (indices // cols) * spacing + offset_y
            self.positions += jitter
        self.prev_positions = self.positions.copy()
        self.max_speeds[:] = self.settings.particle_speed
        self.size_multipliers = self._roll_sizes(count)
        self.colors = [self._pick_color() for _ in range(count)]
        self.trails = [Trail() for _ in range(count)]

        logging.info(
            f"ParticleSystem initialized with {count} particles "
            f"({cols}x{rows} grid, spacing {spacing})."
        )
        logging.debug(f"Positions shape: {self.positions.shape}")

    def reroll_sizes(self) -> None:
        self.size_multipliers = self._roll_sizes(len(self))

    # --- Forces and motion ---

    def apply_force(self, forces: np.ndarray) -> None:
        self.accelerations += forces

    def follow(self, field: FlowField) -> None:
        """Adds the vector of each particle's grid cell. Off-grid particles get nothing."""
        forces, _ = field.lookup_many(self.positions)
        self.apply_force(forces)

    def apply_environment(self, attractor: Optional[np.ndarray]) -> None:
        """Adds wind, turbulence and attractor pull for every particle."""
        settings = self.settings
        count = len(self)
        if count == 0:
            return

        if settings.wind_force > 0:
            angle = np.radians(settings.wind_angle)
            wind = np.array([np.cos(angle), np.sin(angle)]) * settings.wind_force * FORCE_SCALE
            self.accelerations += wind

        if settings.turbulence > 0:
            angles = self.rng.uniform(0.0, 2.0 * np.pi, size=count)
            turbulence = np.column_stack((np.cos(angles), np.sin(angles)))
            self.accelerations += turbulence * settings.turbulence * FORCE_SCALE

        if attractor is not None and settings.attractor_strength > 0:
            self.accelerations += self.attractor_forces(attractor)

    def attractor_forces(self, attractor: np.ndarray) -> np.ndarray:
        """
        Pull toward the attractor, full strength at distance 0 falling
        linearly to zero at the attractor radius.
        """
        settings = self.settings
        forces = np.zeros_like(self.positions)
        if settings.attractor_radius <= 0:
            return forces
        offsets = attractor - self.positions
        distances = np.linalg.norm(offsets, axis=1)
        # A particle sitting exactly on the attractor has no direction to move in.
        inside = (distances < settings.attractor_radius) & (distances > 0)
        strength = settings.attractor_strength * (1.0 - distances[inside] / settings.attractor_radius)
        forces[inside] = (
            offsets[inside] / distances[inside, np.newaxis]
        ) * (strength * FORCE_SCALE)[:, np.newaxis]
        return forces

    def integrate(self) -> None:
        self.prev_positions = self.positions.copy()
        self.velocities += self.accelerations

        # Scale back any particle moving faster than its own max speed
        speed = np.linalg.norm(self.velocities, axis=1)
        over_speed_mask = speed > self.max_speeds
        self.velocities[over_speed_mask] = (
            self.velocities[over_speed_mask] / speed[over_speed_mask, np.newaxis]
        ) * self.max_speeds[over_speed_mask, np.newaxis]

        self.positions += self.velocities
        self.accelerations.fill(0.0)

    def wrap_boundaries(self, width: float, height: float) -> np.ndarray:
        pos = self.positions
        prev = self.prev_positions
        wrapped = np.zeros(len(self), dtype=bool)

        for axis, extent in ((0, width), (1, height)):
            over = pos[:, axis] > extent
            pos[over, axis] = 0.0
            prev[over, axis] = 0.0
            under = pos[:, axis] < 0
            pos[under, axis] = extent
            prev[under, axis] = extent
            wrapped |= over | under

        return wrapped

    # --- Trails ---

    def record_trails(self, wrapped: np.ndarray) -> None:
        max_length = self.settings.max_trail_length
        for i, trail in enumerate(self.trails):
            trail.record(
                (float(self.positions[i, 0]), float(self.positions[i, 1])),
                bool(wrapped[i]),
                max_length
            )

    def headings(self) -> np.ndarray:
        """Velocity direction of each particle in radians."""
        return np.arctan2(self.velocities[:, 1], self.velocities[:, 0])

# simulation.py
"""
Handles the core simulation logic and user commands.

This module defines the Simulation class, which owns the flow field, the
particle system and the shared settings, and advances them by one frame
per step(). It also implements the input-driven commands (spawning,
painting, resets, mode changes) and the export freeze that keeps the
state stable while it is being serialized.
"""
import logging
import numpy as np
from numba import jit
from typing import Any, Optional, Tuple

from constants import BRUSH_BLEND, FIELD_ROTATION
from flow_field import FlowField
from particle import ParticleSystem
from perlin import PerlinNoise
from settings import SimulationMode, SimulationSettings, parse_mode

# --- Data Contracts ---
#
# class Simulation:
#   - __init__(self, settings: SimulationSettings, width: float, height: float):
#     - Side Effects: builds a zero-filled field sized for the canvas, a
#       grid-placed particle population, and centers the attractor.
#
#   - step(self) -> bool:
#     - Outputs: False when the step was skipped because an export is in
#       progress, True otherwise.
#     - Side Effects: applies any pending mode change, regenerates the
#       field (Generate mode), moves particles and records trails.
#     - Invariants: len(particles.trails) == len(particles).
#
#   - Commands (spawn_at, brush, resize, set_mode, set_param, resets):
#     - Outputs: False if rejected because an export is in progress.
#       A resize during an export is queued and applied by end_export().


@jit(nopython=True)
def _calculate_separation_numba(positions, desired_separation, repulsion_strength):
    """
    Numba-jitted pairwise repulsion between all particles.

    Each neighbour closer than desired_separation contributes a unit vector
    pointing away from it, weighted by 1 / distance. The contributions are
    averaged, renormalized and scaled by repulsion_strength. Particles with
    no qualifying neighbour receive no force. O(n^2) per call.
    """
    particle_count = positions.shape[0]
    total_force = np.zeros_like(positions)

    for i in range(particle_count):
        sum_x = 0.0
        sum_y = 0.0
        count = 0
        for j in range(particle_count):
            if i == j:
                continue
            dx = positions[i, 0] - positions[j, 0]
            dy = positions[i, 1] - positions[j, 1]
            distance = np.sqrt(dx * dx + dy * dy)
            if distance > 0.0 and distance < desired_separation:
                # Unit vector divided by distance again: closer pushes harder
                sum_x += dx / distance / distance
                sum_y += dy / distance / distance
                count += 1

        if count > 0:
            sum_x /= count
            sum_y /= count
            magnitude = np.sqrt(sum_x * sum_x + sum_y * sum_y)
            if magnitude > 0.0:
                total_force[i, 0] = sum_x / magnitude * repulsion_strength
                total_force[i, 1] = sum_y / magnitude * repulsion_strength
    return total_force


def separation_forces(positions: np.ndarray, desired_separation: float,
                      repulsion_strength: float) -> np.ndarray:
    """Separation force for each row of an (N, 2) position array."""
    return _calculate_separation_numba(
        np.ascontiguousarray(positions, dtype=np.float64),
        float(desired_separation), float(repulsion_strength)
    )


class Simulation:
    """
    Manages the frame loop state: field, particles, attractor and mode.
    """
    def __init__(self, settings: SimulationSettings, width: float, height: float):
        """
        Initializes the simulation environment.

        Args:
            settings (SimulationSettings): Shared, mutable settings.
            width (float): Canvas width in pixels.
            height (float): Canvas height in pixels.
        """
        self.settings = settings
        self.width = float(width)
        self.height = float(height)

        # All randomness is controlled by a single master seed.
        self.rng = np.random.default_rng(settings.seed)
        self.noise = PerlinNoise(settings.seed)

        self.field = FlowField(self.width, self.height, settings.field_resolution, self.noise)
        self.particles = ParticleSystem(settings, self.rng)
        self.particles.populate_grid(self.width, self.height)

        self.attractor = np.array([self.width / 2, self.height / 2], dtype=np.float64)
        self.time_offset = 0.0
        self.exporting = False
        self.canvas_clear_pending = False
        self._pending_mode: Optional[SimulationMode] = None
        self._pending_size: Optional[Tuple[float, float]] = None

        logging.info(
            f"Simulation initialized on {self.width:.0f}x{self.height:.0f} canvas "
            f"in {settings.mode.value} mode."
        )

    @property
    def mode(self) -> SimulationMode:
        return self.settings.mode

    def _reject_during_export(self, action: str) -> bool:
        if self.exporting:
            logging.warning(f"Ignoring '{action}' while an export is in progress.")
            return True
        return False

    # --- Frame loop ---

    def step(self) -> bool:
        """
        Executes one frame of the simulation.
        """
        if self.exporting:
            return False

        self._apply_pending_mode()
        settings = self.settings

        # 1. Regenerate the field from evolving noise
        if settings.mode is SimulationMode.GENERATE:
            self.field.update(self.time_offset, settings.noise_scale,
                              FIELD_ROTATION, settings.noise_strength)

        if settings.simulate_particles and len(self.particles):
            particles = self.particles

            # 2. Separation forces, computed from the positions at frame start
            if settings.maintain_distance:
                particles.apply_force(separation_forces(
                    particles.positions, settings.particle_spacing, settings.repulsion_strength
                ))

            # 3. Field, wind, turbulence and attractor forces, then integration
            particles.follow(self.field)
            particles.apply_environment(self.attractor)
            particles.integrate()

            # 4. Toroidal wrap and trail recording
            wrapped = particles.wrap_boundaries(self.width, self.height)
            if settings.trails_enabled:
                particles.record_trails(wrapped)

        if settings.mode is SimulationMode.GENERATE:
            self.time_offset += settings.time_speed

        return True

    # --- Modes ---

    def set_mode(self, mode: Any) -> bool:
        """Requests a mode change, applied at the start of the next step."""
        if self._reject_during_export("mode change"):
            return False
        self._pending_mode = parse_mode(mode)
        return True

    def cycle_mode(self) -> bool:
        current = self._pending_mode or self.settings.mode
        return self.set_mode(current.next())

    def _apply_pending_mode(self) -> None:
        if self._pending_mode is None:
            return
        mode = self._pending_mode
        self._pending_mode = None
        settings = self.settings
        settings.mode = mode

        if mode is SimulationMode.BRUSH:
            settings.simulate_particles = True
            settings.show_flow_field = True
            logging.info("BRUSH MODE: Drag to paint flow field.")
        elif mode is SimulationMode.SPAWN:
            settings.simulate_particles = True
            logging.info("SPAWN MODE: Click to spawn particles.")
        elif mode is SimulationMode.GENERATE:
            settings.show_flow_field = False
            logging.info("GENERATE MODE: Flow field auto-generated.")

    # --- Pointer input ---

    def move_pointer(self, x: float, y: float) -> None:
        """The attractor follows the pointer in Generate mode."""
        if self.settings.mode is SimulationMode.GENERATE and not self.exporting:
            self.attractor[0] = x
            self.attractor[1] = y

    def contains(self, x: float, y: float) -> bool:
        return 0 <= x <= self.width and 0 <= y <= self.height

    def spawn_at(self, x: float, y: float) -> int:
        """
        Adds a batch of particles scattered around (x, y), evicting the
        oldest particles once the population exceeds particle_count.

        Returns:
            int: Number of particles spawned.
        """
        if self.settings.mode is not SimulationMode.SPAWN:
            return 0
        if self._reject_during_export("spawn") or not self.contains(x, y):
            return 0

        settings = self.settings
        for _ in range(settings.spawn_amount):
            angle = self.rng.uniform(0.0, 2.0 * np.pi)
            distance = self.rng.uniform(0.0, settings.spawn_radius)
            px = min(max(x + np.cos(angle) * distance, 0.0), self.width)
            py = min(max(y + np.sin(angle) * distance, 0.0), self.height)
            self.particles.add(px, py)
            if len(self.particles) > settings.particle_count:
                self.particles.evict_oldest()

        logging.info(f"Spawned {settings.spawn_amount} particles at ({x:.0f}, {y:.0f})")
        return settings.spawn_amount

    def brush(self, x: float, y: float, prev_x: float, prev_y: float) -> int:
        """
        Paints the field along the drag from (prev_x, prev_y) to (x, y).

        Returns:
            int: Number of cells modified.
        """
        if self.settings.mode is not SimulationMode.BRUSH:
            return 0
        if self._reject_during_export("brush"):
            return 0
        dx = x - prev_x
        dy = y - prev_y
        if dx == 0 and dy == 0:
            return 0
        angle = np.arctan2(dy, dx)
        strength = self.settings.brush_strength
        direction = (np.cos(angle) * strength, np.sin(angle) * strength)
        return self.field.paint((x, y), self.settings.brush_size, direction, BRUSH_BLEND)

    # --- Commands ---

    def reset_particles(self) -> bool:
        if self._reject_during_export("reset particles"):
            return False
        self.particles.populate_grid(self.width, self.height)
        return True

    def clear_particles(self) -> bool:
        if self._reject_during_export("clear particles"):
            return False
        self.particles.clear()
        return True

    def clear_canvas(self) -> bool:
        """Asks the renderer to repaint the background on its next frame."""
        if self._reject_during_export("clear canvas"):
            return False
        self.canvas_clear_pending = True
        return True

    def reset_field(self) -> bool:
        if self._reject_during_export("reset field"):
            return False
        self.field.reset()
        logging.info("Flow field reset to zero.")
        return True

    def toggle_simulation(self) -> bool:
        self.settings.simulate_particles = not self.settings.simulate_particles
        logging.info(f"Particle simulation {'resumed' if self.settings.simulate_particles else 'paused'}.")
        return self.settings.simulate_particles

    def resize(self, width: float, height: float) -> bool:
        """
        Reallocates the field for a new canvas size and re-centers the attractor.

        During an export the new size is queued and applied by end_export().
        """
        if self.exporting:
            self._pending_size = (float(width), float(height))
            logging.warning(f"Resize to {width}x{height} deferred until the export finishes.")
            return False
        self.width = float(width)
        self.height = float(height)
        self.field.fit_canvas(self.width, self.height)
        self.attractor[:] = (self.width / 2, self.height / 2)
        logging.info(f"Canvas resized to {self.width:.0f}x{self.height:.0f}.")
        return True

    def set_param(self, name: str, value: Any) -> bool:
        """
        Updates one setting and triggers its re-initialization side effects.
        """
        if self._reject_during_export(f"set {name}"):
            return False
        if name == "mode":
            return self.set_mode(value)

        stored = self.settings.set(name, value)
        logging.debug(f"Parameter '{name}' set to {stored}.")

        if name == "particle_count":
            self.particles.populate_grid(self.width, self.height)
        elif name == "field_resolution":
            self.field.fit_canvas(self.width, self.height, stored)
        elif name == "particle_size_variation":
            self.particles.reroll_sizes()
        elif name in ("color_palette", "use_color_palette"):
            self.particles.reload_palette()
        return True

    # --- Export freeze ---

    def begin_export(self) -> None:
        self.exporting = True

    def end_export(self) -> None:
        self.exporting = False
        if self._pending_size is not None:
            width, height = self._pending_size
            self._pending_size = None
            self.resize(width, height)

# visualization.py
"""
Handles the interactive display of the flow field using Pygame.
"""
import logging
import math
import pygame
import numpy as np
from functools import lru_cache
from typing import List, Tuple

from constants import (
    FULLSCREEN, WINDOW_SIZE, MOTION_BLUR_ALPHA, INSTRUCTIONS_BACKGROUND_ALPHA,
    ATTRACTOR_RING_COLOR, SPAWN_CURSOR_COLOR, BRUSH_DIRECTION_COLOR,
    GENERATE_ARROW_COLOR, GENERATE_ARROW_ALPHA, BRUSH_ARROW_ALPHA
)
from export import ExportSequence
from settings import ParticleShape, SimulationMode
from simulation import Simulation
from utils import hex_to_rgb

# --- Data Contracts ---
#
# class Visualizer:
#   - __init__(self):
#     - Side Effects: Initializes Pygame and creates a display surface.
#       self.width / self.height are the canvas dimensions.
#
#   - draw(self, simulation: Simulation, exporter: ExportSequence) -> bool:
#     - Outputs: False if the user has quit, True otherwise.
#     - Side Effects: Handles Pygame events (mapping keys and mouse input to
#       simulation commands) and renders one frame. Cursors, field arrows,
#       the attractor ring and the instructions overlay are hidden while
#       an export is in progress.
#
#   - capture_png(self, path: str) -> None:
#     - Side Effects: Writes the last presented frame to `path`.
#     - Raises: OSError if the image cannot be saved.


@lru_cache(maxsize=256)
def _rgb(color: str) -> Tuple[int, int, int]:
    return hex_to_rgb(color)


def _rotated(points: List[Tuple[float, float]], angle: float,
             origin: Tuple[float, float]) -> List[Tuple[float, float]]:
    """Rotates local-space points by `angle` radians and moves them to `origin`."""
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    ox, oy = origin
    return [(ox + x * cos_a - y * sin_a, oy + x * sin_a + y * cos_a) for x, y in points]


class Visualizer:
    """
    Renders the simulation and translates user input into commands.
    """
    def __init__(self):
        """
        Initializes Pygame and the display window.
        """
        pygame.init()
        pygame.font.init()

        if FULLSCREEN:
            display_info = pygame.display.Info()
            size = (display_info.current_w, display_info.current_h)
            self.screen = pygame.display.set_mode(size, pygame.FULLSCREEN)
        else:
            size = WINDOW_SIZE
            self.screen = pygame.display.set_mode(size, pygame.RESIZABLE)
        self.width, self.height = size

        self._create_surfaces()
        pygame.display.set_caption("Flow Field Generator")
        self.clock = pygame.time.Clock()

        try:
            self.font_main = pygame.font.SysFont("Segoe UI", 14)
        except pygame.error:
            logging.warning("Segoe UI font not found, falling back to default sans-serif.")
            self.font_main = pygame.font.SysFont(None, 18)

        self.show_instructions = True
        self.brushing = False
        self.spawning = False
        self.mouse_pos = (0, 0)
        self.prev_mouse_pos = (0, 0)

        logging.info(f"Visualizer initialized with Pygame display ({self.width}x{self.height}).")

    def _create_surfaces(self):
        self.overlay_surface = pygame.Surface((self.width, self.height), pygame.SRCALPHA)
        self.particle_layer = pygame.Surface((self.width, self.height), pygame.SRCALPHA)
        self.ui_layer = pygame.Surface((self.width, self.height), pygame.SRCALPHA)

    # --- Event handling ---

    def _handle_key(self, key: int, simulation: Simulation, exporter: ExportSequence) -> bool:
        if key == pygame.K_ESCAPE:
            logging.info("ESC key pressed. Shutting down visualizer.")
            return False
        if key == pygame.K_s:
            exporter.start()
        elif key == pygame.K_r:
            simulation.reset_particles()
        elif key == pygame.K_c:
            simulation.clear_canvas()
        elif key == pygame.K_b:
            simulation.cycle_mode()
        elif key == pygame.K_p:
            simulation.toggle_simulation()
        elif key == pygame.K_SPACE:
            simulation.reset_field()
        elif key == pygame.K_h:
            self.show_instructions = not self.show_instructions
        return True

    def _handle_events(self, simulation: Simulation, exporter: ExportSequence) -> bool:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                return False

            if event.type == pygame.KEYDOWN:
                if not self._handle_key(event.key, simulation, exporter):
                    return False

            elif event.type == pygame.VIDEORESIZE:
                # The window has already changed; the simulation queues the
                # new size itself while an export is running.
                self.width, self.height = event.w, event.h
                self.screen = pygame.display.set_mode((self.width, self.height), pygame.RESIZABLE)
                self._create_surfaces()
                simulation.resize(event.w, event.h)

            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                mode = simulation.mode
                if mode is SimulationMode.BRUSH:
                    self.brushing = True
                elif mode is SimulationMode.SPAWN:
                    self.spawning = True
                    simulation.spawn_at(*event.pos)

            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                self.brushing = False
                self.spawning = False

            elif event.type == pygame.MOUSEMOTION:
                x, y = event.pos
                self.prev_mouse_pos = (x - event.rel[0], y - event.rel[1])
                self.mouse_pos = event.pos
                simulation.move_pointer(x, y)
                if self.brushing:
                    simulation.brush(x, y, *self.prev_mouse_pos)
                elif self.spawning:
                    simulation.spawn_at(x, y)
        return True

    # --- Drawing ---

    def _draw_background(self, simulation: Simulation):
        settings = simulation.settings
        r, g, b = _rgb(settings.background_color)
        if simulation.canvas_clear_pending:
            self.screen.fill((r, g, b))
            simulation.canvas_clear_pending = False
        # Trails fade slowly under a faint overlay; otherwise repaint fully.
        alpha = MOTION_BLUR_ALPHA if settings.trails_enabled else settings.background_alpha
        self.overlay_surface.fill((r, g, b, alpha))
        self.screen.blit(self.overlay_surface, (0, 0))

    def _draw_flow_field(self, simulation: Simulation):
        settings = simulation.settings
        field = simulation.field
        brush_mode = settings.mode is SimulationMode.BRUSH
        if brush_mode:
            color = (*_rgb(settings.flow_field_color), BRUSH_ARROW_ALPHA)
            line_width = 2
        else:
            color = (*GENERATE_ARROW_COLOR, GENERATE_ARROW_ALPHA)
            line_width = 1

        magnitudes = np.linalg.norm(field.vectors, axis=1)
        for y in range(field.rows):
            for x in range(field.cols):
                index = x + y * field.cols
                center = field.cell_center(x, y)
                magnitude = magnitudes[index]
                if magnitude > 0.01:
                    vx, vy = field.vectors[index]
                    heading = math.atan2(vy, vx)
                    length = field.cell_size * 0.4 * min(magnitude, 2.0)
                    tip, left, right = _rotated([(length, 0), (length - 3, -3), (length - 3, 3)], heading, center)
                    pygame.draw.line(self.ui_layer, color, center, tip, line_width)
                    pygame.draw.line(self.ui_layer, color, tip, left, line_width)
                    pygame.draw.line(self.ui_layer, color, tip, right, line_width)
                else:
                    pygame.draw.circle(self.ui_layer, color, center, 1, 1)

    def _draw_particles(self, simulation: Simulation):
        settings = simulation.settings
        particles = simulation.particles
        shape = settings.particle_shape
        headings = particles.headings()
        speeds = np.linalg.norm(particles.velocities, axis=1)

        self.particle_layer.fill((0, 0, 0, 0))
        for i in range(len(particles)):
            color = (*_rgb(particles.colors[i]), settings.particle_alpha)
            w = settings.particle_width * particles.size_multipliers[i]
            h = settings.particle_height * particles.size_multipliers[i]
            pos = (float(particles.positions[i, 0]), float(particles.positions[i, 1]))
            # Shapes only turn to follow velocity once the particle is moving
            angle = headings[i] if speeds[i] > 0.1 else 0.0

            if shape is ParticleShape.LINE:
                prev = (float(particles.prev_positions[i, 0]), float(particles.prev_positions[i, 1]))
                pygame.draw.line(self.particle_layer, color, prev, pos, max(1, int(round(w))))
            elif shape is ParticleShape.DOT:
                rect = pygame.Rect(0, 0, max(1, int(w)), max(1, int(h)))
                rect.center = pos
                pygame.draw.ellipse(self.particle_layer, color, rect)
            elif shape is ParticleShape.RECT:
                corners = [(-w / 2, -h / 2), (w / 2, -h / 2), (w / 2, h / 2), (-w / 2, h / 2)]
                pygame.draw.polygon(self.particle_layer, color, _rotated(corners, angle, pos))
            elif shape is ParticleShape.TRIANGLE:
                corners = [(w / 2, 0), (-w / 2, -h / 2), (-w / 2, h / 2)]
                pygame.draw.polygon(self.particle_layer, color, _rotated(corners, angle, pos))
        self.screen.blit(self.particle_layer, (0, 0))

    def _draw_brush_cursor(self, simulation: Simulation):
        settings = simulation.settings
        mx, my = self.mouse_pos
        pygame.draw.circle(self.ui_layer, _rgb(settings.flow_field_color), (mx, my), int(settings.brush_size), 2)
        px, py = self.prev_mouse_pos
        if self.brushing and (px, py) != (mx, my):
            heading = math.atan2(my - py, mx - px)
            size = settings.brush_size
            tip, left, right = _rotated([(size, 0), (size - 8, -5), (size - 8, 5)], heading, (mx, my))
            pygame.draw.line(self.ui_layer, BRUSH_DIRECTION_COLOR, (mx, my), tip, 3)
            pygame.draw.line(self.ui_layer, BRUSH_DIRECTION_COLOR, tip, left, 3)
            pygame.draw.line(self.ui_layer, BRUSH_DIRECTION_COLOR, tip, right, 3)

    def _draw_spawn_cursor(self, simulation: Simulation):
        settings = simulation.settings
        mx, my = self.mouse_pos
        pygame.draw.circle(self.ui_layer, SPAWN_CURSOR_COLOR, (mx, my), int(settings.spawn_radius), 2)
        pygame.draw.line(self.ui_layer, (*SPAWN_CURSOR_COLOR, 150), (mx - 10, my), (mx + 10, my))
        pygame.draw.line(self.ui_layer, (*SPAWN_CURSOR_COLOR, 150), (mx, my - 10), (mx, my + 10))
        # Preview dots on a ring at 70% of the spawn radius
        amount = max(settings.spawn_amount, 1)
        for i in range(min(settings.spawn_amount, 20)):
            angle = i / amount * 2 * math.pi
            r = settings.spawn_radius * 0.7
            pygame.draw.circle(self.ui_layer, (*SPAWN_CURSOR_COLOR, 100),
                               (mx + math.cos(angle) * r, my + math.sin(angle) * r), 2)

    def _draw_instructions(self, simulation: Simulation):
        settings = simulation.settings
        mode = settings.mode
        if mode is SimulationMode.BRUSH:
            accent = (100, 200, 255)
            lines = ["DRAG mouse to paint flow field",
                     "Flow field stays fixed after painting",
                     "Adjust brush size & strength in config",
                     "Use SPAWN mode to add particles"]
        elif mode is SimulationMode.SPAWN:
            accent = (100, 255, 100)
            lines = ["CLICK to spawn particles",
                     f"Spawns {settings.spawn_amount} particles per click",
                     f"Within {settings.spawn_radius:.0f}px radius",
                     "Adjust amount & radius in config"]
        else:
            accent = (100, 255, 150)
            lines = ["Flow field auto-generated",
                     "Mouse controls attractor",
                     "Use SPAWN mode to add particles"]

        line_height = self.font_main.get_linesize() + 4
        box_height = 30 + line_height * (len(lines) + 2)
        pygame.draw.rect(self.ui_layer, (0, 0, 0, INSTRUCTIONS_BACKGROUND_ALPHA),
                         pygame.Rect(10, 10, 340, box_height), border_radius=5)

        y = 20
        self.ui_layer.blit(self.font_main.render(f"MODE: {mode.value.upper()}", True, (255, 255, 255)), (20, y))
        y += line_height + 5
        for n, text in enumerate(lines):
            color = accent if n == 0 else (150, 150, 150)
            self.ui_layer.blit(self.font_main.render(text, True, color), (20, y))
            y += line_height
        y += 5
        hint = "[B] Cycle modes  [S] Export  [H] Hide this"
        self.ui_layer.blit(self.font_main.render(hint, True, (200, 200, 200)), (20, y))

    def draw(self, simulation: Simulation, exporter: ExportSequence) -> bool:
        """
        Handles events and draws one frame.

        Returns:
            bool: False if the application should exit, True otherwise.
        """
        if not self._handle_events(simulation, exporter):
            return False

        settings = simulation.settings
        exporting = simulation.exporting
        pygame.mouse.set_visible(not exporting)

        self._draw_background(simulation)
        self.ui_layer.fill((0, 0, 0, 0))

        if not exporting:
            mode = settings.mode
            if mode is SimulationMode.BRUSH or settings.show_flow_field:
                self._draw_flow_field(simulation)
            in_canvas = simulation.contains(*self.mouse_pos)
            if mode is SimulationMode.BRUSH and in_canvas:
                self._draw_brush_cursor(simulation)
            elif mode is SimulationMode.SPAWN and in_canvas:
                self._draw_spawn_cursor(simulation)

        self._draw_particles(simulation)

        if not exporting:
            if settings.mode is SimulationMode.GENERATE and settings.attractor_strength > 0:
                ax, ay = simulation.attractor
                pygame.draw.circle(self.ui_layer, ATTRACTOR_RING_COLOR, (float(ax), float(ay)),
                                   int(settings.attractor_radius), 2)
            if self.show_instructions:
                self._draw_instructions(simulation)

        self.screen.blit(self.ui_layer, (0, 0))
        pygame.display.flip()
        return True

    def capture_png(self, path: str) -> None:
        try:
            pygame.image.save(self.screen, path)
        except pygame.error as e:
            raise OSError(f"pygame could not save {path}: {e}") from e

    def close(self):
        """Shuts down Pygame."""
        pygame.font.quit()
        pygame.quit()

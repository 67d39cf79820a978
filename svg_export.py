# svg_export.py
"""
Serializes particles and their recorded trails into an SVG document.

The document is built as plain text so identical simulation state always
produces byte-identical output. Line particles with recorded trails become
polylines, optionally stroked with a per-segment linear gradient that fades
from the newest point toward the oldest one. Other shapes export one glyph
per particle plus, for dots and rects, a faint train of glyphs along the
trail.
"""
import math
from typing import List, Sequence

from constants import LINE_GLYPH_LENGTH, TRAIL_GLYPH_OPACITY
from particle import ParticleSystem
from settings import ParticleShape, SimulationSettings
from trails import Point

# --- Data Contracts ---
#
# simplify_path(points: Sequence[Point], stride: int) -> List[Point]:
#   - Inputs: stride >= 1. Callers clamp configuration values before use.
#   - Outputs: first point, every stride-th point from index `stride`,
#     and the last point. Inputs of two points or fewer are returned as is.
#
# render_svg(particles, settings, width, height) -> str:
#   - Outputs: a complete, self-contained SVG document.
#   - Side Effects: None. Reads particle state and trails only.


def simplify_path(points: Sequence[Point], stride: int) -> List[Point]:
    if len(points) <= 2 or stride == 1:
        return list(points)

    simplified = [points[0]]
    for i in range(stride, len(points) - 1, stride):
        simplified.append(points[i])
    if points[-1] is not simplified[-1]:
        simplified.append(points[-1])
    return simplified


def fmt(value: float) -> str:
    """Shortest round-trip text for a number; integral values drop the '.0'."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _points_attr(points: Sequence[Point]) -> str:
    return " ".join(f"{fmt(x)},{fmt(y)}" for x, y in points)


def _recent(segment: Sequence[Point], limit: int) -> List[Point]:
    """Keeps only the newest `limit` points of a segment."""
    points = list(segment)
    if len(points) > limit:
        points = points[-limit:]
    return points


class SvgWriter:
    """
    Builds one SVG document from the current particle state.
    """
    def __init__(self, particles: ParticleSystem, settings: SimulationSettings,
                 width: float, height: float):
        self.particles = particles
        self.settings = settings
        self.width = width
        self.height = height
        self.opacity = settings.particle_alpha / 255
        self.lines: List[str] = []

    @property
    def has_trails(self) -> bool:
        return self.settings.trails_enabled and len(self.particles.trails) > 0

    def render(self) -> str:
        settings = self.settings
        self.lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            f'<svg width="{fmt(self.width)}" height="{fmt(self.height)}" '
            f'xmlns="http://www.w3.org/2000/svg">',
        ]
        if settings.background_alpha > 0:
            self.lines.append(
                f'<rect width="{fmt(self.width)}" height="{fmt(self.height)}" '
                f'fill="{settings.background_color}" '
                f'opacity="{fmt(settings.background_alpha / 255)}"/>'
            )

        shape = settings.particle_shape
        if shape is ParticleShape.LINE:
            self._render_lines()
        elif shape is ParticleShape.DOT:
            self._render_dots()
        elif shape is ParticleShape.RECT:
            self._render_rects()
        elif shape is ParticleShape.TRIANGLE:
            self._render_triangles()
        else:
            raise ValueError(f"Unhandled particle shape: {shape}")

        self.lines.append('</svg>')
        return "\n".join(self.lines)

    # --- Line particles ---

    def _exportable_segments(self):
        """Yields (particle index, trimmed points) for segments with 2+ points."""
        limit = self.settings.export_trail_length
        for i, trail in enumerate(self.particles.trails):
            for segment in trail:
                if len(segment) > 1:
                    yield i, _recent(segment, limit)

    def _render_lines(self) -> None:
        settings = self.settings
        if not self.has_trails:
            self._render_heading_strokes()
            return

        fade = settings.trail_fade
        if fade:
            self._render_gradients()

        gradient_id = 0
        for i, points in self._exportable_segments():
            if settings.simplify_paths and len(points) > 2:
                points = simplify_path(points, max(1, settings.path_sampling))
            if fade:
                stroke = f'stroke="url(#grad{gradient_id})"'
                opacity = ''
                gradient_id += 1
            else:
                stroke = f'stroke="{self.particles.colors[i]}"'
                opacity = f' opacity="{fmt(self.opacity)}"'
            self.lines.append(
                f'<polyline points="{_points_attr(points)}" fill="none" {stroke} '
                f'stroke-width="{fmt(settings.particle_width)}" '
                f'stroke-linecap="round" stroke-linejoin="round"{opacity}/>'
            )

    def _render_gradients(self) -> None:
        """
        One userSpaceOnUse gradient per exported segment, anchored at the
        newest point (full opacity) and the oldest kept point (faded).
        """
        end_opacity = self.settings.fade_intensity * self.opacity
        self.lines.append('<defs>')
        for gradient_id, (i, points) in enumerate(self._exportable_segments()):
            color = self.particles.colors[i]
            newest = points[-1]
            oldest = points[0]
            self.lines.append(
                f'<linearGradient id="grad{gradient_id}" '
                f'x1="{fmt(newest[0])}" y1="{fmt(newest[1])}" '
                f'x2="{fmt(oldest[0])}" y2="{fmt(oldest[1])}" '
                f'gradientUnits="userSpaceOnUse">'
            )
            self.lines.append(f'<stop offset="0%" stop-color="{color}" stop-opacity="{fmt(self.opacity)}"/>')
            self.lines.append(f'<stop offset="100%" stop-color="{color}" stop-opacity="{fmt(end_opacity)}"/>')
            self.lines.append('</linearGradient>')
        self.lines.append('</defs>')

    def _render_heading_strokes(self) -> None:
        particles = self.particles
        headings = particles.headings()
        for i in range(len(particles)):
            x, y = particles.positions[i]
            width = self.settings.particle_width * particles.size_multipliers[i]
            x2 = x + math.cos(headings[i]) * LINE_GLYPH_LENGTH
            y2 = y + math.sin(headings[i]) * LINE_GLYPH_LENGTH
            self.lines.append(
                f'<line x1="{fmt(x)}" y1="{fmt(y)}" x2="{fmt(x2)}" y2="{fmt(y2)}" '
                f'stroke="{particles.colors[i]}" stroke-width="{fmt(width)}" '
                f'stroke-linecap="round" opacity="{fmt(self.opacity)}"/>'
            )

    # --- Glyph particles ---

    def _glyph_size(self, i: int):
        multiplier = self.particles.size_multipliers[i]
        return self.settings.particle_width * multiplier, self.settings.particle_height * multiplier

    def _trail_points(self, i: int):
        limit = self.settings.export_trail_length
        for segment in self.particles.trails[i]:
            yield _recent(segment, limit)

    def _ellipse(self, x, y, w, h, color, opacity) -> str:
        rx = w / 2
        ry = h / 2
        if rx == ry:
            return (f'<circle cx="{fmt(x)}" cy="{fmt(y)}" r="{fmt(rx)}" '
                    f'fill="{color}" opacity="{fmt(opacity)}"/>')
        return (f'<ellipse cx="{fmt(x)}" cy="{fmt(y)}" rx="{fmt(rx)}" ry="{fmt(ry)}" '
                f'fill="{color}" opacity="{fmt(opacity)}"/>')

    def _rect(self, x, y, w, h, angle_degrees, color, opacity) -> str:
        return (f'<rect x="{fmt(x - w / 2)}" y="{fmt(y - h / 2)}" '
                f'width="{fmt(w)}" height="{fmt(h)}" '
                f'fill="{color}" opacity="{fmt(opacity)}" '
                f'transform="rotate({fmt(angle_degrees)} {fmt(x)} {fmt(y)})"/>')

    def _render_dots(self) -> None:
        particles = self.particles
        for i in range(len(particles)):
            x, y = particles.positions[i]
            w, h = self._glyph_size(i)
            self.lines.append(self._ellipse(x, y, w, h, particles.colors[i], self.opacity))

        if not self.has_trails:
            return
        trail_opacity = self.opacity * TRAIL_GLYPH_OPACITY
        for i in range(len(particles)):
            # Historical points are drawn at the particle's current size.
            w, h = self._glyph_size(i)
            for points in self._trail_points(i):
                for x, y in points:
                    self.lines.append(self._ellipse(x, y, w, h, particles.colors[i], trail_opacity))

    def _render_rects(self) -> None:
        particles = self.particles
        headings = particles.headings()
        for i in range(len(particles)):
            x, y = particles.positions[i]
            w, h = self._glyph_size(i)
            self.lines.append(self._rect(x, y, w, h, math.degrees(headings[i]),
                                         particles.colors[i], self.opacity))

        if not self.has_trails:
            return
        trail_opacity = self.opacity * TRAIL_GLYPH_OPACITY
        for i in range(len(particles)):
            w, h = self._glyph_size(i)
            for points in self._trail_points(i):
                for previous, (x, y) in zip(points, points[1:]):
                    angle = math.degrees(math.atan2(y - previous[1], x - previous[0]))
                    self.lines.append(self._rect(x, y, w, h, angle, particles.colors[i], trail_opacity))

    def _render_triangles(self) -> None:
        particles = self.particles
        headings = particles.headings()
        for i in range(len(particles)):
            x, y = particles.positions[i]
            w, h = self._glyph_size(i)
            corners = [(x + w / 2, y), (x - w / 2, y - h / 2), (x - w / 2, y + h / 2)]
            self.lines.append(
                f'<polygon points="{_points_attr(corners)}" '
                f'fill="{particles.colors[i]}" opacity="{fmt(self.opacity)}" '
                f'transform="rotate({fmt(math.degrees(headings[i]))} {fmt(x)} {fmt(y)})"/>'
            )


def render_svg(particles: ParticleSystem, settings: SimulationSettings,
               width: float, height: float) -> str:
    return SvgWriter(particles, settings, width, height).render()

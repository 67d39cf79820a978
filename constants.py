# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
They are fundamental to the application's framework, such as rendering
properties, default window sizes, or force scaling factors that are not
part of the tunable configuration.
"""

# Visualization settings
# Set to True to run in borderless fullscreen mode.
# Set to False to run in a fixed-size, resizable window.
FULLSCREEN = False
WINDOW_SIZE = (1280, 800)
FPS = 60
# Alpha value for the trail overlay (0-255). Lower is a longer on-screen trail.
MOTION_BLUR_ALPHA = 10
INSTRUCTIONS_BACKGROUND_ALPHA = 200
ATTRACTOR_RING_COLOR = (255, 255, 0, 50)
SPAWN_CURSOR_COLOR = (100, 255, 100)
BRUSH_DIRECTION_COLOR = (255, 255, 0)
# Field arrows in Generate mode are drawn dim and thin.
GENERATE_ARROW_COLOR = (100, 100, 100)
GENERATE_ARROW_ALPHA = 50
BRUSH_ARROW_ALPHA = 180

# --- Physics ---
# Wind, turbulence and attractor strengths are all scaled by this factor.
FORCE_SCALE = 0.1
# Interpolation weight of a brush stroke at the brush center.
BRUSH_BLEND = 0.3
# Noise value -> angle multiplier. noise * 2pi * FIELD_ROTATION.
FIELD_ROTATION = 4.0
# Initial grid placement jitter, as a fraction of particle spacing.
SPAWN_JITTER = 0.15

# --- Noise ---
NOISE_OCTAVES = 4
NOISE_FALLOFF = 0.5

# --- Export ---
EXPORT_PREFIX = "flow-field"
# Opacity multiplier for dot/rect trail glyphs.
TRAIL_GLYPH_OPACITY = 0.3
# Length of the heading stroke exported for line particles without trails.
LINE_GLYPH_LENGTH = 5
DEFAULT_COLOR = "#ffffff"

# Valid ranges for numeric tunables. None means unbounded on that side.
# Values outside the range are clamped when loaded or set.
PARAMETER_LIMITS = {
    "particle_count": (0, None),
    "particle_speed": (0.0, None),
    "particle_alpha": (0, 255),
    "particle_spacing": (1, None),
    "repulsion_strength": (0.0, None),
    "max_trail_length": (1, None),
    "spawn_amount": (0, None),
    "spawn_radius": (0.0, None),
    "particle_width": (0.0, None),
    "particle_height": (0.0, None),
    "particle_size_variation": (0, 100),
    "noise_scale": (0.0, None),
    "time_speed": (0.0, None),
    "field_resolution": (1, None),
    "brush_size": (0.0, None),
    "brush_strength": (0.0, None),
    "wind_force": (0.0, None),
    "turbulence": (0.0, None),
    "attractor_strength": (0.0, None),
    "attractor_radius": (0.0, None),
    "background_alpha": (0, 255),
    "path_sampling": (1, None),
    "fade_intensity": (0.0, 1.0),
    "export_trail_length": (1, None),
}

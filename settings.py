# settings.py
"""
Tunable configuration for the flow field simulation.

This module defines the closed set of simulation modes and particle shapes,
and the SimulationSettings structure that is owned by the Simulation and
passed by reference to every component that reads it.
"""
import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import Dict, Any

from constants import PARAMETER_LIMITS

# --- Data Contracts ---
#
# SimulationSettings.from_dict(params: Dict[str, Any]) -> SimulationSettings:
#   - Inputs: the "simulation_parameters" section of config.json.
#   - Outputs: a settings object with every numeric field inside
#     PARAMETER_LIMITS.
#   - Side Effects: logs a warning for unknown keys and clamped values.
#   - Raises: ValueError for unknown mode or shape names and for
#     booleans that are not true/false, yes/no, on/off or 1/0.


class SimulationMode(Enum):
    GENERATE = "Generate"
    BRUSH = "Brush"
    SPAWN = "Spawn"

    def next(self) -> "SimulationMode":
        """Generate -> Brush -> Spawn -> Generate."""
        order = [SimulationMode.GENERATE, SimulationMode.BRUSH, SimulationMode.SPAWN]
        return order[(order.index(self) + 1) % len(order)]


class ParticleShape(Enum):
    LINE = "line"
    DOT = "dot"
    RECT = "rect"
    TRIANGLE = "triangle"


def _parse_enum(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    for member in enum_cls:
        if str(value).lower() in (member.value.lower(), member.name.lower()):
            return member
    msg = f"Configuration error: '{value}' is not a valid {enum_cls.__name__}."
    logging.critical(msg)
    raise ValueError(msg)


def parse_mode(value) -> SimulationMode:
    return _parse_enum(SimulationMode, value)


TRUE_STRINGS = ("true", "1", "yes", "on")
FALSE_STRINGS = ("false", "0", "no", "off")


def parse_bool(name: str, value) -> bool:
    """Accepts real bools, 0/1 and the usual on/off spellings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
    msg = f"Configuration error: '{value}' is not a valid boolean for '{name}'."
    logging.critical(msg)
    raise ValueError(msg)


def clamp_parameter(name: str, value):
    """Clamps a numeric parameter into its valid range, keeping its type."""
    if name not in PARAMETER_LIMITS:
        return value
    low, high = PARAMETER_LIMITS[name]
    clamped = value
    if low is not None and clamped < low:
        clamped = low
    if high is not None and clamped > high:
        clamped = high
    if clamped != value:
        logging.warning(f"Parameter '{name}'={value} is out of range; clamped to {clamped}.")
    return type(value)(clamped)


@dataclass
class SimulationSettings:
    # Mode
    mode: SimulationMode = SimulationMode.GENERATE

    # Particles
    particle_count: int = 500
    particle_speed: float = 2.0
    particle_alpha: int = 255
    particle_spacing: float = 30.0
    maintain_distance: bool = True
    repulsion_strength: float = 1.0
    trails_enabled: bool = False
    max_trail_length: int = 500
    simulate_particles: bool = True

    # Spawn mode
    spawn_amount: int = 10
    spawn_radius: float = 50.0

    # Particle appearance
    particle_shape: ParticleShape = ParticleShape.LINE
    particle_width: float = 2.0
    particle_height: float = 2.0
    particle_size_variation: float = 0.0
    use_color_palette: bool = False
    color_palette: str = "#EE3124, #7851A9, #003DA5, #00457C, #1B3D4F"

    # Flow field
    noise_scale: float = 0.01
    noise_strength: float = 1.0
    time_speed: float = 0.002
    field_resolution: int = 20

    # Brush mode
    brush_size: float = 50.0
    brush_strength: float = 1.0

    # Forces
    wind_force: float = 0.3
    wind_angle: float = 0.0
    turbulence: float = 0.5
    attractor_strength: float = 0.2
    attractor_radius: float = 200.0

    # Visual
    background_color: str = "#0a0a0a"
    background_alpha: int = 255
    particle_color: str = "#ffffff"
    flow_field_color: str = "#4488ff"
    show_flow_field: bool = False

    # SVG export
    simplify_paths: bool = True
    path_sampling: int = 3
    trail_fade: bool = True
    fade_intensity: float = 0.3
    export_trail_length: int = 150

    seed: int = 42

    @classmethod
    def from_dict(cls, params: Dict[str, Any]) -> "SimulationSettings":
        settings = cls()
        known = {f.name for f in fields(cls)}
        for key, value in params.items():
            if key not in known:
                logging.warning(f"Ignoring unknown simulation parameter '{key}'.")
                continue
            settings.set(key, value)
        logging.info("Simulation settings loaded.")
        return settings

    def set(self, name: str, value: Any) -> Any:
        """
        Assigns a single field, coercing enums and clamping numeric ranges.

        Returns the value actually stored.
        """
        if name == "mode":
            value = _parse_enum(SimulationMode, value)
        elif name == "particle_shape":
            value = _parse_enum(ParticleShape, value)
        elif name not in {f.name for f in fields(self)}:
            raise KeyError(f"Unknown simulation parameter '{name}'.")
        else:
            current = getattr(self, name)
            if isinstance(current, bool):
                value = parse_bool(name, value)
            elif isinstance(current, int):
                value = int(value)
            elif isinstance(current, float):
                value = float(value)
            value = clamp_parameter(name, value)
        setattr(self, name, value)
        return value

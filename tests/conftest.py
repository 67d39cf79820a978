import numpy as np
import pytest

from particle import ParticleSystem
from settings import SimulationSettings
from simulation import Simulation


@pytest.fixture
def make_settings():
    """Settings with every ambient force switched off unless overridden."""
    def _make(**overrides):
        params = {
            "wind_force": 0.0,
            "turbulence": 0.0,
            "attractor_strength": 0.0,
            "maintain_distance": False,
            "particle_count": 0,
        }
        params.update(overrides)
        return SimulationSettings.from_dict(params)
    return _make


@pytest.fixture
def make_simulation(make_settings):
    def _make(width=100, height=100, **overrides):
        return Simulation(make_settings(**overrides), width, height)
    return _make


@pytest.fixture
def make_particles(make_settings):
    def _make(**overrides):
        return ParticleSystem(make_settings(**overrides), np.random.default_rng(0))
    return _make

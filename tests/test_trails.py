from trails import Trail
from settings import SimulationMode


def test_new_trail_has_one_empty_segment():
    trail = Trail()
    assert len(trail) == 1
    assert len(trail.segments[0]) == 0


def test_segment_evicts_oldest_points_first():
    trail = Trail()
    for i in range(6):
        trail.record((float(i), 0.0), False, 4)
    assert list(trail.segments[0]) == [(2.0, 0.0), (3.0, 0.0), (4.0, 0.0), (5.0, 0.0)]


def test_wrap_starts_new_segment_with_the_wrapping_sample():
    trail = Trail()
    trail.record((1.0, 1.0), False, 10)
    trail.record((0.0, 1.0), True, 10)
    assert [list(s) for s in trail] == [[(1.0, 1.0)], [(0.0, 1.0)]]


def test_clear_restores_single_empty_segment():
    trail = Trail()
    trail.record((1.0, 1.0), False, 10)
    trail.record((2.0, 1.0), True, 10)
    trail.clear()
    assert len(trail) == 1 and trail.point_count == 0


def test_single_wrap_during_simulation_yields_two_segments(make_simulation):
    sim = make_simulation(width=100, height=100, trails_enabled=True,
                          particle_speed=2.0, mode=SimulationMode.BRUSH)
    sim.particles.add(95.0, 50.0)
    sim.particles.velocities[0] = (2.0, 0.0)

    for _ in range(5):
        sim.step()

    segments = [list(s) for s in sim.particles.trails[0]]
    assert segments == [
        [(97.0, 50.0), (99.0, 50.0)],
        [(0.0, 50.0), (2.0, 50.0), (4.0, 50.0)],
    ]


def test_no_recording_when_trails_disabled(make_simulation):
    sim = make_simulation(trails_enabled=False, mode="Brush")
    sim.particles.add(10.0, 10.0)
    for _ in range(3):
        sim.step()
    assert sim.particles.trails[0].point_count == 0

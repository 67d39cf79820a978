import numpy as np
import pytest

from settings import SimulationMode


def test_spawning_beyond_cap_evicts_oldest_first(make_simulation):
    sim = make_simulation(width=200, height=200, mode="Spawn",
                          particle_count=5, spawn_amount=3, spawn_radius=20)
    sim.clear_particles()

    sim.spawn_at(100, 100)
    first_batch = sim.particles.positions.copy()
    for i, trail in enumerate(sim.particles.trails):
        trail.record(tuple(first_batch[i]), False, 10)

    sim.spawn_at(100, 100)

    assert len(sim.particles) == 5
    assert len(sim.particles.trails) == 5
    # The very first particle went; the second one is now the oldest
    np.testing.assert_array_equal(sim.particles.positions[0], first_batch[1])
    assert sim.particles.trails[0].segments[0][0] == tuple(first_batch[1])
    np.testing.assert_array_equal(sim.particles.positions[1], first_batch[2])


def test_sustained_spawning_never_exceeds_cap(make_simulation):
    sim = make_simulation(width=200, height=200, mode="Spawn", particle_count=7, spawn_amount=4)
    for _ in range(10):
        sim.spawn_at(50, 50)
        assert len(sim.particles) <= 7
    assert len(sim.particles) == 7
    assert len(sim.particles.trails) == 7


def test_spawned_particles_stay_on_canvas(make_simulation):
    sim = make_simulation(width=100, height=100, mode="Spawn", particle_count=100,
                          spawn_amount=30, spawn_radius=50)
    sim.spawn_at(0, 0)
    positions = sim.particles.positions
    assert np.all((positions >= 0) & (positions <= 100))


def test_spawn_ignored_outside_canvas_or_in_other_modes(make_simulation):
    sim = make_simulation(mode="Spawn", particle_count=100)
    assert sim.spawn_at(-5, 50) == 0
    other = make_simulation(mode="Generate", particle_count=100)
    assert other.spawn_at(50, 50) == 0


def test_mode_change_applies_on_next_step(make_simulation):
    sim = make_simulation()
    sim.set_mode("Brush")
    assert sim.mode is SimulationMode.GENERATE

    sim.step()

    assert sim.mode is SimulationMode.BRUSH
    assert sim.settings.show_flow_field
    assert sim.settings.simulate_particles


def test_cycle_mode_wraps_around(make_simulation):
    sim = make_simulation()
    seen = []
    for _ in range(3):
        sim.cycle_mode()
        sim.step()
        seen.append(sim.mode)
    assert seen == [SimulationMode.BRUSH, SimulationMode.SPAWN, SimulationMode.GENERATE]
    assert not sim.settings.show_flow_field


def test_generate_mode_regenerates_field_and_advances_time(make_simulation):
    sim = make_simulation(time_speed=0.01, noise_strength=2.0)
    sim.step()
    assert sim.time_offset == pytest.approx(0.01)
    np.testing.assert_allclose(np.linalg.norm(sim.field.vectors, axis=1), 2.0)


def test_brush_mode_leaves_field_static(make_simulation):
    sim = make_simulation(mode="Brush")
    sim.step()
    assert sim.time_offset == 0.0
    assert not sim.field.vectors.any()


def test_brush_paints_only_in_brush_mode(make_simulation):
    sim = make_simulation(mode="Brush", brush_size=30, field_resolution=10)
    assert sim.brush(50, 50, 50, 50) == 0
    assert sim.brush(50, 50, 40, 50) > 0
    cell = sim.field.lookup(45, 45)
    assert cell[0] > 0 and abs(cell[1]) < 1e-12

    spawn = make_simulation(mode="Spawn")
    assert spawn.brush(50, 50, 40, 50) == 0


def test_pointer_moves_attractor_only_in_generate_mode(make_simulation):
    sim = make_simulation(width=200, height=100)
    np.testing.assert_array_equal(sim.attractor, [100.0, 50.0])
    sim.move_pointer(10, 20)
    np.testing.assert_array_equal(sim.attractor, [10.0, 20.0])

    brush = make_simulation(mode="Brush")
    brush.move_pointer(10, 20)
    np.testing.assert_array_equal(brush.attractor, [50.0, 50.0])


def test_resize_reallocates_field_and_recenters_attractor(make_simulation):
    sim = make_simulation(field_resolution=10)
    sim.step()
    assert sim.resize(200, 50)
    assert (sim.field.cols, sim.field.rows) == (20, 5)
    assert not sim.field.vectors.any()
    np.testing.assert_array_equal(sim.attractor, [100.0, 25.0])


def test_set_param_triggers_reinitialization(make_simulation):
    sim = make_simulation(width=300, height=300, particle_spacing=30)
    assert sim.set_param("particle_count", 12)
    assert len(sim.particles) == 12

    sim.set_param("field_resolution", 50)
    assert (sim.field.cols, sim.field.rows) == (6, 6)

    sim.set_param("particle_size_variation", 50)
    assert np.all(np.abs(sim.particles.size_multipliers - 1) <= 0.5)

    sim.set_param("path_sampling", 0)
    assert sim.settings.path_sampling == 1

    with pytest.raises(KeyError):
        sim.set_param("warp_drive", 3)


def test_commands_reset_and_clear(make_simulation):
    sim = make_simulation(width=300, height=300, particle_count=9, particle_spacing=30)
    assert len(sim.particles) == 9

    sim.clear_particles()
    assert len(sim.particles) == 0 and len(sim.particles.trails) == 0

    sim.reset_particles()
    assert len(sim.particles) == 9

    sim.step()
    sim.reset_field()
    assert not sim.field.vectors.any()

    sim.clear_canvas()
    assert sim.canvas_clear_pending


def test_paused_simulation_keeps_particles_still(make_simulation):
    sim = make_simulation(width=300, height=300, particle_count=4, wind_force=1.0)
    assert sim.toggle_simulation() is False
    before = sim.particles.positions.copy()
    sim.step()
    np.testing.assert_array_equal(sim.particles.positions, before)


def test_export_freeze_rejects_mutation(make_simulation):
    sim = make_simulation(width=300, height=300, particle_count=4, wind_force=1.0, mode="Spawn")
    before = sim.particles.positions.copy()
    sim.begin_export()

    assert sim.step() is False
    assert sim.resize(50, 50) is False
    assert sim.set_mode("Brush") is False
    assert sim.set_param("particle_count", 1) is False
    assert sim.spawn_at(10, 10) == 0
    np.testing.assert_array_equal(sim.particles.positions, before)
    assert (sim.width, sim.height) == (300.0, 300.0)

    sim.end_export()
    assert sim.step() is True
    assert sim.resize(50, 50) is True


def test_resize_during_export_is_applied_when_export_ends(make_simulation):
    sim = make_simulation(width=300, height=300, field_resolution=10)
    sim.begin_export()

    assert sim.resize(640, 480) is False
    sim.resize(200, 100)
    assert (sim.width, sim.height) == (300.0, 300.0)
    assert (sim.field.cols, sim.field.rows) == (30, 30)

    sim.end_export()

    # Only the latest queued size is applied
    assert (sim.width, sim.height) == (200.0, 100.0)
    assert (sim.field.cols, sim.field.rows) == (20, 10)
    np.testing.assert_array_equal(sim.attractor, [100.0, 50.0])


def test_end_export_without_queued_resize_keeps_canvas(make_simulation):
    sim = make_simulation(width=300, height=300)
    sim.begin_export()
    sim.end_export()
    assert (sim.width, sim.height) == (300.0, 300.0)


def test_step_keeps_trails_index_aligned(make_simulation):
    sim = make_simulation(width=200, height=200, particle_count=20, trails_enabled=True,
                          turbulence=0.5, maintain_distance=True)
    for _ in range(25):
        sim.step()
    assert len(sim.particles.trails) == len(sim.particles) == 20
    for i, trail in enumerate(sim.particles.trails):
        assert trail.segments[-1][-1] == tuple(sim.particles.positions[i])

import numpy as np
import pytest

from flow_field import FlowField
from perlin import PerlinNoise


@pytest.fixture
def field():
    # 10 x 10 cells of 10 px on a 100 x 100 canvas
    return FlowField(100, 100, 10, PerlinNoise(seed=1))


def test_canvas_size_determines_grid_dimensions():
    field = FlowField(105, 65, 20, PerlinNoise(seed=1))
    assert (field.cols, field.rows) == (5, 3)
    assert field.vectors.shape == (15, 2)


def test_resize_reallocates_zero_filled(field):
    field.update(0.0, 0.01, 4.0, 1.0)
    field.resize(4, 3)
    assert field.vectors.shape == (12, 2)
    assert not field.vectors.any()


def test_update_sets_every_cell_to_requested_magnitude(field):
    field.update(0.25, 0.05, 4.0, 1.5)
    np.testing.assert_allclose(np.linalg.norm(field.vectors, axis=1), 1.5)


def test_update_is_deterministic_and_evolves_with_time():
    a = FlowField(100, 100, 10, PerlinNoise(seed=7))
    b = FlowField(100, 100, 10, PerlinNoise(seed=7))
    a.update(0.5, 0.05, 4.0, 1.0)
    b.update(0.5, 0.05, 4.0, 1.0)
    np.testing.assert_array_equal(a.vectors, b.vectors)

    b.update(0.9, 0.05, 4.0, 1.0)
    assert not np.allclose(a.vectors, b.vectors)


def test_paint_blends_cells_inside_radius_only(field):
    painted = field.paint((50, 50), 15, (1.0, 0.0), 1.0)

    # Only the four cells centered at (45|55, 45|55) lie within 15 px
    assert painted == 4
    expected = 1.0 - np.sqrt(50.0) / 15.0
    for x, y in [(4, 4), (5, 4), (4, 5), (5, 5)]:
        np.testing.assert_allclose(field.vectors[x + y * field.cols], [expected, 0.0])

    untouched = np.ones(len(field.vectors), dtype=bool)
    untouched[[44, 45, 54, 55]] = False
    assert not field.vectors[untouched].any()


def test_paint_moves_existing_vectors_toward_brush(field):
    field.vectors[:] = (0.0, 1.0)
    field.paint((5, 5), 10, (1.0, 0.0), 0.5)
    # Cell (0, 0) sits exactly at the brush center: full falloff weight
    np.testing.assert_allclose(field.vectors[0], [0.5, 0.5])


def test_lookup_inside_and_outside_grid(field):
    field.vectors[13] = (0.5, -0.5)
    np.testing.assert_array_equal(field.lookup(35, 12), [0.5, -0.5])
    assert field.lookup(5, -1) is None
    assert field.lookup(5, 100) is None


def test_lookup_many_zeroes_off_grid_positions(field):
    field.vectors[:] = (1.0, 2.0)
    positions = np.array([[5.0, 5.0], [5.0, -20.0], [50.0, 150.0]])
    forces, valid = field.lookup_many(positions)
    assert valid.tolist() == [True, False, False]
    np.testing.assert_array_equal(forces, [[1.0, 2.0], [0.0, 0.0], [0.0, 0.0]])


def test_reset_keeps_dimensions(field):
    field.update(0.0, 0.01, 4.0, 1.0)
    field.reset()
    assert field.vectors.shape == (100, 2)
    assert not field.vectors.any()

import numpy as np
import pytest

from molcube import constants, geometry
from molcube.grid import Grid


def test_limits_from_dimensions():
    grid = Grid()
    assert grid.set_limits_from_dimensions((0, 0, 0), (2, 4, 6), (3, 5, 7))
    assert list(grid.dimensions) == [3, 5, 7]
    np.testing.assert_allclose(grid.spacing, [1.0, 1.0, 1.0])
    assert len(grid.data()) == 3 * 5 * 7
    assert not grid.data().any()


@pytest.mark.parametrize(
    "dims", [(1, 1, 1), (0, 4, 2), (5, 1, 3), (10, 10, 10), (0, 0, 0)]
)
def test_limits_from_dimensions_allocates_buffer(dims):
    grid = Grid()
    assert grid.set_limits_from_dimensions((-1, -2, -3), (1, 2, 3), dims)
    assert list(grid.dimensions) == list(dims)
    assert len(grid.data()) == int(np.prod(dims))


def test_single_sample_axis_has_zero_extent_spacing():
    grid = Grid()
    assert grid.set_limits_from_dimensions((1, 1, 1), (1, 1, 1), (1, 1, 1))
    np.testing.assert_array_equal(grid.spacing, [0.0, 0.0, 0.0])
    assert grid.size == 1


@pytest.mark.parametrize(
    "lower, upper, dims",
    [
        ((0, 0, 0), (1, 1, 1), (2, -1, 2)),
        ((0, 2, 0), (1, 1, 1), (2, 2, 2)),
        ((0, 0, 0), (1, 1, np.inf), (2, 2, 2)),
        ((0, 0), (1, 1), (2, 2)),
        ((0, 0, 0), (1, 1, 1), (2.5, 2, 2)),
    ],
)
def test_invalid_limits_leave_grid_unchanged(lower, upper, dims):
    grid = Grid()
    assert grid.set_limits_from_dimensions((0, 0, 0), (3, 3, 3), (4, 4, 4))
    assert grid.set_value(1, 2, 3, 7.5)
    before = (grid.min, grid.max, grid.spacing, grid.dimensions, np.array(grid.data()))

    assert not grid.set_limits_from_dimensions(lower, upper, dims)

    after = (grid.min, grid.max, grid.spacing, grid.dimensions, np.array(grid.data()))
    for b, a in zip(before, after):
        np.testing.assert_array_equal(b, a)
    assert grid.max_value == 7.5


def test_limits_from_spacing_exact_multiple():
    grid = Grid()
    assert grid.set_limits_from_spacing((0, 0, 0), (1, 2, 3), 0.25)
    assert list(grid.dimensions) == [5, 9, 13]
    np.testing.assert_allclose(grid.max, [1, 2, 3])


def test_limits_from_spacing_moves_max_outward():
    grid = Grid()
    assert grid.set_limits_from_spacing((0, 0, 0), (1, 1, 1), 0.3)
    assert list(grid.dimensions) == [5, 5, 5]
    np.testing.assert_allclose(grid.max, [1.2, 1.2, 1.2])
    np.testing.assert_allclose(grid.spacing, [0.3, 0.3, 0.3])


def test_limits_from_spacing_per_axis():
    grid = Grid()
    assert grid.set_limits_from_spacing((0, 0, 0), (1, 1, 1), (0.5, 0.25, 1.0))
    assert list(grid.dimensions) == [3, 5, 2]


def test_limits_from_spacing_flat_box_has_one_sample():
    grid = Grid()
    assert grid.set_limits_from_spacing((2, 2, 2), (2, 3, 2), 0.5)
    assert list(grid.dimensions) == [1, 3, 1]


@pytest.mark.parametrize("spacing", [0, -0.5, (0.5, 0.0, 0.5), np.nan, "coarse"])
def test_limits_from_spacing_rejects_bad_spacing(spacing):
    grid = Grid()
    assert not grid.set_limits_from_spacing((0, 0, 0), (1, 1, 1), spacing)
    assert grid.size == 0


def test_limits_from_origin():
    grid = Grid()
    assert grid.set_limits_from_origin((1, 2, 3), (3, 4, 5), 0.5)
    np.testing.assert_allclose(grid.max, [2.0, 3.5, 5.0])
    assert grid.size == 60


def test_limits_from_origin_rejects_bad_input():
    grid = Grid()
    assert not grid.set_limits_from_origin((0, 0, 0), (2, -2, 2), 0.5)
    assert not grid.set_limits_from_origin((0, 0, 0), (2, 2, 2), 0.0)
    assert not grid.set_limits_from_origin((0, np.nan, 0), (2, 2, 2), 0.5)
    assert grid.size == 0


def test_limits_from_grid_copies_geometry_not_values(skewed_grid):
    skewed_grid.set_data(np.arange(skewed_grid.size))
    grid = Grid()
    assert grid.set_limits_from_grid(skewed_grid)
    np.testing.assert_array_equal(grid.min, skewed_grid.min)
    np.testing.assert_array_equal(grid.max, skewed_grid.max)
    np.testing.assert_array_equal(grid.spacing, skewed_grid.spacing)
    np.testing.assert_array_equal(grid.dimensions, skewed_grid.dimensions)
    assert not grid.data().any()
    assert grid.min_value == grid.max_value == 0.0


def test_limits_from_positions():
    grid = Grid()
    positions = np.array([[0.0, 0.0, 0.0], [1.0, 2.0, 3.0]])
    assert grid.set_limits_from_molecule(positions, spacing=0.5, padding=1.0)
    np.testing.assert_allclose(grid.min, [-1, -1, -1])
    np.testing.assert_allclose(grid.max, [2, 3, 4])
    assert list(grid.dimensions) == [7, 9, 11]


def test_limits_from_molecule(ethanol):
    grid = Grid()
    assert grid.set_limits_from_molecule(ethanol, spacing=0.4, padding=2.0)
    xyz = ethanol.get_atomic_positions()
    assert np.all(grid.min <= xyz.min(axis=0) - 2.0 + 1e-9)
    assert np.all(grid.max >= xyz.max(axis=0) + 2.0 - 1e-9)
    np.testing.assert_allclose(grid.spacing, [0.4, 0.4, 0.4])


def test_limits_from_molecule_rejects_empty_structure():
    grid = Grid()
    assert not grid.set_limits_from_molecule(np.empty((0, 3)), 0.5, 1.0)
    assert not grid.set_limits_from_molecule([[1.0, 2.0]], 0.5, 1.0)
    assert grid.size == 0


def test_geometry_change_discards_values(unit_cube):
    assert unit_cube.max_value == 7.0
    assert unit_cube.set_limits_from_dimensions((0, 0, 0), (1, 1, 1), (2, 2, 2))
    assert not unit_cube.data().any()
    assert unit_cube.min_value == unit_cube.max_value == 0.0


def test_unknown_request_is_rejected():
    grid = Grid()
    assert not grid.apply_geometry("a box please")
    assert geometry.resolve_geometry(object()) is None


def test_apply_geometry_accepts_variants():
    grid = Grid()
    assert grid.apply_geometry(geometry.BoundsAndSpacing((0, 0, 0), (1, 1, 1), 0.5))
    assert list(grid.dimensions) == [3, 3, 3]
    assert grid.apply_geometry(geometry.CopyOf(grid.geometry))
    assert list(grid.dimensions) == [3, 3, 3]


def test_rejected_geometry_is_logged(caplog):
    grid = Grid()
    with caplog.at_level("WARNING"):
        assert not grid.set_limits_from_dimensions((1, 1, 1), (0, 0, 0), (2, 2, 2))
    assert "Rejected grid geometry" in caplog.text


@pytest.mark.parametrize(
    "setter, args",
    [
        ("set_limits_from_dimensions", ((0, 0, 0), (1, 1, 1), (10**7,) * 3)),
        ("set_limits_from_dimensions", ((0, 0, 0), (1, 1, 1), (1e20, 1, 1))),
        ("set_limits_from_origin", ((0, 0, 0), (2**20, 2**20, 2), 0.1)),
        ("set_limits_from_spacing", ((0, 0, 0), (1, 1, 1), 1e-300)),
        ("set_limits_from_spacing", ((0, 0, 0), (1e300, 1, 1), 1e-300)),
        ("set_limits_from_spacing", ((0, 0, 0), (100, 100, 100), 1e-3)),
    ],
)
def test_oversized_geometry_is_rejected(unit_cube, setter, args):
    before = unit_cube.geometry
    assert not getattr(unit_cube, setter)(*args)
    assert unit_cube.geometry is before
    assert unit_cube.size == 8
    assert unit_cube.max_value == 7.0


def test_largest_allowed_axis_is_accepted():
    resolved = geometry.resolve_geometry(
        geometry.OriginAndSpacing((0, 0, 0), (constants.MAX_GRID_SAMPLES, 1, 1), 1.0)
    )
    assert resolved is not None
    assert resolved.size == constants.MAX_GRID_SAMPLES


def test_failed_allocation_leaves_grid_unchanged(unit_cube, monkeypatch, caplog):
    def no_memory(*args, **kwargs):
        raise MemoryError()

    monkeypatch.setattr(np, "zeros", no_memory)
    with caplog.at_level("WARNING"):
        assert not unit_cube.set_limits_from_dimensions((0, 0, 0), (1, 1, 1), (3, 3, 3))
    monkeypatch.undo()
    assert "Cannot allocate" in caplog.text
    assert list(unit_cube.dimensions) == [2, 2, 2]
    assert unit_cube.value(1, 1, 1) == 7.0

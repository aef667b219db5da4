import math
import logging
import operator

import numpy as np

from molcube import geometry as geom
from molcube.constants import CubeType, OUT_OF_RANGE_VALUE
from molcube.interpolation import flat_index, split_index, trilinear
from molcube.locking import ReadWriteLock


class Grid:
    """
    A regularly spaced 3D grid of scalar values.

    The grid stores one value per sample in a flat buffer (x fastest, then
    y, then z) and keeps the minimum and maximum of the stored values up to
    date on every write. Changing the geometry reallocates the buffer and
    discards the values.

    None of the methods lock. Code sharing a grid between threads brackets
    its reads with ``grid.lock().shared()`` and its writes with
    ``grid.lock().exclusive()``.

    Attributes:
        name (str):
            Display name of the grid.
        cube_type (CubeType):
            What the values represent.

    Args:
        name (str, optional):
            Display name of the grid. Defaults to an empty string.
        cube_type (CubeType, optional):
            What the values represent. Defaults to CubeType.NONE.
    """

    def __init__(self, name="", cube_type=CubeType.NONE):
        self.name = name
        self.cube_type = cube_type
        self._geometry = geom.GridGeometry.empty()
        self._data = np.zeros(0, dtype=np.float64)
        self._scan_value_range()
        self._lock = ReadWriteLock()

    def __repr__(self):
        nx, ny, nz = self._geometry.dimensions
        return (
            f"Grid(name={self.name!r}, cube_type={self.cube_type.name}, "
            f"dimensions=({nx}, {ny}, {nz}))"
        )

    @property
    def geometry(self):
        """The resolved GridGeometry of the grid."""
        return self._geometry

    @property
    def min(self):
        """The minimum point in the grid."""
        return self._geometry.min.copy()

    @property
    def max(self):
        """The maximum point in the grid."""
        return self._geometry.max.copy()

    @property
    def spacing(self):
        """The spacing of the grid along x, y and z."""
        return self._geometry.spacing.copy()

    @property
    def dimensions(self):
        """The number of samples along x, y and z."""
        return self._geometry.dimensions.copy()

    @property
    def size(self):
        return self._data.size

    @property
    def voxel_volume(self):
        """Volume of one grid cell."""
        return float(np.prod(self._geometry.spacing))

    @property
    def min_value(self):
        """The minimum value at any point in the grid."""
        return self._min_value

    @property
    def max_value(self):
        """The maximum value at any point in the grid."""
        return self._max_value

    def set_name(self, name):
        self.name = name

    def set_cube_type(self, cube_type):
        self.cube_type = cube_type

    def lock(self):
        """Returns the ReadWriteLock shared by everyone using this grid."""
        return self._lock

    # Geometry

    def apply_geometry(self, request):
        """
        Sets the shape of the grid from a geometry request.

        On success the buffer is reallocated and filled with zeros. On
        failure nothing about the grid changes.

        Args:
            request (geometry.BoundsAndDimensions | geometry.BoundsAndSpacing |
            geometry.OriginAndSpacing | geometry.CopyOf |
            geometry.AroundStructure):
                The wanted geometry.

        Returns:
            bool:
                True if the geometry was applied.
        """
        resolved = geom.resolve_geometry(request)
        if resolved is None:
            return False
        try:
            data = np.zeros(resolved.size, dtype=np.float64)
        except (MemoryError, ValueError) as e:
            logging.warning(
                f"Cannot allocate {resolved.size} samples for grid {self.name!r}: {e}"
            )
            return False
        self._geometry = resolved
        self._data = data
        self._scan_value_range()
        return True

    def set_limits_from_dimensions(self, min, max, dimensions):
        """
        Set the limits of the grid.

        Args:
            min (array-like): The minimum point in the grid.
            max (array-like): The maximum point in the grid.
            dimensions (array-like): The number of (integer) points along x, y and z.
        """
        return self.apply_geometry(geom.BoundsAndDimensions(min, max, dimensions))

    def set_limits_from_spacing(self, min, max, spacing):
        """
        Set the limits of the grid. The maximum point is moved outward if
        needed so that the spacing is exact.

        Args:
            min (array-like): The minimum point in the grid.
            max (array-like): The maximum point in the grid.
            spacing (float | array-like): The interval between points.
        """
        return self.apply_geometry(geom.BoundsAndSpacing(min, max, spacing))

    def set_limits_from_origin(self, min, dimensions, spacing):
        """
        Set the limits of the grid.

        Args:
            min (array-like): The minimum point in the grid.
            dimensions (array-like): The number of (integer) points along x, y and z.
            spacing (float | array-like): The interval between points.
        """
        return self.apply_geometry(geom.OriginAndSpacing(min, dimensions, spacing))

    def set_limits_from_grid(self, other):
        """Copy the limits of an existing grid. Its values are not copied."""
        return self.apply_geometry(geom.CopyOf(other))

    def set_limits_from_molecule(self, structure, spacing, padding):
        """
        Set the limits of the grid to box the atoms of a structure.

        Args:
            structure (Molecule | rdkit.Chem.rdchem.Mol | array-like):
                Structure to take the atomic positions from.
            spacing (float | array-like):
                The spacing of the regular grid.
            padding (float):
                Padding added around the atoms on every side.
        """
        return self.apply_geometry(geom.AroundStructure(structure, spacing, padding))

    # Index and position mapping

    def flat_index(self, i, j, k):
        return flat_index(self._geometry.dimensions, i, j, k)

    def index_vector(self, pos):
        """
        Args:
            pos (array-like): Position to get the closest index for.

        Returns:
            np.ndarray:
                The (i, j, k) index of the sample closest to the position,
                clamped into the grid.
        """
        g = self._geometry
        pos = np.asarray(pos, dtype=np.float64)
        with np.errstate(divide="ignore", invalid="ignore"):
            steps = np.where(g.spacing > 0, (pos - g.min) / g.spacing, 0.0)
        steps = np.nan_to_num(steps, nan=0.0)
        upper = np.maximum(g.dimensions - 1, 0)
        return np.clip(np.floor(steps + 0.5), 0, upper).astype(int)

    def closest_index(self, pos):
        """Returns the flat index of the sample closest to the position."""
        i, j, k = self.index_vector(pos)
        return int(self.flat_index(i, j, k))

    def position(self, index):
        """
        Args:
            index (int): Flat index to be translated to a position.

        Returns:
            np.ndarray:
                Position of the sample, or a NaN vector if the index is
                outside the grid.
        """
        index = operator.index(index)
        if not 0 <= index < self._data.size:
            return np.full(3, np.nan)
        g = self._geometry
        ijk = np.array(split_index(g.dimensions, index), dtype=np.float64)
        return g.min + g.spacing * ijk

    def positions(self):
        """Returns the positions of all samples as an (n, 3) array in buffer order."""
        g = self._geometry
        nx, ny, nz = g.dimensions
        axes = [g.min[a] + g.spacing[a] * np.arange(n) for a, n in enumerate((nx, ny, nz))]
        # k slowest, i fastest
        z, y, x = np.meshgrid(axes[2], axes[1], axes[0], indexing="ij")
        return np.column_stack((x.ravel(), y.ravel(), z.ravel()))

    # Exact value access

    def _in_range(self, i, j, k):
        nx, ny, nz = self._geometry.dimensions
        return 0 <= i < nx and 0 <= j < ny and 0 <= k < nz

    def value(self, i, j=None, k=None):
        """
        This function is very quick as it just returns the value at the point.

        Accepts either three integers or a single (i, j, k) triple.

        Returns:
            float:
                Grid value at the integer point, or NaN if the point lies
                outside the grid.
        """
        if j is None and k is None:
            i, j, k = i
        i, j, k = operator.index(i), operator.index(j), operator.index(k)
        if not self._in_range(i, j, k):
            return OUT_OF_RANGE_VALUE
        return float(self._data[self.flat_index(i, j, k)])

    def set_value(self, i, j, k, value):
        """
        Sets the value at the specified point in the grid.

        Returns:
            bool:
                False, with the grid untouched, if the point is outside the grid
                or the value is NaN or infinite.
        """
        i, j, k = operator.index(i), operator.index(j), operator.index(k)
        if not self._in_range(i, j, k):
            return False
        return self.set_value_by_index(self.flat_index(i, j, k), value)

    def set_value_by_index(self, index, value):
        """Sets the value at the specified flat index in the grid."""
        index = operator.index(index)
        if not 0 <= index < self._data.size:
            return False
        value = float(value)
        if not math.isfinite(value):
            logging.warning(
                f"Ignoring non-finite value {value} for grid {self.name!r}"
            )
            return False
        old = float(self._data[index])
        self._data[index] = value
        if old == self._max_value:
            self._max_count -= 1
        if old == self._min_value:
            self._min_count -= 1
        if value > self._max_value:
            self._max_value, self._max_count = value, 1
        elif value == self._max_value:
            self._max_count += 1
        if value < self._min_value:
            self._min_value, self._min_count = value, 1
        elif value == self._min_value:
            self._min_count += 1
        if self._max_count <= 0 or self._min_count <= 0:
            # The last sample holding an extremum was overwritten
            self._scan_value_range()
        return True

    def _scan_value_range(self):
        if self._data.size == 0:
            self._min_value = self._max_value = 0.0
            self._min_count = self._max_count = 0
            return
        self._min_value = float(self._data.min())
        self._max_value = float(self._data.max())
        self._min_count = int(np.count_nonzero(self._data == self._min_value))
        self._max_count = int(np.count_nonzero(self._data == self._max_value))

    def data(self):
        """
        Returns:
            np.ndarray:
                Read-only view of all the values in a one-dimensional array.
                Use set_data() or add_data() to change values in bulk.
        """
        view = self._data.view()
        view.flags.writeable = False
        return view

    def values_3d(self):
        """Read-only (nx, ny, nz) view of the values, indexed as [i, j, k]."""
        nx, ny, nz = self._geometry.dimensions
        return self.data().reshape((nx, ny, nz), order="F")

    def _as_buffer(self, values, caller):
        try:
            values = np.asarray(values, dtype=np.float64)
        except (TypeError, ValueError) as e:
            logging.warning(
                f"{caller}: values for grid {self.name!r} are not numeric: {e}"
            )
            return None
        dims = tuple(int(n) for n in self._geometry.dimensions)
        if values.ndim == 3 and values.shape == dims:
            values = values.ravel(order="F")
        if values.ndim != 1 or values.size != self._data.size:
            logging.warning(
                f"{caller}: expected {self._data.size} values for grid "
                f"{self.name!r} with dimensions {dims}, got shape {values.shape}"
            )
            return None
        if not np.all(np.isfinite(values)):
            logging.warning(f"{caller}: non-finite values for grid {self.name!r}")
            return None
        return values

    def set_data(self, values):
        """
        Set the values in the grid to those passed in.

        Args:
            values (array-like):
                Flat sequence of nx * ny * nz values (x fastest), or an
                (nx, ny, nz) array indexed as [i, j, k].

        Returns:
            bool:
                False, with the grid untouched, if the values are not numeric,
                contain NaN or infinity, or their number does not match the grid.
        """
        values = self._as_buffer(values, "set_data")
        if values is None:
            return False
        self._data = values.copy()
        self._scan_value_range()
        return True

    def add_data(self, values):
        """Adds the values passed in to those in the grid, element by element."""
        values = self._as_buffer(values, "add_data")
        if values is None:
            return False
        self._data += values
        self._scan_value_range()
        return True

    # Interpolated value access

    def interpolated_value(self, pos):
        """
        This function uses trilinear interpolation to find the value at points
        between those specified in the grid. Points outside the grid take the
        value of the nearest boundary.

        Warning:
            This function is quite computationally expensive and should be
            avoided where possible. Walk the native indices with value() for
            bulk traversal.

        Returns:
            float:
                Grid value at the specified position, NaN for an empty grid.
        """
        g = self._geometry
        return float(trilinear(self._data, g.dimensions, g.min, g.spacing, pos))

    def interpolated_value_f(self, pos):
        """Single precision variant of interpolated_value()."""
        g = self._geometry
        return trilinear(self._data, g.dimensions, g.min, g.spacing, pos, dtype=np.float32)

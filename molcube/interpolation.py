"""
Index arithmetic and trilinear interpolation over a flat grid buffer.

Values are stored with x varying fastest, then y, then z, so the sample at
integer position (i, j, k) lives at ``i + j * nx + k * nx * ny``.
"""

import math

import numpy as np


def flat_index(dimensions, i, j, k):
    """Maps an (i, j, k) triple to its position in the flat buffer."""
    nx, ny = int(dimensions[0]), int(dimensions[1])
    return i + j * nx + k * nx * ny


def split_index(dimensions, index):
    """Inverse of flat_index: returns the (i, j, k) triple of a flat index."""
    nx, ny = int(dimensions[0]), int(dimensions[1])
    return index % nx, (index // nx) % ny, index // (nx * ny)


def _cell(coord, origin, step, n):
    """
    Locates the lower sample of the cell enclosing ``coord`` on one axis.

    Returns the lower and upper sample indices and the fractional offset in
    [0, 1] between them. Coordinates on or beyond the last sample use the
    last cell; axes with fewer than two samples collapse onto sample 0.
    """
    if n < 2 or step <= 0:
        return 0, 0, 0.0
    f = (coord - origin) / step
    lower = min(max(int(math.floor(f)), 0), n - 2)
    t = min(max(f - lower, 0.0), 1.0)
    return lower, lower + 1, t


def trilinear(data, dimensions, origin, spacing, point, dtype=np.float64):
    """
    Performs trilinear interpolation on a flat grid buffer at a real-space point.

    Args:
        data (np.ndarray):
            Flat buffer of grid values, x fastest.
        dimensions (np.ndarray):
            Number of samples (nx, ny, nz).
        origin (np.ndarray):
            Position of sample (0, 0, 0).
        spacing (np.ndarray):
            Distance between samples along each axis.
        point (array-like):
            The 3D point to sample.
        dtype (type, optional):
            Floating type used to blend the corner values. Defaults to
            np.float64.

    Returns:
        float or np.floating:
            The interpolated value, NaN for an empty grid or a non-finite point.
    """
    nx, ny, nz = (int(n) for n in dimensions)
    point = np.asarray(point, dtype=np.float64)
    if nx * ny * nz == 0 or not np.all(np.isfinite(point)):
        return dtype(math.nan)

    x0, x1, tx = _cell(point[0], origin[0], spacing[0], nx)
    y0, y1, ty = _cell(point[1], origin[1], spacing[1], ny)
    z0, z1, tz = _cell(point[2], origin[2], spacing[2], nz)

    nxy = nx * ny
    corners = np.array(
        [
            data[x0 + y0 * nx + z0 * nxy],
            data[x1 + y0 * nx + z0 * nxy],
            data[x0 + y1 * nx + z0 * nxy],
            data[x1 + y1 * nx + z0 * nxy],
            data[x0 + y0 * nx + z1 * nxy],
            data[x1 + y0 * nx + z1 * nxy],
            data[x0 + y1 * nx + z1 * nxy],
            data[x1 + y1 * nx + z1 * nxy],
        ],
        dtype=dtype,
    )
    v000, v100, v010, v110, v001, v101, v011, v111 = corners
    tx, ty, tz = dtype(tx), dtype(ty), dtype(tz)
    one = dtype(1.0)

    # Along x on the four edges of the cell
    v_y0_z0 = v000 * (one - tx) + v100 * tx
    v_y1_z0 = v010 * (one - tx) + v110 * tx
    v_y0_z1 = v001 * (one - tx) + v101 * tx
    v_y1_z1 = v011 * (one - tx) + v111 * tx

    # Along y
    v_z0 = v_y0_z0 * (one - ty) + v_y1_z0 * ty
    v_z1 = v_y0_z1 * (one - ty) + v_y1_z1 * ty

    return dtype(v_z0 * (one - tz) + v_z1 * tz)

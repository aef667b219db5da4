import logging

from dataclasses import dataclass
from typing import Any

import numpy as np

from molcube.constants import MAX_GRID_SAMPLES
from molcube.structure import get_atomic_positions


# Tolerance applied before rounding (max - min) / spacing up, so that
# extents which are an exact multiple of the spacing do not gain a sample
# through floating-point noise.
_CEIL_TOLERANCE = 1e-9


@dataclass(frozen=True, eq=False)
class GridGeometry:
    """Resolved shape of a regular grid.

    Attributes:
        min (np.ndarray):
            Lower corner of the grid, shape (3,).
        max (np.ndarray):
            Upper corner of the grid, shape (3,).
        spacing (np.ndarray):
            Distance between adjacent samples along x, y and z.
        dimensions (np.ndarray):
            Number of samples along x, y and z.
    """

    min: np.ndarray
    max: np.ndarray
    spacing: np.ndarray
    dimensions: np.ndarray

    @classmethod
    def empty(cls):
        return cls(
            min=np.zeros(3),
            max=np.zeros(3),
            spacing=np.zeros(3),
            dimensions=np.zeros(3, dtype=int),
        )

    @property
    def size(self):
        """Number of samples in the grid."""
        nx, ny, nz = (int(n) for n in self.dimensions)
        return nx * ny * nz


@dataclass(frozen=True, eq=False)
class BoundsAndDimensions:
    min: Any
    max: Any
    dimensions: Any


@dataclass(frozen=True, eq=False)
class BoundsAndSpacing:
    min: Any
    max: Any
    spacing: Any


@dataclass(frozen=True, eq=False)
class OriginAndSpacing:
    min: Any
    dimensions: Any
    spacing: Any


@dataclass(frozen=True, eq=False)
class CopyOf:
    """Take the geometry of another grid (or of a GridGeometry)."""

    source: Any


@dataclass(frozen=True, eq=False)
class AroundStructure:
    """Box the atoms of a structure, padded on every side."""

    structure: Any
    spacing: Any
    padding: float


def _as_vector(value):
    """Returns a float vector of length 3, broadcasting scalars, or None."""
    try:
        vector = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError):
        return None
    if vector.ndim == 0:
        vector = np.full(3, float(vector))
    if vector.shape != (3,):
        return None
    return vector.copy()


def _as_dimensions(value):
    """Returns an integer vector of length 3, or None if not integral or too large."""
    vector = _as_vector(value)
    if vector is None or not np.all(np.isfinite(vector)):
        return None
    if not np.all(vector == np.round(vector)):
        return None
    if np.any(np.abs(vector) > MAX_GRID_SAMPLES):
        return None
    return vector.astype(int)


def _reject(reason, *values):
    logging.warning(f"Rejected grid geometry: {reason} {values}")


def _check_bounds(lower, upper):
    if lower is None or upper is None:
        _reject("bounds must be 3D points", lower, upper)
        return False
    if not (np.all(np.isfinite(lower)) and np.all(np.isfinite(upper))):
        _reject("bounds must be finite", lower, upper)
        return False
    if np.any(lower > upper):
        _reject("minimum corner exceeds maximum corner", lower, upper)
        return False
    return True


def _check_dimensions(dimensions, raw):
    if dimensions is None:
        _reject("dimensions must be three integers", raw)
        return False
    if np.any(dimensions < 0):
        _reject("dimensions must not be negative", dimensions)
        return False
    return _check_size(dimensions)


def _check_size(dimensions):
    nx, ny, nz = (int(n) for n in dimensions)
    if nx * ny * nz > MAX_GRID_SAMPLES:
        _reject(f"more than {MAX_GRID_SAMPLES} samples", nx, ny, nz)
        return False
    return True


def _check_spacing(spacing, raw):
    if spacing is None:
        _reject("spacing must be a scalar or a 3D vector", raw)
        return False
    if not np.all(np.isfinite(spacing)) or np.any(spacing <= 0):
        _reject("spacing must be positive", spacing)
        return False
    return True


def from_bounds_and_dimensions(lower, upper, dimensions):
    lower, upper = _as_vector(lower), _as_vector(upper)
    points = _as_dimensions(dimensions)
    if not _check_dimensions(points, dimensions) or not _check_bounds(lower, upper):
        return None
    spacing = (upper - lower) / np.maximum(points - 1, 1)
    return GridGeometry(min=lower, max=upper, spacing=spacing, dimensions=points)


def from_bounds_and_spacing(lower, upper, spacing):
    lower, upper = _as_vector(lower), _as_vector(upper)
    step = _as_vector(spacing)
    if not _check_spacing(step, spacing) or not _check_bounds(lower, upper):
        return None
    with np.errstate(over="ignore"):
        steps = np.ceil((upper - lower) / step - _CEIL_TOLERANCE)
    if not np.all(np.isfinite(steps)) or np.any(steps >= MAX_GRID_SAMPLES):
        _reject(f"more than {MAX_GRID_SAMPLES} samples along an axis", steps)
        return None
    points = np.maximum(steps.astype(int) + 1, 1)
    if not _check_size(points):
        return None
    # Push the upper corner outward so the spacing stays exact
    upper = lower + step * (points - 1)
    return GridGeometry(min=lower, max=upper, spacing=step, dimensions=points)


def from_origin_and_spacing(lower, dimensions, spacing):
    lower = _as_vector(lower)
    points = _as_dimensions(dimensions)
    step = _as_vector(spacing)
    if not _check_dimensions(points, dimensions) or not _check_spacing(step, spacing):
        return None
    if lower is None or not np.all(np.isfinite(lower)):
        _reject("minimum corner must be a finite 3D point", lower)
        return None
    upper = lower + step * np.maximum(points - 1, 0)
    return GridGeometry(min=lower, max=upper, spacing=step, dimensions=points)


def from_geometry(source):
    geometry = getattr(source, "geometry", source)
    if not isinstance(geometry, GridGeometry):
        _reject("cannot copy geometry from", type(source).__name__)
        return None
    return GridGeometry(
        min=geometry.min.copy(),
        max=geometry.max.copy(),
        spacing=geometry.spacing.copy(),
        dimensions=geometry.dimensions.copy(),
    )


def from_structure(structure, spacing, padding):
    try:
        positions = get_atomic_positions(structure)
    except (TypeError, ValueError) as e:
        _reject(str(e), type(structure).__name__)
        return None
    if len(positions) == 0:
        _reject("structure has no atoms", type(structure).__name__)
        return None
    lower = positions.min(axis=0) - padding
    upper = positions.max(axis=0) + padding
    return from_bounds_and_spacing(lower, upper, spacing)


def resolve_geometry(request):
    """Resolves a geometry request into a GridGeometry.

    Args:
        request (BoundsAndDimensions | BoundsAndSpacing | OriginAndSpacing |
        CopyOf | AroundStructure):
            Description of the wanted grid.

    Returns:
        GridGeometry or None:
            The resolved geometry, or None if the request is invalid. The
            reason is logged as a warning.
    """
    if isinstance(request, BoundsAndDimensions):
        return from_bounds_and_dimensions(request.min, request.max, request.dimensions)
    if isinstance(request, BoundsAndSpacing):
        return from_bounds_and_spacing(request.min, request.max, request.spacing)
    if isinstance(request, OriginAndSpacing):
        return from_origin_and_spacing(request.min, request.dimensions, request.spacing)
    if isinstance(request, CopyOf):
        return from_geometry(request.source)
    if isinstance(request, AroundStructure):
        return from_structure(request.structure, request.spacing, request.padding)
    _reject("unknown geometry request", type(request).__name__)
    return None

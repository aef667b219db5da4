import time
import logging

import numpy as np

from scipy.spatial import cKDTree

from molcube import constants
from molcube.constants import CubeType
from molcube.grid import Grid


def rho(atoms, gcs):
    """
    Calculates the Gaussian density function using the atomic coordinates and radii
    and the given grid points. For more details about the function used, please refer
    to Eq. (1) of this paper:
    https://doi.org/10.1002/(SICI)1096-987X(19961115)17:14%3C1653::AID-JCC7%3E3.0.CO;2-K.

    Args:
        atoms (np.ndarray):
            Array of atomic coordinates and radii, shape (n_atoms, 4).
        gcs (np.ndarray):
            Array of grid coordinates, shape (n_points, 3).

    Returns:
        np.ndarray:
            The values of the Gaussian density function, shape (n_points, n_atoms).
    """
    # Calculate the alpha values using the atomic radii
    alphas = -constants.KAPPA / (atoms[:, 3] ** 2)
    # Calculate the differences between the grid points and the atom coordinates
    diffs = gcs[:, np.newaxis, :] - atoms[np.newaxis, :, :3]
    # Calculate the r^2 values
    r2s = np.sum(diffs * diffs, axis=-1)
    return constants.CONSTANT_P * np.exp(alphas[np.newaxis, :] * r2s)


def calc_molecular_density(coords_radii, gcs, cutoff=None, chunk_size=4096):
    """
    Evaluates the Gaussian molecular density 1 - prod(1 - rho_i) at each point.

    Args:
        coords_radii (np.ndarray):
            Atomic coordinates and radii, shape (n_atoms, 4).
        gcs (np.ndarray):
            Points to evaluate the density at, shape (n_points, 3).
        cutoff (float, optional):
            If given, only atoms closer than this distance to a point
            contribute to it. Defaults to None (all atoms contribute).
        chunk_size (int, optional):
            Number of points evaluated at once when no cutoff is used.

    Returns:
        np.ndarray:
            The density at every point.
    """
    complement = np.ones(len(gcs), dtype=np.float64)
    if len(gcs) == 0 or len(coords_radii) == 0:
        return 1 - complement

    if cutoff is None:
        for start in range(0, len(gcs), chunk_size):
            block = gcs[start : start + chunk_size]
            complement[start : start + chunk_size] = np.prod(
                1 - rho(coords_radii, block), axis=1
            )
        return 1 - complement

    tree = cKDTree(gcs)
    for atom in coords_radii:
        indices = tree.query_ball_point(atom[:3], cutoff)
        if not indices:
            continue
        indices = np.asarray(indices, dtype=int)
        complement[indices] *= 1 - rho(atom[np.newaxis, :], gcs[indices])[:, 0]
    return 1 - complement


def fill_gaussian_density(grid, molecule, use_carbon_radii=True, cutoff=None):
    """
    Fills a grid with the Gaussian density of a molecule and tags it as a
    van der Waals grid.

    Args:
        grid (Grid):
            The grid to fill. Its geometry must already be set.
        molecule (Molecule):
            The molecule object.
        use_carbon_radii (bool, optional):
            Whether to use carbon radii for the atoms or not. Defaults to True.
        cutoff (float, optional):
            Neighbor cutoff passed to calc_molecular_density.

    Returns:
        bool:
            The result of Grid.set_data.
    """
    st = time.time()
    coords_radii = molecule.get_atomic_coordinates_and_radii(use_carbon_radii)
    values = calc_molecular_density(coords_radii, grid.positions(), cutoff=cutoff)
    filled = grid.set_data(values)
    if filled:
        grid.set_cube_type(CubeType.VDW)
    et = time.time()
    logging.info(f"Filling {grid.size} grid points took: {et - st:.3f} s")
    return filled


def calc_grid_volume(grid):
    """
    Integrates the grid values by quadrature over the grid cells.

    Args:
        grid (Grid):
            The grid object.

    Returns:
        float:
            Sum of the values times the volume of one cell.
    """
    return float(np.sum(grid.data()) * grid.voxel_volume)


def create_density_grid(
    molecule,
    spacing=constants.DEFAULT_SPACING,
    padding=constants.DEFAULT_PADDING,
    use_carbon_radii=True,
    cutoff=None,
    name=None,
):
    """
    Creates a grid around a molecule and fills it with the molecule's
    Gaussian density.

    Args:
        molecule (Molecule):
            The molecule object.
        spacing (float, optional):
            The grid spacing. Defaults to constants.DEFAULT_SPACING.
        padding (float, optional):
            The margin added around the atoms on every side. Defaults to
            constants.DEFAULT_PADDING.
        use_carbon_radii (bool, optional):
            Whether to use carbon radii for the atoms or not. Defaults to True.
        cutoff (float, optional):
            Neighbor cutoff passed to calc_molecular_density.
        name (str, optional):
            Name of the grid. Defaults to the molecule name.

    Returns:
        Grid or None:
            The filled grid, or None if no grid could be placed around the
            molecule.
    """
    grid = Grid(name=molecule.mol_name() if name is None else name)
    if not grid.set_limits_from_molecule(molecule, spacing, padding):
        return None
    fill_gaussian_density(grid, molecule, use_carbon_radii, cutoff)
    return grid

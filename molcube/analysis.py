import numpy as np
import pandas as pd

from molcube.density import calc_grid_volume


def grid_to_dataframe(grid):
    """
    Lays out every grid sample as a row.

    Args:
        grid (Grid):
            The grid object.

    Returns:
        pd.DataFrame:
            Columns x, y, z and value, rows in buffer order (x fastest).
    """
    positions = grid.positions()
    return pd.DataFrame(
        {
            "x": positions[:, 0],
            "y": positions[:, 1],
            "z": positions[:, 2],
            "value": np.array(grid.data()),
        }
    )


def summarize_grids(grids):
    """
    Summarizes a set of grids, one row per grid.

    Args:
        grids (Iterable[Grid]):
            The grids to summarize.

    Returns:
        pd.DataFrame:
            Columns Name, Type, Nx, Ny, Nz, Min, Max, Mean and Volume.
    """
    rows = []
    for grid in grids:
        nx, ny, nz = grid.dimensions
        values = grid.data()
        rows.append(
            {
                "Name": grid.name,
                "Type": grid.cube_type.name,
                "Nx": int(nx),
                "Ny": int(ny),
                "Nz": int(nz),
                "Min": grid.min_value,
                "Max": grid.max_value,
                "Mean": float(values.mean()) if values.size else np.nan,
                "Volume": calc_grid_volume(grid),
            }
        )
    columns = ["Name", "Type", "Nx", "Ny", "Nz", "Min", "Max", "Mean", "Volume"]
    return pd.DataFrame(rows, columns=columns)

import math
from enum import Enum

KAPPA = 2.41798793102
PI = 3.14159265358
CONSTANT_P = (4 / 3) * PI * (KAPPA / PI) ** 1.5

# Carbon van der Waals radius (Angstrom), used when all atoms share one radius
CARBON_RADIUS = 1.7

DEFAULT_SPACING = 0.4
DEFAULT_PADDING = 0.4

# Returned by exact reads outside the grid
OUT_OF_RANGE_VALUE = math.nan

# Largest number of samples a grid geometry may hold (8 GiB of float64)
MAX_GRID_SAMPLES = 2**30


class CubeType(Enum):
    """What the values stored in a grid represent."""

    VDW = 0
    ESP = 1
    ELECTRON_DENSITY = 2
    MO = 3
    FROM_FILE = 4
    NONE = 5

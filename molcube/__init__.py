from molcube.constants import CubeType
from molcube.grid import Grid
from molcube.locking import ReadWriteLock

__version__ = "0.0.1"

__all__ = ["CubeType", "Grid", "ReadWriteLock", "__version__"]

import numpy as np
import pytest

from rdkit import Chem
from rdkit.Chem import AllChem

from molcube.grid import Grid
from molcube.structure import Molecule


@pytest.fixture
def unit_cube():
    """2x2x2 grid spanning the unit cube, values equal to their flat index."""
    grid = Grid(name="unit")
    assert grid.set_limits_from_dimensions((0, 0, 0), (1, 1, 1), (2, 2, 2))
    assert grid.set_data(np.arange(8, dtype=float))
    return grid


@pytest.fixture
def skewed_grid():
    """Grid with a different spacing and size along each axis."""
    grid = Grid(name="skewed")
    assert grid.set_limits_from_origin((-1.0, 0.5, 2.0), (3, 4, 5), (0.5, 0.25, 1.0))
    return grid


@pytest.fixture
def ethanol_rdmol():
    mol = Chem.AddHs(Chem.MolFromSmiles("CCO"))
    assert AllChem.EmbedMolecule(mol, randomSeed=42) == 0
    mol.SetProp("_Name", "ethanol")
    return mol


@pytest.fixture
def ethanol(ethanol_rdmol):
    return Molecule(ethanol_rdmol)

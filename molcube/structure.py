import numpy as np

from rdkit import Chem

from molcube.constants import CARBON_RADIUS


class Molecule:
    """A class representing a molecule whose atoms a grid can be sized around.

    Attributes:
        mol (rdkit.Chem.rdchem.Mol):
            An RDKit Mol object representing the molecule. It must carry at
            least one conformer.
        name (str):
            The name of the molecule, as specified by the '_Name' property in
            the mol object, or an empty string.

    Args:
        rdkit_mol (rdkit.Chem.rdchem.Mol):
            An RDKit Mol object representing the molecule.
    """

    def __init__(self, rdkit_mol):
        self.mol = rdkit_mol
        self.name = self.mol.GetProp("_Name") if self.mol.HasProp("_Name") else ""

    def get_atomic_coordinates_and_radii(self, use_carbon_radii=False):
        """Return atomic coordinates and radii for all atoms in the molecule.

        Args:
            use_carbon_radii (bool, optional):
                Whether to use the van der Waals radius of carbon for all atoms.
                Defaults to False.

        Returns:
            np.ndarray:
                A numpy array with shape (n_atoms, 4) containing the atomic
                coordinates and radii.
        """
        conf = self.mol.GetConformer()
        periodic_table = Chem.GetPeriodicTable()
        coordinates_and_radii = []
        for i, atom in enumerate(self.mol.GetAtoms()):
            pos = conf.GetAtomPosition(i)
            if use_carbon_radii:
                radius = CARBON_RADIUS
            else:
                radius = periodic_table.GetRvdw(atom.GetAtomicNum())
            coordinates_and_radii.append((pos.x, pos.y, pos.z, radius))
        return np.array(coordinates_and_radii, dtype=np.float64).reshape(-1, 4)

    def get_atomic_positions(self):
        """Return the atomic coordinates as an (n_atoms, 3) array."""
        if self.mol.GetNumConformers() == 0:
            return np.empty((0, 3))
        return np.array(self.mol.GetConformer().GetPositions(), dtype=np.float64)

    def get_bounding_box(self, padding=0.0):
        """
        Calculates the bounding box of the atomic positions.

        Args:
            padding (float, optional):
                Distance added on every side of the box. Defaults to 0.

        Returns:
            np.ndarray:
                A 1D numpy array representing the lower bounds of the bounding box.
            np.ndarray:
                A 1D numpy array representing the upper bounds of the bounding box.
        """
        xyz = self.get_atomic_positions()
        if len(xyz) == 0:
            raise ValueError(f"Molecule {self.mol_name()!r} has no atoms")
        lb = xyz.min(axis=0) - padding
        ub = xyz.max(axis=0) + padding
        return lb, ub

    def mol_name(self):
        """Get the name of the molecule."""
        return self.name


def get_atomic_positions(structure):
    """Return the atomic positions of a structure as an (n_atoms, 3) array.

    Args:
        structure (Molecule | rdkit.Chem.rdchem.Mol | array-like):
            A Molecule, an RDKit Mol with a conformer, or a sequence of 3D
            points.

    Raises:
        ValueError:
            If an array-like input cannot be read as 3D points.

    Returns:
        np.ndarray:
            The atomic coordinates.
    """
    if isinstance(structure, Molecule):
        return structure.get_atomic_positions()
    if isinstance(structure, Chem.Mol):
        return Molecule(structure).get_atomic_positions()
    positions = np.asarray(structure, dtype=np.float64)
    if positions.size == 0:
        return np.empty((0, 3))
    if positions.ndim != 2 or positions.shape[1] != 3:
        raise ValueError(f"Expected (n_atoms, 3) positions, got shape {positions.shape}")
    return positions

import os
import logging

from configparser import ConfigParser

from rdkit import Chem

from molcube import constants
from molcube.structure import Molecule


def read_molecule(mol_file, remove_hs=False):
    """
    Reads the first molecule of an SDF, MOL or PDB file.

    Args:
        mol_file (str):
            Path of the molecule file. The format is inferred from the file
            extension.
        remove_hs (bool, optional):
            Whether to remove hydrogens. Defaults to False.

    Raises:
        ValueError:
            If the file does not exist, has an unsupported extension, or holds
            no readable molecule with 3D coordinates.

    Returns:
        Molecule:
            The molecule object.
    """
    if not os.path.isfile(mol_file):
        raise ValueError(f"Molecule file {mol_file} does not exist")

    ext = os.path.splitext(mol_file)[1].lower()
    if ext == ".sdf":
        suppl = Chem.SDMolSupplier(mol_file, removeHs=remove_hs)
        mol = next((m for m in suppl if m is not None), None)
    elif ext == ".mol":
        mol = Chem.MolFromMolFile(mol_file, removeHs=remove_hs)
    elif ext == ".pdb":
        mol = Chem.MolFromPDBFile(mol_file, removeHs=remove_hs)
    else:
        raise ValueError("Invalid file format")

    if mol is None or mol.GetNumConformers() == 0:
        raise ValueError(f"No molecule with coordinates found in {mol_file}")
    if not mol.HasProp("_Name") or not mol.GetProp("_Name"):
        mol.SetProp("_Name", os.path.splitext(os.path.basename(mol_file))[0])
    return Molecule(mol)


def read_grid_config(config_file):
    """
    Reads grid settings from the [Grid] section of an INI file.

    Recognised keys are spacing, padding, cutoff (floats) and
    use_carbon_radii (boolean). Other keys are ignored.

    Args:
        config_file (str):
            Path of the INI file.

    Raises:
        ValueError:
            If the file cannot be read or a value has the wrong type.

    Returns:
        dict:
            Settings found in the file, starting from the package defaults.
    """
    cfg = ConfigParser()
    if not cfg.read(config_file):
        raise ValueError(f"Cannot read config file {config_file}")

    settings = {
        "spacing": constants.DEFAULT_SPACING,
        "padding": constants.DEFAULT_PADDING,
        "use_carbon_radii": True,
        "cutoff": None,
    }
    if not cfg.has_section("Grid"):
        logging.warning(f"No [Grid] section in {config_file}, using defaults")
        return settings

    section = cfg["Grid"]
    for key in ("spacing", "padding", "cutoff"):
        if key in section:
            settings[key] = section.getfloat(key)
    if "use_carbon_radii" in section:
        settings["use_carbon_radii"] = section.getboolean("use_carbon_radii")
    return settings

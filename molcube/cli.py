import sys
import logging
import argparse

from molcube import constants
from molcube.analysis import summarize_grids
from molcube.density import create_density_grid
from molcube.utilities import read_grid_config, read_molecule


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]

    parser = argparse.ArgumentParser(
        description="Build a Gaussian density grid around a molecule and sample it."
    )
    parser.add_argument("mol_file", help="Molecule file (sdf, mol or pdb).")
    parser.add_argument(
        "--config", default=None, help="INI file with a [Grid] section of defaults."
    )
    parser.add_argument(
        "--spacing", type=float, default=None, help="The grid spacing in Angstrom."
    )
    parser.add_argument(
        "--padding",
        type=float,
        default=None,
        help="The margin to add around the atoms on every side.",
    )
    parser.add_argument(
        "--cutoff",
        type=float,
        default=None,
        help="Only atoms within this distance of a grid point contribute to it.",
    )
    parser.add_argument(
        "--no_carbon_radii",
        action="store_false",
        dest="use_carbon_radii",
        default=None,
        help="Use element van der Waals radii instead of the carbon radius.",
    )
    parser.add_argument("--remove_hs", action="store_true", help="Remove hydrogens.")
    parser.add_argument(
        "--point",
        nargs=3,
        type=float,
        action="append",
        default=[],
        metavar=("X", "Y", "Z"),
        help="Point at which to report the interpolated value. Can be repeated.",
    )
    parser.add_argument(
        "--summary_file",
        type=str,
        default=None,
        help="Write the grid summary to this tab-separated file.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log progress.")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        settings = (
            read_grid_config(args.config)
            if args.config
            else {
                "spacing": constants.DEFAULT_SPACING,
                "padding": constants.DEFAULT_PADDING,
                "use_carbon_radii": True,
                "cutoff": None,
            }
        )
        for key in ("spacing", "padding", "cutoff", "use_carbon_radii"):
            if getattr(args, key) is not None:
                settings[key] = getattr(args, key)
        mol = read_molecule(args.mol_file, remove_hs=args.remove_hs)
    except ValueError as e:
        logging.error(e)
        return 1

    grid = create_density_grid(
        mol,
        spacing=settings["spacing"],
        padding=settings["padding"],
        use_carbon_radii=settings["use_carbon_radii"],
        cutoff=settings["cutoff"],
    )
    if grid is None:
        logging.error(f"Could not place a grid around {mol.mol_name()}")
        return 1

    summary = summarize_grids([grid])
    print(summary.to_string(index=False))
    for point in args.point:
        x, y, z = point
        print(f"{x:.4f}\t{y:.4f}\t{z:.4f}\t{grid.interpolated_value(point):.6f}")

    if args.summary_file:
        summary.to_csv(args.summary_file, sep="\t", index=False)
    return 0


if __name__ == "__main__":
    sys.exit(main())

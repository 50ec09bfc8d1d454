"""
Main entry point for the rear suspension analyzer.

This module handles:
- Command line parsing
- Loading a design or a named setup (default bike otherwise)
- Running the analysis and printing the setup/analysis summary
- Optional CSV export of every stroke sample
"""

import argparse
import csv
import logging
import sys

from .analysis import run_kinematic_analysis, collect_analysis_info_text, collect_setup_info_text
from .config import ConfigManager
from .model import default_geometry

logger = logging.getLogger(__name__)

CSV_COLUMNS = (
    "shock_stroke", "travel_mm", "shock_length", "leverage_ratio", "wheel_rate",
    "anti_squat", "anti_rise", "trail", "pitch_angle_degrees", "fork_compression",
    "chain_growth", "total_chain_growth", "pedal_kickback", "crank_angle",
)


def build_parser():
    ap = argparse.ArgumentParser(
        prog="mtb-kinematics",
        description="Rear suspension kinematics through the shock stroke.",
    )
    src = ap.add_mutually_exclusive_group()
    src.add_argument("-d", "--design", type=str, help="design JSON file to analyse")
    src.add_argument("-s", "--setups", type=str, help="INI file of named setups")
    ap.add_argument("--setup", type=str, default="Default",
                    help="setup section to use from --setups (default: %(default)s)")
    ap.add_argument("--save-design", type=str, help="write the analysed geometry as design JSON")
    ap.add_argument("--name", type=str, default="Custom Build", help="name stored with --save-design")
    ap.add_argument("--csv", type=str, help="write one row per stroke sample")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return ap


def write_csv(path, results):
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS + ("rear_axle_x", "rear_axle_y", "front_axle_x", "front_axle_y"))
        for state, rear, front in zip(results.states, results.axle_path, results.front_axle_path):
            row = [f"{getattr(state, c):.4f}" for c in CSV_COLUMNS]
            row += [f"{v:.4f}" for v in (rear[0], rear[1], front[0], front[1])]
            writer.writerow(row)


def load_geometry(args, config_manager):
    """Resolve (name, geometry) from the command line."""
    if args.design:
        return config_manager.load_design(args.design)

    if args.setups:
        setups = config_manager.load_setups(args.setups)
        name = args.setup if args.setup in setups else None
        if name is None:
            raise ValueError(f"Setup '{args.setup}' not found; available: "
                             f"{', '.join(config_manager.get_setup_names())}")
        return name, setups[name]

    return args.name, default_geometry()


def main(argv=None):
    """Main entry point for the application."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config_manager = ConfigManager()
    try:
        name, geometry = load_geometry(args, config_manager)
    except (OSError, RuntimeError, ValueError) as e:
        logger.error("Failed to load geometry: %s", e)
        return 1

    results = run_kinematic_analysis(geometry)

    print(name)
    print(collect_setup_info_text(geometry))
    print()
    print(collect_analysis_info_text(results))

    try:
        if args.csv:
            write_csv(args.csv, results)
            logger.info("Wrote %d samples to %s", len(results), args.csv)
        if args.save_design:
            config_manager.save_design(args.save_design, name, geometry)
    except OSError as e:
        logger.error("Failed to write output: %s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

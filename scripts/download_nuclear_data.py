#!/usr/bin/env python3
"""
Download and process nuclear data for spsplot.

This script:
1. Downloads the full AME2020 mass table and rewrites the mass CSV
2. Optionally fetches adopted level listings from NNDC NuDat

Usage:
    python scripts/download_nuclear_data.py
    python scripts/download_nuclear_data.py --levels 13C 17O 29Si
    python scripts/download_nuclear_data.py --skip-masses --levels 27Al
"""

import argparse
import sys
from pathlib import Path

# Add src to path for local development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from spsplot.ame2020 import AME2020Parser, download_ame2020
from spsplot.config import Config, setup_logging
from spsplot.exceptions import SpsPlotError
from spsplot.levels import read_level_file
from spsplot.nndc import download_levels
from spsplot.utils import parse_nuclide


def main():
    parser = argparse.ArgumentParser(description="Download nuclear data for spsplot")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Config.DATA_DIR,
        help=f"Output directory (default: {Config.DATA_DIR})",
    )
    parser.add_argument(
        "--skip-masses",
        action="store_true",
        help="Do not download AME2020",
    )
    parser.add_argument(
        "--levels",
        nargs="*",
        default=[],
        metavar="NUCLIDE",
        help="Nuclides whose level listings to fetch, e.g. 13C 29Si",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite existing level listings",
    )
    args = parser.parse_args()

    setup_logging("INFO")
    data_dir = args.data_dir
    data_dir.mkdir(parents=True, exist_ok=True)

    if not args.skip_masses:
        print("=" * 60)
        print("AME2020 - Atomic Mass Evaluation 2020")
        print("=" * 60)

        ame_file = download_ame2020(data_dir / "mass.mas20.txt")
        ame_parser = AME2020Parser(ame_file)
        ame_df = ame_parser.parse()

        print(f"\nParsed {len(ame_df)} nuclides from AME2020")
        print(f"Z range: {ame_df['Z'].min()} - {ame_df['Z'].max()}")

        ame_parser.to_csv(data_dir / "ame2020_masses.csv")

    if args.levels:
        print("\n" + "=" * 60)
        print("NNDC NuDat 3 - adopted levels")
        print("=" * 60)

        level_dir = data_dir / "levels"
        failures = 0
        for name in args.levels:
            try:
                z, a = parse_nuclide(name)
                path = download_levels(z, a, level_dir, force=args.force)
                print(f"  {path.name}: {read_level_file(path).summary()}")
            except SpsPlotError as e:
                print(f"  {name}: {e}", file=sys.stderr)
                failures += 1
        if failures:
            sys.exit(1)

    print("\n" + "=" * 60)
    print("Data files saved to:", data_dir)
    print("=" * 60)


if __name__ == "__main__":
    main()

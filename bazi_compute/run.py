"""
CLI wrapper for the BaZi engine.

Usage:
    bazi-compute chart --birth 1990-06-15T14:30 --longitude 116.4074 --gender male \
        [--latitude LAT] [--name NAME]
    bazi-compute hepan --birth-a ... --longitude-a ... --gender-a ... \
        --birth-b ... --longitude-b ... --gender-b ... [--reference-date YYYY-MM-DD]

Environment (or .env):
    BAZI_LOG_LEVEL  logging level, default WARNING
    BAZI_LOG_FILE   optional log file path
"""

import argparse
import json
import os
import sys

from dotenv import load_dotenv

from bazi_compute.errors import BaziError
from bazi_compute.hepan import calculate_hepan
from bazi_compute.logger import setup_logger
from bazi_compute.profile import BirthInput, compute_profile


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compute BaZi charts and compatibility.")
    sub = parser.add_subparsers(dest="command", required=True)

    chart = sub.add_parser("chart", help="single-person chart")
    chart.add_argument("--birth", required=True, help="ISO timestamp, e.g. 1990-06-15T14:30")
    chart.add_argument("--longitude", required=True, type=float)
    chart.add_argument("--latitude", type=float, default=None)
    chart.add_argument("--gender", required=True, choices=["male", "female"])
    chart.add_argument("--name", default=None)

    hepan = sub.add_parser("hepan", help="two-person compatibility")
    for suffix in ("a", "b"):
        hepan.add_argument(f"--birth-{suffix}", required=True, dest=f"birth_{suffix}")
        hepan.add_argument(f"--longitude-{suffix}", required=True, type=float,
                           dest=f"longitude_{suffix}")
        hepan.add_argument(f"--latitude-{suffix}", type=float, default=None,
                           dest=f"latitude_{suffix}")
        hepan.add_argument(f"--gender-{suffix}", required=True, choices=["male", "female"],
                           dest=f"gender_{suffix}")
        hepan.add_argument(f"--name-{suffix}", default=None, dest=f"name_{suffix}")
    hepan.add_argument("--reference-date", dest="reference_date", default=None)

    return parser


def _person(args, suffix: str) -> BirthInput:
    return BirthInput(
        timestamp=getattr(args, f"birth_{suffix}"),
        longitude=getattr(args, f"longitude_{suffix}"),
        gender=getattr(args, f"gender_{suffix}"),
        latitude=getattr(args, f"latitude_{suffix}"),
        name=getattr(args, f"name_{suffix}"),
    )


def main(argv=None) -> int:
    load_dotenv()
    logger = setup_logger(
        "bazi_compute",
        os.getenv("BAZI_LOG_LEVEL", "WARNING"),
        os.getenv("BAZI_LOG_FILE") or None,
    )

    args = build_parser().parse_args(argv)

    try:
        if args.command == "chart":
            result = compute_profile(BirthInput(
                timestamp=args.birth,
                longitude=args.longitude,
                gender=args.gender,
                latitude=args.latitude,
                name=args.name,
            )).to_dict()
        else:
            result = calculate_hepan(
                _person(args, "a"), _person(args, "b"),
                reference_date=args.reference_date,
            ).to_dict()
    except BaziError as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 2

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
List the new moons of one or more civil years with their zodiacal months.

Years are independent, so they are solved in parallel worker processes.

Usage:
    python lunar_calendar.py [year | start-end | y1,y2,...] [--epoch first|second|third]
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Dict, List, Optional

from joblib import Parallel, cpu_count, delayed

from core.lunisolar import PrecessionalEpoch, epoch_year, month_for
from core.moons import new_moons_of_year
from core.oracle import EphemerisOracle, make_ephemeris
from core.timescale import format_utc, jd_from_civil

LOGGER = logging.getLogger("lunar-calendar")

_worker_ephemeris: Optional[EphemerisOracle] = None


def _get_worker_ephemeris() -> EphemerisOracle:
    global _worker_ephemeris
    if _worker_ephemeris is None:
        _worker_ephemeris = make_ephemeris()
    return _worker_ephemeris


def compute_year(year: int, epoch: PrecessionalEpoch) -> Dict:
    """New moons of *year*, each paired with the month it opens."""

    ephemeris = _get_worker_ephemeris()
    moons = new_moons_of_year(jd_from_civil(year, 7, 1), ephemeris)
    return {
        "year": year,
        "epoch_year": epoch_year(epoch, year),
        "months": [
            {"month": month_for(year, count).value, "new_moon": moon}
            for count, moon in enumerate(moons)
        ],
    }


def compute_years(years: List[int], epoch: PrecessionalEpoch) -> List[Dict]:
    n_jobs = max(1, min(cpu_count(), len(years)))
    if n_jobs == 1:
        return [compute_year(year, epoch) for year in years]
    return Parallel(n_jobs=n_jobs)(delayed(compute_year)(year, epoch) for year in years)


def parse_year_arguments(arg: str) -> List[int]:
    """Parse a single year, a range ``start-end`` or a comma separated list."""

    years: List[int] = []
    parts = [p.strip() for p in arg.split(",") if p.strip()]
    if not parts:
        raise ValueError("empty year argument")

    for part in parts:
        # A leading minus belongs to the first year, not the range separator.
        separator = part.find("-", 1)
        if separator > 0:
            start = int(part[:separator])
            end = int(part[separator + 1:])
            if end < start:
                raise ValueError(f"range {part} ends before it starts")
            years.extend(range(start, end + 1))
        else:
            years.append(int(part))

    seen = set()
    ordered_years: List[int] = []
    for year in years:
        if year not in seen:
            ordered_years.append(year)
            seen.add(year)

    return ordered_years


def format_year(result: Dict, epoch: PrecessionalEpoch) -> str:
    lines = [f"{result['year']}  ({epoch.name.lower()} epoch year {result['epoch_year']})", "-" * 48]
    for index, entry in enumerate(result["months"], 1):
        lines.append(f"{index:02d}  {entry['month']:<12} {format_utc(entry['new_moon'])}")
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("years", nargs="?", default="2020")
    parser.add_argument(
        "--epoch",
        choices=[epoch.name.lower() for epoch in PrecessionalEpoch],
        default="second",
    )
    ns = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    try:
        years = parse_year_arguments(ns.years)
    except ValueError as exc:
        LOGGER.error(f"invalid year argument: {exc}")
        return 1

    epoch = PrecessionalEpoch[ns.epoch.upper()]
    for idx, result in enumerate(compute_years(years, epoch)):
        if idx:
            print("\n" + "=" * 48 + "\n")
        print(format_year(result, epoch))
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Walking backwards over new moons and anchoring the civil year."""

from __future__ import annotations

from typing import List, Optional

from .oracle import EphemerisOracle, default_ephemeris
from .syzygy import next_moon
from .timescale import add_days, civil_year

__all__ = [
    "REWIND_DAYS",
    "last_moon",
    "previous_moon",
    "first_moon_of_solar_year",
    "new_moons_of_year",
]

# Longer than any synodic month (29.27 to 29.83 days).
REWIND_DAYS = 31.0
# Offset from a known new moon that keeps the next search clear of it.
STEP_OFF_DAYS = 1.0


def last_moon(jd: float, ephemeris: Optional[EphemerisOracle] = None) -> float:
    """Most recent new moon at or before *jd*.

    The search only moves forward, so this finds the next new moon, rewinds
    past the one before it and searches again.
    """

    ephemeris = ephemeris or default_ephemeris()
    upcoming = next_moon(jd, ephemeris)
    return next_moon(add_days(upcoming, -REWIND_DAYS), ephemeris)


def previous_moon(moon: float, ephemeris: Optional[EphemerisOracle] = None) -> float:
    """New moon immediately preceding the new moon at *moon*."""

    return last_moon(add_days(moon, -STEP_OFF_DAYS), ephemeris)


def first_moon_of_solar_year(
    jd: float, ephemeris: Optional[EphemerisOracle] = None
) -> float:
    """First new moon of the UTC civil year that contains *jd*."""

    ephemeris = ephemeris or default_ephemeris()
    year = civil_year(jd)
    moon = last_moon(jd, ephemeris)
    while civil_year(moon) >= year:
        moon = previous_moon(moon, ephemeris)
    return next_moon(add_days(moon, STEP_OFF_DAYS), ephemeris)


def new_moons_of_year(
    year_jd: float, ephemeris: Optional[EphemerisOracle] = None
) -> List[float]:
    """All new moons of the civil year containing *year_jd*, in order."""

    ephemeris = ephemeris or default_ephemeris()
    year = civil_year(year_jd)
    moons: List[float] = []
    moon = first_moon_of_solar_year(year_jd, ephemeris)
    while civil_year(moon) == year:
        moons.append(moon)
        moon = next_moon(add_days(moon, STEP_OFF_DAYS), ephemeris)
    return moons

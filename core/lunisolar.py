"""Zodiacal lunisolar calendar built on located new moons.

A month begins at each new moon. The first new moon of a civil year opens a
month named after the constellation that hosts the Sun at that time of year.
Precession slowly moves that constellation, so the name comes from a band
table over the year. Later months of the year follow the zodiac in order.
Years are counted from one of three long-count epochs.
"""

from __future__ import annotations

import math
from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .moons import last_moon, previous_moon
from .oracle import EphemerisOracle, default_ephemeris
from .timescale import civil_year

__all__ = [
    "ZodiacalMonth",
    "PrecessionalEpoch",
    "CalendarDate",
    "DAYS_PER_YEAR",
    "GREAT_CYCLE_YEARS",
    "base_month",
    "advance_month",
    "month_for",
    "count_moons_before",
    "month_from_new_moon",
    "epoch_elapsed_years",
    "epoch_year",
    "to_calendar_date",
]

DAYS_PER_YEAR = 365.25
# Thirteen baktuns; five of these approximate one precession cycle.
GREAT_CYCLE_YEARS = 5125
# Epoch year counts are exact as of January of this year.
EPOCH_REFERENCE_YEAR = 2013


class ZodiacalMonth(Enum):
    CAPRICORNUS = "Capricornus"
    AQUARIUS = "Aquarius"
    PISCES = "Pisces"
    ARIES = "Aries"
    TAURUS = "Taurus"
    GEMINI = "Gemini"
    CANCER = "Cancer"
    LEO = "Leo"
    VIRGO = "Virgo"
    LIBRA = "Libra"
    SCORPIUS = "Scorpius"
    SAGITTARIUS = "Sagittarius"


_MONTHS = tuple(ZodiacalMonth)


class PrecessionalEpoch(Enum):
    """Long-count epochs, valued by their Julian Day Number."""

    FIRST = -1287717  # -1. 0.0.0.0.0, 4 June -8238 (Julian)
    SECOND = 584283  # -1.13.0.0.0.0, 6 September -3113 (Julian)
    THIRD = 2456283  # 0.13.0.0.0.0, 21 December 2012 (Gregorian)


# Upper year bounds (exclusive) of the bands naming the first month of the
# year. Each edge is the year the Sun's mid-January longitude crosses an IAU
# constellation boundary on the J2000 ecliptic, at 71.6 years per degree.
# Only -6000 to 10000 is meaningful; the open-ended bands beyond are nominal.
_BAND_LIMITS: Tuple[int, ...] = (-8411, -5769, -4022, -1337, 360, 2379, 4771, 6575, 8229, 11365, 13943)
_BAND_MONTHS: Tuple[ZodiacalMonth, ...] = (
    ZodiacalMonth.GEMINI,
    ZodiacalMonth.TAURUS,
    ZodiacalMonth.ARIES,
    ZodiacalMonth.PISCES,
    ZodiacalMonth.AQUARIUS,
    ZodiacalMonth.CAPRICORNUS,
    ZodiacalMonth.SAGITTARIUS,
    ZodiacalMonth.SCORPIUS,
    ZodiacalMonth.LIBRA,
    ZodiacalMonth.VIRGO,
    ZodiacalMonth.LEO,
    ZodiacalMonth.CANCER,
)


@dataclass(frozen=True)
class CalendarDate:
    epoch: PrecessionalEpoch
    precessional_era: int
    year: int
    month: ZodiacalMonth
    day: int

    @classmethod
    def zero(cls) -> "CalendarDate":
        return cls(
            epoch=PrecessionalEpoch.SECOND,
            precessional_era=0,
            year=0,
            month=ZodiacalMonth.CAPRICORNUS,
            day=0,
        )


def base_month(year: int) -> ZodiacalMonth:
    """Month opened by the first new moon of civil *year*."""

    return _BAND_MONTHS[bisect_right(_BAND_LIMITS, year)]


def advance_month(month: ZodiacalMonth, steps: int) -> ZodiacalMonth:
    return _MONTHS[(_MONTHS.index(month) + steps) % len(_MONTHS)]


def month_for(year: int, count: int) -> ZodiacalMonth:
    """Month of the new moon preceded by *count* new moons within *year*."""

    return advance_month(base_month(year), count)


def count_moons_before(
    moon: float, ephemeris: Optional[EphemerisOracle] = None
) -> int:
    """Number of new moons in the civil year of *moon* that come before it."""

    ephemeris = ephemeris or default_ephemeris()
    year = civil_year(moon)
    count = 0
    earlier = previous_moon(moon, ephemeris)
    while civil_year(earlier) >= year:
        count += 1
        earlier = previous_moon(earlier, ephemeris)
    return count


def month_from_new_moon(
    moon: float, ephemeris: Optional[EphemerisOracle] = None
) -> ZodiacalMonth:
    """Zodiacal month opened by the new moon at *moon*."""

    return month_for(civil_year(moon), count_moons_before(moon, ephemeris))


def epoch_elapsed_years(epoch: PrecessionalEpoch) -> int:
    """Whole years from *epoch* to the Third epoch, i.e. as of January 2013."""

    return math.floor((PrecessionalEpoch.THIRD.value - epoch.value) / DAYS_PER_YEAR)


def epoch_year(epoch: PrecessionalEpoch, reference_year: int) -> int:
    """Years elapsed since *epoch* as of January of *reference_year*."""

    return epoch_elapsed_years(epoch) + (reference_year - EPOCH_REFERENCE_YEAR)


def to_calendar_date(
    jd: float,
    epoch: PrecessionalEpoch = PrecessionalEpoch.SECOND,
    ephemeris: Optional[EphemerisOracle] = None,
) -> CalendarDate:
    """Calendar date of the TT Julian Date *jd*.

    The year and month belong to the new moon that opens the current month,
    which may lie in the previous civil year. Day 1 starts at that new moon.
    """

    ephemeris = ephemeris or default_ephemeris()
    moon = last_moon(jd, ephemeris)
    year = civil_year(moon)
    elapsed = epoch_year(epoch, year)
    return CalendarDate(
        epoch=epoch,
        precessional_era=elapsed // GREAT_CYCLE_YEARS,
        year=elapsed,
        month=month_from_new_moon(moon, ephemeris),
        day=max(1, math.ceil(jd - moon)),
    )

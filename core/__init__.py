"""Core syzygy search and lunisolar calendar utilities."""

from .lunisolar import (
    CalendarDate,
    PrecessionalEpoch,
    ZodiacalMonth,
    month_from_new_moon,
    to_calendar_date,
)
from .moons import first_moon_of_solar_year, last_moon, new_moons_of_year
from .oracle import default_ephemeris, make_ephemeris
from .syzygy import InvalidPhaseTransition, SyzygyEvent, SyzygyKind, iter_syzygies, next_moon

__all__ = [
    "CalendarDate",
    "InvalidPhaseTransition",
    "PrecessionalEpoch",
    "SyzygyEvent",
    "SyzygyKind",
    "ZodiacalMonth",
    "default_ephemeris",
    "first_moon_of_solar_year",
    "iter_syzygies",
    "last_moon",
    "make_ephemeris",
    "month_from_new_moon",
    "new_moons_of_year",
    "next_moon",
    "to_calendar_date",
]

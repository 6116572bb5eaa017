"""Conversions between UTC civil time and the Julian Date (TT) axis."""

from __future__ import annotations

import warnings
from datetime import UTC, datetime
from typing import NamedTuple

import erfa

__all__ = [
    "CivilTime",
    "TimeConversionError",
    "SECONDS_PER_DAY",
    "jd_from_civil",
    "jd_from_datetime",
    "civil_from_jd",
    "civil_year",
    "add_days",
    "add_seconds",
    "format_utc",
]

SECONDS_PER_DAY = erfa.DAYSEC


class TimeConversionError(ValueError):
    """Raised when ERFA rejects a civil date or Julian Date."""


class CivilTime(NamedTuple):
    """Broken-down UTC instant; unlike :class:`datetime` it allows any ERFA year."""

    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: float


def jd_from_civil(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: float = 0.0,
) -> float:
    """Return the TT Julian Date of a UTC civil instant.

    Years before 1960 have no leap-second definition; ERFA then treats UTC as
    TAI and the "dubious year" warning is silenced.
    """

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", erfa.ErfaWarning)
            utc1, utc2 = erfa.dtf2d("UTC", year, month, day, hour, minute, second)
            tai1, tai2 = erfa.utctai(utc1, utc2)
            tt1, tt2 = erfa.taitt(tai1, tai2)
    except erfa.ErfaError as exc:
        raise TimeConversionError(
            f"Invalid UTC civil time {year}-{month}-{day} {hour}:{minute}:{second}: {exc}"
        ) from exc
    return float(tt1) + float(tt2)


def jd_from_datetime(dt: datetime) -> float:
    """Convert a timezone-aware datetime into a TT Julian Date."""

    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware (UTC)")
    dt_utc = dt.astimezone(UTC)
    return jd_from_civil(
        dt_utc.year,
        dt_utc.month,
        dt_utc.day,
        dt_utc.hour,
        dt_utc.minute,
        dt_utc.second + dt_utc.microsecond / 1_000_000,
    )


def _utc_pair(jd: float) -> tuple[float, float]:
    tai1, tai2 = erfa.tttai(jd, 0.0)
    return erfa.taiutc(tai1, tai2)


def civil_from_jd(jd: float) -> CivilTime:
    """Split a TT Julian Date into UTC civil fields (millisecond resolution)."""

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", erfa.ErfaWarning)
            utc1, utc2 = _utc_pair(jd)
            iy, im, iday, ihmsf = erfa.d2dtf("UTC", 3, utc1, utc2)
    except erfa.ErfaError as exc:
        raise TimeConversionError(f"Julian Date {jd} cannot be expressed in UTC: {exc}") from exc
    return CivilTime(
        year=int(iy),
        month=int(im),
        day=int(iday),
        hour=int(ihmsf["h"]),
        minute=int(ihmsf["m"]),
        second=int(ihmsf["s"]) + int(ihmsf["f"]) / 1000.0,
    )


def civil_year(jd: float) -> int:
    """Return the UTC civil year containing the TT Julian Date *jd*."""

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", erfa.ErfaWarning)
            utc1, utc2 = _utc_pair(jd)
            iy, _, _, _ = erfa.jd2cal(utc1, utc2)
    except erfa.ErfaError as exc:
        raise TimeConversionError(f"Julian Date {jd} cannot be expressed in UTC: {exc}") from exc
    return int(iy)


def add_days(jd: float, days: float) -> float:
    return jd + days


def add_seconds(jd: float, seconds: float) -> float:
    return jd + seconds / SECONDS_PER_DAY


def format_utc(jd: float) -> str:
    """Render *jd* as an ISO-8601 UTC string with a ``Z`` suffix."""

    civil = civil_from_jd(jd)
    whole = int(civil.second)
    millis = int(round((civil.second - whole) * 1000.0))
    sign = "-" if civil.year < 0 else ""
    return (
        f"{sign}{abs(civil.year):04d}-{civil.month:02d}-{civil.day:02d}"
        f"T{civil.hour:02d}:{civil.minute:02d}:{whole:02d}.{millis:03d}Z"
    )

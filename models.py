"""Pydantic models for API requests and responses."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Literal

from pydantic import BaseModel, Field


class Epoch(str, Enum):
    """Long-count epoch selectors accepted by ``/calendar``."""

    first = "first"
    second = "second"
    third = "third"


class InstantQueryParams(BaseModel):
    """Validated query parameters for endpoints keyed by an instant."""

    at: datetime = Field(..., description="Instant (ISO-8601); naive values are UTC")


class CalendarQueryParams(InstantQueryParams):
    epoch: Epoch = Field(Epoch.second, description="Long-count epoch to count years from")


class YearQueryParams(BaseModel):
    year: int = Field(..., ge=-4799, le=9999, description="Civil (UTC) year")


class MoonResponse(BaseModel):
    """A located new moon."""

    ok: bool = True
    kind: Literal["new_moon"] = "new_moon"
    utc: str = Field(..., description="New moon time in UTC (ISO-8601)")
    jd_tt: float = Field(..., description="New moon time as a TT Julian Date")
    source: str = Field(..., description="Ephemeris backend identifier")


class CalendarResponse(BaseModel):
    """Lunisolar calendar date of an instant."""

    ok: bool = True
    epoch: Epoch
    precessional_era: int
    year: int
    month: str = Field(..., description="Zodiacal month name")
    day: int = Field(..., ge=1, description="Day of month, day 1 starting at the new moon")
    source: str


class HealthResponse(BaseModel):
    """Health-check response."""

    ok: bool = True
    ephemeris: str
    files: List[str]


class ErrorResponse(BaseModel):
    """Error payload."""

    ok: bool = False
    code: str
    error: str

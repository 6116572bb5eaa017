"""FastAPI application exposing new moon searches and lunisolar dates."""

from __future__ import annotations

import json
import logging
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.ephemeris import EphemerisAcquisitionError
from core.lunisolar import PrecessionalEpoch, to_calendar_date
from core.moons import first_moon_of_solar_year, last_moon
from core.oracle import EphemerisError, EphemerisOracle, make_ephemeris
from core.projection import DegenerateProjectionError
from core.syzygy import InvalidPhaseTransition, next_moon
from core.timescale import TimeConversionError, format_utc, jd_from_civil, jd_from_datetime
from models import (
    CalendarQueryParams,
    CalendarResponse,
    ErrorResponse,
    HealthResponse,
    InstantQueryParams,
    MoonResponse,
    YearQueryParams,
)

logging.basicConfig(level=logging.INFO, format="%(message)s")
LOGGER = logging.getLogger("syzygy-api")

APP_DESCRIPTION = (
    "New moon search and zodiacal lunisolar calendar dates from a heliocentric ephemeris"
)

EPHEMERIS: Optional[EphemerisOracle] = None
EPHEMERIS_FILES: List[str] = []


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - exercised in integration tests
    global EPHEMERIS, EPHEMERIS_FILES
    try:
        EPHEMERIS = make_ephemeris()
    except (EphemerisAcquisitionError, EphemerisError) as exc:
        LOGGER.error(json.dumps({"event": "ephemeris_load_failed", "error": str(exc)}))
        raise
    EPHEMERIS_FILES = list(getattr(EPHEMERIS, "files", []))
    LOGGER.info(json.dumps({"event": "startup", "ephemeris": EPHEMERIS.name}))
    yield


app = FastAPI(
    title="Syzygy API",
    description=APP_DESCRIPTION,
    version="1.0.0",
    lifespan=lifespan,
)


def _ephemeris() -> EphemerisOracle:
    if EPHEMERIS is None:
        raise HTTPException(status_code=503, detail="Ephemeris not loaded")
    return EPHEMERIS


def _instant_jd(at: datetime) -> float:
    if at.tzinfo is None:
        at = at.replace(tzinfo=UTC)
    return jd_from_datetime(at)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    payload = ErrorResponse(code=code, error=message)
    LOGGER.error(json.dumps({"event": "error", "code": code, "message": message}))
    return JSONResponse(status_code=status_code, content=payload.model_dump())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = ", ".join(error["msg"] for error in exc.errors())
    return _error_response(422, "validation_error", messages)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        message = detail.get("error") or detail.get("message") or str(detail)
    elif isinstance(detail, list):
        message = ", ".join(str(item) for item in detail)
    else:
        message = str(detail)
    return _error_response(exc.status_code, f"http_{exc.status_code}", message)


@app.exception_handler(TimeConversionError)
async def time_conversion_handler(request: Request, exc: TimeConversionError) -> JSONResponse:
    return _error_response(400, "invalid_time", str(exc))


@app.exception_handler(InvalidPhaseTransition)
async def phase_transition_handler(
    request: Request, exc: InvalidPhaseTransition
) -> JSONResponse:
    LOGGER.critical(
        json.dumps(
            {
                "event": "invalid_phase_transition",
                "trend": exc.trend.name,
                "direction": exc.direction,
            }
        )
    )
    return _error_response(500, "invalid_phase_transition", str(exc))


@app.exception_handler(DegenerateProjectionError)
async def degenerate_projection_handler(
    request: Request, exc: DegenerateProjectionError
) -> JSONResponse:
    return _error_response(500, "degenerate_projection", str(exc))


@app.exception_handler(EphemerisError)
async def ephemeris_error_handler(request: Request, exc: EphemerisError) -> JSONResponse:
    return _error_response(500, "ephemeris_error", str(exc))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled exception", exc_info=exc)
    return _error_response(500, "internal_error", "Unhandled server error")


def _moon_response(event: str, jd: float, ephemeris: EphemerisOracle, started: float) -> MoonResponse:
    response = MoonResponse(utc=format_utc(jd), jd_tt=jd, source=ephemeris.name)
    LOGGER.info(
        json.dumps(
            {
                "event": event,
                "utc": response.utc,
                "duration_ms": round((time.perf_counter() - started) * 1000.0, 3),
            }
        )
    )
    return response


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(
        ok=EPHEMERIS is not None,
        ephemeris=EPHEMERIS.name if EPHEMERIS is not None else "",
        files=EPHEMERIS_FILES,
    )


_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@app.get("/moons/next", response_model=MoonResponse, responses=_ERROR_RESPONSES)
def next_moon_endpoint(params: InstantQueryParams = Depends()) -> MoonResponse:
    started = time.perf_counter()
    ephemeris = _ephemeris()
    jd = next_moon(_instant_jd(params.at), ephemeris)
    return _moon_response("next_moon", jd, ephemeris, started)


@app.get("/moons/last", response_model=MoonResponse, responses=_ERROR_RESPONSES)
def last_moon_endpoint(params: InstantQueryParams = Depends()) -> MoonResponse:
    started = time.perf_counter()
    ephemeris = _ephemeris()
    jd = last_moon(_instant_jd(params.at), ephemeris)
    return _moon_response("last_moon", jd, ephemeris, started)


@app.get("/moons/first", response_model=MoonResponse, responses=_ERROR_RESPONSES)
def first_moon_endpoint(params: YearQueryParams = Depends()) -> MoonResponse:
    started = time.perf_counter()
    ephemeris = _ephemeris()
    midyear = jd_from_civil(params.year, 7, 1)
    jd = first_moon_of_solar_year(midyear, ephemeris)
    return _moon_response("first_moon", jd, ephemeris, started)


@app.get("/calendar", response_model=CalendarResponse, responses=_ERROR_RESPONSES)
def calendar_endpoint(params: CalendarQueryParams = Depends()) -> CalendarResponse:
    started = time.perf_counter()
    ephemeris = _ephemeris()
    date = to_calendar_date(
        _instant_jd(params.at),
        PrecessionalEpoch[params.epoch.name.upper()],
        ephemeris,
    )
    response = CalendarResponse(
        epoch=params.epoch,
        precessional_era=date.precessional_era,
        year=date.year,
        month=date.month.value,
        day=date.day,
        source=ephemeris.name,
    )
    LOGGER.info(
        json.dumps(
            {
                "event": "calendar",
                "at": params.at.isoformat(),
                "epoch": params.epoch.value,
                "year": response.year,
                "month": response.month,
                "day": response.day,
                "duration_ms": round((time.perf_counter() - started) * 1000.0, 3),
            }
        )
    )
    return response

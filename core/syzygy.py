"""Syzygy search: step forward in time until the next new moon.

The search samples the Earth/barycenter phase at a fixed one-minute step and
tracks the sign of successive differences. A falling-then-rising pair marks a
local minimum at the previous sample. The magnitudes of the current sample
tell a conjunction (Earth farther from the Sun than the barycenter) from an
opposition. Oppositions are not returned: the cursor jumps 13 days ahead and
the scan resumes towards the following conjunction.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple

import numpy as np

from .oracle import EphemerisOracle, default_ephemeris
from .projection import DegenerateProjectionError, magnitude, phase
from .timescale import SECONDS_PER_DAY, add_days

__all__ = [
    "PhaseTrend",
    "SyzygyKind",
    "SyzygyEvent",
    "InvalidPhaseTransition",
    "STEP_SECONDS",
    "FULL_MOON_JUMP_DAYS",
    "search_new_moon",
    "next_moon",
    "iter_syzygies",
]

LOGGER = logging.getLogger(__name__)

STEP_SECONDS = 60.0
FULL_MOON_JUMP_DAYS = 13.0
RESTART_DAYS = 1.0 / 24.0
DEFAULT_BATCH_SIZE = 1440
_INITIAL_PHASE = 1.0


class PhaseTrend(Enum):
    UNINITIALIZED = "uninitialized"
    FIRST_SAMPLE = "first_sample"
    RISING = "rising"
    FALLING = "falling"


class SyzygyKind(str, Enum):
    NEW_MOON = "new_moon"
    FULL_MOON = "full_moon"


@dataclass(frozen=True)
class SyzygyEvent:
    """A located syzygy: TT Julian Date and whether it is a new or full moon."""

    jd: float
    kind: SyzygyKind


class InvalidPhaseTransition(RuntimeError):
    """The phase trend reached a state the geometry cannot produce.

    This signals a logic fault, never bad input, and is not meant to be caught
    by the search itself.
    """

    def __init__(self, trend: PhaseTrend, direction: int) -> None:
        super().__init__(
            f"invalid combination of phase trend {trend.name} and direction {direction}"
        )
        self.trend = trend
        self.direction = direction


# (FALLING, +1) is absent: it ends a descent and is handled by the search.
_TRANSITIONS: Dict[Tuple[PhaseTrend, int], PhaseTrend] = {
    (PhaseTrend.UNINITIALIZED, -1): PhaseTrend.FIRST_SAMPLE,
    (PhaseTrend.UNINITIALIZED, 1): PhaseTrend.FIRST_SAMPLE,
    (PhaseTrend.FIRST_SAMPLE, -1): PhaseTrend.FALLING,
    (PhaseTrend.FIRST_SAMPLE, 1): PhaseTrend.RISING,
    (PhaseTrend.RISING, -1): PhaseTrend.FALLING,
    (PhaseTrend.RISING, 1): PhaseTrend.RISING,
    (PhaseTrend.FALLING, -1): PhaseTrend.FALLING,
}


def _direction(current: float, previous: float) -> int:
    # Ties count as falling.
    return 1 if current - previous > 0.0 else -1


def _next_trend(trend: PhaseTrend, direction: int) -> PhaseTrend:
    """Return the trend following *trend* after a step in *direction*.

    Only called once a falling-then-rising minimum has been ruled out.
    """

    try:
        return _TRANSITIONS[(trend, direction)]
    except KeyError:
        raise InvalidPhaseTransition(trend, direction) from None


def _sample(
    ephemeris: EphemerisOracle, times: np.ndarray
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    earth = ephemeris.heliocentric_earth(times)
    barycenter = ephemeris.heliocentric_earth_moon_barycenter(times)
    return phase(earth, barycenter), magnitude(earth), magnitude(barycenter)


def _scan(
    jd: float, ephemeris: EphemerisOracle, batch_size: int
) -> Iterator[SyzygyEvent]:
    """Yield every full moon passed on the way, then the new moon, then stop."""

    step_days = STEP_SECONDS / SECONDS_PER_DAY
    indices = np.arange(batch_size, dtype=float)
    trend = PhaseTrend.UNINITIALIZED
    last_phase = _INITIAL_PHASE
    last_time = jd
    # Sample n is taken at origin + n steps; offsets are never accumulated.
    origin = jd
    first = 0
    samples = 0

    while True:
        times = origin + step_days * (first + indices)
        phases, earth_distance, moon_distance = _sample(ephemeris, times)
        first += batch_size
        for index in range(batch_size):
            samples += 1
            current = float(phases[index])
            if not math.isfinite(current):
                raise DegenerateProjectionError(
                    f"Non-finite phase sample at JD {float(times[index])}"
                )
            direction = _direction(current, last_phase)
            if trend is PhaseTrend.FALLING and direction == 1:
                if earth_distance[index] > moon_distance[index]:
                    kind = SyzygyKind.NEW_MOON
                else:
                    kind = SyzygyKind.FULL_MOON
                LOGGER.debug(
                    json.dumps(
                        {"event": f"syzygy_{kind.value}", "jd_tt": last_time, "samples": samples}
                    )
                )
                yield SyzygyEvent(last_time, kind)
                if kind is SyzygyKind.NEW_MOON:
                    return
                origin = add_days(float(times[index]), FULL_MOON_JUMP_DAYS)
                first = 1
                trend = PhaseTrend.RISING
                last_phase = current
                last_time = origin
                break
            trend = _next_trend(trend, direction)
            last_phase = current
            last_time = float(times[index])


def search_new_moon(
    jd: float,
    ephemeris: Optional[EphemerisOracle] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> SyzygyEvent:
    """Return the first new moon found scanning forward from *jd*.

    The returned time is the sample just before the phase minimum was passed,
    so it is accurate to roughly the one-minute step plus ephemeris error.

    Raises
    ------
    InvalidPhaseTransition
        If the trend state machine is driven into an impossible state.
    DegenerateProjectionError
        If a sampled position has no defined longitude.
    """

    if batch_size < 1:
        raise ValueError("batch_size must be positive")
    ephemeris = ephemeris or default_ephemeris()
    return next(
        event
        for event in _scan(jd, ephemeris, batch_size)
        if event.kind is SyzygyKind.NEW_MOON
    )


def next_moon(
    jd: float,
    ephemeris: Optional[EphemerisOracle] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> float:
    """TT Julian Date of the next new moon after *jd*."""

    return search_new_moon(jd, ephemeris, batch_size).jd


def iter_syzygies(
    jd: float,
    ephemeris: Optional[EphemerisOracle] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> Iterator[SyzygyEvent]:
    """Yield new and full moons in time order, forever, starting from *jd*.

    After each new moon the scan restarts an hour later.
    """

    ephemeris = ephemeris or default_ephemeris()
    while True:
        event = None
        for event in _scan(jd, ephemeris, batch_size):
            yield event
        jd = add_days(event.jd, RESTART_DAYS)

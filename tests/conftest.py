from __future__ import annotations

import math
import sys
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from core.oracle import ErfaEphemeris
from core.timescale import SECONDS_PER_DAY, jd_from_civil

TOLERANCE_20MIN = 20.0 * 60.0 / SECONDS_PER_DAY
TOLERANCE_10MIN = 10.0 * 60.0 / SECONDS_PER_DAY


class CircularEphemeris:
    """Toy oracle: circular Earth orbit and a circular lunar offset.

    New moons fall exactly at ``epoch + k * synodic`` and full moons half a
    period later, which makes the search easy to check quickly.
    """

    name = "circular"

    def __init__(
        self,
        epoch: float,
        synodic: float = 29.5,
        year: float = 365.25,
        offset_au: float = 0.01,
    ) -> None:
        self.epoch = epoch
        self.synodic = synodic
        self.year = year
        self.offset_au = offset_au

    def _angles(self, jd):
        elapsed = np.asarray(jd, dtype=float) - self.epoch
        earth = 0.3 + 2.0 * math.pi * elapsed / self.year
        elongation = 2.0 * math.pi * elapsed / self.synodic
        return earth, earth + math.pi + elongation

    def heliocentric_earth(self, jd):
        earth, _ = self._angles(jd)
        return np.stack([np.cos(earth), np.sin(earth), np.zeros_like(earth)], axis=-1)

    def heliocentric_earth_moon_barycenter(self, jd):
        earth, moon = self._angles(jd)
        return np.stack(
            [
                np.cos(earth) + self.offset_au * np.cos(moon),
                np.sin(earth) + self.offset_au * np.sin(moon),
                np.zeros_like(earth),
            ],
            axis=-1,
        )

    def new_moon(self, k: int) -> float:
        return self.epoch + k * self.synodic

    def full_moon(self, k: int) -> float:
        return self.epoch + (k + 0.5) * self.synodic


@pytest.fixture(scope="session")
def erfa_ephemeris() -> ErfaEphemeris:
    return ErfaEphemeris()


@pytest.fixture(scope="session")
def circular_ephemeris() -> CircularEphemeris:
    # First toy new moon of 2021 falls on 10 January.
    return CircularEphemeris(epoch=jd_from_civil(2021, 1, 10, 6, 0, 0))


@pytest.fixture(scope="session")
def aug_2020_new_moon() -> float:
    return jd_from_civil(2020, 8, 19, 2, 28, 0)

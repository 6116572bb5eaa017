from __future__ import annotations

import pytest

from core.moons import first_moon_of_solar_year, last_moon, new_moons_of_year, previous_moon
from core.syzygy import next_moon
from core.timescale import SECONDS_PER_DAY, civil_from_jd, jd_from_civil
from conftest import TOLERANCE_10MIN, TOLERANCE_20MIN

FIVE_MINUTES = 300.0 / SECONDS_PER_DAY
TWO_MINUTES = 120.0 / SECONDS_PER_DAY


@pytest.fixture(scope="module")
def aug_2020_last_moon(erfa_ephemeris):
    return last_moon(jd_from_civil(2020, 8, 28), erfa_ephemeris)


def test_last_moon_within_20min_tolerance(aug_2020_last_moon, aug_2020_new_moon):
    assert abs(aug_2020_last_moon - aug_2020_new_moon) < TOLERANCE_20MIN


def test_last_moon_exceeds_10min_tolerance(aug_2020_last_moon, aug_2020_new_moon):
    assert not abs(aug_2020_last_moon - aug_2020_new_moon) < TOLERANCE_10MIN


def test_last_moon_is_idempotent(aug_2020_last_moon, erfa_ephemeris):
    again = last_moon(aug_2020_last_moon, erfa_ephemeris)
    assert again == pytest.approx(aug_2020_last_moon, abs=FIVE_MINUTES)
    # Searching forward from a day before recovers the same new moon.
    forward = next_moon(again - 1.0, erfa_ephemeris)
    assert forward == pytest.approx(aug_2020_last_moon, abs=FIVE_MINUTES)


def test_next_moon_from_a_new_moon_finds_the_following_one(aug_2020_last_moon, erfa_ephemeris):
    again = last_moon(aug_2020_last_moon, erfa_ephemeris)
    forward = next_moon(again, erfa_ephemeris)
    following = next_moon(jd_from_civil(2020, 9, 10), erfa_ephemeris)
    assert forward == pytest.approx(following, abs=TWO_MINUTES)
    assert forward - aug_2020_last_moon > 29.0


def test_toy_next_moon_from_a_new_moon(circular_ephemeris):
    moon = next_moon(circular_ephemeris.new_moon(2) - 1.0, circular_ephemeris)
    forward = next_moon(moon, circular_ephemeris)
    assert forward == pytest.approx(circular_ephemeris.new_moon(3), abs=TWO_MINUTES)


def test_first_moon_of_2020(erfa_ephemeris):
    first = first_moon_of_solar_year(jd_from_civil(2020, 3, 1), erfa_ephemeris)
    civil = civil_from_jd(first)
    assert (civil.year, civil.month, civil.day) == (2020, 1, 24)


def test_toy_last_moon_and_previous_moon(circular_ephemeris):
    moon = last_moon(circular_ephemeris.new_moon(3) + 10.0, circular_ephemeris)
    assert moon == pytest.approx(circular_ephemeris.new_moon(3), abs=TWO_MINUTES)
    before = previous_moon(moon, circular_ephemeris)
    assert before == pytest.approx(circular_ephemeris.new_moon(2), abs=TWO_MINUTES)


def test_toy_first_moon_from_early_january(circular_ephemeris):
    # 5 January 2021 precedes the year's first toy new moon on 10 January.
    first = first_moon_of_solar_year(jd_from_civil(2021, 1, 5), circular_ephemeris)
    assert first == pytest.approx(circular_ephemeris.new_moon(0), abs=TWO_MINUTES)


def test_toy_new_moons_of_year(circular_ephemeris):
    moons = new_moons_of_year(jd_from_civil(2021, 6, 1), circular_ephemeris)
    assert len(moons) == 13
    for k, moon in enumerate(moons):
        assert moon == pytest.approx(circular_ephemeris.new_moon(k), abs=TWO_MINUTES)

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from core.timescale import (
    SECONDS_PER_DAY,
    TimeConversionError,
    add_days,
    add_seconds,
    civil_from_jd,
    civil_year,
    format_utc,
    jd_from_civil,
    jd_from_datetime,
)


def test_j2000_is_on_tt_axis():
    # TT - UTC was 64.184 s at the start of 2000.
    jd = jd_from_civil(2000, 1, 1, 12, 0, 0)
    assert jd == pytest.approx(2451545.0 + 64.184 / SECONDS_PER_DAY, abs=1e-9)


def test_civil_round_trip():
    jd = jd_from_civil(2020, 8, 19, 2, 28, 30.5)
    civil = civil_from_jd(jd)
    assert civil[:5] == (2020, 8, 19, 2, 28)
    assert civil.second == pytest.approx(30.5, abs=2e-3)


def test_datetime_must_be_aware():
    with pytest.raises(ValueError):
        jd_from_datetime(datetime(2020, 8, 19))


def test_aware_datetime_is_converted_to_utc():
    local = datetime(2020, 8, 19, 11, 28, tzinfo=timezone(timedelta(hours=9)))
    assert jd_from_datetime(local) == pytest.approx(jd_from_civil(2020, 8, 19, 2, 28), abs=1e-9)


def test_civil_year_boundary():
    assert civil_year(jd_from_civil(2019, 12, 31, 23, 59, 0)) == 2019
    assert civil_year(jd_from_civil(2020, 1, 1, 0, 1, 0)) == 2020


def test_offsets():
    jd = jd_from_civil(2020, 1, 1)
    assert add_days(jd, 1.5) == pytest.approx(jd + 1.5)
    assert add_seconds(jd, 60.0) == pytest.approx(jd + 60.0 / SECONDS_PER_DAY)


def test_invalid_civil_date():
    with pytest.raises(TimeConversionError):
        jd_from_civil(2020, 13, 1)
    with pytest.raises(TimeConversionError):
        jd_from_civil(-5000, 1, 1)


def test_format_utc():
    assert format_utc(jd_from_civil(2020, 1, 24, 21, 42, 0)) == "2020-01-24T21:42:00.000Z"

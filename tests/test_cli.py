from __future__ import annotations

import pytest

import lunar_calendar
from core.lunisolar import PrecessionalEpoch


def test_parse_year_arguments():
    assert lunar_calendar.parse_year_arguments("2020") == [2020]
    assert lunar_calendar.parse_year_arguments("2019-2021,2020,1999") == [2019, 2020, 2021, 1999]
    assert lunar_calendar.parse_year_arguments("-3-0") == [-3, -2, -1, 0]


@pytest.mark.parametrize("argument", ["", "2021-2019", "abc"])
def test_parse_year_arguments_rejects(argument):
    with pytest.raises(ValueError):
        lunar_calendar.parse_year_arguments(argument)


def test_compute_single_year(circular_ephemeris, monkeypatch):
    monkeypatch.setattr(lunar_calendar, "_get_worker_ephemeris", lambda: circular_ephemeris)
    (result,) = lunar_calendar.compute_years([2021], PrecessionalEpoch.SECOND)
    assert result["year"] == 2021
    assert result["epoch_year"] == 5133
    months = [entry["month"] for entry in result["months"]]
    assert len(months) == 13
    assert months[0] == months[12] == "Capricornus"
    assert months[11] == "Sagittarius"

    text = lunar_calendar.format_year(result, PrecessionalEpoch.SECOND)
    assert text.splitlines()[0] == "2021  (second epoch year 5133)"
    assert "01  Capricornus  2021-01-10T" in text

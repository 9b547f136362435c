from datetime import date, time
from types import SimpleNamespace

import pytest

from app.utils.dates import to_date
from app.utils.time import (
    NO_SCHEDULE_TEXT,
    expand_clock,
    js_weekday,
    normalize_clock,
    overlaps,
    parse_clock,
    sort_weekdays,
    summarize,
    to_minutes,
    weekday_label,
)
from app.utils.week import iter_days, month_bounds


def _entry(weekday, start, end, active=True):
    return SimpleNamespace(
        weekday=weekday,
        start_time=parse_clock(start) if start else None,
        end_time=parse_clock(end) if end else None,
        active=active,
    )


@pytest.mark.parametrize(
    "a,b",
    [
        (("09:00", "13:00"), ("12:00", "15:00")),
        (("09:00", "18:00"), ("10:00", "11:00")),
        (("09:00", "10:00"), ("09:00", "10:00")),
    ],
)
def test_overlaps_is_symmetric(a, b):
    assert overlaps(*a, *b) is True
    assert overlaps(*b, *a) is True


def test_touching_windows_do_not_overlap():
    assert overlaps("09:00", "12:00", "12:00", "15:00") is False
    assert overlaps("12:00", "15:00", "09:00", "12:00") is False


def test_overlaps_accepts_seconds_and_time_objects():
    assert overlaps("09:00:00", "12:00:00", time(11, 30), time(13, 0)) is True


def test_clock_formats():
    assert normalize_clock("09:30:00") == "09:30"
    assert expand_clock("09:30") == "09:30:00"
    assert to_minutes("01:15") == 75
    with pytest.raises(ValueError):
        parse_clock("9h30")


def test_js_weekday_sunday_is_zero():
    assert js_weekday(date(2025, 3, 9)) == 0  # domingo
    assert js_weekday(date(2025, 3, 10)) == 1  # segunda
    assert js_weekday(date(2025, 3, 15)) == 6  # sábado


def test_weekdays_sorted_monday_first():
    assert sort_weekdays([0, 3, 1, 6]) == [1, 3, 6, 0]
    assert weekday_label(0) == "Domingo"
    assert weekday_label(1) == "Segunda"


def test_summarize_groups_by_window():
    entries = [
        _entry(1, "09:00", "12:00"),
        _entry(3, "09:00", "12:00"),
        _entry(5, "14:00", "18:00"),
    ]
    assert summarize(entries) == "Seg-Qua 09:00-12:00 · Sex 14:00-18:00"


def test_summarize_skips_inactive_and_placeholder():
    entries = [
        _entry(1, "09:00", "12:00", active=False),
        _entry(-1, None, None),
    ]
    assert summarize(entries) == NO_SCHEDULE_TEXT


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2025-03-01", date(2025, 3, 1)),
        ("2025-03-01T00:00:00.000Z", date(2025, 3, 1)),
        (date(2025, 3, 1), date(2025, 3, 1)),
        (None, None),
    ],
)
def test_to_date_normalizes(value, expected):
    assert to_date(value) == expected


def test_to_date_rejects_garbage():
    with pytest.raises(ValueError):
        to_date("01/03/2025")


@pytest.mark.parametrize(
    "d,expected",
    [
        (date(2025, 3, 10), (date(2025, 3, 1), date(2025, 3, 31))),
        (date(2024, 2, 29), (date(2024, 2, 1), date(2024, 2, 29))),
        (date(2025, 12, 5), (date(2025, 12, 1), date(2025, 12, 31))),
    ],
)
def test_month_bounds(d, expected):
    assert month_bounds(d) == expected


def test_iter_days_is_inclusive():
    days = list(iter_days(date(2025, 3, 10), date(2025, 3, 12)))
    assert days == [date(2025, 3, 10), date(2025, 3, 11), date(2025, 3, 12)]
    assert list(iter_days(date(2025, 3, 12), date(2025, 3, 10))) == []

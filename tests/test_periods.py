from datetime import date, time, timedelta

import pytest

from app.models.schedule import NO_FIXED_DAYS, WeeklyScheduleEntry
from app.services.periods import (
    PeriodStatus,
    classify,
    current_group,
    find_overlapping_groups,
    group_containing,
    group_periods,
    latest_future_group,
    minimum_start_for_new_period,
    open_group,
)

TODAY = date(2025, 3, 10)


def _row(weekday, valid_from, valid_to=None, start=time(9), end=time(12)):
    if weekday == NO_FIXED_DAYS:
        start = end = None
    return WeeklyScheduleEntry(
        professional_id=1,
        weekday=weekday,
        start_time=start,
        end_time=end,
        slot_duration_minutes=30,
        active=True,
        valid_from=valid_from,
        valid_to=valid_to,
    )


@pytest.mark.parametrize(
    "valid_from,valid_to,expected",
    [
        (date(2025, 4, 1), None, PeriodStatus.FUTURA),
        (date(2025, 1, 1), date(2025, 3, 9), PeriodStatus.HISTORICO),
        (date(2025, 1, 1), date(2025, 3, 10), PeriodStatus.VIGENTE),
        (date(2025, 3, 10), None, PeriodStatus.VIGENTE),
    ],
)
def test_classify(valid_from, valid_to, expected):
    assert classify(valid_from, valid_to, TODAY) == expected


def test_group_periods_orders_vigente_first_then_desc():
    rows = [
        _row(1, date(2024, 1, 1), date(2024, 12, 31)),
        _row(3, date(2025, 1, 1), date(2025, 3, 31)),
        _row(1, date(2025, 1, 1), date(2025, 3, 31)),
        _row(2, date(2025, 4, 1)),
    ]
    groups = group_periods(rows, TODAY)

    assert [g.status for g in groups] == [
        PeriodStatus.VIGENTE,
        PeriodStatus.FUTURA,
        PeriodStatus.HISTORICO,
    ]
    assert [e.weekday for e in groups[0].entries] == [1, 3]
    assert current_group(groups).valid_from == date(2025, 1, 1)
    assert open_group(groups).valid_from == date(2025, 4, 1)
    assert latest_future_group(groups).valid_from == date(2025, 4, 1)


def test_group_periods_accepts_timestamp_strings():
    rows = [_row(1, "2025-03-01T00:00:00.000Z")]
    groups = group_periods(rows, TODAY)
    assert groups[0].valid_from == date(2025, 3, 1)


def test_placeholder_group():
    groups = group_periods([_row(NO_FIXED_DAYS, date(2025, 3, 1))], TODAY)
    assert groups[0].is_placeholder is True
    assert groups[0].active_weekdays == []
    assert groups[0].summary == "—"


def test_minimum_start_ignores_historic_periods():
    groups = group_periods([_row(1, date(2024, 1, 1), date(2024, 12, 31))], TODAY)
    assert minimum_start_for_new_period(groups, TODAY) == TODAY


def test_minimum_start_after_open_current_period():
    groups = group_periods([_row(1, date(2025, 3, 10))], TODAY)
    assert minimum_start_for_new_period(groups, TODAY) == date(2025, 3, 11)


def test_minimum_start_after_future_period_end():
    rows = [
        _row(1, date(2025, 1, 1), date(2025, 3, 31)),
        _row(2, date(2025, 4, 1), date(2025, 6, 30)),
    ]
    groups = group_periods(rows, TODAY)
    assert minimum_start_for_new_period(groups, TODAY) == date(2025, 7, 1)


def test_minimum_start_is_monotonic_as_periods_are_added():
    rows = [_row(1, date(2025, 1, 1))]
    previous = minimum_start_for_new_period(group_periods(rows, TODAY), TODAY)
    for i in range(3):
        start = previous + timedelta(days=5)
        for r in rows:
            if r.valid_to is None:
                r.valid_to = start - timedelta(days=1)
        rows.append(_row(i + 2, start))
        current = minimum_start_for_new_period(group_periods(rows, TODAY), TODAY)
        assert current >= previous
        previous = current


def test_group_containing_uses_inclusive_end():
    rows = [
        _row(1, date(2025, 1, 1), date(2025, 3, 31)),
        _row(2, date(2025, 4, 1)),
    ]
    groups = group_periods(rows, TODAY)
    assert group_containing(groups, date(2025, 3, 31)).valid_from == date(2025, 1, 1)
    assert group_containing(groups, date(2025, 4, 1)).valid_from == date(2025, 4, 1)
    assert group_containing(groups, date(2024, 12, 31)) is None


def test_find_overlapping_groups():
    rows = [
        _row(1, date(2025, 1, 1), date(2025, 4, 1)),
        _row(2, date(2025, 4, 1)),
    ]
    clashes = find_overlapping_groups(group_periods(rows, TODAY))
    assert len(clashes) == 1

# app/api/routes/schedule.py
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps import get_professional_or_404, get_today
from app.models.professional import Professional
from app.models.schedule import WeeklyScheduleEntry
from app.schemas.schedule import (
    EntryUpdateIn,
    PeriodChangeOut,
    PeriodGroupOut,
    PeriodIn,
    PeriodsViewOut,
    ScheduleEntryOut,
    VersionIn,
    WeekdaysUpdateIn,
    WeekdaysUpdateOut,
)
from app.services import schedule_mutation as sm
from app.services.periods import ValidityPeriodGroup, minimum_start_for_new_period
from app.utils.time import weekday_label

router = APIRouter(prefix="/schedule", tags=["schedule"])


def _entry_out(e: WeeklyScheduleEntry) -> ScheduleEntryOut:
    return ScheduleEntryOut(
        id=e.id,
        professional_id=e.professional_id,
        weekday=e.weekday,
        weekday_label=weekday_label(e.weekday),
        start_time=e.start_time,
        end_time=e.end_time,
        slot_duration_minutes=e.slot_duration_minutes,
        active=e.active,
        valid_from=e.valid_from,
        valid_to=e.valid_to,
        is_placeholder=e.is_placeholder,
    )


def _group_out(g: ValidityPeriodGroup) -> PeriodGroupOut:
    return PeriodGroupOut(
        valid_from=g.valid_from,
        valid_to=g.valid_to,
        status=g.status.value,
        summary=g.summary,
        is_placeholder=g.is_placeholder,
        active_weekdays=g.active_weekdays,
        entries=[_entry_out(e) for e in g.entries],
    )


def _period_change_out(result: sm.PeriodChangeResult) -> PeriodChangeOut:
    closed = result.closed_period or (None, None)
    return PeriodChangeOut(
        valid_from=result.valid_from,
        valid_to=result.valid_to,
        schedule_version=result.schedule_version,
        entries=[_entry_out(e) for e in result.entries],
        closed_period_from=closed[0],
        closed_period_to=closed[1],
        reopened_period_from=result.reopened_period,
        deleted=result.deleted,
    )


# ---------- leitura ----------


@router.get(
    "/professionals/{professional_id}/entries", response_model=list[ScheduleEntryOut]
)
def list_weekly_entries(
    prof: Professional = Depends(get_professional_or_404),
    include_historical: bool = Query(True),
    only_active: bool = Query(False),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    rows = sm.list_entries(
        db,
        prof.id,
        today=today,
        include_historical=include_historical,
        only_active=only_active,
    )
    return [_entry_out(e) for e in rows]


@router.get("/professionals/{professional_id}/periods", response_model=PeriodsViewOut)
def list_periods(
    prof: Professional = Depends(get_professional_or_404),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    groups = sm.load_groups(db, prof.id, today)
    return PeriodsViewOut(
        professional_id=prof.id,
        today=today,
        minimum_start=minimum_start_for_new_period(groups, today),
        schedule_version=prof.schedule_version,
        periods=[_group_out(g) for g in groups],
    )


# ---------- modo A ----------


@router.put(
    "/professionals/{professional_id}/weekdays", response_model=WeekdaysUpdateOut
)
def upsert_weekdays(
    professional_id: int,
    payload: WeekdaysUpdateIn,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    result = sm.update_weekdays(
        db,
        professional_id,
        [w.to_window() for w in payload.windows],
        today=today,
        slot_duration_minutes=payload.slot_duration_minutes,
        active=payload.active,
        valid_from=payload.valid_from,
        expected_version=payload.expected_version,
    )
    return WeekdaysUpdateOut(
        created=result.created,
        updated=result.updated,
        schedule_version=result.schedule_version,
        valid_from=result.valid_from,
        valid_to=result.valid_to,
        entries=[_entry_out(e) for e in result.entries],
    )


# ---------- modo B ----------


@router.put("/professionals/{professional_id}/period", response_model=PeriodChangeOut)
def replace_period(
    professional_id: int,
    payload: PeriodIn,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    result = sm.replace_period(
        db,
        professional_id,
        [w.to_window() for w in payload.windows],
        payload.valid_from,
        today=today,
        slot_duration_minutes=payload.slot_duration_minutes,
        expected_version=payload.expected_version,
    )
    return _period_change_out(result)


@router.put(
    "/professionals/{professional_id}/periods/{period_from}",
    response_model=PeriodChangeOut,
)
def edit_future_period(
    professional_id: int,
    period_from: date,
    payload: PeriodIn,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    result = sm.edit_future_period(
        db,
        professional_id,
        period_from,
        [w.to_window() for w in payload.windows],
        payload.valid_from,
        today=today,
        slot_duration_minutes=payload.slot_duration_minutes,
        expected_version=payload.expected_version,
    )
    return _period_change_out(result)


@router.delete(
    "/professionals/{professional_id}/periods/{period_from}",
    response_model=PeriodChangeOut,
)
def delete_future_period(
    professional_id: int,
    period_from: date,
    expected_version: int | None = Query(None),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    result = sm.delete_future_period(
        db,
        professional_id,
        period_from,
        today=today,
        expected_version=expected_version,
    )
    return _period_change_out(result)


# ---------- entradas individuais ----------


@router.put("/entries/{entry_id}", response_model=ScheduleEntryOut)
def update_entry(
    entry_id: int,
    payload: EntryUpdateIn,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    entry = sm.update_entry(
        db,
        entry_id,
        today=today,
        start=payload.start,
        end=payload.end,
        slot_duration_minutes=payload.slot_duration_minutes,
        active=payload.active,
        expected_version=payload.expected_version,
    )
    return _entry_out(entry)


@router.patch("/entries/{entry_id}/activate", response_model=ScheduleEntryOut)
def activate_entry(
    entry_id: int,
    payload: VersionIn | None = None,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    entry = sm.set_entry_active(
        db,
        entry_id,
        True,
        today=today,
        expected_version=payload.expected_version if payload else None,
    )
    return _entry_out(entry)


@router.patch("/entries/{entry_id}/deactivate", response_model=ScheduleEntryOut)
def deactivate_entry(
    entry_id: int,
    payload: VersionIn | None = None,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    entry = sm.set_entry_active(
        db,
        entry_id,
        False,
        today=today,
        expected_version=payload.expected_version if payload else None,
    )
    return _entry_out(entry)


@router.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry(
    entry_id: int,
    expected_version: int | None = Query(None),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    sm.delete_entry(db, entry_id, today=today, expected_version=expected_version)

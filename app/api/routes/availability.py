# app/api/routes/availability.py
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps import get_today
from app.schemas.availability import BlockRefOut, DayAvailabilityOut, TimeWindowOut
from app.services.availability_resolver import (
    DayAvailability,
    TimeWindow,
    resolve_availability,
    resolve_range,
)
from app.utils.time import js_weekday, parse_clock
from app.utils.tz import iso_utc
from app.utils.week import month_bounds

router = APIRouter(prefix="/availability", tags=["availability"])


def _day_out(professional_id: int, r: DayAvailability) -> DayAvailabilityOut:
    return DayAvailabilityOut(
        professional_id=professional_id,
        date=r.date,
        weekday=js_weekday(r.date),
        status=r.status.value,
        is_available=r.is_available,
        reason=r.reason,
        windows=[
            TimeWindowOut(
                start=w.start,
                end=w.end,
                slot_duration_minutes=w.slot_duration_minutes,
            )
            for w in r.windows
        ],
        blocks=[
            BlockRefOut(
                id=b.id,
                starts_at=iso_utc(b.starts_at),
                ends_at=iso_utc(b.ends_at),
                reason=b.reason,
            )
            for b in r.blocks
        ],
        period_from=r.period_from,
        period_to=r.period_to,
    )


@router.get(
    "/professionals/{professional_id}/range", response_model=list[DayAvailabilityOut]
)
def get_availability_range(
    professional_id: int,
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """Sem datas, devolve o mês corrente."""
    if date_from is None or date_to is None:
        month_from, month_to = month_bounds(today)
        date_from = date_from or month_from
        date_to = date_to or month_to
    days = resolve_range(db, professional_id, date_from, date_to, today=today)
    return [_day_out(professional_id, r) for r in days]


@router.get("/professionals/{professional_id}", response_model=DayAvailabilityOut)
def get_availability(
    professional_id: int,
    day: date = Query(..., alias="date", description="YYYY-MM-DD"),
    start: str | None = Query(None, pattern=r"^\d{2}:\d{2}(:\d{2})?$"),
    end: str | None = Query(None, pattern=r"^\d{2}:\d{2}(:\d{2})?$"),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """Sem start/end, a janela consultada é a própria agenda do dia."""
    window = None
    if start or end:
        if not (start and end):
            raise HTTPException(400, "Informe start e end, com end maior que start")
        try:
            window = TimeWindow(parse_clock(start), parse_clock(end))
        except ValueError as exc:
            raise HTTPException(400, str(exc)) from None
        if window.end <= window.start:
            raise HTTPException(400, "Informe start e end, com end maior que start")
    r = resolve_availability(db, professional_id, day, today=today, window=window)
    return _day_out(professional_id, r)

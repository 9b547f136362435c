"""
Consulta: para um profissional e uma data, qual agenda vale.

Ordem de precedência:
1. bloqueios que cobrem a janela pedida inteira -> BLOCKED;
2. data pontual do dia -> EXCEPTION (ignora a agenda semanal);
3. período de vigência que contém a data; sem período ou período sem dias
   fixos -> NO_WEEKLY_SCHEDULE;
4. entrada ativa do dia da semana -> WEEKLY, senão NOT_WORKING_DAY.

Bloqueios parciais não derrubam o dia; voltam junto para quem calcula os slots.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime, time

from sqlalchemy.orm import Session

from app.models.block_period import BlockPeriod
from app.models.exception_date import ExceptionDate
from app.models.professional import Professional
from app.services.errors import NotFoundError, ValidationError
from app.services.overlays import list_blocks, list_exceptions
from app.services.periods import ValidityPeriodGroup, group_containing
from app.services.schedule_mutation import load_groups
from app.utils.time import js_weekday, weekday_label
from app.utils.tz import as_aware_utc, combine_local_to_utc, to_local, to_utc
from app.utils.week import iter_days

MAX_RANGE_DAYS = 93


class AvailabilityStatus(str, enum.Enum):
    WEEKLY = "weekly"
    EXCEPTION = "exception"
    BLOCKED = "blocked"
    NOT_WORKING_DAY = "not_working_day"
    NO_WEEKLY_SCHEDULE = "no_weekly_schedule"


@dataclass(frozen=True)
class TimeWindow:
    start: time
    end: time
    slot_duration_minutes: int | None = None


@dataclass
class DayAvailability:
    date: date
    status: AvailabilityStatus
    reason: str
    windows: list[TimeWindow] = field(default_factory=list)
    blocks: list[BlockPeriod] = field(default_factory=list)
    period_from: date | None = None
    period_to: date | None = None

    @property
    def is_available(self) -> bool:
        return self.status in (AvailabilityStatus.WEEKLY, AvailabilityStatus.EXCEPTION)


@dataclass
class _Snapshot:
    groups: list[ValidityPeriodGroup]
    exceptions: dict[date, ExceptionDate]
    blocks: list[BlockPeriod]


def _load_snapshot(
    db: Session, professional_id: int, date_from: date, date_to: date, today: date
) -> _Snapshot:
    if not db.get(Professional, professional_id):
        raise NotFoundError("Profissional não encontrado")
    return _Snapshot(
        groups=load_groups(db, professional_id, today),
        exceptions={
            e.date: e for e in list_exceptions(db, professional_id, date_from, date_to)
        },
        blocks=list_blocks(db, professional_id, date_from, date_to),
    )


def _window_covered(day: date, window: TimeWindow, blocks: list[BlockPeriod]) -> bool:
    """True se a união dos bloqueios cobre [start, end) da janela inteira."""
    start = combine_local_to_utc(day, window.start)
    end = combine_local_to_utc(day, window.end)
    cursor = start
    for b in sorted(blocks, key=lambda b: as_aware_utc(b.starts_at)):
        b_start, b_end = as_aware_utc(b.starts_at), as_aware_utc(b.ends_at)
        if b_start > cursor:
            break
        cursor = max(cursor, b_end)
        if cursor >= end:
            return True
    return cursor >= end


def _blocks_on(day: date, blocks: list[BlockPeriod]) -> list[BlockPeriod]:
    day_start = combine_local_to_utc(day, time.min)
    day_end = combine_local_to_utc(day, time.max)
    return [
        b
        for b in blocks
        if as_aware_utc(b.starts_at) < day_end and as_aware_utc(b.ends_at) > day_start
    ]


def _resolve_day(
    snap: _Snapshot, day: date, window: TimeWindow | None = None
) -> DayAvailability:
    period = group_containing(snap.groups, day)
    period_bounds = (period.valid_from, period.valid_to) if period else (None, None)
    exception = snap.exceptions.get(day)
    weekday = js_weekday(day)

    if exception is not None:
        status = AvailabilityStatus.EXCEPTION
        reason = "Data pontual"
        candidate = [
            TimeWindow(
                exception.start_time,
                exception.end_time,
                exception.slot_duration_minutes,
            )
        ]
    elif period is None or period.is_placeholder:
        status = AvailabilityStatus.NO_WEEKLY_SCHEDULE
        reason = "Sem agenda semanal para esta data"
        candidate = []
    else:
        rows = sorted(
            (e for e in period.weekday_entries if e.weekday == weekday and e.active),
            key=lambda e: e.start_time,
        )
        if rows:
            status = AvailabilityStatus.WEEKLY
            reason = f"Agenda semanal ({weekday_label(weekday)})"
            candidate = [
                TimeWindow(e.start_time, e.end_time, e.slot_duration_minutes)
                for e in rows
            ]
        else:
            status = AvailabilityStatus.NOT_WORKING_DAY
            reason = f"Não atende às {weekday_label(weekday)}s"
            candidate = []

    day_blocks = _blocks_on(day, snap.blocks)
    requested = [window] if window is not None else candidate
    if (
        requested
        and day_blocks
        and all(_window_covered(day, w, day_blocks) for w in requested)
    ):
        return DayAvailability(
            date=day,
            status=AvailabilityStatus.BLOCKED,
            reason=day_blocks[0].reason or "Bloqueado",
            windows=[],
            blocks=day_blocks,
            period_from=period_bounds[0],
            period_to=period_bounds[1],
        )

    return DayAvailability(
        date=day,
        status=status,
        reason=reason,
        windows=candidate,
        blocks=day_blocks,
        period_from=period_bounds[0],
        period_to=period_bounds[1],
    )


def resolve_availability(
    db: Session,
    professional_id: int,
    day: date,
    *,
    today: date,
    window: TimeWindow | None = None,
) -> DayAvailability:
    snap = _load_snapshot(db, professional_id, day, day, today)
    return _resolve_day(snap, day, window)


def resolve_range(
    db: Session,
    professional_id: int,
    date_from: date,
    date_to: date,
    *,
    today: date,
) -> list[DayAvailability]:
    if date_to < date_from:
        raise ValidationError("date_to deve ser igual ou posterior a date_from")
    if (date_to - date_from).days >= MAX_RANGE_DAYS:
        raise ValidationError(f"Intervalo máximo de {MAX_RANGE_DAYS} dias")
    snap = _load_snapshot(db, professional_id, date_from, date_to, today)
    return [_resolve_day(snap, d) for d in iter_days(date_from, date_to)]


def is_bookable(
    db: Session,
    professional_id: int,
    starts_at: datetime,
    ends_at: datetime,
    *,
    today: date,
) -> tuple[bool, str | None]:
    """
    True se [starts_at, ends_at) cabe numa janela do dia e não cai em bloqueio.
    Datetimes sem offset são lidos no fuso da clínica. Retorna (ok, motivo).
    """
    starts_at, ends_at = to_utc(starts_at), to_utc(ends_at)
    local_start, local_end = to_local(starts_at), to_local(ends_at)
    if local_start.date() != local_end.date():
        return False, "O horário deve começar e terminar no mesmo dia."
    day = local_start.date()
    requested = TimeWindow(local_start.time(), local_end.time())
    result = resolve_availability(db, professional_id, day, today=today)
    if not result.is_available:
        return False, result.reason
    fits = any(
        requested.start >= w.start and requested.end <= w.end for w in result.windows
    )
    if not fits:
        return False, "Fora da janela disponível."
    for b in result.blocks:
        if as_aware_utc(b.starts_at) < ends_at and as_aware_utc(b.ends_at) > starts_at:
            return False, b.reason or "Horário bloqueado."
    return True, None

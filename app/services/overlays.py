"""
Datas pontuais (exceções) e bloqueios: camadas por cima da agenda semanal.

- Uma exceção vale sozinha para o dia dela; não é validada contra a agenda
  semanal. Há no máximo uma por (profissional, data).
- Um bloqueio é um intervalo de indisponibilidade com data e hora; vários
  podem coexistir no mesmo dia.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from sqlalchemy.orm import Session

from app.audit.helpers import record_audit
from app.core.logging import get_logger
from app.core.settings import settings
from app.db.session import atomic
from app.models.block_period import BlockPeriod
from app.models.exception_date import ExceptionDate
from app.models.professional import Professional
from app.services.errors import (
    DuplicateExceptionError,
    NotFoundError,
    ValidationError,
)
from app.services.periods import current_group
from app.services.schedule_mutation import (
    clock_value,
    load_groups,
    validate_slot_minutes,
)
from app.utils.time import Clock, js_weekday, weekday_label
from app.utils.tz import as_aware_utc, combine_local_to_utc, to_local, to_utc

log = get_logger(__name__)

WHOLE_DAY_START = time(0, 0)
WHOLE_DAY_END = time(23, 59)

_UNSET = object()


def _ensure_professional(db: Session, professional_id: int) -> Professional:
    p = db.get(Professional, professional_id)
    if not p:
        raise NotFoundError("Profissional não encontrado")
    return p


def active_weekdays(db: Session, professional_id: int, today: date) -> list[int]:
    """Dias com agenda ativa no período vigente (usado pelo seletor de datas)."""
    group = current_group(load_groups(db, professional_id, today))
    return group.active_weekdays if group else []


# ---------- datas pontuais ----------


def list_exceptions(
    db: Session,
    professional_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[ExceptionDate]:
    q = db.query(ExceptionDate)
    if professional_id is not None:
        q = q.filter(ExceptionDate.professional_id == professional_id)
    if date_from is not None:
        q = q.filter(ExceptionDate.date >= date_from)
    if date_to is not None:
        q = q.filter(ExceptionDate.date <= date_to)
    return q.order_by(ExceptionDate.date.asc(), ExceptionDate.start_time.asc()).all()


def _find_exception(
    db: Session, professional_id: int, day: date
) -> ExceptionDate | None:
    return (
        db.query(ExceptionDate)
        .filter(
            ExceptionDate.professional_id == professional_id,
            ExceptionDate.date == day,
        )
        .first()
    )


def create_exception(
    db: Session,
    professional_id: int,
    day: date,
    start: Clock,
    end: Clock,
    *,
    slot_duration_minutes: int | None = None,
    observations: str | None = None,
    replace: bool = False,
) -> ExceptionDate:
    """
    Cria a data pontual. Se já existir uma no mesmo dia: com `replace` ela é
    atualizada, sem `replace` a criação é recusada.
    """
    with atomic(db):
        _ensure_professional(db, professional_id)
        start_t, end_t = clock_value(start, "início"), clock_value(end, "fim")
        if end_t <= start_t:
            raise ValidationError("A hora fim deve ser posterior à hora início")
        slot = validate_slot_minutes(slot_duration_minutes)

        row = _find_exception(db, professional_id, day)
        if row is not None and not replace:
            raise DuplicateExceptionError(day, row.id)
        action = "UPDATE" if row is not None else "CREATE"
        if row is None:
            row = ExceptionDate(professional_id=professional_id, date=day)
            db.add(row)
        row.start_time = start_t
        row.end_time = end_t
        row.slot_duration_minutes = slot
        row.observations = observations
        db.flush()

        record_audit(
            db,
            professional_id=professional_id,
            action=action,
            entity="exception",
            entity_id=row.id,
        )
        log.info(
            "schedule.exception.saved",
            professional_id=professional_id,
            date=day.isoformat(),
            action=action,
        )
    return row


def update_exception(
    db: Session,
    exception_id: int,
    *,
    day: date | None = None,
    start: Clock | None = None,
    end: Clock | None = None,
    slot_duration_minutes: int | None = None,
    observations: str | None | object = _UNSET,
) -> ExceptionDate:
    with atomic(db):
        row = db.get(ExceptionDate, exception_id)
        if not row:
            raise NotFoundError("Data pontual não encontrada")

        if day is not None and day != row.date:
            other = _find_exception(db, row.professional_id, day)
            if other is not None:
                raise DuplicateExceptionError(day, other.id)
            row.date = day
        start_t = row.start_time if start is None else clock_value(start, "início")
        end_t = row.end_time if end is None else clock_value(end, "fim")
        if end_t <= start_t:
            raise ValidationError("A hora fim deve ser posterior à hora início")
        row.start_time, row.end_time = start_t, end_t
        if slot_duration_minutes is not None:
            row.slot_duration_minutes = validate_slot_minutes(slot_duration_minutes)
        if observations is not _UNSET:
            row.observations = observations

        record_audit(
            db,
            professional_id=row.professional_id,
            action="UPDATE",
            entity="exception",
            entity_id=row.id,
        )
        log.info(
            "schedule.exception.updated",
            exception_id=row.id,
            date=row.date.isoformat(),
        )
    return row


def delete_exception(db: Session, exception_id: int) -> None:
    with atomic(db):
        row = db.get(ExceptionDate, exception_id)
        if not row:
            raise NotFoundError("Data pontual não encontrada")
        db.delete(row)
        record_audit(
            db,
            professional_id=row.professional_id,
            action="DELETE",
            entity="exception",
            entity_id=exception_id,
        )
        log.info("schedule.exception.deleted", exception_id=exception_id)


# ---------- bloqueios ----------


def whole_day_bounds(day: date) -> tuple[datetime, datetime]:
    """Dia inteiro no fuso da clínica (00:00–23:59), em UTC."""
    return (
        combine_local_to_utc(day, WHOLE_DAY_START),
        combine_local_to_utc(day, WHOLE_DAY_END),
    )


def list_blocks(
    db: Session,
    professional_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[BlockPeriod]:
    """Bloqueios que tocam o intervalo [date_from, date_to] (datas locais)."""
    q = db.query(BlockPeriod)
    if professional_id is not None:
        q = q.filter(BlockPeriod.professional_id == professional_id)
    if date_from is not None:
        q = q.filter(BlockPeriod.ends_at > combine_local_to_utc(date_from, time.min))
    if date_to is not None:
        q = q.filter(
            BlockPeriod.starts_at
            < combine_local_to_utc(date_to + timedelta(days=1), time.min)
        )
    return q.order_by(BlockPeriod.starts_at.asc()).all()


def _validate_block(
    db: Session,
    professional_id: int,
    starts_at: datetime,
    ends_at: datetime,
    today: date,
) -> tuple[datetime, datetime]:
    starts_utc, ends_utc = to_utc(starts_at), to_utc(ends_at)
    if ends_utc <= starts_utc:
        raise ValidationError("O fim do bloqueio deve ser posterior ao início")
    if settings.ENFORCE_BLOCK_WEEKDAYS:
        local_day = to_local(starts_utc).date()
        weekday = js_weekday(local_day)
        if weekday not in active_weekdays(db, professional_id, today):
            raise ValidationError(
                f"O profissional não atende às {weekday_label(weekday)}s; "
                "escolha um dia com agenda ativa"
            )
    return starts_utc, ends_utc


def create_block(
    db: Session,
    professional_id: int,
    starts_at: datetime,
    ends_at: datetime,
    *,
    today: date,
    reason: str | None = None,
) -> BlockPeriod:
    with atomic(db):
        _ensure_professional(db, professional_id)
        starts_utc, ends_utc = _validate_block(
            db, professional_id, starts_at, ends_at, today
        )
        row = BlockPeriod(
            professional_id=professional_id,
            starts_at=starts_utc,
            ends_at=ends_utc,
            reason=reason,
        )
        db.add(row)
        db.flush()
        record_audit(
            db,
            professional_id=professional_id,
            action="CREATE",
            entity="block",
            entity_id=row.id,
        )
        log.info(
            "schedule.block.created",
            professional_id=professional_id,
            starts_at=starts_utc.isoformat(),
            ends_at=ends_utc.isoformat(),
        )
    return row


def update_block(
    db: Session,
    block_id: int,
    *,
    today: date,
    starts_at: datetime | None = None,
    ends_at: datetime | None = None,
    reason: str | None | object = _UNSET,
) -> BlockPeriod:
    with atomic(db):
        row = db.get(BlockPeriod, block_id)
        if not row:
            raise NotFoundError("Bloqueio não encontrado")
        starts_utc, ends_utc = _validate_block(
            db,
            row.professional_id,
            starts_at if starts_at is not None else as_aware_utc(row.starts_at),
            ends_at if ends_at is not None else as_aware_utc(row.ends_at),
            today,
        )
        row.starts_at, row.ends_at = starts_utc, ends_utc
        if reason is not _UNSET:
            row.reason = reason
        record_audit(
            db,
            professional_id=row.professional_id,
            action="UPDATE",
            entity="block",
            entity_id=row.id,
        )
        log.info(
            "schedule.block.updated",
            block_id=row.id,
            starts_at=starts_utc.isoformat(),
            ends_at=ends_utc.isoformat(),
        )
    return row


def delete_block(db: Session, block_id: int) -> None:
    with atomic(db):
        row = db.get(BlockPeriod, block_id)
        if not row:
            raise NotFoundError("Bloqueio não encontrado")
        db.delete(row)
        record_audit(
            db,
            professional_id=row.professional_id,
            action="DELETE",
            entity="block",
            entity_id=block_id,
        )
        log.info("schedule.block.deleted", block_id=block_id)

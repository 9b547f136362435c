"""
Escrita da agenda semanal de um profissional.

Dois modos:
- update_weekdays: ajuste incremental por dia no período aberto (modo A);
- replace_period / edit_future_period / delete_future_period: períodos de
  vigência inteiros (modo B, "configurar agenda").

Cada operação pública roda dentro de `atomic(db)`: toda validação acontece
antes da primeira escrita e qualquer erro desfaz a transação inteira.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, time

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.audit.helpers import record_audit
from app.core.logging import get_logger
from app.core.settings import settings
from app.db.session import atomic
from app.models.professional import Professional
from app.models.schedule import NO_FIXED_DAYS, WeeklyScheduleEntry
from app.services.errors import (
    ConcurrentEditError,
    IllegalDeletionError,
    InvalidPeriodStartError,
    NotFoundError,
    OverlapError,
    TransactionFailure,
    ValidationError,
)
from app.services.periods import (
    ONE_DAY,
    PeriodStatus,
    ValidityPeriodGroup,
    classify,
    find_group,
    find_overlapping_groups,
    group_periods,
    latest_future_group,
    minimum_start_for_new_period,
    open_group,
    previous_group,
)
from app.utils.time import (
    Clock,
    overlaps,
    parse_clock,
    sort_weekdays,
    weekday_label,
    weekday_rank,
)

log = get_logger(__name__)


@dataclass
class WeekdayWindow:
    weekday: int
    start: Clock
    end: Clock
    # entrada existente que esta janela substitui (fica fora da checagem de sobreposição)
    entry_id: int | None = None

    def __post_init__(self):
        self.start = parse_clock(self.start)
        self.end = parse_clock(self.end)


@dataclass
class WeekdayUpdateResult:
    created: int
    updated: int
    entries: list[WeeklyScheduleEntry]
    schedule_version: int
    # início efetivo do período alterado (o aberto, se já existia)
    valid_from: date | None = None
    valid_to: date | None = None

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated)


@dataclass
class PeriodChangeResult:
    valid_from: date
    valid_to: date | None
    entries: list[WeeklyScheduleEntry]
    schedule_version: int
    closed_period: tuple[date, date | None] | None = None
    reopened_period: date | None = None
    deleted: int = 0


# ---------- leitura ----------


def list_entries(
    db: Session,
    professional_id: int,
    *,
    today: date,
    include_historical: bool = True,
    only_active: bool = False,
) -> list[WeeklyScheduleEntry]:
    q = db.query(WeeklyScheduleEntry).filter(
        WeeklyScheduleEntry.professional_id == professional_id
    )
    if not include_historical:
        q = q.filter(
            or_(
                WeeklyScheduleEntry.valid_to.is_(None),
                WeeklyScheduleEntry.valid_to >= today,
            )
        )
    if only_active:
        q = q.filter(WeeklyScheduleEntry.active.is_(True))
    rows = q.order_by(
        WeeklyScheduleEntry.valid_from.desc(),
        WeeklyScheduleEntry.start_time.asc(),
    ).all()
    # segunda primeiro, domingo por último, placeholder no fim
    rows.sort(key=lambda e: weekday_rank(e.weekday))
    rows.sort(key=lambda e: e.valid_from, reverse=True)
    return rows


def load_groups(
    db: Session, professional_id: int, today: date
) -> list[ValidityPeriodGroup]:
    return group_periods(list_entries(db, professional_id, today=today), today)


# ---------- helpers ----------


def get_professional(db: Session, professional_id: int) -> Professional:
    p = db.get(Professional, professional_id, with_for_update=True)
    if not p:
        raise NotFoundError("Profissional não encontrado")
    if not p.is_active:
        raise ValidationError("Profissional inativo")
    return p


def _check_version(prof: Professional, expected_version: int | None) -> None:
    if expected_version is not None and expected_version != prof.schedule_version:
        raise ConcurrentEditError(expected_version, prof.schedule_version)


def _bump_version(prof: Professional) -> int:
    prof.schedule_version = (prof.schedule_version or 0) + 1
    return prof.schedule_version


def clock_value(value: Clock, label: str = "horário") -> time:
    """parse_clock com erro de domínio (400) em vez de ValueError."""
    try:
        return parse_clock(value)
    except ValueError:
        raise ValidationError(f"{label.capitalize()} inválido: {value!r}") from None


def validate_slot_minutes(value: int | None) -> int:
    minutes = settings.DEFAULT_SLOT_MINUTES if value is None else value
    if not settings.MIN_SLOT_MINUTES <= minutes <= settings.MAX_SLOT_MINUTES:
        raise ValidationError(
            f"Duração do turno deve estar entre {settings.MIN_SLOT_MINUTES} e "
            f"{settings.MAX_SLOT_MINUTES} minutos"
        )
    return minutes


def _validate_windows(windows: Sequence[WeekdayWindow]) -> None:
    seen: set[int] = set()
    for w in windows:
        if w.weekday < 0 or w.weekday > 6:
            raise ValidationError(f"weekday inválido: {w.weekday}")
        if w.weekday in seen:
            raise ValidationError(
                f"Dia repetido na submissão: {weekday_label(w.weekday)}"
            )
        seen.add(w.weekday)
        if w.end <= w.start:
            raise ValidationError(
                f"A hora fim deve ser posterior à hora início "
                f"({weekday_label(w.weekday)})"
            )


def _new_entry(
    professional_id: int,
    *,
    weekday: int,
    start: time | None,
    end: time | None,
    slot: int,
    valid_from: date,
    valid_to: date | None,
    active: bool = True,
) -> WeeklyScheduleEntry:
    return WeeklyScheduleEntry(
        professional_id=professional_id,
        weekday=weekday,
        start_time=start,
        end_time=end,
        slot_duration_minutes=slot,
        active=active,
        valid_from=valid_from,
        valid_to=valid_to,
    )


def _build_period_rows(
    professional_id: int,
    windows: Sequence[WeekdayWindow],
    *,
    slot: int,
    valid_from: date,
    valid_to: date | None,
) -> list[WeeklyScheduleEntry]:
    if not windows:
        # "só datas pontuais": uma única linha reservando o período
        return [
            _new_entry(
                professional_id,
                weekday=NO_FIXED_DAYS,
                start=None,
                end=None,
                slot=slot,
                valid_from=valid_from,
                valid_to=valid_to,
            )
        ]
    ordered = sorted(windows, key=lambda w: weekday_rank(w.weekday))
    return [
        _new_entry(
            professional_id,
            weekday=w.weekday,
            start=w.start,
            end=w.end,
            slot=slot,
            valid_from=valid_from,
            valid_to=valid_to,
        )
        for w in ordered
    ]


def _assert_period_partition(db: Session, professional_id: int, today: date) -> None:
    """Pós-condição antes do commit: nenhum par de períodos se sobrepõe."""
    db.flush()
    groups = load_groups(db, professional_id, today)
    clashes = find_overlapping_groups(groups)
    opened = [g for g in groups if g.is_open]
    if clashes or len(opened) > 1:
        log.error(
            "schedule.partition.violated",
            professional_id=professional_id,
            clashes=[(a.key, b.key) for a, b in clashes],
            open_periods=len(opened),
        )
        raise TransactionFailure(
            "A operação deixaria períodos de vigência sobrepostos; nada foi salvo."
        )


def _conflicting_weekdays(
    windows: Sequence[WeekdayWindow], period_rows: Sequence[WeeklyScheduleEntry]
) -> tuple[list[int], dict[int, WeeklyScheduleEntry]]:
    """
    Com `entry_id`, a entrada indicada é substituída e fica fora da comparação.
    Sem ele, a nova janela não pode sobrepor nenhuma entrada ativa do dia; se
    passar, a primeira entrada existente do dia é atualizada no lugar.
    """
    conflicts: list[int] = []
    replaced: dict[int, WeeklyScheduleEntry] = {}
    for w in windows:
        same_day = sorted(
            (e for e in period_rows if e.weekday == w.weekday),
            key=lambda e: (not e.active, e.start_time or time.min, e.id or 0),
        )
        if w.entry_id is not None:
            target = next((e for e in same_day if e.id == w.entry_id), None)
            if target is None:
                raise ValidationError(
                    f"Entrada {w.entry_id} não pertence a {weekday_label(w.weekday)} "
                    "no período aberto"
                )
            replaced[w.weekday] = target
            others = [e for e in same_day if e is not target and e.active]
        else:
            if same_day:
                replaced[w.weekday] = same_day[0]
            others = [e for e in same_day if e.active]
        if any(overlaps(w.start, w.end, e.start_time, e.end_time) for e in others):
            conflicts.append(w.weekday)
    return sort_weekdays(conflicts), replaced


# ---------- modo A: ajuste por dia da semana ----------


def update_weekdays(
    db: Session,
    professional_id: int,
    windows: Sequence[WeekdayWindow],
    *,
    today: date,
    slot_duration_minutes: int | None = None,
    active: bool = True,
    valid_from: date | None = None,
    expected_version: int | None = None,
) -> WeekdayUpdateResult:
    """
    Cria ou atualiza, dia a dia, as entradas do período aberto. Dias não enviados
    ficam como estão. Sem período aberto, as entradas nascem em `valid_from`
    (padrão: hoje), que precisa respeitar a data mínima de um novo período.
    """
    with atomic(db):
        prof = get_professional(db, professional_id)
        _check_version(prof, expected_version)
        _validate_windows(windows)
        slot = validate_slot_minutes(slot_duration_minutes)

        groups = load_groups(db, professional_id, today)
        target = open_group(groups)
        if target is not None:
            period_from, period_to = target.valid_from, target.valid_to
            period_rows = target.entries
            if valid_from is not None and valid_from != period_from:
                log.info(
                    "schedule.weekdays.valid_from_ignored",
                    professional_id=professional_id,
                    requested=valid_from.isoformat(),
                    effective=period_from.isoformat(),
                )
        else:
            period_from = valid_from or today
            period_to = None
            period_rows = []
            minimum = minimum_start_for_new_period(groups, today)
            if period_from < minimum:
                raise InvalidPeriodStartError(period_from, minimum)

        weekday_rows = [e for e in period_rows if e.weekday != NO_FIXED_DAYS]
        if not windows:
            if not weekday_rows:
                raise ValidationError("Selecione ao menos um dia da semana")
            return WeekdayUpdateResult(
                0, 0, [], prof.schedule_version, period_from, period_to
            )

        conflicts, replaced = _conflicting_weekdays(windows, weekday_rows)
        if conflicts:
            raise OverlapError(conflicts, [weekday_label(d) for d in conflicts])

        created = updated = 0
        touched: list[WeeklyScheduleEntry] = []
        for w in windows:
            row = replaced.get(w.weekday)
            if row is not None:
                row.start_time = w.start
                row.end_time = w.end
                row.slot_duration_minutes = slot
                row.active = active
                updated += 1
            else:
                row = _new_entry(
                    professional_id,
                    weekday=w.weekday,
                    start=w.start,
                    end=w.end,
                    slot=slot,
                    valid_from=period_from,
                    valid_to=period_to,
                    active=active,
                )
                db.add(row)
                created += 1
            touched.append(row)

        if created:
            # o período passa a ter dias fixos: o placeholder deixa de fazer sentido
            for e in period_rows:
                if e.weekday == NO_FIXED_DAYS:
                    db.delete(e)

        _assert_period_partition(db, professional_id, today)
        version = _bump_version(prof)
        record_audit(
            db,
            professional_id=professional_id,
            action="UPDATE_WEEKDAYS",
            entity="schedule_entry",
        )
        log.info(
            "schedule.weekdays.updated",
            professional_id=professional_id,
            created=created,
            updated=updated,
            valid_from=period_from.isoformat(),
        )
    return WeekdayUpdateResult(
        created, updated, touched, version, period_from, period_to
    )


# ---------- modo B: períodos de vigência ----------


def replace_period(
    db: Session,
    professional_id: int,
    windows: Sequence[WeekdayWindow],
    valid_from: date,
    *,
    today: date,
    slot_duration_minutes: int | None = None,
    expected_version: int | None = None,
) -> PeriodChangeResult:
    """
    Fecha o período aberto na véspera de `valid_from` e abre um novo.
    Sem dias (`windows` vazio) o novo período é só de datas pontuais.
    """
    with atomic(db):
        prof = get_professional(db, professional_id)
        _check_version(prof, expected_version)
        _validate_windows(windows)
        slot = validate_slot_minutes(slot_duration_minutes)

        groups = load_groups(db, professional_id, today)
        minimum = minimum_start_for_new_period(groups, today)
        if valid_from < minimum:
            raise InvalidPeriodStartError(valid_from, minimum)

        closed = None
        current = open_group(groups)
        if current is not None:
            for e in current.entries:
                e.valid_to = valid_from - ONE_DAY
            closed = (current.valid_from, valid_from - ONE_DAY)

        rows = _build_period_rows(
            professional_id, windows, slot=slot, valid_from=valid_from, valid_to=None
        )
        db.add_all(rows)

        _assert_period_partition(db, professional_id, today)
        version = _bump_version(prof)
        record_audit(
            db,
            professional_id=professional_id,
            action="REPLACE_PERIOD",
            entity="schedule_period",
        )
        log.info(
            "schedule.period.replaced",
            professional_id=professional_id,
            valid_from=valid_from.isoformat(),
            weekdays=[w.weekday for w in windows],
            closed_from=closed[0].isoformat() if closed else None,
        )
    return PeriodChangeResult(
        valid_from=valid_from,
        valid_to=None,
        entries=rows,
        schedule_version=version,
        closed_period=closed,
    )


def edit_future_period(
    db: Session,
    professional_id: int,
    period_from: date,
    windows: Sequence[WeekdayWindow],
    valid_from: date,
    *,
    today: date,
    slot_duration_minutes: int | None = None,
    expected_version: int | None = None,
) -> PeriodChangeResult:
    """
    Edita no lugar um período que ainda não começou. O novo início pode andar para
    frente ou para trás, desde que não invada o período anterior; se o anterior
    terminava na véspera deste, ele acompanha o novo início.
    """
    with atomic(db):
        prof = get_professional(db, professional_id)
        _check_version(prof, expected_version)
        _validate_windows(windows)
        slot = validate_slot_minutes(slot_duration_minutes)

        groups = load_groups(db, professional_id, today)
        target = find_group(groups, period_from)
        if target is None:
            raise NotFoundError("Período de vigência não encontrado")
        if target.status != PeriodStatus.FUTURA:
            raise ValidationError("Só é possível editar períodos que ainda não começaram")

        prev = previous_group(groups, target)
        linked = (
            prev is not None
            and prev.valid_to is not None
            and prev.valid_to == target.valid_from - ONE_DAY
        )
        minimum = today
        if prev is not None:
            minimum = max(minimum, prev.valid_from + ONE_DAY)
            if prev.valid_to is not None and not linked:
                minimum = max(minimum, prev.valid_to + ONE_DAY)
        if valid_from < minimum:
            raise InvalidPeriodStartError(valid_from, minimum)
        if target.valid_to is not None and valid_from > target.valid_to:
            raise ValidationError(
                f"O início não pode ser posterior ao fim do período "
                f"({target.valid_to.isoformat()})"
            )

        by_day = {w.weekday: w for w in windows}
        kept: list[WeeklyScheduleEntry] = []
        for e in target.entries:
            if e.weekday == NO_FIXED_DAYS:
                if windows:
                    db.delete(e)
                    continue
            elif e.weekday in by_day:
                w = by_day.pop(e.weekday)
                e.start_time = w.start
                e.end_time = w.end
                e.active = True
            else:
                db.delete(e)
                continue
            e.slot_duration_minutes = slot
            e.valid_from = valid_from
            kept.append(e)

        new_rows: list[WeeklyScheduleEntry] = []
        if by_day or not kept:
            # sobra: dias novos, ou o placeholder quando o período fica sem dias
            new_rows = _build_period_rows(
                professional_id,
                list(by_day.values()),
                slot=slot,
                valid_from=valid_from,
                valid_to=target.valid_to,
            )
        db.add_all(new_rows)

        if linked:
            for e in prev.entries:
                e.valid_to = valid_from - ONE_DAY

        _assert_period_partition(db, professional_id, today)
        version = _bump_version(prof)
        record_audit(
            db,
            professional_id=professional_id,
            action="EDIT_FUTURE_PERIOD",
            entity="schedule_period",
        )
        log.info(
            "schedule.period.edited",
            professional_id=professional_id,
            period_from=period_from.isoformat(),
            valid_from=valid_from.isoformat(),
        )
    return PeriodChangeResult(
        valid_from=valid_from,
        valid_to=target.valid_to,
        entries=kept + new_rows,
        schedule_version=version,
        closed_period=(prev.valid_from, valid_from - ONE_DAY) if linked else None,
    )


def delete_future_period(
    db: Session,
    professional_id: int,
    period_from: date,
    *,
    today: date,
    expected_version: int | None = None,
) -> PeriodChangeResult:
    """
    Só o período futuro mais recente pode ser excluído. Se o anterior foi fechado
    por ele (terminava na véspera), volta a ficar aberto.
    """
    with atomic(db):
        prof = get_professional(db, professional_id)
        _check_version(prof, expected_version)

        groups = load_groups(db, professional_id, today)
        target = find_group(groups, period_from)
        if target is None:
            raise NotFoundError("Período de vigência não encontrado")
        latest = latest_future_group(groups)
        if target.status != PeriodStatus.FUTURA or latest is None:
            raise IllegalDeletionError(
                "Só é possível excluir períodos que ainda não começaram",
                latest.valid_from if latest else None,
            )
        if latest.valid_from != target.valid_from:
            raise IllegalDeletionError(
                "Só o último período programado pode ser excluído; "
                f"exclua antes o de {latest.valid_from.isoformat()}",
                latest.valid_from if latest else None,
            )

        for e in target.entries:
            db.delete(e)

        reopened = None
        prev = previous_group(groups, target)
        if prev is not None and prev.valid_to == target.valid_from - ONE_DAY:
            for e in prev.entries:
                e.valid_to = None
            reopened = prev.valid_from

        _assert_period_partition(db, professional_id, today)
        version = _bump_version(prof)
        record_audit(
            db,
            professional_id=professional_id,
            action="DELETE_PERIOD",
            entity="schedule_period",
        )
        log.info(
            "schedule.period.deleted",
            professional_id=professional_id,
            period_from=period_from.isoformat(),
            reopened=reopened.isoformat() if reopened else None,
        )
    return PeriodChangeResult(
        valid_from=target.valid_from,
        valid_to=target.valid_to,
        entries=[],
        schedule_version=version,
        reopened_period=reopened,
        deleted=len(target.entries),
    )


# ---------- entradas individuais ----------


def _get_entry(db: Session, entry_id: int) -> WeeklyScheduleEntry:
    e = db.get(WeeklyScheduleEntry, entry_id)
    if not e:
        raise NotFoundError("Configuração de agenda não encontrada")
    return e


def _ensure_mutable(entry: WeeklyScheduleEntry, today: date) -> None:
    if classify(entry.valid_from, entry.valid_to, today) == PeriodStatus.HISTORICO:
        raise ValidationError("Períodos encerrados não podem ser alterados")


def update_entry(
    db: Session,
    entry_id: int,
    *,
    today: date,
    start: Clock | None = None,
    end: Clock | None = None,
    slot_duration_minutes: int | None = None,
    active: bool | None = None,
    expected_version: int | None = None,
) -> WeeklyScheduleEntry:
    """Altera horário, duração ou ativo de uma entrada, sempre dentro do próprio período."""
    with atomic(db):
        entry = _get_entry(db, entry_id)
        prof = get_professional(db, entry.professional_id)
        _check_version(prof, expected_version)
        _ensure_mutable(entry, today)

        if entry.weekday == NO_FIXED_DAYS and (start is not None or end is not None):
            raise ValidationError("O período sem dias fixos não tem horário")

        new_start = entry.start_time if start is None else clock_value(start, "início")
        new_end = entry.end_time if end is None else clock_value(end, "fim")
        new_active = entry.active if active is None else active
        if entry.weekday != NO_FIXED_DAYS:
            if new_end <= new_start:
                raise ValidationError("A hora fim deve ser posterior à hora início")
            if new_active:
                siblings = (
                    db.query(WeeklyScheduleEntry)
                    .filter(
                        WeeklyScheduleEntry.professional_id == entry.professional_id,
                        WeeklyScheduleEntry.weekday == entry.weekday,
                        WeeklyScheduleEntry.valid_from == entry.valid_from,
                        WeeklyScheduleEntry.id != entry.id,
                        WeeklyScheduleEntry.active.is_(True),
                    )
                    .all()
                )
                same_period = [s for s in siblings if s.valid_to == entry.valid_to]
                if any(
                    overlaps(new_start, new_end, s.start_time, s.end_time)
                    for s in same_period
                ):
                    raise OverlapError(
                        [entry.weekday], [weekday_label(entry.weekday)]
                    )

        entry.start_time = new_start
        entry.end_time = new_end
        entry.active = new_active
        if slot_duration_minutes is not None:
            entry.slot_duration_minutes = validate_slot_minutes(slot_duration_minutes)

        _bump_version(prof)
        record_audit(
            db,
            professional_id=entry.professional_id,
            action="UPDATE",
            entity="schedule_entry",
            entity_id=entry.id,
        )
        log.info("schedule.entry.updated", entry_id=entry.id, active=new_active)
    return entry


def set_entry_active(
    db: Session,
    entry_id: int,
    active: bool,
    *,
    today: date,
    expected_version: int | None = None,
) -> WeeklyScheduleEntry:
    return update_entry(
        db, entry_id, today=today, active=active, expected_version=expected_version
    )


def delete_entry(
    db: Session,
    entry_id: int,
    *,
    today: date,
    expected_version: int | None = None,
) -> None:
    """
    Remove uma entrada sem desfazer o período dela: se era a última linha,
    o período vira "só datas pontuais" (placeholder). Excluir o período
    inteiro é com delete_future_period.
    """
    with atomic(db):
        entry = _get_entry(db, entry_id)
        prof = get_professional(db, entry.professional_id)
        _check_version(prof, expected_version)
        _ensure_mutable(entry, today)
        if entry.weekday == NO_FIXED_DAYS:
            raise IllegalDeletionError(
                "O período sem dias fixos só sai excluindo o período "
                f"(DELETE /periods/{entry.valid_from.isoformat()})"
            )

        siblings = (
            db.query(WeeklyScheduleEntry)
            .filter(
                WeeklyScheduleEntry.professional_id == entry.professional_id,
                WeeklyScheduleEntry.valid_from == entry.valid_from,
                WeeklyScheduleEntry.id != entry.id,
            )
            .all()
        )
        if not any(s.valid_to == entry.valid_to for s in siblings):
            db.add(
                _new_entry(
                    entry.professional_id,
                    weekday=NO_FIXED_DAYS,
                    start=None,
                    end=None,
                    slot=entry.slot_duration_minutes,
                    valid_from=entry.valid_from,
                    valid_to=entry.valid_to,
                )
            )
        db.delete(entry)
        _assert_period_partition(db, entry.professional_id, today)
        _bump_version(prof)
        record_audit(
            db,
            professional_id=entry.professional_id,
            action="DELETE",
            entity="schedule_entry",
            entity_id=entry_id,
        )
        log.info("schedule.entry.deleted", entry_id=entry_id)

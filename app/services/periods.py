"""
Agrupamento da agenda semanal em períodos de vigência.

Um período é o conjunto de entradas com o mesmo (valid_from, valid_to).
`valid_to` é o último dia do período (inclusive); None = período aberto.
Todo cálculo recebe `today` explícito: o "hoje" do usuário que fez o request,
obtido uma única vez por request (ver app.deps.get_today).
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, time, timedelta

from app.models.schedule import NO_FIXED_DAYS, WeeklyScheduleEntry
from app.utils.dates import to_date
from app.utils.time import sort_weekdays, summarize, weekday_rank

ONE_DAY = timedelta(days=1)


class PeriodStatus(str, enum.Enum):
    VIGENTE = "vigente"
    FUTURA = "futura"
    HISTORICO = "historico"


def classify(valid_from: date, valid_to: date | None, today: date) -> PeriodStatus:
    if valid_from > today:
        return PeriodStatus.FUTURA
    if valid_to is not None and valid_to < today:
        return PeriodStatus.HISTORICO
    return PeriodStatus.VIGENTE


@dataclass
class ValidityPeriodGroup:
    valid_from: date
    valid_to: date | None
    status: PeriodStatus
    entries: list[WeeklyScheduleEntry] = field(default_factory=list)

    @property
    def key(self) -> tuple[date, date | None]:
        return (self.valid_from, self.valid_to)

    @property
    def is_open(self) -> bool:
        return self.valid_to is None

    @property
    def is_placeholder(self) -> bool:
        """Período sem dias fixos: só linhas NO_FIXED_DAYS."""
        return bool(self.entries) and all(
            e.weekday == NO_FIXED_DAYS for e in self.entries
        )

    @property
    def weekday_entries(self) -> list[WeeklyScheduleEntry]:
        return [e for e in self.entries if e.weekday != NO_FIXED_DAYS]

    @property
    def active_weekdays(self) -> list[int]:
        return sort_weekdays({e.weekday for e in self.weekday_entries if e.active})

    @property
    def summary(self) -> str:
        return summarize(self.weekday_entries)

    def contains(self, day: date) -> bool:
        if day < self.valid_from:
            return False
        return self.valid_to is None or day <= self.valid_to

    def overlaps(self, other: ValidityPeriodGroup) -> bool:
        a_end = self.valid_to or date.max
        b_end = other.valid_to or date.max
        return self.valid_from <= b_end and other.valid_from <= a_end


def group_periods(
    entries: Iterable[WeeklyScheduleEntry], today: date
) -> list[ValidityPeriodGroup]:
    """
    Agrupa por (valid_from, valid_to), classifica em vigente/futura/historico
    e ordena: vigente primeiro, depois valid_from decrescente.
    """
    buckets: dict[tuple[date, date | None], list[WeeklyScheduleEntry]] = {}
    for e in entries:
        vf = to_date(e.valid_from) or date.min
        vt = to_date(e.valid_to)
        buckets.setdefault((vf, vt), []).append(e)

    groups = [
        ValidityPeriodGroup(
            valid_from=vf,
            valid_to=vt,
            status=classify(vf, vt, today),
            entries=sorted(
                rows,
                key=lambda r: (weekday_rank(r.weekday), r.start_time or time.min),
            ),
        )
        for (vf, vt), rows in buckets.items()
    ]
    groups.sort(key=lambda g: g.valid_from, reverse=True)
    groups.sort(key=lambda g: g.status != PeriodStatus.VIGENTE)
    return groups


def minimum_start_for_new_period(
    groups: Sequence[ValidityPeriodGroup], today: date
) -> date:
    """
    Menor data em que um período novo pode começar: nunca antes de hoje e
    sempre depois do início (e do fim, se houver) de todo período vigente ou futuro.
    """
    minimum = today
    for g in groups:
        if g.status == PeriodStatus.HISTORICO:
            continue
        minimum = max(minimum, g.valid_from + ONE_DAY)
        if g.valid_to is not None:
            minimum = max(minimum, g.valid_to + ONE_DAY)
    return minimum


def current_group(groups: Sequence[ValidityPeriodGroup]) -> ValidityPeriodGroup | None:
    return next((g for g in groups if g.status == PeriodStatus.VIGENTE), None)


def open_group(groups: Sequence[ValidityPeriodGroup]) -> ValidityPeriodGroup | None:
    opened = [g for g in groups if g.is_open]
    return max(opened, key=lambda g: g.valid_from) if opened else None


def future_groups(groups: Sequence[ValidityPeriodGroup]) -> list[ValidityPeriodGroup]:
    return [g for g in groups if g.status == PeriodStatus.FUTURA]


def latest_future_group(
    groups: Sequence[ValidityPeriodGroup],
) -> ValidityPeriodGroup | None:
    futures = future_groups(groups)
    return max(futures, key=lambda g: g.valid_from) if futures else None


def find_group(
    groups: Sequence[ValidityPeriodGroup], valid_from: date
) -> ValidityPeriodGroup | None:
    return next((g for g in groups if g.valid_from == valid_from), None)


def previous_group(
    groups: Sequence[ValidityPeriodGroup], group: ValidityPeriodGroup
) -> ValidityPeriodGroup | None:
    before = [g for g in groups if g.valid_from < group.valid_from]
    return max(before, key=lambda g: g.valid_from) if before else None


def group_containing(
    groups: Sequence[ValidityPeriodGroup], day: date
) -> ValidityPeriodGroup | None:
    matching = [g for g in groups if g.contains(day)]
    return max(matching, key=lambda g: g.valid_from) if matching else None


def find_overlapping_groups(
    groups: Sequence[ValidityPeriodGroup],
) -> list[tuple[ValidityPeriodGroup, ValidityPeriodGroup]]:
    ordered = sorted(groups, key=lambda g: g.valid_from)
    return [
        (a, b)
        for i, a in enumerate(ordered)
        for b in ordered[i + 1 :]
        if a.overlaps(b)
    ]

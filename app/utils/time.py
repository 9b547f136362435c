"""
Utilitários de janelas de horário e dias da semana.

Convenção de dia da semana da agenda: 0=domingo, 1=segunda ... 6=sábado.
Para exibição a ordem é sempre segunda → domingo (WEEKDAY_ORDER).
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date, time
from typing import Protocol

NO_SCHEDULE_TEXT = "—"
GROUP_SEPARATOR = " · "

WEEKDAY_ORDER: tuple[int, ...] = (1, 2, 3, 4, 5, 6, 0)

WEEKDAY_LABELS: dict[int, str] = {
    1: "Segunda",
    2: "Terça",
    3: "Quarta",
    4: "Quinta",
    5: "Sexta",
    6: "Sábado",
    0: "Domingo",
}

WEEKDAY_SHORT_LABELS: dict[int, str] = {
    1: "Seg",
    2: "Ter",
    3: "Qua",
    4: "Qui",
    5: "Sex",
    6: "Sáb",
    0: "Dom",
}

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")

Clock = str | time


class _WindowLike(Protocol):
    weekday: int
    start_time: time | None
    end_time: time | None
    active: bool


def parse_clock(value: Clock) -> time:
    """'HH:MM' ou 'HH:MM:SS' (ou datetime.time) -> time sem tz."""
    if isinstance(value, time):
        return value.replace(tzinfo=None, microsecond=0)
    m = _CLOCK_RE.match(value.strip())
    if not m:
        raise ValueError(f"Horário inválido: {value!r}")
    h, mi, s = int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)
    try:
        return time(h, mi, s)
    except ValueError:
        raise ValueError(f"Horário inválido: {value!r}") from None


def to_minutes(value: Clock) -> int:
    t = parse_clock(value)
    return t.hour * 60 + t.minute


def normalize_clock(value: Clock) -> str:
    """Trunca para 'HH:MM' (exibição)."""
    t = parse_clock(value)
    return f"{t.hour:02d}:{t.minute:02d}"


def expand_clock(value: Clock) -> str:
    """Expande para 'HH:MM:SS' (formato persistido e trafegado)."""
    t = parse_clock(value)
    return f"{t.hour:02d}:{t.minute:02d}:{t.second:02d}"


def overlaps(start_a: Clock, end_a: Clock, start_b: Clock, end_b: Clock) -> bool:
    """Sobreposição de [start, end) em minutos; pontas que se tocam não sobrepõem."""
    sa, ea = to_minutes(start_a), to_minutes(end_a)
    sb, eb = to_minutes(start_b), to_minutes(end_b)
    return sa < eb and sb < ea


def js_weekday(d: date) -> int:
    """date -> 0=domingo ... 6=sábado (date.weekday() é 0=segunda)."""
    return (d.weekday() + 1) % 7


def weekday_label(weekday: int) -> str:
    return WEEKDAY_LABELS.get(weekday, "")


def weekday_short_label(weekday: int) -> str:
    return WEEKDAY_SHORT_LABELS.get(weekday, "")


def weekday_rank(weekday: int) -> int:
    try:
        return WEEKDAY_ORDER.index(weekday)
    except ValueError:
        return len(WEEKDAY_ORDER)


def sort_weekdays(weekdays: Iterable[int]) -> list[int]:
    return sorted(weekdays, key=weekday_rank)


def summarize(entries: Iterable[_WindowLike]) -> str:
    """
    Resumo compacto: "Seg-Qua 09:00-12:00 · Sex 14:00-18:00".
    Só considera entradas ativas com janela (placeholder fica de fora).
    """
    by_window: dict[str, list[int]] = {}
    for e in entries:
        if not e.active or e.start_time is None or e.end_time is None:
            continue
        key = f"{normalize_clock(e.start_time)}-{normalize_clock(e.end_time)}"
        days = by_window.setdefault(key, [])
        if e.weekday not in days:
            days.append(e.weekday)

    if not by_window:
        return NO_SCHEDULE_TEXT

    parts = []
    for window, days in by_window.items():
        labels = [weekday_short_label(d) for d in sort_weekdays(days)]
        parts.append(f"{'-'.join(lbl for lbl in labels if lbl)} {window}")
    return GROUP_SEPARATOR.join(parts)

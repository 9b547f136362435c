from __future__ import annotations

from collections.abc import Iterator
from datetime import date, timedelta


def month_bounds(d: date) -> tuple[date, date]:
    """Primeiro e último dia do mês de d (janela padrão de listagem)."""
    start = d.replace(day=1)
    if start.month == 12:
        nxt = start.replace(year=start.year + 1, month=1)
    else:
        nxt = start.replace(month=start.month + 1)
    return start, nxt - timedelta(days=1)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Dias de start até end, inclusive."""
    cur = start
    while cur <= end:
        yield cur
        cur += timedelta(days=1)

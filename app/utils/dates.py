from __future__ import annotations

import re
from datetime import date, datetime

_DATE_PREFIX_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")


def to_date(value: date | datetime | str | None) -> date | None:
    """
    Normaliza para date. Aceita date, datetime, 'YYYY-MM-DD' ou timestamp com
    prefixo de data ('2025-03-01T00:00:00.000Z'). O prefixo é a data: não há
    conversão de fuso aqui.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if not text:
        return None
    m = _DATE_PREFIX_RE.match(text)
    if not m:
        raise ValueError(f"Data inválida: {value!r}")
    return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

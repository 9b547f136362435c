from __future__ import annotations

from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo

from app.core.settings import settings


def facility_tz() -> ZoneInfo:
    return ZoneInfo(settings.FACILITY_TZ)


def facility_today(now: datetime | None = None) -> date:
    """'Hoje' no fuso da clínica (fallback quando o cliente não informa o dele)."""
    now = now or datetime.now(UTC)
    return to_local(ensure_aware_utc(now)).date()


def ensure_aware_utc(dt: datetime) -> datetime:
    """
    Garante que dt é timezone-aware em UTC.
    - Se já vier aware: converte para UTC.
    - Se vier naive: ERRO (evita gravar errado).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Datetime naive recebido. Sempre use datetimes timezone-aware."
        )
    return dt.astimezone(UTC)


def as_aware_utc(dt: datetime) -> datetime:
    """Valores lidos do banco: SQLite devolve naive, mas gravamos sempre em UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_utc(dt: datetime, tz: ZoneInfo | None = None) -> datetime:
    """
    Converte um datetime (naive ou aware) para UTC.
    - Naive: assume o fuso da clínica.
    - Aware: só converte para UTC.
    """
    tz = tz or facility_tz()
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt.astimezone(UTC)


def to_local(dt_utc: datetime, tz: ZoneInfo | None = None) -> datetime:
    """
    Converte um datetime UTC (aware) para o fuso da clínica (aware).
    """
    tz = tz or facility_tz()
    if dt_utc.tzinfo is None:
        raise ValueError("Esperava datetime UTC timezone-aware.")
    return dt_utc.astimezone(tz)


def combine_local_to_utc(d: date, t: time, tz: ZoneInfo | None = None) -> datetime:
    """
    Combina uma data+hora interpretadas no fuso da clínica e retorna em UTC (aware).
    """
    tz = tz or facility_tz()
    if t.tzinfo is not None:
        t = time(t.hour, t.minute, t.second, t.microsecond)
    local_dt = datetime.combine(d, t).replace(tzinfo=tz)
    return local_dt.astimezone(UTC)


def iso_utc(dt: datetime) -> str:
    """
    Serializa em ISO 8601 sempre em UTC com sufixo 'Z'.
    """
    return as_aware_utc(dt).isoformat().replace("+00:00", "Z")

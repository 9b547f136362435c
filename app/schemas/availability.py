from __future__ import annotations

import datetime as dt

from pydantic import BaseModel


class TimeWindowOut(BaseModel):
    start: dt.time
    end: dt.time
    slot_duration_minutes: int | None = None


class BlockRefOut(BaseModel):
    id: int
    starts_at: str  # ISO UTC com 'Z'
    ends_at: str
    reason: str | None = None


class DayAvailabilityOut(BaseModel):
    professional_id: int
    date: dt.date
    weekday: int  # 0=domingo ... 6=sábado
    status: str
    is_available: bool
    reason: str
    windows: list[TimeWindowOut]
    blocks: list[BlockRefOut]
    period_from: dt.date | None = None
    period_to: dt.date | None = None

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field, constr, model_validator

from app.schemas.common import ClockStr
from app.utils.time import parse_clock


# ---------- datas pontuais ----------


class ExceptionIn(BaseModel):
    professional_id: int = Field(..., ge=1)
    date: dt.date
    start: ClockStr
    end: ClockStr
    slot_duration_minutes: int | None = Field(None, ge=5, le=480)
    observations: constr(max_length=500) | None = None
    replace: bool = Field(
        False, description="Se true, substitui a data pontual já existente no dia"
    )

    @model_validator(mode="after")
    def _check_times(self):
        if parse_clock(self.end) <= parse_clock(self.start):
            raise ValueError("end deve ser maior que start")
        return self


class ExceptionUpdateIn(BaseModel):
    date: dt.date | None = None
    start: ClockStr | None = None
    end: ClockStr | None = None
    slot_duration_minutes: int | None = Field(None, ge=5, le=480)
    observations: constr(max_length=500) | None = None


class ExceptionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    professional_id: int
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    slot_duration_minutes: int
    observations: str | None = None


# ---------- bloqueios ----------


class BlockIn(BaseModel):
    """
    Intervalo com data e hora (starts_at/ends_at, ISO-8601; sem offset = fuso da
    clínica) ou dia inteiro (`date` + `whole_day`).
    """

    professional_id: int = Field(..., ge=1)
    starts_at: dt.datetime | None = None
    ends_at: dt.datetime | None = None
    date: dt.date | None = None
    whole_day: bool = False
    reason: constr(max_length=255) | None = None

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.whole_day:
            if self.date is None:
                raise ValueError("date é obrigatório para bloqueio de dia inteiro")
        elif self.starts_at is None or self.ends_at is None:
            raise ValueError("Informe starts_at e ends_at (ou date + whole_day)")
        return self


class BlockUpdateIn(BaseModel):
    starts_at: dt.datetime | None = None
    ends_at: dt.datetime | None = None
    reason: constr(max_length=255) | None = None


class BlockOut(BaseModel):
    id: int
    professional_id: int
    starts_at: str  # ISO UTC com 'Z'
    ends_at: str
    starts_local: dt.datetime
    ends_local: dt.datetime
    reason: str | None = None

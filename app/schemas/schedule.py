from __future__ import annotations

from datetime import date, time

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.schemas.common import ClockStr
from app.services.schedule_mutation import WeekdayWindow
from app.utils.time import parse_clock


class WeekdayWindowIn(BaseModel):
    weekday: int = Field(..., ge=0, le=6, description="0=domingo ... 6=sábado")
    start: ClockStr
    end: ClockStr
    entry_id: int | None = Field(
        None, description="Entrada existente que esta janela substitui (modo A)"
    )

    @model_validator(mode="after")
    def _check_times(self):
        if parse_clock(self.end) <= parse_clock(self.start):
            raise ValueError("end deve ser maior que start")
        return self

    def to_window(self) -> WeekdayWindow:
        return WeekdayWindow(self.weekday, self.start, self.end, self.entry_id)


class WeekdaysUpdateIn(BaseModel):
    """Modo A: ajusta só os dias enviados no período aberto."""

    windows: list[WeekdayWindowIn] = Field(default_factory=list)
    slot_duration_minutes: int | None = Field(None, ge=5, le=480)
    active: bool = True
    valid_from: date | None = Field(
        None, description="Início quando ainda não há período aberto (padrão: hoje)"
    )
    expected_version: int | None = None


class PeriodIn(BaseModel):
    """Modo B: novo período a partir de valid_from; sem windows = só datas pontuais."""

    valid_from: date
    windows: list[WeekdayWindowIn] = Field(default_factory=list)
    slot_duration_minutes: int | None = Field(None, ge=5, le=480)
    expected_version: int | None = None


class EntryUpdateIn(BaseModel):
    start: ClockStr | None = None
    end: ClockStr | None = None
    slot_duration_minutes: int | None = Field(None, ge=5, le=480)
    active: bool | None = None
    expected_version: int | None = None


class VersionIn(BaseModel):
    expected_version: int | None = None


class ScheduleEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    professional_id: int
    weekday: int
    weekday_label: str
    start_time: time | None
    end_time: time | None
    slot_duration_minutes: int
    active: bool
    valid_from: date
    valid_to: date | None
    is_placeholder: bool


class PeriodGroupOut(BaseModel):
    valid_from: date
    valid_to: date | None
    status: str
    summary: str
    is_placeholder: bool
    active_weekdays: list[int]
    entries: list[ScheduleEntryOut]


class PeriodsViewOut(BaseModel):
    professional_id: int
    today: date
    minimum_start: date
    schedule_version: int
    periods: list[PeriodGroupOut]


class WeekdaysUpdateOut(BaseModel):
    created: int
    updated: int
    schedule_version: int
    valid_from: date | None = None
    valid_to: date | None = None
    entries: list[ScheduleEntryOut]


class PeriodChangeOut(BaseModel):
    valid_from: date
    valid_to: date | None
    schedule_version: int
    entries: list[ScheduleEntryOut]
    closed_period_from: date | None = None
    closed_period_to: date | None = None
    reopened_period_from: date | None = None
    deleted: int = 0

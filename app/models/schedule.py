from __future__ import annotations

import datetime as dt

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Time,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base

# Dia "sem dias fixos": linha que só reserva o período de vigência
NO_FIXED_DAYS = -1


class WeeklyScheduleEntry(Base):
    """
    Regra semanal recorrente: um dia da semana + uma janela + duração do turno,
    válida de `valid_from` até `valid_to` (inclusive). `valid_to` NULL = período aberto.
    weekday segue 0=domingo ... 6=sábado; NO_FIXED_DAYS marca o placeholder.
    """

    __tablename__ = "weekly_schedule_entries"
    __table_args__ = (
        CheckConstraint("weekday >= -1 AND weekday <= 6", name="weekday_range"),
        CheckConstraint(
            "weekday = -1 OR (start_time IS NOT NULL AND end_time IS NOT NULL "
            "AND end_time > start_time)",
            name="time_order",
        ),
        CheckConstraint(
            "slot_duration_minutes >= 5 AND slot_duration_minutes <= 480",
            name="slot_duration_range",
        ),
        CheckConstraint(
            "valid_to IS NULL OR valid_to >= valid_from", name="validity_order"
        ),
        Index("ix_wse_professional_validity", "professional_id", "valid_from"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    professional_id: Mapped[int] = mapped_column(
        ForeignKey("professionals.id", ondelete="CASCADE"), nullable=False, index=True
    )
    weekday: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[dt.time | None] = mapped_column(Time())
    end_time: Mapped[dt.time | None] = mapped_column(Time())
    slot_duration_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=30
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    valid_from: Mapped[dt.date] = mapped_column(Date, nullable=False)
    valid_to: Mapped[dt.date | None] = mapped_column(Date)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: dt.datetime.now(tz=dt.UTC),
        nullable=False,
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: dt.datetime.now(tz=dt.UTC),
        onupdate=lambda: dt.datetime.now(tz=dt.UTC),
        nullable=False,
    )

    professional = relationship("Professional", back_populates="schedule_entries")

    @property
    def is_placeholder(self) -> bool:
        return self.weekday == NO_FIXED_DAYS

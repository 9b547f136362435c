"""
Erros de domínio da agenda.

Cada erro carrega o status HTTP e um `detail()` serializável; o handler em
app.main converte para JSON. Nenhum deles é levantado depois de uma escrita
parcial: validações rodam antes e `atomic()` faz rollback do resto.
"""

from __future__ import annotations

from datetime import date
from typing import Any


class ScheduleError(Exception):
    status_code: int = 400
    code: str = "schedule_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def detail(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code}


class ValidationError(ScheduleError):
    status_code = 400
    code = "validation_error"


class NotFoundError(ScheduleError):
    status_code = 404
    code = "not_found"


class OverlapError(ScheduleError):
    status_code = 409
    code = "overlap"

    def __init__(self, weekdays: list[int], labels: list[str]):
        super().__init__(
            "O profissional já tem horários em: "
            f"{', '.join(labels)}. Não se podem sobrepor."
        )
        self.weekdays = weekdays
        self.labels = labels

    def detail(self) -> dict[str, Any]:
        return {**super().detail(), "weekdays": self.weekdays, "labels": self.labels}


class InvalidPeriodStartError(ScheduleError):
    status_code = 422
    code = "invalid_period_start"

    def __init__(self, requested: date, minimum_start: date):
        super().__init__(
            f"A data de início ({requested.isoformat()}) deve ser posterior ao "
            f"período vigente (mínimo {minimum_start.isoformat()})."
        )
        self.requested = requested
        self.minimum_start = minimum_start

    def detail(self) -> dict[str, Any]:
        return {
            **super().detail(),
            "requested": self.requested.isoformat(),
            "minimum_start": self.minimum_start.isoformat(),
        }


class IllegalDeletionError(ScheduleError):
    status_code = 409
    code = "illegal_deletion"

    def __init__(self, message: str, latest_future: date | None = None):
        super().__init__(message)
        self.latest_future = latest_future

    def detail(self) -> dict[str, Any]:
        return {
            **super().detail(),
            "latest_future": self.latest_future.isoformat()
            if self.latest_future
            else None,
        }


class DuplicateExceptionError(ScheduleError):
    status_code = 409
    code = "duplicate_exception"

    def __init__(self, day: date, existing_id: int):
        super().__init__(
            f"Já existe uma data pontual em {day.isoformat()} para este profissional."
        )
        self.day = day
        self.existing_id = existing_id

    def detail(self) -> dict[str, Any]:
        return {
            **super().detail(),
            "date": self.day.isoformat(),
            "existing_id": self.existing_id,
        }


class ConcurrentEditError(ScheduleError):
    status_code = 409
    code = "concurrent_edit"

    def __init__(self, expected: int, current: int):
        super().__init__(
            "A agenda foi alterada por outra pessoa; recarregue e tente novamente."
        )
        self.expected = expected
        self.current = current

    def detail(self) -> dict[str, Any]:
        return {**super().detail(), "expected": self.expected, "current": self.current}


class TransactionFailure(ScheduleError):
    status_code = 500
    code = "transaction_failure"

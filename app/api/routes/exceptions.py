# app/api/routes/exceptions.py
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas.overlays import ExceptionIn, ExceptionOut, ExceptionUpdateIn
from app.services import overlays

router = APIRouter(prefix="/exceptions", tags=["exceptions"])


@router.get("", response_model=list[ExceptionOut])
def list_exceptions(
    professional_id: int | None = Query(None, ge=1),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    db: Session = Depends(get_db),
):
    rows = overlays.list_exceptions(db, professional_id, date_from, date_to)
    return [ExceptionOut.model_validate(r) for r in rows]


@router.post("", response_model=ExceptionOut, status_code=201)
def create_exception(payload: ExceptionIn, db: Session = Depends(get_db)):
    row = overlays.create_exception(
        db,
        payload.professional_id,
        payload.date,
        payload.start,
        payload.end,
        slot_duration_minutes=payload.slot_duration_minutes,
        observations=payload.observations,
        replace=payload.replace,
    )
    return ExceptionOut.model_validate(row)


@router.put("/{exception_id}", response_model=ExceptionOut)
def update_exception(
    exception_id: int, payload: ExceptionUpdateIn, db: Session = Depends(get_db)
):
    extra = {}
    # observations ausente = manter; null explícito = limpar
    if "observations" in payload.model_fields_set:
        extra["observations"] = payload.observations
    row = overlays.update_exception(
        db,
        exception_id,
        day=payload.date,
        start=payload.start,
        end=payload.end,
        slot_duration_minutes=payload.slot_duration_minutes,
        **extra,
    )
    return ExceptionOut.model_validate(row)


@router.delete("/{exception_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_exception(exception_id: int, db: Session = Depends(get_db)):
    overlays.delete_exception(db, exception_id)

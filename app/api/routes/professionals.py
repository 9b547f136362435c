# app/api/routes/professionals.py
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.audit.helpers import record_audit
from app.db import atomic, get_db
from app.deps import get_professional_or_404, get_today
from app.models.professional import Professional
from app.schemas.professionals import ProfessionalCreateIn, ProfessionalOut
from app.services.periods import current_group
from app.services.schedule_mutation import load_groups

router = APIRouter(prefix="/professionals", tags=["professionals"])


def _professional_out(
    db: Session, p: Professional, today: date | None = None
) -> ProfessionalOut:
    summary = None
    if today is not None:
        group = current_group(load_groups(db, p.id, today))
        summary = group.summary if group else None
    return ProfessionalOut(
        id=p.id,
        name=p.name,
        speciality=p.speciality,
        is_active=p.is_active,
        schedule_version=p.schedule_version,
        schedule_summary=summary,
    )


@router.post("", response_model=ProfessionalOut, status_code=201)
def create_professional(payload: ProfessionalCreateIn, db: Session = Depends(get_db)):
    with atomic(db):
        p = Professional(
            name=payload.name.strip(),
            speciality=(payload.speciality or None),
            is_active=bool(payload.is_active)
            if payload.is_active is not None
            else True,
            schedule_version=0,
        )
        db.add(p)
        db.flush()
        record_audit(
            db,
            professional_id=p.id,
            action="CREATE",
            entity="professional",
            entity_id=p.id,
        )
    return _professional_out(db, p)


@router.get("", response_model=list[ProfessionalOut])
def list_professionals(
    include_inactive: bool = Query(False),
    q: str | None = Query(None, description="Busca por nome/especialidade (contém)"),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    qs = db.query(Professional)
    if not include_inactive:
        qs = qs.filter(Professional.is_active == True)  # noqa: E712
    if q:
        like = f"%{q.strip()}%"
        qs = qs.filter(
            or_(Professional.name.ilike(like), Professional.speciality.ilike(like))
        )
    rows = qs.order_by(Professional.name.asc()).all()
    return [_professional_out(db, p, today) for p in rows]


@router.get("/{professional_id}", response_model=ProfessionalOut)
def get_professional(
    p: Professional = Depends(get_professional_or_404),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    return _professional_out(db, p, today)

# app/api/routes/blocks.py
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps import get_today
from app.models.block_period import BlockPeriod
from app.schemas.overlays import BlockIn, BlockOut, BlockUpdateIn
from app.services import overlays
from app.utils.tz import as_aware_utc, iso_utc, to_local

router = APIRouter(prefix="/blocks", tags=["blocks"])


def _block_out(b: BlockPeriod) -> BlockOut:
    starts, ends = as_aware_utc(b.starts_at), as_aware_utc(b.ends_at)
    return BlockOut(
        id=b.id,
        professional_id=b.professional_id,
        starts_at=iso_utc(starts),
        ends_at=iso_utc(ends),
        starts_local=to_local(starts),
        ends_local=to_local(ends),
        reason=b.reason,
    )


@router.get("", response_model=list[BlockOut])
def list_blocks(
    professional_id: int | None = Query(None, ge=1),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    db: Session = Depends(get_db),
):
    rows = overlays.list_blocks(db, professional_id, date_from, date_to)
    return [_block_out(b) for b in rows]


@router.post("", response_model=BlockOut, status_code=201)
def create_block(
    payload: BlockIn,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    if payload.whole_day:
        starts_at, ends_at = overlays.whole_day_bounds(payload.date)
    else:
        starts_at, ends_at = payload.starts_at, payload.ends_at
    row = overlays.create_block(
        db,
        payload.professional_id,
        starts_at,
        ends_at,
        today=today,
        reason=payload.reason,
    )
    return _block_out(row)


@router.put("/{block_id}", response_model=BlockOut)
def update_block(
    block_id: int,
    payload: BlockUpdateIn,
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    extra = {}
    if "reason" in payload.model_fields_set:
        extra["reason"] = payload.reason
    row = overlays.update_block(
        db,
        block_id,
        today=today,
        starts_at=payload.starts_at,
        ends_at=payload.ends_at,
        **extra,
    )
    return _block_out(row)


@router.delete("/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_block(block_id: int, db: Session = Depends(get_db)):
    overlays.delete_block(db, block_id)

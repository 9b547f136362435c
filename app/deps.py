from __future__ import annotations

from datetime import date

from fastapi import Depends, Header, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.professional import Professional
from app.utils.dates import to_date
from app.utils.tz import facility_today


def get_today(
    today: str | None = Query(
        None, description="'Hoje' do cliente (YYYY-MM-DD); padrão: data da clínica"
    ),
    x_client_today: str | None = Header(None, alias="X-Client-Today"),
) -> date:
    """
    Resolve o "hoje" UMA vez por request: query `today`, depois o header
    X-Client-Today, por fim a data local da clínica.
    """
    raw = today or x_client_today
    if not raw:
        return facility_today()
    try:
        return to_date(raw)
    except ValueError:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST, f"Data de referência inválida: {raw!r}"
        ) from None


def get_professional_or_404(
    professional_id: int,
    db: Session = Depends(get_db),  # noqa: B008
) -> Professional:
    p = db.get(Professional, professional_id)
    if not p:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Profissional não encontrado")
    return p

from __future__ import annotations

import contextvars
from datetime import UTC, datetime

from fastapi import Request
from sqlalchemy.orm import Session

from app.core.logging import get_request_id
from app.models.audit_log import AuditLog

client_ip_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "client_ip", default=None
)


def get_client_ip(request: Request) -> str | None:
    # Respeita proxy (Railway/Render) → 1º IP do X-Forwarded-For
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    xri = request.headers.get("x-real-ip")
    if xri:
        return xri.strip()
    return request.client.host if request.client else None


def record_audit(
    db: Session,
    *,
    professional_id: int | None,
    action: str,
    entity: str,
    entity_id: int | None = None,
) -> AuditLog:
    """
    Inclui o log na MESMA transação da mutação: se ela fizer rollback, o log some junto.
    IP e request id vêm do contexto do request (RequestContextMiddleware).
    """
    log = AuditLog(
        professional_id=professional_id,
        action=action,
        entity=entity,
        entity_id=entity_id,
        timestamp_utc=datetime.now(UTC),
        ip=client_ip_ctx.get(),
        request_id=get_request_id(),
    )
    db.add(log)
    return log

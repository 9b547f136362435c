from __future__ import annotations

import time
from collections.abc import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.audit.helpers import client_ip_ctx, get_client_ip
from app.core.logging import clear_request_context, get_logger, set_request_id


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        incoming = request.headers.get("X-Request-ID")
        rid = set_request_id(incoming)
        ip_token = client_ip_ctx.set(get_client_ip(request))

        client_today = request.query_params.get("today") or request.headers.get(
            "X-Client-Today"
        )
        if client_today:
            structlog.contextvars.bind_contextvars(client_today=client_today)

        log = get_logger().bind(path=request.url.path, method=request.method)
        log.info("request.start")

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            log.exception("request.error", error=str(exc))
            raise
        finally:
            duration_ms = (time.perf_counter() - started) * 1000.0
            client_ip_ctx.reset(ip_token)

        response.headers["X-Request-ID"] = rid

        log.bind(
            status_code=response.status_code, duration_ms=round(duration_ms, 2)
        ).info("request.end")
        clear_request_context()
        return response

"""
Middleware de Request ID e Logging.

Adiciona X-Request-ID a cada request para rastreabilidade, publica o id
no contexto de logging e loga tempo de execução.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from gigconnect.infrastructure.config.logging import request_id_var

logger = logging.getLogger("api.access")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Injeta um request_id único em cada request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        token = request_id_var.set(request_id[:8])

        try:
            start = time.perf_counter()
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - start) * 1000

            response.headers["X-Request-ID"] = request_id
            logger.info(
                "%s %s %d %.1fms",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
            )
            return response
        finally:
            request_id_var.reset(token)

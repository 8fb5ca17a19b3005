"""
Exception handlers globais — converte exceções de domínio/aplicação
em respostas HTTP padronizadas: {"error", "detail", "request_id"}.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gigconnect.domain.shared.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    InvalidStateError,
    NotFoundError,
    UpstreamError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)

# exceção → (status HTTP, código de erro)
ERROR_CODES: dict[type[DomainError], tuple[int, str]] = {
    NotFoundError: (status.HTTP_404_NOT_FOUND, "not_found"),
    AuthorizationError: (status.HTTP_403_FORBIDDEN, "forbidden"),
    InvalidStateError: (status.HTTP_400_BAD_REQUEST, "invalid_state"),
    ValidationFailedError: (status.HTTP_400_BAD_REQUEST, "validation_error"),
    ConflictError: (status.HTTP_409_CONFLICT, "conflict"),
    UpstreamError: (status.HTTP_502_BAD_GATEWAY, "upstream_error"),
}


def describe_error(exc: DomainError) -> tuple[int, dict]:
    """Status e corpo (sem request_id) para uma exceção de domínio."""
    for exc_type in type(exc).__mro__:
        if exc_type in ERROR_CODES:
            status_code, code = ERROR_CODES[exc_type]
            break
    else:
        status_code, code = status.HTTP_400_BAD_REQUEST, "bad_request"

    body: dict = {"error": code, "detail": exc.message}
    if isinstance(exc, ValidationFailedError) and exc.errors:
        body["errors"] = exc.errors
    return status_code, body


def _request_id(request: Request):
    return getattr(request.state, "request_id", None)


def register_exception_handlers(app: FastAPI) -> None:
    """Registra todos os handlers de exceção na app FastAPI."""

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        status_code, body = describe_error(exc)
        if isinstance(exc, UpstreamError):
            logger.error(
                "Falha upstream (%s) em %s %s: %s",
                exc.service,
                request.method,
                request.url.path,
                exc.message,
            )
        else:
            logger.info(
                "%s em %s %s: %s",
                body["error"],
                request.method,
                request.url.path,
                exc.message,
            )
        body["request_id"] = _request_id(request)
        return JSONResponse(status_code=status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": "validation_error",
                "detail": "Dados da requisição inválidos",
                "errors": errors,
                "request_id": _request_id(request),
            },
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled exception on %s %s (user=%s)",
            request.method,
            request.url.path,
            getattr(request.state, "user_id", None),
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "internal_server_error",
                "detail": "Erro interno do servidor",
                "request_id": _request_id(request),
            },
        )

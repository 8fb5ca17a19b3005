"""
Exceções de domínio.

Cada classe corresponde a uma categoria de erro reportada ao cliente;
o mapeamento para HTTP fica em presentation/middleware/exception_handlers.py.
"""

from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base para todos os erros de negócio."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    def __init__(self, resource: str, resource_id: Any) -> None:
        super().__init__(f"{resource} {resource_id} não encontrado")
        self.resource = resource
        self.resource_id = resource_id


class AuthorizationError(DomainError):
    """Acesso negado (não participante ou papel errado)."""
    pass


class InvalidStateError(DomainError):
    """A operação não é permitida no status atual do ticket."""
    pass


class ValidationFailedError(DomainError):
    def __init__(
        self,
        message: str,
        errors: Optional[list[dict[str, str]]] = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailedError":
        return cls(message, errors=[{"field": field, "message": message}])


class ConflictError(DomainError):
    """Versão do documento desatualizada (escrita concorrente)."""
    pass


class UpstreamError(DomainError):
    """Falha de um serviço externo (IA, storage, e-mail)."""

    def __init__(self, service: str, message: str) -> None:
        super().__init__(message)
        self.service = service

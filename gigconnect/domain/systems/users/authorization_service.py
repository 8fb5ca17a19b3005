"""
Serviço de domínio para autorização de tickets.

Centraliza o guard de participantes — lógica pura de domínio, sem dependências externas.
"""

from __future__ import annotations

from gigconnect.domain.shared.exceptions import AuthorizationError
from gigconnect.domain.systems.tickets.entity import Ticket
from gigconnect.domain.systems.users.entity import User


class AuthorizationService:
    """Regras de acesso aos tickets."""

    @staticmethod
    def ensure_participant(actor: User, ticket: Ticket) -> None:
        if not ticket.is_participant(actor.id):
            raise AuthorizationError(
                "Apenas participantes do ticket podem realizar esta ação"
            )

"""Interface (porta) do repositório de Tickets — camada de domínio."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from .entity import Ticket


class ITicketRepository(ABC):

    @abstractmethod
    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        """Leitura sempre atualizada do documento completo."""
        ...

    @abstractmethod
    async def list_for_participant(self, user_id: str) -> Sequence[Ticket]:
        """Tickets onde o usuário é vendedor ou comprador, mais recentes primeiro."""
        ...

    @abstractmethod
    async def create(self, ticket: Ticket) -> Ticket:
        ...

    @abstractmethod
    async def update(self, ticket: Ticket) -> Ticket:
        """Grava o documento inteiro; versão desatualizada → ConflictError."""
        ...

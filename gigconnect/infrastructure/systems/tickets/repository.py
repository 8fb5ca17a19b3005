"""Implementação concreta do repositório de Tickets — documento único com versão otimista."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from gigconnect.domain.shared.exceptions import ConflictError, NotFoundError
from gigconnect.domain.systems.tickets.entity import Ticket, TicketStatus
from gigconnect.domain.systems.tickets.repository import ITicketRepository
from gigconnect.infrastructure.database.models import TicketModel


class TicketRepository(ITicketRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @staticmethod
    def _to_entity(model: TicketModel) -> Ticket:
        return Ticket(
            id=model.id,
            gig_id=model.gig_id,
            seller_id=model.seller_id,
            buyer_id=model.buyer_id,
            status=TicketStatus(model.status),
            agreed_price=model.agreed_price,
            messages=list(model.messages or []),
            timeline=list(model.timeline or []),
            version=model.version,
            created_at=model.created_at,
            updated_at=model.updated_at,
            gig_title=model.gig.title if model.gig else "",
            gig_price=model.gig.price if model.gig else None,
            seller_name=model.seller.full_name if model.seller else "",
            buyer_name=model.buyer.full_name if model.buyer else "",
        )

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        # populate_existing: o documento pode ter mudado desde a última leitura na sessão
        stmt = (
            select(TicketModel)
            .where(TicketModel.id == ticket_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.unique().scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_for_participant(self, user_id: str) -> Sequence[Ticket]:
        stmt = (
            select(TicketModel)
            .where(or_(TicketModel.seller_id == user_id, TicketModel.buyer_id == user_id))
            .order_by(TicketModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.unique().scalars().all()]

    async def create(self, ticket: Ticket) -> Ticket:
        model = TicketModel(
            id=ticket.id,
            gig_id=ticket.gig_id,
            seller_id=ticket.seller_id,
            buyer_id=ticket.buyer_id,
            status=ticket.status.value,
            agreed_price=ticket.agreed_price,
            messages=ticket.messages_as_dicts(),
            timeline=ticket.timeline_as_dicts(),
            created_at=ticket.created_at,
            updated_at=ticket.updated_at,
        )
        self._session.add(model)
        await self._session.flush()
        return await self.get_by_id(model.id)

    async def update(self, ticket: Ticket) -> Ticket:
        model = await self._session.get(TicketModel, ticket.id)
        if not model:
            raise NotFoundError("Ticket", ticket.id)
        if model.version != ticket.version:
            raise ConflictError(
                f"Ticket {ticket.id} foi alterado por outra operação; recarregue e tente novamente"
            )

        model.status = ticket.status.value
        model.agreed_price = ticket.agreed_price
        model.messages = ticket.messages_as_dicts()
        model.timeline = ticket.timeline_as_dicts()
        model.updated_at = ticket.updated_at
        try:
            await self._session.flush()
        except StaleDataError as exc:
            raise ConflictError(
                f"Ticket {ticket.id} foi alterado por outra operação; recarregue e tente novamente"
            ) from exc

        ticket.version = model.version
        return ticket

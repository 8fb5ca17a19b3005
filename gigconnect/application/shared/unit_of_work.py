"""
Unit of Work — transação única por operação e despacho de eventos.

Os eventos coletados dos aggregates só são despachados depois de um commit
bem-sucedido; em rollback são descartados.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from gigconnect.domain.events.base import AggregateRoot, DomainEvent
from gigconnect.application.shared.event_dispatcher import dispatch_events


class UnitOfWork:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._pending_events: list[DomainEvent] = []

    def collect_events_from(self, *aggregates: AggregateRoot) -> None:
        for agg in aggregates:
            self._pending_events.extend(agg.collect_events())

    async def commit(self) -> None:
        await self._session.commit()
        events, self._pending_events = self._pending_events, []
        if events:
            await dispatch_events(events)

    async def rollback(self) -> None:
        await self._session.rollback()
        self._pending_events.clear()

"""Implementação concreta do repositório de Gigs."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from gigconnect.domain.shared.exceptions import NotFoundError
from gigconnect.domain.systems.gigs.entity import Gig
from gigconnect.domain.systems.gigs.repository import IGigRepository
from gigconnect.infrastructure.database.models import GigModel


class GigRepository(IGigRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @staticmethod
    def _to_entity(model: GigModel) -> Gig:
        return Gig(
            id=model.id,
            title=model.title,
            seller_id=model.seller_id,
            price=model.price,
            rating=model.rating or 0.0,
            status=model.status,
            created_at=model.created_at,
        )

    async def get_by_id(self, gig_id: str) -> Optional[Gig]:
        model = await self._session.get(GigModel, gig_id)
        return self._to_entity(model) if model else None

    async def create(self, gig: Gig) -> Gig:
        model = GigModel(
            id=gig.id,
            title=gig.title,
            seller_id=gig.seller_id,
            price=gig.price,
            rating=gig.rating,
            status=gig.status,
            created_at=gig.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def update(self, gig: Gig) -> Gig:
        model = await self._session.get(GigModel, gig.id)
        if not model:
            raise NotFoundError("Gig", gig.id)
        model.title = gig.title
        model.price = gig.price
        model.rating = gig.rating
        model.status = gig.status
        await self._session.flush()
        return self._to_entity(model)

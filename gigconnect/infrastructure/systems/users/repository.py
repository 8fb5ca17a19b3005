"""Implementação concreta do repositório de Users — SQLAlchemy."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gigconnect.domain.shared.exceptions import NotFoundError
from gigconnect.domain.systems.users.entity import User
from gigconnect.domain.systems.users.repository import IUserRepository
from gigconnect.infrastructure.database.models import UserModel


class UserRepository(IUserRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            full_name=model.full_name,
            email=model.email,
            profile_picture=model.profile_picture,
            credits=model.credits or 0.0,
            gigs_completed=model.gigs_completed or 0,
            total_gigs=model.total_gigs or 0,
            completion_rate=model.completion_rate or 0.0,
            order_history=list(model.order_history or []),
            ratings=list(model.ratings or []),
            is_active=model.is_active,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def get_by_id(self, user_id: str) -> Optional[User]:
        model = await self._session.get(UserModel, user_id)
        return self._to_entity(model) if model else None

    async def get_many(self, user_ids: Sequence[str]) -> dict[str, User]:
        if not user_ids:
            return {}
        stmt = select(UserModel).where(UserModel.id.in_(set(user_ids)))
        result = await self._session.execute(stmt)
        return {m.id: self._to_entity(m) for m in result.scalars().all()}

    async def create(self, user: User) -> User:
        model = UserModel(
            id=user.id,
            full_name=user.full_name,
            email=user.email,
            profile_picture=user.profile_picture,
            credits=user.credits,
            gigs_completed=user.gigs_completed,
            total_gigs=user.total_gigs,
            completion_rate=user.completion_rate,
            order_history=[o.to_dict() for o in user.order_history],
            ratings=[r.to_dict() for r in user.ratings],
            is_active=user.is_active,
            created_at=user.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def update(self, user: User) -> User:
        model = await self._session.get(UserModel, user.id)
        if not model:
            raise NotFoundError("Usuário", user.id)
        model.full_name = user.full_name
        model.profile_picture = user.profile_picture
        model.credits = user.credits
        model.gigs_completed = user.gigs_completed
        model.total_gigs = user.total_gigs
        model.completion_rate = user.completion_rate
        model.order_history = [o.to_dict() for o in user.order_history]
        model.ratings = [r.to_dict() for r in user.ratings]
        model.is_active = user.is_active
        model.updated_at = user.updated_at
        await self._session.flush()
        return self._to_entity(model)

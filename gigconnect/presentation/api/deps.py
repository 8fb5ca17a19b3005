"""
Dependências de autenticação JWT e factories de DI.

O login em si é externo; aqui só se emite (seed/testes) e valida o access token.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Path, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from gigconnect.application.shared.unit_of_work import UnitOfWork
from gigconnect.application.systems.tickets.use_cases import AIResponder
from gigconnect.domain.shared.exceptions import ValidationFailedError
from gigconnect.domain.systems.users.entity import User
from gigconnect.infrastructure.config import get_settings
from gigconnect.infrastructure.database import get_db
from gigconnect.infrastructure.services.file_storage import FileStorageService
from gigconnect.infrastructure.systems.gigs.repository import GigRepository
from gigconnect.infrastructure.systems.tickets.repository import TicketRepository
from gigconnect.infrastructure.systems.users.repository import UserRepository
from gigconnect.services import gemini_service

settings = get_settings()
# Emissão do token pertence ao fluxo de login externo
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

TICKET_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{32}$")


# ════════════════════════════════════════════════════════════════
# JWT
# ════════════════════════════════════════════════════════════════

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Decodifica e valida um token JWT. Raises JWTError."""
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


def user_id_from_token(token: str) -> Optional[str]:
    """Extrai o `sub` de um access token válido; None se inválido/expirado."""
    try:
        payload = decode_token(token)
    except JWTError:
        return None
    if payload.get("type") != "access":
        return None
    return payload.get("sub") or None


# ════════════════════════════════════════════════════════════════
# FASTAPI DEPENDENCIES
# ════════════════════════════════════════════════════════════════

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Extrai e valida o usuário do access token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Token inválido ou expirado",
        headers={"WWW-Authenticate": "Bearer"},
    )
    user_id = user_id_from_token(token)
    if not user_id:
        raise credentials_exception

    user = await UserRepository(db).get_by_id(user_id)
    if user is None:
        raise credentials_exception
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Garante que o usuário está ativo."""
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Usuário inativo",
        )
    return current_user


def valid_ticket_id(ticket_id: str = Path(..., description="Id do ticket (32 hex)")) -> str:
    if not TICKET_ID_PATTERN.fullmatch(ticket_id):
        raise ValidationFailedError.for_field("ticket_id", "Formato de id de ticket inválido")
    return ticket_id


# ════════════════════════════════════════════════════════════════
# DI FACTORIES — Repositórios, UoW e serviços externos
# ════════════════════════════════════════════════════════════════

def get_uow(db: AsyncSession = Depends(get_db)) -> UnitOfWork:
    return UnitOfWork(db)


def get_user_repo(db: AsyncSession = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_ticket_repo(db: AsyncSession = Depends(get_db)) -> TicketRepository:
    return TicketRepository(db)


def get_gig_repo(db: AsyncSession = Depends(get_db)) -> GigRepository:
    return GigRepository(db)


def get_file_storage() -> FileStorageService:
    return FileStorageService()


def get_ai_responder() -> AIResponder:
    return gemini_service.generate_negotiation_reply

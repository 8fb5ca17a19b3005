"""
Fixtures de teste — client HTTP + banco SQLite.

Usa SQLite async (aiosqlite) para testes rápidos sem Docker; as tabelas são
criadas e destruídas a cada teste.
"""

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Rotas de debug e headers de desenvolvimento ativos na suíte
os.environ["DEBUG"] = "true"

import gigconnect.application.shared.event_handlers as event_handlers
import gigconnect.main as main_module
import gigconnect.presentation.realtime.ticket_socket as ticket_socket
from gigconnect.application.dtos.ticket_dtos import OpenTicketCommand
from gigconnect.application.shared.event_dispatcher import clear_handlers
from gigconnect.application.shared.unit_of_work import UnitOfWork
from gigconnect.application.systems.tickets.use_cases import OpenTicketUseCase
from gigconnect.domain.systems.gigs.entity import Gig
from gigconnect.domain.systems.users.entity import User
from gigconnect.infrastructure.database.session import Base, get_db
from gigconnect.infrastructure.systems.gigs.repository import GigRepository
from gigconnect.infrastructure.systems.tickets.repository import TicketRepository
from gigconnect.infrastructure.systems.users.repository import UserRepository
from gigconnect.main import app
from gigconnect.presentation.api.deps import create_access_token
from gigconnect.presentation.api.limiter import attachment_limiter, message_limiter

# ── SQLite async para testes ──
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)

SELLER_ID = "a" * 32
BUYER_ID = "b" * 32
OUTSIDER_ID = "c" * 32


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# Override dependency
app.dependency_overrides[get_db] = override_get_db

# Disable rate limiting for tests
async def no_op_limiter(): pass
app.dependency_overrides[message_limiter] = no_op_limiter
app.dependency_overrides[attachment_limiter] = no_op_limiter


@pytest_asyncio.fixture(autouse=True)
async def setup_db(monkeypatch):
    """Cria/destrói tabelas antes/depois de cada teste."""
    # Código fora do request (handlers, socket, health) abre sessões próprias
    monkeypatch.setattr(event_handlers, "AsyncSessionLocal", TestSessionLocal)
    monkeypatch.setattr(ticket_socket, "AsyncSessionLocal", TestSessionLocal)
    monkeypatch.setattr(main_module, "AsyncSessionLocal", TestSessionLocal)
    message_limiter.reset()
    attachment_limiter.reset()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    clear_handlers()
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def participants() -> dict[str, User]:
    """Vendedor, comprador e um terceiro sem relação com o ticket."""
    async with TestSessionLocal() as session:
        repo = UserRepository(session)
        seller = await repo.create(User(id=SELLER_ID, full_name="Ana Vendedora", email="seller@test.com"))
        buyer = await repo.create(User(id=BUYER_ID, full_name="Bruno Comprador", email="buyer@test.com", total_gigs=1))
        outsider = await repo.create(User(id=OUTSIDER_ID, full_name="Carla Curiosa", email="outsider@test.com"))
        await session.commit()
    return {"seller": seller, "buyer": buyer, "outsider": outsider}


@pytest_asyncio.fixture
async def gig(participants) -> Gig:
    async with TestSessionLocal() as session:
        created = await GigRepository(session).create(Gig(
            id="d" * 32, title="Logo para startup", seller_id=SELLER_ID, price=1500.0,
        ))
        await session.commit()
    return created


@pytest_asyncio.fixture
async def ticket_id(participants, gig) -> str:
    """Ticket aberto pelo fluxo de aceite (vendedor → comprador)."""
    async with TestSessionLocal() as session:
        users = UserRepository(session)
        uc = OpenTicketUseCase(TicketRepository(session), users, GigRepository(session), UnitOfWork(session))
        result = await uc.execute(
            OpenTicketCommand(gig_id=gig.id, buyer_id=BUYER_ID),
            actor=participants["seller"],
        )
    return result.id


@pytest.fixture
def seller_token() -> str:
    return create_access_token({"sub": SELLER_ID})


@pytest.fixture
def buyer_token() -> str:
    return create_access_token({"sub": BUYER_ID})


@pytest.fixture
def outsider_token() -> str:
    return create_access_token({"sub": OUTSIDER_ID})


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def load_user(user_id: str) -> User:
    async with TestSessionLocal() as session:
        return await UserRepository(session).get_by_id(user_id)


async def load_gig(gig_id: str) -> Gig:
    async with TestSessionLocal() as session:
        return await GigRepository(session).get_by_id(gig_id)

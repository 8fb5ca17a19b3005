"""
Seed script — cria vendedor, comprador, gig e um ticket de demonstração.

Uso:
    python -m gigconnect.seed

Imprime os access tokens dos dois participantes para testar a API e o
canal realtime. Idempotente: não recria se o vendedor demo já existir.
"""

import asyncio
import uuid

from gigconnect.application.dtos.ticket_dtos import OpenTicketCommand
from gigconnect.application.shared.unit_of_work import UnitOfWork
from gigconnect.application.systems.tickets.use_cases import OpenTicketUseCase
from gigconnect.domain.systems.gigs.entity import Gig
from gigconnect.domain.systems.users.entity import User
from gigconnect.infrastructure.database.session import AsyncSessionLocal
from gigconnect.infrastructure.systems.gigs.repository import GigRepository
from gigconnect.infrastructure.systems.tickets.repository import TicketRepository
from gigconnect.infrastructure.systems.users.repository import UserRepository
from gigconnect.presentation.api.deps import create_access_token

SELLER_ID = uuid.uuid5(uuid.NAMESPACE_DNS, "seller.gigconnect.local").hex
BUYER_ID = uuid.uuid5(uuid.NAMESPACE_DNS, "buyer.gigconnect.local").hex


async def seed() -> None:
    async with AsyncSessionLocal() as session:
        users = UserRepository(session)
        gigs = GigRepository(session)

        seller = await users.get_by_id(SELLER_ID)
        if seller:
            print(f"ℹ️  Dados demo já existem (vendedor id={seller.id}). Seed ignorado.")
        else:
            seller = await users.create(User(
                id=SELLER_ID, full_name="Ana Vendedora", email="seller@gigconnect.local",
            ))
            await users.create(User(
                id=BUYER_ID, full_name="Bruno Comprador", email="buyer@gigconnect.local", total_gigs=1,
            ))
            gig = await gigs.create(Gig(
                id=uuid.uuid4().hex, title="Logo para startup", seller_id=SELLER_ID, price=1500.0,
            ))

            uc = OpenTicketUseCase(TicketRepository(session), users, gigs, UnitOfWork(session))
            ticket = await uc.execute(OpenTicketCommand(gig_id=gig.id, buyer_id=BUYER_ID), actor=seller)

            print("✅ Dados demo criados:")
            print(f"   Gig:    {gig.title} ({gig.id})")
            print(f"   Ticket: {ticket.id}")

    print(f"\n   Token vendedor:  {create_access_token({'sub': SELLER_ID})}")
    print(f"   Token comprador: {create_access_token({'sub': BUYER_ID})}")


def main():
    asyncio.run(seed())


if __name__ == "__main__":
    main()

"""
Event Handlers — transformam eventos de ticket em notificações por e-mail.

Cada handler carrega o destinatário numa sessão própria (fora do request),
renderiza o template e apenas enfileira; a entrega é do worker da fila.
Registrados na inicialização da app (gigconnect/main.py).
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from gigconnect.domain.events.ticket_events import (
    MessageSent,
    ParticipantNotificationEvent,
    PaymentConfirmed,
    PriceAccepted,
    PriceProposed,
    TicketClosed,
    TicketCompleted,
    TicketOpened,
    TicketStatusChanged,
)
from gigconnect.domain.systems.users.entity import User
from gigconnect.infrastructure.database.session import AsyncSessionLocal
from gigconnect.infrastructure.services import email_templates
from gigconnect.infrastructure.services.email_service import OutboundEmail
from gigconnect.infrastructure.services.notification_queue import notification_queue
from gigconnect.infrastructure.systems.gigs.repository import GigRepository
from gigconnect.infrastructure.systems.users.repository import UserRepository

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("gigconnect.audit")


async def _load_user(user_id: str) -> Optional[User]:
    async with AsyncSessionLocal() as session:
        return await UserRepository(session).get_by_id(user_id)


def _enqueue(recipient: User, subject: str, html: str, ticket_id: str) -> None:
    queued = notification_queue.enqueue(OutboundEmail(
        to=recipient.email,
        subject=subject,
        html=html,
        ticket_id=ticket_id,
    ))
    if queued:
        logger.info("Notificação enfileirada: ticket=%s para=%s", ticket_id, recipient.id)


async def _notify_participant(
    event: ParticipantNotificationEvent,
    render: Callable[[str, ParticipantNotificationEvent], tuple[str, str]],
) -> None:
    recipient = await _load_user(event.recipient_id)
    if recipient is None or not recipient.email:
        logger.warning(
            "Destinatário %s não encontrado; %s do ticket %s sem notificação",
            event.recipient_id,
            event.event_type,
            event.ticket_id,
        )
        return
    subject, html = render(recipient.full_name, event)
    _enqueue(recipient, subject, html, event.ticket_id)


# ════════════════════════════════════════════════════════════════
# NOTIFICAÇÕES
# ════════════════════════════════════════════════════════════════

async def handle_ticket_opened(event: TicketOpened) -> None:
    async with AsyncSessionLocal() as session:
        users = await UserRepository(session).get_many([event.buyer_id, event.seller_id])
        gig = await GigRepository(session).get_by_id(event.gig_id)
    buyer, seller = users.get(event.buyer_id), users.get(event.seller_id)
    if buyer is None or gig is None:
        logger.warning("Ticket %s aberto sem comprador/gig para notificar", event.ticket_id)
        return
    subject, html = email_templates.ticket_opened_template(
        buyer.full_name,
        event,
        gig_title=gig.title,
        seller_name=seller.full_name if seller else "o vendedor",
    )
    _enqueue(buyer, subject, html, event.ticket_id)


async def handle_message_sent(event: MessageSent) -> None:
    await _notify_participant(event, email_templates.new_message_template)


async def handle_price_proposed(event: PriceProposed) -> None:
    await _notify_participant(event, email_templates.price_proposed_template)


async def handle_price_accepted(event: PriceAccepted) -> None:
    await _notify_participant(event, email_templates.price_accepted_template)


async def handle_payment_confirmed(event: PaymentConfirmed) -> None:
    await _notify_participant(event, email_templates.payment_received_template)


async def handle_ticket_completed(event: TicketCompleted) -> None:
    await _notify_participant(event, email_templates.gig_completed_template)


async def handle_ticket_closed(event: TicketClosed) -> None:
    await _notify_participant(event, email_templates.ticket_closed_template)


# ════════════════════════════════════════════════════════════════
# AUDIT
# ════════════════════════════════════════════════════════════════

def handle_status_changed(event: TicketStatusChanged) -> None:
    audit_logger.info(
        "Ticket %s: %s→%s por %s",
        event.ticket_id,
        event.old_status,
        event.new_status,
        event.changed_by,
    )


# ════════════════════════════════════════════════════════════════
# REGISTRATION
# ════════════════════════════════════════════════════════════════

def register_all_handlers() -> None:
    from gigconnect.application.shared.event_dispatcher import register_handler

    register_handler(TicketOpened, handle_ticket_opened)
    register_handler(MessageSent, handle_message_sent)
    register_handler(PriceProposed, handle_price_proposed)
    register_handler(PriceAccepted, handle_price_accepted)
    register_handler(PaymentConfirmed, handle_payment_confirmed)
    register_handler(TicketCompleted, handle_ticket_completed)
    register_handler(TicketClosed, handle_ticket_closed)
    register_handler(TicketStatusChanged, handle_status_changed)

    logger.info("Ticket event handlers registered")

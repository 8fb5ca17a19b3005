"""
Templates HTML dos e-mails de notificação de tickets.

Cada função recebe o nome do destinatário e o evento e devolve (assunto, html).
"""

from __future__ import annotations

from html import escape

from gigconnect.domain.events.ticket_events import (
    MessageSent,
    PaymentConfirmed,
    PriceAccepted,
    PriceProposed,
    TicketClosed,
    TicketCompleted,
    TicketOpened,
)
from gigconnect.domain.shared.value_objects import format_inr
from gigconnect.infrastructure.config import get_settings

settings = get_settings()


def ticket_link(ticket_id: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/tickets/{ticket_id}"


def _layout(recipient_name: str, body: str, ticket_id: str) -> str:
    link = ticket_link(ticket_id)
    return (
        f"<p>Olá {escape(recipient_name)},</p>"
        f"{body}"
        f'<p>Acompanhe o ticket: <a href="{link}">{link}</a></p>'
        "<p>— Equipe GigConnect</p>"
    )


def ticket_opened_template(recipient_name: str, event: TicketOpened, gig_title: str, seller_name: str) -> tuple[str, str]:
    subject = f'Sua candidatura para "{gig_title}" foi aceita'
    body = (
        f"<p>Sua candidatura para <strong>{escape(gig_title)}</strong> foi aceita por "
        f"{escape(seller_name)}. Vocês já podem conversar pelo ticket.</p>"
    )
    return subject, _layout(recipient_name, body, event.ticket_id)


def new_message_template(recipient_name: str, event: MessageSent) -> tuple[str, str]:
    subject = f'Nova mensagem sobre "{event.gig_title}"'
    # content chega sanitizado (sem tags, entidades escapadas)
    preview = event.content[:200]
    extra = " (com anexo)" if event.has_attachment else ""
    body = f"<p>{escape(event.actor_name)} enviou uma mensagem{extra}:</p>"
    if preview:
        body += f"<blockquote>{preview}</blockquote>"
    return subject, _layout(recipient_name, body, event.ticket_id)


def price_proposed_template(recipient_name: str, event: PriceProposed) -> tuple[str, str]:
    subject = f'Preço proposto para "{event.gig_title}"'
    body = (
        f"<p>{escape(event.actor_name)} propôs o preço de "
        f"<strong>{format_inr(event.price)}</strong>.</p>"
    )
    return subject, _layout(recipient_name, body, event.ticket_id)


def price_accepted_template(recipient_name: str, event: PriceAccepted) -> tuple[str, str]:
    subject = f'Preço aceito para "{event.gig_title}"'
    body = (
        f"<p>{escape(event.actor_name)} aceitou o preço de "
        f"<strong>{format_inr(event.price)}</strong>. Aguardando o pagamento.</p>"
    )
    return subject, _layout(recipient_name, body, event.ticket_id)


def payment_received_template(recipient_name: str, event: PaymentConfirmed) -> tuple[str, str]:
    subject = f'Pagamento recebido por "{event.gig_title}"'
    body = (
        f"<p>{escape(event.actor_name)} confirmou o pagamento de "
        f"<strong>{format_inr(event.amount)}</strong>. O valor foi creditado no seu saldo.</p>"
    )
    return subject, _layout(recipient_name, body, event.ticket_id)


def gig_completed_template(recipient_name: str, event: TicketCompleted) -> tuple[str, str]:
    subject = f'"{event.gig_title}" foi concluído'
    body = (
        f"<p>{escape(event.actor_name)} marcou o trabalho como concluído. "
        "Revise a entrega e feche o ticket.</p>"
    )
    return subject, _layout(recipient_name, body, event.ticket_id)


def ticket_closed_template(recipient_name: str, event: TicketClosed) -> tuple[str, str]:
    subject = f'Ticket de "{event.gig_title}" fechado'
    body = f"<p>{escape(event.actor_name)} fechou o ticket.</p>"
    if event.rating is not None:
        body += f"<p>Avaliação recebida: <strong>{event.rating}/5</strong></p>"
    return subject, _layout(recipient_name, body, event.ticket_id)

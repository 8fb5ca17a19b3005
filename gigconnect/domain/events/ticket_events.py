"""Eventos de domínio relacionados a Tickets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from gigconnect.domain.events.base import DomainEvent


@dataclass(frozen=True)
class TicketOpened(DomainEvent):
    ticket_id: str = ""
    gig_id: str = ""
    seller_id: str = ""
    buyer_id: str = ""


@dataclass(frozen=True)
class TicketStatusChanged(DomainEvent):
    ticket_id: str = ""
    old_status: str = ""
    new_status: str = ""
    changed_by: Optional[str] = None


# ── Eventos que notificam o outro participante ──

@dataclass(frozen=True)
class ParticipantNotificationEvent(DomainEvent):
    ticket_id: str = ""
    recipient_id: str = ""
    actor_name: str = ""
    gig_title: str = ""


@dataclass(frozen=True)
class MessageSent(ParticipantNotificationEvent):
    content: str = ""
    has_attachment: bool = False


@dataclass(frozen=True)
class PriceProposed(ParticipantNotificationEvent):
    price: float = 0.0


@dataclass(frozen=True)
class PriceAccepted(ParticipantNotificationEvent):
    price: float = 0.0


@dataclass(frozen=True)
class PaymentConfirmed(ParticipantNotificationEvent):
    amount: float = 0.0


@dataclass(frozen=True)
class TicketCompleted(ParticipantNotificationEvent):
    pass


@dataclass(frozen=True)
class TicketClosed(ParticipantNotificationEvent):
    rating: Optional[int] = None

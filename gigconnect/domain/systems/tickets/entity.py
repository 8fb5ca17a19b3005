"""Entidade de domínio Ticket — negociação entre vendedor e comprador de um gig."""

from __future__ import annotations

import enum
import math
import secrets
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from gigconnect.domain.events.base import AggregateRoot
from gigconnect.domain.events.ticket_events import (
    MessageSent,
    PaymentConfirmed,
    PriceAccepted,
    PriceProposed,
    TicketClosed,
    TicketCompleted,
    TicketOpened,
    TicketStatusChanged,
)
from gigconnect.domain.shared.exceptions import (
    AuthorizationError,
    InvalidStateError,
    ValidationFailedError,
)
from gigconnect.domain.shared.value_objects import (
    Message,
    TimelineEntry,
    format_inr,
    utcnow,
)


class TicketStatus(str, enum.Enum):
    OPEN = "open"
    NEGOTIATING = "negotiating"
    ACCEPTED = "accepted"
    PAID = "paid"
    COMPLETED = "completed"
    CLOSED = "closed"


# Transições válidas da state machine (monotônica, exceto o laço em negotiating)
_TRANSITIONS: dict[TicketStatus, list[TicketStatus]] = {
    TicketStatus.OPEN: [TicketStatus.NEGOTIATING],
    TicketStatus.NEGOTIATING: [TicketStatus.NEGOTIATING, TicketStatus.ACCEPTED],
    TicketStatus.ACCEPTED: [TicketStatus.PAID],
    TicketStatus.PAID: [TicketStatus.COMPLETED],
    TicketStatus.COMPLETED: [TicketStatus.CLOSED],
    TicketStatus.CLOSED: [],
}


# Teto do preço negociado (₹1 trilhão)
MAX_AGREED_PRICE = 1_000_000_000_000.0


def new_ticket_id() -> str:
    """Identificador opaco de 32 caracteres hexadecimais."""
    return secrets.token_hex(16)


@dataclass
class Ticket(AggregateRoot):
    id: str = ""
    gig_id: str = ""
    seller_id: str = ""
    buyer_id: str = ""
    status: TicketStatus = TicketStatus.OPEN
    agreed_price: Optional[float] = None
    messages: list[Message] = field(default_factory=list)
    timeline: list[TimelineEntry] = field(default_factory=list)
    version: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    # Campos populados pelo repositório (somente leitura)
    gig_title: str = ""
    gig_price: Optional[float] = None
    seller_name: str = ""
    buyer_name: str = ""

    def __post_init__(self):
        AggregateRoot.__init__(self)
        self.messages = [
            Message.from_dict(m) if isinstance(m, dict) else m
            for m in self.messages
        ]
        self.timeline = [
            TimelineEntry.from_dict(t) if isinstance(t, dict) else t
            for t in self.timeline
        ]

    # ── Abertura (fluxo externo de aceite de candidatura) ──

    @classmethod
    def open(
        cls,
        *,
        gig_id: str,
        gig_title: str,
        seller_id: str,
        seller_name: str,
        buyer_id: str,
    ) -> "Ticket":
        ticket = cls(
            id=new_ticket_id(),
            gig_id=gig_id,
            seller_id=seller_id,
            buyer_id=buyer_id,
            gig_title=gig_title,
            seller_name=seller_name,
        )
        ticket._log(f'Ticket criado para "{gig_title}" por {seller_name}')
        ticket._record_event(TicketOpened(
            ticket_id=ticket.id,
            gig_id=gig_id,
            seller_id=seller_id,
            buyer_id=buyer_id,
        ))
        return ticket

    # ── Participantes ──

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.seller_id, self.buyer_id)

    def other_participant(self, user_id: str) -> str:
        return self.buyer_id if user_id == self.seller_id else self.seller_id

    # ── State machine ──

    def can_transition_to(self, new_status: TicketStatus) -> bool:
        return new_status in _TRANSITIONS.get(self.status, [])

    def _transition_to(self, new_status: TicketStatus, changed_by: Optional[str]) -> None:
        if not self.can_transition_to(new_status):
            raise InvalidStateError(
                f"Transição inválida: {self.status.value} → {new_status.value}"
            )
        old_status = self.status
        self.status = new_status
        if old_status != new_status:
            self._record_event(TicketStatusChanged(
                ticket_id=self.id,
                old_status=old_status.value,
                new_status=new_status.value,
                changed_by=changed_by,
            ))

    def ensure_accepts_messages(self) -> None:
        if self.status == TicketStatus.CLOSED:
            raise InvalidStateError("Ticket está fechado")

    def _ensure_status(self, expected: TicketStatus, message: str) -> None:
        if self.status != expected:
            raise InvalidStateError(message)

    def _ensure_actor(self, actor_id: str, expected_id: str, message: str) -> None:
        if actor_id != expected_id:
            raise AuthorizationError(message)

    def _log(self, action: str) -> None:
        self.timeline.append(TimelineEntry(action=action))
        self.updated_at = utcnow()

    # ── Mensagens ──

    def post_message(self, message: Message) -> None:
        """Anexa uma mensagem de participante; promove open → negotiating."""
        self.ensure_accepts_messages()
        self.messages.append(message)

        if message.attachment:
            action = f"Mensagem com anexo enviada por {message.sender_name}"
        else:
            action = f"Mensagem enviada por {message.sender_name}"
        if self.status == TicketStatus.OPEN:
            self._transition_to(TicketStatus.NEGOTIATING, message.sender_id)
            action += "; ticket movido para negociação"
        self._log(action)

        self._record_event(MessageSent(
            ticket_id=self.id,
            recipient_id=self.other_participant(message.sender_id),
            actor_name=message.sender_name,
            gig_title=self.gig_title,
            content=message.content,
            has_attachment=bool(message.attachment),
        ))

    def post_ai_response(self, message: Message, requested_by_name: str) -> None:
        """Resposta gerada por IA; não altera o status."""
        self.messages.append(message)
        self._log(f"IA respondeu à mensagem de {requested_by_name}")

    def mark_messages_read(self, reader_id: str, reader_name: str) -> int:
        """
        Marca como lidas as mensagens de outros autores.

        Retorna quantas mudaram; sem mudança, nada é registrado (idempotente).
        """
        changed = 0
        updated: list[Message] = []
        for msg in self.messages:
            if msg.sender_id != reader_id and not msg.read:
                updated.append(msg.mark_read())
                changed += 1
            else:
                updated.append(msg)
        if changed:
            self.messages = updated
            self._log(f"Mensagens marcadas como lidas por {reader_name}")
        return changed

    def search_messages(self, query: Optional[str]) -> list[Message]:
        if not query:
            return list(self.messages)
        return [m for m in self.messages if m.matches(query)]

    # ── Negociação ──

    def propose_price(self, price: float, actor_id: str, actor_name: str) -> None:
        self.ensure_accepts_messages()
        if self.status not in (TicketStatus.OPEN, TicketStatus.NEGOTIATING):
            raise InvalidStateError(
                f"Preço não pode ser proposto com o ticket em {self.status.value}"
            )
        if price is None or not math.isfinite(price) or price <= 0:
            raise ValidationFailedError.for_field(
                "agreed_price", "O preço deve ser um número positivo"
            )
        if price > MAX_AGREED_PRICE:
            raise ValidationFailedError.for_field(
                "agreed_price", f"O preço não pode exceder {format_inr(MAX_AGREED_PRICE)}"
            )

        self.agreed_price = float(price)
        self._transition_to(TicketStatus.NEGOTIATING, actor_id)
        self._log(f"Preço de {format_inr(price)} proposto por {actor_name}")
        self._record_event(PriceProposed(
            ticket_id=self.id,
            recipient_id=self.other_participant(actor_id),
            actor_name=actor_name,
            gig_title=self.gig_title,
            price=self.agreed_price,
        ))

    def accept_price(self, actor_id: str, actor_name: str) -> None:
        self._ensure_status(TicketStatus.NEGOTIATING, "Ticket não está em negociação")
        self._ensure_actor(actor_id, self.buyer_id, "Apenas o comprador pode aceitar o preço")
        if self.agreed_price is None:
            raise InvalidStateError("Nenhum preço foi proposto")

        self._transition_to(TicketStatus.ACCEPTED, actor_id)
        self._log(f"Preço aceito por {actor_name}")
        self._record_event(PriceAccepted(
            ticket_id=self.id,
            recipient_id=self.seller_id,
            actor_name=actor_name,
            gig_title=self.gig_title,
            price=self.agreed_price,
        ))

    def confirm_payment(self, actor_id: str, actor_name: str) -> None:
        self._ensure_status(TicketStatus.ACCEPTED, "Preço ainda não foi aceito")
        self._ensure_actor(actor_id, self.buyer_id, "Apenas o comprador pode confirmar o pagamento")

        self._transition_to(TicketStatus.PAID, actor_id)
        self._log(f"Pagamento confirmado por {actor_name}")
        self._record_event(PaymentConfirmed(
            ticket_id=self.id,
            recipient_id=self.seller_id,
            actor_name=actor_name,
            gig_title=self.gig_title,
            amount=self.agreed_price or 0.0,
        ))

    def complete(self, actor_id: str, actor_name: str) -> None:
        self._ensure_status(TicketStatus.PAID, "Pagamento ainda não foi confirmado")
        self._ensure_actor(actor_id, self.seller_id, "Apenas o vendedor pode concluir o ticket")

        self._transition_to(TicketStatus.COMPLETED, actor_id)
        self._log(f"Ticket marcado como concluído por {actor_name}")
        self._record_event(TicketCompleted(
            ticket_id=self.id,
            recipient_id=self.buyer_id,
            actor_name=actor_name,
            gig_title=self.gig_title,
        ))

    def close(self, actor_id: str, actor_name: str, rating: Optional[int] = None) -> None:
        self._ensure_status(TicketStatus.COMPLETED, "Ticket ainda não foi concluído")
        self._ensure_actor(actor_id, self.buyer_id, "Apenas o comprador pode fechar o ticket")
        if rating is not None and not 1 <= rating <= 5:
            raise ValidationFailedError.for_field("rating", "A avaliação deve ser um inteiro entre 1 e 5")

        self._transition_to(TicketStatus.CLOSED, actor_id)
        if rating is not None:
            self._log(f"Ticket fechado por {actor_name} com avaliação {rating}")
        else:
            self._log(f"Ticket fechado por {actor_name}")
        self._record_event(TicketClosed(
            ticket_id=self.id,
            recipient_id=self.seller_id,
            actor_name=actor_name,
            gig_title=self.gig_title,
            rating=rating,
        ))

    # ── Serialização para JSON ──

    def messages_as_dicts(self) -> list[dict[str, Any]]:
        return [m.to_dict() for m in self.messages]

    def timeline_as_dicts(self) -> list[dict[str, Any]]:
        return [t.to_dict() for t in self.timeline]

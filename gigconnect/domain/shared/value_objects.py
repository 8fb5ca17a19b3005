"""Value Objects do domínio — imutáveis, comparados por valor."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Any, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_dt(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if value:
        return datetime.fromisoformat(value)
    return utcnow()


def _quantize(value: float, places: int) -> Decimal:
    if not math.isfinite(value):
        raise ValueError(f"Valor não finito: {value}")
    number = Decimal(str(value))
    # Precisão suficiente para todos os dígitos inteiros mais as casas decimais
    context = Context(prec=max(28, number.adjusted() + places + 2))
    return number.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP, context=context)


def round_half_up(value: float, places: int) -> float:
    """Arredondamento comercial (0.125 → 0.13), não o bancário do round()."""
    return float(_quantize(value, places))


def format_inr(amount: float) -> str:
    """
    Formata um valor em rúpias com agrupamento indiano.

    >>> format_inr(100000)
    '₹1,00,000'
    >>> format_inr(1234.5)
    '₹1,234.50'
    """
    value = _quantize(amount, 2)
    integral, _, fraction = f"{value:f}".partition(".")
    sign = ""
    if integral.startswith("-"):
        sign, integral = "-", integral[1:]

    if len(integral) > 3:
        head, tail = integral[:-3], integral[-3:]
        groups: list[str] = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        integral = ",".join(groups + [tail])

    text = f"{sign}₹{integral}"
    if fraction != "00":
        text += f".{fraction}"
    return text


@dataclass(frozen=True)
class Message:
    """
    Mensagem do chat de um Ticket — value object imutável.

    `sender_name` é um snapshot do nome no momento do envio; não acompanha
    renomeações posteriores do usuário.
    """
    sender_id: str
    sender_name: str
    content: str = ""
    attachment: Optional[str] = None
    timestamp: datetime = field(default_factory=utcnow)
    read: bool = False

    def mark_read(self) -> "Message":
        """Retorna nova instância marcada como lida (imutável)."""
        return replace(self, read=True)

    def matches(self, query: str) -> bool:
        return query.casefold() in self.content.casefold()

    def to_dict(self) -> dict[str, Any]:
        return {
            "sender_id": self.sender_id,
            "sender_name": self.sender_name,
            "content": self.content,
            "attachment": self.attachment,
            "timestamp": self.timestamp.isoformat(),
            "read": self.read,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        return cls(
            sender_id=data.get("sender_id", ""),
            sender_name=data.get("sender_name", ""),
            content=data.get("content", ""),
            attachment=data.get("attachment"),
            timestamp=_parse_dt(data.get("timestamp")),
            read=data.get("read", False),
        )


@dataclass(frozen=True)
class TimelineEntry:
    """Entrada do histórico de auditoria do Ticket (somente escrita)."""
    action: str
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {"action": self.action, "timestamp": self.timestamp.isoformat()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimelineEntry":
        return cls(
            action=data.get("action", ""),
            timestamp=_parse_dt(data.get("timestamp")),
        )


@dataclass(frozen=True)
class Rating:
    value: int
    ticket_id: str
    giver_id: str
    given_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        if not 1 <= self.value <= 5:
            raise ValueError(f"Avaliação fora do intervalo 1–5: {self.value}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "ticket_id": self.ticket_id,
            "giver_id": self.giver_id,
            "given_at": self.given_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Rating":
        return cls(
            value=data["value"],
            ticket_id=data.get("ticket_id", ""),
            giver_id=data.get("giver_id", ""),
            given_at=_parse_dt(data.get("given_at")),
        )


@dataclass(frozen=True)
class OrderHistoryEntry:
    """Registro de um pedido no histórico do vendedor."""
    title: str
    status: str
    earnings: float = 0.0
    date: datetime = field(default_factory=utcnow)

    def with_status(self, status: str) -> "OrderHistoryEntry":
        return replace(self, status=status)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "status": self.status,
            "earnings": self.earnings,
            "date": self.date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderHistoryEntry":
        return cls(
            title=data.get("title", ""),
            status=data.get("status", ""),
            earnings=data.get("earnings", 0.0),
            date=_parse_dt(data.get("date")),
        )

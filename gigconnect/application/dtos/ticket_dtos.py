"""DTOs da camada de aplicação para Tickets — commands, queries e resultados."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


# ════════════════════════════════════════════════════════════════
# COMMANDS
# ════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OpenTicketCommand:
    gig_id: str
    buyer_id: str


@dataclass(frozen=True)
class AttachmentUpload:
    """Arquivo recebido, ainda não armazenado."""
    filename: str
    content_type: str
    data: bytes = field(repr=False, default=b"")


@dataclass(frozen=True)
class SendMessageCommand:
    ticket_id: str
    content: str = ""
    attachment: Optional[AttachmentUpload] = None
    # Rota de anexo: conteúdo vazio é aceito se houver arquivo
    allow_empty_content: bool = False


@dataclass(frozen=True)
class ProposePriceCommand:
    ticket_id: str
    agreed_price: float


@dataclass(frozen=True)
class TicketActionCommand:
    """accept-price, pay e complete não têm payload além do id."""
    ticket_id: str


@dataclass(frozen=True)
class CloseTicketCommand:
    ticket_id: str
    rating: Optional[int] = None


@dataclass(frozen=True)
class MarkMessagesReadCommand:
    ticket_id: str


@dataclass(frozen=True)
class GenerateAIResponseCommand:
    ticket_id: str
    content: str


# ════════════════════════════════════════════════════════════════
# QUERIES
# ════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GetTicketByIdQuery:
    ticket_id: str


@dataclass(frozen=True)
class ListTicketsQuery:
    user_id: str


@dataclass(frozen=True)
class SearchMessagesQuery:
    ticket_id: str
    query: Optional[str] = None


# ════════════════════════════════════════════════════════════════
# RESULT DTOs
# ════════════════════════════════════════════════════════════════

@dataclass
class TicketResult:
    id: str
    gig: dict[str, Any]
    seller: dict[str, Any]
    buyer: dict[str, Any]
    status: str
    agreed_price: Optional[float]
    messages: list[dict[str, Any]]
    timeline: list[dict[str, Any]]
    version: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class AIResponseResult:
    ai_response: str
    ticket: TicketResult

"""
Schemas Pydantic — camada de Apresentação.

Request bodies validam apenas tipos; faixas (preço > 0, 1–1000 chars,
avaliação 1–5) são regras de domínio e respondem 400 com a lista de erros.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# ════════════════════════════════════════════════════════════════
# ERROR MODEL (para Swagger docs)
# ════════════════════════════════════════════════════════════════
class FieldError(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    error: str = Field(..., examples=["validation_error"])
    detail: str = Field(..., examples=["A mensagem deve ter entre 1 e 1000 caracteres"])
    errors: Optional[list[FieldError]] = None
    request_id: Optional[str] = None

    model_config = {"json_schema_extra": {"example": {"error": "invalid_state", "detail": "Ticket está fechado", "request_id": "a1b2c3d4"}}}


# ════════════════════════════════════════════════════════════════
# REQUESTS
# ════════════════════════════════════════════════════════════════
class MessageCreate(BaseModel):
    content: str = Field("", examples=["Consegue entregar até sexta?"])


class PriceUpdate(BaseModel):
    agreed_price: float = Field(..., allow_inf_nan=False, examples=[500.0], description="Preço proposto (> 0, finito)")


class CloseTicketRequest(BaseModel):
    rating: Optional[int] = Field(None, examples=[5], description="Avaliação opcional do vendedor (1–5)")


class AIResponseRequest(BaseModel):
    content: str = Field("", examples=["Como posso justificar um prazo maior?"])


# ════════════════════════════════════════════════════════════════
# TICKETS
# ════════════════════════════════════════════════════════════════
class TicketStatusEnum(str, Enum):
    open = "open"
    negotiating = "negotiating"
    accepted = "accepted"
    paid = "paid"
    completed = "completed"
    closed = "closed"


class MessageOut(BaseModel):
    sender_id: str
    sender_name: str
    content: str
    attachment: Optional[str] = None
    timestamp: datetime
    read: bool = False


class TimelineEntryOut(BaseModel):
    action: str
    timestamp: datetime


class GigSummaryOut(BaseModel):
    id: str
    title: str = ""
    price: Optional[float] = None


class ParticipantOut(BaseModel):
    id: str
    full_name: str = ""


class TicketOut(BaseModel):
    id: str
    gig: GigSummaryOut
    seller: ParticipantOut
    buyer: ParticipantOut
    status: TicketStatusEnum
    agreed_price: Optional[float] = None
    messages: list[MessageOut] = []
    timeline: list[TimelineEntryOut] = []
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ── Envelopes de resposta ──

class TicketResponse(BaseModel):
    success: bool = True
    ticket: TicketOut


class TicketListResponse(BaseModel):
    success: bool = True
    tickets: list[TicketOut]


class TimelineResponse(BaseModel):
    success: bool = True
    timeline: list[TimelineEntryOut]


class MessagesResponse(BaseModel):
    success: bool = True
    messages: list[MessageOut]


class AIResponseOut(BaseModel):
    success: bool = True
    ai_response: str
    ticket: TicketOut


def to_ticket_out(result) -> TicketOut:
    """TicketResult (dataclass da aplicação) → schema de resposta."""
    return TicketOut.model_validate(result, from_attributes=True)

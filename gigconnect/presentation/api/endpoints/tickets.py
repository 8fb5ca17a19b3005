"""
Endpoints de Tickets — /api/tickets

Negociação entre comprador e vendedor: mensagens (texto, anexo, IA),
proposta/aceite de preço, pagamento, conclusão e fechamento com avaliação.
Toda rota exige bearer token; o participant guard roda nos use cases.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from gigconnect.application.dtos.ticket_dtos import (
    AttachmentUpload,
    CloseTicketCommand,
    GenerateAIResponseCommand,
    GetTicketByIdQuery,
    ListTicketsQuery,
    MarkMessagesReadCommand,
    ProposePriceCommand,
    SearchMessagesQuery,
    SendMessageCommand,
    TicketActionCommand,
)
from gigconnect.application.shared.unit_of_work import UnitOfWork
from gigconnect.application.systems.tickets.use_cases import (
    AcceptPriceUseCase,
    AIResponder,
    CloseTicketUseCase,
    CompleteTicketUseCase,
    ConfirmPaymentUseCase,
    GenerateAIResponseUseCase,
    GetTicketUseCase,
    GetTimelineUseCase,
    ListTicketsUseCase,
    MarkMessagesReadUseCase,
    ProposePriceUseCase,
    SearchMessagesUseCase,
    SendMessageUseCase,
)
from gigconnect.domain.systems.users.entity import User
from gigconnect.infrastructure.services.file_storage import FileStorageService
from gigconnect.infrastructure.systems.gigs.repository import GigRepository
from gigconnect.infrastructure.systems.tickets.repository import TicketRepository
from gigconnect.infrastructure.systems.users.repository import UserRepository
from gigconnect.presentation.api.deps import (
    get_ai_responder,
    get_current_active_user,
    get_file_storage,
    get_gig_repo,
    get_ticket_repo,
    get_uow,
    get_user_repo,
    valid_ticket_id,
)
from gigconnect.presentation.api.limiter import attachment_limiter, message_limiter
from gigconnect.presentation.api.schemas import (
    AIResponseOut,
    AIResponseRequest,
    CloseTicketRequest,
    ErrorResponse,
    MessageCreate,
    MessagesResponse,
    PriceUpdate,
    TicketListResponse,
    TicketResponse,
    TimelineResponse,
    to_ticket_out,
)
from gigconnect.presentation.realtime.ticket_socket import broadcast_ticket

router = APIRouter()

_ERRORS = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


# ════════════════════════════════════════════════════════════════
# LEITURA
# ════════════════════════════════════════════════════════════════

@router.get(
    "",
    response_model=TicketListResponse,
    summary="Listar tickets do usuário (mais recentes primeiro)",
)
async def list_tickets(
    repo: TicketRepository = Depends(get_ticket_repo),
    current_user: User = Depends(get_current_active_user),
):
    results = await ListTicketsUseCase(repo).execute(ListTicketsQuery(user_id=current_user.id))
    return TicketListResponse(tickets=[to_ticket_out(r) for r in results])


@router.get(
    "/{ticket_id}",
    response_model=TicketResponse,
    responses=_ERRORS,
    summary="Detalhe de um ticket",
)
async def get_ticket(
    ticket_id: str,
    repo: TicketRepository = Depends(get_ticket_repo),
    current_user: User = Depends(get_current_active_user),
):
    result = await GetTicketUseCase(repo).execute(GetTicketByIdQuery(ticket_id=ticket_id), actor=current_user)
    return TicketResponse(ticket=to_ticket_out(result))


@router.get(
    "/{ticket_id}/timeline",
    response_model=TimelineResponse,
    responses=_ERRORS,
    summary="Trilha de auditoria do ticket",
)
async def get_timeline(
    ticket_id: str = Depends(valid_ticket_id),
    repo: TicketRepository = Depends(get_ticket_repo),
    current_user: User = Depends(get_current_active_user),
):
    timeline = await GetTimelineUseCase(repo).execute(GetTicketByIdQuery(ticket_id=ticket_id), actor=current_user)
    return TimelineResponse(timeline=timeline)


@router.get(
    "/{ticket_id}/messages/search",
    response_model=MessagesResponse,
    responses=_ERRORS,
    summary="Buscar mensagens por substring (case-insensitive)",
    description="Query vazia ou ausente retorna todas as mensagens.",
)
async def search_messages(
    ticket_id: str = Depends(valid_ticket_id),
    query: Optional[str] = Query(default=None),
    repo: TicketRepository = Depends(get_ticket_repo),
    current_user: User = Depends(get_current_active_user),
):
    messages = await SearchMessagesUseCase(repo).execute(
        SearchMessagesQuery(ticket_id=ticket_id, query=query), actor=current_user
    )
    return MessagesResponse(messages=messages)


# ════════════════════════════════════════════════════════════════
# MENSAGENS
# ════════════════════════════════════════════════════════════════

@router.post(
    "/{ticket_id}/messages",
    response_model=TicketResponse,
    responses={**_ERRORS, 429: {"description": "Limite de mensagens atingido"}},
    dependencies=[Depends(message_limiter)],
    summary="Enviar mensagem de texto",
)
async def send_message(
    ticket_id: str,
    payload: MessageCreate,
    repo: TicketRepository = Depends(get_ticket_repo),
    uow: UnitOfWork = Depends(get_uow),
    current_user: User = Depends(get_current_active_user),
):
    uc = SendMessageUseCase(repo, uow)
    result = await uc.execute(
        SendMessageCommand(ticket_id=ticket_id, content=payload.content),
        actor=current_user,
    )
    await broadcast_ticket(result)
    return TicketResponse(ticket=to_ticket_out(result))


@router.post(
    "/{ticket_id}/messages/attachment",
    response_model=TicketResponse,
    responses={**_ERRORS, 429: {"description": "Limite de anexos atingido"}, 502: {"model": ErrorResponse}},
    dependencies=[Depends(attachment_limiter)],
    summary="Enviar mensagem com anexo opcional (jpeg, png, pdf até 5MB)",
)
async def send_attachment(
    ticket_id: str,
    content: str = Form(default=""),
    file: Optional[UploadFile] = File(default=None),
    repo: TicketRepository = Depends(get_ticket_repo),
    uow: UnitOfWork = Depends(get_uow),
    storage: FileStorageService = Depends(get_file_storage),
    current_user: User = Depends(get_current_active_user),
):
    attachment = None
    if file is not None and file.filename:
        attachment = AttachmentUpload(
            filename=file.filename,
            content_type=file.content_type or "application/octet-stream",
            data=await file.read(),
        )

    uc = SendMessageUseCase(repo, uow, storage=storage)
    result = await uc.execute(
        SendMessageCommand(
            ticket_id=ticket_id,
            content=content,
            attachment=attachment,
            allow_empty_content=True,
        ),
        actor=current_user,
    )
    await broadcast_ticket(result)
    return TicketResponse(ticket=to_ticket_out(result))


@router.patch(
    "/{ticket_id}/messages/read",
    response_model=TicketResponse,
    responses=_ERRORS,
    summary="Marcar como lidas as mensagens dos outros participantes",
)
async def mark_messages_read(
    ticket_id: str = Depends(valid_ticket_id),
    repo: TicketRepository = Depends(get_ticket_repo),
    uow: UnitOfWork = Depends(get_uow),
    current_user: User = Depends(get_current_active_user),
):
    result = await MarkMessagesReadUseCase(repo, uow).execute(
        MarkMessagesReadCommand(ticket_id=ticket_id), actor=current_user
    )
    return TicketResponse(ticket=to_ticket_out(result))


@router.post(
    "/{ticket_id}/ai-response",
    response_model=AIResponseOut,
    responses={**_ERRORS, 502: {"model": ErrorResponse}},
    summary="Gerar resposta de IA para a negociação",
)
async def generate_ai_response(
    payload: AIResponseRequest,
    ticket_id: str = Depends(valid_ticket_id),
    repo: TicketRepository = Depends(get_ticket_repo),
    uow: UnitOfWork = Depends(get_uow),
    responder: AIResponder = Depends(get_ai_responder),
    current_user: User = Depends(get_current_active_user),
):
    uc = GenerateAIResponseUseCase(repo, uow, responder)
    result = await uc.execute(
        GenerateAIResponseCommand(ticket_id=ticket_id, content=payload.content),
        actor=current_user,
    )
    return AIResponseOut(ai_response=result.ai_response, ticket=to_ticket_out(result.ticket))


# ════════════════════════════════════════════════════════════════
# NEGOCIAÇÃO
# ════════════════════════════════════════════════════════════════

@router.patch(
    "/{ticket_id}/price",
    response_model=TicketResponse,
    responses=_ERRORS,
    summary="Propor preço (qualquer participante)",
)
async def propose_price(
    ticket_id: str,
    payload: PriceUpdate,
    repo: TicketRepository = Depends(get_ticket_repo),
    uow: UnitOfWork = Depends(get_uow),
    current_user: User = Depends(get_current_active_user),
):
    result = await ProposePriceUseCase(repo, uow).execute(
        ProposePriceCommand(ticket_id=ticket_id, agreed_price=payload.agreed_price),
        actor=current_user,
    )
    return TicketResponse(ticket=to_ticket_out(result))


@router.patch(
    "/{ticket_id}/accept-price",
    response_model=TicketResponse,
    responses=_ERRORS,
    summary="Comprador aceita o preço proposto",
)
async def accept_price(
    ticket_id: str,
    repo: TicketRepository = Depends(get_ticket_repo),
    uow: UnitOfWork = Depends(get_uow),
    current_user: User = Depends(get_current_active_user),
):
    result = await AcceptPriceUseCase(repo, uow).execute(
        TicketActionCommand(ticket_id=ticket_id), actor=current_user
    )
    return TicketResponse(ticket=to_ticket_out(result))


@router.patch(
    "/{ticket_id}/pay",
    response_model=TicketResponse,
    responses=_ERRORS,
    summary="Comprador confirma o pagamento",
)
async def confirm_payment(
    ticket_id: str,
    repo: TicketRepository = Depends(get_ticket_repo),
    user_repo: UserRepository = Depends(get_user_repo),
    uow: UnitOfWork = Depends(get_uow),
    current_user: User = Depends(get_current_active_user),
):
    result = await ConfirmPaymentUseCase(repo, user_repo, uow).execute(
        TicketActionCommand(ticket_id=ticket_id), actor=current_user
    )
    return TicketResponse(ticket=to_ticket_out(result))


@router.patch(
    "/{ticket_id}/complete",
    response_model=TicketResponse,
    responses=_ERRORS,
    summary="Vendedor marca o trabalho como concluído",
)
async def complete_ticket(
    ticket_id: str,
    repo: TicketRepository = Depends(get_ticket_repo),
    user_repo: UserRepository = Depends(get_user_repo),
    uow: UnitOfWork = Depends(get_uow),
    current_user: User = Depends(get_current_active_user),
):
    result = await CompleteTicketUseCase(repo, user_repo, uow).execute(
        TicketActionCommand(ticket_id=ticket_id), actor=current_user
    )
    return TicketResponse(ticket=to_ticket_out(result))


@router.patch(
    "/{ticket_id}/close",
    response_model=TicketResponse,
    responses=_ERRORS,
    summary="Comprador fecha o ticket (avaliação opcional 1–5)",
)
async def close_ticket(
    ticket_id: str,
    payload: Optional[CloseTicketRequest] = None,
    repo: TicketRepository = Depends(get_ticket_repo),
    user_repo: UserRepository = Depends(get_user_repo),
    gig_repo: GigRepository = Depends(get_gig_repo),
    uow: UnitOfWork = Depends(get_uow),
    current_user: User = Depends(get_current_active_user),
):
    rating = payload.rating if payload else None
    result = await CloseTicketUseCase(repo, user_repo, gig_repo, uow).execute(
        CloseTicketCommand(ticket_id=ticket_id, rating=rating), actor=current_user
    )
    return TicketResponse(ticket=to_ticket_out(result))

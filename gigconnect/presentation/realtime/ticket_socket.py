"""
Canal realtime de tickets (Socket.IO).

Autentica uma vez no connect (auth.token), usa o mesmo participant guard
das rotas REST para entrar na sala do ticket e delega o envio de mensagens
ao SendMessageUseCase — validação, promoção open→negotiating e notificações
são exatamente as do caminho REST.

Eventos:
    joinTicket(ticketId)                       → ack {"success": ...}
    sendMessage({ticketId, content}, callback) → ack {"success", "ticket"}
    newMessage(ticket)                          ← servidor, sala = ticket id
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import socketio
from socketio.exceptions import ConnectionRefusedError as SocketConnectionRefused

from gigconnect.application.dtos.ticket_dtos import (
    GetTicketByIdQuery,
    SendMessageCommand,
    TicketResult,
)
from gigconnect.application.shared.unit_of_work import UnitOfWork
from gigconnect.application.systems.tickets.use_cases import GetTicketUseCase, SendMessageUseCase
from gigconnect.domain.shared.exceptions import DomainError
from gigconnect.domain.systems.users.entity import User
from gigconnect.infrastructure.config import get_settings
from gigconnect.infrastructure.database.session import AsyncSessionLocal
from gigconnect.infrastructure.systems.tickets.repository import TicketRepository
from gigconnect.infrastructure.systems.users.repository import UserRepository
from gigconnect.presentation.api.deps import user_id_from_token
from gigconnect.presentation.api.limiter import message_limiter
from gigconnect.presentation.api.schemas import to_ticket_out
from gigconnect.presentation.middleware.exception_handlers import describe_error

logger = logging.getLogger(__name__)
settings = get_settings()

SOCKET_PATH = "ticket-socket"

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=settings.CORS_ORIGINS,
    logger=False,
    engineio_logger=False,
)


def _error_ack(error: str, detail: str, **extra: Any) -> dict:
    return {"success": False, "error": error, "detail": detail, **extra}


def _ticket_id_from(data: Any) -> Optional[str]:
    if isinstance(data, dict):
        data = data.get("ticketId")
    return data if isinstance(data, str) and data else None


async def _session_user(sid: str, session) -> Optional[User]:
    """Recarrega o usuário da sessão do socket; None se sumiu ou foi desativado."""
    state = await sio.get_session(sid)
    user = await UserRepository(session).get_by_id(state.get("user_id"))
    if user is None or not user.is_active:
        return None
    return user


async def broadcast_ticket(result: TicketResult) -> None:
    """Envia o ticket completo para a sala; falha só é logada."""
    try:
        payload = to_ticket_out(result).model_dump(mode="json")
        await sio.emit("newMessage", payload, room=result.id)
    except Exception:
        logger.exception("Falha ao transmitir newMessage do ticket %s", result.id)


# ════════════════════════════════════════════════════════════════
# CONEXÃO
# ════════════════════════════════════════════════════════════════

@sio.event
async def connect(sid, environ, auth=None):
    token = auth.get("token") if isinstance(auth, dict) else None
    user_id = user_id_from_token(token) if token else None
    if not user_id:
        logger.info("Conexão realtime recusada: token ausente ou inválido (sid=%s)", sid)
        raise SocketConnectionRefused("Token inválido ou expirado")

    async with AsyncSessionLocal() as session:
        user = await UserRepository(session).get_by_id(user_id)
    if user is None or not user.is_active:
        raise SocketConnectionRefused("Usuário não encontrado ou inativo")

    await sio.save_session(sid, {"user_id": user.id})
    logger.info("Socket conectado: sid=%s user=%s", sid, user.id)


@sio.event
async def disconnect(sid, *args):
    logger.info("Socket desconectado: sid=%s", sid)


# ════════════════════════════════════════════════════════════════
# EVENTOS
# ════════════════════════════════════════════════════════════════

@sio.on("joinTicket")
async def join_ticket(sid, data):
    ticket_id = _ticket_id_from(data)
    if ticket_id is None:
        return _error_ack("validation_error", "ticketId é obrigatório")

    async with AsyncSessionLocal() as session:
        user = await _session_user(sid, session)
        if user is None:
            return _error_ack("unauthorized", "Sessão inválida")
        try:
            await GetTicketUseCase(TicketRepository(session)).execute(
                GetTicketByIdQuery(ticket_id=ticket_id), actor=user
            )
        except DomainError as exc:
            _, body = describe_error(exc)
            return _error_ack(body["error"], body["detail"])

    await sio.enter_room(sid, ticket_id)
    logger.info("Socket %s (user=%s) entrou na sala do ticket %s", sid, user.id, ticket_id)
    return {"success": True}


@sio.on("sendMessage")
async def send_message(sid, data):
    ticket_id = _ticket_id_from(data)
    if ticket_id is None:
        return _error_ack("validation_error", "ticketId é obrigatório")
    content = data.get("content", "") if isinstance(data, dict) else ""
    if not isinstance(content, str):
        return _error_ack("validation_error", "content deve ser texto")

    async with AsyncSessionLocal() as session:
        user = await _session_user(sid, session)
        if user is None:
            return _error_ack("unauthorized", "Sessão inválida")

        if not message_limiter.hit(user.id):
            return _error_ack("rate_limited", "Too many requests")

        uow = UnitOfWork(session)
        try:
            uc = SendMessageUseCase(TicketRepository(session), uow)
            result = await uc.execute(SendMessageCommand(ticket_id=ticket_id, content=content), actor=user)
        except DomainError as exc:
            await uow.rollback()
            _, body = describe_error(exc)
            return _error_ack(body["error"], body["detail"], **({"errors": body["errors"]} if "errors" in body else {}))
        except Exception:
            await uow.rollback()
            logger.exception("Erro ao enviar mensagem via socket: ticket=%s user=%s", ticket_id, user.id)
            return _error_ack("internal_server_error", "Erro interno do servidor")

    await broadcast_ticket(result)
    return {"success": True, "ticket": to_ticket_out(result).model_dump(mode="json")}

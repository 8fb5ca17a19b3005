"""
Use Cases de Tickets — camada de Aplicação.

Orquestram guard de participantes, state machine, efeitos nos perfis
(vendedor/gig) e eventos de domínio. Toda escrita roda sob o lock do ticket:
load → mutate → save → commit.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from gigconnect.application.dtos.ticket_dtos import (
    AIResponseResult,
    CloseTicketCommand,
    GenerateAIResponseCommand,
    GetTicketByIdQuery,
    ListTicketsQuery,
    MarkMessagesReadCommand,
    OpenTicketCommand,
    ProposePriceCommand,
    SearchMessagesQuery,
    SendMessageCommand,
    TicketActionCommand,
    TicketResult,
)
from gigconnect.application.shared.locks import KeyedLock, ticket_locks
from gigconnect.application.shared.sanitizer import sanitize_text
from gigconnect.application.shared.unit_of_work import UnitOfWork
from gigconnect.domain.shared.exceptions import (
    AuthorizationError,
    NotFoundError,
    UpstreamError,
    ValidationFailedError,
)
from gigconnect.domain.shared.value_objects import Message, Rating
from gigconnect.domain.systems.gigs.repository import IGigRepository
from gigconnect.domain.systems.tickets.entity import Ticket
from gigconnect.domain.systems.tickets.repository import ITicketRepository
from gigconnect.domain.systems.users.authorization_service import AuthorizationService
from gigconnect.domain.systems.users.entity import User
from gigconnect.domain.systems.users.repository import IUserRepository
from gigconnect.infrastructure.config import get_settings
from gigconnect.infrastructure.services.file_storage import FileStorageService
from gigconnect.services.gemini_service import build_negotiation_prompt

logger = logging.getLogger(__name__)
settings = get_settings()

AIResponder = Callable[[str], Awaitable[str]]


def _dt(value) -> Optional[str]:
    return value.isoformat() if value else None


def _to_result(t: Ticket) -> TicketResult:
    return TicketResult(
        id=t.id,
        gig={"id": t.gig_id, "title": t.gig_title, "price": t.gig_price},
        seller={"id": t.seller_id, "full_name": t.seller_name},
        buyer={"id": t.buyer_id, "full_name": t.buyer_name},
        status=t.status.value,
        agreed_price=t.agreed_price,
        messages=t.messages_as_dicts(),
        timeline=t.timeline_as_dicts(),
        version=t.version,
        created_at=_dt(t.created_at),
        updated_at=_dt(t.updated_at),
    )


async def _load_for_participant(repo: ITicketRepository, ticket_id: str, actor: User) -> Ticket:
    """Participant guard: 404 se não existe, 403 se o ator não é vendedor nem comprador."""
    ticket = await repo.get_by_id(ticket_id)
    if ticket is None:
        raise NotFoundError("Ticket", ticket_id)
    AuthorizationService.ensure_participant(actor, ticket)
    return ticket


def validate_message_content(content: str, *, required: bool = True) -> str:
    """Sanitiza e valida o texto de uma mensagem. Retorna o texto limpo."""
    clean = sanitize_text(content)
    max_length = settings.MESSAGE_MAX_LENGTH
    if len(clean) > max_length or (required and not clean):
        raise ValidationFailedError.for_field(
            "content", f"A mensagem deve ter entre 1 e {max_length} caracteres"
        )
    return clean


# ════════════════════════════════════════════════════════════════
# ABERTURA (chamado pelo fluxo de aceite de candidatura / seed)
# ════════════════════════════════════════════════════════════════

class OpenTicketUseCase:
    def __init__(
        self,
        repo: ITicketRepository,
        user_repo: IUserRepository,
        gig_repo: IGigRepository,
        uow: UnitOfWork,
    ) -> None:
        self._repo = repo
        self._user_repo = user_repo
        self._gig_repo = gig_repo
        self._uow = uow

    async def execute(self, cmd: OpenTicketCommand, actor: User) -> TicketResult:
        gig = await self._gig_repo.get_by_id(cmd.gig_id)
        if gig is None:
            raise NotFoundError("Gig", cmd.gig_id)
        if gig.seller_id != actor.id:
            raise AuthorizationError("Apenas o vendedor do gig pode abrir o ticket")
        if cmd.buyer_id == actor.id:
            raise ValidationFailedError.for_field("buyer_id", "O comprador não pode ser o próprio vendedor")
        buyer = await self._user_repo.get_by_id(cmd.buyer_id)
        if buyer is None:
            raise NotFoundError("Usuário", cmd.buyer_id)

        ticket = Ticket.open(
            gig_id=gig.id,
            gig_title=gig.title,
            seller_id=actor.id,
            seller_name=actor.full_name,
            buyer_id=buyer.id,
        )
        gig.close_applications()
        await self._gig_repo.update(gig)
        created = await self._repo.create(ticket)
        self._uow.collect_events_from(ticket)
        await self._uow.commit()

        logger.info("Ticket %s aberto: gig=%s seller=%s buyer=%s", created.id, gig.id, actor.id, buyer.id)
        return _to_result(created)


# ════════════════════════════════════════════════════════════════
# LEITURA
# ════════════════════════════════════════════════════════════════

class ListTicketsUseCase:
    def __init__(self, repo: ITicketRepository) -> None:
        self._repo = repo

    async def execute(self, query: ListTicketsQuery) -> list[TicketResult]:
        tickets = await self._repo.list_for_participant(query.user_id)
        return [_to_result(t) for t in tickets]


class GetTicketUseCase:
    def __init__(self, repo: ITicketRepository) -> None:
        self._repo = repo

    async def execute(self, query: GetTicketByIdQuery, actor: User) -> TicketResult:
        ticket = await _load_for_participant(self._repo, query.ticket_id, actor)
        return _to_result(ticket)


class GetTimelineUseCase:
    def __init__(self, repo: ITicketRepository) -> None:
        self._repo = repo

    async def execute(self, query: GetTicketByIdQuery, actor: User) -> list[dict]:
        ticket = await _load_for_participant(self._repo, query.ticket_id, actor)
        return ticket.timeline_as_dicts()


class SearchMessagesUseCase:
    """Busca linear, case-insensitive, no conteúdo das mensagens."""

    def __init__(self, repo: ITicketRepository) -> None:
        self._repo = repo

    async def execute(self, query: SearchMessagesQuery, actor: User) -> list[dict]:
        ticket = await _load_for_participant(self._repo, query.ticket_id, actor)
        term = (query.query or "").strip()
        return [m.to_dict() for m in ticket.search_messages(term)]


class DebugGetTicketUseCase:
    """Dump bruto sem autenticação; só montado com DEBUG ativo."""

    def __init__(self, repo: ITicketRepository) -> None:
        self._repo = repo

    async def execute(self, query: GetTicketByIdQuery) -> TicketResult:
        ticket = await self._repo.get_by_id(query.ticket_id)
        if ticket is None:
            raise NotFoundError("Ticket", query.ticket_id)
        return _to_result(ticket)


# ════════════════════════════════════════════════════════════════
# MENSAGENS
# ════════════════════════════════════════════════════════════════

class SendMessageUseCase:
    """
    Operação única de envio: usada pela rota de texto, pela rota de anexo
    e pelo evento sendMessage do canal realtime.
    """

    def __init__(
        self,
        repo: ITicketRepository,
        uow: UnitOfWork,
        storage: Optional[FileStorageService] = None,
        locks: KeyedLock = ticket_locks,
    ) -> None:
        self._repo = repo
        self._uow = uow
        self._storage = storage
        self._locks = locks

    async def execute(self, cmd: SendMessageCommand, actor: User) -> TicketResult:
        async with self._locks.acquire(cmd.ticket_id):
            ticket = await _load_for_participant(self._repo, cmd.ticket_id, actor)

            has_file = cmd.attachment is not None
            content = validate_message_content(
                cmd.content,
                required=not (cmd.allow_empty_content and has_file),
            )
            if cmd.allow_empty_content and not content and not has_file:
                raise ValidationFailedError.for_field("content", "Informe um conteúdo ou um anexo")

            ticket.ensure_accepts_messages()

            attachment_url = None
            if has_file:
                if self._storage is None:
                    raise UpstreamError("storage", "Armazenamento de anexos indisponível")
                attachment_url = await self._storage.save(ticket.id, cmd.attachment)

            ticket.post_message(Message(
                sender_id=actor.id,
                sender_name=actor.full_name,
                content=content,
                attachment=attachment_url,
            ))
            updated = await self._repo.update(ticket)
            self._uow.collect_events_from(ticket)
            await self._uow.commit()

        logger.info(
            "Mensagem enviada: ticket=%s sender=%s chars=%d anexo=%s",
            ticket.id,
            actor.id,
            len(content),
            attachment_url or "-",
        )
        return _to_result(updated)


class MarkMessagesReadUseCase:
    def __init__(self, repo: ITicketRepository, uow: UnitOfWork, locks: KeyedLock = ticket_locks) -> None:
        self._repo = repo
        self._uow = uow
        self._locks = locks

    async def execute(self, cmd: MarkMessagesReadCommand, actor: User) -> TicketResult:
        async with self._locks.acquire(cmd.ticket_id):
            ticket = await _load_for_participant(self._repo, cmd.ticket_id, actor)
            changed = ticket.mark_messages_read(actor.id, actor.full_name)
            if changed:
                ticket = await self._repo.update(ticket)
                await self._uow.commit()

        logger.info("Mensagens lidas: ticket=%s reader=%s alteradas=%d", cmd.ticket_id, actor.id, changed)
        return _to_result(ticket)


class GenerateAIResponseUseCase:
    """
    Gera uma resposta de IA a partir do histórico.

    A chamada externa acontece fora do lock do ticket; só o append final
    é serializado. Falha do provedor → UpstreamError, nada é gravado.
    """

    def __init__(
        self,
        repo: ITicketRepository,
        uow: UnitOfWork,
        responder: AIResponder,
        locks: KeyedLock = ticket_locks,
    ) -> None:
        self._repo = repo
        self._uow = uow
        self._responder = responder
        self._locks = locks

    async def execute(self, cmd: GenerateAIResponseCommand, actor: User) -> AIResponseResult:
        ticket = await _load_for_participant(self._repo, cmd.ticket_id, actor)
        content = validate_message_content(cmd.content)

        prompt = build_negotiation_prompt(
            gig_title=ticket.gig_title,
            gig_price=ticket.gig_price,
            history=ticket.messages,
            requester_name=actor.full_name,
            content=content,
        )
        raw = await self._responder(prompt)
        reply = sanitize_text(raw)
        if not reply:
            raise UpstreamError("gemini", "O serviço de IA retornou uma resposta vazia")

        async with self._locks.acquire(cmd.ticket_id):
            ticket = await _load_for_participant(self._repo, cmd.ticket_id, actor)
            ticket.post_ai_response(
                Message(
                    sender_id=settings.AI_SENDER_ID,
                    sender_name=settings.AI_SENDER_NAME,
                    content=reply,
                ),
                requested_by_name=actor.full_name,
            )
            updated = await self._repo.update(ticket)
            await self._uow.commit()

        logger.info("Resposta de IA gerada: ticket=%s chars=%d requester=%s", ticket.id, len(reply), actor.id)
        return AIResponseResult(ai_response=reply, ticket=_to_result(updated))


# ════════════════════════════════════════════════════════════════
# NEGOCIAÇÃO (state machine)
# ════════════════════════════════════════════════════════════════

class ProposePriceUseCase:
    def __init__(self, repo: ITicketRepository, uow: UnitOfWork, locks: KeyedLock = ticket_locks) -> None:
        self._repo = repo
        self._uow = uow
        self._locks = locks

    async def execute(self, cmd: ProposePriceCommand, actor: User) -> TicketResult:
        async with self._locks.acquire(cmd.ticket_id):
            ticket = await _load_for_participant(self._repo, cmd.ticket_id, actor)
            ticket.propose_price(cmd.agreed_price, actor.id, actor.full_name)
            updated = await self._repo.update(ticket)
            self._uow.collect_events_from(ticket)
            await self._uow.commit()

        logger.info("Preço proposto: ticket=%s price=%.2f by=%s", ticket.id, cmd.agreed_price, actor.id)
        return _to_result(updated)


class AcceptPriceUseCase:
    def __init__(self, repo: ITicketRepository, uow: UnitOfWork, locks: KeyedLock = ticket_locks) -> None:
        self._repo = repo
        self._uow = uow
        self._locks = locks

    async def execute(self, cmd: TicketActionCommand, actor: User) -> TicketResult:
        async with self._locks.acquire(cmd.ticket_id):
            ticket = await _load_for_participant(self._repo, cmd.ticket_id, actor)
            ticket.accept_price(actor.id, actor.full_name)
            updated = await self._repo.update(ticket)
            self._uow.collect_events_from(ticket)
            await self._uow.commit()

        logger.info("Preço aceito: ticket=%s buyer=%s", ticket.id, actor.id)
        return _to_result(updated)


class ConfirmPaymentUseCase:
    """Comprador confirma o pagamento; o vendedor é creditado na mesma transação."""

    def __init__(
        self,
        repo: ITicketRepository,
        user_repo: IUserRepository,
        uow: UnitOfWork,
        locks: KeyedLock = ticket_locks,
    ) -> None:
        self._repo = repo
        self._user_repo = user_repo
        self._uow = uow
        self._locks = locks

    async def execute(self, cmd: TicketActionCommand, actor: User) -> TicketResult:
        async with self._locks.acquire(cmd.ticket_id):
            ticket = await _load_for_participant(self._repo, cmd.ticket_id, actor)
            ticket.confirm_payment(actor.id, actor.full_name)

            seller = await self._user_repo.get_by_id(ticket.seller_id)
            if seller is not None:
                seller.credit_payment(ticket.agreed_price, ticket.gig_title)
                await self._user_repo.update(seller)
            else:
                logger.warning("Vendedor %s do ticket %s não encontrado; crédito não aplicado", ticket.seller_id, ticket.id)

            updated = await self._repo.update(ticket)
            self._uow.collect_events_from(ticket)
            await self._uow.commit()

        logger.info("Pagamento confirmado: ticket=%s amount=%.2f", ticket.id, ticket.agreed_price)
        return _to_result(updated)


class CompleteTicketUseCase:
    def __init__(
        self,
        repo: ITicketRepository,
        user_repo: IUserRepository,
        uow: UnitOfWork,
        locks: KeyedLock = ticket_locks,
    ) -> None:
        self._repo = repo
        self._user_repo = user_repo
        self._uow = uow
        self._locks = locks

    async def execute(self, cmd: TicketActionCommand, actor: User) -> TicketResult:
        async with self._locks.acquire(cmd.ticket_id):
            ticket = await _load_for_participant(self._repo, cmd.ticket_id, actor)
            ticket.complete(actor.id, actor.full_name)

            seller = await self._user_repo.get_by_id(ticket.seller_id)
            if seller is not None:
                seller.record_completion(ticket.gig_title)
                await self._user_repo.update(seller)

            updated = await self._repo.update(ticket)
            self._uow.collect_events_from(ticket)
            await self._uow.commit()

        logger.info("Ticket concluído: ticket=%s seller=%s", ticket.id, actor.id)
        return _to_result(updated)


class CloseTicketUseCase:
    """
    Comprador fecha o ticket, opcionalmente avaliando o vendedor.

    A avaliação, a nova média do gig e o fechamento são gravados no mesmo
    commit, então a média nunca diverge da lista de avaliações.
    """

    def __init__(
        self,
        repo: ITicketRepository,
        user_repo: IUserRepository,
        gig_repo: IGigRepository,
        uow: UnitOfWork,
        locks: KeyedLock = ticket_locks,
    ) -> None:
        self._repo = repo
        self._user_repo = user_repo
        self._gig_repo = gig_repo
        self._uow = uow
        self._locks = locks

    async def execute(self, cmd: CloseTicketCommand, actor: User) -> TicketResult:
        async with self._locks.acquire(cmd.ticket_id):
            ticket = await _load_for_participant(self._repo, cmd.ticket_id, actor)
            ticket.close(actor.id, actor.full_name, rating=cmd.rating)

            if cmd.rating is not None:
                seller = await self._user_repo.get_by_id(ticket.seller_id)
                if seller is not None:
                    seller.add_rating(Rating(value=cmd.rating, ticket_id=ticket.id, giver_id=actor.id))
                    await self._user_repo.update(seller)
                    gig = await self._gig_repo.get_by_id(ticket.gig_id)
                    if gig is not None:
                        gig.set_rating(seller.average_rating())
                        await self._gig_repo.update(gig)

            updated = await self._repo.update(ticket)
            self._uow.collect_events_from(ticket)
            await self._uow.commit()

        logger.info("Ticket fechado: ticket=%s buyer=%s rating=%s", ticket.id, actor.id, cmd.rating)
        return _to_result(updated)

"""
Endpoint de debug — /api/debug

Dump bruto de um ticket SEM autenticação. Só é montado com DEBUG=true.
"""

from fastapi import APIRouter, Depends

from gigconnect.application.dtos.ticket_dtos import GetTicketByIdQuery
from gigconnect.application.systems.tickets.use_cases import DebugGetTicketUseCase
from gigconnect.infrastructure.systems.tickets.repository import TicketRepository
from gigconnect.presentation.api.deps import get_ticket_repo, valid_ticket_id
from gigconnect.presentation.api.schemas import TicketResponse, to_ticket_out

router = APIRouter()


@router.get("/tickets/{ticket_id}", response_model=TicketResponse, summary="[DEBUG] Dump de ticket")
async def debug_get_ticket(
    ticket_id: str = Depends(valid_ticket_id),
    repo: TicketRepository = Depends(get_ticket_repo),
):
    result = await DebugGetTicketUseCase(repo).execute(GetTicketByIdQuery(ticket_id=ticket_id))
    return TicketResponse(ticket=to_ticket_out(result))

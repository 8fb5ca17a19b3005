"""Router da API — agrega todos os sub-routers."""

from fastapi import APIRouter

from gigconnect.infrastructure.config import get_settings
from gigconnect.presentation.api.endpoints.debug import router as debug_router
from gigconnect.presentation.api.endpoints.tickets import router as tickets_router

settings = get_settings()

api_router = APIRouter()

api_router.include_router(tickets_router, prefix="/tickets", tags=["🎫 Tickets"])

if settings.DEBUG:
    api_router.include_router(debug_router, prefix="/debug", tags=["🐞 Debug"])

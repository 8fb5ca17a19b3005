"""
Ponto de entrada principal da aplicação.

    uvicorn gigconnect.main:asgi_app --reload --port 8000

`app` é a API FastAPI; `asgi_app` a envolve com o servidor Socket.IO
(caminho /ticket-socket) para o canal realtime dos tickets.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text

from gigconnect.infrastructure.config import get_settings
from gigconnect.infrastructure.config.logging import configure_logging
from gigconnect.infrastructure.database.session import AsyncSessionLocal
from gigconnect.infrastructure.services.notification_queue import notification_queue
from gigconnect.presentation.api.router import api_router
from gigconnect.presentation.middleware.exception_handlers import register_exception_handlers
from gigconnect.presentation.middleware.request_id import RequestIdMiddleware
from gigconnect.presentation.middleware.security_headers import SecurityHeadersMiddleware
from gigconnect.presentation.realtime.ticket_socket import SOCKET_PATH, sio

settings = get_settings()

configure_logging(settings)
logger = logging.getLogger(__name__)


# ════════════════════════════════════════════════════════════════
# LIFESPAN — startup / shutdown
# ════════════════════════════════════════════════════════════════
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    from gigconnect.application.shared.event_handlers import register_all_handlers
    register_all_handlers()
    notification_queue.start()
    logger.info("✅ App started — event handlers registered, notification worker running")
    yield
    # Shutdown
    await notification_queue.stop()
    logger.info("🛑 App shutting down")


# ════════════════════════════════════════════════════════════════
# APP
# ════════════════════════════════════════════════════════════════
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=(
        "API de negociação de gigs: tickets entre comprador e vendedor com "
        "state machine, mensagens, anexos, respostas de IA e notificações por e-mail."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
    responses={
        401: {"description": "Token inválido ou ausente"},
        403: {"description": "Permissão insuficiente"},
        404: {"description": "Recurso não encontrado"},
        422: {"description": "Erro de validação"},
        500: {"description": "Erro interno do servidor"},
    },
)

# ── Middleware ──
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(SecurityHeadersMiddleware)

# ── Exception handlers globais ──
register_exception_handlers(app)

# ── Rotas ──
app.include_router(api_router, prefix="/api")

# ── Anexos (somente leitura) ──
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount(settings.UPLOAD_URL_PREFIX, StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


# ════════════════════════════════════════════════════════════════
# HEALTH CHECK
# ════════════════════════════════════════════════════════════════
@app.get(
    "/health",
    tags=["❤️ Health"],
    summary="Verificação de saúde da API",
    description="Retorna status da API e conectividade com o banco de dados.",
)
async def health_check():
    db_ok = False
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
            db_ok = True
    except Exception as exc:
        logger.warning("Health check: banco indisponível (%s)", exc)

    return {
        "status": "ok" if db_ok else "degraded",
        "version": settings.APP_VERSION,
        "database": "connected" if db_ok else "disconnected",
        "notifications": "running" if notification_queue.running else "stopped",
    }


# ── App ASGI final: Socket.IO + FastAPI ──
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app, socketio_path=SOCKET_PATH)

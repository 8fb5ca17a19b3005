"""
Fila de saída de notificações.

Os handlers de eventos apenas enfileiram; um worker em background entrega
com retry e backoff exponencial. Nenhuma falha aqui chega ao request.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from gigconnect.infrastructure.config import get_settings
from gigconnect.infrastructure.services.email_service import OutboundEmail, send_email

logger = logging.getLogger(__name__)

Sender = Callable[[OutboundEmail], Awaitable[None]]


class NotificationQueue:
    def __init__(
        self,
        sender: Sender = send_email,
        *,
        max_attempts: int = 3,
        backoff_seconds: float = 2.0,
        maxsize: int = 1000,
    ) -> None:
        self._sender = sender
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.maxsize = maxsize
        self._queue: Optional[asyncio.Queue[OutboundEmail]] = None
        self._worker: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        if self.running:
            return
        self._queue = asyncio.Queue(maxsize=self.maxsize)
        self._worker = asyncio.create_task(self._run(), name="notification-worker")
        logger.info("Worker de notificações iniciado")

    async def stop(self) -> None:
        if self._worker is None:
            return
        pending = self._queue.qsize() if self._queue else 0
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        self._queue = None
        if pending:
            logger.warning("Worker de notificações parado com %d e-mail(s) pendentes", pending)
        else:
            logger.info("Worker de notificações parado")

    def enqueue(self, email: OutboundEmail) -> bool:
        if self._queue is None:
            logger.warning("Fila de notificações inativa; e-mail para %s descartado", email.to)
            return False
        try:
            self._queue.put_nowait(email)
        except asyncio.QueueFull:
            logger.warning(
                "Fila de notificações cheia; e-mail para %s descartado (ticket=%s)",
                email.to,
                email.ticket_id,
            )
            return False
        return True

    async def join(self) -> None:
        """Aguarda até a fila esvaziar."""
        if self._queue is not None:
            await self._queue.join()

    async def _run(self) -> None:
        while True:
            email = await self._queue.get()
            try:
                await self.deliver(email)
            finally:
                self._queue.task_done()

    async def deliver(self, email: OutboundEmail) -> bool:
        for attempt in range(1, self.max_attempts + 1):
            try:
                await self._sender(email)
                return True
            except Exception as exc:
                if attempt == self.max_attempts:
                    logger.error(
                        "Falha definitiva ao enviar e-mail para %s (ticket=%s) após %d tentativas: %s",
                        email.to,
                        email.ticket_id,
                        attempt,
                        exc,
                    )
                    return False
                delay = self.backoff_seconds * 2 ** (attempt - 1)
                logger.warning(
                    "Tentativa %d de envio para %s falhou (%s); nova tentativa em %.1fs",
                    attempt,
                    email.to,
                    exc,
                    delay,
                )
                await asyncio.sleep(delay)
        return False


def _build_queue() -> NotificationQueue:
    settings = get_settings()
    return NotificationQueue(
        max_attempts=settings.NOTIFICATION_MAX_ATTEMPTS,
        backoff_seconds=settings.NOTIFICATION_RETRY_BACKOFF_SECONDS,
        maxsize=settings.NOTIFICATION_QUEUE_SIZE,
    )


notification_queue = _build_queue()

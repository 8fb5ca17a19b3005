"""
Dispatcher de eventos de domínio.

Recebe os eventos coletados das entidades após o commit e os repassa aos
handlers registrados. Erros de handler são logados e nunca propagam.
"""

from __future__ import annotations

import logging
from typing import Callable, Type

from gigconnect.domain.events.base import DomainEvent

logger = logging.getLogger(__name__)

# Registry: event_type → list[handler]
_handlers: dict[Type[DomainEvent], list[Callable]] = {}


def register_handler(event_type: Type[DomainEvent], handler: Callable) -> None:
    """Registra um handler para um tipo de evento (sem duplicar)."""
    handlers = _handlers.setdefault(event_type, [])
    if handler not in handlers:
        handlers.append(handler)


async def dispatch_events(events: list[DomainEvent]) -> None:
    for event in events:
        for handler in _handlers.get(type(event), []):
            try:
                result = handler(event)
                # Suporta handlers async e sync
                if hasattr(result, "__await__"):
                    await result
            except Exception:
                logger.exception(
                    "Erro ao despachar evento %s (%s) para handler %s",
                    event.event_type,
                    event.event_id,
                    handler.__name__,
                )


def clear_handlers() -> None:
    """Limpa todos os handlers (útil em testes)."""
    _handlers.clear()

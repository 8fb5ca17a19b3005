"""Envio de e-mail via SMTP (transporte bloqueante executado em thread)."""

from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from gigconnect.infrastructure.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass(frozen=True)
class OutboundEmail:
    to: str
    subject: str
    html: str
    ticket_id: Optional[str] = None


def _build_mime(email: OutboundEmail) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = email.subject
    msg["From"] = settings.EMAIL_FROM
    msg["To"] = email.to
    msg.attach(MIMEText(email.html, "html", "utf-8"))
    return msg


def _send_sync(email: OutboundEmail) -> None:
    msg = _build_mime(email)
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS) as server:
        if settings.SMTP_USE_TLS:
            server.starttls(context=ssl.create_default_context())
        if settings.SMTP_USERNAME:
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.sendmail(settings.EMAIL_FROM, [email.to], msg.as_string())


async def send_email(email: OutboundEmail) -> None:
    """Entrega um e-mail; exceções do SMTP propagam para quem faz retry."""
    await asyncio.to_thread(_send_sync, email)
    logger.info("E-mail enviado para %s: %s", email.to, email.subject)

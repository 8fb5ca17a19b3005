"""
Serviço de geração de respostas via Gemini API.

Gera a resposta do assistente de negociação a partir do histórico do ticket.
Toda falha (timeout, erro do provedor, resposta vazia) vira UpstreamError.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from google import genai
from google.genai import types

from gigconnect.domain.shared.exceptions import UpstreamError
from gigconnect.domain.shared.value_objects import Message, format_inr
from gigconnect.infrastructure.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def _build_client() -> genai.Client:
    api_key = settings.GEMINI_API_KEY
    if not api_key:
        raise UpstreamError("gemini", "GEMINI_API_KEY não configurada no .env")
    return genai.Client(api_key=api_key)


def _get_safety_settings() -> list[types.SafetySetting]:
    categories = (
        types.HarmCategory.HARM_CATEGORY_HARASSMENT,
        types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
        types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
        types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
    )
    return [
        types.SafetySetting(
            category=category,
            threshold=types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
        )
        for category in categories
    ]


def build_negotiation_prompt(
    *,
    gig_title: str,
    gig_price: float | None,
    history: Iterable[Message],
    requester_name: str,
    content: str,
) -> str:
    conversation = "\n".join(f"{m.sender_name}: {m.content}" for m in history)
    price = format_inr(gig_price) if gig_price is not None else "a combinar"
    return (
        "You are an AI assistant helping with a gig negotiation on a freelance platform. "
        f'The gig is "{gig_title}" with a price of {price}. '
        f"Below is the conversation history:\n\n{conversation}\n\n"
        f"User ({requester_name}): {content}\n\n"
        "Provide a professional, concise, and relevant response to assist in the "
        "negotiation or clarify the user's message. Keep the tone friendly and professional."
    )


async def generate_negotiation_reply(prompt: str) -> str:
    if not prompt.strip():
        raise ValueError("prompt não pode estar vazio")

    client = _build_client()
    model = settings.GEMINI_MODEL

    logger.info("Gerando resposta via Gemini (%s), prompt com %d chars", model, len(prompt))

    try:
        resp = await asyncio.wait_for(
            client.aio.models.generate_content(
                model=model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    safety_settings=_get_safety_settings(),
                ),
            ),
            timeout=settings.GEMINI_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError as e:
        logger.error("Gemini excedeu %.0fs", settings.GEMINI_TIMEOUT_SECONDS)
        raise UpstreamError("gemini", "Tempo esgotado aguardando o serviço de IA") from e
    except Exception as e:
        logger.error("Erro ao gerar resposta via Gemini: %s", e)
        raise UpstreamError("gemini", f"Falha na geração via Gemini: {e}") from e

    generated = (resp.text or "").strip()
    if not generated:
        raise UpstreamError("gemini", "O serviço de IA retornou uma resposta vazia")
    logger.info("Resposta gerada com sucesso (%d chars)", len(generated))
    return generated

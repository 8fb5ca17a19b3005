"""Testes da resposta de IA — rota /ai-response e serviço Gemini (async)."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

import gigconnect.services.gemini_service as service
from gigconnect.domain.shared.exceptions import UpstreamError
from gigconnect.domain.shared.value_objects import Message
from gigconnect.main import app
from gigconnect.presentation.api.deps import get_ai_responder
from tests.conftest import auth_header


@pytest.fixture
def responder():
    fake = AsyncMock(return_value="Sugiro propor ₹1,200 com entrega em 5 dias.")
    app.dependency_overrides[get_ai_responder] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_ai_responder, None)


# ════════════════════════════════════════════════════════════════
# ROTA
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_ai_response_appends_message(client: AsyncClient, ticket_id, buyer_token, responder):
    await client.post(f"/api/tickets/{ticket_id}/messages", json={"content": "Qual o prazo?"}, headers=auth_header(buyer_token))

    resp = await client.post(
        f"/api/tickets/{ticket_id}/ai-response",
        json={"content": "Como negocio um desconto?"},
        headers=auth_header(buyer_token),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["ai_response"] == "Sugiro propor ₹1,200 com entrega em 5 dias."

    ticket = data["ticket"]
    ai_msg = ticket["messages"][-1]
    assert ai_msg["sender_id"] == "AI"
    assert ai_msg["sender_name"] == "Gig Connect AI"
    assert ai_msg["content"] == data["ai_response"]
    assert ticket["timeline"][-1]["action"] == "IA respondeu à mensagem de Bruno Comprador"
    assert ticket["status"] == "negotiating"

    prompt = responder.await_args.args[0]
    assert '"Logo para startup"' in prompt
    assert "₹1,500" in prompt
    assert "Bruno Comprador: Qual o prazo?" in prompt
    assert "User (Bruno Comprador): Como negocio um desconto?" in prompt


@pytest.mark.asyncio
async def test_ai_response_does_not_change_status(client: AsyncClient, ticket_id, seller_token, responder):
    resp = await client.post(
        f"/api/tickets/{ticket_id}/ai-response", json={"content": "Ajuda?"}, headers=auth_header(seller_token)
    )
    assert resp.status_code == 200
    assert resp.json()["ticket"]["status"] == "open"


@pytest.mark.asyncio
async def test_ai_response_validates_content(client: AsyncClient, ticket_id, buyer_token, responder):
    resp = await client.post(
        f"/api/tickets/{ticket_id}/ai-response", json={"content": ""}, headers=auth_header(buyer_token)
    )
    assert resp.status_code == 400
    responder.assert_not_awaited()


@pytest.mark.asyncio
async def test_ai_response_rejects_malformed_id(client: AsyncClient, participants, buyer_token, responder):
    resp = await client.post("/api/tickets/xyz/ai-response", json={"content": "oi"}, headers=auth_header(buyer_token))
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "ticket_id"


@pytest.mark.asyncio
async def test_ai_upstream_failure_persists_nothing(client: AsyncClient, ticket_id, buyer_token):
    failing = AsyncMock(side_effect=UpstreamError("gemini", "Tempo esgotado aguardando o serviço de IA"))
    app.dependency_overrides[get_ai_responder] = lambda: failing
    try:
        resp = await client.post(
            f"/api/tickets/{ticket_id}/ai-response", json={"content": "oi"}, headers=auth_header(buyer_token)
        )
    finally:
        app.dependency_overrides.pop(get_ai_responder, None)

    assert resp.status_code == 502
    assert resp.json()["error"] == "upstream_error"

    ticket = (await client.get(f"/api/tickets/{ticket_id}", headers=auth_header(buyer_token))).json()["ticket"]
    assert ticket["messages"] == []
    assert len(ticket["timeline"]) == 1


@pytest.mark.asyncio
async def test_ai_empty_reply_is_upstream_error(client: AsyncClient, ticket_id, buyer_token):
    app.dependency_overrides[get_ai_responder] = lambda: AsyncMock(return_value="<p></p>")
    try:
        resp = await client.post(
            f"/api/tickets/{ticket_id}/ai-response", json={"content": "oi"}, headers=auth_header(buyer_token)
        )
    finally:
        app.dependency_overrides.pop(get_ai_responder, None)
    assert resp.status_code == 502


# ════════════════════════════════════════════════════════════════
# SERVIÇO GEMINI
# ════════════════════════════════════════════════════════════════

def _mock_client(generate_content) -> MagicMock:
    mock_client = MagicMock()
    mock_client.aio.models.generate_content = generate_content
    mock_client.models.generate_content = MagicMock()
    return mock_client


@pytest.mark.asyncio
async def test_generate_reply_uses_async_client(monkeypatch):
    generate = AsyncMock()
    generate.return_value.text = "  Resposta async  "
    mock_client = _mock_client(generate)

    monkeypatch.setattr(service, "_build_client", lambda: mock_client)
    monkeypatch.setattr(service.settings, "GEMINI_MODEL", "test-model")

    reply = await service.generate_negotiation_reply("Hello")

    assert reply == "Resposta async"
    generate.assert_awaited_once()
    assert generate.await_args.kwargs["model"] == "test-model"
    assert generate.await_args.kwargs["contents"] == "Hello"
    mock_client.models.generate_content.assert_not_called()


@pytest.mark.asyncio
async def test_generate_reply_timeout(monkeypatch):
    async def slow(**kwargs):
        await asyncio.sleep(5)

    monkeypatch.setattr(service, "_build_client", lambda: _mock_client(slow))
    monkeypatch.setattr(service.settings, "GEMINI_TIMEOUT_SECONDS", 0.01)

    with pytest.raises(UpstreamError) as exc_info:
        await service.generate_negotiation_reply("Hello")
    assert exc_info.value.service == "gemini"


@pytest.mark.asyncio
async def test_generate_reply_provider_error(monkeypatch):
    generate = AsyncMock(side_effect=RuntimeError("quota exceeded"))
    monkeypatch.setattr(service, "_build_client", lambda: _mock_client(generate))

    with pytest.raises(UpstreamError, match="quota exceeded"):
        await service.generate_negotiation_reply("Hello")


@pytest.mark.asyncio
async def test_generate_reply_without_api_key(monkeypatch):
    monkeypatch.setattr(service.settings, "GEMINI_API_KEY", "")
    with pytest.raises(UpstreamError):
        await service.generate_negotiation_reply("Hello")


def test_build_negotiation_prompt_without_price():
    prompt = service.build_negotiation_prompt(
        gig_title="Site institucional",
        gig_price=None,
        history=[Message(sender_id="x", sender_name="Ana", content="Oi")],
        requester_name="Bruno",
        content="Quanto custa?",
    )
    assert "a combinar" in prompt
    assert "Ana: Oi" in prompt
    assert "User (Bruno): Quanto custa?" in prompt

"""Testes de mensagens — envio, sanitização, anexos, leitura e busca."""

import pytest
from httpx import AsyncClient

from gigconnect.infrastructure.services.file_storage import FileStorageService
from gigconnect.main import app
from gigconnect.presentation.api.deps import get_file_storage
from tests.conftest import auth_header

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


async def _close_ticket(client: AsyncClient, ticket_id: str, seller_token: str, buyer_token: str) -> None:
    base = f"/api/tickets/{ticket_id}"
    await client.patch(f"{base}/price", json={"agreed_price": 500}, headers=auth_header(seller_token))
    await client.patch(f"{base}/accept-price", headers=auth_header(buyer_token))
    await client.patch(f"{base}/pay", headers=auth_header(buyer_token))
    await client.patch(f"{base}/complete", headers=auth_header(seller_token))
    resp = await client.patch(f"{base}/close", headers=auth_header(buyer_token))
    assert resp.json()["ticket"]["status"] == "closed"


@pytest.fixture
def storage(tmp_path):
    service = FileStorageService(base_dir=tmp_path, url_prefix="/uploads")
    app.dependency_overrides[get_file_storage] = lambda: service
    yield service
    app.dependency_overrides.pop(get_file_storage, None)


# ════════════════════════════════════════════════════════════════
# TEXTO
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_send_message(client: AsyncClient, ticket_id, seller_token):
    resp = await client.post(
        f"/api/tickets/{ticket_id}/messages",
        json={"content": "  Posso entregar em 3 dias  "},
        headers=auth_header(seller_token),
    )
    assert resp.status_code == 200
    ticket = resp.json()["ticket"]
    msg = ticket["messages"][-1]
    assert msg["content"] == "Posso entregar em 3 dias"
    assert msg["sender_name"] == "Ana Vendedora"
    assert msg["read"] is False
    assert msg["attachment"] is None
    assert ticket["status"] == "negotiating"


@pytest.mark.asyncio
async def test_send_message_strips_markup(client: AsyncClient, ticket_id, buyer_token):
    resp = await client.post(
        f"/api/tickets/{ticket_id}/messages",
        json={"content": "<script>alert(1)</script><b>Oi</b>"},
        headers=auth_header(buyer_token),
    )
    assert resp.status_code == 200
    content = resp.json()["ticket"]["messages"][-1]["content"]
    assert "<" not in content
    assert "Oi" in content


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   ", "x" * 1001])
async def test_send_message_rejects_bad_length(client: AsyncClient, ticket_id, buyer_token, content):
    resp = await client.post(
        f"/api/tickets/{ticket_id}/messages", json={"content": content}, headers=auth_header(buyer_token)
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "validation_error"
    assert body["errors"] == [{"field": "content", "message": "A mensagem deve ter entre 1 e 1000 caracteres"}]

    ticket = (await client.get(f"/api/tickets/{ticket_id}", headers=auth_header(buyer_token))).json()["ticket"]
    assert ticket["messages"] == []
    assert ticket["status"] == "open"


@pytest.mark.asyncio
async def test_send_message_accepts_max_length(client: AsyncClient, ticket_id, buyer_token):
    resp = await client.post(
        f"/api/tickets/{ticket_id}/messages", json={"content": "x" * 1000}, headers=auth_header(buyer_token)
    )
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_send_message_on_closed_ticket(client: AsyncClient, ticket_id, seller_token, buyer_token):
    await _close_ticket(client, ticket_id, seller_token, buyer_token)
    before = (await client.get(f"/api/tickets/{ticket_id}", headers=auth_header(buyer_token))).json()["ticket"]

    resp = await client.post(
        f"/api/tickets/{ticket_id}/messages", json={"content": "mais uma coisa"}, headers=auth_header(buyer_token)
    )
    assert resp.status_code == 400
    assert resp.json() == {
        "error": "invalid_state",
        "detail": "Ticket está fechado",
        "request_id": resp.headers["X-Request-ID"],
    }

    after = (await client.get(f"/api/tickets/{ticket_id}", headers=auth_header(buyer_token))).json()["ticket"]
    assert after["messages"] == before["messages"]
    assert after["timeline"] == before["timeline"]


@pytest.mark.asyncio
async def test_message_to_unknown_ticket(client: AsyncClient, participants, buyer_token):
    resp = await client.post(
        f"/api/tickets/{'f' * 32}/messages", json={"content": "oi"}, headers=auth_header(buyer_token)
    )
    assert resp.status_code == 404


# ════════════════════════════════════════════════════════════════
# ANEXOS
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_send_attachment_without_content(client: AsyncClient, ticket_id, buyer_token, storage, tmp_path):
    resp = await client.post(
        f"/api/tickets/{ticket_id}/messages/attachment",
        data={"content": ""},
        files={"file": ("briefing.png", PNG_BYTES, "image/png")},
        headers=auth_header(buyer_token),
    )
    assert resp.status_code == 200
    ticket = resp.json()["ticket"]
    msg = ticket["messages"][-1]
    assert msg["content"] == ""
    assert msg["attachment"].startswith(f"/uploads/tickets/{ticket_id}/")
    assert msg["attachment"].endswith(".png")
    assert ticket["timeline"][-1]["action"] == (
        "Mensagem com anexo enviada por Bruno Comprador; ticket movido para negociação"
    )

    stored = tmp_path / "tickets" / ticket_id / msg["attachment"].rsplit("/", 1)[-1]
    assert stored.read_bytes() == PNG_BYTES


@pytest.mark.asyncio
async def test_send_attachment_with_content_only(client: AsyncClient, ticket_id, buyer_token, storage):
    resp = await client.post(
        f"/api/tickets/{ticket_id}/messages/attachment",
        data={"content": "sem arquivo desta vez"},
        headers=auth_header(buyer_token),
    )
    assert resp.status_code == 200
    msg = resp.json()["ticket"]["messages"][-1]
    assert msg["content"] == "sem arquivo desta vez"
    assert msg["attachment"] is None


@pytest.mark.asyncio
async def test_send_attachment_requires_content_or_file(client: AsyncClient, ticket_id, buyer_token, storage):
    resp = await client.post(
        f"/api/tickets/{ticket_id}/messages/attachment",
        data={"content": "   "},
        headers=auth_header(buyer_token),
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_error"


@pytest.mark.asyncio
async def test_send_attachment_rejects_content_type(client: AsyncClient, ticket_id, buyer_token, storage, tmp_path):
    resp = await client.post(
        f"/api/tickets/{ticket_id}/messages/attachment",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=auth_header(buyer_token),
    )
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "attachment"
    assert not (tmp_path / "tickets").exists()

    ticket = (await client.get(f"/api/tickets/{ticket_id}", headers=auth_header(buyer_token))).json()["ticket"]
    assert ticket["messages"] == []


@pytest.mark.asyncio
async def test_send_attachment_rejects_oversized_file(client: AsyncClient, ticket_id, buyer_token, storage, monkeypatch):
    import gigconnect.infrastructure.services.file_storage as file_storage

    monkeypatch.setattr(file_storage.settings, "MAX_FILE_SIZE_MB", 0)
    resp = await client.post(
        f"/api/tickets/{ticket_id}/messages/attachment",
        files={"file": ("big.png", PNG_BYTES, "image/png")},
        headers=auth_header(buyer_token),
    )
    assert resp.status_code == 400
    assert "limite" in resp.json()["detail"]


# ════════════════════════════════════════════════════════════════
# LEITURA
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_mark_messages_read_is_idempotent(client: AsyncClient, ticket_id, seller_token, buyer_token):
    base = f"/api/tickets/{ticket_id}"
    await client.post(f"{base}/messages", json={"content": "primeira"}, headers=auth_header(buyer_token))
    await client.post(f"{base}/messages", json={"content": "segunda"}, headers=auth_header(buyer_token))
    await client.post(f"{base}/messages", json={"content": "resposta"}, headers=auth_header(seller_token))

    resp = await client.patch(f"{base}/messages/read", headers=auth_header(seller_token))
    assert resp.status_code == 200
    first = resp.json()["ticket"]
    reads = {m["content"]: m["read"] for m in first["messages"]}
    assert reads == {"primeira": True, "segunda": True, "resposta": False}
    assert first["timeline"][-1]["action"] == "Mensagens marcadas como lidas por Ana Vendedora"

    resp = await client.patch(f"{base}/messages/read", headers=auth_header(seller_token))
    second = resp.json()["ticket"]
    assert second["messages"] == first["messages"]
    assert second["timeline"] == first["timeline"]
    assert second["version"] == first["version"]


@pytest.mark.asyncio
async def test_mark_messages_read_rejects_malformed_id(client: AsyncClient, participants, seller_token):
    resp = await client.patch("/api/tickets/123/messages/read", headers=auth_header(seller_token))
    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_error"


# ════════════════════════════════════════════════════════════════
# BUSCA
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_search_messages_case_insensitive(client: AsyncClient, ticket_id, seller_token, buyer_token):
    base = f"/api/tickets/{ticket_id}"
    await client.post(f"{base}/messages", json={"content": "Qual o Prazo de entrega?"}, headers=auth_header(buyer_token))
    await client.post(f"{base}/messages", json={"content": "Uma semana"}, headers=auth_header(seller_token))

    resp = await client.get(f"{base}/messages/search", params={"query": "PRAZO"}, headers=auth_header(buyer_token))
    assert resp.status_code == 200
    messages = resp.json()["messages"]
    assert [m["content"] for m in messages] == ["Qual o Prazo de entrega?"]

    resp = await client.get(f"{base}/messages/search", params={"query": "orçamento"}, headers=auth_header(buyer_token))
    assert resp.json()["messages"] == []


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{}, {"query": ""}])
async def test_search_messages_empty_query_returns_all(client: AsyncClient, ticket_id, seller_token, buyer_token, params):
    base = f"/api/tickets/{ticket_id}"
    await client.post(f"{base}/messages", json={"content": "um"}, headers=auth_header(buyer_token))
    await client.post(f"{base}/messages", json={"content": "dois"}, headers=auth_header(seller_token))

    resp = await client.get(f"{base}/messages/search", params=params, headers=auth_header(buyer_token))
    assert resp.status_code == 200
    assert [m["content"] for m in resp.json()["messages"]] == ["um", "dois"]

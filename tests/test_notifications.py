"""Testes de notificações — handlers de eventos e fila de saída com retry."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

import gigconnect.application.shared.event_handlers as event_handlers
import gigconnect.infrastructure.services.email_service as email_service
from gigconnect.application.shared.event_dispatcher import dispatch_events, register_handler
from gigconnect.domain.events.ticket_events import MessageSent, TicketStatusChanged
from gigconnect.infrastructure.services.email_service import OutboundEmail
from gigconnect.infrastructure.services.notification_queue import NotificationQueue
from tests.conftest import auth_header


@pytest.fixture
def outbox(monkeypatch):
    """Substitui a fila real; handlers registrados como na inicialização da app."""
    queue = MagicMock()
    queue.enqueue = MagicMock(return_value=True)
    monkeypatch.setattr(event_handlers, "notification_queue", queue)
    event_handlers.register_all_handlers()
    return queue


def _sent(outbox) -> list[OutboundEmail]:
    return [c.args[0] for c in outbox.enqueue.call_args_list]


# ════════════════════════════════════════════════════════════════
# HANDLERS
# ════════════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_message_notifies_other_participant(client: AsyncClient, ticket_id, buyer_token, outbox):
    resp = await client.post(
        f"/api/tickets/{ticket_id}/messages", json={"content": "Consegue até sexta?"}, headers=auth_header(buyer_token)
    )
    assert resp.status_code == 200

    emails = _sent(outbox)
    assert len(emails) == 1
    email = emails[0]
    assert email.to == "seller@test.com"
    assert email.ticket_id == ticket_id
    assert email.subject == 'Nova mensagem sobre "Logo para startup"'
    assert "Consegue até sexta?" in email.html
    assert f"/tickets/{ticket_id}" in email.html


@pytest.mark.asyncio
async def test_negotiation_steps_notify_expected_recipients(client: AsyncClient, ticket_id, seller_token, buyer_token, outbox):
    base = f"/api/tickets/{ticket_id}"
    await client.patch(f"{base}/price", json={"agreed_price": 100000}, headers=auth_header(seller_token))
    await client.patch(f"{base}/accept-price", headers=auth_header(buyer_token))
    await client.patch(f"{base}/pay", headers=auth_header(buyer_token))
    await client.patch(f"{base}/complete", headers=auth_header(seller_token))
    await client.patch(f"{base}/close", json={"rating": 4}, headers=auth_header(buyer_token))

    emails = _sent(outbox)
    assert [e.to for e in emails] == [
        "buyer@test.com",   # preço proposto pelo vendedor
        "seller@test.com",  # preço aceito
        "seller@test.com",  # pagamento recebido
        "buyer@test.com",   # trabalho concluído
        "seller@test.com",  # ticket fechado
    ]
    assert "₹1,00,000" in emails[0].html
    assert "4/5" in emails[-1].html


@pytest.mark.asyncio
async def test_failed_operation_sends_nothing(client: AsyncClient, ticket_id, seller_token, outbox):
    resp = await client.patch(f"/api/tickets/{ticket_id}/accept-price", headers=auth_header(seller_token))
    assert resp.status_code == 400
    outbox.enqueue.assert_not_called()


@pytest.mark.asyncio
async def test_handler_failure_does_not_fail_request(client: AsyncClient, ticket_id, buyer_token, outbox):
    outbox.enqueue.side_effect = RuntimeError("fila quebrada")

    resp = await client.post(
        f"/api/tickets/{ticket_id}/messages", json={"content": "oi"}, headers=auth_header(buyer_token)
    )
    assert resp.status_code == 200
    assert resp.json()["ticket"]["messages"][-1]["content"] == "oi"


@pytest.mark.asyncio
async def test_unknown_recipient_is_skipped(participants, outbox):
    await dispatch_events([
        MessageSent(ticket_id="t" * 32, recipient_id="9" * 32, actor_name="Ana", gig_title="Logo", content="oi"),
    ])
    outbox.enqueue.assert_not_called()


@pytest.mark.asyncio
async def test_status_change_is_audited(caplog):
    register_handler(TicketStatusChanged, event_handlers.handle_status_changed)
    with caplog.at_level("INFO", logger="gigconnect.audit"):
        await dispatch_events([
            TicketStatusChanged(ticket_id="abc", old_status="open", new_status="negotiating", changed_by="u1"),
        ])
    assert "Ticket abc: open→negotiating por u1" in caplog.text


# ════════════════════════════════════════════════════════════════
# FILA DE SAÍDA
# ════════════════════════════════════════════════════════════════

def _email(to: str = "x@test.com") -> OutboundEmail:
    return OutboundEmail(to=to, subject="s", html="<p>h</p>", ticket_id="t1")


@pytest.mark.asyncio
async def test_queue_delivers_in_background():
    sender = AsyncMock()
    queue = NotificationQueue(sender, backoff_seconds=0)
    queue.start()
    try:
        assert queue.enqueue(_email("a@test.com"))
        assert queue.enqueue(_email("b@test.com"))
        await asyncio.wait_for(queue.join(), timeout=1)
    finally:
        await queue.stop()

    assert [c.args[0].to for c in sender.await_args_list] == ["a@test.com", "b@test.com"]
    assert not queue.running


@pytest.mark.asyncio
async def test_queue_retries_with_exponential_backoff(monkeypatch):
    sleeps = []

    async def fake_sleep(delay):
        sleeps.append(delay)

    monkeypatch.setattr("gigconnect.infrastructure.services.notification_queue.asyncio.sleep", fake_sleep)
    sender = AsyncMock(side_effect=[ConnectionError("smtp down"), ConnectionError("smtp down"), None])
    queue = NotificationQueue(sender, max_attempts=3, backoff_seconds=2.0)

    assert await queue.deliver(_email()) is True
    assert sender.await_count == 3
    assert sleeps == [2.0, 4.0]


@pytest.mark.asyncio
async def test_queue_gives_up_after_max_attempts(monkeypatch, caplog):
    monkeypatch.setattr("gigconnect.infrastructure.services.notification_queue.asyncio.sleep", AsyncMock())
    sender = AsyncMock(side_effect=ConnectionError("smtp down"))
    queue = NotificationQueue(sender, max_attempts=2, backoff_seconds=1.0)

    assert await queue.deliver(_email()) is False
    assert sender.await_count == 2
    assert "Falha definitiva" in caplog.text


@pytest.mark.asyncio
async def test_queue_full_drops_email():
    queue = NotificationQueue(AsyncMock(), maxsize=1)
    queue.start()
    try:
        # O worker só roda quando o loop cede; a segunda entrada não cabe
        assert queue.enqueue(_email("a@test.com")) is True
        assert queue.enqueue(_email("b@test.com")) is False
    finally:
        await queue.stop()


def test_enqueue_without_worker_drops_email():
    queue = NotificationQueue(AsyncMock())
    assert queue.enqueue(_email()) is False


@pytest.mark.asyncio
async def test_send_email_uses_smtp(monkeypatch):
    smtp = MagicMock()
    smtp.return_value.__enter__.return_value = smtp.instance
    monkeypatch.setattr(email_service.smtplib, "SMTP", smtp)
    monkeypatch.setattr(email_service.settings, "SMTP_USERNAME", "mailer")
    monkeypatch.setattr(email_service.settings, "SMTP_PASSWORD", "secret")

    await email_service.send_email(_email("dest@test.com"))

    smtp.instance.starttls.assert_called_once()
    smtp.instance.login.assert_called_once_with("mailer", "secret")
    from_addr, to_addrs, body = smtp.instance.sendmail.call_args.args
    assert to_addrs == ["dest@test.com"]
    assert "Subject: s" in body

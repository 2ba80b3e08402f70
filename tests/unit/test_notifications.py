"""Unit tests for orderflow.notifications - type mapping, rendering and delivery."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from orderflow.config import NotificationsConfig
from orderflow.db.models import NotificationLogModel
from orderflow.errors import NotificationError
from orderflow.lifecycle.machine import apply_transition, new_entity
from orderflow.models import Action, EntityKind, QuoteState
from orderflow.notifications.dispatch import (
    build_payload,
    deliver,
    recipients_for,
    render_notification,
)
from orderflow.notifications.email import EmailService
from orderflow.notifications.hooks import notification_types_for, notify_transition


@pytest.fixture
def order(client_actor):
    return new_entity(
        EntityKind.ORDER,
        "ORD-20261014-001",
        "acme-events",
        client_actor,
        contact_email="events@acme.test",
        venue_name="Madinat Jumeirah",
        venue_city="Dubai",
        venue_country="United Arab Emirates",
    )


QUOTE = QuoteState(total=Decimal("1250.00"), currency="AED")


def advance(entity, actor, *actions):
    for action in actions:
        quote = QUOTE if action == Action.SUBMIT_QUOTE else None
        entity = apply_transition(entity, action, actor, quote=quote)
    return entity


def make_log(**overrides) -> NotificationLogModel:
    data = {
        "entity_id": overrides.pop("entity_id", None),
        "entity_code": "ORD-20261014-001",
        "notification_type": "QUOTE_SENT",
        "recipients": ["events@acme.test"],
        "payload": {"code": "ORD-20261014-001", "status_label": "Quote Ready"},
        "status": "QUEUED",
        "attempts": 0,
    }
    data.update(overrides)
    return NotificationLogModel(**data)


class TestNotificationTypes:
    def test_creation(self, order):
        assert notification_types_for(None, order) == ["ORDER_SUBMITTED"]

    def test_quote_sent_once_for_both_dimensions(self, order, logistics_actor):
        reviewed = advance(order, logistics_actor, Action.START_REVIEW)
        quoted = advance(reviewed, logistics_actor, Action.SUBMIT_QUOTE)

        assert notification_types_for(reviewed, quoted) == ["QUOTE_SENT"]

    def test_approval_triggers_invoice(self, order, logistics_actor, client_actor):
        quoted = advance(order, logistics_actor, Action.START_REVIEW, Action.SUBMIT_QUOTE)
        approved = advance(quoted, client_actor, Action.APPROVE)

        assert notification_types_for(quoted, approved) == ["QUOTE_APPROVED", "INVOICE_READY"]

    def test_adjusted_pricing_goes_to_admins(self, order, logistics_actor):
        reviewed = advance(order, logistics_actor, Action.START_REVIEW)
        pending = advance(reviewed, logistics_actor, Action.REQUEST_APPROVAL)

        assert notification_types_for(reviewed, pending) == ["A2_ADJUSTED_PRICING"]

    def test_silent_transition(self, order, logistics_actor):
        reviewed = advance(order, logistics_actor, Action.START_REVIEW)
        assert notification_types_for(order, reviewed) == []


class TestRecipientsAndPayload:
    def test_client_and_ops(self, order):
        config = NotificationsConfig(ops_emails=["ops@orderflow.test", "events@acme.test"])

        assert recipients_for("ORDER_SUBMITTED", order, config) == ["events@acme.test", "ops@orderflow.test"]

    def test_ops_only(self, order):
        config = NotificationsConfig(ops_emails=["ops@orderflow.test"])
        assert recipients_for("A2_ADJUSTED_PRICING", order, config) == ["ops@orderflow.test"]

    def test_payload_is_json_safe(self, order):
        quoted = order.model_copy(update={"quote": QUOTE})

        payload = build_payload(quoted, note="Standard pricing approved")

        assert payload["status_label"] == "Submitted"
        assert payload["total"] == "1250.00"
        assert payload["note"] == "Standard pricing approved"

    def test_render(self, order):
        service = EmailService(NotificationsConfig())
        subject, html = render_notification("QUOTE_SENT", build_payload(order), service)

        assert subject == "Quote Ready: ORD-20261014-001"
        assert "Your Quote is Ready" in html
        assert "Madinat Jumeirah" in html


class TestDeliver:
    @pytest.mark.asyncio
    @patch("orderflow.notifications.dispatch.send_slack_notification", new_callable=AsyncMock)
    async def test_sent(self, mock_slack):
        service = MagicMock(spec=EmailService)
        service.render_template.return_value = "<p>quote</p>"
        service.send_email.return_value = True
        log = make_log()

        assert await deliver(log, service) is True

        assert log.status == "SENT"
        assert log.attempts == 1
        assert log.sent_at is not None
        service.send_email.assert_called_once_with(["events@acme.test"], "Quote Ready: ORD-20261014-001", "<p>quote</p>")
        mock_slack.assert_not_called()

    @pytest.mark.asyncio
    @patch("orderflow.notifications.dispatch.send_slack_notification", new_callable=AsyncMock)
    async def test_slack_for_flagged_types(self, mock_slack):
        service = MagicMock(spec=EmailService)
        service.render_template.return_value = "<p>submitted</p>"
        service.send_email.return_value = True

        await deliver(make_log(notification_type="ORDER_SUBMITTED"), service)

        mock_slack.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_smtp_failure_marks_failed(self):
        service = MagicMock(spec=EmailService)
        service.render_template.return_value = "<p>quote</p>"
        service.send_email.side_effect = NotificationError("Failed to send email: connection refused")
        log = make_log()

        assert await deliver(log, service) is False

        assert log.status == "FAILED"
        assert log.attempts == 1
        assert "connection refused" in log.error_message

    @pytest.mark.asyncio
    async def test_unconfigured_smtp_marks_failed(self):
        log = make_log()

        assert await deliver(log, EmailService(NotificationsConfig())) is False
        assert log.status == "FAILED"
        assert log.error_message == "SMTP credentials not configured"

    @pytest.mark.asyncio
    async def test_no_recipients(self):
        log = make_log(recipients=[])

        assert await deliver(log, MagicMock(spec=EmailService)) is False
        assert log.error_message == "No recipients configured"


class TestNotifyTransition:
    @pytest.mark.asyncio
    async def test_disabled_writes_nothing(self, order, client_actor):
        session = AsyncMock()

        await notify_transition(session, None, order, Action.SUBMIT, client_actor)

        session.add.assert_not_called()

    @pytest.mark.asyncio
    @patch("orderflow.notifications.hooks.deliver", new_callable=AsyncMock)
    @patch("orderflow.notifications.hooks.queue_notification", new_callable=AsyncMock)
    async def test_enabled_queues_each_type(
        self, mock_queue, mock_deliver, monkeypatch, order, logistics_actor, client_actor
    ):
        from orderflow.config import reset_config

        monkeypatch.setenv("NOTIFICATIONS_ENABLED", "true")
        reset_config()
        quoted = advance(order, logistics_actor, Action.START_REVIEW, Action.SUBMIT_QUOTE)
        approved = advance(quoted, client_actor, Action.APPROVE)
        session = AsyncMock()

        await notify_transition(session, quoted, approved, Action.APPROVE, client_actor)

        queued = [call.args[1] for call in mock_queue.await_args_list]
        assert queued == ["QUOTE_APPROVED", "INVOICE_READY"]
        assert mock_deliver.await_count == 2

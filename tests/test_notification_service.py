import logging
from datetime import datetime, timezone

import pytest

from conftest import RecordingEmailChannel, RecordingLineChannel
from itdesk.core.config import Settings
from itdesk.schemas.notification import EmailRequestSnapshot, WebhookEventType
from itdesk.services.notification_service import NotificationDispatcher


def make_dispatcher(settings, email=None, line=None):
    email = email or RecordingEmailChannel()
    line = line or RecordingLineChannel()
    return NotificationDispatcher(settings, email_channel=email, line_channel=line), email, line


@pytest.mark.parametrize("priority", ["LOW", "MEDIUM"])
async def test_routine_ticket_sends_card_and_reporter_email(settings, snapshot, priority):
    dispatcher, email, line = make_dispatcher(settings)

    report = await dispatcher.notify_ticket_created(snapshot.model_copy(update={"priority": priority}))

    assert len(report.deliveries) == 2
    assert report.delivered_count == 2
    [(card, event_type, context)] = line.calls
    assert event_type == WebhookEventType.new_ticket
    assert card["contents"]["header"]["backgroundColor"] == "#3B82F6"
    assert context["ticket"]["ticket_id"] == 42
    assert [m.to for m in email.messages] == ["somsri@example.com"]


@pytest.mark.parametrize("priority", ["HIGH", "URGENT"])
async def test_escalated_ticket_also_mails_it_team(settings, snapshot, priority):
    dispatcher, email, line = make_dispatcher(settings)

    report = await dispatcher.notify_ticket_created(snapshot.model_copy(update={"priority": priority}))

    assert len(report.deliveries) == 3
    [(card, event_type, _)] = line.calls
    assert event_type == WebhookEventType.it_team_urgent
    assert card["contents"]["header"]["backgroundColor"] == "#EF4444"
    assert [m.to for m in email.messages] == ["somsri@example.com", "it-team@example.com"]
    assert email.messages[0].subject != email.messages[1].subject


async def test_escalation_email_skipped_without_it_team_address(snapshot):
    config = Settings(IT_TEAM_EMAIL=None)
    dispatcher, email, line = make_dispatcher(config)

    report = await dispatcher.notify_ticket_created(snapshot.model_copy(update={"priority": "URGENT"}))

    assert len(report.deliveries) == 2
    assert [m.to for m in email.messages] == ["somsri@example.com"]


async def test_channel_failures_never_escape(settings, snapshot, caplog):
    email = RecordingEmailChannel(error=RuntimeError("smtp exploded"))
    line = RecordingLineChannel(delivered=False)
    dispatcher, _, _ = make_dispatcher(settings, email=email, line=line)

    with caplog.at_level(logging.WARNING, logger="itdesk.notifications"):
        report = await dispatcher.notify_ticket_created(snapshot.model_copy(update={"priority": "URGENT"}))

    assert len(report.deliveries) == 3
    assert report.delivered_count == 0
    assert len(email.messages) == 2
    assert "smtp exploded" in caplog.text


async def test_status_update_notifies_reporter_and_team(settings, snapshot):
    dispatcher, email, line = make_dispatcher(settings)
    resolved = snapshot.model_copy(update={"status": "RESOLVED"})

    report = await dispatcher.notify_ticket_updated(resolved, "OPEN")

    assert report.event == "ticket_status_changed"
    assert report.delivered_count == 2
    [(card, event_type, context)] = line.calls
    assert event_type == WebhookEventType.status_update
    assert context["oldStatus"] == "OPEN"
    assert card["contents"]["header"]["backgroundColor"] == "#10B981"
    [message] = email.messages
    assert message.to == "somsri@example.com"
    assert "แก้ไขแล้ว" in message.subject


async def test_email_request_goes_to_chat_only(settings):
    dispatcher, email, line = make_dispatcher(settings)
    request = EmailRequestSnapshot(
        thai_name="สมหญิง ใจดี",
        english_name="Somying Jaidee",
        phone="0812345678",
        position="Accountant",
        department="Finance",
        reply_email="somying@example.com",
        requested_at=datetime(2026, 10, 19, 7, 30, tzinfo=timezone.utc),
    )

    report = await dispatcher.notify_email_request_created(request)

    assert report.delivered_count == 1
    assert email.messages == []
    [(_, event_type, context)] = line.calls
    assert event_type == WebhookEventType.email_request
    assert context["emailRequest"]["english_name"] == "Somying Jaidee"

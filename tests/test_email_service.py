import smtplib

from conftest import FakeSMTPFactory, SleepRecorder
from itdesk.core.config import Settings
from itdesk.schemas.notification import EmailMessage
from itdesk.services.email_service import SMTPEmailChannel

MESSAGE = EmailMessage(
    to="somsri@example.com",
    subject="[NHF IT] Ticket #42 ถูกสร้างแล้ว - Printer",
    html="<p>สวัสดี</p>",
    text="สวัสดี",
)


def make_channel(settings, factory):
    sleep = SleepRecorder()
    return SMTPEmailChannel(settings, smtp_factory=factory, sleep=sleep), sleep


async def test_unconfigured_channel_is_a_no_op():
    factory = FakeSMTPFactory()
    channel, sleep = make_channel(Settings(SMTP_USER=None, SMTP_PASS=None), factory)

    assert await channel.send(MESSAGE) is False
    assert factory.connections == []


async def test_send_builds_multipart_message(settings):
    factory = FakeSMTPFactory()
    channel, sleep = make_channel(settings, factory)

    assert await channel.send(MESSAGE) is True

    [mime] = factory.sent
    assert mime["To"] == "somsri@example.com"
    assert mime["Subject"] == MESSAGE.subject
    assert "NHF IT Support" in mime["From"]
    assert "it-support@example.com" in mime["From"]
    assert mime.get_body(preferencelist=("html",)).get_content().strip() == "<p>สวัสดี</p>"
    assert mime.get_body(preferencelist=("plain",)).get_content().strip() == "สวัสดี"
    assert channel.is_ready
    assert sleep.calls == []


async def test_connection_is_reused_between_sends(settings):
    factory = FakeSMTPFactory()
    channel, _ = make_channel(settings, factory)

    await channel.send(MESSAGE)
    await channel.send(MESSAGE)

    assert len(factory.connections) == 1
    assert len(factory.sent) == 2


async def test_connection_error_reconnects_and_retries(settings):
    factory = FakeSMTPFactory(send_errors=[smtplib.SMTPServerDisconnected("Connection unexpectedly closed")])
    channel, sleep = make_channel(settings, factory)

    assert await channel.send(MESSAGE) is True

    assert len(factory.connections) == 2
    assert factory.connections[0].closed
    assert len(factory.connections[1].sent) == 1
    assert sleep.calls == [2]


async def test_gives_up_after_three_attempts(settings):
    factory = FakeSMTPFactory(send_errors=[smtplib.SMTPDataError(554, b"Rejected")] * 3)
    channel, sleep = make_channel(settings, factory)

    assert await channel.send(MESSAGE) is False

    assert factory.sent == []
    assert sleep.calls == [2, 4]


async def test_failed_verification_skips_send(settings):
    factory = FakeSMTPFactory(noop_reply=(421, b"Service not available"))
    channel, sleep = make_channel(settings, factory)

    assert await channel.send(MESSAGE) is False

    assert factory.sent == []
    assert not channel.is_ready
    assert sleep.calls == []


async def test_unexpected_errors_do_not_escape(settings):
    factory = FakeSMTPFactory(send_errors=[ValueError("bad header")])
    channel, _ = make_channel(settings, factory)

    assert await channel.send(MESSAGE) is False


async def test_subject_with_line_breaks_is_still_delivered(settings):
    factory = FakeSMTPFactory()
    channel, _ = make_channel(settings, factory)
    message = MESSAGE.model_copy(update={"subject": "[NHF IT] Ticket #42 - Printer\nbroken"})

    assert await channel.send(message) is True

    [mime] = factory.sent
    assert mime["Subject"] == "[NHF IT] Ticket #42 - Printer broken"

"""
Fan-out of ticket and email-request events to the email and LINE channels.

A dispatcher is built once per process and shared. Every `notify_*` call
returns a DispatchReport and never raises: a failed or unconfigured channel
is logged and recorded as undelivered.
"""
from typing import Any, Awaitable, Callable, Dict, Optional

from itdesk.core.config import Settings
from itdesk.schemas.notification import (
    ChatEventKind,
    DeliveryResult,
    DispatchReport,
    EmailMessage,
    EmailRequestSnapshot,
    TicketSnapshot,
    WebhookEventType,
)
from itdesk.schemas.ticket import ESCALATION_PRIORITIES
from itdesk.services.email_service import SMTPEmailChannel
from itdesk.services.email_templates import compose_it_team_email, compose_new_ticket_email, compose_status_change_email
from itdesk.services.line_messages import compose_email_request_chat_card, compose_ticket_chat_card
from itdesk.services.line_service import LineChannel
from itdesk.utils.logger import notify_logger as logger


class NotificationDispatcher:
    def __init__(
        self,
        config: Settings,
        email_channel: Optional[SMTPEmailChannel] = None,
        line_channel: Optional[LineChannel] = None,
    ):
        self.config = config
        self.email_channel = email_channel or SMTPEmailChannel(config)
        self.line_channel = line_channel or LineChannel(config)

    @property
    def base_url(self) -> str:
        return self.config.clean_app_base_url

    @property
    def tz_name(self) -> str:
        return self.config.DISPLAY_TIMEZONE

    async def _attempt(
        self,
        report: DispatchReport,
        channel: str,
        kind: str,
        recipient: Optional[str],
        send: Callable[[], Awaitable[bool]],
    ) -> bool:
        try:
            delivered = bool(await send())
        except Exception as e:
            logger.error(f"❌ {channel} {kind} delivery raised: {e}", exc_info=True)
            delivered = False

        if not delivered:
            logger.warning(f"{channel} {kind} notification not delivered (recipient: {recipient or '-'})")
        report.deliveries.append(
            DeliveryResult(channel=channel, kind=kind, recipient=recipient, delivered=delivered)
        )
        return delivered

    async def _email(self, report: DispatchReport, kind: str, message: EmailMessage) -> bool:
        return await self._attempt(report, "email", kind, message.to, lambda: self.email_channel.send(message))

    async def _chat(
        self,
        report: DispatchReport,
        kind: str,
        card: Dict[str, Any],
        event_type: WebhookEventType,
        context: Dict[str, Any],
    ) -> bool:
        recipient = self.config.LINE_IT_TEAM_USER_ID or "broadcast"
        return await self._attempt(
            report, "line", kind, recipient, lambda: self.line_channel.send(card, event_type, context)
        )

    # --------------------------------------------------------------------- #
    # Events
    # --------------------------------------------------------------------- #
    async def notify_ticket_created(self, snapshot: TicketSnapshot) -> DispatchReport:
        """
        New ticket: chat card to the IT team plus a confirmation email to the
        reporter. HIGH and URGENT tickets use the escalation card and also
        mail the IT team address when one is configured.
        """
        report = DispatchReport(event="ticket_created")
        try:
            escalate = snapshot.priority in ESCALATION_PRIORITIES
            card_kind = ChatEventKind.it_team_escalation if escalate else ChatEventKind.new_ticket
            webhook_type = WebhookEventType.it_team_urgent if escalate else WebhookEventType.new_ticket

            await self._chat(
                report,
                card_kind.value,
                compose_ticket_chat_card(snapshot, card_kind, self.base_url, self.tz_name),
                webhook_type,
                {"ticket": snapshot.model_dump(mode="json")},
            )
            await self._email(report, "new_ticket", compose_new_ticket_email(snapshot, self.base_url, self.tz_name))

            if escalate:
                if self.config.IT_TEAM_EMAIL:
                    await self._email(
                        report,
                        "it_team_escalation",
                        compose_it_team_email(snapshot, self.config.IT_TEAM_EMAIL, self.base_url, self.tz_name),
                    )
                else:
                    logger.info(f"IT_TEAM_EMAIL not configured; no escalation email for ticket #{snapshot.ticket_id}")
        except Exception as e:
            logger.error(f"❌ Error dispatching notifications for new ticket #{snapshot.ticket_id}: {e}", exc_info=True)

        logger.info(f"Ticket #{snapshot.ticket_id} created notifications: {report.summary()}")
        return report

    async def notify_ticket_updated(self, snapshot: TicketSnapshot, old_status: str) -> DispatchReport:
        """Status changed: chat card to the IT team and an email to the reporter."""
        report = DispatchReport(event="ticket_status_changed")
        try:
            await self._chat(
                report,
                ChatEventKind.status_update.value,
                compose_ticket_chat_card(snapshot, ChatEventKind.status_update, self.base_url, self.tz_name),
                WebhookEventType.status_update,
                {"ticket": snapshot.model_dump(mode="json"), "oldStatus": old_status},
            )
            await self._email(
                report,
                "status_update",
                compose_status_change_email(snapshot, old_status, self.base_url, self.tz_name),
            )
        except Exception as e:
            logger.error(f"❌ Error dispatching notifications for ticket #{snapshot.ticket_id} update: {e}", exc_info=True)

        logger.info(f"Ticket #{snapshot.ticket_id} status notifications: {report.summary()}")
        return report

    async def notify_email_request_created(self, snapshot: EmailRequestSnapshot) -> DispatchReport:
        report = DispatchReport(event="email_request_created")
        try:
            await self._chat(
                report,
                WebhookEventType.email_request.value,
                compose_email_request_chat_card(snapshot, self.base_url, self.tz_name),
                WebhookEventType.email_request,
                {"emailRequest": snapshot.model_dump(mode="json")},
            )
        except Exception as e:
            logger.error(f"❌ Error dispatching email request notification: {e}", exc_info=True)

        logger.info(f"Email request notifications: {report.summary()}")
        return report

    async def close(self) -> None:
        await self.email_channel.close()

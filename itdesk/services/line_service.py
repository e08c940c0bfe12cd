from typing import Any, Dict, Optional

import httpx

from itdesk.core.config import Settings
from itdesk.core.exceptions import ChannelDeliveryException
from itdesk.schemas.notification import WebhookEventType
from itdesk.utils.logger import notify_logger as logger


class LineChannel:
    """
    LINE Messaging API client plus the optional mirror webhook.

    Every public call returns a bool and never raises. A missing access token
    makes push/broadcast no-ops; a missing webhook URL does the same for the mirror.
    """

    def __init__(self, config: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.config.NOTIFICATION_HTTP_TIMEOUT, transport=self._transport)

    def _auth_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.LINE_CHANNEL_ACCESS_TOKEN}",
        }

    async def _post(self, url: str, payload: Dict[str, Any], headers: Dict[str, str]) -> None:
        try:
            async with self._client() as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise ChannelDeliveryException(f"POST {url} failed: {e}") from e

        if not response.is_success:
            raise ChannelDeliveryException(f"POST {url} returned {response.status_code}: {response.text}")

    async def push(self, to: str, message: Dict[str, Any]) -> bool:
        if not self.config.LINE_CHANNEL_ACCESS_TOKEN:
            logger.info("LINE_CHANNEL_ACCESS_TOKEN not configured; skipping LINE push")
            return False
        try:
            await self._post(
                f"{self.config.LINE_API_URL}/push",
                {"to": to, "messages": [message]},
                self._auth_headers(),
            )
            logger.info(f"✅ LINE message pushed to {to}")
            return True
        except ChannelDeliveryException as e:
            logger.error(f"❌ LINE push failed: {e.detail}")
            return False

    async def broadcast(self, message: Dict[str, Any]) -> bool:
        if not self.config.LINE_CHANNEL_ACCESS_TOKEN:
            logger.info("LINE_CHANNEL_ACCESS_TOKEN not configured; skipping LINE broadcast")
            return False
        try:
            await self._post(
                f"{self.config.LINE_API_URL}/broadcast",
                {"messages": [message]},
                self._auth_headers(),
            )
            logger.info("✅ LINE message broadcast")
            return True
        except ChannelDeliveryException as e:
            logger.error(f"❌ LINE broadcast failed: {e.detail}")
            return False

    async def send_to_it_team(self, message: Dict[str, Any]) -> bool:
        """Push to the configured IT team target, or broadcast when there is none."""
        if self.config.LINE_IT_TEAM_USER_ID:
            return await self.push(self.config.LINE_IT_TEAM_USER_ID, message)
        return await self.broadcast(message)

    async def send_webhook(self, payload: Dict[str, Any]) -> bool:
        if not self.config.LINE_WEBHOOK_URL:
            return False
        try:
            await self._post(self.config.LINE_WEBHOOK_URL, payload, {"Content-Type": "application/json"})
            logger.info(f"✅ LINE webhook delivered ({payload.get('type')})")
            return True
        except ChannelDeliveryException as e:
            logger.error(f"❌ LINE webhook failed: {e.detail}")
            return False

    async def send(
        self,
        message: Dict[str, Any],
        event_type: WebhookEventType,
        context: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Deliver one chat card to the IT team and mirror it to the webhook.

        Delivered when either leg succeeded.
        """
        pushed = await self.send_to_it_team(message)
        payload = {"type": WebhookEventType(event_type).value, **(context or {}), "flexMessage": message}
        mirrored = await self.send_webhook(payload)
        return pushed or mirrored

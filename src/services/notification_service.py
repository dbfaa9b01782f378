"""
Notification service for delivering pool messages to users.
Tries the configured transports in order; delivery is best-effort and never raises.
"""

import logging
from typing import Dict, List, Optional

import httpx
from telegram import Bot
from telegram.error import TelegramError

from src.config import PoolConfig
from src.exceptions import TransportUnavailable

logger = logging.getLogger(__name__)


class TelegramTransport:
    """Sends messages through the bot; the user id is the chat id"""

    channel = "telegram"

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send(self, user_id: str, message: str) -> None:
        try:
            await self.bot.send_message(chat_id=user_id, text=message)
        except TelegramError as e:
            raise TransportUnavailable(f"Telegram delivery failed: {e}") from e


class WebhookTransport:
    """JSON POST to a webhook; subclasses name the channel and shape the payload"""

    channel = "webhook"

    def __init__(self, webhook_url: str, client: Optional[httpx.AsyncClient] = None):
        self.webhook_url = webhook_url
        self.client = client or httpx.AsyncClient(timeout=5.0)

    def payload(self, user_id: str, message: str) -> Dict[str, str]:
        raise NotImplementedError

    async def send(self, user_id: str, message: str) -> None:
        try:
            response = await self.client.post(self.webhook_url, json=self.payload(user_id, message))
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise TransportUnavailable(f"{self.channel} delivery failed: {e}") from e

    async def close(self) -> None:
        await self.client.aclose()


class SlackWebhookTransport(WebhookTransport):
    """Posts messages to a Slack incoming webhook, mentioning the user"""

    channel = "slack"

    def payload(self, user_id: str, message: str) -> Dict[str, str]:
        return {"channel": user_id, "text": message}


class EmailWebhookTransport(WebhookTransport):
    """Hands messages to an email relay endpoint; the user id is the recipient"""

    channel = "email"

    def payload(self, user_id: str, message: str) -> Dict[str, str]:
        return {"to": user_id, "body": message}


class NotificationService:
    """
    Best-effort notify collaborator of the arbitration engine.

    Designed to be non-blocking for the core - failures are logged only.
    """

    def __init__(self, transports: Optional[List] = None):
        self.transports = list(transports or [])

    @classmethod
    def from_config(cls, config: PoolConfig, bot: Optional[Bot] = None) -> "NotificationService":
        transports = []
        if bot is not None:
            transports.append(TelegramTransport(bot))
        if config.slack_webhook_url:
            transports.append(SlackWebhookTransport(config.slack_webhook_url))
        if config.email_webhook_url:
            transports.append(EmailWebhookTransport(config.email_webhook_url))

        names = ", ".join(t.channel for t in transports) or "none"
        logger.info(f"Notification transports: {names}")
        return cls(transports)

    def _ordered(self, preferred_channel: Optional[str]) -> List:
        if not preferred_channel:
            return self.transports
        preferred = [t for t in self.transports if t.channel == preferred_channel]
        rest = [t for t in self.transports if t.channel != preferred_channel]
        return preferred + rest

    async def notify(
        self, user_id: str, message: str, preferred_channel: Optional[str] = None
    ) -> None:
        """
        Deliver a message through the first transport that accepts it.

        Args:
            user_id: Recipient
            message: Plain text message
            preferred_channel: Transport to try first ("telegram", "slack", "email")

        Note:
            This method never raises. With no transports configured it is a no-op.
        """
        for transport in self._ordered(preferred_channel):
            try:
                await transport.send(user_id, message)
                logger.info(f"Notified user {user_id} via {transport.channel}")
                return
            except TransportUnavailable as e:
                logger.warning(f"{e} (user {user_id})")
            except Exception as e:
                logger.error(f"Notify via {transport.channel} failed for user {user_id}: {e}")

        if self.transports:
            logger.error(f"Could not notify user {user_id} on any channel")

    async def close(self) -> None:
        for transport in self.transports:
            close = getattr(transport, "close", None)
            if close is not None:
                await close()

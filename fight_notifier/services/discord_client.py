"""Discord webhook client for sending notifications"""
from typing import Optional
import discord

from ..utils.logger import setup_logger

logger = setup_logger(__name__)

# Discord rejects message content longer than this
DISCORD_MESSAGE_LIMIT = 2000
TRUNCATION_MARKER = "\n*...truncated*"


class DiscordClient:
    """Posts plain-text messages to a Discord channel webhook"""

    def __init__(
        self,
        webhook_url: Optional[str],
        username: Optional[str] = None,
        content_prefix: str = ""
    ):
        """
        Initialize Discord webhook client

        Args:
            webhook_url: Channel webhook URL
            username: Optional display name override for posted messages
            content_prefix: Text prepended to every message (used by the test script)
        """
        self.webhook_url = webhook_url
        self.username = username
        self.content_prefix = content_prefix
        self.webhook: Optional[discord.SyncWebhook] = None

        if not webhook_url:
            logger.warning("No Discord webhook URL configured - notifications will only be logged")
            return

        try:
            self.webhook = discord.SyncWebhook.from_url(webhook_url)
        except ValueError as e:
            logger.error(f"Invalid Discord webhook URL: {e}")
            logger.error("The URL should look like https://discord.com/api/webhooks/<id>/<token>")

    def send_message(self, content: str) -> bool:
        """
        Send a message to the webhook

        Failures are logged and swallowed; messages are never retried.

        Args:
            content: Message text

        Returns:
            True if the message was delivered
        """
        content = self._cap(self.content_prefix + content)

        if not self.webhook:
            logger.info(f"Notification (not sent):\n{content}")
            return False

        try:
            kwargs = {"username": self.username} if self.username else {}
            self.webhook.send(content=content, **kwargs)
            logger.debug(f"Sent Discord message ({len(content)} chars)")
            return True

        except discord.errors.NotFound as e:
            logger.error(f"Webhook not found: {e}")
            logger.error("The webhook may have been deleted. Create a new one and update DISCORD_WEBHOOK_URL.")
            return False
        except discord.errors.HTTPException as e:
            logger.error(f"Discord API error sending message: {e}")
            return False
        except Exception as e:
            logger.error(f"Discord message failed: {e}")
            return False

    def _cap(self, content: str) -> str:
        """Hard-cap content at Discord's message limit"""
        if len(content) <= DISCORD_MESSAGE_LIMIT:
            return content
        return content[:DISCORD_MESSAGE_LIMIT - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER

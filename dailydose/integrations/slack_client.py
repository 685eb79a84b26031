from __future__ import annotations

from typing import Dict, Any, Optional

from slack_sdk.web.async_client import AsyncWebClient
from slack_sdk.errors import SlackApiError

from .base import (
    MessagingTransport,
    IntegrationConfig,
    IntegrationStatus,
    AuthenticationError,
    IntegrationError
)
from ..utils.blocks import Message


# Slack-specific models
class SlackConfig(IntegrationConfig):
    """Slack integration configuration."""

    name: str = "slack"
    bot_token: Optional[str] = None


class SlackError(IntegrationError):
    """Slack-specific error."""
    pass


# Main Slack client
class SlackClient(MessagingTransport):
    """
    Slack Web API transport.

    Features:
    - Direct messages to users
    - Channel posts returning the message ``ts`` as reference
    - Thread replies, optionally broadcast to the channel
    - Webhook verification
    """

    def __init__(self, config: SlackConfig, client: Optional[AsyncWebClient] = None) -> None:
        super().__init__(config)
        self._client: Optional[AsyncWebClient] = client
        if client is not None:
            self.status = IntegrationStatus.CONNECTED

    async def connect(self) -> None:
        """Connect to Slack."""
        self._logger.info("Connecting to Slack")

        if not self.config.bot_token:
            self.status = IntegrationStatus.ERROR
            raise AuthenticationError("No valid token provided", self.config.name)

        self._client = AsyncWebClient(token=self.config.bot_token, timeout=self.config.timeout)

        try:
            response = await self._client.auth_test()
        except SlackApiError as e:
            self.status = IntegrationStatus.ERROR
            self._logger.error("Failed to connect to Slack: %s", str(e))
            raise SlackError(f"Connection failed: {str(e)}", self.config.name) from e

        self.status = IntegrationStatus.CONNECTED
        self._logger.info("Successfully connected to Slack, bot: %s", response.get("user"))

    async def disconnect(self) -> None:
        """Disconnect from Slack."""
        # Slack SDK doesn't require explicit cleanup
        self._client = None
        self.status = IntegrationStatus.DISCONNECTED
        self._logger.info("Disconnected from Slack")

    # Message operations

    async def send_direct_message(self, recipient_ref: str, message: Message) -> None:
        """Send a DM; posting to a user id opens the IM channel."""
        await self._post_message(channel=recipient_ref, message=message)

    async def post_channel_message(self, channel_ref: str, message: Message) -> str:
        response = await self._post_message(channel=channel_ref, message=message)
        return response["ts"]

    async def post_thread_reply(
        self,
        channel_ref: str,
        parent_ref: str,
        message: Message,
        broadcast: bool = False
    ) -> Optional[str]:
        response = await self._post_message(
            channel=channel_ref,
            message=message,
            thread_ts=parent_ref,
            reply_broadcast=broadcast
        )
        return response.get("ts")

    async def _post_message(self, channel: str, message: Message, **kwargs) -> Dict[str, Any]:
        if not self._client:
            raise SlackError("Not connected to Slack", self.config.name, recipient=channel)

        try:
            response = await self._client.chat_postMessage(
                channel=channel,
                **message.to_slack(),
                **kwargs
            )
        except SlackApiError as e:
            raise SlackError(
                f"Slack API error: {str(e)}",
                self.config.name,
                recipient=channel,
                response_data=getattr(e.response, "data", None)
            ) from e

        if not response["ok"]:
            raise SlackError(
                f"Failed to post message: {response.get('error')}",
                self.config.name,
                recipient=channel
            )
        return response.data

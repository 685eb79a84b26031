from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from enum import Enum
import logging

from pydantic import BaseModel, ConfigDict, Field

from ..core.exceptions import TransportError
from ..utils.blocks import Message


# Enums
class IntegrationStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    ERROR = "error"


# Base configuration
class IntegrationConfig(BaseModel):
    """Base configuration for all messaging transports."""

    model_config = ConfigDict(extra="forbid")

    name: str
    enabled: bool = True
    timeout: int = Field(default=30, ge=1, le=300)


# Custom exceptions
class IntegrationError(TransportError):
    """Base exception for transport integration errors."""
    pass


class AuthenticationError(IntegrationError):
    """Authentication failed."""
    pass


# Base transport class
class MessagingTransport(ABC):
    """
    Abstract chat transport the standup engine sends through.

    Implementations deliver direct messages, channel posts and thread
    replies. Every send is a single attempt: failures surface as
    ``TransportError`` and callers decide whether to contain them.
    """

    def __init__(self, config: IntegrationConfig) -> None:
        self.config = config
        self.status = IntegrationStatus.DISCONNECTED
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def is_connected(self) -> bool:
        return self.status == IntegrationStatus.CONNECTED

    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to the service."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Disconnect from the service."""
        pass

    @abstractmethod
    async def send_direct_message(self, recipient_ref: str, message: Message) -> None:
        """Send a private message to one user."""
        pass

    @abstractmethod
    async def post_channel_message(self, channel_ref: str, message: Message) -> str:
        """Post to a channel and return the new message reference."""
        pass

    @abstractmethod
    async def post_thread_reply(
        self,
        channel_ref: str,
        parent_ref: str,
        message: Message,
        broadcast: bool = False
    ) -> Optional[str]:
        """Reply in the thread of ``parent_ref``; ``broadcast`` also shows it in the channel."""
        pass

    async def __aenter__(self) -> MessagingTransport:
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.disconnect()


__all__ = [
    "MessagingTransport",
    "IntegrationConfig",
    "IntegrationStatus",
    "IntegrationError",
    "AuthenticationError",
]

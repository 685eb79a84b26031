"""
Messaging transports for Daily Dose.

The standup engine only talks to chat platforms through
``MessagingTransport``; Slack is the shipped implementation.
"""

from .base import (
    MessagingTransport,
    IntegrationError,
    AuthenticationError,
    IntegrationConfig,
    IntegrationStatus,
)
from .slack_client import SlackClient, SlackConfig, SlackError

__all__ = [
    "MessagingTransport",
    "IntegrationError",
    "AuthenticationError",
    "IntegrationConfig",
    "IntegrationStatus",
    "SlackClient",
    "SlackConfig",
    "SlackError",
]

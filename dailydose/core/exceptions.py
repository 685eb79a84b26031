"""
Error taxonomy of the standup engine.

Per-recipient and per-team failures are contained where they happen; only
NotFoundError is meant to reach the caller of a public operation.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class StandupError(Exception):
    """Base exception for standup engine errors."""
    pass


class ConfigError(StandupError):
    """A team carries an invalid time or timezone and cannot be scheduled."""

    def __init__(self, message: str, team_id: Optional[int] = None) -> None:
        super().__init__(message)
        self.team_id = team_id


class TransportError(StandupError):
    """A single send through the messaging transport failed."""

    def __init__(
        self,
        message: str,
        transport_name: str,
        recipient: Optional[str] = None,
        response_data: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.transport_name = transport_name
        self.recipient = recipient
        self.response_data = response_data
        self.timestamp = datetime.now(timezone.utc)


class PersistenceConflict(StandupError):
    """Another writer won an insert-if-absent race on a unique key."""

    def __init__(self, message: str, key: Dict[str, Any]) -> None:
        super().__init__(message)
        self.key = key


class NotFoundError(StandupError):
    """A team, user or response expected by an operation does not exist."""

    def __init__(self, entity: str, identifier: Any) -> None:
        super().__init__(f"{entity} {identifier} not found")
        self.entity = entity
        self.identifier = identifier

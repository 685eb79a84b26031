"""
Database models.

Importing this package registers every mapped class so string-based
relationships resolve before the first query.
"""

from .base import Base, BaseModel
from .organization import Organization, Holiday
from .user import User, Team, TeamMembership, Leave, MemberRole
from .standup import StandupResponse, StandupPost

__all__ = [
    "Base",
    "BaseModel",
    "Organization",
    "Holiday",
    "User",
    "Team",
    "TeamMembership",
    "Leave",
    "MemberRole",
    "StandupResponse",
    "StandupPost",
]

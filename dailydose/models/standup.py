from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, Text, Date, DateTime, ForeignKey, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import BaseModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StandupResponse(BaseModel):
    """A member's update for one team and day. Upserted, never deleted."""
    __tablename__ = "standup_responses"
    __table_args__ = (
        UniqueConstraint("team_id", "user_id", "standup_date", name="uq_standup_response"),
    )

    standup_date = Column(Date, nullable=False, index=True)

    yesterday_tasks = Column(Text, nullable=True)
    today_tasks = Column(Text, nullable=True)
    blockers = Column(Text, nullable=True)
    has_blockers = Column(Boolean, default=False)

    is_late = Column(Boolean, default=False, nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Foreign keys
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Relationships
    team = relationship("Team")
    user = relationship("User")


class StandupPost(BaseModel):
    """The parent summary message of a team's day; anchors late replies."""
    __tablename__ = "standup_posts"
    __table_args__ = (
        UniqueConstraint("team_id", "standup_date", name="uq_standup_post"),
    )

    standup_date = Column(Date, nullable=False)
    message_ref = Column(String, nullable=False)
    channel_ref = Column(String, nullable=False)
    posted_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)

    team = relationship("Team")

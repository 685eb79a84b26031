from enum import Enum

from sqlalchemy import Column, String, Boolean, JSON, ForeignKey, Integer, Date, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import BaseModel


class MemberRole(str, Enum):
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class User(BaseModel):
    __tablename__ = "users"
    
    external_id = Column(String, unique=True, index=True, nullable=False)  # chat platform user id
    name = Column(String, nullable=True)
    is_active = Column(Boolean, default=True)
    
    # Personal override of the organization work days, weekdays 1 (Monday) .. 7 (Sunday)
    work_days = Column(JSON, nullable=True)

    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=True)
    
    # Relationships
    organization = relationship("Organization", back_populates="users")
    team_memberships = relationship("TeamMembership", back_populates="user")
    leaves = relationship("Leave", back_populates="user")

    @property
    def display_name(self) -> str:
        return self.name or self.external_id


class Team(BaseModel):
    __tablename__ = "teams"
    
    name = Column(String, nullable=False)
    is_active = Column(Boolean, default=True)
    
    # Team settings, interpreted in the team timezone
    timezone = Column(String, nullable=False, default="UTC")  # IANA name
    standup_time = Column(String, nullable=False, default="09:00")  # HH:MM format
    posting_time = Column(String, nullable=False, default="10:00")  # HH:MM format

    channel_ref = Column(String, nullable=False)  # chat channel the summary is posted to

    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    
    # Relationships
    organization = relationship("Organization", back_populates="teams")
    members = relationship("TeamMembership", back_populates="team")


class TeamMembership(BaseModel):
    __tablename__ = "team_memberships"
    __table_args__ = (UniqueConstraint("team_id", "user_id", name="uq_team_membership"),)
    
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    role = Column(String, nullable=False, default=MemberRole.MEMBER.value)
    is_active = Column(Boolean, default=True)

    # Notification preferences
    receive_reminders = Column(Boolean, default=True)
    receive_notifications = Column(Boolean, default=True)  # admin submission notices
    hide_from_not_responded = Column(Boolean, default=False)
    
    # Relationships
    user = relationship("User", back_populates="team_memberships")
    team = relationship("Team", back_populates="members")


class Leave(BaseModel):
    __tablename__ = "leaves"

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)  # inclusive
    reason = Column(Text, nullable=True)

    user = relationship("User", back_populates="leaves")

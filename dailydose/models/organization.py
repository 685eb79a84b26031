from sqlalchemy import Column, String, Boolean, JSON, Date, Index
from sqlalchemy.orm import relationship
from .base import BaseModel


class Organization(BaseModel):
    __tablename__ = "organizations"

    name = Column(String, nullable=False)
    is_active = Column(Boolean, default=True)
    country = Column(String(2), nullable=True)  # ISO 3166-1 alpha-2

    # Weekdays 1 (Monday) .. 7 (Sunday); null falls back to the configured default
    default_work_days = Column(JSON, nullable=True)

    # Relationships
    teams = relationship("Team", back_populates="organization")
    users = relationship("User", back_populates="organization")


class Holiday(BaseModel):
    """A calendar date on which no team of a matching organization posts.

    Holidays without a country apply to every organization.
    """
    __tablename__ = "holidays"
    __table_args__ = (Index("ix_holidays_date_country", "date", "country"),)

    date = Column(Date, nullable=False)
    country = Column(String(2), nullable=True)
    name = Column(String, nullable=True)

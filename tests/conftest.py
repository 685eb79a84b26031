"""
Shared fixtures: a temp-file SQLite database, a recording transport and a
small data seeder.
"""

import asyncio
from datetime import date, datetime, timezone
from typing import List, Optional, Set

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from dailydose.core.exceptions import TransportError
from dailydose.integrations.base import IntegrationConfig, IntegrationStatus, MessagingTransport
from dailydose.models import (
    Base,
    Holiday,
    Leave,
    MemberRole,
    Organization,
    Team,
    TeamMembership,
    User,
)
from dailydose.utils.blocks import Message

# 2026-10-19 is a Monday
MONDAY = date(2026, 10, 19)
FRIDAY = date(2026, 10, 23)
SATURDAY = date(2026, 10, 24)
SUNDAY = date(2026, 10, 25)


def at(day: date, hour: int, minute: int = 0) -> datetime:
    """UTC instant on ``day``"""
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


class FakeTransport(MessagingTransport):
    """Records every send; recipients in ``fail_for`` raise TransportError.

    With ``channel_barrier=n`` each channel post waits until ``n`` channel
    posts are in flight, which lets tests line up concurrent writers.
    """

    def __init__(self, fail_for: Optional[Set[str]] = None, channel_barrier: int = 0):
        super().__init__(IntegrationConfig(name="fake"))
        self.status = IntegrationStatus.CONNECTED
        self.fail_for = set(fail_for or ())
        self.direct_messages: List[tuple] = []
        self.channel_posts: List[tuple] = []
        self.thread_replies: List[tuple] = []
        self.before_channel_post = None
        self._barrier = channel_barrier
        self._arrived = 0
        self._all_arrived = asyncio.Event()

    async def connect(self) -> None:
        self.status = IntegrationStatus.CONNECTED

    async def disconnect(self) -> None:
        self.status = IntegrationStatus.DISCONNECTED

    async def send_direct_message(self, recipient_ref: str, message: Message) -> None:
        if recipient_ref in self.fail_for:
            raise TransportError("user_not_found", "fake", recipient=recipient_ref)
        self.direct_messages.append((recipient_ref, message))

    async def post_channel_message(self, channel_ref: str, message: Message) -> str:
        if channel_ref in self.fail_for:
            raise TransportError("channel_not_found", "fake", recipient=channel_ref)
        if self._barrier:
            self._arrived += 1
            if self._arrived >= self._barrier:
                self._all_arrived.set()
            await asyncio.wait_for(self._all_arrived.wait(), timeout=5)
        if self.before_channel_post is not None:
            await self.before_channel_post()
        self.channel_posts.append((channel_ref, message))
        return f"ts-{len(self.channel_posts)}"

    async def post_thread_reply(self, channel_ref, parent_ref, message, broadcast=False):
        self.thread_replies.append((channel_ref, parent_ref, message, broadcast))
        return f"{parent_ref}-reply-{len(self.thread_replies)}"

    def dm_recipients(self) -> List[str]:
        return [recipient for recipient, _ in self.direct_messages]


class Seeder:
    """Creates and commits rows with sensible defaults"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _save(self, obj):
        self.session.add(obj)
        await self.session.commit()
        return obj

    async def org(self, **kwargs) -> Organization:
        kwargs.setdefault("name", "Acme")
        kwargs.setdefault("country", "US")
        kwargs.setdefault("default_work_days", [1, 2, 3, 4, 5])
        kwargs.setdefault("is_active", True)
        return await self._save(Organization(**kwargs))

    async def team(self, org: Organization, **kwargs) -> Team:
        kwargs.setdefault("name", "Core")
        kwargs.setdefault("channel_ref", "C-CORE")
        kwargs.setdefault("timezone", "UTC")
        kwargs.setdefault("standup_time", "09:30")
        kwargs.setdefault("posting_time", "10:00")
        kwargs.setdefault("is_active", True)
        return await self._save(Team(organization_id=org.id, **kwargs))

    async def member(
        self,
        team: Team,
        external_id: str,
        role: MemberRole = MemberRole.MEMBER,
        work_days: Optional[List[int]] = None,
        **membership_kwargs
    ):
        user = await self._save(User(
            external_id=external_id,
            name=external_id.title(),
            work_days=work_days,
            organization_id=team.organization_id
        ))
        membership = await self._save(TeamMembership(
            team_id=team.id,
            user_id=user.id,
            role=role.value,
            **membership_kwargs
        ))
        return membership, user

    async def leave(self, user: User, start: date, end: date) -> Leave:
        return await self._save(Leave(user_id=user.id, start_date=start, end_date=end, reason="Vacation"))

    async def holiday(self, day: date, country: Optional[str] = None) -> Holiday:
        return await self._save(Holiday(date=day, country=country, name="Holiday"))


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed(db):
    return Seeder(db)


@pytest.fixture
def transport():
    return FakeTransport()

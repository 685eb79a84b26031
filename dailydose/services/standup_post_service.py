from dataclasses import dataclass
from typing import List, Optional, Sequence
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_

from ..core.exceptions import PersistenceConflict
from ..database import dialect_insert
from ..integrations.base import MessagingTransport
from ..models.standup import StandupPost, StandupResponse
from ..models.user import Team, User
from ..utils.blocks import Message, MessageBuilder
from ..utils.dates import format_standup_date, utcnow
from ..utils.messages import format_tasks, mention
from ..utils.logging import get_logger
from .eligibility_service import EligibilityResolver
from .response_service import ResponseStore

logger = get_logger(__name__)


@dataclass
class PostRef:
    """Where a team's daily summary lives"""
    message_ref: str
    channel_ref: str
    created: bool = False

    @classmethod
    def from_post(cls, post: StandupPost, created: bool = False) -> "PostRef":
        return cls(message_ref=post.message_ref, channel_ref=post.channel_ref, created=created)


def _response_blocks(builder: MessageBuilder, response: StandupResponse) -> MessageBuilder:
    builder.section(f"*👤 {mention(response.user.external_id if response.user else None)}*")

    yesterday = format_tasks(response.yesterday_tasks)
    today = format_tasks(response.today_tasks)
    builder.fields(
        f"*📄 Yesterday*\n{yesterday}" if yesterday else "",
        f"*🎯 Today*\n{today}" if today else "",
    )

    if response.blockers and response.blockers.strip():
        builder.context(f"⚠️ *Blocker:* _{response.blockers.strip()}_")
    return builder


def compose(
    team: Team,
    on_time: Sequence[StandupResponse],
    late: Sequence[StandupResponse],
    not_submitted: Sequence[User],
    on_leave: Sequence[User],
    standup_date: date
) -> Message:
    """Build the daily summary.

    Sections: header, one block group per on-time response, members who
    have not responded, members on leave. Late responses are threaded under
    the summary afterwards, so their authors are neither shown here nor
    listed as missing.
    """
    title = f"💬 Daily Standup — {team.name} — {format_standup_date(standup_date)}"
    builder = MessageBuilder(title).header(title)

    for response in on_time:
        _response_blocks(builder, response).divider()

    late_user_ids = {r.user_id for r in late}
    missing = [u for u in not_submitted if u.id not in late_user_ids]
    if missing:
        builder.section("*📝 Not Responded*\n" + "\n".join(f"- {mention(u.external_id)}" for u in missing))

    if on_leave:
        builder.section("*🌴 On Leave*\n" + "\n".join(f"- {mention(u.external_id)}" for u in on_leave))

    return builder.build()


def compose_late_reply(response: StandupResponse) -> Message:
    builder = MessageBuilder("🕐 Late Submission").section("🕐 *Late Submission*")
    return _response_blocks(builder, response).build()


class StandupPostComposer:
    """Builds daily summaries and anchors them in the team channel.

    The ``standup_posts`` row for (team, date) is the only record that a
    summary exists. It is created with an insert-if-absent write; a writer
    that loses the race reuses the winning row instead of retrying.
    """

    def __init__(
        self,
        db: AsyncSession,
        transport: MessagingTransport,
        resolver: Optional[EligibilityResolver] = None,
        store: Optional[ResponseStore] = None
    ):
        self.db = db
        self.transport = transport
        self.resolver = resolver or EligibilityResolver(db)
        self.store = store or ResponseStore(db)

    async def build_summary(self, team: Team, standup_date: date) -> Message:
        eligible = await self.resolver.get_eligible_members(team, standup_date)
        on_leave = await self.resolver.get_members_on_leave(team, standup_date)
        on_time = await self.store.get_responses(team, standup_date)
        late = await self.store.get_late_responses(team, standup_date)

        responded = {r.user_id for r in on_time} | {r.user_id for r in late}
        not_submitted = [
            m.user for m in eligible
            if m.user.id not in responded and not m.membership.hide_from_not_responded
        ]
        return compose(team, on_time, late, not_submitted, [m.user for m in on_leave], standup_date)

    async def get_post(self, team_id: int, standup_date: date) -> Optional[StandupPost]:
        stmt = (
            select(StandupPost)
            .where(
                and_(
                    StandupPost.team_id == team_id,
                    StandupPost.standup_date == standup_date
                )
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def post_or_create_parent(self, team: Team, standup_date: date, message: Message) -> PostRef:
        """Return the day's parent post, posting ``message`` if there is none yet.

        ``PostRef.created`` is true only for the caller whose post became
        the parent.
        """
        existing = await self.get_post(team.id, standup_date)
        if existing:
            return PostRef.from_post(existing)

        message_ref = await self.transport.post_channel_message(team.channel_ref, message)

        try:
            post = await self._insert_post(team, standup_date, message_ref)
        except PersistenceConflict as e:
            # Our message stays visible in the channel as a duplicate
            post = await self.get_post(team.id, standup_date)
            logger.warning(
                f"Standup post for team {team.id} on {standup_date} already created "
                f"({post.message_ref}); discarding {message_ref}: {str(e)}"
            )
            return PostRef.from_post(post)

        logger.info(f"Posted standup summary for team {team.id} on {standup_date}")
        return PostRef.from_post(post, created=True)

    async def append_late_reply(self, team: Team, standup_date: date, late_response: StandupResponse) -> PostRef:
        """Thread a late response under the day's summary.

        When no summary exists yet, this submission triggers it: the full
        summary is posted first, followed by every late response so far.
        """
        existing = await self.get_post(team.id, standup_date)
        if existing:
            post = PostRef.from_post(existing)
            await self._reply(post, late_response)
            return post

        summary = await self.build_summary(team, standup_date)
        post = await self.post_or_create_parent(team, standup_date, summary)
        if post.created:
            await self.post_late_replies(team, standup_date, post)
        else:
            await self._reply(post, late_response)
        return post

    async def post_late_replies(self, team: Team, standup_date: date, post: PostRef) -> int:
        """Thread every late response of the day under ``post``"""
        late = await self.store.get_late_responses(team, standup_date)
        for response in late:
            await self._reply(post, response)

        if late:
            logger.info(f"Posted {len(late)} late responses for team {team.name}")
        return len(late)

    async def _reply(self, post: PostRef, response: StandupResponse) -> None:
        await self.transport.post_thread_reply(
            post.channel_ref,
            post.message_ref,
            compose_late_reply(response),
            broadcast=True
        )

    async def _insert_post(self, team: Team, standup_date: date, message_ref: str) -> StandupPost:
        key = {"team_id": team.id, "standup_date": standup_date}
        stmt = (
            dialect_insert(self.db, StandupPost.__table__)
            .values(
                message_ref=message_ref,
                channel_ref=team.channel_ref,
                posted_at=utcnow(),
                **key
            )
            .on_conflict_do_nothing(index_elements=list(key))
        )
        try:
            await self.db.execute(stmt)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        post = await self.get_post(team.id, standup_date)
        if post is None or post.message_ref != message_ref:
            raise PersistenceConflict("Standup post already exists", key)
        return post

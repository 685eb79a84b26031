import random
from typing import Any, Dict, List, Optional, Union
from datetime import date, datetime
from sqlalchemy.ext.asyncio import AsyncSession

from ..integrations.base import MessagingTransport
from ..models.standup import StandupResponse
from ..models.user import Team, User
from ..utils.blocks import Message, MessageBuilder
from ..utils.dates import format_time_12h, get_zone, local_now
from ..utils.messages import random_followup_message, random_standup_message
from ..utils.logging import get_logger
from .eligibility_service import EligibilityResolver, EligibleMember
from .notification_service import DispatchResult, NotificationDispatcher
from .response_service import ResponseStore, StandupPayload
from .standup_post_service import PostRef, StandupPostComposer
from .team_service import TeamService

logger = get_logger(__name__)


class StandupService:
    """Service for the daily standup lifecycle of a team.

    One instance works on one database session and exposes the operations
    the scheduler and the command layer call.
    """

    def __init__(
        self,
        db: AsyncSession,
        transport: MessagingTransport,
        rng: Optional[random.Random] = None
    ):
        self.db = db
        self.transport = transport
        self.rng = rng
        self.teams = TeamService(db)
        self.resolver = EligibilityResolver(db)
        self.notifier = NotificationDispatcher(transport)
        self.store = ResponseStore(db, notifier=self.notifier)
        self.composer = StandupPostComposer(db, transport, resolver=self.resolver, store=self.store)

    def today(self, team: Team, now: Optional[datetime] = None) -> date:
        """Current calendar date in the team's timezone"""
        return local_now(get_zone(team.timezone, team.id), now).date()

    async def get_eligible_members(self, team: Team, day: Optional[date] = None) -> List[EligibleMember]:
        return await self.resolver.get_eligible_members(team, day or self.today(team))

    async def save_response(
        self,
        team: Team,
        user: User,
        day: Union[date, datetime, None],
        payload: StandupPayload,
        now: Optional[datetime] = None
    ) -> StandupResponse:
        """Store a submission; a late one is threaded under the day's summary"""

        response = await self.store.save_response(team, user, day or self.today(team, now), payload, now=now)

        if response.is_late:
            organization = await self.teams.get_organization(team)
            if await self.resolver.is_org_working_day(response.standup_date, organization):
                try:
                    await self.composer.append_late_reply(team, response.standup_date, response)
                except Exception as e:
                    logger.error(f"Failed to post late response for team {team.id}: {str(e)}")

        return response

    async def send_standup_reminders(self, team: Team, now: Optional[datetime] = None) -> DispatchResult:
        """DM every eligible member that it is time to post"""

        day = self.today(team, now)
        if await self._is_holiday(team, day):
            logger.info(f"Skipping reminders for team {team.name}: {day} is a holiday")
            return DispatchResult()

        members = await self.resolver.get_eligible_members(team, day)
        result = await self.notifier.send_to_many(
            members,
            lambda m: self._reminder_message(team, random_standup_message(m.user.external_id, self.rng)),
            allow=lambda m: bool(m.membership.receive_reminders)
        )
        logger.info(f"Sent {result.sent} standup reminders for team {team.name}")
        return result

    async def send_followup_reminders(self, team: Team, now: Optional[datetime] = None) -> DispatchResult:
        """Nudge eligible members who have not responded yet"""

        day = self.today(team, now)
        if await self._is_holiday(team, day):
            return DispatchResult()

        members = await self.resolver.get_eligible_members(team, day)
        responded = {r.user_id for r in await self.store.get_responses(team, day)}
        responded |= {r.user_id for r in await self.store.get_late_responses(team, day)}
        pending = [m for m in members if m.user.id not in responded]

        result = await self.notifier.send_to_many(
            pending,
            lambda m: self._reminder_message(team, random_followup_message(m.user.external_id, self.rng)),
            allow=lambda m: bool(m.membership.receive_reminders)
        )
        logger.info(f"Sent {result.sent} follow-up reminders for team {team.name}")
        return result

    async def post_team_standup(
        self,
        team: Team,
        day: Optional[date] = None,
        now: Optional[datetime] = None
    ) -> Optional[PostRef]:
        """Post the daily summary, then thread the late responses under it.

        Nothing is posted on weekends or holidays. If the summary already
        exists (a late submission created it first) the existing post is
        returned unchanged.
        """
        day = day or self.today(team, now)
        organization = await self.teams.get_organization(team)
        if not await self.resolver.is_org_working_day(day, organization):
            logger.info(f"Not posting standup for team {team.name}: {day} is not a working day")
            return None

        existing = await self.composer.get_post(team.id, day)
        if existing:
            logger.info(f"Standup for team {team.name} on {day} already posted")
            return PostRef.from_post(existing)

        message = await self.composer.build_summary(team, day)
        post = await self.composer.post_or_create_parent(team, day, message)
        if post.created:
            await self.composer.post_late_replies(team, day, post)
        return post

    async def get_day_status(self, team: Team, day: Optional[date] = None) -> Dict[str, Any]:
        """Team-day state derived from stored rows"""

        day = day or self.today(team)
        post = await self.composer.get_post(team.id, day)
        on_time = await self.store.get_responses(team, day)
        late = await self.store.get_late_responses(team, day)
        return {
            "team_id": team.id,
            "date": day,
            "status": "POSTED" if post else "PENDING",
            "message_ref": post.message_ref if post else None,
            "responses": len(on_time),
            "late_responses": len(late),
        }

    async def _is_holiday(self, team: Team, day: date) -> bool:
        organization = await self.teams.get_organization(team)
        return await self.resolver.is_holiday(day, organization)

    def _reminder_message(self, team: Team, text: str) -> Message:
        return (
            MessageBuilder(text)
            .section(text)
            .section(f"*Team:* {team.name}")
            .context(f"⏰ Deadline: {format_time_12h(team.posting_time)}")
            .build()
        )

import asyncio
from typing import List, Optional, Set, Union
from datetime import date, datetime
from pydantic import BaseModel, model_validator
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import func

from ..database import dialect_insert
from ..models.standup import StandupResponse
from ..models.user import Team, User
from ..utils.dates import get_zone, local_datetime, local_now, parse_hhmm, to_local_date, utcnow
from ..utils.logging import get_logger
from .notification_service import NotificationDispatcher
from .team_service import TeamService

logger = get_logger(__name__)

UNIQUE_KEY = ["team_id", "user_id", "standup_date"]


class StandupPayload(BaseModel):
    """What a member reports for one day"""
    yesterday_tasks: Optional[str] = None
    today_tasks: Optional[str] = None
    blockers: Optional[str] = None

    @model_validator(mode="after")
    def require_content(self) -> "StandupPayload":
        if not any((value or "").strip() for value in (self.yesterday_tasks, self.today_tasks, self.blockers)):
            raise ValueError("Please fill in at least one field")
        return self

    @property
    def has_blockers(self) -> bool:
        return bool((self.blockers or "").strip())


def compute_is_late(team: Team, standup_date: date, now: Optional[datetime] = None) -> bool:
    """Whether a submission made at ``now`` for ``standup_date`` is late.

    Only today's and future days can be late, and only once the team's
    posting time on that day has passed. Edits to past days never are.
    """
    zone = get_zone(team.timezone, team.id)
    now_local = local_now(zone, now)
    if standup_date < now_local.date():
        return False
    hour, minute = parse_hhmm(team.posting_time, team.id)
    return now_local > local_datetime(standup_date, hour, minute, zone)


class ResponseStore:
    """Idempotent storage of standup responses"""

    def __init__(self, db: AsyncSession, notifier: Optional[NotificationDispatcher] = None):
        self.db = db
        self.notifier = notifier
        self._pending: Set[asyncio.Task] = set()

    async def save_response(
        self,
        team: Team,
        user: User,
        day: Union[date, datetime],
        payload: StandupPayload,
        now: Optional[datetime] = None
    ) -> StandupResponse:
        """Create or overwrite the response of ``user`` for ``team`` on ``day``.

        Submission and correction are the same operation; lateness and the
        submission timestamp are recomputed every time.
        """
        now = now or utcnow()
        standup_date = to_local_date(day, get_zone(team.timezone, team.id))
        is_late = compute_is_late(team, standup_date, now)

        existing = await self.get_response(team.id, user.id, standup_date)

        fields = {
            "yesterday_tasks": payload.yesterday_tasks,
            "today_tasks": payload.today_tasks,
            "blockers": payload.blockers,
            "has_blockers": payload.has_blockers,
            "is_late": is_late,
            "submitted_at": now,
        }
        stmt = dialect_insert(self.db, StandupResponse.__table__).values(
            team_id=team.id,
            user_id=user.id,
            standup_date=standup_date,
            **fields
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=UNIQUE_KEY,
            set_={**fields, "updated_at": func.now()}
        )

        try:
            await self.db.execute(stmt)
            await self.db.commit()
        except Exception as e:
            logger.error(f"Failed to save standup response: {str(e)}")
            await self.db.rollback()
            raise

        stored = await self.get_response(team.id, user.id, standup_date)
        logger.info(
            f"{'Updated' if existing else 'Saved'} standup of user {user.id} "
            f"for team {team.id} on {standup_date}{' (late)' if is_late else ''}"
        )

        await self._notify_admins(team, user, stored, is_update=existing is not None)
        return stored

    async def get_response(self, team_id: int, user_id: int, standup_date: date) -> Optional[StandupResponse]:
        stmt = (
            select(StandupResponse)
            .where(
                and_(
                    StandupResponse.team_id == team_id,
                    StandupResponse.user_id == user_id,
                    StandupResponse.standup_date == standup_date
                )
            )
            .options(selectinload(StandupResponse.user))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_responses(self, team: Team, standup_date: date) -> List[StandupResponse]:
        """On-time responses, oldest submission first"""
        return await self._get_by_lateness(team.id, standup_date, is_late=False)

    async def get_late_responses(self, team: Team, standup_date: date) -> List[StandupResponse]:
        """Late responses, oldest submission first"""
        return await self._get_by_lateness(team.id, standup_date, is_late=True)

    async def wait_for_notifications(self) -> None:
        """Wait until background admin notifications have finished"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _get_by_lateness(self, team_id: int, standup_date: date, is_late: bool) -> List[StandupResponse]:
        stmt = (
            select(StandupResponse)
            .where(
                and_(
                    StandupResponse.team_id == team_id,
                    StandupResponse.standup_date == standup_date,
                    StandupResponse.is_late == is_late
                )
            )
            .options(selectinload(StandupResponse.user))
            .order_by(StandupResponse.submitted_at.asc(), StandupResponse.id.asc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _notify_admins(self, team: Team, user: User, response: StandupResponse, is_update: bool) -> None:
        if self.notifier is None:
            return
        try:
            admins = await TeamService(self.db).get_team_admins(team.id)
        except Exception as e:
            logger.error(f"Could not load admins of team {team.id}: {str(e)}")
            return

        task = asyncio.create_task(
            self._run_admin_notification(team, admins, user, response, is_update)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_admin_notification(self, team, admins, user, response, is_update) -> None:
        # The response is already committed; a failed notice only gets logged
        try:
            await self.notifier.notify_admins_of_submission(team, admins, user, response, is_update)
        except Exception as e:
            logger.error(f"Error notifying admins of team {team.id}: {str(e)}")

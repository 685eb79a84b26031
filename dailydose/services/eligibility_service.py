from typing import Iterable, List, NamedTuple, Optional, Sequence, Set
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_

from ..config import settings
from ..models.organization import Organization, Holiday
from ..models.user import Team, TeamMembership, User, Leave
from ..utils.logging import get_logger

logger = get_logger(__name__)

WEEKEND = frozenset({6, 7})


class EligibleMember(NamedTuple):
    membership: TeamMembership
    user: User


def resolve_work_days(
    user: User,
    organization: Optional[Organization],
    fallback: Optional[Iterable[int]] = None
) -> Set[int]:
    """Effective weekdays (1=Monday .. 7=Sunday) for a user.

    The user's override wins, then the organization default, then
    ``fallback`` (the configured default work days).
    """
    if user.work_days:
        return set(user.work_days)
    if organization is not None and organization.default_work_days:
        return set(organization.default_work_days)
    return set(fallback if fallback is not None else settings.default_work_days)


class EligibilityResolver:
    """Decides who is expected to post a standup on a given day.

    Nothing here is persisted: every call recomputes from memberships,
    leaves and work-day settings, so repeated calls with unchanged data
    return identical results.
    """

    def __init__(self, db: AsyncSession, default_work_days: Optional[Sequence[int]] = None):
        self.db = db
        self.default_work_days = list(default_work_days or settings.default_work_days)

    async def get_eligible_members(self, team: Team, day: date) -> List[EligibleMember]:
        """Active members not on leave whose work days include ``day``, in join order.

        ``day`` is the calendar date in the team's timezone.
        """
        members = await self._active_members(team.id)
        if not members:
            return []

        on_leave = await self._users_on_leave([m.user.id for m in members], day)
        organization = await self.db.get(Organization, team.organization_id)
        weekday = day.isoweekday()

        eligible = []
        for member in members:
            if member.user.id in on_leave:
                continue
            if weekday not in resolve_work_days(member.user, organization, self.default_work_days):
                continue
            eligible.append(member)

        logger.debug(
            "Team %s has %d/%d eligible members on %s",
            team.id, len(eligible), len(members), day
        )
        return eligible

    async def get_members_on_leave(self, team: Team, day: date) -> List[EligibleMember]:
        """Active members whose leave covers ``day``, in join order"""

        members = await self._active_members(team.id)
        if not members:
            return []
        on_leave = await self._users_on_leave([m.user.id for m in members], day)
        return [m for m in members if m.user.id in on_leave]

    async def is_holiday(self, day: date, organization: Organization) -> bool:
        """Whether a holiday falls on ``day`` for ``organization``.

        Country scoping only applies when both the organization and the
        holiday carry a country; otherwise any holiday on the date counts.
        """
        stmt = select(Holiday.id).where(Holiday.date == day)
        if organization.country:
            stmt = stmt.where(or_(Holiday.country.is_(None), Holiday.country == organization.country))
        stmt = stmt.limit(1)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def is_org_working_day(self, day: date, organization: Organization) -> bool:
        """Whether a team of ``organization`` posts its summary on ``day`` at all"""

        if day.isoweekday() in WEEKEND:
            return False
        return not await self.is_holiday(day, organization)

    async def _active_members(self, team_id: int) -> List[EligibleMember]:
        stmt = (
            select(TeamMembership, User)
            .join(User, TeamMembership.user_id == User.id)
            .where(
                and_(
                    TeamMembership.team_id == team_id,
                    TeamMembership.is_active == True
                )
            )
            .order_by(TeamMembership.id)
        )
        result = await self.db.execute(stmt)
        return [EligibleMember(membership, user) for membership, user in result.all()]

    async def _users_on_leave(self, user_ids: List[int], day: date) -> Set[int]:
        # Leave dates are inclusive calendar days, so overlap with the whole
        # local day reduces to start <= day <= end
        stmt = (
            select(Leave.user_id)
            .where(
                and_(
                    Leave.user_id.in_(user_ids),
                    Leave.start_date <= day,
                    Leave.end_date >= day
                )
            )
            .distinct()
        )
        result = await self.db.execute(stmt)
        return set(result.scalars().all())

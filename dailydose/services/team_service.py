from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from sqlalchemy.orm import selectinload

from ..core.exceptions import NotFoundError
from ..models.organization import Organization
from ..models.user import Team, TeamMembership, User, MemberRole
from ..utils.logging import get_logger

logger = get_logger(__name__)


class TeamService:
    """Read access to teams, their admins and users"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active_teams_for_scheduling(self) -> List[Team]:
        """Active teams that belong to an active organization"""

        stmt = (
            select(Team)
            .join(Organization, Team.organization_id == Organization.id)
            .where(
                and_(
                    Team.is_active == True,
                    Organization.is_active == True
                )
            )
            .options(selectinload(Team.organization))
            .order_by(Team.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_team(self, team_id: int) -> Optional[Team]:
        stmt = (
            select(Team)
            .where(Team.id == team_id)
            .options(selectinload(Team.organization))
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def require_team(self, team_id: int) -> Team:
        team = await self.get_team(team_id)
        if not team:
            raise NotFoundError("Team", team_id)
        return team

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def require_user(self, user_id: int) -> User:
        user = await self.get_user(user_id)
        if not user:
            raise NotFoundError("User", user_id)
        return user

    async def get_team_admins(self, team_id: int) -> List[TeamMembership]:
        """Active admin memberships with their users loaded"""

        stmt = (
            select(TeamMembership)
            .where(
                and_(
                    TeamMembership.team_id == team_id,
                    TeamMembership.role == MemberRole.ADMIN.value,
                    TeamMembership.is_active == True
                )
            )
            .options(selectinload(TeamMembership.user))
            .order_by(TeamMembership.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_organization(self, team: Team) -> Organization:
        organization = await self.db.get(Organization, team.organization_id)
        if not organization:
            raise NotFoundError("Organization", team.organization_id)
        return organization

"""
Schedule API Endpoints

Lets the command layer apply team configuration changes without waiting
for the nightly refresh.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from pydantic import BaseModel

from ...core.exceptions import ConfigError
from ...database import get_db
from ...services.scheduler_service import TeamScheduleRegistry
from ...services.team_service import TeamService
from ..deps import get_registry

router = APIRouter()


class TriggerResponse(BaseModel):
    key: str
    kind: str
    team_id: int
    time: str
    timezone: str


@router.post("/refresh", response_model=dict)
async def refresh_schedules(registry: TeamScheduleRegistry = Depends(get_registry)):
    """Reschedule every active team"""

    scheduled = await registry.schedule_all()
    return {"message": "Schedules refreshed", "teams_scheduled": scheduled}


@router.post("/teams/{team_id}", response_model=List[TriggerResponse])
async def schedule_team(
    team_id: int,
    db: AsyncSession = Depends(get_db),
    registry: TeamScheduleRegistry = Depends(get_registry)
):
    """Reinstall one team's triggers, or remove them if the team is inactive"""

    team = await TeamService(db).get_team(team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")

    if not team.is_active or not team.organization.is_active:
        registry.unschedule_team(team.id)
        return []

    try:
        triggers = registry.schedule_team(team)
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return [
        TriggerResponse(key=t.key, kind=t.kind, team_id=t.team_id, time=t.time, timezone=t.timezone)
        for t in triggers
    ]


@router.get("/", response_model=List[TriggerResponse])
async def list_triggers(registry: TeamScheduleRegistry = Depends(get_registry)):
    return [
        TriggerResponse(key=t.key, kind=t.kind, team_id=t.team_id, time=t.time, timezone=t.timezone)
        for t in registry.triggers.values()
    ]

"""
Standup API Endpoints

Operations the command layer calls for a team: eligibility, response
submission, reminders and the daily summary.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import date as Date, datetime

from pydantic import BaseModel, Field, ValidationError

from ...core.exceptions import NotFoundError, TransportError
from ...database import get_db
from ...integrations.base import MessagingTransport
from ...services.response_service import StandupPayload
from ...services.standup_service import StandupService
from ..deps import get_transport

router = APIRouter()


# Pydantic models for requests/responses
class StandupSubmitRequest(BaseModel):
    """A member's standup submission"""
    user_id: int = Field(..., description="ID of the submitting user")
    date: Optional[Date] = Field(None, description="Standup date (defaults to today in the team timezone)")
    yesterday_tasks: Optional[str] = None
    today_tasks: Optional[str] = None
    blockers: Optional[str] = None


class StoredResponse(BaseModel):
    """Stored standup response"""
    id: int
    team_id: int
    user_id: int
    standup_date: Date
    yesterday_tasks: Optional[str]
    today_tasks: Optional[str]
    blockers: Optional[str]
    is_late: bool
    submitted_at: datetime

    class Config:
        from_attributes = True


class EligibleMemberResponse(BaseModel):
    user_id: int
    external_id: str
    name: Optional[str]
    role: str


class DispatchResponse(BaseModel):
    sent: int
    failed: int
    skipped: int


class PostResponse(BaseModel):
    posted: bool
    message_ref: Optional[str] = None
    channel_ref: Optional[str] = None
    created: bool = False


async def get_standup_service(
    db: AsyncSession = Depends(get_db),
    transport: MessagingTransport = Depends(get_transport)
) -> StandupService:
    return StandupService(db, transport)


async def _team_or_404(service: StandupService, team_id: int):
    try:
        return await service.teams.require_team(team_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/teams/{team_id}/eligible", response_model=List[EligibleMemberResponse])
async def get_eligible_members(
    team_id: int,
    date: Optional[Date] = None,
    service: StandupService = Depends(get_standup_service)
):
    """Members expected to post a standup on ``date``"""

    team = await _team_or_404(service, team_id)
    members = await service.get_eligible_members(team, date)
    return [
        EligibleMemberResponse(
            user_id=m.user.id,
            external_id=m.user.external_id,
            name=m.user.name,
            role=m.membership.role
        )
        for m in members
    ]


@router.post("/teams/{team_id}/responses", response_model=StoredResponse, status_code=201)
async def submit_standup(
    team_id: int,
    request: StandupSubmitRequest,
    service: StandupService = Depends(get_standup_service)
):
    """
    Submit or update a standup response

    Re-submitting for the same day overwrites the previous response. A late
    submission is threaded under the day's summary.
    """

    team = await _team_or_404(service, team_id)
    try:
        user = await service.teams.require_user(request.user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    try:
        payload = StandupPayload(
            yesterday_tasks=request.yesterday_tasks,
            today_tasks=request.today_tasks,
            blockers=request.blockers
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    response = await service.save_response(team, user, request.date, payload)
    return response


@router.post("/teams/{team_id}/post", response_model=PostResponse)
async def post_team_standup(
    team_id: int,
    date: Optional[Date] = None,
    service: StandupService = Depends(get_standup_service)
):
    """Post the daily summary now (no-op on non-working days)"""

    team = await _team_or_404(service, team_id)
    try:
        post = await service.post_team_standup(team, date)
    except TransportError as e:
        raise HTTPException(status_code=502, detail=str(e))

    if post is None:
        return PostResponse(posted=False)
    return PostResponse(
        posted=True,
        message_ref=post.message_ref,
        channel_ref=post.channel_ref,
        created=post.created
    )


@router.post("/teams/{team_id}/reminders", response_model=DispatchResponse)
async def send_standup_reminders(
    team_id: int,
    service: StandupService = Depends(get_standup_service)
):
    team = await _team_or_404(service, team_id)
    result = await service.send_standup_reminders(team)
    return DispatchResponse(sent=result.sent, failed=result.failed, skipped=result.skipped)


@router.post("/teams/{team_id}/followups", response_model=DispatchResponse)
async def send_followup_reminders(
    team_id: int,
    service: StandupService = Depends(get_standup_service)
):
    team = await _team_or_404(service, team_id)
    result = await service.send_followup_reminders(team)
    return DispatchResponse(sent=result.sent, failed=result.failed, skipped=result.skipped)


@router.get("/teams/{team_id}/status", response_model=dict)
async def get_day_status(
    team_id: int,
    date: Optional[Date] = None,
    service: StandupService = Depends(get_standup_service)
):
    """Whether the day's summary is posted, with response counts"""

    team = await _team_or_404(service, team_id)
    return await service.get_day_status(team, date)

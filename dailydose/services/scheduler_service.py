from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import settings
from ..core.exceptions import ConfigError
from ..integrations.base import MessagingTransport
from ..models.user import Team
from ..utils.dates import get_zone, parse_hhmm, shift_hhmm
from ..utils.logging import get_logger
from .standup_service import StandupService
from .team_service import TeamService

logger = get_logger(__name__)

REMINDER = "reminder"
FOLLOWUP = "followup"
POSTING = "posting"
TRIGGER_KINDS = (REMINDER, FOLLOWUP, POSTING)

REFRESH_JOB_ID = "refresh-schedules"


@dataclass(frozen=True)
class ScheduledTrigger:
    """One daily trigger of a team, in the team's timezone"""
    kind: str
    team_id: int
    hour: int
    minute: int
    timezone: str

    @property
    def key(self) -> str:
        return trigger_key(self.kind, self.team_id)

    @property
    def time(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


def trigger_key(kind: str, team_id: int) -> str:
    return f"{kind}:{team_id}"


def derive_triggers(team: Team, followup_delay_minutes: Optional[int] = None) -> List[ScheduledTrigger]:
    """Reminder at standup time, follow-up shortly after, summary at posting time.

    Raises ``ConfigError`` when a time or the timezone is invalid.
    """
    delay = settings.followup_delay_minutes if followup_delay_minutes is None else followup_delay_minutes
    get_zone(team.timezone, team.id)
    standup_hour, standup_minute = parse_hhmm(team.standup_time, team.id)
    posting_hour, posting_minute = parse_hhmm(team.posting_time, team.id)
    followup_hour, followup_minute = shift_hhmm(standup_hour, standup_minute, delay)

    return [
        ScheduledTrigger(REMINDER, team.id, standup_hour, standup_minute, team.timezone),
        ScheduledTrigger(FOLLOWUP, team.id, followup_hour, followup_minute, team.timezone),
        ScheduledTrigger(POSTING, team.id, posting_hour, posting_minute, team.timezone),
    ]


class TeamScheduleRegistry:
    """
    Owns the daily triggers of every team.

    Constructed once at startup and injected where needed; ``shutdown()``
    stops every trigger. Each trigger is keyed ``<kind>:<team id>`` and
    replacing it removes the previous job before installing the new one.
    A job fired by an old schedule may still be running while the new one
    is installed; the idempotent writes underneath absorb that overlap.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        transport: MessagingTransport,
        scheduler: Optional[AsyncIOScheduler] = None,
        followup_delay_minutes: Optional[int] = None,
        misfire_grace_seconds: Optional[int] = None
    ):
        self.session_factory = session_factory
        self.transport = transport
        self.scheduler = scheduler or self._default_scheduler()
        self.followup_delay_minutes = followup_delay_minutes
        if misfire_grace_seconds is None:
            misfire_grace_seconds = settings.scheduler_misfire_grace_seconds
        if misfire_grace_seconds < 1:
            raise ValueError("misfire grace must be at least one second")
        self.misfire_grace_seconds = misfire_grace_seconds
        self._jobs: Dict[str, Job] = {}
        self._triggers: Dict[str, ScheduledTrigger] = {}

    @staticmethod
    def _default_scheduler() -> AsyncIOScheduler:
        if settings.scheduler_timezone:
            return AsyncIOScheduler(timezone=get_zone(settings.scheduler_timezone))
        return AsyncIOScheduler()

    @property
    def triggers(self) -> Dict[str, ScheduledTrigger]:
        return dict(self._triggers)

    @property
    def running(self) -> bool:
        return self.scheduler.running

    async def start(self) -> int:
        """Install the midnight refresh, start firing and schedule every team"""

        self.scheduler.add_job(
            self.schedule_all,
            CronTrigger(hour=0, minute=0),
            id=REFRESH_JOB_ID,
            name="Refresh team schedules",
            replace_existing=True,
            coalesce=True
        )
        if not self.scheduler.running:
            self.scheduler.start()
        return await self.schedule_all()

    def shutdown(self) -> None:
        for key in list(self._jobs):
            self._stop(key)
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Team schedule registry stopped")

    async def schedule_all(self) -> int:
        """(Re)schedule every active team; returns how many were scheduled"""

        logger.info("📅 Scheduling standup reminders for all teams...")
        async with self.session_factory() as session:
            teams = await TeamService(session).get_active_teams_for_scheduling()

        active_ids = {team.id for team in teams}
        for team_id in {t.team_id for t in self._triggers.values()} - active_ids:
            self.unschedule_team(team_id)

        scheduled = 0
        for team in teams:
            try:
                self.schedule_team(team)
                scheduled += 1
            except ConfigError as e:
                logger.error(f"Skipping team {team.name} ({team.id}): {str(e)}")
                self.unschedule_team(team.id)
        return scheduled

    def schedule_team(self, team: Team) -> List[ScheduledTrigger]:
        triggers = derive_triggers(team, self.followup_delay_minutes)
        zone = get_zone(team.timezone, team.id)

        for trigger in triggers:
            self._stop(trigger.key)
            job = self.scheduler.add_job(
                self._fire,
                CronTrigger(hour=trigger.hour, minute=trigger.minute, timezone=zone),
                id=trigger.key,
                name=f"{trigger.kind} for {team.name}",
                args=[trigger.kind, team.id],
                replace_existing=True,
                coalesce=True,
                misfire_grace_time=self.misfire_grace_seconds
            )
            self._jobs[trigger.key] = job
            self._triggers[trigger.key] = trigger

        logger.info(
            f"✅ Scheduled team: {team.name} ({team.timezone}), "
            f"Standup: {team.standup_time}, Posting: {team.posting_time}"
        )
        return triggers

    def unschedule_team(self, team_id: int) -> None:
        for kind in TRIGGER_KINDS:
            self._stop(trigger_key(kind, team_id))

    def _stop(self, key: str) -> None:
        job = self._jobs.pop(key, None)
        self._triggers.pop(key, None)
        if job is None:
            return
        try:
            job.remove()
        except JobLookupError:
            # Already gone, e.g. the scheduler was shut down
            pass

    async def _fire(self, kind: str, team_id: int) -> None:
        """Run one trigger as an isolated unit of work"""

        async with self.session_factory() as session:
            try:
                team = await TeamService(session).get_team(team_id)
                if not team or not team.is_active:
                    logger.warning(f"Team {team_id} is gone or inactive; skipping {kind}")
                    return

                logger.info(f"🚀 Trigger fired: {kind} for {team.name}")
                service = StandupService(session, self.transport)
                await self._action(service, kind)(team)
                await service.store.wait_for_notifications()
            except Exception:
                logger.exception(f"Error in {kind} job for team {team_id}")

    @staticmethod
    def _action(service: StandupService, kind: str) -> Callable[[Team], Awaitable[object]]:
        actions = {
            REMINDER: service.send_standup_reminders,
            FOLLOWUP: service.send_followup_reminders,
            POSTING: service.post_team_standup,
        }
        return actions[kind]

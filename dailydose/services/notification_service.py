import asyncio
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ..integrations.base import MessagingTransport
from ..models.standup import StandupResponse
from ..models.user import Team, TeamMembership, User
from ..utils.blocks import Message, MessageBuilder
from ..utils.dates import format_standup_date
from ..utils.messages import channel_mention
from ..utils.logging import get_logger
from .eligibility_service import EligibleMember

logger = get_logger(__name__)


@dataclass
class DispatchResult:
    sent: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def attempted(self) -> int:
        return self.sent + self.failed


class NotificationDispatcher:
    """Best-effort fan-out of direct messages.

    Every allowed recipient gets exactly one attempt; sends run
    concurrently and a failing recipient is logged and counted without
    affecting the others. There is no retry.
    """

    def __init__(self, transport: MessagingTransport):
        self.transport = transport

    async def send_to_many(
        self,
        recipients: Sequence[EligibleMember],
        build_message: Callable[[EligibleMember], Message],
        allow: Optional[Callable[[EligibleMember], bool]] = None
    ) -> DispatchResult:
        result = DispatchResult()
        targets = []
        for recipient in recipients:
            if allow is not None and not allow(recipient):
                result.skipped += 1
                continue
            targets.append(recipient)

        outcomes = await asyncio.gather(*(self._send_one(r, build_message) for r in targets))
        for ok in outcomes:
            if ok:
                result.sent += 1
            else:
                result.failed += 1

        if result.failed:
            logger.warning(
                "Dispatched %d messages, %d failed, %d skipped",
                result.sent, result.failed, result.skipped
            )
        return result

    async def _send_one(
        self,
        recipient: EligibleMember,
        build_message: Callable[[EligibleMember], Message]
    ) -> bool:
        external_id = recipient.user.external_id
        try:
            message = build_message(recipient)
            await self.transport.send_direct_message(external_id, message)
            return True
        except Exception as e:
            logger.error(f"Failed to send message to {external_id}: {str(e)}")
            return False

    async def notify_admins_of_submission(
        self,
        team: Team,
        admins: Sequence[TeamMembership],
        submitter: User,
        response: StandupResponse,
        is_update: bool = False
    ) -> DispatchResult:
        """Tell team admins that ``submitter`` submitted or updated a standup.

        The submitter and admins who turned notifications off are skipped.
        """
        recipients = [EligibleMember(admin, admin.user) for admin in admins]
        message = build_admin_notification(team, submitter, response, is_update)

        return await self.send_to_many(
            recipients,
            lambda _: message,
            allow=lambda r: r.user.id != submitter.id and bool(r.membership.receive_notifications)
        )


def build_admin_notification(
    team: Team,
    submitter: User,
    response: StandupResponse,
    is_update: bool
) -> Message:
    action = "updated" if is_update else "submitted"
    late = " (late submission)" if response.is_late else ""
    text = (
        f"📝 {submitter.display_name} {action} their standup for {team.name}"
        f" ({format_standup_date(response.standup_date)}){late}"
    )
    return (
        MessageBuilder(text)
        .section(text)
        .context(f"Team: *{team.name}* | Channel: {channel_mention(team.channel_ref)}")
        .build()
    )

"""
Reminder texts sent to team members.
"""
import random
from typing import List, Optional

STANDUP_REMINDER_MESSAGES: List[str] = [
    "Hey {mention}! 👋 Daily Dose here – time to post your daily standup updates. Please share:\n• Yesterday's tasks\n• Today's tasks\n• Any blockers",
    "Hey {mention}! 👋 Daily Dose reminding you to post your standup for today! Don't forget:\n• Yesterday's tasks\n• Today's tasks\n• Any blockers",
    "Hello {mention}! 👋 Daily Dose here – time to share your daily standup updates. Please update:\n• Yesterday's tasks\n• Today's tasks\n• Any blockers",
    "Hi {mention}! 👋 Daily Dose here – don't forget to post your standup updates. Your checklist:\n• Yesterday's tasks\n• Today's tasks\n• Any blockers",
    "Hey {mention}! 👋 Daily Dose here – time for your daily standup! Make sure to share:\n• Yesterday's tasks\n• Today's tasks\n• Any blockers",
]

FOLLOWUP_REMINDER_MESSAGES: List[str] = [
    "⏰ Hey {mention}! Just a friendly reminder from Daily Dose – your standup is still pending. Don't forget to submit it!",
    "🔔 Hi {mention}! Daily Dose here with a gentle nudge – we're still waiting for your standup update.",
    "⏰ {mention}, this is Daily Dose checking in – looks like your standup hasn't been submitted yet. Quick reminder!",
    "🕐 Hey {mention}! Daily Dose here – just making sure you didn't miss submitting your standup today.",
    "⏰ Hi {mention}! Daily Dose with a friendly follow-up – your standup is still needed before the deadline.",
]


def mention(external_id: Optional[str]) -> str:
    if not external_id:
        return "Unknown User"
    return f"<@{external_id}>"


def channel_mention(channel_ref: str) -> str:
    return f"<#{channel_ref}>"


def random_standup_message(external_id: str, rng: Optional[random.Random] = None) -> str:
    template = (rng or random).choice(STANDUP_REMINDER_MESSAGES)
    return template.format(mention=mention(external_id))


def random_followup_message(external_id: str, rng: Optional[random.Random] = None) -> str:
    template = (rng or random).choice(FOLLOWUP_REMINDER_MESSAGES)
    return template.format(mention=mention(external_id))


def format_tasks(tasks: Optional[str]) -> str:
    """Bullet every non-empty line that is not already bulleted."""
    if not tasks:
        return ""
    lines = [line for line in tasks.split("\n") if line.strip()]
    return "\n".join(
        line if line.startswith(("-", "•")) else f"- {line}"
        for line in lines
    )

#!/usr/bin/env python3
"""
Seed Data Script for Daily Dose

Creates a small organization for local development:
- 1 Organization (Mon-Thu + Sun work week)
- 1 Team posting to a Slack channel
- 4 Users, one of them admin, one with a personal work week
- 1 Leave covering today for one user
- 1 Holiday next month

Usage:
    python scripts/seed_data.py --channel C0123456789        # Add seed data
    python scripts/seed_data.py --channel C0123 --clear      # Clear all data first
"""
import asyncio
import sys
import os
from datetime import date, timedelta
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dailydose.database import async_session, engine
from dailydose.models import (
    Base,
    Organization,
    Holiday,
    User,
    Team,
    TeamMembership,
    Leave,
    MemberRole,
    StandupResponse,
    StandupPost,
)


# ==================== DATA DEFINITIONS ====================

USERS_DATA = [
    {"external_id": "U000ALICE", "name": "Alice Johnson", "role": MemberRole.ADMIN},
    {"external_id": "U000BOB", "name": "Bob Martinez", "role": MemberRole.MEMBER},
    {"external_id": "U000CAROL", "name": "Carol Williams", "role": MemberRole.MEMBER, "work_days": [1, 2, 3, 4, 5]},
    {"external_id": "U000DAVE", "name": "Dave Chen", "role": MemberRole.MEMBER},
]


async def clear_all_data(session: AsyncSession):
    """Clear all data from database"""
    print("🗑️  Clearing existing data...")

    for model in (StandupPost, StandupResponse, Leave, TeamMembership, Team, User, Holiday, Organization):
        await session.execute(delete(model))

    await session.commit()
    print("✅ All data cleared")


async def seed_database(channel: str, timezone: str, clear_first: bool = False):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        if clear_first:
            await clear_all_data(session)

        print("\n🏢 Creating organization...")
        org = Organization(name="Acme", country="US", default_work_days=[1, 2, 3, 4, 7])
        session.add(org)
        await session.flush()

        team = Team(
            name="Product Team",
            channel_ref=channel,
            timezone=timezone,
            standup_time="09:30",
            posting_time="10:00",
            organization_id=org.id
        )
        session.add(team)
        await session.flush()
        print(f"  ✓ Created team: {team.name} ({team.timezone})")

        print("\n👥 Creating users...")
        for user_data in USERS_DATA:
            user = User(
                external_id=user_data["external_id"],
                name=user_data["name"],
                work_days=user_data.get("work_days"),
                organization_id=org.id
            )
            session.add(user)
            await session.flush()
            session.add(TeamMembership(team_id=team.id, user_id=user.id, role=user_data["role"].value))
            print(f"  ✓ Created: {user.name} ({user.external_id}) - Role: {user_data['role'].value}")

            if user.external_id == "U000DAVE":
                session.add(Leave(user_id=user.id, start_date=date.today(), end_date=date.today() + timedelta(days=2), reason="Vacation"))
                print("    - On leave for the next 3 days")

        session.add(Holiday(date=date.today() + timedelta(days=30), country="US", name="Company offsite"))
        await session.commit()

    print("\n" + "=" * 60)
    print("✅ Database seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Seed Daily Dose database")
    parser.add_argument("--channel", required=True, help="Slack channel ID the team posts to")
    parser.add_argument("--timezone", default="UTC", help="IANA timezone of the team")
    parser.add_argument("--clear", action="store_true", help="Clear all data before seeding")
    args = parser.parse_args()

    asyncio.run(seed_database(args.channel, args.timezone, clear_first=args.clear))

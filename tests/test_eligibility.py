"""Tests for who is expected to post on a given day."""

from datetime import timedelta

from dailydose.models import Organization, User
from dailydose.services.eligibility_service import EligibilityResolver, resolve_work_days

from conftest import FRIDAY, MONDAY, SATURDAY, SUNDAY


def _ids(members):
    return [m.user.external_id for m in members]


class TestResolveWorkDays:
    def test_user_override_wins(self):
        user = User(external_id="U1", work_days=[6, 7])
        org = Organization(name="Acme", default_work_days=[1, 2, 3, 4, 5])
        assert resolve_work_days(user, org, [1]) == {6, 7}

    def test_organization_default(self):
        user = User(external_id="U1", work_days=None)
        org = Organization(name="Acme", default_work_days=[1, 2, 3])
        assert resolve_work_days(user, org, [1]) == {1, 2, 3}

    def test_configured_fallback(self):
        user = User(external_id="U1", work_days=[])
        org = Organization(name="Acme", default_work_days=None)
        assert resolve_work_days(user, org, [1, 2, 3, 4, 7]) == {1, 2, 3, 4, 7}


async def test_members_in_join_order(db, seed):
    org = await seed.org()
    team = await seed.team(org)
    for external_id in ("U3", "U1", "U2"):
        await seed.member(team, external_id)

    members = await EligibilityResolver(db).get_eligible_members(team, MONDAY)
    assert _ids(members) == ["U3", "U1", "U2"]


async def test_repeated_calls_are_identical(db, seed):
    org = await seed.org()
    team = await seed.team(org)
    await seed.member(team, "U1")
    _, on_leave = await seed.member(team, "U2")
    await seed.leave(on_leave, MONDAY, MONDAY)

    resolver = EligibilityResolver(db)
    first = _ids(await resolver.get_eligible_members(team, MONDAY))
    second = _ids(await resolver.get_eligible_members(team, MONDAY))
    assert first == second == ["U1"]


async def test_leave_is_inclusive(db, seed):
    org = await seed.org()
    team = await seed.team(org)
    _, user = await seed.member(team, "U1")
    await seed.leave(user, MONDAY, MONDAY + timedelta(days=2))

    resolver = EligibilityResolver(db)
    assert await resolver.get_eligible_members(team, MONDAY) == []
    assert await resolver.get_eligible_members(team, MONDAY + timedelta(days=2)) == []
    assert _ids(await resolver.get_eligible_members(team, MONDAY + timedelta(days=3))) == ["U1"]
    assert _ids(await resolver.get_eligible_members(team, MONDAY - timedelta(days=3))) == ["U1"]


async def test_members_on_leave(db, seed):
    org = await seed.org()
    team = await seed.team(org)
    await seed.member(team, "U1")
    _, away = await seed.member(team, "U2")
    await seed.leave(away, MONDAY - timedelta(days=3), MONDAY)

    on_leave = await EligibilityResolver(db).get_members_on_leave(team, MONDAY)
    assert _ids(on_leave) == ["U2"]


async def test_weekend_excluded_for_weekday_workers(db, seed):
    org = await seed.org(default_work_days=[1, 2, 3, 4, 5])
    team = await seed.team(org)
    await seed.member(team, "U1")
    await seed.member(team, "U2", work_days=[1, 2, 3, 4, 5, 6])

    resolver = EligibilityResolver(db)
    assert _ids(await resolver.get_eligible_members(team, SATURDAY)) == ["U2"]
    assert await resolver.get_eligible_members(team, SUNDAY) == []
    assert _ids(await resolver.get_eligible_members(team, FRIDAY)) == ["U1", "U2"]


async def test_fallback_work_days(db, seed):
    org = await seed.org(default_work_days=None)
    team = await seed.team(org)
    await seed.member(team, "U1")

    resolver = EligibilityResolver(db, default_work_days=[1, 2, 3, 4, 7])
    assert await resolver.get_eligible_members(team, FRIDAY) == []
    assert _ids(await resolver.get_eligible_members(team, SUNDAY)) == ["U1"]


async def test_inactive_membership_excluded(db, seed):
    org = await seed.org()
    team = await seed.team(org)
    await seed.member(team, "U1", is_active=False)
    await seed.member(team, "U2")

    assert _ids(await EligibilityResolver(db).get_eligible_members(team, MONDAY)) == ["U2"]


async def test_other_team_members_not_included(db, seed):
    org = await seed.org()
    team = await seed.team(org)
    other = await seed.team(org, name="Other", channel_ref="C-OTHER")
    await seed.member(team, "U1")
    await seed.member(other, "U2")

    assert _ids(await EligibilityResolver(db).get_eligible_members(team, MONDAY)) == ["U1"]


class TestWorkingDays:
    async def test_weekend_is_not_a_working_day(self, db, seed):
        org = await seed.org(default_work_days=[1, 2, 3, 4, 5, 6, 7])
        resolver = EligibilityResolver(db)
        assert await resolver.is_org_working_day(MONDAY, org)
        assert not await resolver.is_org_working_day(SATURDAY, org)
        assert not await resolver.is_org_working_day(SUNDAY, org)

    async def test_global_holiday(self, db, seed):
        org = await seed.org(country="US")
        await seed.holiday(MONDAY)
        resolver = EligibilityResolver(db)
        assert await resolver.is_holiday(MONDAY, org)
        assert not await resolver.is_org_working_day(MONDAY, org)

    async def test_country_holiday(self, db, seed):
        us = await seed.org(country="US")
        india = await seed.org(name="Globex", country="IN")
        await seed.holiday(MONDAY, country="IN")

        resolver = EligibilityResolver(db)
        assert await resolver.is_org_working_day(MONDAY, us)
        assert not await resolver.is_org_working_day(MONDAY, india)

    async def test_country_holiday_applies_to_org_without_country(self, db, seed):
        org = await seed.org(country=None)
        await seed.holiday(MONDAY, country="US")

        resolver = EligibilityResolver(db)
        assert await resolver.is_holiday(MONDAY, org)
        assert not await resolver.is_org_working_day(MONDAY, org)

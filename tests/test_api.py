"""HTTP tests for the standup and schedule endpoints."""

from datetime import datetime, timedelta, timezone

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from httpx import ASGITransport, AsyncClient

from dailydose.database import get_db
from dailydose.main import app
from dailydose.services.scheduler_service import TeamScheduleRegistry

from conftest import MONDAY, SATURDAY


@pytest.fixture
async def client(session_factory, transport):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.transport = transport
    app.state.registry = TeamScheduleRegistry(session_factory, transport, scheduler=AsyncIOScheduler())

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
    app.state.transport = None
    app.state.registry = None


@pytest.fixture
async def team(seed):
    return await seed.team(await seed.org())


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["scheduler_running"] is False


class TestStandupEndpoints:
    async def test_eligible_members(self, client, seed, team):
        await seed.member(team, "UA")
        _, away = await seed.member(team, "UB")
        await seed.leave(away, MONDAY, MONDAY)

        response = await client.get(f"/api/v1/standups/teams/{team.id}/eligible", params={"date": str(MONDAY)})

        assert response.status_code == 200
        assert [m["external_id"] for m in response.json()] == ["UA"]

    async def test_unknown_team(self, client):
        response = await client.get("/api/v1/standups/teams/999/eligible")
        assert response.status_code == 404

    async def test_submit_and_resubmit(self, client, seed, team):
        _, user = await seed.member(team, "UA")
        tomorrow = (datetime.now(timezone.utc) + timedelta(days=1)).date()
        body = {"user_id": user.id, "date": str(tomorrow), "today_tasks": "write docs"}

        first = await client.post(f"/api/v1/standups/teams/{team.id}/responses", json=body)
        second = await client.post(
            f"/api/v1/standups/teams/{team.id}/responses", json={**body, "today_tasks": "review"}
        )

        assert first.status_code == second.status_code == 201
        assert first.json()["id"] == second.json()["id"]
        assert second.json()["today_tasks"] == "review"
        assert second.json()["is_late"] is False

    async def test_submit_requires_content(self, client, seed, team):
        _, user = await seed.member(team, "UA")
        response = await client.post(
            f"/api/v1/standups/teams/{team.id}/responses",
            json={"user_id": user.id, "today_tasks": "   "}
        )
        assert response.status_code == 422

    async def test_submit_unknown_user(self, client, team):
        response = await client.post(
            f"/api/v1/standups/teams/{team.id}/responses",
            json={"user_id": 999, "today_tasks": "x"}
        )
        assert response.status_code == 404

    async def test_post_and_status(self, client, transport, seed, team):
        await seed.member(team, "UA")

        posted = await client.post(f"/api/v1/standups/teams/{team.id}/post", params={"date": str(MONDAY)})
        status = await client.get(f"/api/v1/standups/teams/{team.id}/status", params={"date": str(MONDAY)})

        assert posted.json() == {"posted": True, "message_ref": "ts-1", "channel_ref": "C-CORE", "created": True}
        assert status.json()["status"] == "POSTED"
        assert len(transport.channel_posts) == 1

    async def test_no_post_on_weekend(self, client, team):
        response = await client.post(f"/api/v1/standups/teams/{team.id}/post", params={"date": str(SATURDAY)})
        assert response.json()["posted"] is False

    async def test_post_transport_failure(self, client, transport, team):
        transport.fail_for.add("C-CORE")
        response = await client.post(f"/api/v1/standups/teams/{team.id}/post", params={"date": str(MONDAY)})
        assert response.status_code == 502

    async def test_transport_not_configured(self, client, team):
        app.state.transport = None
        response = await client.get(f"/api/v1/standups/teams/{team.id}/eligible")
        assert response.status_code == 503


class TestScheduleEndpoints:
    async def test_schedule_team(self, client, team):
        response = await client.post(f"/api/v1/schedules/teams/{team.id}")

        assert response.status_code == 200
        assert sorted(t["kind"] for t in response.json()) == ["followup", "posting", "reminder"]

        listed = await client.get("/api/v1/schedules/")
        assert len(listed.json()) == 3

    async def test_invalid_team_config(self, client, seed):
        team = await seed.team(await seed.org(), posting_time="late")
        response = await client.post(f"/api/v1/schedules/teams/{team.id}")
        assert response.status_code == 400

    async def test_refresh(self, client, seed, team):
        await seed.team(await seed.org(name="Other"), name="Second", channel_ref="C-2")
        response = await client.post("/api/v1/schedules/refresh")
        assert response.json()["teams_scheduled"] == 2

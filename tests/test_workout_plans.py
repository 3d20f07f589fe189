import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.enums import Role
from app.models.fitness import WorkoutPlan, WorkoutSession

PLANS_URL = f"{settings.API_V1_STR}/workouts/plans"


@pytest.mark.asyncio
async def test_trainer_creates_plan_for_assigned_client(
    client: AsyncClient, trainer, gym_client, auth_headers, plan_payload
):
    resp = await client.post(PLANS_URL, json=plan_payload(gym_client.id), headers=auth_headers(trainer))
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    plan = body["data"]
    assert plan["trainer_id"] == str(trainer.id)
    assert plan["client_id"] == str(gym_client.id)
    assert plan["total_sessions_planned"] == 12
    assert plan["total_sessions_completed"] == 0
    assert plan["completion_rate"] == 0
    assert plan["current_week"] == 1
    assert [session["day_of_week"] for session in plan["sessions"]] == ["monday", "wednesday", "friday"]
    assert plan["sessions"][0]["exercises"][0]["exercise_name"] == "Bench Press"

    list_resp = await client.get(PLANS_URL, headers=auth_headers(trainer))
    assert list_resp.status_code == 200
    assert [p["id"] for p in list_resp.json()["data"]] == [plan["id"]]


@pytest.mark.asyncio
async def test_plan_requires_sessions(client: AsyncClient, trainer, gym_client, auth_headers, plan_payload):
    resp = await client.post(PLANS_URL, json=plan_payload(gym_client.id, sessions=[]), headers=auth_headers(trainer))
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_unassigned_client_is_forbidden(
    client: AsyncClient, make_user, trainer, auth_headers, plan_payload
):
    outsider = await make_user("outsider@gym.com", role=Role.CLIENT)
    resp = await client.post(PLANS_URL, json=plan_payload(outsider.id), headers=auth_headers(trainer))
    assert resp.status_code == 403
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_clients_cannot_author_plans(client: AsyncClient, gym_client, auth_headers, plan_payload):
    resp = await client.post(PLANS_URL, json=plan_payload(gym_client.id), headers=auth_headers(gym_client))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_missing_token_is_unauthorized(client: AsyncClient):
    resp = await client.get(PLANS_URL)
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_other_trainer_cannot_view_plan(
    client: AsyncClient, make_user, active_plan, auth_headers
):
    other = await make_user("rival@gym.com", role=Role.TRAINER)
    resp = await client.get(f"{PLANS_URL}/{active_plan.id}", headers=auth_headers(other))
    assert resp.status_code == 403

    stats = await client.get(f"{PLANS_URL}/{active_plan.id}/stats", headers=auth_headers(other))
    assert stats.status_code == 403


@pytest.mark.asyncio
async def test_unknown_plan_is_not_found(client: AsyncClient, trainer, auth_headers):
    resp = await client.get(f"{PLANS_URL}/00000000-0000-0000-0000-000000000000", headers=auth_headers(trainer))
    assert resp.status_code == 404
    assert resp.json()["field"] == "plan_id"


@pytest.mark.asyncio
async def test_update_replaces_schedule_and_baseline(
    client: AsyncClient, db_session: AsyncSession, trainer, active_plan, auth_headers
):
    old_session_ids = {session.id for session in active_plan.scheduled_sessions}
    resp = await client.put(
        f"{PLANS_URL}/{active_plan.id}",
        json={
            "name": "Upper / Lower",
            "total_weeks": 6,
            "sessions": [
                {"day_of_week": "tuesday", "name": "Upper", "exercises": [{"exercise_name": "Row"}]},
                {"day_of_week": "thursday", "name": "Lower", "exercises": [{"exercise_name": "Lunge"}]},
            ],
        },
        headers=auth_headers(trainer),
    )
    assert resp.status_code == 200
    plan = resp.json()["data"]
    assert plan["name"] == "Upper / Lower"
    assert plan["total_weeks"] == 6
    assert plan["total_sessions_planned"] == 12
    assert [session["day_of_week"] for session in plan["sessions"]] == ["tuesday", "thursday"]

    retired = (
        await db_session.execute(
            select(WorkoutSession).where(WorkoutSession.plan_id == active_plan.id, WorkoutSession.is_retired.is_(True))
        )
    ).scalars().all()
    assert {session.id for session in retired} == old_session_ids


@pytest.mark.asyncio
async def test_toggle_deactivates_other_plans(
    client: AsyncClient, db_session: AsyncSession, trainer, gym_client, active_plan, auth_headers, plan_payload
):
    second = await client.post(
        PLANS_URL,
        json=plan_payload(gym_client.id, name="Phase Two", is_active=False),
        headers=auth_headers(trainer),
    )
    second_id = second.json()["data"]["id"]
    assert second.json()["data"]["is_active"] is False

    resp = await client.put(f"{PLANS_URL}/{second_id}/toggle", json={"is_active": True}, headers=auth_headers(trainer))
    assert resp.status_code == 200
    assert resp.json()["data"]["is_active"] is True
    assert resp.json()["message"] == "Workout plan activated"

    active = (
        await db_session.execute(
            select(WorkoutPlan.id).where(WorkoutPlan.client_id == gym_client.id, WorkoutPlan.is_active.is_(True))
        )
    ).scalars().all()
    assert [str(plan_id) for plan_id in active] == [second_id]


@pytest.mark.asyncio
async def test_trainer_views_client_dashboard(client: AsyncClient, make_user, trainer, gym_client, active_plan, auth_headers):
    resp = await client.get(
        f"{settings.API_V1_STR}/workouts/clients/{gym_client.id}/dashboard",
        params={"period": 3},
        headers=auth_headers(trainer),
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["client"]["email"] == gym_client.email
    assert data["plan"]["id"] == str(active_plan.id)
    assert data["period"]["months"] == 3

    rival = await make_user("rival.coach@gym.com", role=Role.TRAINER)
    forbidden = await client.get(
        f"{settings.API_V1_STR}/workouts/clients/{gym_client.id}/dashboard",
        headers=auth_headers(rival),
    )
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_trainer_stats_endpoint(client: AsyncClient, trainer, active_plan, auth_headers):
    resp = await client.get(f"{settings.API_V1_STR}/workouts/stats", headers=auth_headers(trainer))
    assert resp.status_code == 200
    stats = resp.json()["data"]
    assert stats["total_plans"] == 1
    assert stats["active_plans"] == 1
    assert stats["total_clients"] == 1


@pytest.mark.asyncio
async def test_admin_stats_cover_every_trainer(
    client: AsyncClient, make_user, trainer, gym_client, active_plan, auth_headers, plan_payload
):
    other_coach = await make_user("second.coach@gym.com", role=Role.TRAINER)
    other_member = await make_user("second.member@gym.com", trainer=other_coach)
    created = await client.post(PLANS_URL, json=plan_payload(other_member.id), headers=auth_headers(other_coach))
    assert created.status_code == 201

    admin = await make_user("owner@gym.com", role=Role.ADMIN)
    resp = await client.get(f"{settings.API_V1_STR}/workouts/stats", headers=auth_headers(admin))
    assert resp.status_code == 200
    assert resp.json()["data"]["total_plans"] == 2
    assert resp.json()["data"]["total_clients"] == 2

    own = await client.get(f"{settings.API_V1_STR}/workouts/stats", headers=auth_headers(trainer))
    assert own.json()["data"]["total_plans"] == 1


@pytest.mark.asyncio
async def test_exercise_catalog(client: AsyncClient, trainer, gym_client, auth_headers):
    exercises_url = f"{settings.API_V1_STR}/workouts/exercises"
    for body in [
        {"name": "Goblet Squat", "muscle_group": "Legs", "equipment": "Dumbbell", "difficulty": "beginner"},
        {"name": "Barbell Row", "muscle_group": "back", "equipment": "barbell", "description": "Bent over row"},
        {"name": "Plank", "muscle_group": "core"},
    ]:
        resp = await client.post(exercises_url, json=body, headers=auth_headers(trainer))
        assert resp.status_code == 201
        assert resp.json()["data"]["created_by_id"] == str(trainer.id)

    listed = await client.get(exercises_url, headers=auth_headers(gym_client))
    assert listed.status_code == 200
    assert [item["name"] for item in listed.json()["data"]["exercises"]] == ["Barbell Row", "Goblet Squat", "Plank"]
    assert listed.json()["data"]["pagination"]["total_exercises"] == 3

    filtered = await client.get(exercises_url, params={"muscle_groups": "legs,core"}, headers=auth_headers(trainer))
    assert [item["name"] for item in filtered.json()["data"]["exercises"]] == ["Goblet Squat", "Plank"]

    by_equipment = await client.get(exercises_url, params={"equipment": "BARBELL"}, headers=auth_headers(trainer))
    assert [item["name"] for item in by_equipment.json()["data"]["exercises"]] == ["Barbell Row"]

    searched = await client.get(exercises_url, params={"search": "bent"}, headers=auth_headers(trainer))
    assert [item["name"] for item in searched.json()["data"]["exercises"]] == ["Barbell Row"]

    forbidden = await client.post(exercises_url, json={"name": "Burpee"}, headers=auth_headers(gym_client))
    assert forbidden.status_code == 403

    blank = await client.post(exercises_url, json={"name": "   "}, headers=auth_headers(trainer))
    assert blank.status_code == 422


@pytest.mark.asyncio
async def test_plan_sessions_reference_catalog_exercises(
    client: AsyncClient, trainer, gym_client, auth_headers, plan_payload
):
    created = await client.post(
        f"{settings.API_V1_STR}/workouts/exercises",
        json={"name": "Romanian Deadlift", "muscle_group": "legs"},
        headers=auth_headers(trainer),
    )
    exercise_id = created.json()["data"]["id"]

    payload = plan_payload(
        gym_client.id,
        sessions=[{"day_of_week": "monday", "exercises": [{"exercise_id": exercise_id, "sets": 3, "reps": 8}]}],
    )
    resp = await client.post(PLANS_URL, json=payload, headers=auth_headers(trainer))
    assert resp.status_code == 201
    exercise = resp.json()["data"]["sessions"][0]["exercises"][0]
    assert exercise["exercise_id"] == exercise_id
    assert exercise["exercise_name"] == "Romanian Deadlift"

    unknown = plan_payload(
        gym_client.id,
        sessions=[{"day_of_week": "monday", "exercises": [{"exercise_id": "00000000-0000-0000-0000-000000000001"}]}],
    )
    missing = await client.post(PLANS_URL, json=unknown, headers=auth_headers(trainer))
    assert missing.status_code == 404
    assert missing.json()["field"] == "exercise_id"

    empty = plan_payload(gym_client.id, sessions=[{"day_of_week": "monday", "exercises": [{"sets": 3}]}])
    rejected = await client.post(PLANS_URL, json=empty, headers=auth_headers(trainer))
    assert rejected.status_code == 422

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-workout-tracking")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["NOTIFICATIONS_ENABLED"] = "true"

import pytest
from datetime import date
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.auth.security import create_access_token
from app.database import Base, get_db
from app.main import app
from app.models.enums import DayOfWeek, Role
from app.models.user import User
from app.schemas.workout import WorkoutPlanCreate
from app.services.plan_service import PlanService

PLAN_START = date(2024, 1, 1)  # a Monday


@pytest.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    async_session = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )
    async with async_session() as session:
        yield session


@pytest.fixture(scope="function")
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    async def _make_user(email: str, role: Role = Role.CLIENT, trainer: User | None = None, full_name: str | None = None) -> User:
        user = User(
            email=email,
            full_name=full_name or email.split("@")[0].title(),
            role=role,
            is_active=True,
            assigned_trainer_id=trainer.id if trainer else None,
        )
        db_session.add(user)
        await db_session.commit()
        return user
    return _make_user


def _auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.email)}"}


@pytest.fixture
async def trainer(make_user) -> User:
    return await make_user("coach@gym.com", role=Role.TRAINER, full_name="Coach Carter")


@pytest.fixture
async def gym_client(make_user, trainer) -> User:
    return await make_user("member@gym.com", role=Role.CLIENT, trainer=trainer, full_name="Member One")


def _plan_payload(client_id, **overrides) -> dict:
    payload = {
        "name": "Full Body Starter",
        "description": "Three sessions a week",
        "client_id": str(client_id),
        "frequency": "3x",
        "start_date": PLAN_START.isoformat(),
        "total_weeks": 4,
        "sessions": [
            {
                "day_of_week": DayOfWeek.MONDAY.value,
                "name": "Push",
                "estimated_duration": 45,
                "exercises": [{"exercise_name": "Bench Press", "sets": 4, "reps": 8}],
            },
            {
                "day_of_week": DayOfWeek.WEDNESDAY.value,
                "name": "Pull",
                "exercises": [{"exercise_name": "Deadlift", "sets": 3, "reps": 5}],
            },
            {
                "day_of_week": DayOfWeek.FRIDAY.value,
                "name": "Legs",
                "exercises": [{"exercise_name": "Squat", "sets": 5, "reps": 5}],
            },
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
async def active_plan(db_session, trainer, gym_client):
    plan = await PlanService.create_plan(db_session, trainer, WorkoutPlanCreate(**_plan_payload(gym_client.id)))
    await db_session.commit()
    return await PlanService.load_plan(db_session, plan.id)


@pytest.fixture
def auth_headers():
    return _auth_headers


@pytest.fixture
def plan_payload():
    return _plan_payload

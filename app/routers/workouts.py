import uuid
from typing import Annotated, List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import dependencies
from app.config import settings
from app.core.responses import StandardResponse
from app.database import get_db
from app.models.enums import Role
from app.models.user import User
from app.schemas.workout import (
    ExerciseCreate,
    ExerciseResponse,
    WorkoutPlanCreate,
    WorkoutPlanResponse,
    WorkoutPlanToggle,
    WorkoutPlanUpdate,
)
from app.services.analytics import WorkoutAnalyticsService
from app.services.exercise_service import ExerciseService
from app.services.plan_service import PlanService
from app.services.progress_service import PlanProgressService

router = APIRouter()

CurrentTrainer = Annotated[User, Depends(dependencies.get_current_trainer)]
DbSession = Annotated[AsyncSession, Depends(get_db)]


async def _get_plan_for_trainer(db: AsyncSession, plan_id: uuid.UUID, current_user: User):
    plan = await PlanService.load_plan(db, plan_id)
    PlanService.ensure_can_manage(plan, current_user, action="view")
    return plan


@router.post("/plans", response_model=StandardResponse[WorkoutPlanResponse], status_code=status.HTTP_201_CREATED)
async def create_workout_plan(data: WorkoutPlanCreate, current_user: CurrentTrainer, db: DbSession):
    plan = await PlanService.create_plan(db, current_user, data)
    await db.commit()
    plan = await PlanService.load_plan(db, plan.id)
    return StandardResponse(message="Workout plan created", data=WorkoutPlanResponse.model_validate(plan))


@router.get("/plans", response_model=StandardResponse[List[WorkoutPlanResponse]])
async def list_workout_plans(
    current_user: CurrentTrainer,
    db: DbSession,
    client_id: uuid.UUID | None = None,
    is_active: bool | None = None,
):
    plans = await PlanService.list_trainer_plans(db, current_user, client_id=client_id, is_active=is_active)
    return StandardResponse(data=[WorkoutPlanResponse.model_validate(plan) for plan in plans])


@router.get("/plans/{plan_id}", response_model=StandardResponse[WorkoutPlanResponse])
async def get_workout_plan(plan_id: uuid.UUID, current_user: CurrentTrainer, db: DbSession):
    plan = await _get_plan_for_trainer(db, plan_id, current_user)
    return StandardResponse(data=WorkoutPlanResponse.model_validate(plan))


@router.put("/plans/{plan_id}", response_model=StandardResponse[WorkoutPlanResponse])
async def update_workout_plan(
    plan_id: uuid.UUID,
    data: WorkoutPlanUpdate,
    current_user: CurrentTrainer,
    db: DbSession,
):
    plan = await PlanService.update_plan(db, current_user, plan_id, data)
    await db.commit()
    plan = await PlanService.load_plan(db, plan.id)
    return StandardResponse(message="Workout plan updated", data=WorkoutPlanResponse.model_validate(plan))


@router.put("/plans/{plan_id}/toggle", response_model=StandardResponse[WorkoutPlanResponse])
async def toggle_workout_plan(
    plan_id: uuid.UUID,
    data: WorkoutPlanToggle,
    current_user: CurrentTrainer,
    db: DbSession,
):
    plan = await PlanService.set_plan_active(db, current_user, plan_id, data.is_active)
    await db.commit()
    plan = await PlanService.load_plan(db, plan.id)
    message = "Workout plan activated" if plan.is_active else "Workout plan deactivated"
    return StandardResponse(message=message, data=WorkoutPlanResponse.model_validate(plan))


@router.get("/plans/{plan_id}/stats", response_model=StandardResponse)
async def get_workout_plan_stats(plan_id: uuid.UUID, current_user: CurrentTrainer, db: DbSession):
    plan = await _get_plan_for_trainer(db, plan_id, current_user)
    return StandardResponse(data=PlanProgressService.get_plan_stats(plan))


@router.get("/clients/{client_id}/dashboard", response_model=StandardResponse)
async def get_client_dashboard(
    client: Annotated[User, Depends(dependencies.get_assigned_client)],
    current_user: CurrentTrainer,
    db: DbSession,
    period: int = Query(settings.DASHBOARD_DEFAULT_PERIOD_MONTHS, ge=1, le=24),
):
    # Trainers only see the history they supervised; admins see everything
    trainer_id = None if current_user.role == Role.ADMIN else current_user.id
    data = await WorkoutAnalyticsService.client_dashboard(db, client.id, period, trainer_id=trainer_id)
    data["client"] = {"id": client.id, "full_name": client.full_name, "email": client.email}
    return StandardResponse(data=data)


@router.get("/stats", response_model=StandardResponse)
async def get_trainer_stats(current_user: CurrentTrainer, db: DbSession):
    trainer_id = None if current_user.role == Role.ADMIN else current_user.id
    stats = await WorkoutAnalyticsService.trainer_stats(db, trainer_id)
    return StandardResponse(data=stats)


def _split_csv(value: str | None) -> list[str] | None:
    if not value:
        return None
    return [item.strip().lower() for item in value.split(",") if item.strip()] or None


@router.post("/exercises", response_model=StandardResponse[ExerciseResponse], status_code=status.HTTP_201_CREATED)
async def create_exercise(data: ExerciseCreate, current_user: CurrentTrainer, db: DbSession):
    """Add an exercise to the shared catalog."""
    exercise = await ExerciseService.create_exercise(db, current_user, data)
    await db.commit()
    return StandardResponse(message="Exercise created", data=ExerciseResponse.model_validate(exercise))


@router.get("/exercises", response_model=StandardResponse)
async def list_exercises(
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: DbSession,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=settings.PAGE_SIZE_MAX),
    muscle_groups: str | None = Query(None, description="Comma separated"),
    equipment: str | None = Query(None, description="Comma separated"),
    difficulty: str | None = None,
    search: str | None = Query(None, max_length=100),
):
    result = await ExerciseService.list_exercises(
        db,
        page=page,
        limit=limit,
        muscle_groups=_split_csv(muscle_groups),
        equipment=_split_csv(equipment),
        difficulty=difficulty,
        search=search,
    )
    return StandardResponse(
        data={
            "exercises": [ExerciseResponse.model_validate(exercise) for exercise in result["exercises"]],
            "pagination": result["pagination"],
        }
    )

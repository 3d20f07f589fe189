import uuid
from datetime import date
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import dependencies
from app.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.core.responses import StandardResponse
from app.database import get_db
from app.models.enums import DayOfWeek, PlanFrequency
from app.models.user import User
from app.schemas.workout import (
    DailyStatusCreate,
    DailyStatusResponse,
    SessionLogCreate,
    WorkoutLogPage,
    WorkoutLogResponse,
    WorkoutPlanResponse,
    WorkoutSessionResponse,
)
from app.services.analytics import WorkoutAnalyticsService
from app.services.calendar_service import CalendarService, month_range
from app.services.notification_service import NotificationService
from app.services.plan_service import PlanService
from app.services.progress_service import PlanProgressService
from app.services.timezone_service import today_in_gym_tz
from app.services.week_calculator import day_of_week_name, week_index_since_start
from app.services.workout_log_service import WorkoutLogService

router = APIRouter()

CurrentClient = Annotated[User, Depends(dependencies.get_current_client)]
DbSession = Annotated[AsyncSession, Depends(get_db)]


@router.get("/today", response_model=StandardResponse)
async def get_todays_workout(current_user: CurrentClient, db: DbSession):
    today = today_in_gym_tz()
    plan, session = await PlanService.todays_workout(db, current_user.id, today)
    if not plan:
        return StandardResponse(message="No active workout plan", data={"plan": None, "session": None})
    return StandardResponse(
        message=None if session else "Rest day",
        data={
            "date": today.isoformat(),
            "day_of_week": day_of_week_name(today).value,
            "week": week_index_since_start(plan.start_date, today),
            "plan": {"id": plan.id, "name": plan.name, "current_week": plan.current_week, "total_weeks": plan.total_weeks},
            "session": WorkoutSessionResponse.model_validate(session) if session else None,
        },
    )


@router.get("/calendar", response_model=StandardResponse)
async def get_calendar(
    current_user: CurrentClient,
    db: DbSession,
    start_date: date | None = None,
    end_date: date | None = None,
    month: int | None = Query(None, ge=1, le=12),
    year: int | None = Query(None, ge=1970, le=9999),
):
    if start_date and end_date:
        window = (start_date, end_date)
    elif month is not None and year is not None:
        window = month_range(year, month)
    elif start_date or end_date or month is not None or year is not None:
        raise ValidationError("Provide start_date and end_date, or month and year", field="start_date")
    else:
        today = today_in_gym_tz()
        window = month_range(today.year, today.month)
    data = await CalendarService.build_calendar(db, current_user.id, *window)
    return StandardResponse(data=data)


@router.post("/daily-status", response_model=StandardResponse[DailyStatusResponse])
async def record_daily_status(data: DailyStatusCreate, current_user: CurrentClient, db: DbSession):
    log, outcome = await WorkoutLogService.record_daily_status(
        db,
        current_user.id,
        target_date=data.target_date,
        is_completed=data.is_completed,
        reason=data.non_completion_reason,
        notes=data.non_completion_notes,
        proof_image=data.proof_image,
    )
    await db.commit()

    # Snapshot before notifying; a failed notification rolls back and expires the log
    payload = DailyStatusResponse(
        log_id=log.id,
        log_date=log.log_date,
        day_of_week=log.day_of_week,
        week=log.week,
        is_completed=log.is_completed,
        non_completion_reason=log.non_completion_reason,
        proof_image=log.proof_image,
        transitioned_to_missed=outcome.transitioned_to_missed,
        progress_incremented=outcome.progress_incremented,
    )

    if outcome.transitioned_to_missed:
        await NotificationService.notify_workout_missed(
            db,
            trainer_id=log.trainer_id,
            client_id=current_user.id,
            log_id=payload.log_id,
            plan_id=log.plan_id,
            reason=payload.non_completion_reason.value if payload.non_completion_reason else None,
            event_date=payload.log_date,
        )

    message = "Workout marked as completed" if payload.is_completed else "Workout marked as not completed"
    return StandardResponse(message=message, data=payload)


@router.post("/logs", response_model=StandardResponse[WorkoutLogResponse], status_code=status.HTTP_201_CREATED)
async def log_workout_session(data: SessionLogCreate, current_user: CurrentClient, db: DbSession):
    log = await WorkoutLogService.record_session_log(db, current_user.id, data)
    await db.commit()
    log_id = log.id

    if not log.is_completed:
        await NotificationService.notify_workout_missed(
            db,
            trainer_id=log.trainer_id,
            client_id=current_user.id,
            log_id=log.id,
            plan_id=log.plan_id,
            reason=log.non_completion_reason.value if log.non_completion_reason else None,
            event_date=log.log_date,
        )

    log = await WorkoutLogService.get_log(db, log_id)
    return StandardResponse(message="Workout logged", data=WorkoutLogResponse.model_validate(log))


@router.get("/logs", response_model=StandardResponse[WorkoutLogPage])
async def list_workout_logs(
    current_user: CurrentClient,
    db: DbSession,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=settings.PAGE_SIZE_MAX),
    week: int | None = Query(None, ge=1, le=52),
    day_of_week: DayOfWeek | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
):
    result = await WorkoutLogService.list_logs(
        db,
        current_user.id,
        page=page,
        limit=limit,
        week=week,
        day_of_week=day_of_week,
        start_date=start_date,
        end_date=end_date,
    )
    return StandardResponse(data=WorkoutLogPage.model_validate(result, from_attributes=True))


@router.get("/dashboard", response_model=StandardResponse)
async def get_dashboard(
    current_user: CurrentClient,
    db: DbSession,
    period: int = Query(settings.DASHBOARD_DEFAULT_PERIOD_MONTHS, ge=1, le=24),
):
    data = await WorkoutAnalyticsService.client_dashboard(db, current_user.id, period)
    return StandardResponse(data=data)


@router.get("/stats", response_model=StandardResponse)
async def get_client_stats(current_user: CurrentClient, db: DbSession):
    stats = await WorkoutAnalyticsService.client_stats(db, current_user.id)
    return StandardResponse(data=stats)


@router.get("/plans/active/stats", response_model=StandardResponse)
async def get_active_plan_stats(current_user: CurrentClient, db: DbSession):
    plan = await PlanService.get_active_plan(db, current_user.id)
    if not plan:
        raise NotFoundError("No active workout plan found")
    return StandardResponse(
        data={
            "plan": WorkoutPlanResponse.model_validate(plan),
            "stats": PlanProgressService.get_plan_stats(plan),
        }
    )


@router.get("/plans", response_model=StandardResponse)
async def list_my_plans(
    current_user: CurrentClient,
    db: DbSession,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=settings.PAGE_SIZE_MAX),
    is_active: bool | None = None,
    frequency: PlanFrequency | None = None,
    search: str | None = Query(None, max_length=100),
    sort_by: Literal["created_at", "name", "start_date", "completion_rate"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
):
    result = await PlanService.list_client_plans(
        db,
        current_user.id,
        page=page,
        limit=limit,
        is_active=is_active,
        frequency=frequency,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return StandardResponse(
        data={
            "plans": [WorkoutPlanResponse.model_validate(plan) for plan in result["plans"]],
            "pagination": result["pagination"],
        }
    )


@router.get("/plans/{plan_id}", response_model=StandardResponse[WorkoutPlanResponse])
async def get_my_plan(plan_id: uuid.UUID, current_user: CurrentClient, db: DbSession):
    plan = await PlanService.get_client_plan(db, current_user.id, plan_id)
    return StandardResponse(data=WorkoutPlanResponse.model_validate(plan))

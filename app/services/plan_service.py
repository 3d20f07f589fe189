import logging
import uuid
from datetime import date

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.core.responses import pagination_meta
from app.models.enums import PlanFrequency, Role
from app.models.fitness import SessionExercise, WorkoutPlan, WorkoutSession
from app.models.user import User
from app.schemas.workout import WorkoutPlanCreate, WorkoutPlanUpdate, WorkoutSessionData
from app.services.exercise_service import ExerciseService
from app.services.progress_service import completion_rate, planned_sessions
from app.services.week_calculator import day_of_week_name

logger = logging.getLogger(__name__)

_PLAN_WITH_SCHEDULE = selectinload(WorkoutPlan.sessions).selectinload(WorkoutSession.exercises)

CLIENT_PLAN_SORT_FIELDS = ("created_at", "name", "start_date", "completion_rate")


def _build_sessions(sessions: list[WorkoutSessionData]) -> list[WorkoutSession]:
    built = []
    for idx, session_data in enumerate(sessions):
        built.append(
            WorkoutSession(
                day_of_week=session_data.day_of_week,
                name=session_data.name,
                estimated_duration=session_data.estimated_duration,
                difficulty=session_data.difficulty,
                order=idx,
                exercises=[
                    SessionExercise(
                        exercise_id=exercise.exercise_id,
                        exercise_name=exercise.exercise_name,
                        sets=exercise.sets,
                        reps=exercise.reps,
                        rest_seconds=exercise.rest_seconds,
                        notes=exercise.notes,
                        order=exercise.order or exercise_idx,
                    )
                    for exercise_idx, exercise in enumerate(session_data.exercises)
                ],
            )
        )
    return built


def _reset_planned_baseline(plan: WorkoutPlan) -> None:
    plan.total_sessions_planned = planned_sessions(len(plan.scheduled_sessions), plan.total_weeks)
    plan.completion_rate = completion_rate(plan.total_sessions_completed, plan.total_sessions_planned)
    plan.current_week = min(plan.current_week, plan.total_weeks)


class PlanService:
    @staticmethod
    async def load_plan(db: AsyncSession, plan_id: uuid.UUID) -> WorkoutPlan:
        stmt = (
            select(WorkoutPlan)
            .where(WorkoutPlan.id == plan_id)
            .options(_PLAN_WITH_SCHEDULE)
            .execution_options(populate_existing=True)
        )
        plan = (await db.execute(stmt)).scalar_one_or_none()
        if not plan:
            raise NotFoundError("Workout plan not found", field="plan_id")
        return plan

    @staticmethod
    async def get_active_plan(db: AsyncSession, client_id: uuid.UUID) -> WorkoutPlan | None:
        stmt = (
            select(WorkoutPlan)
            .where(WorkoutPlan.client_id == client_id, WorkoutPlan.is_active.is_(True))
            .options(_PLAN_WITH_SCHEDULE)
            .order_by(WorkoutPlan.created_at.desc())
            .limit(1)
        )
        return (await db.execute(stmt)).scalar_one_or_none()

    @staticmethod
    def ensure_can_manage(plan: WorkoutPlan, user: User, *, action: str) -> None:
        if user.role != Role.ADMIN and plan.trainer_id != user.id:
            raise ForbiddenError(f"Cannot {action} a plan owned by another trainer")

    @staticmethod
    async def _resolve_client(db: AsyncSession, trainer: User, client_id: uuid.UUID) -> User:
        client = await db.get(User, client_id)
        if not client or client.role != Role.CLIENT:
            raise NotFoundError("Client not found", field="client_id")
        if trainer.role != Role.ADMIN and client.assigned_trainer_id != trainer.id:
            raise ForbiddenError("Client is not assigned to this trainer")
        return client

    @staticmethod
    async def _deactivate_other_plans(db: AsyncSession, client_id: uuid.UUID, keep_plan_id: uuid.UUID) -> None:
        await db.execute(
            update(WorkoutPlan)
            .where(
                WorkoutPlan.client_id == client_id,
                WorkoutPlan.id != keep_plan_id,
                WorkoutPlan.is_active.is_(True),
            )
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    async def create_plan(db: AsyncSession, trainer: User, data: WorkoutPlanCreate) -> WorkoutPlan:
        client = await PlanService._resolve_client(db, trainer, data.client_id)
        await ExerciseService.resolve_session_exercises(db, data.sessions)
        trainer_id = trainer.id
        if trainer.role == Role.ADMIN and client.assigned_trainer_id:
            trainer_id = client.assigned_trainer_id

        plan = WorkoutPlan(
            name=data.name,
            description=data.description,
            notes=data.notes,
            client_id=client.id,
            trainer_id=trainer_id,
            frequency=data.frequency,
            start_date=data.start_date,
            end_date=data.end_date,
            total_weeks=data.total_weeks,
            current_week=1,
            is_active=data.is_active,
            total_sessions_completed=0,
            sessions=_build_sessions(data.sessions),
        )
        _reset_planned_baseline(plan)
        db.add(plan)
        await db.flush()

        if plan.is_active:
            await PlanService._deactivate_other_plans(db, client.id, plan.id)
        logger.info(
            "Plan %s created for client %s: %s sessions x %s weeks",
            plan.id,
            client.id,
            len(plan.scheduled_sessions),
            plan.total_weeks,
        )
        return plan

    @staticmethod
    async def update_plan(db: AsyncSession, user: User, plan_id: uuid.UUID, data: WorkoutPlanUpdate) -> WorkoutPlan:
        plan = await PlanService.load_plan(db, plan_id)
        PlanService.ensure_can_manage(plan, user, action="update")

        changes = data.model_dump(exclude_unset=True, exclude={"sessions"})
        for field, value in changes.items():
            if value is None and field not in {"description", "notes", "end_date"}:
                continue
            setattr(plan, field, value)

        if data.sessions is not None:
            await ExerciseService.resolve_session_exercises(db, data.sessions)
            # Logged sessions stay referenced by history, so retire rather than delete
            for session in plan.scheduled_sessions:
                session.is_retired = True
            plan.sessions.extend(_build_sessions(data.sessions))

        if data.sessions is not None or "total_weeks" in changes:
            _reset_planned_baseline(plan)
        await db.flush()
        return plan

    @staticmethod
    async def set_plan_active(db: AsyncSession, user: User, plan_id: uuid.UUID, is_active: bool) -> WorkoutPlan:
        plan = await PlanService.load_plan(db, plan_id)
        PlanService.ensure_can_manage(plan, user, action="change status of")
        plan.is_active = is_active
        await db.flush()
        if is_active:
            await PlanService._deactivate_other_plans(db, plan.client_id, plan.id)
        return plan

    @staticmethod
    async def list_trainer_plans(
        db: AsyncSession,
        trainer: User,
        *,
        client_id: uuid.UUID | None = None,
        is_active: bool | None = None,
    ) -> list[WorkoutPlan]:
        stmt = select(WorkoutPlan).options(_PLAN_WITH_SCHEDULE).order_by(WorkoutPlan.created_at.desc())
        if trainer.role != Role.ADMIN:
            stmt = stmt.where(WorkoutPlan.trainer_id == trainer.id)
        if client_id:
            stmt = stmt.where(WorkoutPlan.client_id == client_id)
        if is_active is not None:
            stmt = stmt.where(WorkoutPlan.is_active.is_(is_active))
        return list((await db.execute(stmt)).scalars().all())

    @staticmethod
    async def list_client_plans(
        db: AsyncSession,
        client_id: uuid.UUID,
        *,
        page: int = 1,
        limit: int = 10,
        is_active: bool | None = None,
        frequency: PlanFrequency | None = None,
        search: str | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> dict:
        filters = [WorkoutPlan.client_id == client_id]
        if is_active is not None:
            filters.append(WorkoutPlan.is_active.is_(is_active))
        if frequency is not None:
            filters.append(WorkoutPlan.frequency == frequency)
        if search and search.strip():
            like = f"%{search.strip()}%"
            filters.append(or_(WorkoutPlan.name.ilike(like), WorkoutPlan.description.ilike(like)))

        if sort_by not in CLIENT_PLAN_SORT_FIELDS:
            raise ValidationError(f"Cannot sort plans by {sort_by}", field="sort_by")
        sort_column = getattr(WorkoutPlan, sort_by)
        ordering = sort_column.asc() if sort_order == "asc" else sort_column.desc()

        total = (await db.execute(select(func.count(WorkoutPlan.id)).where(*filters))).scalar_one()
        stmt = (
            select(WorkoutPlan)
            .where(*filters)
            .options(_PLAN_WITH_SCHEDULE)
            .order_by(ordering, WorkoutPlan.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        plans = list((await db.execute(stmt)).scalars().all())
        return {"plans": plans, "pagination": pagination_meta(page, limit, total, total_key="total_plans")}

    @staticmethod
    async def get_client_plan(db: AsyncSession, client_id: uuid.UUID, plan_id: uuid.UUID) -> WorkoutPlan:
        # Another client's plan is reported as missing, not forbidden
        plan = await PlanService.load_plan(db, plan_id)
        if plan.client_id != client_id:
            raise NotFoundError("Workout plan not found", field="plan_id")
        return plan

    @staticmethod
    def scheduled_session_for(plan: WorkoutPlan, day: date) -> WorkoutSession | None:
        weekday = day_of_week_name(day)
        return next((session for session in plan.scheduled_sessions if session.day_of_week == weekday), None)

    @staticmethod
    async def todays_workout(db: AsyncSession, client_id: uuid.UUID, today: date) -> tuple[WorkoutPlan | None, WorkoutSession | None]:
        plan = await PlanService.get_active_plan(db, client_id)
        if not plan:
            return None, None
        return plan, PlanService.scheduled_session_for(plan, today)

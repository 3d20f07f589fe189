import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value

from app.core.exceptions import (
    DuplicateWriteError,
    MissingNotesError,
    MissingReasonError,
    NoScheduledSessionError,
    NotFoundError,
    ValidationError,
)
from app.core.responses import pagination_meta
from app.database import dialect_name
from app.models.enums import DayOfWeek, LogSource, NonCompletionReason
from app.models.fitness import WorkoutPlan, WorkoutSession
from app.models.workout_log import DAILY_KEY_COLUMNS, DAILY_KEY_PREDICATE, WorkoutLog, WorkoutLogExercise
from app.schemas.workout import SessionLogCreate
from app.services.plan_service import PlanService
from app.services.progress_service import PlanProgressService
from app.services.timezone_service import start_of_day_utc, today_in_gym_tz
from app.services.week_calculator import day_of_week_name, week_index_since_start

logger = logging.getLogger(__name__)


@dataclass
class DailyStatusOutcome:
    created: bool
    transitioned_to_missed: bool
    progress_incremented: bool


def validate_non_completion(
    is_completed: bool,
    reason: NonCompletionReason | None,
    notes: str | None,
) -> None:
    if is_completed:
        return
    if reason is None:
        raise MissingReasonError()
    if reason == NonCompletionReason.OTHER and not notes:
        raise MissingNotesError()


def _completion_fields(is_completed: bool, reason: NonCompletionReason | None, notes: str | None) -> dict:
    return {
        "is_completed": is_completed,
        "non_completion_reason": None if is_completed else reason,
        "non_completion_notes": notes if not is_completed and reason == NonCompletionReason.OTHER else None,
    }


class WorkoutLogService:
    @staticmethod
    async def _find_daily_log(
        db: AsyncSession,
        client_id: uuid.UUID,
        plan_id: uuid.UUID,
        session_id: uuid.UUID,
        log_date: date,
    ) -> WorkoutLog | None:
        stmt = (
            select(WorkoutLog)
            .where(
                WorkoutLog.client_id == client_id,
                WorkoutLog.plan_id == plan_id,
                WorkoutLog.session_id == session_id,
                WorkoutLog.log_date == log_date,
            )
            .order_by(WorkoutLog.source.asc(), WorkoutLog.created_at.asc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return (await db.execute(stmt)).scalar_one_or_none()

    @staticmethod
    async def _insert_daily_log(db: AsyncSession, values: dict) -> uuid.UUID | None:
        """Insert the day's log unless another writer already holds the key.

        Returns the new id, or ``None`` when the unique daily key was taken.
        """
        insert = pg_insert if dialect_name(db) == "postgresql" else sqlite_insert
        stmt = (
            insert(WorkoutLog)
            .values(**values)
            .on_conflict_do_nothing(index_elements=list(DAILY_KEY_COLUMNS), index_where=DAILY_KEY_PREDICATE)
            .returning(WorkoutLog.id)
        )
        return (await db.execute(stmt)).scalar_one_or_none()

    @staticmethod
    async def _count_completion(db: AsyncSession, plan: WorkoutPlan, log: WorkoutLog) -> bool:
        if not log.is_completed or log.counted_in_progress:
            return False
        # Claim the log in the database; a concurrent writer may already have counted it
        result = await db.execute(
            update(WorkoutLog)
            .where(WorkoutLog.id == log.id, WorkoutLog.counted_in_progress.is_(False))
            .values(counted_in_progress=True)
            .execution_options(synchronize_session=False)
        )
        set_committed_value(log, "counted_in_progress", True)
        if result.rowcount != 1:
            logger.info("Log %s was already counted towards plan %s", log.id, plan.id)
            return False
        await PlanProgressService.mark_session_completed(db, plan, log.session_id, log.week)
        return True

    @staticmethod
    async def record_daily_status(
        db: AsyncSession,
        client_id: uuid.UUID,
        *,
        target_date: date | None,
        is_completed: bool,
        reason: NonCompletionReason | None = None,
        notes: str | None = None,
        proof_image: str | None = None,
    ) -> tuple[WorkoutLog, DailyStatusOutcome]:
        log_date = target_date or today_in_gym_tz()
        weekday = day_of_week_name(log_date)

        plan = await PlanService.get_active_plan(db, client_id)
        if not plan:
            raise NotFoundError("No active workout plan found")
        session = PlanService.scheduled_session_for(plan, log_date)
        if not session:
            raise NoScheduledSessionError(weekday.value)
        validate_non_completion(is_completed, reason, notes)

        fields = _completion_fields(is_completed, reason, notes)
        week = week_index_since_start(plan.start_date, log_date)
        completed_at = start_of_day_utc(log_date)
        created = False

        log = await WorkoutLogService._find_daily_log(db, client_id, plan.id, session.id, log_date)
        if log is None:
            new_id = await WorkoutLogService._insert_daily_log(
                db,
                {
                    "id": uuid.uuid4(),
                    "client_id": client_id,
                    "trainer_id": plan.trainer_id,
                    "plan_id": plan.id,
                    "session_id": session.id,
                    "week": week,
                    "day_of_week": weekday,
                    "log_date": log_date,
                    "completed_at": completed_at,
                    "source": LogSource.DAILY_STATUS,
                    "proof_image": proof_image,
                    "counted_in_progress": False,
                    **fields,
                },
            )
            if new_id is not None:
                created = True
                log = await db.get(WorkoutLog, new_id, populate_existing=True)
            else:
                logger.info("Daily log for client %s on %s written concurrently; updating instead", client_id, log_date)
                log = await WorkoutLogService._find_daily_log(db, client_id, plan.id, session.id, log_date)
                if log is None:
                    raise DuplicateWriteError("Could not record daily status, please retry")

        if created:
            transitioned_to_missed = not is_completed
        else:
            was_completed = log.is_completed
            for field, value in fields.items():
                setattr(log, field, value)
            log.proof_image = proof_image or log.proof_image
            log.completed_at = completed_at
            await db.flush()
            transitioned_to_missed = was_completed and not is_completed

        progress_incremented = await WorkoutLogService._count_completion(db, plan, log)
        return log, DailyStatusOutcome(
            created=created,
            transitioned_to_missed=transitioned_to_missed,
            progress_incremented=progress_incremented,
        )

    @staticmethod
    async def record_session_log(
        db: AsyncSession,
        client_id: uuid.UUID,
        data: SessionLogCreate,
    ) -> WorkoutLog:
        plan = await db.get(WorkoutPlan, data.plan_id)
        if not plan or plan.client_id != client_id:
            raise NotFoundError("Workout plan not found", field="plan_id")
        session = await db.get(WorkoutSession, data.session_id)
        if not session or session.plan_id != plan.id:
            raise NotFoundError("Workout session not found", field="session_id")
        if data.day_of_week != session.day_of_week:
            raise ValidationError(
                f"Session is scheduled for {session.day_of_week.value}, not {data.day_of_week.value}",
                field="day_of_week",
            )
        log_date = data.log_date or today_in_gym_tz()
        if day_of_week_name(log_date) != session.day_of_week:
            raise ValidationError(
                f"{log_date.isoformat()} is not a {session.day_of_week.value}",
                field="date",
            )
        validate_non_completion(data.is_completed, data.non_completion_reason, data.non_completion_notes)

        log = WorkoutLog(
            client_id=client_id,
            trainer_id=plan.trainer_id,
            plan_id=plan.id,
            session_id=session.id,
            week=data.week,
            day_of_week=data.day_of_week,
            log_date=log_date,
            completed_at=start_of_day_utc(log_date) if data.log_date else datetime.now(timezone.utc),
            source=LogSource.SESSION_LOG,
            proof_image=data.proof_image,
            actual_duration=data.actual_duration,
            overall_notes=data.overall_notes,
            difficulty=data.difficulty,
            energy=data.energy,
            mood=data.mood,
            pain_level=data.pain_level,
            counted_in_progress=False,
            exercises=[
                WorkoutLogExercise(
                    exercise_name=exercise.exercise_name,
                    sets_completed=exercise.sets_completed,
                    reps_completed=exercise.reps_completed,
                    weight_kg=exercise.weight_kg,
                    notes=exercise.notes,
                    order=exercise.order or idx,
                )
                for idx, exercise in enumerate(data.exercises)
            ],
            **_completion_fields(data.is_completed, data.non_completion_reason, data.non_completion_notes),
        )
        db.add(log)
        await db.flush()
        await WorkoutLogService._count_completion(db, plan, log)
        return log

    @staticmethod
    async def get_log(db: AsyncSession, log_id: uuid.UUID) -> WorkoutLog:
        stmt = (
            select(WorkoutLog)
            .where(WorkoutLog.id == log_id)
            .options(selectinload(WorkoutLog.exercises))
            .execution_options(populate_existing=True)
        )
        log = (await db.execute(stmt)).scalar_one_or_none()
        if not log:
            raise NotFoundError("Workout log not found")
        return log

    @staticmethod
    async def list_logs(
        db: AsyncSession,
        client_id: uuid.UUID,
        *,
        page: int = 1,
        limit: int = 10,
        week: int | None = None,
        day_of_week: DayOfWeek | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> dict:
        filters = [WorkoutLog.client_id == client_id]
        if week is not None:
            filters.append(WorkoutLog.week == week)
        if day_of_week is not None:
            filters.append(WorkoutLog.day_of_week == day_of_week)
        if start_date and end_date:
            filters.append(WorkoutLog.log_date >= start_date)
            filters.append(WorkoutLog.log_date <= end_date)

        total = (await db.execute(select(func.count(WorkoutLog.id)).where(*filters))).scalar_one()
        stmt = (
            select(WorkoutLog)
            .where(*filters)
            .options(selectinload(WorkoutLog.exercises))
            .order_by(WorkoutLog.completed_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        logs = list((await db.execute(stmt)).scalars().all())
        return {"logs": logs, "pagination": pagination_meta(page, limit, total, total_key="total_logs")}

import calendar
import uuid
from collections import defaultdict
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.models.enums import CalendarStatus
from app.models.fitness import WorkoutSession
from app.models.workout_log import WorkoutLog
from app.services.plan_service import PlanService
from app.services.week_calculator import day_of_week_name

MAX_CALENDAR_DAYS = 366


def month_range(year: int, month: int) -> tuple[date, date]:
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12", field="month")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def day_status(scheduled: WorkoutSession | None, logs: list[WorkoutLog]) -> CalendarStatus:
    if any(log.is_completed for log in logs):
        return CalendarStatus.COMPLETED
    if logs:
        return CalendarStatus.NOT_COMPLETED
    if scheduled is not None:
        return CalendarStatus.PENDING
    return CalendarStatus.NO_WORKOUT


def _scheduled_payload(session: WorkoutSession | None) -> dict | None:
    if session is None:
        return None
    return {
        "session_id": session.id,
        "day_of_week": session.day_of_week.value,
        "name": session.name,
        "estimated_duration": session.estimated_duration,
        "difficulty": session.difficulty,
        "exercises": [
            {
                "exercise_name": exercise.exercise_name,
                "sets": exercise.sets,
                "reps": exercise.reps,
                "rest_seconds": exercise.rest_seconds,
            }
            for exercise in session.exercises
        ],
    }


def _log_payload(log: WorkoutLog) -> dict:
    return {
        "id": log.id,
        "session_id": log.session_id,
        "week": log.week,
        "is_completed": log.is_completed,
        "non_completion_reason": log.non_completion_reason.value if log.non_completion_reason else None,
        "non_completion_notes": log.non_completion_notes,
        "proof_image": log.proof_image,
        "completed_at": log.completed_at,
        "actual_duration": log.actual_duration,
    }


class CalendarService:
    @staticmethod
    async def build_calendar(
        db: AsyncSession,
        client_id: uuid.UUID,
        start_date: date,
        end_date: date,
    ) -> dict:
        if end_date < start_date:
            raise ValidationError("end_date cannot be before start_date", field="end_date")
        if (end_date - start_date).days >= MAX_CALENDAR_DAYS:
            raise ValidationError(f"Calendar range cannot exceed {MAX_CALENDAR_DAYS} days", field="end_date")

        period = {"start": start_date.isoformat(), "end": end_date.isoformat()}
        plan = await PlanService.get_active_plan(db, client_id)
        if plan is None:
            return {"calendar": [], "plan": None, "period": period}

        stmt = (
            select(WorkoutLog)
            .where(
                WorkoutLog.client_id == client_id,
                WorkoutLog.log_date >= start_date,
                WorkoutLog.log_date <= end_date,
            )
            .order_by(WorkoutLog.completed_at.asc())
        )
        logs_by_date: dict[date, list[WorkoutLog]] = defaultdict(list)
        for log in (await db.execute(stmt)).scalars().all():
            logs_by_date[log.log_date].append(log)

        days = []
        current = start_date
        while current <= end_date:
            scheduled = PlanService.scheduled_session_for(plan, current)
            day_logs = logs_by_date.get(current, [])
            days.append({
                "date": current.isoformat(),
                "day_of_week": day_of_week_name(current).value,
                "scheduled": _scheduled_payload(scheduled),
                "logs": [_log_payload(log) for log in day_logs],
                "status": day_status(scheduled, day_logs).value,
            })
            current += timedelta(days=1)

        return {
            "calendar": days,
            "plan": {
                "id": plan.id,
                "name": plan.name,
                "current_week": plan.current_week,
                "total_weeks": plan.total_weeks,
            },
            "period": period,
        }

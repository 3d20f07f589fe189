import uuid
from collections import Counter
from datetime import date
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.fitness import WorkoutPlan
from app.models.workout_log import WorkoutLog
from app.services.plan_service import PlanService
from app.services.timezone_service import today_in_gym_tz
from app.services.week_calculator import iso_week_key, month_key, months_ago_start


def _round_half_up(numerator: int, denominator: int) -> int:
    if denominator <= 0:
        return 0
    return (2 * numerator + denominator) // (2 * denominator)


def _plan_summary(plan: WorkoutPlan | None) -> dict | None:
    if plan is None:
        return None
    return {
        "id": plan.id,
        "name": plan.name,
        "current_week": plan.current_week,
        "total_weeks": plan.total_weeks,
        "completion_rate": plan.completion_rate or 0,
    }


def bucket_logs(logs: Iterable[WorkoutLog]) -> dict:
    """Fold logs into weekly/monthly buckets plus summary statistics.

    Both completed and missed logs land in the same bucket for their week and
    month. Logs are expected in chronological order; the most common reason
    tie-break relies on it.
    """
    weekly: dict[str, dict] = {}
    monthly: dict[str, dict] = {}
    reasons: Counter = Counter()
    total_completed = 0
    total_not_completed = 0

    for log in logs:
        log_day = log.log_date
        iso_year, iso_week, _ = log_day.isocalendar()
        week_bucket = weekly.setdefault(
            iso_week_key(log_day),
            {"period": iso_week_key(log_day), "year": iso_year, "week": iso_week, "completed": 0, "not_completed": 0},
        )
        month_bucket = monthly.setdefault(
            month_key(log_day),
            {"period": month_key(log_day), "year": log_day.year, "month": log_day.month, "completed": 0, "not_completed": 0},
        )
        if log.is_completed:
            total_completed += 1
            week_bucket["completed"] += 1
            month_bucket["completed"] += 1
        else:
            total_not_completed += 1
            week_bucket["not_completed"] += 1
            month_bucket["not_completed"] += 1
            if log.non_completion_reason:
                reasons[log.non_completion_reason.value] += 1

    weekly_chart = sorted(weekly.values(), key=lambda bucket: (bucket["year"], bucket["week"]))
    monthly_chart = sorted(monthly.values(), key=lambda bucket: (bucket["year"], bucket["month"]))
    total_workouts = total_completed + total_not_completed

    # Counter.most_common keeps first-inserted order among equal counts
    most_common_reason = reasons.most_common(1)[0][0] if reasons else None

    return {
        "statistics": {
            "total_completed": total_completed,
            "total_not_completed": total_not_completed,
            "total_workouts": total_workouts,
            "completion_rate": _round_half_up(100 * total_completed, total_workouts),
            "avg_weekly_completed": _round_half_up(sum(b["completed"] for b in weekly_chart), len(weekly_chart)),
            "avg_monthly_completed": _round_half_up(sum(b["completed"] for b in monthly_chart), len(monthly_chart)),
            "most_common_non_completion_reason": most_common_reason,
        },
        "charts": {
            "weekly": weekly_chart,
            "monthly": monthly_chart,
        },
    }


class WorkoutAnalyticsService:
    @staticmethod
    async def build_time_series(
        db: AsyncSession,
        client_id: uuid.UUID,
        period_months: int,
        *,
        trainer_id: uuid.UUID | None = None,
        today: date | None = None,
    ) -> dict:
        today = today or today_in_gym_tz()
        window_start = months_ago_start(today, period_months)

        stmt = select(WorkoutLog).where(
            WorkoutLog.client_id == client_id,
            WorkoutLog.log_date >= window_start,
        )
        if trainer_id is not None:
            stmt = stmt.where(WorkoutLog.trainer_id == trainer_id)
        stmt = stmt.order_by(WorkoutLog.log_date.asc(), WorkoutLog.created_at.asc())
        logs = (await db.execute(stmt)).scalars().all()

        series = bucket_logs(logs)
        series["period"] = {
            "start": window_start.isoformat(),
            "end": today.isoformat(),
            "months": period_months,
        }
        return series

    @staticmethod
    async def client_dashboard(
        db: AsyncSession,
        client_id: uuid.UUID,
        period_months: int,
        *,
        trainer_id: uuid.UUID | None = None,
        today: date | None = None,
    ) -> dict:
        plan = await PlanService.get_active_plan(db, client_id)
        if plan is not None and trainer_id is not None and plan.trainer_id != trainer_id:
            plan = None
        series = await WorkoutAnalyticsService.build_time_series(
            db, client_id, period_months, trainer_id=trainer_id, today=today
        )
        return {"plan": _plan_summary(plan), **series}

    @staticmethod
    async def client_stats(db: AsyncSession, client_id: uuid.UUID) -> dict:
        total_plans = (await db.execute(
            select(func.count(WorkoutPlan.id)).where(WorkoutPlan.client_id == client_id)
        )).scalar_one()
        active_plans = (await db.execute(
            select(func.count(WorkoutPlan.id)).where(WorkoutPlan.client_id == client_id, WorkoutPlan.is_active.is_(True))
        )).scalar_one()
        total_workouts = (await db.execute(
            select(func.count(WorkoutLog.id)).where(WorkoutLog.client_id == client_id)
        )).scalar_one()
        completed_workouts = (await db.execute(
            select(func.count(WorkoutLog.id)).where(WorkoutLog.client_id == client_id, WorkoutLog.is_completed.is_(True))
        )).scalar_one()
        avg_duration = (await db.execute(
            select(func.avg(WorkoutLog.actual_duration)).where(
                WorkoutLog.client_id == client_id,
                WorkoutLog.actual_duration.is_not(None),
            )
        )).scalar()
        last_workout = (await db.execute(
            select(func.max(WorkoutLog.completed_at)).where(
                WorkoutLog.client_id == client_id,
                WorkoutLog.is_completed.is_(True),
            )
        )).scalar()

        return {
            "total_plans": total_plans,
            "active_plans": active_plans,
            "total_workouts": total_workouts,
            "completed_workouts": completed_workouts,
            "completion_rate": _round_half_up(100 * completed_workouts, total_workouts),
            "avg_duration": float(avg_duration or 0.0),
            "last_workout": last_workout,
        }

    @staticmethod
    async def trainer_stats(db: AsyncSession, trainer_id: uuid.UUID | None) -> dict:
        """Plan totals for one trainer, or across every trainer when ``trainer_id`` is None."""
        stmt = select(
            func.count(WorkoutPlan.id),
            func.count(WorkoutPlan.id).filter(WorkoutPlan.is_active.is_(True)),
            func.count(WorkoutPlan.id).filter(WorkoutPlan.completion_rate == 100),
            func.count(func.distinct(WorkoutPlan.client_id)),
            func.avg(WorkoutPlan.completion_rate),
        )
        if trainer_id is not None:
            stmt = stmt.where(WorkoutPlan.trainer_id == trainer_id)
        total_plans, active_plans, completed_plans, total_clients, avg_rate = (await db.execute(stmt)).one()
        return {
            "total_plans": total_plans,
            "active_plans": active_plans,
            "completed_plans": completed_plans,
            "total_clients": total_clients,
            "avg_completion_rate": float(avg_rate or 0.0),
        }

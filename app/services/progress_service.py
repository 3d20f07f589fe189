import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import case, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.fitness import WorkoutPlan

logger = logging.getLogger(__name__)

PROGRESS_ATTRIBUTES = [
    "total_sessions_completed",
    "total_sessions_planned",
    "completion_rate",
    "current_week",
    "last_completed_session_id",
    "last_completed_at",
    "last_completed_week",
]


def completion_rate(completed: int, planned: int) -> int:
    """Round-half-up percentage of planned sessions completed, capped at 100."""
    if planned <= 0:
        return 0
    if completed >= planned:
        return 100
    return (200 * completed + planned) // (2 * planned)


def planned_sessions(session_count: int, total_weeks: int) -> int:
    return session_count * total_weeks


class PlanProgressService:
    @staticmethod
    async def mark_session_completed(
        db: AsyncSession,
        plan: WorkoutPlan,
        session_id: uuid.UUID,
        week: int,
    ) -> None:
        """Count one completed session against the plan.

        The counters are updated by a single UPDATE so concurrent completions
        for the same plan cannot overwrite each other. ``completion_rate`` is
        derived from the pre-update column values plus one.
        """
        completed_after = WorkoutPlan.total_sessions_completed + 1
        planned = WorkoutPlan.total_sessions_planned
        target_week = max(1, min(week, plan.total_weeks))

        stmt = (
            update(WorkoutPlan)
            .where(WorkoutPlan.id == plan.id)
            .values(
                total_sessions_completed=completed_after,
                completion_rate=case(
                    (planned <= 0, 0),
                    (completed_after >= planned, 100),
                    else_=(200 * completed_after + planned) // (2 * planned),
                ),
                current_week=case(
                    (WorkoutPlan.current_week < target_week, target_week),
                    else_=WorkoutPlan.current_week,
                ),
                last_completed_session_id=session_id,
                last_completed_at=datetime.now(timezone.utc),
                last_completed_week=week,
            )
            .execution_options(synchronize_session=False)
        )
        await db.execute(stmt)
        await db.refresh(plan, attribute_names=PROGRESS_ATTRIBUTES)
        logger.info(
            "Plan %s progress: %s/%s sessions (%s%%)",
            plan.id,
            plan.total_sessions_completed,
            plan.total_sessions_planned,
            plan.completion_rate,
        )

    @staticmethod
    def get_plan_stats(plan: WorkoutPlan) -> dict:
        return {
            "plan_id": plan.id,
            "total_sessions": plan.total_sessions_planned,
            "completed_sessions": plan.total_sessions_completed,
            "completion_rate": plan.completion_rate,
            "current_week": plan.current_week,
            "total_weeks": plan.total_weeks,
            "frequency": plan.frequency.value if plan.frequency else None,
            "is_active": plan.is_active,
            "last_completed_session_id": plan.last_completed_session_id,
            "last_completed_at": plan.last_completed_at,
            "last_completed_week": plan.last_completed_week,
        }

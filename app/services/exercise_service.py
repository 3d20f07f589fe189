import logging
import uuid

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.core.responses import pagination_meta
from app.models.fitness import Exercise
from app.models.user import User
from app.schemas.workout import ExerciseCreate, WorkoutSessionData

logger = logging.getLogger(__name__)


class ExerciseService:
    @staticmethod
    async def create_exercise(db: AsyncSession, author: User, data: ExerciseCreate) -> Exercise:
        exercise = Exercise(**data.model_dump(), created_by_id=author.id, is_active=True)
        db.add(exercise)
        await db.flush()
        logger.info("Exercise %s (%s) added by %s", exercise.id, exercise.name, author.id)
        return exercise

    @staticmethod
    async def list_exercises(
        db: AsyncSession,
        *,
        page: int = 1,
        limit: int = 20,
        muscle_groups: list[str] | None = None,
        equipment: list[str] | None = None,
        difficulty: str | None = None,
        search: str | None = None,
    ) -> dict:
        filters = [Exercise.is_active.is_(True)]
        if muscle_groups:
            filters.append(Exercise.muscle_group.in_(muscle_groups))
        if equipment:
            filters.append(Exercise.equipment.in_(equipment))
        if difficulty:
            filters.append(Exercise.difficulty == difficulty.strip().lower())
        if search and search.strip():
            like = f"%{search.strip()}%"
            filters.append(or_(Exercise.name.ilike(like), Exercise.description.ilike(like)))

        total = (await db.execute(select(func.count(Exercise.id)).where(*filters))).scalar_one()
        stmt = (
            select(Exercise)
            .where(*filters)
            .order_by(Exercise.name, Exercise.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        exercises = list((await db.execute(stmt)).scalars().all())
        return {"exercises": exercises, "pagination": pagination_meta(page, limit, total, total_key="total_exercises")}

    @staticmethod
    async def resolve_session_exercises(db: AsyncSession, sessions: list[WorkoutSessionData]) -> None:
        """Fill in catalog names for exercises given by id; unknown or retired ids are rejected."""
        wanted: set[uuid.UUID] = {
            exercise.exercise_id
            for session in sessions
            for exercise in session.exercises
            if exercise.exercise_id is not None
        }
        if not wanted:
            return
        stmt = select(Exercise).where(Exercise.id.in_(wanted), Exercise.is_active.is_(True))
        catalog = {exercise.id: exercise for exercise in (await db.execute(stmt)).scalars().all()}
        missing = wanted - catalog.keys()
        if missing:
            raise NotFoundError(f"Exercise not found: {sorted(str(item) for item in missing)[0]}", field="exercise_id")
        for session in sessions:
            for exercise in session.exercises:
                if exercise.exercise_id is not None:
                    exercise.exercise_name = catalog[exercise.exercise_id].name

import uuid
from sqlalchemy import String, Integer, ForeignKey, Text, DateTime, Date, Boolean, Uuid, Enum as SAEnum, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import date, datetime, timezone
from app.database import Base
from app.models.enums import DayOfWeek, PlanFrequency

class Exercise(Base):
    """Catalog entry that session exercises can point at."""
    __tablename__ = "exercises"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    muscle_group: Mapped[str | None] = mapped_column(String, nullable=True)  # e.g. chest, legs
    equipment: Mapped[str | None] = mapped_column(String, nullable=True)
    difficulty: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    created_by = relationship("User", foreign_keys=[created_by_id])


class WorkoutPlan(Base):
    __tablename__ = "workout_plans"
    __table_args__ = (
        CheckConstraint("total_weeks BETWEEN 1 AND 52", name="ck_workout_plans_total_weeks"),
        CheckConstraint("current_week >= 1", name="ck_workout_plans_current_week"),
        CheckConstraint("completion_rate BETWEEN 0 AND 100", name="ck_workout_plans_completion_rate"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    client_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    trainer_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    frequency: Mapped[PlanFrequency] = mapped_column(
        SAEnum(PlanFrequency, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        default=PlanFrequency.THREE_PER_WEEK,
        nullable=False,
    )

    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    total_weeks: Mapped[int] = mapped_column(Integer, default=4, nullable=False)
    current_week: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    # Progress counters, written only by PlanProgressService and plan authoring
    total_sessions_completed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_sessions_planned: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    completion_rate: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_completed_session_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    last_completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_completed_week: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    client = relationship("User", foreign_keys=[client_id])
    trainer = relationship("User", foreign_keys=[trainer_id])
    sessions = relationship(
        "WorkoutSession",
        back_populates="plan",
        order_by="WorkoutSession.order",
        cascade="all, delete-orphan",
    )

    @property
    def scheduled_sessions(self) -> list["WorkoutSession"]:
        return [session for session in self.sessions if not session.is_retired]


class WorkoutSession(Base):
    """Weekly schedule template: one workout tied to a weekday of a plan.

    Sessions referenced by logs are retired instead of deleted when a plan's
    schedule is replaced, so history keeps pointing at what was performed.
    """
    __tablename__ = "workout_sessions"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    plan_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("workout_plans.id"), nullable=False, index=True)
    day_of_week: Mapped[DayOfWeek] = mapped_column(
        SAEnum(DayOfWeek, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    estimated_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)  # minutes
    difficulty: Mapped[str | None] = mapped_column(String, nullable=True)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_retired: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    plan = relationship("WorkoutPlan", back_populates="sessions")
    exercises = relationship(
        "SessionExercise",
        back_populates="session",
        order_by="SessionExercise.order",
        cascade="all, delete-orphan",
    )


class SessionExercise(Base):
    __tablename__ = "session_exercises"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    session_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("workout_sessions.id"), nullable=False, index=True)
    exercise_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("exercises.id"), nullable=True)
    exercise_name: Mapped[str] = mapped_column(String, nullable=False)
    sets: Mapped[int] = mapped_column(Integer, default=3)
    reps: Mapped[int] = mapped_column(Integer, default=10)
    rest_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column(Integer, default=0)

    session = relationship("WorkoutSession", back_populates="exercises")

import uuid
from datetime import date, datetime, timezone
from sqlalchemy import Boolean, Date, Enum as SAEnum, Index, Integer, ForeignKey, Text, DateTime, Float, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base
from app.models.enums import DayOfWeek, LogSource, NonCompletionReason

DAILY_KEY_PREDICATE = text("source = 'daily_status'")
DAILY_KEY_COLUMNS = ("client_id", "plan_id", "session_id", "log_date")


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class WorkoutLog(Base):
    __tablename__ = "workout_logs"
    __table_args__ = (
        # One daily-status log per client/plan/session/day
        Index(
            "uq_workout_logs_daily_key",
            *DAILY_KEY_COLUMNS,
            unique=True,
            postgresql_where=DAILY_KEY_PREDICATE,
            sqlite_where=DAILY_KEY_PREDICATE,
        ),
        Index("ix_workout_logs_client_log_date", "client_id", "log_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    client_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    trainer_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    plan_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("workout_plans.id"), nullable=False, index=True)
    session_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("workout_sessions.id"), nullable=False)

    week: Mapped[int] = mapped_column(Integer, nullable=False)
    day_of_week: Mapped[DayOfWeek] = mapped_column(
        SAEnum(DayOfWeek, native_enum=False, values_callable=_enum_values), nullable=False
    )
    log_date: Mapped[date] = mapped_column(Date, nullable=False)
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    source: Mapped[LogSource] = mapped_column(
        SAEnum(LogSource, native_enum=False, values_callable=_enum_values),
        default=LogSource.DAILY_STATUS,
        nullable=False,
    )

    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    non_completion_reason: Mapped[NonCompletionReason | None] = mapped_column(
        SAEnum(NonCompletionReason, native_enum=False, values_callable=_enum_values), nullable=True
    )
    non_completion_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    proof_image: Mapped[str | None] = mapped_column(String, nullable=True)
    counted_in_progress: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Rich logging only, never used for progress math
    actual_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)  # minutes
    overall_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    difficulty: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 1-10
    energy: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 1-10
    mood: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 1-10
    pain_level: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 0-10

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    client = relationship("User", foreign_keys=[client_id])
    trainer = relationship("User", foreign_keys=[trainer_id])
    plan = relationship("WorkoutPlan")
    session = relationship("WorkoutSession")
    exercises = relationship(
        "WorkoutLogExercise",
        back_populates="log",
        order_by="WorkoutLogExercise.order",
        cascade="all, delete-orphan",
    )


class WorkoutLogExercise(Base):
    __tablename__ = "workout_log_exercises"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    log_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("workout_logs.id"), nullable=False, index=True)
    exercise_name: Mapped[str] = mapped_column(String, nullable=False)
    sets_completed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    reps_completed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    weight_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    log = relationship("WorkoutLog", back_populates="exercises")

import uuid
from datetime import date, datetime
from typing import List

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.enums import DayOfWeek, LogSource, NonCompletionReason, PlanFrequency


def _strip_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


# --- Exercise catalog ---

class ExerciseCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    muscle_group: str | None = Field(None, max_length=50)
    equipment: str | None = Field(None, max_length=50)
    difficulty: str | None = Field(None, max_length=20)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("name cannot be blank")
        return normalized

    @field_validator("description", "muscle_group", "equipment", "difficulty")
    @classmethod
    def normalize_text(cls, value: str | None) -> str | None:
        return _strip_or_none(value)

    @field_validator("muscle_group", "equipment", "difficulty")
    @classmethod
    def lowercase_tags(cls, value: str | None) -> str | None:
        return value.lower() if value else value


class ExerciseResponse(ExerciseCreate):
    id: uuid.UUID
    is_active: bool
    created_by_id: uuid.UUID | None = None

    class Config:
        from_attributes = True


# --- Plan authoring ---

class SessionExerciseData(BaseModel):
    exercise_id: uuid.UUID | None = None
    exercise_name: str | None = Field(None, max_length=100)
    sets: int = Field(3, ge=1, le=20)
    reps: int = Field(10, ge=1, le=100)
    rest_seconds: int | None = Field(None, ge=0, le=600)
    notes: str | None = Field(None, max_length=500)
    order: int = 0

    @field_validator("exercise_name")
    @classmethod
    def normalize_exercise_name(cls, value: str | None) -> str | None:
        return _strip_or_none(value)

    @model_validator(mode="after")
    def check_exercise_reference(self):
        if self.exercise_id is None and not self.exercise_name:
            raise ValueError("Either exercise_id or exercise_name is required")
        return self


class SessionExerciseResponse(BaseModel):
    id: uuid.UUID
    exercise_id: uuid.UUID | None = None
    exercise_name: str
    sets: int
    reps: int
    rest_seconds: int | None = None
    notes: str | None = None
    order: int

    class Config:
        from_attributes = True


class WorkoutSessionData(BaseModel):
    day_of_week: DayOfWeek
    name: str | None = None
    estimated_duration: int | None = Field(None, ge=1, le=600)
    difficulty: str | None = None
    exercises: List[SessionExerciseData] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str | None) -> str | None:
        return _strip_or_none(value)


class WorkoutSessionResponse(BaseModel):
    id: uuid.UUID
    day_of_week: DayOfWeek
    name: str | None = None
    estimated_duration: int | None = None
    difficulty: str | None = None
    order: int
    exercises: List[SessionExerciseResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class WorkoutPlanCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=1000)
    client_id: uuid.UUID
    frequency: PlanFrequency = PlanFrequency.THREE_PER_WEEK
    start_date: date
    end_date: date | None = None
    total_weeks: int = Field(4, ge=1, le=52)
    is_active: bool = True
    sessions: List[WorkoutSessionData] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class WorkoutPlanUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=1000)
    frequency: PlanFrequency | None = None
    start_date: date | None = None
    end_date: date | None = None
    total_weeks: int | None = Field(None, ge=1, le=52)
    sessions: List[WorkoutSessionData] | None = Field(None, min_length=1)


class WorkoutPlanToggle(BaseModel):
    is_active: bool


class WorkoutPlanResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    notes: str | None = None
    client_id: uuid.UUID
    trainer_id: uuid.UUID
    frequency: PlanFrequency
    start_date: date
    end_date: date | None = None
    total_weeks: int
    current_week: int
    is_active: bool
    total_sessions_completed: int
    total_sessions_planned: int
    completion_rate: int
    last_completed_session_id: uuid.UUID | None = None
    last_completed_at: datetime | None = None
    last_completed_week: int | None = None
    sessions: List[WorkoutSessionResponse] = Field(default_factory=list, validation_alias="scheduled_sessions")

    class Config:
        from_attributes = True


# --- Completion logging ---

class DailyStatusCreate(BaseModel):
    target_date: date | None = Field(None, alias="date")
    is_completed: bool
    non_completion_reason: NonCompletionReason | None = None
    non_completion_notes: str | None = Field(None, max_length=500)
    proof_image: str | None = None

    @field_validator("non_completion_notes", "proof_image")
    @classmethod
    def normalize_text(cls, value: str | None) -> str | None:
        return _strip_or_none(value)

    class Config:
        populate_by_name = True


class DailyStatusResponse(BaseModel):
    log_id: uuid.UUID
    log_date: date
    day_of_week: DayOfWeek
    week: int
    is_completed: bool
    non_completion_reason: NonCompletionReason | None = None
    proof_image: str | None = None
    transitioned_to_missed: bool
    progress_incremented: bool


class LogExerciseData(BaseModel):
    exercise_name: str = Field(..., min_length=1, max_length=100)
    sets_completed: int = Field(0, ge=0)
    reps_completed: int = Field(0, ge=0)
    weight_kg: float | None = Field(None, ge=0)
    notes: str | None = None
    order: int = 0


class LogExerciseResponse(LogExerciseData):
    id: uuid.UUID

    class Config:
        from_attributes = True


class SessionLogCreate(BaseModel):
    plan_id: uuid.UUID
    session_id: uuid.UUID
    log_date: date | None = Field(None, alias="date")
    week: int = Field(..., ge=1, le=52)
    day_of_week: DayOfWeek
    is_completed: bool = True
    non_completion_reason: NonCompletionReason | None = None
    non_completion_notes: str | None = Field(None, max_length=500)
    proof_image: str | None = None
    actual_duration: int | None = Field(None, ge=1, le=600)
    overall_notes: str | None = Field(None, max_length=1000)
    difficulty: int | None = Field(None, ge=1, le=10)
    energy: int | None = Field(None, ge=1, le=10)
    mood: int | None = Field(None, ge=1, le=10)
    pain_level: int | None = Field(None, ge=0, le=10)
    exercises: List[LogExerciseData] = Field(default_factory=list)

    @field_validator("non_completion_notes", "proof_image", "overall_notes")
    @classmethod
    def normalize_text(cls, value: str | None) -> str | None:
        return _strip_or_none(value)

    class Config:
        populate_by_name = True


class WorkoutLogResponse(BaseModel):
    id: uuid.UUID
    client_id: uuid.UUID
    trainer_id: uuid.UUID
    plan_id: uuid.UUID
    session_id: uuid.UUID
    week: int
    day_of_week: DayOfWeek
    log_date: date
    completed_at: datetime
    source: LogSource
    is_completed: bool
    non_completion_reason: NonCompletionReason | None = None
    non_completion_notes: str | None = None
    proof_image: str | None = None
    actual_duration: int | None = None
    overall_notes: str | None = None
    difficulty: int | None = None
    energy: int | None = None
    mood: int | None = None
    pain_level: int | None = None
    exercises: List[LogExerciseResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_logs: int
    has_next: bool
    has_prev: bool


class WorkoutLogPage(BaseModel):
    logs: List[WorkoutLogResponse]
    pagination: Pagination

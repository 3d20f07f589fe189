from app.models.user import User
from app.models.fitness import Exercise, SessionExercise, WorkoutPlan, WorkoutSession
from app.models.workout_log import WorkoutLog, WorkoutLogExercise
from app.models.notification import Notification


__all__ = [
    "User",
    "Exercise",
    "WorkoutPlan",
    "WorkoutSession",
    "SessionExercise",
    "WorkoutLog",
    "WorkoutLogExercise",
    "Notification",
]

from enum import Enum

class Role(str, Enum):
    ADMIN = "ADMIN"
    TRAINER = "TRAINER"
    CLIENT = "CLIENT"


class DayOfWeek(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


class PlanFrequency(str, Enum):
    THREE_PER_WEEK = "3x"
    FOUR_PER_WEEK = "4x"
    FIVE_PER_WEEK = "5x"


class NonCompletionReason(str, Enum):
    ILLNESS = "illness"
    INJURY = "injury"
    LACK_OF_TIME = "lack_of_time"
    LACK_OF_MOTIVATION = "lack_of_motivation"
    FATIGUE = "fatigue"
    TRAVEL = "travel"
    OTHER = "other"


class LogSource(str, Enum):
    DAILY_STATUS = "daily_status"
    SESSION_LOG = "session_log"


class CalendarStatus(str, Enum):
    COMPLETED = "completed"
    NOT_COMPLETED = "not_completed"
    PENDING = "pending"
    NO_WORKOUT = "no_workout"

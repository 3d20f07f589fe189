from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.config import settings


def get_gym_timezone() -> ZoneInfo:
    try:
        return ZoneInfo(settings.GYM_TIMEZONE)
    except ZoneInfoNotFoundError:
        return ZoneInfo("UTC")


def now_in_gym_tz() -> datetime:
    return datetime.now(get_gym_timezone())


def today_in_gym_tz() -> date:
    return now_in_gym_tz().date()


def start_of_day_utc(day: date) -> datetime:
    """Midnight of ``day`` in the gym's timezone, expressed in UTC."""
    local_midnight = datetime.combine(day, time.min, tzinfo=get_gym_timezone())
    return local_midnight.astimezone(timezone.utc)

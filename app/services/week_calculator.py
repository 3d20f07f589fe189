"""Date helpers shared by plan tracking, dashboards and the calendar view.

Plan weeks are counted from the plan's start date (week 1 is the first seven
days). Dashboard buckets use ISO-8601 weeks instead; the two numbering schemes
are unrelated and must not be mixed.
"""
from datetime import date, datetime

from app.models.enums import DayOfWeek

_WEEKDAYS = list(DayOfWeek)


def to_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def week_index_since_start(start_date: date | datetime, target_date: date | datetime) -> int:
    """1-based plan week containing ``target_date``.

    Days before the plan start are clamped to week 1.
    """
    days_diff = (to_date(target_date) - to_date(start_date)).days
    if days_diff < 0:
        return 1
    return days_diff // 7 + 1


def iso_week_number(value: date | datetime) -> int:
    return to_date(value).isocalendar()[1]


def iso_week_key(value: date | datetime) -> str:
    iso_year, iso_week, _ = to_date(value).isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def month_key(value: date | datetime) -> str:
    day = to_date(value)
    return f"{day.year}-{day.month:02d}"


def day_of_week_name(value: date | datetime) -> DayOfWeek:
    return _WEEKDAYS[to_date(value).weekday()]


def months_ago_start(today: date, months: int) -> date:
    """First day of the month ``months`` months before ``today``'s month."""
    month_index = today.year * 12 + (today.month - 1) - months
    return date(month_index // 12, month_index % 12 + 1, 1)

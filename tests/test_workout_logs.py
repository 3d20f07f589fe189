import pytest
from datetime import date
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    DuplicateWriteError,
    MissingNotesError,
    MissingReasonError,
    NoScheduledSessionError,
    NotFoundError,
    ValidationError,
)
from app.models.enums import DayOfWeek, LogSource, NonCompletionReason
from app.models.workout_log import WorkoutLog
from app.schemas.workout import SessionLogCreate
from app.services.plan_service import PlanService
from app.services.workout_log_service import WorkoutLogService

MONDAY = date(2024, 1, 1)
WEDNESDAY = date(2024, 1, 3)
TUESDAY = date(2024, 1, 2)


async def _log_count(db: AsyncSession, client_id) -> int:
    return (await db.execute(select(func.count(WorkoutLog.id)).where(WorkoutLog.client_id == client_id))).scalar_one()


async def _reload(db: AsyncSession, plan):
    return await PlanService.load_plan(db, plan.id)


@pytest.mark.asyncio
async def test_daily_completion_counts_once(db_session: AsyncSession, gym_client, active_plan):
    log, outcome = await WorkoutLogService.record_daily_status(
        db_session, gym_client.id, target_date=MONDAY, is_completed=True
    )
    assert outcome.created is True
    assert outcome.progress_incremented is True
    assert outcome.transitioned_to_missed is False
    assert log.source == LogSource.DAILY_STATUS
    assert log.week == 1
    assert log.day_of_week == DayOfWeek.MONDAY
    await db_session.commit()

    again, second = await WorkoutLogService.record_daily_status(
        db_session, gym_client.id, target_date=MONDAY, is_completed=True
    )
    await db_session.commit()
    assert again.id == log.id
    assert second.created is False
    assert second.progress_incremented is False

    plan = await _reload(db_session, active_plan)
    assert await _log_count(db_session, gym_client.id) == 1
    assert plan.total_sessions_completed == 1
    assert plan.completion_rate == 8
    assert plan.last_completed_session_id == log.session_id


@pytest.mark.asyncio
async def test_week_is_derived_from_plan_start(db_session: AsyncSession, gym_client, active_plan):
    log, _ = await WorkoutLogService.record_daily_status(
        db_session, gym_client.id, target_date=date(2024, 1, 15), is_completed=True
    )
    assert log.week == 3
    plan = await _reload(db_session, active_plan)
    assert plan.current_week == 3


@pytest.mark.asyncio
async def test_first_missed_submission_is_a_transition(db_session: AsyncSession, gym_client, active_plan):
    _, outcome = await WorkoutLogService.record_daily_status(
        db_session, gym_client.id, target_date=MONDAY, is_completed=False, reason=NonCompletionReason.ILLNESS
    )
    assert outcome.created is True
    assert outcome.transitioned_to_missed is True
    assert outcome.progress_incremented is False

    _, repeat = await WorkoutLogService.record_daily_status(
        db_session, gym_client.id, target_date=MONDAY, is_completed=False, reason=NonCompletionReason.FATIGUE
    )
    assert repeat.transitioned_to_missed is False


@pytest.mark.asyncio
async def test_completed_then_missed_keeps_progress(db_session: AsyncSession, gym_client, active_plan):
    await WorkoutLogService.record_daily_status(db_session, gym_client.id, target_date=MONDAY, is_completed=True)

    log, outcome = await WorkoutLogService.record_daily_status(
        db_session,
        gym_client.id,
        target_date=MONDAY,
        is_completed=False,
        reason=NonCompletionReason.OTHER,
        notes="Gym was closed",
    )
    assert outcome.transitioned_to_missed is True
    assert outcome.progress_incremented is False
    assert log.is_completed is False
    assert log.non_completion_reason == NonCompletionReason.OTHER
    assert log.non_completion_notes == "Gym was closed"

    # Flipping back does not count the same log twice
    log, back = await WorkoutLogService.record_daily_status(
        db_session, gym_client.id, target_date=MONDAY, is_completed=True
    )
    assert back.progress_incremented is False
    assert log.non_completion_reason is None
    assert log.non_completion_notes is None

    plan = await _reload(db_session, active_plan)
    assert plan.total_sessions_completed == 1
    assert await _log_count(db_session, gym_client.id) == 1


@pytest.mark.asyncio
async def test_missed_then_completed_counts_progress(db_session: AsyncSession, gym_client, active_plan):
    await WorkoutLogService.record_daily_status(
        db_session, gym_client.id, target_date=WEDNESDAY, is_completed=False, reason=NonCompletionReason.TRAVEL
    )
    _, outcome = await WorkoutLogService.record_daily_status(
        db_session, gym_client.id, target_date=WEDNESDAY, is_completed=True
    )
    assert outcome.created is False
    assert outcome.progress_incremented is True
    plan = await _reload(db_session, active_plan)
    assert plan.total_sessions_completed == 1


@pytest.mark.asyncio
async def test_existing_proof_image_is_kept(db_session: AsyncSession, gym_client, active_plan):
    await WorkoutLogService.record_daily_status(
        db_session, gym_client.id, target_date=MONDAY, is_completed=True, proof_image="proofs/monday.jpg"
    )
    log, _ = await WorkoutLogService.record_daily_status(
        db_session, gym_client.id, target_date=MONDAY, is_completed=True
    )
    assert log.proof_image == "proofs/monday.jpg"


@pytest.mark.asyncio
async def test_missed_without_reason_is_rejected(db_session: AsyncSession, gym_client, active_plan):
    with pytest.raises(MissingReasonError) as exc_info:
        await WorkoutLogService.record_daily_status(
            db_session, gym_client.id, target_date=MONDAY, is_completed=False
        )
    assert exc_info.value.field == "non_completion_reason"
    assert await _log_count(db_session, gym_client.id) == 0


@pytest.mark.asyncio
async def test_other_reason_requires_notes(db_session: AsyncSession, gym_client, active_plan):
    with pytest.raises(ValidationError) as exc_info:
        await WorkoutLogService.record_daily_status(
            db_session, gym_client.id, target_date=MONDAY, is_completed=False, reason=NonCompletionReason.OTHER
        )
    assert isinstance(exc_info.value, MissingNotesError)
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_unscheduled_day_is_rejected(db_session: AsyncSession, gym_client, active_plan):
    with pytest.raises(NoScheduledSessionError) as exc_info:
        await WorkoutLogService.record_daily_status(
            db_session, gym_client.id, target_date=TUESDAY, is_completed=True
        )
    assert exc_info.value.day_of_week == "tuesday"
    assert await _log_count(db_session, gym_client.id) == 0


@pytest.mark.asyncio
async def test_daily_status_requires_active_plan(db_session: AsyncSession, gym_client):
    with pytest.raises(NotFoundError):
        await WorkoutLogService.record_daily_status(
            db_session, gym_client.id, target_date=MONDAY, is_completed=True
        )


@pytest.mark.asyncio
async def test_session_logs_are_exempt_from_daily_key(db_session: AsyncSession, gym_client, active_plan):
    session = active_plan.scheduled_sessions[0]
    await WorkoutLogService.record_daily_status(db_session, gym_client.id, target_date=MONDAY, is_completed=True)

    data = SessionLogCreate(
        plan_id=active_plan.id,
        session_id=session.id,
        log_date=MONDAY,
        week=1,
        day_of_week=DayOfWeek.MONDAY,
        actual_duration=50,
        energy=7,
        exercises=[{"exercise_name": "Bench Press", "sets_completed": 4, "reps_completed": 8, "weight_kg": 60}],
    )
    first = await WorkoutLogService.record_session_log(db_session, gym_client.id, data)
    second = await WorkoutLogService.record_session_log(db_session, gym_client.id, data)
    await db_session.commit()

    assert first.id != second.id
    assert first.source == LogSource.SESSION_LOG
    assert first.counted_in_progress is True
    assert await _log_count(db_session, gym_client.id) == 3

    plan = await _reload(db_session, active_plan)
    assert plan.total_sessions_completed == 3

    stored = await WorkoutLogService.get_log(db_session, first.id)
    assert [exercise.exercise_name for exercise in stored.exercises] == ["Bench Press"]


@pytest.mark.asyncio
async def test_session_log_rejects_foreign_plan(db_session: AsyncSession, make_user, gym_client, active_plan):
    stranger = await make_user("stranger@gym.com")
    data = SessionLogCreate(
        plan_id=active_plan.id,
        session_id=active_plan.scheduled_sessions[0].id,
        week=1,
        day_of_week=DayOfWeek.MONDAY,
    )
    with pytest.raises(NotFoundError):
        await WorkoutLogService.record_session_log(db_session, stranger.id, data)


@pytest.mark.asyncio
async def test_missed_session_log_does_not_count(db_session: AsyncSession, gym_client, active_plan):
    data = SessionLogCreate(
        plan_id=active_plan.id,
        session_id=active_plan.scheduled_sessions[1].id,
        log_date=WEDNESDAY,
        week=1,
        day_of_week=DayOfWeek.WEDNESDAY,
        is_completed=False,
        non_completion_reason=NonCompletionReason.INJURY,
        non_completion_notes="ignored unless the reason is other",
    )
    log = await WorkoutLogService.record_session_log(db_session, gym_client.id, data)
    assert log.counted_in_progress is False
    assert log.non_completion_notes is None
    plan = await _reload(db_session, active_plan)
    assert plan.total_sessions_completed == 0


@pytest.mark.asyncio
async def test_list_logs_paginates_newest_first(db_session: AsyncSession, gym_client, active_plan):
    for day in [date(2024, 1, 1), date(2024, 1, 3), date(2024, 1, 5), date(2024, 1, 8)]:
        await WorkoutLogService.record_daily_status(db_session, gym_client.id, target_date=day, is_completed=True)
    await db_session.commit()

    page_one = await WorkoutLogService.list_logs(db_session, gym_client.id, page=1, limit=3)
    assert [log.log_date for log in page_one["logs"]] == [date(2024, 1, 8), date(2024, 1, 5), date(2024, 1, 3)]
    assert page_one["pagination"] == {
        "current_page": 1,
        "total_pages": 2,
        "total_logs": 4,
        "has_next": True,
        "has_prev": False,
    }

    week_two = await WorkoutLogService.list_logs(db_session, gym_client.id, week=2)
    assert [log.log_date for log in week_two["logs"]] == [date(2024, 1, 8)]

    fridays = await WorkoutLogService.list_logs(db_session, gym_client.id, day_of_week=DayOfWeek.FRIDAY)
    assert fridays["pagination"]["total_logs"] == 1

    ranged = await WorkoutLogService.list_logs(
        db_session, gym_client.id, start_date=date(2024, 1, 2), end_date=date(2024, 1, 5)
    )
    assert ranged["pagination"]["total_logs"] == 2


@pytest.mark.asyncio
async def test_stale_log_is_not_counted_twice(db_session: AsyncSession, gym_client, active_plan):
    log, _ = await WorkoutLogService.record_daily_status(
        db_session, gym_client.id, target_date=MONDAY, is_completed=False, reason=NonCompletionReason.FATIGUE
    )
    await db_session.commit()

    # Another request completes the day and counts it while this one still holds the old row
    await db_session.execute(
        update(WorkoutLog)
        .where(WorkoutLog.id == log.id)
        .values(is_completed=True, non_completion_reason=None, counted_in_progress=True)
        .execution_options(synchronize_session=False)
    )
    await db_session.commit()
    assert log.counted_in_progress is False

    log.is_completed = True
    log.non_completion_reason = None
    await db_session.flush()
    counted = await WorkoutLogService._count_completion(db_session, active_plan, log)
    await db_session.commit()

    assert counted is False
    assert log.counted_in_progress is True
    plan = await _reload(db_session, active_plan)
    assert plan.total_sessions_completed == 0


@pytest.mark.asyncio
async def test_lost_insert_race_updates_existing_log(db_session: AsyncSession, gym_client, active_plan, monkeypatch):
    first, _ = await WorkoutLogService.record_daily_status(
        db_session, gym_client.id, target_date=MONDAY, is_completed=False, reason=NonCompletionReason.TRAVEL
    )
    await db_session.commit()

    find_daily_log = WorkoutLogService._find_daily_log
    lookups = []

    async def miss_first_lookup(*args, **kwargs):
        lookups.append(args)
        if len(lookups) == 1:
            return None
        return await find_daily_log(*args, **kwargs)

    monkeypatch.setattr(WorkoutLogService, "_find_daily_log", staticmethod(miss_first_lookup))

    log, outcome = await WorkoutLogService.record_daily_status(
        db_session, gym_client.id, target_date=MONDAY, is_completed=True
    )
    await db_session.commit()

    assert len(lookups) == 2
    assert log.id == first.id
    assert outcome.created is False
    assert outcome.progress_incremented is True
    assert await _log_count(db_session, gym_client.id) == 1
    plan = await _reload(db_session, active_plan)
    assert plan.total_sessions_completed == 1


@pytest.mark.asyncio
async def test_lost_insert_race_without_winner_is_a_conflict(
    db_session: AsyncSession, gym_client, active_plan, monkeypatch
):
    client_id = gym_client.id
    await WorkoutLogService.record_daily_status(db_session, client_id, target_date=MONDAY, is_completed=True)
    await db_session.commit()

    async def never_found(*args, **kwargs):
        return None

    monkeypatch.setattr(WorkoutLogService, "_find_daily_log", staticmethod(never_found))

    with pytest.raises(DuplicateWriteError):
        await WorkoutLogService.record_daily_status(db_session, client_id, target_date=MONDAY, is_completed=True)
    await db_session.rollback()
    assert await _log_count(db_session, client_id) == 1


@pytest.mark.asyncio
async def test_session_log_weekday_must_match_session(db_session: AsyncSession, gym_client, active_plan):
    monday_session = active_plan.scheduled_sessions[0]
    wrong_weekday = SessionLogCreate(
        plan_id=active_plan.id,
        session_id=monday_session.id,
        log_date=MONDAY,
        week=1,
        day_of_week=DayOfWeek.TUESDAY,
    )
    with pytest.raises(ValidationError) as exc:
        await WorkoutLogService.record_session_log(db_session, gym_client.id, wrong_weekday)
    assert exc.value.field == "day_of_week"

    wrong_date = SessionLogCreate(
        plan_id=active_plan.id,
        session_id=monday_session.id,
        log_date=WEDNESDAY,
        week=1,
        day_of_week=DayOfWeek.MONDAY,
    )
    with pytest.raises(ValidationError) as exc:
        await WorkoutLogService.record_session_log(db_session, gym_client.id, wrong_date)
    assert exc.value.field == "date"


@pytest.mark.asyncio
async def test_backdated_session_log_lands_on_its_day(db_session: AsyncSession, gym_client, active_plan):
    data = SessionLogCreate(
        plan_id=active_plan.id,
        session_id=active_plan.scheduled_sessions[0].id,
        log_date=date(2024, 1, 8),
        week=2,
        day_of_week=DayOfWeek.MONDAY,
    )
    log = await WorkoutLogService.record_session_log(db_session, gym_client.id, data)
    assert log.log_date == date(2024, 1, 8)
    assert log.completed_at.date() <= date(2024, 1, 8)

from datetime import date, datetime, timezone
from typing import Awaitable, Callable

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.exceptions import NotFoundException, ValidationException
from src.api.models import HabitInstance, RewardTransaction, RewardType, User
from src.api.services import EnrollmentResult, HabitInstanceService
from src.api.services.habit_instance_service import completion_rate
from src.api.utils.date_utils import add_days, format_date


async def instance_id_on(db_session: AsyncSession, title: str, scheduled_date: date) -> int:
    result = await db_session.execute(
        select(HabitInstance.id).where(HabitInstance.title == title, HabitInstance.scheduled_date == scheduled_date)
    )
    return result.scalar_one()


async def reward_rows(db_session: AsyncSession, user_id: int) -> list[RewardTransaction]:
    result = await db_session.execute(select(RewardTransaction).where(RewardTransaction.user_id == user_id))
    return list(result.scalars().all())


@pytest.mark.parametrize(("total", "completed", "expected"), [(0, 0, 0), (16, 1, 6), (3, 2, 67), (4, 4, 100)])
def test_completion_rate_rounds_to_whole_percent(total: int, completed: int, expected: int):
    assert completion_rate(total, completed) == expected


async def test_reward_is_granted_once_and_never_taken_back(
    db_session: AsyncSession,
    test_user: User,
    user_today: date,
    enroll: Callable[..., Awaitable[EnrollmentResult]],
    habit_instance_service: HabitInstanceService,
):
    """Отметить, снять, снова отметить: на балансе 10 монет и одна запись в журнале."""
    await enroll(user_today)
    instance_id = await instance_id_on(db_session, "Evening wind-down", user_today)

    done = await habit_instance_service.toggle(
        db_session, current_user=test_user, instance_id=instance_id, completed=True
    )
    assert done.completed is True
    assert done.completed_at is not None
    assert done.reward_granted_at is not None
    assert test_user.reward_balance == 10

    undone = await habit_instance_service.toggle(
        db_session, current_user=test_user, instance_id=instance_id, completed=False
    )
    assert undone.completed is False
    assert undone.completed_at is None
    assert undone.reward_granted_at is not None
    assert test_user.reward_balance == 10

    await habit_instance_service.toggle(db_session, current_user=test_user, instance_id=instance_id, completed=True)
    assert test_user.reward_balance == 10

    rewards = await reward_rows(db_session, test_user.id)
    assert len(rewards) == 1
    assert rewards[0].amount == 10
    assert rewards[0].type == RewardType.EARN
    assert "Evening wind-down" in rewards[0].reason


async def test_repeated_completion_keeps_original_completed_at(
    db_session: AsyncSession,
    test_user: User,
    user_today: date,
    enroll: Callable[..., Awaitable[EnrollmentResult]],
    habit_instance_service: HabitInstanceService,
):
    await enroll(user_today)
    instance_id = await instance_id_on(db_session, "Evening wind-down", user_today)

    done = await habit_instance_service.toggle(
        db_session, current_user=test_user, instance_id=instance_id, completed=True
    )
    first_completed_at = datetime(2024, 1, 1, 8, 30, tzinfo=timezone.utc)
    done.completed_at = first_completed_at
    await db_session.commit()

    again = await habit_instance_service.toggle(
        db_session, current_user=test_user, instance_id=instance_id, completed=True
    )

    assert again.completed is True
    assert again.completed_at is not None
    assert again.completed_at.replace(tzinfo=None) == first_completed_at.replace(tzinfo=None)
    assert test_user.reward_balance == 10


async def test_toggle_foreign_instance_is_not_found(
    db_session: AsyncSession,
    test_user: User,
    other_user: User,
    user_today: date,
    enroll: Callable[..., Awaitable[EnrollmentResult]],
    habit_instance_service: HabitInstanceService,
):
    owner_id = test_user.id
    await enroll(user_today)
    instance_id = await instance_id_on(db_session, "Evening wind-down", user_today)

    with pytest.raises(NotFoundException):
        await habit_instance_service.toggle(
            db_session, current_user=other_user, instance_id=instance_id, completed=True
        )

    instance = await db_session.get(HabitInstance, instance_id, populate_existing=True)
    assert instance is not None
    assert instance.completed is False
    assert await reward_rows(db_session, owner_id) == []


async def test_get_today_groups_by_cadence(
    db_session: AsyncSession,
    test_user: User,
    user_today: date,
    enroll: Callable[..., Awaitable[EnrollmentResult]],
    habit_instance_service: HabitInstanceService,
):
    await enroll(user_today)

    today_habits = await habit_instance_service.get_today(db_session, current_user=test_user)

    assert today_habits.date == format_date(user_today)
    assert len(today_habits.habits) == 2
    assert set(today_habits.grouped) == {"daily", "weekly", "as-needed"}
    assert [habit.title for habit in today_habits.grouped["daily"]] == ["Evening wind-down"]
    assert [habit.title for habit in today_habits.grouped["weekly"]] == ["Sleep review"]
    assert today_habits.grouped["as-needed"] == []


async def test_get_today_without_enrollment_is_empty(
    db_session: AsyncSession, test_user: User, habit_instance_service: HabitInstanceService
):
    today_habits = await habit_instance_service.get_today(db_session, current_user=test_user)

    assert today_habits.habits == []
    assert all(group == [] for group in today_habits.grouped.values())


async def test_get_for_date_validates_format(
    db_session: AsyncSession,
    test_user: User,
    user_today: date,
    enroll: Callable[..., Awaitable[EnrollmentResult]],
    habit_instance_service: HabitInstanceService,
):
    await enroll(user_today)

    tomorrow = await habit_instance_service.get_for_date(
        db_session, current_user=test_user, date_str=format_date(add_days(user_today, 1))
    )
    assert [habit.title for habit in tomorrow] == ["Evening wind-down"]

    with pytest.raises(ValidationException) as exc_info:
        await habit_instance_service.get_for_date(db_session, current_user=test_user, date_str="2024/01/01")
    assert exc_info.value.loc == ["path", "date"]


async def test_get_detail_returns_live_template(
    db_session: AsyncSession,
    test_user: User,
    other_user: User,
    user_today: date,
    enroll: Callable[..., Awaitable[EnrollmentResult]],
    habit_instance_service: HabitInstanceService,
):
    await enroll(user_today)
    instance_id = await instance_id_on(db_session, "Evening wind-down", user_today)

    detail = await habit_instance_service.get_detail(db_session, current_user=test_user, instance_id=instance_id)
    assert detail.template is not None
    assert detail.template.title == "Evening wind-down"

    with pytest.raises(NotFoundException):
        await habit_instance_service.get_detail(db_session, current_user=other_user, instance_id=instance_id)


async def test_get_range_defaults_to_last_two_weeks(
    db_session: AsyncSession,
    test_user: User,
    user_today: date,
    enroll: Callable[..., Awaitable[EnrollmentResult]],
    habit_instance_service: HabitInstanceService,
):
    await enroll(add_days(user_today, -1))
    instance_id = await instance_id_on(db_session, "Evening wind-down", user_today)
    await habit_instance_service.toggle(db_session, current_user=test_user, instance_id=instance_id, completed=True)

    summary = await habit_instance_service.get_range(db_session, current_user=test_user)

    # Будущие дни программы в диапазон по умолчанию не попадают
    assert [(day.scheduled_date, day.total, day.completed) for day in summary] == [
        (add_days(user_today, -1), 2, 0),
        (user_today, 1, 1),
    ]


async def test_get_range_with_explicit_bounds(
    db_session: AsyncSession,
    test_user: User,
    user_today: date,
    enroll: Callable[..., Awaitable[EnrollmentResult]],
    habit_instance_service: HabitInstanceService,
):
    await enroll(user_today)

    summary = await habit_instance_service.get_range(
        db_session,
        current_user=test_user,
        start=format_date(add_days(user_today, 6)),
        end=format_date(add_days(user_today, 7)),
    )

    assert [(day.total, day.completed) for day in summary] == [(1, 0), (2, 0)]


async def test_get_range_rejects_inverted_bounds(
    db_session: AsyncSession, test_user: User, habit_instance_service: HabitInstanceService
):
    with pytest.raises(ValidationException) as exc_info:
        await habit_instance_service.get_range(
            db_session, current_user=test_user, start="2024-03-10", end="2024-03-01"
        )

    assert exc_info.value.error_type == "invalid_date_range"


async def test_get_stats_summarises_profile_and_totals(
    db_session: AsyncSession,
    test_user: User,
    user_today: date,
    enroll: Callable[..., Awaitable[EnrollmentResult]],
    habit_instance_service: HabitInstanceService,
):
    enrolled = await enroll(user_today)
    instance_id = await instance_id_on(db_session, "Evening wind-down", user_today)
    await habit_instance_service.toggle(db_session, current_user=test_user, instance_id=instance_id, completed=True)

    stats = await habit_instance_service.get_stats(db_session, current_user=test_user)

    assert stats.reward_balance == 10
    assert stats.current_streak == 1
    assert stats.longest_streak == 1
    assert stats.active_routine_id == "sleep-reset"
    assert stats.routine_intensity == "lite"
    assert (stats.total_habits, stats.completed_habits, stats.completion_rate) == (16, 1, 6)
    assert stats.active_enrollment is not None
    assert stats.active_enrollment.id == enrolled.enrollment.id


async def test_get_stats_without_habits(
    db_session: AsyncSession, test_user: User, habit_instance_service: HabitInstanceService
):
    stats = await habit_instance_service.get_stats(db_session, current_user=test_user)
    result = await db_session.execute(select(func.count(HabitInstance.id)))

    assert stats.total_habits == result.scalar_one() == 0
    assert stats.completion_rate == 0
    assert stats.active_enrollment is None

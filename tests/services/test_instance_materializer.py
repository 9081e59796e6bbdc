from datetime import date
from typing import Awaitable, Callable

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.dependencies import get_habit_instance_repository
from src.api.models import Cadence, HabitInstance, HabitTemplate, Intensity, Routine, User
from src.api.services import InstanceMaterializer, TemplateResolver
from src.api.services.instance_materializer import is_scheduled_on_day, plan_enrollment_instances


def make_template(
    cadence: Cadence = Cadence.DAILY,
    day_start: int | None = None,
    day_end: int | None = None,
    template_id: int = 1,
) -> HabitTemplate:
    return HabitTemplate(
        id=template_id,
        title="Habit",
        short_description="Short",
        description="Long",
        cadence=cadence,
        intensity=Intensity.LITE,
        day_start=day_start,
        day_end=day_end,
        order_index=0,
    )


def test_daily_template_respects_day_window():
    """Окно [5, 8] в программе на 14 дней дает ровно дни 5, 6, 7, 8."""
    template = make_template(day_start=5, day_end=8)

    days = [day for day in range(1, 15) if is_scheduled_on_day(template, day, 14)]

    assert days == [5, 6, 7, 8]


def test_window_defaults_to_whole_routine():
    template = make_template()

    days = [day for day in range(1, 15) if is_scheduled_on_day(template, day, 14)]

    assert days == list(range(1, 15))


def test_weekly_template_repeats_every_seven_days_from_window_start():
    assert [day for day in range(1, 15) if is_scheduled_on_day(make_template(Cadence.WEEKLY), day, 14)] == [1, 8]
    assert [
        day for day in range(1, 22) if is_scheduled_on_day(make_template(Cadence.WEEKLY, day_start=3), day, 21)
    ] == [3, 10, 17]


def test_as_needed_template_is_never_planned():
    template = make_template(Cadence.AS_NEEDED)

    assert not any(is_scheduled_on_day(template, day, 14) for day in range(1, 15))


def test_plan_uses_start_date_and_snapshots_short_description():
    start = date(2024, 2, 27)
    rows = plan_enrollment_instances(
        [make_template(day_end=4)], user_id=7, enrollment_id=3, start_date=start, duration_days=14
    )

    assert [row["scheduled_date"] for row in rows] == [
        date(2024, 2, 27),
        date(2024, 2, 28),
        date(2024, 2, 29),
        date(2024, 3, 1),
    ]
    assert [row["day_number"] for row in rows] == [1, 2, 3, 4]
    assert all(row["description"] == "Short" for row in rows)
    assert all(row["enrollment_id"] == 3 and row["user_id"] == 7 for row in rows)


@pytest.mark.parametrize("chunk_size", [1, 3, 500])
async def test_materialize_inserts_in_chunks(
    db_session: AsyncSession,
    test_user: User,
    sleep_routine: Routine,
    template_resolver: TemplateResolver,
    count_instances: Callable[..., Awaitable[int]],
    chunk_size: int,
):
    """Размер пачки не влияет на результат: 14 ежедневных + 2 еженедельных выполнения."""
    materializer = InstanceMaterializer(get_habit_instance_repository(), chunk_size=chunk_size)
    templates = await template_resolver.resolve(db_session, routine_id=sleep_routine.id, intensity=Intensity.LITE)

    inserted = await materializer.materialize(
        db_session,
        user_id=test_user.id,
        enrollment_id=1,
        templates=templates,
        start_date=date(2024, 5, 1),
        duration_days=sleep_routine.duration_days,
    )
    await db_session.commit()

    assert inserted == 16
    assert await count_instances(HabitInstance.user_id == test_user.id) == 16


async def test_materialize_skips_pairs_that_already_exist(
    db_session: AsyncSession,
    test_user: User,
    sleep_routine: Routine,
    template_resolver: TemplateResolver,
    materializer: InstanceMaterializer,
    count_instances: Callable[..., Awaitable[int]],
):
    """Повторное развертывание на пересекающиеся даты не создает дубликатов (шаблон, дата)."""
    templates = await template_resolver.resolve(db_session, routine_id=sleep_routine.id, intensity=Intensity.LITE)
    params = dict(user_id=test_user.id, templates=templates, duration_days=sleep_routine.duration_days)

    first = await materializer.materialize(db_session, enrollment_id=1, start_date=date(2024, 5, 1), **params)
    # Второе развертывание сдвинуто на 7 дней: первые 7 ежедневных дат и 8 мая для weekly уже заняты
    second = await materializer.materialize(db_session, enrollment_id=2, start_date=date(2024, 5, 8), **params)
    await db_session.commit()

    assert first == 16
    assert second == 7 + 1
    assert await count_instances(HabitInstance.user_id == test_user.id) == 24


async def test_insert_missing_always_keeps_rows_without_template(
    db_session: AsyncSession,
    test_user: User,
    materializer: InstanceMaterializer,
):
    row = {
        "user_id": test_user.id,
        "enrollment_id": None,
        "template_id": None,
        "title": "Custom",
        "description": None,
        "cadence": Cadence.DAILY,
        "scheduled_date": date(2024, 5, 1),
        "day_number": 1,
        "completed": False,
    }

    assert await materializer.insert_missing(db_session, user_id=test_user.id, rows=[row, dict(row)]) == 2
    assert await materializer.insert_missing(db_session, user_id=test_user.id, rows=[]) == 0

from datetime import date
from typing import Awaitable, Callable

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.exceptions import NotFoundException
from src.api.models import Cadence, HabitInstance, HabitTemplate, Routine, User
from src.api.schemas import CustomHabitSchemaCreate
from src.api.services import StandaloneAssignmentService
from src.api.services.standalone_assignment_service import plan_horizon
from src.api.utils.date_utils import add_days

ANCHOR = date(2024, 2, 20)


async def template_id_by_title(db_session: AsyncSession, title: str) -> int:
    result = await db_session.execute(select(HabitTemplate.id).where(HabitTemplate.title == title))
    return result.scalar_one()


def test_plan_horizon_sizes_follow_cadence():
    """Ежедневная на 30 дней, еженедельная 4 раза, по желанию один раз."""
    daily = plan_horizon(user_id=1, title="Walk", description=None, cadence=Cadence.DAILY, anchor=ANCHOR)
    weekly = plan_horizon(user_id=1, title="Walk", description=None, cadence=Cadence.WEEKLY, anchor=ANCHOR)
    as_needed = plan_horizon(user_id=1, title="Walk", description=None, cadence=Cadence.AS_NEEDED, anchor=ANCHOR)

    assert len(daily) == 30
    assert daily[0]["scheduled_date"] == ANCHOR
    assert daily[-1]["scheduled_date"] == add_days(ANCHOR, 29)
    assert [row["scheduled_date"] for row in weekly] == [add_days(ANCHOR, offset) for offset in (0, 7, 14, 21)]
    assert [row["scheduled_date"] for row in as_needed] == [ANCHOR]
    assert all(row["enrollment_id"] is None and row["template_id"] is None for row in daily)


def test_plan_horizon_accepts_custom_lengths():
    rows = plan_horizon(
        user_id=1, title="Walk", description=None, cadence=Cadence.DAILY, anchor=ANCHOR, daily_days=3, template_id=5
    )

    assert [row["day_number"] for row in rows] == [1, 2, 3]
    assert all(row["template_id"] == 5 for row in rows)


async def test_assign_is_idempotent(
    db_session: AsyncSession,
    test_user: User,
    sleep_routine: Routine,
    standalone_service: StandaloneAssignmentService,
    count_instances: Callable[..., Awaitable[int]],
):
    template_id = await template_id_by_title(db_session, "Evening wind-down")

    first = await standalone_service.assign(db_session, current_user=test_user, template_id=template_id)
    second = await standalone_service.assign(db_session, current_user=test_user, template_id=template_id)

    assert first.habits_scheduled == 30
    assert second.habits_scheduled == 0
    assert second.assignment.id == first.assignment.id
    assert first.assignment.is_custom is False
    assert first.assignment.title == "Evening wind-down"
    assert await count_instances(HabitInstance.template_id == template_id) == 30


async def test_unassign_keeps_history_and_reassign_reactivates(
    db_session: AsyncSession,
    test_user: User,
    sleep_routine: Routine,
    standalone_service: StandaloneAssignmentService,
    count_instances: Callable[..., Awaitable[int]],
):
    template_id = await template_id_by_title(db_session, "Sleep review")
    assigned = await standalone_service.assign(db_session, current_user=test_user, template_id=template_id)
    assert assigned.habits_scheduled == 4

    removed = await standalone_service.unassign(
        db_session, current_user=test_user, assignment_id=assigned.assignment.id
    )

    assert removed.is_active is False
    assert await standalone_service.list_assigned(db_session, current_user=test_user) == []
    assert await count_instances(HabitInstance.template_id == template_id) == 4

    again = await standalone_service.assign(db_session, current_user=test_user, template_id=template_id)

    assert again.assignment.id == assigned.assignment.id
    assert again.assignment.is_active is True
    assert again.habits_scheduled == 0
    assert [item.id for item in await standalone_service.list_assigned(db_session, current_user=test_user)] == [
        assigned.assignment.id
    ]


async def test_unassign_foreign_assignment_is_not_found(
    db_session: AsyncSession,
    test_user: User,
    other_user: User,
    sleep_routine: Routine,
    standalone_service: StandaloneAssignmentService,
):
    template_id = await template_id_by_title(db_session, "Nap")
    assigned = await standalone_service.assign(db_session, current_user=test_user, template_id=template_id)

    with pytest.raises(NotFoundException):
        await standalone_service.unassign(db_session, current_user=other_user, assignment_id=assigned.assignment.id)


async def test_assign_unknown_template_is_not_found(
    db_session: AsyncSession, test_user: User, standalone_service: StandaloneAssignmentService
):
    with pytest.raises(NotFoundException) as exc_info:
        await standalone_service.assign(db_session, current_user=test_user, template_id=404)

    assert exc_info.value.error_type == "habit_template_not_found"


async def test_create_custom_weekly_habit(
    db_session: AsyncSession,
    test_user: User,
    user_today: date,
    standalone_service: StandaloneAssignmentService,
    count_instances: Callable[..., Awaitable[int]],
):
    result = await standalone_service.create_custom(
        db_session,
        current_user=test_user,
        habit_in=CustomHabitSchemaCreate(title="Call grandma", cadence=Cadence.WEEKLY, recommended_time="evening"),
    )

    assert result.habits_scheduled == 4
    assert result.assignment.is_custom is True
    assert result.assignment.template_id is None
    assert result.assignment.recommended_time == "evening"
    assert await count_instances(HabitInstance.title == "Call grandma", HabitInstance.template_id.is_(None)) == 4
    assert await count_instances(HabitInstance.title == "Call grandma", HabitInstance.scheduled_date == user_today) == 1


async def test_catalog_merges_templates_with_same_title(
    db_session: AsyncSession,
    sleep_routine: Routine,
    create_routine: Callable[..., Awaitable[Routine]],
    create_template: Callable[..., Awaitable[HabitTemplate]],
    standalone_service: StandaloneAssignmentService,
):
    """Шаблоны, отличающиеся только регистром и пробелами, показываются одним элементом."""
    calm = await create_routine("calm-mind", name="Calm Mind", duration_days=7)
    await create_template("  evening WIND-DOWN ", routine_id=calm.id)

    catalog = await standalone_service.browse_catalog(db_session)
    by_title = {item.template.title.strip().lower(): item for item in catalog}

    assert len(catalog) == 4
    assert set(by_title) == {"evening wind-down", "sleep review", "cold shower", "nap"}
    assert by_title["evening wind-down"].routine_names == ["Calm Mind", "Sleep Reset"]
    assert by_title["sleep review"].routine_names == ["Sleep Reset"]

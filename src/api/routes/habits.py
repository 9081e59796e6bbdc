"""
Эндпоинты запланированных выполнений привычек.
"""

from typing import Annotated, Sequence

from fastapi import APIRouter, Query, status

from src.api.core.dependencies import CurrentUser, DBSession, HabitInstanceSvc, ReconciliationSvc
from src.api.models import HabitInstance
from src.api.schemas import (
    HabitDaySummarySchema,
    HabitInstanceDetailSchema,
    HabitInstanceSchemaRead,
    HabitInstanceToggle,
    ReconcileResultSchema,
    TodayHabitsSchema,
)

router = APIRouter(prefix="/habits", tags=["Habits"])


@router.get(
    "/today",
    response_model=TodayHabitsSchema,
    status_code=status.HTTP_200_OK,
    summary="Привычки на сегодня",
    description="Выполнения на сегодняшнюю дату пользователя, сгруппированные по периодичности.",
)
async def get_today_habits(
    db_session: DBSession,
    current_user: CurrentUser,
    habit_instance_service: HabitInstanceSvc,
) -> TodayHabitsSchema:
    today = await habit_instance_service.get_today(db_session, current_user=current_user)
    return TodayHabitsSchema.model_validate(today)


@router.get(
    "/date/{date}",
    response_model=Sequence[HabitInstanceSchemaRead],
    status_code=status.HTTP_200_OK,
    summary="Привычки на дату",
    description="Выполнения на указанную дату (YYYY-MM-DD).",
)
async def get_habits_for_date(
    db_session: DBSession,
    current_user: CurrentUser,
    habit_instance_service: HabitInstanceSvc,
    date: str,
) -> Sequence[HabitInstance]:
    """
    Получает выполнения на конкретную дату.

    Raises:
        ValidationException: Если дата не в формате YYYY-MM-DD или не существует.
    """
    return await habit_instance_service.get_for_date(db_session, current_user=current_user, date_str=date)


@router.get(
    "/range",
    response_model=list[HabitDaySummarySchema],
    status_code=status.HTTP_200_OK,
    summary="Агрегаты по дням",
    description="Число запланированных и выполненных привычек по дням. По умолчанию последние 14 дней.",
)
async def get_habits_range(
    db_session: DBSession,
    current_user: CurrentUser,
    habit_instance_service: HabitInstanceSvc,
    start: Annotated[str | None, Query(description="Начало диапазона (YYYY-MM-DD)")] = None,
    end: Annotated[str | None, Query(description="Конец диапазона (YYYY-MM-DD)")] = None,
) -> list[HabitDaySummarySchema]:
    summaries = await habit_instance_service.get_range(db_session, current_user=current_user, start=start, end=end)
    return [HabitDaySummarySchema.model_validate(summary) for summary in summaries]


@router.post(
    "/reconcile",
    response_model=ReconcileResultSchema,
    status_code=status.HTTP_200_OK,
    summary="Досоздание пропущенного дня",
    description="Создает недостающие выполнения на сегодня для активного зачисления. Повторный вызов ничего не меняет.",
)
async def reconcile_today(
    db_session: DBSession,
    current_user: CurrentUser,
    reconciliation_service: ReconciliationSvc,
) -> ReconcileResultSchema:
    result = await reconciliation_service.reconcile_for_user(db_session, current_user=current_user)
    return ReconcileResultSchema.model_validate(result)


@router.patch(
    "/{instance_id}/toggle",
    response_model=HabitInstanceSchemaRead,
    status_code=status.HTTP_200_OK,
    summary="Отметка выполнения",
    description="Отмечает выполнение или снимает отметку. Первая отметка начисляет монеты.",
)
async def toggle_habit(
    db_session: DBSession,
    current_user: CurrentUser,
    habit_instance_service: HabitInstanceSvc,
    instance_id: int,
    toggle_in: HabitInstanceToggle,
) -> HabitInstance:
    """
    Меняет отметку о выполнении и пересчитывает серии.

    Args:
        db_session: Асинхронная сессия базы данных.
        current_user: Аутентифицированный пользователь.
        habit_instance_service: Сервис выполнений.
        instance_id: ID выполнения.
        toggle_in: Новое значение отметки.

    Returns:
        HabitInstance: Обновленное выполнение.

    Raises:
        NotFoundException: Если выполнение не найдено или принадлежит другому пользователю.
    """
    return await habit_instance_service.toggle(
        db_session,
        current_user=current_user,
        instance_id=instance_id,
        completed=toggle_in.completed,
    )


@router.get(
    "/{instance_id}/detail",
    response_model=HabitInstanceDetailSchema,
    status_code=status.HTTP_200_OK,
    summary="Детали выполнения",
    description="Выполнение вместе с актуальными данными шаблона (инструкция, длительность).",
)
async def get_habit_detail(
    db_session: DBSession,
    current_user: CurrentUser,
    habit_instance_service: HabitInstanceSvc,
    instance_id: int,
) -> HabitInstance:
    return await habit_instance_service.get_detail(db_session, current_user=current_user, instance_id=instance_id)

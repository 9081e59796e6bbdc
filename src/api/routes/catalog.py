"""
Эндпоинты каталога привычек вне программ.
"""

from typing import Sequence

from fastapi import APIRouter, status

from src.api.core.dependencies import CurrentUser, DBSession, StandaloneSvc
from src.api.models import StandaloneAssignment
from src.api.schemas import (
    CatalogHabitSchemaRead,
    CustomHabitSchemaCreate,
    HabitTemplateSchemaRead,
    StandaloneAssignmentSchemaRead,
    StandaloneAssignResultSchema,
    StandaloneAssignSchema,
)

router = APIRouter(prefix="/catalog", tags=["Catalog"])


@router.get(
    "/habits",
    response_model=list[CatalogHabitSchemaRead],
    status_code=status.HTTP_200_OK,
    summary="Каталог привычек",
    description="Все шаблоны без повторов по названию, с программами, в которые они входят. Без аутентификации.",
)
async def browse_catalog(db_session: DBSession, standalone_service: StandaloneSvc) -> list[CatalogHabitSchemaRead]:
    items = await standalone_service.browse_catalog(db_session)

    return [
        CatalogHabitSchemaRead(
            **HabitTemplateSchemaRead.model_validate(item.template).model_dump(),
            routine_names=item.routine_names,
        )
        for item in items
    ]


@router.get(
    "/assigned",
    response_model=Sequence[StandaloneAssignmentSchemaRead],
    status_code=status.HTTP_200_OK,
    summary="Мои привычки вне программ",
)
async def list_assigned(
    db_session: DBSession,
    current_user: CurrentUser,
    standalone_service: StandaloneSvc,
) -> Sequence[StandaloneAssignment]:
    return await standalone_service.list_assigned(db_session, current_user=current_user)


@router.post(
    "/assign",
    response_model=StandaloneAssignResultSchema,
    status_code=status.HTTP_201_CREATED,
    summary="Подписка на привычку каталога",
    description="Подписывает на привычку и планирует выполнения: 30 дней, 4 недели или одно по необходимости.",
)
async def assign_habit(
    db_session: DBSession,
    current_user: CurrentUser,
    standalone_service: StandaloneSvc,
    assign_in: StandaloneAssignSchema,
) -> StandaloneAssignResultSchema:
    """
    Подписывает текущего пользователя на привычку из каталога.

    Raises:
        NotFoundException: Если шаблон не найден.
    """
    result = await standalone_service.assign(db_session, current_user=current_user, template_id=assign_in.template_id)
    return StandaloneAssignResultSchema.model_validate(result)


@router.post(
    "/custom",
    response_model=StandaloneAssignResultSchema,
    status_code=status.HTTP_201_CREATED,
    summary="Собственная привычка",
)
async def create_custom_habit(
    db_session: DBSession,
    current_user: CurrentUser,
    standalone_service: StandaloneSvc,
    habit_in: CustomHabitSchemaCreate,
) -> StandaloneAssignResultSchema:
    result = await standalone_service.create_custom(db_session, current_user=current_user, habit_in=habit_in)
    return StandaloneAssignResultSchema.model_validate(result)


@router.delete(
    "/assigned/{assignment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Отписка от привычки",
    description="Снимает подписку. Запланированные выполнения и отметки сохраняются.",
)
async def unassign_habit(
    db_session: DBSession,
    current_user: CurrentUser,
    standalone_service: StandaloneSvc,
    assignment_id: int,
) -> None:  # Возвращаем None, так как статус 204 No Content
    """
    Снимает подписку текущего пользователя.

    Raises:
        NotFoundException: Если подписка не найдена или принадлежит другому пользователю.
    """
    await standalone_service.unassign(db_session, current_user=current_user, assignment_id=assignment_id)

    return None

"""
Эндпоинты для работы с профилем участника.
"""

from fastapi import APIRouter, status

from src.api.core.dependencies import CurrentUser, DBSession, HabitInstanceSvc, UserSvc
from src.api.core.logging import api_log as log
from src.api.models import User
from src.api.schemas import UserSchemaRead, UserSchemaUpdate, UserStatsSchema

router = APIRouter(prefix="/users", tags=["Users"])


@router.get(
    "/me",
    response_model=UserSchemaRead,
    status_code=status.HTTP_200_OK,
    summary="Получение информации о текущем пользователе",
    description="Возвращает профиль аутентифицированного пользователя на основе JWT токена.",
)
async def read_users_me(current_user: CurrentUser) -> User:
    """
    Возвращает информацию о текущем аутентифицированном пользователе.

    Зависимость `CurrentUser` обрабатывает аутентификацию и возвращает
    объект `User` из базы данных.
    """
    log.info(f"Запрос информации о текущем пользователе: ID {current_user.id}")
    return current_user


@router.patch(
    "/me",
    response_model=UserSchemaRead,
    status_code=status.HTTP_200_OK,
    summary="Обновление информации о текущем пользователе",
    description="Позволяет изменить отображаемое имя и часовой пояс.",
)
async def update_user_me(
    db_session: DBSession,
    current_user: CurrentUser,
    user_service: UserSvc,
    user_update_data: UserSchemaUpdate,
) -> User:
    log.info(f"Обновление профиля пользователя ID {current_user.id} (внешний ID: {current_user.external_id})")

    return await user_service.update_profile(db_session, current_user=current_user, user_in=user_update_data)


@router.get(
    "/me/stats",
    response_model=UserStatsSchema,
    status_code=status.HTTP_200_OK,
    summary="Статистика участника",
    description="Баланс монет, серии, доля выполненных привычек и активное зачисление.",
)
async def read_users_me_stats(
    db_session: DBSession,
    current_user: CurrentUser,
    habit_instance_service: HabitInstanceSvc,
) -> UserStatsSchema:
    stats = await habit_instance_service.get_stats(db_session, current_user=current_user)
    return UserStatsSchema.model_validate(stats)

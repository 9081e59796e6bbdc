"""Сервис для работы с профилями участников."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.logging import api_log as log
from src.api.models import User
from src.api.repositories import UserRepository
from src.api.schemas import UserSchemaCreate, UserSchemaUpdate

from .base_service import BaseService


class UserService(BaseService[User, UserRepository, UserSchemaCreate, UserSchemaUpdate]):
    """
    Сервис для управления профилями участников.

    Поля движка (серии, баланс, активная программа) здесь не меняются,
    их пишут только сервисы зачислений и выполнений.
    """

    def __init__(self, user_repository: UserRepository):
        """
        Инициализирует сервис для репозитория UserRepository.

        Args:
            user_repository (UserRepository): Репозиторий для работы с пользователями.
        """
        super().__init__(repository=user_repository)

    async def update_profile(self, db_session: AsyncSession, *, current_user: User, user_in: UserSchemaUpdate) -> User:
        """
        Обновляет отображаемое имя и часовой пояс участника.

        Смена часового пояса меняет "сегодня" пользователя для всех последующих запросов.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            current_user (User): Аутентифицированный пользователь.
            user_in (UserSchemaUpdate): Данные для обновления.

        Returns:
            User: Обновленный объект пользователя.
        """
        # null в запросе означает "не менять"
        changes = user_in.model_dump(exclude_unset=True, exclude_none=True)
        updated_user = await super().update(db_session, db_obj=current_user, obj_id=current_user.id, obj_in=changes)

        log.info(f"Профиль пользователя ID {updated_user.id} обновлен: {changes}")
        return updated_user

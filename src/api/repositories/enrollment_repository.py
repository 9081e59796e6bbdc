"""Репозиторий для работы с моделью Enrollment."""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.api.core.logging import api_log as log
from src.api.models import Enrollment, EnrollmentStatus
from src.api.repositories import BaseRepository
from src.api.schemas import BaseSchema


class EnrollmentRepository(BaseRepository[Enrollment, BaseSchema, BaseSchema]):
    """
    Репозиторий для выполнения CRUD-операций с моделью Enrollment.

    Наследует общие методы от BaseRepository и содержит специфичные для Enrollment методы.
    """

    async def get_by_idempotency_key(self, db_session: AsyncSession, *, idempotency_key: str) -> Enrollment | None:
        """
        Получает зачисление по ключу идемпотентности.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            idempotency_key (str): SHA-256 ключ запроса на зачисление.

        Returns:
            Enrollment | None: Зачисление или None.
        """
        return await self.get_by_filter_first_or_none(db_session, self.model.idempotency_key == idempotency_key)

    async def get_active_for_user(
        self, db_session: AsyncSession, *, user_id: int, with_routine: bool = False
    ) -> Enrollment | None:
        """
        Получает активное зачисление пользователя.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            user_id (int): ID пользователя.
            with_routine (bool): Подгрузить программу.

        Returns:
            Enrollment | None: Активное зачисление или None.
        """
        statement = select(self.model).where(
            self.model.user_id == user_id,
            self.model.status == EnrollmentStatus.ACTIVE,
        )

        if with_routine:
            # populate_existing: зачисление может уже быть в сессии без загруженной программы
            statement = statement.options(selectinload(self.model.routine)).execution_options(populate_existing=True)

        result = await db_session.execute(statement.limit(1))
        enrollment = result.scalar_one_or_none()

        log.debug(
            f"Активное зачисление пользователя ID {user_id}: {f'ID {enrollment.id}' if enrollment else 'отсутствует'}."
        )
        return enrollment

    async def get_history_for_user(self, db_session: AsyncSession, *, user_id: int) -> Sequence[Enrollment]:
        """
        Все зачисления пользователя, новые первыми.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            user_id (int): ID пользователя.

        Returns:
            Sequence[Enrollment]: Зачисления пользователя.
        """
        return await self.get_multi_by_filter(
            db_session,
            self.model.user_id == user_id,
            limit=None,
            order_by=[self.model.created_at.desc(), self.model.id.desc()],
        )

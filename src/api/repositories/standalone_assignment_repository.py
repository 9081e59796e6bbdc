"""Репозиторий для работы с моделью StandaloneAssignment."""

from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from src.api.models import StandaloneAssignment
from src.api.repositories import BaseRepository
from src.api.schemas import BaseSchema


class StandaloneAssignmentRepository(BaseRepository[StandaloneAssignment, BaseSchema, BaseSchema]):
    """Репозиторий подписок на привычки вне программ."""

    async def get_by_user_and_template(
        self, db_session: AsyncSession, *, user_id: int, template_id: int
    ) -> StandaloneAssignment | None:
        """Подписка пользователя на шаблон (активная или снятая)."""
        return await self.get_by_filter_first_or_none(
            db_session,
            self.model.user_id == user_id,
            self.model.template_id == template_id,
        )

    async def get_by_id_for_user(
        self, db_session: AsyncSession, *, assignment_id: int, user_id: int
    ) -> StandaloneAssignment | None:
        """Подписка по ID, только если она принадлежит пользователю."""
        return await self.get_by_filter_first_or_none(
            db_session,
            self.model.id == assignment_id,
            self.model.user_id == user_id,
        )

    async def get_active_for_user(self, db_session: AsyncSession, *, user_id: int) -> Sequence[StandaloneAssignment]:
        """Активные подписки пользователя, новые первыми."""
        return await self.get_multi_by_filter(
            db_session,
            self.model.user_id == user_id,
            self.model.is_active.is_(True),
            limit=None,
            order_by=[self.model.created_at.desc(), self.model.id.desc()],
        )

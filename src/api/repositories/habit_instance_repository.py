"""Репозиторий для работы с моделью HabitInstance."""

from datetime import date
from typing import Iterable, Sequence

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.api.core.logging import api_log as log
from src.api.models import HabitInstance
from src.api.repositories import BaseRepository
from src.api.schemas import BaseSchema


class HabitInstanceRepository(BaseRepository[HabitInstance, BaseSchema, BaseSchema]):
    """
    Репозиторий для выполнения CRUD-операций с моделью HabitInstance.

    Наследует общие методы от BaseRepository и содержит специфичные для HabitInstance методы.
    """

    async def get_existing_template_dates(
        self,
        db_session: AsyncSession,
        *,
        user_id: int,
        template_ids: Iterable[int],
        date_from: date,
        date_to: date,
    ) -> set[tuple[int, date]]:
        """
        Пары (шаблон, дата), уже запланированные пользователю в диапазоне дат.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            user_id (int): ID пользователя.
            template_ids (Iterable[int]): ID шаблонов.
            date_from (date): Начало диапазона (включительно).
            date_to (date): Конец диапазона (включительно).

        Returns:
            set[tuple[int, date]]: Множество занятых пар.
        """
        ids = list(template_ids)
        if not ids:
            return set()

        statement = select(self.model.template_id, self.model.scheduled_date).where(
            self.model.user_id == user_id,
            self.model.template_id.in_(ids),
            self.model.scheduled_date >= date_from,
            self.model.scheduled_date <= date_to,
        )
        result = await db_session.execute(statement)
        pairs = {(template_id, scheduled_date) for template_id, scheduled_date in result.all()}

        log.debug(f"Пользователь ID {user_id}: {len(pairs)} уже запланированных пар в {date_from}..{date_to}.")
        return pairs

    async def exists_for_enrollment_on_date(
        self, db_session: AsyncSession, *, enrollment_id: int, scheduled_date: date
    ) -> bool:
        """Есть ли у зачисления хотя бы одно выполнение на дату."""
        count = await self.count_by_filter(
            db_session,
            self.model.enrollment_id == enrollment_id,
            self.model.scheduled_date == scheduled_date,
        )
        return count > 0

    async def get_for_user_on_date(
        self, db_session: AsyncSession, *, user_id: int, scheduled_date: date
    ) -> Sequence[HabitInstance]:
        """
        Выполнения пользователя на дату, отсортированные по названию.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            user_id (int): ID пользователя.
            scheduled_date (date): Дата.

        Returns:
            Sequence[HabitInstance]: Выполнения на дату.
        """
        return await self.get_multi_by_filter(
            db_session,
            self.model.user_id == user_id,
            self.model.scheduled_date == scheduled_date,
            limit=None,
            order_by=[self.model.title, self.model.id],
        )

    async def get_by_id_for_user(
        self,
        db_session: AsyncSession,
        *,
        instance_id: int,
        user_id: int,
        with_template: bool = False,
    ) -> HabitInstance | None:
        """
        Получает выполнение по ID, только если оно принадлежит пользователю.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            instance_id (int): ID выполнения.
            user_id (int): ID пользователя.
            with_template (bool): Подгрузить шаблон.

        Returns:
            HabitInstance | None: Выполнение или None.
        """
        statement = select(self.model).where(self.model.id == instance_id, self.model.user_id == user_id)

        if with_template:
            statement = statement.options(selectinload(self.model.template)).execution_options(populate_existing=True)

        result = await db_session.execute(statement)
        return result.scalar_one_or_none()

    async def get_completed_dates_desc(self, db_session: AsyncSession, *, user_id: int) -> list[date]:
        """
        Различные даты, в которые пользователь выполнил хотя бы одну привычку, по убыванию.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            user_id (int): ID пользователя.

        Returns:
            list[date]: Даты по убыванию.
        """
        statement = (
            select(self.model.scheduled_date)
            .where(self.model.user_id == user_id, self.model.completed.is_(True))
            .distinct()
            .order_by(self.model.scheduled_date.desc())
        )
        result = await db_session.execute(statement)
        return list(result.scalars().all())

    async def get_daily_summary(
        self, db_session: AsyncSession, *, user_id: int, date_from: date, date_to: date
    ) -> list[tuple[date, int, int]]:
        """
        Агрегаты (дата, всего, выполнено) по дням диапазона.

        Дни без запланированных выполнений в результат не попадают.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            user_id (int): ID пользователя.
            date_from (date): Начало диапазона (включительно).
            date_to (date): Конец диапазона (включительно).

        Returns:
            list[tuple[date, int, int]]: Агрегаты по возрастанию даты.
        """
        completed_count = func.sum(case((self.model.completed.is_(True), 1), else_=0))

        statement = (
            select(self.model.scheduled_date, func.count(self.model.id), completed_count)
            .where(
                self.model.user_id == user_id,
                self.model.scheduled_date >= date_from,
                self.model.scheduled_date <= date_to,
            )
            .group_by(self.model.scheduled_date)
            .order_by(self.model.scheduled_date)
        )
        result = await db_session.execute(statement)
        return [(day, int(total), int(completed or 0)) for day, total, completed in result.all()]

    async def get_totals_for_user(self, db_session: AsyncSession, *, user_id: int) -> tuple[int, int]:
        """
        Общее число запланированных и выполненных привычек пользователя.

        Returns:
            tuple[int, int]: (всего, выполнено).
        """
        completed_count = func.sum(case((self.model.completed.is_(True), 1), else_=0))

        statement = select(func.count(self.model.id), completed_count).where(self.model.user_id == user_id)
        result = await db_session.execute(statement)
        total, completed = result.one()
        return int(total), int(completed or 0)

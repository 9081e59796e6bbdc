"""Репозиторий для работы с шаблонами привычек."""

from collections import defaultdict
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.logging import api_log as log
from src.api.models import HabitRoutineAssignment, HabitTemplate, Routine
from src.api.repositories import BaseRepository
from src.api.schemas import BaseSchema


class HabitTemplateRepository(BaseRepository[HabitTemplate, BaseSchema, BaseSchema]):
    """
    Репозиторий шаблонов привычек.

    Шаблон связан с программой двумя путями: прямой ссылкой routine_id
    и таблицей habit_routine_assignments. Методы ниже читают каждый путь отдельно.
    """

    async def get_direct_for_routine(self, db_session: AsyncSession, *, routine_id: str) -> Sequence[HabitTemplate]:
        """
        Шаблоны, ссылающиеся на программу напрямую.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            routine_id (str): Идентификатор программы.

        Returns:
            Sequence[HabitTemplate]: Найденные шаблоны.
        """
        statement = select(self.model).where(self.model.routine_id == routine_id)
        result = await db_session.execute(statement)
        templates = result.scalars().all()

        log.debug(f"Программа '{routine_id}': {len(templates)} шаблонов по прямой ссылке.")
        return templates

    async def get_assigned_for_routine(
        self, db_session: AsyncSession, *, routine_id: str
    ) -> Sequence[HabitTemplate]:
        """
        Шаблоны, привязанные к программе через таблицу назначений.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            routine_id (str): Идентификатор программы.

        Returns:
            Sequence[HabitTemplate]: Найденные шаблоны.
        """
        statement = (
            select(self.model)
            .join(HabitRoutineAssignment, HabitRoutineAssignment.habit_template_id == self.model.id)
            .where(HabitRoutineAssignment.routine_id == routine_id)
        )
        result = await db_session.execute(statement)
        templates = result.scalars().all()

        log.debug(f"Программа '{routine_id}': {len(templates)} шаблонов через назначения.")
        return templates

    async def get_all_ordered(self, db_session: AsyncSession) -> Sequence[HabitTemplate]:
        """Все шаблоны в порядке (название, ID)."""
        statement = select(self.model).order_by(self.model.title, self.model.id)
        result = await db_session.execute(statement)
        return result.scalars().all()

    async def get_routine_names_by_template(self, db_session: AsyncSession) -> dict[int, set[str]]:
        """
        Названия программ для каждого шаблона по обоим путям привязки.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.

        Returns:
            dict[int, set[str]]: ID шаблона -> названия программ.
        """
        names: dict[int, set[str]] = defaultdict(set)

        direct_statement = select(self.model.id, Routine.name).join(Routine, Routine.id == self.model.routine_id)
        assigned_statement = select(HabitRoutineAssignment.habit_template_id, Routine.name).join(
            Routine, Routine.id == HabitRoutineAssignment.routine_id
        )

        for statement in (direct_statement, assigned_statement):
            result = await db_session.execute(statement)
            for template_id, routine_name in result.all():
                names[template_id].add(routine_name)

        return names

"""Сервис для чтения программ."""

from dataclasses import dataclass
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.exceptions import NotFoundException
from src.api.models import HabitTemplate, Intensity, Routine
from src.api.repositories import RoutineRepository
from src.api.schemas import BaseSchema

from .base_service import BaseService
from .template_resolver import TemplateResolver


@dataclass
class RoutineDetail:
    """Программа вместе с полным (intense) набором шаблонов."""

    routine: Routine
    habits: list[HabitTemplate]


class RoutineService(BaseService[Routine, RoutineRepository, BaseSchema, BaseSchema]):
    """Сервис программ. Программы только читаются."""

    def __init__(self, routine_repository: RoutineRepository, template_resolver: TemplateResolver):
        super().__init__(repository=routine_repository)
        self.template_resolver = template_resolver

    async def list_routines(self, db_session: AsyncSession, *, skip: int = 0, limit: int = 100) -> Sequence[Routine]:
        """Список программ в порядке sort_order."""
        return await self.get_list(db_session, skip=skip, limit=limit, sort_by="sort_order")

    async def get_with_habits(self, db_session: AsyncSession, *, routine_id: str) -> RoutineDetail:
        """
        Программа и все ее шаблоны (обе привязки, без фильтра интенсивности).

        Raises:
            NotFoundException: Программа не найдена.
        """
        routine = await self.repository.get_by_id(db_session, obj_id=routine_id)
        if routine is None:
            raise NotFoundException(message=f"Программа '{routine_id}' не найдена.", error_type="routine_not_found")

        habits = await self.template_resolver.resolve(db_session, routine_id=routine_id, intensity=Intensity.INTENSE)
        return RoutineDetail(routine=routine, habits=habits)

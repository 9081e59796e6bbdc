"""Разрешение набора шаблонов привычек для программы и интенсивности."""

from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.logging import api_log as log
from src.api.models import HabitTemplate, Intensity
from src.api.repositories import HabitTemplateRepository


def merge_templates(
    direct: Iterable[HabitTemplate],
    assigned: Iterable[HabitTemplate],
    intensity: Intensity,
) -> list[HabitTemplate]:
    """
    Объединяет шаблоны двух путей привязки и фильтрует их по интенсивности.

    lite оставляет только шаблоны lite, intense оставляет все шаблоны.
    Результат упорядочен по (order_index, id), поэтому не зависит от порядка строк из БД.

    Args:
        direct (Iterable[HabitTemplate]): Шаблоны с прямой ссылкой на программу.
        assigned (Iterable[HabitTemplate]): Шаблоны из таблицы назначений.
        intensity (Intensity): Интенсивность зачисления.

    Returns:
        list[HabitTemplate]: Уникальные по ID шаблоны.
    """
    unique: dict[int, HabitTemplate] = {}
    for template in (*direct, *assigned):
        unique.setdefault(template.id, template)

    templates = list(unique.values())
    if intensity == Intensity.LITE:
        templates = [template for template in templates if template.intensity == Intensity.LITE]

    return sorted(templates, key=lambda template: (template.order_index, template.id))


class TemplateResolver:
    """Вычисляет шаблоны привычек, которые применяются к зачислению. Без побочных эффектов."""

    def __init__(self, template_repository: HabitTemplateRepository):
        self.template_repository = template_repository

    async def resolve(self, db_session: AsyncSession, *, routine_id: str, intensity: Intensity) -> list[HabitTemplate]:
        """
        Возвращает шаблоны программы для указанной интенсивности.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            routine_id (str): Идентификатор программы.
            intensity (Intensity): Интенсивность.

        Returns:
            list[HabitTemplate]: Отсортированный список уникальных шаблонов.
        """
        direct = await self.template_repository.get_direct_for_routine(db_session, routine_id=routine_id)
        assigned = await self.template_repository.get_assigned_for_routine(db_session, routine_id=routine_id)

        templates = merge_templates(direct, assigned, intensity)

        log.debug(
            f"Программа '{routine_id}' ({intensity.value}): {len(direct)} прямых + {len(assigned)} назначенных "
            f"шаблонов -> {len(templates)} после объединения и фильтра."
        )
        return templates

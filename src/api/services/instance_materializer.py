"""
Развертывание шаблонов привычек в конкретные выполнения по датам.

Планирование (какие строки должны существовать) вынесено в чистые функции,
запись в БД выполняет InstanceMaterializer.
"""

from datetime import date
from typing import Any, Iterable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.config import settings
from src.api.core.logging import api_log as log
from src.api.models import Cadence, HabitTemplate
from src.api.repositories import HabitInstanceRepository
from src.api.utils.date_utils import add_days

# Интервал между выполнениями еженедельной привычки
WEEK_DAYS = 7


def is_scheduled_on_day(template: HabitTemplate, day_number: int, duration_days: int) -> bool:
    """
    Попадает ли шаблон в расписание на указанный день программы.

    Окно шаблона: [day_start, day_end], по умолчанию [1, duration_days].
    daily - каждый день окна, weekly - когда (day_number - day_start) кратно 7,
    as-needed заранее не планируется никогда.

    Args:
        template (HabitTemplate): Шаблон привычки.
        day_number (int): Номер дня программы (с 1).
        duration_days (int): Длительность программы в днях.

    Returns:
        bool: True, если в этот день нужно выполнение.
    """
    if template.cadence == Cadence.AS_NEEDED:
        return False

    day_start = template.day_start or 1
    day_end = template.day_end or duration_days

    if day_number < day_start or day_number > day_end:
        return False

    if template.cadence == Cadence.WEEKLY:
        return (day_number - day_start) % WEEK_DAYS == 0

    return True


def build_instance_row(
    *,
    user_id: int,
    title: str,
    description: str | None,
    cadence: Cadence,
    scheduled_date: date,
    day_number: int | None,
    enrollment_id: int | None = None,
    template_id: int | None = None,
) -> dict[str, Any]:
    """Строка для вставки в habit_instances (снимок текстов на момент создания)."""
    return {
        "user_id": user_id,
        "enrollment_id": enrollment_id,
        "template_id": template_id,
        "title": title,
        "description": description,
        "cadence": cadence,
        "scheduled_date": scheduled_date,
        "day_number": day_number,
        "completed": False,
    }


def plan_day_instances(
    templates: Iterable[HabitTemplate],
    *,
    user_id: int,
    enrollment_id: int,
    start_date: date,
    day_number: int,
    duration_days: int,
) -> list[dict[str, Any]]:
    """
    Строки выполнений для одного дня программы.

    Args:
        templates (Iterable[HabitTemplate]): Шаблоны зачисления.
        user_id (int): ID пользователя.
        enrollment_id (int): ID зачисления.
        start_date (date): Дата первого дня программы.
        day_number (int): Номер дня (с 1).
        duration_days (int): Длительность программы.

    Returns:
        list[dict[str, Any]]: Строки для вставки.
    """
    scheduled_date = add_days(start_date, day_number - 1)

    return [
        build_instance_row(
            user_id=user_id,
            enrollment_id=enrollment_id,
            template_id=template.id,
            title=template.title,
            description=template.snapshot_description,
            cadence=template.cadence,
            scheduled_date=scheduled_date,
            day_number=day_number,
        )
        for template in templates
        if is_scheduled_on_day(template, day_number, duration_days)
    ]


def plan_enrollment_instances(
    templates: Sequence[HabitTemplate],
    *,
    user_id: int,
    enrollment_id: int,
    start_date: date,
    duration_days: int,
) -> list[dict[str, Any]]:
    """Строки выполнений для всех дней программы, от 1 до duration_days."""
    rows: list[dict[str, Any]] = []

    for day_number in range(1, duration_days + 1):
        rows.extend(
            plan_day_instances(
                templates,
                user_id=user_id,
                enrollment_id=enrollment_id,
                start_date=start_date,
                day_number=day_number,
                duration_days=duration_days,
            )
        )

    return rows


class InstanceMaterializer:
    """
    Записывает запланированные выполнения в БД пачками.

    Пары (шаблон, дата), которые у пользователя уже есть, пропускаются,
    поэтому повторный вызов не создает дубликатов. Транзакцией управляет вызывающий сервис.
    """

    def __init__(self, instance_repository: HabitInstanceRepository, chunk_size: int | None = None):
        self.instance_repository = instance_repository
        self.chunk_size = chunk_size or settings.INSTANCE_INSERT_CHUNK_SIZE

    async def insert_missing(self, db_session: AsyncSession, *, user_id: int, rows: Sequence[dict[str, Any]]) -> int:
        """
        Вставляет строки, которых еще нет у пользователя.

        Строки без шаблона (собственные привычки) вставляются всегда.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            user_id (int): ID пользователя.
            rows (Sequence[dict[str, Any]]): Запланированные строки.

        Returns:
            int: Количество вставленных строк.
        """
        if not rows:
            return 0

        templated = [row for row in rows if row["template_id"] is not None]
        taken: set[tuple[int, date]] = set()

        if templated:
            taken = await self.instance_repository.get_existing_template_dates(
                db_session,
                user_id=user_id,
                template_ids={row["template_id"] for row in templated},
                date_from=min(row["scheduled_date"] for row in templated),
                date_to=max(row["scheduled_date"] for row in templated),
            )

        missing: list[dict[str, Any]] = []
        for row in rows:
            if row["template_id"] is not None:
                key = (row["template_id"], row["scheduled_date"])
                if key in taken:
                    continue
                taken.add(key)
            missing.append(row)

        skipped = len(rows) - len(missing)
        if skipped:
            log.info(f"Пользователь ID {user_id}: пропущено {skipped} уже запланированных выполнений.")

        return await self.instance_repository.bulk_insert(db_session, rows=missing, chunk_size=self.chunk_size)

    async def materialize(
        self,
        db_session: AsyncSession,
        *,
        user_id: int,
        enrollment_id: int,
        templates: Sequence[HabitTemplate],
        start_date: date,
        duration_days: int,
    ) -> int:
        """
        Разворачивает шаблоны зачисления на все дни программы.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            user_id (int): ID пользователя.
            enrollment_id (int): ID зачисления.
            templates (Sequence[HabitTemplate]): Шаблоны зачисления.
            start_date (date): Дата первого дня.
            duration_days (int): Длительность программы.

        Returns:
            int: Количество вставленных выполнений.
        """
        rows = plan_enrollment_instances(
            templates,
            user_id=user_id,
            enrollment_id=enrollment_id,
            start_date=start_date,
            duration_days=duration_days,
        )
        log.debug(f"Зачисление ID {enrollment_id}: запланировано {len(rows)} выполнений на {duration_days} дней.")

        return await self.insert_missing(db_session, user_id=user_id, rows=rows)

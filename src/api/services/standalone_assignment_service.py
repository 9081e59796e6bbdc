"""Сервис привычек вне программ: каталог, подписка, собственные привычки."""

from dataclasses import dataclass
from datetime import date
from typing import Any, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.config import settings
from src.api.core.exceptions import NotFoundException
from src.api.core.logging import api_log as log
from src.api.models import Cadence, HabitTemplate, StandaloneAssignment, User
from src.api.repositories import HabitTemplateRepository, StandaloneAssignmentRepository
from src.api.schemas import BaseSchema, CustomHabitSchemaCreate
from src.api.utils.date_utils import add_days, get_today_date_for_user

from .base_service import BaseService
from .instance_materializer import WEEK_DAYS, InstanceMaterializer, build_instance_row


def plan_horizon(
    *,
    user_id: int,
    title: str,
    description: str | None,
    cadence: Cadence,
    anchor: date,
    template_id: int | None = None,
    daily_days: int | None = None,
    weekly_occurrences: int | None = None,
) -> list[dict[str, Any]]:
    """
    Строки выполнений на фиксированный горизонт от даты anchor.

    daily - daily_days дней подряд, weekly - weekly_occurrences раз с шагом 7 дней,
    as-needed - одно выполнение на anchor.

    Args:
        user_id (int): ID пользователя.
        title (str): Название.
        description (str | None): Описание.
        cadence (Cadence): Периодичность.
        anchor (date): Первый день горизонта (сегодня пользователя).
        template_id (int | None): ID шаблона (None для собственной привычки).
        daily_days (int | None): Длина горизонта для daily.
        weekly_occurrences (int | None): Число повторов для weekly.

    Returns:
        list[dict[str, Any]]: Строки для вставки.
    """
    daily_days = daily_days or settings.STANDALONE_DAILY_HORIZON_DAYS
    weekly_occurrences = weekly_occurrences or settings.STANDALONE_WEEKLY_OCCURRENCES

    if cadence == Cadence.DAILY:
        offsets = list(range(daily_days))
    elif cadence == Cadence.WEEKLY:
        offsets = [index * WEEK_DAYS for index in range(weekly_occurrences)]
    else:
        offsets = [0]

    return [
        build_instance_row(
            user_id=user_id,
            template_id=template_id,
            title=title,
            description=description,
            cadence=cadence,
            scheduled_date=add_days(anchor, offset),
            day_number=offset + 1,
        )
        for offset in offsets
    ]


@dataclass
class CatalogItem:
    """Шаблон каталога с названиями программ, в которые он входит."""

    template: HabitTemplate
    routine_names: list[str]


@dataclass
class AssignResult:
    """Результат подписки."""

    assignment: StandaloneAssignment
    habits_scheduled: int


class StandaloneAssignmentService(
    BaseService[StandaloneAssignment, StandaloneAssignmentRepository, CustomHabitSchemaCreate, BaseSchema]
):
    """
    Сервис подписок на привычки вне программ.

    Подписки никогда не удаляются физически, история выполнений сохраняется.
    """

    def __init__(
        self,
        assignment_repository: StandaloneAssignmentRepository,
        template_repository: HabitTemplateRepository,
        materializer: InstanceMaterializer,
    ):
        """
        Инициализирует сервис.

        Args:
            assignment_repository (StandaloneAssignmentRepository): Репозиторий подписок.
            template_repository (HabitTemplateRepository): Репозиторий шаблонов.
            materializer (InstanceMaterializer): Запись выполнений.
        """
        super().__init__(repository=assignment_repository)
        self.template_repository = template_repository
        self.materializer = materializer

    async def browse_catalog(self, db_session: AsyncSession) -> list[CatalogItem]:
        """
        Каталог привычек без повторов по названию (без учета регистра и пробелов по краям).

        Названия программ у совпадающих по названию шаблонов объединяются.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.

        Returns:
            list[CatalogItem]: Элементы каталога в порядке названий.
        """
        templates = await self.template_repository.get_all_ordered(db_session)
        names_by_template = await self.template_repository.get_routine_names_by_template(db_session)

        catalog: dict[str, tuple[HabitTemplate, set[str]]] = {}
        for template in templates:
            key = template.title.strip().lower()
            names = names_by_template.get(template.id, set())

            if key in catalog:
                catalog[key][1].update(names)
            else:
                catalog[key] = (template, set(names))

        return [CatalogItem(template=template, routine_names=sorted(names)) for template, names in catalog.values()]

    async def list_assigned(self, db_session: AsyncSession, *, current_user: User) -> Sequence[StandaloneAssignment]:
        """Активные подписки пользователя."""
        return await self.repository.get_active_for_user(db_session, user_id=current_user.id)

    async def assign(self, db_session: AsyncSession, *, current_user: User, template_id: int) -> AssignResult:
        """
        Подписывает пользователя на привычку каталога и планирует горизонт выполнений.

        Снятая ранее подписка на тот же шаблон активируется повторно.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            current_user (User): Пользователь.
            template_id (int): ID шаблона.

        Returns:
            AssignResult: Подписка и число новых выполнений.

        Raises:
            NotFoundException: Шаблон не найден.
        """
        user_id = current_user.id

        template = await self.template_repository.get_by_id(db_session, obj_id=template_id)
        if template is None:
            log.warning(f"Пользователь ID {user_id} подписывается на несуществующий шаблон ID {template_id}.")
            raise NotFoundException(
                message=f"Привычка каталога ID {template_id} не найдена.",
                error_type="habit_template_not_found",
                loc=["body", "template_id"],
            )

        try:
            assignment = await self.repository.get_by_user_and_template(
                db_session, user_id=user_id, template_id=template_id
            )

            if assignment is None:
                assignment = await self.repository.create(
                    db_session,
                    obj_in={
                        "user_id": user_id,
                        "template_id": template.id,
                        "title": template.title,
                        "description": template.snapshot_description,
                        "cadence": template.cadence,
                        "recommended_time": template.recommended_time,
                        "is_custom": False,
                        "is_active": True,
                    },
                )
            elif not assignment.is_active:
                assignment.is_active = True
                log.info(f"Подписка ID {assignment.id} пользователя ID {user_id} активирована повторно.")

            rows = plan_horizon(
                user_id=user_id,
                template_id=template.id,
                title=template.title,
                description=template.snapshot_description,
                cadence=template.cadence,
                anchor=get_today_date_for_user(current_user),
            )
            added = await self.materializer.insert_missing(db_session, user_id=user_id, rows=rows)

            await db_session.commit()

        except Exception as exc:
            await db_session.rollback()
            log.error(f"Ошибка подписки пользователя ID {user_id} на шаблон ID {template_id}: {exc}", exc_info=True)
            raise exc

        log.info(f"Пользователь ID {user_id} подписан на шаблон ID {template_id}, запланировано {added} выполнений.")
        return AssignResult(assignment=assignment, habits_scheduled=added)

    async def create_custom(
        self, db_session: AsyncSession, *, current_user: User, habit_in: CustomHabitSchemaCreate
    ) -> AssignResult:
        """
        Создает собственную привычку пользователя и планирует горизонт выполнений.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            current_user (User): Пользователь.
            habit_in (CustomHabitSchemaCreate): Данные привычки.

        Returns:
            AssignResult: Подписка и число новых выполнений.
        """
        user_id = current_user.id

        try:
            assignment = await self.repository.create(
                db_session,
                obj_in={**habit_in.model_dump(), "user_id": user_id, "template_id": None, "is_custom": True},
            )

            rows = plan_horizon(
                user_id=user_id,
                title=habit_in.title,
                description=habit_in.description,
                cadence=habit_in.cadence,
                anchor=get_today_date_for_user(current_user),
            )
            added = await self.materializer.insert_missing(db_session, user_id=user_id, rows=rows)

            await db_session.commit()

        except Exception as exc:
            await db_session.rollback()
            log.error(f"Ошибка создания собственной привычки пользователя ID {user_id}: {exc}", exc_info=True)
            raise exc

        log.info(f"Пользователь ID {user_id} создал привычку '{habit_in.title}', запланировано {added} выполнений.")
        return AssignResult(assignment=assignment, habits_scheduled=added)

    async def unassign(self, db_session: AsyncSession, *, current_user: User, assignment_id: int) -> StandaloneAssignment:
        """
        Снимает подписку (is_active=False). Выполнения и отметки сохраняются.

        Raises:
            NotFoundException: Подписка не найдена или принадлежит другому пользователю.
        """
        assignment = await self.repository.get_by_id_for_user(
            db_session, assignment_id=assignment_id, user_id=current_user.id
        )
        if assignment is None:
            raise NotFoundException(
                message=f"Подписка ID {assignment_id} не найдена.",
                error_type="assignment_not_found",
            )

        return await self.update(db_session, db_obj=assignment, obj_id=assignment_id, obj_in={"is_active": False})

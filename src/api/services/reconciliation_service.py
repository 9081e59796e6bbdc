"""Досоздание пропущенных выполнений на сегодня для активного зачисления."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.logging import api_log as log
from src.api.models import EnrollmentStatus, User
from src.api.repositories import EnrollmentRepository, HabitInstanceRepository
from src.api.utils.date_utils import day_difference, format_date, get_today_date_for_user

from .instance_materializer import InstanceMaterializer, plan_day_instances
from .template_resolver import TemplateResolver


@dataclass(frozen=True)
class ReconcileResult:
    """Результат досоздания."""

    reconciled: bool
    habits_added: int


NOTHING_RECONCILED = ReconcileResult(reconciled=False, habits_added=0)


class ReconciliationService:
    """
    Лечит пропуски расписания: пользователь не открывал приложение, сервер был недоступен
    или день сместился из-за часового пояса.

    Вызов идемпотентен: повторный запуск в тот же день ничего не добавляет.
    """

    def __init__(
        self,
        enrollment_repository: EnrollmentRepository,
        instance_repository: HabitInstanceRepository,
        template_resolver: TemplateResolver,
        materializer: InstanceMaterializer,
    ):
        self.enrollment_repository = enrollment_repository
        self.instance_repository = instance_repository
        self.template_resolver = template_resolver
        self.materializer = materializer

    async def reconcile(self, db_session: AsyncSession, *, current_user: User, enrollment_id: int) -> ReconcileResult:
        """
        Досоздает выполнения на сегодня для зачисления, если их нет.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            current_user (User): Пользователь.
            enrollment_id (int): ID зачисления.

        Returns:
            ReconcileResult: Добавлено ли что-то и сколько.
        """
        user_id = current_user.id
        today = get_today_date_for_user(current_user)

        enrollment = await self.enrollment_repository.get_by_id(db_session, obj_id=enrollment_id)
        if enrollment is None or enrollment.user_id != user_id or enrollment.status != EnrollmentStatus.ACTIVE:
            log.debug(f"Досоздание пропущено: зачисление ID {enrollment_id} не активно у пользователя ID {user_id}.")
            return NOTHING_RECONCILED

        if await self.instance_repository.exists_for_enrollment_on_date(
            db_session, enrollment_id=enrollment.id, scheduled_date=today
        ):
            log.debug(f"Зачисление ID {enrollment.id}: выполнения на {format_date(today)} уже есть.")
            return NOTHING_RECONCILED

        if today < enrollment.start_date or today > enrollment.end_date:
            log.debug(f"Зачисление ID {enrollment.id}: {format_date(today)} вне периода программы.")
            return NOTHING_RECONCILED

        day_number = day_difference(today, enrollment.start_date) + 1
        duration_days = day_difference(enrollment.end_date, enrollment.start_date)

        try:
            templates = await self.template_resolver.resolve(
                db_session, routine_id=enrollment.routine_id, intensity=enrollment.intensity
            )
            rows = plan_day_instances(
                templates,
                user_id=user_id,
                enrollment_id=enrollment.id,
                start_date=enrollment.start_date,
                day_number=day_number,
                duration_days=duration_days,
            )
            added = await self.materializer.insert_missing(db_session, user_id=user_id, rows=rows)

            await db_session.commit()

        except Exception as exc:
            await db_session.rollback()
            log.error(f"Ошибка досоздания выполнений для зачисления ID {enrollment_id}: {exc}", exc_info=True)
            raise exc

        if added:
            log.info(f"Зачисление ID {enrollment_id}: досоздано {added} выполнений на день {day_number}.")

        return ReconcileResult(reconciled=added > 0, habits_added=added)

    async def reconcile_for_user(self, db_session: AsyncSession, *, current_user: User) -> ReconcileResult:
        """
        Досоздание для активного зачисления пользователя.

        Ошибки не пробрасываются: пропущенный день будет досоздан при следующем вызове.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            current_user (User): Пользователь.

        Returns:
            ReconcileResult: Результат или "ничего не добавлено" при ошибке.
        """
        user_id = current_user.id

        try:
            active = await self.enrollment_repository.get_active_for_user(db_session, user_id=user_id)
            if active is None:
                return NOTHING_RECONCILED

            return await self.reconcile(db_session, current_user=current_user, enrollment_id=active.id)

        except Exception as exc:
            await db_session.rollback()
            log.error(f"Досоздание для пользователя ID {user_id} не выполнено, повторится позже: {exc}")
            return NOTHING_RECONCILED

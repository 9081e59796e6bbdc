"""Сервис зачисления в программы: создание расписания, пауза, отказ."""

import hashlib
from dataclasses import dataclass
from datetime import date
from typing import Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.exceptions import ConflictException, NotFoundException, SchedulingFailureException
from src.api.core.logging import api_log as log
from src.api.models import Enrollment, EnrollmentStatus, Intensity, User
from src.api.repositories import (
    EnrollmentRepository,
    HabitInstanceRepository,
    RoutineRepository,
    UserRepository,
)
from src.api.schemas import BaseSchema, EnrollmentSchemaCreate
from src.api.utils.date_utils import add_days, format_date, parse_date

from .base_service import BaseService
from .instance_materializer import InstanceMaterializer
from .template_resolver import TemplateResolver


def build_idempotency_key(user_id: int, routine_id: str, start_date: date, intensity: Intensity) -> str:
    """
    Детерминированный отпечаток запроса на зачисление.

    Args:
        user_id (int): ID пользователя.
        routine_id (str): Идентификатор программы.
        start_date (date): Дата начала.
        intensity (Intensity): Интенсивность.

    Returns:
        str: SHA-256 в шестнадцатеричном виде.
    """
    raw = f"{user_id}:{routine_id}:{format_date(start_date)}:{intensity.value}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


@dataclass
class EnrollmentResult:
    """Результат зачисления."""

    enrollment: Enrollment
    habits_scheduled: int
    already_enrolled: bool


class EnrollmentService(BaseService[Enrollment, EnrollmentRepository, EnrollmentSchemaCreate, BaseSchema]):
    """
    Сервис зачислений.

    Единственный, кто меняет статус зачислений и указатель активной программы в профиле.
    Зачисление целиком (пауза предыдущего, новая запись, указатель, выполнения) выполняется
    в одной транзакции, поэтому при ошибке откатывается все вместе.
    """

    def __init__(
        self,
        enrollment_repository: EnrollmentRepository,
        user_repository: UserRepository,
        routine_repository: RoutineRepository,
        instance_repository: HabitInstanceRepository,
        template_resolver: TemplateResolver,
        materializer: InstanceMaterializer,
    ):
        """
        Инициализирует сервис зачислений.

        Args:
            enrollment_repository (EnrollmentRepository): Репозиторий зачислений.
            user_repository (UserRepository): Репозиторий пользователей (блокировка профиля).
            routine_repository (RoutineRepository): Репозиторий программ.
            instance_repository (HabitInstanceRepository): Репозиторий выполнений (подсчет).
            template_resolver (TemplateResolver): Разрешение шаблонов программы.
            materializer (InstanceMaterializer): Запись выполнений.
        """
        super().__init__(repository=enrollment_repository)
        self.user_repository = user_repository
        self.routine_repository = routine_repository
        self.instance_repository = instance_repository
        self.template_resolver = template_resolver
        self.materializer = materializer

    async def _replay_or_conflict(self, db_session: AsyncSession, *, idempotency_key: str, user_id: int) -> Enrollment:
        """
        Разбирает нарушение уникальности после отката транзакции.

        Если параллельный идентичный запрос уже создал зачисление, возвращаем его,
        иначе параллельный запрос с другими параметрами успел раньше.

        Raises:
            ConflictException: Если у пользователя уже есть другое активное зачисление.
        """
        existing = await self.repository.get_by_idempotency_key(db_session, idempotency_key=idempotency_key)

        if existing:
            log.info(f"Параллельный повтор зачисления пользователя ID {user_id}, возвращаем ID {existing.id}.")
            return existing

        log.warning(f"Параллельное зачисление пользователя ID {user_id} с другими параметрами отклонено.")
        raise ConflictException(
            message="Другое зачисление этого пользователя обрабатывается одновременно. Повторите запрос.",
            error_type="enrollment_conflict",
        )

    async def enroll(
        self,
        db_session: AsyncSession,
        *,
        current_user: User,
        enrollment_in: EnrollmentSchemaCreate,
    ) -> EnrollmentResult:
        """
        Зачисляет пользователя в программу и строит расписание выполнений.

        Повтор идентичного запроса (тот же пользователь, программа, дата начала и интенсивность)
        возвращает ранее созданное зачисление без изменений.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            current_user (User): Аутентифицированный пользователь.
            enrollment_in (EnrollmentSchemaCreate): Параметры зачисления.

        Returns:
            EnrollmentResult: Зачисление, число запланированных выполнений и флаг повтора.

        Raises:
            ValidationException: Некорректная дата начала.
            NotFoundException: Программа не найдена.
            ConflictException: Параллельное зачисление с другими параметрами.
            SchedulingFailureException: Ошибка построения расписания (все изменения откатаны).
        """
        # После rollback атрибуты ORM объектов истекают, поэтому ID сохраняем заранее
        user_id = current_user.id
        routine_id = enrollment_in.routine_id
        intensity = enrollment_in.intensity
        start_date = parse_date(enrollment_in.start_date, loc=["body", "start_date"])
        idempotency_key = build_idempotency_key(user_id, routine_id, start_date, intensity)

        log.info(
            f"Зачисление пользователя ID {user_id} в программу '{routine_id}' "
            f"с {format_date(start_date)} ({intensity.value})."
        )

        try:
            # Блокировка профиля сериализует зачисления одного пользователя
            user = await self.user_repository.get_by_id(db_session, obj_id=user_id, for_update=True)
            if user is None:
                raise NotFoundException(message=f"Пользователь ID {user_id} не найден.", error_type="user_not_found")

            existing = await self.repository.get_by_idempotency_key(db_session, idempotency_key=idempotency_key)
            if existing:
                # Снимаем блокировку, изменений в транзакции нет
                await db_session.commit()
                log.info(f"Повтор запроса на зачисление: возвращаем существующее зачисление ID {existing.id}.")
                return EnrollmentResult(enrollment=existing, habits_scheduled=0, already_enrolled=True)

            routine = await self.routine_repository.get_by_id(db_session, obj_id=routine_id)
            if routine is None:
                log.warning(f"Зачисление в несуществующую программу '{routine_id}'.")
                raise NotFoundException(
                    message=f"Программа '{routine_id}' не найдена.",
                    error_type="routine_not_found",
                    loc=["body", "routine_id"],
                )

            previous = await self.repository.get_active_for_user(db_session, user_id=user_id)
            if previous:
                previous.status = EnrollmentStatus.PAUSED
                await db_session.flush()
                log.info(f"Предыдущее зачисление ID {previous.id} приостановлено.")

            enrollment = await self.repository.create(
                db_session,
                obj_in={
                    "user_id": user_id,
                    "routine_id": routine.id,
                    "start_date": start_date,
                    "end_date": add_days(start_date, routine.duration_days),
                    "status": EnrollmentStatus.ACTIVE,
                    "intensity": intensity,
                    "idempotency_key": idempotency_key,
                },
            )
            duration_days = routine.duration_days

        except IntegrityError as exc:
            await db_session.rollback()
            log.warning(f"Нарушение уникальности при зачислении пользователя ID {user_id}: {exc.orig}")

            replayed = await self._replay_or_conflict(db_session, idempotency_key=idempotency_key, user_id=user_id)
            return EnrollmentResult(enrollment=replayed, habits_scheduled=0, already_enrolled=True)

        except Exception:
            await db_session.rollback()
            raise

        try:
            user.active_routine_id = routine_id
            user.routine_intensity = intensity

            templates = await self.template_resolver.resolve(db_session, routine_id=routine_id, intensity=intensity)
            await self.materializer.materialize(
                db_session,
                user_id=user_id,
                enrollment_id=enrollment.id,
                templates=templates,
                start_date=start_date,
                duration_days=duration_days,
            )
            habits_scheduled = await self.instance_repository.count_by_filter(
                db_session, self.instance_repository.model.enrollment_id == enrollment.id
            )

            await db_session.commit()

        except Exception as exc:
            # Откат возвращает предыдущее зачисление в active и восстанавливает указатель профиля
            await db_session.rollback()
            log.error(
                f"Ошибка построения расписания для пользователя ID {user_id}, программа '{routine_id}': {exc}",
                exc_info=True,
            )
            raise SchedulingFailureException() from exc

        log.success(
            f"Пользователь ID {user_id} зачислен в '{routine_id}' (зачисление ID {enrollment.id}), "
            f"запланировано {habits_scheduled} выполнений."
        )
        return EnrollmentResult(enrollment=enrollment, habits_scheduled=habits_scheduled, already_enrolled=False)

    async def _finish_active(
        self, db_session: AsyncSession, *, current_user: User, new_status: EnrollmentStatus
    ) -> Enrollment | None:
        """
        Переводит активное зачисление пользователя в new_status и очищает указатель профиля.

        Returns:
            Enrollment | None: Измененное зачисление или None, если активного нет.
        """
        user_id = current_user.id

        try:
            user = await self.user_repository.get_by_id(db_session, obj_id=user_id, for_update=True)
            active = await self.repository.get_active_for_user(db_session, user_id=user_id)

            if active is None or user is None:
                await db_session.commit()
                log.info(f"У пользователя ID {user_id} нет активного зачисления для перевода в {new_status.value}.")
                return None

            active.status = new_status
            user.active_routine_id = None
            user.routine_intensity = None

            await db_session.commit()

        except Exception as exc:
            await db_session.rollback()
            log.error(
                f"Ошибка при переводе зачисления пользователя ID {user_id} в {new_status.value}: {exc}",
                exc_info=True,
            )
            raise exc

        log.info(f"Зачисление ID {active.id} пользователя ID {user_id} переведено в {new_status.value}.")
        return active

    async def pause(self, db_session: AsyncSession, *, current_user: User) -> Enrollment | None:
        """Приостанавливает активное зачисление (active -> paused)."""
        return await self._finish_active(db_session, current_user=current_user, new_status=EnrollmentStatus.PAUSED)

    async def abandon(self, db_session: AsyncSession, *, current_user: User) -> Enrollment | None:
        """Завершает активное зачисление без возможности возобновления (active -> abandoned)."""
        return await self._finish_active(db_session, current_user=current_user, new_status=EnrollmentStatus.ABANDONED)

    async def get_active(self, db_session: AsyncSession, *, current_user: User) -> Enrollment | None:
        """Активное зачисление пользователя вместе с программой."""
        return await self.repository.get_active_for_user(db_session, user_id=current_user.id, with_routine=True)

    async def get_history(self, db_session: AsyncSession, *, current_user: User) -> Sequence[Enrollment]:
        """Все зачисления пользователя, новые первыми."""
        return await self.repository.get_history_for_user(db_session, user_id=current_user.id)

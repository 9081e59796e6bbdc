"""Сервис для работы с запланированными выполнениями привычек."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.config import settings
from src.api.core.exceptions import NotFoundException, ValidationException
from src.api.core.logging import api_log as log
from src.api.models import Cadence, Enrollment, HabitInstance, RewardType, User
from src.api.repositories import (
    EnrollmentRepository,
    HabitInstanceRepository,
    RewardTransactionRepository,
    UserRepository,
)
from src.api.schemas import BaseSchema
from src.api.utils.date_utils import add_days, format_date, get_today_date_for_user, parse_date

from .base_service import BaseService
from .streak_service import StreakService


@dataclass
class TodayHabits:
    """Выполнения на сегодня, сгруппированные по периодичности."""

    date: str
    habits: list[HabitInstance]
    grouped: dict[str, list[HabitInstance]] = field(default_factory=dict)


@dataclass
class DaySummary:
    """Агрегат выполнений за день."""

    scheduled_date: date
    total: int
    completed: int


@dataclass
class UserStats:
    """Сводная статистика пользователя."""

    reward_balance: int
    current_streak: int
    longest_streak: int
    active_routine_id: str | None
    routine_intensity: str | None
    total_habits: int
    completed_habits: int
    completion_rate: int
    active_enrollment: Enrollment | None


def group_by_cadence(instances: Sequence[HabitInstance]) -> dict[str, list[HabitInstance]]:
    """
    Группирует выполнения по периодичности, внутри группы - по названию.

    Все три группы присутствуют в результате, даже пустые.
    """
    grouped: dict[str, list[HabitInstance]] = {cadence.value: [] for cadence in Cadence}

    for instance in instances:
        grouped[instance.cadence.value].append(instance)

    for items in grouped.values():
        items.sort(key=lambda instance: (instance.title.lower(), instance.id))

    return grouped


def completion_rate(total: int, completed: int) -> int:
    """Доля выполненных в процентах, округленная до целого."""
    if total <= 0:
        return 0
    return round(completed / total * 100)


class HabitInstanceService(BaseService[HabitInstance, HabitInstanceRepository, BaseSchema, BaseSchema]):
    """
    Сервис выполнений привычек: списки по датам, отметка выполнения, агрегаты и статистика.

    Отметка выполнения начисляет награду один раз на выполнение и никогда ее не списывает.
    """

    def __init__(
        self,
        instance_repository: HabitInstanceRepository,
        user_repository: UserRepository,
        enrollment_repository: EnrollmentRepository,
        reward_repository: RewardTransactionRepository,
        streak_service: StreakService,
    ):
        """
        Инициализирует сервис.

        Args:
            instance_repository (HabitInstanceRepository): Репозиторий выполнений.
            user_repository (UserRepository): Репозиторий пользователей (блокировка профиля).
            enrollment_repository (EnrollmentRepository): Репозиторий зачислений (статистика).
            reward_repository (RewardTransactionRepository): Журнал наград.
            streak_service (StreakService): Пересчет серий.
        """
        super().__init__(repository=instance_repository)
        self.user_repository = user_repository
        self.enrollment_repository = enrollment_repository
        self.reward_repository = reward_repository
        self.streak_service = streak_service

    async def get_today(self, db_session: AsyncSession, *, current_user: User) -> TodayHabits:
        """
        Выполнения на сегодняшнюю дату пользователя.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            current_user (User): Пользователь.

        Returns:
            TodayHabits: Дата, список и группы daily/weekly/as-needed.
        """
        today = get_today_date_for_user(current_user)
        instances = await self.repository.get_for_user_on_date(
            db_session, user_id=current_user.id, scheduled_date=today
        )

        log.debug(f"Пользователь ID {current_user.id}: {len(instances)} выполнений на {format_date(today)}.")
        return TodayHabits(date=format_date(today), habits=list(instances), grouped=group_by_cadence(instances))

    async def get_for_date(self, db_session: AsyncSession, *, current_user: User, date_str: str) -> Sequence[HabitInstance]:
        """
        Выполнения на указанную дату.

        Raises:
            ValidationException: Некорректный формат даты.
        """
        scheduled_date = parse_date(date_str, loc=["path", "date"])
        return await self.repository.get_for_user_on_date(
            db_session, user_id=current_user.id, scheduled_date=scheduled_date
        )

    async def get_detail(self, db_session: AsyncSession, *, current_user: User, instance_id: int) -> HabitInstance:
        """
        Выполнение вместе с актуальным шаблоном.

        Raises:
            NotFoundException: Выполнение не найдено или принадлежит другому пользователю.
        """
        instance = await self.repository.get_by_id_for_user(
            db_session, instance_id=instance_id, user_id=current_user.id, with_template=True
        )
        if instance is None:
            raise NotFoundException(message=f"Привычка ID {instance_id} не найдена.", error_type="habit_not_found")

        return instance

    async def toggle(
        self, db_session: AsyncSession, *, current_user: User, instance_id: int, completed: bool
    ) -> HabitInstance:
        """
        Отмечает выполнение привычки или снимает отметку.

        Первая отметка выполнения начисляет COINS_PER_HABIT_COMPLETION монет и пишет запись
        в журнал наград. Снятие отметки монеты не списывает, повторная отметка их не начисляет.
        После изменения пересчитываются серии.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            current_user (User): Пользователь.
            instance_id (int): ID выполнения.
            completed (bool): Новое значение отметки.

        Returns:
            HabitInstance: Обновленное выполнение.

        Raises:
            NotFoundException: Выполнение не найдено или принадлежит другому пользователю.
        """
        user_id = current_user.id

        try:
            # Блокируем профиль: баланс и серии меняются в этой транзакции
            user = await self.user_repository.get_by_id(db_session, obj_id=user_id, for_update=True)
            instance = await self.repository.get_by_id_for_user(db_session, instance_id=instance_id, user_id=user_id)

            if instance is None or user is None:
                log.warning(f"Пользователь ID {user_id} отмечает несуществующую или чужую привычку ID {instance_id}.")
                raise NotFoundException(message=f"Привычка ID {instance_id} не найдена.", error_type="habit_not_found")

            now = datetime.now(timezone.utc)
            # Повторная отметка уже выполненной привычки сохраняет исходное время выполнения
            if completed and not instance.completed:
                instance.completed_at = now
            elif not completed:
                instance.completed_at = None
            instance.completed = completed

            if completed and instance.reward_granted_at is None:
                instance.reward_granted_at = now
                user.reward_balance = (user.reward_balance or 0) + settings.COINS_PER_HABIT_COMPLETION
                await self.reward_repository.create(
                    db_session,
                    obj_in={
                        "user_id": user_id,
                        "amount": settings.COINS_PER_HABIT_COMPLETION,
                        "reason": f"Выполнена привычка: {instance.title}",
                        "type": RewardType.EARN,
                    },
                )
                log.info(f"Пользователю ID {user_id} начислено {settings.COINS_PER_HABIT_COMPLETION} монет.")

            await db_session.flush()
            await self.streak_service.recalculate(db_session, user=user)

            await db_session.commit()

        except NotFoundException:
            await db_session.rollback()
            raise

        except Exception as exc:
            await db_session.rollback()
            log.error(f"Ошибка при отметке привычки ID {instance_id}: {exc}", exc_info=True)
            raise exc

        log.info(f"Привычка ID {instance_id} пользователя ID {user_id}: completed={completed}.")
        return instance

    async def get_range(
        self,
        db_session: AsyncSession,
        *,
        current_user: User,
        start: str | None = None,
        end: str | None = None,
    ) -> list[DaySummary]:
        """
        Агрегаты по дням диапазона.

        По умолчанию последние RANGE_DEFAULT_DAYS дней, заканчивая сегодняшним.

        Raises:
            ValidationException: Некорректная дата или начало позже конца.
        """
        today = get_today_date_for_user(current_user)
        date_to = parse_date(end, loc=["query", "end"]) if end else today
        date_from = (
            parse_date(start, loc=["query", "start"]) if start else add_days(today, -(settings.RANGE_DEFAULT_DAYS - 1))
        )

        if date_from > date_to:
            raise ValidationException(
                message=f"Начало диапазона {format_date(date_from)} позже конца {format_date(date_to)}.",
                error_type="invalid_date_range",
                loc=["query", "start"],
            )

        rows = await self.repository.get_daily_summary(
            db_session, user_id=current_user.id, date_from=date_from, date_to=date_to
        )
        return [DaySummary(scheduled_date=day, total=total, completed=done) for day, total, done in rows]

    async def get_stats(self, db_session: AsyncSession, *, current_user: User) -> UserStats:
        """Сводная статистика: баланс, серии, доля выполненных и активное зачисление."""
        total, completed = await self.repository.get_totals_for_user(db_session, user_id=current_user.id)
        active = await self.enrollment_repository.get_active_for_user(db_session, user_id=current_user.id)

        return UserStats(
            reward_balance=current_user.reward_balance,
            current_streak=current_user.current_streak,
            longest_streak=current_user.longest_streak,
            active_routine_id=current_user.active_routine_id,
            routine_intensity=current_user.routine_intensity.value if current_user.routine_intensity else None,
            total_habits=total,
            completed_habits=completed,
            completion_rate=completion_rate(total, completed),
            active_enrollment=active,
        )

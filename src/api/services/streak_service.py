"""Подсчет серий (стриков) дней с выполненными привычками."""

from datetime import date
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.logging import api_log as log
from src.api.models import User
from src.api.repositories import HabitInstanceRepository
from src.api.utils.date_utils import add_days, get_today_date_for_user


def calculate_current_streak(completed_dates_desc: Iterable[date], today: date) -> int:
    """
    Текущая серия подряд идущих дней с выполнением.

    Серия начинается, только если последний день с выполнением - сегодня или вчера,
    и обрывается на первом пропуске. Даты после today не учитываются.

    Args:
        completed_dates_desc (Iterable[date]): Различные даты с выполнением, по убыванию.
        today (date): Сегодняшняя дата пользователя.

    Returns:
        int: Длина текущей серии.
    """
    streak = 0
    expected: date | None = None

    for completed_date in completed_dates_desc:
        if completed_date > today:
            continue

        if expected is None:
            if completed_date not in (today, add_days(today, -1)):
                break
        elif completed_date != expected:
            break

        streak += 1
        expected = add_days(completed_date, -1)

    return streak


class StreakService:
    """Пересчитывает серии пользователя. Транзакцией управляет вызывающий сервис."""

    def __init__(self, instance_repository: HabitInstanceRepository):
        self.instance_repository = instance_repository

    async def recalculate(self, db_session: AsyncSession, *, user: User) -> int:
        """
        Записывает в профиль текущую серию и обновляет лучшую.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            user (User): Пользователь (изменения попадают в текущую транзакцию).

        Returns:
            int: Текущая серия.
        """
        dates_desc = await self.instance_repository.get_completed_dates_desc(db_session, user_id=user.id)
        current = calculate_current_streak(dates_desc, get_today_date_for_user(user))

        user.current_streak = current
        user.longest_streak = max(user.longest_streak or 0, current)

        log.debug(f"Серия пользователя ID {user.id}: текущая {current}, лучшая {user.longest_streak}.")
        return current

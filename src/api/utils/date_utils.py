"""
Модуль вспомогательных утилит для работы с датами/таймзонами.

Все операции работают с календарной датой (datetime.date) без привязки ко времени,
поэтому сериализация никогда не проходит через UTC и не сдвигает день.
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from src.api.core.config import settings
from src.api.core.exceptions import ValidationException
from src.api.core.logging import api_log as log

if TYPE_CHECKING:  # pragma: no cover
    from src.api.models import User

# Строгий формат YYYY-MM-DD (без времени и смещения)
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _resolve_timezone(tz_name: str) -> ZoneInfo:
    """
    Возвращает объект часового пояса IANA, откатываясь к UTC для неизвестных имен.

    Args:
        tz_name (str): Имя часового пояса (например, "America/New_York").

    Returns:
        ZoneInfo: Часовой пояс.
    """
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        # Не роняем запрос из-за опечатки в профиле, считаем по UTC
        log.warning(f"Некорректный часовой пояс '{tz_name}'. Используется UTC по умолчанию.")
        return ZoneInfo("UTC")


def today(tz_name: str | None = None) -> date:
    """
    Текущая календарная дата.

    Args:
        tz_name (str | None): Часовой пояс IANA. Если None, берется локальная дата процесса.

    Returns:
        date: Дата "сегодня".
    """
    if tz_name is None:
        return date.today()

    return datetime.now(timezone.utc).astimezone(_resolve_timezone(tz_name)).date()


def get_today_date_for_user(user: "User") -> date:
    """
    Вычисляет текущую дату ("сегодня") с учетом часового пояса пользователя.

    Если часовой пояс пользователя не задан, используется DEFAULT_TIMEZONE из настроек.

    Args:
        user (User): Экземпляр пользователя.

    Returns:
        date: Дата "сегодня" для пользователя.
    """
    return today(user.timezone or settings.DEFAULT_TIMEZONE)


def format_date(value: date | datetime) -> str:
    """
    Форматирует дату в строку YYYY-MM-DD по ее собственным календарным полям.

    Для datetime со смещением дата берется как есть, без перевода в UTC:
    1 марта 23:30 по -05:00 остается "...-03-01".

    Args:
        value (date | datetime): Дата или момент времени.

    Returns:
        str: Строка формата YYYY-MM-DD.
    """
    if isinstance(value, datetime):
        value = value.date()

    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_date(value: str, *, loc: list[str] | None = None) -> date:
    """
    Разбирает строку YYYY-MM-DD в календарную дату.

    Args:
        value (str): Строка даты.
        loc (list[str] | None): Место значения во входных данных (для текста ошибки).

    Returns:
        date: Календарная дата.

    Raises:
        ValidationException: Если строка не соответствует формату или дата не существует.
    """
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise ValidationException(
            message=f"Некорректный формат даты '{value}', ожидается YYYY-MM-DD.",
            error_type="invalid_date_format",
            loc=loc,
        )

    year, month, day = (int(part) for part in value.split("-"))

    try:
        return date(year, month, day)
    except ValueError:
        raise ValidationException(
            message=f"Дата '{value}' не существует.",
            error_type="invalid_date",
            loc=loc,
        ) from None


def add_days(value: date, days: int) -> date:
    """Сдвигает дату на указанное число календарных дней (может быть отрицательным)."""
    return value + timedelta(days=days)


def day_difference(later: date, earlier: date) -> int:
    """Разница later - earlier в целых календарных днях."""
    return (later - earlier).days

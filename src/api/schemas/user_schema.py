"""Схемы Pydantic для модели User."""

from datetime import datetime
from typing import Annotated
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AfterValidator, Field

from src.api.models import Intensity

from .base_schema import BaseSchema
from .enrollment_schema import EnrollmentSchemaRead


def _validate_timezone(value: str) -> str:
    """Проверяет, что строка является известным часовым поясом IANA."""
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Неизвестный часовой пояс: '{value}'") from None
    return value


# Часовой пояс IANA с проверкой существования
TimezoneName = Annotated[str, AfterValidator(_validate_timezone)]


class UserSchemaBase(BaseSchema):
    """Базовая схема для пользователя."""

    display_name: str | None = Field(None, max_length=100, description="Отображаемое имя")
    timezone: TimezoneName = Field("UTC", description="Часовой пояс IANA (например, Europe/Moscow)")


class UserSchemaCreate(UserSchemaBase):
    """Схема для создания профиля (данные от провайдера аутентификации)."""

    external_id: str = Field(..., min_length=1, max_length=255, description="Идентификатор у провайдера")


class UserSchemaUpdate(BaseSchema):
    """
    Схема для обновления профиля.
    Все поля опциональны, поля движка (серии, баланс, активная программа) через API не меняются.
    """

    display_name: str | None = Field(None, max_length=100, description="Новое отображаемое имя")
    timezone: TimezoneName | None = Field(None, description="Новый часовой пояс")


class UserSchemaRead(UserSchemaBase):
    """Схема для чтения профиля (ответа API)."""

    id: int = Field(..., description="Внутренний ID пользователя")
    external_id: str = Field(..., description="Идентификатор у провайдера")
    is_active: bool = Field(..., description="Статус активности пользователя")
    active_routine_id: str | None = Field(None, description="Программа активного зачисления")
    routine_intensity: Intensity | None = Field(None, description="Интенсивность активного зачисления")
    current_streak: int = Field(..., description="Текущая серия дней")
    longest_streak: int = Field(..., description="Лучшая серия дней")
    reward_balance: int = Field(..., description="Баланс монет")
    created_at: datetime = Field(..., description="Время создания профиля")
    updated_at: datetime = Field(..., description="Время последнего обновления профиля")


class UserStatsSchema(BaseSchema):
    """Сводная статистика участника."""

    reward_balance: int = Field(..., description="Баланс монет")
    current_streak: int = Field(..., description="Текущая серия дней")
    longest_streak: int = Field(..., description="Лучшая серия дней")
    active_routine_id: str | None = Field(None, description="Программа активного зачисления")
    routine_intensity: Intensity | None = Field(None, description="Интенсивность активного зачисления")
    total_habits: int = Field(..., description="Всего запланированных выполнений")
    completed_habits: int = Field(..., description="Отмечено выполненными")
    completion_rate: int = Field(..., description="Доля выполненных, округленный процент")
    active_enrollment: EnrollmentSchemaRead | None = Field(None, description="Активное зачисление")

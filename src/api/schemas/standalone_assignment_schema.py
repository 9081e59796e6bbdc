"""Схемы Pydantic для привычек вне программ."""

from datetime import datetime

from pydantic import Field

from src.api.models import Cadence

from .base_schema import BaseSchema


class StandaloneAssignSchema(BaseSchema):
    """Подписка на привычку из каталога."""

    template_id: int = Field(..., gt=0, description="ID шаблона из каталога")


class CustomHabitSchemaCreate(BaseSchema):
    """Создание собственной привычки."""

    title: str = Field(..., min_length=1, max_length=255, description="Название")
    description: str | None = Field(None, description="Описание")
    cadence: Cadence = Field(Cadence.DAILY, description="Периодичность")
    recommended_time: str | None = Field(None, max_length=50, description="Рекомендуемое время дня")


class StandaloneAssignmentSchemaRead(BaseSchema):
    """Подписка на привычку вне программы."""

    id: int = Field(..., description="ID подписки")
    user_id: int = Field(..., description="ID пользователя")
    template_id: int | None = Field(None, description="ID шаблона (None для собственной привычки)")
    title: str = Field(..., description="Название")
    description: str | None = Field(None, description="Описание")
    cadence: Cadence = Field(..., description="Периодичность")
    recommended_time: str | None = Field(None, description="Рекомендуемое время дня")
    is_custom: bool = Field(..., description="Собственная привычка пользователя")
    is_active: bool = Field(..., description="Активна ли подписка")
    created_at: datetime = Field(..., description="Время создания")


class StandaloneAssignResultSchema(BaseSchema):
    """Результат подписки: сама подписка и число созданных выполнений."""

    assignment: StandaloneAssignmentSchemaRead
    habits_scheduled: int = Field(..., description="Сколько выполнений запланировано")

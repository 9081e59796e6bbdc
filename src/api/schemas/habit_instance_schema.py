"""Схемы Pydantic для запланированных выполнений привычек."""

from datetime import date, datetime

from pydantic import Field

from src.api.models import Cadence

from .base_schema import BaseSchema
from .routine_schema import HabitTemplateSchemaRead


class HabitInstanceSchemaRead(BaseSchema):
    """Запланированное выполнение привычки."""

    id: int = Field(..., description="ID выполнения")
    user_id: int = Field(..., description="ID пользователя")
    enrollment_id: int | None = Field(None, description="ID зачисления (None вне программы)")
    template_id: int | None = Field(None, description="ID шаблона (None для собственной привычки)")
    title: str = Field(..., description="Название")
    description: str | None = Field(None, description="Описание")
    cadence: Cadence = Field(..., description="Периодичность")
    scheduled_date: date = Field(..., description="Дата")
    day_number: int | None = Field(None, description="Номер дня программы")
    completed: bool = Field(..., description="Выполнено")
    completed_at: datetime | None = Field(None, description="Время отметки")


class HabitInstanceToggle(BaseSchema):
    """Изменение отметки о выполнении."""

    completed: bool = Field(..., description="Новое значение отметки")


class TodayHabitsSchema(BaseSchema):
    """Привычки на сегодня, сгруппированные по периодичности."""

    date: str = Field(..., description="Сегодняшняя дата пользователя (YYYY-MM-DD)")
    habits: list[HabitInstanceSchemaRead] = Field(default_factory=list)
    grouped: dict[str, list[HabitInstanceSchemaRead]] = Field(
        default_factory=dict, description="Группы daily, weekly, as-needed"
    )


class HabitDaySummarySchema(BaseSchema):
    """Агрегат по одному дню."""

    scheduled_date: date = Field(..., description="Дата")
    total: int = Field(..., description="Запланировано")
    completed: int = Field(..., description="Выполнено")


class HabitInstanceDetailSchema(HabitInstanceSchemaRead):
    """Выполнение вместе с актуальными данными шаблона."""

    template: HabitTemplateSchemaRead | None = Field(None, description="Шаблон (None для собственной привычки)")


class ReconcileResultSchema(BaseSchema):
    """Результат досоздания пропущенного дня."""

    reconciled: bool = Field(..., description="Были ли добавлены выполнения")
    habits_added: int = Field(..., description="Сколько выполнений добавлено")

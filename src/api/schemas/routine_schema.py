"""Схемы Pydantic для программ и шаблонов привычек."""

from pydantic import Field

from src.api.models import Cadence, Intensity, RoutineTier

from .base_schema import BaseSchema


class RoutineSchemaRead(BaseSchema):
    """Программа в списке."""

    id: str = Field(..., description="Идентификатор программы")
    name: str = Field(..., description="Название")
    description: str | None = Field(None, description="Описание")
    duration_days: int = Field(..., description="Длительность в днях")
    category: str | None = Field(None, description="Категория")
    tier: RoutineTier = Field(..., description="Ценовой уровень")
    is_featured: bool = Field(..., description="Входит ли в подборку")


class HabitTemplateSchemaRead(BaseSchema):
    """Шаблон привычки."""

    id: int = Field(..., description="ID шаблона")
    routine_id: str | None = Field(None, description="Прямая привязка к программе")
    title: str = Field(..., description="Название")
    short_description: str | None = Field(None, description="Краткое описание")
    description: str | None = Field(None, description="Описание")
    instructions: str | None = Field(None, description="Инструкция")
    recommended_time: str | None = Field(None, description="Рекомендуемое время дня")
    duration_minutes: int | None = Field(None, description="Длительность в минутах")
    cadence: Cadence = Field(..., description="Периодичность")
    intensity: Intensity = Field(..., description="Уровень интенсивности")
    day_start: int | None = Field(None, description="Первый день окна")
    day_end: int | None = Field(None, description="Последний день окна")
    order_index: int = Field(..., description="Порядок внутри программы")


class RoutineSchemaReadWithHabits(RoutineSchemaRead):
    """Программа вместе с набором ее привычек."""

    habits: list[HabitTemplateSchemaRead] = Field(default_factory=list)


class CatalogHabitSchemaRead(HabitTemplateSchemaRead):
    """Привычка каталога с названиями программ, в которые она входит."""

    routine_names: list[str] = Field(default_factory=list, description="Программы, содержащие привычку")

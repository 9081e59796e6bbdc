"""Схемы Pydantic для зачислений в программы."""

from datetime import date, datetime

from pydantic import Field

from src.api.models import EnrollmentStatus, Intensity

from .base_schema import BaseSchema
from .routine_schema import RoutineSchemaRead


class EnrollmentSchemaCreate(BaseSchema):
    """Запрос на зачисление."""

    routine_id: str = Field(..., min_length=1, max_length=64, description="Идентификатор программы")
    # Строка, а не date: дата разбирается строго по локальному календарю в date_utils.parse_date
    start_date: str = Field(..., description="Дата начала в формате YYYY-MM-DD")
    intensity: Intensity = Field(..., description="Интенсивность (lite или intense), входит в ключ идемпотентности")


class EnrollmentSchemaRead(BaseSchema):
    """Зачисление."""

    id: int = Field(..., description="ID зачисления")
    user_id: int = Field(..., description="ID пользователя")
    routine_id: str = Field(..., description="Идентификатор программы")
    start_date: date = Field(..., description="Дата начала")
    end_date: date = Field(..., description="Дата окончания")
    status: EnrollmentStatus = Field(..., description="Статус")
    intensity: Intensity = Field(..., description="Интенсивность")
    created_at: datetime = Field(..., description="Время создания")
    updated_at: datetime = Field(..., description="Время последнего обновления")


class EnrollmentSchemaReadWithRoutine(EnrollmentSchemaRead):
    """Зачисление вместе с программой."""

    routine: RoutineSchemaRead


class EnrollmentResultSchema(BaseSchema):
    """Результат зачисления."""

    enrollment: EnrollmentSchemaRead
    habits_scheduled: int = Field(..., description="Сколько выполнений запланировано")
    already_enrolled: bool = Field(..., description="Повтор ранее выполненного запроса")

"""Инициализация модуля схем Pydantic."""

# Экспортируем Enum
from src.api.models import Cadence, EnrollmentStatus, Intensity

from .auth_schema import TokenPayload
from .base_schema import BaseSchema
from .enrollment_schema import (
    EnrollmentResultSchema,
    EnrollmentSchemaCreate,
    EnrollmentSchemaRead,
    EnrollmentSchemaReadWithRoutine,
)
from .habit_instance_schema import (
    HabitDaySummarySchema,
    HabitInstanceDetailSchema,
    HabitInstanceSchemaRead,
    HabitInstanceToggle,
    ReconcileResultSchema,
    TodayHabitsSchema,
)
from .routine_schema import (
    CatalogHabitSchemaRead,
    HabitTemplateSchemaRead,
    RoutineSchemaRead,
    RoutineSchemaReadWithHabits,
)
from .standalone_assignment_schema import (
    CustomHabitSchemaCreate,
    StandaloneAssignmentSchemaRead,
    StandaloneAssignResultSchema,
    StandaloneAssignSchema,
)
from .user_schema import (
    UserSchemaBase,
    UserSchemaCreate,
    UserSchemaRead,
    UserSchemaUpdate,
    UserStatsSchema,
)

__all__ = [
    "BaseSchema",
    "TokenPayload",
    "UserSchemaBase",
    "UserSchemaCreate",
    "UserSchemaRead",
    "UserSchemaUpdate",
    "UserStatsSchema",
    "RoutineSchemaRead",
    "RoutineSchemaReadWithHabits",
    "HabitTemplateSchemaRead",
    "CatalogHabitSchemaRead",
    "EnrollmentSchemaCreate",
    "EnrollmentSchemaRead",
    "EnrollmentSchemaReadWithRoutine",
    "EnrollmentResultSchema",
    "HabitInstanceSchemaRead",
    "HabitInstanceDetailSchema",
    "HabitInstanceToggle",
    "HabitDaySummarySchema",
    "TodayHabitsSchema",
    "ReconcileResultSchema",
    "StandaloneAssignSchema",
    "CustomHabitSchemaCreate",
    "StandaloneAssignmentSchemaRead",
    "StandaloneAssignResultSchema",
    "Cadence",  # Экспорт Enum
    "Intensity",
    "EnrollmentStatus",
]

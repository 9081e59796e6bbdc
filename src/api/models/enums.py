"""Перечисления, общие для моделей движка расписаний."""

from enum import Enum as PyEnum  # Чтобы не конфликтовать с sqlalchemy.Enum


class Cadence(PyEnum):
    """Периодичность привычки."""

    DAILY = "daily"  # Каждый день окна
    WEEKLY = "weekly"  # Раз в 7 дней, начиная с day_start
    AS_NEEDED = "as-needed"  # По желанию, заранее не планируется


class Intensity(PyEnum):
    """Уровень интенсивности программы и привычки."""

    LITE = "lite"
    INTENSE = "intense"


class EnrollmentStatus(PyEnum):
    """Статусы зачисления в программу."""

    ACTIVE = "active"
    PAUSED = "paused"
    ABANDONED = "abandoned"  # Терминальный статус


class RoutineTier(PyEnum):
    """Ценовой уровень программы."""

    FREE = "free"
    PREMIUM = "premium"


class RewardType(PyEnum):
    """Тип движения по счету наград."""

    EARN = "earn"
    SPEND = "spend"


def enum_values(enum_cls: type[PyEnum]) -> list[str]:
    """Значения перечисления для хранения в БД (по value, а не по имени)."""
    return [member.value for member in enum_cls]

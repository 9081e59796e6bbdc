"""Модель SQLAlchemy для Routine (Программа велнес-ретрита)."""

from sqlalchemy import Enum as SqlEnum
from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from .enums import RoutineTier, enum_values


class Routine(Base):
    """
    Многодневная программа, составленная из привычек.

    Управляется администрированием контента, движок расписаний ее только читает.

    Attributes:
        id: Строковый идентификатор (slug), например "sleep-reset".
        name: Название программы.
        description: Описание программы.
        duration_days: Длительность программы в днях.
        category: Категория (сон, питание, движение и т.д.).
        tier: Ценовой уровень.
        is_featured: Показывать ли программу в подборке.
        sort_order: Порядок вывода в списке.
    """

    __tablename__ = "wellness_routines"

    # Переопределяем целочисленный ПК из Base
    id: Mapped[str] = mapped_column(String(64), primary_key=True)  # type: ignore[assignment]

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    duration_days: Mapped[int] = mapped_column(Integer, default=14, nullable=False)
    category: Mapped[str | None] = mapped_column(String(100))
    tier: Mapped[RoutineTier] = mapped_column(
        SqlEnum(RoutineTier, name="routine_tier_enum", values_callable=enum_values),
        default=RoutineTier.FREE,
        nullable=False,
    )
    is_featured: Mapped[bool] = mapped_column(default=False, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

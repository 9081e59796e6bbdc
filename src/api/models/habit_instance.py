"""Модель SQLAlchemy для HabitInstance (Запланированное выполнение привычки)."""

from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy import Enum as SqlEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .enums import Cadence, enum_values

if TYPE_CHECKING:  # pragma: no cover
    from .habit_template import HabitTemplate


class HabitInstance(Base):
    """
    Конкретное выполнение привычки, запланированное на дату.

    Название и описание копируются из шаблона в момент создания, поэтому последующие
    правки шаблона не меняют историю.

    Attributes:
        id: Первичный ключ (унаследован от Base).
        user_id: Пользователь.
        enrollment_id: Зачисление (None для привычек вне программы).
        template_id: Шаблон (None для собственных привычек пользователя).
        title: Снимок названия.
        description: Снимок описания.
        cadence: Периодичность.
        scheduled_date: Дата выполнения.
        day_number: Номер дня относительно начала (с 1).
        completed: Выполнено ли.
        completed_at: Время последней отметки о выполнении.
        reward_granted_at: Время начисления награды (начисляется один раз).
        template: Связь с шаблоном.
    """

    __tablename__ = "habit_instances"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    enrollment_id: Mapped[int | None] = mapped_column(
        ForeignKey("enrollments.id", ondelete="CASCADE"), nullable=True, index=True
    )
    template_id: Mapped[int | None] = mapped_column(
        ForeignKey("habit_templates.id", ondelete="SET NULL"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    cadence: Mapped[Cadence] = mapped_column(
        SqlEnum(Cadence, name="cadence_enum", values_callable=enum_values),
        default=Cadence.DAILY,
        nullable=False,
    )
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    day_number: Mapped[int | None] = mapped_column(Integer)
    completed: Mapped[bool] = mapped_column(default=False, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    reward_granted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Связи
    template: Mapped["HabitTemplate | None"] = relationship()

    # Не больше одного экземпляра шаблона на дату у пользователя
    __table_args__ = (
        UniqueConstraint("user_id", "template_id", "scheduled_date", name="uq_habit_instance_per_template_day"),
    )

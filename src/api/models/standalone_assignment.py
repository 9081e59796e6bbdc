"""Модель SQLAlchemy для StandaloneAssignment (Привычка вне программы)."""

from sqlalchemy import Enum as SqlEnum
from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from .enums import Cadence, enum_values


class StandaloneAssignment(Base):
    """
    Подписка пользователя на привычку из каталога или на собственную привычку.

    Никогда не удаляется физически: отписка только снимает флаг is_active.

    Attributes:
        id: Первичный ключ (унаследован от Base).
        user_id: Пользователь.
        template_id: Шаблон из каталога (None для собственной привычки).
        title: Название.
        description: Описание.
        cadence: Периодичность.
        recommended_time: Рекомендуемое время дня.
        is_custom: Создана ли привычка самим пользователем.
        is_active: Активна ли подписка.
    """

    __tablename__ = "standalone_assignments"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
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
    recommended_time: Mapped[str | None] = mapped_column(String(50))
    is_custom: Mapped[bool] = mapped_column(default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False, index=True)

"""Модели SQLAlchemy для шаблонов привычек и их привязки к программам."""

from sqlalchemy import Enum as SqlEnum
from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from .enums import Cadence, Intensity, enum_values


class HabitTemplate(Base):
    """
    Переиспользуемое описание привычки.

    Шаблон может быть привязан к программе напрямую (routine_id) или через таблицу
    habit_routine_assignments. Оба пути равноправны и объединяются при разрешении шаблонов.

    Attributes:
        id: Первичный ключ (унаследован от Base).
        routine_id: Прямая ссылка на программу (может быть None).
        title: Название привычки.
        short_description: Краткое описание (копируется в экземпляр в первую очередь).
        description: Полное описание.
        instructions: Инструкция по выполнению.
        recommended_time: Рекомендуемое время дня (свободный текст, например "morning").
        duration_minutes: Примерная длительность в минутах.
        cadence: Периодичность.
        intensity: Уровень интенсивности шаблона.
        day_start: Первый день окна (по умолчанию 1).
        day_end: Последний день окна (по умолчанию длительность программы).
        order_index: Порядок внутри программы.
    """

    __tablename__ = "habit_templates"

    routine_id: Mapped[str | None] = mapped_column(
        ForeignKey("wellness_routines.id", ondelete="SET NULL"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    short_description: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    instructions: Mapped[str | None] = mapped_column(Text)
    recommended_time: Mapped[str | None] = mapped_column(String(50))
    duration_minutes: Mapped[int | None] = mapped_column(Integer)
    cadence: Mapped[Cadence] = mapped_column(
        SqlEnum(Cadence, name="cadence_enum", values_callable=enum_values),
        default=Cadence.DAILY,
        nullable=False,
    )
    intensity: Mapped[Intensity] = mapped_column(
        SqlEnum(Intensity, name="intensity_enum", values_callable=enum_values),
        default=Intensity.LITE,
        nullable=False,
    )
    day_start: Mapped[int | None] = mapped_column(Integer, default=1)
    day_end: Mapped[int | None] = mapped_column(Integer)
    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    @property
    def snapshot_description(self) -> str | None:
        """Текст, копируемый в экземпляр: краткое описание, иначе полное."""
        return self.short_description or self.description


class HabitRoutineAssignment(Base):
    """
    Связь "многие ко многим" между шаблонами привычек и программами.

    Attributes:
        id: Первичный ключ (унаследован от Base).
        habit_template_id: Шаблон привычки.
        routine_id: Программа.
    """

    __tablename__ = "habit_routine_assignments"

    habit_template_id: Mapped[int] = mapped_column(
        ForeignKey("habit_templates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    routine_id: Mapped[str] = mapped_column(
        ForeignKey("wellness_routines.id", ondelete="CASCADE"), nullable=False, index=True
    )

    __table_args__ = (UniqueConstraint("habit_template_id", "routine_id", name="uq_habit_routine_assignment"),)

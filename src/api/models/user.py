"""Модель SQLAlchemy для User (Профиль участника)."""

from typing import TYPE_CHECKING

from sqlalchemy import Enum as SqlEnum
from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .enums import Intensity, enum_values

if TYPE_CHECKING:  # pragma: no cover
    from .enrollment import Enrollment


class User(Base):
    """
    Представляет профиль участника программы.

    Поля серии, баланса и указатель на активную программу записываются только движком
    расписаний (зачисление, отметка выполнения), остальные компоненты их лишь читают.

    Attributes:
        id: Первичный ключ, внутренний идентификатор пользователя (унаследован от Base).
        external_id: Идентификатор пользователя у внешнего провайдера аутентификации.
        display_name: Отображаемое имя (может быть None).
        timezone: Часовой пояс IANA, по которому вычисляется "сегодня".
        is_active: Флаг, активен ли пользователь в системе.
        active_routine_id: Программа активного зачисления (кэш, выводится из таблицы зачислений).
        routine_intensity: Интенсивность активного зачисления.
        current_streak: Текущая серия дней с выполненными привычками.
        longest_streak: Максимальная достигнутая серия.
        reward_balance: Баланс монет за выполнение привычек.
        enrollments: История зачислений пользователя.
    """

    __tablename__ = "users"

    external_id: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(100))
    timezone: Mapped[str] = mapped_column(String(64), default="UTC", nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    active_routine_id: Mapped[str | None] = mapped_column(
        ForeignKey("wellness_routines.id", ondelete="SET NULL"), nullable=True
    )
    routine_intensity: Mapped[Intensity | None] = mapped_column(
        SqlEnum(Intensity, name="intensity_enum", values_callable=enum_values), nullable=True
    )
    current_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    reward_balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Связи
    enrollments: Mapped[list["Enrollment"]] = relationship(back_populates="user", cascade="all, delete-orphan")

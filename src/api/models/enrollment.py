"""Модель SQLAlchemy для Enrollment (Зачисление в программу)."""

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, Index, String, text
from sqlalchemy import Enum as SqlEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .enums import EnrollmentStatus, Intensity, enum_values

if TYPE_CHECKING:  # pragma: no cover
    from .routine import Routine
    from .user import User

# Условие частичного индекса: у пользователя не больше одного активного зачисления
ACTIVE_ENROLLMENT_CONDITION = text("status = 'active'")


class Enrollment(Base):
    """
    Попытка пользователя пройти программу.

    Attributes:
        id: Первичный ключ (унаследован от Base).
        user_id: Пользователь.
        routine_id: Программа.
        start_date: Дата первого дня программы.
        end_date: start_date + duration_days, вычисляется один раз при создании.
        status: Статус (active, paused, abandoned).
        intensity: Выбранная интенсивность.
        idempotency_key: SHA-256 от (user_id, routine_id, start_date, intensity).
        user: Связь с пользователем.
        routine: Связь с программой.
    """

    __tablename__ = "enrollments"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    routine_id: Mapped[str] = mapped_column(
        ForeignKey("wellness_routines.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[EnrollmentStatus] = mapped_column(
        SqlEnum(EnrollmentStatus, name="enrollment_status_enum", values_callable=enum_values),
        default=EnrollmentStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    intensity: Mapped[Intensity] = mapped_column(
        SqlEnum(Intensity, name="intensity_enum", values_callable=enum_values),
        default=Intensity.LITE,
        nullable=False,
    )
    idempotency_key: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    # Связи
    user: Mapped["User"] = relationship(back_populates="enrollments")
    routine: Mapped["Routine"] = relationship()

    __table_args__ = (
        Index(
            "uq_enrollments_one_active_per_user",
            "user_id",
            unique=True,
            postgresql_where=ACTIVE_ENROLLMENT_CONDITION,
            sqlite_where=ACTIVE_ENROLLMENT_CONDITION,
        ),
    )

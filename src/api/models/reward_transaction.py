"""Модель SQLAlchemy для RewardTransaction (Движение по счету наград)."""

from sqlalchemy import Enum as SqlEnum
from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from .enums import RewardType, enum_values


class RewardTransaction(Base):
    """
    Запись журнала начислений и списаний монет.

    Attributes:
        id: Первичный ключ (унаследован от Base).
        user_id: Пользователь.
        amount: Количество монет (всегда положительное, направление задает type).
        reason: Причина движения.
        type: Начисление или списание.
    """

    __tablename__ = "reward_transactions"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[RewardType] = mapped_column(
        SqlEnum(RewardType, name="reward_type_enum", values_callable=enum_values),
        default=RewardType.EARN,
        nullable=False,
    )

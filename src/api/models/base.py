"""Базовое определение модели для SQLAlchemy."""

from datetime import datetime

from sqlalchemy import DateTime, MetaData, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Соглашение об именовании для внешних ключей и индексов (для Alembic и SQLAlchemy)
# https://alembic.sqlalchemy.org/en/latest/naming.html
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata_obj = MetaData(naming_convention=convention)


class TimestampMixin:
    """
    Миксин для добавления полей created_at и updated_at к моделям.

    Attributes:
        created_at: Время создания записи (устанавливается БД).
        updated_at: Время последнего обновления записи (обновляется БД при изменении).
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        comment="Время создания записи",
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        comment="Время последнего обновления записи",
        nullable=False,
    )


class Base(DeclarativeBase, TimestampMixin):
    """
    Базовый класс для декларативных моделей SQLAlchemy.

    Предоставляет:
    - Стандартный __repr__.
    - Общий целочисленный первичный ключ 'id' (модель может объявить свой).
    - Поля created_at и updated_at (через TimestampMixin).
    - Настроенный metadata.
    """

    metadata = metadata_obj  # Применение соглашения об именовании

    # Значения, которые проставляет БД (timestamps), забираем сразу после INSERT/UPDATE,
    # иначе обращение к ним в async сессии вызовет неявную ленивую загрузку
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    def __repr__(self) -> str:
        """
        Возвращает строковое представление объекта модели.

        Пример: <Enrollment(id=1)>
        """
        return f"<{self.__class__.__name__}(id={self.id!r})>"

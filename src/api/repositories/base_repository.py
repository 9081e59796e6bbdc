"""Базовый репозиторий с общими CRUD-операциями."""

from typing import Any, Generic, Sequence, TypeVar

from pydantic import BaseModel
from sqlalchemy import ColumnElement, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.logging import api_log as log
from src.api.models import Base as SQLAlchemyBaseModel

# Определяем обобщенные (Generic) типы для моделей SQLAlchemy и схем Pydantic
ModelType = TypeVar("ModelType", bound=SQLAlchemyBaseModel)  # SQLAlchemy модель
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)  # Pydantic схема для создания
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)  # Pydantic схема для обновления


class BaseRepository(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    Базовый класс репозитория для асинхронных CRUD-операций.

    Репозиторий не управляет транзакциями: он только добавляет изменения в сессию
    и выполняет flush. Commit и rollback остаются за сервисами.

    Attributes:
        model: Класс модели SQLAlchemy, с которым работает репозиторий.
    """

    def __init__(self, model: type[ModelType]):
        """
        Инициализирует базовый репозиторий.

        Args:
            model (ModelType): Класс модели SQLAlchemy.
        """
        self.model = model

    async def get_by_id(
        self, db_session: AsyncSession, *, obj_id: int | str, for_update: bool = False
    ) -> ModelType | None:
        """
        Получает одну запись по ее ID.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            obj_id (int | str): Идентификатор записи (у программ строковый).
            for_update (bool): Заблокировать строку до конца транзакции (SELECT ... FOR UPDATE).

        Returns:
            ModelType | None: Экземпляр модели или None, если запись не найдена.
        """
        model_name = self.model.__name__

        log.debug(f"Получение записи {model_name} по ID: {obj_id}{' с блокировкой' if for_update else ''}")
        statement = select(self.model).where(self.model.id == obj_id)

        if for_update:
            # populate_existing: объект уже может быть в сессии, перечитываем его под блокировкой
            statement = statement.with_for_update().execution_options(populate_existing=True)

        result = await db_session.execute(statement)
        instance = result.scalar_one_or_none()

        status = "найдена" if instance else "не найдена"
        log.debug(f"Запись {model_name} с ID {obj_id} {status}.")

        return instance

    async def get_by_filter_first_or_none(
        self, db_session: AsyncSession, *filters: ColumnElement[bool]
    ) -> ModelType | None:
        """
        Получает первую запись, соответствующую заданным критериям фильтрации, или None.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            *filters (ColumnElement[bool]): Критерии фильтрации SQLAlchemy (объединяются через AND).

        Returns:
            ModelType | None: Экземпляр модели или None, если запись не найдена.
        """
        statement = select(self.model)

        if filters:
            statement = statement.where(*filters)

        statement = statement.limit(1)

        result = await db_session.execute(statement)
        return result.scalar_one_or_none()

    async def get_multi_by_filter(
        self,
        db_session: AsyncSession,
        *filters: ColumnElement[bool],
        skip: int = 0,
        limit: int | None = 100,
        order_by: list[ColumnElement[Any]] | None = None,
    ) -> Sequence[ModelType]:
        """
        Получает список записей, соответствующих заданным критериям фильтрации,
        с пагинацией и опциональной сортировкой.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            *filters (ColumnElement[bool]): Критерии фильтрации SQLAlchemy.
            skip (int): Количество записей, которое нужно пропустить.
            limit (int | None): Максимальное количество записей (None - без ограничения).
            order_by (list[ColumnElement[Any]] | None): Список выражений сортировки.

        Returns:
            Sequence[ModelType]: Список экземпляров модели.
        """
        statement = select(self.model)

        if filters:
            statement = statement.where(*filters)

        if order_by:
            statement = statement.order_by(*order_by)

        statement = statement.offset(skip)
        if limit is not None:
            statement = statement.limit(limit)

        result = await db_session.execute(statement)
        instances = result.scalars().all()
        log.debug(f"Найдено {len(instances)} записей {self.model.__name__} по фильтру.")
        return instances

    async def count_by_filter(self, db_session: AsyncSession, *filters: ColumnElement[bool]) -> int:
        """
        Считает записи, соответствующие фильтру.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            *filters (ColumnElement[bool]): Критерии фильтрации SQLAlchemy.

        Returns:
            int: Количество записей.
        """
        statement = select(func.count()).select_from(self.model)

        if filters:
            statement = statement.where(*filters)

        result = await db_session.execute(statement)
        return int(result.scalar_one())

    async def create(self, db_session: AsyncSession, *, obj_in: CreateSchemaType | dict[str, Any]) -> ModelType:
        """
        Создает и добавляет новый объект в сессию.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            obj_in (CreateSchemaType | dict[str, Any]): Pydantic схема или словарь с данными модели.

        Returns:
            ModelType: Созданный экземпляр модели (с ID и значениями по умолчанию из БД).
        """
        model_name = self.model.__name__

        obj_in_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump()

        log.debug(f"Подготовка к созданию записи {model_name} с данными: {obj_in_data}")
        db_obj = self.model(**obj_in_data)

        db_session.add(db_obj)

        # Получаем ID и другие сгенерированные базой данных значения
        await db_session.flush()
        await db_session.refresh(db_obj)

        log.info(f"{model_name} (ID: {db_obj.id}) добавлен в сессию.")

        return db_obj

    async def bulk_insert(
        self, db_session: AsyncSession, *, rows: Sequence[dict[str, Any]], chunk_size: int
    ) -> int:
        """
        Вставляет строки пачками ограниченного размера.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            rows (Sequence[dict[str, Any]]): Данные строк (ключи - имена атрибутов модели).
            chunk_size (int): Максимальное количество строк в одном INSERT.

        Returns:
            int: Количество вставленных строк.
        """
        model_name = self.model.__name__
        inserted = 0

        for offset in range(0, len(rows), chunk_size):
            chunk = rows[offset : offset + chunk_size]
            await db_session.execute(insert(self.model), list(chunk))
            inserted += len(chunk)
            log.debug(f"Вставлена пачка {model_name}: {len(chunk)} строк (всего {inserted}/{len(rows)}).")

        return inserted

    async def update(
        self,
        db_session: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: UpdateSchemaType | dict[str, Any],
    ) -> ModelType:
        """
        Обновляет существующую запись в базе данных.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            db_obj (ModelType): Экземпляр модели SQLAlchemy для обновления.
            obj_in (UpdateSchemaType | dict[str, Any]): Схема Pydantic с данными для обновления или словарь.

        Returns:
            ModelType: Обновленный экземпляр модели.
        """
        model_name = self.model.__name__

        if isinstance(obj_in, dict):
            update_data = obj_in
        else:
            update_data = obj_in.model_dump(exclude_unset=True)  # exclude_unset=True для частичного обновления

        for field, value in update_data.items():
            if hasattr(db_obj.__class__, field):
                setattr(db_obj, field, value)
            else:
                log.warning(f"Попытка обновить несуществующее поле '{field}' для {model_name} ID: {db_obj.id}")

        db_session.add(db_obj)
        await db_session.flush()
        await db_session.refresh(db_obj)

        log.info(f"{model_name} с ID: {db_obj.id} обновлен в сессии.")

        return db_obj

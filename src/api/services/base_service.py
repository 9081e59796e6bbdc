"""
Базовый класс для сервисов.

Реализует общие операции чтения и изменения, управление транзакциями
и проверку параметров сортировки перед передачей в репозиторий.
"""

from typing import Any, Generic, Sequence, TypeVar, cast

from pydantic import BaseModel
from sqlalchemy import ColumnElement, asc, desc
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.exceptions import BadRequestException, NotFoundException
from src.api.core.logging import api_log as log
from src.api.models import Base as SQLAlchemyBaseModel
from src.api.repositories import BaseRepository

# Определяем обобщенные (Generic) типы для моделей SQLAlchemy, репозиториев и схем Pydantic
ModelType = TypeVar("ModelType", bound=SQLAlchemyBaseModel)  # SQLAlchemy модель
RepositoryType = TypeVar("RepositoryType", bound=BaseRepository)  # Репозиторий
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)  # Pydantic схема для создания
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)  # Pydantic схема для обновления


class BaseService(Generic[ModelType, RepositoryType, CreateSchemaType, UpdateSchemaType]):
    """
    Базовый сервис с общими операциями и управлением транзакциями.

    Каждый публичный изменяющий метод конкретного сервиса - это единица работы:
    commit при успехе, rollback с логированием и повторным выбросом исключения при ошибке.

    Attributes:
        repository (RepositoryType): Экземпляр репозитория для работы с данными.
    """

    def __init__(self, repository: RepositoryType):
        """
        Инициализирует базовый сервис.

        Args:
            repository (RepositoryType): Репозиторий для работы с данными.
        """
        self.repository = repository

    def _get_order_by_clause(self, sort_by: str | None, descending: bool = False) -> list[ColumnElement[Any]] | None:
        """
        Формирует выражение сортировки SQLAlchemy по имени поля модели.

        Args:
            sort_by (str | None): Имя поля модели для сортировки.
            descending (bool): Сортировать по убыванию.

        Returns:
            list[ColumnElement[Any]] | None: Список выражений для order_by или None.

        Raises:
            BadRequestException: Если указанного поля не существует в модели.
        """
        model_name = self.repository.model.__name__

        if not sort_by:
            return None

        if not hasattr(self.repository.model.__table__.columns, sort_by):
            log.warning(f"Попытка сортировки по несуществующему полю '{sort_by}' в модели {model_name}")

            available_columns = list(self.repository.model.__table__.columns.keys())

            raise BadRequestException(
                message=f"Некорректное поле для сортировки: '{sort_by}'. Доступные поля: {available_columns}",
                error_type="invalid_sort_field",
                loc=["query", "sort_by"],
            )

        field = getattr(self.repository.model.__table__.columns, sort_by)

        return [desc(field) if descending else asc(field)]

    async def get_by_id(self, db_session: AsyncSession, *, obj_id: int | str) -> ModelType:
        """
        Получает объект по ID или выбрасывает исключение, если объект не найден.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            obj_id (int | str): ID объекта.

        Returns:
            ModelType: Найденный объект.

        Raises:
            NotFoundException: Если объект с указанным ID не найден.
        """
        model_name = self.repository.model.__name__

        db_obj = await self.repository.get_by_id(db_session, obj_id=obj_id)

        if not db_obj:
            raise NotFoundException(
                message=f"{model_name} с ID {obj_id} не найден.",
                error_type=f"{model_name.lower()}_not_found",
            )

        return cast(ModelType, db_obj)  # Явное приведение типа для mypy

    async def get_list(
        self,
        db_session: AsyncSession,
        *,
        skip: int = 0,
        limit: int = 100,
        sort_by: str | None = None,
        descending: bool = False,
    ) -> Sequence[ModelType]:
        """
        Получает список объектов с пагинацией и динамической сортировкой.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            skip (int): Количество записей для пропуска.
            limit (int): Максимальное количество записей.
            sort_by (str | None): Поле для сортировки.
            descending (bool): Сортировать по убыванию.

        Returns:
            Sequence[ModelType]: Список объектов.
        """
        order_by_clause = self._get_order_by_clause(sort_by, descending)

        return await self.repository.get_multi_by_filter(db_session, skip=skip, limit=limit, order_by=order_by_clause)

    async def create(self, db_session: AsyncSession, *, obj_in: CreateSchemaType) -> ModelType:
        """
        Создает новый объект.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            obj_in (CreateSchemaType): Схема с данными для создания.

        Returns:
            ModelType: Созданный объект.
        """
        model_name = self.repository.model.__name__

        try:
            db_obj = await self.repository.create(db_session, obj_in=obj_in)
            await db_session.commit()
            return cast(ModelType, db_obj)

        except Exception as exc:
            # При любой ошибке откатываем транзакцию, чтобы сохранить целостность данных
            await db_session.rollback()
            log.error(f"Ошибка при создании {model_name}: {exc}", exc_info=True)
            raise exc

    async def update(
        self,
        db_session: AsyncSession,
        *,
        db_obj: ModelType | None = None,
        obj_id: int | str,
        obj_in: UpdateSchemaType | dict[str, Any],
    ) -> ModelType:
        """
        Обновляет объект базы данных.

        Если передан уже найденный объект `db_obj`, повторный поиск по ID не выполняется.

        Args:
            db_session (AsyncSession): Асинхронная сессия базы данных.
            db_obj (ModelType | None): Сам объект для обновления.
            obj_id (int | str): ID объекта для обновления.
            obj_in (UpdateSchemaType | dict[str, Any]): Схема или словарь с данными для обновления.

        Returns:
            ModelType: Обновленный объект.

        Raises:
            NotFoundException: Если объект для обновления не найден.
        """
        model_name = self.repository.model.__name__

        if db_obj is None:
            db_obj = await self.get_by_id(db_session, obj_id=obj_id)

        try:
            updated_obj = await self.repository.update(db_session, db_obj=db_obj, obj_in=obj_in)
            await db_session.commit()
            return cast(ModelType, updated_obj)

        except Exception as exc:
            await db_session.rollback()
            log.error(f"Ошибка при обновлении {model_name} (ID: {obj_id}): {exc}", exc_info=True)
            raise exc

"""Репозиторий для работы с моделью User."""

from src.api.models import User
from src.api.repositories import BaseRepository
from src.api.schemas import UserSchemaCreate, UserSchemaUpdate


class UserRepository(BaseRepository[User, UserSchemaCreate, UserSchemaUpdate]):
    """
    Репозиторий для выполнения CRUD-операций с моделью User.

    Профиль блокируется через get_by_id(..., for_update=True) на время
    зачисления, паузы и отмены программы.
    """

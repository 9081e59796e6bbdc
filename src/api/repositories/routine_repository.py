"""Репозиторий для работы с моделью Routine."""

from src.api.models import Routine
from src.api.repositories import BaseRepository
from src.api.schemas import BaseSchema


class RoutineRepository(BaseRepository[Routine, BaseSchema, BaseSchema]):
    """
    Репозиторий программ.

    Программы создаются администрированием контента, поэтому здесь только чтение
    через общие методы BaseRepository.
    """

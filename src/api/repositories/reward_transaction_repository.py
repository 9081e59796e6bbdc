"""Репозиторий для журнала наград."""

from src.api.models import RewardTransaction
from src.api.repositories import BaseRepository
from src.api.schemas import BaseSchema


class RewardTransactionRepository(BaseRepository[RewardTransaction, BaseSchema, BaseSchema]):
    """Репозиторий записей журнала наград (только добавление)."""

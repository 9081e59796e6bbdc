"""Инициализация модуля репозиториев."""

from .base_repository import BaseRepository
from .enrollment_repository import EnrollmentRepository
from .habit_instance_repository import HabitInstanceRepository
from .habit_template_repository import HabitTemplateRepository
from .reward_transaction_repository import RewardTransactionRepository
from .routine_repository import RoutineRepository
from .standalone_assignment_repository import StandaloneAssignmentRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "RoutineRepository",
    "HabitTemplateRepository",
    "EnrollmentRepository",
    "HabitInstanceRepository",
    "StandaloneAssignmentRepository",
    "RewardTransactionRepository",
]

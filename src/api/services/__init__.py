"""Инициализация модуля сервисов."""

from .base_service import BaseService
from .enrollment_service import EnrollmentResult, EnrollmentService, build_idempotency_key
from .habit_instance_service import HabitInstanceService
from .instance_materializer import InstanceMaterializer
from .reconciliation_service import ReconciliationService, ReconcileResult
from .routine_service import RoutineService
from .standalone_assignment_service import StandaloneAssignmentService
from .streak_service import StreakService
from .template_resolver import TemplateResolver
from .user_service import UserService

__all__ = [
    "BaseService",
    "UserService",
    "RoutineService",
    "TemplateResolver",
    "InstanceMaterializer",
    "EnrollmentService",
    "EnrollmentResult",
    "build_idempotency_key",
    "ReconciliationService",
    "ReconcileResult",
    "StreakService",
    "HabitInstanceService",
    "StandaloneAssignmentService",
]

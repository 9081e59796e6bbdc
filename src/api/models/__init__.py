from .base import Base, metadata_obj
from .enrollment import Enrollment
from .enums import Cadence, EnrollmentStatus, Intensity, RewardType, RoutineTier
from .habit_instance import HabitInstance
from .habit_template import HabitRoutineAssignment, HabitTemplate
from .reward_transaction import RewardTransaction
from .routine import Routine
from .standalone_assignment import StandaloneAssignment
from .user import User

__all__ = [
    "metadata_obj",
    "Base",
    "User",
    "Routine",
    "HabitTemplate",
    "HabitRoutineAssignment",
    "Enrollment",
    "HabitInstance",
    "StandaloneAssignment",
    "RewardTransaction",
    "Cadence",
    "Intensity",
    "EnrollmentStatus",
    "RoutineTier",
    "RewardType",
]

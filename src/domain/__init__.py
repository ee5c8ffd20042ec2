"""Domain models and DTOs."""

from src.domain.create_models import (
    CompleteTaskRequest,
    GenerateTaskRequest,
    RoutineCreate,
    SignInRequest,
    TaskCreate,
    UserCreate,
)
from src.domain.routine import RepeatType, Routine
from src.domain.task import Importance, Priority, Task, TaskStatus, TimeRecord
from src.domain.update_models import ProfileUpdate, RoutineUpdate, TaskUpdate
from src.domain.user import RequestIdentity, User


__all__ = [
    "CompleteTaskRequest",
    "GenerateTaskRequest",
    "Importance",
    "Priority",
    "ProfileUpdate",
    "RepeatType",
    "RequestIdentity",
    "Routine",
    "RoutineCreate",
    "RoutineUpdate",
    "SignInRequest",
    "Task",
    "TaskCreate",
    "TaskStatus",
    "TaskUpdate",
    "TimeRecord",
    "User",
    "UserCreate",
]

"""Task trigger scheduler: pester, reminder and overdue triggers per task."""
from .builder import build_expression, build_expressions
from .errors import SchedulerError, StoreError, TaskNotFoundError, TriggerRegistrationError
from .models import Task
from .notifier import ChannelNotifier
from .ports import JobStore, Notifier, TaskSource, TriggerStore
from .service import SqliteTaskStore, TriggerScheduler, reconcile
from .types import (
    AtExpression,
    EveryExpression,
    Expression,
    ReconcileReport,
    RemoveResult,
    SchedulerStatus,
    TriggerRecord,
    TriggerType,
)

__all__ = [
    "AtExpression",
    "ChannelNotifier",
    "EveryExpression",
    "Expression",
    "JobStore",
    "Notifier",
    "ReconcileReport",
    "RemoveResult",
    "SchedulerError",
    "SchedulerStatus",
    "SqliteTaskStore",
    "StoreError",
    "Task",
    "TaskNotFoundError",
    "TaskSource",
    "TriggerRecord",
    "TriggerRegistrationError",
    "TriggerScheduler",
    "TriggerStore",
    "TriggerType",
    "build_expression",
    "build_expressions",
    "reconcile",
]

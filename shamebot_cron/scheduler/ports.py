"""Ports (interfaces) the scheduler depends on.

The core talks to storage and notification through these Protocols,
so the SQLite store and the chat notifier can be swapped in tests.
"""
from typing import Protocol

from .models import Task
from .types import TriggerRecord, TriggerType


class TaskSource(Protocol):
    """Read access to task snapshots."""

    async def get_task(self, task_id: str) -> Task | None: ...


class JobStore(Protocol):
    """Durable mapping task -> {trigger type -> trigger id}.

    `set_trigger_id` must only touch the one (task, type) field it names.
    """

    async def get_trigger_record(self, task_id: str) -> TriggerRecord: ...

    async def set_trigger_id(
        self,
        task_id: str,
        trigger_type: TriggerType,
        trigger_id: str | None,
    ) -> None: ...

    async def list_tasks_with_any_trigger(self) -> list[str]: ...


class TriggerStore(TaskSource, JobStore, Protocol):
    """Task snapshots and trigger ids behind one handle."""


class Notifier(Protocol):
    """Receives trigger firings. A since-deleted task must be a no-op."""

    async def on_pester_fired(self, task_id: str) -> None: ...

    async def on_reminder_fired(self, task_id: str) -> None: ...

    async def on_overdue_fired(self, task_id: str) -> None: ...

"""Scheduler core: live task triggers on top of APScheduler.

The `AsyncIOScheduler` memory job store is the registry of live triggers.
It does not survive a restart; the trigger ids persisted through the
`JobStore` are the only cross-restart state, see `reconciler.py`.
"""
from datetime import datetime, timezone
from typing import Awaitable, Callable
from uuid import uuid4

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from ..builder import DEFAULT_UNIT_SECONDS, build_expression, utc_now
from ..errors import StoreError, TaskNotFoundError, TriggerRegistrationError
from ..ports import Notifier, TriggerStore
from ..types import (
    AtExpression,
    EveryExpression,
    Expression,
    RemoveResult,
    SchedulerStatus,
    TriggerRecord,
    TriggerType,
)

logger = logger.bind(module="scheduler.core")


def to_trigger(expression: Expression) -> BaseTrigger:
    """Convert a structured expression into an APScheduler trigger."""
    if isinstance(expression, AtExpression):
        return CronTrigger(
            year=expression.year,
            month=expression.month,
            day=expression.day,
            hour=expression.hour,
            minute=expression.minute,
            second=expression.second,
            timezone=timezone.utc,
        )
    elif isinstance(expression, EveryExpression):
        return IntervalTrigger(
            seconds=expression.interval_seconds,
            start_date=expression.first_fire_at,
            timezone=timezone.utc,
        )
    raise TriggerRegistrationError(f"Unsupported expression: {expression!r}")


class TriggerScheduler:
    """Registers, removes and fires the triggers of tasks.

    One instance owns one `AsyncIOScheduler`; pass it explicitly to every
    caller instead of reaching for a module-level scheduler. Create it from
    inside the event loop that will run the callbacks.
    """

    def __init__(
        self,
        store: TriggerStore,
        notifier: Notifier,
        scheduler: AsyncIOScheduler | None = None,
        pester_unit_seconds: int = DEFAULT_UNIT_SECONDS,
        misfire_grace_seconds: int = 60,
    ):
        """Initialize the scheduler core.

        Args:
            store: Task snapshots and persisted trigger ids
            notifier: Receives trigger firings
            scheduler: Scheduling engine, a UTC `AsyncIOScheduler` by default
            pester_unit_seconds: Length of one pester interval unit
            misfire_grace_seconds: How late a firing may still run
        """
        self.store = store
        self.notifier = notifier
        self.pester_unit_seconds = pester_unit_seconds
        self.misfire_grace_seconds = misfire_grace_seconds
        self._scheduler = scheduler or AsyncIOScheduler(timezone=timezone.utc)
        self._initialized = False
        # (task id, trigger type) -> live trigger id in this process
        self._live: dict[tuple[str, TriggerType], str] = {}

    # ============== Lifecycle ==============

    def start(self) -> None:
        """Start the dispatch loop. Must be called from the running event loop."""
        if not self._scheduler.running:
            self._scheduler.start()
        self._initialized = True
        logger.info("Trigger scheduler started")

    def shutdown(self) -> None:
        """Stop the dispatch loop without waiting for running callbacks."""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._initialized = False
        logger.info("Trigger scheduler stopped")

    def healthy(self) -> bool:
        """Whether the dispatch loop finished initializing and is running."""
        return self._initialized and self._scheduler.running

    def status(self) -> SchedulerStatus:
        jobs = self._scheduler.get_jobs()
        fire_times = [
            job.next_run_time for job in jobs
            if getattr(job, "next_run_time", None) is not None
        ]
        return SchedulerStatus(
            running=self._scheduler.running,
            triggers_total=len(jobs),
            next_fire_at=min(fire_times) if fire_times else None,
        )

    def is_live(self, trigger_id: str) -> bool:
        """Whether a trigger with this id is registered in this process."""
        return self._scheduler.get_job(trigger_id) is not None

    def next_fire_time(self, trigger_id: str) -> datetime | None:
        job = self._scheduler.get_job(trigger_id)
        if job is None:
            return None
        return getattr(job, "next_run_time", None)

    # ============== Registration ==============

    async def register_all(self, task_id: str) -> TriggerRecord:
        """Recompute and register every trigger of a task.

        All trigger types are removed and rebuilt from the current task
        state on every call. A one-shot instant that is already in the past
        is skipped and its field left empty.

        Raises:
            TaskNotFoundError: if the task does not exist
            StoreError: if the store cannot be read or written
        """
        task = await self.store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)

        previous = await self.store.get_trigger_record(task_id)
        for trigger_type, trigger_id in previous.items():
            if trigger_id is not None:
                await self.remove(task_id, trigger_id, trigger_type)
            orphan = self._live.get((task_id, trigger_type))
            if orphan is not None:
                self._cancel(task_id, orphan, trigger_type)

        now = utc_now()
        for trigger_type in TriggerType:
            try:
                expression = build_expression(
                    trigger_type,
                    now,
                    interval=task.interval,
                    due_at=task.due_timestamp,
                    completed=task.completed,
                    unit_seconds=self.pester_unit_seconds,
                )
            except TriggerRegistrationError as e:
                logger.error(f"Skipping {trigger_type.value} for task {task_id}: {e}")
                continue
            if expression is None:
                continue

            if isinstance(expression, AtExpression) and expression.fire_at <= now:
                logger.info(
                    f"Skipping {trigger_type.value} for task {task_id}: "
                    f"{expression.fire_at.isoformat()} already passed"
                )
                continue

            try:
                trigger_id = self._add(task_id, expression)
            except Exception as e:
                logger.error(f"Failed to register {trigger_type.value} for task {task_id}: {e}")
                continue

            await self.store.set_trigger_id(task_id, trigger_type, trigger_id)
            logger.info(
                f"Registered {trigger_type.value} trigger {trigger_id} for task {task_id} "
                f"({expression.describe()})"
            )

        return await self.store.get_trigger_record(task_id)

    async def try_register_all(self, task_id: str) -> TriggerRecord | None:
        """`register_all` for task write handlers: logs failures, never raises."""
        try:
            return await self.register_all(task_id)
        except TaskNotFoundError as e:
            logger.warning(f"Cannot register triggers: {e}")
        except Exception as e:
            logger.exception(f"Registering triggers for task {task_id} failed: {e}")
        return None

    async def get_jobs(self, task_id: str) -> TriggerRecord:
        """Persisted trigger ids of a task.

        Raises:
            TaskNotFoundError: if the task has no record
        """
        return await self.store.get_trigger_record(task_id)

    async def remove(
        self,
        task_id: str,
        trigger_id: str,
        trigger_type: TriggerType,
    ) -> RemoveResult:
        """Cancel a trigger and clear its persisted field.

        Idempotent. The field is only cleared while it still holds
        `trigger_id`, so a newer registration is never wiped.
        """
        cancelled = self._cancel(task_id, trigger_id, trigger_type)

        cleared = False
        try:
            record = await self.store.get_trigger_record(task_id)
        except TaskNotFoundError:
            record = None
        if record is not None and record.get(trigger_type) == trigger_id:
            await self.store.set_trigger_id(task_id, trigger_type, None)
            cleared = True

        if cancelled or cleared:
            logger.info(
                f"Removed {trigger_type.value} trigger {trigger_id} of task {task_id} "
                f"(cancelled={cancelled}, cleared={cleared})"
            )
        return RemoveResult(
            task_id=task_id,
            trigger_id=trigger_id,
            trigger_type=trigger_type,
            cancelled=cancelled,
            cleared=cleared,
        )

    def _add(self, task_id: str, expression: Expression) -> str:
        trigger_type = expression.trigger_type
        trigger_id = str(uuid4())
        trigger = to_trigger(expression)

        self._scheduler.add_job(
            self._fire,
            trigger=trigger,
            id=trigger_id,
            name=f"{trigger_type.value}:{task_id}",
            args=[task_id, trigger_type.value, trigger_id],
            max_instances=1,
            coalesce=True,
            # a late one-shot still fires so it can clear its own record
            misfire_grace_time=(
                self.misfire_grace_seconds if trigger_type.recurring else None
            ),
        )
        self._live[(task_id, trigger_type)] = trigger_id
        return trigger_id

    def _cancel(self, task_id: str, trigger_id: str, trigger_type: TriggerType) -> bool:
        if self._live.get((task_id, trigger_type)) == trigger_id:
            del self._live[(task_id, trigger_type)]
        try:
            self._scheduler.remove_job(trigger_id)
        except JobLookupError:
            return False
        return True

    # ============== Firing ==============

    def _handler(self, trigger_type: TriggerType) -> Callable[[str], Awaitable[None]]:
        if trigger_type is TriggerType.PESTER:
            return self.notifier.on_pester_fired
        elif trigger_type is TriggerType.REMINDER:
            return self.notifier.on_reminder_fired
        return self.notifier.on_overdue_fired

    async def _fire(self, task_id: str, trigger_type_value: str, trigger_id: str) -> None:
        """Job callback: notify, then drop one-shot triggers."""
        trigger_type = TriggerType(trigger_type_value)
        logger.info(f"Trigger {trigger_id} fired: {trigger_type.value} for task {task_id}")

        try:
            await self._handler(trigger_type)(task_id)
        except Exception as e:
            logger.error(f"Notifier failed for {trigger_type.value} of task {task_id}: {e}")

        if trigger_type.recurring:
            await self._drop_if_deleted(task_id, trigger_id, trigger_type)
            return

        try:
            await self.remove(task_id, trigger_id, trigger_type)
        except StoreError as e:
            logger.error(f"Failed to clear fired {trigger_type.value} of task {task_id}: {e}")

    async def _drop_if_deleted(
        self,
        task_id: str,
        trigger_id: str,
        trigger_type: TriggerType,
    ) -> None:
        try:
            if await self.store.get_task(task_id) is None:
                logger.info(f"Task {task_id} is gone, dropping its {trigger_type.value} trigger")
                await self.remove(task_id, trigger_id, trigger_type)
        except StoreError as e:
            logger.error(f"Could not check task {task_id} after {trigger_type.value}: {e}")

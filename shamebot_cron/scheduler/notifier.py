"""Notifier invoked when a task trigger fires.

The scheduler only knows the `Notifier` port. `ChannelNotifier` is the
production implementation: it looks the task up again and posts a short
message through a chat channel.
"""
import asyncio

from loguru import logger

from ..channels.base import Channel
from .models import Task
from .ports import TaskSource
from .types import TriggerType

logger = logger.bind(module="scheduler.notifier")


def _mention(task: Task) -> str:
    return f"<@{task.user_id}>" if task.user_id else "hey"


class ChannelNotifier:
    """Posts trigger messages to one chat channel.

    The channel connection is shared by every trigger callback, so each send
    holds `_lock`. Each send is bounded by `timeout_seconds`.
    """

    def __init__(
        self,
        channel: Channel,
        tasks: TaskSource,
        channel_id: str,
        timeout_seconds: float = 10.0,
    ):
        """Initialize notifier.

        Args:
            channel: Connected outbound channel
            tasks: Source of current task snapshots
            channel_id: Conversation the messages are posted to
            timeout_seconds: Upper bound for a single send
        """
        self.channel = channel
        self.tasks = tasks
        self.channel_id = channel_id
        self.timeout_seconds = timeout_seconds
        self._lock = asyncio.Lock()

    async def on_pester_fired(self, task_id: str) -> None:
        await self._notify(task_id, TriggerType.PESTER)

    async def on_reminder_fired(self, task_id: str) -> None:
        await self._notify(task_id, TriggerType.REMINDER)

    async def on_overdue_fired(self, task_id: str) -> None:
        await self._notify(task_id, TriggerType.OVERDUE)

    async def _notify(self, task_id: str, trigger_type: TriggerType) -> None:
        task = await self.tasks.get_task(task_id)
        if task is None:
            logger.info(f"Task {task_id} no longer exists, skipping {trigger_type.value}")
            return
        if task.completed:
            logger.debug(f"Task {task_id} already finished, skipping {trigger_type.value}")
            return

        message = self._message(task, trigger_type)
        async with self._lock:
            sent = await asyncio.wait_for(
                self.channel.send(self.channel_id, message),
                timeout=self.timeout_seconds,
            )

        if sent:
            logger.info(f"Sent {trigger_type.value} for task {task_id}")
        else:
            logger.warning(f"Channel refused {trigger_type.value} for task {task_id}")

    @staticmethod
    def _message(task: Task, trigger_type: TriggerType) -> str:
        if trigger_type is TriggerType.PESTER:
            message = f"{_mention(task)}! {task.title} still isn't finished yet >:c"
            if task.due_timestamp:
                message += f"\n\nyou have until <t:{task.due_timestamp}>. use your time wisely."
            return message
        if trigger_type is TriggerType.REMINDER:
            return f"{_mention(task)}! you have _one hour_ to finish {task.title}"
        return f"your time to complete {task.title} is up, {_mention(task)}."

"""Exceptions raised by the trigger scheduler."""


class SchedulerError(Exception):
    """Base class for scheduler errors."""


class StoreError(SchedulerError):
    """The task or trigger store could not be read or written."""


class TaskNotFoundError(StoreError):
    """No task (and therefore no trigger record) exists for the given id."""

    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class TriggerRegistrationError(SchedulerError):
    """A single trigger could not be handed to the scheduling engine."""

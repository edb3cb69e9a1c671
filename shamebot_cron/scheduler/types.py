"""Core type definitions for the trigger scheduler.

This module defines:
- Trigger types (pester/reminder/overdue)
- Calendar expressions (at/every) produced by the builder
- Trigger records persisted per task
- Result types returned by the scheduler
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal


# ============== Trigger Types ==============

class TriggerType(str, Enum):
    """Kind of trigger attached to a task."""
    PESTER = "pester"       # Recurring nudge while the task is unfinished
    REMINDER = "reminder"   # One-shot, one hour before the due date
    OVERDUE = "overdue"     # One-shot, five minutes after the due date

    @property
    def recurring(self) -> bool:
        return self is TriggerType.PESTER


# ============== Calendar Expressions ==============

@dataclass(frozen=True)
class AtExpression:
    """One-shot expression pinned to a calendar instant (UTC, second precision)."""
    trigger_type: TriggerType
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int
    kind: Literal["at"] = "at"

    @classmethod
    def from_timestamp(cls, trigger_type: TriggerType, ts: int) -> "AtExpression":
        dt = datetime.fromtimestamp(ts, tz=timezone.utc)
        return cls(
            trigger_type=trigger_type,
            year=dt.year,
            month=dt.month,
            day=dt.day,
            hour=dt.hour,
            minute=dt.minute,
            second=dt.second,
        )

    @property
    def fire_at(self) -> datetime:
        return datetime(
            self.year, self.month, self.day,
            self.hour, self.minute, self.second,
            tzinfo=timezone.utc,
        )

    @property
    def timestamp(self) -> int:
        return int(self.fire_at.timestamp())

    def to_cron(self) -> str:
        """Textual 7-field form: sec min hour day month weekday year."""
        return (
            f"{self.second} {self.minute} {self.hour} "
            f"{self.day} {self.month} * {self.year}"
        )

    def describe(self) -> str:
        return self.to_cron()

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "trigger_type": self.trigger_type.value,
            "fire_at": self.timestamp,
        }


@dataclass(frozen=True)
class EveryExpression:
    """Recurring expression firing every `interval_seconds`, starting from `start_at`."""
    trigger_type: TriggerType
    interval_seconds: int
    start_at: datetime
    kind: Literal["every"] = "every"

    @property
    def first_fire_at(self) -> datetime:
        return datetime.fromtimestamp(
            int(self.start_at.timestamp()) + self.interval_seconds, tz=timezone.utc
        )

    def describe(self) -> str:
        return f"every {self.interval_seconds}s"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "trigger_type": self.trigger_type.value,
            "interval_seconds": self.interval_seconds,
            "start_at": int(self.start_at.timestamp()),
        }


# Union type for all expression types
Expression = AtExpression | EveryExpression


# ============== Trigger Records ==============

@dataclass
class TriggerRecord:
    """Persisted trigger ids of one task; None means not registered."""
    task_id: str
    pester: str | None = None
    reminder: str | None = None
    overdue: str | None = None

    def get(self, trigger_type: TriggerType) -> str | None:
        return getattr(self, trigger_type.value)

    def set_id(self, trigger_type: TriggerType, trigger_id: str | None) -> None:
        setattr(self, trigger_type.value, trigger_id)

    def items(self) -> list[tuple[TriggerType, str | None]]:
        return [(t, self.get(t)) for t in TriggerType]

    @property
    def populated(self) -> set[TriggerType]:
        """Trigger types that currently hold an id."""
        return {t for t, trigger_id in self.items() if trigger_id is not None}

    def to_dict(self) -> dict[str, Any]:
        return {
            "task_id": self.task_id,
            "pester": self.pester,
            "reminder": self.reminder,
            "overdue": self.overdue,
        }


# ============== Result Types ==============

@dataclass
class RemoveResult:
    """Result of removing a trigger."""
    task_id: str
    trigger_id: str
    trigger_type: TriggerType
    cancelled: bool
    cleared: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "task_id": self.task_id,
            "trigger_id": self.trigger_id,
            "trigger_type": self.trigger_type.value,
            "cancelled": self.cancelled,
            "cleared": self.cleared,
        }


@dataclass
class SchedulerStatus:
    """Status of the scheduler service."""
    running: bool
    triggers_total: int
    next_fire_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "running": self.running,
            "triggers_total": self.triggers_total,
            "next_fire_at": int(self.next_fire_at.timestamp()) if self.next_fire_at else None,
        }


@dataclass
class ReconcileReport:
    """Outcome of a startup reconciliation pass."""
    tasks_seen: int = 0
    stale_cleared: int = 0
    failed: list[str] = field(default_factory=list)
    records: dict[str, TriggerRecord] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tasks_seen": self.tasks_seen,
            "stale_cleared": self.stale_cleared,
            "failed": self.failed,
            "records": {k: v.to_dict() for k, v in self.records.items()},
        }

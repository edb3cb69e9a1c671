"""Data models for tasks read by the scheduler."""
from dataclasses import dataclass
from typing import Any
import uuid


@dataclass
class Task:
    """Read-only snapshot of a task as stored by the task service.

    `pester` is the recurrence interval in pester units and `due_at` a UNIX
    timestamp in seconds. Zero or None means the setting is not used.
    """
    id: str = ""
    list_id: str = ""
    user_id: int | None = None
    title: str = ""
    pester: int | None = None
    due_at: int | None = None
    checked: bool = False

    def __post_init__(self) -> None:
        if not self.id:
            self.id = str(uuid.uuid4())

    @property
    def completed(self) -> bool:
        return self.checked

    @property
    def interval(self) -> int | None:
        """Recurrence interval, None when not set."""
        return self.pester if self.pester else None

    @property
    def due_timestamp(self) -> int | None:
        """Due timestamp, None when not set."""
        return self.due_at if self.due_at else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "list_id": self.list_id,
            "user_id": self.user_id,
            "title": self.title,
            "pester": self.pester,
            "due_at": self.due_at,
            "checked": self.checked,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Create from dictionary."""
        return cls(
            id=data.get("id", ""),
            list_id=data.get("list_id", ""),
            user_id=data.get("user_id"),
            title=data.get("title", ""),
            pester=data.get("pester"),
            due_at=data.get("due_at"),
            checked=bool(data.get("checked", False)),
        )

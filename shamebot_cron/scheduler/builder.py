"""Trigger expression builder.

Turns a task's recurrence interval and due date into calendar expressions.
Pure: no I/O, and the reference time is always passed in.
"""
import time
from datetime import datetime, timezone

from .errors import TriggerRegistrationError
from .types import (
    AtExpression,
    EveryExpression,
    Expression,
    TriggerType,
)

REMINDER_LEAD_SECONDS = 3600
OVERDUE_GRACE_SECONDS = 300
DEFAULT_UNIT_SECONDS = 3600


def utc_now() -> datetime:
    """Current time truncated to the second, in UTC."""
    return datetime.fromtimestamp(int(time.time()), tz=timezone.utc)


def build_expressions(
    now: datetime,
    interval: int | None,
    due_at: int | None,
    completed: bool = False,
    unit_seconds: int = DEFAULT_UNIT_SECONDS,
) -> list[Expression]:
    """Build every expression a task currently calls for.

    Args:
        now: Reference time, anchors the pester recurrence
        interval: Pester interval in units of `unit_seconds`
        due_at: Due date as a UNIX timestamp in seconds
        completed: Whether the task is already finished
        unit_seconds: Length of one interval unit

    Returns:
        Zero to three expressions, in pester/reminder/overdue order.
        Instants in the past are returned as-is.

    Raises:
        TriggerRegistrationError: if any expression cannot be represented
    """
    expressions: list[Expression] = []
    for trigger_type in TriggerType:
        expression = build_expression(
            trigger_type, now, interval, due_at, completed, unit_seconds
        )
        if expression is not None:
            expressions.append(expression)
    return expressions


def build_expression(
    trigger_type: TriggerType,
    now: datetime,
    interval: int | None,
    due_at: int | None,
    completed: bool = False,
    unit_seconds: int = DEFAULT_UNIT_SECONDS,
) -> Expression | None:
    """Build the expression of one trigger type, None if the task needs none.

    Raises:
        TriggerRegistrationError: if the instant or interval is out of range
    """
    if trigger_type is TriggerType.PESTER:
        return _build_pester(now, interval, completed, unit_seconds)
    if not due_at:
        return None

    if trigger_type is TriggerType.REMINDER:
        ts = due_at - REMINDER_LEAD_SECONDS
    else:
        ts = due_at + OVERDUE_GRACE_SECONDS
    try:
        return AtExpression.from_timestamp(trigger_type, ts)
    except (ValueError, OverflowError, OSError) as e:
        raise TriggerRegistrationError(
            f"Due timestamp {due_at} gives no valid {trigger_type.value} instant: {e}"
        ) from e


def _build_pester(
    now: datetime,
    interval: int | None,
    completed: bool,
    unit_seconds: int,
) -> EveryExpression | None:
    if completed or interval is None or interval <= 0:
        return None
    if unit_seconds <= 0:
        raise ValueError(f"unit_seconds must be positive, got {unit_seconds}")

    expression = EveryExpression(
        trigger_type=TriggerType.PESTER,
        interval_seconds=interval * unit_seconds,
        start_at=now.replace(microsecond=0),
    )
    try:
        expression.first_fire_at
    except (ValueError, OverflowError, OSError) as e:
        raise TriggerRegistrationError(
            f"Pester interval {interval} is out of range: {e}"
        ) from e
    return expression

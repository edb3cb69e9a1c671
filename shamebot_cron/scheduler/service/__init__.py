"""Scheduler service package.

This package contains the core scheduler service components:
- store.py: SQLite task + trigger id persistence
- core.py: live trigger registration, removal and firing
- reconciler.py: startup rebuild of live triggers from the store
"""
from .core import TriggerScheduler
from .reconciler import reconcile
from .store import SqliteTaskStore

__all__ = ["TriggerScheduler", "SqliteTaskStore", "reconcile"]

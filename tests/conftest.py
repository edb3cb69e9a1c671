"""Shared fixtures: a real SQLite store and a started trigger scheduler."""
from pathlib import Path

import pytest
import pytest_asyncio

from shamebot_cron.scheduler.service import SqliteTaskStore, TriggerScheduler

from .fakes import RecordingNotifier


@pytest_asyncio.fixture
async def store(tmp_path: Path):
    s = SqliteTaskStore(tmp_path / "shamebot.db")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def scheduler(store, notifier):
    """Scheduler core on a UTC AsyncIOScheduler bound to the test's event loop."""
    core = TriggerScheduler(store, notifier, pester_unit_seconds=3600)
    core.start()
    yield core
    core.shutdown()

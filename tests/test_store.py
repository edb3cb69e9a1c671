"""Tests for the SQLite task and trigger id store."""
import pytest

from shamebot_cron.scheduler.errors import StoreError, TaskNotFoundError
from shamebot_cron.scheduler.service import SqliteTaskStore
from shamebot_cron.scheduler.types import TriggerRecord, TriggerType

from .fakes import make_task


class TestTasks:

    @pytest.mark.asyncio
    async def test_save_and_get(self, store):
        task = make_task(pester=4, due_at=1700000000)
        await store.save_task(task)

        loaded = await store.get_task(task.id)
        assert loaded == task

    @pytest.mark.asyncio
    async def test_unset_columns_read_as_unset(self, store):
        """Zero pester/due_at are stored as column defaults and mean 'not set'."""
        task = make_task()
        await store.save_task(task)

        loaded = await store.get_task(task.id)
        assert loaded.interval is None
        assert loaded.due_timestamp is None

    @pytest.mark.asyncio
    async def test_missing_task(self, store):
        assert await store.get_task("nope") is None

    @pytest.mark.asyncio
    async def test_delete_cascades_to_triggers(self, store):
        task = make_task(pester=1)
        await store.save_task(task)
        await store.set_trigger_id(task.id, TriggerType.PESTER, "t-1")

        assert await store.delete_task(task.id) is True
        assert await store.list_tasks_with_any_trigger() == []


class TestTriggerRecords:

    @pytest.mark.asyncio
    async def test_empty_record(self, store):
        task = make_task()
        await store.save_task(task)

        record = await store.get_trigger_record(task.id)
        assert record == TriggerRecord(task_id=task.id)
        assert record.populated == set()

    @pytest.mark.asyncio
    async def test_unknown_task_has_no_record(self, store):
        with pytest.raises(TaskNotFoundError):
            await store.get_trigger_record("nope")

    @pytest.mark.asyncio
    async def test_fields_are_independent(self, store):
        """Writing one trigger type never touches the others."""
        task = make_task()
        await store.save_task(task)

        await store.set_trigger_id(task.id, TriggerType.PESTER, "p-1")
        await store.set_trigger_id(task.id, TriggerType.OVERDUE, "o-1")
        await store.set_trigger_id(task.id, TriggerType.PESTER, None)

        record = await store.get_trigger_record(task.id)
        assert record.pester is None
        assert record.reminder is None
        assert record.overdue == "o-1"

    @pytest.mark.asyncio
    async def test_list_tasks_with_any_trigger(self, store):
        a, b, c = make_task(id="a"), make_task(id="b"), make_task(id="c")
        for task in (a, b, c):
            await store.save_task(task)

        await store.set_trigger_id("a", TriggerType.REMINDER, "r-1")
        await store.set_trigger_id("b", TriggerType.PESTER, "p-1")
        await store.set_trigger_id("b", TriggerType.PESTER, None)
        await store.set_trigger_id("c", TriggerType.OVERDUE, "o-1")

        assert await store.list_tasks_with_any_trigger() == ["a", "c"]

    @pytest.mark.asyncio
    async def test_trigger_for_unknown_task_is_rejected(self, store):
        with pytest.raises(StoreError):
            await store.set_trigger_id("nope", TriggerType.PESTER, "p-1")


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_health(self, tmp_path):
        s = SqliteTaskStore(tmp_path / "h.db")
        assert await s.healthy() is False

        await s.initialize()
        assert await s.healthy() is True

        await s.close()
        assert await s.healthy() is False

    @pytest.mark.asyncio
    async def test_use_before_initialize(self, tmp_path):
        s = SqliteTaskStore(tmp_path / "h.db")
        with pytest.raises(StoreError):
            await s.get_task("a")

"""Tests for startup reconciliation of stale trigger ids."""
import pytest

from shamebot_cron.scheduler.errors import StoreError
from shamebot_cron.scheduler.service import reconcile
from shamebot_cron.scheduler.types import TriggerType

from .fakes import in_seconds, make_task

DAY = 86400


async def seed_stale(store, task, *trigger_types):
    """Persist ids left behind by a previous process."""
    stale = {}
    for trigger_type in trigger_types:
        trigger_id = f"stale-{task.id}-{trigger_type.value}"
        await store.set_trigger_id(task.id, trigger_type, trigger_id)
        stale[trigger_type] = trigger_id
    return stale


class TestReconcile:

    @pytest.mark.asyncio
    async def test_nothing_to_resume(self, scheduler, store):
        report = await reconcile(scheduler, store)

        assert report.tasks_seen == 0
        assert scheduler.status().triggers_total == 0

    @pytest.mark.asyncio
    async def test_stale_ids_replaced(self, scheduler, store, notifier):
        task = make_task(pester=2, due_at=in_seconds(DAY))
        await store.save_task(task)
        stale = await seed_stale(store, task, *TriggerType)

        report = await reconcile(scheduler, store)

        record = await scheduler.get_jobs(task.id)
        assert report.tasks_seen == 1
        assert report.stale_cleared == 3
        assert record.populated == set(TriggerType)
        assert {record.get(t) for t in TriggerType}.isdisjoint(stale.values())
        assert all(scheduler.is_live(record.get(t)) for t in TriggerType)
        assert notifier.calls == []

    @pytest.mark.asyncio
    async def test_matches_fresh_registration(self, scheduler, store):
        """Populated types after reconciliation equal those of a fresh register_all."""
        live = make_task(id="live", pester=1, due_at=in_seconds(DAY))
        done = make_task(id="done", pester=1, checked=True)
        elapsed = make_task(id="elapsed", due_at=in_seconds(-DAY))
        soon = make_task(id="soon", due_at=in_seconds(120))
        for task in (live, done, elapsed, soon):
            await store.save_task(task)
            await seed_stale(store, task, *TriggerType)

        report = await reconcile(scheduler, store)

        assert report.failed == []
        assert report.records["live"].populated == set(TriggerType)
        assert report.records["done"].populated == set()
        assert report.records["elapsed"].populated == set()
        assert report.records["soon"].populated == {TriggerType.OVERDUE}

        for task_id, record in report.records.items():
            fresh = await scheduler.register_all(task_id)
            assert fresh.populated == record.populated

        assert await store.list_tasks_with_any_trigger() == ["live", "soon"]

    @pytest.mark.asyncio
    async def test_running_twice_converges(self, scheduler, store):
        task = make_task(pester=3, due_at=in_seconds(DAY))
        await store.save_task(task)
        await seed_stale(store, task, TriggerType.PESTER)

        first = (await reconcile(scheduler, store)).records[task.id]
        second = (await reconcile(scheduler, store)).records[task.id]

        assert first.populated == second.populated == set(TriggerType)
        assert first.pester != second.pester
        assert scheduler.status().triggers_total == 3

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_the_rest(self, scheduler, store, monkeypatch):
        good = make_task(id="good", pester=1)
        bad = make_task(id="bad", pester=1)
        for task in (bad, good):
            await store.save_task(task)
            await seed_stale(store, task, TriggerType.PESTER)

        real = scheduler.register_all

        async def flaky(task_id):
            if task_id == "bad":
                raise StoreError("disk on fire")
            return await real(task_id)

        monkeypatch.setattr(scheduler, "register_all", flaky)

        report = await reconcile(scheduler, store)

        assert report.failed == ["bad"]
        assert report.records["good"].pester is not None
        assert (await store.get_trigger_record("bad")).pester is None

    @pytest.mark.asyncio
    async def test_out_of_range_due_date_does_not_stop_startup(self, scheduler, store):
        bad = make_task(id="a-bad", pester=2, due_at=1700000000000)
        good = make_task(id="b-good", due_at=in_seconds(DAY))
        for task in (bad, good):
            await store.save_task(task)
            await seed_stale(store, task, TriggerType.REMINDER)

        report = await reconcile(scheduler, store)

        assert report.failed == []
        assert report.records["a-bad"].populated == {TriggerType.PESTER}
        assert report.records["b-good"].populated == {TriggerType.REMINDER, TriggerType.OVERDUE}

    @pytest.mark.asyncio
    async def test_unexpected_error_is_counted(self, scheduler, store, monkeypatch):
        for task_id in ("a-bad", "b-good"):
            task = make_task(id=task_id, pester=1)
            await store.save_task(task)
            await seed_stale(store, task, TriggerType.PESTER)

        real = scheduler.register_all

        async def flaky(task_id):
            if task_id == "a-bad":
                raise RuntimeError("boom")
            return await real(task_id)

        monkeypatch.setattr(scheduler, "register_all", flaky)

        report = await reconcile(scheduler, store)

        assert report.failed == ["a-bad"]
        assert report.records["b-good"].pester is not None

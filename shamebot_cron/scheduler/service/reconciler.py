"""Startup reconciliation of persisted trigger ids.

The previous process took its live triggers with it, so every trigger id
still in the store is stale bookkeeping. Each affected task has its ids
cleared and its triggers rebuilt from the current task state. Clearing a
stale id never notifies anyone.
"""
from loguru import logger

from ..errors import SchedulerError, TaskNotFoundError
from ..ports import JobStore
from ..types import ReconcileReport
from .core import TriggerScheduler

logger = logger.bind(module="scheduler.reconciler")


async def reconcile(scheduler: TriggerScheduler, store: JobStore) -> ReconcileReport:
    """Rebuild live triggers for every task that has persisted trigger ids.

    Run once after `scheduler.start()` and before the service reports ready.
    A failure on one task is logged and recorded; the rest still run.

    Raises:
        StoreError: if the list of tasks cannot be read
    """
    report = ReconcileReport()
    task_ids = await store.list_tasks_with_any_trigger()
    if not task_ids:
        logger.info("No existing triggers found to resume")
        return report

    logger.info(f"Resuming triggers for {len(task_ids)} tasks")
    for task_id in task_ids:
        report.tasks_seen += 1
        try:
            stale = await store.get_trigger_record(task_id)
            for trigger_type, trigger_id in stale.items():
                if trigger_id is None:
                    continue
                await scheduler.remove(task_id, trigger_id, trigger_type)
                report.stale_cleared += 1

            report.records[task_id] = await scheduler.register_all(task_id)
        except TaskNotFoundError:
            logger.warning(f"Task {task_id} vanished during reconciliation")
            report.failed.append(task_id)
        except SchedulerError as e:
            logger.error(f"Failed to reconcile task {task_id}: {e}")
            report.failed.append(task_id)
        except Exception as e:
            logger.exception(f"Unexpected error reconciling task {task_id}: {e}")
            report.failed.append(task_id)

    logger.info(
        f"Reconciled {report.tasks_seen} tasks, cleared {report.stale_cleared} stale ids, "
        f"{len(report.failed)} failed"
    )
    return report

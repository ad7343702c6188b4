from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from wolf_marketer.db.enums import ActivityTypeEnum, TaskStatusEnum
from wolf_marketer.db.models import Task
from wolf_marketer.services.errors import BusinessRuleError, NotFoundError
from wolf_marketer.services.money import ZERO, format_money, quantize_money
from wolf_marketer.storage.interface import Storage
from wolf_marketer.storage.lifecycle import TERMINAL_TASK_STATUSES, coerce_task_status

logger = logging.getLogger(__name__)


def get_task_or_404(storage: Storage, task_id: int) -> Task:
    task = storage.get_task(task_id)
    if not task:
        raise NotFoundError("Task not found")
    return task


def create_task(
    storage: Storage,
    *,
    workflow_id: int,
    platform_id: Optional[int] = None,
    action: Optional[str] = None,
    result: Optional[dict[str, Any]] = None,
) -> Task:
    workflow = storage.get_workflow(workflow_id)
    if not workflow:
        raise BusinessRuleError(f"Workflow {workflow_id} does not exist")
    if platform_id is not None and not storage.get_platform(platform_id):
        raise BusinessRuleError(f"Platform {platform_id} does not exist")

    task = storage.create_task(
        workflow_id=workflow_id,
        platform_id=platform_id if platform_id is not None else workflow.platform_id,
        action=action,
        result=result,
    )
    logger.info("tasks.created", extra={"task_id": task.id, "workflow_id": workflow_id})
    return task


def finish_task(
    storage: Storage,
    task_id: int,
    *,
    status: TaskStatusEnum | str,
    revenue: Any = None,
    result: Optional[dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> Task:
    """Move a pending task to its terminal status and roll the outcome up.

    The task write is guarded by the storage layer, so a task can be finished
    at most once; the workflow rollup and the activities follow only after
    that write succeeded.
    """
    target = coerce_task_status(status)
    if target not in TERMINAL_TASK_STATUSES:
        raise BusinessRuleError("Task outcome must be 'completed' or 'failed'")
    get_task_or_404(storage, task_id)

    now = now or datetime.now(timezone.utc)
    amount = quantize_money(revenue) if revenue is not None else None
    if amount is not None and amount < ZERO:
        raise BusinessRuleError("Task revenue cannot be negative")

    fields: dict[str, Any] = {"status": target, "completed_at": now}
    if amount is not None:
        fields["revenue"] = amount
    if result is not None:
        fields["result"] = result
    task = storage.update_task(task_id, **fields)
    if not task:
        raise NotFoundError("Task not found")

    succeeded = target == TaskStatusEnum.completed
    workflow = None
    if task.workflow_id is not None:
        workflow = storage.record_workflow_outcome(
            task.workflow_id,
            succeeded=succeeded,
            revenue=amount or ZERO,
            ran_at=now,
        )

    label = workflow.name if workflow else f"Task {task.id}"
    if succeeded:
        storage.create_activity(
            type=ActivityTypeEnum.success.value,
            title=f"Task completed: {label}",
            description=task.action,
            workflow_id=task.workflow_id,
            platform_id=task.platform_id,
            task_id=task.id,
            data=result,
        )
    else:
        storage.create_activity(
            type=ActivityTypeEnum.error.value,
            title=f"Task failed: {label}",
            description=task.action,
            workflow_id=task.workflow_id,
            platform_id=task.platform_id,
            task_id=task.id,
            data=result,
        )
    if amount is not None and amount > ZERO:
        storage.create_activity(
            type=ActivityTypeEnum.revenue.value,
            title=f"Revenue recorded: ${format_money(amount)}",
            description=label,
            workflow_id=task.workflow_id,
            platform_id=task.platform_id,
            task_id=task.id,
            data={"amount": format_money(amount)},
        )

    logger.info(
        "tasks.finished",
        extra={
            "task_id": task.id,
            "workflow_id": task.workflow_id,
            "status": target.value,
            "revenue": format_money(amount or Decimal("0")),
        },
    )
    return task


def delete_task(storage: Storage, task_id: int) -> None:
    if not storage.delete_task(task_id):
        raise NotFoundError("Task not found")

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from wolf_marketer.config import settings
from wolf_marketer.db.enums import ActivityTypeEnum
from wolf_marketer.db.models import Workflow
from wolf_marketer.services.errors import BusinessRuleError, NotFoundError
from wolf_marketer.storage.interface import Storage

logger = logging.getLogger(__name__)

_STAT_FIELDS = ("runs", "successes", "failures")


def get_workflow_or_404(storage: Storage, workflow_id: int) -> Workflow:
    workflow = storage.get_workflow(workflow_id)
    if not workflow:
        raise NotFoundError("Workflow not found")
    return workflow


def validate_stats(runs: int, successes: int, failures: int) -> None:
    if min(runs, successes, failures) < 0:
        raise BusinessRuleError("Workflow stats cannot be negative")
    if successes + failures > runs:
        raise BusinessRuleError("Workflow stats are inconsistent: successes + failures exceeds runs")


def create_workflow(
    storage: Storage,
    *,
    platform_id: int,
    name: str,
    now: Optional[datetime] = None,
    **fields: Any,
) -> Workflow:
    if not storage.get_platform(platform_id):
        raise BusinessRuleError(f"Platform {platform_id} does not exist")
    validate_stats(*(fields.get(key, 0) for key in _STAT_FIELDS))

    now = now or datetime.now(timezone.utc)
    fields.setdefault("next_run", now + timedelta(minutes=settings.WORKFLOW_INITIAL_RUN_DELAY_MINUTES))
    workflow = storage.create_workflow(platform_id=platform_id, name=name.strip(), **fields)
    storage.create_activity(
        type=ActivityTypeEnum.system.value,
        title=f"Workflow created: {workflow.name}",
        workflow_id=workflow.id,
        platform_id=platform_id,
    )
    logger.info(
        "workflows.created",
        extra={"workflow_id": workflow.id, "platform_id": platform_id},
    )
    return workflow


def update_workflow(
    storage: Storage,
    workflow_id: int,
    *,
    expected_version: Optional[int] = None,
    **fields: Any,
) -> Workflow:
    workflow = get_workflow_or_404(storage, workflow_id)
    if "platform_id" in fields and not storage.get_platform(fields["platform_id"]):
        raise BusinessRuleError(f"Platform {fields['platform_id']} does not exist")
    if any(key in fields for key in _STAT_FIELDS):
        validate_stats(*(fields.get(key, getattr(workflow, key)) for key in _STAT_FIELDS))

    updated = storage.update_workflow(workflow_id, expected_version=expected_version, **fields)
    if not updated:
        raise NotFoundError("Workflow not found")
    logger.info(
        "workflows.updated",
        extra={"workflow_id": workflow_id, "fields": sorted(fields), "version": updated.version},
    )
    return updated


def delete_workflow(storage: Storage, workflow_id: int) -> None:
    workflow = get_workflow_or_404(storage, workflow_id)
    name, platform_id = workflow.name, workflow.platform_id
    if not storage.delete_workflow(workflow_id):
        raise NotFoundError("Workflow not found")
    storage.create_activity(
        type=ActivityTypeEnum.system.value,
        title=f"Workflow deleted: {name}",
        platform_id=platform_id,
    )
    logger.info("workflows.deleted", extra={"workflow_id": workflow_id})

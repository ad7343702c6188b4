from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from wolf_marketer.db.enums import TaskStatusEnum
from wolf_marketer.services import tasks as task_service
from wolf_marketer.services import workflows as workflow_service
from wolf_marketer.services.errors import (
    BusinessRuleError,
    InvalidTaskTransitionError,
    NotFoundError,
    StaleRecordError,
)
from wolf_marketer.services.reporting import as_utc

NOW = datetime(2024, 5, 10, 15, 0, tzinfo=timezone.utc)


@pytest.fixture()
def workflow(storage):
    platform = storage.create_platform(name="Clickbank", type="affiliate", api_key="cb_key")
    return workflow_service.create_workflow(storage, platform_id=platform.id, name="CB Scanner", now=NOW)


def test_create_workflow_schedules_first_run_and_logs_activity(storage, workflow):
    assert workflow.id == 1
    assert workflow.status.value == "inactive"
    assert as_utc(workflow.next_run) == NOW + timedelta(minutes=15)
    assert storage.list_activities(limit=1)[0].title == "Workflow created: CB Scanner"


def test_create_workflow_rejects_unknown_platform(storage):
    with pytest.raises(BusinessRuleError):
        workflow_service.create_workflow(storage, platform_id=42, name="Orphan")
    assert storage.list_workflows() == []


def test_create_workflow_rejects_inconsistent_stats(storage):
    platform = storage.create_platform(name="Fiverr", type="freelance")

    with pytest.raises(BusinessRuleError):
        workflow_service.create_workflow(
            storage, platform_id=platform.id, name="Bad", runs=5, successes=4, failures=2
        )


def test_create_task_inherits_workflow_platform(storage, workflow):
    task = task_service.create_task(storage, workflow_id=workflow.id, action="scan_marketplace")

    assert task.status == TaskStatusEnum.pending
    assert task.platform_id == workflow.platform_id


def test_create_task_requires_existing_workflow(storage):
    with pytest.raises(BusinessRuleError):
        task_service.create_task(storage, workflow_id=404)


def test_finish_task_rolls_up_into_workflow(storage, workflow):
    task = task_service.create_task(storage, workflow_id=workflow.id, action="scan_marketplace")

    finished = task_service.finish_task(
        storage, task.id, status="completed", revenue="42.50", result={"productsFound": 3}, now=NOW
    )

    assert finished.status == TaskStatusEnum.completed
    assert finished.revenue == Decimal("42.50")
    assert as_utc(finished.completed_at) == NOW
    updated = storage.get_workflow(workflow.id)
    assert (updated.runs, updated.successes, updated.failures) == (1, 1, 0)
    assert updated.revenue == Decimal("42.50")
    assert as_utc(updated.last_run) == NOW

    titles = [activity.title for activity in storage.list_activities(limit=3)]
    assert "Task completed: CB Scanner" in titles
    assert "Revenue recorded: $42.50" in titles


def test_failed_task_counts_as_failure_without_revenue_activity(storage, workflow):
    task = task_service.create_task(storage, workflow_id=workflow.id)

    task_service.finish_task(storage, task.id, status=TaskStatusEnum.failed, now=NOW)

    updated = storage.get_workflow(workflow.id)
    assert (updated.runs, updated.successes, updated.failures) == (1, 0, 1)
    latest = storage.list_activities(limit=1)[0]
    assert latest.type == "error"
    assert latest.title == "Task failed: CB Scanner"
    assert not any(activity.type == "revenue" for activity in storage.list_activities())


def test_task_cannot_be_finished_twice(storage, workflow):
    task = task_service.create_task(storage, workflow_id=workflow.id)
    task_service.finish_task(storage, task.id, status="completed", revenue="10", now=NOW)

    with pytest.raises(InvalidTaskTransitionError):
        task_service.finish_task(storage, task.id, status="failed", now=NOW)

    updated = storage.get_workflow(workflow.id)
    assert (updated.runs, updated.successes, updated.failures) == (1, 1, 0)
    assert updated.successes + updated.failures <= updated.runs
    assert storage.get_task(task.id).status == TaskStatusEnum.completed


def test_finish_task_rejects_pending_target(storage, workflow):
    task = task_service.create_task(storage, workflow_id=workflow.id)

    with pytest.raises(BusinessRuleError):
        task_service.finish_task(storage, task.id, status="pending")


def test_finish_task_rejects_negative_revenue(storage, workflow):
    task = task_service.create_task(storage, workflow_id=workflow.id)

    with pytest.raises(BusinessRuleError):
        task_service.finish_task(storage, task.id, status="completed", revenue="-1.00")
    assert storage.get_task(task.id).status == TaskStatusEnum.pending


def test_finish_and_delete_missing_task(storage):
    with pytest.raises(NotFoundError):
        task_service.finish_task(storage, 99, status="completed")
    with pytest.raises(NotFoundError):
        task_service.delete_task(storage, 99)


def test_update_workflow_checks_expected_version(storage, workflow):
    updated = workflow_service.update_workflow(storage, workflow.id, expected_version=1, description="v2")
    assert updated.version == 2

    with pytest.raises(StaleRecordError) as excinfo:
        workflow_service.update_workflow(storage, workflow.id, expected_version=1, description="v3")
    assert excinfo.value.status_code == 409


def test_update_workflow_validates_merged_stats(storage, workflow):
    storage.update_workflow(workflow.id, runs=10, successes=6, failures=2)

    with pytest.raises(BusinessRuleError):
        workflow_service.update_workflow(storage, workflow.id, successes=9)


def test_delete_workflow_logs_activity(storage, workflow):
    workflow_service.delete_workflow(storage, workflow.id)

    assert storage.get_workflow(workflow.id) is None
    assert storage.list_activities(limit=1)[0].title == "Workflow deleted: CB Scanner"
    with pytest.raises(NotFoundError):
        workflow_service.delete_workflow(storage, workflow.id)

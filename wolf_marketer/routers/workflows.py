from typing import Any

from fastapi import APIRouter, Depends, Response, status

from wolf_marketer.db.models import Workflow
from wolf_marketer.schemas.workflows import (
    WorkflowCreateRequest,
    WorkflowResponse,
    WorkflowStats,
    WorkflowUpdateRequest,
)
from wolf_marketer.services import workflows as workflow_service
from wolf_marketer.services.money import format_money
from wolf_marketer.storage.deps import get_storage
from wolf_marketer.storage.interface import Storage

router = APIRouter(prefix="/workflows", tags=["workflows"])


def _serialize_workflow(workflow: Workflow) -> WorkflowResponse:
    return WorkflowResponse(
        id=workflow.id,
        platformId=workflow.platform_id,
        name=workflow.name,
        description=workflow.description,
        status=workflow.status,
        steps=workflow.steps or [],
        lastRun=workflow.last_run,
        nextRun=workflow.next_run,
        revenue=format_money(workflow.revenue),
        stats=WorkflowStats(runs=workflow.runs, successes=workflow.successes, failures=workflow.failures),
        successRate=workflow.success_rate,
        version=workflow.version,
        createdAt=workflow.created_at,
        updatedAt=workflow.updated_at,
    )


def _workflow_fields(payload: WorkflowCreateRequest | WorkflowUpdateRequest) -> dict[str, Any]:
    data = payload.model_dump(mode="json", exclude_unset=True)
    fields: dict[str, Any] = {}
    if "description" in data:
        fields["description"] = data["description"]
    if payload.status is not None:
        fields["status"] = payload.status
    if data.get("steps") is not None:
        fields["steps"] = data["steps"]
    if payload.revenue is not None:
        fields["revenue"] = payload.revenue
    if payload.stats is not None:
        fields.update(runs=payload.stats.runs, successes=payload.stats.successes, failures=payload.stats.failures)
    return fields


@router.get("", response_model=list[WorkflowResponse])
def list_workflows(platformId: int | None = None, storage: Storage = Depends(get_storage)):
    return [_serialize_workflow(workflow) for workflow in storage.list_workflows(platform_id=platformId)]


@router.post("", response_model=WorkflowResponse, status_code=status.HTTP_201_CREATED)
def create_workflow(payload: WorkflowCreateRequest, storage: Storage = Depends(get_storage)):
    workflow = workflow_service.create_workflow(
        storage,
        platform_id=payload.platformId,
        name=payload.name,
        **_workflow_fields(payload),
    )
    return _serialize_workflow(workflow)


@router.get("/{workflow_id}", response_model=WorkflowResponse)
def get_workflow(workflow_id: int, storage: Storage = Depends(get_storage)):
    return _serialize_workflow(workflow_service.get_workflow_or_404(storage, workflow_id))


@router.patch("/{workflow_id}", response_model=WorkflowResponse)
def update_workflow(workflow_id: int, payload: WorkflowUpdateRequest, storage: Storage = Depends(get_storage)):
    fields = _workflow_fields(payload)
    if payload.platformId is not None:
        fields["platform_id"] = payload.platformId
    if payload.name is not None:
        fields["name"] = payload.name.strip()
    if payload.nextRun is not None:
        fields["next_run"] = payload.nextRun
    workflow = workflow_service.update_workflow(
        storage, workflow_id, expected_version=payload.expectedVersion, **fields
    )
    return _serialize_workflow(workflow)


@router.delete("/{workflow_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_workflow(workflow_id: int, storage: Storage = Depends(get_storage)):
    workflow_service.delete_workflow(storage, workflow_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

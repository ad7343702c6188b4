from fastapi import APIRouter, Depends, Response, status

from wolf_marketer.db.enums import TaskStatusEnum
from wolf_marketer.db.models import Task
from wolf_marketer.schemas.tasks import TaskCreateRequest, TaskOutcomeRequest, TaskResponse
from wolf_marketer.services import tasks as task_service
from wolf_marketer.services.money import format_money
from wolf_marketer.storage.deps import get_storage
from wolf_marketer.storage.interface import Storage

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _serialize_task(task: Task) -> TaskResponse:
    return TaskResponse(
        id=task.id,
        workflowId=task.workflow_id,
        platformId=task.platform_id,
        action=task.action,
        status=task.status,
        result=task.result,
        revenue=format_money(task.revenue) if task.revenue is not None else None,
        createdAt=task.created_at,
        updatedAt=task.updated_at,
        completedAt=task.completed_at,
    )


@router.get("", response_model=list[TaskResponse])
def list_tasks(
    workflowId: int | None = None,
    platformId: int | None = None,
    status: TaskStatusEnum | None = None,
    storage: Storage = Depends(get_storage),
):
    tasks = storage.list_tasks(workflow_id=workflowId, platform_id=platformId, status=status)
    return [_serialize_task(task) for task in tasks]


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(payload: TaskCreateRequest, storage: Storage = Depends(get_storage)):
    task = task_service.create_task(
        storage,
        workflow_id=payload.workflowId,
        platform_id=payload.platformId,
        action=payload.action,
        result=payload.result,
    )
    return _serialize_task(task)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(task_id: int, storage: Storage = Depends(get_storage)):
    return _serialize_task(task_service.get_task_or_404(storage, task_id))


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(task_id: int, storage: Storage = Depends(get_storage)):
    task_service.delete_task(storage, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{task_id}/outcome", response_model=TaskResponse)
def record_outcome(task_id: int, payload: TaskOutcomeRequest, storage: Storage = Depends(get_storage)):
    task = task_service.finish_task(
        storage,
        task_id,
        status=payload.status,
        revenue=payload.revenue,
        result=payload.result,
    )
    return _serialize_task(task)

from fastapi import APIRouter, Depends, Query, status

from wolf_marketer.config import settings
from wolf_marketer.db.models import Activity
from wolf_marketer.schemas.activities import ActivityCreateRequest, ActivityResponse
from wolf_marketer.storage.deps import get_storage
from wolf_marketer.storage.interface import Storage

router = APIRouter(prefix="/activities", tags=["activities"])


def _serialize_activity(activity: Activity) -> ActivityResponse:
    return ActivityResponse(
        id=activity.id,
        type=activity.type,
        title=activity.title,
        description=activity.description,
        workflowId=activity.workflow_id,
        platformId=activity.platform_id,
        taskId=activity.task_id,
        data=activity.data,
        timestamp=activity.timestamp,
    )


@router.get("", response_model=list[ActivityResponse])
def list_activities(
    limit: int | None = Query(default=None, ge=1, le=500),
    storage: Storage = Depends(get_storage),
):
    activities = storage.list_activities(limit=limit or settings.ACTIVITY_DEFAULT_LIMIT)
    return [_serialize_activity(activity) for activity in activities]


@router.post("", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
def create_activity(payload: ActivityCreateRequest, storage: Storage = Depends(get_storage)):
    activity = storage.create_activity(
        type=payload.type,
        title=payload.title,
        description=payload.description,
        workflow_id=payload.workflowId,
        platform_id=payload.platformId,
        task_id=payload.taskId,
        data=payload.data,
    )
    return _serialize_activity(activity)

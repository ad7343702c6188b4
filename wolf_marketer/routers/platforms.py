from fastapi import APIRouter, Depends, Response, status

from wolf_marketer.db.models import Platform
from wolf_marketer.schemas.platforms import (
    ConnectionTestResponse,
    PlatformCreateRequest,
    PlatformResponse,
    PlatformUpdateRequest,
)
from wolf_marketer.services import platforms as platform_service
from wolf_marketer.services.platform_api import ConnectorFactory, get_connector_factory
from wolf_marketer.storage.deps import get_storage
from wolf_marketer.storage.interface import Storage

router = APIRouter(prefix="/platforms", tags=["platforms"])

_UPDATE_FIELDS = {
    "name": "name",
    "type": "type",
    "apiKey": "api_key",
    "apiSecret": "api_secret",
    "settings": "settings",
}


def _serialize_platform(platform: Platform) -> PlatformResponse:
    return PlatformResponse(
        id=platform.id,
        name=platform.name,
        type=platform.type,
        status=platform.status,
        healthStatus=platform.health_status,
        hasCredentials=bool(platform.api_key),
        lastSynced=platform.last_synced,
        settings=platform.settings or {},
        createdAt=platform.created_at,
    )


@router.get("", response_model=list[PlatformResponse])
def list_platforms(storage: Storage = Depends(get_storage)):
    return [_serialize_platform(platform) for platform in storage.list_platforms()]


@router.post("", response_model=PlatformResponse, status_code=status.HTTP_201_CREATED)
def create_platform(payload: PlatformCreateRequest, storage: Storage = Depends(get_storage)):
    platform = platform_service.connect_platform(
        storage,
        name=payload.name,
        type=payload.type,
        api_key=payload.apiKey,
        api_secret=payload.apiSecret,
        settings=payload.settings,
    )
    return _serialize_platform(platform)


@router.get("/{platform_id}", response_model=PlatformResponse)
def get_platform(platform_id: int, storage: Storage = Depends(get_storage)):
    return _serialize_platform(platform_service.get_platform_or_404(storage, platform_id))


@router.patch("/{platform_id}", response_model=PlatformResponse)
def update_platform(platform_id: int, payload: PlatformUpdateRequest, storage: Storage = Depends(get_storage)):
    fields = {_UPDATE_FIELDS[key]: value for key, value in payload.model_dump(exclude_unset=True).items()}
    platform = platform_service.update_platform(storage, platform_id, **fields)
    return _serialize_platform(platform)


@router.delete("/{platform_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_platform(platform_id: int, storage: Storage = Depends(get_storage)):
    platform_service.delete_platform(storage, platform_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{platform_id}/test-connection", response_model=ConnectionTestResponse)
def test_connection(
    platform_id: int,
    storage: Storage = Depends(get_storage),
    connector_factory: ConnectorFactory = Depends(get_connector_factory),
):
    platform, ok = platform_service.test_platform_connection(storage, platform_id, connector_factory)
    return ConnectionTestResponse(success=ok, platform=_serialize_platform(platform))


@router.post("/{platform_id}/sync", response_model=PlatformResponse)
def sync_platform(
    platform_id: int,
    storage: Storage = Depends(get_storage),
    connector_factory: ConnectorFactory = Depends(get_connector_factory),
):
    return _serialize_platform(platform_service.sync_platform(storage, platform_id, connector_factory))

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from wolf_marketer.db.enums import ActivityTypeEnum, PlatformHealthEnum, PlatformStatusEnum
from wolf_marketer.db.models import Platform
from wolf_marketer.services.errors import BusinessRuleError, ConflictError, NotFoundError
from wolf_marketer.services.platform_api import ConnectorFactory, build_platform_connector
from wolf_marketer.storage.interface import Storage

logger = logging.getLogger(__name__)

_CREDENTIAL_FIELDS = frozenset({"api_key", "api_secret"})


def _now() -> datetime:
    return datetime.now(timezone.utc)


def get_platform_or_404(storage: Storage, platform_id: int) -> Platform:
    platform = storage.get_platform(platform_id)
    if not platform:
        raise NotFoundError("Platform not found")
    return platform


def connect_platform(
    storage: Storage,
    *,
    name: str,
    type: str,
    api_key: Optional[str] = None,
    api_secret: Optional[str] = None,
    settings: Optional[dict[str, Any]] = None,
) -> Platform:
    """Register a platform. It stays ``disconnected`` until a connection test passes."""
    name = name.strip()
    if storage.get_platform_by_name(name):
        raise ConflictError(f"A platform named '{name}' already exists")

    fields: dict[str, Any] = {
        "name": name,
        "type": type,
        "api_key": api_key,
        "api_secret": api_secret,
        "settings": settings or {},
        "status": PlatformStatusEnum.disconnected,
    }
    platform = storage.create_platform(**fields)
    storage.create_activity(
        type=ActivityTypeEnum.system.value,
        title=f"Platform connected: {platform.name}",
        description=f"{platform.type} platform added",
        platform_id=platform.id,
    )
    logger.info("platforms.connected", extra={"platform_id": platform.id, "platform_name": platform.name})
    return platform


def update_platform(storage: Storage, platform_id: int, **fields: Any) -> Platform:
    platform = get_platform_or_404(storage, platform_id)
    new_name = fields.get("name")
    if new_name is not None:
        fields["name"] = new_name.strip()
        existing = storage.get_platform_by_name(fields["name"])
        if existing and existing.id != platform.id:
            raise ConflictError(f"A platform named '{fields['name']}' already exists")
    if _CREDENTIAL_FIELDS.intersection(fields):
        # New credentials are unverified.
        fields["status"] = PlatformStatusEnum.disconnected
    updated = storage.update_platform(platform_id, **fields)
    if not updated:
        raise NotFoundError("Platform not found")
    return updated


def delete_platform(storage: Storage, platform_id: int) -> None:
    platform = get_platform_or_404(storage, platform_id)
    workflows = storage.list_workflows(platform_id=platform_id)
    if workflows:
        raise ConflictError(
            f"Platform {platform.name} still has {len(workflows)} workflow(s); delete them first"
        )
    name = platform.name
    if not storage.delete_platform(platform_id):
        raise NotFoundError("Platform not found")
    storage.create_activity(
        type=ActivityTypeEnum.system.value,
        title=f"Platform removed: {name}",
    )
    logger.info("platforms.deleted", extra={"platform_id": platform_id, "platform_name": name})


def test_platform_connection(
    storage: Storage,
    platform_id: int,
    connector_factory: ConnectorFactory = build_platform_connector,
) -> tuple[Platform, bool]:
    platform = get_platform_or_404(storage, platform_id)
    if not platform.api_key:
        raise BusinessRuleError(f"Platform {platform.name} has no API credentials configured")

    ok = connector_factory(platform).test_connection()
    if ok:
        platform = storage.update_platform(
            platform_id,
            status=PlatformStatusEnum.connected,
            health_status=PlatformHealthEnum.healthy,
            last_synced=_now(),
        )
        storage.create_activity(
            type=ActivityTypeEnum.success.value,
            title=f"Platform connection verified: {platform.name}",
            platform_id=platform_id,
        )
    else:
        platform = storage.update_platform(
            platform_id,
            status=PlatformStatusEnum.error,
            health_status=PlatformHealthEnum.error,
        )
        storage.create_activity(
            type=ActivityTypeEnum.error.value,
            title=f"Platform connection failed: {platform.name}",
            description="The platform rejected the configured credentials",
            platform_id=platform_id,
        )
    logger.info(
        "platforms.connection_tested",
        extra={"platform_id": platform_id, "ok": ok},
    )
    return platform, ok


def sync_platform(
    storage: Storage,
    platform_id: int,
    connector_factory: ConnectorFactory = build_platform_connector,
) -> Platform:
    platform = get_platform_or_404(storage, platform_id)
    if platform.status != PlatformStatusEnum.connected:
        raise BusinessRuleError(f"Platform {platform.name} is not connected")

    healthy = connector_factory(platform).test_connection()
    if healthy:
        platform = storage.update_platform(
            platform_id, health_status=PlatformHealthEnum.healthy, last_synced=_now()
        )
        storage.create_activity(
            type=ActivityTypeEnum.system.value,
            title=f"Platform synced: {platform.name}",
            platform_id=platform_id,
        )
    else:
        platform = storage.update_platform(
            platform_id, status=PlatformStatusEnum.error, health_status=PlatformHealthEnum.error
        )
        storage.create_activity(
            type=ActivityTypeEnum.warning.value,
            title=f"Platform sync failed: {platform.name}",
            description="Health check did not succeed",
            platform_id=platform_id,
        )
    logger.info("platforms.synced", extra={"platform_id": platform_id, "healthy": healthy})
    return platform

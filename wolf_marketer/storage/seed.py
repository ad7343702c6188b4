from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional

from wolf_marketer.db.enums import (
    ActivityTypeEnum,
    PlatformHealthEnum,
    PlatformStatusEnum,
    TaskStatusEnum,
    WorkflowStatusEnum,
)
from wolf_marketer.storage.interface import Storage

logger = logging.getLogger(__name__)

_DEMO_PLATFORMS: list[dict[str, Any]] = [
    {
        "name": "Clickbank",
        "type": "affiliate",
        "api_key": "cb_api_key",
        "api_secret": "cb_secret_key",
        "status": PlatformStatusEnum.connected,
        "health_status": PlatformHealthEnum.healthy,
        "settings": {"icon": "CB"},
    },
    {
        "name": "Fiverr",
        "type": "freelance",
        "api_key": "fv_api_key",
        "api_secret": "fv_secret_key",
        "status": PlatformStatusEnum.connected,
        "health_status": PlatformHealthEnum.healthy,
        "settings": {"icon": "FV"},
    },
    {
        "name": "Upwork",
        "type": "freelance",
        "api_key": "uw_api_key",
        "api_secret": "uw_secret_key",
        "status": PlatformStatusEnum.error,
        "health_status": PlatformHealthEnum.warning,
        "settings": {"icon": "UW", "errorMessage": "Authentication failed"},
    },
    {
        "name": "Amazon Associates",
        "type": "affiliate",
        "api_key": "amz_access_key",
        "api_secret": "amz_secret_key",
        "status": PlatformStatusEnum.connected,
        "health_status": PlatformHealthEnum.healthy,
        "settings": {"associateTag": "wolfauto-20", "marketplace": "US"},
    },
    {
        "name": "Etsy",
        "type": "marketplace",
        "api_key": "etsy_api_key",
        "status": PlatformStatusEnum.connected,
        "health_status": PlatformHealthEnum.healthy,
        "settings": {"partnerId": "etsy123"},
    },
]

_DEMO_WORKFLOWS: list[dict[str, Any]] = [
    {
        "platform": "Clickbank",
        "name": "Clickbank Product Scanner",
        "description": "Scans Clickbank marketplace for new products matching criteria and sends alerts.",
        "status": WorkflowStatusEnum.active,
        "steps": [
            {"type": "trigger", "config": {"schedule": "every_15_minutes"}},
            {"type": "filter", "config": {"categories": ["health", "fitness"], "minCommission": 50}},
            {"type": "action", "config": {"notify": "email", "searchTerm": "digital marketing"}},
        ],
        "runs": 30,
        "successes": 28,
        "failures": 2,
        "revenue": Decimal("542.00"),
    },
    {
        "platform": "Fiverr",
        "name": "Fiverr Order Automator",
        "description": "Automatically responds to inquiries and manages orders for your Fiverr gigs.",
        "status": WorkflowStatusEnum.active,
        "steps": [
            {"type": "trigger", "config": {"event": "new_inquiry", "gigIds": ["FVG123", "FVG456"]}},
            {"type": "action", "config": {"template": "Thank you for your interest!"}},
        ],
        "runs": 48,
        "successes": 45,
        "failures": 3,
        "revenue": Decimal("785.00"),
    },
    {
        "platform": "Upwork",
        "name": "Upwork Job Finder",
        "description": "Scans Upwork for relevant job postings and sends proposals for matching opportunities.",
        "status": WorkflowStatusEnum.error,
        "steps": [
            {"type": "trigger", "config": {"schedule": "hourly"}},
            {"type": "filter", "config": {"keywords": ["React", "Node.js", "Fullstack"]}},
            {"type": "action", "config": {"proposalTemplate": "I'm interested in your project..."}},
        ],
        "runs": 25,
        "successes": 18,
        "failures": 7,
        "revenue": Decimal("366.00"),
    },
]


def seed_demo_data(storage: Storage, now: Optional[datetime] = None) -> dict[str, Any]:
    """Load the demo account, platforms, workflows and a short history into ``storage``.

    Safe to call once per empty store; names are unique so a second call would
    collide on platforms.
    """
    now = now or datetime.now(timezone.utc)

    user = storage.create_user(
        username="demo",
        email="demo@example.com",
        full_name="John Smith",
        balance=Decimal("1250.00"),
        pending_balance=Decimal("320.00"),
    )

    platforms = {}
    for values in _DEMO_PLATFORMS:
        platform = storage.create_platform(last_synced=now - timedelta(hours=1), **values)
        platforms[platform.name] = platform

    workflows = {}
    for template in _DEMO_WORKFLOWS:
        fields = dict(template)
        platform = platforms[fields.pop("platform")]
        workflow = storage.create_workflow(
            platform_id=platform.id,
            last_run=now - timedelta(minutes=10),
            next_run=now + timedelta(minutes=15),
            **fields,
        )
        workflows[workflow.name] = workflow

    scanner = workflows["Clickbank Product Scanner"]
    automator = workflows["Fiverr Order Automator"]
    tasks = [
        storage.create_task(workflow_id=scanner.id, platform_id=scanner.platform_id, action="scan_marketplace"),
        storage.create_task(workflow_id=automator.id, platform_id=automator.platform_id, action="reply_inquiry"),
        storage.create_task(workflow_id=automator.id, platform_id=automator.platform_id, action="accept_order"),
    ]
    storage.update_task(
        tasks[0].id,
        status=TaskStatusEnum.completed,
        result={"productsFound": 4},
        revenue=Decimal("42.50"),
        completed_at=now,
    )
    storage.update_task(
        tasks[1].id,
        status=TaskStatusEnum.failed,
        result={"error": "Inquiry thread closed"},
        completed_at=now,
    )

    for days_ago, platform_name, amount in (
        (0, "Clickbank", "42.50"),
        (1, "Fiverr", "85.00"),
        (3, "Clickbank", "120.00"),
        (12, "Amazon Associates", "64.20"),
    ):
        amount_value = Decimal(amount)
        day = (now - timedelta(days=days_ago)).replace(hour=12, minute=0, second=0, microsecond=0)
        storage.record_platform_earning(
            user_id=user.id,
            platform_id=platforms[platform_name].id,
            amount=amount_value,
            commissions=(amount_value * Decimal("0.75")).quantize(Decimal("0.01")),
            period="daily",
            date=day,
        )

    storage.create_activity(
        type=ActivityTypeEnum.system.value,
        title="Demo data loaded",
        description=f"{len(platforms)} platforms and {len(workflows)} workflows",
    )
    logger.info(
        "seed.demo_data_loaded",
        extra={"platforms": len(platforms), "workflows": len(workflows), "tasks": len(tasks)},
    )
    return {"user": user, "platforms": platforms, "workflows": workflows, "tasks": tasks}

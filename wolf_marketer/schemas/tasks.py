from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, Field

from wolf_marketer.db.enums import TaskStatusEnum


class TaskCreateRequest(BaseModel):
    workflowId: int
    platformId: int | None = None
    action: str | None = Field(default=None, max_length=200)
    result: dict[str, Any] | None = None


class TaskOutcomeRequest(BaseModel):
    status: Literal["completed", "failed"]
    revenue: Decimal | None = Field(default=None, ge=0)
    result: dict[str, Any] | None = None


class TaskResponse(BaseModel):
    id: int
    workflowId: int | None = None
    platformId: int | None = None
    action: str | None = None
    status: TaskStatusEnum
    result: dict[str, Any] | None = None
    revenue: str | None = None
    createdAt: datetime | None = None
    updatedAt: datetime | None = None
    completedAt: datetime | None = None

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ActivityCreateRequest(BaseModel):
    type: str = Field(min_length=1, max_length=40)
    title: str = Field(min_length=1, max_length=300)
    description: str | None = None
    workflowId: int | None = None
    platformId: int | None = None
    taskId: int | None = None
    data: dict[str, Any] | None = None


class ActivityResponse(BaseModel):
    id: int
    type: str
    title: str
    description: str | None = None
    workflowId: int | None = None
    platformId: int | None = None
    taskId: int | None = None
    data: dict[str, Any] | None = None
    timestamp: datetime

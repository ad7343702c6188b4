from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, model_validator

from wolf_marketer.db.enums import WorkflowStatusEnum, WorkflowStepTypeEnum


class WorkflowStep(BaseModel):
    type: WorkflowStepTypeEnum
    config: dict[str, Any] = Field(default_factory=dict)


class WorkflowStats(BaseModel):
    runs: int = Field(default=0, ge=0)
    successes: int = Field(default=0, ge=0)
    failures: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_totals(self) -> "WorkflowStats":
        if self.successes + self.failures > self.runs:
            raise ValueError("stats.successes + stats.failures must not exceed stats.runs")
        return self


class WorkflowCreateRequest(BaseModel):
    platformId: int
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    status: WorkflowStatusEnum | None = None
    steps: list[WorkflowStep] = Field(default_factory=list)
    revenue: Decimal | None = Field(default=None, ge=0)
    stats: WorkflowStats | None = None


class WorkflowUpdateRequest(BaseModel):
    platformId: int | None = None
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    status: WorkflowStatusEnum | None = None
    steps: list[WorkflowStep] | None = None
    nextRun: datetime | None = None
    revenue: Decimal | None = Field(default=None, ge=0)
    stats: WorkflowStats | None = None
    expectedVersion: int | None = Field(default=None, ge=1)


class WorkflowResponse(BaseModel):
    id: int
    platformId: int
    name: str
    description: str | None = None
    status: WorkflowStatusEnum
    steps: list[WorkflowStep]
    lastRun: datetime | None = None
    nextRun: datetime | None = None
    revenue: str
    stats: WorkflowStats
    successRate: float
    version: int
    createdAt: datetime | None = None
    updatedAt: datetime | None = None

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from wolf_marketer.db.enums import PlatformHealthEnum, PlatformStatusEnum


class PlatformCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    type: str = Field(min_length=1, max_length=60)
    apiKey: str | None = None
    apiSecret: str | None = None
    settings: dict[str, Any] = Field(default_factory=dict)


class PlatformUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    type: str | None = Field(default=None, min_length=1, max_length=60)
    apiKey: str | None = None
    apiSecret: str | None = None
    settings: dict[str, Any] | None = None


class PlatformResponse(BaseModel):
    id: int
    name: str
    type: str
    status: PlatformStatusEnum
    healthStatus: PlatformHealthEnum
    hasCredentials: bool
    lastSynced: datetime | None = None
    settings: dict[str, Any] = Field(default_factory=dict)
    createdAt: datetime | None = None


class ConnectionTestResponse(BaseModel):
    success: bool
    platform: PlatformResponse

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class UserProfile(BaseModel):
    skills: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    experience: str | None = None
    preferredPlatforms: list[str] = Field(default_factory=list)
    preferredCategories: list[str] = Field(default_factory=list)
    preferredEarningModel: str | None = None
    timeAvailability: str | None = None


class OpportunityCandidate(BaseModel):
    id: str = Field(min_length=1)
    platform: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str = ""
    category: str = ""
    keywords: list[str] = Field(default_factory=list)
    estimatedEarnings: str | None = None
    opportunityType: Literal["freelance", "affiliate", "both"] = "both"
    directLink: str | None = None
    platformMetadata: dict[str, Any] = Field(default_factory=dict)


class OpportunityMatchRequest(BaseModel):
    userProfile: UserProfile
    candidates: list[OpportunityCandidate] = Field(default_factory=list)
    matchCount: int = Field(default=5, ge=1, le=50)


class RankedOpportunity(OpportunityCandidate):
    matchScore: int = Field(ge=0, le=100)
    reasonForRecommendation: str
    matchedTerms: list[str] = Field(default_factory=list)

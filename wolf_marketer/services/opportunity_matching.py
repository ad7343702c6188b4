from __future__ import annotations

import logging
from typing import Iterable, Protocol, Sequence

from wolf_marketer.schemas.opportunities import OpportunityCandidate, RankedOpportunity, UserProfile

logger = logging.getLogger(__name__)

SKILL_WEIGHT = 50
INTEREST_WEIGHT = 25
PLATFORM_WEIGHT = 15
CATEGORY_WEIGHT = 10


class OpportunityRanker(Protocol):
    def rank(self, profile: UserProfile, candidates: Sequence[OpportunityCandidate]) -> list[RankedOpportunity]:
        ...


def _normalize(values: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        cleaned = value.strip().lower()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


def _candidate_text(candidate: OpportunityCandidate) -> str:
    parts = [candidate.title, candidate.description, candidate.category, *candidate.keywords]
    return " ".join(part for part in parts if part).lower()


class KeywordOpportunityRanker:
    """Rule-based ranker scoring term overlap between a profile and each candidate.

    Skills carry half of the score, interests a quarter; matching a preferred
    platform or category adds the rest. Ties keep the caller's order.
    """

    def _score(self, profile: UserProfile, candidate: OpportunityCandidate) -> RankedOpportunity:
        text = _candidate_text(candidate)
        skills = _normalize(profile.skills)
        interests = _normalize(profile.interests)
        matched_skills = [skill for skill in skills if skill in text]
        matched_interests = [interest for interest in interests if interest in text]

        score = 0.0
        reasons = []
        if skills:
            score += SKILL_WEIGHT * len(matched_skills) / len(skills)
        if interests:
            score += INTEREST_WEIGHT * len(matched_interests) / len(interests)
        if matched_skills:
            reasons.append(f"uses your skills: {', '.join(matched_skills)}")
        if matched_interests:
            reasons.append(f"fits your interests: {', '.join(matched_interests)}")
        if candidate.platform.strip().lower() in _normalize(profile.preferredPlatforms):
            score += PLATFORM_WEIGHT
            reasons.append(f"on a preferred platform ({candidate.platform})")
        if candidate.category and candidate.category.strip().lower() in _normalize(profile.preferredCategories):
            score += CATEGORY_WEIGHT
            reasons.append(f"in a preferred category ({candidate.category})")

        reason = "Matches " + "; ".join(reasons) if reasons else "No direct overlap with your profile"
        return RankedOpportunity(
            **candidate.model_dump(),
            matchScore=max(0, min(100, round(score))),
            reasonForRecommendation=reason,
            matchedTerms=matched_skills + [term for term in matched_interests if term not in matched_skills],
        )

    def rank(self, profile: UserProfile, candidates: Sequence[OpportunityCandidate]) -> list[RankedOpportunity]:
        scored = [self._score(profile, candidate) for candidate in candidates]
        return sorted(scored, key=lambda ranked: ranked.matchScore, reverse=True)


def find_matches(
    ranker: OpportunityRanker,
    profile: UserProfile,
    candidates: Sequence[OpportunityCandidate],
    match_count: int,
) -> list[RankedOpportunity]:
    ranked = ranker.rank(profile, candidates)
    logger.info(
        "opportunities.ranked",
        extra={"candidates": len(candidates), "returned": min(match_count, len(ranked))},
    )
    return ranked[:match_count]


def get_opportunity_ranker() -> OpportunityRanker:
    return KeywordOpportunityRanker()

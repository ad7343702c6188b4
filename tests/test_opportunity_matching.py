from wolf_marketer.schemas.opportunities import OpportunityCandidate, UserProfile
from wolf_marketer.services.opportunity_matching import KeywordOpportunityRanker, find_matches


def _candidates() -> list[OpportunityCandidate]:
    return [
        OpportunityCandidate(
            id="etsy-1",
            platform="Etsy",
            title="Handmade candle shop listings",
            category="crafts",
            keywords=["candles"],
        ),
        OpportunityCandidate(
            id="upwork-1",
            platform="Upwork",
            title="React dashboard for a fitness startup",
            description="Build charts in React and Node.js",
            category="development",
        ),
        OpportunityCandidate(
            id="cb-1",
            platform="Clickbank",
            title="Fitness supplement affiliate offer",
            category="health",
            opportunityType="affiliate",
        ),
    ]


def test_ranker_orders_by_overlap():
    profile = UserProfile(
        skills=["React", "Node.js"],
        interests=["fitness"],
        preferredPlatforms=["Upwork"],
        preferredCategories=["development"],
    )

    ranked = KeywordOpportunityRanker().rank(profile, _candidates())

    assert [item.id for item in ranked] == ["upwork-1", "cb-1", "etsy-1"]
    top = ranked[0]
    assert top.matchScore == 100
    assert top.matchedTerms == ["react", "node.js", "fitness"]
    assert "preferred platform" in top.reasonForRecommendation
    assert ranked[1].matchScore == 25
    assert ranked[2].matchScore == 0
    assert ranked[2].reasonForRecommendation == "No direct overlap with your profile"


def test_empty_profile_keeps_candidate_order():
    ranked = KeywordOpportunityRanker().rank(UserProfile(), _candidates())

    assert [item.id for item in ranked] == ["etsy-1", "upwork-1", "cb-1"]
    assert {item.matchScore for item in ranked} == {0}


def test_find_matches_truncates():
    profile = UserProfile(interests=["fitness"])

    matches = find_matches(KeywordOpportunityRanker(), profile, _candidates(), 2)

    assert len(matches) == 2
    assert find_matches(KeywordOpportunityRanker(), profile, [], 5) == []

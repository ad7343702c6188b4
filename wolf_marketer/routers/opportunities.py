from fastapi import APIRouter, Depends

from wolf_marketer.schemas.opportunities import OpportunityMatchRequest, RankedOpportunity
from wolf_marketer.services.opportunity_matching import OpportunityRanker, find_matches, get_opportunity_ranker

router = APIRouter(prefix="/opportunities", tags=["opportunities"])


@router.post("/match", response_model=list[RankedOpportunity])
def match_opportunities(
    payload: OpportunityMatchRequest,
    ranker: OpportunityRanker = Depends(get_opportunity_ranker),
):
    return find_matches(ranker, payload.userProfile, payload.candidates, payload.matchCount)

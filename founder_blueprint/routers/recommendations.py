"""Content recommendation endpoint for ad-hoc profiles."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..auth import get_current_user_id
from ..llm import get_recommendations
from ..schemas import AIRecommendationResponse, RecommendationProfile


router = APIRouter(prefix="/recommendations", tags=["recommendations"])


@router.post("", response_model=AIRecommendationResponse)
def recommend(
    profile: RecommendationProfile,
    _user_id: str = Depends(get_current_user_id),
) -> AIRecommendationResponse:
    """Return AI recommendations for the posted profile, or the rule-based set."""

    return get_recommendations(profile)

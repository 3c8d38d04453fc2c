"""Deterministic content recommendations used when the LLM is unavailable."""

from __future__ import annotations

from typing import Any, Dict, List

from .blueprint import normalize_key
from .schemas import (
    AIRecommendationResponse,
    ContentRecommendation,
    Goal,
    PersonalizationDetails,
    Priority,
    RecommendationCategory,
    RecommendationProfile,
    RecommendationSource,
    Stage,
)


MAX_RECOMMENDATIONS = 6
MATCHED_GOALS_LIMIT = 3

FALLBACK_SKILL_GAPS = ["Product Management", "Growth Marketing"]
FALLBACK_NEXT_MILESTONES = [
    "Complete legal entity registration",
    "Launch MVP to first 10 customers",
    "Establish product-market fit",
]

INDUSTRY_RECOMMENDATIONS: Dict[str, ContentRecommendation] = {
    "saas": ContentRecommendation(
        id="industry-saas",
        title="Master SaaS Metrics and Unit Economics",
        category=RecommendationCategory.OPERATIONS.value,
        relevance_score=85,
        summary="Understand CAC, LTV, churn rate, and MRR to build a sustainable SaaS business model.",
        reason="Essential metrics for SaaS businesses to track growth and profitability.",
        priority=Priority.HIGH,
    ),
    "fintech": ContentRecommendation(
        id="industry-fintech",
        title="Navigate Fintech Compliance Requirements",
        category=RecommendationCategory.LEGAL.value,
        relevance_score=90,
        summary="Understand banking regulations, KYC/AML requirements, and necessary licenses for your fintech product.",
        reason="Fintech has strict regulatory requirements that must be addressed early.",
        priority=Priority.HIGH,
    ),
    "healthcare": ContentRecommendation(
        id="industry-healthcare",
        title="Ensure HIPAA Compliance from Day One",
        category=RecommendationCategory.LEGAL.value,
        relevance_score=95,
        summary="Implement proper data security, privacy policies, and HIPAA-compliant infrastructure for healthcare data.",
        reason="Healthcare startups must protect patient data and comply with HIPAA regulations.",
        priority=Priority.HIGH,
    ),
    "edtech": ContentRecommendation(
        id="industry-edtech",
        title="Navigate FERPA and COPPA Compliance",
        category=RecommendationCategory.LEGAL.value,
        relevance_score=88,
        summary="Understand student privacy laws, parental consent requirements, and data protection for educational platforms.",
        reason="EdTech platforms handling student data must comply with FERPA and COPPA.",
        priority=Priority.HIGH,
    ),
    "food": ContentRecommendation(
        id="industry-food",
        title="Obtain Food Safety Certifications",
        category=RecommendationCategory.OPERATIONS.value,
        relevance_score=90,
        summary="Secure health permits, food handler certifications, and understand FDA labeling requirements.",
        reason="Food businesses require specific permits and safety certifications to operate legally.",
        priority=Priority.HIGH,
    ),
    "consumer": ContentRecommendation(
        id="industry-consumer",
        title="Build a Strong Brand Identity",
        category=RecommendationCategory.GROWTH.value,
        relevance_score=82,
        summary="Develop compelling brand story, visual identity, and customer engagement strategy for consumer products.",
        reason="Consumer products succeed through strong branding and emotional connection with customers.",
        priority=Priority.MEDIUM,
    ),
}

INDUSTRY_FOCUS: Dict[str, str] = {
    "saas": "recurring revenue, product-market fit, and scalable customer acquisition",
    "fintech": "regulatory compliance, security infrastructure, and banking partnerships",
    "healthcare": "HIPAA compliance, clinical validation, and insurance relationships",
    "edtech": "student outcomes, engagement metrics, and privacy compliance",
    "food": "supply chain management, health certifications, and distribution channels",
    "consumer": "brand building, customer acquisition, and retention strategies",
}
DEFAULT_INDUSTRY_FOCUS = "sustainable growth and customer acquisition"


def industry_recommendation(industry: Any) -> ContentRecommendation | None:
    """Return the industry-specific card, or ``None`` for unknown industries."""

    recommendation = INDUSTRY_RECOMMENDATIONS.get(normalize_key(industry))
    return recommendation.model_copy() if recommendation else None


def industry_focus(industry: Any) -> str:
    return INDUSTRY_FOCUS.get(normalize_key(industry), DEFAULT_INDUSTRY_FOCUS)


def matched_goals(goals: List[Any]) -> List[str]:
    """First three goals of the profile, as plain strings."""

    return [normalize_key(goal) for goal in goals[:MATCHED_GOALS_LIMIT]]


def fallback_recommendations(profile: RecommendationProfile) -> AIRecommendationResponse:
    """Build up to six rule-based recommendations for the profile."""

    stage = normalize_key(profile.stage)
    industry = normalize_key(profile.industry)
    recommendations: List[ContentRecommendation] = []

    if not profile.entity_registered:
        recommendations.append(
            ContentRecommendation(
                id="fallback-1",
                title="Register Your Business Entity",
                category=RecommendationCategory.LEGAL.value,
                relevance_score=95,
                summary=(
                    "Set up your LLC or Corporation to protect personal assets and establish "
                    "credibility with customers and investors."
                ),
                reason=f"Essential for {stage} stage startups before raising funds or signing major contracts.",
                priority=Priority.HIGH,
            )
        )

    if not profile.trademark_completed:
        recommendations.append(
            ContentRecommendation(
                id="fallback-2",
                title="Complete Trademark Search",
                category=RecommendationCategory.LEGAL.value,
                relevance_score=85,
                summary="Search USPTO database to ensure your brand name is available and avoid costly rebranding later.",
                reason=f"Protects your brand identity as you grow in the {industry} industry.",
                priority=Priority.HIGH,
            )
        )

    if stage in (Stage.IDEATION.value, Stage.MVP.value):
        recommendations.append(
            ContentRecommendation(
                id="fallback-3",
                title="Build Your MVP Fast",
                category=RecommendationCategory.PRODUCT.value,
                relevance_score=90,
                summary=(
                    "Focus on core features that solve your target customer's main problem. "
                    "Launch quickly and iterate based on feedback."
                ),
                reason=f"Critical for {stage} stage - validate your idea before investing heavily.",
                priority=Priority.HIGH,
            )
        )

    if Goal.RAISE_FUNDING in profile.goals:
        recommendations.append(
            ContentRecommendation(
                id="fallback-4",
                title="Prepare Your Fundraising Materials",
                category=RecommendationCategory.FUNDRAISING.value,
                relevance_score=88,
                summary=(
                    "Create a compelling pitch deck, financial model, and SAFE agreement template "
                    "for investor conversations."
                ),
                reason="You indicated fundraising as a primary goal - start preparing early.",
                priority=Priority.HIGH,
            )
        )

    solo_founder = profile.founder_count == 1
    if Goal.HIRE_TEAM in profile.goals or solo_founder:
        recommendations.append(
            ContentRecommendation(
                id="fallback-5",
                title="Build Your Founding Team",
                category=RecommendationCategory.HIRING.value,
                relevance_score=80,
                summary=(
                    "Identify skill gaps and recruit co-founders or early employees who complement "
                    "your strengths."
                ),
                reason=(
                    "Solo founders face unique challenges - consider finding a co-founder."
                    if solo_founder
                    else "Growing your team is a key goal for this stage."
                ),
                priority=Priority.MEDIUM,
            )
        )

    industry_card = industry_recommendation(industry)
    if industry_card is not None:
        recommendations.append(industry_card)

    return AIRecommendationResponse(
        recommendations=recommendations[:MAX_RECOMMENDATIONS],
        personalization_details=PersonalizationDetails(
            matched_goals=matched_goals(list(profile.goals)),
            skill_gaps=list(FALLBACK_SKILL_GAPS),
            next_milestones=list(FALLBACK_NEXT_MILESTONES),
            industry_insights=[f"{industry} startups typically focus on {industry_focus(industry)}"],
        ),
        cache_hit=False,
        source=RecommendationSource.FALLBACK,
    )

"""OpenAI-backed content recommendations with a rule-based fallback."""

from __future__ import annotations

import json
import logging
import math
import re
import threading
from dataclasses import dataclass
from textwrap import dedent
from typing import Any, Callable, Dict, List

from openai import OpenAI

from .blueprint import industry_insight, normalize_key
from .config import LLMSettings, get_llm_settings
from .recommendations import fallback_recommendations, matched_goals
from .schemas import (
    AIRecommendationResponse,
    ContentRecommendation,
    PersonalizationDetails,
    Priority,
    RecommendationProfile,
    RecommendationSource,
)


logger = logging.getLogger(__name__)

DEFAULT_RELEVANCE_SCORE = 75
DEFAULT_TITLE = "Untitled"
DEFAULT_CATEGORY = "General"

_OPENING_FENCE = re.compile(r"^```[A-Za-z0-9_-]*")

STAGE_DESCRIPTIONS: Dict[str, str] = {
    "ideation": "Pre-product, validating problem and solution, forming founding team",
    "mvp": "Building first product version, getting initial users, iterating based on feedback",
    "growth": "Product-market fit achieved, scaling team and operations, expanding market reach",
}


@dataclass(frozen=True)
class PromptSpec:
    """Container describing how to call the LLM."""

    system_prompt: str
    user_prompt: str
    model: str
    temperature: float
    max_tokens: int


ClientCache = tuple[str, OpenAI]


class LLMClientProvider:
    """Build the OpenAI client lazily and reuse it while the key is unchanged."""

    def __init__(self, settings_loader: Callable[[], LLMSettings] = get_llm_settings) -> None:
        self._settings_loader = settings_loader
        self._cache: ClientCache | None = None
        self._lock = threading.Lock()

    @property
    def settings(self) -> LLMSettings:
        return self._settings_loader()

    def get_client(self) -> OpenAI | None:
        """Return the cached client, or ``None`` when no API key is configured."""

        settings = self.settings
        if not settings.is_configured:
            return None
        api_key = settings.openai_api_key
        with self._lock:
            if self._cache and self._cache[0] == api_key:
                return self._cache[1]
            client = OpenAI(api_key=api_key)
            self._cache = (api_key, client)
            return client

    def reset(self) -> None:
        with self._lock:
            self._cache = None


llm_clients = LLMClientProvider()


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def build_recommendation_prompt(profile: RecommendationProfile) -> str:
    """Embed the full profile and the expected JSON schema into one prompt."""

    stage = normalize_key(profile.stage)
    industry = normalize_key(profile.industry)
    goals = ", ".join(normalize_key(goal) for goal in profile.goals) or "Not specified"
    skills = ", ".join(profile.team_skills) or "Not specified"

    return dedent(
        f"""
        You are an expert startup advisor and content recommendation engine for tech founders.

        USER STARTUP PROFILE:
        - Startup Name: {profile.startup_name or "New Startup"}
        - Industry: {industry} ({industry_insight(industry)})
        - Stage: {stage} ({STAGE_DESCRIPTIONS.get(stage, stage)})
        - Founder Team Size: {profile.founder_count}
        - Team Skills: {skills}
        - Primary Goals: {goals}

        CURRENT PROGRESS:
        - Domain Purchased: {_yes_no(profile.domain_purchased)}
        - Trademark Search Completed: {_yes_no(profile.trademark_completed)}
        - Business Entity Registered: {_yes_no(profile.entity_registered)}

        TASK:
        Generate 6 highly personalized content recommendations that will help this startup achieve its goals.
        Consider industry-specific challenges, the current stage and what comes next, skill gaps in the
        founding team, and what has already been completed.

        Return ONLY valid JSON in this exact format:
        {{
          "recommendations": [
            {{
              "title": "string",
              "category": "Legal|Product|Fundraising|Hiring|Operations|Growth",
              "relevanceScore": number (0-100),
              "summary": "string",
              "reason": "string",
              "priority": "high|medium|low"
            }}
          ],
          "skillGaps": ["string"],
          "nextMilestones": ["string"],
          "industryInsights": ["string"]
        }}
        """
    ).strip()


# ---------------------------------------------------------------------------
# Response parsing and coercion
# ---------------------------------------------------------------------------


def _strip_code_fence(raw_text: str) -> str:
    text = raw_text.strip()
    if text.startswith("```"):
        # Opening fence plus an optional language tag, e.g. ```json
        text = _OPENING_FENCE.sub("", text, count=1)
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
        text = text.strip()
    return text


def parse_structured_response(raw_text: str) -> Dict[str, Any] | None:
    """Attempt to coerce the model output into a JSON object."""

    text = _strip_code_fence(raw_text)
    if not text:
        return None
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def coerce_relevance_score(value: Any) -> int:
    """Clamp a score into [0, 100]; missing or non-numeric values become 75."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_RELEVANCE_SCORE
    if isinstance(value, float) and math.isnan(value):
        return DEFAULT_RELEVANCE_SCORE
    return int(round(min(100.0, max(0.0, float(value)))))


def coerce_priority(value: Any) -> Priority:
    try:
        return Priority(normalize_key(value))
    except ValueError:
        return Priority.MEDIUM


def coerce_string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def coerce_recommendation(item: Dict[str, Any], index: int) -> ContentRecommendation:
    """Map one untrusted LLM item onto a recommendation, field by field."""

    return ContentRecommendation(
        id=f"ai-{index + 1}",
        title=_text(item.get("title"), DEFAULT_TITLE),
        category=_text(item.get("category"), DEFAULT_CATEGORY),
        relevance_score=coerce_relevance_score(item.get("relevanceScore")),
        summary=_text(item.get("summary"), ""),
        reason=_text(item.get("reason"), ""),
        priority=coerce_priority(item.get("priority")),
    )


def build_ai_response(profile: RecommendationProfile, payload: Dict[str, Any]) -> AIRecommendationResponse:
    """Shape a parsed LLM payload into a recommendation response."""

    raw_items = payload.get("recommendations")
    items = [item for item in raw_items if isinstance(item, dict)] if isinstance(raw_items, list) else []

    return AIRecommendationResponse(
        recommendations=[coerce_recommendation(item, index) for index, item in enumerate(items)],
        personalization_details=PersonalizationDetails(
            matched_goals=matched_goals(list(profile.goals)),
            skill_gaps=coerce_string_list(payload.get("skillGaps")),
            next_milestones=coerce_string_list(payload.get("nextMilestones")),
            industry_insights=coerce_string_list(payload.get("industryInsights")),
        ),
        cache_hit=False,
        source=RecommendationSource.AI,
    )


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


def _invoke(client: OpenAI, spec: PromptSpec) -> str | None:
    response = client.chat.completions.create(
        model=spec.model,
        messages=[
            {"role": "system", "content": spec.system_prompt.strip()},
            {"role": "user", "content": spec.user_prompt.strip()},
        ],
        temperature=spec.temperature,
        max_tokens=spec.max_tokens,
    )
    if not response.choices:
        return None
    return response.choices[0].message.content


def _ai_recommendations(
    client: OpenAI,
    settings: LLMSettings,
    profile: RecommendationProfile,
) -> AIRecommendationResponse | None:
    spec = PromptSpec(
        system_prompt="You are an expert startup advisor. Respond with JSON only.",
        user_prompt=build_recommendation_prompt(profile),
        model=settings.model,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
    )
    raw_text = _invoke(client, spec)
    if not raw_text or not raw_text.strip():
        logger.warning("Empty response from LLM; serving fallback recommendations")
        return None
    payload = parse_structured_response(raw_text)
    if payload is None:
        logger.warning("LLM response was not a JSON object; serving fallback recommendations")
        return None
    return build_ai_response(profile, payload)


def get_recommendations(
    profile: RecommendationProfile,
    provider: LLMClientProvider | None = None,
) -> AIRecommendationResponse:
    """Return AI recommendations, degrading to the rule-based set on any failure."""

    provider = provider or llm_clients
    client = provider.get_client()
    if client is None:
        logger.info("LLM not configured; serving fallback recommendations")
        return fallback_recommendations(profile)

    try:
        response = _ai_recommendations(client, provider.settings, profile)
    except Exception:
        logger.warning("LLM recommendation call failed; serving fallback recommendations", exc_info=True)
        return fallback_recommendations(profile)

    if response is None:
        return fallback_recommendations(profile)
    logger.info("Served %d AI recommendations", len(response.recommendations))
    return response

"""Pydantic models and enums for the Founder Blueprint API."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class Industry(str, Enum):
    """Industries a startup can operate in."""

    FOOD = "food"
    SAAS = "saas"
    CONSUMER = "consumer"
    HEALTHCARE = "healthcare"
    FINTECH = "fintech"
    EDTECH = "edtech"


class Stage(str, Enum):
    """Enumerate the supported startup stages."""

    IDEATION = "ideation"
    MVP = "mvp"
    GROWTH = "growth"


class Goal(str, Enum):
    """Founder objectives that drive milestones and recommendations."""

    BUILD_MVP = "build_mvp"
    VALIDATE_DEMAND = "validate_demand"
    REGISTER_ENTITY = "register_entity"
    RAISE_FUNDING = "raise_funding"
    HIRE_TEAM = "hire_team"


class Skill(str, Enum):
    """Skills a founding team member can bring."""

    PRODUCT = "product"
    OPERATIONS = "operations"
    MARKETING = "marketing"
    SALES = "sales"
    ENGINEERING = "engineering"
    DESIGN = "design"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecommendationCategory(str, Enum):
    """Categories used by the rule-based recommendations."""

    LEGAL = "Legal"
    PRODUCT = "Product"
    FUNDRAISING = "Fundraising"
    HIRING = "Hiring"
    OPERATIONS = "Operations"
    GROWTH = "Growth"


class RecommendationSource(str, Enum):
    """Which path produced a recommendation response."""

    AI = "ai"
    FALLBACK = "fallback"


def _require_text(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    if not stripped:
        raise ValueError("must be a non-empty string")
    return stripped


# ---------------------------------------------------------------------------
# Startup profile and founding team
# ---------------------------------------------------------------------------


class StartupProfile(BaseModel):
    """Normalized state of a founder's venture."""

    full_name: str = Field(..., description="Founder's full name.")
    startup_name: str = Field(..., description="Display name of the startup.")
    industry: Industry
    stage: Stage
    goals: List[Goal] = Field(
        ...,
        min_length=1,
        description="Founder goals; duplicates are dropped, first occurrence order is kept.",
    )
    founder_count: int = Field(..., ge=1)
    domain_purchased: bool = False
    trademark_completed: bool = False
    entity_registered: bool = False

    @field_validator("full_name", "startup_name")
    @classmethod
    def _strip_names(cls, value: str) -> str:
        return _require_text(value)

    @field_validator("goals")
    @classmethod
    def _dedupe_goals(cls, value: List[Goal]) -> List[Goal]:
        return list(dict.fromkeys(value))


class FoundingTeamMember(BaseModel):
    """A persisted member of the founding team."""

    name: str
    skills: List[str] = Field(default_factory=list)


class TeamMemberPayload(BaseModel):
    """Founding team member as submitted by the onboarding form."""

    name: str
    skills: List[Skill] = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return _require_text(value)

    def to_member(self) -> FoundingTeamMember:
        return FoundingTeamMember(
            name=self.name,
            skills=[skill.value for skill in dict.fromkeys(self.skills)],
        )


class StartupCreateRequest(StartupProfile):
    """Onboarding payload: the profile plus its founding team."""

    founding_team: List[TeamMemberPayload] = Field(..., min_length=1)

    @model_validator(mode="before")
    @classmethod
    def _reject_user_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and ("user_id" in data or "userId" in data):
            raise ValueError("User ID cannot be provided in request body")
        return data

    def profile(self) -> StartupProfile:
        return StartupProfile.model_validate(self.model_dump(exclude={"founding_team"}))


class StartupUpdateRequest(BaseModel):
    """Partial update of a startup; ``founding_team`` replaces the whole roster."""

    full_name: Optional[str] = None
    startup_name: Optional[str] = None
    industry: Optional[Industry] = None
    stage: Optional[Stage] = None
    goals: Optional[List[Goal]] = Field(default=None, min_length=1)
    founder_count: Optional[int] = Field(default=None, ge=1)
    domain_purchased: Optional[bool] = None
    trademark_completed: Optional[bool] = None
    entity_registered: Optional[bool] = None
    onboarding_completed: Optional[bool] = None
    founding_team: Optional[List[TeamMemberPayload]] = None

    @field_validator("full_name", "startup_name")
    @classmethod
    def _strip_names(cls, value: str | None) -> str | None:
        return _require_text(value)

    @field_validator("goals")
    @classmethod
    def _dedupe_goals(cls, value: List[Goal] | None) -> List[Goal] | None:
        if value is None:
            return None
        return list(dict.fromkeys(value))

    def changes(self) -> dict[str, Any]:
        """Return only the profile fields the caller actually sent."""

        return self.model_dump(exclude_unset=True, exclude_none=True, exclude={"founding_team"})


class StartupRecord(StartupProfile):
    """A stored startup owned by one user."""

    id: int
    user_id: str
    onboarding_completed: bool = True
    created_at: datetime
    updated_at: datetime
    founding_team: List[FoundingTeamMember] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Blueprint
# ---------------------------------------------------------------------------


class LegalTask(BaseModel):
    """A legal setup task; ``id`` is stable across regenerations."""

    id: str
    task: str
    priority: Priority
    completed: bool = False
    description: str


class TeamRecommendation(BaseModel):
    role: str
    priority: Priority
    reason: str


class OperationalMilestone(BaseModel):
    milestone: str
    priority: Priority
    related_goal: Goal


class BlueprintContent(BaseModel):
    """Structured output of the blueprint rule engine."""

    legal_tasks: List[LegalTask] = Field(default_factory=list)
    team_recommendations: List[TeamRecommendation] = Field(default_factory=list)
    operational_milestones: List[OperationalMilestone] = Field(default_factory=list)
    industry_insights: str = ""
    next_steps: List[str] = Field(default_factory=list, max_length=5)


class Blueprint(BaseModel):
    """Persisted blueprint; one per startup."""

    id: int
    startup_id: int
    content: BlueprintContent
    generated_at: datetime


class StartupDetail(StartupRecord):
    """Startup record enriched with its blueprint."""

    blueprint: Optional[Blueprint] = None


class BlueprintRegenerateRequest(BaseModel):
    startup_id: int = Field(..., ge=1)


class BlueprintContentUpdate(BaseModel):
    content: BlueprintContent


class TaskToggleRequest(BaseModel):
    completed: bool


class BlueprintMarkdown(BaseModel):
    startup_id: int
    markdown: str


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


class RecommendationProfile(BaseModel):
    """Profile snapshot handed to the recommendation generators."""

    startup_name: str = "New Startup"
    industry: Industry
    stage: Stage
    goals: List[Goal] = Field(..., min_length=1)
    team_skills: List[str] = Field(default_factory=list)
    founder_count: int = Field(default=1, ge=1)
    domain_purchased: bool = False
    trademark_completed: bool = False
    entity_registered: bool = False

    @classmethod
    def from_startup(cls, startup: StartupRecord) -> "RecommendationProfile":
        """Flatten a stored startup and its team into a recommendation profile."""

        skills = [skill for member in startup.founding_team for skill in member.skills]
        return cls(
            startup_name=startup.startup_name,
            industry=startup.industry,
            stage=startup.stage,
            goals=list(startup.goals),
            team_skills=list(dict.fromkeys(skills)),
            founder_count=startup.founder_count,
            domain_purchased=startup.domain_purchased,
            trademark_completed=startup.trademark_completed,
            entity_registered=startup.entity_registered,
        )


class ContentRecommendation(BaseModel):
    """Short-form advisory card shown on the dashboard."""

    id: str
    title: str
    category: str
    relevance_score: int = Field(..., ge=0, le=100)
    summary: str = ""
    reason: str = ""
    priority: Priority = Priority.MEDIUM


class PersonalizationDetails(BaseModel):
    matched_goals: List[str] = Field(default_factory=list)
    skill_gaps: List[str] = Field(default_factory=list)
    next_milestones: List[str] = Field(default_factory=list)
    industry_insights: List[str] = Field(default_factory=list)


class AIRecommendationResponse(BaseModel):
    """Recommendations plus the details used to personalize them."""

    recommendations: List[ContentRecommendation] = Field(default_factory=list)
    personalization_details: PersonalizationDetails = Field(default_factory=PersonalizationDetails)
    cache_hit: bool = False
    source: RecommendationSource = RecommendationSource.FALLBACK

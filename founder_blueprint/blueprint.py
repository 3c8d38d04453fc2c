"""Rule-based blueprint generator for onboarded startups."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence, Tuple

from .schemas import (
    BlueprintContent,
    Goal,
    LegalTask,
    OperationalMilestone,
    Priority,
    Stage,
    StartupProfile,
    TeamRecommendation,
)


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LegalTaskRule:
    """Emit one legal task when ``applies`` holds for the profile."""

    id: str
    task: str
    description: str
    applies: Callable[[StartupProfile], bool]
    priority: Callable[[StartupProfile], Priority]


def _always(_: StartupProfile) -> bool:
    return True


def _high(_: StartupProfile) -> Priority:
    return Priority.HIGH


def _trademark_priority(profile: StartupProfile) -> Priority:
    return Priority.MEDIUM if normalize_key(profile.stage) == Stage.IDEATION.value else Priority.HIGH


# Order is the order tasks appear in the blueprint.
LEGAL_TASK_RULES: Tuple[LegalTaskRule, ...] = (
    LegalTaskRule(
        id="purchase-domain",
        task="Purchase domain name",
        description="Secure a domain that matches your startup name before announcing the brand publicly.",
        applies=lambda profile: not profile.domain_purchased,
        priority=_high,
    ),
    LegalTaskRule(
        id="file-trademark",
        task="File trademark application",
        description="Run a trademark search and file to protect your brand name and logo.",
        applies=lambda profile: not profile.trademark_completed,
        priority=_trademark_priority,
    ),
    LegalTaskRule(
        id="register-entity",
        task="Register business entity",
        description="Form an LLC or corporation to limit personal liability and prepare for investment.",
        applies=lambda profile: not profile.entity_registered,
        priority=_high,
    ),
    LegalTaskRule(
        id="founders-agreement",
        task="Draft founders agreement",
        description="Document equity split, vesting schedules, roles and IP assignment between founders.",
        applies=_always,
        priority=_high,
    ),
    LegalTaskRule(
        id="cap-table",
        task="Set up cap table",
        description="Track ownership, option pools and future dilution from day one.",
        applies=_always,
        priority=_high,
    ),
)

ENGINEERING_SKILLS = frozenset({"engineering", "technical", "development", "developer"})
MARKETING_SKILLS = frozenset({"marketing", "growth", "sales"})
PRODUCT_SKILLS = frozenset({"product", "product management", "pm"})

MILESTONES: Dict[Goal, Tuple[str, Priority]] = {
    Goal.BUILD_MVP: ("Launch a minimum viable product to early users", Priority.HIGH),
    Goal.VALIDATE_DEMAND: ("Validate demand with 20+ customer discovery interviews", Priority.HIGH),
    Goal.REGISTER_ENTITY: ("Complete business entity registration and compliance filings", Priority.HIGH),
    Goal.RAISE_FUNDING: ("Prepare a pitch deck and financial model for investors", Priority.MEDIUM),
    Goal.HIRE_TEAM: ("Define a hiring plan for the first key roles", Priority.MEDIUM),
}

INDUSTRY_INSIGHTS: Dict[str, str] = {
    "food": "Food industry requires health permits, supplier agreements, and often significant upfront inventory costs",
    "saas": "SaaS businesses focus on product-market fit, unit economics, and scalable customer acquisition",
    "consumer": "Consumer products require brand building, distribution channels, and customer feedback loops",
    "healthcare": "Healthcare startups must navigate HIPAA compliance, FDA regulations, and complex insurance systems",
    "fintech": "Fintech requires banking partnerships, regulatory compliance (licenses), and strong security infrastructure",
    "edtech": "EdTech must consider FERPA/COPPA compliance, user engagement metrics, and educational outcomes",
}
DEFAULT_INDUSTRY_INSIGHT = "Tech startup with unique industry challenges"

STAGE_NEXT_STEPS: Dict[str, Tuple[str, str]] = {
    Stage.IDEATION.value: (
        "Validate the problem with at least 20 customer interviews",
        "Define the smallest feature set that proves your value proposition",
    ),
    Stage.MVP.value: (
        "Launch your MVP to a first cohort of early adopters",
        "Set up analytics and a weekly customer feedback loop",
    ),
    Stage.GROWTH.value: (
        "Double down on your best-performing acquisition channel",
        "Document core processes and build a hiring plan for scale",
    ),
}

FILLER_STEPS: Tuple[str, ...] = (
    "Network with other founders in your industry",
    "Establish key performance metrics to track progress",
    "Build a strong brand presence online",
)

MIN_NEXT_STEPS = 3
MAX_NEXT_STEPS = 5


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def normalize_key(value: Any) -> str:
    """Return the lower-cased string form of an enum member or plain string."""

    return str(getattr(value, "value", value)).strip().lower()


def _member_skills(member: Any) -> Iterable[Any]:
    if isinstance(member, Mapping):
        return member.get("skills") or []
    return getattr(member, "skills", None) or []


def team_skill_set(founding_team: Iterable[Any]) -> List[str]:
    """Flatten and canonicalize every skill held by the founding team."""

    return [normalize_key(skill) for member in founding_team for skill in _member_skills(member)]


def industry_insight(industry: Any) -> str:
    """Look up the insight string for an industry, falling back to a default."""

    return INDUSTRY_INSIGHTS.get(normalize_key(industry), DEFAULT_INDUSTRY_INSIGHT)


# ---------------------------------------------------------------------------
# Rule evaluation
# ---------------------------------------------------------------------------


def _legal_tasks(profile: StartupProfile) -> List[LegalTask]:
    return [
        LegalTask(
            id=rule.id,
            task=rule.task,
            priority=rule.priority(profile),
            completed=False,
            description=rule.description,
        )
        for rule in LEGAL_TASK_RULES
        if rule.applies(profile)
    ]


def _marketing_priority(stage: Any) -> Priority:
    stage_key = normalize_key(stage)
    if stage_key == Stage.GROWTH.value:
        return Priority.HIGH
    if stage_key == Stage.MVP.value:
        return Priority.MEDIUM
    return Priority.LOW


def _team_recommendations(profile: StartupProfile, skills: Sequence[str]) -> List[TeamRecommendation]:
    present = set(skills)
    building_mvp = Goal.BUILD_MVP in profile.goals
    recommendations: List[TeamRecommendation] = []

    if building_mvp and not present & ENGINEERING_SKILLS:
        recommendations.append(
            TeamRecommendation(
                role="Technical Co-founder or Lead Engineer",
                priority=Priority.HIGH,
                reason="Building an MVP is a stated goal but nobody on the founding team covers engineering.",
            )
        )

    if not present & MARKETING_SKILLS:
        recommendations.append(
            TeamRecommendation(
                role="Marketing Lead",
                priority=_marketing_priority(profile.stage),
                reason=(
                    "No marketing or sales experience on the founding team; "
                    f"customer acquisition matters at the {normalize_key(profile.stage)} stage."
                ),
            )
        )

    if building_mvp and not present & PRODUCT_SKILLS:
        recommendations.append(
            TeamRecommendation(
                role="Product Manager",
                priority=Priority.MEDIUM,
                reason="Building an MVP without product ownership makes it hard to prioritize the right features.",
            )
        )

    return recommendations


def _operational_milestones(goals: Iterable[Any]) -> List[OperationalMilestone]:
    milestones: List[OperationalMilestone] = []
    for goal in goals:
        try:
            goal_key = Goal(normalize_key(goal))
        except ValueError:
            continue
        entry = MILESTONES.get(goal_key)
        if entry is None:
            continue
        milestone, priority = entry
        milestones.append(OperationalMilestone(milestone=milestone, priority=priority, related_goal=goal_key))
    return milestones


def build_next_steps(
    stage: Any,
    legal_tasks: Sequence[LegalTask],
    team_recommendations: Sequence[TeamRecommendation],
    milestones: Sequence[OperationalMilestone],
) -> List[str]:
    """Assemble at most five next steps by scanning for high-priority items."""

    steps: List[str] = []

    first_legal = next((task for task in legal_tasks if task.priority == Priority.HIGH), None)
    if first_legal is not None:
        steps.append(f"Complete critical legal setup: {first_legal.task}")

    first_role = next((rec for rec in team_recommendations if rec.priority == Priority.HIGH), None)
    if first_role is not None:
        steps.append(f"Begin recruiting for: {first_role.role}")

    first_milestone = next((item for item in milestones if item.priority == Priority.HIGH), None)
    if first_milestone is not None:
        steps.append(f"Focus on: {first_milestone.milestone}")

    steps.extend(STAGE_NEXT_STEPS.get(normalize_key(stage), ()))

    if len(steps) < MIN_NEXT_STEPS:
        for threshold, filler in enumerate(FILLER_STEPS, start=MIN_NEXT_STEPS):
            if len(steps) < threshold:
                steps.append(filler)

    return steps[:MAX_NEXT_STEPS]


def generate_blueprint(profile: StartupProfile, founding_team: Iterable[Any]) -> BlueprintContent:
    """Map a startup profile and its founding team to a blueprint.

    Pure and deterministic: identical inputs always yield identical content.
    Enum membership is assumed to have been validated by the caller.
    """

    skills = team_skill_set(founding_team)
    legal_tasks = _legal_tasks(profile)
    team_recommendations = _team_recommendations(profile, skills)
    milestones = _operational_milestones(profile.goals)
    next_steps = build_next_steps(profile.stage, legal_tasks, team_recommendations, milestones)

    logger.debug(
        "Generated blueprint: %d legal tasks, %d team recommendations, %d milestones",
        len(legal_tasks),
        len(team_recommendations),
        len(milestones),
    )
    return BlueprintContent(
        legal_tasks=legal_tasks,
        team_recommendations=team_recommendations,
        operational_milestones=milestones,
        industry_insights=industry_insight(profile.industry),
        next_steps=next_steps,
    )


def merge_completion(previous: BlueprintContent | None, fresh: BlueprintContent) -> BlueprintContent:
    """Carry ``completed`` flags from ``previous`` onto tasks of ``fresh`` with the same id."""

    if previous is None:
        return fresh
    done = {task.id for task in previous.legal_tasks if task.completed}
    if not done:
        return fresh
    legal_tasks = [task.model_copy(update={"completed": task.id in done}) for task in fresh.legal_tasks]
    return fresh.model_copy(update={"legal_tasks": legal_tasks})


# ---------------------------------------------------------------------------
# Markdown export
# ---------------------------------------------------------------------------


def _bullet_list(items: Iterable[str]) -> str:
    return "\n".join(f"- {item}" for item in items if item)


def render_blueprint_markdown(startup_name: str, content: BlueprintContent) -> str:
    """Render blueprint content as a markdown document for export."""

    task_lines = [
        f"[{'x' if task.completed else ' '}] **{task.task}** ({task.priority.value}): {task.description}"
        for task in content.legal_tasks
    ]
    team_lines = [f"**{rec.role}** ({rec.priority.value}): {rec.reason}" for rec in content.team_recommendations]
    milestone_lines = [
        f"**{item.milestone}** ({item.priority.value}, goal: {item.related_goal.value})"
        for item in content.operational_milestones
    ]
    numbered_steps = "\n".join(f"{index}. {step}" for index, step in enumerate(content.next_steps, start=1))

    return "\n\n".join(
        section
        for section in [
            f"# {startup_name} Blueprint",
            f"## Next Steps\n\n{numbered_steps}" if numbered_steps else "",
            f"## Legal Tasks\n\n{_bullet_list(task_lines)}" if task_lines else "",
            f"## Team Recommendations\n\n{_bullet_list(team_lines)}" if team_lines else "",
            f"## Operational Milestones\n\n{_bullet_list(milestone_lines)}" if milestone_lines else "",
            f"## Industry Insights\n\n{content.industry_insights}" if content.industry_insights else "",
        ]
        if section
    )

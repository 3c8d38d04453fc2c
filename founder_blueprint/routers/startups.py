"""Onboarding and startup profile endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, status

from ..auth import get_current_user_id
from ..blueprint import generate_blueprint
from ..llm import get_recommendations
from ..schemas import (
    AIRecommendationResponse,
    RecommendationProfile,
    StartupCreateRequest,
    StartupDetail,
    StartupRecord,
    StartupUpdateRequest,
)
from ..store import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, startup_store


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/startups", tags=["startups"])


@router.post("", response_model=StartupDetail, status_code=status.HTTP_201_CREATED)
async def create_startup(
    payload: StartupCreateRequest,
    user_id: str = Depends(get_current_user_id),
) -> StartupDetail:
    """Complete onboarding: persist the startup, its team and its first blueprint."""

    profile = payload.profile()
    team = [member.to_member() for member in payload.founding_team]
    content = generate_blueprint(profile, team)
    record, blueprint = startup_store.create_startup(user_id, profile, team, content)
    logger.info("Onboarded startup %s for user %s", record.id, user_id)
    return StartupDetail(**record.model_dump(), blueprint=blueprint)


@router.get("", response_model=list[StartupRecord])
async def list_startups(
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=0, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    search: str | None = Query(default=None),
    user_id: str = Depends(get_current_user_id),
) -> list[StartupRecord]:
    """List the caller's startups, newest first."""

    return startup_store.list_startups(user_id, limit=limit, offset=offset, search=search)


@router.get("/{startup_id}", response_model=StartupDetail)
async def fetch_startup(startup_id: int, user_id: str = Depends(get_current_user_id)) -> StartupDetail:
    record = startup_store.get_startup(startup_id, user_id)
    return StartupDetail(**record.model_dump(), blueprint=startup_store.find_blueprint(startup_id))


@router.put("/{startup_id}", response_model=StartupRecord)
async def update_startup(
    startup_id: int,
    payload: StartupUpdateRequest,
    user_id: str = Depends(get_current_user_id),
) -> StartupRecord:
    """Update profile fields; a submitted founding team replaces the roster as a whole."""

    team = None
    if payload.founding_team is not None:
        team = [member.to_member() for member in payload.founding_team]
    return startup_store.update_startup(startup_id, user_id, payload.changes(), team=team)


@router.get("/{startup_id}/recommendations", response_model=AIRecommendationResponse)
def startup_recommendations(
    startup_id: int,
    user_id: str = Depends(get_current_user_id),
) -> AIRecommendationResponse:
    """Recompute dashboard recommendations for a stored startup."""

    record = startup_store.get_startup(startup_id, user_id)
    return get_recommendations(RecommendationProfile.from_startup(record))

"""Blueprint regeneration, retrieval and task completion endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from ..auth import get_current_user_id
from ..blueprint import generate_blueprint, render_blueprint_markdown
from ..schemas import (
    Blueprint,
    BlueprintContentUpdate,
    BlueprintMarkdown,
    BlueprintRegenerateRequest,
    TaskToggleRequest,
)
from ..store import startup_store


router = APIRouter(prefix="/blueprints", tags=["blueprints"])


@router.post("", response_model=Blueprint)
async def regenerate_blueprint(
    payload: BlueprintRegenerateRequest,
    response: Response,
    user_id: str = Depends(get_current_user_id),
) -> Blueprint:
    """Re-run the rule engine for a stored startup.

    Completion flags of tasks that survive regeneration are kept.
    """

    blueprint, created = startup_store.regenerate_blueprint(payload.startup_id, user_id, generate_blueprint)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return blueprint


@router.get("/{startup_id}", response_model=Blueprint)
async def fetch_blueprint(startup_id: int, user_id: str = Depends(get_current_user_id)) -> Blueprint:
    return startup_store.get_blueprint(startup_id, user_id)


@router.get("/{startup_id}/markdown", response_model=BlueprintMarkdown)
async def export_blueprint(startup_id: int, user_id: str = Depends(get_current_user_id)) -> BlueprintMarkdown:
    """Render the blueprint as markdown for download."""

    startup = startup_store.get_startup(startup_id, user_id)
    blueprint = startup_store.get_blueprint(startup_id, user_id)
    return BlueprintMarkdown(
        startup_id=startup_id,
        markdown=render_blueprint_markdown(startup.startup_name, blueprint.content),
    )


@router.put("/{startup_id}", response_model=Blueprint)
async def replace_blueprint(
    startup_id: int,
    payload: BlueprintContentUpdate,
    user_id: str = Depends(get_current_user_id),
) -> Blueprint:
    return startup_store.replace_blueprint_content(startup_id, user_id, payload.content)


@router.patch("/{startup_id}/tasks/{task_id}", response_model=Blueprint)
async def toggle_task(
    startup_id: int,
    task_id: str,
    payload: TaskToggleRequest,
    user_id: str = Depends(get_current_user_id),
) -> Blueprint:
    """Set the completion state of one legal task."""

    return startup_store.set_task_completed(startup_id, user_id, task_id, payload.completed)

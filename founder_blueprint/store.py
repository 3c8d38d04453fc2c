"""In-memory store for startups, founding teams and blueprints."""

from __future__ import annotations

import itertools
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Sequence, Tuple

from .blueprint import merge_completion
from .schemas import (
    Blueprint,
    BlueprintContent,
    FoundingTeamMember,
    StartupProfile,
    StartupRecord,
)


logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class StoreError(Exception):
    """Base class for persistence errors."""


class StartupNotFoundError(StoreError):
    pass


class OwnershipError(StoreError):
    """Raised when a user touches a startup they do not own."""


class BlueprintNotFoundError(StoreError):
    pass


class TaskNotFoundError(StoreError):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


class StartupStore:
    """Keep startup records keyed by id; at most one blueprint per startup.

    Every public method holds the lock for its whole duration, so a
    founding-team swap is never visible half-done.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.reset()

    def reset(self) -> None:
        with self._lock:
            self._startups: Dict[int, StartupRecord] = {}
            self._teams: Dict[int, List[FoundingTeamMember]] = {}
            self._blueprints: Dict[int, Blueprint] = {}
            self._startup_ids = itertools.count(1)
            self._blueprint_ids = itertools.count(1)

    # -- startups -----------------------------------------------------------

    def _owned(self, startup_id: int, user_id: str) -> StartupRecord:
        record = self._startups.get(startup_id)
        if record is None:
            raise StartupNotFoundError(f"Startup {startup_id} not found")
        if record.user_id != user_id:
            raise OwnershipError(f"User does not own startup {startup_id}")
        return record

    def _with_team(self, record: StartupRecord) -> StartupRecord:
        team = [member.model_copy() for member in self._teams.get(record.id, [])]
        return record.model_copy(update={"founding_team": team})

    def create_startup(
        self,
        user_id: str,
        profile: StartupProfile,
        team: Sequence[FoundingTeamMember],
        content: BlueprintContent,
    ) -> Tuple[StartupRecord, Blueprint]:
        """Persist a startup together with its founding team and first blueprint."""

        with self._lock:
            timestamp = _now()
            startup_id = next(self._startup_ids)
            record = StartupRecord(
                **profile.model_dump(),
                id=startup_id,
                user_id=user_id,
                onboarding_completed=True,
                created_at=timestamp,
                updated_at=timestamp,
            )
            self._startups[startup_id] = record
            self._teams[startup_id] = [member.model_copy() for member in team]
            blueprint = Blueprint(
                id=next(self._blueprint_ids),
                startup_id=startup_id,
                content=content.model_copy(deep=True),
                generated_at=timestamp,
            )
            self._blueprints[startup_id] = blueprint
            logger.debug("Created startup %s for user %s", startup_id, user_id)
            return self._with_team(record), blueprint.model_copy(deep=True)

    def list_startups(
        self,
        user_id: str,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
        search: str | None = None,
    ) -> List[StartupRecord]:
        """Return the user's startups, newest first."""

        limit = max(0, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)
        needle = search.strip().lower() if search else ""
        with self._lock:
            owned = [record for record in self._startups.values() if record.user_id == user_id]
            if needle:
                owned = [
                    record
                    for record in owned
                    if needle in record.startup_name.lower()
                    or needle in record.industry.value
                    or needle in record.stage.value
                ]
            owned.sort(key=lambda record: (record.created_at, record.id), reverse=True)
            return [self._with_team(record) for record in owned[offset : offset + limit]]

    def get_startup(self, startup_id: int, user_id: str) -> StartupRecord:
        with self._lock:
            return self._with_team(self._owned(startup_id, user_id))

    def update_startup(
        self,
        startup_id: int,
        user_id: str,
        changes: Dict[str, Any],
        team: Sequence[FoundingTeamMember] | None = None,
    ) -> StartupRecord:
        """Apply partial profile changes and, when given, replace the whole roster."""

        with self._lock:
            record = self._owned(startup_id, user_id)
            merged = record.model_dump()
            merged.update(changes)
            merged["updated_at"] = _now()
            updated = StartupRecord.model_validate(merged)
            self._startups[startup_id] = updated
            if team is not None:
                self._replace_team(startup_id, team)
            return self._with_team(updated)

    def _replace_team(self, startup_id: int, team: Sequence[FoundingTeamMember]) -> None:
        self._teams.pop(startup_id, None)
        self._teams[startup_id] = [member.model_copy() for member in team]
        logger.debug("Replaced founding team of startup %s (%d members)", startup_id, len(team))

    def get_team(self, startup_id: int) -> List[FoundingTeamMember]:
        with self._lock:
            return [member.model_copy() for member in self._teams.get(startup_id, [])]

    # -- blueprints ---------------------------------------------------------

    def find_blueprint(self, startup_id: int) -> Blueprint | None:
        with self._lock:
            blueprint = self._blueprints.get(startup_id)
            return blueprint.model_copy(deep=True) if blueprint else None

    def get_blueprint(self, startup_id: int, user_id: str) -> Blueprint:
        with self._lock:
            self._owned(startup_id, user_id)
            blueprint = self._blueprints.get(startup_id)
            if blueprint is None:
                raise BlueprintNotFoundError(f"Blueprint not found for startup {startup_id}")
            return blueprint.model_copy(deep=True)

    def save_blueprint(self, startup_id: int, user_id: str, content: BlueprintContent) -> Tuple[Blueprint, bool]:
        """Upsert the startup's blueprint; returns the blueprint and whether it was created."""

        with self._lock:
            self._owned(startup_id, user_id)
            existing = self._blueprints.get(startup_id)
            blueprint = Blueprint(
                id=existing.id if existing else next(self._blueprint_ids),
                startup_id=startup_id,
                content=content.model_copy(deep=True),
                generated_at=_now(),
            )
            self._blueprints[startup_id] = blueprint
            return blueprint.model_copy(deep=True), existing is None

    def regenerate_blueprint(
        self,
        startup_id: int,
        user_id: str,
        generator: Callable[[StartupRecord, List[FoundingTeamMember]], BlueprintContent],
    ) -> Tuple[Blueprint, bool]:
        """Re-run ``generator`` on the stored startup and save the result in one step.

        Completion flags of tasks that survive regeneration are carried over.
        """

        with self._lock:
            startup = self.get_startup(startup_id, user_id)
            fresh = generator(startup, startup.founding_team)
            previous = self._blueprints.get(startup_id)
            content = merge_completion(previous.content if previous else None, fresh)
            return self.save_blueprint(startup_id, user_id, content)

    def replace_blueprint_content(self, startup_id: int, user_id: str, content: BlueprintContent) -> Blueprint:
        with self._lock:
            self.get_blueprint(startup_id, user_id)
            blueprint, _ = self.save_blueprint(startup_id, user_id, content)
            return blueprint

    def set_task_completed(self, startup_id: int, user_id: str, task_id: str, completed: bool) -> Blueprint:
        """Flip the ``completed`` flag of one legal task, addressed by its id."""

        with self._lock:
            self.get_blueprint(startup_id, user_id)
            blueprint = self._blueprints[startup_id]
            task = next((task for task in blueprint.content.legal_tasks if task.id == task_id), None)
            if task is None:
                raise TaskNotFoundError(f"Task '{task_id}' not found in blueprint for startup {startup_id}")
            task.completed = completed
            return blueprint.model_copy(deep=True)


startup_store = StartupStore()

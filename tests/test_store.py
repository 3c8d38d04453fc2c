from __future__ import annotations

import threading

import pytest

from founder_blueprint.blueprint import generate_blueprint
from founder_blueprint.schemas import FoundingTeamMember, Goal, Industry, Stage, StartupProfile
from founder_blueprint.store import (
    BlueprintNotFoundError,
    OwnershipError,
    StartupNotFoundError,
    StartupStore,
    TaskNotFoundError,
)


@pytest.fixture()
def store() -> StartupStore:
    return StartupStore()


def _profile(name: str = "Acme", industry: Industry = Industry.SAAS) -> StartupProfile:
    return StartupProfile(
        full_name="Ada Founder",
        startup_name=name,
        industry=industry,
        stage=Stage.MVP,
        goals=[Goal.BUILD_MVP],
        founder_count=2,
    )


def _create(store: StartupStore, user_id: str = "user-1", **kwargs: object) -> int:
    profile = _profile(**kwargs)
    team = [FoundingTeamMember(name="Ada", skills=["engineering"])]
    record, _ = store.create_startup(user_id, profile, team, generate_blueprint(profile, team))
    return record.id


def test_create_persists_startup_team_and_blueprint(store: StartupStore) -> None:
    startup_id = _create(store)

    record = store.get_startup(startup_id, "user-1")
    assert record.startup_name == "Acme"
    assert record.onboarding_completed is True
    assert [member.name for member in record.founding_team] == ["Ada"]
    assert store.get_blueprint(startup_id, "user-1").startup_id == startup_id


def test_ownership_is_checked(store: StartupStore) -> None:
    startup_id = _create(store)

    with pytest.raises(OwnershipError):
        store.get_startup(startup_id, "someone-else")
    with pytest.raises(OwnershipError):
        store.get_blueprint(startup_id, "someone-else")
    with pytest.raises(StartupNotFoundError):
        store.get_startup(999, "user-1")


def test_list_filters_by_owner_and_search(store: StartupStore) -> None:
    _create(store, name="Acme")
    _create(store, name="FoodCo", industry=Industry.FOOD)
    _create(store, user_id="user-2", name="Other")

    assert [record.startup_name for record in store.list_startups("user-1")] == ["FoodCo", "Acme"]
    assert [record.startup_name for record in store.list_startups("user-1", search="food")] == ["FoodCo"]
    assert [record.startup_name for record in store.list_startups("user-1", limit=1, offset=1)] == ["Acme"]


def test_update_applies_partial_changes(store: StartupStore) -> None:
    startup_id = _create(store)

    updated = store.update_startup(startup_id, "user-1", {"stage": Stage.GROWTH, "domain_purchased": True})

    assert updated.stage is Stage.GROWTH
    assert updated.domain_purchased is True
    assert updated.startup_name == "Acme"
    assert [member.name for member in updated.founding_team] == ["Ada"]


def test_update_replaces_whole_team(store: StartupStore) -> None:
    startup_id = _create(store)
    new_team = [
        FoundingTeamMember(name="Bo", skills=["marketing"]),
        FoundingTeamMember(name="Cy", skills=["product"]),
    ]

    updated = store.update_startup(startup_id, "user-1", {}, team=new_team)

    assert [member.name for member in updated.founding_team] == ["Bo", "Cy"]
    assert [member.name for member in store.get_team(startup_id)] == ["Bo", "Cy"]


def test_team_swap_is_never_observed_partially(store: StartupStore) -> None:
    startup_id = _create(store)
    teams = [
        [FoundingTeamMember(name=f"A{i}", skills=["sales"]) for i in range(3)],
        [FoundingTeamMember(name=f"B{i}", skills=["design"]) for i in range(5)],
    ]
    seen: set[int] = set()
    stop = threading.Event()

    def writer() -> None:
        for index in range(200):
            store.update_startup(startup_id, "user-1", {}, team=teams[index % 2])
        stop.set()

    def reader() -> None:
        while not stop.is_set():
            seen.add(len(store.get_team(startup_id)))

    threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert seen <= {1, 3, 5}


def test_save_blueprint_upserts_single_record(store: StartupStore) -> None:
    startup_id = _create(store)
    original = store.get_blueprint(startup_id, "user-1")
    profile = _profile()

    blueprint, created = store.save_blueprint(startup_id, "user-1", generate_blueprint(profile, []))

    assert created is False
    assert blueprint.id == original.id


def test_replace_content_requires_existing_blueprint(store: StartupStore) -> None:
    startup_id = _create(store)
    store._blueprints.clear()

    with pytest.raises(BlueprintNotFoundError):
        store.replace_blueprint_content(startup_id, "user-1", generate_blueprint(_profile(), []))

    blueprint, created = store.save_blueprint(startup_id, "user-1", generate_blueprint(_profile(), []))
    assert created is True
    assert store.find_blueprint(startup_id) == blueprint


def test_set_task_completed_by_id(store: StartupStore) -> None:
    startup_id = _create(store)

    blueprint = store.set_task_completed(startup_id, "user-1", "cap-table", True)

    flags = {task.id: task.completed for task in blueprint.content.legal_tasks}
    assert flags["cap-table"] is True
    assert not any(done for task_id, done in flags.items() if task_id != "cap-table")
    persisted = store.get_blueprint(startup_id, "user-1")
    assert {task.id for task in persisted.content.legal_tasks if task.completed} == {"cap-table"}


def test_unknown_task_id(store: StartupStore) -> None:
    startup_id = _create(store)

    with pytest.raises(TaskNotFoundError):
        store.set_task_completed(startup_id, "user-1", "missing", True)


def test_returned_records_are_copies(store: StartupStore) -> None:
    startup_id = _create(store)

    blueprint = store.get_blueprint(startup_id, "user-1")
    blueprint.content.legal_tasks[0].completed = True

    assert not store.get_blueprint(startup_id, "user-1").content.legal_tasks[0].completed


def test_regenerate_keeps_completion_of_surviving_tasks(store: StartupStore) -> None:
    startup_id = _create(store)
    store.set_task_completed(startup_id, "user-1", "cap-table", True)
    store.update_startup(startup_id, "user-1", {"domain_purchased": True})

    blueprint, created = store.regenerate_blueprint(startup_id, "user-1", generate_blueprint)

    assert created is False
    task_ids = [task.id for task in blueprint.content.legal_tasks]
    assert "purchase-domain" not in task_ids
    assert {task.id for task in blueprint.content.legal_tasks if task.completed} == {"cap-table"}
    assert store.get_blueprint(startup_id, "user-1") == blueprint


def test_regenerate_creates_missing_blueprint(store: StartupStore) -> None:
    startup_id = _create(store)
    store._blueprints.clear()

    blueprint, created = store.regenerate_blueprint(startup_id, "user-1", generate_blueprint)

    assert created is True
    assert not any(task.completed for task in blueprint.content.legal_tasks)


def test_regenerate_checks_ownership(store: StartupStore) -> None:
    startup_id = _create(store)

    with pytest.raises(OwnershipError):
        store.regenerate_blueprint(startup_id, "someone-else", generate_blueprint)


def test_toggle_during_regeneration_is_not_lost(store: StartupStore) -> None:
    startup_id = _create(store)
    started = threading.Event()

    def slow_generator(startup, team):
        started.set()
        toggler.join(timeout=0.2)
        return generate_blueprint(startup, team)

    def toggle() -> None:
        started.wait()
        store.set_task_completed(startup_id, "user-1", "cap-table", True)

    toggler = threading.Thread(target=toggle)
    toggler.start()
    store.regenerate_blueprint(startup_id, "user-1", slow_generator)
    toggler.join()

    persisted = store.get_blueprint(startup_id, "user-1")
    assert {task.id for task in persisted.content.legal_tasks if task.completed} == {"cap-table"}

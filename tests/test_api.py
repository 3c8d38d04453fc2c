from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from founder_blueprint.app import create_app
from founder_blueprint.config import get_llm_settings
from founder_blueprint.llm import llm_clients
from founder_blueprint.store import startup_store


client = TestClient(create_app())
HEADERS = {"X-User-Id": "user-1"}


@pytest.fixture(autouse=True)
def isolated_state(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start every test with an empty store and no LLM credentials."""

    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    get_llm_settings.cache_clear()
    startup_store.reset()
    llm_clients.reset()
    yield
    get_llm_settings.cache_clear()
    llm_clients.reset()


def _onboarding_payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "full_name": "  Ada Founder ",
        "startup_name": "Acme",
        "industry": "saas",
        "stage": "ideation",
        "goals": ["build_mvp", "raise_funding"],
        "founder_count": 1,
        "domain_purchased": False,
        "trademark_completed": False,
        "entity_registered": False,
        "founding_team": [{"name": "Ada", "skills": ["design"]}],
    }
    payload.update(overrides)
    return payload


def _onboard(**overrides: object) -> dict:
    response = client.post("/startups", json=_onboarding_payload(**overrides), headers=HEADERS)
    assert response.status_code == 201, response.text
    return response.json()


def test_healthcheck() -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_requests_without_identity_are_rejected() -> None:
    response = client.post("/startups", json=_onboarding_payload())
    assert response.status_code == 401


def test_onboarding_creates_startup_and_blueprint() -> None:
    data = _onboard()

    assert data["full_name"] == "Ada Founder"
    assert data["user_id"] == "user-1"
    assert data["founding_team"] == [{"name": "Ada", "skills": ["design"]}]
    content = data["blueprint"]["content"]
    assert [task["id"] for task in content["legal_tasks"]] == [
        "purchase-domain",
        "file-trademark",
        "register-entity",
        "founders-agreement",
        "cap-table",
    ]
    assert len(content["operational_milestones"]) == 2
    assert 3 <= len(content["next_steps"]) <= 5


@pytest.mark.parametrize(
    "overrides",
    [
        {"industry": "biotech"},
        {"stage": "seed"},
        {"goals": []},
        {"goals": ["world_domination"]},
        {"founder_count": 0},
        {"startup_name": "   "},
        {"founding_team": []},
        {"founding_team": [{"name": "Ada", "skills": []}]},
        {"founding_team": [{"name": "Ada", "skills": ["juggling"]}]},
        {"user_id": "someone-else"},
    ],
)
def test_onboarding_validation(overrides: dict[str, object]) -> None:
    response = client.post("/startups", json=_onboarding_payload(**overrides), headers=HEADERS)
    assert response.status_code == 422


def test_duplicate_goals_keep_first_order() -> None:
    data = _onboard(goals=["raise_funding", "build_mvp", "raise_funding"])

    assert data["goals"] == ["raise_funding", "build_mvp"]


def test_startup_is_private_to_owner() -> None:
    startup_id = _onboard()["id"]

    assert client.get(f"/startups/{startup_id}", headers=HEADERS).status_code == 200
    assert client.get(f"/startups/{startup_id}", headers={"X-User-Id": "intruder"}).status_code == 403
    assert client.get("/startups/999", headers=HEADERS).status_code == 404


def test_list_startups() -> None:
    _onboard(startup_name="Acme")
    _onboard(startup_name="Beta", industry="food")

    response = client.get("/startups", params={"search": "food"}, headers=HEADERS)

    assert response.status_code == 200
    assert [item["startup_name"] for item in response.json()] == ["Beta"]


def test_update_replaces_team_without_regenerating_blueprint() -> None:
    data = _onboard()
    startup_id = data["id"]
    original_content = data["blueprint"]["content"]

    response = client.put(
        f"/startups/{startup_id}",
        json={"domain_purchased": True, "founding_team": [{"name": "Bo", "skills": ["engineering", "sales"]}]},
        headers=HEADERS,
    )

    assert response.status_code == 200
    updated = response.json()
    assert updated["domain_purchased"] is True
    assert updated["founding_team"] == [{"name": "Bo", "skills": ["engineering", "sales"]}]
    blueprint = client.get(f"/blueprints/{startup_id}", headers=HEADERS).json()
    assert blueprint["content"] == original_content


def test_toggle_task_then_regenerate_keeps_completion() -> None:
    startup_id = _onboard()["id"]

    toggled = client.patch(
        f"/blueprints/{startup_id}/tasks/cap-table",
        json={"completed": True},
        headers=HEADERS,
    )
    assert toggled.status_code == 200
    assert {task["id"] for task in toggled.json()["content"]["legal_tasks"] if task["completed"]} == {"cap-table"}

    client.put(f"/startups/{startup_id}", json={"domain_purchased": True}, headers=HEADERS)
    regenerated = client.post("/blueprints", json={"startup_id": startup_id}, headers=HEADERS)

    assert regenerated.status_code == 200
    tasks = regenerated.json()["content"]["legal_tasks"]
    assert "purchase-domain" not in {task["id"] for task in tasks}
    assert {task["id"] for task in tasks if task["completed"]} == {"cap-table"}


def test_toggle_unknown_task() -> None:
    startup_id = _onboard()["id"]

    response = client.patch(f"/blueprints/{startup_id}/tasks/nope", json={"completed": True}, headers=HEADERS)

    assert response.status_code == 404


def test_replace_blueprint_content() -> None:
    data = _onboard()
    startup_id = data["id"]
    content = data["blueprint"]["content"]
    content["next_steps"] = ["Ship it"]

    response = client.put(f"/blueprints/{startup_id}", json={"content": content}, headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["content"]["next_steps"] == ["Ship it"]


def test_blueprint_markdown_export() -> None:
    startup_id = _onboard()["id"]

    response = client.get(f"/blueprints/{startup_id}/markdown", headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["markdown"].startswith("# Acme Blueprint")


def test_stored_startup_recommendations_use_fallback() -> None:
    startup_id = _onboard(industry="fintech")["id"]

    response = client.get(f"/startups/{startup_id}/recommendations", headers=HEADERS)

    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "fallback"
    assert data["cache_hit"] is False
    assert data["recommendations"][-1]["title"] == "Navigate Fintech Compliance Requirements"
    assert data["personalization_details"]["matched_goals"] == ["build_mvp", "raise_funding"]


def test_posted_profile_recommendations() -> None:
    response = client.post(
        "/recommendations",
        json={
            "industry": "healthcare",
            "stage": "growth",
            "goals": ["hire_team"],
            "founder_count": 3,
            "entity_registered": True,
            "trademark_completed": True,
        },
        headers=HEADERS,
    )

    assert response.status_code == 200
    titles = [item["title"] for item in response.json()["recommendations"]]
    assert titles == ["Build Your Founding Team", "Ensure HIPAA Compliance from Day One"]

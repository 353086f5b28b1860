"""
End-to-end flow: register, log in, build a path, complete it, delete it.
"""

from fastapi.testclient import TestClient

ZERO_COUNTS = {
    "total_paths": 0,
    "completed_paths": 0,
    "total_modules": 0,
    "completed_modules": 0,
    "average_completion_rate": 0,
}


def _counts(metrics: dict) -> dict:
    return {key: metrics[key] for key in ZERO_COUNTS}


def test_learning_path_lifecycle(client: TestClient):
    # Register and log in
    registered = client.post(
        "/api/auth/register", json={"email": "a@x.com", "password": "secret1"}
    )
    assert registered.status_code == 201
    client.cookies.clear()

    wrong = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret2"})
    assert wrong.status_code == 401

    login = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
    assert login.status_code == 200
    assert login.json()["user"]["email"] == "a@x.com"

    # Create a one-level, one-module path
    created = client.post(
        "/api/learning-paths",
        json={
            "topic": "Go",
            "levels": [
                {
                    "name": "Beginner",
                    "modules": [{"title": "M1", "description": "Hello, Go"}],
                    "projects": [],
                }
            ],
        },
    )
    assert created.status_code == 201
    path_id = created.json()["id"]

    path = client.get(f"/api/learning-paths/{path_id}").json()
    assert len(path["levels"]) == 1
    assert len(path["levels"][0]["modules"]) == 1
    assert path["levels"][0]["projects"] == []
    module = path["levels"][0]["modules"][0]
    assert module["isCompleted"] is False

    # Complete the only module
    toggled = client.patch(
        f"/api/learning-paths/{path_id}/modules/{module['id']}/complete",
        json={"isCompleted": True},
    )
    assert toggled.status_code == 200

    metrics = client.get("/api/user-metrics").json()
    assert _counts(metrics) == {
        "total_paths": 1,
        "completed_paths": 1,
        "total_modules": 1,
        "completed_modules": 1,
        "average_completion_rate": 100,
    }
    assert metrics["recentActivity"]["lastCompletedModule"] == "M1 (Go)"
    assert metrics["progressByLevel"]["beginner"] == {"total": 1, "completed": 1}

    # Delete it and everything goes back to zero
    assert client.delete(f"/api/learning-paths/{path_id}").status_code == 200
    assert _counts(client.get("/api/user-metrics").json()) == ZERO_COUNTS
    assert client.get("/api/learning-paths").json() == []

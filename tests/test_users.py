"""User router tests."""

from fastapi.testclient import TestClient

from aggregator.main import app
from tests.fakes import InMemoryStore

client = TestClient(app)


def test_create_user_returns_api_key(store: InMemoryStore) -> None:
    response = client.post("/v1/users", json={"name": "alice"})

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "alice"
    assert len(data["api_key"]) == 64
    assert data["id"] in store.users


def test_create_user_requires_name() -> None:
    response = client.post("/v1/users", json={})

    assert response.status_code == 400
    assert "error" in response.json()


def test_create_user_rejects_invalid_json() -> None:
    response = client.post(
        "/v1/users", content=b"{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert set(response.json()) == {"error"}


def test_get_user_returns_caller(store: InMemoryStore) -> None:
    user = store.add_user("bob")

    response = client.get("/v1/users", headers={"Authorization": f"ApiKey {user.api_key}"})

    assert response.status_code == 200
    assert response.json()["id"] == user.id
    assert response.json()["name"] == "bob"

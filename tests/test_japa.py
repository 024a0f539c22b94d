import pytest
from fastapi.testclient import TestClient


def test_japa_requires_session(client: TestClient):
    assert client.get("/japaCount/me").status_code == 401
    assert client.put("/japaCount/update-japa", json={"count": 1}).status_code == 401


def test_new_user_starts_at_zero(auth_client: TestClient):
    assert auth_client.get("/japaCount/me").json() == {"ok": True, "japaCount": 0}


def test_increment_adds_to_total(auth_client: TestClient):
    response = auth_client.put("/japaCount/update-japa", json={"count": 108})
    assert response.status_code == 200
    assert response.json()["japaCount"] == 108

    response = auth_client.put("/japaCount/update-japa", json={"count": 27})
    assert response.json()["japaCount"] == 135
    assert auth_client.get("/japaCount/me").json()["japaCount"] == 135
    assert auth_client.get("/auth/me").json()["user"]["japaCount"] == 135


@pytest.mark.parametrize("count", [0, -5, "10", 2.5, True, None])
def test_invalid_counts_are_rejected_and_total_unchanged(auth_client: TestClient, count):
    auth_client.put("/japaCount/update-japa", json={"count": 3})

    response = auth_client.put("/japaCount/update-japa", json={"count": count})
    assert response.status_code == 400
    assert response.json() == {"ok": False, "message": "Invalid count provided."}
    assert auth_client.get("/japaCount/me").json()["japaCount"] == 3

from fastapi.testclient import TestClient
from sqlalchemy.orm import Query, Session

from app.models.favourites import Favourite
from app.models.users import User
from app.services.favourites import toggle_favourite

from conftest import TestingSessionLocal, login


def toggle(client: TestClient, chapter: int, verse: int):
    return client.post("/favourites/toggle", json={"chapter": chapter, "verse": verse})


def test_favourites_require_session(client: TestClient):
    assert client.get("/favourites/me").status_code == 401
    response = toggle(client, 1, 1)
    assert response.status_code == 401
    assert response.json()["ok"] is False


def test_toggle_twice_restores_membership(auth_client: TestClient, db: Session):
    first = toggle(auth_client, 2, 47).json()
    assert first["ok"] is True
    assert first["favourite"] is True
    assert first["item"]["chapter"] == 2
    assert first["item"]["verse"] == 47

    second = toggle(auth_client, 2, 47).json()
    assert second == {"ok": True, "favourite": False}
    assert db.query(Favourite).count() == 0


def test_toggle_requires_chapter_and_verse(auth_client: TestClient):
    response = auth_client.post("/favourites/toggle", json={"chapter": 1})
    assert response.status_code == 400
    assert response.json()["ok"] is False


def test_list_is_newest_first(auth_client: TestClient):
    toggle(auth_client, 1, 1)
    toggle(auth_client, 2, 2)
    toggle(auth_client, 3, 3)

    body = auth_client.get("/favourites/me").json()
    assert body["ok"] is True
    assert [(f["chapter"], f["verse"]) for f in body["favourites"]] == [(3, 3), (2, 2), (1, 1)]


def test_favourites_are_per_user(client: TestClient):
    login(client, email="first@example.com")
    toggle(client, 1, 1)
    client.post("/auth/logout")

    login(client, email="second@example.com")
    assert client.get("/favourites/me").json()["favourites"] == []
    assert toggle(client, 1, 1).json()["favourite"] is True


def test_duplicate_insert_race_counts_as_favourite(db: Session, monkeypatch):
    user = User(email="racer@example.com")
    db.add(user)
    db.commit()
    db.add(Favourite(user_id=user.id, chapter=4, verse=7))
    db.commit()

    # The racing request did not see the row that the other one inserted
    monkeypatch.setattr(Query, "first", lambda self: None)

    racing = TestingSessionLocal()
    try:
        is_favourite, item = toggle_favourite(racing, user.id, 4, 7)
    finally:
        racing.close()

    assert is_favourite is True
    assert item is None
    monkeypatch.undo()
    assert db.query(Favourite).filter_by(user_id=user.id).count() == 1

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.models.progress import VerseProgress
from app.services.catalog import DEFAULT_VERSE_COUNTS
from app.services.progress import percent_complete


def mark(client: TestClient, chapter: int, verse: int, completed: bool):
    return client.post(
        "/progress/me/verse",
        json={"chapter": chapter, "verse": verse, "completed": completed},
    )


def test_progress_requires_session(client: TestClient):
    for method, path in [
        ("get", "/progress/me"),
        ("get", "/progress/me/chapter/1"),
        ("post", "/progress/me/verse"),
        ("post", "/progress/me/chapter"),
    ]:
        response = getattr(client, method)(path)
        assert response.status_code == 401
        assert response.json() == {"ok": False, "message": "Not authenticated"}


def test_mark_verse(auth_client: TestClient):
    response = mark(auth_client, 2, 47, True)
    assert response.status_code == 200
    progress = response.json()["progress"]
    assert progress["chapter"] == 2
    assert progress["verse"] == 47
    assert progress["completed"] is True
    assert progress["completedAt"] is not None


def test_unmark_clears_timestamp(auth_client: TestClient):
    mark(auth_client, 2, 47, True)
    progress = mark(auth_client, 2, 47, False).json()["progress"]
    assert progress["completed"] is False
    assert progress["completedAt"] is None


def test_repeated_upserts_converge_to_one_record(auth_client: TestClient, db: Session):
    mark(auth_client, 3, 5, True)
    mark(auth_client, 3, 5, True)
    assert db.query(VerseProgress).filter_by(chapter=3, verse=5).count() == 1

    mark(auth_client, 3, 5, False)
    records = db.query(VerseProgress).filter_by(chapter=3, verse=5).all()
    assert len(records) == 1
    assert records[0].completed is False
    assert records[0].completed_at is None


def test_mark_verse_validates_body(auth_client: TestClient):
    response = auth_client.post("/progress/me/verse", json={"chapter": 1, "verse": 1, "completed": "true"})
    assert response.status_code == 400
    assert response.json()["ok"] is False

    response = auth_client.post("/progress/me/verse", json={"chapter": 1, "completed": True})
    assert response.status_code == 400

    response = auth_client.post("/progress/me/verse", json={"chapter": 0, "verse": 1, "completed": True})
    assert response.status_code == 400


def test_mark_whole_chapter_from_catalog(auth_client: TestClient, db: Session):
    response = auth_client.post("/progress/me/chapter", json={"chapterId": 1, "completed": True})
    assert response.status_code == 200
    assert response.json() == {"ok": True, "chapterId": 1, "completed": True, "affected": 47}
    assert db.query(VerseProgress).filter_by(chapter=1, completed=True).count() == 47

    # replaying is idempotent
    auth_client.post("/progress/me/chapter", json={"chapterId": 1, "completed": True})
    assert db.query(VerseProgress).filter_by(chapter=1).count() == 47

    response = auth_client.post("/progress/me/chapter", json={"chapterId": 1, "completed": False})
    assert response.json()["affected"] == 47
    db.expire_all()
    assert db.query(VerseProgress).filter_by(chapter=1, completed=True).count() == 0


def test_mark_chapter_with_explicit_verses(auth_client: TestClient):
    response = auth_client.post(
        "/progress/me/chapter",
        json={"chapterId": 12, "verseIds": [1, 2, 3, 3], "completed": True},
    )
    assert response.json()["affected"] == 3

    verses = auth_client.get("/progress/me/chapter/12").json()["verses"]
    done = [v["verse"] for v in verses if v["completed"]]
    assert done == [1, 2, 3]


def test_mark_unknown_chapter_is_rejected(auth_client: TestClient):
    response = auth_client.post("/progress/me/chapter", json={"chapterId": 19, "completed": True})
    assert response.status_code == 400
    assert response.json() == {"ok": False, "message": "No verses found for given chapter"}


def test_chapter_detail_lists_every_catalog_verse(auth_client: TestClient):
    mark(auth_client, 2, 10, True)
    body = auth_client.get("/progress/me/chapter/2").json()
    assert body["ok"] is True
    assert body["chapter"] == 2
    verses = body["verses"]
    assert [v["verse"] for v in verses] == list(range(1, 73))
    assert verses[9]["completed"] is True
    assert verses[9]["completedAt"] is not None
    assert all(v["completed"] is False and v["completedAt"] is None for i, v in enumerate(verses) if i != 9)


def test_summary_covers_every_chapter(auth_client: TestClient):
    auth_client.post("/progress/me/chapter", json={"chapterId": 12, "completed": True})
    for verse in range(1, 10):
        mark(auth_client, 2, verse, True)
    mark(auth_client, 3, 1, True)
    mark(auth_client, 3, 1, False)

    chapters = auth_client.get("/progress/me").json()["chapters"]
    assert [c["chapter"] for c in chapters] == list(range(1, 19))
    assert [c["totalVerses"] for c in chapters] == DEFAULT_VERSE_COUNTS

    by_chapter = {c["chapter"]: c for c in chapters}
    assert by_chapter[12]["completedCount"] == 20
    assert by_chapter[12]["percent"] == 100
    assert by_chapter[2]["completedCount"] == 9
    assert by_chapter[2]["percent"] == 13
    assert by_chapter[3]["completedCount"] == 0
    assert by_chapter[3]["percent"] == 0
    assert by_chapter[1] == {"chapter": 1, "totalVerses": 47, "completedCount": 0, "percent": 0}


def test_progress_is_scoped_to_the_user(client: TestClient):
    from conftest import login

    login(client, email="first@example.com")
    mark(client, 1, 1, True)
    client.post("/auth/logout")

    login(client, email="second@example.com")
    chapters = client.get("/progress/me").json()["chapters"]
    assert chapters[0]["completedCount"] == 0


def test_percent_complete():
    assert percent_complete(0, 47) == 0
    assert percent_complete(1, 47) == 2
    assert percent_complete(47, 47) == 100
    assert percent_complete(9, 72) == 13
    assert percent_complete(3, 0) == 0


def test_mark_chapter_rejects_oversized_verse_list(auth_client: TestClient, db: Session):
    response = auth_client.post(
        "/progress/me/chapter",
        json={"chapterId": 2, "verseIds": list(range(1, 202)), "completed": True},
    )
    assert response.status_code == 400
    assert response.json()["ok"] is False
    assert db.query(VerseProgress).count() == 0

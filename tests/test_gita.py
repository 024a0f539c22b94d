from datetime import date, timedelta
import random

import pytest
import requests
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.exceptions import UpstreamError
from app.main import app
from app.models.daily_verse import DailyVerse
from app.services.gita import GitaClient, ResponseCache, get_gita_client, verse_of_the_day


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


class FakeSession:
    """Stands in for requests.Session, answering every URL with its path"""

    def __init__(self, status_code=200):
        self.status_code = status_code
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append((url, headers))
        if self.status_code != 200:
            return FakeResponse(None, self.status_code)
        return FakeResponse({"url": url})


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def gita_client(fake_session):
    return GitaClient(
        base_url="https://gita.test/v2",
        api_key="key",
        cache=ResponseCache(ttl_seconds=60),
        session=fake_session,
    )


def test_client_builds_upstream_urls(gita_client, fake_session):
    assert gita_client.chapters() == {"url": "https://gita.test/v2/chapters/"}
    assert gita_client.verse(2, 47) == {"url": "https://gita.test/v2/chapters/2/verses/47/"}
    headers = fake_session.calls[0][1]
    assert headers["X-RapidAPI-Key"] == "key"


def test_client_serves_repeat_reads_from_cache(gita_client, fake_session):
    gita_client.chapter_verses(3)
    gita_client.chapter_verses(3)
    gita_client.chapter(3)
    assert len(fake_session.calls) == 2


def test_cache_entries_expire():
    clock = FakeClock()
    cache = ResponseCache(ttl_seconds=10, clock=clock)
    cache.set("k", 1)
    clock.now = 9.9
    assert cache.get("k") == 1
    clock.now = 10
    assert cache.get("k") is None


def test_upstream_failure_raises_upstream_error():
    client = GitaClient(base_url="https://gita.test/v2", session=FakeSession(status_code=503))
    with pytest.raises(UpstreamError):
        client.chapters()


def test_routes_proxy_through_client(client: TestClient, gita_client):
    app.dependency_overrides[get_gita_client] = lambda: gita_client

    assert client.get("/chapters").json() == {"url": "https://gita.test/v2/chapters/"}
    assert client.get("/chapter/4").json() == {"url": "https://gita.test/v2/chapters/4/"}
    assert client.get("/chapter/4/slok").json() == {"url": "https://gita.test/v2/chapters/4/verses/"}
    assert client.get("/chapter/4/slok/5").json() == {"url": "https://gita.test/v2/chapters/4/verses/5/"}


def test_route_reports_upstream_failure(client: TestClient):
    failing = GitaClient(base_url="https://gita.test/v2", session=FakeSession(status_code=500))
    app.dependency_overrides[get_gita_client] = lambda: failing

    response = client.get("/chapters")
    assert response.status_code == 502
    assert response.json() == {"ok": False, "message": "Something went wrong"}


def test_verse_of_the_day_is_stored_once_per_day(db: Session, gita_client, fake_session):
    today = date(2024, 1, 2)
    db.add(DailyVerse(day=today - timedelta(days=1), chapter=1, verse=1, payload={"old": True}))
    db.commit()

    first = verse_of_the_day(db, gita_client, today=today, rng=random.Random(7))
    second = verse_of_the_day(db, gita_client, today=today, rng=random.Random(8))

    assert first.id == second.id
    assert len(fake_session.calls) == 1
    assert first.payload == {"url": f"https://gita.test/v2/chapters/{first.chapter}/verses/{first.verse}/"}
    assert [row.day for row in db.query(DailyVerse).all()] == [today]


def test_daily_verse_route(client: TestClient, gita_client):
    app.dependency_overrides[get_gita_client] = lambda: gita_client

    body = client.get("/slok").json()
    assert len(body) == 1
    assert body[0]["url"].startswith("https://gita.test/v2/chapters/")

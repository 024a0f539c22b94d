import random
import threading
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

import requests
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.config import settings
from app.models.daily_verse import DailyVerse
from app.exceptions import UpstreamError, handle_database_error
from app.services.catalog import VerseCatalog, get_catalog
from app.utils.logger import get_logger

logger = get_logger("gita")


class ResponseCache:
    """Thread-safe in-process cache with a fixed time to live"""

    def __init__(self, ttl_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any):
        with self._lock:
            self._entries[key] = (self._clock(), value)

    def clear(self):
        with self._lock:
            self._entries.clear()


class GitaClient:
    """Read-through cached client for the upstream Gita content API"""

    def __init__(
        self,
        base_url: str = None,
        api_key: Optional[str] = None,
        api_host: Optional[str] = None,
        cache: Optional[ResponseCache] = None,
        timeout: float = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.GITA_API_BASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.RAPID_API_KEY
        self.api_host = api_host or settings.RAPID_API_HOST
        self.cache = cache or ResponseCache(settings.GITA_CACHE_SECONDS)
        self.timeout = timeout or settings.GITA_API_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def _headers(self) -> dict:
        headers = {"X-RapidAPI-Host": self.api_host}
        if self.api_key:
            headers["X-RapidAPI-Key"] = self.api_key
        return headers

    def _fetch(self, path: str) -> Any:
        url = f"{self.base_url}/{path.strip('/')}/"
        try:
            response = self.session.get(url, headers=self._headers(), timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Upstream Gita API request failed for {url}: {str(e)}")
            raise UpstreamError("Something went wrong", details={"url": url, "original_error": str(e)})

    def _cached(self, key: str, path: str) -> Any:
        data = self.cache.get(key)
        if data is not None:
            logger.debug(f"Serving {key} from cache")
            return data
        data = self._fetch(path)
        self.cache.set(key, data)
        return data

    def chapters(self) -> Any:
        return self._cached("chapters", "chapters")

    def chapter(self, chapter: int) -> Any:
        return self._cached(f"chapter:{chapter}", f"chapters/{chapter}")

    def chapter_verses(self, chapter: int) -> Any:
        return self._cached(f"verses:{chapter}", f"chapters/{chapter}/verses")

    def verse(self, chapter: int, verse: int) -> Any:
        return self._cached(f"verse:{chapter}-{verse}", f"chapters/{chapter}/verses/{verse}")


_client: Optional[GitaClient] = None


def get_gita_client() -> GitaClient:
    global _client
    if _client is None:
        _client = GitaClient()
    return _client


def verse_of_the_day(
    db: Session,
    client: GitaClient,
    catalog: Optional[VerseCatalog] = None,
    today=None,
    rng: Optional[random.Random] = None,
) -> DailyVerse:
    """
    Today's verse, picking and storing a random one on the first call of the day

    Rows from earlier days are pruned when a new verse is stored.
    """
    catalog = catalog or get_catalog()
    today = today or datetime.utcnow().date()
    rng = rng or random

    try:
        current = db.query(DailyVerse).filter(DailyVerse.day == today).first()
    except SQLAlchemyError as e:
        raise handle_database_error(e, "read daily verse")
    if current:
        return current

    chapter = rng.choice(catalog.chapters())
    verse = rng.choice(catalog.verses_for_chapter(chapter))
    payload = client.verse(chapter, verse)

    try:
        db.query(DailyVerse).filter(DailyVerse.day < today).delete(synchronize_session=False)
        daily = DailyVerse(day=today, chapter=chapter, verse=verse, payload=payload)
        db.add(daily)
        try:
            db.commit()
        except IntegrityError:
            # another request stored today's verse first
            db.rollback()
            return db.query(DailyVerse).filter(DailyVerse.day == today).one()
        db.refresh(daily)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "store daily verse")

    logger.info(f"Verse of the day for {today}: {chapter}.{verse}")
    return daily

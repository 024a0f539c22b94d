import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from app.config import settings
from app.utils.logger import get_logger

logger = get_logger("catalog")

# Verses per chapter, chapters 1..18
DEFAULT_VERSE_COUNTS = [47, 72, 43, 42, 29, 47, 30, 28, 34, 42, 55, 20, 35, 27, 20, 24, 28, 78]


class VerseCatalog:
    """Read-only map of chapter number to its verse numbers"""

    def __init__(self, verses_by_chapter: Dict[int, List[int]]):
        self._verses = {
            chapter: sorted(set(verses))
            for chapter, verses in verses_by_chapter.items()
            if verses
        }

    @classmethod
    def from_counts(cls, counts: Iterable[int]) -> "VerseCatalog":
        return cls({
            chapter: list(range(1, count + 1))
            for chapter, count in enumerate(counts, start=1)
        })

    @classmethod
    def from_entries(cls, entries: Iterable[dict]) -> "VerseCatalog":
        """Build from records shaped like {"chapter": 1, "verse": 1, ...}"""
        verses_by_chapter: Dict[int, List[int]] = {}
        for entry in entries:
            chapter = int(entry["chapter"])
            verses_by_chapter.setdefault(chapter, []).append(int(entry["verse"]))
        return cls(verses_by_chapter)

    @classmethod
    def from_file(cls, path: str) -> "VerseCatalog":
        with Path(path).open(encoding="utf-8") as fh:
            return cls.from_entries(json.load(fh))

    def chapters(self) -> List[int]:
        return sorted(self._verses)

    def verses_for_chapter(self, chapter: int) -> List[int]:
        return list(self._verses.get(int(chapter), []))

    def total_verses(self, chapter: int) -> int:
        return len(self._verses.get(int(chapter), []))

    def __len__(self):
        return sum(len(v) for v in self._verses.values())


_catalog: Optional[VerseCatalog] = None


def load_catalog(path: Optional[str] = None) -> VerseCatalog:
    """
    Load the verse catalog

    Falls back to the built-in verse counts when no file is configured or the
    file cannot be read.
    """
    path = path or settings.VERSE_CATALOG_PATH
    if path:
        try:
            catalog = VerseCatalog.from_file(path)
            logger.info(f"Loaded verse catalog from {path}: {len(catalog)} verses")
            return catalog
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Could not load verse catalog from {path}, using built-in counts: {str(e)}")
    return VerseCatalog.from_counts(DEFAULT_VERSE_COUNTS)


def get_catalog() -> VerseCatalog:
    """Process-wide catalog, loaded on first use"""
    global _catalog
    if _catalog is None:
        _catalog = load_catalog()
    return _catalog

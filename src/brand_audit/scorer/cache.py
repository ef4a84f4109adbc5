"""Score consistency cache.

A page whose content and structure have not changed gets the external
scores it was given last time instead of a fresh (and possibly different)
model verdict. Entries expire after a configurable number of days.
"""

import copy
import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..models import PageSignals, SectionScores


logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400
SIGNATURE_TEXT_CHARS = 5000


@dataclass(frozen=True)
class PageSignature:
    """Hashes of the parts of a page that affect its scores."""
    content_hash: str
    structure_hash: str

    @property
    def key(self) -> str:
        return f"{self.content_hash}-{self.structure_hash}"


def _digest(data: Any) -> str:
    return hashlib.sha256(json.dumps(data, sort_keys=True).encode("utf-8")).hexdigest()


def page_signature(signals: PageSignals) -> PageSignature:
    """Signature of an analyzed page.

    Content is the title plus the first 5000 characters of visible text.
    Structure is the navigation menu, the discovered page count and whether
    the page has images and forms.
    """
    content = _digest({
        "title": signals.title,
        "text": signals.text[:SIGNATURE_TEXT_CHARS],
    })
    structure = _digest({
        "navigation": signals.site_structure.navigation.menu_items,
        "page_count": signals.site_structure.page_count,
        "has_images": signals.ux_features.media.images > 0,
        "has_forms": signals.ux_features.forms.count > 0,
    })
    return PageSignature(content_hash=content, structure_hash=structure)


@dataclass
class CachedScore:
    scores: SectionScores
    provider: str
    model: str
    stored_at: float
    expires_at: float


class ScoreCache:
    """In-memory external scores keyed by page signature.

    Safe to share between threads. A ``ttl`` of zero disables caching.
    """

    MAX_ENTRIES = 500

    def __init__(self, ttl: float, clock: Callable[[], float] = time.time):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, CachedScore] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @classmethod
    def from_days(cls, days: float, clock: Callable[[], float] = time.time) -> "ScoreCache":
        return cls(days * SECONDS_PER_DAY, clock=clock)

    @property
    def enabled(self) -> bool:
        return self.ttl > 0

    def get(self, signature: PageSignature) -> Optional[CachedScore]:
        """Cached scores for ``signature``, or None if absent or expired."""
        if not self.enabled:
            return None
        with self._lock:
            entry = self._entries.get(signature.key)
            if entry is not None and self._clock() > entry.expires_at:
                del self._entries[signature.key]
                entry = None
            if entry is None:
                self.misses += 1
                return None
            self.hits += 1
            return copy.deepcopy(entry)

    def put(self, signature: PageSignature, scores: SectionScores, provider: str, model: str) -> None:
        if not self.enabled:
            return
        with self._lock:
            now = self._clock()
            if signature.key not in self._entries and len(self._entries) >= self.MAX_ENTRIES:
                self._purge_expired(now)
                if len(self._entries) >= self.MAX_ENTRIES:
                    self._evict_oldest()
            self._entries[signature.key] = CachedScore(
                scores=copy.deepcopy(scores),
                provider=provider,
                model=model,
                stored_at=now,
                expires_at=now + self.ttl,
            )
        logger.debug("Cached scores for page signature %s", signature.key[:16])

    def purge_expired(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        with self._lock:
            return self._purge_expired(self._clock())

    def _purge_expired(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if now > entry.expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _evict_oldest(self) -> None:
        oldest = min(self._entries, key=lambda k: self._entries[k].stored_at)
        del self._entries[oldest]

    def __len__(self) -> int:
        return len(self._entries)

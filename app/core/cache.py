"""
Session-scoped read-through cache for the signed-in identity and reference data
(profiles, cohort membership, feeds).

Entries live per session (sha256 of the access token) and expire after a short TTL.
Mutations invalidate the affected entity in every session so an admin changing someone
else's role or membership is seen on that user's next request.
"""

import hashlib
import logging
import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from app.config import settings

logger = logging.getLogger(__name__)

_MISSING = object()

# Entity id of the signed-in user's own identity within a session
IDENTITY = "self"

CacheKey = Tuple[str, Hashable]


def session_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def _identity_of(entries: Dict[CacheKey, Tuple[Any, float]]) -> Optional[str]:
    hit = entries.get(("user", IDENTITY))
    return hit[0].get("id") if hit and hit[0] else None


class SessionCache:
    def __init__(self, ttl_seconds: float, max_sessions: int):
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self._sessions: Dict[str, Dict[CacheKey, Tuple[Any, float]]] = {}
        self._lock = threading.Lock()

    def get(self, session: str, kind: str, entity_id: Hashable, default: Any = None) -> Any:
        now = time.monotonic()
        with self._lock:
            entries = self._sessions.get(session)
            if not entries:
                return default
            hit = entries.get((kind, entity_id))
            if hit is None:
                return default
            value, expiry = hit
            if now >= expiry:
                del entries[(kind, entity_id)]
                return default
            return value

    def put(self, session: str, kind: str, entity_id: Hashable, value: Any) -> None:
        with self._lock:
            entries = self._sessions.get(session)
            if entries is None:
                if len(self._sessions) >= self.max_sessions:
                    self._evict_expired()
                    if len(self._sessions) >= self.max_sessions:
                        # Cache is full of live sessions; serve uncached
                        return
                entries = self._sessions[session] = {}
            entries[(kind, entity_id)] = (value, time.monotonic() + self.ttl_seconds)

    def get_or_load(
        self,
        session: Optional[str],
        kind: str,
        entity_id: Hashable,
        loader: Callable[[], Any],
    ) -> Any:
        """Return the cached value or call loader and cache its result (None included)."""
        if session is None:
            return loader()
        value = self.get(session, kind, entity_id, _MISSING)
        if value is not _MISSING:
            return value
        value = loader()
        self.put(session, kind, entity_id, value)
        return value

    def invalidate(self, kind: str, entity_id: Hashable) -> None:
        with self._lock:
            for entries in self._sessions.values():
                entries.pop((kind, entity_id), None)

    def clear_user_sessions(self, user_id: str) -> None:
        """Drop every session whose cached identity is user_id"""
        with self._lock:
            for session in [s for s, entries in self._sessions.items() if _identity_of(entries) == user_id]:
                del self._sessions[session]

    def clear_session(self, session: str) -> None:
        with self._lock:
            self._sessions.pop(session, None)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def _evict_expired(self) -> None:
        now = time.monotonic()
        for session in list(self._sessions):
            entries = self._sessions[session]
            for key in [k for k, (_, expiry) in entries.items() if now >= expiry]:
                del entries[key]
            if not entries:
                del self._sessions[session]
        logger.debug("Session cache holds %d sessions after eviction", len(self._sessions))


session_cache = SessionCache(
    ttl_seconds=settings.session_cache_ttl_seconds,
    max_sessions=settings.session_cache_max_size,
)


def get_session_cache() -> SessionCache:
    return session_cache

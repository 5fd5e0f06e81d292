"""
Idempotency Response Cache.

Maps a client-supplied idempotency key to the response first produced for
it, so retried deliveries are answered with the original response instead
of being processed again.

The cache is an optimization in front of the database: uniqueness of the
idempotency key in persistence is the authoritative dedup boundary, so a
cold cache, or one per process instance, is still correct.
"""

import copy
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from core.security.gates import MUTATING_METHODS

logger = logging.getLogger(__name__)

IDEMPOTENCY_HEADER = "X-Idempotency-Key"
DEFAULT_TTL_SECONDS = 24 * 60 * 60


@dataclass(frozen=True)
class ResponseSnapshot:
    """The exact response replayed for a repeated key."""
    status_code: int
    body: Any


@dataclass(frozen=True)
class IdempotencyEntry:
    """A cached response for one idempotency key."""
    key: str
    response_snapshot: ResponseSnapshot
    created_at: float


class IdempotencyCache:
    """
    Thread-safe, time-bounded idempotency key -> response map.

    Features:
    - Applies only to mutating methods carrying a non-empty key
    - Expired entries are swept on every access, no background timer
    - First writer wins when two requests race on the same key
    - Snapshots are deep-copied in and out
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, IdempotencyEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def applies_to(method: str, key: Optional[str]) -> bool:
        """Whether a request with this method and key uses the cache."""
        return bool(key) and method.upper() in MUTATING_METHODS

    def lookup(self, key: str) -> Optional[IdempotencyEntry]:
        """
        Return the cached entry for a key, or None.

        The returned snapshot is a copy; mutating it does not affect the cache.
        """
        with self._lock:
            self._sweep(self._clock())
            entry = self._entries.get(key)
            if entry is None:
                return None
            return _copy_entry(entry)

    def store(self, key: str, status_code: int, body: Any) -> IdempotencyEntry:
        """
        Cache the response produced for a key.

        If another request already stored a response for the key, that
        response is kept and returned.
        """
        with self._lock:
            now = self._clock()
            self._sweep(now)
            existing = self._entries.get(key)
            if existing is not None:
                logger.debug(f"Idempotency key already cached, keeping first response: {key}")
                return _copy_entry(existing)

            entry = IdempotencyEntry(
                key=key,
                response_snapshot=ResponseSnapshot(
                    status_code=status_code,
                    body=copy.deepcopy(body),
                ),
                created_at=now,
            )
            self._entries[key] = entry
            logger.info(f"Cached response for idempotency key: {key}")
            return _copy_entry(entry)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _sweep(self, now: float) -> None:
        """Remove entries older than the retention window. Caller holds the lock."""
        expired = [
            key for key, entry in self._entries.items()
            if now - entry.created_at > self._ttl
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired idempotency entries")


def _copy_entry(entry: IdempotencyEntry) -> IdempotencyEntry:
    return IdempotencyEntry(
        key=entry.key,
        response_snapshot=ResponseSnapshot(
            status_code=entry.response_snapshot.status_code,
            body=copy.deepcopy(entry.response_snapshot.body),
        ),
        created_at=entry.created_at,
    )

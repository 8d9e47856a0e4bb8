"""In-memory cache of provider public verification keys."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
import threading
from typing import Any


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True, frozen=True)
class CachedPublicKey:
    kid: str
    key: Any
    expires_at: datetime


class PublicKeyCache:
    """Key id to public key map with lazy expiry.

    Entries are never evicted proactively: an expired entry stays in the map
    until it is overwritten or the cache is reset, and lookups simply ignore
    it. All operations are guarded by a single lock so concurrent
    authentications can read and refill the cache safely.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock
        self._entries: dict[str, CachedPublicKey] = {}
        self._lock = threading.Lock()

    def get(self, kid: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(kid)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            return None
        return entry.key

    def add(self, kid: str, key: Any, expires_at: datetime) -> None:
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        with self._lock:
            self._entries[kid] = CachedPublicKey(kid=kid, key=key, expires_at=expires_at.astimezone(UTC))

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["CachedPublicKey", "PublicKeyCache", "utc_now"]

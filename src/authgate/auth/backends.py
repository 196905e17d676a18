# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Key-value backends holding session id -> identity id with an expiry."""

from __future__ import annotations

import os
import threading
import time
from typing import Callable, Dict, Optional, Protocol, Tuple

import redis

from authgate.exceptions import StoreError


class SessionBackend(Protocol):
    def set(self, session_id: str, user_id: str, ttl: int) -> None: ...

    def get(self, session_id: str) -> Optional[str]: ...

    def delete(self, session_id: str) -> None: ...


class MemorySessionBackend:
    """Process-local backend. Expired entries are dropped when touched."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._data: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()

    def set(self, session_id: str, user_id: str, ttl: int) -> None:
        with self._lock:
            self._data[session_id] = (user_id, self._clock() + ttl)

    def get(self, session_id: str) -> Optional[str]:
        with self._lock:
            entry = self._data.get(session_id)
            if entry is None:
                return None
            user_id, expires_at = entry
            if expires_at <= self._clock():
                del self._data[session_id]
                return None
            return user_id

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._data.pop(session_id, None)


class RedisSessionBackend:
    """Sessions stored in Redis; expiry is delegated to the key TTL."""

    def __init__(self, client: "redis.Redis", prefix: str = "authgate:session:") -> None:
        self.r = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str) -> "RedisSessionBackend":
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def _key(self, session_id: str) -> str:
        return f"{self.prefix}{session_id}"

    def set(self, session_id: str, user_id: str, ttl: int) -> None:
        try:
            self.r.set(self._key(session_id), user_id, ex=ttl)
        except redis.exceptions.RedisError as e:
            raise StoreError(f"Failed to create session: {e}") from e

    def get(self, session_id: str) -> Optional[str]:
        try:
            value = self.r.get(self._key(session_id))
        except redis.exceptions.RedisError as e:
            raise StoreError(f"Failed to load session: {e}") from e
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value or None

    def delete(self, session_id: str) -> None:
        try:
            self.r.delete(self._key(session_id))
        except redis.exceptions.RedisError as e:
            raise StoreError(f"Failed to delete session: {e}") from e


def backend_from_env() -> SessionBackend:
    kind = os.getenv("AUTHGATE_SESSION_BACKEND", "memory").strip().lower()
    if kind == "redis":
        return RedisSessionBackend.from_url(os.getenv("AUTHGATE_REDIS_URL", "redis://localhost:6379/0"))
    if kind != "memory":
        raise RuntimeError(f"Unknown AUTHGATE_SESSION_BACKEND: {kind}")
    return MemorySessionBackend()

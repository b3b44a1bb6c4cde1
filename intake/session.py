"""Per-call session storage.

Each inbound call is keyed by its CallSid.  Webhook requests for the same call
can overlap (Twilio retries, a redirect racing a slow turn), so every
read-decide-write of a ``CallState`` happens inside ``store.session(...)``,
which holds a lock for that call only.  Unrelated calls never wait on each
other.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from intake.models.call import CallState

log = logging.getLogger("intake.session")


def redact_pii(value: str) -> str:
    """Mask PII for logging: show first 3 and last 2 chars only."""
    if not value or len(value) <= 5:
        return "***"
    return value[:3] + "***" + value[-2:]


class SessionStore(ABC):
    """Keyed storage for in-progress calls."""

    @abstractmethod
    def session(
        self, call_id: str, factory: Callable[[], CallState],
    ) -> "AsyncIterator[CallState]":
        """Async context manager yielding the call's state under its lock.

        Creates the state with ``factory`` when the call is unknown.
        """

    @abstractmethod
    def get(self, call_id: str) -> Optional[CallState]:
        """Return the stored state without locking (inspection only)."""

    @abstractmethod
    def delete(self, call_id: str) -> None:
        """Forget a call. Unknown ids are ignored."""

    @abstractmethod
    def evict_stale(self, max_idle_seconds: float) -> int:
        """Drop calls idle longer than ``max_idle_seconds``; return the count."""

    @abstractmethod
    def __len__(self) -> int: ...


class InMemorySessionStore(SessionStore):
    """Process-local store: a dict of states plus one ``asyncio.Lock`` per call.

    A call's lock lives as long as some request holds or waits on it, so a
    delete between a release and a waiter waking never hands out a second lock.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._calls: dict[str, CallState] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def session(
        self, call_id: str, factory: Callable[[], CallState],
    ) -> AsyncIterator[CallState]:
        lock = self._locks.setdefault(call_id, asyncio.Lock())
        self._users[call_id] = self._users.get(call_id, 0) + 1
        try:
            async with lock:
                call = self._calls.get(call_id)
                if call is None:
                    call = factory()
                    self._calls[call_id] = call
                    log.info("Session created: %s", call_id)
                call.last_seen = self._clock()
                yield call
        finally:
            self._users[call_id] -= 1
            if not self._users[call_id]:
                del self._users[call_id]
                if call_id not in self._calls:
                    self._locks.pop(call_id, None)

    def get(self, call_id: str) -> Optional[CallState]:
        return self._calls.get(call_id)

    def delete(self, call_id: str) -> None:
        # the lock goes when its last user leaves, see session()
        if self._calls.pop(call_id, None) is not None:
            log.info("Session deleted: %s", call_id)
            if call_id not in self._users:
                self._locks.pop(call_id, None)

    def evict_stale(self, max_idle_seconds: float) -> int:
        cutoff = self._clock() - max_idle_seconds
        stale = [
            call_id for call_id, call in self._calls.items()
            if call.last_seen < cutoff and call_id not in self._users
        ]
        for call_id in stale:
            del self._calls[call_id]
            self._locks.pop(call_id, None)
        if stale:
            log.info("Evicted %d idle session(s)", len(stale))
        return len(stale)

    def __len__(self) -> int:
        return len(self._calls)

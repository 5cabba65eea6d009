"""Per-scope mutual exclusion for recomputes.

A recompute reads a scope's inputs, aggregates, and replaces the scope's
output rows. Two of those interleaving on the same round (or season) can
write a row set built from stale inputs, so each ``(kind, scope_id)`` pair
gets its own asyncio lock. Different scopes never block each other.

The registry is process-local. It is created by the app factory and passed
into every recompute; nothing here is a module global.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from puckboard.core.errors import ConcurrentRecalcConflict

logger = logging.getLogger(__name__)


class ScopeLockRegistry:
    """Registry of asyncio locks keyed by scope.

    Usage:
        locks = ScopeLockRegistry(timeout=10.0)
        async with locks.hold("round", round_id):
            ...  # read, aggregate, replace, commit
    """

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout
        # A scope's lock lives only while someone holds or waits on it.
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._users: dict[tuple[str, str], int] = {}

    def active_scopes(self) -> int:
        """Number of scopes currently held or waited on."""
        return len(self._locks)

    def is_locked(self, kind: str, scope_id: str) -> bool:
        lock = self._locks.get((kind, scope_id))
        return lock is not None and lock.locked()

    def _checkout(self, key: tuple[str, str]) -> asyncio.Lock:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        return lock

    def _checkin(self, key: tuple[str, str]) -> None:
        self._users[key] -= 1
        if self._users[key] == 0:
            del self._users[key]
            del self._locks[key]

    @asynccontextmanager
    async def hold(
        self,
        kind: str,
        scope_id: str,
        *,
        timeout: float | None = None,
    ) -> AsyncIterator[None]:
        """Hold the scope's lock for the duration of the block.

        Raises ConcurrentRecalcConflict if the lock is not acquired within
        ``timeout`` seconds (defaults to the registry timeout).
        """
        wait = self.timeout if timeout is None else timeout
        key = (kind, scope_id)
        lock = self._checkout(key)
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=wait)
            except TimeoutError:
                logger.warning(
                    "recalc_lock_timeout kind=%s scope=%s wait=%.1fs", kind, scope_id, wait
                )
                raise ConcurrentRecalcConflict(
                    f"another {kind} recompute for {scope_id} is still running",
                    scope=kind,
                    scope_id=scope_id,
                ) from None
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(key)

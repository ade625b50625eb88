"""
Per-entity locks shared by the sync and ingestion services.

A sync pass and an ingestion batch may run concurrently against the same
database; every check-then-write on a record holds the lock of its
(kind, remote_id) pair.
"""

import asyncio
import threading
from contextlib import asynccontextmanager
from enum import StrEnum

from game_tracker.logger import setup_logger

logger = setup_logger()


class EntityKind(StrEnum):
    THREAD = "thread"
    GAME = "game"


class EntityLockRegistry:
    """Lazily created asyncio.Lock per (kind, remote_id)"""

    def __init__(self):
        # Guards the dict itself, the asyncio locks guard the records
        self._registry_lock = threading.Lock()
        self._locks: dict[tuple[EntityKind, int], asyncio.Lock] = {}
        self._holders: dict[tuple[EntityKind, int], int] = {}

    @asynccontextmanager
    async def hold(self, kind: EntityKind, remote_id: int):
        """
        Usage:
            async with locks.hold(EntityKind.GAME, 77):
                ...
        """
        key = (kind, remote_id)
        with self._registry_lock:
            lock = self._locks.setdefault(key, asyncio.Lock())
            self._holders[key] = self._holders.get(key, 0) + 1

        try:
            if lock.locked():
                logger.debug(f"Waiting for {kind} {remote_id} lock")
            async with lock:
                yield
        finally:
            with self._registry_lock:
                self._holders[key] -= 1
                # Drop idle locks to prevent unbounded growth
                if self._holders[key] == 0:
                    del self._holders[key]
                    del self._locks[key]

    def active_count(self) -> int:
        with self._registry_lock:
            return len(self._locks)

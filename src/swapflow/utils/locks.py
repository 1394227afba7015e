"""Per-context exclusion for execution sessions.

Unlike a queueing lock, a busy context is rejected immediately: a second
execution for the same caller context fails instead of waiting its turn.
"""

import asyncio
import logging

from swapflow.errors import SessionBusyError

logger = logging.getLogger(__name__)


class ContextLockRegistry:
    """Registry of asyncio locks keyed by caller context id."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}

    def get_lock(self, context_id: str) -> asyncio.Lock:
        """Get or create the lock for a context."""
        if context_id not in self._locks:
            self._locks[context_id] = asyncio.Lock()
        return self._locks[context_id]

    def is_locked(self, context_id: str) -> bool:
        lock = self._locks.get(context_id)
        return lock is not None and lock.locked()

    def exclusive(self, context_id: str, operation: str = "execute") -> "ExclusiveContext":
        return ExclusiveContext(self, context_id, operation)

    def discard(self, context_id: str) -> bool:
        """Forget a context's lock unless it is held."""
        lock = self._locks.get(context_id)
        if lock is None or lock.locked():
            return False
        del self._locks[context_id]
        return True

    def clear(self) -> None:
        """Drop locks that are not currently held."""
        self._locks = {cid: lock for cid, lock in self._locks.items() if lock.locked()}


class ExclusiveContext:
    """Async context manager holding a context's lock without waiting.

    Example:
        async with registry.exclusive(session_id, operation="execute"):
            # only one execution per session reaches this point
            ...
    """

    def __init__(self, registry: ContextLockRegistry, context_id: str, operation: str):
        self.registry = registry
        self.context_id = context_id
        self.operation = operation
        self._lock = registry.get_lock(context_id)
        self._acquired = False

    async def acquire_nowait(self) -> None:
        """Take the lock or raise SessionBusyError instead of waiting."""
        if self._lock.locked():
            logger.warning(f"Rejected {self.operation} for busy context {self.context_id}")
            raise SessionBusyError(self.context_id, self.operation)
        # Uncontended acquire completes without yielding to the loop
        await self._lock.acquire()
        self._acquired = True
        logger.debug(f"Lock acquired for context {self.context_id}: {self.operation}")

    def release(self) -> None:
        if self._acquired:
            self._lock.release()
            self._acquired = False
            logger.debug(f"Lock released for context {self.context_id}: {self.operation}")

    async def __aenter__(self) -> "ExclusiveContext":
        await self.acquire_nowait()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False

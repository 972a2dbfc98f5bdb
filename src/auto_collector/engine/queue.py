"""
Signing queue.

Serializes every operation that touches the signing identity. One
``SigningQueue`` exists per process and is injected into the HTTP layer;
orchestrators run inside ``run_exclusive`` so at most one of them (and
therefore at most one transaction submission) is active at a time.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SigningQueue:
    """One-at-a-time work queue over an ``asyncio.Lock``.

    Waiters are admitted in the lock's wake-up order; no fairness beyond
    that is promised. The lock is released on every exit path, including
    exceptions raised by the job.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._waiting = 0
        self._completed = 0

    @property
    def waiting(self) -> int:
        """Jobs currently blocked on the lock."""
        return self._waiting

    @property
    def completed(self) -> int:
        """Jobs that have finished (successfully or not)."""
        return self._completed

    def locked(self) -> bool:
        return self._lock.locked()

    async def run_exclusive(self, job: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """Run ``job(*args, **kwargs)`` while holding the queue.

        Returns:
            Whatever the job returns. Exceptions propagate after release.
        """
        self._waiting += 1
        if self._lock.locked():
            logger.debug("Queue busy, %d job(s) waiting", self._waiting)
        try:
            await self._lock.acquire()
        finally:
            self._waiting -= 1

        try:
            return await job(*args, **kwargs)
        finally:
            self._completed += 1
            self._lock.release()
            logger.debug("Job finished, %d completed", self._completed)

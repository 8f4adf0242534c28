"""Semaphore: FIFO counting semaphore with direct permit hand-off."""

from __future__ import annotations

import asyncio
from collections import deque


class Semaphore:
    """Counting semaphore granting up to ``capacity`` concurrent holders.

    Unlike ``asyncio.Semaphore``, a released permit is handed straight to
    the longest-waiting caller instead of going back to the pool, so a
    fresh ``acquire()`` can never overtake a queued one.

    Usage::

        sem = Semaphore(3)

        async with sem:
            await do_work()
    """

    def __init__(self, capacity: int) -> None:
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            raise ValueError(
                f"Semaphore capacity must be a positive integer, got {capacity!r}"
            )
        self._capacity = capacity
        self._available = capacity
        self._waiters: deque[asyncio.Future[None]] = deque()

    @property
    def capacity(self) -> int:
        return self._capacity

    async def acquire(self) -> None:
        """Claim a permit, suspending in FIFO order when none is free.

        Returns without yielding to the event loop when a permit is
        available.
        """
        if self._available > 0:
            self._available -= 1
            return

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Permit was transferred before the cancellation landed.
                self.release()
            elif waiter in self._waiters:
                self._waiters.remove(waiter)
            raise

    def release(self) -> None:
        """Hand the permit to the head waiter, or return it to the pool.

        Raises:
            ValueError: if called more times than ``acquire()``.
        """
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return

        if self._available >= self._capacity:
            raise ValueError("Semaphore released too many times")
        self._available += 1

    def available_permits(self) -> int:
        return self._available

    def waiting_count(self) -> int:
        return sum(1 for waiter in self._waiters if not waiter.done())

    async def __aenter__(self) -> Semaphore:
        await self.acquire()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.release()

    def __repr__(self) -> str:
        return (
            f"<Semaphore capacity={self._capacity} available={self._available} "
            f"waiters={self.waiting_count()}>"
        )

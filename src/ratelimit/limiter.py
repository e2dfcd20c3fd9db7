"""
Sliding-Window Rate Limiter

Protects the bot (and the finance service behind it) from message
floods: each identity may send at most `max_attempts` messages within
any trailing window of `window_seconds`.

DESIGN DECISION: A rejected attempt is NOT recorded. Someone who keeps
sending while blocked does not extend their own block; admission
resumes as soon as the oldest admitted attempt leaves the window.

Memory is bounded by a background sweep that drops identities whose
whole history has expired. The sweep itself is the pure function
`prune_attempt_windows`, so it can be tested without a timer.
"""

import asyncio
import time
from collections.abc import Mapping, Sequence
from typing import Callable, Optional

import structlog


logger = structlog.get_logger(__name__)


def prune_attempt_windows(
    windows: Mapping[str, Sequence[float]],
    now: float,
    window_seconds: float,
) -> dict[str, list[float]]:
    """
    Drop attempts older than the window.

    Returns a new mapping that only contains identities with at least
    one attempt still inside the window.
    """
    pruned = {}
    for identity, attempts in windows.items():
        recent = [t for t in attempts if now - t < window_seconds]
        if recent:
            pruned[identity] = recent
    return pruned


class RateLimiter:
    """
    Per-identity sliding-window admission control.

    Usage:
        limiter = RateLimiter(max_attempts=30, window_seconds=60)
        limiter.start()            # inside a running event loop
        if limiter.is_allowed(identity): ...
        await limiter.close()
    """

    def __init__(
        self,
        max_attempts: int = 5,
        window_seconds: float = 60.0,
        sweep_interval_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            max_attempts: Attempts allowed within the window (>= 1)
            window_seconds: Length of the trailing window (> 0)
            sweep_interval_seconds: How often to reclaim memory.
                                    Defaults to twice the window.
            clock: Monotonic time source, injectable for tests
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.sweep_interval_seconds = sweep_interval_seconds or window_seconds * 2
        self._clock = clock
        self._attempts: dict[str, list[float]] = {}
        self._sweep_task: Optional[asyncio.Task] = None

    def _recent(self, identity: str, now: float) -> list[float]:
        return [t for t in self._attempts.get(identity, ()) if now - t < self.window_seconds]

    def is_allowed(self, identity: str) -> bool:
        """
        Check whether `identity` may send another message, and if so
        record the attempt.
        """
        now = self._clock()
        recent = self._recent(identity, now)

        if len(recent) >= self.max_attempts:
            self._attempts[identity] = recent
            return False

        recent.append(now)
        self._attempts[identity] = recent
        return True

    def get_remaining(self, identity: str) -> int:
        """Attempts left in the current window. Never negative."""
        recent = self._recent(identity, self._clock())
        return max(0, self.max_attempts - len(recent))

    def retry_after(self, identity: str) -> float:
        """Seconds until `identity` may send again. 0 if it may send now."""
        now = self._clock()
        recent = self._recent(identity, now)
        if len(recent) < self.max_attempts:
            return 0.0
        # The slot frees up when the oldest attempt that keeps the
        # count at max_attempts leaves the window
        oldest_blocking = recent[len(recent) - self.max_attempts]
        return max(0.0, oldest_blocking + self.window_seconds - now)

    def reset(self, identity: str) -> None:
        self._attempts.pop(identity, None)

    def reset_all(self) -> None:
        self._attempts.clear()

    @property
    def tracked_identities(self) -> int:
        return len(self._attempts)

    def sweep(self) -> int:
        """
        Run one cleanup pass now. Returns how many identities were dropped.

        A pass never awaits, so no other coroutine touches the map
        while it runs.
        """
        before = len(self._attempts)
        self._attempts = prune_attempt_windows(self._attempts, self._clock(), self.window_seconds)
        return before - len(self._attempts)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start the periodic sweep on the running event loop. Idempotent."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.get_running_loop().create_task(self._sweep_loop())

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            dropped = self.sweep()
            if dropped:
                logger.debug("rate_limiter_sweep", dropped=dropped, tracked=len(self._attempts))

    @property
    def is_running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    async def close(self) -> None:
        """Stop the sweep and forget all attempts. Safe to call twice."""
        task, self._sweep_task = self._sweep_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._attempts.clear()

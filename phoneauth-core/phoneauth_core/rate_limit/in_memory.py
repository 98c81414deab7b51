"""
In-Memory Rate Limiter
======================
Fixed window counter with an optional per-key cooldown.
"""

import asyncio
import math
import threading
import time
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import structlog

from .models import DenyReason, RateLimitDecision, RateLimitEntry

logger = structlog.get_logger(__name__)


class RateLimiter:
    """
    Keyed fixed window rate limiter with cooldown.

    Each key holds ``(count, window_reset_at)``. The window starts on the
    first request and resets once ``now >= window_reset_at``. When a cooldown
    is given it is checked before the window on every request.

    State is process-local. Run one instance per process and inject it; with
    several instances the limits are enforced per instance only.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        """
        Args:
            clock: Returns the current Unix time in seconds
        """
        self._clock = clock
        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    def check_and_consume(
        self,
        key: str,
        limit: int,
        window_seconds: float,
        cooldown_seconds: Optional[float] = None,
    ) -> RateLimitDecision:
        """
        Check a key and count the request if allowed.

        Args:
            key: Rate limit key (e.g. ``phone:+14155550100``)
            limit: Requests allowed per window
            window_seconds: Window size in seconds
            cooldown_seconds: Minimum delay between allowed requests

        Returns:
            RateLimitDecision with the outcome
        """
        with self._lock:
            return self._evaluate(key, limit, window_seconds, cooldown_seconds, consume=True)

    def peek(
        self,
        key: str,
        limit: int,
        window_seconds: float,
        cooldown_seconds: Optional[float] = None,
    ) -> RateLimitDecision:
        """Same as check_and_consume without counting the request."""
        with self._lock:
            return self._evaluate(key, limit, window_seconds, cooldown_seconds, consume=False)

    def consume_all(
        self,
        checks: Sequence[Tuple[str, int, float, Optional[float]]],
    ) -> List[RateLimitDecision]:
        """
        Check several keys and count the request against all of them, or none.

        All keys are checked and updated under one lock acquisition.

        Args:
            checks: ``(key, limit, window_seconds, cooldown_seconds)`` tuples

        Returns:
            One allowed decision per check; or, on the first denial, the
            decisions up to and including the denying one, with nothing
            counted
        """
        with self._lock:
            decisions = []
            for key, limit, window_seconds, cooldown_seconds in checks:
                decision = self._evaluate(key, limit, window_seconds, cooldown_seconds, consume=False)
                decisions.append(decision)
                if not decision.allowed:
                    return decisions

            return [
                self._evaluate(key, limit, window_seconds, cooldown_seconds, consume=True)
                for key, limit, window_seconds, cooldown_seconds in checks
            ]

    def _evaluate(
        self,
        key: str,
        limit: int,
        window_seconds: float,
        cooldown_seconds: Optional[float],
        consume: bool,
    ) -> RateLimitDecision:
        if limit <= 0:
            raise ValueError(f"Limit must be positive, got {limit}")
        if window_seconds <= 0:
            raise ValueError(f"Window must be positive, got {window_seconds}")

        now = self._clock()
        entry = self._entries.get(key)

        if entry is not None and cooldown_seconds and entry.last_sent_at is not None:
            elapsed = now - entry.last_sent_at
            if elapsed < cooldown_seconds:
                return RateLimitDecision.deny(
                    key,
                    limit,
                    DenyReason.COOLDOWN,
                    retry_after_seconds=math.ceil(cooldown_seconds - elapsed),
                )

        # New key or expired window
        if entry is None or now >= entry.window_reset_at:
            if consume:
                self._entries[key] = RateLimitEntry(
                    key=key,
                    count=1,
                    window_reset_at=now + window_seconds,
                    last_sent_at=now,
                    cooldown_seconds=cooldown_seconds,
                )
            return RateLimitDecision.allow(key, limit, remaining=limit - 1)

        if entry.count >= limit:
            return RateLimitDecision.deny(
                key,
                limit,
                DenyReason.RATE_LIMITED,
                retry_after_seconds=max(1, math.ceil(entry.window_reset_at - now)),
            )

        if consume:
            entry.count += 1
            entry.last_sent_at = now
            entry.cooldown_seconds = cooldown_seconds
            return RateLimitDecision.allow(key, limit, remaining=limit - entry.count)
        return RateLimitDecision.allow(key, limit, remaining=limit - entry.count - 1)

    def get(self, key: str) -> Optional[RateLimitEntry]:
        """Current entry for a key, if any."""
        return self._entries.get(key)

    def reset(self, key: str) -> None:
        """Forget a key."""
        with self._lock:
            self._entries.pop(key, None)

    def purge_expired(self) -> int:
        """
        Remove entries whose window passed and whose cooldown elapsed.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.is_inert(now)]
            for key in expired:
                del self._entries[key]
        return len(expired)

    async def run_cleanup(self, interval_seconds: float = 60.0) -> None:
        """Purge expired entries every ``interval_seconds`` until cancelled."""
        while True:
            await asyncio.sleep(interval_seconds)
            purged = self.purge_expired()
            if purged:
                logger.debug("rate_limit_entries_purged", count=purged, remaining=len(self))

    def __len__(self) -> int:
        return len(self._entries)

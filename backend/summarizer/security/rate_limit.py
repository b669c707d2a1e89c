"""
Summarizer API — Fixed Window Rate Limiter
============================================

What:  Per-identity request counter over fixed, non-overlapping windows.
Why:   Every summarize call costs an AI request; one client must not be
       able to burn the quota for everyone.
How:   Each identity (client IP) owns a RateWindow {count, reset_at}.

Algorithm: Fixed Window Counter
    1. No window, or the window has expired → open a new window with
       count=1 and reset_at = now + window. Allow.
    2. count >= max → Deny(rate-limited), retry after ceil(reset_at - now).
       Denied hits are NOT counted, so count never exceeds max.
    3. Otherwise increment count. Allow.

    Why fixed window (not sliding):
        O(1) memory per identity and a single comparison per hit. A client
        can burst up to 2×max across a window boundary; the external shield
        (when configured) covers bursts with a token bucket.

Thread Safety:
    hit() and sweep() share one lock. A window is replaced as a whole,
    never partially reset.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict

from summarizer.security.decision import AccessDecision, DenyReason

logger = logging.getLogger(__name__)

LIMIT_HEADER = "X-RateLimit-Limit"
REMAINING_HEADER = "X-RateLimit-Remaining"
RESET_HEADER = "X-RateLimit-Reset"


def rate_limit_headers(limit: int, remaining: int, reset_at: float) -> Dict[str, str]:
    """Standard X-RateLimit-* response headers. Reset is an ISO 8601 UTC time."""
    return {
        LIMIT_HEADER: str(limit),
        REMAINING_HEADER: str(max(0, remaining)),
        RESET_HEADER: datetime.fromtimestamp(reset_at, tz=timezone.utc).isoformat(),
    }


@dataclass
class RateWindow:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """
    In-memory fixed window limiter keyed by client identity.

    Args:
        max_requests: Hits allowed per window (default 10).
        window_ms: Window length in milliseconds (default one minute).
        clock: Returns the current time in seconds.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_ms: int = 60_000,
        clock: Callable[[], float] = time.time,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_ms / 1000
        self._clock = clock
        self._windows: Dict[str, RateWindow] = {}
        self._lock = threading.Lock()

    def hit(self, identity: str) -> AccessDecision:
        now = self._clock()

        with self._lock:
            window = self._windows.get(identity)
            if window is None or now > window.reset_at:
                window = RateWindow(count=1, reset_at=now + self.window_seconds)
                self._windows[identity] = window
            elif window.count >= self.max_requests:
                retry_after = max(1, math.ceil(window.reset_at - now))
                headers = rate_limit_headers(self.max_requests, 0, window.reset_at)
                logger.warning(
                    "Rate limit exceeded for %s: %d requests, retry in %ds",
                    identity,
                    window.count,
                    retry_after,
                )
                return AccessDecision.deny(
                    DenyReason.RATE_LIMITED,
                    "Too many requests. Please try again later.",
                    retry_after=retry_after,
                    headers=headers,
                )
            else:
                window.count += 1
            remaining = self.max_requests - window.count
            reset_at = window.reset_at

        return AccessDecision.allow(
            headers=rate_limit_headers(self.max_requests, remaining, reset_at)
        )

    def sweep(self) -> int:
        """Drop expired windows. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, w in self._windows.items() if now > w.reset_at]
            for key in expired:
                del self._windows[key]

        if expired:
            logger.debug("Swept %d expired rate windows", len(expired))
        return len(expired)

    def window_for(self, identity: str):
        """Current window of an identity, or None (for inspection and tests)."""
        with self._lock:
            window = self._windows.get(identity)
            return RateWindow(window.count, window.reset_at) if window else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

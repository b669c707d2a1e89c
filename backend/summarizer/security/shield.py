"""
Summarizer API — Abuse Shield (rate limiting + external bot/attack shield)
============================================================================

What:  The third pipeline stage: decides whether a client is abusing the API.
Why:   Two designs coexist. A local fixed-window limiter needs no network and
       is always available. An external shield service adds attack-pattern
       shielding, bot classification, sliding windows and token buckets.
How:   AbuseShield delegates to a ShieldProvider when one is configured and
       falls back to the local FixedWindowRateLimiter otherwise.

Failure policy (external provider):
    Any error, timeout or unusable verdict from the provider → ALLOW,
    logged at ERROR.
    Availability of summarization is preferred over this one layer; the
    origin, browser, session and signature stages still apply.

Deny mapping:
    RATE_LIMIT → 429 rate-limited, retryAfter from the provider's reset time
                 (60s when unknown)
    BOT        → 403 bot
    SHIELD     → 403 shield
    anything   → 403 access-denied
"""

import asyncio
import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Optional, Union

import httpx

from summarizer.security.decision import AccessDecision, DenyReason
from summarizer.security.rate_limit import FixedWindowRateLimiter, rate_limit_headers

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER = 60

# Year 5138 in seconds; larger numeric reset times are epoch milliseconds.
MAX_EPOCH_SECONDS = 1e11


@dataclass(frozen=True)
class ShieldRequest:
    """What the shield gets to see about a request."""

    identity: str
    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ShieldVerdict:
    """
    Decision returned by a ShieldProvider.

    Attributes:
        denied:     True if the provider wants the request blocked.
        reason:     RATE_LIMIT, BOT, SHIELD or any other provider string.
        max:        Rate-limit capacity, when the reason is rate related.
        remaining:  Requests left in the current window.
        reset_time: Epoch seconds when the window resets.
    """

    denied: bool
    reason: str = ""
    max: Optional[int] = None
    remaining: Optional[int] = None
    reset_time: Optional[float] = None

    @property
    def is_rate_limit(self) -> bool:
        return self.reason.upper() == "RATE_LIMIT"


class ShieldProvider(ABC):
    """External source of bot/attack/rate decisions."""

    @abstractmethod
    async def protect(self, request: ShieldRequest) -> ShieldVerdict:
        ...

    async def aclose(self) -> None:
        """Release network resources. No-op by default."""


def _parse_reset_time(value: Union[str, int, float, None]) -> Optional[float]:
    """
    Epoch seconds from a provider reset time, or None when unusable.

    Accepts epoch seconds, epoch milliseconds and ISO 8601 strings.
    Non-finite, negative or far-future values yield None, so the caller
    falls back to DEFAULT_RETRY_AFTER.
    """
    if value is None or value == "":
        return None
    try:
        reset = float(value)
    except (TypeError, ValueError):
        try:
            reset = datetime.fromisoformat(str(value).replace("Z", "+00:00")).timestamp()
        except (ValueError, OverflowError, OSError):
            return None

    if not math.isfinite(reset) or reset < 0:
        return None
    if reset > MAX_EPOCH_SECONDS:
        reset /= 1000
    return reset if reset <= MAX_EPOCH_SECONDS else None


class HttpShieldProvider(ShieldProvider):
    """
    Shield provider backed by an HTTP decision endpoint.

    Request:  POST {url}  {"ip", "method", "path", "headers", "requested": 1}
    Response: {"conclusion": "ALLOW" | "DENY",
               "reason": {"type": "RATE_LIMIT" | "BOT" | "SHIELD" | ...,
                          "max": 10, "remaining": 0,
                          "resetTime": "2024-01-15T12:01:00Z" | 1705320060}}
    """

    def __init__(
        self,
        url: str,
        api_key: str = "",
        timeout: float = 2.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self._headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def protect(self, request: ShieldRequest) -> ShieldVerdict:
        response = await self._client.post(
            self.url,
            json={
                "ip": request.identity,
                "method": request.method,
                "path": request.path,
                "headers": request.headers,
                "requested": 1,
            },
            headers=self._headers,
        )
        response.raise_for_status()
        payload = response.json()
        reason = payload.get("reason") or {}
        return ShieldVerdict(
            denied=str(payload.get("conclusion", "ALLOW")).upper() == "DENY",
            reason=str(reason.get("type", "")),
            max=reason.get("max"),
            remaining=reason.get("remaining"),
            reset_time=_parse_reset_time(reason.get("resetTime")),
        )

    async def aclose(self) -> None:
        await self._client.aclose()


class AbuseShield:
    """
    Pipeline stage combining the local limiter and an optional provider.

    Args:
        limiter: Local fixed-window limiter (used when provider is None).
        provider: External shield; takes precedence when set.
        timeout: Upper bound on a provider call, in seconds.
        clock: Returns current time in seconds (for retry-after math).
    """

    def __init__(
        self,
        limiter: FixedWindowRateLimiter,
        provider: Optional[ShieldProvider] = None,
        timeout: float = 2.0,
        clock: Callable[[], float] = time.time,
    ):
        self.limiter = limiter
        self.provider = provider
        self.timeout = timeout
        self._clock = clock

    async def check(self, request: ShieldRequest) -> AccessDecision:
        if self.provider is None:
            return self.limiter.hit(request.identity)

        try:
            verdict = await asyncio.wait_for(
                self.provider.protect(request), timeout=self.timeout
            )
            return self._to_decision(request, verdict)
        except Exception as e:
            logger.error(
                "Abuse shield unavailable, failing open for %s: %s",
                request.identity,
                repr(e),
            )
            return AccessDecision.allow()

    def _to_decision(self, request: ShieldRequest, verdict: ShieldVerdict) -> AccessDecision:
        headers: Dict[str, str] = {}
        if verdict.is_rate_limit and verdict.max is not None:
            headers = rate_limit_headers(
                verdict.max,
                verdict.remaining or 0,
                verdict.reset_time if verdict.reset_time is not None else self._clock(),
            )

        if not verdict.denied:
            return AccessDecision.allow(headers=headers)

        logger.warning(
            "Abuse shield denied %s %s from %s: %s",
            request.method,
            request.path,
            request.identity,
            verdict.reason or "unspecified",
        )

        if verdict.is_rate_limit:
            retry_after = DEFAULT_RETRY_AFTER
            if verdict.reset_time is not None:
                retry_after = max(1, math.ceil(verdict.reset_time - self._clock()))
            return AccessDecision.deny(
                DenyReason.RATE_LIMITED,
                "Too many requests. Please slow down.",
                retry_after=retry_after,
                headers=headers,
            )

        reason = verdict.reason.upper()
        if reason == "BOT":
            return AccessDecision.deny(
                DenyReason.BOT_DETECTED,
                "Automated requests are not allowed. Please use the web application.",
            )
        if reason == "SHIELD":
            return AccessDecision.deny(
                DenyReason.SHIELD_BLOCKED, "Request blocked for security reasons."
            )
        return AccessDecision.deny(DenyReason.ACCESS_DENIED, "Access denied.")

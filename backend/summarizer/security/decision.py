"""
Summarizer API — Access Decisions
===================================

What:  The uniform result type returned by every security pipeline stage.
Why:   Stages never raise for an expected rejection. They return a value the
       pipeline can inspect, log and turn into a response in one place.
How:   AccessDecision is either allowed or denied with a DenyReason. The
       reason carries the HTTP status code and machine-readable code.

Reason → status mapping:
    missing-signature, replay, expired, invalid-signature  → 400
    unauthenticated                                        → 401
    missing-origin, invalid-origin, not-browser, bot,
    shield, access-denied                                  → 403
    rate-limited                                           → 429
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class DenyReason(str, Enum):
    """Why a stage rejected a request."""

    MISSING_SIGNATURE = "missing-signature"
    REPLAY = "replay"
    EXPIRED = "expired"
    INVALID_SIGNATURE = "invalid-signature"
    MISSING_ORIGIN = "missing-origin"
    INVALID_ORIGIN = "invalid-origin"
    NOT_BROWSER = "not-browser"
    RATE_LIMITED = "rate-limited"
    BOT_DETECTED = "bot"
    SHIELD_BLOCKED = "shield"
    ACCESS_DENIED = "access-denied"
    UNAUTHENTICATED = "unauthenticated"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    DenyReason.MISSING_SIGNATURE: 400,
    DenyReason.REPLAY: 400,
    DenyReason.EXPIRED: 400,
    DenyReason.INVALID_SIGNATURE: 400,
    DenyReason.UNAUTHENTICATED: 401,
    DenyReason.MISSING_ORIGIN: 403,
    DenyReason.INVALID_ORIGIN: 403,
    DenyReason.NOT_BROWSER: 403,
    DenyReason.BOT_DETECTED: 403,
    DenyReason.SHIELD_BLOCKED: 403,
    DenyReason.ACCESS_DENIED: 403,
    DenyReason.RATE_LIMITED: 429,
}


@dataclass(frozen=True)
class AccessDecision:
    """
    Outcome of one pipeline stage.

    Attributes:
        allowed:     True lets the request continue to the next stage.
        reason:      Set only on denial.
        message:     Client-safe explanation (goes into the error envelope).
        retry_after: Seconds the client should wait (rate limiting only).
        headers:     Extra response headers, e.g. X-RateLimit-*. Attached to
                     the response whether the request was allowed or not.
    """

    allowed: bool
    reason: Optional[DenyReason] = None
    message: str = ""
    retry_after: Optional[int] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def allow(cls, headers: Optional[Dict[str, str]] = None) -> "AccessDecision":
        return cls(allowed=True, headers=headers or {})

    @classmethod
    def deny(
        cls,
        reason: DenyReason,
        message: str,
        retry_after: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> "AccessDecision":
        return cls(
            allowed=False,
            reason=reason,
            message=message,
            retry_after=retry_after,
            headers=headers or {},
        )

    @property
    def status_code(self) -> int:
        if self.allowed or self.reason is None:
            return 200
        return self.reason.status_code

    def to_body(self) -> Dict[str, object]:
        """Client-facing error envelope: {success: false, error, retryAfter?}."""
        body: Dict[str, object] = {"success": False, "error": self.message}
        if self.retry_after is not None:
            body["retryAfter"] = self.retry_after
        return body

"""
Summarizer API — Origin Validator
===================================

What:  Allow-list check on the Origin (or Referer) header.
Why:   Browsers always send Origin on cross-origin POSTs. A request from a
       page we don't own, or with no origin at all, is rejected early.
How:   In development every request passes. Otherwise the origin must match
       one of the configured entries, by prefix (default) or exactly.

Matching modes:
    prefix: origin.startswith(entry). This is the historical behaviour.
            "http://localhost:3000" also admits "http://localhost:30001" and
            "http://localhost:3000.evil.com", so entries must be chosen with
            care (a trailing "/" does not help since Origin has no path).
    exact:  scheme://host[:port] of the origin (path stripped, so Referer
            values work) must equal an entry.
"""

from typing import Iterable, Optional
from urllib.parse import urlsplit

from summarizer.security.decision import AccessDecision, DenyReason

MATCH_PREFIX = "prefix"
MATCH_EXACT = "exact"


def _normalize(url: str) -> str:
    parts = urlsplit(url.strip())
    if not parts.scheme or not parts.netloc:
        return url.strip().rstrip("/").lower()
    return f"{parts.scheme}://{parts.netloc}".lower()


class OriginValidator:
    def __init__(
        self,
        allowed_origins: Iterable[str],
        development: bool = False,
        match_mode: str = MATCH_PREFIX,
    ):
        if match_mode not in (MATCH_PREFIX, MATCH_EXACT):
            raise ValueError(f"Unknown origin match mode: {match_mode}")
        self.allowed_origins = [o for o in allowed_origins if o]
        self.development = development
        self.match_mode = match_mode

    def check(self, origin: Optional[str]) -> AccessDecision:
        """
        Args:
            origin: Value of the Origin header, falling back to Referer.
        """
        if self.development:
            return AccessDecision.allow()

        if not origin:
            return AccessDecision.deny(DenyReason.MISSING_ORIGIN, "Missing origin header")

        if self._matches(origin):
            return AccessDecision.allow()

        return AccessDecision.deny(DenyReason.INVALID_ORIGIN, "Origin not allowed")

    def _matches(self, origin: str) -> bool:
        if self.match_mode == MATCH_PREFIX:
            return any(origin.startswith(allowed) for allowed in self.allowed_origins)
        normalized = _normalize(origin)
        return any(normalized == _normalize(allowed) for allowed in self.allowed_origins)

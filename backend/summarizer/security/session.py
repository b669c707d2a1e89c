"""
Summarizer API — Session Gate
===============================

What:  Requires proof of a logged-in session before summarization.
How:   Either "Authorization: Bearer <token>" or a non-blank X-User-Id.

This stage checks presence, not validity. Session tokens are issued and
verified by the auth provider; here the origin, browser, shield and
signature stages make a forged credential expensive to use.
"""

from typing import Optional

from summarizer.security.decision import AccessDecision, DenyReason


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token part of a "Bearer <token>" header, or None."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


class SessionGate:
    def check(
        self,
        authorization: Optional[str],
        user_id: Optional[str],
    ) -> AccessDecision:
        if bearer_token(authorization) or (user_id and user_id.strip()):
            return AccessDecision.allow()
        return AccessDecision.deny(
            DenyReason.UNAUTHENTICATED, "Authentication required. Please log in."
        )

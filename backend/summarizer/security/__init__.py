# Security package init
"""
Summarizer API — Security Pipeline Package
============================================

What:  Request authentication and anti-abuse checks for the summarize endpoint.

Components (leaf-first):
    - decision.py:    AccessDecision / DenyReason, the result of every stage
    - nonce_store.py: Single-use nonce registry with expiry
    - signature.py:   HMAC-SHA256 request signatures + client-side signer
    - browser.py:     User-Agent and Sec-Fetch-* heuristics
    - origin.py:      Origin/Referer allow-list
    - rate_limit.py:  Per-identity fixed window counters
    - shield.py:      Abuse shield (local limiter or external provider, fail-open)
    - session.py:     Bearer token / user id presence check
    - pipeline.py:    Ordered composition of the stages
    - state.py:       Process-scoped stores and their periodic sweeper
"""

from summarizer.security.decision import AccessDecision, DenyReason
from summarizer.security.pipeline import SecurityPipeline
from summarizer.security.signature import compute_signature, sign_request
from summarizer.security.state import SecurityState, build_pipeline, build_security_state

__all__ = [
    "AccessDecision",
    "DenyReason",
    "SecurityPipeline",
    "SecurityState",
    "build_pipeline",
    "build_security_state",
    "compute_signature",
    "sign_request",
]

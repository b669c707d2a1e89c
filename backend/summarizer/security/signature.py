"""
Summarizer API — Request Signature Verification
=================================================

What:  HMAC-SHA256 request signing with nonce-based replay prevention.
Why:   Only our web client knows the shared secret, and every signature is
       bound to one nonce and one point in time. A captured request can be
       neither replayed nor re-dated.
How:   The client sends three headers:
           X-Request-Timestamp: epoch milliseconds
           X-Request-Nonce:     16 random bytes, hex-encoded
           X-Request-Signature: hex(HMAC-SHA256(secret, "{timestamp}:{nonce}"))
       The server checks them in a fixed order (see SignatureVerifier.verify).

Order of checks (each a separate rejection):
    1. all three headers present     → else missing-signature
    2. nonce not seen before         → else replay
    3. |now - timestamp| <= skew     → else expired
    4. signature matches             → else invalid-signature

    The nonce is consumed at step 2, BEFORE the timestamp and signature are
    checked. A forged request therefore burns its nonce and cannot be retried
    with the same one.
"""

import hashlib
import hmac
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from summarizer.security.decision import AccessDecision, DenyReason
from summarizer.security.nonce_store import NonceStore

logger = logging.getLogger(__name__)

TIMESTAMP_HEADER = "X-Request-Timestamp"
NONCE_HEADER = "X-Request-Nonce"
SIGNATURE_HEADER = "X-Request-Signature"

# Entropy of a client nonce, in bytes (hex-encoded to twice this length).
NONCE_BYTES = 16


def compute_signature(secret: str, timestamp: str, nonce: str) -> str:
    """Hex-encoded HMAC-SHA256 of "{timestamp}:{nonce}" under `secret`."""
    payload = f"{timestamp}:{nonce}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


class SignatureVerifier:
    """
    Validates signed request envelopes.

    Args:
        nonce_store: Shared NonceStore (process-wide).
        skew_ms: Max allowed |server time - client timestamp| in milliseconds.
        nonce_ttl: Seconds a consumed nonce is remembered.
        clock: Returns current time in seconds.
    """

    def __init__(
        self,
        nonce_store: NonceStore,
        skew_ms: int = 30_000,
        nonce_ttl: float = 60.0,
        clock: Callable[[], float] = time.time,
    ):
        self.nonce_store = nonce_store
        self.skew_ms = skew_ms
        self.nonce_ttl = nonce_ttl
        self._clock = clock

    def verify(
        self,
        timestamp: Optional[str],
        nonce: Optional[str],
        signature: Optional[str],
        secret: str,
    ) -> AccessDecision:
        if not timestamp or not nonce or not signature:
            return AccessDecision.deny(
                DenyReason.MISSING_SIGNATURE, "Missing request signature."
            )

        decision = self.nonce_store.consume(nonce, ttl=self.nonce_ttl)
        if not decision.allowed:
            return decision

        if not self._is_fresh(timestamp):
            logger.warning("Stale or malformed request timestamp: %r", timestamp[:32])
            return AccessDecision.deny(
                DenyReason.EXPIRED, "Request expired. Please try again."
            )

        expected = compute_signature(secret, timestamp, nonce)
        if not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
            logger.warning("Invalid request signature for nonce %s…", nonce[:8])
            return AccessDecision.deny(
                DenyReason.INVALID_SIGNATURE, "Invalid request signature."
            )

        return AccessDecision.allow()

    def _is_fresh(self, timestamp: str) -> bool:
        # Non-integer timestamps can never be fresh.
        try:
            request_ms = int(timestamp)
        except ValueError:
            return False
        now_ms = int(self._clock() * 1000)
        return abs(now_ms - request_ms) <= self.skew_ms


# ══════════════════════════════════════════════════════════════════════════
# Client-side signer
# ══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SignedRequestEnvelope:
    """Timestamp, nonce and signature as sent by the client."""

    timestamp: str
    nonce: str
    signature: str

    def headers(self) -> Dict[str, str]:
        return {
            TIMESTAMP_HEADER: self.timestamp,
            NONCE_HEADER: self.nonce,
            SIGNATURE_HEADER: self.signature,
        }


def generate_nonce() -> str:
    """Cryptographically random nonce, hex-encoded."""
    return secrets.token_hex(NONCE_BYTES)


def sign_request(
    secret: str,
    timestamp: Optional[int] = None,
    nonce: Optional[str] = None,
) -> SignedRequestEnvelope:
    """
    Build a signed envelope the way the web client does.

    What:  Mirror of the browser-side signer, for tests, scripts and
           server-to-server callers that hold the shared secret.
    Args:
        secret: Shared HMAC secret.
        timestamp: Epoch milliseconds; defaults to now.
        nonce: Defaults to a fresh random nonce.
    """
    ts = str(timestamp if timestamp is not None else int(time.time() * 1000))
    n = nonce or generate_nonce()
    return SignedRequestEnvelope(timestamp=ts, nonce=n, signature=compute_signature(secret, ts, n))

"""
Summarizer API — Nonce Store (Replay Protection)
==================================================

What:  Remembers every request nonce that has been used, until it expires.
Why:   A signed request captured on the wire must not be accepted twice.
How:   Dict of nonce → expiry timestamp guarded by a lock. consume() is an
       atomic check-and-set; sweep() drops expired records.

Lifecycle:
    - Created once per process (see SecurityState).
    - consume() records nonce → now + ttl on first use.
    - The background sweeper calls sweep() every ~60s.
    - Nothing is persisted; a restart forgets every nonce.

Accepted tradeoff:
    A nonce presented again AFTER its record expired is treated as new.
    Replaying it still requires a fresh timestamp, which in turn requires
    the shared secret, so the signature stage closes that gap.
"""

import logging
import threading
import time
from typing import Callable, Dict, Optional

from summarizer.security.decision import AccessDecision, DenyReason

logger = logging.getLogger(__name__)


class NonceStore:
    """
    Thread-safe single-use token registry.

    Concurrency:
        consume() and sweep() hold the same lock for their whole
        read-modify-write, so two concurrent consumers of one nonce can
        never both see it as unused.
    """

    def __init__(
        self,
        default_ttl: float = 60.0,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            default_ttl: Seconds a consumed nonce is remembered.
            clock: Returns the current time in seconds (injectable for tests).
        """
        self.default_ttl = default_ttl
        self._clock = clock
        self._expiry: Dict[str, float] = {}
        self._lock = threading.Lock()

    def consume(self, nonce: str, ttl: Optional[float] = None) -> AccessDecision:
        """
        Mark a nonce as used.

        Returns:
            Allow if the nonce is unknown (or its record has expired),
            Deny(REPLAY) if it was consumed within its TTL.
        """
        now = self._clock()
        ttl = self.default_ttl if ttl is None else ttl

        with self._lock:
            expires_at = self._expiry.get(nonce)
            if expires_at is not None and now <= expires_at:
                logger.warning("Replay detected for nonce %s…", nonce[:8])
                return AccessDecision.deny(
                    DenyReason.REPLAY, "Request already processed."
                )
            self._expiry[nonce] = now + ttl

        return AccessDecision.allow()

    def sweep(self) -> int:
        """
        Remove expired nonce records.

        Returns:
            Number of records removed.
        """
        now = self._clock()
        with self._lock:
            expired = [n for n, exp in self._expiry.items() if now > exp]
            for nonce in expired:
                del self._expiry[nonce]

        if expired:
            logger.debug("Swept %d expired nonces", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._expiry)

    def __contains__(self, nonce: str) -> bool:
        with self._lock:
            return nonce in self._expiry

"""
Summarizer API — Process-Scoped Security State
================================================

What:  Owns the shared mutable stores (NonceStore, rate windows) and the
       optional external shield client, plus the sweeper that expires them.
Why:   These must be created once per process and shared by every request.
       Keeping them on one object gives them an explicit lifecycle instead
       of module-level globals with hidden timers.

Lifecycle:
    create_app()  → build_security_state(settings)   (stores created)
    lifespan start → state.start_sweeper()           (asyncio task, ~60s period)
    lifespan stop  → await state.shutdown()          (task cancelled, client closed)
    Nothing persists across restarts; TTLs are short enough for that.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from summarizer.config import Settings
from summarizer.security.browser import BrowserHeuristicFilter
from summarizer.security.nonce_store import NonceStore
from summarizer.security.origin import OriginValidator
from summarizer.security.pipeline import SecurityPipeline
from summarizer.security.rate_limit import FixedWindowRateLimiter
from summarizer.security.session import SessionGate
from summarizer.security.shield import AbuseShield, HttpShieldProvider, ShieldProvider
from summarizer.security.signature import SignatureVerifier

logger = logging.getLogger(__name__)


@dataclass
class SecurityState:
    nonce_store: NonceStore
    rate_limiter: FixedWindowRateLimiter
    shield_provider: Optional[ShieldProvider] = None
    sweep_interval: float = 60.0
    _sweeper: Optional[asyncio.Task] = field(default=None, repr=False)

    def sweep(self) -> int:
        """Expire nonces and rate windows once. Returns records removed."""
        return self.nonce_store.sweep() + self.rate_limiter.sweep()

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                removed = self.sweep()
            except Exception as e:
                logger.error("Security state sweep failed: %s", str(e), exc_info=True)
                continue
            if removed:
                logger.debug("Sweeper removed %d expired records", removed)

    def start_sweeper(self) -> None:
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_forever())
            logger.info("Security sweeper started (every %.0fs)", self.sweep_interval)

    async def shutdown(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None
        if self.shield_provider is not None:
            await self.shield_provider.aclose()


def build_security_state(
    config: Settings,
    clock: Callable[[], float] = time.time,
    shield_provider: Optional[ShieldProvider] = None,
) -> SecurityState:
    """Create the shared stores from settings."""
    if shield_provider is None and config.shield_url:
        shield_provider = HttpShieldProvider(
            url=config.shield_url,
            api_key=config.shield_api_key,
            timeout=config.shield_timeout_seconds,
        )
    return SecurityState(
        nonce_store=NonceStore(default_ttl=config.nonce_ttl_seconds, clock=clock),
        rate_limiter=FixedWindowRateLimiter(
            max_requests=config.rate_limit_requests,
            window_ms=config.rate_limit_window_ms,
            clock=clock,
        ),
        shield_provider=shield_provider,
        sweep_interval=config.sweep_interval_seconds,
    )


def build_pipeline(
    config: Settings,
    state: SecurityState,
    clock: Callable[[], float] = time.time,
) -> SecurityPipeline:
    """Wire the five stages to the shared state, in pipeline order."""
    return SecurityPipeline(
        origin=OriginValidator(
            config.cors_origins_list,
            development=config.is_development,
            match_mode=config.origin_match_mode,
        ),
        browser=BrowserHeuristicFilter(),
        shield=AbuseShield(
            state.rate_limiter,
            provider=state.shield_provider,
            timeout=config.shield_timeout_seconds,
            clock=clock,
        ),
        session=SessionGate(),
        signature=SignatureVerifier(
            state.nonce_store,
            skew_ms=config.signature_skew_ms,
            nonce_ttl=config.nonce_ttl_seconds,
            clock=clock,
        ),
        secret=config.request_secret,
        trust_proxy=config.trust_proxy,
        proxy_hops=config.proxy_hops,
    )

"""
Summarizer API — Security Pipeline
====================================

What:  Runs the security stages in their fixed order for a protected request.
Why:   Cheap local checks run before expensive or external ones, and the
       signature endpoint is only reachable once origin, humanness and
       session are established.

Stage order:
    ┌────────┐  ┌─────────┐  ┌──────────────┐  ┌─────────┐  ┌───────────┐
    │ Origin │→ │ Browser │→ │ Abuse Shield │→ │ Session │→ │ Signature │→ handler
    └────────┘  └─────────┘  └──────────────┘  └─────────┘  └───────────┘

    The first Deny short-circuits; no later stage runs. Headers produced by
    stages that already ran (X-RateLimit-*) are kept on the final response.
"""

import logging
from dataclasses import replace
from typing import Awaitable, Callable, Dict, List, Tuple

from starlette.requests import Request

from summarizer.security.browser import BrowserHeuristicFilter
from summarizer.security.decision import AccessDecision
from summarizer.security.identity import client_identity
from summarizer.security.origin import OriginValidator
from summarizer.security.session import SessionGate
from summarizer.security.shield import AbuseShield, ShieldRequest
from summarizer.security.signature import (
    NONCE_HEADER,
    SIGNATURE_HEADER,
    TIMESTAMP_HEADER,
    SignatureVerifier,
)

logger = logging.getLogger(__name__)

Stage = Callable[[Request], Awaitable[AccessDecision]]

# Headers forwarded to the external shield for fingerprinting.
_SHIELD_HEADERS = ("user-agent", "accept", "accept-language", "origin", "referer")


class SecurityPipeline:
    """
    Ordered composition of the five security stages.

    Args:
        origin: OriginValidator stage.
        browser: BrowserHeuristicFilter stage.
        shield: AbuseShield stage.
        session: SessionGate stage.
        signature: SignatureVerifier stage.
        secret: Shared HMAC secret for request signatures.
        trust_proxy: Derive client identity from X-Forwarded-For.
        proxy_hops: Number of trusted proxies in front of the service.
    """

    def __init__(
        self,
        origin: OriginValidator,
        browser: BrowserHeuristicFilter,
        shield: AbuseShield,
        session: SessionGate,
        signature: SignatureVerifier,
        secret: str,
        trust_proxy: bool = False,
        proxy_hops: int = 1,
    ):
        self.origin = origin
        self.browser = browser
        self.shield = shield
        self.session = session
        self.signature = signature
        self.secret = secret
        self.trust_proxy = trust_proxy
        self.proxy_hops = proxy_hops

    @property
    def stages(self) -> List[Tuple[str, Stage]]:
        return [
            ("origin", self._check_origin),
            ("browser", self._check_browser),
            ("shield", self._check_shield),
            ("session", self._check_session),
            ("signature", self._check_signature),
        ]

    async def evaluate(self, request: Request) -> AccessDecision:
        """
        Run every stage until one denies.

        Returns:
            The denying stage's decision, or Allow. Either way the result
            carries the headers of all stages that ran.
        """
        collected: Dict[str, str] = {}
        for name, stage in self.stages:
            decision = await stage(request)
            collected.update(decision.headers)
            if not decision.allowed:
                logger.warning(
                    "Request denied at %s stage: %s (%s %s from %s)",
                    name,
                    decision.reason.value if decision.reason else "unknown",
                    request.method,
                    request.url.path,
                    client_identity(request, self.trust_proxy, self.proxy_hops),
                )
                return replace(decision, headers=collected)
        return AccessDecision.allow(headers=collected)

    # ── Stages ────────────────────────────────────────────────────────────

    async def _check_origin(self, request: Request) -> AccessDecision:
        origin = request.headers.get("origin") or request.headers.get("referer")
        return self.origin.check(origin)

    async def _check_browser(self, request: Request) -> AccessDecision:
        return self.browser.check(request.headers)

    async def _check_shield(self, request: Request) -> AccessDecision:
        shield_request = ShieldRequest(
            identity=client_identity(request, self.trust_proxy, self.proxy_hops),
            method=request.method,
            path=request.url.path,
            headers={
                name: request.headers[name]
                for name in _SHIELD_HEADERS
                if name in request.headers
            },
        )
        return await self.shield.check(shield_request)

    async def _check_session(self, request: Request) -> AccessDecision:
        return self.session.check(
            request.headers.get("authorization"),
            request.headers.get("x-user-id"),
        )

    async def _check_signature(self, request: Request) -> AccessDecision:
        return self.signature.verify(
            request.headers.get(TIMESTAMP_HEADER),
            request.headers.get(NONCE_HEADER),
            request.headers.get(SIGNATURE_HEADER),
            self.secret,
        )

"""
Summarizer API — Browser Heuristic Filter
===========================================

What:  Rejects requests that do not look like they came from a web browser.
Why:   The summarize endpoint is meant to be called by our web app only.
       Scripts and API tools are the cheapest way to abuse it.
How:   1. User-Agent must exist and must not name a known HTTP tool/library.
       2. Sec-Fetch-Mode and Sec-Fetch-Site must be present. Browsers set
          these themselves; page scripts cannot.
       3. Mode must be "cors", site must be cross-site/same-origin/same-site,
          and Sec-Fetch-Dest (when present) must be "empty".

This is a heuristic. A determined client can forge every header; the filter
raises the cost of abuse and is paired with the other pipeline stages.
"""

import logging
from typing import Iterable, Mapping, Optional

from summarizer.security.decision import AccessDecision, DenyReason

logger = logging.getLogger(__name__)

# Case-insensitive substrings of User-Agent values sent by automation tools.
AUTOMATION_SIGNATURES = (
    "postman",
    "insomnia",
    "curl",
    "httpie",
    "wget",
    "python-requests",
    "axios",
    "node-fetch",
    "got",
    "superagent",
    "apache-httpclient",
    "okhttp",
    "java",
    "go-http-client",
    "ruby",
    "perl",
    "libwww",
)

ALLOWED_FETCH_SITES = frozenset({"cross-site", "same-origin", "same-site"})


class BrowserHeuristicFilter:
    """Header-shape checks that separate browsers from scripts."""

    def __init__(self, automation_signatures: Optional[Iterable[str]] = None):
        signatures = automation_signatures or AUTOMATION_SIGNATURES
        self.automation_signatures = tuple(s.lower() for s in signatures)

    def check(self, headers: Mapping[str, str]) -> AccessDecision:
        """
        Args:
            headers: Request headers. Lookups are case-insensitive.
        """
        lowered = {k.lower(): v for k, v in headers.items()}
        user_agent = lowered.get("user-agent")
        fetch_mode = lowered.get("sec-fetch-mode")
        fetch_site = lowered.get("sec-fetch-site")
        fetch_dest = lowered.get("sec-fetch-dest")

        if not user_agent:
            return self._deny("Invalid request source.", "missing user-agent")

        ua_lower = user_agent.lower()
        for signature in self.automation_signatures:
            if signature in ua_lower:
                return self._deny(
                    "Automated requests are not allowed.",
                    f"automation signature '{signature}'",
                )

        if not fetch_mode or not fetch_site:
            return self._deny(
                "Request must originate from a web browser.",
                "missing sec-fetch headers",
            )

        if fetch_mode != "cors":
            return self._deny("Invalid request mode.", f"sec-fetch-mode={fetch_mode}")

        if fetch_site not in ALLOWED_FETCH_SITES:
            return self._deny("Invalid request origin.", f"sec-fetch-site={fetch_site}")

        if fetch_dest and fetch_dest != "empty":
            return self._deny("Invalid request destination.", f"sec-fetch-dest={fetch_dest}")

        return AccessDecision.allow()

    @staticmethod
    def _deny(message: str, detail: str) -> AccessDecision:
        logger.info("Browser check failed: %s", detail)
        return AccessDecision.deny(DenyReason.NOT_BROWSER, message)

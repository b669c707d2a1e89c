"""
Summarizer API — End-to-End API Tests
=======================================

What:  Drives the full app (middleware chain, pipeline, routes, handlers)
       through HTTPX's ASGI transport.
How:   Each test gets a fresh app from create_app() with its own security
       state and a FakeClock, so nonces and rate windows never leak.

What we test:
    ✅ Signed browser request → 200 with summary, stats and headers
    ✅ Each pipeline stage's rejection, in order, with short-circuiting
    ✅ Replay / expired / forged signatures
    ✅ Rate limiting: 11th request → 429 + Retry-After + X-RateLimit-*
    ✅ External shield denial and fail-open
    ✅ Body validation, AI outage and unexpected error envelopes
    ✅ Oversized bodies → 413, declared or streamed
    ✅ Health and root endpoints bypass the pipeline
"""

import json
from unittest.mock import AsyncMock

import pytest

from summarizer.config import Settings
from summarizer.exceptions import CircuitBreakerOpenError, LLMServiceError
from summarizer.middleware.security_headers import SECURITY_HEADERS
from summarizer.security.shield import ShieldProvider, ShieldVerdict

from conftest import ALLOWED_ORIGIN, SAMPLE_TEXT, signed_headers

URL = "/api/summarize"
BODY = {"text": SAMPLE_TEXT, "length": "short"}


class StaticProvider(ShieldProvider):
    def __init__(self, verdict=None, error=None):
        self.verdict = verdict
        self.error = error

    async def protect(self, request):
        if self.error:
            raise self.error
        return self.verdict


@pytest.fixture
def dev_settings():
    return Settings(environment="development", cors_origins=ALLOWED_ORIGIN, shield_url="")


# ══════════════════════════════════════════════════════════════════════════
# Happy path
# ══════════════════════════════════════════════════════════════════════════


class TestSummarizeSuccess:
    @pytest.mark.asyncio
    async def test_signed_browser_request(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        client = await make_client(secure_settings, clock)

        response = await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))

        assert response.status_code == 200
        payload = response.json()
        assert payload["success"] is True
        assert payload["data"]["summary"] == fake_llm.summary
        stats = payload["data"]["stats"]
        assert stats["originalWords"] == len(SAMPLE_TEXT.split())
        assert stats["summaryWords"] == len(fake_llm.summary.split())
        assert "processingTimeMs" in stats
        fake_llm.summarize_mock.assert_awaited_once_with(SAMPLE_TEXT, "short")

    @pytest.mark.asyncio
    async def test_success_carries_rate_limit_and_security_headers(
        self, make_client, secure_settings, clock, browser_headers, fake_llm
    ):
        client = await make_client(secure_settings, clock)

        response = await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))

        assert response.headers["X-RateLimit-Limit"] == "10"
        assert response.headers["X-RateLimit-Remaining"] == "9"
        assert "X-RateLimit-Reset" in response.headers
        assert response.headers["X-Request-ID"]
        for name, value in SECURITY_HEADERS.items():
            assert response.headers[name] == value

    @pytest.mark.asyncio
    async def test_length_defaults_to_medium(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        client = await make_client(secure_settings, clock)

        response = await client.post(
            URL, json={"text": SAMPLE_TEXT}, headers=signed_headers(browser_headers, clock)
        )

        assert response.status_code == 200
        fake_llm.summarize_mock.assert_awaited_once_with(SAMPLE_TEXT, "medium")

    @pytest.mark.asyncio
    async def test_user_id_header_is_a_session(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        client = await make_client(secure_settings, clock)
        del browser_headers["Authorization"]
        browser_headers["X-User-Id"] = "user_2abc"

        response = await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_development_skips_origin_check(self, make_client, dev_settings, clock, browser_headers, fake_llm):
        client = await make_client(dev_settings, clock)
        del browser_headers["Origin"]

        response = await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))

        assert response.status_code == 200


# ══════════════════════════════════════════════════════════════════════════
# Pipeline stages
# ══════════════════════════════════════════════════════════════════════════


class TestPipelineRejections:
    @pytest.mark.asyncio
    async def test_missing_origin(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        client = await make_client(secure_settings, clock)
        del browser_headers["Origin"]

        response = await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))

        assert response.status_code == 403
        assert response.json() == {"success": False, "error": "Missing origin header"}

    @pytest.mark.asyncio
    async def test_referer_used_when_origin_absent(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        client = await make_client(secure_settings, clock)
        del browser_headers["Origin"]
        browser_headers["Referer"] = f"{ALLOWED_ORIGIN}/app"

        response = await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_foreign_origin(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        client = await make_client(secure_settings, clock)
        browser_headers["Origin"] = "https://evil.test"

        response = await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))

        assert response.status_code == 403
        assert response.json()["error"] == "Origin not allowed"

    @pytest.mark.asyncio
    async def test_automation_client(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        client = await make_client(secure_settings, clock)
        browser_headers["User-Agent"] = "curl/8.4.0"

        response = await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))

        assert response.status_code == 403
        assert response.json()["error"] == "Automated requests are not allowed."

    @pytest.mark.asyncio
    async def test_no_session(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        client = await make_client(secure_settings, clock)
        del browser_headers["Authorization"]

        response = await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))

        assert response.status_code == 401
        assert response.json()["error"] == "Authentication required. Please log in."
        # the shield stage ran before the session stage
        assert response.headers["X-RateLimit-Remaining"] == "9"

    @pytest.mark.asyncio
    async def test_missing_signature(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        client = await make_client(secure_settings, clock)

        response = await client.post(URL, json=BODY, headers=browser_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Missing request signature."

    @pytest.mark.asyncio
    async def test_wrong_secret(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        client = await make_client(secure_settings, clock)

        response = await client.post(
            URL, json=BODY, headers=signed_headers(browser_headers, clock, secret="guessed")
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request signature."
        fake_llm.summarize_mock.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_replay(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        client = await make_client(secure_settings, clock)
        headers = signed_headers(browser_headers, clock, nonce="abc123")

        first = await client.post(URL, json=BODY, headers=headers)
        second = await client.post(URL, json=BODY, headers=headers)

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json()["error"] == "Request already processed."
        assert fake_llm.summarize_mock.await_count == 1

    @pytest.mark.asyncio
    async def test_expired(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        client = await make_client(secure_settings, clock)

        response = await client.post(
            URL,
            json=BODY,
            headers=signed_headers(browser_headers, clock, timestamp=clock.millis - 40_000),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Request expired. Please try again."

    @pytest.mark.asyncio
    async def test_first_failing_stage_wins(self, make_client, secure_settings, clock, fake_llm):
        """Foreign origin, curl and no credentials at all: only the origin stage answers."""
        client = await make_client(secure_settings, clock)

        response = await client.post(
            URL, json=BODY, headers={"Origin": "https://evil.test", "User-Agent": "curl/8.4.0"}
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Origin not allowed"
        assert len(client.app.state.security.rate_limiter) == 0
        assert "X-RateLimit-Limit" not in response.headers

    @pytest.mark.asyncio
    async def test_session_denial_leaves_nonce_unused(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        client = await make_client(secure_settings, clock)
        del browser_headers["Authorization"]

        await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock, nonce="abc123"))

        assert "abc123" not in client.app.state.security.nonce_store

    @pytest.mark.asyncio
    async def test_denial_has_security_headers(self, make_client, secure_settings, clock, fake_llm):
        client = await make_client(secure_settings, clock)

        response = await client.post(URL, json=BODY)

        assert response.status_code == 403
        for name, value in SECURITY_HEADERS.items():
            assert response.headers[name] == value


# ══════════════════════════════════════════════════════════════════════════
# Rate limiting & external shield
# ══════════════════════════════════════════════════════════════════════════


class TestAbuseShield:
    @pytest.mark.asyncio
    async def test_eleventh_request_rate_limited(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        client = await make_client(secure_settings, clock)

        for _ in range(10):
            ok = await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))
            assert ok.status_code == 200

        response = await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))

        assert response.status_code == 429
        body = response.json()
        assert body["error"] == "Too many requests. Please try again later."
        assert 1 <= body["retryAfter"] <= 60
        assert response.headers["Retry-After"] == str(body["retryAfter"])
        assert response.headers["X-RateLimit-Remaining"] == "0"

    @pytest.mark.asyncio
    async def test_window_resets(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        client = await make_client(secure_settings, clock)
        for _ in range(11):
            await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))

        clock.advance(61)
        response = await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_forwarded_for_ignored_without_trust_proxy(
        self, make_client, secure_settings, clock, browser_headers, fake_llm
    ):
        client = await make_client(secure_settings, clock)
        for i in range(10):
            headers = {**browser_headers, "X-Forwarded-For": f"198.51.100.{i}"}
            await client.post(URL, json=BODY, headers=signed_headers(headers, clock))

        headers = {**browser_headers, "X-Forwarded-For": "198.51.100.99"}
        response = await client.post(URL, json=BODY, headers=signed_headers(headers, clock))

        assert response.status_code == 429

    @pytest.mark.asyncio
    async def test_forwarded_for_partitions_with_trust_proxy(
        self, make_client, secure_settings, clock, browser_headers, fake_llm
    ):
        config = secure_settings.model_copy(update={"trust_proxy": True})
        client = await make_client(config, clock)
        for _ in range(10):
            headers = {**browser_headers, "X-Forwarded-For": "198.51.100.1"}
            await client.post(URL, json=BODY, headers=signed_headers(headers, clock))

        headers = {**browser_headers, "X-Forwarded-For": "198.51.100.2"}
        response = await client.post(URL, json=BODY, headers=signed_headers(headers, clock))

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_client_supplied_forwarded_hops_do_not_reset_limit(
        self, make_client, secure_settings, clock, browser_headers, fake_llm
    ):
        """The proxy appends the real address; whatever the client put before it is ignored."""
        config = secure_settings.model_copy(update={"trust_proxy": True})
        client = await make_client(config, clock)
        for i in range(10):
            headers = {**browser_headers, "X-Forwarded-For": f"10.0.0.{i}, 203.0.113.7"}
            ok = await client.post(URL, json=BODY, headers=signed_headers(headers, clock))
            assert ok.status_code == 200

        headers = {**browser_headers, "X-Forwarded-For": "10.0.0.99, 203.0.113.7"}
        response = await client.post(URL, json=BODY, headers=signed_headers(headers, clock))

        assert response.status_code == 429

    @pytest.mark.asyncio
    async def test_proxy_hops_selects_entry_from_the_right(
        self, make_client, secure_settings, clock, browser_headers, fake_llm
    ):
        config = secure_settings.model_copy(update={"trust_proxy": True, "proxy_hops": 2})
        client = await make_client(config, clock)
        for i in range(10):
            headers = {**browser_headers, "X-Forwarded-For": f"10.0.0.{i}, 203.0.113.7, 172.16.0.{i}"}
            await client.post(URL, json=BODY, headers=signed_headers(headers, clock))

        headers = {**browser_headers, "X-Forwarded-For": "203.0.113.7, 172.16.0.1"}
        limited = await client.post(URL, json=BODY, headers=signed_headers(headers, clock))
        headers = {**browser_headers, "X-Forwarded-For": "203.0.113.8, 172.16.0.1"}
        other = await client.post(URL, json=BODY, headers=signed_headers(headers, clock))

        assert limited.status_code == 429
        assert other.status_code == 200

    @pytest.mark.asyncio
    async def test_external_bot_denial(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        provider = StaticProvider(ShieldVerdict(denied=True, reason="BOT"))
        client = await make_client(secure_settings, clock, shield_provider=provider)

        response = await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))

        assert response.status_code == 403
        assert response.json()["error"] == (
            "Automated requests are not allowed. Please use the web application."
        )

    @pytest.mark.asyncio
    async def test_external_rate_limit(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        verdict = ShieldVerdict(denied=True, reason="RATE_LIMIT", max=5, remaining=0, reset_time=clock() + 30)
        client = await make_client(secure_settings, clock, shield_provider=StaticProvider(verdict))

        response = await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))

        assert response.status_code == 429
        assert response.json()["retryAfter"] == 30
        assert response.headers["Retry-After"] == "30"
        assert response.headers["X-RateLimit-Limit"] == "5"

    @pytest.mark.asyncio
    async def test_external_shield_failure_fails_open(
        self, make_client, secure_settings, clock, browser_headers, fake_llm
    ):
        provider = StaticProvider(error=RuntimeError("shield down"))
        client = await make_client(secure_settings, clock, shield_provider=provider)

        response = await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))

        assert response.status_code == 200


# ══════════════════════════════════════════════════════════════════════════
# Handler errors
# ══════════════════════════════════════════════════════════════════════════


class TestHandlerErrors:
    @pytest.mark.asyncio
    async def test_text_too_short(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        client = await make_client(secure_settings, clock)

        response = await client.post(
            URL, json={"text": "Too short."}, headers=signed_headers(browser_headers, clock)
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Text must be at least 50 characters"}

    @pytest.mark.asyncio
    async def test_text_bounds_follow_app_settings(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        config = secure_settings.model_copy(update={"min_text_length": 10, "max_text_length": 100})
        client = await make_client(config, clock)

        short = await client.post(
            URL, json={"text": "Twelve chars"}, headers=signed_headers(browser_headers, clock)
        )
        long = await client.post(
            URL, json={"text": "a" * 150}, headers=signed_headers(browser_headers, clock)
        )

        assert short.status_code == 200
        fake_llm.summarize_mock.assert_awaited_once_with("Twelve chars", "medium")
        assert long.status_code == 400
        assert long.json() == {"success": False, "error": "Text must not exceed 100 characters"}

    @pytest.mark.asyncio
    async def test_script_padding_does_not_count_toward_length(
        self, make_client, secure_settings, clock, browser_headers, fake_llm
    ):
        client = await make_client(secure_settings, clock)
        padded = "<script>" + "x" * 100 + "</script>tiny"

        response = await client.post(URL, json={"text": padded}, headers=signed_headers(browser_headers, clock))

        assert response.status_code == 400
        assert response.json()["error"] == "Text must be at least 50 characters"
        fake_llm.summarize_mock.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_length(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        client = await make_client(secure_settings, clock)

        response = await client.post(
            URL,
            json={"text": SAMPLE_TEXT, "length": "epic"},
            headers=signed_headers(browser_headers, clock),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Length must be 'short', 'medium', or 'long'"

    @pytest.mark.asyncio
    async def test_malformed_json(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        client = await make_client(secure_settings, clock)
        headers = signed_headers(browser_headers, clock)
        headers["Content-Type"] = "application/json"

        response = await client.post(URL, content=b"{not json", headers=headers)

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_unverified_garbage_never_parsed(self, make_client, secure_settings, clock, fake_llm):
        """Without a valid pipeline pass, a bad body gets the pipeline's answer, not a 400."""
        client = await make_client(secure_settings, clock)

        response = await client.post(
            URL, content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_ai_failure_is_503(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        fake_llm.summarize_mock.side_effect = LLMServiceError(
            "AI service quota exceeded. Please try again later.", retry_after=60
        )
        client = await make_client(secure_settings, clock)

        response = await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))

        assert response.status_code == 503
        assert response.json() == {
            "success": False,
            "error": "AI service quota exceeded. Please try again later.",
            "retryAfter": 60,
        }
        assert response.headers["Retry-After"] == "60"

    @pytest.mark.asyncio
    async def test_circuit_open_is_503(self, make_client, secure_settings, clock, browser_headers, fake_llm):
        fake_llm.summarize_mock.side_effect = CircuitBreakerOpenError(recovery_time=42)
        client = await make_client(secure_settings, clock)

        response = await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))

        assert response.status_code == 503
        assert response.json()["retryAfter"] == 42

    @pytest.mark.asyncio
    async def test_unexpected_error_hidden_in_production(
        self, make_client, secure_settings, clock, browser_headers, fake_llm
    ):
        fake_llm.summarize_mock.side_effect = RuntimeError("database password is hunter2")
        client = await make_client(secure_settings, clock, raise_app_exceptions=False)
        headers = {**signed_headers(browser_headers, clock), "X-Request-ID": "trace-500"}

        response = await client.post(URL, json=BODY, headers=headers)

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal server error"}
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Request-ID"] == "trace-500"

    @pytest.mark.asyncio
    async def test_unexpected_error_shown_in_development(
        self, make_client, dev_settings, clock, browser_headers, fake_llm
    ):
        fake_llm.summarize_mock.side_effect = RuntimeError("boom")
        client = await make_client(dev_settings, clock, raise_app_exceptions=False)

        response = await client.post(URL, json=BODY, headers=signed_headers(browser_headers, clock))

        assert response.status_code == 500
        assert response.json()["error"] == "boom"


# ══════════════════════════════════════════════════════════════════════════
# Body size limit
# ══════════════════════════════════════════════════════════════════════════


class TestBodySizeLimit:
    @pytest.fixture
    def small_body_settings(self, secure_settings):
        return secure_settings.model_copy(update={"max_body_bytes": 2048})

    @pytest.mark.asyncio
    async def test_declared_length_over_limit(self, make_client, small_body_settings, clock, browser_headers, fake_llm):
        client = await make_client(small_body_settings, clock)
        headers = {**signed_headers(browser_headers, clock), "Content-Type": "application/json"}

        response = await client.post(URL, content=b"x" * 3000, headers=headers)

        assert response.status_code == 413
        assert response.json() == {"success": False, "error": "Request body too large"}
        assert response.headers["X-Frame-Options"] == "DENY"
        fake_llm.summarize_mock.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_streamed_body_over_limit(self, make_client, small_body_settings, clock, browser_headers, fake_llm):
        """Chunked uploads carry no Content-Length; the running total is enforced."""
        client = await make_client(small_body_settings, clock)
        headers = {**signed_headers(browser_headers, clock), "Content-Type": "application/json"}

        async def chunks():
            for _ in range(5):
                yield b"x" * 1000

        response = await client.post(URL, content=chunks(), headers=headers)

        assert response.status_code == 413
        assert response.json()["error"] == "Request body too large"
        fake_llm.summarize_mock.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_streamed_body_under_limit_reaches_handler(
        self, make_client, small_body_settings, clock, browser_headers, fake_llm
    ):
        client = await make_client(small_body_settings, clock)
        headers = {**signed_headers(browser_headers, clock), "Content-Type": "application/json"}
        payload = json.dumps(BODY).encode()

        async def chunks():
            yield payload[:20]
            yield payload[20:]

        response = await client.post(URL, content=chunks(), headers=headers)

        assert response.status_code == 200
        fake_llm.summarize_mock.assert_awaited_once_with(SAMPLE_TEXT, "short")

    @pytest.mark.asyncio
    async def test_pipeline_answers_before_body_is_read(self, make_client, small_body_settings, clock, fake_llm):
        client = await make_client(small_body_settings, clock)

        response = await client.post(
            URL, content=b"x" * 3000, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 403


# ══════════════════════════════════════════════════════════════════════════
# Unprotected endpoints
# ══════════════════════════════════════════════════════════════════════════


class TestOpenEndpoints:
    @pytest.mark.asyncio
    async def test_health_needs_no_credentials(self, make_client, secure_settings, monkeypatch):
        from summarizer.services.gemini_service import gemini_service

        monkeypatch.setattr(gemini_service, "health_check", AsyncMock(return_value=True))
        client = await make_client(secure_settings)

        response = await client.get("/api/health")

        assert response.status_code == 200
        payload = response.json()
        assert payload["status"] == "healthy"
        assert payload["gemini"] == "available"
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    @pytest.mark.asyncio
    async def test_health_degraded_when_gemini_down(self, make_client, secure_settings, monkeypatch):
        from summarizer.services.gemini_service import gemini_service

        monkeypatch.setattr(gemini_service, "health_check", AsyncMock(return_value=False))
        client = await make_client(secure_settings)

        response = await client.get("/api/health")

        assert response.json()["status"] == "degraded"
        assert response.json()["gemini"] == "unavailable"

    @pytest.mark.asyncio
    async def test_root(self, make_client, secure_settings):
        client = await make_client(secure_settings)

        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"

    @pytest.mark.asyncio
    async def test_unknown_route(self, make_client, secure_settings):
        client = await make_client(secure_settings)

        response = await client.get("/api/notes")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Endpoint not found"}

    @pytest.mark.asyncio
    async def test_cors_preflight_not_gated(self, make_client, secure_settings):
        client = await make_client(secure_settings)

        response = await client.options(
            URL,
            headers={
                "Origin": ALLOWED_ORIGIN,
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "X-Request-Signature",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN

    @pytest.mark.asyncio
    async def test_client_request_id_echoed(self, make_client, secure_settings):
        client = await make_client(secure_settings)

        good = await client.get("/", headers={"X-Request-ID": "trace-42"})
        bad = await client.get("/", headers={"X-Request-ID": "bad id with spaces"})

        assert good.headers["X-Request-ID"] == "trace-42"
        assert bad.headers["X-Request-ID"] != "bad id with spaces"

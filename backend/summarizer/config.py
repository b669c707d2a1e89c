"""
Summarizer API — Application Configuration
============================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
       The security pipeline has many tunables (skew window, nonce TTL,
       rate limits, shield timeout); all of them live here.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the app factory, the security state builder and services.
When:  Loaded once at module import time; validated before app starts.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_REQUEST_SECRET = "dev-secret-change-in-production"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development.
    Production deployments MUST override REQUEST_SECRET, GEMINI_API_KEY
    and CORS_ORIGINS.
    """

    # ── Environment ───────────────────────────────────────────────────────
    # What: Deployment mode. "development" disables the origin check and
    # exposes exception messages in 500 responses.
    environment: str = Field(default="development")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        valid = {"development", "production", "test"}
        lower = v.lower()
        if lower not in valid:
            raise ValueError(f"Invalid environment '{v}'. Must be one of: {valid}")
        return lower

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    # ── Google Gemini ─────────────────────────────────────────────────────
    gemini_api_key: str = Field(
        default="",
        description="Google Gemini API key used by the summarization service"
    )
    gemini_model: str = Field(default="gemini-1.5-flash")

    # ── Origins / CORS ────────────────────────────────────────────────────
    # What: Allowed origins, comma-separated. Used both by CORSMiddleware
    # and by the origin validator stage of the security pipeline.
    cors_origins: str = Field(default="http://localhost:3000,http://localhost:3001")

    # What: How the origin validator compares an Origin to the allow-list.
    # "prefix" matches with startswith; "exact" compares scheme://host[:port].
    origin_match_mode: str = Field(default="prefix")

    @field_validator("origin_match_mode")
    @classmethod
    def validate_origin_match_mode(cls, v: str) -> str:
        lower = v.lower()
        if lower not in {"prefix", "exact"}:
            raise ValueError(f"Invalid origin_match_mode '{v}'. Must be 'prefix' or 'exact'")
        return lower

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # What: Derive the client identity from X-Forwarded-For.
    # Only enable behind a reverse proxy that appends to the header.
    trust_proxy: bool = Field(default=False)

    # What: Proxies in front of the service that append to X-Forwarded-For.
    # The client identity is the entry this many hops from the right.
    proxy_hops: int = Field(default=1, ge=1, le=10)

    # ── Request Signing ───────────────────────────────────────────────────
    # What: Shared HMAC secret; the web client signs "{timestamp}:{nonce}" with it.
    request_secret: str = Field(default=DEFAULT_REQUEST_SECRET)

    # What: Max distance between client timestamp and server clock, in ms.
    signature_skew_ms: int = Field(default=30_000, ge=1_000, le=300_000)

    # What: How long a consumed nonce is remembered.
    nonce_ttl_seconds: int = Field(default=60, ge=1, le=3600)

    # What: Period of the background sweep over nonces and rate windows.
    sweep_interval_seconds: float = Field(default=60.0, gt=0, le=3600)

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # What: Per-identity fixed window. 10 requests per minute by default.
    rate_limit_requests: int = Field(default=10, ge=1, le=10_000)
    rate_limit_window_ms: int = Field(default=60_000, ge=1_000, le=86_400_000)

    # ── External Abuse Shield ─────────────────────────────────────────────
    # What: Decision endpoint of an external bot/shield service. Empty means
    # the local fixed-window limiter is used instead.
    shield_url: str = Field(default="")
    shield_api_key: str = Field(default="")
    # Upper bound on one shield call; on timeout the request is allowed.
    shield_timeout_seconds: float = Field(default=2.0, gt=0, le=30)

    # ── Request Body Limits ───────────────────────────────────────────────
    min_text_length: int = Field(default=50, ge=1)
    max_text_length: int = Field(default=50_000, ge=100)
    # What: Largest request body accepted, in bytes (1 MB). Larger → 413.
    max_body_bytes: int = Field(default=1_048_576, ge=1024, le=10_485_760)

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=4000, ge=1024, le=65535)

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Retry Configuration ───────────────────────────────────────────────
    retry_max_attempts: int = Field(default=3, ge=1, le=10)
    retry_min_wait: int = Field(default=2, ge=1, le=30)
    retry_max_wait: int = Field(default=10, ge=5, le=120)

    # ── Circuit Breaker ───────────────────────────────────────────────────
    cb_failure_threshold: int = Field(default=5, ge=2, le=20)
    cb_recovery_timeout: int = Field(default=60, ge=10, le=300)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that critical settings are configured.
        When:  Called during app startup (lifespan).
        How:   Collects every problem and raises one ValueError listing them.
        """
        errors = []
        if not self.gemini_api_key or self.gemini_api_key == "your_gemini_api_key_here":
            errors.append(
                "GEMINI_API_KEY is not set. "
                "Get a free key at https://aistudio.google.com/app/apikey"
            )
        if not self.is_development and self.request_secret == DEFAULT_REQUEST_SECRET:
            errors.append(
                "REQUEST_SECRET still has the development default. "
                "Generate one with: python -c 'import secrets; print(secrets.token_hex(32))'"
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


settings = Settings()

"""
Summarizer API — Pydantic Request/Response Schemas
====================================================

What:  API contract of the summarize and health endpoints.
How:   FastAPI validates the request body against SummarizeRequest AFTER the
       security pipeline has allowed the request. Responses serialize with
       camelCase aliases to match the web client.

Sanitizing:
    String input has <script> blocks, "javascript:" URLs and inline on*=
    handlers stripped before length checks. The summary is rendered in a
    browser later; the AI model echoing markup back must not become XSS.

Length:
    The text bounds come from the running app's Settings, so the route
    applies check_text_length() after the model has sanitized the text.
"""

import re
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from summarizer.exceptions import ValidationError

SummaryLength = Literal["short", "medium", "long"]

_SCRIPT_TAG = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_JS_URL = re.compile(r"javascript:", re.IGNORECASE)
_INLINE_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)


def sanitize_text(value: str) -> str:
    """Strip script tags, javascript: URLs and inline event handlers."""
    value = _SCRIPT_TAG.sub("", value)
    value = _JS_URL.sub("", value)
    return _INLINE_HANDLER.sub("", value)


def check_text_length(text: str, min_length: int, max_length: int) -> None:
    """Raises ValidationError (400) when sanitized text is out of bounds."""
    if len(text) < min_length:
        raise ValidationError(f"Text must be at least {min_length} characters", field="text")
    if len(text) > max_length:
        raise ValidationError(f"Text must not exceed {max_length} characters", field="text")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class SummarizeRequest(BaseModel):
    """
    Body of POST /api/summarize.

    text:   required string, sanitized and trimmed; bounds checked by
            check_text_length() against the app's Settings
    length: "short" | "medium" | "long"; missing or null means "medium"
    """

    text: str = Field(description="Text to summarize")
    length: Optional[SummaryLength] = Field(
        default="medium",
        description="Summary length: short, medium or long",
    )

    @field_validator("text")
    @classmethod
    def clean_text(cls, v: str) -> str:
        return sanitize_text(v).strip()

    @field_validator("length", mode="before")
    @classmethod
    def default_length(cls, v: Optional[str]) -> str:
        if v is None or v == "":
            return "medium"
        if v not in ("short", "medium", "long"):
            raise ValueError("Length must be 'short', 'medium', or 'long'")
        return v


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class SummaryStats(_CamelModel):
    original_length: int
    summary_length: int
    original_words: int
    summary_words: int
    reduction_percent: int = Field(ge=0)
    estimated_reading_time_saved: int = Field(ge=0, description="Minutes at 200 wpm")
    processing_time_ms: int


class SummaryData(_CamelModel):
    summary: str
    stats: SummaryStats


class SummarizeResponse(_CamelModel):
    success: bool = True
    data: SummaryData


class ErrorResponse(_CamelModel):
    """
    Uniform error envelope for every client-facing error.

    Example:
        {"success": false, "error": "Too many requests. Please try again later.",
         "retryAfter": 42}
    """

    success: bool = False
    error: str
    retry_after: Optional[int] = None


class HealthResponse(BaseModel):
    success: bool = True
    status: str = Field(description="healthy or degraded")
    version: str
    gemini: str = Field(description="available, unavailable or circuit_open")
    timestamp: str = Field(description="Server time, ISO 8601 UTC")
    uptime_seconds: float

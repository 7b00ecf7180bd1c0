"""Pydantic request/response schemas for the xlate HTTP API.

Request schemas end with ``Request``, response schemas with ``Response``.
FastAPI validates incoming bodies against them (422 on failure) and uses
them for the generated OpenAPI docs at ``/docs``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class TranslateRequest(BaseModel):
    """One source text and the language to translate it into."""

    text: str = Field(..., min_length=1, max_length=5000)
    target: str = Field(..., min_length=1, max_length=16, description="Target language code, e.g. 'en'")


class TranslateResponse(BaseModel):
    """Translation result.

    ``translated`` is ``""`` when no translation could be obtained; the
    ``available`` flag says the same thing without string inspection.
    """

    translated: str
    available: bool
    provider_mode: str


class ClearCacheResponse(BaseModel):
    ok: bool = True


class PurgeResponse(BaseModel):
    """Result of an expired-entry purge."""

    removed: int = Field(ge=0)


class CacheStatsResponse(BaseModel):
    """Cache tier sizes as shown on the settings page."""

    durable_entries: int
    fast_entries: int
    pending_requests: int
    approx_bytes: int
    approx_kb: int
    max_persist_entries: int
    cache_ttl_days: int


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None

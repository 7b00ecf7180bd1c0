"""FastAPI route handlers for the xlate REST API.

All routes live under ``/api/v1``.  The engine is created at startup in
``main.py`` and read from ``app.state`` through ``EngineDep``, so tests can
mount this router on a bare app with any engine they like.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request

from xlate import __version__
from xlate.api.schemas import (
    CacheStatsResponse,
    ClearCacheResponse,
    ErrorResponse,
    HealthResponse,
    PurgeResponse,
    TranslateRequest,
    TranslateResponse,
)
from xlate.engine.engine import TranslationEngine
from xlate.models.cache import ProviderMode

router = APIRouter(prefix="/api/v1")


def _get_engine(request: Request) -> TranslationEngine:
    """Retrieve the translation engine from application state."""
    return request.app.state.engine


EngineDep = Annotated[TranslationEngine, Depends(_get_engine)]


# ---------------------------------------------------------------------------
# Translation
# ---------------------------------------------------------------------------


@router.post(
    "/translate",
    response_model=TranslateResponse,
    summary="Translate one text, coalesced and batched with concurrent requests",
)
async def translate(body: TranslateRequest, engine: EngineDep) -> TranslateResponse:
    """Return the translation of ``body.text`` into ``body.target``."""
    translated = await engine.translate(body.text, body.target)
    return TranslateResponse(
        translated=translated,
        available=bool(translated),
        provider_mode=engine.provider_mode.value,
    )


# ---------------------------------------------------------------------------
# Cache maintenance
# ---------------------------------------------------------------------------


@router.post(
    "/cache/clear",
    response_model=ClearCacheResponse,
    responses={503: {"model": ErrorResponse}},
    summary="Drop every cached translation",
)
async def clear_cache(engine: EngineDep) -> ClearCacheResponse:
    await engine.clear_cache()
    return ClearCacheResponse(ok=True)


@router.post(
    "/cache/purge",
    response_model=PurgeResponse,
    responses={503: {"model": ErrorResponse}},
    summary="Remove expired cache entries now",
)
async def purge_cache(engine: EngineDep) -> PurgeResponse:
    removed = await engine.purge_expired()
    return PurgeResponse(removed=removed)


@router.get(
    "/cache/stats",
    response_model=CacheStatsResponse,
    summary="Cache tier sizes",
)
async def cache_stats(engine: EngineDep) -> CacheStatsResponse:
    stats = engine.stats()
    config = engine.config
    return CacheStatsResponse(
        **stats.model_dump(),
        max_persist_entries=config.max_persist_entries,
        cache_ttl_days=config.cache_ttl_days,
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, Any] = {}
    engine: TranslationEngine | None = getattr(request.app.state, "engine", None)
    if engine is None:
        status = "unhealthy"
    else:
        providers = dict(engine.provider_status())
        providers["mode"] = engine.provider_mode.value
        # Cloud requested but unusable: requests silently fall back to public.
        cloud_wanted = engine.config.use_cloud_provider
        status = "degraded" if cloud_wanted and engine.provider_mode is not ProviderMode.CLOUD else "healthy"

    return HealthResponse(
        status=status,
        version=__version__,
        providers=providers,
    )

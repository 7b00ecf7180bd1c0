"""xlate API layer: routes, schemas, and middleware."""

from xlate.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from xlate.api.routes import router
from xlate.api.schemas import (
    CacheStatsResponse,
    ClearCacheResponse,
    ErrorResponse,
    HealthResponse,
    PurgeResponse,
    TranslateRequest,
    TranslateResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "CacheStatsResponse",
    "ClearCacheResponse",
    "ErrorResponse",
    "HealthResponse",
    "PurgeResponse",
    "TranslateRequest",
    "TranslateResponse",
]

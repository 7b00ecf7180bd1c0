"""Google Cloud Translation (v2 REST) provider.

Sends one ``GET`` per batch with every source text as its own ``q``
parameter, plus ``target`` and ``format=text``.  Requires an API key,
which arrives through :meth:`apply_config` and can change at runtime.

Response shape::

    {"data": {"translations": [{"translatedText": "..."}, ...]}}
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from xlate.interfaces.translation_provider import ITranslationProvider
from xlate.models.config import TranslationConfig
from xlate.utils.errors import ProviderUnavailableError, TranslationError

logger = structlog.get_logger(logger_name=__name__)

_CLOUD_ENDPOINT = "https://translation.googleapis.com/language/translate/v2"


class CloudTranslationProvider(ITranslationProvider):
    """Batch translation through the authenticated Cloud Translation API.

    Parameters
    ----------
    http_client:
        Shared ``httpx.AsyncClient``; its timeout is the only bound on a call.
    api_key:
        Initial API key.  Empty means "not configured".
    endpoint:
        Override for the v2 endpoint (tests, proxies).
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str = "",
        endpoint: str = _CLOUD_ENDPOINT,
    ) -> None:
        self._client = http_client
        self._api_key = api_key
        self._endpoint = endpoint

    # ------------------------------------------------------------------
    # ITranslationProvider implementation
    # ------------------------------------------------------------------

    async def translate(self, texts: list[str], target: str) -> list[str]:
        """Translate *texts* in one request; ``[]`` on any failure."""
        if not texts:
            return []
        try:
            payload = await self._fetch(texts, target)
            results = self._parse(payload, expected=len(texts))
        except (ProviderUnavailableError, TranslationError) as exc:
            logger.warning(
                "cloud_translate_failed",
                target=target,
                batch_size=len(texts),
                error=str(exc),
            )
            return []

        logger.debug("cloud_translate_ok", target=target, batch_size=len(texts))
        return results

    def apply_config(self, config: TranslationConfig) -> None:
        self._api_key = config.cloud_api_key

    def get_provider_name(self) -> str:
        return "google_cloud"

    def is_available(self) -> bool:
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _fetch(self, texts: list[str], target: str) -> Any:
        if not self._api_key:
            raise ProviderUnavailableError(
                message="Cloud translation selected but no API key is configured",
                provider_name=self.get_provider_name(),
            )

        # One ``q`` per text; a dict would collapse them.
        params: list[tuple[str, str]] = [("key", self._api_key)]
        params.extend(("q", text) for text in texts)
        params.append(("target", target))
        params.append(("format", "text"))

        try:
            response = await self._client.get(self._endpoint, params=params)
        except httpx.HTTPError as exc:
            # Exception text only; the request URL carries the key.
            raise TranslationError(
                message=f"{type(exc).__name__}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.is_success:
            raise TranslationError(
                message=f"HTTP {response.status_code}",
                provider_name=self.get_provider_name(),
            )
        try:
            return response.json()
        except ValueError as exc:
            raise TranslationError(
                message="Response body is not JSON",
                provider_name=self.get_provider_name(),
            ) from exc

    def _parse(self, payload: Any, expected: int) -> list[str]:
        data = payload.get("data") if isinstance(payload, dict) else None
        translations = data.get("translations") if isinstance(data, dict) else None
        if not isinstance(translations, list):
            raise TranslationError(
                message="Response has no data.translations list",
                provider_name=self.get_provider_name(),
            )
        if len(translations) != expected:
            raise TranslationError(
                message=f"Expected {expected} translations, got {len(translations)}",
                provider_name=self.get_provider_name(),
            )

        results: list[str] = []
        for item in translations:
            text = item.get("translatedText") if isinstance(item, dict) else None
            results.append(text if isinstance(text, str) else "")
        return results

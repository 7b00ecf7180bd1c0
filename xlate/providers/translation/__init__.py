"""Translation provider adapters.

Two implementations of ITranslationProvider
(xlate/interfaces/translation_provider.py):
    - CloudTranslationProvider  -- Cloud Translation v2, needs an API key
    - PublicTranslationProvider -- keyless translate_a/single endpoint

main.py builds one of each on a shared httpx.AsyncClient; the engine picks
per batch according to the provider mode baked into the cache keys.
"""

from xlate.providers.translation.cloud_provider import CloudTranslationProvider
from xlate.providers.translation.public_provider import (
    PublicTranslationProvider,
    parse_public_response,
)

__all__ = ["CloudTranslationProvider", "PublicTranslationProvider", "parse_public_response"]

"""Abstract base class for batch translation providers.

A provider turns an ordered list of source strings plus one target
language code into a parallel list of translated strings.  It never
raises for provider-side trouble: a non-success status, a transport error
or a payload it cannot fully map back to the inputs all yield ``[]``, and
the batch scheduler resolves every affected caller with ``""``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from xlate.models.config import TranslationConfig


class ITranslationProvider(ABC):
    """Contract for a batch translation backend."""

    @abstractmethod
    async def translate(self, texts: list[str], target: str) -> list[str]:
        """Translate *texts* into *target*.

        Parameters
        ----------
        texts:
            Distinct, non-empty source strings, in the order the results
            must come back in.
        target:
            Target language code, e.g. ``"en"``.

        Returns
        -------
        list[str]
            Exactly ``len(texts)`` translations, or ``[]`` on any failure.
        """

    def apply_config(self, config: TranslationConfig) -> None:
        """Pick up a new runtime configuration snapshot.  Default: ignore it."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the provider identifier used in logs and errors."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured well enough to call."""

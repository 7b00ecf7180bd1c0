"""Custom exception hierarchy for xlate.

All application exceptions inherit from :class:`XlateError`, which carries
an optional ``provider_name`` so error handlers can identify which external
collaborator (e.g. "sqlite_store", "google_cloud", "google_public") caused
the failure.

    XlateError  (base -- catch-all for any xlate error)
    +-- ConfigurationError       (startup / invalid settings)
    +-- StoreError               (durable key-value store read or write)
    +-- ProviderUnavailableError (translation provider not configured)
    +-- TranslationError         (outbound translation call failed)

None of these ever reach a ``translate()`` caller: the engine degrades every
failure to an empty translation.  They exist so the layers *below* the
engine can report failures precisely and the layers that own the
degradation policy can catch exactly what they expect.
"""


class XlateError(Exception):
    """Base exception for all xlate errors.

    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[sqlite_store] database is locked``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


class ConfigurationError(XlateError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External collaborator errors
# ---------------------------------------------------------------------------

class StoreError(XlateError):
    """Raised when the durable key-value store cannot be read or written.

    The cache manager treats a failed read as an empty store and a failed
    write as "try again on the next flush".
    """

    def __init__(
        self,
        message: str = "Durable store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderUnavailableError(XlateError):
    """Raised when a translation provider is selected but cannot be used."""

    def __init__(
        self,
        message: str = "Translation provider is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class TranslationError(XlateError):
    """Raised when an outbound translation call fails or returns garbage."""

    def __init__(
        self,
        message: str = "Translation call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)

"""Public Google Translate (``translate_a/single``) provider.

No API key.  One ``GET`` per batch with ``client=gtx``, ``sl=auto``,
``dt=t``, the target as ``tl`` and one ``q`` per source text.

The body is an untyped JSON array whose first element carries the
translation.  Its shape depends on how many texts were sent:

Single text -- a flat list of segments, one per sentence::

    [[["Hello. ", "שלום. ", null, null, 10], ["How are you?", ...]], null, "iw", ...]

Several texts -- one segment list per input, in input order::

    [[[["Hello", "שלום", ...]], [["World", "עולם", ...]]], null, ...]

Each segment starts with its translated string; an input's translation is
the concatenation of its own segments.  Some batched responses collapse a
one-segment input down to the bare segment; that form is accepted too.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from xlate.interfaces.translation_provider import ITranslationProvider
from xlate.utils.errors import TranslationError

logger = structlog.get_logger(logger_name=__name__)

_PUBLIC_ENDPOINT = "https://translate.googleapis.com/translate_a/single"


def _is_segment(node: Any) -> bool:
    """A segment is a list whose first element is the translated string (or null)."""
    return isinstance(node, list) and bool(node) and (node[0] is None or isinstance(node[0], str))


def _is_segment_list(node: Any) -> bool:
    return isinstance(node, list) and bool(node) and all(_is_segment(s) for s in node)


def _join_segments(segments: list[Any]) -> str:
    return "".join(seg[0] for seg in segments if isinstance(seg[0], str))


def parse_public_response(payload: Any, expected: int) -> list[str]:
    """Map a ``translate_a/single`` body back onto *expected* inputs.

    Raises :class:`TranslationError` when the body cannot be matched to the
    inputs one-to-one; segments are never shared between inputs.
    """
    if not isinstance(payload, list) or not payload or not isinstance(payload[0], list):
        raise TranslationError(
            message="Response is not a list with a translation body",
            provider_name="google_public",
        )
    body: list[Any] = payload[0]

    if expected == 1:
        if _is_segment_list(body):
            return [_join_segments(body)]
        if len(body) == 1 and _is_segment_list(body[0]):
            return [_join_segments(body[0])]
        raise TranslationError(
            message="Unrecognised single-text response shape",
            provider_name="google_public",
        )

    if len(body) != expected:
        raise TranslationError(
            message=f"Expected {expected} translations, got {len(body)}",
            provider_name="google_public",
        )

    results: list[str] = []
    for index, node in enumerate(body):
        if _is_segment_list(node):
            results.append(_join_segments(node))
        elif _is_segment(node):
            results.append(node[0] or "")
        else:
            raise TranslationError(
                message=f"Unrecognised shape for item {index}",
                provider_name="google_public",
            )
    return results


class PublicTranslationProvider(ITranslationProvider):
    """Batch translation through the keyless public endpoint.

    Parameters
    ----------
    http_client:
        Shared ``httpx.AsyncClient``.
    endpoint:
        Override for the ``translate_a/single`` URL.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        endpoint: str = _PUBLIC_ENDPOINT,
    ) -> None:
        self._client = http_client
        self._endpoint = endpoint

    async def translate(self, texts: list[str], target: str) -> list[str]:
        """Translate *texts* in one request; ``[]`` on any failure."""
        if not texts:
            return []

        params: list[tuple[str, str]] = [
            ("client", "gtx"),
            ("sl", "auto"),
            ("dt", "t"),
            ("tl", target),
        ]
        params.extend(("q", text) for text in texts)

        try:
            response = await self._client.get(self._endpoint, params=params)
            if not response.is_success:
                raise TranslationError(
                    message=f"HTTP {response.status_code}",
                    provider_name=self.get_provider_name(),
                )
            results = parse_public_response(response.json(), expected=len(texts))
        except (httpx.HTTPError, ValueError, TranslationError) as exc:
            logger.warning(
                "public_translate_failed",
                target=target,
                batch_size=len(texts),
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return []

        logger.debug("public_translate_ok", target=target, batch_size=len(texts))
        return results

    def get_provider_name(self) -> str:
        return "google_public"

    def is_available(self) -> bool:
        return True

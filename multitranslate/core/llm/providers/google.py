"""
Google Translate (unofficial gtx endpoint) provider.

The endpoint answers a GET with a nested array whose first element is a list
of ``[translated, original, ...]`` segments.
"""

from typing import Any, Optional

import httpx

from ..base import TranslationProvider
from multitranslate.config import GOOGLE_TRANSLATE_ENDPOINT, REQUEST_TIMEOUT, SOURCE_LANGUAGE_CODE
from multitranslate.core.cancellation import CancellationToken
from multitranslate.core.exceptions import MalformedResponseError
from multitranslate.languages import Language


def parse_google_response(payload: Any, provider: str = "google") -> str:
    """Extract the translation from a gtx response.

    Raises:
        MalformedResponseError: If the payload does not have the expected
            shape or contains no translated text
    """
    if not isinstance(payload, list) or not payload:
        raise MalformedResponseError(
            "Google response is not a non-empty array",
            provider=provider, content_preview=repr(payload),
        )

    segments = payload[0]
    if not isinstance(segments, list) or not segments:
        raise MalformedResponseError(
            "Google response has no translation segments",
            provider=provider, content_preview=repr(payload),
        )

    parts = []
    for segment in segments:
        if not isinstance(segment, list) or not segment:
            raise MalformedResponseError(
                "Google translation segment is not an array",
                provider=provider, content_preview=repr(segment),
            )
        translated = segment[0]
        if translated is None:
            continue
        if not isinstance(translated, str):
            raise MalformedResponseError(
                "Google translation segment does not start with a string",
                provider=provider, content_preview=repr(segment),
            )
        parts.append(translated)

    text = "".join(parts).strip()
    if not text:
        raise MalformedResponseError("Empty translation in Google response", provider=provider)
    return text


class GoogleTranslateProvider(TranslationProvider):
    """Lexical translation through translate.googleapis.com"""

    name = "google"

    def __init__(self, endpoint: str = GOOGLE_TRANSLATE_ENDPOINT,
                 source_language: str = SOURCE_LANGUAGE_CODE,
                 timeout: float = REQUEST_TIMEOUT,
                 client: Optional[httpx.AsyncClient] = None):
        super().__init__(timeout=timeout, client=client)
        self.endpoint = endpoint
        self.source_language = source_language

    async def translate_chunk(self, chunk: str, language: Language,
                              cancel_token: Optional[CancellationToken] = None) -> str:
        params = {
            "client": "gtx",
            "sl": self.source_language,
            "tl": language.google_code,
            "dt": "t",
            "q": chunk,
        }
        response = await self._send("GET", self.endpoint, cancel_token=cancel_token, params=params)
        return parse_google_response(self._parse_json(response), provider=self.name)

    def __repr__(self) -> str:
        return f"GoogleTranslateProvider(endpoint={self.endpoint!r})"

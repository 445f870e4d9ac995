"""
Base class for translation providers.

This module defines the abstract base class every provider implements, plus
the HTTP status classification shared by all of them.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
import json

import httpx

from multitranslate.config import REQUEST_TIMEOUT
from multitranslate.languages import Language
from multitranslate.core.cancellation import CancellationToken
from multitranslate.core.exceptions import (
    AccessError,
    MalformedResponseError,
    NetworkError,
    ProviderError,
    RateLimitError,
)


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def raise_for_status(response: httpx.Response, provider: str) -> None:
    """Classify a non-2xx response into a typed provider error.

    Raises:
        RateLimitError: HTTP 429
        AccessError: HTTP 401 or 403
        ProviderError: Any other non-2xx status
    """
    if response.is_success:
        return

    status_code = response.status_code
    body = response.text[:500] if response.text else ""

    if status_code == 429:
        raise RateLimitError(
            f"{provider} rate limit exceeded (429)",
            provider=provider,
            retry_after=_parse_retry_after(response.headers.get("Retry-After")),
        )
    if status_code in (401, 403):
        raise AccessError(
            f"{provider} rejected the request ({status_code}): check API key or access",
            provider=provider,
            status_code=status_code,
        )
    raise ProviderError(
        f"{provider} API error: {status_code} - {body}".rstrip(" -"),
        provider=provider,
        status_code=status_code,
    )


class TranslationProvider(ABC):
    """Abstract base class for translation providers"""

    name = "provider"

    # Providers that run their own retries (e.g. fallback chains) set this so
    # the orchestrator does not wrap them in a second retry loop. Such providers
    # accept an ``on_retry(error, attempt)`` keyword in translate_chunk.
    manages_retries = False

    def __init__(self, timeout: float = REQUEST_TIMEOUT, client: Optional[httpx.AsyncClient] = None):
        """
        Args:
            timeout: Request timeout in seconds
            client: Optional pre-built HTTP client (the provider will not close it)
        """
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create a persistent HTTP client with connection pooling"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                timeout=httpx.Timeout(self.timeout),
            )
            self._owns_client = True
        return self._client

    async def close(self):
        """Close the HTTP client if this provider created it"""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _send(self, method: str, url: str,
                    cancel_token: Optional[CancellationToken] = None,
                    **kwargs) -> httpx.Response:
        """Issue one request, mapping transport and status failures to typed errors."""
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        client = await self._get_client()
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise NetworkError(f"{self.name} request timed out: {e}", provider=self.name,
                               original_error=e) from e
        except httpx.DecodingError as e:
            raise MalformedResponseError(
                f"{self.name} returned a body that could not be decoded: {e}",
                provider=self.name,
            ) from e
        except httpx.TransportError as e:
            raise NetworkError(f"{self.name} connection failed: {e}", provider=self.name,
                               original_error=e) from e
        except httpx.RequestError as e:
            # Redirect loops, unsupported URLs and other request-level failures
            raise NetworkError(f"{self.name} request failed: {e}", provider=self.name,
                               original_error=e) from e
        raise_for_status(response, self.name)
        return response

    def _parse_json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedResponseError(
                f"{self.name} returned a body that is not valid JSON: {e}",
                provider=self.name,
                content_preview=response.text,
            ) from e

    @abstractmethod
    async def translate_chunk(self, chunk: str, language: Language,
                              cancel_token: Optional[CancellationToken] = None) -> str:
        """
        Translate one chunk of English text.

        Args:
            chunk: Source text, already sized by the chunker
            language: Target language
            cancel_token: Optional cancellation token checked before sending

        Returns:
            Translated text (never empty)

        Raises:
            ProviderError: Or one of its subclasses, for every failure
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"

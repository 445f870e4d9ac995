"""
Exception hierarchy for the translation orchestrator.

Every failure a provider, the retry policy or the orchestrator can produce is
one of these types, so callers can tell an unusable input, a busy service,
a credential problem and a total outage apart.
"""

from typing import Optional, Dict, Any


class TranslationError(Exception):
    """Base exception for all translation-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context about the error
        recoverable: Whether retrying the same operation may succeed
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        recoverable: bool = False
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"{self.__class__.__name__}: {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base += f" (context: {context_str})"
        return base


class InputError(TranslationError):
    """Raised when the source text is blank. Detected before any request."""

    def __init__(self, message: str = "No text provided for translation",
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, recoverable=False)


class ConfigurationError(TranslationError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, recoverable=False)


# ============================================================================
# Provider errors
# ============================================================================

class ProviderError(TranslationError):
    """Raised when a translation provider call fails.

    Attributes:
        provider: Name of the provider that failed
        status_code: HTTP status code, when the failure came from a response
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        recoverable: bool = True
    ):
        ctx = context or {}
        if provider is not None:
            ctx['provider'] = provider
        if status_code is not None:
            ctx['status_code'] = status_code
        super().__init__(message, ctx, recoverable)
        self.provider = provider
        self.status_code = status_code


class RateLimitError(ProviderError):
    """Raised on HTTP 429. Recoverable by waiting and retrying."""

    user_message = "Translation service is busy, please try again shortly."

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        retry_after: Optional[float] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        ctx = context or {}
        if retry_after is not None:
            ctx['retry_after'] = retry_after
        super().__init__(message, provider, status_code=429, context=ctx)
        self.retry_after = retry_after


class AccessError(ProviderError):
    """Raised on HTTP 401/403.

    This is NOT recoverable without user intervention: the same credentials
    will be rejected again.
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, provider, status_code, context, recoverable=False)


class MalformedResponseError(ProviderError):
    """Raised when a response body does not match the provider's shape.

    Recoverable, since a truncated body is usually transient.
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        content_preview: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        ctx = context or {}
        if content_preview:
            ctx['content_preview'] = content_preview[:200]
        super().__init__(message, provider, context=ctx)


class NetworkError(ProviderError):
    """Raised on transport failures (DNS, connection reset, timeout)."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        ctx = context or {}
        if original_error is not None:
            ctx['original_error_type'] = type(original_error).__name__
        super().__init__(message, provider, context=ctx)
        self.original_error = original_error


# ============================================================================
# Orchestration errors
# ============================================================================

class AllLanguagesFailedError(TranslationError):
    """Raised when every requested language failed.

    Attributes:
        errors: Mapping of language key to its error message
    """

    def __init__(self, errors: Dict[str, str], labels: Optional[Dict[str, str]] = None):
        labels = labels or {}
        joined = "; ".join(
            f"{labels.get(key, key)}: {message}" for key, message in errors.items()
        )
        super().__init__(f"All translations failed. Errors: {joined}", recoverable=False)
        self.errors = dict(errors)

    def __str__(self) -> str:
        return self.message


class TranslationCancelledError(TranslationError):
    """Raised when a caller cancels an in-flight translation."""

    def __init__(self, message: str = "Translation cancelled",
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, recoverable=False)


def describe_error(error: BaseException) -> str:
    """Short message for per-language results and user display."""
    if isinstance(error, RateLimitError):
        return f"{error.user_message} ({error.message})"
    if isinstance(error, TranslationError):
        return error.message
    return str(error) or type(error).__name__

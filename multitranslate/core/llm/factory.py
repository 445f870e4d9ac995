"""
Provider factory.
"""
from typing import Optional

import httpx

from multitranslate.config import TranslationConfig
from multitranslate.core.events import EventBus
from multitranslate.core.exceptions import ConfigurationError
from multitranslate.core.rate_limiter import RateLimiter
from multitranslate.core.retry_manager import RetryConfig, RetryManager, RetryStrategy
from .base import TranslationProvider
from .providers.google import GoogleTranslateProvider
from .providers.openai import OpenAICompatibleProvider
from .providers.fallback import FallbackProvider


def build_retry_manager(config: TranslationConfig) -> RetryManager:
    """Retry manager matching the configured backoff profile."""
    return RetryManager(RetryConfig(
        max_retries=config.max_retries,
        base_delay=config.backoff_base,
        max_delay=config.backoff_max,
        jitter=config.backoff_jitter,
        strategy=RetryStrategy.from_name(config.backoff_strategy),
    ))


def _create_google(config: TranslationConfig, client: Optional[httpx.AsyncClient]) -> GoogleTranslateProvider:
    return GoogleTranslateProvider(
        endpoint=config.google_endpoint,
        source_language=config.source_language,
        timeout=config.timeout,
        client=client,
    )


def _create_openai(config: TranslationConfig, client: Optional[httpx.AsyncClient]) -> OpenAICompatibleProvider:
    if not config.openai_api_key:
        raise ConfigurationError(
            "OpenAI provider requires an API key. Set OPENAI_API_KEY or pass openai_api_key."
        )
    return OpenAICompatibleProvider(
        api_key=config.openai_api_key,
        api_endpoint=config.openai_endpoint,
        model=config.openai_model,
        timeout=config.timeout,
        client=client,
    )


def create_provider(config: TranslationConfig,
                    client: Optional[httpx.AsyncClient] = None,
                    event_bus: Optional[EventBus] = None) -> TranslationProvider:
    """Factory function to create translation providers"""
    provider_type = config.provider.lower()

    if provider_type == "google":
        return _create_google(config, client)
    elif provider_type == "openai":
        return _create_openai(config, client)
    elif provider_type == "google+openai":
        return FallbackProvider(
            primary=_create_google(config, client),
            secondary=_create_openai(config, client),
            retry_manager=build_retry_manager(config),
            event_bus=event_bus,
            secondary_rate_limiter=RateLimiter(config.rate_limit_interval),
        )
    else:
        raise ConfigurationError(f"Unknown provider type: {config.provider}")

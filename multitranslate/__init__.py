"""
multitranslate - translate English text into nine languages at once.

Quick start:

    import asyncio
    from multitranslate import translate_text

    result = asyncio.run(translate_text("Hello world"))
    print(result["spanish"])
"""
from multitranslate.core.orchestrator import (
    LatestResultTracker,
    PerLanguageResult,
    TranslationOrchestrator,
    TranslationRequest,
    TranslationResult,
    translate_text,
)
from multitranslate.core.exceptions import (
    AccessError,
    AllLanguagesFailedError,
    InputError,
    MalformedResponseError,
    NetworkError,
    ProviderError,
    RateLimitError,
    TranslationCancelledError,
    TranslationError,
)
from multitranslate.languages import LANGUAGE_KEYS, TARGET_LANGUAGES

__version__ = "1.0.0"

__all__ = [
    'translate_text',
    'TranslationOrchestrator',
    'TranslationRequest',
    'TranslationResult',
    'PerLanguageResult',
    'LatestResultTracker',
    'TranslationError',
    'InputError',
    'ProviderError',
    'RateLimitError',
    'AccessError',
    'MalformedResponseError',
    'NetworkError',
    'AllLanguagesFailedError',
    'TranslationCancelledError',
    'LANGUAGE_KEYS',
    'TARGET_LANGUAGES',
]

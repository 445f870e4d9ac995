"""
Translation Provider Implementations

Providers:
    - google: translate.googleapis.com (gtx, lexical translation)
    - openai: OpenAI-compatible chat completion APIs
    - fallback: primary provider with a secondary one on failure
"""
from .google import GoogleTranslateProvider, parse_google_response
from .openai import OpenAICompatibleProvider, parse_chat_completion
from .fallback import FallbackProvider

__all__ = [
    'GoogleTranslateProvider',
    'OpenAICompatibleProvider',
    'FallbackProvider',
    'parse_google_response',
    'parse_chat_completion',
]

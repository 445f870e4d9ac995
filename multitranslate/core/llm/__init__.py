"""
Translation provider layer: HTTP clients for the external services.
"""
from .base import TranslationProvider, raise_for_status
from .factory import create_provider, build_retry_manager

__all__ = ['TranslationProvider', 'raise_for_status', 'create_provider', 'build_retry_manager']

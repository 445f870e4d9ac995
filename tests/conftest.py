"""
Pytest configuration and fixtures for all tests.

This file is automatically loaded by pytest and provides common fixtures
and configuration for all test modules.
"""

import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Import pytest for fixtures
import pytest

from multitranslate.config import TranslationConfig
from multitranslate.core.cancellation import CancellationToken
from multitranslate.core.events import EventBus
from multitranslate.core.exceptions import ProviderError
from multitranslate.core.llm.base import TranslationProvider
from multitranslate.languages import Language


class FakeProvider(TranslationProvider):
    """In-memory provider that records every call.

    Translates by prefixing the language code: "Hello" -> "[es] Hello".
    Languages listed in ``fail_codes`` always raise ``error_factory()``;
    ``failures_before_success`` makes each chunk fail that many times first.
    """

    name = "fake"

    def __init__(self, fail_codes=(), error_factory=None, failures_before_success: int = 0):
        super().__init__(timeout=1)
        self.fail_codes = set(fail_codes)
        self.error_factory = error_factory or (
            lambda: ProviderError("service unavailable", provider="fake", status_code=503)
        )
        self.failures_before_success = failures_before_success
        self.calls: List[Tuple[str, str]] = []
        self._attempts: Dict[Tuple[str, str], int] = {}

    async def translate_chunk(self, chunk: str, language: Language,
                              cancel_token: Optional[CancellationToken] = None) -> str:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        self.calls.append((language.code, chunk))
        if language.code in self.fail_codes:
            raise self.error_factory()

        key = (language.code, chunk)
        self._attempts[key] = self._attempts.get(key, 0) + 1
        if self._attempts[key] <= self.failures_before_success:
            raise self.error_factory()
        return f"[{language.code}] {chunk}"

    def calls_for(self, code: str) -> List[str]:
        return [chunk for call_code, chunk in self.calls if call_code == code]


@pytest.fixture
def fast_config():
    """Config with every delay disabled so tests run instantly."""
    return TranslationConfig(
        provider="google",
        chunk_max_size=2000,
        rate_limit_interval_ms=0,
        max_retries=1,
        backoff_base_ms=0,
        backoff_jitter=0.0,
        fan_out_mode="parallel",
        language_delay_ms=0,
        openai_api_key="",
    )


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def event_bus():
    """Event bus with history recording enabled."""
    bus = EventBus()
    bus.enable_history()
    return bus


@pytest.fixture
def provider_factory():
    """Build FakeProvider instances with custom failure behaviour."""
    return FakeProvider

"""
Unit tests for TranslationOrchestrator and the translate_text entry point.
"""

import asyncio
import dataclasses
import logging

import httpx
import pytest

from multitranslate.core.cancellation import CancellationToken
from multitranslate.core.events import EventType
from multitranslate.core.exceptions import (
    AccessError,
    AllLanguagesFailedError,
    InputError,
    TranslationCancelledError,
)
from multitranslate.core.llm import build_retry_manager
from multitranslate.core.llm.base import TranslationProvider
from multitranslate.core.llm.providers import FallbackProvider
from multitranslate.core.orchestrator import (
    LanguageStatus,
    TranslationOrchestrator,
    TranslationRequest,
    TranslationResult,
    translate_text,
)
from multitranslate.languages import LANGUAGE_KEYS, TARGET_LANGUAGES, SPANISH

ALL_CODES = [lang.code for lang in TARGET_LANGUAGES]


class SlowProvider(TranslationProvider):
    """Tracks how many chunk requests are in flight at once."""

    name = "slow"

    def __init__(self):
        super().__init__(timeout=1)
        self.active = 0
        self.max_active = 0

    async def translate_chunk(self, chunk, language, cancel_token=None):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await asyncio.sleep(0.01)
        self.active -= 1
        return f"<{language.code}>{chunk}"


class StaggeredProvider(TranslationProvider):
    """Later chunks resolve faster, so overlapping calls would finish out of order."""

    name = "staggered"

    def __init__(self, chunks):
        super().__init__(timeout=1)
        self.delays = {chunk: 0.005 * (len(chunks) - i) for i, chunk in enumerate(chunks)}
        self.in_flight = {}
        self.overlaps = []
        self.timeline = {}

    async def translate_chunk(self, chunk, language, cancel_token=None):
        key = language.key
        if self.in_flight.get(key):
            self.overlaps.append((key, chunk))
        self.in_flight[key] = True
        self.timeline.setdefault(key, []).append(("start", chunk))
        await asyncio.sleep(self.delays[chunk])
        self.timeline[key].append(("end", chunk))
        self.in_flight[key] = False
        return chunk.lower()


class CancellingProvider(TranslationProvider):
    """Cancels the shared token from inside the first request."""

    name = "cancelling"

    def __init__(self, token):
        super().__init__(timeout=1)
        self.token = token
        self.calls = 0

    async def translate_chunk(self, chunk, language, cancel_token=None):
        self.calls += 1
        self.token.cancel("user pressed stop")
        return chunk


class TestTranslateText:
    """Test fan-out, aggregation and failure policy."""

    @pytest.mark.asyncio
    async def test_all_languages_succeed(self, fake_provider, fast_config):
        orchestrator = TranslationOrchestrator(fake_provider, fast_config)
        result = await orchestrator.translate_text("Hello world")

        assert isinstance(result, TranslationResult)
        assert list(result.keys()) == list(LANGUAGE_KEYS)
        assert result["spanish"] == "[es] Hello world"
        assert result["chinese"] == "[zh] Hello world"
        assert not result.is_partial
        assert len(fake_provider.calls) == 9

    @pytest.mark.asyncio
    async def test_partial_failure_maps_failed_languages_to_empty(self, provider_factory, fast_config):
        provider = provider_factory(fail_codes={"es", "fr"})
        orchestrator = TranslationOrchestrator(provider, fast_config)

        result = await orchestrator.translate_text("Hello")

        assert result["spanish"] == ""
        assert result["french"] == ""
        for key in LANGUAGE_KEYS[2:]:
            assert result[key].endswith("Hello")
        assert set(result.failed) == {"spanish", "french"}
        assert result.failed["spanish"] == "service unavailable"
        assert result.is_partial

    @pytest.mark.asyncio
    async def test_partial_failure_is_logged_and_published(self, provider_factory, fast_config,
                                                           event_bus, caplog):
        provider = provider_factory(fail_codes={"ja"})
        orchestrator = TranslationOrchestrator(provider, fast_config, event_bus=event_bus)

        with caplog.at_level(logging.WARNING, logger="multitranslate.core.orchestrator"):
            await orchestrator.translate_text("Hello")

        partial = event_bus.get_events_by_type(EventType.TRANSLATION_PARTIAL)
        assert len(partial) == 1
        assert list(partial[0].data["failed"]) == ["japanese"]
        assert any("Japanese" in r.getMessage() for r in caplog.records
                   if r.levelno == logging.WARNING)

    @pytest.mark.asyncio
    async def test_total_failure_raises_with_every_language(self, provider_factory, fast_config):
        provider = provider_factory(fail_codes=set(ALL_CODES))
        orchestrator = TranslationOrchestrator(provider, fast_config)

        with pytest.raises(AllLanguagesFailedError) as exc_info:
            await orchestrator.translate_text("Hello")

        message = str(exc_info.value)
        assert message.startswith("All translations failed. Errors: ")
        for language in TARGET_LANGUAGES:
            assert language.name in message
        assert set(exc_info.value.errors) == set(LANGUAGE_KEYS)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   ", "\n\t  \n"])
    async def test_blank_input_rejected_without_requests(self, fake_provider, fast_config, text):
        orchestrator = TranslationOrchestrator(fake_provider, fast_config)
        with pytest.raises(InputError):
            await orchestrator.translate_text(text)
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_language_subset(self, fake_provider, fast_config):
        orchestrator = TranslationOrchestrator(fake_provider, fast_config)
        result = await orchestrator.translate_text("Hi", languages=["ja", "spanish"])

        assert result.succeeded == ["spanish", "japanese"]
        assert result["french"] == ""
        assert len(result) == 9
        assert {code for code, _ in fake_provider.calls} == {"es", "ja"}

    @pytest.mark.asyncio
    async def test_unknown_result_key_raises(self, fake_provider, fast_config):
        result = await TranslationOrchestrator(fake_provider, fast_config).translate_text("Hi")
        with pytest.raises(KeyError):
            result["klingon"]

    @pytest.mark.asyncio
    async def test_to_dict_has_all_nine_keys(self, provider_factory, fast_config):
        provider = provider_factory(fail_codes={"ar"})
        result = await TranslationOrchestrator(provider, fast_config).translate_text("Hi")
        data = result.to_dict()
        assert list(data) == list(LANGUAGE_KEYS)
        assert data["arabic"] == ""


class TestTranslationRequest:
    """Test request validation and language resolution."""

    def test_defaults_to_all_languages_in_order(self):
        request = TranslationRequest.create("Hello")
        assert request.source_text == "Hello"
        assert request.target_languages == TARGET_LANGUAGES

    def test_selection_resolved_in_enumeration_order(self):
        request = TranslationRequest.create("Hello", ["ru", "es", "spanish"])
        assert [lang.key for lang in request.target_languages] == ["spanish", "russian"]

    @pytest.mark.parametrize("text", [None, "", "  \n"])
    def test_blank_text_rejected(self, text):
        with pytest.raises(InputError):
            TranslationRequest.create(text)

    def test_empty_selection_rejected(self):
        with pytest.raises(InputError):
            TranslationRequest.create("Hello", [])

    def test_request_is_immutable(self):
        request = TranslationRequest.create("Hello")
        with pytest.raises(dataclasses.FrozenInstanceError):
            request.source_text = "Bye"

    @pytest.mark.asyncio
    async def test_translate_request(self, fake_provider, fast_config):
        request = TranslationRequest.create("Hi", ["fr"])
        result = await TranslationOrchestrator(fake_provider, fast_config).translate_request(request)

        assert result.succeeded == ["french"]
        assert result["french"] == "[fr] Hi"
        assert fake_provider.calls == [("fr", "Hi")]


class TestChunkedTranslation:
    """Test per-language chunk ordering and reassembly."""

    @pytest.mark.asyncio
    async def test_chunks_sent_in_order_and_rejoined(self, fake_provider, fast_config):
        config = dataclasses.replace(fast_config, chunk_max_size=12)
        text = "First line.\nSecond line.\nThird line."
        orchestrator = TranslationOrchestrator(fake_provider, config)

        result = await orchestrator.translate_text(text, languages=["es"])

        assert fake_provider.calls_for("es") == ["First line.", "Second line.", "Third line."]
        assert result["spanish"] == "[es] First line.\n[es] Second line.\n[es] Third line."

    @pytest.mark.asyncio
    async def test_chunk_waits_for_previous_chunk_under_parallel_fan_out(self, fast_config):
        """Chunk i is only sent after chunk i-1 resolved, in every language."""
        chunks = ["AA BB", "CC DD", "EE FF", "GG"]
        provider = StaggeredProvider(chunks)
        config = dataclasses.replace(fast_config, chunk_max_size=5, fan_out_mode="parallel")

        result = await TranslationOrchestrator(provider, config).translate_text("\n".join(chunks))

        assert provider.overlaps == []
        expected = []
        for chunk in chunks:
            expected += [("start", chunk), ("end", chunk)]
        for key in LANGUAGE_KEYS:
            assert provider.timeline[key] == expected
            assert result[key] == "aa bb\ncc dd\nee ff\ngg"

    @pytest.mark.asyncio
    async def test_chunk_failure_fails_only_that_language(self, provider_factory, fast_config):
        provider = provider_factory(fail_codes={"ru"})
        config = dataclasses.replace(fast_config, chunk_max_size=10)
        orchestrator = TranslationOrchestrator(provider, config)

        result = await orchestrator.translate_text("aaaa bbbb\ncccc dddd")

        assert result["russian"] == ""
        # The first chunk exhausted its retries, the second was never sent
        assert provider.calls_for("ru") == ["aaaa bbbb", "aaaa bbbb"]
        assert result["ukrainian"] == "[uk] aaaa bbbb\n[uk] cccc dddd"

    @pytest.mark.asyncio
    async def test_progress_events_per_chunk(self, fake_provider, fast_config, event_bus):
        config = dataclasses.replace(fast_config, chunk_max_size=5)
        orchestrator = TranslationOrchestrator(fake_provider, config, event_bus=event_bus)

        await orchestrator.translate_text("one\ntwo\nthree", languages=["es"])

        progress = [e.data["progress"] for e in event_bus.get_events_by_type(EventType.CHUNK_TRANSLATED)]
        assert progress == pytest.approx([1 / 3, 2 / 3, 1.0])

    @pytest.mark.asyncio
    async def test_language_status_transitions(self, fake_provider, fast_config, event_bus):
        orchestrator = TranslationOrchestrator(fake_provider, fast_config, event_bus=event_bus)
        await orchestrator.translate_text("Hi", languages=["es"])

        statuses = [e.data["status"] for e in event_bus.get_events_by_type(EventType.LANGUAGE_STATUS_CHANGED)]
        assert statuses == [
            LanguageStatus.CHUNKING.value,
            LanguageStatus.TRANSLATING.value,
            LanguageStatus.REASSEMBLING.value,
            LanguageStatus.DONE.value,
        ]

    @pytest.mark.asyncio
    async def test_failed_language_status(self, provider_factory, fast_config, event_bus):
        provider = provider_factory(fail_codes={"es"})
        orchestrator = TranslationOrchestrator(provider, fast_config, event_bus=event_bus)
        await orchestrator.translate_text("Hi", languages=["es", "fr"])

        failed = event_bus.get_events_by_type(EventType.LANGUAGE_FAILED)
        assert [e.data["language"] for e in failed] == ["spanish"]

    @pytest.mark.asyncio
    async def test_translate_language_directly(self, fake_provider, fast_config):
        orchestrator = TranslationOrchestrator(fake_provider, fast_config)
        assert await orchestrator.translate_language("Hi", SPANISH) == "[es] Hi"


class TestRetries:
    """Test retry integration."""

    @pytest.mark.asyncio
    async def test_transient_failure_retried_and_reported(self, provider_factory, fast_config, event_bus):
        provider = provider_factory(failures_before_success=1)
        orchestrator = TranslationOrchestrator(provider, fast_config, event_bus=event_bus)

        result = await orchestrator.translate_text("Hello")

        assert not result.is_partial
        retries = event_bus.get_events_by_type(EventType.CHUNK_RETRY)
        assert len(retries) == 9
        assert all(e.data["attempt"] == 1 for e in retries)

    @pytest.mark.asyncio
    async def test_fallback_chain_retries_are_reported(self, provider_factory, fast_config, event_bus):
        primary = provider_factory(failures_before_success=1)
        chain = FallbackProvider(primary, provider_factory(), retry_manager=build_retry_manager(fast_config))
        orchestrator = TranslationOrchestrator(chain, fast_config, event_bus=event_bus)

        await orchestrator.translate_text("Hello", languages=["es"])

        retries = event_bus.get_events_by_type(EventType.CHUNK_RETRY)
        assert [(e.data["language"], e.data["chunk_index"], e.data["attempt"]) for e in retries] == [
            ("spanish", 0, 1),
        ]

    @pytest.mark.asyncio
    async def test_retry_budget_is_max_retries_plus_one(self, provider_factory, fast_config):
        provider = provider_factory(fail_codes={"tr"})
        config = dataclasses.replace(fast_config, max_retries=3)
        await TranslationOrchestrator(provider, config).translate_text("Hello")
        assert len(provider.calls_for("tr")) == 4

    @pytest.mark.asyncio
    async def test_access_error_not_retried(self, provider_factory, fast_config):
        provider = provider_factory(
            fail_codes={"pt"},
            error_factory=lambda: AccessError("denied", provider="fake", status_code=403),
        )
        config = dataclasses.replace(fast_config, max_retries=3)
        result = await TranslationOrchestrator(provider, config).translate_text("Hello")
        assert len(provider.calls_for("pt")) == 1
        assert result["portuguese"] == ""


class TestFanOut:
    """Test parallel and sequential fan-out."""

    @pytest.mark.asyncio
    async def test_parallel_languages_overlap(self, fast_config):
        provider = SlowProvider()
        result = await TranslationOrchestrator(provider, fast_config).translate_text("Hello")
        assert provider.max_active > 1
        assert result["arabic"] == "<ar>Hello"

    @pytest.mark.asyncio
    async def test_sequential_runs_one_language_at_a_time(self, fast_config):
        provider = SlowProvider()
        config = dataclasses.replace(fast_config, fan_out_mode="sequential")
        await TranslationOrchestrator(provider, config).translate_text("Hello")
        assert provider.max_active == 1

    @pytest.mark.asyncio
    async def test_sequential_order_and_delay(self, fake_provider, fast_config):
        delays = []

        async def record_sleep(seconds):
            delays.append(seconds)

        config = dataclasses.replace(fast_config, fan_out_mode="sequential", language_delay_ms=300)
        orchestrator = TranslationOrchestrator(fake_provider, config, sleep=record_sleep)
        await orchestrator.translate_text("Hello")

        assert [code for code, _ in fake_provider.calls] == ALL_CODES
        assert delays == [0.3] * 8

    @pytest.mark.asyncio
    async def test_results_keyed_in_enumeration_order(self, fast_config):
        result = await TranslationOrchestrator(SlowProvider(), fast_config).translate_text("Hello")
        assert list(result.results) == list(LANGUAGE_KEYS)


class TestCancellation:
    """Test cooperative cancellation."""

    @pytest.mark.asyncio
    async def test_cancel_before_start(self, fake_provider, fast_config, event_bus):
        token = CancellationToken()
        token.cancel()
        orchestrator = TranslationOrchestrator(fake_provider, fast_config, event_bus=event_bus)

        with pytest.raises(TranslationCancelledError):
            await orchestrator.translate_text("Hello", cancel_token=token)

        assert fake_provider.calls == []
        failed = event_bus.get_events_by_type(EventType.TRANSLATION_FAILED)
        assert failed[-1].data["cancelled"] is True

    @pytest.mark.asyncio
    async def test_cancel_mid_flight_stops_remaining_work(self, fast_config):
        token = CancellationToken()
        provider = CancellingProvider(token)
        config = dataclasses.replace(fast_config, fan_out_mode="sequential")

        with pytest.raises(TranslationCancelledError):
            await TranslationOrchestrator(provider, config).translate_text("Hello", cancel_token=token)

        assert provider.calls == 1


class TestModuleTranslateText:
    """Test the module-level convenience function."""

    @pytest.mark.asyncio
    async def test_blank_input_checked_before_provider_setup(self, fast_config):
        config = dataclasses.replace(fast_config, provider="openai", openai_api_key="")
        with pytest.raises(InputError):
            await translate_text("  ", config=config)

    @pytest.mark.asyncio
    async def test_uses_given_provider_without_closing_it(self, fake_provider, fast_config):
        closed = []

        async def fake_close():
            closed.append(True)

        fake_provider.close = fake_close
        result = await translate_text("Hello", config=fast_config, provider=fake_provider)

        assert result["turkish"] == "[tr] Hello"
        assert closed == []

    @pytest.mark.asyncio
    async def test_end_to_end_with_google_over_mock_transport(self, fast_config):
        def handler(request):
            target = request.url.params["tl"]
            if target == "ru":
                return httpx.Response(503, text="unavailable")
            return httpx.Response(200, json=[[[f"{target}:{request.url.params['q']}", "x"]]])

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            result = await translate_text("Good morning", config=fast_config, client=client)
            assert not client.is_closed

        assert result["spanish"] == "es:Good morning"
        assert result["chinese"] == "zh-CN:Good morning"
        assert result["russian"] == ""
        assert "503" in result.failed["russian"]

"""
Translation orchestrator.

Drives one source text through chunking, rate-limited and retried provider
calls, and reassembly, for each of the nine target languages.

Per language:  PENDING -> CHUNKING -> TRANSLATING -> REASSEMBLING -> DONE | FAILED
Chunks of one language are always translated strictly in order. Languages run
either all at once (parallel fan-out, sharing one rate limiter) or one after
another with a fixed delay (sequential).

Failure policy: a failed language maps to "" and the rest still succeed; only
when every language fails does translate_text raise AllLanguagesFailedError.
"""

import asyncio
import functools
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

import httpx

from multitranslate.config import TranslationConfig
from multitranslate.languages import LANGUAGE_KEYS, Language, resolve_languages
from .cancellation import CancellationToken
from .chunking import TextChunk, ChunkStatus, create_chunks, join_chunks
from .events import Event, EventBus, EventType, create_chunk_translated_event
from .exceptions import (
    AllLanguagesFailedError,
    InputError,
    TranslationCancelledError,
    describe_error,
)
from .llm import TranslationProvider, build_retry_manager, create_provider
from .rate_limiter import RateLimiter
from .retry_manager import RetryManager

logger = logging.getLogger(__name__)


class LanguageStatus(Enum):
    PENDING = "pending"
    CHUNKING = "chunking"
    TRANSLATING = "translating"
    REASSEMBLING = "reassembling"
    DONE = "done"
    FAILED = "failed"


class FanOutMode(Enum):
    PARALLEL = "parallel"
    SEQUENTIAL = "sequential"


@dataclass(frozen=True)
class TranslationRequest:
    """One source text and the languages it should be translated into."""
    source_text: str
    target_languages: Tuple[Language, ...]

    @classmethod
    def create(cls, source_text: str,
               languages: Optional[Iterable[str]] = None) -> 'TranslationRequest':
        """Validate input and resolve ``languages`` (keys or codes, default all nine).

        Raises:
            InputError: If the text is blank or no language is selected
        """
        if source_text is None or not source_text.strip():
            raise InputError()
        targets = tuple(resolve_languages(languages))
        if not targets:
            raise InputError("No target languages selected")
        return cls(source_text=source_text, target_languages=targets)


@dataclass
class LanguagePlan:
    """Working state for one language during one translate_text call."""
    language: Language
    chunks: List[TextChunk] = field(default_factory=list)
    status: LanguageStatus = LanguageStatus.PENDING
    current_chunk: int = 0

    @property
    def total_chunks(self) -> int:
        return len(self.chunks)


@dataclass
class PerLanguageResult:
    """Outcome for one language. ``error`` is set only on failure."""
    key: str
    code: str
    text: str = ""
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class TranslationResult(Mapping):
    """Mapping of all nine language keys to translated text.

    Languages that failed or were not requested map to "".
    """
    results: Dict[str, PerLanguageResult] = field(default_factory=dict)
    duration: float = 0.0

    def __getitem__(self, key: str) -> str:
        if key not in LANGUAGE_KEYS:
            raise KeyError(key)
        result = self.results.get(key)
        return result.text if result is not None else ""

    def __iter__(self) -> Iterator[str]:
        return iter(LANGUAGE_KEYS)

    def __len__(self) -> int:
        return len(LANGUAGE_KEYS)

    @property
    def failed(self) -> Dict[str, str]:
        """Language key -> error message for every failed language."""
        return {k: r.error for k, r in self.results.items() if not r.succeeded}

    @property
    def succeeded(self) -> List[str]:
        return [k for k, r in self.results.items() if r.succeeded]

    @property
    def is_partial(self) -> bool:
        return bool(self.failed)

    def to_dict(self) -> Dict[str, str]:
        return {key: self[key] for key in LANGUAGE_KEYS}


class TranslationOrchestrator:
    """Runs per-language translation and aggregates the results."""

    def __init__(self,
                 provider: TranslationProvider,
                 config: Optional[TranslationConfig] = None,
                 event_bus: Optional[EventBus] = None,
                 rate_limiter: Optional[RateLimiter] = None,
                 retry_manager: Optional[RetryManager] = None,
                 sleep: Optional[Callable[[float], Awaitable[None]]] = None):
        """
        Args:
            provider: Translation provider shared by every language
            config: Orchestrator configuration (defaults from the environment)
            event_bus: Optional sink for progress/debug events
            rate_limiter: Limiter shared by all languages for this provider
            retry_manager: Retry policy around each chunk call
            sleep: Coroutine used for the inter-language delay
        """
        self.provider = provider
        self.config = config or TranslationConfig()
        self.event_bus = event_bus or EventBus()
        self.rate_limiter = rate_limiter or RateLimiter(self.config.rate_limit_interval)
        self.retry_manager = retry_manager or build_retry_manager(self.config)
        self.fan_out_mode = FanOutMode(self.config.fan_out_mode)
        self._sleep = sleep

    def _emit(self, event_type: EventType, **data) -> None:
        self.event_bus.publish(Event(type=event_type, data=data, source="orchestrator"))

    def _set_status(self, plan: LanguagePlan, status: LanguageStatus) -> None:
        plan.status = status
        self._emit(
            EventType.LANGUAGE_STATUS_CHANGED,
            language=plan.language.key,
            status=status.value,
            current_chunk=plan.current_chunk,
            total_chunks=plan.total_chunks,
        )

    async def _translate_chunk(self, chunk: TextChunk, plan: LanguagePlan,
                               cancel_token: Optional[CancellationToken]) -> str:
        language = plan.language
        await self.rate_limiter.wait(cancel_token)

        def on_retry(error: Exception, attempt: int) -> None:
            self._emit(
                EventType.CHUNK_RETRY,
                language=language.key,
                chunk_index=chunk.index,
                attempt=attempt,
                error=describe_error(error),
            )

        call = functools.partial(self.provider.translate_chunk, cancel_token=cancel_token)
        if self.provider.manages_retries:
            return await call(chunk.text, language, on_retry=on_retry)

        return await self.retry_manager.execute_with_retry(
            call,
            chunk.text,
            language,
            operation_id=f"{language.key}[{chunk.index}]",
            on_retry=on_retry,
            cancel_token=cancel_token,
        )

    async def translate_language(self, text: str, language: Language,
                                 cancel_token: Optional[CancellationToken] = None) -> str:
        """Translate ``text`` into one language.

        Chunks are sent one at a time in order; the first chunk that exhausts
        its retries fails the whole language and its error propagates.
        """
        plan = LanguagePlan(language=language)
        self._emit(EventType.LANGUAGE_STARTED, language=language.key, name=language.name)

        try:
            self._set_status(plan, LanguageStatus.CHUNKING)
            plan.chunks = create_chunks(text, self.config.chunk_max_size)

            self._set_status(plan, LanguageStatus.TRANSLATING)
            translated: List[str] = []
            for chunk in plan.chunks:
                plan.current_chunk = chunk.index
                self._emit(
                    EventType.CHUNK_STARTED,
                    language=language.key,
                    chunk_index=chunk.index,
                    total_chunks=plan.total_chunks,
                )
                try:
                    translated.append(await self._translate_chunk(chunk, plan, cancel_token))
                except Exception:
                    chunk.status = ChunkStatus.FAILED
                    raise
                chunk.status = ChunkStatus.TRANSLATED
                self.event_bus.publish(create_chunk_translated_event(
                    language.key, chunk.index, plan.total_chunks
                ))

            self._set_status(plan, LanguageStatus.REASSEMBLING)
            output = join_chunks(translated)
        except Exception as e:
            self._set_status(plan, LanguageStatus.FAILED)
            if not isinstance(e, TranslationCancelledError):
                self._emit(EventType.LANGUAGE_FAILED, language=language.key,
                           name=language.name, error=describe_error(e))
            raise

        self._set_status(plan, LanguageStatus.DONE)
        self._emit(EventType.LANGUAGE_COMPLETED, language=language.key,
                   name=language.name, total_chunks=plan.total_chunks)
        return output

    async def _run_language(self, text: str, language: Language,
                            cancel_token: Optional[CancellationToken]) -> PerLanguageResult:
        logger.info(f"Starting {language.name}...")
        try:
            translation = await self.translate_language(text, language, cancel_token)
        except TranslationCancelledError:
            raise
        except Exception as e:
            message = describe_error(e)
            logger.error(f"{language.name} failed: {message}")
            return PerLanguageResult(key=language.key, code=language.code, error=message)
        logger.info(f"{language.name} completed")
        return PerLanguageResult(key=language.key, code=language.code, text=translation)

    async def _run_parallel(self, text: str, languages: List[Language],
                            cancel_token: Optional[CancellationToken]) -> List[PerLanguageResult]:
        outcomes = await asyncio.gather(
            *(self._run_language(text, lang, cancel_token) for lang in languages),
            return_exceptions=True,
        )
        results = []
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
            results.append(outcome)
        return results

    async def _run_sequential(self, text: str, languages: List[Language],
                              cancel_token: Optional[CancellationToken]) -> List[PerLanguageResult]:
        results = []
        for i, language in enumerate(languages):
            if i > 0 and self.config.language_delay > 0:
                await self._delay(self.config.language_delay, cancel_token)
            results.append(await self._run_language(text, language, cancel_token))
        return results

    async def _delay(self, seconds: float, cancel_token: Optional[CancellationToken]) -> None:
        if self._sleep is not None:
            await self._sleep(seconds)
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
        elif cancel_token is not None:
            await cancel_token.sleep(seconds)
        else:
            await asyncio.sleep(seconds)

    async def translate_text(self, text: str,
                             cancel_token: Optional[CancellationToken] = None,
                             languages: Optional[Iterable[str]] = None) -> TranslationResult:
        """Translate ``text`` into every target language.

        Args:
            text: English source text
            cancel_token: Optional token to abort in-flight work
            languages: Optional subset of language keys/codes (default: all nine)

        Returns:
            TranslationResult with "" for languages that failed

        Raises:
            InputError: If text is blank (no request is made)
            AllLanguagesFailedError: If every requested language failed
            TranslationCancelledError: If the token was cancelled
        """
        return await self.translate_request(TranslationRequest.create(text, languages), cancel_token)

    async def translate_request(self, request: TranslationRequest,
                                cancel_token: Optional[CancellationToken] = None) -> TranslationResult:
        """Run a validated request; see translate_text for the failure policy."""
        text = request.source_text
        targets = list(request.target_languages)

        start_time = time.monotonic()
        logger.info(
            f"Starting translation into {len(targets)} languages "
            f"({self.fan_out_mode.value}, provider={self.provider.name})"
        )
        self._emit(
            EventType.TRANSLATION_STARTED,
            languages=[lang.key for lang in targets],
            mode=self.fan_out_mode.value,
            provider=self.provider.name,
            characters=len(text),
        )

        try:
            if self.fan_out_mode == FanOutMode.PARALLEL:
                outcomes = await self._run_parallel(text, targets, cancel_token)
            else:
                outcomes = await self._run_sequential(text, targets, cancel_token)
        except TranslationCancelledError as e:
            self._emit(EventType.TRANSLATION_FAILED, error=describe_error(e), cancelled=True)
            raise

        result = TranslationResult(
            results={outcome.key: outcome for outcome in outcomes},
            duration=time.monotonic() - start_time,
        )
        labels = {lang.key: lang.name for lang in targets}
        failed = result.failed

        if len(failed) == len(targets):
            error = AllLanguagesFailedError(failed, labels)
            logger.error(str(error))
            self._emit(EventType.TRANSLATION_FAILED, error=str(error), errors=failed)
            raise error

        if failed:
            summary = "; ".join(f"{labels[k]}: {msg}" for k, msg in failed.items())
            logger.warning(f"Some translations failed: {summary}")
            self._emit(EventType.TRANSLATION_PARTIAL, failed=failed,
                       succeeded=result.succeeded)

        logger.info(
            f"Translation completed in {result.duration:.2f}s. "
            f"Success: {len(result.succeeded)}/{len(targets)}"
        )
        self._emit(
            EventType.TRANSLATION_COMPLETED,
            succeeded=result.succeeded,
            failed=list(failed),
            duration=result.duration,
        )
        return result


class LatestResultTracker:
    """Keeps the newest successful translation per language.

    Consumers that re-translate as the user edits call ``begin`` for every
    request and ``merge`` when it finishes; results from a request that is no
    longer the latest are discarded, and a failed language never erases an
    earlier successful translation.
    """

    def __init__(self):
        self._texts: Dict[str, str] = {key: "" for key in LANGUAGE_KEYS}
        self._errors: Dict[str, str] = {}
        self._request_id = 0
        self._source: Optional[str] = None

    def begin(self, source_text: str) -> int:
        self._request_id += 1
        self._source = source_text
        return self._request_id

    def is_current(self, request_id: int) -> bool:
        return request_id == self._request_id

    def merge(self, result: TranslationResult, request_id: Optional[int] = None) -> bool:
        """Apply a finished result. Returns False when it was stale."""
        if request_id is not None and not self.is_current(request_id):
            logger.debug(f"Discarding stale result for request {request_id}")
            return False
        for key, outcome in result.results.items():
            if outcome.succeeded:
                self._texts[key] = outcome.text
                self._errors.pop(key, None)
            else:
                self._errors[key] = outcome.error
        return True

    def record_failure(self, error: AllLanguagesFailedError, request_id: Optional[int] = None) -> bool:
        if request_id is not None and not self.is_current(request_id):
            return False
        self._errors.update(error.errors)
        return True

    @property
    def source_text(self) -> Optional[str]:
        return self._source

    @property
    def texts(self) -> Dict[str, str]:
        return dict(self._texts)

    @property
    def errors(self) -> Dict[str, str]:
        return dict(self._errors)


async def translate_text(text: str,
                         config: Optional[TranslationConfig] = None,
                         provider: Optional[TranslationProvider] = None,
                         event_bus: Optional[EventBus] = None,
                         cancel_token: Optional[CancellationToken] = None,
                         languages: Optional[Iterable[str]] = None,
                         client: Optional[httpx.AsyncClient] = None) -> TranslationResult:
    """Translate ``text`` into the nine target languages.

    Builds the provider from configuration unless one is given, and closes
    any provider it created.
    """
    request = TranslationRequest.create(text, languages)

    config = config or TranslationConfig()
    event_bus = event_bus or EventBus()
    owns_provider = provider is None
    if provider is None:
        provider = create_provider(config, client=client, event_bus=event_bus)

    try:
        orchestrator = TranslationOrchestrator(provider, config, event_bus=event_bus)
        return await orchestrator.translate_request(request, cancel_token=cancel_token)
    finally:
        if owns_provider:
            await provider.close()

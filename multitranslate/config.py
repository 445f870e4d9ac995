"""
Centralized configuration class
"""
import os
import logging
from pathlib import Path
from dataclasses import dataclass
from dotenv import load_dotenv

from multitranslate.core.exceptions import ConfigurationError

# Setup debug logger for configuration
_config_logger = logging.getLogger('config')

# Check for DEBUG_MODE early (before .env is loaded, check environment)
_debug_mode = os.getenv('DEBUG_MODE', 'false').lower() == 'true'
if _debug_mode:
    logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    _config_logger.setLevel(logging.DEBUG)
    _config_logger.debug("DEBUG_MODE enabled - verbose logging active")

# .env is looked up in the current working directory
_env_file = Path.cwd() / '.env'
_dotenv_result = load_dotenv(_env_file)
if _debug_mode:
    _config_logger.debug(f"load_dotenv({_env_file.absolute()}) returned: {_dotenv_result}")

# Provider selection: 'google', 'openai', or 'google+openai' (google with openai fallback)
TRANSLATION_PROVIDER = os.getenv('TRANSLATION_PROVIDER', 'google')
GOOGLE_TRANSLATE_ENDPOINT = os.getenv('GOOGLE_TRANSLATE_ENDPOINT', 'https://translate.googleapis.com/translate_a/single')
OPENAI_API_ENDPOINT = os.getenv('OPENAI_API_ENDPOINT', 'https://api.openai.com/v1/chat/completions')
OPENAI_API_KEY = os.getenv('OPENAI_API_KEY', '')
OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-3.5-turbo')
SOURCE_LANGUAGE_CODE = os.getenv('SOURCE_LANGUAGE_CODE', 'en')

# Orchestration knobs
CHUNK_MAX_SIZE = int(os.getenv('CHUNK_MAX_SIZE', '2000'))
RATE_LIMIT_INTERVAL_MS = int(os.getenv('RATE_LIMIT_INTERVAL_MS', '100'))
MAX_RETRIES = int(os.getenv('MAX_RETRIES', '2'))
BACKOFF_BASE_MS = int(os.getenv('BACKOFF_BASE_MS', '500'))
BACKOFF_MAX_MS = int(os.getenv('BACKOFF_MAX_MS', '30000'))
BACKOFF_JITTER = float(os.getenv('BACKOFF_JITTER', '0.1'))
BACKOFF_STRATEGY = os.getenv('BACKOFF_STRATEGY', 'exponential')  # 'exponential' or 'linear'
FAN_OUT_MODE = os.getenv('FAN_OUT_MODE', 'parallel')  # 'parallel' or 'sequential'
LANGUAGE_DELAY_MS = int(os.getenv('LANGUAGE_DELAY_MS', '300'))
REQUEST_TIMEOUT = int(os.getenv('REQUEST_TIMEOUT', '30'))

# Debug mode (reload after .env is loaded)
DEBUG_MODE = os.getenv('DEBUG_MODE', 'false').lower() == 'true'

if DEBUG_MODE or _debug_mode:
    _config_logger.setLevel(logging.DEBUG)
    _config_logger.debug("=" * 60)
    _config_logger.debug("LOADED CONFIGURATION VALUES:")
    _config_logger.debug("=" * 60)
    _config_logger.debug(f"   TRANSLATION_PROVIDER: {TRANSLATION_PROVIDER}")
    _config_logger.debug(f"   CHUNK_MAX_SIZE: {CHUNK_MAX_SIZE}")
    _config_logger.debug(f"   RATE_LIMIT_INTERVAL_MS: {RATE_LIMIT_INTERVAL_MS}")
    _config_logger.debug(f"   MAX_RETRIES: {MAX_RETRIES}")
    _config_logger.debug(f"   BACKOFF_BASE_MS: {BACKOFF_BASE_MS} ({BACKOFF_STRATEGY})")
    _config_logger.debug(f"   FAN_OUT_MODE: {FAN_OUT_MODE}")
    _config_logger.debug(f"   REQUEST_TIMEOUT: {REQUEST_TIMEOUT}")
    _config_logger.debug(f"   OPENAI_API_KEY: {'***' + OPENAI_API_KEY[-4:] if OPENAI_API_KEY else '(not set)'}")
    _config_logger.debug("=" * 60)

SUPPORTED_PROVIDERS = ('google', 'openai', 'google+openai')
FAN_OUT_MODES = ('parallel', 'sequential')
BACKOFF_STRATEGIES = ('exponential', 'linear')


@dataclass
class TranslationConfig:
    """Orchestrator configuration shared by the CLI and library callers.

    Durations are kept in milliseconds to match the environment variables;
    the ``*_seconds`` properties convert them for asyncio.
    """

    provider: str = TRANSLATION_PROVIDER
    chunk_max_size: int = CHUNK_MAX_SIZE
    rate_limit_interval_ms: int = RATE_LIMIT_INTERVAL_MS
    max_retries: int = MAX_RETRIES
    backoff_base_ms: int = BACKOFF_BASE_MS
    backoff_max_ms: int = BACKOFF_MAX_MS
    backoff_jitter: float = BACKOFF_JITTER
    backoff_strategy: str = BACKOFF_STRATEGY
    fan_out_mode: str = FAN_OUT_MODE
    language_delay_ms: int = LANGUAGE_DELAY_MS
    timeout: int = REQUEST_TIMEOUT

    # Provider settings
    google_endpoint: str = GOOGLE_TRANSLATE_ENDPOINT
    openai_endpoint: str = OPENAI_API_ENDPOINT
    openai_api_key: str = OPENAI_API_KEY
    openai_model: str = OPENAI_MODEL
    source_language: str = SOURCE_LANGUAGE_CODE

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise ConfigurationError on out-of-range values."""
        if self.provider not in SUPPORTED_PROVIDERS:
            raise ConfigurationError(
                f"Unknown translation provider '{self.provider}'",
                context={'supported': ", ".join(SUPPORTED_PROVIDERS)}
            )
        if self.fan_out_mode not in FAN_OUT_MODES:
            raise ConfigurationError(
                f"fan_out_mode must be one of {FAN_OUT_MODES}, got '{self.fan_out_mode}'"
            )
        if self.backoff_strategy not in BACKOFF_STRATEGIES:
            raise ConfigurationError(
                f"backoff_strategy must be one of {BACKOFF_STRATEGIES}, got '{self.backoff_strategy}'"
            )
        if self.chunk_max_size < 1:
            raise ConfigurationError(f"chunk_max_size must be >= 1, got {self.chunk_max_size}")
        if self.max_retries < 0:
            raise ConfigurationError(f"max_retries must be >= 0, got {self.max_retries}")
        for name in ('rate_limit_interval_ms', 'backoff_base_ms', 'backoff_max_ms', 'language_delay_ms'):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be >= 0, got {getattr(self, name)}")
        if not 0.0 <= self.backoff_jitter <= 1.0:
            raise ConfigurationError(f"backoff_jitter must be between 0 and 1, got {self.backoff_jitter}")
        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be > 0, got {self.timeout}")

    @property
    def rate_limit_interval(self) -> float:
        return self.rate_limit_interval_ms / 1000.0

    @property
    def backoff_base(self) -> float:
        return self.backoff_base_ms / 1000.0

    @property
    def backoff_max(self) -> float:
        return self.backoff_max_ms / 1000.0

    @property
    def language_delay(self) -> float:
        return self.language_delay_ms / 1000.0

    @classmethod
    def from_cli_args(cls, args) -> 'TranslationConfig':
        """Create config from CLI arguments"""
        return cls(
            provider=getattr(args, 'provider', TRANSLATION_PROVIDER),
            chunk_max_size=getattr(args, 'chunk_size', CHUNK_MAX_SIZE),
            max_retries=getattr(args, 'max_retries', MAX_RETRIES),
            fan_out_mode=getattr(args, 'fan_out', FAN_OUT_MODE),
            openai_api_key=getattr(args, 'openai_api_key', OPENAI_API_KEY),
            openai_model=getattr(args, 'openai_model', OPENAI_MODEL),
        )

    @classmethod
    def from_env(cls) -> 'TranslationConfig':
        """Create config from the current environment (re-read, not cached)"""
        return cls(
            provider=os.getenv('TRANSLATION_PROVIDER', 'google'),
            chunk_max_size=int(os.getenv('CHUNK_MAX_SIZE', '2000')),
            rate_limit_interval_ms=int(os.getenv('RATE_LIMIT_INTERVAL_MS', '100')),
            max_retries=int(os.getenv('MAX_RETRIES', '2')),
            backoff_base_ms=int(os.getenv('BACKOFF_BASE_MS', '500')),
            backoff_max_ms=int(os.getenv('BACKOFF_MAX_MS', '30000')),
            backoff_jitter=float(os.getenv('BACKOFF_JITTER', '0.1')),
            backoff_strategy=os.getenv('BACKOFF_STRATEGY', 'exponential'),
            fan_out_mode=os.getenv('FAN_OUT_MODE', 'parallel'),
            language_delay_ms=int(os.getenv('LANGUAGE_DELAY_MS', '300')),
            timeout=int(os.getenv('REQUEST_TIMEOUT', '30')),
            google_endpoint=os.getenv('GOOGLE_TRANSLATE_ENDPOINT', GOOGLE_TRANSLATE_ENDPOINT),
            openai_endpoint=os.getenv('OPENAI_API_ENDPOINT', OPENAI_API_ENDPOINT),
            openai_api_key=os.getenv('OPENAI_API_KEY', ''),
            openai_model=os.getenv('OPENAI_MODEL', 'gpt-3.5-turbo'),
            source_language=os.getenv('SOURCE_LANGUAGE_CODE', 'en'),
        )

    @classmethod
    def from_dict(cls, data: dict) -> 'TranslationConfig':
        """Create config from a plain mapping, ignoring unknown keys"""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    def to_dict(self, include_secrets: bool = False) -> dict:
        """Convert to dictionary for serialization"""
        data = {
            'provider': self.provider,
            'chunk_max_size': self.chunk_max_size,
            'rate_limit_interval_ms': self.rate_limit_interval_ms,
            'max_retries': self.max_retries,
            'backoff_base_ms': self.backoff_base_ms,
            'backoff_max_ms': self.backoff_max_ms,
            'backoff_jitter': self.backoff_jitter,
            'backoff_strategy': self.backoff_strategy,
            'fan_out_mode': self.fan_out_mode,
            'language_delay_ms': self.language_delay_ms,
            'timeout': self.timeout,
            'google_endpoint': self.google_endpoint,
            'openai_endpoint': self.openai_endpoint,
            'openai_model': self.openai_model,
            'source_language': self.source_language,
        }
        if include_secrets:
            data['openai_api_key'] = self.openai_api_key
        return data


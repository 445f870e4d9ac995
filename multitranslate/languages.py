"""
Target language table.

The nine target languages are fixed; every TranslationResult carries exactly
these keys in this order.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class Language:
    """One target language.

    Attributes:
        key: Result key used by consumers (e.g. "spanish")
        code: ISO 639-1 code (e.g. "es")
        name: English display name, also used in LLM prompts
        provider_code: Code sent to lexical translation services when it
            differs from ``code``
    """
    key: str
    code: str
    name: str
    provider_code: Optional[str] = None

    @property
    def google_code(self) -> str:
        return self.provider_code or self.code


SPANISH = Language("spanish", "es", "Spanish")
FRENCH = Language("french", "fr", "French")
TURKISH = Language("turkish", "tr", "Turkish")
RUSSIAN = Language("russian", "ru", "Russian")
UKRAINIAN = Language("ukrainian", "uk", "Ukrainian")
PORTUGUESE = Language("portuguese", "pt", "Portuguese")
CHINESE = Language("chinese", "zh", "Chinese", provider_code="zh-CN")
JAPANESE = Language("japanese", "ja", "Japanese")
ARABIC = Language("arabic", "ar", "Arabic")

TARGET_LANGUAGES: Tuple[Language, ...] = (
    SPANISH,
    FRENCH,
    TURKISH,
    RUSSIAN,
    UKRAINIAN,
    PORTUGUESE,
    CHINESE,
    JAPANESE,
    ARABIC,
)

LANGUAGE_KEYS: Tuple[str, ...] = tuple(lang.key for lang in TARGET_LANGUAGES)

_BY_KEY: Dict[str, Language] = {lang.key: lang for lang in TARGET_LANGUAGES}
_BY_CODE: Dict[str, Language] = {lang.code: lang for lang in TARGET_LANGUAGES}


def get_language(key_or_code: str) -> Language:
    """Look up a target language by result key or ISO code.

    Raises:
        KeyError: If the language is not one of the nine targets
    """
    value = key_or_code.strip().lower()
    if value in _BY_KEY:
        return _BY_KEY[value]
    if value in _BY_CODE:
        return _BY_CODE[value]
    raise KeyError(f"Unsupported target language: {key_or_code}")


def resolve_languages(selection: Optional[Iterable[str]] = None) -> List[Language]:
    """Resolve a selection of keys/codes to languages in enumeration order."""
    if selection is None:
        return list(TARGET_LANGUAGES)
    wanted = {get_language(item).key for item in selection}
    return [lang for lang in TARGET_LANGUAGES if lang.key in wanted]

"""
OpenAI-compatible provider implementation.

This module provides the OpenAICompatibleProvider class for translating
through any chat-completion endpoint (OpenAI, OpenRouter, llama.cpp, vLLM...).
"""

from typing import Any, Optional

import httpx

from ..base import TranslationProvider
from multitranslate.config import OPENAI_API_ENDPOINT, OPENAI_MODEL, REQUEST_TIMEOUT
from multitranslate.core.cancellation import CancellationToken
from multitranslate.core.exceptions import MalformedResponseError
from multitranslate.languages import Language

SYSTEM_PROMPT = "You are a professional translator. Provide natural, accurate translations."


def build_user_prompt(chunk: str, language: Language) -> str:
    return (
        f"Translate this English text to {language.name}. "
        f"Respond only with the translation:\n\n{chunk}"
    )


def parse_chat_completion(payload: Any, provider: str = "openai") -> str:
    """Extract ``choices[0].message.content`` from a chat-completion body.

    Raises:
        MalformedResponseError: If any level of the expected shape is missing
            or the content is empty
    """
    if not isinstance(payload, dict):
        raise MalformedResponseError("Chat completion body is not an object",
                                     provider=provider, content_preview=repr(payload))

    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        raise MalformedResponseError("Chat completion has no choices",
                                     provider=provider, content_preview=repr(payload))

    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str):
        raise MalformedResponseError("Chat completion choice has no message content",
                                     provider=provider, content_preview=repr(first))

    text = content.strip()
    if not text:
        raise MalformedResponseError("Empty response from chat completion", provider=provider)
    return text


class OpenAICompatibleProvider(TranslationProvider):
    """Chat-completion translation provider"""

    name = "openai"

    def __init__(self, api_key: Optional[str] = None,
                 api_endpoint: str = OPENAI_API_ENDPOINT,
                 model: str = OPENAI_MODEL,
                 temperature: float = 0.2,
                 max_tokens: int = 2500,
                 timeout: float = REQUEST_TIMEOUT,
                 client: Optional[httpx.AsyncClient] = None):
        super().__init__(timeout=timeout, client=client)
        self.api_key = api_key
        self.api_endpoint = api_endpoint
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def build_payload(self, chunk: str, language: Language) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(chunk, language)},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "top_p": 1,
        }

    async def translate_chunk(self, chunk: str, language: Language,
                              cancel_token: Optional[CancellationToken] = None) -> str:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        response = await self._send(
            "POST",
            self.api_endpoint,
            cancel_token=cancel_token,
            json=self.build_payload(chunk, language),
            headers=headers,
        )
        return parse_chat_completion(self._parse_json(response), provider=self.name)

    def __repr__(self) -> str:
        return f"OpenAICompatibleProvider(model={self.model!r}, endpoint={self.api_endpoint!r})"

"""LLM client for Gemini / OpenAI / LM Studio.

Provides a unified interface for AI completions over the OpenAI-compatible
chat API. Gemini is reached through its OpenAI-compatible endpoint.

Supported providers:
- gemini: Google Gemini (default)
- openai: OpenAI API
- lmstudio: Local LM Studio server
"""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, TypeVar

import structlog
from openai import OpenAI

from eduportal.config.app_config import load_app_config

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# =============================================================================
# CONSTANTS
# =============================================================================

Provider = Literal["gemini", "openai", "lmstudio"]

# Providers accepting {"type": "json_object"}
JSON_OBJECT_PROVIDERS = {"gemini", "openai"}

JSON_REPAIR_PROMPT = """Corrija e devolva SOMENTE JSON válido a partir deste texto:
<<<
{invalid_output}
>>>

Responda APENAS com o JSON corrigido, sem explicações nem markdown."""

MAX_TOKENS_MESSAGE = (
    "A resposta da IA foi interrompida por exceder o limite de tokens (MAX_TOKENS). "
    "Tente um arquivo menor ou divida o conteúdo."
)

# Some models emit reasoning blocks before the answer
SANITIZE_PATTERNS = [
    re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<reasoning>.*?</reasoning>", re.DOTALL | re.IGNORECASE),
]

RETRYABLE_MARKERS = ("500", "internal error")


def _sanitize_for_json(text: str) -> str:
    result = text
    for pattern in SANITIZE_PATTERNS:
        result = pattern.sub("", result)
    return result.strip()


# =============================================================================
# RETRY POLICY
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Only server-side failures ("500" / "internal error") are retried."""
    message = str(error).lower()
    return any(marker in message for marker in RETRYABLE_MARKERS)


def with_retry(
    fn: Callable[[], T],
    retries: int = 3,
    delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call fn, retrying transient server errors with exponential backoff.

    Args:
        fn: Zero-argument callable to run
        retries: Retries after the first call
        delay: Initial wait in seconds, doubled after each retry
        sleep: Sleep function (injectable for tests)

    Returns:
        Whatever fn returns

    Raises:
        Exception: The last error, or the first non-retryable one
    """
    attempt = 0
    while True:
        try:
            return fn()
        except Exception as e:
            if attempt >= retries or not is_retryable(e):
                raise
            wait = delay * (2**attempt)
            logger.warning(
                "llm.retrying", attempt=attempt + 1, wait_seconds=wait, error=str(e)
            )
            sleep(wait)
            attempt += 1


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class LLMConfig:
    """Configuration for LLM client."""

    provider: str = "gemini"
    base_url: str | None = None
    model: str = "gemini-2.5-flash"
    temperature: float = 0.7
    max_tokens: int = 8192
    timeout: int = 120
    api_key: str | None = None

    @classmethod
    def from_app_config(cls, provider: str | None = None, pro: bool = False) -> LLMConfig:
        """Build from config/eduportal.yaml.

        Args:
            provider: Provider name (defaults to ai.default_provider)
            pro: Use the provider's heavier model when it has one
        """
        app_config = load_app_config()
        provider = provider or app_config.ai.default_provider
        pconfig = app_config.providers.get(provider)
        if pconfig is None:
            raise LLMError(f"Provedor de IA desconhecido: {provider}")

        model = pconfig.pro_model if pro and pconfig.pro_model else pconfig.default_model
        return cls(
            provider=provider,
            base_url=pconfig.base_url,
            model=model,
            timeout=app_config.ai.timeout,
            api_key=pconfig.get_api_key(),
        )


@dataclass
class Message:
    """A chat message."""

    role: Literal["system", "user", "assistant"]
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class LLMResponse:
    """Response from LLM."""

    content: str
    model: str
    provider: str
    finish_reason: str | None = None
    usage: dict[str, int] = field(default_factory=dict)
    latency_ms: int = 0

    @property
    def truncated(self) -> bool:
        """True when generation stopped at the token limit."""
        return self.finish_reason == "length"


class LLMError(Exception):
    """Error during LLM interaction."""

    pass


class LLMConnectionError(LLMError):
    """Error connecting to LLM server."""

    pass


class LLMResponseError(LLMError):
    """Error in LLM response."""

    pass


class LLMTruncatedError(LLMResponseError):
    """Generation hit the token limit before finishing."""

    def __init__(self, message: str = MAX_TOKENS_MESSAGE):
        super().__init__(message)


# =============================================================================
# LLM CLIENT
# =============================================================================


class LLMClient:
    """Unified client for AI completions."""

    def __init__(
        self,
        config: LLMConfig | None = None,
        provider: str | None = None,
        model: str | None = None,
        pro: bool = False,
    ):
        """Initialize LLM client.

        Args:
            config: LLM configuration (built from app config if not provided)
            provider: Provider override
            model: Model override
            pro: Prefer the provider's heavier model
        """
        if config is None:
            config = LLMConfig.from_app_config(provider=provider, pro=pro)
        self.config = config

        if model is not None:
            self.config.model = model

        self._client = OpenAI(
            base_url=self.config.base_url,
            api_key=self.config.api_key or "not-needed",
            timeout=self.config.timeout,
        )

        logger.info(
            "llm.client_initialized",
            provider=self.config.provider,
            model=self.config.model,
        )

    def chat(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Send chat completion request.

        Raises:
            LLMConnectionError: If cannot connect to server
            LLMResponseError: If response is empty
            LLMError: Any other provider failure
        """
        request_kwargs: dict[str, Any] = {
            "model": self.config.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": self.config.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.config.max_tokens,
        }
        if json_mode and self.config.provider in JSON_OBJECT_PROVIDERS:
            request_kwargs["response_format"] = {"type": "json_object"}

        start_time = time.time()
        try:
            response = self._client.chat.completions.create(**request_kwargs)
        except Exception as e:
            error_msg = str(e)
            if "Connection" in error_msg or "connect" in error_msg.lower():
                raise LLMConnectionError(
                    f"Não foi possível conectar a {self.config.provider}: {e}"
                ) from e
            raise LLMError(f"Erro na chamada à IA: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)

        if not response.choices:
            raise LLMResponseError("Resposta vazia da IA")

        choice = response.choices[0]
        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        logger.debug(
            "llm.response",
            provider=self.config.provider,
            model=response.model,
            tokens=usage.get("total_tokens", 0),
            latency_ms=latency_ms,
        )

        return LLMResponse(
            content=choice.message.content or "",
            model=response.model,
            provider=self.config.provider,
            finish_reason=choice.finish_reason,
            usage=usage,
            latency_ms=latency_ms,
        )

    def _try_parse_json(self, content: str) -> dict[str, Any] | list[Any] | None:
        """Try to parse JSON from content.

        Tries, in order: direct parse, a fenced ```json block, the outermost
        {...} object, the outermost [...] array.
        """
        content = _sanitize_for_json(content)

        try:
            return json.loads(content)
        except json.JSONDecodeError:
            pass

        fenced = re.search(r"```(?:json)?\s*([\s\S]*?)```", content)
        if fenced:
            try:
                return json.loads(fenced.group(1).strip())
            except json.JSONDecodeError:
                pass

        for opener, closer in (("{", "}"), ("[", "]")):
            start = content.find(opener)
            end = content.rfind(closer) + 1
            if start >= 0 and end > start:
                try:
                    return json.loads(content[start:end])
                except json.JSONDecodeError:
                    continue

        return None

    def chat_json(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
        max_retries: int = 1,
    ) -> dict[str, Any] | list[Any]:
        """Send chat request expecting JSON response.

        Raises:
            LLMTruncatedError: If output hit the token limit and is unparsable
            LLMResponseError: If response is not valid JSON after retries
        """
        response = self.chat(
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            json_mode=True,
        )

        parsed = self._try_parse_json(response.content)
        if parsed is not None:
            return parsed
        if response.truncated:
            raise LLMTruncatedError()

        if max_retries > 0:
            logger.warning(
                "llm.json_parse_failed_retrying",
                content=response.content[:100],
                provider=self.config.provider,
            )
            repair_prompt = JSON_REPAIR_PROMPT.format(
                invalid_output=response.content[:1000]
            )
            retry_response = self.chat(
                messages + [Message(role="user", content=repair_prompt)],
                temperature=temperature,
                max_tokens=max_tokens,
                json_mode=True,
            )
            parsed = self._try_parse_json(retry_response.content)
            if parsed is not None:
                logger.info("llm.json_parse_recovered")
                return parsed

        raise LLMResponseError(
            f"Não foi possível obter JSON válido: {response.content[:200]}..."
        )

    def simple_chat(
        self,
        system_prompt: str,
        user_message: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Single-turn chat returning the reply text."""
        messages = [
            Message(role="system", content=system_prompt),
            Message(role="user", content=user_message),
        ]
        return self.chat(messages, temperature=temperature, max_tokens=max_tokens).content

    def simple_json(
        self,
        system_prompt: str,
        user_message: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> dict[str, Any] | list[Any]:
        """Single-turn chat expecting JSON."""
        messages = [
            Message(role="system", content=system_prompt),
            Message(role="user", content=user_message),
        ]
        return self.chat_json(messages, temperature=temperature, max_tokens=max_tokens)

    def is_available(self) -> bool:
        """Check if the provider answers a model listing."""
        try:
            self._client.models.list()
            return True
        except Exception as e:
            logger.info("llm.unavailable", provider=self.config.provider, error=str(e))
            return False

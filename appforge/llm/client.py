"""
Model invocation.

A ModelClient turns a prompt into raw response text. Provider SDK failures are
translated into ModelUnavailable / RateLimited / InvalidResponse; whatever
retrying happens is done by the SDK itself (``max_retries``) before an error
reaches the pipeline.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import anthropic
import openai

from appforge.core.config import Settings, settings as default_settings
from appforge.core.errors import InvalidResponse, ModelUnavailable, RateLimited

log = logging.getLogger(__name__)


@dataclass
class ModelOptions:
    system_prompt: Optional[str] = None
    temperature: float = 0.2
    max_tokens: int = 4000
    model: Optional[str] = None  # Falls back to the client's default model


class ModelClient(ABC):
    @abstractmethod
    async def invoke(self, prompt: str, options: Optional[ModelOptions] = None) -> str:
        raise NotImplementedError


def _retry_after(error: Exception) -> Optional[float]:
    response = getattr(error, "response", None)
    headers = getattr(response, "headers", None) or {}
    try:
        value = headers.get("retry-after")
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


class OpenAIModelClient(ModelClient):
    def __init__(self, api_key: Optional[str], model: str, timeout: float = 300.0, max_retries: int = 2):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries
        self._client: Optional[openai.AsyncOpenAI] = None

    def _get_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise ModelUnavailable("OpenAI API key is not configured")
            self._client = openai.AsyncOpenAI(
                api_key=self.api_key, timeout=self.timeout, max_retries=self.max_retries
            )
        return self._client

    async def invoke(self, prompt: str, options: Optional[ModelOptions] = None) -> str:
        options = options or ModelOptions()
        messages = []
        if options.system_prompt:
            messages.append({"role": "system", "content": options.system_prompt})
        messages.append({"role": "user", "content": prompt})

        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=options.model or self.model,
                messages=messages,
                temperature=options.temperature,
                max_tokens=options.max_tokens,
            )
        except openai.RateLimitError as e:
            raise RateLimited(f"OpenAI rate limit exceeded: {e}", _retry_after(e)) from e
        except openai.APIConnectionError as e:
            raise ModelUnavailable(f"OpenAI is unreachable: {e}") from e
        except openai.APIError as e:
            raise ModelUnavailable(f"OpenAI request failed: {e}") from e

        if not response.choices or not response.choices[0].message.content:
            raise InvalidResponse("OpenAI returned an empty response")
        return response.choices[0].message.content


class AnthropicModelClient(ModelClient):
    def __init__(self, api_key: Optional[str], model: str, timeout: float = 300.0, max_retries: int = 2):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries
        self._client: Optional[anthropic.AsyncAnthropic] = None

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            if not self.api_key:
                raise ModelUnavailable("Anthropic API key is not configured")
            self._client = anthropic.AsyncAnthropic(
                api_key=self.api_key, timeout=self.timeout, max_retries=self.max_retries
            )
        return self._client

    async def invoke(self, prompt: str, options: Optional[ModelOptions] = None) -> str:
        options = options or ModelOptions()
        client = self._get_client()
        kwargs = {}
        if options.system_prompt:
            kwargs["system"] = options.system_prompt
        try:
            response = await client.messages.create(
                model=options.model or self.model,
                max_tokens=options.max_tokens,
                temperature=options.temperature,
                messages=[{"role": "user", "content": prompt}],
                **kwargs,
            )
        except anthropic.RateLimitError as e:
            raise RateLimited(f"Anthropic rate limit exceeded: {e}", _retry_after(e)) from e
        except anthropic.APIConnectionError as e:
            raise ModelUnavailable(f"Anthropic is unreachable: {e}") from e
        except anthropic.APIError as e:
            raise ModelUnavailable(f"Anthropic request failed: {e}") from e

        text = "".join(
            getattr(block, "text", "") for block in (response.content or [])
            if getattr(block, "type", None) == "text"
        )
        if not text:
            raise InvalidResponse("Anthropic returned an empty response")
        return text


def build_model_client(config: Settings = default_settings) -> ModelClient:
    provider = config.llm_provider.lower()
    if provider == "anthropic":
        return AnthropicModelClient(
            config.anthropic_api_key, config.anthropic_model,
            timeout=config.llm_timeout_seconds, max_retries=config.llm_max_retries,
        )
    if provider == "openai":
        return OpenAIModelClient(
            config.openai_api_key, config.openai_model,
            timeout=config.llm_timeout_seconds, max_retries=config.llm_max_retries,
        )
    raise ValueError(f"Unknown llm_provider: {config.llm_provider}")

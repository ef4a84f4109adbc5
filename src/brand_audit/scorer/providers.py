"""Language-model providers used as the external scorer."""

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from ..config import Settings
from ..errors import ScorerRequestError


class ModelProvider(ABC):
    """Base class for model providers.

    ``complete`` returns the model's text or raises ScorerRequestError. The
    credential is passed in by the caller; providers never look it up.
    """

    name: str
    default_model: str

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model or self.default_model
        self.transport = transport

    def is_configured(self) -> bool:
        """Check if the provider has a credential."""
        return bool(self.api_key)

    @abstractmethod
    def complete(self, system: str, prompt: str, timeout: float) -> str:
        """Send one system + user prompt pair and return the reply text."""

    def _post(self, url: str, headers: dict[str, str], payload: dict[str, Any], timeout: float) -> Any:
        try:
            with httpx.Client(transport=self.transport, timeout=timeout) as client:
                resp = client.post(url, headers=headers, json=payload)
        except httpx.TimeoutException as e:
            raise ScorerRequestError(f"{self.name} timed out after {timeout:.0f}s", retryable=True) from e
        except httpx.RequestError as e:
            raise ScorerRequestError(f"{self.name} request failed: {type(e).__name__}", retryable=True) from e

        if resp.status_code >= 400:
            raise ScorerRequestError(
                f"{self.name} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                retryable=resp.status_code >= 500,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise ScorerRequestError(f"{self.name} returned invalid JSON", status_code=resp.status_code) from e

    def _unexpected(self, error: Exception) -> ScorerRequestError:
        return ScorerRequestError(f"{self.name} returned an unexpected payload: {type(error).__name__}")


class OpenAICompatibleProvider(ModelProvider):
    """Chat-completions API (OpenAI and compatible vendors)."""

    name = "OpenAI"
    default_model = "gpt-4o-mini"
    base_url = "https://api.openai.com/v1"

    def complete(self, system: str, prompt: str, timeout: float) -> str:
        data = self._post(
            f"{self.base_url}/chat/completions",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            payload={
                "model": self.model,
                "messages": [
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                "max_tokens": 2500,
                "temperature": 0.4,
            },
            timeout=timeout,
        )
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise self._unexpected(e) from e


class GrokProvider(OpenAICompatibleProvider):
    """x.ai Grok, which speaks the chat-completions protocol."""

    name = "Grok"
    default_model = "grok-4-0709"
    base_url = "https://api.x.ai/v1"


class AnthropicProvider(ModelProvider):
    """Anthropic (Claude) messages API."""

    name = "Anthropic"
    default_model = "claude-3-5-haiku-20241022"
    base_url = "https://api.anthropic.com/v1"

    def complete(self, system: str, prompt: str, timeout: float) -> str:
        data = self._post(
            f"{self.base_url}/messages",
            headers={
                "x-api-key": self.api_key or "",
                "anthropic-version": "2023-06-01",
                "Content-Type": "application/json",
            },
            payload={
                "model": self.model,
                "max_tokens": 2500,
                "system": system,
                "messages": [{"role": "user", "content": prompt}],
            },
            timeout=timeout,
        )
        try:
            return "".join(block.get("text", "") for block in data["content"])
        except (KeyError, TypeError, AttributeError) as e:
            raise self._unexpected(e) from e


class GoogleProvider(ModelProvider):
    """Google Gemini generateContent API."""

    name = "Google"
    default_model = "gemini-2.0-flash"
    base_url = "https://generativelanguage.googleapis.com/v1beta"

    def complete(self, system: str, prompt: str, timeout: float) -> str:
        data = self._post(
            f"{self.base_url}/models/{self.model}:generateContent",
            headers={
                "x-goog-api-key": self.api_key or "",
                "Content-Type": "application/json",
            },
            payload={
                "systemInstruction": {"parts": [{"text": system}]},
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            },
            timeout=timeout,
        )
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise self._unexpected(e) from e


PROVIDER_CLASSES: dict[str, type[ModelProvider]] = {
    "grok": GrokProvider,
    "openai": OpenAICompatibleProvider,
    "anthropic": AnthropicProvider,
    "google": GoogleProvider,
}


def get_provider(settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> ModelProvider:
    """Build the configured provider with the credential from ``settings``."""
    provider_cls = PROVIDER_CLASSES[settings.scorer_provider]
    api_key = settings.scorer_api_key.get_secret_value() if settings.scorer_api_key else None
    return provider_cls(api_key=api_key, model=settings.scorer_model, transport=transport)

"""Chat completion client for OpenAI-compatible REST APIs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, MutableMapping, Sequence

import httpx

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Raised when an LLM request fails."""


Message = MutableMapping[str, str]


@dataclass
class ChatResult:
    text: str
    usage: dict[str, Any] = field(default_factory=dict)

    @property
    def total_tokens(self) -> int:
        value = self.usage.get("total_tokens", 0)
        return value if isinstance(value, int) else 0


class LLMClient:
    """Simple LLM client for an OpenRouter-style ``/chat/completions`` endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        default_model: str,
        referer: str | None = None,
        title: str | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.default_model = default_model
        self.referer = referer
        self.title = title

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        if self.referer:
            headers["HTTP-Referer"] = self.referer
        if self.title:
            headers["X-Title"] = self.title
        return headers

    def chat(
        self,
        messages: Sequence[Message],
        model: str | None = None,
        timeout_s: float = 30.0,
        temperature: float = 0.4,
        max_tokens: int | None = None,
    ) -> ChatResult:
        """Send chat messages and return the first choice's text with usage counters."""
        model_name = model or self.default_model
        payload: dict[str, Any] = {
            "model": model_name,
            "messages": list(messages),
            "temperature": temperature,
            "top_p": 0.9,
            "presence_penalty": 0.1,
            "frequency_penalty": 0.2,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens

        logger.info(
            "Calling chat completion model=%s temperature=%s max_tokens=%s",
            model_name,
            temperature,
            max_tokens,
        )
        try:
            response = httpx.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers=self._headers(),
                timeout=timeout_s,
            )
            response.raise_for_status()
            body = response.json()
            text = self._extract_text(body)
        except httpx.RequestError as exc:
            raise LLMError(f"REST connection error: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            raise LLMError(
                f"REST API returned {exc.response.status_code}: {exc.response.text}"
            ) from exc
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise LLMError(f"REST API response parsing error: {exc}") from exc

        if not text:
            raise LLMError("Received empty response from AI service")
        usage = body.get("usage") if isinstance(body, dict) else None
        return ChatResult(text=text, usage=usage if isinstance(usage, dict) else {})

    @staticmethod
    def _extract_text(completion: Any) -> str:
        """Extract assistant text from an OpenAI-like completion object or dict."""
        if isinstance(completion, dict):
            choices = completion.get("choices", []) or []
        else:
            choices = getattr(completion, "choices", []) or []

        if not choices:
            return ""

        first_choice = choices[0]
        message: Any
        if isinstance(first_choice, dict):
            message = first_choice.get("message", {})
        else:
            message = getattr(first_choice, "message", None)

        if isinstance(message, dict):
            content = message.get("content")
        else:
            content = getattr(message, "content", None)

        return "" if content is None else str(content)

"""Chat gateway to Gemini through Poe's OpenAI-compatible endpoint."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from openai import OpenAI, OpenAIError

logger = logging.getLogger(__name__)

POE_BASE_URL = "https://api.poe.com/v1"


class LLMError(RuntimeError):
    """The provider rejected the request or answered with nothing usable."""


class GeminiClient:
    """Small synchronous client used for portfolio commentary and ticker lookups."""

    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        base_url: str = POE_BASE_URL,
        proxy_url: Optional[str] = None,
        timeout: float = 60.0,
        max_retries: int = 2,
        default_thinking_budget: Optional[int] = None,
    ) -> None:
        if not api_key:
            raise ValueError("POE_API_KEY is required to contact Gemini endpoints.")

        self._http_client = httpx.Client(
            timeout=httpx.Timeout(timeout, connect=10.0),
            proxy=proxy_url or None,
        )
        self._client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            max_retries=max_retries,
            http_client=self._http_client,
        )
        self._model = model
        self._default_thinking_budget = default_thinking_budget

    @property
    def model(self) -> str:
        return self._model

    def generate(
        self,
        messages: List[Dict[str, str]],
        *,
        temperature: float = 0.2,
        thinking_budget: Optional[int] = None,
    ) -> str:
        """Send ``messages`` and return the reply text.

        Raises:
            LLMError: on transport or API failures and on empty replies.
        """
        budget = self._default_thinking_budget if thinking_budget is None else thinking_budget
        extra_body: Dict[str, Any] = {"thinking_budget": budget} if budget is not None else {}

        logger.debug("Requesting completion from %s (%d messages)", self._model, len(messages))
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                temperature=temperature,
                messages=messages,
                extra_body=extra_body or None,
            )
        except OpenAIError as exc:
            raise LLMError(f"{self._model} request failed: {exc}") from exc

        if not response.choices:
            raise LLMError(f"{self._model} returned no choices.")
        content = response.choices[0].message.content or ""
        if not content.strip():
            raise LLMError(f"{self._model} returned an empty message.")
        return content

    def close(self) -> None:
        """Release the underlying HTTP session."""
        self._http_client.close()

    def __enter__(self) -> "GeminiClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

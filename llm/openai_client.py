"""Thin wrapper around the official openai library for chat completions."""

from __future__ import annotations

import logging

import openai
from openai import AsyncOpenAI

from config.settings import ProviderSettings

logger = logging.getLogger(__name__)


class CompletionError(Exception):
    """Raised when a provider call fails or returns no usable reply."""


class CompletionClient:
    """All interaction with one OpenAI-compatible endpoint goes through this class.

    A single attempt is made per call; there is no retry and no timeout
    beyond what the underlying HTTP client applies.
    """

    def __init__(
        self,
        settings: ProviderSettings,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._settings = settings
        self._client = client or AsyncOpenAI(
            api_key=settings.api_key,
            base_url=settings.endpoint,
            max_retries=0,
        )

    @property
    def model(self) -> str:
        return self._settings.model

    async def complete(self, messages: list[dict], max_tokens: int) -> str:
        """Send ``messages`` and return the first candidate's text."""
        try:
            response = await self._client.chat.completions.create(
                model=self._settings.model,
                messages=messages,
                max_tokens=max_tokens,
            )
        except openai.APIError as exc:
            raise CompletionError(f"{self._settings.name} request failed: {exc}") from exc

        choices = getattr(response, "choices", None)
        if not choices:
            raise CompletionError(f"{self._settings.name} returned no choices")
        first = choices[0]
        message = getattr(first, "message", None)
        content = getattr(message, "content", None)
        if not isinstance(content, str):
            raise CompletionError(f"{self._settings.name} returned no message content")

        logger.debug(
            "%s: Role: %s  Content: %r",
            getattr(first, "index", 0),
            getattr(message, "role", "assistant"),
            content,
        )
        return content

    async def close(self) -> None:
        await self._client.close()

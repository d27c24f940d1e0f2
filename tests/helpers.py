"""Fakes and builders shared across the test suite."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any, Iterable

from config.settings import AppSettings
from llm.openai_client import CompletionClient

SYSTEM_PROMPT = "You are Socksy, a cat who lives in a Discord server."


class CharEncoding:
    """Stand-in for a tiktoken encoding: one token per character."""

    def encode(self, text: str, allowed_special: Any = None) -> list[int]:
        return [ord(ch) for ch in text]


class FakeCompletions:
    """Emulates ``client.chat.completions`` with scripted replies.

    Each scripted item is either reply text, an exception to raise, or a
    ready-made response object.
    """

    def __init__(self, replies: Iterable[Any], delay: float = 0.0) -> None:
        self._replies = list(replies)
        self._delay = delay
        self.calls: list[dict[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self._delay:
                await asyncio.sleep(self._delay)
            item = self._replies.pop(0) if self._replies else "ok"
            if isinstance(item, BaseException):
                raise item
            if isinstance(item, str):
                return make_response(item)
            return item
        finally:
            self.in_flight -= 1


def make_response(content: str | None) -> SimpleNamespace:
    message = SimpleNamespace(role="assistant", content=content)
    return SimpleNamespace(choices=[SimpleNamespace(index=0, message=message)])


def make_openai(completions: FakeCompletions) -> SimpleNamespace:
    async def close() -> None:
        return None

    return SimpleNamespace(chat=SimpleNamespace(completions=completions), close=close)


def build_settings(history_max_tokens: int = 10_000, **bot: Any) -> AppSettings:
    return AppSettings.model_validate(
        {
            "providers": {
                "gpt": {
                    "name": "SocksGPT",
                    "persona": "Socksy",
                    "model": "gpt-test",
                    "endpoint": "http://gpt.local/v1",
                    "api_key": "sk-gpt",
                    "send_author_name": True,
                },
                "mistral": {
                    "name": "SocksMistral",
                    "persona": "SocksMistral",
                    "model": "mistral-test",
                    "endpoint": "http://mistral.local/v1",
                    "api_key": "sk-mistral",
                    "send_author_name": False,
                },
            },
            "budget": {"reply_max_tokens": 256, "history_max_tokens": history_max_tokens},
            "bot": {"discord_token": "discord-token", "emoji": {":petcl:": "<a:petcl:1>"}, **bot},
            "system_prompt": SYSTEM_PROMPT,
        }
    )


def build_client(settings: AppSettings, provider_id: str, completions: FakeCompletions) -> CompletionClient:
    return CompletionClient(settings.providers[provider_id], client=make_openai(completions))



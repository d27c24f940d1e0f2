"""Completion dispatch: history in, cleaned assistant reply out."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from llm.openai_client import CompletionClient, CompletionError
from memory.conversation import ConversationStore, Turn

logger = logging.getLogger(__name__)


class DispatchError(Exception):
    """A completion exchange failed; ``__cause__`` holds the underlying error."""


@dataclass
class DispatchResult:
    """Outcome of one dispatch. Exactly one of ``text``/``error`` is set."""

    text: str | None = None
    error: DispatchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, message: str, cause: BaseException) -> DispatchResult:
        error = DispatchError(message)
        error.__cause__ = cause
        return cls(error=error)


def strip_wrapping_quotes(text: str) -> str:
    """Drop one leading and one trailing ``"`` if present."""
    if text.startswith('"'):
        text = text[1:]
    if text.endswith('"'):
        text = text[:-1]
    return text


class CompletionDispatcher:
    """Sends a store's history to a provider and records the reply."""

    def __init__(self, client: CompletionClient) -> None:
        self._client = client

    async def complete(
        self,
        store: ConversationStore,
        reply_max_tokens: int,
    ) -> DispatchResult:
        """Run one completion against ``store``.

        On success the cleaned reply is appended as an assistant turn. On
        failure the store is left untouched, so a user turn appended by the
        caller stays in history without a reply.
        """
        messages = [turn.to_message() for turn in store.snapshot()]
        logger.debug("Dispatching %d messages to %s", len(messages), self._client.model)
        try:
            raw = await self._client.complete(messages, max_tokens=reply_max_tokens)
        except CompletionError as exc:
            logger.error("Completion via %s failed: %s", self._client.model, exc, exc_info=exc)
            return DispatchResult.failure(str(exc), exc)

        text = strip_wrapping_quotes(raw)
        store.append(Turn.assistant(text))
        return DispatchResult(text=text)

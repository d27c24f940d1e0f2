"""ChatCore: top-level facade that wires providers, history and dispatch."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping

from agent.dispatcher import CompletionDispatcher, DispatchResult
from agent.formatting import chunk_text, render_fallback, render_reply, replace_emoji
from agent.worker import ProviderWorker
from config.settings import AppSettings, ProviderSettings
from llm.openai_client import CompletionClient
from llm.tokenizer import TokenCounter, TokenizerError
from memory.budget import CeilingTooSmallError, count_turn_tokens, enforce_budget
from memory.conversation import ConversationStore, Turn

logger = logging.getLogger(__name__)


class UnknownProviderError(KeyError):
    """Raised when a command targets a provider id that is not configured."""


@dataclass
class Provider:
    """Everything needed to talk to one completion endpoint."""

    id: str
    settings: ProviderSettings
    store: ConversationStore
    client: CompletionClient
    dispatcher: CompletionDispatcher
    worker: ProviderWorker


@dataclass
class ChatReply:
    """What the command layer should send back, in order."""

    ok: bool
    chunks: list[str] = field(default_factory=list)
    reply: str | None = None


class ChatCore:
    """Public API consumed by the Discord command layer.

    Constructs and owns one conversation store, dispatcher and request
    queue per configured provider. Stores live for the life of the
    process and are never shared between providers.
    """

    def __init__(
        self,
        settings: AppSettings,
        counter: TokenCounter | None = None,
        clients: Mapping[str, CompletionClient] | None = None,
    ) -> None:
        self._settings = settings
        self._counter = counter or TokenCounter()
        clients = clients or {}

        self._providers: dict[str, Provider] = {}
        for provider_id, provider_settings in settings.providers.items():
            client = clients.get(provider_id) or CompletionClient(provider_settings)
            self._providers[provider_id] = Provider(
                id=provider_id,
                settings=provider_settings,
                store=ConversationStore(settings.system_prompt),
                client=client,
                dispatcher=CompletionDispatcher(client),
                worker=ProviderWorker(provider_id),
            )

        self._check_ceiling()

    # -- message handling --------------------------------------------------

    async def submit_chat_turn(
        self,
        provider_id: str,
        author_display_name: str,
        message_text: str,
        author_mention: str | None = None,
    ) -> ChatReply:
        """Run one exchange and return the formatted, chunked reply.

        Exchanges against the same provider run one at a time in arrival
        order. Failures never raise; they come back as a fallback reply.
        """
        provider = self._get(provider_id)
        author = author_mention or author_display_name
        logger.info("%r : %r (%s)", author_display_name, message_text, provider_id)

        result: DispatchResult = await provider.worker.submit(
            lambda: self._exchange(provider, author_display_name, message_text)
        )

        if not result.ok:
            text = render_fallback(message_text, author)
            return ChatReply(ok=False, chunks=chunk_text(text, self._settings.bot.chunk_limit))

        text = render_reply(message_text, author, result.text)
        text = replace_emoji(text, self._settings.bot.emoji)
        logger.info("Bot say : %s", text)
        return ChatReply(
            ok=True,
            chunks=chunk_text(text, self._settings.bot.chunk_limit),
            reply=result.text,
        )

    async def reset_provider_history(self, provider_id: str) -> None:
        """Drop every turn but the system instruction for one provider."""
        provider = self._get(provider_id)

        async def _reset() -> None:
            provider.store.truncate_to_system()
            logger.info("History of %s reset", provider_id)
            logger.debug("HISTORY: %r", provider.store.snapshot())

        await provider.worker.submit(_reset)

    # -- accessors ---------------------------------------------------------

    @property
    def provider_ids(self) -> list[str]:
        return list(self._providers)

    def provider(self, provider_id: str) -> Provider:
        return self._get(provider_id)

    async def aclose(self) -> None:
        """Stop all request queues and release provider connections."""
        for provider in self._providers.values():
            await provider.worker.stop()
            await provider.client.close()

    # -- internal ----------------------------------------------------------

    async def _exchange(
        self,
        provider: Provider,
        author_display_name: str,
        message_text: str,
    ) -> DispatchResult:
        name = author_display_name if provider.settings.send_author_name else None
        provider.store.append(Turn.user(message_text, name=name))
        logger.debug("%s HISTORY: %r", provider.id, provider.store.snapshot())

        try:
            enforce_budget(
                provider.store,
                self._settings.budget.history_max_tokens,
                self._counter,
            )
        except (TokenizerError, CeilingTooSmallError) as exc:
            logger.error("Could not fit %s history into budget: %s", provider.id, exc)
            return DispatchResult.failure(str(exc), exc)

        return await provider.dispatcher.complete(
            provider.store,
            self._settings.budget.reply_max_tokens,
        )

    def _get(self, provider_id: str) -> Provider:
        try:
            return self._providers[provider_id]
        except KeyError:
            raise UnknownProviderError(provider_id) from None

    def _check_ceiling(self) -> None:
        """Fail at startup if the system turn alone exceeds the history ceiling."""
        ceiling = self._settings.budget.history_max_tokens
        for provider in self._providers.values():
            tokens = count_turn_tokens([provider.store.system_turn], self._counter)
            if tokens > ceiling:
                raise CeilingTooSmallError(ceiling, tokens)

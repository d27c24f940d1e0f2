"""Token-budget enforcement over a conversation store."""

from __future__ import annotations

import json
import logging
from typing import Iterable

from config.settings import ConfigurationError
from llm.tokenizer import TokenCounter
from memory.conversation import ConversationStore, Turn

logger = logging.getLogger(__name__)


class CeilingTooSmallError(ConfigurationError):
    """The history ceiling cannot hold even the pinned system turn."""

    def __init__(self, ceiling: int, system_tokens: int) -> None:
        super().__init__(
            f"History ceiling {ceiling} is below the {system_tokens} tokens "
            "needed for the system turn alone"
        )
        self.ceiling = ceiling
        self.system_tokens = system_tokens


def serialize_turns(turns: Iterable[Turn]) -> str:
    """Canonical wire form of a message list, as sent to the provider."""
    return json.dumps(
        [turn.to_message() for turn in turns],
        ensure_ascii=False,
        separators=(",", ":"),
    )


def count_turn_tokens(turns: Iterable[Turn], counter: TokenCounter) -> int:
    return counter.count(serialize_turns(turns))


def enforce_budget(
    store: ConversationStore,
    ceiling: int,
    counter: TokenCounter,
) -> int:
    """Evict oldest non-system turns until the store fits in ``ceiling`` tokens.

    Mutates ``store`` in place and returns the final token count. Eviction
    ignores user/assistant pairing, so a reply can outlive the question it
    answered.

    Raises:
        CeilingTooSmallError: if only the system turn is left and it still
            does not fit.
        TokenizerError: if the history cannot be encoded.
    """
    tokens = count_turn_tokens(store.snapshot(), counter)
    logger.info("History tokens: %d (ceiling %d)", tokens, ceiling)
    while tokens > ceiling:
        if len(store) <= 1:
            raise CeilingTooSmallError(ceiling, tokens)
        evicted = store.evict_oldest()
        tokens = count_turn_tokens(store.snapshot(), counter)
        logger.info(
            "Exceeded token limit; evicted oldest %s turn, new tokens length is %d",
            evicted.role,
            tokens,
        )
    return tokens

"""Rolling per-provider conversation history with a pinned system turn."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

Role = Literal["system", "user", "assistant"]

_VALID_NAME = re.compile(r"[A-Za-z0-9_-]{1,64}")
_INVALID_NAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def sanitize_author_name(name: str) -> str:
    """Strip characters the completion API refuses in ``message.name``.

    Only ``^[A-Za-z0-9_-]{1,64}$`` is accepted upstream. Conforming names are
    returned as-is; otherwise the disallowed characters are removed, the
    rest is kept in order and cut to 64 characters.
    """
    if _VALID_NAME.fullmatch(name):
        return name
    return _INVALID_NAME_CHARS.sub("", name)[:64]


@dataclass(frozen=True)
class Turn:
    """One message in a conversation."""

    role: Role
    content: str
    name: str | None = None

    @classmethod
    def system(cls, content: str) -> Turn:
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str, name: str | None = None) -> Turn:
        if name is not None:
            # An empty name after sanitizing would be rejected by the API.
            name = sanitize_author_name(name) or None
        return cls(role="user", content=content, name=name)

    @classmethod
    def assistant(cls, content: str) -> Turn:
        return cls(role="assistant", content=content)

    def to_message(self) -> dict:
        """Render as a chat-completions message dict."""
        message = {"role": self.role, "content": self.content}
        if self.name is not None:
            message["name"] = self.name
        return message


class ConversationStore:
    """Ordered turns for one provider.

    Index 0 is always the system turn and is never removed. Turns after it
    stay in append order; the only removal offered is of the oldest
    non-system turn.
    """

    def __init__(self, system_prompt: str) -> None:
        self._turns: list[Turn] = [Turn.system(system_prompt)]

    # -- public API --------------------------------------------------------

    def append(self, turn: Turn) -> None:
        """Add a turn at the end. No budget is applied here."""
        if turn.role == "system":
            raise ValueError("Only the pinned first turn may be a system turn")
        self._turns.append(turn)

    def evict_oldest(self) -> Turn:
        """Remove and return the oldest non-system turn."""
        if len(self._turns) <= 1:
            raise IndexError("No evictable turns; only the system turn remains")
        return self._turns.pop(1)

    def truncate_to_system(self) -> None:
        """Forget everything except the system turn."""
        del self._turns[1:]

    def snapshot(self) -> tuple[Turn, ...]:
        """Return an immutable ordered copy of the current turns."""
        return tuple(self._turns)

    def to_messages(self) -> list[dict]:
        return [turn.to_message() for turn in self._turns]

    @property
    def system_turn(self) -> Turn:
        return self._turns[0]

    def __len__(self) -> int:
        return len(self._turns)

    def __getitem__(self, index: int) -> Turn:
        return self._turns[index]

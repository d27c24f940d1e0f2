"""Token counting for serialized conversation history."""

from __future__ import annotations

import logging
from typing import Any

import tiktoken

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "cl100k_base"


class TokenizerError(Exception):
    """Raised when the encoding cannot be loaded or a text cannot be encoded."""


class TokenCounter:
    """Counts model tokens with a fixed tiktoken byte-pair encoding.

    The encoding is loaded once; a failure here is meant to stop the
    process at startup. Failures inside :meth:`count` are per-request.
    """

    def __init__(self, encoding_name: str = DEFAULT_ENCODING, encoding: Any = None) -> None:
        self.encoding_name = encoding_name
        if encoding is not None:
            self._enc = encoding
            return
        try:
            self._enc = tiktoken.get_encoding(encoding_name)
        except Exception as exc:
            raise TokenizerError(
                f"Failed to load tokenizer encoding {encoding_name!r}: {exc}"
            ) from exc

    def count(self, text: str) -> int:
        """Return the number of tokens in ``text``, special tokens included."""
        try:
            return len(self._enc.encode(text, allowed_special="all"))
        except Exception as exc:
            logger.warning("Tokenizer failed on %d chars: %s", len(text), exc)
            raise TokenizerError(f"Failed to encode text: {exc}") from exc

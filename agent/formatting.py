"""Jinja2 templates for bot replies, emoji substitution and chunking."""

from __future__ import annotations

from typing import Mapping

from jinja2 import Template

# Quoted echo of the user's message, then the body.
REPLY_TEMPLATE = Template("> **{{ message }}** - {{ author }} \n\n{{ reply }}")

FALLBACK_TEMPLATE = Template(
    "> **{{ message }}** - {{ author }} \n\n"
    "Something went wrong, please try again later."
)

RESET_TEMPLATE = Template("> **BONK** Lmeow, {{ persona }} have forgotten everything ～")


def render_reply(message: str, author: str, reply: str) -> str:
    return REPLY_TEMPLATE.render(message=message, author=author, reply=reply)


def render_fallback(message: str, author: str) -> str:
    return FALLBACK_TEMPLATE.render(message=message, author=author)


def render_reset(persona: str) -> str:
    return RESET_TEMPLATE.render(persona=persona)


def replace_emoji(text: str, mapping: Mapping[str, str]) -> str:
    """Swap ``:shortcode:`` names for the platform's custom emoji references."""
    for search, replace in mapping.items():
        text = text.replace(search, replace)
    return text


def chunk_text(text: str, limit: int) -> list[str]:
    """Split ``text`` into consecutive pieces of at most ``limit`` characters.

    Works on code points, so multi-byte characters are never split, and
    ``"".join(chunk_text(t, n)) == t`` always holds.
    """
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")
    if len(text) <= limit:
        return [text]
    return [text[i : i + limit] for i in range(0, len(text), limit)]

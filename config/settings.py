"""Application settings: providers, token budget, Discord bot config."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

from dotenv import dotenv_values
from pydantic import BaseModel, Field, ValidationError

DEFAULT_SYSTEM_PROMPT_PATH = "system_prompt.txt"

DEFAULT_EMOJI: dict[str, str] = {
    ":CLbox:": "<:CLbox:1051203986964893736>",
    ":clPog:": "<:clPog:1004208874406039572>",
    ":smugcat:": "<:smugcat:889673525030420480>",
    ":cathink:": "<:cathink:889687946314272778>",
    ":gmeow:": "<:gmeow:1021027182383997010>",
    ":clnom:": "<:clnom:950943393045954570>",
    ":blushycl:": "<:blushycl:933644628090028032>",
    ":yuepetcl:": "<:yuepetcl:882811013739741184>",
    ":clkms:": "<:clkms:960796681283203113>",
    ":evilmewn:": "<:evilmewn:824967831510712330>",
    ":HUH:": "<a:HUH:1010570028195774524>",
    ":MYAAA:": "<a:MYAAA:1039322389294628946>",
    ":clThonkSweat:": "<a:clThonkSweat:993207609102450808>",
    ":clThonkSweat2:": "<a:clThonkSweat2:993207612361424919>",
    ":cldance:": "<a:cldance:872280682121019462>",
    ":clhearts:": "<a:clhearts:900513327606800395>",
    ":petcl:": "<a:petcl:1053242378359689256>",
    ":petloom:": "<a:petloom:837695455264636969>",
    ":petmewny:": "<a:petmewny:828632539367342140>",
    ":upsidedownmewny:": "<a:upsidedownmewny:854905684625326092>",
}


class ConfigurationError(Exception):
    """Raised when a required setting is missing or invalid."""


class ProviderSettings(BaseModel):
    """Connection parameters for one OpenAI-compatible completion endpoint."""

    name: str
    persona: str
    model: str = Field(min_length=1)
    endpoint: str = Field(min_length=1)
    api_key: str = Field(min_length=1)
    send_author_name: bool = True


class TokenBudget(BaseModel):
    """Generation and history ceilings shared by every provider."""

    reply_max_tokens: int = Field(gt=0)
    history_max_tokens: int = Field(gt=0)


class BotSettings(BaseModel):
    """Discord-side parameters."""

    discord_token: str = Field(min_length=1)
    command_prefix: str = "~"
    chunk_limit: int = Field(default=1900, gt=0)
    emoji: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_EMOJI))


class AppSettings(BaseModel):
    """Top-level container for all application settings."""

    providers: dict[str, ProviderSettings]
    budget: TokenBudget
    bot: BotSettings
    system_prompt: str
    log_level: str = "INFO"


# Environment variable names per provider id: (model, credential, endpoint).
_PROVIDER_ENV = {
    "gpt": ("GPT_ENGINE", "OPENAI_TOKEN", "OPENAI_ENDPOINT"),
    "mistral": ("MISTRAL_ENGINE", "MISTRAL_TOKEN", "MISTRAL_ENDPOINT"),
}

_PROVIDER_DEFAULTS = {
    "gpt": {"name": "SocksGPT", "persona": "Socksy", "send_author_name": True},
    "mistral": {"name": "SocksMistral", "persona": "SocksMistral", "send_author_name": False},
}


def _require(env: Mapping[str, str], key: str) -> str:
    value = env.get(key)
    if value is None or not value.strip():
        raise ConfigurationError(f"Expected {key} in the environment")
    return value.strip()


def _require_int(env: Mapping[str, str], key: str) -> int:
    raw = _require(env, key)
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from exc


def _log_level(env: Mapping[str, str]) -> str:
    level = (env.get("LOG_LEVEL") or "INFO").strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(f"LOG_LEVEL must be a logging level name, got {level!r}")
    return level


def load_system_prompt(path: str | Path) -> str:
    """Read the shared system instruction, failing loudly if it is unreadable."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Can't read system prompt file {path}: {exc}") from exc


def load_settings(
    environ: Mapping[str, str] | None = None,
    env_file: str | Path | None = ".env",
) -> AppSettings:
    """Build settings from a ``.env`` file overlaid by the process environment.

    Real environment variables win over values from ``env_file``. Raises
    :class:`ConfigurationError` when anything required is missing or invalid.
    """
    env: dict[str, str] = {}
    if env_file is not None and Path(env_file).exists():
        env.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
    env.update(os.environ if environ is None else environ)

    providers = {}
    for provider_id, (model_key, token_key, endpoint_key) in _PROVIDER_ENV.items():
        providers[provider_id] = {
            **_PROVIDER_DEFAULTS[provider_id],
            "model": _require(env, model_key),
            "api_key": _require(env, token_key),
            "endpoint": _require(env, endpoint_key),
        }

    raw = {
        "providers": providers,
        "budget": {
            "reply_max_tokens": _require_int(env, "REPLY_MAX_TOKEN"),
            "history_max_tokens": _require_int(env, "HISTORY_MAX_TOKEN"),
        },
        "bot": {
            "discord_token": _require(env, "DISCORD_BOT_TOKEN"),
            "command_prefix": env.get("COMMAND_PREFIX") or "~",
        },
        "system_prompt": load_system_prompt(
            env.get("SYSTEM_PROMPT_PATH") or DEFAULT_SYSTEM_PROMPT_PATH
        ),
        "log_level": _log_level(env),
    }
    try:
        return AppSettings.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc

"""Tests for process startup in app.main."""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

import app
from llm.tokenizer import TokenCounter
from tests.helpers import CharEncoding

_KEYS = (
    "DISCORD_BOT_TOKEN",
    "REPLY_MAX_TOKEN",
    "HISTORY_MAX_TOKEN",
    "GPT_ENGINE",
    "OPENAI_TOKEN",
    "OPENAI_ENDPOINT",
    "MISTRAL_ENGINE",
    "MISTRAL_TOKEN",
    "MISTRAL_ENDPOINT",
    "SYSTEM_PROMPT_PATH",
    "COMMAND_PREFIX",
    "LOG_LEVEL",
)

_ENV_FILE = """\
DISCORD_BOT_TOKEN=discord-token
REPLY_MAX_TOKEN=512
HISTORY_MAX_TOKEN=3000
GPT_ENGINE=gpt-3.5-turbo
OPENAI_TOKEN=sk-openai
OPENAI_ENDPOINT=https://api.openai.com/v1
MISTRAL_ENGINE=mistral-small
MISTRAL_TOKEN=sk-mistral
MISTRAL_ENDPOINT=https://api.mistral.ai/v1
"""


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    for key in _KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    (tmp_path / "system_prompt.txt").write_text("You are Socksy.", encoding="utf-8")
    (tmp_path / ".env").write_text(_ENV_FILE, encoding="utf-8")
    monkeypatch.setattr(app, "TokenCounter", lambda: TokenCounter(encoding=CharEncoding()))
    return tmp_path


def _recording_bot(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    tokens: list[str] = []

    def build_bot(core, settings):
        return SimpleNamespace(run=lambda token, **_kwargs: tokens.append(token))

    monkeypatch.setattr(app, "build_bot", build_bot)
    return tokens


def test_main_reads_settings_from_env_file(workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    tokens = _recording_bot(monkeypatch)

    assert app.main() == 0
    assert tokens == ["discord-token"]


def test_bad_log_level_exits_with_status_one(workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    tokens = _recording_bot(monkeypatch)
    monkeypatch.setenv("LOG_LEVEL", "verbose")

    assert app.main() == 1
    assert tokens == []


def test_missing_setting_exits_with_status_one(workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    tokens = _recording_bot(monkeypatch)
    (workdir / ".env").write_text(_ENV_FILE.replace("DISCORD_BOT_TOKEN=discord-token\n", ""), encoding="utf-8")

    assert app.main() == 1
    assert tokens == []

"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from config.settings import AppSettings
from llm.tokenizer import TokenCounter
from tests.helpers import CharEncoding, build_settings


@pytest.fixture
def counter() -> TokenCounter:
    return TokenCounter(encoding=CharEncoding())


@pytest.fixture
def settings() -> AppSettings:
    return build_settings()

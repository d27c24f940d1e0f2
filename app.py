"""SocksGPT -- Discord bot entry point."""

from __future__ import annotations

import logging
import sys

from agent.core import ChatCore
from bot.commands import build_bot
from config.settings import ConfigurationError, load_settings
from llm.tokenizer import TokenCounter, TokenizerError

logger = logging.getLogger(__name__)


def main() -> int:
    # -- Startup checks: any failure here stops the process -----------------
    try:
        settings = load_settings()
        logging.basicConfig(
            level=settings.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        core = ChatCore(settings, counter=TokenCounter())
    except (ConfigurationError, TokenizerError) as exc:
        logger.critical("Startup failed: %s", exc)
        return 1

    bot = build_bot(core, settings)
    bot.run(settings.bot.discord_token, log_handler=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())

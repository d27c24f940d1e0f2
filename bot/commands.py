"""Discord slash/prefix commands that forward to ChatCore."""

from __future__ import annotations

import logging

import discord
from discord.ext import commands

from agent.core import ChatCore
from agent.formatting import render_reset
from config.settings import AppSettings

logger = logging.getLogger(__name__)


class ChatCog(commands.Cog):
    """Chat and memory-reset commands, one pair per provider."""

    def __init__(self, core: ChatCore, settings: AppSettings) -> None:
        self._core = core
        self._settings = settings

    async def _chat(self, ctx: commands.Context, provider_id: str, message: str) -> None:
        await ctx.defer()
        reply = await self._core.submit_chat_turn(
            provider_id,
            author_display_name=ctx.author.name,
            message_text=message,
            author_mention=ctx.author.mention,
        )
        for chunk in reply.chunks:
            await ctx.send(chunk)

    async def _bonk(self, ctx: commands.Context, provider_id: str) -> None:
        await self._core.reset_provider_history(provider_id)
        persona = self._settings.providers[provider_id].persona
        await ctx.send(render_reset(persona))

    @commands.hybrid_command(name="chat", description="Chat to SocksGPT")
    async def chat(self, ctx: commands.Context, *, message: str) -> None:
        await self._chat(ctx, "gpt", message)

    @commands.hybrid_command(name="mistral", description="Chat to SocksMistral")
    async def mistral(self, ctx: commands.Context, *, message: str) -> None:
        await self._chat(ctx, "mistral", message)

    @commands.hybrid_command(name="bonk", description="BONK SocksGPT makes it lost memory")
    async def bonk(self, ctx: commands.Context) -> None:
        await self._bonk(ctx, "gpt")

    @commands.hybrid_command(
        name="bonk_mistral", description="BONK SocksMistral makes it lost memory"
    )
    async def bonk_mistral(self, ctx: commands.Context) -> None:
        await self._bonk(ctx, "mistral")


class ChatBot(commands.Bot):
    """Bot that registers its commands globally once connected."""

    def __init__(self, core: ChatCore, settings: AppSettings) -> None:
        super().__init__(
            command_prefix=settings.bot.command_prefix,
            intents=discord.Intents.default(),
        )
        self.core = core
        self.settings = settings

    async def setup_hook(self) -> None:
        await self.add_cog(ChatCog(self.core, self.settings))
        synced = await self.tree.sync()
        logger.info("Registered %d application commands", len(synced))

    async def close(self) -> None:
        await self.core.aclose()
        await super().close()


def build_bot(core: ChatCore, settings: AppSettings) -> ChatBot:
    return ChatBot(core, settings)

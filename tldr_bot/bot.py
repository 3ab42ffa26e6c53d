"""
TLDR Bot — Discord channel summaries powered by Claude

/tldr <range> reads the channel's recent history, asks Claude for an
overview, highlights and topics, and DMs the result with buttons that
expand each topic.

Usage:
  1. Copy .env.example to .env and fill in your tokens
  2. pip install .
  3. tldr-bot-register   (once, to publish the slash command)
  4. tldr-bot
"""

import logging
import sys
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from . import config
from .retention import RetentionStore
from .summarizer import Summarizer
from .tldr import TldrHandler, parse_max_range

log = logging.getLogger("tldr-bot")


def setup_logging(level: str = config.LOG_LEVEL):
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ---------------------------------------------------------------------------
# Discord client setup
# ---------------------------------------------------------------------------

class TldrBot(commands.Bot):
    def __init__(self):
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(command_prefix="!", intents=intents, help_command=None)
        self.handler: Optional[TldrHandler] = None


bot = TldrBot()


def create_handler() -> TldrHandler:
    return TldrHandler(
        summarizer=Summarizer(),
        store=RetentionStore(config.RETENTION_LIMIT),
        max_range=parse_max_range(config.MAX_RANGE),
    )


# ---------------------------------------------------------------------------
# Slash commands
# ---------------------------------------------------------------------------

@bot.tree.command(name="tldr", description="Get a summary of recent channel activity")
@app_commands.rename(time_range="range")
@app_commands.describe(time_range="Time range (e.g., 24h, 3d, 1w)")
@app_commands.allowed_installs(guilds=True, users=True)
@app_commands.allowed_contexts(guilds=True, dms=False, private_channels=False)
async def tldr_command(interaction: discord.Interaction, time_range: str):
    log.info(f"/tldr {time_range} from {interaction.user} in {interaction.channel}")
    await bot.handler.handle_command(interaction, time_range)


@bot.tree.error
async def on_app_command_error(interaction: discord.Interaction, error: app_commands.AppCommandError):
    log.error(f"App command error: {error}", exc_info=error)
    if not interaction.response.is_done():
        await interaction.response.send_message(
            "Something went wrong. Please try again later.", ephemeral=True
        )


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@bot.event
async def on_ready():
    log.info(f"Logged in as {bot.user} (ID: {bot.user.id})")
    log.info(f"Connected to {len(bot.guilds)} guild(s)")
    for guild in bot.guilds:
        log.info(f"  - {guild.name} ({guild.member_count} members)")


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------

def main():
    setup_logging()
    log.info("TLDR Bot starting...")
    if not config.DISCORD_TOKEN:
        log.error("DISCORD_TOKEN not set. Check your .env file.")
        sys.exit(1)
    if not config.ANTHROPIC_API_KEY:
        log.error("ANTHROPIC_API_KEY not set. Check your .env file.")
        sys.exit(1)

    try:
        bot.handler = create_handler()
    except ValueError as e:
        log.error(str(e))
        sys.exit(1)

    if bot.handler.max_range:
        log.info(f"Maximum /tldr range: {bot.handler.max_range.label}")
    bot.run(config.DISCORD_TOKEN, log_handler=None)


if __name__ == "__main__":
    main()

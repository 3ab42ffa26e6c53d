"""
Publishes the /tldr slash command globally, prints the install URL, exits.

Run once after deploying, and again whenever the command signature changes:

  tldr-bot-register
"""

import asyncio
import logging
import sys

from . import config
from .bot import bot, setup_logging

log = logging.getLogger("tldr-bot.register")

INSTALL_URL = (
    "https://discord.com/oauth2/authorize?client_id={client_id}"
    "&integration_type=1&scope=applications.commands"
)


async def register() -> str:
    """Sync the command tree and return the user-install URL."""
    async with bot:
        await bot.login(config.DISCORD_TOKEN)
        log.info("Registering slash commands...")
        synced = await bot.tree.sync()
        log.info(f"Registered {len(synced)} command(s): {', '.join(c.name for c in synced)}")
        client_id = config.DISCORD_CLIENT_ID or bot.application_id
    return INSTALL_URL.format(client_id=client_id)


def main():
    setup_logging()
    if not config.DISCORD_TOKEN:
        log.error("DISCORD_TOKEN not set. Check your .env file.")
        sys.exit(1)

    try:
        url = asyncio.run(register())
    except Exception as e:
        log.error(f"Error registering commands: {e}")
        sys.exit(1)

    print("\nInstall the bot to your account with this URL:")
    print(url)


if __name__ == "__main__":
    main()

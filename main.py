"""
Main entry point for the store bot.

Loads ``.env``, configures logging, validates configuration and starts the bot.
"""
from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from discord.errors import LoginFailure, PrivilegedIntentsRequired

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)

from bot import StoreBot
from core.config import ConfigError, load_config
from core.constants import K

LOG_LEVEL = os.getenv(K.LOG_LEVEL, "INFO").upper()
_level = getattr(logging, LOG_LEVEL, logging.INFO)

logging.basicConfig(
    level=_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("storebot")
logging.getLogger("discord").setLevel(_level)

if not env_path.exists():
    logger.warning(".env file not found at %s", env_path)


async def main() -> None:
    try:
        config = load_config()
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return

    bot = StoreBot(config)
    try:
        await bot.start(config.token)
    except PrivilegedIntentsRequired:
        logger.error(
            "Privileged intents required. Enable MESSAGE CONTENT and SERVER MEMBERS intents "
            "in the Discord developer portal."
        )
    except LoginFailure:
        logger.error("Token is invalid. Reset it in the developer portal and update %s.", K.TOKEN)
    finally:
        if not bot.is_closed():
            await bot.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass

"""
Core interaction handling - routes component interactions to their handlers.

Select menus posted by the bot carry a fixed custom_id. Routing on the id here
(instead of through live View objects) keeps panels working after a restart.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Coroutine, Dict

import discord

from .errors import BotError, InvalidInput

logger = logging.getLogger("storebot.interactions")

# Type alias for interaction handlers
InteractionHandler = Callable[[discord.Interaction], Coroutine[Any, Any, bool]]

# Key is a prefix that the custom_id must start with
_COMPONENT_HANDLERS: Dict[str, InteractionHandler] = {}

GENERIC_ERROR = "An error occurred. Please try again later."


def register_component_handler(prefix: str, handler: InteractionHandler) -> None:
    """
    Register a handler for component interactions (buttons, selects, etc.).

    Args:
        prefix: The custom_id prefix this handler responds to
        handler: Async function that takes an Interaction and returns True if handled
    """
    _COMPONENT_HANDLERS[prefix] = handler
    logger.debug("Registered component handler for prefix: %s", prefix)


def unregister_component_handler(prefix: str) -> None:
    _COMPONENT_HANDLERS.pop(prefix, None)


def selected_value(interaction: discord.Interaction) -> str:
    """First value picked in a select menu interaction."""
    values = (interaction.data or {}).get("values") or []
    if not values or not isinstance(values[0], str):
        raise InvalidInput("select interaction without values")
    return values[0]


async def reply_ephemeral(interaction: discord.Interaction, content: str) -> None:
    """Send an ephemeral reply whether or not the interaction was answered already."""
    try:
        if interaction.response.is_done():
            await interaction.followup.send(content, ephemeral=True)
        else:
            await interaction.response.send_message(content, ephemeral=True)
    except discord.HTTPException as exc:
        logger.warning("Could not deliver reply for interaction %s: %s", interaction.id, exc)


async def report_error(interaction: discord.Interaction, error: BaseException, where: str) -> None:
    """Log ``error`` and show the user its short message. Shared by every boundary."""
    if isinstance(error, BotError):
        logger.info("%s refused for user %s: %s", where, interaction.user.id, error)
        await reply_ephemeral(interaction, error.user_message)
        return
    logger.error("Error in %s", where, exc_info=(type(error), error, error.__traceback__))
    await reply_ephemeral(interaction, GENERIC_ERROR)


async def handle_interaction(interaction: discord.Interaction) -> bool:
    """
    Route an interaction to the appropriate handler.

    Returns True if the interaction was handled, False otherwise.
    """
    if interaction.type == discord.InteractionType.component:
        return await _handle_component(interaction)
    return False


async def _handle_component(interaction: discord.Interaction) -> bool:
    if not interaction.data:
        return False

    custom_id = interaction.data.get("custom_id", "")
    if not isinstance(custom_id, str):
        return False

    for prefix, handler in _COMPONENT_HANDLERS.items():
        if not custom_id.startswith(prefix):
            continue
        try:
            return await handler(interaction)
        except Exception as exc:
            await report_error(interaction, exc, f"component {custom_id}")
        return True  # Mark as handled even on error

    return False

"""
Lookup of the channels named in configuration.
"""
from __future__ import annotations

from typing import Optional

import discord

from .errors import NotFound


def configured_text_channel(
    guild: Optional[discord.Guild],
    channel_id: Optional[int],
    label: str,
) -> discord.TextChannel:
    """
    The text channel configured for ``label``.

    Raises ``NotFound`` with a short message when the key is unset or the
    channel is gone.
    """
    if channel_id is None:
        raise NotFound(f"{label} channel not configured", user_message=f"The {label} channel is not configured.")
    channel = guild.get_channel(channel_id) if guild is not None else None
    if not isinstance(channel, discord.TextChannel):
        raise NotFound(f"{label} channel {channel_id} missing", user_message=f"The {label} channel was not found.")
    return channel

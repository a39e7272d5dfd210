"""
Welcomer module - greets new members in the welcome channel.
"""
from __future__ import annotations

import logging
from typing import Optional

import discord

from core.config import BotConfig

logger = logging.getLogger("storebot.welcomer")

WELCOME_COLOUR = 0x36393F


def build_welcome(member: discord.Member) -> tuple[str, discord.Embed]:
    content = f"-# _ _ ˚ ．w**e**__lco__m**e** ⁺⸺ {member.mention} ˚ ✚ ⊹"
    embed = discord.Embed(
        colour=WELCOME_COLOUR,
        description=(
            "/ᐠ > . < マ ₊\n"
            "꒰ ✚ ₊ read the tos and reviews ♡ ꒱\n"
            "꒷꒦ ask questions anytime ⑅ ♡\n"
            "𓂃˚ check prices, then order ︶"
        ),
    )
    embed.set_footer(text=f"member #{member.guild.member_count}" if member.guild.member_count else "welcome!")
    embed.set_thumbnail(url=member.display_avatar.url)
    return content, embed


async def handle_member_join(member: discord.Member, config: BotConfig) -> Optional[discord.Message]:
    if not config.enable_welcomer or config.welcome_channel_id is None:
        return None
    channel = member.guild.get_channel(config.welcome_channel_id)
    if not isinstance(channel, discord.TextChannel):
        logger.warning("Welcome channel %s not found in guild %s", config.welcome_channel_id, member.guild.id)
        return None
    content, embed = build_welcome(member)
    try:
        return await channel.send(
            content,
            embed=embed,
            allowed_mentions=discord.AllowedMentions(users=True, roles=False, everyone=False),
        )
    except discord.HTTPException as exc:
        logger.error("Failed to welcome %s: %s", member.id, exc)
        return None

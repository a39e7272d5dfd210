"""
Help module - ``/help`` lists the commands registered by each feature module.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord import app_commands

from core.help_system import help_system
from core.permissions import is_admin, is_staff

if TYPE_CHECKING:
    from bot.client import StoreBot


def setup_help(bot: StoreBot) -> None:
    @app_commands.command(name="help", description="Show the bot's commands")
    async def help_cmd(interaction: discord.Interaction) -> None:
        embed = help_system.get_help_embed(
            allow_staff=is_staff(interaction.user, bot.config),
            allow_admin=is_admin(interaction.user),
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    bot.tree.add_command(help_cmd)

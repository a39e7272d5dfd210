"""
Waitlist module - ``/waitlist`` and the order status menu.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord import app_commands

from core.channels import configured_text_channel
from core.constants import CustomId
from core.errors import NotFound
from core.help_system import help_system
from core.interactions import register_component_handler, selected_value
from core.permissions import require_staff
from services.waitlist_service import build_status_embed, build_status_view

if TYPE_CHECKING:
    from bot.client import StoreBot


async def handle_status_select(bot: StoreBot, interaction: discord.Interaction) -> bool:
    if interaction.message is None:
        raise NotFound("status select without a message")
    new_status = selected_value(interaction)
    entry = await bot.waitlist.set_status(interaction.message.id, interaction.user, new_status)
    await interaction.response.edit_message(
        embed=build_status_embed(entry),
        view=build_status_view(entry),
    )
    return True


def setup_waitlist(bot: StoreBot) -> None:
    help_system.register_module(
        name="Waitlist",
        description="Order queue with a status menu on each order.",
        commands=[
            ("/waitlist", "Add a customer's order to the waitlist (staff only)"),
        ],
    )

    async def _status(interaction: discord.Interaction) -> bool:
        return await handle_status_select(bot, interaction)

    register_component_handler(CustomId.WAITLIST_STATUS, _status)

    @app_commands.command(name="waitlist", description="Add a user to the waitlist with an order")
    @app_commands.describe(user="Customer being added", item="Item ordered", mop="Method of payment")
    @app_commands.guild_only()
    async def waitlist_cmd(
        interaction: discord.Interaction,
        user: discord.User,
        item: str,
        mop: str,
    ) -> None:
        require_staff(interaction.user, bot.config)
        channel = configured_text_channel(interaction.guild, bot.config.waitlist_channel_id, "waitlist")
        await bot.waitlist.add(channel, interaction.user, user, item, mop)
        await interaction.response.send_message("✅ Order added to waitlist!", ephemeral=True)

    bot.tree.add_command(waitlist_cmd)

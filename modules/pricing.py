"""
Pricing module - ``/prices`` posts a payment-method menu; picking an option
shows that method's price sheet privately.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord import app_commands

from core.constants import CustomId
from core.errors import ExternalCallFailed, NotFound
from core.help_system import help_system
from core.interactions import register_component_handler, selected_value
from core.permissions import require_admin

if TYPE_CHECKING:
    from bot.client import StoreBot

PRICE_COLOUR = 0x36393F

# value -> (menu label, price sheet)
PRICE_SHEETS: dict[str, tuple[str, str]] = {
    "cashapp": ("1 ﹒ cashapp", "\n".join([
        "ticket command: $3",
        "complex ticket: $5",
        "waitlist: $1",
        "complex waitlist: $5",
        "embeds: $3",
        "greet: $1",
        "complex greet: $3",
        "simple status: $1",
        "complex status: $3",
        "",
        "-# any module not listed: negotiable",
        "",
        "interactive carrds",
        "maximal: $5",
        "minimal: $3",
        "$0.50 per page",
        "",
        "non-interactive carrds",
        "minimal: $1",
        "maximal: $3+",
        "",
        "-# must have inspo or tut",
    ])),
    "nitro": ("2 ﹒ nitro", "\n".join([
        "ticket command: nbsc",
        "complex ticket: nbst (*)",
        "waitlist: nbsc",
        "complex waitlist: nbst (*)",
        "embeds: nbsc",
        "greet: nbsc",
        "complex greet: nbsc",
        "simple status: nbsc",
        "complex status: deco (*)",
        "",
        "-# (*) - negotiable if bundled",
        "-# any module not listed: negotiable",
        "",
        "interactive carrds",
        "maximal: nbst",
        "minimal: nbsc",
        "max: 3 pgs",
        "",
        "non-interactive carrds",
        "minimal: nbsc",
        "maximal: nbsc +",
        "",
        "-# must have inspo or tut",
    ])),
    "robux": ("3 ﹒ rbx", "\n".join([
        "ticket command: 240 rbx",
        "complex ticket: 500 rbx",
        "waitlist: 100 rbx",
        "complex waitlist: 500 rbx",
        "embeds: 240 rbx",
        "greet: 100 rbx",
        "complex greet: 240 rbx",
        "simple status: 100 rbx",
        "complex status: 240 rbx",
        "",
        "-# any module not listed: negotiable",
        "",
        "interactive carrds",
        "maximal: 400-500 rbx",
        "minimal: 240 rbx",
        "80 rbx per page",
        "",
        "non-interactive carrds",
        "minimal: 100 rbx",
        "maximal: 240 rbx",
        "",
        "-# must have inspo or tut",
    ])),
    "addons": ("0 ﹒ add-ons", "\n".join([
        "rush fee: $5, 500 rbx, or dcr",
        "priority: $3, 240 rbx, or nbsc",
        "extra revisions: $1 after your 3rd",
        "-# I will make you aware of the add-ons",
    ])),
}


def build_price_menu() -> discord.ui.View:
    view = discord.ui.View(timeout=None)
    view.add_item(
        discord.ui.Select(
            custom_id=CustomId.PRICE_MENU,
            placeholder="૮꒰ ᴗ . ᴗ ∩꒱ payments",
            options=[
                discord.SelectOption(label="⃟", value=value, description=f"⁀➷ {label}")
                for value, (label, _) in PRICE_SHEETS.items()
            ],
        )
    )
    return view


def price_embed(method: str) -> discord.Embed:
    sheet = PRICE_SHEETS.get(method)
    if sheet is None:
        raise NotFound(f"unknown price sheet {method!r}", user_message="No prices for that option.")
    return discord.Embed(description=sheet[1], colour=PRICE_COLOUR)


async def handle_price_menu(interaction: discord.Interaction) -> bool:
    await interaction.response.send_message(embed=price_embed(selected_value(interaction)), ephemeral=True)
    return True


def setup_pricing(bot: StoreBot) -> None:
    help_system.register_module(
        name="Pricing",
        description="Price sheets per payment method.",
        commands=[
            ("/prices", "Post the pricing menu (admin only)"),
        ],
    )
    register_component_handler(CustomId.PRICE_MENU, handle_price_menu)

    @app_commands.command(name="prices", description="Show pricing options dropdown")
    @app_commands.default_permissions(administrator=True)
    @app_commands.guild_only()
    async def prices_cmd(interaction: discord.Interaction) -> None:
        require_admin(interaction.user)
        try:
            await interaction.channel.send(view=build_price_menu())
        except discord.HTTPException as exc:
            raise ExternalCallFailed(str(exc)) from exc
        await interaction.response.send_message("✅ Dropdown sent!", ephemeral=True)

    bot.tree.add_command(prices_cmd)

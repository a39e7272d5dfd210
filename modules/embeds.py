"""
Embeds module - posting helpers for decorating channels.

``/createembed`` builds an embed from options, ``/spacer`` pushes blank lines,
``/say`` relays text and ``/div`` posts the configured divider image.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import discord
from discord import app_commands

from core.errors import ExternalCallFailed, InvalidInput, NotFound
from core.help_system import help_system
from core.permissions import require_admin
from core.utils import parse_color, truncate, utcnow

if TYPE_CHECKING:
    from bot.client import StoreBot

logger = logging.getLogger("storebot.embeds")

DEFAULT_EMBED_COLOUR = 0x36393F
SHORT_SPACER = "\u200b"
LONG_SPACER = "\u200b\n" * 30


def _unescape(text: Optional[str]) -> Optional[str]:
    # Slash command options are single-line; allow "\n" for line breaks.
    if text is None:
        return None
    return text.replace("\\n", "\n")


def _require_url(value: Optional[str], field: str) -> Optional[str]:
    if not value:
        return None
    value = value.strip()
    if not value.startswith(("https://", "http://")):
        raise InvalidInput(f"bad {field} url {value!r}", user_message=f"The {field} must be an http(s) URL.")
    return value


def build_custom_embed(
    color: str,
    *,
    title: Optional[str] = None,
    description: Optional[str] = None,
    footer: Optional[str] = None,
    footer_icon: Optional[str] = None,
    timestamp: bool = False,
    thumbnail: Optional[str] = None,
    image: Optional[str] = None,
    author_name: Optional[str] = None,
    author_icon: Optional[str] = None,
) -> discord.Embed:
    colour = parse_color(color)
    if colour is None:
        raise InvalidInput(
            f"bad colour {color!r}",
            user_message="Unknown colour. Use a hex code like `#5865F2` or a name like `blurple`.",
        )
    if not any((title, description, footer, thumbnail, image, author_name)):
        raise InvalidInput("empty embed", user_message="Give the embed at least a title, description or image.")

    embed = discord.Embed(
        colour=colour,
        title=truncate(title, 256) if title else None,
        description=truncate(_unescape(description), 4096) if description else None,
    )
    if footer:
        embed.set_footer(text=truncate(_unescape(footer), 2048), icon_url=_require_url(footer_icon, "footer icon"))
    if thumbnail:
        embed.set_thumbnail(url=_require_url(thumbnail, "thumbnail"))
    if image:
        embed.set_image(url=_require_url(image, "image"))
    if author_name:
        embed.set_author(name=truncate(author_name, 256), icon_url=_require_url(author_icon, "author icon"))
    if timestamp:
        embed.timestamp = utcnow()
    return embed


def divider_embed(image_url: Optional[str]) -> discord.Embed:
    if not image_url:
        raise NotFound("divider image not configured", user_message="The divider image is not configured.")
    embed = discord.Embed(colour=DEFAULT_EMBED_COLOUR)
    embed.set_image(url=image_url)
    return embed


async def _post(channel: Optional[discord.abc.Messageable], what: str, **kwargs) -> None:
    if channel is None:
        raise NotFound(f"no channel for {what}")
    try:
        await channel.send(**kwargs)
    except discord.HTTPException as exc:
        logger.error("Failed to post %s: %s", what, exc)
        raise ExternalCallFailed(str(exc)) from exc


def setup_embeds(bot: StoreBot) -> None:
    help_system.register_module(
        name="Embeds",
        description="Custom embeds, spacers and dividers.",
        commands=[
            ("/createembed", "Build and post a custom embed"),
            ("/spacer", "Post a short or long blank spacer"),
            ("/say", "Make the bot say something (admin only)"),
            ("/div", "Post the divider image (admin only)"),
        ],
    )

    @app_commands.command(name="createembed", description="Create a fully customized embed")
    @app_commands.describe(
        color="Hex code or color name",
        title="Embed title",
        description="Embed description (use \\n for new lines)",
        footer="Footer text",
        footericon="Footer icon URL",
        timestamp="Add timestamp",
        thumbnail="Thumbnail URL",
        image="Image URL",
        authorname="Author name",
        authoricon="Author icon URL",
    )
    @app_commands.guild_only()
    async def createembed_cmd(
        interaction: discord.Interaction,
        color: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        footer: Optional[str] = None,
        footericon: Optional[str] = None,
        timestamp: bool = False,
        thumbnail: Optional[str] = None,
        image: Optional[str] = None,
        authorname: Optional[str] = None,
        authoricon: Optional[str] = None,
    ) -> None:
        embed = build_custom_embed(
            color,
            title=title,
            description=description,
            footer=footer,
            footer_icon=footericon,
            timestamp=timestamp,
            thumbnail=thumbnail,
            image=image,
            author_name=authorname,
            author_icon=authoricon,
        )
        await _post(interaction.channel, "custom embed", embed=embed)
        await interaction.response.send_message("✅ Embed created!", ephemeral=True)

    @app_commands.command(name="spacer", description="Add a spacer message to the channel")
    @app_commands.describe(length="Choose spacer length")
    @app_commands.choices(length=[
        app_commands.Choice(name="Short", value="short"),
        app_commands.Choice(name="Long", value="long"),
    ])
    @app_commands.guild_only()
    async def spacer_cmd(interaction: discord.Interaction, length: app_commands.Choice[str]) -> None:
        spacer = LONG_SPACER if length.value == "long" else SHORT_SPACER
        await _post(interaction.channel, "spacer", content=spacer)
        await interaction.response.send_message(f"✅ {length.value} spacer added!", ephemeral=True)

    @app_commands.command(name="say", description="Make the bot say something (admin only)")
    @app_commands.describe(text="What should I say?")
    @app_commands.default_permissions(administrator=True)
    @app_commands.guild_only()
    async def say_cmd(interaction: discord.Interaction, text: str) -> None:
        require_admin(interaction.user)
        await _post(
            interaction.channel,
            "say message",
            content=_unescape(text),
            allowed_mentions=discord.AllowedMentions.none(),
        )
        await interaction.response.send_message("✅ Message sent!", ephemeral=True)

    @app_commands.command(name="div", description="Send a divider image embed (admin only)")
    @app_commands.default_permissions(administrator=True)
    @app_commands.guild_only()
    async def div_cmd(interaction: discord.Interaction) -> None:
        require_admin(interaction.user)
        embed = divider_embed(bot.config.divider_image_url)
        await _post(interaction.channel, "divider", embed=embed)
        await interaction.response.send_message("✅ Divider sent!", ephemeral=True)

    for command in (createembed_cmd, spacer_cmd, say_cmd, div_cmd):
        bot.tree.add_command(command)

"""
Auto-responder module.

Administrators manage trigger/response pairs with ``/autoresponder``; every
guild message is checked against the enabled triggers and the first match is
answered in the same channel.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import discord
from discord import app_commands

from core.constants import MatchMode
from core.errors import ExternalCallFailed, InvalidInput
from core.help_system import help_system
from core.permissions import require_admin
from core.trigger_store import MAX_TRIGGER_LENGTH, TriggerStore, normalize_trigger
from core.types import AutoresponderRule
from core.utils import chunk_lines
from responders import evaluate

if TYPE_CHECKING:
    from bot.client import StoreBot

logger = logging.getLogger("storebot.autoresponder")

MAX_RESPONSE_LENGTH = 2000
LIST_PREVIEW_LENGTH = 50
# One page per message: Discord caps the embeds of a message at 6000 characters
LIST_PAGE_LENGTH = 4000


def setup_auto_responder(bot: StoreBot) -> None:
    help_system.register_module(
        name="Auto-Responder",
        description="Automatic replies when a message contains or equals a trigger.",
        commands=[
            ("/autoresponder add", "Add or replace a trigger (admin only)"),
            ("/autoresponder remove", "Remove a trigger (admin only)"),
            ("/autoresponder list", "List all triggers (admin only)"),
            ("/autoresponder toggle", "Enable or disable a trigger (admin only)"),
        ],
    )
    bot.tree.add_command(build_autoresponder_group(bot.triggers))


def _preview(text: str) -> str:
    flat = text.replace("\n", " ")
    if len(flat) <= LIST_PREVIEW_LENGTH:
        return flat
    return flat[:LIST_PREVIEW_LENGTH] + "..."


def _rule_line(index: int, rule: AutoresponderRule) -> str:
    state = "🟢" if rule.enabled else "🔴"
    flags = [rule.match_mode]
    if rule.delete_trigger_message:
        flags.append("deletes trigger")
    return f"**{index}.** {state} `{rule.trigger}` ({', '.join(flags)}) → {_preview(rule.response)}"


def build_list_embeds(store: TriggerStore) -> list[discord.Embed]:
    rules = list(store.list())
    if not rules:
        return [discord.Embed(description="No autoresponders configured.", colour=discord.Colour.greyple())]
    pages = chunk_lines([_rule_line(index, rule) for index, rule in enumerate(rules, start=1)], LIST_PAGE_LENGTH)
    embeds = []
    for index, page in enumerate(pages):
        title = f"Autoresponders ({len(rules)})" if index == 0 else None
        embeds.append(discord.Embed(title=title, description=page, colour=discord.Colour.blurple()))
    return embeds


async def send_list(interaction: discord.Interaction, store: TriggerStore) -> int:
    """Reply with the rule list, one embed per message. Returns the message count."""
    embeds = build_list_embeds(store)
    await interaction.response.send_message(embed=embeds[0], ephemeral=True)
    for embed in embeds[1:]:
        await interaction.followup.send(embed=embed, ephemeral=True)
    return len(embeds)


def build_autoresponder_group(store: TriggerStore) -> app_commands.Group:
    group = app_commands.Group(
        name="autoresponder",
        description="Manage autoresponders",
        default_permissions=discord.Permissions(administrator=True),
        guild_only=True,
    )

    @group.command(name="add", description="Add or replace an autoresponder")
    @app_commands.describe(
        trigger="Text that fires the response (case-insensitive)",
        response="What the bot replies with",
        exact_match="Only fire when the whole message equals the trigger",
        delete_trigger="Delete the message that fired the trigger",
    )
    async def add_cmd(
        interaction: discord.Interaction,
        trigger: str,
        response: str,
        exact_match: bool = False,
        delete_trigger: bool = False,
    ) -> None:
        require_admin(interaction.user)
        trigger = normalize_trigger(trigger)
        if not trigger or len(trigger) > MAX_TRIGGER_LENGTH:
            raise InvalidInput(
                "bad trigger",
                user_message=f"Triggers must be 1-{MAX_TRIGGER_LENGTH} characters.",
            )
        if not response.strip() or len(response) > MAX_RESPONSE_LENGTH:
            raise InvalidInput(
                "bad response",
                user_message=f"Responses must be 1-{MAX_RESPONSE_LENGTH} characters.",
            )
        replaced = trigger in store
        rule = AutoresponderRule(
            trigger=trigger,
            response=response,
            match_mode=MatchMode.EXACT if exact_match else MatchMode.CONTAINS,
            delete_trigger_message=delete_trigger,
            created_by=str(interaction.user.id),
        )
        await store.add(trigger, rule)
        verb = "updated" if replaced else "added"
        await interaction.response.send_message(
            f"✅ Autoresponder {verb}: `{trigger}` ({rule.match_mode})",
            ephemeral=True,
        )

    @group.command(name="remove", description="Remove an autoresponder")
    @app_commands.describe(trigger="Trigger to remove")
    async def remove_cmd(interaction: discord.Interaction, trigger: str) -> None:
        require_admin(interaction.user)
        removed = await store.remove(trigger)
        await interaction.response.send_message(
            f"🗑️ Removed autoresponder `{removed.trigger}`.",
            ephemeral=True,
        )

    @group.command(name="list", description="List all autoresponders")
    async def list_cmd(interaction: discord.Interaction) -> None:
        require_admin(interaction.user)
        await send_list(interaction, store)

    @group.command(name="toggle", description="Enable or disable an autoresponder")
    @app_commands.describe(trigger="Trigger to toggle")
    async def toggle_cmd(interaction: discord.Interaction, trigger: str) -> None:
        require_admin(interaction.user)
        rule = await store.toggle(trigger)
        state = "enabled" if rule.enabled else "disabled"
        await interaction.response.send_message(
            f"Autoresponder `{rule.trigger}` is now **{state}**.",
            ephemeral=True,
        )

    @remove_cmd.autocomplete("trigger")
    @toggle_cmd.autocomplete("trigger")
    async def trigger_autocomplete(
        interaction: discord.Interaction,
        current: str,
    ) -> list[app_commands.Choice[str]]:
        return trigger_choices(store, current)

    return group


def trigger_choices(store: TriggerStore, current: str) -> list[app_commands.Choice[str]]:
    """Up to 25 triggers containing ``current``. Discord rejects choices over 100 characters."""
    needle = normalize_trigger(current)
    return [
        app_commands.Choice(name=rule.trigger, value=rule.trigger)
        for rule in store.list()
        if needle in rule.trigger and len(rule.trigger) <= MAX_TRIGGER_LENGTH
    ][:25]


async def handle_auto_responder(message: discord.Message, store: TriggerStore) -> Optional[str]:
    """
    Answer ``message`` if a trigger matches.

    Returns the trigger that fired, or None.
    """
    if message.guild is None:
        return None
    action = evaluate(store.list(), message.content, message.author.bot)
    if not action.fires:
        return None

    if action.delete_original:
        try:
            await message.delete()
        except discord.HTTPException as exc:
            logger.warning("Could not delete trigger message %s: %s", message.id, exc)

    try:
        await message.channel.send(action.respond, allowed_mentions=discord.AllowedMentions.none())
    except discord.HTTPException as exc:
        logger.error("Failed to send autoresponse for %r in %s: %s", action.trigger, message.channel.id, exc)
        raise ExternalCallFailed(str(exc)) from exc
    logger.debug("Trigger %r fired for message %s", action.trigger, message.id)
    return action.trigger

"""
Tickets module - ticket panels, staff actions and ticket forms.

The panel and action menus carry fixed custom_ids and are routed through
``core.interactions``, so panels posted before a restart keep working. The
category a panel option opens into is stored in the option value itself.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import discord
from discord import app_commands

from core.constants import CustomId, Priority, TicketAction
from core.errors import ExternalCallFailed, InvalidInput, NotFound
from core.help_system import help_system
from core.interactions import register_component_handler, report_error, selected_value
from core.permissions import require_admin, require_staff
from core.types import TicketRecord
from core.utils import safe_int, sanitize_text
from services.ticket_service import TicketService

from .receipts import Receipt, format_receipt, post_receipt, split_dates

if TYPE_CHECKING:
    from bot.client import StoreBot

logger = logging.getLogger("storebot.tickets")

PANEL_PLACEHOLDER = "♡ select ticket ୨"
ACTIONS_PLACEHOLDER = "admin ticket actions"

ACTION_OPTIONS = [
    (TicketAction.CLOSE, "close ticket", "📕"),
    (TicketAction.ADD_USER, "add user", "➕"),
    (TicketAction.REMOVE_USER, "remove user", "➖"),
    (TicketAction.LOCK, "lock ticket", "🔒"),
    (TicketAction.UNLOCK, "unlock ticket", "🔓"),
    (TicketAction.SEND_RECEIPT, "send receipt", "🧾"),
    (TicketAction.DELIVERY, "send delivery", "📦"),
    (TicketAction.BAN, "ban user", "🚫"),
    (TicketAction.PRIORITY, "set priority", "🚩"),
    (TicketAction.ARCHIVE, "archive ticket", "🗄️"),
]

WELCOME_TEXT = (
    "> ꒰ ✚ ₊ type `.start` to begin ♡\n"
    "> ꒷꒦ read tos before ordering ⑅\n"
    "> 𓂃˚ thank you for buying!"
)

DM_DISABLED_MESSAGE = "❌ Cannot send DM to this user. They may have DMs disabled."


# ─── Views ────────────────────────────────────────────────────────────────────


def panel_option_value(index: int, category_id: int) -> str:
    return f"{index}:{category_id}"


def parse_panel_value(value: str) -> Optional[int]:
    """Category id carried by a panel option value."""
    _, _, raw = value.rpartition(":")
    return safe_int(raw)


def build_ticket_panel_view(options: list[discord.SelectOption]) -> discord.ui.View:
    view = discord.ui.View(timeout=None)
    view.add_item(
        discord.ui.Select(
            custom_id=CustomId.TICKET_CREATE,
            placeholder=PANEL_PLACEHOLDER,
            options=options,
        )
    )
    return view


def build_ticket_panel(record: TicketRecord, staff_role_id: int) -> tuple[str, discord.ui.View]:
    """Greeting and staff action menu posted in a new ticket channel."""
    content = f"<@&{staff_role_id}> <@{record.owner_id}>\n{WELCOME_TEXT}"
    view = discord.ui.View(timeout=None)
    view.add_item(
        discord.ui.Select(
            custom_id=CustomId.TICKET_ACTIONS,
            placeholder=ACTIONS_PLACEHOLDER,
            options=[
                discord.SelectOption(label=description, value=value, emoji=emoji)
                for value, description, emoji in ACTION_OPTIONS
            ],
        )
    )
    return content, view


def build_priority_view() -> discord.ui.View:
    view = discord.ui.View(timeout=None)
    view.add_item(
        discord.ui.Select(
            custom_id=CustomId.TICKET_PRIORITY,
            placeholder="Select priority level",
            options=[
                discord.SelectOption(
                    label=f"{Priority.EMOJI[level]} {level.capitalize()}",
                    value=level,
                    description=f"{level} priority",
                )
                for level in Priority.ALL
            ],
        )
    )
    return view


def _ticket_channel(interaction: discord.Interaction) -> discord.TextChannel:
    channel = interaction.channel
    if not isinstance(channel, discord.TextChannel):
        raise NotFound("not a text channel", user_message="This only works inside a ticket channel.")
    return channel


# ─── Modals ───────────────────────────────────────────────────────────────────


class TicketModal(discord.ui.Modal):
    """Modal bound to a ticket channel; errors go through the shared boundary."""

    def __init__(self, bot: StoreBot) -> None:
        super().__init__()
        self.bot = bot

    @property
    def tickets(self) -> TicketService:
        return self.bot.tickets

    async def on_error(self, interaction: discord.Interaction, error: Exception) -> None:
        await report_error(interaction, error, f"modal {type(self).__name__}")


class AddUserModal(TicketModal, title="Add User to Ticket"):
    user_id = discord.ui.TextInput(label="User ID", placeholder="Enter user ID", max_length=25)

    async def on_submit(self, interaction: discord.Interaction) -> None:
        channel = _ticket_channel(interaction)
        member = await self.tickets.add_member(channel, interaction.user, self.user_id.value)
        await channel.send(f"✅ {member.mention} added to ticket.")
        await interaction.response.send_message(f"✅ Added {member}.", ephemeral=True)


class RemoveUserModal(TicketModal, title="Remove User from Ticket"):
    user_id = discord.ui.TextInput(label="User ID", placeholder="Enter user ID", max_length=25)

    async def on_submit(self, interaction: discord.Interaction) -> None:
        channel = _ticket_channel(interaction)
        member = await self.tickets.remove_member(channel, interaction.user, self.user_id.value)
        await channel.send(f"✅ {member.mention} removed from ticket.")
        await interaction.response.send_message(f"✅ Removed {member}.", ephemeral=True)


class ReceiptModal(TicketModal, title="Send Receipt"):
    order = discord.ui.TextInput(
        label="Order Items",
        style=discord.TextStyle.paragraph,
        placeholder="Enter order items",
        max_length=1000,
    )
    payment = discord.ui.TextInput(label="Method of Payment", placeholder="e.g., cashapp", max_length=100)
    revisions = discord.ui.TextInput(label="Number of Revisions", placeholder="e.g., 2", max_length=20)
    dates = discord.ui.TextInput(label="Start Date | End Date", placeholder="mm.dd.yy | mm.dd.yy", max_length=50)

    async def on_submit(self, interaction: discord.Interaction) -> None:
        require_staff(interaction.user, self.bot.config)
        channel = _ticket_channel(interaction)
        _, owner = await self.tickets.resolve_owner(channel)
        started, finished = split_dates(self.dates.value)
        text = format_receipt(
            Receipt(
                customer_mention=owner.mention,
                order=self.order.value,
                revisions=self.revisions.value,
                payment=self.payment.value,
                started=started,
                finished=finished,
            )
        )

        receipt_channel_id = self.bot.config.receipt_channel_id
        receipt_channel = channel.guild.get_channel(receipt_channel_id) if receipt_channel_id else None
        if isinstance(receipt_channel, discord.TextChannel):
            await post_receipt(receipt_channel, text)
        else:
            logger.info("Receipt channel unavailable; receipt only posted in ticket %s", channel.id)
        await post_receipt(channel, text)
        await interaction.response.send_message("✅ Receipt sent!", ephemeral=True)


class DeliveryModal(TicketModal, title="Send Delivery"):
    link = discord.ui.TextInput(
        label="Delivery Link",
        placeholder="Enter the delivery link (URL)",
        max_length=512,
    )
    items = discord.ui.TextInput(
        label="Order Items",
        style=discord.TextStyle.paragraph,
        placeholder="What did they order?",
        max_length=1000,
    )

    async def on_submit(self, interaction: discord.Interaction) -> None:
        require_staff(interaction.user, self.bot.config)
        channel = _ticket_channel(interaction)
        link = self.link.value.strip()
        if not link.startswith(("https://", "http://")):
            raise InvalidInput(f"bad delivery link {link!r}", user_message="The delivery link must be a URL.")
        _, owner = await self.tickets.resolve_owner(channel)

        content = (
            f"˚ ．special delivery ⁺⸺ {owner.mention}\n"
            f"꒰ ✚ ₊ you ordered ♡ ꒱\n"
            f"¦ {sanitize_text(self.items.value, 1000)}\n"
            f"𓂃˚ open a ticket if anything is broken"
        )
        view = discord.ui.View(timeout=None)
        view.add_item(discord.ui.Button(label="📦", style=discord.ButtonStyle.secondary, disabled=True))
        view.add_item(discord.ui.Button(label="open delivery", style=discord.ButtonStyle.link, url=link))
        try:
            await owner.send(content, view=view)
        except discord.Forbidden as exc:
            logger.info("DMs closed for ticket owner %s: %s", owner.id, exc)
            raise ExternalCallFailed(str(exc), user_message=DM_DISABLED_MESSAGE) from exc
        except discord.HTTPException as exc:
            logger.error("Failed to DM delivery to %s: %s", owner.id, exc)
            raise ExternalCallFailed(str(exc), user_message="❌ Failed to send delivery message.") from exc

        await channel.send(f"✅ Delivery sent to {owner}!")
        await interaction.response.send_message(f"✅ Delivery message sent to {owner}.", ephemeral=True)


# ─── Component handlers ───────────────────────────────────────────────────────


async def handle_ticket_create(bot: StoreBot, interaction: discord.Interaction) -> bool:
    guild = interaction.guild
    if guild is None or not isinstance(interaction.user, discord.Member):
        return False
    category_id = parse_panel_value(selected_value(interaction))
    category = guild.get_channel(category_id) if category_id else None
    if not isinstance(category, discord.CategoryChannel):
        raise NotFound(
            f"panel category {category_id} missing",
            user_message="❌ No category set for this ticket.",
        )

    await interaction.response.defer(ephemeral=True, thinking=True)
    channel = await bot.tickets.create(guild, interaction.user, category)
    await interaction.followup.send(f"✅ Ticket created: {channel.mention}", ephemeral=True)
    return True


async def handle_ticket_action(bot: StoreBot, interaction: discord.Interaction) -> bool:
    require_staff(interaction.user, bot.config)
    action = selected_value(interaction)
    channel = _ticket_channel(interaction)
    tickets = bot.tickets

    if action == TicketAction.CLOSE:
        await interaction.response.send_message("📝 Generating transcript and closing ticket...", ephemeral=True)
        outcome = await tickets.close(channel, interaction.user)
        if outcome.transcript_failed:
            await interaction.followup.send("⚠️ Error generating transcript, but closing anyway...", ephemeral=True)
        elif not outcome.transcript_sent:
            await interaction.followup.send("⚠️ No transcript channel configured; closing without a transcript.", ephemeral=True)
        try:
            await channel.send(f"🗑️ This ticket will be deleted in {bot.config.ticket_delete_delay:g} seconds.")
        except discord.HTTPException as exc:
            logger.debug("Could not announce deletion of %s: %s", channel.id, exc)
        return True

    if action == TicketAction.ADD_USER:
        await interaction.response.send_modal(AddUserModal(bot))
    elif action == TicketAction.REMOVE_USER:
        await interaction.response.send_modal(RemoveUserModal(bot))
    elif action == TicketAction.SEND_RECEIPT:
        await interaction.response.send_modal(ReceiptModal(bot))
    elif action == TicketAction.DELIVERY:
        await interaction.response.send_modal(DeliveryModal(bot))
    elif action == TicketAction.LOCK:
        await tickets.lock(channel, interaction.user)
        await interaction.response.send_message("🔒 Ticket locked.", ephemeral=True)
    elif action == TicketAction.UNLOCK:
        await tickets.unlock(channel, interaction.user)
        await interaction.response.send_message("🔓 Ticket unlocked.", ephemeral=True)
    elif action == TicketAction.BAN:
        record = await tickets.ban(channel, interaction.user)
        await interaction.response.send_message(
            f"🚫 {record.owner_name or record.owner_id} banned from creating tickets.",
            ephemeral=True,
        )
    elif action == TicketAction.PRIORITY:
        await interaction.response.send_message(
            "Select ticket priority:",
            view=build_priority_view(),
            ephemeral=True,
        )
    elif action == TicketAction.ARCHIVE:
        await tickets.archive(channel, interaction.user)
        await interaction.response.send_message("✅ Ticket archived.", ephemeral=True)
        try:
            await channel.send("📦 This ticket has been archived.")
        except discord.HTTPException as exc:
            logger.debug("Could not announce archive of %s: %s", channel.id, exc)
    else:
        raise InvalidInput(f"unknown ticket action {action!r}", user_message="Unknown ticket action.")
    return True


async def handle_ticket_priority(bot: StoreBot, interaction: discord.Interaction) -> bool:
    level = selected_value(interaction)
    channel = _ticket_channel(interaction)
    await bot.tickets.set_priority(channel, interaction.user, level)
    await interaction.response.edit_message(
        content=f"✅ Priority set to {Priority.EMOJI[level]} **{level.upper()}**",
        view=None,
    )
    return True


# ─── Setup ────────────────────────────────────────────────────────────────────


def setup_tickets(bot: StoreBot) -> None:
    help_system.register_module(
        name="Tickets",
        description="Private support channels opened from a ticket panel.",
        commands=[
            ("/ticket", "Post a ticket panel with up to three options (admin only)"),
            ("ticket actions menu", "Close, lock, ban, archive and more (staff only)"),
        ],
    )

    async def _create(interaction: discord.Interaction) -> bool:
        return await handle_ticket_create(bot, interaction)

    async def _action(interaction: discord.Interaction) -> bool:
        return await handle_ticket_action(bot, interaction)

    async def _priority(interaction: discord.Interaction) -> bool:
        return await handle_ticket_priority(bot, interaction)

    register_component_handler(CustomId.TICKET_CREATE, _create)
    register_component_handler(CustomId.TICKET_ACTIONS, _action)
    register_component_handler(CustomId.TICKET_PRIORITY, _priority)

    @app_commands.command(name="ticket", description="Post a ticket panel")
    @app_commands.describe(
        label1="Option 1 label",
        category1="Option 1 category",
        desc1="Option 1 description",
        emoji1="Option 1 emoji",
        label2="Option 2 label",
        category2="Option 2 category",
        desc2="Option 2 description",
        emoji2="Option 2 emoji",
        label3="Option 3 label",
        category3="Option 3 category",
        desc3="Option 3 description",
        emoji3="Option 3 emoji",
    )
    @app_commands.default_permissions(administrator=True)
    @app_commands.guild_only()
    async def ticket_cmd(
        interaction: discord.Interaction,
        label1: str,
        category1: discord.CategoryChannel,
        desc1: Optional[str] = None,
        emoji1: Optional[str] = None,
        label2: Optional[str] = None,
        category2: Optional[discord.CategoryChannel] = None,
        desc2: Optional[str] = None,
        emoji2: Optional[str] = None,
        label3: Optional[str] = None,
        category3: Optional[discord.CategoryChannel] = None,
        desc3: Optional[str] = None,
        emoji3: Optional[str] = None,
    ) -> None:
        require_admin(interaction.user)
        rows = [
            (label1, category1, desc1, emoji1),
            (label2, category2, desc2, emoji2),
            (label3, category3, desc3, emoji3),
        ]
        options = []
        for index, (label, category, desc, emoji) in enumerate(rows, start=1):
            if not label or category is None:
                continue
            options.append(
                discord.SelectOption(
                    label=label[:100],
                    value=panel_option_value(index, category.id),
                    description=desc[:100] if desc else None,
                    emoji=emoji or None,
                )
            )
        if not options:
            raise InvalidInput("no panel options", user_message="❌ No ticket options were configured!")

        try:
            await interaction.channel.send(view=build_ticket_panel_view(options))
        except discord.HTTPException as exc:
            logger.error("Failed to post ticket panel: %s", exc)
            raise ExternalCallFailed(
                str(exc),
                user_message="Discord rejected the panel. Check the emoji values.",
            ) from exc
        await interaction.response.send_message("✅ Ticket panel created!", ephemeral=True)

    bot.tree.add_command(ticket_cmd)

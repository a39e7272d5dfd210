"""
Waitlist service - order status displays.

Each order is one message in the waitlist channel plus a ``WaitlistEntry``
keyed by that message id. Status changes update the entry and the display is
rebuilt from it; the rendered message is never read back.
"""
from __future__ import annotations

import logging
from typing import Optional

import aiohttp
import discord

from core.config import BotConfig
from core.constants import CustomId, WaitlistStatus
from core.errors import ExternalCallFailed, InvalidInput, InvalidTransition, NotFound
from core.permissions import require_staff
from core.types import WaitlistEntry
from core.utils import sanitize_text, utcnow
from core.waitlist_storage import WaitlistStore

logger = logging.getLogger("storebot.waitlist")

STATUS_LABELS = {
    WaitlistStatus.PENDING: "⏳ pending",
    WaitlistStatus.PAID: "💸 paid",
    WaitlistStatus.PROCESSING: "⚙️ processing",
    WaitlistStatus.COMPLETE: "✅ complete",
}

STATUS_COLOURS = {
    WaitlistStatus.PENDING: 0x36393F,
    WaitlistStatus.PAID: 0x5865F2,
    WaitlistStatus.PROCESSING: 0xFEE75C,
    WaitlistStatus.COMPLETE: 0x57F287,
}


def status_options_for(status: str) -> list[str]:
    """Statuses offered by the select menu for an entry in ``status``."""
    if status == WaitlistStatus.COMPLETE:
        return []
    return list(WaitlistStatus.SELECTABLE)


def header_line(customer_id: int) -> str:
    return f"_ _\n✦ <@{customer_id}>**'s** queue spot"


def build_status_embed(entry: WaitlistEntry) -> discord.Embed:
    embed = discord.Embed(
        title="new order",
        colour=STATUS_COLOURS.get(entry.status, 0x36393F),
        timestamp=entry.updated_at,
    )
    embed.add_field(name="item", value=entry.item or "unknown", inline=False)
    embed.add_field(name="payment", value=entry.payment_method or "unknown", inline=False)
    embed.add_field(name="status", value=f"**{STATUS_LABELS.get(entry.status, entry.status)}**", inline=False)
    return embed


def build_status_view(entry: WaitlistEntry) -> Optional[discord.ui.View]:
    """The status select for ``entry``, or None once the order is complete."""
    statuses = status_options_for(entry.status)
    if not statuses:
        return None
    view = discord.ui.View(timeout=None)
    view.add_item(
        discord.ui.Select(
            custom_id=CustomId.WAITLIST_STATUS,
            placeholder="status",
            options=[
                discord.SelectOption(label=STATUS_LABELS[status], value=status)
                for status in statuses
            ],
        )
    )
    return view


def apply_status(entry: WaitlistEntry, new_status: str) -> None:
    """Move ``entry`` to ``new_status``. Complete orders are final."""
    if new_status not in WaitlistStatus.SELECTABLE:
        raise InvalidInput(f"unknown waitlist status {new_status!r}", user_message="Unknown status.")
    if entry.is_complete:
        raise InvalidTransition(
            f"waitlist entry {entry.message_id} already complete",
            user_message="This order is already complete.",
        )
    entry.status = new_status
    entry.updated_at = utcnow()


class WaitlistService:
    def __init__(self, config: BotConfig, store: WaitlistStore) -> None:
        self.config = config
        self.store = store

    async def add(
        self,
        channel: discord.abc.Messageable,
        actor: discord.abc.User,
        customer: discord.abc.User,
        item: str,
        payment_method: str,
    ) -> WaitlistEntry:
        """Post a new order display in ``channel`` and record it as pending."""
        require_staff(actor, self.config)
        item = sanitize_text(item, 200).strip()
        payment_method = sanitize_text(payment_method, 100).strip()
        if not item or not payment_method:
            raise InvalidInput("empty waitlist field", user_message="Item and payment method are required.")

        entry = WaitlistEntry(
            message_id=0,
            channel_id=getattr(channel, "id", 0),
            customer_id=customer.id,
            item=item,
            payment_method=payment_method,
            created_by=actor.id,
        )
        try:
            await channel.send(
                header_line(customer.id),
                allowed_mentions=discord.AllowedMentions(users=True, roles=False, everyone=False),
            )
            view = build_status_view(entry)
            message = await channel.send(embed=build_status_embed(entry), view=view)
        except (discord.HTTPException, aiohttp.ClientError) as exc:
            logger.error("Failed to post waitlist entry: %s", exc)
            raise ExternalCallFailed(str(exc)) from exc

        entry.message_id = message.id
        await self.store.save(entry)
        logger.info("Waitlist entry %s added for %s by %s", message.id, customer.id, actor.id)
        return entry

    async def set_status(
        self,
        message_id: int,
        actor: discord.abc.User,
        new_status: str,
    ) -> WaitlistEntry:
        require_staff(actor, self.config)
        entry = await self.store.update(message_id, lambda stored: apply_status(stored, new_status))
        if entry is None:
            raise NotFound(
                f"no waitlist entry for message {message_id}",
                user_message="This order isn't tracked anymore.",
            )
        logger.info("Waitlist entry %s set to %s by %s", message_id, new_status, actor.id)
        return entry

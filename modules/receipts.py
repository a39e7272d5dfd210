"""
Receipts module - order receipts for customers.

``format_receipt`` is shared by ``/receipt`` and the receipt form in tickets.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import discord
from discord import app_commands

from core.channels import configured_text_channel
from core.errors import ExternalCallFailed
from core.help_system import help_system
from core.permissions import require_staff
from core.utils import quote_lines, sanitize_text

if TYPE_CHECKING:
    from bot.client import StoreBot

logger = logging.getLogger("storebot.receipts")

RECEIPT_MENTIONS = discord.AllowedMentions(users=True, roles=False, everyone=False)


@dataclass
class Receipt:
    customer_mention: str
    order: str
    revisions: str
    payment: str
    started: str
    finished: str
    alt_price: Optional[str] = None
    reference: Optional[str] = None


def format_receipt(receipt: Receipt) -> str:
    lines = [
        "_ _ 　  ✦　　.　　𓂀　　.　　✧",
        f"_ _　 　꒰ `🧾` ꒱　**{receipt.customer_mention}**'s order receipt",
        "_ _　   ⨀ 𓄹 ⨀　overall **order**",
        quote_lines(sanitize_text(receipt.order, 1200)),
        "",
        f"_ _　   `📝`　revisions: {sanitize_text(receipt.revisions, 50)}",
        f"_ _　   `🐾`　payment: {sanitize_text(receipt.payment, 100)}",
    ]
    if receipt.alt_price:
        lines.append(f"_ _　   `🗯`　alternate price: {sanitize_text(receipt.alt_price, 100)}")
    lines.extend([
        f"-# _ _　꙳　date started: {sanitize_text(receipt.started, 30)}",
        f"-# _ _　꙳　date finished: {sanitize_text(receipt.finished, 30)}",
    ])
    if receipt.reference:
        lines.append(f"_ _ 　  ⨀　id: {sanitize_text(receipt.reference, 50)}")
    lines.append("_ _ 　  ✿　　.　　✦　　.　　˚")
    return "\n".join(lines)


def split_dates(value: str) -> tuple[str, str]:
    """Split ``"start | end"``; a missing end is left blank."""
    start, _, end = (value or "").partition("|")
    return start.strip(), end.strip()


async def post_receipt(receipt_channel: discord.abc.Messageable, text: str) -> None:
    try:
        await receipt_channel.send(text, allowed_mentions=RECEIPT_MENTIONS)
    except discord.HTTPException as exc:
        logger.error("Failed to post receipt: %s", exc)
        raise ExternalCallFailed(str(exc)) from exc


def setup_receipts(bot: StoreBot) -> None:
    help_system.register_module(
        name="Receipts",
        description="Order receipts posted to the receipt log.",
        commands=[
            ("/receipt", "Post an order receipt (staff only)"),
        ],
    )

    @app_commands.command(name="receipt", description="Send a receipt here and in the receipt channel")
    @app_commands.describe(
        user="Customer",
        order="Items ordered",
        revisions="Total changes",
        mop="Method of payment",
        altprice="Value in another payment method",
        started="Start date (mm.dd.yy)",
        finished="Finish date (mm.dd.yy)",
        reference="Customer or order id",
    )
    @app_commands.rename(reference="id")
    @app_commands.guild_only()
    async def receipt_cmd(
        interaction: discord.Interaction,
        user: discord.User,
        order: str,
        revisions: int,
        mop: str,
        altprice: str,
        started: str,
        finished: str,
        reference: str,
    ) -> None:
        require_staff(interaction.user, bot.config)
        channel = configured_text_channel(interaction.guild, bot.config.receipt_channel_id, "receipt")
        text = format_receipt(
            Receipt(
                customer_mention=user.mention,
                order=order,
                revisions=str(revisions),
                payment=mop,
                started=started,
                finished=finished,
                alt_price=altprice,
                reference=reference,
            )
        )
        await post_receipt(channel, text)
        await interaction.response.send_message(text, allowed_mentions=RECEIPT_MENTIONS)

    bot.tree.add_command(receipt_cmd)

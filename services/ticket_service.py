"""
Ticket service - the ticket lifecycle.

Owns channel creation, lock/unlock, bans, priority, archiving and closing.
Ownership and status come from the ticket store; the channel topic is only
written for display. Every Discord call goes through ``_call`` so failures
surface as ``ExternalCallFailed`` with the cause logged.
"""
from __future__ import annotations

import asyncio
import logging
import weakref
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple

import aiohttp
import discord

from core.channels import configured_text_channel
from core.config import BotConfig
from core.constants import TICKET_CHANNEL_PREFIX, Priority, TicketStatus
from core.errors import (
    DuplicateTicket,
    ExternalCallFailed,
    InvalidInput,
    InvalidTransition,
    NotFound,
    OwnerNotResolvable,
    TicketBanned,
)
from core.permissions import require_staff
from core.scheduler import DeferredTasks
from core.ticket_storage import TicketStore
from core.types import TicketBan, TicketRecord
from core.utils import safe_int, utcnow

from .transcript_service import build_transcript_file, capture_channel_transcript

logger = logging.getLogger("storebot.tickets")

EXTERNAL_ERRORS = (discord.HTTPException, aiohttp.ClientError)

# record -> (content, view) posted in a freshly created ticket
PanelBuilder = Callable[[TicketRecord], Tuple[str, Optional[discord.ui.View]]]


@dataclass
class CloseOutcome:
    """What happened to the transcript when a ticket was closed."""
    message_count: Optional[int] = None
    transcript_failed: bool = False

    @property
    def transcript_sent(self) -> bool:
        return self.message_count is not None


def ticket_channel_name(user: discord.abc.User) -> str:
    return f"{TICKET_CHANNEL_PREFIX}{user.name.lower()}"


def _member_overwrite() -> discord.PermissionOverwrite:
    return discord.PermissionOverwrite(
        view_channel=True,
        send_messages=True,
        read_message_history=True,
    )


class TicketService:
    """Ticket operations for every guild the bot is in."""

    def __init__(
        self,
        config: BotConfig,
        store: TicketStore,
        scheduler: DeferredTasks,
        panel_builder: Optional[PanelBuilder] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.scheduler = scheduler
        self.panel_builder = panel_builder
        # Entries vanish once no create call holds the lock.
        self._owner_locks: weakref.WeakValueDictionary[tuple[int, int], asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    # ─── Helpers ──────────────────────────────────────────────────────────────

    async def _call(self, coro: Awaitable[Any], what: str) -> Any:
        try:
            return await coro
        except EXTERNAL_ERRORS as exc:
            logger.error("Failed to %s: %s", what, exc)
            raise ExternalCallFailed(f"{what}: {exc}") from exc

    def _owner_lock(self, guild_id: int, owner_id: int) -> asyncio.Lock:
        return self._owner_locks.setdefault((guild_id, owner_id), asyncio.Lock())

    async def get_record(self, channel: discord.abc.GuildChannel) -> TicketRecord:
        record = await self.store.get(channel.id)
        if record is None:
            raise OwnerNotResolvable(f"no ticket record for channel {channel.id}")
        return record

    async def resolve_owner(
        self,
        channel: discord.abc.GuildChannel,
    ) -> Tuple[TicketRecord, discord.Member]:
        """The ticket record and the owner as a guild member."""
        record = await self.get_record(channel)
        guild = channel.guild
        member = guild.get_member(record.owner_id)
        if member is not None:
            return record, member
        try:
            member = await guild.fetch_member(record.owner_id)
        except EXTERNAL_ERRORS as exc:
            logger.warning("Could not fetch owner %s of ticket %s: %s", record.owner_id, channel.id, exc)
            raise OwnerNotResolvable(f"owner {record.owner_id} not fetchable") from exc
        return record, member

    @staticmethod
    def _require_active(record: TicketRecord) -> None:
        if record.status in TicketStatus.TERMINAL:
            raise InvalidTransition(
                f"ticket {record.channel_id} is {record.status}",
                user_message=f"This ticket is {record.status}.",
            )

    async def _fetch_member(self, guild: discord.Guild, raw_id: str) -> discord.Member:
        member_id = safe_int(raw_id)
        if member_id is None:
            raise InvalidInput(f"bad user id {raw_id!r}", user_message="That isn't a valid user ID.")
        member = guild.get_member(member_id)
        if member is not None:
            return member
        try:
            return await guild.fetch_member(member_id)
        except discord.NotFound as exc:
            raise NotFound(f"member {member_id}", user_message="Could not find that user.") from exc
        except EXTERNAL_ERRORS as exc:
            logger.error("Failed to fetch member %s: %s", member_id, exc)
            raise ExternalCallFailed(str(exc)) from exc

    # ─── Creation ─────────────────────────────────────────────────────────────

    async def create(
        self,
        guild: discord.Guild,
        owner: discord.Member,
        category: discord.CategoryChannel,
    ) -> discord.TextChannel:
        """
        Open a ticket channel for ``owner`` under ``category``.

        The ban check, duplicate check and channel creation all run under one
        per-owner lock, so two quick selections cannot create two tickets.
        """
        async with self._owner_lock(guild.id, owner.id):
            if await self.store.get_ban(guild.id, owner.id) is not None:
                raise TicketBanned(f"user {owner.id} is banned from tickets")

            for record in await self.store.find_active_by_owner(guild.id, owner.id):
                if guild.get_channel(record.channel_id) is not None:
                    raise DuplicateTicket(f"user {owner.id} already has ticket {record.channel_id}")
                logger.info("Dropping stale ticket record for deleted channel %s", record.channel_id)
                await self.store.delete(record.channel_id)

            name = ticket_channel_name(owner)
            if discord.utils.get(guild.text_channels, name=name) is not None:
                raise DuplicateTicket(f"channel {name} already exists")

            overwrites: dict[Any, discord.PermissionOverwrite] = {
                guild.default_role: discord.PermissionOverwrite(view_channel=False),
                owner: _member_overwrite(),
            }
            staff_role = guild.get_role(self.config.staff_role_id)
            if staff_role is not None:
                overwrites[staff_role] = _member_overwrite()
            else:
                logger.warning("Staff role %s not found in guild %s", self.config.staff_role_id, guild.id)

            channel = await self._call(
                guild.create_text_channel(
                    name,
                    category=category,
                    overwrites=overwrites,
                    topic=f"Ticket for {owner.name}",
                    reason=f"Ticket opened by {owner} ({owner.id})",
                ),
                "create ticket channel",
            )
            record = TicketRecord(
                channel_id=channel.id,
                guild_id=guild.id,
                owner_id=owner.id,
                owner_name=owner.name,
                category_id=category.id,
            )
            await self.store.save(record)
            logger.info("Ticket %s opened by %s in guild %s", channel.id, owner.id, guild.id)

        await self._post_panel(channel, record)
        return channel

    async def _post_panel(self, channel: discord.TextChannel, record: TicketRecord) -> None:
        if self.panel_builder is None:
            return
        content, view = self.panel_builder(record)
        try:
            if view is None:
                await channel.send(content)
            else:
                await channel.send(content, view=view)
        except EXTERNAL_ERRORS as exc:
            logger.warning("Could not post action panel in ticket %s: %s", channel.id, exc)

    # ─── Staff actions ────────────────────────────────────────────────────────

    async def lock(self, channel: discord.TextChannel, actor: discord.abc.User) -> TicketRecord:
        require_staff(actor, self.config)
        record = await self.get_record(channel)
        self._require_active(record)
        if record.status == TicketStatus.LOCKED:
            return record
        record, owner = await self.resolve_owner(channel)
        overwrite = channel.overwrites_for(owner)
        overwrite.send_messages = False
        await self._call(channel.set_permissions(owner, overwrite=overwrite), "lock ticket")
        return await self._set_status(channel.id, TicketStatus.LOCKED) or record

    async def unlock(self, channel: discord.TextChannel, actor: discord.abc.User) -> TicketRecord:
        require_staff(actor, self.config)
        record = await self.get_record(channel)
        if record.status != TicketStatus.LOCKED:
            raise InvalidTransition(
                f"ticket {channel.id} is {record.status}",
                user_message="This ticket isn't locked.",
            )
        record, owner = await self.resolve_owner(channel)
        overwrite = channel.overwrites_for(owner)
        overwrite.send_messages = True
        await self._call(channel.set_permissions(owner, overwrite=overwrite), "unlock ticket")
        return await self._set_status(channel.id, TicketStatus.OPEN) or record

    async def ban(self, channel: discord.TextChannel, actor: discord.abc.User) -> TicketRecord:
        """Bar the owner from opening tickets. The channel itself stays open."""
        require_staff(actor, self.config)
        record = await self.get_record(channel)
        self._require_active(record)
        await self.store.add_ban(
            TicketBan(
                guild_id=record.guild_id,
                owner_id=record.owner_id,
                banned_by=actor.id,
                channel_id=channel.id,
            )
        )
        updated = await self._set_status(channel.id, TicketStatus.BANNED) or record
        try:
            await channel.edit(topic=f"🚫 {record.owner_name or record.owner_id} banned from tickets")
        except EXTERNAL_ERRORS as exc:
            logger.warning("Could not update topic of banned ticket %s: %s", channel.id, exc)
        logger.info("User %s banned from tickets by %s", record.owner_id, actor.id)
        return updated

    async def set_priority(
        self,
        channel: discord.TextChannel,
        actor: discord.abc.User,
        level: str,
    ) -> TicketRecord:
        require_staff(actor, self.config)
        if level not in Priority.ALL:
            raise InvalidInput(f"unknown priority {level!r}", user_message="Unknown priority level.")
        record = await self.get_record(channel)
        self._require_active(record)
        topic = f"Priority: {Priority.EMOJI[level]} {level.upper()}"
        await self._call(channel.edit(topic=topic), "set ticket priority")

        def _apply(stored: TicketRecord) -> None:
            stored.priority = level

        return await self.store.update(channel.id, _apply) or record

    async def archive(self, channel: discord.TextChannel, actor: discord.abc.User) -> TicketRecord:
        require_staff(actor, self.config)
        record = await self.get_record(channel)
        self._require_active(record)
        if self.config.archive_category_id is None:
            raise NotFound("archive category not configured", user_message="Archive category is not configured.")
        category = channel.guild.get_channel(self.config.archive_category_id)
        if not isinstance(category, discord.CategoryChannel):
            raise NotFound(
                f"archive category {self.config.archive_category_id} missing",
                user_message="Archive category not found.",
            )
        await self._call(channel.edit(category=category), "archive ticket")
        return await self._set_status(channel.id, TicketStatus.ARCHIVED) or record

    async def add_member(
        self,
        channel: discord.TextChannel,
        actor: discord.abc.User,
        raw_user_id: str,
    ) -> discord.Member:
        require_staff(actor, self.config)
        await self.get_record(channel)
        member = await self._fetch_member(channel.guild, raw_user_id)
        await self._call(
            channel.set_permissions(member, overwrite=_member_overwrite()),
            "add member to ticket",
        )
        return member

    async def remove_member(
        self,
        channel: discord.TextChannel,
        actor: discord.abc.User,
        raw_user_id: str,
    ) -> discord.Member:
        require_staff(actor, self.config)
        record = await self.get_record(channel)
        member = await self._fetch_member(channel.guild, raw_user_id)
        if member.id == record.owner_id:
            raise InvalidInput(
                "cannot remove ticket owner",
                user_message="The ticket owner can't be removed. Close the ticket instead.",
            )
        await self._call(
            channel.set_permissions(member, overwrite=None),
            "remove member from ticket",
        )
        return member

    async def _set_status(self, channel_id: int, status: str) -> Optional[TicketRecord]:
        def _apply(record: TicketRecord) -> None:
            record.status = status

        return await self.store.update(channel_id, _apply)

    # ─── Closing ──────────────────────────────────────────────────────────────

    async def close(self, channel: discord.TextChannel, actor: discord.abc.User) -> CloseOutcome:
        """
        Deliver the transcript, drop the record and schedule channel deletion.

        A failed transcript never blocks the close.
        """
        require_staff(actor, self.config)
        await self.get_record(channel)

        outcome = CloseOutcome()
        try:
            outcome.message_count = await self._deliver_transcript(channel, actor)
        except Exception:
            logger.exception("Transcript for ticket %s failed; closing anyway", channel.id)
            outcome.transcript_failed = True

        await self.store.delete(channel.id)
        self.scheduler.schedule(
            f"ticket-delete:{channel.id}",
            self.config.ticket_delete_delay,
            lambda: self._delete_channel(channel),
        )
        logger.info("Ticket %s closed by %s", channel.id, actor.id)
        return outcome

    async def _deliver_transcript(
        self,
        channel: discord.TextChannel,
        actor: discord.abc.User,
    ) -> Optional[int]:
        if self.config.transcript_channel_id is None:
            logger.info("No transcript channel configured; skipping transcript for %s", channel.id)
            return None
        log_channel = configured_text_channel(channel.guild, self.config.transcript_channel_id, "transcript")

        generated_at = utcnow()
        html, count = await capture_channel_transcript(
            channel,
            closed_by=str(actor),
            generated_at=generated_at,
        )
        embed = discord.Embed(
            title="📋 Ticket Closed",
            description=f"Ticket: {channel.name}",
            colour=discord.Colour.red(),
            timestamp=generated_at,
        )
        embed.add_field(name="Closed by", value=str(actor), inline=True)
        embed.add_field(name="Messages", value=str(count), inline=True)
        embed.set_footer(text="Download the HTML file and open it in your browser")
        await log_channel.send(
            embed=embed,
            file=build_transcript_file(html, channel.name, generated_at),
        )
        return count

    async def _delete_channel(self, channel: discord.TextChannel) -> None:
        try:
            await channel.delete(reason="Ticket closed")
        except discord.NotFound:
            logger.debug("Ticket channel %s already gone", channel.id)
        except EXTERNAL_ERRORS as exc:
            logger.warning("Could not delete ticket channel %s: %s", channel.id, exc)

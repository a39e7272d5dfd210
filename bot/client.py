"""
Discord client - wires configuration, stores and feature modules together.

Every event entry point runs behind an error boundary: failures are logged
and the user sees a short message, never a traceback.
"""
from __future__ import annotations

import logging
from typing import Optional

import discord
from discord import app_commands

from core.config import BotConfig
from core.errors import PermissionDenied
from core.interactions import handle_interaction, report_error
from core.scheduler import DeferredTasks
from core.ticket_storage import TicketStore
from core.trigger_store import TriggerStore
from core.waitlist_storage import WaitlistStore
from modules.auto_responder import handle_auto_responder, setup_auto_responder
from modules.embeds import setup_embeds
from modules.help import setup_help
from modules.pricing import setup_pricing
from modules.receipts import setup_receipts
from modules.tickets import build_ticket_panel, setup_tickets
from modules.waitlist import setup_waitlist
from modules.welcomer import handle_member_join
from services.ticket_service import TicketService
from services.waitlist_service import WaitlistService

logger = logging.getLogger("storebot")


class StoreBot(discord.Client):
    """
    Main Discord bot client.

    Handles:
    - Discord events (on_ready, on_message, on_member_join, on_interaction)
    - Command registration
    - Store loading and shutdown of deferred tasks

    Business logic is delegated to services and modules.
    """

    def __init__(self, config: BotConfig) -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        intents.guilds = True
        super().__init__(intents=intents)

        self.config = config
        self.tree = app_commands.CommandTree(self)
        self.tree.error(self._on_app_command_error)
        self.scheduler = DeferredTasks()
        self.triggers = TriggerStore(config.autoresponder_path)
        self.tickets = TicketService(
            config,
            TicketStore(config.tickets_path),
            self.scheduler,
            panel_builder=lambda record: build_ticket_panel(record, config.staff_role_id),
        )
        self.waitlist = WaitlistService(config, WaitlistStore(config.waitlist_path))
        self.ready_once = False

    # ─── Lifecycle ────────────────────────────────────────────────────────────

    async def setup_hook(self) -> None:
        """Called when the bot is starting up."""
        if self.config.enable_autoresponder:
            await self.triggers.load()
            setup_auto_responder(self)
        else:
            logger.info("Autoresponder disabled by configuration")

        setup_tickets(self)
        setup_waitlist(self)
        setup_receipts(self)
        setup_pricing(self)
        setup_embeds(self)
        setup_help(self)

        synced = await self.tree.sync()
        logger.info("Synced %d application commands", len(synced))

    async def on_ready(self) -> None:
        if self.ready_once:
            return
        self.ready_once = True
        logger.info("Bot ready as %s", self.user)
        if self.config.presence_text:
            await self.change_presence(
                status=discord.Status.dnd,
                activity=discord.Activity(type=discord.ActivityType.watching, name=self.config.presence_text),
            )

    async def close(self) -> None:
        """Cleanup when shutting down."""
        cancelled = self.scheduler.cancel_all()
        if cancelled:
            logger.info("Cancelled %d pending deferred tasks", cancelled)
        await super().close()

    # ─── Events ───────────────────────────────────────────────────────────────

    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot or not self.config.enable_autoresponder:
            return
        try:
            await handle_auto_responder(message, self.triggers)
        except Exception as exc:
            logger.error("Auto-responder error for message %s: %s", message.id, exc, exc_info=exc)

    async def on_member_join(self, member: discord.Member) -> None:
        try:
            await handle_member_join(member, self.config)
        except Exception as exc:
            logger.error("Welcomer error for member %s: %s", member.id, exc, exc_info=exc)

    async def on_interaction(self, interaction: discord.Interaction) -> None:
        """Handle component interactions (select menus) by custom_id."""
        await handle_interaction(interaction)

    async def _on_app_command_error(
        self,
        interaction: discord.Interaction,
        error: app_commands.AppCommandError,
    ) -> None:
        original: Optional[BaseException] = getattr(error, "original", None)
        command = interaction.command.qualified_name if interaction.command else "unknown command"
        if isinstance(error, app_commands.CheckFailure) and original is None:
            original = PermissionDenied(str(error), user_message=str(error) or None)
        await report_error(interaction, original or error, f"/{command}")

"""Shared fakes for Discord objects and configuration."""
from __future__ import annotations

import datetime as dt
import itertools
from types import SimpleNamespace
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from core.config import BotConfig
from core.scheduler import DeferredTasks
from core.ticket_storage import TicketStore
from core.waitlist_storage import WaitlistStore

GUILD_ID = 100
STAFF_ROLE_ID = 200
TRANSCRIPT_CHANNEL_ID = 300
ARCHIVE_CATEGORY_ID = 400

_ids = itertools.count(10_000)


def http_error(cls: type = discord.HTTPException, status: int = 500, text: str = "boom") -> discord.HTTPException:
    return cls(SimpleNamespace(status=status, reason=text), text)


def make_config(**overrides) -> BotConfig:
    values = dict(
        token="token",
        staff_role_id=STAFF_ROLE_ID,
        transcript_channel_id=TRANSCRIPT_CHANNEL_ID,
        ticket_delete_delay=0.0,
    )
    values.update(overrides)
    return BotConfig(**values)


def make_member(
    user_id: Optional[int] = None,
    name: str = "alice",
    *,
    staff: bool = False,
    admin: bool = False,
    bot: bool = False,
) -> MagicMock:
    member = MagicMock(spec=discord.Member)
    member.id = user_id if user_id is not None else next(_ids)
    member.name = name
    member.bot = bot
    member.mention = f"<@{member.id}>"
    member.roles = [discord.Object(id=STAFF_ROLE_ID)] if staff else []
    member.guild_permissions = SimpleNamespace(administrator=admin)
    member.send = AsyncMock()
    member.__str__.return_value = name
    return member


class FakeGuild:
    """Just enough of discord.Guild for the ticket and waitlist services."""

    def __init__(self, guild_id: int = GUILD_ID, name: str = "Store") -> None:
        self.id = guild_id
        self.name = name
        self.default_role = discord.Object(id=guild_id)
        self.roles = {STAFF_ROLE_ID: discord.Object(id=STAFF_ROLE_ID)}
        self.channels: dict[int, object] = {}
        self.members: dict[int, MagicMock] = {}
        self.fetch_member = AsyncMock(side_effect=self._fetch_member)
        self.create_text_channel = AsyncMock(side_effect=self._create_text_channel)

    @property
    def text_channels(self) -> list:
        return [c for c in self.channels.values() if isinstance(c, discord.TextChannel)]

    def get_channel(self, channel_id: int):
        return self.channels.get(channel_id)

    def get_role(self, role_id: int):
        return self.roles.get(role_id)

    def get_member(self, member_id: int):
        return self.members.get(member_id)

    def add_member(self, member: MagicMock) -> MagicMock:
        self.members[member.id] = member
        return member

    async def _fetch_member(self, member_id: int):
        raise http_error(discord.NotFound, 404, "Unknown Member")

    async def _create_text_channel(self, name: str, **kwargs):
        channel = make_text_channel(self, name=name)
        channel.created_with = kwargs
        return channel


def make_text_channel(guild: FakeGuild, channel_id: Optional[int] = None, name: str = "general") -> MagicMock:
    channel = MagicMock(spec=discord.TextChannel)
    channel.id = channel_id if channel_id is not None else next(_ids)
    channel.name = name
    channel.guild = guild
    channel.mention = f"<#{channel.id}>"
    channel.send = AsyncMock(return_value=SimpleNamespace(id=next(_ids)))
    channel.edit = AsyncMock()
    channel.set_permissions = AsyncMock()
    channel.delete = AsyncMock()
    channel.overwrites_for.return_value = discord.PermissionOverwrite(
        view_channel=True,
        send_messages=True,
        read_message_history=True,
    )
    guild.channels[channel.id] = channel
    return channel


def make_category(guild: FakeGuild, category_id: Optional[int] = None) -> MagicMock:
    category = MagicMock(spec=discord.CategoryChannel)
    category.id = category_id if category_id is not None else next(_ids)
    guild.channels[category.id] = category
    return category


def make_message(message_id: int, content: str = "", *, seconds: int = 0, **extra) -> SimpleNamespace:
    base = dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)
    fields = dict(
        id=message_id,
        content=content,
        created_at=base + dt.timedelta(seconds=seconds if seconds else message_id),
        author=SimpleNamespace(
            name="alice",
            display_name="Alice",
            bot=False,
            display_avatar=SimpleNamespace(url="https://cdn.example/avatar.png"),
        ),
        embeds=[],
        attachments=[],
    )
    fields.update(extra)
    return SimpleNamespace(**fields)


@pytest.fixture
def config() -> BotConfig:
    return make_config()


@pytest.fixture
def guild() -> FakeGuild:
    return FakeGuild()


@pytest.fixture
def staff(guild: FakeGuild) -> MagicMock:
    return guild.add_member(make_member(name="staffer", staff=True))


@pytest.fixture
def ticket_store(tmp_path) -> TicketStore:
    return TicketStore(tmp_path / "tickets.json")


@pytest.fixture
def waitlist_store(tmp_path) -> WaitlistStore:
    return WaitlistStore(tmp_path / "waitlist.json")


@pytest.fixture
async def scheduler():
    tasks = DeferredTasks()
    yield tasks
    tasks.cancel_all()

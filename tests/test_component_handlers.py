from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from core.constants import TicketAction, WaitlistStatus
from core.errors import PermissionDenied
from modules.tickets import handle_ticket_action
from modules.waitlist import handle_status_select
from services import ticket_service as ticket_service_module
from services.ticket_service import TicketService
from services.waitlist_service import WaitlistService

from conftest import TRANSCRIPT_CHANNEL_ID, http_error, make_category, make_member, make_text_channel


def select_interaction(user, value: str, **extra) -> SimpleNamespace:
    fields = dict(
        id=1,
        user=user,
        data={"values": [value]},
        response=SimpleNamespace(send_message=AsyncMock(), edit_message=AsyncMock()),
        followup=SimpleNamespace(send=AsyncMock()),
    )
    fields.update(extra)
    return SimpleNamespace(**fields)


# ─── waitlist status select ───────────────────────────────────────────────────


@pytest.fixture
def waitlist_bot(config, waitlist_store) -> SimpleNamespace:
    return SimpleNamespace(config=config, waitlist=WaitlistService(config, waitlist_store))


async def test_status_select_rerenders_from_record(waitlist_bot, guild, staff):
    added = await waitlist_bot.waitlist.add(make_text_channel(guild), staff, make_member(), "Logo", "PayPal")
    interaction = select_interaction(staff, WaitlistStatus.PROCESSING, message=SimpleNamespace(id=added.message_id))

    assert await handle_status_select(waitlist_bot, interaction) is True

    kwargs = interaction.response.edit_message.call_args.kwargs
    assert kwargs["embed"].fields[2].value == "**⚙️ processing**"
    assert kwargs["view"] is not None


async def test_status_select_complete_drops_menu(waitlist_bot, guild, staff, waitlist_store):
    added = await waitlist_bot.waitlist.add(make_text_channel(guild), staff, make_member(), "Logo", "PayPal")
    interaction = select_interaction(staff, WaitlistStatus.COMPLETE, message=SimpleNamespace(id=added.message_id))

    await handle_status_select(waitlist_bot, interaction)

    kwargs = interaction.response.edit_message.call_args.kwargs
    assert kwargs["embed"].fields[2].value == "**✅ complete**"
    assert kwargs["view"] is None
    assert (await waitlist_store.get(added.message_id)).status == WaitlistStatus.COMPLETE


async def test_status_select_requires_staff(waitlist_bot, guild, staff):
    added = await waitlist_bot.waitlist.add(make_text_channel(guild), staff, make_member(), "Logo", "PayPal")
    interaction = select_interaction(make_member(), WaitlistStatus.PAID, message=SimpleNamespace(id=added.message_id))

    with pytest.raises(PermissionDenied):
        await handle_status_select(waitlist_bot, interaction)
    interaction.response.edit_message.assert_not_awaited()


# ─── ticket action select ─────────────────────────────────────────────────────


@pytest.fixture
def ticket_bot(config, ticket_store, scheduler) -> SimpleNamespace:
    return SimpleNamespace(config=config, tickets=TicketService(config, ticket_store, scheduler))


async def test_close_action_warns_when_transcript_fails(ticket_bot, guild, staff, ticket_store, monkeypatch):
    make_text_channel(guild, TRANSCRIPT_CHANNEL_ID, name="transcripts")
    monkeypatch.setattr(
        ticket_service_module,
        "capture_channel_transcript",
        AsyncMock(side_effect=http_error()),
    )
    owner = guild.add_member(make_member(name="Alice"))
    channel = await ticket_bot.tickets.create(guild, owner, make_category(guild))
    interaction = select_interaction(staff, TicketAction.CLOSE, channel=channel)

    assert await handle_ticket_action(ticket_bot, interaction) is True

    interaction.response.send_message.assert_awaited_once()
    interaction.followup.send.assert_awaited_once_with(
        "⚠️ Error generating transcript, but closing anyway...",
        ephemeral=True,
    )
    assert "will be deleted" in channel.send.call_args.args[0]
    assert await ticket_store.get(channel.id) is None
    await asyncio.sleep(0.05)
    channel.delete.assert_awaited_once()


async def test_ticket_action_requires_staff(ticket_bot, guild):
    owner = guild.add_member(make_member(name="Alice"))
    channel = await ticket_bot.tickets.create(guild, owner, make_category(guild))
    interaction = select_interaction(owner, TicketAction.CLOSE, channel=channel)

    with pytest.raises(PermissionDenied):
        await handle_ticket_action(ticket_bot, interaction)
    channel.delete.assert_not_awaited()

from __future__ import annotations

import pytest

from core.constants import CustomId, WaitlistStatus
from core.errors import ExternalCallFailed, InvalidInput, InvalidTransition, NotFound, PermissionDenied
from core.types import WaitlistEntry
from services.waitlist_service import (
    WaitlistService,
    apply_status,
    build_status_embed,
    build_status_view,
    status_options_for,
)

from conftest import http_error, make_member, make_text_channel


@pytest.fixture
def service(config, waitlist_store) -> WaitlistService:
    return WaitlistService(config, waitlist_store)


def entry(status: str = WaitlistStatus.PENDING) -> WaitlistEntry:
    return WaitlistEntry(
        message_id=1, channel_id=2, customer_id=3, item="Logo", payment_method="PayPal", status=status
    )


def test_status_options():
    assert status_options_for(WaitlistStatus.PENDING) == ["paid", "processing", "complete"]
    assert status_options_for(WaitlistStatus.PROCESSING) == ["paid", "processing", "complete"]
    assert status_options_for(WaitlistStatus.COMPLETE) == []


def test_embed_shows_fields():
    embed = build_status_embed(entry(WaitlistStatus.PAID))

    assert [f.name for f in embed.fields] == ["item", "payment", "status"]
    assert embed.fields[2].value == "**💸 paid**"


async def test_view_offers_selectable_statuses():
    view = build_status_view(entry())

    (select,) = view.children
    assert select.custom_id == CustomId.WAITLIST_STATUS
    assert [o.value for o in select.options] == ["paid", "processing", "complete"]
    assert view.timeout is None


def test_complete_entry_has_no_view():
    assert build_status_view(entry(WaitlistStatus.COMPLETE)) is None


def test_apply_status_rules():
    item = entry()
    apply_status(item, WaitlistStatus.PROCESSING)
    assert item.status == WaitlistStatus.PROCESSING

    with pytest.raises(InvalidInput):
        apply_status(item, WaitlistStatus.PENDING)

    apply_status(item, WaitlistStatus.COMPLETE)
    with pytest.raises(InvalidTransition):
        apply_status(item, WaitlistStatus.PAID)


async def test_add_posts_header_and_display(service, guild, staff, waitlist_store):
    channel = make_text_channel(guild, name="waitlist")
    customer = make_member(name="carol")

    added = await service.add(channel, staff, customer, "  Logo  ", "PayPal")

    assert channel.send.await_count == 2
    header = channel.send.await_args_list[0].args[0]
    assert f"<@{customer.id}>" in header
    display = channel.send.await_args_list[1].kwargs
    assert display["view"] is not None
    stored = await waitlist_store.get(added.message_id)
    assert stored.item == "Logo"
    assert stored.status == WaitlistStatus.PENDING
    assert stored.customer_id == customer.id


async def test_add_requires_staff_and_fields(service, guild, staff):
    channel = make_text_channel(guild)
    customer = make_member()

    with pytest.raises(PermissionDenied):
        await service.add(channel, customer, customer, "Logo", "PayPal")
    with pytest.raises(InvalidInput):
        await service.add(channel, staff, customer, "   ", "PayPal")
    channel.send.assert_not_awaited()


async def test_add_send_failure(service, guild, staff, waitlist_store):
    channel = make_text_channel(guild)
    channel.send.side_effect = http_error()

    with pytest.raises(ExternalCallFailed):
        await service.add(channel, staff, make_member(), "Logo", "PayPal")


async def test_set_status_until_complete(service, guild, staff):
    channel = make_text_channel(guild)
    added = await service.add(channel, staff, make_member(), "Logo", "PayPal")

    paid = await service.set_status(added.message_id, staff, WaitlistStatus.PAID)
    assert paid.status == WaitlistStatus.PAID

    done = await service.set_status(added.message_id, staff, WaitlistStatus.COMPLETE)
    assert build_status_view(done) is None

    with pytest.raises(InvalidTransition):
        await service.set_status(added.message_id, staff, WaitlistStatus.PROCESSING)


async def test_set_status_unknown_message(service, staff):
    with pytest.raises(NotFound):
        await service.set_status(12345, staff, WaitlistStatus.PAID)


async def test_set_status_requires_staff(service, guild, staff):
    added = await service.add(make_text_channel(guild), staff, make_member(), "Logo", "PayPal")

    with pytest.raises(PermissionDenied):
        await service.set_status(added.message_id, make_member(), WaitlistStatus.PAID)

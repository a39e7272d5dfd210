from __future__ import annotations

from types import SimpleNamespace

import pytest

from core.help_system import HelpSystem
from modules.welcomer import build_welcome, handle_member_join

from conftest import FakeGuild, http_error, make_config, make_member, make_text_channel


@pytest.fixture
def registry() -> HelpSystem:
    registry = HelpSystem()
    registry.register_module(
        name="Tickets",
        description="Private support channels.",
        commands=[
            ("/ticket", "Post a ticket panel (admin only)"),
            ("/waitlist", "Add an order (staff only)"),
            ("/help", "Show commands"),
        ],
    )
    return registry


def _field_text(embed) -> str:
    return "\n".join(field.value for field in embed.fields)


def test_help_hides_privileged_commands(registry):
    text = _field_text(registry.get_help_embed())

    assert "/help" in text
    assert "/ticket" not in text
    assert "/waitlist" not in text


def test_help_for_staff_and_admin(registry):
    staff_text = _field_text(registry.get_help_embed(allow_staff=True))
    admin_text = _field_text(registry.get_help_embed(allow_admin=True))

    assert "/waitlist" in staff_text and "/ticket" not in staff_text
    assert "/waitlist" in admin_text and "/ticket" in admin_text


def test_reregistration_keeps_position(registry):
    registry.register_module("Embeds", "Custom embeds.")
    registry.register_module("Tickets", "Tickets, again.")

    assert registry.get_module_names() == ["Tickets", "Embeds"]


def test_empty_registry():
    assert HelpSystem().get_help_embed().description == "No modules are loaded."


def _joining_member(guild: FakeGuild):
    member = make_member(name="dana")
    member.guild = guild
    member.display_avatar = SimpleNamespace(url="https://cdn.example/dana.png")
    guild.member_count = 42
    return member


def test_welcome_message():
    guild = FakeGuild()
    content, embed = build_welcome(_joining_member(guild))

    assert "<@" in content
    assert embed.footer.text == "member #42"


async def test_member_join_posts_to_welcome_channel():
    guild = FakeGuild()
    channel = make_text_channel(guild, name="welcome")
    member = _joining_member(guild)

    await handle_member_join(member, make_config(welcome_channel_id=channel.id))

    channel.send.assert_awaited_once()


async def test_member_join_disabled_or_failing():
    guild = FakeGuild()
    channel = make_text_channel(guild, name="welcome")
    member = _joining_member(guild)

    assert await handle_member_join(member, make_config(welcome_channel_id=channel.id, enable_welcomer=False)) is None
    assert await handle_member_join(member, make_config()) is None
    channel.send.assert_not_awaited()

    channel.send.side_effect = http_error()
    assert await handle_member_join(member, make_config(welcome_channel_id=channel.id)) is None

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from core import interactions
from core.errors import InvalidInput, NotFound


def make_interaction(custom_id: str = "", values=None, *, done: bool = False) -> SimpleNamespace:
    data = {"custom_id": custom_id}
    if values is not None:
        data["values"] = values
    return SimpleNamespace(
        id=1,
        type=discord.InteractionType.component,
        data=data,
        user=SimpleNamespace(id=2),
        response=SimpleNamespace(is_done=MagicMock(return_value=done), send_message=AsyncMock()),
        followup=SimpleNamespace(send=AsyncMock()),
    )


@pytest.fixture
def register():
    prefixes = []

    def _register(prefix, handler):
        prefixes.append(prefix)
        interactions.register_component_handler(prefix, handler)

    yield _register
    for prefix in prefixes:
        interactions.unregister_component_handler(prefix)


async def test_routes_by_prefix(register):
    handler = AsyncMock(return_value=True)
    register("test_route", handler)
    interaction = make_interaction("test_route:42")

    assert await interactions.handle_interaction(interaction) is True
    handler.assert_awaited_once_with(interaction)


async def test_unknown_component_is_not_handled():
    assert await interactions.handle_interaction(make_interaction("nobody_listens")) is False


async def test_non_component_is_ignored():
    interaction = make_interaction("anything")
    interaction.type = discord.InteractionType.application_command

    assert await interactions.handle_interaction(interaction) is False


async def test_bot_error_shows_user_message(register):
    register("test_fail", AsyncMock(side_effect=NotFound("gone", user_message="Nothing here.")))
    interaction = make_interaction("test_fail")

    assert await interactions.handle_interaction(interaction) is True
    interaction.response.send_message.assert_awaited_once_with("Nothing here.", ephemeral=True)


async def test_unexpected_error_shows_generic_message(register, caplog):
    register("test_crash", AsyncMock(side_effect=KeyError("secret detail")))
    interaction = make_interaction("test_crash", done=True)

    await interactions.handle_interaction(interaction)

    interaction.followup.send.assert_awaited_once_with(interactions.GENERIC_ERROR, ephemeral=True)
    assert "Error in component test_crash" in caplog.text


def test_selected_value():
    assert interactions.selected_value(make_interaction("x", ["paid"])) == "paid"
    with pytest.raises(InvalidInput):
        interactions.selected_value(make_interaction("x", []))

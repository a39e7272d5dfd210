from __future__ import annotations

import pytest

from core.config import ConfigError, load_config


def env(**overrides):
    values = {"DISCORD_TOKEN": "abc", "STAFF_ROLE_ID": "123"}
    values.update(overrides)
    return values


def test_minimal_config_uses_defaults():
    config = load_config(env())

    assert config.token == "abc"
    assert config.staff_role_id == 123
    assert config.transcript_channel_id is None
    assert config.ticket_delete_delay == 3.0
    assert config.enable_autoresponder is True
    assert config.autoresponder_path.name == "autoresponders.json"


def test_fallback_token_name():
    values = env(DISCORD_BOT_TOKEN="fallback")
    del values["DISCORD_TOKEN"]

    assert load_config(values).token == "fallback"


def test_parses_typed_values():
    config = load_config(
        env(
            WL_ID="55",
            TICKET_DELETE_DELAY_SECONDS="0.5",
            ENABLE_WELCOMER="off",
            PRESENCE_TEXT="the shop",
        )
    )

    assert config.waitlist_channel_id == 55
    assert config.ticket_delete_delay == 0.5
    assert config.enable_welcomer is False
    assert config.presence_text == "the shop"


def test_all_problems_reported_together():
    with pytest.raises(ConfigError) as excinfo:
        load_config({"STAFF_ROLE_ID": "abc", "ENABLE_WELCOMER": "maybe", "TICKET_DELETE_DELAY_SECONDS": "-1"})

    message = str(excinfo.value)
    assert "DISCORD_TOKEN" in message
    assert "STAFF_ROLE_ID must be a Discord ID" in message
    assert "ENABLE_WELCOMER must be true or false" in message
    assert "must not be negative" in message


def test_missing_staff_role():
    with pytest.raises(ConfigError, match="STAFF_ROLE_ID"):
        load_config({"DISCORD_TOKEN": "abc"})

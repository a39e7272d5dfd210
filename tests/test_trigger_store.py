from __future__ import annotations

import json

import pytest

from core import trigger_store as trigger_store_module
from core.constants import MatchMode
from core.errors import InvalidInput, NotFound
from core.trigger_store import TriggerStore, normalize_trigger
from core.types import AutoresponderRule


def rule(response: str = "Hi!", **kwargs) -> AutoresponderRule:
    return AutoresponderRule(trigger="", response=response, **kwargs)


@pytest.fixture
def path(tmp_path):
    return tmp_path / "autoresponders.json"


@pytest.fixture
async def store(path):
    store = TriggerStore(path)
    await store.load()
    return store


def test_normalize_trigger():
    assert normalize_trigger("  HeLLo ") == "hello"
    assert normalize_trigger(None) == ""


async def test_missing_file_starts_empty(store):
    assert len(store) == 0


async def test_add_persists_under_normalized_key(store, path):
    await store.add("  Hello ", rule(match_mode=MatchMode.EXACT))

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert list(on_disk) == ["hello"]
    assert on_disk["hello"]["matchMode"] == "exact"
    assert "Hello" in store


async def test_empty_trigger_rejected(store):
    with pytest.raises(InvalidInput):
        await store.add("   ", rule())


async def test_overwrite_keeps_position(store):
    await store.add("a", rule("one"))
    await store.add("b", rule("two"))
    await store.add("A", rule("three"))

    assert [(r.trigger, r.response) for r in store.list()] == [("a", "three"), ("b", "two")]


async def test_remove_and_toggle(store):
    await store.add("hello", rule())

    toggled = await store.toggle("HELLO")
    assert toggled.enabled is False

    removed = await store.remove("hello")
    assert removed.response == "Hi!"
    with pytest.raises(NotFound):
        await store.remove("hello")
    with pytest.raises(NotFound):
        await store.toggle("hello")


async def test_reload_round_trip(store, path):
    await store.add("hello", rule(delete_trigger_message=True, created_by="staffer"))
    await store.add("bye", rule("See you", enabled=False))

    reloaded = TriggerStore(path)
    assert await reloaded.load() == 2

    hello = reloaded.get("hello")
    assert hello.delete_trigger_message is True
    assert hello.created_by == "staffer"
    assert reloaded.get("bye").enabled is False
    assert [r.trigger for r in reloaded.list()] == ["hello", "bye"]


async def test_legacy_file_format(path):
    path.write_text(
        json.dumps({"Hello": {"response": "Hi!", "exactMatch": True, "deleteTrigger": True}}),
        encoding="utf-8",
    )
    store = TriggerStore(path)

    await store.load()

    loaded = store.get("hello")
    assert loaded.match_mode == MatchMode.EXACT
    assert loaded.delete_trigger_message is True


async def test_corrupt_file_starts_empty(path):
    path.write_text("{not json", encoding="utf-8")
    store = TriggerStore(path)

    assert await store.load() == 0


async def test_malformed_entries_are_skipped(path):
    path.write_text(
        json.dumps({"good": {"response": "ok"}, "bad": {"response": ""}, "worse": "text"}),
        encoding="utf-8",
    )
    store = TriggerStore(path)

    assert await store.load() == 1
    assert store.get("good").response == "ok"


async def test_failed_write_keeps_memory_state(store, monkeypatch):
    async def broken_write(path, data):
        raise OSError("disk full")

    monkeypatch.setattr(trigger_store_module, "write_json_atomic", broken_write)

    await store.add("hello", rule())

    assert store.get("hello") is not None


async def test_toggle_twice_restores_state(store):
    await store.add("hello", rule())

    await store.toggle("hello")
    again = await store.toggle("hello")

    assert again.enabled is True


async def test_removed_trigger_is_gone(store):
    await store.add("hello", rule())

    await store.remove("hello")

    assert store.get("hello") is None
    assert "hello" not in store


async def test_oversized_triggers(store, path):
    with pytest.raises(InvalidInput):
        await store.add("x" * 101, rule())

    path.write_text(
        json.dumps({"x" * 101: {"response": "long"}, "ok": {"response": "fine"}}),
        encoding="utf-8",
    )
    assert await store.load() == 1
    assert store.get("ok") is not None

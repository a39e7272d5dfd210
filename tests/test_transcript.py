from __future__ import annotations

import datetime as dt
from types import SimpleNamespace

from services.transcript_service import (
    TranscriptMessage,
    build_transcript_file,
    collect_history,
    render_transcript,
)

from conftest import make_message


def paged_fetcher(messages, page_size=100):
    """Serve ``messages`` newest first, ``page_size`` at a time, like channel.history."""
    calls = []
    newest_first = sorted(messages, key=lambda m: m.id, reverse=True)

    async def fetch(before):
        calls.append(before)
        older = [m for m in newest_first if before is None or m.id < before]
        return older[:page_size]

    return fetch, calls


async def test_collects_all_pages_in_ascending_order():
    messages = [make_message(i) for i in range(1, 251)]
    fetch, calls = paged_fetcher(messages)

    result = await collect_history(fetch)

    assert [m.id for m in result] == list(range(1, 251))
    assert len(calls) == 3


async def test_exact_multiple_stops_on_empty_page():
    fetch, calls = paged_fetcher([make_message(i) for i in range(1, 201)])

    result = await collect_history(fetch)

    assert len(result) == 200
    assert len(calls) == 3


async def test_stuck_cursor_terminates():
    page = [make_message(i) for i in range(100, 0, -1)]
    calls = []

    async def fetch(before):
        calls.append(before)
        return page

    result = await collect_history(fetch)

    assert len(result) == 100
    assert len(calls) == 2


async def test_empty_channel():
    fetch, calls = paged_fetcher([])

    assert await collect_history(fetch) == []
    assert calls == [None]


def test_from_message_truncates_embed_description():
    message = make_message(
        1,
        "hi",
        embeds=[SimpleNamespace(title="Order", description="x" * 800), SimpleNamespace(title=None, description=None)],
        attachments=[SimpleNamespace(filename="ref.png", url="https://cdn.example/ref.png")],
    )

    item = TranscriptMessage.from_message(message)

    assert len(item.embeds) == 1
    assert len(item.embeds[0].description) == 500
    assert item.attachments[0].name == "ref.png"
    assert item.author_name == "Alice"


def _render(items, **kwargs):
    defaults = dict(
        guild_name="Store",
        channel_name="ticket-alice",
        closed_by="staffer",
        generated_at=dt.datetime(2024, 1, 2, 15, 30, tzinfo=dt.timezone.utc),
    )
    defaults.update(kwargs)
    return render_transcript(items, **defaults)


def test_render_escapes_user_text():
    message = make_message(1, "<script>alert(\"x\") & 'y'</script>")
    message.author.display_name = "<b>Mallory</b>"

    html = _render([TranscriptMessage.from_message(message)], channel_name="<ticket>")

    assert "<script>" not in html
    assert "&lt;script&gt;alert(&#34;x&#34;) &amp; &#39;y&#39;&lt;/script&gt;" in html
    assert "&lt;b&gt;Mallory&lt;/b&gt;" in html
    assert "&lt;ticket&gt;" in html


def test_render_includes_summary_and_bot_marker():
    human = make_message(1, "first")
    bot = make_message(2, "second")
    bot.author = SimpleNamespace(
        name="storebot",
        display_name="storebot",
        bot=True,
        display_avatar=SimpleNamespace(url="https://cdn.example/bot.png"),
    )

    html = _render([TranscriptMessage.from_message(m) for m in (human, bot)])

    assert html.index("first") < html.index("second")
    assert "BOT</span>" in html
    assert "<strong>2</strong> messages" in html
    assert "Closed by <strong>staffer</strong>" in html
    assert "2024-01-02 03:30 PM UTC" in html


def test_transcript_file_name():
    generated_at = dt.datetime(2024, 1, 2, tzinfo=dt.timezone.utc)

    file = build_transcript_file("<html></html>", "ticket-alice", generated_at)

    assert file.filename == f"transcript-ticket-alice-{int(generated_at.timestamp())}.html"

"""
Transcript service - captures a ticket's history and renders it to HTML.

Uses Jinja2 with autoescaping for templating, so every user-supplied field is
escaped for ``& < > " '`` before it reaches the document.
"""
from __future__ import annotations

import datetime as dt
import io
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Sequence

import discord
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from core.constants import TRANSCRIPT_EMBED_DESCRIPTION_LIMIT, TRANSCRIPT_PAGE_SIZE
from core.paths import TEMPLATES_DIR
from core.utils import truncate, utcnow

logger = logging.getLogger("storebot.transcript")

TEMPLATE_NAME = "transcript.html"

# before-message-id -> one page of messages, newest first
PageFetcher = Callable[[Optional[int]], Awaitable[Sequence[Any]]]

_environment: Optional[Environment] = None


def _get_environment() -> Environment:
    global _environment
    if _environment is None:
        _environment = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=True,
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
    return _environment


@dataclass
class TranscriptEmbed:
    title: str = ""
    description: str = ""


@dataclass
class TranscriptAttachment:
    name: str
    url: str


@dataclass
class TranscriptMessage:
    """The parts of a Discord message that end up in a transcript."""
    message_id: int
    author_name: str
    author_is_bot: bool
    created_at: dt.datetime
    content: str = ""
    avatar_url: str = ""
    embeds: List[TranscriptEmbed] = field(default_factory=list)
    attachments: List[TranscriptAttachment] = field(default_factory=list)

    @classmethod
    def from_message(cls, message: discord.Message) -> TranscriptMessage:
        author = message.author
        embeds = [
            TranscriptEmbed(
                title=embed.title or "",
                description=truncate(embed.description or "", TRANSCRIPT_EMBED_DESCRIPTION_LIMIT),
            )
            for embed in message.embeds
            if embed.title or embed.description
        ]
        attachments = [
            TranscriptAttachment(name=attachment.filename, url=attachment.url)
            for attachment in message.attachments
        ]
        return cls(
            message_id=message.id,
            author_name=getattr(author, "display_name", None) or author.name,
            author_is_bot=bool(author.bot),
            created_at=message.created_at,
            content=message.content or "",
            avatar_url=str(author.display_avatar.url),
            embeds=embeds,
            attachments=attachments,
        )


# ─── Capture ──────────────────────────────────────────────────────────────────


async def collect_history(
    fetch_page: PageFetcher,
    page_size: int = TRANSCRIPT_PAGE_SIZE,
) -> list[Any]:
    """
    Fetch every message through ``fetch_page`` and return them oldest first.

    Stops on an empty page, a short page, or a cursor that did not move.
    """
    collected: dict[int, Any] = {}
    before: Optional[int] = None
    pages = 0
    while True:
        page = list(await fetch_page(before))
        pages += 1
        if not page:
            break
        for message in page:
            collected[message.id] = message
        oldest_id = min(message.id for message in page)
        if before is not None and oldest_id >= before:
            logger.warning("Transcript cursor did not advance at %s; stopping", before)
            break
        before = oldest_id
        if len(page) < page_size:
            break
    logger.debug("Collected %d messages in %d pages", len(collected), pages)
    return sorted(collected.values(), key=lambda message: (message.created_at, message.id))


def channel_page_fetcher(
    channel: discord.abc.Messageable,
    page_size: int = TRANSCRIPT_PAGE_SIZE,
) -> PageFetcher:
    async def _fetch(before: Optional[int]) -> list[discord.Message]:
        before_obj = discord.Object(id=before) if before is not None else None
        return [message async for message in channel.history(limit=page_size, before=before_obj)]

    return _fetch


# ─── Rendering ────────────────────────────────────────────────────────────────


def _format_time(value: dt.datetime) -> str:
    return value.astimezone(dt.timezone.utc).strftime("%Y-%m-%d %I:%M %p UTC")


def render_transcript(
    messages: Iterable[TranscriptMessage],
    *,
    guild_name: str,
    channel_name: str,
    closed_by: str,
    generated_at: Optional[dt.datetime] = None,
) -> str:
    generated_at = generated_at or utcnow()
    items = list(messages)
    template = _get_environment().get_template(TEMPLATE_NAME)
    return template.render(
        guild_name=guild_name,
        channel_name=channel_name,
        closed_by=closed_by,
        generated_at=_format_time(generated_at),
        message_count=len(items),
        messages=[
            {
                "author_name": item.author_name,
                "author_is_bot": item.author_is_bot,
                "timestamp": _format_time(item.created_at),
                "content": item.content,
                "avatar_url": item.avatar_url,
                "embeds": item.embeds,
                "attachments": item.attachments,
            }
            for item in items
        ],
    )


def build_transcript_file(html: str, channel_name: str, generated_at: dt.datetime) -> discord.File:
    filename = f"transcript-{channel_name}-{int(generated_at.timestamp())}.html"
    return discord.File(io.BytesIO(html.encode("utf-8")), filename=filename)


async def capture_channel_transcript(
    channel: discord.TextChannel,
    *,
    closed_by: str,
    generated_at: Optional[dt.datetime] = None,
) -> tuple[str, int]:
    """Fetch and render ``channel``. Returns (html, message_count)."""
    raw_messages = await collect_history(channel_page_fetcher(channel))
    messages = [TranscriptMessage.from_message(message) for message in raw_messages]
    html = render_transcript(
        messages,
        guild_name=channel.guild.name,
        channel_name=channel.name,
        closed_by=closed_by,
        generated_at=generated_at,
    )
    return html, len(messages)

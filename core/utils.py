"""
General utility functions.

Provides date/time helpers, text helpers and small parsers shared by modules.
"""
from __future__ import annotations

import datetime as dt
import re
from typing import Any, Optional

import discord

UTC = dt.timezone.utc

CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")
HEX_COLOR_RE = re.compile(r"^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{3})$")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def utcnow() -> dt.datetime:
    return dt.datetime.now(tz=UTC)


def dt_to_iso(value: Optional[dt.datetime]) -> Optional[str]:
    if value is None:
        return None
    value = value.astimezone(UTC).replace(microsecond=0)
    return value.isoformat().replace("+00:00", "Z")


def iso_to_dt(value: Any) -> Optional[dt.datetime]:
    """Parse an ISO string; integers are taken as epoch milliseconds."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return dt.datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def sanitize_text(text: Any, max_len: int = 1500) -> str:
    """Strip control characters and cap length. Newlines and tabs survive."""
    if text is None:
        return ""
    text = CONTROL_RE.sub("", str(text))
    return truncate(text, max_len)


def truncate(text: str, max_len: int, suffix: str = "...") -> str:
    if len(text) <= max_len:
        return text
    if max_len <= len(suffix):
        return text[:max_len]
    return text[: max_len - len(suffix)] + suffix


def safe_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.isdigit():
            return int(stripped)
    return default


def parse_bool(value: Any) -> Optional[bool]:
    """Parse an environment-style boolean. Returns None when unrecognised."""
    if isinstance(value, bool):
        return value
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return None


def parse_color(value: str) -> Optional[discord.Colour]:
    """
    Parse a colour given as hex (``#5865F2``, ``fff``) or as a discord.Colour
    factory name (``blurple``, ``dark_red``). Returns None when unrecognised.
    """
    raw = (value or "").strip()
    if not raw:
        return None
    match = HEX_COLOR_RE.match(raw)
    if match:
        digits = match.group(1)
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return discord.Colour(int(digits, 16))
    name = raw.lower().replace(" ", "_").replace("-", "_")
    factory = getattr(discord.Colour, name, None)
    if name.startswith("_") or not callable(factory):
        return None
    try:
        colour = factory()
    except TypeError:
        return None
    return colour if isinstance(colour, discord.Colour) else None


def quote_lines(text: str) -> str:
    """Render multi-line input as a Discord block quote, one ``>`` per line."""
    lines = [line.strip() for line in re.split(r"\n+", (text or "").strip())]
    return "\n".join(f"> {line}" if line else ">" for line in lines)


def chunk_lines(lines: list[str], limit: int) -> list[str]:
    """Join lines into newline-separated chunks no longer than ``limit`` each."""
    chunks: list[str] = []
    current: list[str] = []
    current_len = 0
    for line in lines:
        line = truncate(line, limit)
        line_len = len(line) + (1 if current else 0)
        if current and current_len + line_len > limit:
            chunks.append("\n".join(current))
            current = [line]
            current_len = len(line)
        else:
            current.append(line)
            current_len += line_len
    if current:
        chunks.append("\n".join(current))
    return chunks

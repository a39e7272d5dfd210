"""
Ticket storage - ticket records and ticket bans.

One JSON document holds both collections:

    {"tickets": {"<channel_id>": {...}}, "bans": {"<guild_id>:<owner_id>": {...}}}

Every operation reads the file, applies its change and writes it back under a
single lock, so overlapping staff actions never lose each other's updates.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .constants import TicketStatus
from .errors import ExternalCallFailed
from .io_utils import StoreReadError, read_json, write_json_atomic
from .types import TicketBan, TicketRecord

logger = logging.getLogger("storebot.ticket_storage")

ACTIVE_STATUSES = (TicketStatus.OPEN, TicketStatus.LOCKED)


def _ban_key(guild_id: int, owner_id: int) -> str:
    return f"{guild_id}:{owner_id}"


class TicketStore:
    """Persistent ticket records keyed by channel id."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = asyncio.Lock()

    async def _read(self) -> Dict[str, Any]:
        default: Dict[str, Any] = {"tickets": {}, "bans": {}}
        try:
            data = await read_json(self.path, default=default)
        except StoreReadError as exc:
            logger.error("Ticket store unreadable: %s", exc)
            raise ExternalCallFailed(str(exc)) from exc
        if not isinstance(data, dict):
            logger.error("Ticket store %s is not a JSON object", self.path)
            raise ExternalCallFailed(f"{self.path} is not a JSON object")
        for section in ("tickets", "bans"):
            if not isinstance(data.get(section), dict):
                data[section] = {}
        return data

    async def _write(self, data: Dict[str, Any]) -> None:
        try:
            await write_json_atomic(self.path, data)
        except OSError as exc:
            logger.error("Failed to save ticket store %s: %s", self.path, exc)
            raise ExternalCallFailed(str(exc)) from exc

    @staticmethod
    def _parse_ticket(raw: Any) -> Optional[TicketRecord]:
        if not isinstance(raw, dict):
            return None
        try:
            return TicketRecord.from_dict(raw)
        except ValueError as exc:
            logger.warning("Skipping malformed ticket record: %s", exc)
            return None

    # ─── Tickets ──────────────────────────────────────────────────────────────

    async def get(self, channel_id: int) -> Optional[TicketRecord]:
        async with self._lock:
            data = await self._read()
            return self._parse_ticket(data["tickets"].get(str(channel_id)))

    async def find_active_by_owner(self, guild_id: int, owner_id: int) -> list[TicketRecord]:
        """All open or locked tickets of ``owner_id`` in ``guild_id``."""
        async with self._lock:
            data = await self._read()
        found = []
        for raw in data["tickets"].values():
            record = self._parse_ticket(raw)
            if (
                record is not None
                and record.guild_id == guild_id
                and record.owner_id == owner_id
                and record.status in ACTIVE_STATUSES
            ):
                found.append(record)
        return found

    async def save(self, record: TicketRecord) -> None:
        async with self._lock:
            data = await self._read()
            data["tickets"][str(record.channel_id)] = record.to_dict()
            await self._write(data)

    async def update(
        self,
        channel_id: int,
        mutate: Callable[[TicketRecord], None],
    ) -> Optional[TicketRecord]:
        """Apply ``mutate`` to the stored record and save it. None if absent."""
        async with self._lock:
            data = await self._read()
            record = self._parse_ticket(data["tickets"].get(str(channel_id)))
            if record is None:
                return None
            mutate(record)
            data["tickets"][str(channel_id)] = record.to_dict()
            await self._write(data)
            return record

    async def delete(self, channel_id: int) -> Optional[TicketRecord]:
        async with self._lock:
            data = await self._read()
            raw = data["tickets"].pop(str(channel_id), None)
            if raw is None:
                return None
            await self._write(data)
            return self._parse_ticket(raw)

    # ─── Bans ─────────────────────────────────────────────────────────────────

    async def get_ban(self, guild_id: int, owner_id: int) -> Optional[TicketBan]:
        async with self._lock:
            data = await self._read()
        raw = data["bans"].get(_ban_key(guild_id, owner_id))
        if not isinstance(raw, dict):
            return None
        try:
            return TicketBan.from_dict(raw)
        except ValueError as exc:
            logger.warning("Skipping malformed ticket ban: %s", exc)
            return None

    async def add_ban(self, ban: TicketBan) -> None:
        async with self._lock:
            data = await self._read()
            data["bans"][_ban_key(ban.guild_id, ban.owner_id)] = ban.to_dict()
            await self._write(data)

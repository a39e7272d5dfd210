"""
Waitlist storage - one record per waitlist display message.

The status menu re-renders from these records, never from message content.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .errors import ExternalCallFailed
from .io_utils import StoreReadError, read_json, write_json_atomic
from .types import WaitlistEntry

logger = logging.getLogger("storebot.waitlist_storage")


class WaitlistStore:
    """Persistent waitlist entries keyed by display message id."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = asyncio.Lock()

    async def _read(self) -> Dict[str, Any]:
        try:
            data = await read_json(self.path, default={"entries": {}})
        except StoreReadError as exc:
            logger.error("Waitlist store unreadable: %s", exc)
            raise ExternalCallFailed(str(exc)) from exc
        if not isinstance(data, dict):
            raise ExternalCallFailed(f"{self.path} is not a JSON object")
        if not isinstance(data.get("entries"), dict):
            data["entries"] = {}
        return data

    async def _write(self, data: Dict[str, Any]) -> None:
        try:
            await write_json_atomic(self.path, data)
        except OSError as exc:
            logger.error("Failed to save waitlist store %s: %s", self.path, exc)
            raise ExternalCallFailed(str(exc)) from exc

    async def get(self, message_id: int) -> Optional[WaitlistEntry]:
        async with self._lock:
            data = await self._read()
        raw = data["entries"].get(str(message_id))
        if not isinstance(raw, dict):
            return None
        try:
            return WaitlistEntry.from_dict(raw)
        except ValueError as exc:
            logger.warning("Malformed waitlist entry %s: %s", message_id, exc)
            return None

    async def save(self, entry: WaitlistEntry) -> None:
        async with self._lock:
            data = await self._read()
            data["entries"][str(entry.message_id)] = entry.to_dict()
            await self._write(data)

    async def update(
        self,
        message_id: int,
        mutate: Callable[[WaitlistEntry], None],
    ) -> Optional[WaitlistEntry]:
        """
        Apply ``mutate`` to the stored entry and save it. None if absent.

        Exceptions raised by ``mutate`` propagate and nothing is written.
        """
        async with self._lock:
            data = await self._read()
            raw = data["entries"].get(str(message_id))
            if not isinstance(raw, dict):
                return None
            try:
                entry = WaitlistEntry.from_dict(raw)
            except ValueError as exc:
                logger.warning("Malformed waitlist entry %s: %s", message_id, exc)
                return None
            mutate(entry)
            data["entries"][str(message_id)] = entry.to_dict()
            await self._write(data)
            return entry

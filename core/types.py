"""
Type definitions and dataclasses for the bot.

Each persisted record knows how to convert itself to and from the JSON shape it
has on disk, so stores never poke at raw dicts.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Optional

from .constants import MatchMode, Priority, TicketStatus, WaitlistStatus
from .utils import dt_to_iso, iso_to_dt, safe_int, utcnow


def _require_id(data: dict[str, Any], key: str) -> int:
    value = safe_int(data.get(key))
    if value is None:
        raise ValueError(f"{key} must be an integer ID")
    return value


@dataclass
class AutoresponderRule:
    """A stored trigger and what to do when it fires."""
    trigger: str
    response: str
    match_mode: str = MatchMode.CONTAINS
    delete_trigger_message: bool = False
    enabled: bool = True
    created_by: str = ""
    created_at: dt.datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        # The trigger is the mapping key on disk, not a field.
        return {
            "response": self.response,
            "matchMode": self.match_mode,
            "deleteTriggerMessage": self.delete_trigger_message,
            "enabled": self.enabled,
            "createdBy": self.created_by,
            "createdAt": dt_to_iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, trigger: str, data: dict[str, Any]) -> AutoresponderRule:
        response = data.get("response")
        if not isinstance(response, str) or not response:
            raise ValueError("response must be a non-empty string")

        match_mode = data.get("matchMode")
        if match_mode is None:
            # Files written by the original bot used a boolean flag.
            match_mode = MatchMode.EXACT if data.get("exactMatch") else MatchMode.CONTAINS
        if match_mode not in MatchMode.ALL:
            raise ValueError(f"unknown matchMode {match_mode!r}")

        delete_trigger = data.get("deleteTriggerMessage", data.get("deleteTrigger", False))
        return cls(
            trigger=trigger,
            response=response,
            match_mode=match_mode,
            delete_trigger_message=bool(delete_trigger),
            enabled=bool(data.get("enabled", True)),
            created_by=str(data.get("createdBy") or ""),
            created_at=iso_to_dt(data.get("createdAt")) or utcnow(),
        )


@dataclass(frozen=True)
class Action:
    """Outcome of evaluating a message against the trigger store."""
    respond: Optional[str] = None
    delete_original: bool = False
    trigger: Optional[str] = None

    @property
    def fires(self) -> bool:
        return self.respond is not None


NO_ACTION = Action()


@dataclass
class TicketRecord:
    """
    A ticket channel and who it belongs to.

    The channel topic is display only; ownership and status live here.
    """
    channel_id: int
    guild_id: int
    owner_id: int
    owner_name: str = ""
    category_id: Optional[int] = None
    status: str = TicketStatus.OPEN
    priority: Optional[str] = None
    created_at: dt.datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "channel_id": self.channel_id,
            "guild_id": self.guild_id,
            "owner_id": self.owner_id,
            "owner_name": self.owner_name,
            "category_id": self.category_id,
            "status": self.status,
            "priority": self.priority,
            "created_at": dt_to_iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TicketRecord:
        status = data.get("status", TicketStatus.OPEN)
        if status not in TicketStatus.ALL:
            raise ValueError(f"unknown ticket status {status!r}")
        priority = data.get("priority")
        if priority is not None and priority not in Priority.ALL:
            priority = None
        return cls(
            channel_id=_require_id(data, "channel_id"),
            guild_id=_require_id(data, "guild_id"),
            owner_id=_require_id(data, "owner_id"),
            owner_name=str(data.get("owner_name") or ""),
            category_id=safe_int(data.get("category_id")),
            status=status,
            priority=priority,
            created_at=iso_to_dt(data.get("created_at")) or utcnow(),
        )


@dataclass
class TicketBan:
    """A member barred from opening tickets in a guild."""
    guild_id: int
    owner_id: int
    banned_by: int
    channel_id: Optional[int] = None
    banned_at: dt.datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "guild_id": self.guild_id,
            "owner_id": self.owner_id,
            "banned_by": self.banned_by,
            "channel_id": self.channel_id,
            "banned_at": dt_to_iso(self.banned_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TicketBan:
        return cls(
            guild_id=_require_id(data, "guild_id"),
            owner_id=_require_id(data, "owner_id"),
            banned_by=safe_int(data.get("banned_by"), 0) or 0,
            channel_id=safe_int(data.get("channel_id")),
            banned_at=iso_to_dt(data.get("banned_at")) or utcnow(),
        )


@dataclass
class WaitlistEntry:
    """An order on the waitlist, tied to the message that displays it."""
    message_id: int
    channel_id: int
    customer_id: int
    item: str
    payment_method: str
    status: str = WaitlistStatus.PENDING
    created_by: int = 0
    updated_at: dt.datetime = field(default_factory=utcnow)

    @property
    def is_complete(self) -> bool:
        return self.status == WaitlistStatus.COMPLETE

    def to_dict(self) -> dict[str, Any]:
        return {
            "message_id": self.message_id,
            "channel_id": self.channel_id,
            "customer_id": self.customer_id,
            "item": self.item,
            "payment_method": self.payment_method,
            "status": self.status,
            "created_by": self.created_by,
            "updated_at": dt_to_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WaitlistEntry:
        status = data.get("status", WaitlistStatus.PENDING)
        if status not in WaitlistStatus.ALL:
            raise ValueError(f"unknown waitlist status {status!r}")
        return cls(
            message_id=_require_id(data, "message_id"),
            channel_id=_require_id(data, "channel_id"),
            customer_id=_require_id(data, "customer_id"),
            item=str(data.get("item") or ""),
            payment_method=str(data.get("payment_method") or ""),
            status=status,
            created_by=safe_int(data.get("created_by"), 0) or 0,
            updated_at=iso_to_dt(data.get("updated_at")) or utcnow(),
        )

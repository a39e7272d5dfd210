"""
Error taxonomy.

Every error raised by the core carries a short, non-technical ``user_message``.
Event boundaries show that text and nothing else; the exception itself only goes
to the log.
"""
from __future__ import annotations

from typing import Optional


class BotError(Exception):
    """Base class for expected, user-reportable failures."""

    default_message = "Something went wrong. Please try again later."

    def __init__(self, detail: str = "", *, user_message: Optional[str] = None) -> None:
        super().__init__(detail or self.default_message)
        self.user_message = user_message or self.default_message


class NotFound(BotError):
    default_message = "Nothing was found for that."


class DuplicateTicket(BotError):
    default_message = "You already have an open ticket."


class PermissionDenied(BotError):
    default_message = "You don't have permission to do that."


class TicketBanned(PermissionDenied):
    default_message = "You are banned from opening tickets."


class ExternalCallFailed(BotError):
    default_message = "Discord didn't accept that request. Please try again later."


class OwnerNotResolvable(BotError):
    default_message = "Could not find the owner of this ticket."


class InvalidTransition(BotError):
    default_message = "That action isn't available in the current state."


class InvalidInput(BotError):
    default_message = "That input isn't valid."

"""
Shared constants.

Using constants instead of string literals provides:
- IDE autocomplete
- Typo protection (caught at import time)
- Single source of truth for values that are persisted or sent to Discord
"""
from __future__ import annotations


class ConfigKey:
    """Environment variables read by the bot."""

    TOKEN = "DISCORD_TOKEN"
    TOKEN_FALLBACK = "DISCORD_BOT_TOKEN"
    LOG_LEVEL = "LOG_LEVEL"

    # Roles
    STAFF_ROLE_ID = "STAFF_ROLE_ID"

    # Channels / categories
    WAITLIST_CHANNEL_ID = "WL_ID"
    WELCOME_CHANNEL_ID = "WELCOME_CHANNEL_ID"
    RECEIPT_CHANNEL_ID = "RECEIPT_CHANNEL_ID"
    TRANSCRIPT_CHANNEL_ID = "TRANSCRIPT_CHANNEL_ID"
    ARCHIVE_CATEGORY_ID = "ARCHIVE_CATEGORY_ID"

    # Storage
    DATA_DIR = "DATA_DIR"

    # Timing
    TICKET_DELETE_DELAY_SECONDS = "TICKET_DELETE_DELAY_SECONDS"

    # Feature flags
    ENABLE_AUTORESPONDER = "ENABLE_AUTORESPONDER"
    ENABLE_WELCOMER = "ENABLE_WELCOMER"

    # Cosmetic
    DIVIDER_IMAGE_URL = "DIVIDER_IMAGE_URL"
    PRESENCE_TEXT = "PRESENCE_TEXT"


class MatchMode:
    """Matching modes for auto-responder triggers."""
    CONTAINS = "contains"
    EXACT = "exact"

    ALL = (CONTAINS, EXACT)


class TicketStatus:
    OPEN = "open"
    LOCKED = "locked"
    ARCHIVED = "archived"
    BANNED = "banned"

    ALL = (OPEN, LOCKED, ARCHIVED, BANNED)
    TERMINAL = (ARCHIVED, BANNED)


class Priority:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    ALL = (LOW, MEDIUM, HIGH, URGENT)
    EMOJI = {LOW: "🟢", MEDIUM: "🟡", HIGH: "🟠", URGENT: "🔴"}


class WaitlistStatus:
    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    COMPLETE = "complete"

    ALL = (PENDING, PAID, PROCESSING, COMPLETE)
    # Statuses offered by the select menu, in display order
    SELECTABLE = (PAID, PROCESSING, COMPLETE)


class CustomId:
    """custom_id values and prefixes routed by core.interactions."""
    TICKET_CREATE = "ticket_create"
    TICKET_ACTIONS = "ticket_actions"
    TICKET_PRIORITY = "ticket_priority"
    WAITLIST_STATUS = "waitlist_status"
    PRICE_MENU = "price_menu"


class TicketAction:
    """Values of the staff ticket action select."""
    CLOSE = "close"
    ADD_USER = "add_user"
    REMOVE_USER = "remove_user"
    LOCK = "lock"
    UNLOCK = "unlock"
    SEND_RECEIPT = "send_receipt"
    DELIVERY = "delivery"
    BAN = "ban"
    PRIORITY = "priority"
    ARCHIVE = "archive"


TICKET_CHANNEL_PREFIX = "ticket-"
TRANSCRIPT_PAGE_SIZE = 100
TRANSCRIPT_EMBED_DESCRIPTION_LIMIT = 500

# Shorthand alias for cleaner imports
K = ConfigKey

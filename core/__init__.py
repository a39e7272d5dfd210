"""
Core utilities and infrastructure for the store bot.

This package contains:
- config: Configuration loading and validation
- constants: Configuration keys and enums
- errors: Error taxonomy shown to users
- interactions: Component routing and error boundaries
- io_utils: File I/O helpers
- paths: Path resolution
- scheduler: Deferred, cancellable tasks
- trigger_store / ticket_storage / waitlist_storage: Persistent stores
- types: Dataclasses and type definitions
- utils: General utilities
"""
from .constants import ConfigKey, K, MatchMode, TicketStatus, WaitlistStatus
from .errors import BotError
from .types import AutoresponderRule, TicketRecord, WaitlistEntry

__all__ = [
    # Constants
    "ConfigKey",
    "K",
    "MatchMode",
    "TicketStatus",
    "WaitlistStatus",
    # Errors
    "BotError",
    # Types
    "AutoresponderRule",
    "TicketRecord",
    "WaitlistEntry",
]

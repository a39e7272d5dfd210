"""Services layer - business logic separated from the Discord event surface."""
from .ticket_service import TicketService
from .waitlist_service import WaitlistService

__all__ = [
    "TicketService",
    "WaitlistService",
]

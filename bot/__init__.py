"""Bot package - Discord client wiring."""
from .client import StoreBot

__all__ = ["StoreBot"]

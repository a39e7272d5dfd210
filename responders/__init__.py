"""
Auto-responder matching.

This package decides which stored trigger, if any, fires for a message.
"""
from .matching import evaluate, match_trigger

__all__ = [
    "evaluate",
    "match_trigger",
]

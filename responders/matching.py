"""
Trigger matching logic for the auto-responder.

Pure functions: no Discord calls, no storage. The caller performs whatever the
returned ``Action`` asks for.
"""
from __future__ import annotations

from typing import Iterable

from core.constants import MatchMode
from core.types import NO_ACTION, Action, AutoresponderRule


def match_trigger(content: str, trigger: str, mode: str) -> bool:
    """
    Case-insensitive match of ``trigger`` against ``content``.

    Supports modes:
    - exact: content equals trigger
    - contains: content contains trigger anywhere
    """
    haystack = (content or "").lower()
    needle = (trigger or "").lower()
    if not needle:
        return False
    if mode == MatchMode.EXACT:
        return haystack == needle
    if mode == MatchMode.CONTAINS:
        return needle in haystack
    return False


def evaluate(
    rules: Iterable[AutoresponderRule],
    content: str,
    author_is_bot: bool,
) -> Action:
    """
    Pick the action for an incoming message.

    Bots never trigger anything. Otherwise the first enabled rule that matches,
    in store order, wins.
    """
    if author_is_bot:
        return NO_ACTION
    for rule in rules:
        if not rule.enabled:
            continue
        if match_trigger(content, rule.trigger, rule.match_mode):
            return Action(
                respond=rule.response,
                delete_original=rule.delete_trigger_message,
                trigger=rule.trigger,
            )
    return NO_ACTION

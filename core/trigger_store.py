"""
Trigger store - persistent autoresponder rules.

Rules live in memory in insertion order and are written to a single JSON file
after every mutation. Storage problems never take the bot down: a bad file at
startup means an empty store, and a failed write keeps the in-memory state.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, Optional, ValuesView

from .errors import InvalidInput, NotFound
from .io_utils import StoreReadError, read_json, write_json_atomic
from .types import AutoresponderRule

logger = logging.getLogger("storebot.triggers")

# Longest trigger Discord can offer as a command choice
MAX_TRIGGER_LENGTH = 100


def normalize_trigger(trigger: str) -> str:
    return (trigger or "").strip().lower()


class TriggerStore:
    """Single access point for autoresponder rules."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._rules: Dict[str, AutoresponderRule] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, trigger: object) -> bool:
        return isinstance(trigger, str) and normalize_trigger(trigger) in self._rules

    # ─── Persistence ──────────────────────────────────────────────────────────

    async def load(self) -> int:
        """Replace the in-memory rules with the file contents. Returns the rule count."""
        async with self._lock:
            try:
                data = await read_json(self.path, default={})
            except StoreReadError as exc:
                logger.error("Could not read autoresponders, starting empty: %s", exc)
                data = {}
            if not isinstance(data, dict):
                logger.error("Autoresponder file %s is not a JSON object, starting empty", self.path)
                data = {}

            rules: Dict[str, AutoresponderRule] = {}
            for key, value in data.items():
                trigger = normalize_trigger(key) if isinstance(key, str) else ""
                if not trigger or len(trigger) > MAX_TRIGGER_LENGTH or not isinstance(value, dict):
                    logger.warning("Skipping malformed autoresponder entry %r", key)
                    continue
                try:
                    rules[trigger] = AutoresponderRule.from_dict(trigger, value)
                except ValueError as exc:
                    logger.warning("Skipping autoresponder %r: %s", trigger, exc)
            self._rules = rules

        logger.info("Loaded %d autoresponders from %s", len(rules), self.path)
        return len(rules)

    async def _persist(self) -> bool:
        """Write the whole store. Caller must hold the lock."""
        snapshot = {trigger: rule.to_dict() for trigger, rule in self._rules.items()}
        try:
            await write_json_atomic(self.path, snapshot)
        except OSError as exc:
            logger.error("Failed to save autoresponders to %s: %s", self.path, exc)
            return False
        return True

    # ─── Mutations ────────────────────────────────────────────────────────────

    async def add(self, trigger: str, rule: AutoresponderRule) -> AutoresponderRule:
        """Insert or overwrite the rule for ``trigger``. Overwrites keep list position."""
        key = normalize_trigger(trigger)
        if not key or len(key) > MAX_TRIGGER_LENGTH:
            raise InvalidInput(
                f"bad trigger {key!r}",
                user_message=f"Triggers must be 1-{MAX_TRIGGER_LENGTH} characters.",
            )
        rule.trigger = key
        async with self._lock:
            self._rules[key] = rule
            await self._persist()
        return rule

    async def remove(self, trigger: str) -> AutoresponderRule:
        key = normalize_trigger(trigger)
        async with self._lock:
            rule = self._rules.pop(key, None)
            if rule is None:
                raise NotFound(
                    f"trigger {key!r} not found",
                    user_message=f"No autoresponder found with trigger `{key}`.",
                )
            await self._persist()
        return rule

    async def toggle(self, trigger: str) -> AutoresponderRule:
        key = normalize_trigger(trigger)
        async with self._lock:
            rule = self._rules.get(key)
            if rule is None:
                raise NotFound(
                    f"trigger {key!r} not found",
                    user_message=f"No autoresponder found with trigger `{key}`.",
                )
            rule.enabled = not rule.enabled
            await self._persist()
        return rule

    # ─── Reads ────────────────────────────────────────────────────────────────

    def get(self, trigger: str) -> Optional[AutoresponderRule]:
        return self._rules.get(normalize_trigger(trigger))

    def list(self) -> ValuesView[AutoresponderRule]:
        """Live, read-only view of the rules in insertion order."""
        return self._rules.values()

"""
Bot configuration loading and validation.

Configuration comes from the process environment (``main.py`` loads ``.env`` into
it first). Every key is validated against ``CONFIG_SCHEMA`` and all problems are
reported together in a single ``ConfigError``.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .constants import K
from .paths import resolve_data_file
from .utils import parse_bool, safe_int

AUTORESPONDER_FILE = "autoresponders.json"
TICKETS_FILE = "tickets.json"
WAITLIST_FILE = "waitlist.json"

DEFAULT_CONFIG: Dict[str, Any] = {
    K.STAFF_ROLE_ID: None,
    K.WAITLIST_CHANNEL_ID: None,
    K.WELCOME_CHANNEL_ID: None,
    K.RECEIPT_CHANNEL_ID: None,
    K.TRANSCRIPT_CHANNEL_ID: None,
    K.ARCHIVE_CATEGORY_ID: None,
    K.DATA_DIR: "data",
    K.TICKET_DELETE_DELAY_SECONDS: 3.0,
    K.ENABLE_AUTORESPONDER: True,
    K.ENABLE_WELCOMER: True,
    K.DIVIDER_IMAGE_URL: None,
    K.PRESENCE_TEXT: None,
}

# key -> (type name, required)
CONFIG_SCHEMA: Dict[str, Tuple[str, bool]] = {
    K.STAFF_ROLE_ID: ("id", True),
    K.WAITLIST_CHANNEL_ID: ("id", False),
    K.WELCOME_CHANNEL_ID: ("id", False),
    K.RECEIPT_CHANNEL_ID: ("id", False),
    K.TRANSCRIPT_CHANNEL_ID: ("id", False),
    K.ARCHIVE_CATEGORY_ID: ("id", False),
    K.DATA_DIR: ("str", False),
    K.TICKET_DELETE_DELAY_SECONDS: ("nonneg_float", False),
    K.ENABLE_AUTORESPONDER: ("bool", False),
    K.ENABLE_WELCOMER: ("bool", False),
    K.DIVIDER_IMAGE_URL: ("str", False),
    K.PRESENCE_TEXT: ("str", False),
}


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class BotConfig:
    """Validated runtime configuration."""
    token: str
    staff_role_id: int
    waitlist_channel_id: Optional[int] = None
    welcome_channel_id: Optional[int] = None
    receipt_channel_id: Optional[int] = None
    transcript_channel_id: Optional[int] = None
    archive_category_id: Optional[int] = None
    data_dir: str = "data"
    ticket_delete_delay: float = 3.0
    enable_autoresponder: bool = True
    enable_welcomer: bool = True
    divider_image_url: Optional[str] = None
    presence_text: Optional[str] = None

    @property
    def autoresponder_path(self) -> Path:
        return resolve_data_file(self.data_dir, AUTORESPONDER_FILE)

    @property
    def tickets_path(self) -> Path:
        return resolve_data_file(self.data_dir, TICKETS_FILE)

    @property
    def waitlist_path(self) -> Path:
        return resolve_data_file(self.data_dir, WAITLIST_FILE)


def _parse_value(key: str, type_name: str, raw: str, errors: List[str]) -> Any:
    if type_name == "id":
        value = safe_int(raw)
        if value is None or value <= 0:
            errors.append(f"{key} must be a Discord ID")
        return value
    if type_name == "nonneg_float":
        try:
            number = float(raw)
        except ValueError:
            errors.append(f"{key} must be a number")
            return None
        if number < 0:
            errors.append(f"{key} must not be negative")
        return number
    if type_name == "bool":
        flag = parse_bool(raw)
        if flag is None:
            errors.append(f"{key} must be true or false")
        return flag
    if type_name == "str":
        return raw
    errors.append(f"Unknown config type for {key}")
    return None


def validate_and_normalize_config(env: Mapping[str, str]) -> Dict[str, Any]:
    errors: List[str] = []
    normalized: Dict[str, Any] = {}

    for key, (type_name, required) in CONFIG_SCHEMA.items():
        raw = (env.get(key) or "").strip()
        if not raw:
            if required:
                errors.append(f"Missing required config key: {key}")
            normalized[key] = DEFAULT_CONFIG.get(key)
            continue
        normalized[key] = _parse_value(key, type_name, raw, errors)

    if errors:
        raise ConfigError("; ".join(errors))
    return normalized


def load_config(env: Optional[Mapping[str, str]] = None) -> BotConfig:
    """Build a ``BotConfig`` from ``env`` (defaults to ``os.environ``)."""
    if env is None:
        env = os.environ
    token = (env.get(K.TOKEN) or env.get(K.TOKEN_FALLBACK) or "").strip()
    errors: List[str] = []
    if not token:
        errors.append(f"Missing bot token: set {K.TOKEN}")
    try:
        values = validate_and_normalize_config(env)
    except ConfigError as exc:
        errors.append(str(exc))
        values = {}
    if errors:
        raise ConfigError("; ".join(errors))

    return BotConfig(
        token=token,
        staff_role_id=values[K.STAFF_ROLE_ID],
        waitlist_channel_id=values[K.WAITLIST_CHANNEL_ID],
        welcome_channel_id=values[K.WELCOME_CHANNEL_ID],
        receipt_channel_id=values[K.RECEIPT_CHANNEL_ID],
        transcript_channel_id=values[K.TRANSCRIPT_CHANNEL_ID],
        archive_category_id=values[K.ARCHIVE_CATEGORY_ID],
        data_dir=values[K.DATA_DIR],
        ticket_delete_delay=float(values[K.TICKET_DELETE_DELAY_SECONDS]),
        enable_autoresponder=values[K.ENABLE_AUTORESPONDER],
        enable_welcomer=values[K.ENABLE_WELCOMER],
        divider_image_url=values[K.DIVIDER_IMAGE_URL],
        presence_text=values[K.PRESENCE_TEXT],
    )

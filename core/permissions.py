"""
Staff and administrator checks.

Staff capability means holding the configured staff role. Administrators are
treated as staff everywhere.
"""
from __future__ import annotations

from typing import Union

import discord

from .config import BotConfig
from .errors import PermissionDenied

Actor = Union[discord.Member, discord.User]


def is_admin(actor: Actor) -> bool:
    if not isinstance(actor, discord.Member):
        return False
    return actor.guild_permissions.administrator


def is_staff(actor: Actor, config: BotConfig) -> bool:
    """True if ``actor`` holds the staff role or is an administrator."""
    if not isinstance(actor, discord.Member):
        return False
    if is_admin(actor):
        return True
    return any(role.id == config.staff_role_id for role in actor.roles)


def require_staff(actor: Actor, config: BotConfig) -> None:
    if not is_staff(actor, config):
        raise PermissionDenied(f"user {actor.id} lacks the staff role")


def require_admin(actor: Actor) -> None:
    if not is_admin(actor):
        raise PermissionDenied(
            f"user {actor.id} is not an administrator",
            user_message="You need Administrator permission to do that.",
        )

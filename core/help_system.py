"""
Help system - centralized help registration and display.

Each feature module registers its slash commands here during setup, and the
``/help`` command renders whatever has been registered.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import discord

from .utils import chunk_lines

FIELD_LIMIT = 1024


@dataclass
class ModuleHelp:
    """Help information for a single feature module."""

    name: str
    description: str
    commands: list[tuple[str, str]] = field(default_factory=list)  # (command, description)

    def visible_commands(self, *, allow_staff: bool, allow_admin: bool) -> list[tuple[str, str]]:
        visible = []
        for cmd, desc in self.commands:
            lowered = desc.lower()
            if "admin only" in lowered and not allow_admin:
                continue
            if "staff only" in lowered and not (allow_staff or allow_admin):
                continue
            visible.append((cmd, desc))
        return visible


class HelpSystem:
    """
    Central help registry that modules register with.

    Usage:
        help_system.register_module(
            name="Tickets",
            description="Private support channels.",
            commands=[("/ticket", "Post a ticket panel (admin only)")],
        )
    """

    def __init__(self) -> None:
        self._modules: dict[str, ModuleHelp] = {}

    def register_module(
        self,
        name: str,
        description: str,
        commands: Optional[list[tuple[str, str]]] = None,
    ) -> None:
        # Re-registration replaces in place, keeping the original position.
        self._modules[name] = ModuleHelp(
            name=name,
            description=description,
            commands=list(commands or []),
        )

    def get_module_names(self) -> list[str]:
        return list(self._modules)

    def get_help_embed(
        self,
        *,
        allow_staff: bool = False,
        allow_admin: bool = False,
        title: str = "Bot Commands",
    ) -> discord.Embed:
        """Build the overview embed, hiding commands the viewer cannot use."""
        embed = discord.Embed(title=title, color=0x5865F2)
        if not self._modules:
            embed.description = "No modules are loaded."
            return embed

        for module_help in self._modules.values():
            commands = module_help.visible_commands(
                allow_staff=allow_staff,
                allow_admin=allow_admin,
            )
            lines = [module_help.description]
            lines.extend(f"**`{cmd}`** - {desc}" for cmd, desc in commands)
            for index, chunk in enumerate(chunk_lines(lines, FIELD_LIMIT), start=1):
                name = module_help.name if index == 1 else f"{module_help.name} (cont. {index})"
                embed.add_field(name=name, value=chunk, inline=False)
        return embed


# Global singleton instance
help_system = HelpSystem()

"""Bundled plugins."""

from __future__ import annotations

from ..messaging.commands import CommandRegistry, help_command
from ..registries.plugins import Plugin
from . import factoids


def builtin_plugins(registry: CommandRegistry) -> list[Plugin]:
    """Plugins started by default, in start order."""
    return [
        Plugin.stateless("help", [help_command(registry)]),
        factoids.plugin,
    ]

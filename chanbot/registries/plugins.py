"""Plugin registry -- start, register, and stop bundles of commands.

A :class:`Plugin` pairs a command set with private state: ``init`` builds
the state from the settings, ``commands`` turns it into descriptors, and
``stop`` flushes it on shutdown.  Plugins never see each other's state;
anything they share goes through the signal bus.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from ..messaging.commands import CommandDescriptor, CommandRegistry

logger = logging.getLogger(__name__)

InitFn = Callable[[Any], Awaitable[Any]]
CommandsFn = Callable[[Any], list[CommandDescriptor]]
StopFn = Callable[[Any], Awaitable[None]]


async def _no_state(_config: Any) -> None:
    return None


async def _no_stop(_state: Any) -> None:
    return None


@dataclass(frozen=True)
class Plugin:
    name: str
    commands: CommandsFn
    init: InitFn = _no_state
    stop: StopFn = _no_stop

    @classmethod
    def stateless(cls, name: str, commands: list[CommandDescriptor]) -> Plugin:
        return cls(name=name, commands=lambda _state: list(commands))


@dataclass
class RunningPlugin:
    plugin: Plugin
    state: Any
    commands: list[CommandDescriptor] = field(default_factory=list)
    stopped: bool = False

    @property
    def name(self) -> str:
        return self.plugin.name

    async def stop(self) -> None:
        """Run the plugin's stop hook; later calls do nothing."""
        if self.stopped:
            return
        self.stopped = True
        await self.plugin.stop(self.state)


class PluginManager:
    def __init__(self, registry: CommandRegistry) -> None:
        self._registry = registry
        self._running: list[RunningPlugin] = []

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    @property
    def running(self) -> list[RunningPlugin]:
        return list(self._running)

    async def start(self, plugin: Plugin, config: Any) -> RunningPlugin:
        state = await plugin.init(config)
        commands = [dataclasses.replace(c, state=state) for c in plugin.commands(state)]
        self._registry.register_all(commands)
        running = RunningPlugin(plugin=plugin, state=state, commands=commands)
        self._running.append(running)
        logger.info("Started plugin %s (%d command(s))", plugin.name, len(commands))
        return running

    async def start_all(self, plugins: Iterable[Plugin], config: Any) -> list[RunningPlugin]:
        return [await self.start(p, config) for p in plugins]

    async def stop_all(self) -> None:
        """Deregister every command, then stop plugins in reverse order."""
        for running in self._running:
            for command in running.commands:
                self._registry.unregister(command)
        while self._running:
            running = self._running.pop()
            try:
                await running.stop()
            except Exception:
                logger.exception("Failed to stop plugin %s", running.name)
            else:
                logger.info("Stopped plugin %s", running.name)

"""Priority-ordered command registry.

Every chat message is offered to the registered commands from the highest
priority down.  A command first *matches* the text (consuming a prefix and
leaving the rest for its handler), then its handler decides whether it
actually claims the message:

- :attr:`Outcome.HANDLED` stops the search -- at most one command claims
  a message;
- :attr:`Outcome.SKIP` passes the message on to lower priorities even
  though the text matched.  A command recognising the shape of a request
  but not its arguments answers ``SKIP``.

The registry never talks to the network; handlers send their own replies
through :class:`CommandContext`.
"""

from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from .privmsg import PrivMsg, reply_to
from .talk import Talk

logger = logging.getLogger(__name__)


class Outcome(Enum):
    HANDLED = "handled"
    SKIP = "skip"


class ReplySink(Protocol):
    async def send_privmsg(self, target: str, message: str) -> None: ...

    async def send_notice(self, target: str, message: str) -> None: ...

    async def talk(self, target: str, kind: Talk) -> None: ...


# -- matchers ---------------------------------------------------------------


class Matcher(Protocol):
    def match(self, text: str) -> str | None:
        """Return the residual text on a match, ``None`` otherwise."""
        ...


@dataclass(frozen=True)
class PrefixMatcher:
    prefix: str

    def match(self, text: str) -> str | None:
        if text.startswith(self.prefix):
            return text[len(self.prefix):]
        return None


class RegexMatcher:
    """Anchored regex; the residual is whatever follows the match."""

    def __init__(self, pattern: str | re.Pattern[str], flags: int = 0) -> None:
        self.pattern = re.compile(pattern, flags) if isinstance(pattern, str) else pattern

    def match(self, text: str) -> str | None:
        m = self.pattern.match(text)
        return text[m.end():] if m else None

    def __repr__(self) -> str:
        return f"RegexMatcher({self.pattern.pattern!r})"


class PredicateMatcher:
    def __init__(self, fn: Callable[[str], str | None]) -> None:
        self._fn = fn

    def match(self, text: str) -> str | None:
        return self._fn(text)


def command_matcher(word: str) -> RegexMatcher:
    """Match ``!word`` followed by whitespace or the end of the text."""
    return RegexMatcher(rf"!{re.escape(word)}(?:\s+|$)")


# -- descriptors ------------------------------------------------------------


@dataclass
class CommandContext:
    message: PrivMsg
    text: str  # residual left by the matcher
    target: str
    bot: ReplySink
    state: Any = None

    async def reply(self, text: str) -> None:
        await self.bot.send_privmsg(self.target, text)

    async def notice(self, text: str) -> None:
        await self.bot.send_notice(self.target, text)

    async def talk(self, kind: Talk) -> None:
        await self.bot.talk(self.target, kind)


CommandHandler = Callable[[CommandContext], Awaitable["Outcome | None"]]


@dataclass(frozen=True, eq=False)
class CommandDescriptor:
    name: str
    priority: int
    matcher: Matcher
    handler: CommandHandler
    descr: str = ""
    state: Any = None


def make_simple(
    prefix: str,
    prio: int,
    descr: str,
    fn: Callable[[CommandContext, str], Awaitable[str | None]],
    *,
    name: str = "",
) -> CommandDescriptor:
    """Build a ``!prefix args`` command whose result, if any, is the reply."""

    async def _handler(ctx: CommandContext) -> Outcome:
        reply = await fn(ctx, ctx.text)
        if reply is not None:
            await ctx.reply(reply)
        return Outcome.HANDLED

    return CommandDescriptor(
        name=name or prefix,
        priority=prio,
        matcher=command_matcher(prefix),
        handler=_handler,
        descr=descr,
    )


# -- registry ---------------------------------------------------------------


class CommandRegistry:
    def __init__(self) -> None:
        self._commands: list[CommandDescriptor] = []

    def __len__(self) -> int:
        return len(self._commands)

    @property
    def descriptors(self) -> list[CommandDescriptor]:
        """Registered commands, in evaluation order."""
        return list(self._commands)

    def register(self, command: CommandDescriptor) -> None:
        self._commands.append(command)
        # sort is stable: equal priorities keep registration order
        self._commands.sort(key=lambda c: -c.priority)
        logger.debug("Registered command %s (priority %d)", command.name, command.priority)

    def register_all(self, commands: Iterable[CommandDescriptor]) -> None:
        for command in commands:
            self.register(command)

    def unregister(self, command: CommandDescriptor) -> bool:
        for i, registered in enumerate(self._commands):
            if registered is command:
                del self._commands[i]
                return True
        return False

    def clear(self) -> None:
        self._commands.clear()

    def find(self, name: str) -> CommandDescriptor | None:
        return next((c for c in self._commands if c.name == name), None)

    async def dispatch(self, message: PrivMsg, bot: ReplySink) -> CommandDescriptor | None:
        """Offer *message* to each command; return the one that claimed it."""
        target = reply_to(message)
        for command in list(self._commands):
            residual = command.matcher.match(message.message)
            if residual is None:
                continue
            ctx = CommandContext(
                message=message,
                text=residual,
                target=target,
                bot=bot,
                state=command.state,
            )
            try:
                outcome = await command.handler(ctx)
            except Exception:
                logger.exception("Command %s failed on %r", command.name, message.message)
                continue
            if outcome is Outcome.SKIP:
                logger.debug("Command %s skipped %r", command.name, message.message)
                continue
            logger.debug("Command %s handled %r", command.name, message.message)
            return command
        return None


def help_command(registry: CommandRegistry, prio: int = 10) -> CommandDescriptor:
    """``!help`` lists the commands, ``!help <name>`` describes one."""

    async def _help(ctx: CommandContext, text: str) -> str:
        name = text.strip()
        if not name:
            names = sorted({c.name for c in registry.descriptors})
            return "commands: " + ", ".join(names)
        command = registry.find(name)
        if command is None:
            return f"no such command: {name}"
        if not command.descr:
            return f"{name}: no description"
        return inspect.cleandoc(command.descr)

    return make_simple("help", prio, "list commands, or describe one with `!help <name>`", _help)

"""Dispatch loop -- turns protocol events into signals and sends replies.

Inbound messages are published on :attr:`Bot.messages`; chat messages are
also published, already decoded, on :attr:`Bot.privmsg`.  Commands are
wired in with :meth:`Bot.attach`.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Protocol

from ..bus.signal import Signal, Subscription
from ..config.settings import DEFAULT_LINE_CUT_THRESHOLD
from ..irc.client import ErrorCallback, IrcMessage, MessageCallback
from . import talk as _talk
from .commands import CommandRegistry
from .formatting import cut_lines, flat_split, split_lines
from .privmsg import PrivMsg, privmsg_of_msg
from .talk import Talk

logger = logging.getLogger(__name__)

RPL_WELCOME = "001"

SendFn = Callable[[str, str], Awaitable[None]]


class ProtocolClient(Protocol):
    async def listen(self, on_message: MessageCallback, on_error: ErrorCallback) -> None: ...

    async def send_privmsg(self, target: str, text: str) -> None: ...

    async def send_notice(self, target: str, text: str) -> None: ...

    async def send_join(self, channel: str) -> None: ...

    async def send_quit(self, message: str = "") -> None: ...

    async def close(self) -> None: ...


class Bot:
    def __init__(
        self,
        client: ProtocolClient,
        *,
        line_cut_threshold: int = DEFAULT_LINE_CUT_THRESHOLD,
    ) -> None:
        self._client = client
        self.line_cut_threshold = line_cut_threshold
        self.messages: Signal[IrcMessage] = Signal()
        self.privmsg: Signal[PrivMsg] = self.messages.filter_map(privmsg_of_msg)
        self._welcome: Signal[IrcMessage] | None = None
        self.messages.on_each(self._log_message)

    @property
    def client(self) -> ProtocolClient:
        return self._client

    @staticmethod
    def _log_message(msg: IrcMessage) -> None:
        logger.debug("<< %s", msg)

    def attach(self, registry: CommandRegistry) -> Subscription:
        """Run *registry* against every chat message."""

        async def _dispatch(msg: PrivMsg) -> None:
            await registry.dispatch(msg, self)

        return self.privmsg.on_each(_dispatch)

    def join_on_welcome(self, channels: Iterable[str]) -> None:
        """Join *channels* once the server has accepted our registration."""
        channels = list(channels)
        welcome = self.messages.filter(lambda m: m.command == RPL_WELCOME)

        async def _join(_msg: IrcMessage) -> None:
            for channel in channels:
                await self.send_join(channel)
            # dropping the filtered signal unsubscribes it on the next message
            self._welcome = None

        welcome.once(_join)
        self._welcome = welcome

    # -- outgoing ----------------------------------------------------------

    async def _send_lines(self, send: SendFn, target: str, lines: list[str]) -> None:
        for line in cut_lines(lines, self.line_cut_threshold):
            try:
                await send(target, line)
            except OSError as exc:
                logger.warning("Failed to send to %s: %s", target, exc)
                return

    async def send_privmsg(self, target: str, message: str) -> None:
        """Send *message*, split on line breaks and cut when too long."""
        await self._send_lines(self._client.send_privmsg, target, split_lines(message))

    async def send_privmsg_l(self, target: str, messages: Iterable[str]) -> None:
        await self._send_lines(self._client.send_privmsg, target, flat_split(messages))

    async def send_notice(self, target: str, message: str) -> None:
        await self._send_lines(self._client.send_notice, target, split_lines(message))

    async def send_notice_l(self, target: str, messages: Iterable[str]) -> None:
        await self._send_lines(self._client.send_notice, target, flat_split(messages))

    async def send_join(self, channel: str) -> None:
        try:
            await self._client.send_join(channel)
        except OSError as exc:
            logger.warning("Failed to join %s: %s", channel, exc)
            return
        logger.info("Joined %s", channel)

    async def talk(self, target: str, kind: Talk) -> None:
        await self.send_privmsg(target, _talk.select(kind))

    # -- main loop ---------------------------------------------------------

    async def run(self) -> None:
        """Publish incoming messages until the connection ends."""

        async def _on_error(err: str) -> None:
            logger.error("Transport error: %s", err)

        try:
            await self._client.listen(self.messages.send, _on_error)
        finally:
            try:
                await self._client.send_quit()
            except OSError as exc:
                logger.debug("Could not send QUIT: %s", exc)
            await self._client.close()

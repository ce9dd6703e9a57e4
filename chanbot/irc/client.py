"""Minimal asyncio IRC client.

Only what the bot needs: register, read lines, answer server pings, and
send ``PRIVMSG``/``NOTICE``/``JOIN``/``QUIT``.  Decoded lines are handed to
the caller as :class:`IrcMessage` values.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

MessageCallback = Callable[["IrcMessage"], Awaitable[None]]
ErrorCallback = Callable[[str], Awaitable[None]]


@dataclass(frozen=True)
class IrcMessage:
    command: str
    params: tuple[str, ...] = ()
    prefix: str = ""

    @property
    def nick(self) -> str:
        return self.prefix.split("!", 1)[0]

    @classmethod
    def parse(cls, line: str) -> IrcMessage:
        line = line.rstrip("\r\n")
        if line.startswith("@"):
            # IRCv3 message tags are not used
            _, _, line = line.partition(" ")
        prefix = ""
        if line.startswith(":"):
            prefix, _, line = line[1:].partition(" ")
        head, sep, trailing = line.partition(" :")
        words = head.split()
        if not words:
            raise ValueError(f"no command in IRC line {line!r}")
        params = words[1:]
        if sep:
            params.append(trailing)
        return cls(command=words[0].upper(), params=tuple(params), prefix=prefix)

    def to_line(self) -> str:
        parts = [f":{self.prefix}"] if self.prefix else []
        parts.append(self.command)
        if self.params:
            *middle, last = self.params
            parts.extend(middle)
            parts.append(f":{last}" if " " in last or last.startswith(":") or not last else last)
        return " ".join(parts)

    def __str__(self) -> str:
        return self.to_line()


class IrcClient:
    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        nick: str,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self.nick = nick

    @classmethod
    async def connect(
        cls,
        server: str,
        port: int,
        *,
        nick: str,
        username: str = "",
        realname: str = "",
        timeout: float = 30.0,
    ) -> IrcClient:
        """Open a connection and register *nick*.

        Raises ``ConnectionError`` when the server cannot be reached.
        """
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(server, port), timeout,
            )
        except (OSError, TimeoutError) as exc:
            raise ConnectionError(f"Could not connect to {server}:{port}: {exc}") from exc
        logger.info("Connected to %s:%d as %s", server, port, nick)
        client = cls(reader, writer, nick)
        await client.send_raw(f"NICK {nick}")
        await client.send_raw(f"USER {username or nick} 0 * :{realname or nick}")
        return client

    async def send_raw(self, line: str) -> None:
        self._writer.write(line.encode("utf-8") + b"\r\n")
        await self._writer.drain()

    async def listen(self, on_message: MessageCallback, on_error: ErrorCallback) -> None:
        """Read until the server closes the connection."""
        while True:
            try:
                raw = await self._reader.readline()
            except (OSError, asyncio.IncompleteReadError) as exc:
                await on_error(f"read failed: {exc}")
                return
            if not raw:
                return
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            if not line:
                continue
            try:
                msg = IrcMessage.parse(line)
            except ValueError as exc:
                await on_error(str(exc))
                continue
            if msg.command == "PING":
                await self.send_raw(f"PONG :{msg.params[-1] if msg.params else ''}")
            await on_message(msg)

    async def send_privmsg(self, target: str, text: str) -> None:
        await self.send_raw(f"PRIVMSG {target} :{text}")

    async def send_notice(self, target: str, text: str) -> None:
        await self.send_raw(f"NOTICE {target} :{text}")

    async def send_join(self, channel: str) -> None:
        await self.send_raw(f"JOIN {channel}")

    async def send_quit(self, message: str = "") -> None:
        await self.send_raw(f"QUIT :{message}")

    async def close(self) -> None:
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as exc:
            logger.debug("Error while closing IRC connection: %s", exc)

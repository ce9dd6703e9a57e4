"""Interactive console client -- talk to the bot without a chat server.

Lines typed at the prompt arrive as channel messages; ``/pm <text>``
sends a private message instead, ``/quit`` ends the session.  Replies are
printed with rich.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import FileHistory, InMemoryHistory
from rich.console import Console
from rich.markup import escape

from .client import ErrorCallback, IrcMessage, MessageCallback

_QUIT = {"/quit", "/exit"}
_PRIVATE = "/pm "


class ConsoleClient:
    def __init__(
        self,
        *,
        nick: str = "you",
        bot_nick: str = "chanbot",
        channel: str = "#console",
        history_path: Path | None = None,
        console: Console | None = None,
        session: PromptSession[str] | None = None,
    ) -> None:
        self.nick = nick
        self.bot_nick = bot_nick
        self.channel = channel
        self._console = console or Console()
        if session is None:
            history = FileHistory(str(history_path)) if history_path else InMemoryHistory()
            session = PromptSession(history=history)
        self._session = session
        self._closed = False

    def _to_message(self, text: str) -> IrcMessage:
        target = self.channel
        if text.startswith(_PRIVATE):
            target, text = self.bot_nick, text[len(_PRIVATE):]
        return IrcMessage(
            command="PRIVMSG",
            params=(target, text),
            prefix=f"{self.nick}!{self.nick}@console",
        )

    async def listen(self, on_message: MessageCallback, on_error: ErrorCallback) -> None:
        self._console.print(
            f"[bold green]{escape(self.bot_nick)}[/bold green] console\n"
            "Type [bold]/quit[/bold] to exit, [bold]/pm <text>[/bold] for a private message.\n"
        )
        await on_message(IrcMessage(command="001", params=(self.nick, "Welcome to the console")))
        while not self._closed:
            try:
                user_input = await asyncio.to_thread(
                    self._session.prompt, HTML(f"<b>{self.nick} &gt;</b> ")
                )
            except (EOFError, KeyboardInterrupt):
                return
            text = user_input.strip()
            if not text:
                continue
            if text.lower() in _QUIT:
                return
            await on_message(self._to_message(text))

    async def send_privmsg(self, target: str, text: str) -> None:
        self._console.print(f"[bold cyan]{escape(target)}[/bold cyan] {escape(text)}")

    async def send_notice(self, target: str, text: str) -> None:
        self._console.print(f"[cyan]{escape(target)}[/cyan] [italic]{escape(text)}[/italic]")

    async def send_join(self, channel: str) -> None:
        self._console.print(f"[dim]-- joined {escape(channel)} --[/dim]")

    async def send_quit(self, message: str = "") -> None:
        self._console.print("[dim]Goodbye.[/dim]")

    async def close(self) -> None:
        self._closed = True

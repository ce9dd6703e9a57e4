"""Chat messages and where replies to them go."""

from __future__ import annotations

from dataclasses import dataclass

from ..irc.client import IrcMessage


@dataclass(frozen=True)
class PrivMsg:
    nick: str  # author
    to: str  # channel or our own nick
    message: str

    def __str__(self) -> str:
        return f"{{nick:{self.nick}, to:{self.to}, msg: {self.message}}}"


def is_chan(name: str) -> bool:
    return bool(name) and name[0] == "#" and " " not in name


def reply_to(msg: PrivMsg) -> str:
    """Answer on the same channel, or privately to the author."""
    return msg.to if is_chan(msg.to) else msg.nick


def privmsg_of_msg(msg: IrcMessage) -> PrivMsg | None:
    if msg.command != "PRIVMSG" or len(msg.params) < 2 or not msg.nick:
        return None
    return PrivMsg(nick=msg.nick, to=msg.params[0], message=msg.params[1])

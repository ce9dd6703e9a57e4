"""Shared pytest fixtures for chanbot tests."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path

import pytest

from chanbot.irc.client import ErrorCallback, IrcMessage, MessageCallback
from chanbot.messaging.bot import Bot

_SETTINGS_ENV = (
    "IRC_SERVER",
    "IRC_PORT",
    "IRC_NICK",
    "IRC_USERNAME",
    "IRC_REALNAME",
    "IRC_CHANNEL",
    "FACTOIDS_FILE",
    "LINE_CUT_THRESHOLD",
    "LOG_LEVEL",
)


class FakeClient:
    """Protocol client that replays canned input and records output.

    Items of *incoming* are delivered in order: ``IrcMessage`` values as
    messages, strings as transport errors.
    """

    def __init__(self, incoming: Iterable[IrcMessage | str] = ()) -> None:
        self.incoming = list(incoming)
        self.sent: list[tuple[str, str, str]] = []
        self.quit = False
        self.closed = False

    async def listen(self, on_message: MessageCallback, on_error: ErrorCallback) -> None:
        for item in self.incoming:
            if isinstance(item, str):
                await on_error(item)
            else:
                await on_message(item)

    async def send_privmsg(self, target: str, text: str) -> None:
        self.sent.append(("PRIVMSG", target, text))

    async def send_notice(self, target: str, text: str) -> None:
        self.sent.append(("NOTICE", target, text))

    async def send_join(self, channel: str) -> None:
        self.sent.append(("JOIN", channel, ""))

    async def send_quit(self, message: str = "") -> None:
        self.quit = True

    async def close(self) -> None:
        self.closed = True

    def texts(self, kind: str | None = None) -> list[str]:
        return [text for k, _, text in self.sent if kind is None or k == kind]


def irc_privmsg(text: str, *, nick: str = "alice", to: str = "#chan") -> IrcMessage:
    return IrcMessage(command="PRIVMSG", params=(to, text), prefix=f"{nick}!{nick}@host")


@pytest.fixture(autouse=True)
def _isolate_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.setenv("CHANBOT_DATA_DIR", str(data_dir))
    monkeypatch.setenv("DOTENV_PATH", str(tmp_path / ".env"))
    for key in _SETTINGS_ENV:
        monkeypatch.delenv(key, raising=False)
    return data_dir


@pytest.fixture(autouse=True)
def _reset_singletons(_isolate_data_dir: Path):
    from chanbot.util.singletons import reset_all_singletons

    reset_all_singletons()
    yield
    reset_all_singletons()


@pytest.fixture(autouse=True)
def _reset_exn_handler():
    from chanbot.bus.signal import reset_exn_handler

    yield
    reset_exn_handler()


@pytest.fixture()
def data_dir(_isolate_data_dir: Path) -> Path:
    return _isolate_data_dir


@pytest.fixture()
def make_client() -> Callable[..., FakeClient]:
    return FakeClient


@pytest.fixture()
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture()
def bot(client: FakeClient) -> Bot:
    return Bot(client)


@pytest.fixture()
def privmsg() -> Callable[..., IrcMessage]:
    return irc_privmsg

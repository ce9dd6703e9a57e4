"""End-to-end tests for the factoids plugin, driven through the bot."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from chanbot.config.settings import Settings
from chanbot.messaging.bot import Bot
from chanbot.messaging.commands import CommandRegistry
from chanbot.messaging.talk import _PHRASES, Talk
from chanbot.plugins import builtin_plugins
from chanbot.plugins.factoids import msg_of_value
from chanbot.registries.plugins import PluginManager


async def _session(make_client, privmsg, lines: list[str]):
    """Run the bundled plugins over *lines* and return the client."""
    client = make_client([privmsg(line) for line in lines])
    registry = CommandRegistry()
    manager = PluginManager(registry)
    bot = Bot(client)
    bot.attach(registry)
    await manager.start_all(builtin_plugins(registry), Settings())
    try:
        await bot.run()
    finally:
        await manager.stop_all()
    return client


def _factoids_file(data_dir: Path) -> Path:
    return data_dir / "factoids.json"


def _stored(data_dir: Path) -> dict:
    return json.loads(_factoids_file(data_dir).read_text(encoding="utf-8"))


class TestFactoidCommands:
    @pytest.mark.asyncio
    async def test_set_then_get(self, make_client, privmsg, data_dir: Path) -> None:
        client = await _session(make_client, privmsg, ["!tea = green", "!tea"])
        assert client.texts("PRIVMSG")[0] in _PHRASES[Talk.ACK]
        assert client.sent[-1] == ("NOTICE", "#chan", "green")
        assert _stored(data_dir) == {"tea": ["green"]}

    @pytest.mark.asyncio
    async def test_set_existing_key_fails(self, make_client, privmsg, data_dir: Path) -> None:
        client = await _session(make_client, privmsg, ["!tea = green", "!tea = black"])
        assert client.texts("PRIVMSG")[1] in _PHRASES[Talk.ERR]
        assert _stored(data_dir) == {"tea": ["green"]}

    @pytest.mark.asyncio
    async def test_set_force_overwrites(self, make_client, privmsg, data_dir: Path) -> None:
        await _session(make_client, privmsg, ["!tea = green", "!tea := black"])
        assert _stored(data_dir) == {"tea": ["black"]}

    @pytest.mark.asyncio
    async def test_append(self, make_client, privmsg, data_dir: Path) -> None:
        await _session(make_client, privmsg, ["!tea += green", "!tea += oolong"])
        assert _stored(data_dir) == {"tea": ["green", "oolong"]}

    @pytest.mark.asyncio
    async def test_counter_persists(self, make_client, privmsg, data_dir: Path) -> None:
        _factoids_file(data_dir).write_text('{"x": 3}', encoding="utf-8")
        client = await _session(make_client, privmsg, ["!x++"])
        assert client.sent == [("NOTICE", "#chan", "x : 4")]
        assert _stored(data_dir) == {"x": 4}

    @pytest.mark.asyncio
    async def test_decrement_new_counter(self, make_client, privmsg, data_dir: Path) -> None:
        client = await _session(make_client, privmsg, ["!x--", "!x--"])
        assert client.texts("NOTICE") == ["x : -1", "x : -2"]

    @pytest.mark.asyncio
    async def test_increment_on_strings_is_silent(
        self, make_client, privmsg, data_dir: Path
    ) -> None:
        _factoids_file(data_dir).write_text('{"tea": ["green"]}', encoding="utf-8")
        client = await _session(make_client, privmsg, ["!tea++"])
        assert client.sent == []
        assert _stored(data_dir) == {"tea": ["green"]}

    @pytest.mark.asyncio
    async def test_unknown_key_is_silent(self, make_client, privmsg) -> None:
        client = await _session(make_client, privmsg, ["!nothing"])
        assert client.sent == []

    @pytest.mark.asyncio
    async def test_plain_chat_is_ignored(self, make_client, privmsg) -> None:
        client = await _session(make_client, privmsg, ["hello there", "tea = green"])
        assert client.sent == []


class TestSubCommands:
    @pytest.mark.asyncio
    async def test_see(self, make_client, privmsg, data_dir: Path) -> None:
        _factoids_file(data_dir).write_text('{"tea": ["green", "black"]}', encoding="utf-8")
        client = await _session(make_client, privmsg, ["!see tea", "!see coffee", "!see"])
        assert client.texts() == ["green | black", "not found.", "not found."]

    @pytest.mark.asyncio
    async def test_search(self, make_client, privmsg, data_dir: Path) -> None:
        _factoids_file(data_dir).write_text(
            '{"tea": ["green"], "coffee": ["black"], "ink": ["black"]}', encoding="utf-8"
        )
        client = await _session(make_client, privmsg, ["!search green", "!search black", "!search milk"])
        assert client.texts() == ["!tea -> green", "!coffee, !ink"]

    @pytest.mark.asyncio
    async def test_random(self, make_client, privmsg, data_dir: Path) -> None:
        _factoids_file(data_dir).write_text('{"tea": ["green"]}', encoding="utf-8")
        client = await _session(make_client, privmsg, ["!random"])
        assert client.texts() == ["!tea: green"]

    @pytest.mark.asyncio
    async def test_reload_picks_up_file_changes(
        self, make_client, privmsg, data_dir: Path
    ) -> None:
        path = _factoids_file(data_dir)
        path.write_text('{"tea": ["green"]}', encoding="utf-8")

        client = make_client([privmsg("!reload"), privmsg("!see tea")])
        registry = CommandRegistry()
        manager = PluginManager(registry)
        bot = Bot(client)
        bot.attach(registry)
        await manager.start_all(builtin_plugins(registry), Settings())
        path.write_text('{"tea": ["black"]}', encoding="utf-8")
        await bot.run()
        await manager.stop_all()

        assert client.texts()[0] in _PHRASES[Talk.ACK]
        assert client.texts()[1] == "black"

    @pytest.mark.asyncio
    async def test_help_lists_factoid_commands(self, make_client, privmsg) -> None:
        client = await _session(make_client, privmsg, ["!help"])
        assert client.texts() == ["commands: factoids, help, random, reload, search, see"]

    @pytest.mark.asyncio
    async def test_help_describes_factoids(self, make_client, privmsg) -> None:
        client = await _session(make_client, privmsg, ["!help factoids"])
        texts = client.texts()
        assert texts[0] == "factoids, triggered by the following commands:"
        assert any("!foo++" in t for t in texts)

    @pytest.mark.asyncio
    async def test_stored_key_shadows_sub_command(
        self, make_client, privmsg, data_dir: Path
    ) -> None:
        _factoids_file(data_dir).write_text('{"random": ["not so random"]}', encoding="utf-8")
        client = await _session(make_client, privmsg, ["!random"])
        assert client.sent == [("NOTICE", "#chan", "not so random")]


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_stop_saves_snapshot(self, make_client, privmsg, data_dir: Path) -> None:
        await _session(make_client, privmsg, [])
        assert _stored(data_dir) == {}

    @pytest.mark.asyncio
    async def test_factoids_file_setting(
        self, make_client, privmsg, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        custom = tmp_path / "elsewhere" / "facts.json"
        monkeypatch.setenv("FACTOIDS_FILE", str(custom))
        await _session(make_client, privmsg, ["!tea = green"])
        assert json.loads(custom.read_text(encoding="utf-8")) == {"tea": ["green"]}


class TestMsgOfValue:
    def test_values(self) -> None:
        assert msg_of_value(3) == "3"
        assert msg_of_value([]) is None
        assert msg_of_value(["one"]) == "one"
        assert msg_of_value(["a", "b"]) in {"a", "b"}

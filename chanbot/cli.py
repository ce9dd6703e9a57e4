"""Command-line entry point.

``chanbot run`` connects to the configured IRC server; ``chanbot console``
starts a local interactive session with the same plugins.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Iterable

from .config import settings as _settings
from .config.settings import Settings
from .irc.client import IrcClient
from .irc.console import ConsoleClient
from .messaging.bot import Bot, ProtocolClient
from .messaging.commands import CommandRegistry
from .plugins import builtin_plugins
from .registries.plugins import PluginManager

logger = logging.getLogger(__name__)


def _setup_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(name)s  %(levelname)s  %(message)s",
    )


async def serve(client: ProtocolClient, settings: Settings, *, channels: Iterable[str]) -> None:
    """Start the plugins, run the bot until the client disconnects, then stop them."""
    registry = CommandRegistry()
    manager = PluginManager(registry)
    bot = Bot(client, line_cut_threshold=settings.line_cut_threshold)
    bot.attach(registry)
    bot.join_on_welcome(channels)

    await manager.start_all(builtin_plugins(registry), settings)
    try:
        await bot.run()
    finally:
        await manager.stop_all()


async def _run_irc(settings: Settings) -> None:
    client = await IrcClient.connect(
        settings.irc_server,
        settings.irc_port,
        nick=settings.irc_nick,
        username=settings.irc_username,
        realname=settings.irc_realname,
    )
    await serve(client, settings, channels=[settings.irc_channel])


async def _run_console(settings: Settings) -> None:
    client = ConsoleClient(
        bot_nick=settings.irc_nick,
        history_path=settings.console_history_path,
    )
    await serve(client, settings, channels=[client.channel])


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="chanbot", description="Chat bot with factoids")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("run", help="connect to the configured IRC server")
    sub.add_parser("console", help="talk to the bot from this terminal")
    args = parser.parse_args(argv)

    settings = _settings.cfg
    _setup_logging(settings.log_level_value)
    settings.ensure_dirs()

    runner = _run_irc if args.command == "run" else _run_console
    try:
        asyncio.run(runner(settings))
    except ConnectionError as exc:
        logger.error("%s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()

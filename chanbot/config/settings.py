"""Application settings -- reads from environment and ``.env`` file.

All configuration is consolidated here.  Values in the ``.env`` file win
over the process environment so a deployment can pin them on disk.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import ClassVar

from ..util.env_file import EnvFile
from ..util.singletons import register_singleton

DEFAULT_LINE_CUT_THRESHOLD = 10


class Settings:
    """Runtime configuration sourced from environment variables and ``.env``."""

    _DATA_DIR_ENV: ClassVar[str] = "CHANBOT_DATA_DIR"

    def __init__(self) -> None:
        # Resolve .env path: explicit DOTENV_PATH > data_dir/.env > CWD/.env
        dotenv = os.getenv("DOTENV_PATH")
        if not dotenv:
            data_dir = os.getenv(self._DATA_DIR_ENV)
            dotenv = str(Path(data_dir) / ".env") if data_dir else ".env"
        self.env = EnvFile(dotenv)
        self.reload()

    def reload(self) -> None:
        """Re-read the ``.env`` file and environment variables."""
        e = self._read

        self.irc_server: str = e("IRC_SERVER") or "irc.libera.chat"
        self.irc_port: int = int(e("IRC_PORT") or "6667")
        self.irc_nick: str = e("IRC_NICK") or "chanbot"
        self.irc_username: str = e("IRC_USERNAME") or self.irc_nick
        self.irc_realname: str = e("IRC_REALNAME") or self.irc_nick
        self.irc_channel: str = e("IRC_CHANNEL") or "#chanbot"

        self.line_cut_threshold: int = int(
            e("LINE_CUT_THRESHOLD") or str(DEFAULT_LINE_CUT_THRESHOLD)
        )
        self.log_level: str = (e("LOG_LEVEL") or "INFO").upper()

        self._factoids_file: str = e("FACTOIDS_FILE")

    # -- derived paths -----------------------------------------------------

    @property
    def data_dir(self) -> Path:
        return Path(os.getenv(self._DATA_DIR_ENV, str(Path.home() / ".chanbot")))

    @property
    def factoids_path(self) -> Path:
        if self._factoids_file:
            return Path(self._factoids_file).expanduser()
        return self.data_dir / "factoids.json"

    @property
    def console_history_path(self) -> Path:
        return self.data_dir / ".console_history"

    @property
    def log_level_value(self) -> int:
        return logging.getLevelNamesMapping().get(self.log_level, logging.INFO)

    # -- helpers -----------------------------------------------------------

    def _read(self, key: str) -> str:
        return self.env.read(key) or os.getenv(key, "")

    def ensure_dirs(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.factoids_path.parent.mkdir(parents=True, exist_ok=True)


# Module-level singleton
cfg = Settings()


def _reset_cfg() -> None:
    global cfg
    cfg = Settings()


register_singleton(_reset_cfg)

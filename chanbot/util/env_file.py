"""Reader for ``KEY=VALUE`` dotenv files."""

from __future__ import annotations

from pathlib import Path


class EnvFile:
    """Parses a dotenv file on demand.

    Blank lines and ``#`` comments are ignored, an ``export`` prefix is
    accepted, and surrounding quotes are stripped from values.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def read(self, key: str) -> str:
        """Return the value for *key*, or ``""`` if absent."""
        return self.read_all().get(key, "")

    def read_all(self) -> dict[str, str]:
        if not self.path.is_file():
            return {}
        result: dict[str, str] = {}
        for line in self.path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            if line.startswith("export "):
                line = line[len("export "):]
            key, _, value = line.partition("=")
            result[key.strip()] = value.strip().strip('"').strip("'")
        return result

"""JSON snapshot file with atomic replacement."""

from __future__ import annotations

import json
import logging
import os
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class JsonStore:
    """Reads and writes one JSON document.

    ``save`` writes the whole document to ``<file>.tmp``, flushes it to
    disk and renames it over ``<file>``, so readers see either the old
    snapshot or the new one, never a partial write.
    """

    def __init__(self, path: Path, default: Any = None) -> None:
        self._path = path
        self._default = default if default is not None else {}
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def tmp_path(self) -> Path:
        return self._path.with_name(self._path.name + ".tmp")

    def load(self, object_pairs_hook: Callable[[list[tuple[str, Any]]], Any] | None = None) -> Any:
        if not self._path.exists():
            return self._default_copy()
        try:
            return json.loads(self._path.read_text(encoding="utf-8"), object_pairs_hook=object_pairs_hook)
        # ValueError covers decode errors and oversized int literals
        except (ValueError, RecursionError, OSError) as exc:
            logger.warning("Failed to load %s: %s", self._path, exc, exc_info=True)
            return self._default_copy()

    def save(self, data: Any) -> None:
        payload = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.tmp_path
            with open(tmp, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, self._path)

    def _default_copy(self) -> Any:
        if isinstance(self._default, dict):
            return dict(self._default)
        if isinstance(self._default, list):
            return list(self._default)
        return self._default

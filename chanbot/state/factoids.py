"""Factoid store -- short facts keyed by a single word.

A factoid value is either a counter (``int``) or a list of strings.  The
store keeps an in-memory snapshot; every mutation is followed by an
explicit :meth:`FactoidStore.save`, which rewrites the whole JSON file
atomically.  A file that cannot be read, or that does not look like a
factoid snapshot, loads as an empty store.

Chat syntax::

    !foo            get foo
    !foo = bar      set foo, unless it already exists
    !foo := bar     set foo, overwriting
    !foo += bar     append bar to foo
    !foo++ / !foo-- increment / decrement a counter
"""

from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..util.async_helpers import run_sync
from ._json_store import JsonStore

logger = logging.getLogger(__name__)

Value = int | list[str]
Factoids = dict[str, Value]

_KEY = r"([^!=+\s-]+)"

_RE_APPEND = re.compile(rf"^!\s*{_KEY}\s*\+=(.*)$")
_RE_SET_FORCE = re.compile(rf"^!\s*{_KEY}\s*:=(.*)$")
_RE_SET = re.compile(rf"^!\s*{_KEY}\s*=(.*)$")
_RE_GET = re.compile(rf"^!\s*{_KEY}\s*$")
_RE_INCR = re.compile(rf"^!\s*{_KEY}\s*\+\+\s*$")
_RE_DECR = re.compile(rf"^!\s*{_KEY}\s*--\s*$")


# -- operations -------------------------------------------------------------


@dataclass(frozen=True)
class Get:
    key: str


@dataclass(frozen=True)
class Set:
    key: str
    value: Value


@dataclass(frozen=True)
class SetForce:
    key: str
    value: Value


@dataclass(frozen=True)
class Append:
    key: str
    value: Value


@dataclass(frozen=True)
class Incr:
    key: str


@dataclass(frozen=True)
class Decr:
    key: str


Op = Get | Set | SetForce | Append | Incr | Decr


def key_of_string(text: str) -> str | None:
    key = text.strip()
    if not key or any(c.isspace() for c in key):
        return None
    return key


def mk_key(text: str) -> str:
    key = key_of_string(text)
    if key is None:
        raise ValueError(f"invalid factoid key: {text!r}")
    return key


def mk_value(text: str) -> Value:
    text = text.strip()
    try:
        return int(text)
    except ValueError:
        return [text]


def parse_op(message: str) -> Op | None:
    """Parse a factoid request; ``None`` when *message* is not one."""
    if m := _RE_APPEND.match(message):
        return Append(mk_key(m.group(1)), mk_value(m.group(2)))
    if m := _RE_SET_FORCE.match(message):
        return SetForce(mk_key(m.group(1)), mk_value(m.group(2)))
    if m := _RE_SET.match(message):
        return Set(mk_key(m.group(1)), mk_value(m.group(2)))
    if m := _RE_GET.match(message):
        return Get(mk_key(m.group(1)))
    if m := _RE_INCR.match(message):
        return Incr(mk_key(m.group(1)))
    if m := _RE_DECR.match(message):
        return Decr(mk_key(m.group(1)))
    return None


def string_of_value(value: Value) -> str:
    if isinstance(value, int):
        return str(value)
    return " | ".join(value)


def string_of_op(op: Op) -> str:
    if isinstance(op, Get):
        return f"get {op.key}"
    if isinstance(op, Set):
        return f"set {op.key} := {string_of_value(op.value)}"
    if isinstance(op, SetForce):
        return f"set_force {op.key} := {string_of_value(op.value)}"
    if isinstance(op, Append):
        return f"append {op.key} += {string_of_value(op.value)}"
    if isinstance(op, Incr):
        return f"incr {op.key}"
    return f"decr {op.key}"


def append_value(old: Value | None, new: Value) -> Value:
    if old is None:
        return new
    if isinstance(old, int) and isinstance(new, int):
        return old + new
    if isinstance(old, list) and isinstance(new, list):
        return old + new
    if isinstance(old, list):
        return [str(new)] + old
    return [str(old)] + list(new)


# -- (de)serialisation ------------------------------------------------------


class _Pairs(list):
    """Key/value pairs of a JSON object, in file order."""


def factoids_of_json(data: Any) -> Factoids | None:
    """Decode a snapshot; ``None`` if anything in it is malformed.

    Duplicate keys are merged as if appended.
    """
    if isinstance(data, dict):
        pairs = list(data.items())
    elif isinstance(data, _Pairs):
        pairs = list(data)
    else:
        return None
    facts: Factoids = {}
    for raw_key, raw_value in pairs:
        key = key_of_string(raw_key)
        if key is None:
            return None
        if isinstance(raw_value, bool):
            return None
        if isinstance(raw_value, int):
            value: Value = raw_value
        elif (
            isinstance(raw_value, list)
            and not isinstance(raw_value, _Pairs)
            and all(isinstance(s, str) for s in raw_value)
        ):
            value = list(raw_value)
        else:
            return None
        facts[key] = append_value(facts.get(key), value)
    return facts


def json_of_factoids(facts: Factoids) -> dict[str, Any]:
    return {key: (value if isinstance(value, int) else list(value)) for key, value in facts.items()}


def read_file(path: Path) -> Factoids:
    """Load the snapshot at *path*, or an empty one if it is unusable."""
    return _read_snapshot(JsonStore(path))


def _read_snapshot(store: JsonStore) -> Factoids:
    if not store.path.exists():
        return {}
    facts = factoids_of_json(store.load(object_pairs_hook=_Pairs))
    if facts is None:
        logger.warning("Ignoring malformed factoids file %s", store.path)
        return {}
    return facts


# -- store ------------------------------------------------------------------


class FactoidStore:
    def __init__(self, path: Path, facts: Factoids | None = None) -> None:
        self._path = path
        # saves serialise on this store's lock
        self._store = JsonStore(path)
        self.current: Factoids = facts if facts is not None else {}

    @classmethod
    async def open(cls, path: Path) -> FactoidStore:
        store = cls(path)
        await store.reload()
        return store

    @property
    def path(self) -> Path:
        return self._path

    def __len__(self) -> int:
        return len(self.current)

    def __contains__(self, key: str) -> bool:
        return key in self.current

    def get(self, key: str) -> Value:
        return self.current.get(key, [])

    def set(self, key: str, value: Value) -> None:
        self.current[key] = value

    def append(self, key: str, value: Value) -> None:
        self.current[key] = append_value(self.current.get(key), value)

    def _bump(self, key: str, delta: int) -> int | None:
        value = self.current.get(key, 0)
        if not isinstance(value, int):
            return None
        self.current[key] = value + delta
        return value + delta

    def incr(self, key: str) -> int | None:
        """Add one to a counter (missing keys start at 0).

        Returns the new count, or ``None`` if *key* holds strings.
        """
        return self._bump(key, 1)

    def decr(self, key: str) -> int | None:
        return self._bump(key, -1)

    def search(self, tokens: list[str]) -> str | None:
        """Find factoids where every token appears in the key or a value."""

        def _matches(key: str, value: Value, tok: str) -> bool:
            if tok in key:
                return True
            if isinstance(value, int):
                return tok == str(value)
            return any(tok in s for s in value)

        hits = [
            (key, value)
            for key, value in self.current.items()
            if all(_matches(key, value, tok) for tok in tokens)
        ]
        if not hits:
            return None
        if len(hits) == 1:
            key, value = hits[0]
            return f"!{key} -> {string_of_value(value)}"
        return ", ".join(f"!{key}" for key, _ in hits)

    def random(self, rng: random.Random | None = None) -> str | None:
        rng = rng or random.Random()
        choices = [(k, v) for k, v in self.current.items() if v != []]
        if not choices:
            return None
        key, value = rng.choice(choices)
        text = str(value) if isinstance(value, int) else rng.choice(value)
        return f"!{key}: {text}"

    async def save(self) -> None:
        await run_sync(self._store.save, json_of_factoids(self.current))

    async def reload(self) -> None:
        """Replace the in-memory snapshot with the file's content."""
        self.current = await run_sync(_read_snapshot, self._store)
        logger.info("Loaded %d factoid(s) from %s", len(self.current), self._path)

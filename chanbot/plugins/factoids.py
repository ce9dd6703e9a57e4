"""Factoids plugin -- remember short facts and counters for the channel."""

from __future__ import annotations

import dataclasses
import logging
import random

from ..config.settings import Settings
from ..messaging.commands import (
    CommandContext,
    CommandDescriptor,
    Outcome,
    PredicateMatcher,
    make_simple,
)
from ..messaging.talk import Talk
from ..registries.plugins import Plugin
from ..state.factoids import (
    Append,
    Decr,
    FactoidStore,
    Get,
    Incr,
    Set,
    SetForce,
    Value,
    mk_key,
    parse_op,
    string_of_op,
    string_of_value,
)

logger = logging.getLogger(__name__)

FACTOIDS_DESCR = """\
factoids, triggered by the following commands:

- `!foo` will retrieve one of the factoids associated with `foo`, if any
- `!foo = bar` maps `foo` to `bar`, unless `foo` is mapped yet
  (in which case it fails)
- `!foo += bar` adds `bar` to the mappings of `foo`
- `!foo := bar` maps `foo` to `bar` even if `foo` is already mapped
- `!foo++` and `!foo--` change the counter `foo`
"""


def msg_of_value(value: Value) -> str | None:
    if isinstance(value, int):
        return str(value)
    if not value:
        return None
    if len(value) == 1:
        return value[0]
    return random.choice(value)


def _starts_with_bang(text: str) -> str | None:
    return text if text.startswith("!") else None


async def _factoids(ctx: CommandContext) -> Outcome:
    store: FactoidStore = ctx.state
    op = parse_op(ctx.text)
    if op is None:
        return Outcome.SKIP
    logger.debug("parsed command `%s`", string_of_op(op))

    if isinstance(op, Get):
        # unknown keys fall through to the other commands (!random, !help...)
        if op.key not in store:
            return Outcome.SKIP
        message = msg_of_value(store.get(op.key))
        if message is not None:
            await ctx.notice(message)
        return Outcome.HANDLED

    if isinstance(op, Set):
        if op.key in store:
            await ctx.talk(Talk.ERR)
            return Outcome.HANDLED
        store.set(op.key, op.value)
    elif isinstance(op, SetForce):
        store.set(op.key, op.value)
    elif isinstance(op, Append):
        store.append(op.key, op.value)
    elif isinstance(op, (Incr, Decr)):
        count = store.incr(op.key) if isinstance(op, Incr) else store.decr(op.key)
        if count is not None:
            await store.save()
            await ctx.notice(f"{op.key} : {count}")
        return Outcome.HANDLED

    await store.save()
    await ctx.talk(Talk.ACK)
    return Outcome.HANDLED


async def _search(ctx: CommandContext, text: str) -> str | None:
    store: FactoidStore = ctx.state
    return store.search(text.split())


async def _see(ctx: CommandContext, text: str) -> str:
    store: FactoidStore = ctx.state
    try:
        value = store.get(mk_key(text))
    except ValueError:
        return "not found."
    if value == []:
        return "not found."
    return string_of_value(value)


async def _random(ctx: CommandContext, text: str) -> str | None:
    store: FactoidStore = ctx.state
    return store.random()


async def _reload(ctx: CommandContext, text: str) -> None:
    store: FactoidStore = ctx.state
    await store.reload()
    await ctx.talk(Talk.ACK)


def commands(store: FactoidStore) -> list[CommandDescriptor]:
    descriptors = [
        CommandDescriptor(
            name="factoids",
            priority=80,
            matcher=PredicateMatcher(_starts_with_bang),
            handler=_factoids,
            descr=FACTOIDS_DESCR,
        ),
        make_simple("search", 10, "search in factoids", _search),
        make_simple("reload", 10, "reload factoids", _reload),
        make_simple("see", 10, "see a factoid's content", _see),
        make_simple("random", 10, "random factoid", _random),
    ]
    return [dataclasses.replace(d, state=store) for d in descriptors]


async def init(config: Settings) -> FactoidStore:
    logger.info("Loading initial factoids file %s", config.factoids_path)
    return await FactoidStore.open(config.factoids_path)


async def stop(store: FactoidStore) -> None:
    await store.save()


plugin = Plugin(name="factoids", init=init, commands=commands, stop=stop)

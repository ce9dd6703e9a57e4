"""Helpers for mixing blocking and asynchronous callables."""

from __future__ import annotations

import asyncio
import functools
import inspect
from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T")


async def run_sync(fn: Callable[..., T], *args: object, **kwargs: object) -> T:
    """Run a blocking *fn* (file I/O, mostly) in the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(fn, *args, **kwargs))


async def maybe_await(value: Any) -> Any:
    """Await *value* if it is awaitable, otherwise hand it back as is.

    Lets callers accept both plain callables and coroutine functions.
    """
    if inspect.isawaitable(value):
        return await value
    return value

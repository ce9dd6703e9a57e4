"""Broadcast signals with dynamic subscription and derived pipelines.

A :class:`Signal` holds an ordered list of handlers.  ``send`` delivers a
value to each handler in turn, awaiting one before starting the next, so
subscribers never run concurrently for the same signal.

A handler answers :attr:`HandlerResult.CONTINUE` to stay subscribed or
:attr:`HandlerResult.STOP` to be dropped after the current delivery.  A
handler that raises is reported to the process-wide fault callback (see
:func:`set_exn_handler`) and kept, as if it had answered ``CONTINUE``.

Derived signals (``map``, ``filter``, ``filter_map``) reach their target
through a weak reference: once the application drops the derived signal,
the forwarding handler notices on the next delivery and unsubscribes.
``detach()`` does the same thing eagerly.

Example::

    messages: Signal[IrcMessage] = Signal()
    privmsg = messages.filter_map(privmsg_of_msg)
    privmsg.on_each(log_privmsg)
    await messages.send(msg)
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Generic, TypeVar

from ..util.async_helpers import maybe_await

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")


class HandlerResult(Enum):
    CONTINUE = "continue"
    STOP = "stop"


Handler = Callable[[T], Any]
ExnHandler = Callable[[BaseException], None]


def _log_handler_fault(exc: BaseException) -> None:
    logger.error("Signal handler raised %s: %s", type(exc).__name__, exc, exc_info=exc)


_exn_handler: ExnHandler = _log_handler_fault


def set_exn_handler(handler: ExnHandler) -> None:
    """Route exceptions raised by any signal handler to *handler*."""
    global _exn_handler
    _exn_handler = handler


def reset_exn_handler() -> None:
    global _exn_handler
    _exn_handler = _log_handler_fault


class Subscription:
    """Handle for one handler registered on a signal."""

    __slots__ = ("_signal", "handler", "active")

    def __init__(self, signal: Signal[Any], handler: Handler[Any]) -> None:
        self._signal = signal
        self.handler = handler
        self.active = True

    def cancel(self) -> None:
        """Unsubscribe.  Safe to call more than once."""
        if not self.active:
            return
        self.active = False
        self._signal._discard(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()


class Signal(Generic[T]):
    def __init__(self) -> None:
        self._slots: list[Subscription] = []
        self._sending = 0
        # cancelled during a send, dropped once the outermost send returns
        self._pending: list[Subscription] = []
        # strong link to the source of a derived signal
        self._keepalive: Signal[Any] | None = None
        self._upstream: Subscription | None = None

    def __len__(self) -> int:
        return len(self._slots)

    @property
    def handler_count(self) -> int:
        return len(self._slots)

    # -- subscription ------------------------------------------------------

    def on(self, handler: Handler[T]) -> Subscription:
        """Register *handler*; its return value decides whether it stays."""
        sub = Subscription(self, handler)
        self._slots.append(sub)
        return sub

    def on_each(self, fn: Callable[[T], Any]) -> Subscription:
        """Register *fn* for every value; its return value is ignored."""

        async def _handler(value: T) -> HandlerResult:
            await maybe_await(fn(value))
            return HandlerResult.CONTINUE

        return self.on(_handler)

    def once(self, fn: Callable[[T], Any]) -> Subscription:
        """Register *fn* for the next value only."""

        async def _handler(value: T) -> HandlerResult:
            await maybe_await(fn(value))
            return HandlerResult.STOP

        return self.on(_handler)

    # -- delivery ----------------------------------------------------------

    async def send(self, value: T) -> None:
        """Deliver *value* to every handler, one after the other."""
        self._sending += 1
        try:
            i = 0
            while i < len(self._slots):
                sub = self._slots[i]
                if sub.active and await self._deliver(sub, value) is HandlerResult.CONTINUE:
                    if sub.active:
                        i += 1
                        continue
                sub.active = False
                # the slot at i is refilled from the end, so look at i again
                self._remove(sub, hint=i)
        finally:
            self._sending -= 1
            if not self._sending and self._pending:
                for pending in self._pending:
                    self._remove(pending)
                self._pending.clear()

    async def _deliver(self, sub: Subscription, value: T) -> HandlerResult:
        try:
            result = await maybe_await(sub.handler(value))
        except Exception as exc:
            _exn_handler(exc)
            return HandlerResult.CONTINUE
        return HandlerResult.STOP if result is HandlerResult.STOP else HandlerResult.CONTINUE

    def _remove(self, sub: Subscription, hint: int = -1) -> None:
        slots = self._slots
        if not (0 <= hint < len(slots) and slots[hint] is sub):
            hint = next((j for j, s in enumerate(slots) if s is sub), -1)
            if hint < 0:
                return
        last = slots.pop()
        if hint < len(slots):
            slots[hint] = last

    def _discard(self, sub: Subscription) -> None:
        if self._sending:
            self._pending.append(sub)
        else:
            self._remove(sub)

    # -- combinators -------------------------------------------------------

    def _derive(self, forward: Callable[[Signal[Any], T], Awaitable[None]]) -> Signal[Any]:
        derived: Signal[Any] = Signal()
        ref = weakref.ref(derived)

        async def _forward(value: T) -> HandlerResult:
            target = ref()
            if target is None:
                return HandlerResult.STOP
            await forward(target, value)
            return HandlerResult.CONTINUE

        derived._upstream = self.on(_forward)
        derived._keepalive = self
        return derived

    def map(self, f: Callable[[T], U]) -> Signal[U]:
        async def _forward(target: Signal[U], value: T) -> None:
            await target.send(f(value))

        return self._derive(_forward)

    def filter(self, predicate: Callable[[T], bool]) -> Signal[T]:
        async def _forward(target: Signal[T], value: T) -> None:
            if predicate(value):
                await target.send(value)

        return self._derive(_forward)

    def filter_map(self, f: Callable[[T], U | None]) -> Signal[U]:
        async def _forward(target: Signal[U], value: T) -> None:
            mapped = f(value)
            if mapped is not None:
                await target.send(mapped)

        return self._derive(_forward)

    def detach(self) -> None:
        """Stop receiving from the source this signal was derived from."""
        if self._upstream is not None:
            self._upstream.cancel()
            self._upstream = None
        self._keepalive = None

    def propagate_to(self, dest: Signal[T]) -> Subscription:
        return propagate(self, dest)


def propagate(source: Signal[T], dest: Signal[T]) -> Subscription:
    """Forward every value sent on *source* into *dest*.

    Unlike derived signals this link is strong: *dest* keeps receiving for
    as long as *source* lives, until the returned subscription is cancelled.
    """
    return source.on_each(dest.send)

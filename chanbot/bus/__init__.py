"""In-process signal bus."""

from .signal import (
    HandlerResult,
    Signal,
    Subscription,
    propagate,
    reset_exn_handler,
    set_exn_handler,
)

__all__ = [
    "HandlerResult",
    "Signal",
    "Subscription",
    "propagate",
    "reset_exn_handler",
    "set_exn_handler",
]

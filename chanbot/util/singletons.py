"""Process-wide singletons and the hooks that rebuild them between tests."""

from __future__ import annotations

from collections.abc import Callable

ResetFn = Callable[[], None]

_reset_fns: list[ResetFn] = []


def register_singleton(reset_fn: ResetFn) -> ResetFn:
    """Remember *reset_fn* so ``reset_all_singletons`` can call it.

    Returns the function unchanged, so it also works as a decorator.
    """
    if reset_fn not in _reset_fns:
        _reset_fns.append(reset_fn)
    return reset_fn


def reset_all_singletons() -> None:
    """Rebuild every registered singleton, in registration order."""
    for fn in list(_reset_fns):
        fn()

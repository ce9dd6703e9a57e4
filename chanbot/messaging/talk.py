"""Canned phrases for acknowledging or refusing a request."""

from __future__ import annotations

import random
from enum import StrEnum


class Talk(StrEnum):
    ACK = "ack"
    ERR = "err"


_PHRASES: dict[Talk, tuple[str, ...]] = {
    Talk.ACK: (
        "ok",
        "done",
        "noted",
        "got it",
        "right away",
    ),
    Talk.ERR: (
        "nope",
        "can't do that",
        "that didn't work",
        "sorry, no",
    ),
}


def select(kind: Talk) -> str:
    return random.choice(_PHRASES[kind])

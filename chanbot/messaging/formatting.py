"""Line handling for outgoing chat replies."""

from __future__ import annotations

from collections.abc import Iterable

KEPT_LINES = 4


def split_lines(text: str) -> list[str]:
    """Split *text* on line breaks, dropping empty lines."""
    lines = (line.rstrip("\r") for line in text.split("\n"))
    return [line for line in lines if line]


def flat_split(messages: Iterable[str]) -> list[str]:
    return [line for message in messages for line in split_lines(message)]


def cut_lines(lines: list[str], threshold: int) -> list[str]:
    """Keep at most *threshold* lines.

    Longer replies are cut to the first four lines plus a note saying how
    many were left out.  A threshold below four lines acts as four.
    """
    if len(lines) <= max(threshold, KEPT_LINES):
        return lines
    return lines[:KEPT_LINES] + [f"(…{len(lines) - KEPT_LINES} more lines…)"]

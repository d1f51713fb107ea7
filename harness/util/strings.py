"""String helpers."""

from __future__ import annotations

from typing import Any, Optional, Tuple


def is_blank(value: Optional[str]) -> bool:
    """True for None, empty or whitespace-only strings."""
    return value is None or not str(value).strip()


def is_not_blank(value: Optional[str]) -> bool:
    return not is_blank(value)


def format_message(message: str, args: Tuple[Any, ...]) -> str:
    """
    Apply printf-style positional arguments to ``message``.

    ``format_message("Found %d of %d items", (3, 5))`` -> "Found 3 of 5 items".
    Without arguments the message is returned untouched, so literal ``%``
    characters survive.
    """
    if not args:
        return message
    return message % args

"""
Secure random number facade.

Module-level helpers backed by one lazily created ``random.SystemRandom``
(os.urandom based), shared by every thread of the process.
"""

from __future__ import annotations

import random
import threading
from typing import Optional

_random: Optional[random.SystemRandom] = None
_lock = threading.Lock()

_INT_BITS = 32
_LONG_BITS = 64


def _get_random() -> random.SystemRandom:
    global _random
    if _random is None:
        with _lock:
            if _random is None:
                _random = random.SystemRandom()
    return _random


def _signed(bits: int) -> int:
    value = _get_random().getrandbits(bits)
    return value - (1 << bits) if value >= 1 << (bits - 1) else value


def next_big_int(bits: int) -> int:
    """Non-negative integer uniformly drawn from [0, 2**bits)."""
    if bits < 0:
        raise ValueError("bits must be non-negative")
    return _get_random().getrandbits(bits) if bits else 0


def next_bool() -> bool:
    return bool(_get_random().getrandbits(1))


def next_bytes(length: int) -> bytes:
    return _get_random().randbytes(length) if length else b""


def next_float() -> float:
    """Float in [0.0, 1.0)."""
    return _get_random().random()


def next_int(bound: Optional[int] = None) -> int:
    """
    Signed 32-bit integer, or an integer in [0, bound) when ``bound`` is given.

    Raises:
        ValueError: If ``bound`` is not positive.
    """
    if bound is None:
        return _signed(_INT_BITS)
    if bound <= 0:
        raise ValueError("bound must be positive")
    return _get_random().randrange(bound)


def next_long() -> int:
    """Signed 64-bit integer."""
    return _signed(_LONG_BITS)

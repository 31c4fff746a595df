from __future__ import annotations

from typing import Any

from croquette.contracts.error import InvalidCapacityError, InvalidKeyError

MAX_KEY_LENGTH: int = 255
DEFAULT_CAPACITY: int = 11

_SHIFT_BITS: int = 7
_HASH_MASK_64: int = 0xFFFF_FFFF_FFFF_FFFF


def normalize_key(key: Any) -> str:
    """Validate ``key`` and clip it to the stored length."""

    if not isinstance(key, str) or not key:
        raise InvalidKeyError()
    return key[:MAX_KEY_LENGTH]


def hash_code(key: str) -> int:
    """Positional shift-and-add hash over the key's code points.

    The accumulator shifts left by 7 bits after every character but the last;
    a single-character key still shifts once. Results wrap at 64 bits.
    """

    code = 0
    size = len(key)
    for i, ch in enumerate(key):
        code += ord(ch)
        if size == 1 or i < size - 1:
            code <<= _SHIFT_BITS
        code &= _HASH_MASK_64
    return code


def bucket_index(key: str, capacity: int) -> int:
    if capacity < 1:
        raise InvalidCapacityError(f"capacity must be >= 1, got {capacity}")
    return hash_code(key) % capacity


__all__ = ["DEFAULT_CAPACITY", "MAX_KEY_LENGTH", "bucket_index", "hash_code", "normalize_key"]

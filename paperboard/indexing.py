"""Fractional index keys used as the paint order of shapes.

Keys are an integer part (a head letter that encodes the digit count followed
by base62 digits) optionally followed by a fraction. Plain string comparison
orders them, so ``"a9" < "aA" < "az" < "b00"``.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

BASE62_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
_DIGIT_SET = frozenset(BASE62_DIGITS)

INDEX_START = "a0"


def _integer_length(head: str) -> Optional[int]:
    if "a" <= head <= "z":
        return ord(head) - ord("a") + 2
    if "A" <= head <= "Z":
        return ord("Z") - ord(head) + 2
    return None


def is_valid_index(key: object) -> bool:
    """Return ``True`` when *key* is a well-formed fractional index."""

    if not isinstance(key, str) or not key:
        return False
    length = _integer_length(key[0])
    if length is None or len(key) < length:
        return False
    if any(ch not in _DIGIT_SET for ch in key[1:]):
        return False
    # The smallest integer cannot be used, it leaves no room below it.
    if key == "A" + "0" * 26:
        return False
    fraction = key[length:]
    return not fraction.endswith("0")


def _integer_part(key: str) -> str:
    length = _integer_length(key[0])
    assert length is not None
    return key[:length]


def _increment_integer(integer: str) -> Optional[str]:
    head, digits = integer[0], list(integer[1:])
    carry = True
    for pos in range(len(digits) - 1, -1, -1):
        value = BASE62_DIGITS.index(digits[pos]) + 1
        if value == len(BASE62_DIGITS):
            digits[pos] = BASE62_DIGITS[0]
        else:
            digits[pos] = BASE62_DIGITS[value]
            carry = False
            break
    if not carry:
        return head + "".join(digits)
    if head == "Z":
        return "a" + BASE62_DIGITS[0]
    if head == "z":
        return None
    next_head = chr(ord(head) + 1)
    if next_head > "a":
        digits.append(BASE62_DIGITS[0])
    else:
        digits.pop()
    return next_head + "".join(digits)


def index_after(key: Optional[str]) -> str:
    """Return a key strictly greater than *key* (``INDEX_START`` successor for ``None``)."""

    if key is None:
        key = INDEX_START
    if not is_valid_index(key):
        raise ValueError(f"invalid fractional index {key!r}")
    incremented = _increment_integer(_integer_part(key))
    if incremented is not None:
        return incremented
    # Integer space exhausted, extend the fraction instead.
    return key + BASE62_DIGITS[len(BASE62_DIGITS) // 2]


def indices_after(key: Optional[str], count: int) -> Iterator[str]:
    current = key
    for _ in range(count):
        current = index_after(current)
        yield current


def max_index(keys: Iterable[object]) -> Optional[str]:
    valid = [key for key in keys if is_valid_index(key)]
    return max(valid) if valid else None  # type: ignore[type-var]


__all__ = [
    "BASE62_DIGITS",
    "INDEX_START",
    "is_valid_index",
    "index_after",
    "indices_after",
    "max_index",
]

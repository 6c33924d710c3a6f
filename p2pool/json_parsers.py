"""Typed field extraction from decoded JSON objects.

Each parser returns ``None`` when the object is not a dict, the field is
missing, or the field has the wrong type.
"""

from __future__ import annotations

from typing import Any

from p2pool.common import HASH_SIZE, U64_MAX, U128_MAX, Difficulty, Hash

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_U32_MAX = (1 << 32) - 1


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict) and name in obj:
        return obj[name]
    return None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def parse_str(obj: Any, name: str) -> str | None:
    value = _field(obj, name)
    return value if isinstance(value, str) else None


def parse_uint8(obj: Any, name: str) -> int | None:
    """Read an unsigned 32-bit value and keep its low 8 bits."""
    value = _field(obj, name)
    if _is_int(value) and 0 <= value <= _U32_MAX:
        return value & 0xFF
    return None


def parse_uint64(obj: Any, name: str) -> int | None:
    value = _field(obj, name)
    if _is_int(value) and 0 <= value <= U64_MAX:
        return value
    return None


def parse_bool(obj: Any, name: str) -> bool | None:
    value = _field(obj, name)
    return value if isinstance(value, bool) else None


def parse_hash(obj: Any, name: str) -> Hash | None:
    """Read a hash written as exactly 64 hexadecimal characters."""
    text = parse_str(obj, name)
    if text is None or len(text) != HASH_SIZE * 2 or not set(text) <= _HEX_DIGITS:
        return None
    return Hash(bytes.fromhex(text))


def parse_difficulty(obj: Any, name: str) -> Difficulty | None:
    """Read a hexadecimal difficulty, with an optional ``0x`` prefix."""
    text = parse_str(obj, name)
    if text is None:
        return None
    if text.startswith("0x"):
        text = text[2:]
    if not set(text) <= _HEX_DIGITS:
        return None
    value = 0
    for ch in text:
        # Digits beyond 128 bits shift out of the top, as in a fixed-width register.
        value = ((value << 4) | int(ch, 16)) & U128_MAX
    return Difficulty(value)
from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional


def strip_0x(value: str) -> str:
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def add_0x(value: str) -> str:
    if value[:2] in ("0x", "0X"):
        return value
    return "0x" + value


def hex_to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return bytes.fromhex(strip_0x(value))


def to_hex(number: int) -> str:
    """
    Hex-encode an integer the way JSON-RPC quantities are written.

    Examples:
        >>> to_hex(1440002)
        '0x15f902'
        >>> to_hex(0)
        '0x0'
    """
    if isinstance(number, bool) or not isinstance(number, int):
        raise ValueError(f"Expected an integer, got {number!r}")
    if number < 0:
        raise ValueError(f"Quantities cannot be negative: {number}")
    return hex(number)


def hex_to_int(value: Optional[str | int]) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    stripped = strip_0x(value)
    if not stripped:
        raise ValueError(f"Not a hex quantity: {value!r}")
    return int(stripped, 16)


def keys_to_decimal(mapping: Mapping[str, Any], keys: Iterable[str]) -> dict[str, int]:
    """Convert the hex quantities stored under ``keys`` to ints, skipping absent keys."""
    converted: dict[str, int] = {}
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            converted[key] = hex_to_int(value)
    return converted


def is_valid_address(address: Any) -> bool:
    if not isinstance(address, str) or not address.startswith("0x") or len(address) != 42:
        return False
    try:
        int(address[2:], 16)
    except ValueError:
        return False
    return True

"""
Unit conversion between atomic integer amounts (wei, token base units) and
human-readable decimal amounts.

All arithmetic is exact: values are Decimals or ints, never floats.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Union

Amount = Union[int, str, Decimal, float]

UNITS = {
    "wei": 0,
    "kwei": 3,
    "mwei": 6,
    "gwei": 9,
    "szabo": 12,
    "finney": 15,
    "ether": 18,
}

WEI_PER_ETHER = 10 ** UNITS["ether"]


def _check_decimals(decimals: int) -> None:
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        raise ValueError(f"Decimals must be a non-negative integer, got {decimals!r}")


def _to_decimal(amount: Amount) -> Decimal:
    if isinstance(amount, bool):
        raise ValueError(f"Not an amount: {amount!r}")
    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, (int, float, str)):
        # str() keeps a float's shortest repr instead of its binary expansion
        try:
            value = Decimal(str(amount).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not an amount: {amount!r}") from exc
    else:
        raise ValueError(f"Not an amount: {amount!r}")
    if not value.is_finite():
        raise ValueError(f"Not an amount: {amount!r}")
    return value


def format_units(atomic_units: int, decimals: int) -> Decimal:
    """
    Scale an integer amount of base units down by ``10 ** decimals``.

    Examples:
        >>> format_units(1500000, 6)
        Decimal('1.500000')
    """
    if isinstance(atomic_units, bool) or not isinstance(atomic_units, int):
        raise ValueError(f"Expected an integer amount, got {atomic_units!r}")
    _check_decimals(decimals)
    # String construction is exact at any size
    return Decimal(f"{atomic_units}e-{decimals}")


def parse_units(amount: Amount, decimals: int) -> int:
    """
    Scale a decimal amount up by ``10 ** decimals`` into integer base units.

    Raises:
        ValueError: If the amount is not a number or has more fractional
            digits than ``decimals`` allows
    """
    _check_decimals(decimals)
    value = _to_decimal(amount)
    sign, digits, exponent = value.as_tuple()
    scaled = Decimal((sign, digits, exponent + decimals))
    if scaled != int(scaled):
        raise ValueError(f"{amount!r} has more than {decimals} decimal places")
    return int(scaled)


def wei_to_eth(wei: int) -> Decimal:
    return format_units(wei, UNITS["ether"])


def to_wei(amount: Amount, unit: str = "ether") -> int:
    """
    Convert ``amount`` of ``unit`` into wei.

    Examples:
        >>> to_wei(1)
        1000000000000000000
        >>> to_wei("1.5", "gwei")
        1500000000
    """
    try:
        decimals = UNITS[unit.lower()]
    except (AttributeError, KeyError):
        raise ValueError(f"Unknown unit {unit!r}; expected one of {', '.join(UNITS)}") from None
    return parse_units(amount, decimals)


__all__ = ["UNITS", "WEI_PER_ETHER", "format_units", "parse_units", "to_wei", "wei_to_eth"]

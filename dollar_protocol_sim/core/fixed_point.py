#!/usr/bin/env python3
"""
Fixed-Point Math

Checked uint256 arithmetic and 18-decimal fixed point for the regulation path.
Prices arrive as integer numerator/denominator pairs and never touch floats.
"""

from .errors import ArithmeticOverflow, ArithmeticUnderflow, InvalidOracleReading


MAX_UINT256 = 2 ** 256 - 1
DECIMALS = 18
ONE = 10 ** DECIMALS
BIPS_DENOMINATOR = 10_000
PERCENT_DENOMINATOR = 100


def checked(value: int) -> int:
    """Return value if it fits in a uint256, otherwise raise"""
    if value < 0:
        raise ArithmeticUnderflow(f"value {value} is negative")
    if value > MAX_UINT256:
        raise ArithmeticOverflow(f"value {value} exceeds uint256")
    return value


def add(a: int, b: int) -> int:
    return checked(checked(a) + checked(b))


def sub(a: int, b: int) -> int:
    return checked(checked(a) - checked(b))


def mul(a: int, b: int) -> int:
    return checked(checked(a) * checked(b))


def div(a: int, b: int) -> int:
    """Floor division; division by zero is an arithmetic fault"""
    if b == 0:
        raise ArithmeticOverflow("division by zero")
    return checked(a) // checked(b)


def mul_bips(amount: int, bips: int) -> int:
    """amount * bips / 10_000, rounded down"""
    return div(mul(amount, bips), BIPS_DENOMINATOR)


def mul_percent(amount: int, percent: int) -> int:
    """amount * percent / 100, rounded down"""
    return div(mul(amount, percent), PERCENT_DENOMINATOR)


def ratio(numerator: int, denominator: int) -> int:
    """
    Convert a numerator/denominator price to 18-decimal fixed point.

    Truncates toward zero.
    """
    if denominator == 0:
        raise InvalidOracleReading("price denominator is zero")
    return div(mul(numerator, ONE), denominator)


def mul_fixed(amount: int, fixed: int) -> int:
    """Multiply an integer amount by an 18-decimal fixed-point factor"""
    return div(mul(amount, fixed), ONE)


def format_fixed(fixed: int, places: int = 4) -> str:
    """Human readable rendering of an 18-decimal value (display only)"""
    whole, frac = divmod(fixed, ONE)
    frac_str = str(frac).rjust(DECIMALS, "0")[:places]
    return f"{whole}.{frac_str}"

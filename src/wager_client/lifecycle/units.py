"""
Exact conversion between human-readable amounts and smallest-denomination
integers.

All monetary math goes through Decimal with an explicit precision check.
Floats are never used: parse_units("0.1") must be exactly 10**17.
"""
from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, localcontext

from wager_client.exceptions import ValidationError

NATIVE_DECIMALS = 18

# createBet takes the threshold as a plain integer, unscaled
THRESHOLD_DECIMALS = 0

# Plain decimal notation only: "1", "0.5", ".5", "10."
_DECIMAL_PATTERN = re.compile(r"^\d+(\.\d*)?$|^\.\d+$")


def parse_units(value: str, decimals: int = NATIVE_DECIMALS, field: str = "amount") -> int:
    """
    Convert a decimal string to an integer of the smallest denomination.

    Args:
        value: Human-readable amount, e.g. "0.5"
        decimals: Number of fractional digits in the smallest unit
        field: Name used in error messages

    Returns:
        Scaled integer (e.g. 500000000000000000 for "0.5" at 18 decimals)

    Raises:
        ValidationError: If value is not a plain non-negative decimal, or
            has more fractional digits than the unit supports
    """
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field)

    text = value.strip()
    if not text:
        raise ValidationError(f"{field} is required", field=field)
    if not _DECIMAL_PATTERN.match(text):
        raise ValidationError(f"{field} must be a positive number, got {value!r}", field=field)

    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValidationError(f"{field} must be a positive number, got {value!r}", field=field)

    fraction = text.partition(".")[2].rstrip("0")
    if fraction and decimals == 0:
        raise ValidationError(f"{field} must be a whole number, got {value!r}", field=field)
    if len(fraction) > decimals:
        raise ValidationError(
            f"{field} supports at most {decimals} decimal places, got {value!r}",
            field=field,
        )

    with localcontext() as ctx:
        ctx.prec = len(text) + decimals + 1
        scaled = amount.scaleb(decimals)

    return int(scaled)


def format_units(value: int, decimals: int = NATIVE_DECIMALS) -> str:
    """
    Convert a smallest-denomination integer back to a decimal string.

    Trailing zeros are stripped, so format_units(10**17) == "0.1".
    """
    negative = value < 0
    whole, frac = divmod(abs(value), 10 ** decimals)
    text = str(whole)
    if frac:
        text += "." + str(frac).rjust(decimals, "0").rstrip("0")
    return f"-{text}" if negative else text

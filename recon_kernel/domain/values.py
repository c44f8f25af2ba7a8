"""
Decimal coercion for quantities and money.

Quantities and values enter the system as Decimal, int, or text exported by
spreadsheets and fiscal software.  Text may use the Brazilian convention
("1.234,56") or the plain one ("1234.56").  Floats are accepted only at the
boundary and are converted through their shortest repr, never arithmetically.
"""

import re
from decimal import Decimal, InvalidOperation

_THOUSANDS_ONLY = re.compile(r"^-?\d{1,3}(\.\d{3})+$")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """
    Coerce ``value`` to a finite Decimal.

    Raises:
        ValueError: If the value is empty, not numeric, NaN or infinite.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(repr(value))
    else:
        return parse_decimal(value)

    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def parse_decimal(text: str) -> Decimal:
    """
    Parse a decimal written with either separator convention.

    A comma marks the decimal separator ("1.234,56" -> 1234.56).  Without a
    comma, dots that only group thousands are separators ("1.500" -> 1500,
    "12.345.678" -> 12345678); anything else is read as-is ("1234.56").  A leading currency symbol and
    surrounding spaces are ignored.

    Raises:
        ValueError: If the text does not hold a finite number.
    """
    cleaned = str(text).strip().replace("R$", "").replace(" ", "")
    if not cleaned:
        raise ValueError("Empty number")

    if "," in cleaned:
        cleaned = cleaned.replace(".", "").replace(",", ".")
    elif _THOUSANDS_ONLY.match(cleaned):
        cleaned = cleaned.replace(".", "")

    try:
        result = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Not a number: {text!r}") from None

    if not result.is_finite():
        raise ValueError(f"Not a finite number: {text!r}")
    return result

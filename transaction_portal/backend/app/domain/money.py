# backend/app/domain/money.py
from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

CENTS = Decimal("0.01")

_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?$")


def parse_decimal(value: Any) -> Optional[Decimal]:
    """
    Lenient number parsing for user-entered money/percent values.

    "1,200,000" -> 1200000, "$24,000.50" -> 24000.50, "" / None -> None.
    Raises ValueError when what is left after stripping currency symbols and
    thousands separators is not a single plain number ("1.2.3", "12-3").
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("not a number")
    if isinstance(value, (int, float)):
        return Decimal(str(value))

    s = str(value).strip()
    if not s:
        return None

    cleaned = re.sub(r"[^0-9.\-]", "", s)
    m = _NUMBER_RE.fullmatch(cleaned)
    if not m:
        raise ValueError(f"not a number: {value!r}")
    try:
        return Decimal(m.group(0))
    except InvalidOperation as e:
        raise ValueError(f"not a number: {value!r}") from e


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def percent_of(basis: Decimal, percentage: Decimal) -> Decimal:
    return to_cents(basis * percentage / Decimal(100))


def format_plain(value: Optional[Decimal]) -> str:
    """Form-field representation: "24000.00", or "" when unset."""
    if value is None:
        return ""
    return f"{to_cents(value):f}"


def format_currency(value: Any, symbol: str = "$") -> str:
    """Display representation: "$1,234.56". Empty or unparseable input renders as ""."""
    try:
        d = parse_decimal(value)
    except ValueError:
        d = None
    if d is None:
        return ""
    d = to_cents(d)
    sign = "-" if d < 0 else ""
    return f"{sign}{symbol}{abs(d):,.2f}"

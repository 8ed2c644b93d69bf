"""
proration/formatting.py
-----------------------
Display helpers for amounts.  Fixed US-dollar style; no locale handling.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from proration.config import CURRENCY_SYMBOL
from proration.models import ZERO
from proration.rounding import round_to_cents

_CURRENCY_NOISE = re.compile(r"[$,\s]")


def _as_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def format_currency(amount: Any) -> str:
    """``1234.5`` -> ``"$1,234.50"``; ``-5`` -> ``"-$5.00"``; junk -> ``"$0.00"``."""
    number = _as_decimal(amount)
    if number is None:
        return f"{CURRENCY_SYMBOL}0.00"
    rounded = round_to_cents(number)
    sign = "-" if rounded < ZERO else ""
    return f"{sign}{CURRENCY_SYMBOL}{abs(rounded):,.2f}"


def parse_currency_input(value: Any) -> Decimal:
    """Strip ``$``, commas and spaces; anything unparseable becomes 0."""
    if not value:
        return ZERO
    number = _as_decimal(_CURRENCY_NOISE.sub("", str(value)))
    return number if number is not None else ZERO


def format_number(value: Any) -> str:
    """Thousand separators, digits after the point kept as given."""
    number = _as_decimal(value)
    if number is None:
        return "0"
    return f"{number:,}"

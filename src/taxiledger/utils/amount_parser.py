"""Amount parsing utilities."""

import re
from decimal import Decimal, InvalidOperation

_CURRENCY = re.compile(r"[$€£]")


def parse_amount(amount_str: str, allow_negative: bool = False) -> Decimal:
    """Parse a money amount such as "300", "$1,250.00" or "(12.50)".

    Parentheses mark a negative amount. Negative amounts are rejected
    unless allow_negative is set, since rates and charges are never negative.

    Raises:
        ValueError: If amount string cannot be parsed or is negative when not allowed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = amount_str.strip()
    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1]
    text = _CURRENCY.sub("", text).replace(",", "").strip()

    try:
        amount = Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e
    if negative:
        amount = -amount
    if amount < 0 and not allow_negative:
        raise ValueError(f"Amount must not be negative, got {amount}")
    return amount

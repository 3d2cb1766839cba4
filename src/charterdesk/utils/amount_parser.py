"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

_THOUSANDS_ONLY = re.compile(r",\d{3}$")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45", "-123.45"
    - "฿1,234.56", "-$123.45", "THB 500"
    - "(123.45)" (negative in parentheses)
    - "1.234,56" and "12,5" (decimal comma)

    A lone comma followed by exactly three digits ("1,234") is read as a
    thousands separator.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Drop currency symbols, codes and spaces
    cleaned = re.sub(r"[^\d.,\-+]", "", amount_str)

    if "," in cleaned and "." in cleaned:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif "," in cleaned:
        if _THOUSANDS_ONLY.search(cleaned):
            cleaned = cleaned.replace(",", "")
        else:
            cleaned = cleaned.replace(",", ".")

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount

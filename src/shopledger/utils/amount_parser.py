"""Amount parsing for command-line input."""

import re
from decimal import Decimal, InvalidOperation

# Currency markers a shop owner may type along with an amount
_CURRENCY_MARKERS = re.compile(r"[$€£¥]|\b(?:SAR|AED|USD|EUR)\b|ر\.س", re.IGNORECASE)

# Arabic-Indic digits and separators mapped to their ASCII forms
_ARABIC_DIGITS = str.maketrans("٠١٢٣٤٥٦٧٨٩٫٬", "0123456789.,")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "150", "150.25"
    - "-20.00" and "(20.00)" (negative)
    - "1,234.56"
    - "SAR 150", "$150"
    - Arabic-Indic digits ("١٥٠٫٢٥")

    Precision is not checked here; the services reject amounts with more
    than two decimal places.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = amount_str.strip().translate(_ARABIC_DIGITS)

    is_negative = False
    if text.startswith("(") and text.endswith(")"):
        is_negative = True
        text = text[1:-1]

    text = _CURRENCY_MARKERS.sub("", text).replace(",", "").strip()

    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount

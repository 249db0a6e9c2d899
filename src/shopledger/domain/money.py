"""Money value validation."""

from decimal import Decimal, InvalidOperation

from shopledger.domain.errors import InvalidAmountError, invalid_amount

CENT = Decimal("0.01")
# Largest magnitude a Numeric(14, 2) column holds
MAX_MONEY = Decimal("999999999999.99")


def to_money(
    value,
    field: str = "amount",
    *,
    positive: bool = False,
    non_negative: bool = False,
) -> Decimal:
    """Convert a value to a two-decimal Decimal, rejecting anything inexact.

    Args:
        value: Decimal, int or numeric string (floats go through their repr)
        field: Field name used in error messages
        positive: Require value > 0
        non_negative: Require value >= 0

    Returns:
        Decimal quantized to cents

    Raises:
        InvalidAmountError: If the value is missing or not finite, has more
            than two decimal places, exceeds MAX_MONEY in magnitude, or
            violates the sign requirement
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmountError(invalid_amount(field, value, "a number is required"))

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(invalid_amount(field, value, "not a number"))

    if not amount.is_finite():
        raise InvalidAmountError(invalid_amount(field, value, "must be finite"))
    try:
        quantized = amount.quantize(CENT)
    except InvalidOperation:
        raise InvalidAmountError(invalid_amount(field, value, "out of range"))
    if amount != quantized:
        raise InvalidAmountError(invalid_amount(field, value, "at most 2 decimal places allowed"))
    if abs(quantized) > MAX_MONEY:
        raise InvalidAmountError(invalid_amount(field, value, f"must not exceed {MAX_MONEY}"))
    if positive and amount <= 0:
        raise InvalidAmountError(invalid_amount(field, value, "must be greater than zero"))
    if non_negative and amount < 0:
        raise InvalidAmountError(invalid_amount(field, value, "must not be negative"))

    return quantized

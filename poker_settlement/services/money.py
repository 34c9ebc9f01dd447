"""
Money helpers.

All amount arithmetic inside the engine is done in integer
cents. Decimals only appear at the edges: reading from the
database and building responses.
"""

from decimal import Decimal

from poker_settlement.exceptions import InvalidAmountError

CENT = Decimal("0.01")


def to_cents(amount: Decimal, context: str = "Amount") -> int:
    """
    Convert a dollar amount to integer cents.

    Amounts with more than two decimal places are rejected,
    never rounded.
    """
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    if not amount.is_finite():
        raise InvalidAmountError(f"{context} must be a valid number")

    cents = amount * 100
    if cents != cents.to_integral_value():
        raise InvalidAmountError(
            f"{context} {amount} has more than 2 decimal places"
        )
    return int(cents)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def to_money(value) -> Decimal:
    """
    Decimal from a database sum.

    Whole-cent values are padded to two places. Anything finer is
    returned as is, so to_cents() can reject it instead of it being
    rounded away.
    """
    amount = Decimal(str(value))
    if amount == amount.quantize(CENT):
        return amount.quantize(CENT)
    return amount


def validate_amount(
    amount: Decimal,
    max_amount: Decimal,
    context: str = "Amount",
) -> Decimal:
    """Check an amount is positive, at most 2dp and within bounds."""
    cents = to_cents(amount, context)
    if cents <= 0:
        raise InvalidAmountError(f"{context} must be positive")
    if cents > to_cents(max_amount):
        raise InvalidAmountError(
            f"{context} exceeds maximum of ${max_amount:.2f}"
        )
    return from_cents(cents)

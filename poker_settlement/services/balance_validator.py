"""
Balance validator.

Checks that a game's buy-ins and cash-outs add up. The outcome
is always returned as a SettlementValidation, never raised: an
imbalance is a warning the caller may choose to override.

Corrupted input is different. Negative totals or totals with
more than two decimal places mean the ledger itself is wrong,
and raise InvalidAmountError instead of being rounded away.
"""

from collections.abc import Sequence
from decimal import Decimal

from poker_settlement.config import get_settings
from poker_settlement.exceptions import InvalidAmountError
from poker_settlement.schemas.settlement import SettlementValidation
from poker_settlement.schemas.transaction import ParticipantTotals
from poker_settlement.services.money import to_cents, from_cents

settings = get_settings()

NO_PARTICIPANTS_MESSAGE = "No participants found."
BALANCED_MESSAGE = "Buy-ins and cash-outs match!"


def build_validation(
    total_buyins: Decimal,
    total_cashouts: Decimal,
    tolerance: Decimal | None = None,
) -> SettlementValidation:
    """Compare aggregate buy-ins against aggregate cash-outs."""
    if tolerance is None:
        tolerance = settings.SETTLEMENT_TOLERANCE

    buyin_cents = to_cents(total_buyins, "Total buy-ins")
    cashout_cents = to_cents(total_cashouts, "Total cash-outs")
    difference_cents = buyin_cents - cashout_cents
    is_valid = abs(difference_cents) <= to_cents(tolerance, "Tolerance")

    total_buyins = from_cents(buyin_cents)
    total_cashouts = from_cents(cashout_cents)
    difference = from_cents(difference_cents)

    if is_valid:
        message = BALANCED_MESSAGE
    else:
        direction = (
            "more buy-ins than cash-outs"
            if difference_cents > 0
            else "more cash-outs than buy-ins"
        )
        message = (
            f"Warning: Buy-ins (${total_buyins}) do not match "
            f"cash-outs (${total_cashouts}). "
            f"Difference: ${abs(difference)} ({direction})."
        )

    return SettlementValidation(
        is_valid=is_valid,
        total_buyins=total_buyins,
        total_cashouts=total_cashouts,
        difference=difference,
        message=message,
    )


def validate_totals(
    totals: Sequence[ParticipantTotals],
    tolerance: Decimal | None = None,
) -> SettlementValidation:
    """
    Validate per-player totals for one game.

    Empty input is not balanced: there is nothing to settle.
    """
    if not totals:
        return SettlementValidation(
            is_valid=False,
            total_buyins=Decimal("0.00"),
            total_cashouts=Decimal("0.00"),
            difference=Decimal("0.00"),
            message=NO_PARTICIPANTS_MESSAGE,
        )

    buyin_cents = 0
    cashout_cents = 0
    for t in totals:
        buyin = to_cents(t.total_buyin, f"Buy-in for participant {t.user_id}")
        cashout = to_cents(t.total_cashout, f"Cash-out for participant {t.user_id}")
        if buyin < 0:
            raise InvalidAmountError(
                f"Invalid buy-in amount for participant {t.user_id}: negative value"
            )
        if cashout < 0:
            raise InvalidAmountError(
                f"Invalid cash-out amount for participant {t.user_id}: negative value"
            )
        buyin_cents += buyin
        cashout_cents += cashout

    return build_validation(
        from_cents(buyin_cents), from_cents(cashout_cents), tolerance
    )

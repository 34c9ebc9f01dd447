"""
Tests for the balance validator and the money helpers it relies on.
"""

import uuid
from decimal import Decimal

import pytest

from poker_settlement.exceptions import InvalidAmountError
from poker_settlement.schemas.transaction import ParticipantTotals
from poker_settlement.services.balance_validator import (
    BALANCED_MESSAGE,
    NO_PARTICIPANTS_MESSAGE,
    validate_totals,
)
from poker_settlement.services.money import (
    from_cents,
    to_cents,
    to_money,
    validate_amount,
)


def totals(*pairs):
    """ParticipantTotals for one game from (buy-in, cash-out) string pairs."""
    return [
        ParticipantTotals(
            game_id=1,
            user_id=uuid.UUID(int=i + 1),
            total_buyin=Decimal(buyin),
            total_cashout=Decimal(cashout),
        )
        for i, (buyin, cashout) in enumerate(pairs)
    ]


class TestValidateTotals:

    def test_balanced_game(self):
        result = validate_totals(totals(("100.00", "130.00"), ("50.00", "20.00")))

        assert result.is_valid is True
        assert result.total_buyins == Decimal("150.00")
        assert result.total_cashouts == Decimal("150.00")
        assert result.difference == Decimal("0.00")
        assert result.message == BALANCED_MESSAGE

    def test_fifty_cents_short_is_invalid(self):
        result = validate_totals(totals(("100.00", "99.50")))

        assert result.is_valid is False
        assert result.difference == Decimal("0.50")
        assert result.message == (
            "Warning: Buy-ins ($100.00) do not match cash-outs ($99.50). "
            "Difference: $0.50 (more buy-ins than cash-outs)."
        )

    def test_more_cashouts_than_buyins(self):
        result = validate_totals(totals(("100.00", "120.00")))

        assert result.is_valid is False
        assert result.difference == Decimal("-20.00")
        assert "more cash-outs than buy-ins" in result.message

    def test_one_cent_difference_is_within_tolerance(self):
        result = validate_totals(totals(("100.00", "99.99")))

        assert result.is_valid is True
        assert result.difference == Decimal("0.01")

    def test_custom_tolerance(self):
        result = validate_totals(
            totals(("100.00", "99.50")), tolerance=Decimal("1.00")
        )
        assert result.is_valid is True

    def test_no_participants_is_not_valid(self):
        result = validate_totals([])

        assert result.is_valid is False
        assert result.total_buyins == Decimal("0.00")
        assert result.message == NO_PARTICIPANTS_MESSAGE

    def test_sub_cent_amount_rejected(self):
        with pytest.raises(InvalidAmountError, match="2 decimal places"):
            validate_totals(totals(("100.005", "100.00")))

    def test_negative_amount_rejected(self):
        with pytest.raises(InvalidAmountError, match="negative"):
            validate_totals(totals(("-5.00", "0.00")))


class TestMoney:

    def test_to_cents(self):
        assert to_cents(Decimal("12.34")) == 1234
        assert to_cents(Decimal("-0.50")) == -50

    def test_from_cents_keeps_two_places(self):
        assert from_cents(500) == Decimal("5.00")
        assert str(from_cents(5)) == "0.05"

    def test_non_finite_rejected(self):
        with pytest.raises(InvalidAmountError, match="valid number"):
            to_cents(Decimal("NaN"))

    def test_validate_amount_bounds(self):
        assert validate_amount(Decimal("10"), Decimal("100")) == Decimal("10.00")

        with pytest.raises(InvalidAmountError, match="must be positive"):
            validate_amount(Decimal("0"), Decimal("100"))
        with pytest.raises(InvalidAmountError, match="exceeds maximum"):
            validate_amount(Decimal("100.01"), Decimal("100"))

    def test_to_money_pads_whole_cents(self):
        assert str(to_money(150)) == "150.00"
        assert str(to_money(Decimal("99.5"))) == "99.50"

    def test_to_money_keeps_sub_cent_sums_for_rejection(self):
        summed = to_money(Decimal("100.305"))

        assert summed == Decimal("100.305")
        with pytest.raises(InvalidAmountError, match="2 decimal places"):
            validate_totals([
                ParticipantTotals(
                    game_id=1,
                    user_id=uuid.UUID(int=1),
                    total_buyin=summed,
                    total_cashout=Decimal("100.31"),
                )
            ])

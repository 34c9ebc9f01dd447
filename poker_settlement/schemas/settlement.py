"""
Pydantic schemas for settlement validation and calculation.

SettlementValidation and SettlementCalculation are returned as
data, never raised: a caller branches on is_valid / outcome to
decide whether to warn, retry with force=True, or show results.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from poker_settlement.models.enums import SettlementStatus, CalculationOutcome


class SettlementValidation(BaseModel):
    is_valid: bool
    total_buyins: Decimal
    total_cashouts: Decimal
    difference: Decimal
    message: str


class SettlementResponse(BaseModel):
    id: int
    external_id: uuid.UUID
    game_id: int
    payer_id: uuid.UUID
    payee_id: uuid.UUID
    amount: Decimal
    status: SettlementStatus
    completed_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class SettlementCalculation(BaseModel):
    """Outcome of one calculate() call."""
    game_id: int
    outcome: CalculationOutcome
    settlements: list[SettlementResponse]
    validation: SettlementValidation | None = None
    forced: bool = False
    unresolved_amount: Decimal = Decimal("0.00")

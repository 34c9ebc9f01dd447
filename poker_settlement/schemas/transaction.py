"""
Pydantic schemas for buy-ins, cash-outs and participant totals.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, computed_field

from poker_settlement.models.enums import TransactionType


class TransactionCreate(BaseModel):
    """A single buy-in or cash-out for one player."""
    user_id: uuid.UUID
    type: TransactionType
    amount: Decimal = Field(gt=0)
    notes: str | None = Field(default=None, max_length=500)
    timestamp: datetime | None = None


class TransactionResponse(BaseModel):
    id: int
    external_id: uuid.UUID
    game_id: int
    user_id: uuid.UUID
    type: TransactionType
    amount: Decimal
    notes: str | None
    timestamp: datetime

    model_config = {"from_attributes": True}


class ParticipantTotals(BaseModel):
    """Summed buy-ins and cash-outs for one player in one game."""
    game_id: int
    user_id: uuid.UUID
    total_buyin: Decimal = Decimal("0.00")
    total_cashout: Decimal = Decimal("0.00")

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def net_result(self) -> Decimal:
        return self.total_cashout - self.total_buyin

"""
Pydantic schemas for audit reads.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel

from poker_settlement.models.enums import AuditAction


class AuditEntryResponse(BaseModel):
    id: int
    table_name: str
    record_id: int
    game_id: int | None
    actor_id: uuid.UUID | None
    subject_id: uuid.UUID | None
    counterparty_id: uuid.UUID | None
    action: AuditAction
    amount: Decimal | None
    before_state: dict[str, Any] | None
    after_state: dict[str, Any] | None
    created_at: datetime

    model_config = {"from_attributes": True}


class AuditTableSummary(BaseModel):
    """Audit activity on one table for one game."""
    table_name: str
    operation_count: int
    total_amount: Decimal
    first_change: datetime
    last_change: datetime


class GameAuditSummary(BaseModel):
    game_id: int
    total_transactions: int
    total_settlements: int
    total_calculations: int
    latest_audit_entry: datetime | None
    tables: list[AuditTableSummary] = []

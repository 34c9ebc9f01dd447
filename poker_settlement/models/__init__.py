"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from poker_settlement.models.base import Base
from poker_settlement.models.enums import (
    GameStatus,
    TransactionType,
    SettlementStatus,
    AuditAction,
    CalculationOutcome,
)
from poker_settlement.models.game import Game
from poker_settlement.models.game_participant import GameParticipant
from poker_settlement.models.transaction import Transaction
from poker_settlement.models.settlement import Settlement
from poker_settlement.models.settlement_run import SettlementRun
from poker_settlement.models.settlement_lock import SettlementLock
from poker_settlement.models.audit_log import AuditLog
from poker_settlement.models.immutability import register_immutability_listeners

register_immutability_listeners()

__all__ = [
    "Base",
    "GameStatus",
    "TransactionType",
    "SettlementStatus",
    "AuditAction",
    "CalculationOutcome",
    "Game",
    "GameParticipant",
    "Transaction",
    "Settlement",
    "SettlementRun",
    "SettlementLock",
    "AuditLog",
]

"""Business logic services."""

from poker_settlement.services.audit_service import AuditService
from poker_settlement.services.game_service import GameService
from poker_settlement.services.ledger_service import LedgerService
from poker_settlement.services.settlement_lock import SettlementLockManager
from poker_settlement.services.settlement_service import SettlementService

__all__ = [
    "AuditService",
    "GameService",
    "LedgerService",
    "SettlementLockManager",
    "SettlementService",
]

"""
Settlement model.

A directed payer -> payee transfer that resolves part of a
game's net results. Rows are created once per game by
SettlementService.calculate() and afterwards only move along
the status state machine below.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime, Numeric, ForeignKey,
    Enum as SAEnum, Uuid, CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from poker_settlement.config import get_settings
from poker_settlement.models.base import Base, utcnow
from poker_settlement.models.enums import SettlementStatus

settings = get_settings()


VALID_TRANSITIONS: dict[SettlementStatus, set[SettlementStatus]] = {
    SettlementStatus.PENDING: {
        SettlementStatus.COMPLETED,
        SettlementStatus.CANCELLED,
    },
    SettlementStatus.COMPLETED: set(),
    SettlementStatus.CANCELLED: set(),
}


class Settlement(Base):
    __tablename__ = "settlements"
    __table_args__ = (
        CheckConstraint("payer_id != payee_id", name="ck_settlement_no_self_payment"),
        CheckConstraint(
            f"amount > 0 AND amount <= {settings.MAX_SETTLEMENT_AMOUNT}",
            name="ck_settlement_valid_amount",
        ),
        CheckConstraint(
            "status != 'completed' OR completed_at IS NOT NULL",
            name="ck_settlement_completed_at",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    external_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, unique=True, nullable=False, default=uuid.uuid4
    )
    game_id: Mapped[int] = mapped_column(
        ForeignKey("games.id"), nullable=False, index=True
    )
    payer_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    payee_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[SettlementStatus] = mapped_column(
        SAEnum(
            SettlementStatus,
            name="settlement_status_enum",
            create_constraint=True,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=SettlementStatus.PENDING,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    def can_transition_to(self, new_status: SettlementStatus) -> bool:
        """Check if a state transition is valid."""
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    def __repr__(self) -> str:
        return (
            f"<Settlement {self.payer_id} -> {self.payee_id} "
            f"{self.amount} ({self.status.value})>"
        )

"""
Audit log model.

Records every financial mutation with its before and after
state. Entries are written in the same unit of work as the
change they describe, so the change and its audit row commit
or roll back together.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, Integer, JSON, Numeric,
    Enum as SAEnum, Uuid, Index,
)
from sqlalchemy.orm import Mapped, mapped_column

from poker_settlement.models.base import Base, utcnow
from poker_settlement.models.enums import AuditAction


class AuditLog(Base):
    """
    Immutable record of a change to a financial record.

    Like transactions, audit logs are append-only.
    You never update or delete an audit record.
    """

    __tablename__ = "audit_log"
    __table_args__ = (
        Index("ix_audit_log_record", "table_name", "record_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    table_name: Mapped[str] = mapped_column(String(50), nullable=False)
    record_id: Mapped[int] = mapped_column(Integer, nullable=False)
    game_id: Mapped[int | None] = mapped_column(
        Integer, nullable=True, index=True
    )
    actor_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, nullable=True, index=True
    )
    # Players the record concerns: transaction owner, or settlement
    # payer (subject) and payee (counterparty)
    subject_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, nullable=True, index=True
    )
    counterparty_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, nullable=True, index=True
    )
    # Money value of the record after the change: transaction or
    # settlement amount, or a participant's buy-in plus cash-out
    amount: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2), nullable=True
    )
    action: Mapped[AuditAction] = mapped_column(
        SAEnum(AuditAction, name="audit_action_enum", create_constraint=True),
        nullable=False,
    )
    before_state: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    after_state: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False, index=True
    )

    def __repr__(self) -> str:
        return (
            f"<AuditLog {self.action.value} {self.table_name}"
            f"#{self.record_id}>"
        )

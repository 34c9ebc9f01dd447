"""
Game participant model — the persisted per-player totals.

One row per (game, user). total_buyin and total_cashout are
never assigned directly: LedgerService increments them with a
single UPDATE ... SET total = total + :amount in the same unit
of work that inserts the transaction, so concurrent inserts
for the same player cannot lose an update.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime, Numeric, ForeignKey, Uuid,
    CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from poker_settlement.models.base import Base, utcnow


class GameParticipant(Base):
    __tablename__ = "game_participants"
    __table_args__ = (
        UniqueConstraint("game_id", "user_id", name="uq_game_participant"),
        CheckConstraint("total_buyin >= 0", name="ck_participant_buyin_non_negative"),
        CheckConstraint("total_cashout >= 0", name="ck_participant_cashout_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    game_id: Mapped[int] = mapped_column(
        ForeignKey("games.id"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    total_buyin: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    total_cashout: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )

    game: Mapped["Game"] = relationship(back_populates="participants")

    @property
    def net_result(self) -> Decimal:
        """Cash-out minus buy-in; positive means the player is owed money."""
        return self.total_cashout - self.total_buyin

    def __repr__(self) -> str:
        return (
            f"<GameParticipant game={self.game_id} user={self.user_id} "
            f"in={self.total_buyin} out={self.total_cashout}>"
        )

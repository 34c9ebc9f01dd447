"""
Settlement run model.

Exactly one row per game, written in the same unit of work as
the game's Settlement rows. The unique constraint on game_id is
the insert-if-absent guard: a second writer for the same game
fails at the database even if it slipped past the lock. The
row also tells "computed, nobody owes anything" apart from
"not computed yet", which an empty settlements table cannot.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Integer, Numeric, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from poker_settlement.models.base import Base, utcnow


class SettlementRun(Base):
    __tablename__ = "settlement_runs"

    id: Mapped[int] = mapped_column(primary_key=True)
    game_id: Mapped[int] = mapped_column(
        ForeignKey("games.id"), unique=True, nullable=False
    )
    actor_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    total_buyin: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_cashout: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    difference: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    forced: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    settlements_created: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    # Balance left unmatched by the solver (only non-zero on forced runs)
    unresolved_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<SettlementRun game={self.game_id} "
            f"transfers={self.settlements_created} forced={self.forced}>"
        )

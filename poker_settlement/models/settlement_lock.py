"""
Settlement lock model.

A row here means "a settlement calculation for this game is in
flight". game_id is the primary key, so only one row per game
can exist: inserting it is the atomic acquire, deleting it is
the release. expires_at bounds how long a crashed or abandoned
holder can keep other callers out.
"""

from datetime import datetime

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from poker_settlement.models.base import Base, utcnow


class SettlementLock(Base):
    __tablename__ = "settlement_locks"

    game_id: Mapped[int] = mapped_column(
        ForeignKey("games.id"), primary_key=True
    )
    owner: Mapped[str] = mapped_column(String(100), nullable=False)
    acquired_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<SettlementLock game={self.game_id} owner={self.owner}>"

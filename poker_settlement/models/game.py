"""
Game model.

Only the parts of a game the settlement engine depends on:
its identity and lifecycle status. Transactions may only be
recorded against a running or finished game, and settlements
are only calculated once the game is completed.
"""

from datetime import datetime

from sqlalchemy import String, DateTime, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from poker_settlement.models.base import Base, utcnow
from poker_settlement.models.enums import GameStatus


VALID_TRANSITIONS: dict[GameStatus, set[GameStatus]] = {
    GameStatus.SCHEDULED: {GameStatus.IN_PROGRESS, GameStatus.CANCELLED},
    GameStatus.IN_PROGRESS: {GameStatus.COMPLETED, GameStatus.CANCELLED},
    GameStatus.COMPLETED: set(),
    GameStatus.CANCELLED: set(),
}

# Statuses in which buy-ins and cash-outs are accepted
RECORDABLE_STATUSES = {GameStatus.IN_PROGRESS, GameStatus.COMPLETED}


class Game(Base):
    __tablename__ = "games"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[GameStatus] = mapped_column(
        SAEnum(GameStatus, name="game_status_enum", create_constraint=True),
        nullable=False,
        default=GameStatus.SCHEDULED,
    )
    scheduled_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )

    participants: Mapped[list["GameParticipant"]] = relationship(
        back_populates="game"
    )

    def can_transition_to(self, new_status: GameStatus) -> bool:
        """Check if a state transition is valid."""
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    def __repr__(self) -> str:
        return f"<Game {self.id} {self.name!r} ({self.status.value})>"

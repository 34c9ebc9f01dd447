"""
Pydantic schemas for game operations.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from poker_settlement.models.enums import GameStatus


class GameCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    scheduled_at: datetime | None = None


class GameStatusUpdate(BaseModel):
    """Request to move a game along its lifecycle."""
    new_status: GameStatus


class GameResponse(BaseModel):
    id: int
    name: str
    status: GameStatus
    scheduled_at: datetime | None
    completed_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}

"""
Game service — the game lifecycle the settlement engine relies on.
"""

from sqlalchemy.orm import Session

from poker_settlement.exceptions import GameNotFoundError, InvalidStateError
from poker_settlement.models.base import utcnow
from poker_settlement.models.enums import GameStatus
from poker_settlement.models.game import Game
from poker_settlement.schemas.game import GameCreate, GameStatusUpdate


class GameService:

    def __init__(self, db: Session):
        self.db = db

    def create_game(self, request: GameCreate) -> Game:
        """Create a new game in SCHEDULED status."""
        game = Game(name=request.name, scheduled_at=request.scheduled_at)
        self.db.add(game)
        self.db.flush()
        return game

    def get_game(self, game_id: int) -> Game:
        """Get a game by ID."""
        game = self.db.get(Game, game_id)
        if not game:
            raise GameNotFoundError(game_id)
        return game

    def change_status(self, game_id: int, request: GameStatusUpdate) -> Game:
        """
        Transition a game to a new status.

        Enforces the state machine — only valid transitions
        are allowed.
        """
        game = self.get_game(game_id)

        if not game.can_transition_to(request.new_status):
            raise InvalidStateError(
                f"Cannot transition game from {game.status.value} "
                f"to {request.new_status.value}"
            )

        game.status = request.new_status
        if request.new_status == GameStatus.COMPLETED:
            game.completed_at = utcnow()

        self.db.flush()
        return game

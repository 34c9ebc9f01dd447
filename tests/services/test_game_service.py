"""
Tests for the GameService lifecycle.
"""

import pytest

from poker_settlement.exceptions import GameNotFoundError
from poker_settlement.models.enums import GameStatus
from poker_settlement.schemas.game import GameCreate, GameStatusUpdate
from poker_settlement.services.game_service import GameService


def make_game(service, name="Friday Night"):
    return service.create_game(GameCreate(name=name))


class TestGameLifecycle:

    def test_new_game_is_scheduled(self, db_session):
        service = GameService(db_session)
        game = make_game(service)
        db_session.commit()

        assert game.id is not None
        assert game.status == GameStatus.SCHEDULED
        assert game.completed_at is None

    def test_full_lifecycle(self, db_session):
        service = GameService(db_session)
        game = make_game(service)

        service.change_status(game.id, GameStatusUpdate(new_status=GameStatus.IN_PROGRESS))
        service.change_status(game.id, GameStatusUpdate(new_status=GameStatus.COMPLETED))
        db_session.commit()

        assert game.status == GameStatus.COMPLETED
        assert game.completed_at is not None

    def test_cannot_skip_in_progress(self, db_session):
        service = GameService(db_session)
        game = make_game(service)

        with pytest.raises(ValueError, match="Cannot transition game"):
            service.change_status(
                game.id, GameStatusUpdate(new_status=GameStatus.COMPLETED)
            )

    def test_completed_is_terminal(self, db_session):
        service = GameService(db_session)
        game = make_game(service)
        service.change_status(game.id, GameStatusUpdate(new_status=GameStatus.IN_PROGRESS))
        service.change_status(game.id, GameStatusUpdate(new_status=GameStatus.COMPLETED))

        with pytest.raises(ValueError, match="from completed to cancelled"):
            service.change_status(
                game.id, GameStatusUpdate(new_status=GameStatus.CANCELLED)
            )

    def test_unknown_game(self, db_session):
        with pytest.raises(GameNotFoundError, match="Game 999 not found"):
            GameService(db_session).get_game(999)

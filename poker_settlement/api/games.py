"""
Game, transaction and participant-total endpoints.

The API layer is thin: it handles HTTP concerns (status codes,
response formatting) and delegates all business logic to the
services. Write handlers commit on success and roll back on
rejected input.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from poker_settlement.api.dependencies import get_actor_id, http_error
from poker_settlement.models.base import get_db
from poker_settlement.schemas.game import GameCreate, GameResponse, GameStatusUpdate
from poker_settlement.schemas.transaction import (
    ParticipantTotals,
    TransactionCreate,
    TransactionResponse,
)
from poker_settlement.services.game_service import GameService
from poker_settlement.services.ledger_service import LedgerService

router = APIRouter(prefix="/games", tags=["Games"])


@router.post("", response_model=GameResponse, status_code=201)
def create_game(
    request: GameCreate,
    db: Session = Depends(get_db),
):
    """Create a new game in SCHEDULED status."""
    service = GameService(db)
    game = service.create_game(request)
    db.commit()
    return game


@router.get("/{game_id}", response_model=GameResponse)
def get_game(
    game_id: int,
    db: Session = Depends(get_db),
):
    """Get game details."""
    try:
        return GameService(db).get_game(game_id)
    except ValueError as e:
        raise http_error(e)


@router.patch("/{game_id}/status", response_model=GameResponse)
def change_game_status(
    game_id: int,
    request: GameStatusUpdate,
    db: Session = Depends(get_db),
):
    """
    Move a game along its lifecycle.

    scheduled -> in_progress -> completed, with cancellation
    allowed from either of the first two.
    """
    service = GameService(db)
    try:
        game = service.change_status(game_id, request)
        db.commit()
        return game
    except ValueError as e:
        db.rollback()
        raise http_error(e)


# --- Transactions ---

@router.post(
    "/{game_id}/transactions",
    response_model=TransactionResponse,
    status_code=201,
)
def record_transaction(
    game_id: int,
    request: TransactionCreate,
    actor_id: uuid.UUID | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """Record a buy-in or cash-out for a player."""
    service = LedgerService(db)
    try:
        txn = service.record_transaction(game_id, request, actor_id=actor_id)
        db.commit()
        return txn
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.get(
    "/{game_id}/transactions",
    response_model=list[TransactionResponse],
)
def get_transactions(
    game_id: int,
    db: Session = Depends(get_db),
):
    """All buy-ins and cash-outs for a game, in the order they happened."""
    try:
        return LedgerService(db).get_transactions(game_id)
    except ValueError as e:
        raise http_error(e)


@router.get("/{game_id}/totals", response_model=list[ParticipantTotals])
def get_participant_totals(
    game_id: int,
    db: Session = Depends(get_db),
):
    """
    Per-player buy-in and cash-out totals.

    Totals are summed from the transactions, not read from
    a stored balance.
    """
    try:
        return LedgerService(db).get_participant_totals(game_id)
    except ValueError as e:
        raise http_error(e)

"""
Settlement endpoints.

calculate is the one handler that does not commit: the service
runs the calculation as its own locked unit of work.
"""

import uuid

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from poker_settlement.api.dependencies import get_actor_id, http_error
from poker_settlement.models.base import get_db
from poker_settlement.models.enums import CalculationOutcome
from poker_settlement.schemas.settlement import (
    SettlementCalculation,
    SettlementResponse,
    SettlementValidation,
)
from poker_settlement.services.settlement_service import SettlementService

router = APIRouter(tags=["Settlements"])


@router.get(
    "/games/{game_id}/settlements/validation",
    response_model=SettlementValidation,
)
def validate_settlements(
    game_id: int,
    db: Session = Depends(get_db),
):
    """Check whether buy-ins and cash-outs balance. Never writes."""
    try:
        return SettlementService(db).validate(game_id)
    except ValueError as e:
        raise http_error(e)


@router.post(
    "/games/{game_id}/settlements/calculate",
    response_model=SettlementCalculation,
)
def calculate_settlements(
    game_id: int,
    response: Response,
    force: bool = Query(default=False),
    actor_id: uuid.UUID | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """
    Compute who pays whom for a completed game.

    Returns 201 when settlements were created and 200 when they
    already existed or the game does not balance (outcome
    "imbalanced"; nothing is stored unless force=true).
    """
    service = SettlementService(db)
    try:
        result = service.calculate(game_id, actor_id=actor_id, force=force)
    except ValueError as e:
        raise http_error(e)

    if result.outcome == CalculationOutcome.CREATED:
        response.status_code = 201
    return result


@router.get(
    "/games/{game_id}/settlements",
    response_model=list[SettlementResponse],
)
def get_settlements(
    game_id: int,
    db: Session = Depends(get_db),
):
    """All settlements for a game."""
    try:
        return SettlementService(db).get_settlements(game_id)
    except ValueError as e:
        raise http_error(e)


@router.post(
    "/settlements/{settlement_id}/complete",
    response_model=SettlementResponse,
)
def complete_settlement(
    settlement_id: int,
    actor_id: uuid.UUID | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """Mark a pending settlement as paid."""
    service = SettlementService(db)
    try:
        settlement = service.mark_complete(settlement_id, actor_id=actor_id)
        db.commit()
        return settlement
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.post(
    "/settlements/{settlement_id}/cancel",
    response_model=SettlementResponse,
)
def cancel_settlement(
    settlement_id: int,
    actor_id: uuid.UUID | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """Cancel a pending settlement."""
    service = SettlementService(db)
    try:
        settlement = service.cancel(settlement_id, actor_id=actor_id)
        db.commit()
        return settlement
    except ValueError as e:
        db.rollback()
        raise http_error(e)

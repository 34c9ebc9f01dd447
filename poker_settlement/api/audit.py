"""
Audit log read endpoints.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from poker_settlement.api.dependencies import http_error
from poker_settlement.models.base import get_db
from poker_settlement.schemas.audit import AuditEntryResponse, GameAuditSummary
from poker_settlement.services.audit_service import AuditService
from poker_settlement.services.game_service import GameService

router = APIRouter(prefix="/audit", tags=["Audit"])


@router.get(
    "/records/{table_name}/{record_id}",
    response_model=list[AuditEntryResponse],
)
def get_record_history(
    table_name: str,
    record_id: int,
    db: Session = Depends(get_db),
):
    """Every change to one record, oldest first."""
    try:
        return AuditService(db).history(table_name, record_id)
    except ValueError as e:
        raise http_error(e)


@router.get("/users/{user_id}", response_model=list[AuditEntryResponse])
def get_user_history(
    user_id: uuid.UUID,
    limit: int | None = None,
    db: Session = Depends(get_db),
):
    """Most recent audit entries involving a user, newest first."""
    try:
        return AuditService(db).user_history(user_id, limit=limit)
    except ValueError as e:
        raise http_error(e)


@router.get("/games/{game_id}/summary", response_model=GameAuditSummary)
def get_game_summary(
    game_id: int,
    db: Session = Depends(get_db),
):
    """Counts of audited transactions, settlements and calculations for a game."""
    try:
        GameService(db).get_game(game_id)
        return AuditService(db).game_summary(game_id)
    except ValueError as e:
        raise http_error(e)

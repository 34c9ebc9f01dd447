"""
Audit service — the append-only change log.

Every transaction insert, participant insert or total change,
settlement insert, settlement status change and settlement
calculation writes one AuditLog row here.
The row is added to the caller's session, so it commits or
rolls back together with the mutation it describes. A failed
audit write raises AuditFailure, which the caller must let
propagate so the mutation is rolled back too.
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Numeric, select, func, type_coerce
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from poker_settlement.config import get_settings
from poker_settlement.exceptions import AuditFailure, InputError
from poker_settlement.models.audit_log import AuditLog
from poker_settlement.models.enums import AuditAction
from poker_settlement.schemas.audit import AuditTableSummary, GameAuditSummary
from poker_settlement.services.money import to_money

settings = get_settings()

TRANSACTIONS_TABLE = "transactions"
SETTLEMENTS_TABLE = "settlements"
SETTLEMENT_RUNS_TABLE = "settlement_runs"
GAME_PARTICIPANTS_TABLE = "game_participants"
AUDITED_TABLES = (
    TRANSACTIONS_TABLE,
    SETTLEMENTS_TABLE,
    SETTLEMENT_RUNS_TABLE,
    GAME_PARTICIPANTS_TABLE,
)


def _json_value(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, enum.Enum):
        return value.value
    return value


def snapshot(record) -> dict:
    """JSON-safe copy of a model's column values."""
    return {
        column.key: _json_value(getattr(record, column.key))
        for column in record.__table__.columns
    }


class AuditService:

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        table_name: str,
        record_id: int,
        action: AuditAction,
        *,
        game_id: int | None = None,
        actor_id: uuid.UUID | None = None,
        subject_id: uuid.UUID | None = None,
        counterparty_id: uuid.UUID | None = None,
        amount: Decimal | None = None,
        before: dict | None = None,
        after: dict | None = None,
    ) -> AuditLog:
        """
        Append an audit entry in the current unit of work.

        Flushes immediately so a failing audit write is detected
        here, before the caller commits its mutation.
        """
        entry = AuditLog(
            table_name=table_name,
            record_id=record_id,
            game_id=game_id,
            actor_id=actor_id,
            subject_id=subject_id,
            counterparty_id=counterparty_id,
            amount=amount,
            action=action,
            before_state=before,
            after_state=after,
        )
        try:
            self.db.add(entry)
            self.db.flush()
        except SQLAlchemyError as e:
            raise AuditFailure(
                f"Failed to write audit entry for {table_name}#{record_id}: {e}"
            ) from e
        return entry

    def history(self, table_name: str, record_id: int) -> list[AuditLog]:
        """All audit entries for one record, oldest first."""
        if table_name not in AUDITED_TABLES:
            raise InputError(f"Unknown audited table: {table_name}")
        entries = self.db.execute(
            select(AuditLog)
            .where(
                AuditLog.table_name == table_name,
                AuditLog.record_id == record_id,
            )
            .order_by(AuditLog.created_at, AuditLog.id)
        ).scalars().all()
        return list(entries)

    def user_history(
        self, user_id: uuid.UUID, limit: int | None = None
    ) -> list[AuditLog]:
        """
        Most recent audit entries a user acted on, newest first.

        The user matches either as the actor or as the player the
        record belongs to (transaction owner, settlement payer or
        payee).
        """
        if limit is None:
            limit = settings.AUDIT_HISTORY_DEFAULT_LIMIT
        if limit <= 0:
            raise InputError("limit must be positive")

        entries = self.db.execute(
            select(AuditLog)
            .where(
                (AuditLog.actor_id == user_id)
                | (AuditLog.subject_id == user_id)
                | (AuditLog.counterparty_id == user_id)
            )
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .limit(limit)
        ).scalars().all()
        return list(entries)

    def game_summary(self, game_id: int) -> GameAuditSummary:
        """
        Audit activity for one game, broken down per table.

        Each table row carries the number of audited changes, the
        sum of their amounts and the first and last change times.
        """
        rows = self.db.execute(
            select(
                AuditLog.table_name,
                func.count(AuditLog.id),
                type_coerce(
                    func.coalesce(func.sum(AuditLog.amount), 0),
                    Numeric(12, 2),
                ),
                func.min(AuditLog.created_at),
                func.max(AuditLog.created_at),
            )
            .where(AuditLog.game_id == game_id)
            .group_by(AuditLog.table_name)
            .order_by(AuditLog.table_name)
        ).all()

        tables = [
            AuditTableSummary(
                table_name=table_name,
                operation_count=count,
                total_amount=to_money(total),
                first_change=first,
                last_change=last,
            )
            for table_name, count, total, first, last in rows
        ]
        counts = {t.table_name: t.operation_count for t in tables}

        return GameAuditSummary(
            game_id=game_id,
            total_transactions=counts.get(TRANSACTIONS_TABLE, 0),
            total_settlements=counts.get(SETTLEMENTS_TABLE, 0),
            total_calculations=counts.get(SETTLEMENT_RUNS_TABLE, 0),
            latest_audit_entry=max((t.last_change for t in tables), default=None),
            tables=tables,
        )

"""
Ledger service — buy-ins, cash-outs and per-player totals.

Recording a transaction does three things in the caller's unit
of work:
1. Inserts the append-only Transaction row
2. Increments the player's GameParticipant totals with a single
   atomic UPDATE (no read-modify-write)
3. Appends audit entries for the transaction and for the
   participant row it created or changed

The aggregator (get_participant_totals) always derives totals
from the raw transactions, so it sees exactly what the enclosing
unit of work sees.
"""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import Numeric, select, update, func, case, type_coerce
from sqlalchemy.orm import Session

from poker_settlement.config import get_settings
from poker_settlement.exceptions import InvalidStateError
from poker_settlement.models.enums import AuditAction, TransactionType
from poker_settlement.models.game import RECORDABLE_STATUSES
from poker_settlement.models.game_participant import GameParticipant
from poker_settlement.models.transaction import Transaction
from poker_settlement.schemas.transaction import TransactionCreate, ParticipantTotals
from poker_settlement.services.audit_service import (
    AuditService,
    GAME_PARTICIPANTS_TABLE,
    TRANSACTIONS_TABLE,
    snapshot,
)
from poker_settlement.services.game_service import GameService
from poker_settlement.services.money import to_money, validate_amount

logger = logging.getLogger("poker_settlement.services.ledger")
settings = get_settings()


def _summed(type_: TransactionType):
    # SQLite returns float sums; the Numeric result type turns them
    # back into Decimals.
    return type_coerce(
        func.coalesce(func.sum(case(
            (Transaction.type == type_, Transaction.amount),
            else_=0,
        )), 0),
        Numeric(12, 2),
    )


class LedgerService:
    """
    All buy-in and cash-out writes pass through this service.

    The service takes a database session as a constructor
    argument. The caller controls the transaction boundary.
    """

    def __init__(self, db: Session):
        self.db = db
        self.games = GameService(db)
        self.audit = AuditService(db)

    def record_transaction(
        self,
        game_id: int,
        request: TransactionCreate,
        actor_id: uuid.UUID | None = None,
    ) -> Transaction:
        """
        Record a buy-in or cash-out for a player.

        Raises InputError subclasses for unknown games, games that
        are not running or finished, and invalid amounts. The caller
        is responsible for calling db.commit() afterwards.
        """
        game = self.games.get_game(game_id)
        if game.status not in RECORDABLE_STATUSES:
            raise InvalidStateError(
                f"Cannot record transactions for {game.status.value} game"
            )

        amount = validate_amount(
            request.amount,
            max_amount=settings.MAX_TRANSACTION_AMOUNT,
            context="Transaction amount",
        )

        participant = self._get_or_create_participant(
            game_id, request.user_id, actor_id
        )

        txn = Transaction(
            game_id=game_id,
            user_id=request.user_id,
            type=request.type,
            amount=amount,
            notes=request.notes,
        )
        if request.timestamp is not None:
            txn.timestamp = request.timestamp
        self.db.add(txn)
        self.db.flush()

        # Atomic increment: concurrent inserts for the same player
        # each add their own amount.
        column = (
            GameParticipant.total_buyin
            if request.type == TransactionType.BUYIN
            else GameParticipant.total_cashout
        )
        before = snapshot(participant)
        self.db.execute(
            update(GameParticipant)
            .where(GameParticipant.id == participant.id)
            .values({column: column + amount})
            .execution_options(synchronize_session=False)
        )
        self.db.refresh(participant)

        self.audit.record(
            TRANSACTIONS_TABLE,
            txn.id,
            AuditAction.INSERT,
            game_id=game_id,
            actor_id=actor_id,
            subject_id=txn.user_id,
            amount=txn.amount,
            after=snapshot(txn),
        )
        self._audit_participant(participant, AuditAction.UPDATE, actor_id, before)
        return txn

    def _audit_participant(
        self,
        participant: GameParticipant,
        action: AuditAction,
        actor_id: uuid.UUID | None,
        before: dict | None = None,
    ) -> None:
        self.audit.record(
            GAME_PARTICIPANTS_TABLE,
            participant.id,
            action,
            game_id=participant.game_id,
            actor_id=actor_id,
            subject_id=participant.user_id,
            amount=participant.total_buyin + participant.total_cashout,
            before=before,
            after=snapshot(participant),
        )

    def _get_or_create_participant(
        self,
        game_id: int,
        user_id: uuid.UUID,
        actor_id: uuid.UUID | None = None,
    ) -> GameParticipant:
        """
        Return the participant row, inserting (and auditing) it if absent.

        On PostgreSQL and SQLite the insert is an
        INSERT ... ON CONFLICT DO NOTHING, so two first buy-ins
        racing for the same player cannot both create a row.
        """
        participant, created = self._upsert_participant(game_id, user_id)
        if created:
            self._audit_participant(participant, AuditAction.INSERT, actor_id)
        return participant

    def _upsert_participant(
        self, game_id: int, user_id: uuid.UUID
    ) -> tuple[GameParticipant, bool]:
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            insert = None

        if insert is not None:
            result = self.db.execute(
                insert(GameParticipant)
                .values(
                    game_id=game_id,
                    user_id=user_id,
                    total_buyin=Decimal("0.00"),
                    total_cashout=Decimal("0.00"),
                )
                .on_conflict_do_nothing(index_elements=["game_id", "user_id"])
            )
            # rowcount is 0 when the row already existed
            return self._get_participant(game_id, user_id), result.rowcount == 1

        participant = self._get_participant(game_id, user_id, required=False)
        if participant is not None:
            return participant, False
        participant = GameParticipant(game_id=game_id, user_id=user_id)
        self.db.add(participant)
        self.db.flush()
        return participant, True

    def _get_participant(
        self, game_id: int, user_id: uuid.UUID, required: bool = True
    ) -> GameParticipant | None:
        query = (
            select(GameParticipant)
            .where(
                GameParticipant.game_id == game_id,
                GameParticipant.user_id == user_id,
            )
            .execution_options(populate_existing=True)
        )
        if required:
            return self.db.execute(query).scalar_one()
        return self.db.execute(query).scalar_one_or_none()

    def get_transactions(self, game_id: int) -> list[Transaction]:
        """Return all transactions for a game in the order they happened."""
        self.games.get_game(game_id)
        txns = self.db.execute(
            select(Transaction)
            .where(Transaction.game_id == game_id)
            .order_by(Transaction.timestamp, Transaction.id)
        ).scalars().all()
        return list(txns)

    def get_participant_totals(
        self, game_id: int, lock: bool = False
    ) -> list[ParticipantTotals]:
        """
        Sum each player's buy-ins and cash-outs for a game.

        Totals are computed from the transactions themselves.
        Registered participants with no transactions are included
        as 0/0. With lock=True the participant rows are locked
        (SELECT ... FOR UPDATE) for the rest of the unit of work
        on databases that support it.

        The result is ordered by user_id.
        """
        self.games.get_game(game_id)

        participants_query = (
            select(GameParticipant)
            .where(GameParticipant.game_id == game_id)
            .execution_options(populate_existing=True)
        )
        if lock:
            participants_query = participants_query.with_for_update()
        participants = self.db.execute(participants_query).scalars().all()

        rows = self.db.execute(
            select(
                Transaction.user_id,
                _summed(TransactionType.BUYIN).label("total_buyin"),
                _summed(TransactionType.CASHOUT).label("total_cashout"),
            )
            .where(Transaction.game_id == game_id)
            .group_by(Transaction.user_id)
        ).all()

        totals = {
            p.user_id: ParticipantTotals(game_id=game_id, user_id=p.user_id)
            for p in participants
        }
        for user_id, total_buyin, total_cashout in rows:
            totals[user_id] = ParticipantTotals(
                game_id=game_id,
                user_id=user_id,
                total_buyin=to_money(total_buyin),
                total_cashout=to_money(total_cashout),
            )

        self._warn_on_drift(participants, totals)
        return [totals[user_id] for user_id in sorted(totals)]

    def _warn_on_drift(
        self,
        participants: list[GameParticipant],
        totals: dict[uuid.UUID, ParticipantTotals],
    ) -> None:
        """Log when the stored running totals disagree with the transactions."""
        for p in participants:
            derived = totals[p.user_id]
            if (
                p.total_buyin != derived.total_buyin
                or p.total_cashout != derived.total_cashout
            ):
                logger.warning(
                    "Stored totals for user %s in game %s (in=%s out=%s) "
                    "differ from transactions (in=%s out=%s)",
                    p.user_id, p.game_id, p.total_buyin, p.total_cashout,
                    derived.total_buyin, derived.total_cashout,
                )

"""
Tests for the LedgerService.

Tests cover:
- Recording buy-ins and cash-outs
- Running participant totals kept in step with transactions
- Amount and game-status validation
- Aggregation of per-player totals
- Audit entries and append-only transactions
"""

import uuid
from decimal import Decimal

import pytest

from poker_settlement.exceptions import (
    GameNotFoundError,
    ImmutableRecordError,
    InvalidAmountError,
    InvalidStateError,
)
from poker_settlement.models.audit_log import AuditLog
from poker_settlement.models.enums import AuditAction, GameStatus, TransactionType
from poker_settlement.models.game_participant import GameParticipant
from poker_settlement.schemas.game import GameCreate, GameStatusUpdate
from poker_settlement.schemas.transaction import TransactionCreate
from poker_settlement.services.audit_service import AuditService
from poker_settlement.services.game_service import GameService
from poker_settlement.services.ledger_service import LedgerService

ALICE = uuid.UUID(int=1)
BOB = uuid.UUID(int=2)


# --- Helpers to reduce repetition ---

def make_game(db, status=GameStatus.IN_PROGRESS):
    """Create a game and walk it to the requested status."""
    games = GameService(db)
    game = games.create_game(GameCreate(name="Home Game"))
    path = {
        GameStatus.SCHEDULED: [],
        GameStatus.IN_PROGRESS: [GameStatus.IN_PROGRESS],
        GameStatus.COMPLETED: [GameStatus.IN_PROGRESS, GameStatus.COMPLETED],
        GameStatus.CANCELLED: [GameStatus.CANCELLED],
    }[status]
    for step in path:
        games.change_status(game.id, GameStatusUpdate(new_status=step))
    db.commit()
    return game


def record(service, game_id, user_id, type_, amount, actor_id=None):
    return service.record_transaction(
        game_id,
        TransactionCreate(user_id=user_id, type=type_, amount=Decimal(amount)),
        actor_id=actor_id,
    )


# --- Recording ---

class TestRecordTransaction:

    def test_buyin_recorded(self, db_session):
        game = make_game(db_session)
        service = LedgerService(db_session)

        txn = record(service, game.id, ALICE, TransactionType.BUYIN, "100.00")
        db_session.commit()

        assert txn.id is not None
        assert txn.external_id is not None
        assert txn.amount == Decimal("100.00")
        assert txn.timestamp is not None

    def test_participant_totals_incremented(self, db_session):
        game = make_game(db_session)
        service = LedgerService(db_session)

        record(service, game.id, ALICE, TransactionType.BUYIN, "100.00")
        record(service, game.id, ALICE, TransactionType.BUYIN, "50.00")
        record(service, game.id, ALICE, TransactionType.CASHOUT, "175.25")
        db_session.commit()

        participants = db_session.query(GameParticipant).all()
        assert len(participants) == 1
        assert participants[0].total_buyin == Decimal("150.00")
        assert participants[0].total_cashout == Decimal("175.25")
        assert participants[0].net_result == Decimal("25.25")

    def test_allowed_after_game_completed(self, db_session):
        game = make_game(db_session, GameStatus.COMPLETED)
        service = LedgerService(db_session)

        record(service, game.id, ALICE, TransactionType.CASHOUT, "20.00")
        db_session.commit()

    @pytest.mark.parametrize("status", [GameStatus.SCHEDULED, GameStatus.CANCELLED])
    def test_rejected_when_game_not_running(self, db_session, status):
        game = make_game(db_session, status)
        service = LedgerService(db_session)

        with pytest.raises(InvalidStateError, match="Cannot record transactions"):
            record(service, game.id, ALICE, TransactionType.BUYIN, "10.00")

    def test_unknown_game_rejected(self, db_session):
        service = LedgerService(db_session)

        with pytest.raises(GameNotFoundError):
            record(service, 999, ALICE, TransactionType.BUYIN, "10.00")

    def test_amount_over_limit_rejected(self, db_session):
        game = make_game(db_session)
        service = LedgerService(db_session)

        with pytest.raises(InvalidAmountError, match="exceeds maximum"):
            record(service, game.id, ALICE, TransactionType.BUYIN, "10000.01")

    def test_sub_cent_amount_rejected(self, db_session):
        game = make_game(db_session)
        service = LedgerService(db_session)

        with pytest.raises(ValueError, match="2 decimal places"):
            record(service, game.id, ALICE, TransactionType.BUYIN, "10.001")

    def test_audit_entry_written(self, db_session):
        game = make_game(db_session)
        service = LedgerService(db_session)
        actor = uuid.uuid4()

        txn = record(service, game.id, ALICE, TransactionType.BUYIN, "40.00", actor)
        db_session.commit()

        entry = db_session.query(AuditLog).filter_by(table_name="transactions").one()
        assert entry.table_name == "transactions"
        assert entry.record_id == txn.id
        assert entry.action == AuditAction.INSERT
        assert entry.game_id == game.id
        assert entry.actor_id == actor
        assert entry.subject_id == ALICE
        assert entry.after_state["amount"] == "40.00"
        assert entry.before_state is None


class TestAppendOnly:

    def test_transaction_cannot_be_modified(self, db_session):
        game = make_game(db_session)
        service = LedgerService(db_session)
        txn = record(service, game.id, ALICE, TransactionType.BUYIN, "10.00")
        db_session.commit()

        txn.amount = Decimal("1.00")
        with pytest.raises(ImmutableRecordError, match="append-only"):
            db_session.flush()

    def test_transaction_cannot_be_deleted(self, db_session):
        game = make_game(db_session)
        service = LedgerService(db_session)
        txn = record(service, game.id, ALICE, TransactionType.BUYIN, "10.00")
        db_session.commit()

        db_session.delete(txn)
        with pytest.raises(ImmutableRecordError):
            db_session.flush()


# --- Aggregation ---

class TestParticipantTotals:

    def test_totals_per_player(self, db_session):
        game = make_game(db_session)
        service = LedgerService(db_session)
        record(service, game.id, BOB, TransactionType.BUYIN, "100.00")
        record(service, game.id, ALICE, TransactionType.BUYIN, "100.00")
        record(service, game.id, ALICE, TransactionType.BUYIN, "0.10")
        record(service, game.id, ALICE, TransactionType.BUYIN, "0.20")
        record(service, game.id, ALICE, TransactionType.CASHOUT, "150.30")
        record(service, game.id, BOB, TransactionType.CASHOUT, "50.00")
        db_session.commit()

        totals = service.get_participant_totals(game.id)

        assert [t.user_id for t in totals] == [ALICE, BOB]
        assert totals[0].total_buyin == Decimal("100.30")
        assert totals[0].total_cashout == Decimal("150.30")
        assert totals[0].net_result == Decimal("50.00")
        assert totals[1].net_result == Decimal("-50.00")

    def test_no_transactions_means_no_totals(self, db_session):
        game = make_game(db_session)

        assert LedgerService(db_session).get_participant_totals(game.id) == []

    def test_registered_player_without_transactions_is_zero(self, db_session):
        game = make_game(db_session)
        db_session.add(GameParticipant(game_id=game.id, user_id=BOB))
        db_session.commit()

        totals = LedgerService(db_session).get_participant_totals(game.id)

        assert len(totals) == 1
        assert totals[0].total_buyin == Decimal("0.00")
        assert totals[0].net_result == Decimal("0.00")

    def test_totals_for_unknown_game(self, db_session):
        with pytest.raises(GameNotFoundError):
            LedgerService(db_session).get_participant_totals(42)

    def test_transactions_in_order(self, db_session):
        game = make_game(db_session)
        service = LedgerService(db_session)
        first = record(service, game.id, ALICE, TransactionType.BUYIN, "10.00")
        second = record(service, game.id, BOB, TransactionType.BUYIN, "20.00")
        db_session.commit()

        txns = service.get_transactions(game.id)
        assert [t.id for t in txns] == [first.id, second.id]


class TestParticipantAudit:

    def test_first_transaction_audits_participant_insert_and_update(self, db_session):
        game = make_game(db_session)
        service = LedgerService(db_session)
        actor = uuid.uuid4()

        record(service, game.id, ALICE, TransactionType.BUYIN, "100.00", actor)
        db_session.commit()

        participant = db_session.query(GameParticipant).one()
        history = AuditService(db_session).history("game_participants", participant.id)

        assert [h.action for h in history] == [AuditAction.INSERT, AuditAction.UPDATE]
        inserted, updated = history
        assert inserted.after_state["total_buyin"] == "0.00"
        assert inserted.subject_id == ALICE
        assert inserted.actor_id == actor
        assert updated.before_state["total_buyin"] == "0.00"
        assert updated.after_state["total_buyin"] == "100.00"
        assert updated.amount == Decimal("100.00")
        assert updated.game_id == game.id

    def test_later_transactions_audit_only_the_update(self, db_session):
        game = make_game(db_session)
        service = LedgerService(db_session)
        record(service, game.id, ALICE, TransactionType.BUYIN, "100.00")
        record(service, game.id, ALICE, TransactionType.CASHOUT, "60.00")
        db_session.commit()

        participant = db_session.query(GameParticipant).one()
        history = AuditService(db_session).history("game_participants", participant.id)

        assert [h.action for h in history] == [
            AuditAction.INSERT, AuditAction.UPDATE, AuditAction.UPDATE,
        ]
        last = history[-1]
        assert last.before_state["total_cashout"] == "0.00"
        assert last.after_state["total_cashout"] == "60.00"
        assert last.amount == Decimal("160.00")

    def test_every_mutated_table_is_audited(self, db_session):
        game = make_game(db_session)
        service = LedgerService(db_session)
        record(service, game.id, ALICE, TransactionType.BUYIN, "20.00")
        record(service, game.id, BOB, TransactionType.CASHOUT, "20.00")
        db_session.commit()

        tables = {t for (t,) in db_session.query(AuditLog.table_name).distinct()}

        assert tables == {"transactions", "game_participants"}

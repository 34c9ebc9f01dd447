"""
Settlement service — validate, calculate and settle a game.

calculate() is the only operation that owns its unit of work:

1. Take the per-game lock (SettlementBusyError if someone else has it)
2. Return the stored result if the game was already calculated
3. Aggregate participant totals from the transactions
4. Validate buy-ins against cash-outs
5. Solve for the minimal set of transfers
6. Insert the run marker, the settlements and their audit entries
7. Commit, then release the lock

Any failure in steps 2-7 rolls the whole unit back, so no
partial settlement set is ever visible. Marking a settlement
completed or cancelled follows the rest of the codebase: the
service flushes and the caller commits.
"""

import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from poker_settlement.config import get_settings
from poker_settlement.exceptions import (
    InvalidStateError,
    NoParticipantsError,
    PersistenceError,
    SettlementNotFoundError,
)
from poker_settlement.models.base import atomic, utcnow
from poker_settlement.models.enums import (
    AuditAction,
    CalculationOutcome,
    GameStatus,
    SettlementStatus,
)
from poker_settlement.models.settlement import Settlement
from poker_settlement.models.settlement_run import SettlementRun
from poker_settlement.schemas.settlement import (
    SettlementCalculation,
    SettlementResponse,
    SettlementValidation,
)
from poker_settlement.services.audit_service import (
    AuditService,
    SETTLEMENTS_TABLE,
    SETTLEMENT_RUNS_TABLE,
    snapshot,
)
from poker_settlement.services.balance_validator import (
    build_validation,
    validate_totals,
)
from poker_settlement.services.ledger_service import LedgerService
from poker_settlement.services.money import from_cents, to_cents, validate_amount
from poker_settlement.services.settlement_lock import SettlementLockManager
from poker_settlement.services.settlement_solver import solve_settlements

logger = logging.getLogger("poker_settlement.services.settlement")
settings = get_settings()

VALIDATABLE_STATUSES = {GameStatus.IN_PROGRESS, GameStatus.COMPLETED}


class RunAlreadyExistsError(PersistenceError):
    """Another writer stored this game's result first."""


class SettlementService:

    def __init__(
        self,
        db: Session,
        lock_manager: SettlementLockManager | None = None,
    ):
        self.db = db
        self.ledger = LedgerService(db)
        self.audit = AuditService(db)
        self.locks = lock_manager or SettlementLockManager()

    # --- Validation ---

    def validate(self, game_id: int) -> SettlementValidation:
        """
        Check whether a game's buy-ins and cash-outs balance.

        Safe to call at any time; it never writes anything.
        """
        game = self.ledger.games.get_game(game_id)
        if game.status not in VALIDATABLE_STATUSES:
            raise InvalidStateError(
                f"Cannot validate settlements for {game.status.value} game"
            )
        totals = self.ledger.get_participant_totals(game_id)
        return validate_totals(totals, settings.SETTLEMENT_TOLERANCE)

    # --- Calculation ---

    def calculate(
        self,
        game_id: int,
        actor_id: uuid.UUID | None = None,
        force: bool = False,
    ) -> SettlementCalculation:
        """
        Compute and store a game's settlements, exactly once.

        Idempotent: once a game has been calculated every later call
        returns the stored settlements unchanged. force=True proceeds
        even when buy-ins and cash-outs do not balance; the imbalance
        is recorded on the run and in the audit log.

        Must be called with no pending changes in the session, since
        it commits its own unit of work.
        """
        if self.db.new or self.db.dirty or self.db.deleted:
            raise InvalidStateError(
                "calculate() must run in its own unit of work"
            )
        # End any open read transaction so every read below happens
        # after the lock is taken.
        self.db.rollback()

        owner = f"{actor_id or 'anonymous'}:{uuid.uuid4().hex[:12]}"
        logger.info("Calculating settlements for game %s (owner %s)", game_id, owner)

        with self.locks.hold(game_id, owner):
            try:
                with atomic(self.db):
                    return self._calculate_locked(game_id, actor_id, force)
            except RunAlreadyExistsError:
                logger.warning(
                    "Settlements for game %s were stored by another caller; "
                    "returning them",
                    game_id,
                )
                return self.get_calculation(game_id)
            except PersistenceError:
                logger.exception("Settlement calculation for game %s failed", game_id)
                raise

    def _calculate_locked(
        self,
        game_id: int,
        actor_id: uuid.UUID | None,
        force: bool,
    ) -> SettlementCalculation:
        game = self.ledger.games.get_game(game_id)
        if game.status != GameStatus.COMPLETED:
            raise InvalidStateError(
                f"Cannot calculate settlements for {game.status.value} game"
            )

        run = self._get_run(game_id)
        if run is not None:
            logger.info("Game %s already settled; returning stored result", game_id)
            return self._stored_result(run)

        totals = self.ledger.get_participant_totals(game_id, lock=True)
        if not totals:
            raise NoParticipantsError(game_id)

        validation = validate_totals(totals, settings.SETTLEMENT_TOLERANCE)
        if not validation.is_valid:
            if not force:
                logger.warning(
                    "Game %s does not balance (difference %s); not calculating",
                    game_id, validation.difference,
                )
                return SettlementCalculation(
                    game_id=game_id,
                    outcome=CalculationOutcome.IMBALANCED,
                    settlements=[],
                    validation=validation,
                )
            logger.warning(
                "Forcing settlement of game %s despite imbalance of %s",
                game_id, validation.difference,
            )

        plan = solve_settlements(
            {t.user_id: to_cents(t.net_result) for t in totals},
            tolerance_cents=to_cents(settings.SETTLEMENT_TOLERANCE),
        )
        unresolved_amount = from_cents(plan.unresolved_total)
        if plan.unresolved:
            logger.warning(
                "Game %s settled with %s left unresolved: %s",
                game_id, unresolved_amount, plan.unresolved,
            )

        run = SettlementRun(
            game_id=game_id,
            actor_id=actor_id,
            total_buyin=validation.total_buyins,
            total_cashout=validation.total_cashouts,
            difference=validation.difference,
            forced=not validation.is_valid,
            settlements_created=len(plan.transfers),
            unresolved_amount=unresolved_amount,
        )
        self.db.add(run)
        try:
            self.db.flush()
        except IntegrityError as e:
            raise RunAlreadyExistsError(
                f"Settlements for game {game_id} already stored"
            ) from e

        settlements = []
        for transfer in plan.transfers:
            amount = validate_amount(
                from_cents(transfer.amount),
                max_amount=settings.MAX_SETTLEMENT_AMOUNT,
                context=f"Settlement from {transfer.payer_id} to {transfer.payee_id}",
            )
            settlement = Settlement(
                game_id=game_id,
                payer_id=transfer.payer_id,
                payee_id=transfer.payee_id,
                amount=amount,
                status=SettlementStatus.PENDING,
            )
            self.db.add(settlement)
            settlements.append(settlement)
        self.db.flush()

        for settlement in settlements:
            self.audit.record(
                SETTLEMENTS_TABLE,
                settlement.id,
                AuditAction.INSERT,
                game_id=game_id,
                actor_id=actor_id,
                subject_id=settlement.payer_id,
                counterparty_id=settlement.payee_id,
                amount=settlement.amount,
                after=snapshot(settlement),
            )
        run_state = snapshot(run)
        run_state["validation_message"] = validation.message
        if plan.unresolved:
            run_state["unresolved"] = {
                str(user_id): str(from_cents(cents))
                for user_id, cents in plan.unresolved.items()
            }
        self.audit.record(
            SETTLEMENT_RUNS_TABLE,
            run.id,
            AuditAction.INSERT,
            game_id=game_id,
            actor_id=actor_id,
            amount=from_cents(sum(t.amount for t in plan.transfers)),
            after=run_state,
        )

        logger.info(
            "Stored %d settlements for game %s", len(settlements), game_id
        )
        return SettlementCalculation(
            game_id=game_id,
            outcome=CalculationOutcome.CREATED,
            settlements=[SettlementResponse.model_validate(s) for s in settlements],
            validation=validation,
            forced=run.forced,
            unresolved_amount=unresolved_amount,
        )

    def _get_run(self, game_id: int) -> SettlementRun | None:
        return self.db.execute(
            select(SettlementRun).where(SettlementRun.game_id == game_id)
        ).scalar_one_or_none()

    def _stored_result(self, run: SettlementRun) -> SettlementCalculation:
        settlements = self._settlements_for(run.game_id)
        return SettlementCalculation(
            game_id=run.game_id,
            outcome=CalculationOutcome.EXISTING,
            settlements=[SettlementResponse.model_validate(s) for s in settlements],
            validation=build_validation(
                run.total_buyin, run.total_cashout, settings.SETTLEMENT_TOLERANCE
            ),
            forced=run.forced,
            unresolved_amount=run.unresolved_amount,
        )

    def _settlements_for(self, game_id: int) -> list[Settlement]:
        settlements = self.db.execute(
            select(Settlement)
            .where(Settlement.game_id == game_id)
            .order_by(Settlement.id)
        ).scalars().all()
        return list(settlements)

    # --- Reads ---

    def get_calculation(self, game_id: int) -> SettlementCalculation | None:
        """The stored result for a game, or None if it was never calculated."""
        self.ledger.games.get_game(game_id)
        run = self._get_run(game_id)
        if run is None:
            return None
        return self._stored_result(run)

    def get_settlements(self, game_id: int) -> list[Settlement]:
        """All settlements for a game, in the order they were created."""
        self.ledger.games.get_game(game_id)
        return self._settlements_for(game_id)

    def get_settlement(self, settlement_id: int) -> Settlement:
        settlement = self.db.get(Settlement, settlement_id)
        if not settlement:
            raise SettlementNotFoundError(settlement_id)
        return settlement

    # --- Status changes ---

    def mark_complete(
        self, settlement_id: int, actor_id: uuid.UUID | None = None
    ) -> Settlement:
        """
        Record that the payer has paid.

        Fails if the settlement is already completed or was
        cancelled. The caller is responsible for db.commit().
        """
        return self._transition(
            settlement_id, SettlementStatus.COMPLETED, actor_id
        )

    def cancel(
        self, settlement_id: int, actor_id: uuid.UUID | None = None
    ) -> Settlement:
        """Cancel a pending settlement. The caller commits."""
        return self._transition(
            settlement_id, SettlementStatus.CANCELLED, actor_id
        )

    def _transition(
        self,
        settlement_id: int,
        new_status: SettlementStatus,
        actor_id: uuid.UUID | None,
    ) -> Settlement:
        settlement = self.get_settlement(settlement_id)
        self._check_transition(settlement, new_status)

        before = snapshot(settlement)
        values = {"status": new_status, "updated_at": utcnow()}
        if new_status == SettlementStatus.COMPLETED:
            values["completed_at"] = utcnow()

        # Conditional update: only one of two racing callers can move
        # the settlement out of its current status.
        result = self.db.execute(
            update(Settlement)
            .where(
                Settlement.id == settlement_id,
                Settlement.status == settlement.status,
            )
            .values(values)
            .execution_options(synchronize_session=False)
        )
        self.db.refresh(settlement)
        if result.rowcount != 1:
            self._check_transition(settlement, new_status)
            raise InvalidStateError(
                f"Settlement {settlement_id} changed concurrently"
            )

        self.audit.record(
            SETTLEMENTS_TABLE,
            settlement.id,
            AuditAction.UPDATE,
            game_id=settlement.game_id,
            actor_id=actor_id,
            subject_id=settlement.payer_id,
            counterparty_id=settlement.payee_id,
            amount=settlement.amount,
            before=before,
            after=snapshot(settlement),
        )
        logger.info(
            "Settlement %s moved from %s to %s",
            settlement_id, before["status"], new_status.value,
        )
        return settlement

    @staticmethod
    def _check_transition(
        settlement: Settlement, new_status: SettlementStatus
    ) -> None:
        if settlement.status == new_status:
            raise InvalidStateError(
                f"Settlement is already {new_status.value}"
            )
        if not settlement.can_transition_to(new_status):
            raise InvalidStateError(
                f"Cannot transition settlement from {settlement.status.value} "
                f"to {new_status.value}"
            )

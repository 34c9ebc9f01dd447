"""
Settlement lock — per-game mutual exclusion for calculate().

The lock is a row in settlement_locks keyed by game_id. Acquire
is a plain INSERT: the primary key lets exactly one caller win,
and everyone else gets SettlementBusyError instead of waiting.
Release deletes the row, but only if the caller still owns it.

Each acquire and release runs in its own short session and
commits immediately, so the lock is visible to every other
connection while the calculation's own unit of work is still
open. A holder that never releases (crashed process, abandoned
request) blocks the game only until expires_at; after that the
next caller takes the lock over.
"""

import logging
from contextlib import contextmanager
from datetime import timedelta

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from poker_settlement.config import get_settings
from poker_settlement.exceptions import (
    GameNotFoundError,
    PersistenceError,
    SettlementBusyError,
)
from poker_settlement.models.base import SessionLocal, utcnow
from poker_settlement.models.game import Game
from poker_settlement.models.settlement_lock import SettlementLock

logger = logging.getLogger("poker_settlement.services.settlement_lock")
settings = get_settings()

# Attempts to insert the lock row before giving up. A second attempt
# is only needed when the previous holder released or expired between
# our failed insert and our read of its row.
MAX_ACQUIRE_ATTEMPTS = 3


class SettlementLockManager:
    """
    Keyed advisory lock backed by a unique-keyed table.

    Unlocked -> Locked(owner) on acquire; Locked(owner) -> Unlocked
    on release. Acquiring a lock already held by the same owner
    succeeds without taking it again.
    """

    def __init__(
        self,
        session_factory: sessionmaker | None = None,
        timeout_seconds: int | None = None,
    ):
        self.session_factory = session_factory or SessionLocal
        self.timeout = timedelta(
            seconds=timeout_seconds
            if timeout_seconds is not None
            else settings.SETTLEMENT_LOCK_TIMEOUT_SECONDS
        )

    def acquire(self, game_id: int, owner: str) -> bool:
        """
        Take the lock for a game.

        Returns True if this call took the lock, False if the owner
        already held it. Raises SettlementBusyError if another owner
        holds an unexpired lock.
        """
        with self.session_factory() as db:
            if db.get(Game, game_id) is None:
                raise GameNotFoundError(game_id)

            for _ in range(MAX_ACQUIRE_ATTEMPTS):
                if self._try_insert(db, game_id, owner):
                    logger.debug("Settlement lock for game %s acquired by %s", game_id, owner)
                    return True

                current = db.execute(
                    select(SettlementLock).where(SettlementLock.game_id == game_id)
                ).scalar_one_or_none()
                if current is None:
                    continue
                if current.owner == owner:
                    return False

                now = utcnow()
                if current.expires_at > now:
                    retry_after = max(1, int((current.expires_at - now).total_seconds()))
                    logger.warning(
                        "Settlement lock for game %s is held by %s; rejecting %s",
                        game_id, current.owner, owner,
                    )
                    raise SettlementBusyError(game_id, retry_after=retry_after)

                stale_owner, expired_at = current.owner, current.expires_at
                if self._take_over(db, current, now):
                    logger.warning(
                        "Settlement lock for game %s held by %s expired at %s; "
                        "taken over by %s",
                        game_id, stale_owner, expired_at, owner,
                    )

        raise PersistenceError(
            f"Could not acquire settlement lock for game {game_id}"
        )

    def _try_insert(self, db: Session, game_id: int, owner: str) -> bool:
        now = utcnow()
        db.add(SettlementLock(
            game_id=game_id,
            owner=owner,
            acquired_at=now,
            expires_at=now + self.timeout,
        ))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            return False
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(
                f"Failed to acquire settlement lock for game {game_id}: {e}"
            ) from e
        return True

    def _take_over(self, db: Session, stale: SettlementLock, now) -> bool:
        """Delete an expired lock, unless someone else already replaced it."""
        result = db.execute(
            delete(SettlementLock).where(
                SettlementLock.game_id == stale.game_id,
                SettlementLock.owner == stale.owner,
                SettlementLock.expires_at <= now,
            )
        )
        db.commit()
        db.expunge_all()
        return result.rowcount == 1

    def release(self, game_id: int, owner: str) -> bool:
        """
        Release the lock if this owner holds it.

        Returns False when the lock was no longer ours (it expired
        and was taken over).
        """
        with self.session_factory() as db:
            result = db.execute(
                delete(SettlementLock).where(
                    SettlementLock.game_id == game_id,
                    SettlementLock.owner == owner,
                )
            )
            db.commit()
            return result.rowcount == 1

    def is_locked(self, game_id: int) -> bool:
        with self.session_factory() as db:
            current = db.get(SettlementLock, game_id)
            return current is not None and current.expires_at > utcnow()

    @contextmanager
    def hold(self, game_id: int, owner: str):
        """
        Hold the lock for the duration of a with-block.

        The lock is released on every exit path. A failed release
        is logged and never replaces the block's own outcome: by
        then the calculation has already committed or rolled back.
        """
        acquired = self.acquire(game_id, owner)
        try:
            yield
        finally:
            if acquired:
                self._release_quietly(game_id, owner)

    def _release_quietly(self, game_id: int, owner: str) -> None:
        try:
            released = self.release(game_id, owner)
        except SQLAlchemyError:
            logger.exception(
                "Failed to release settlement lock for game %s (owner %s); "
                "it will expire on its own",
                game_id, owner,
            )
            return
        if released:
            logger.debug("Settlement lock for game %s released by %s", game_id, owner)
        else:
            logger.warning(
                "Settlement lock for game %s was no longer held by %s at release",
                game_id, owner,
            )

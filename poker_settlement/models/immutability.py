"""
ORM-level immutability for append-only records.

Transactions and audit entries are never modified after they
are written. These listeners reject UPDATE and DELETE of either
before any SQL reaches the database.
"""

import logging

from sqlalchemy import event

from poker_settlement.exceptions import ImmutableRecordError
from poker_settlement.models.audit_log import AuditLog
from poker_settlement.models.transaction import Transaction

logger = logging.getLogger("poker_settlement.models.immutability")

APPEND_ONLY_MODELS = (Transaction, AuditLog)


def _reject_update(mapper, connection, target):
    logger.error(
        "Blocked update of append-only record %s#%s",
        target.__tablename__, target.id,
    )
    raise ImmutableRecordError(
        f"{target.__tablename__} records are append-only and cannot be modified"
    )


def _reject_delete(mapper, connection, target):
    logger.error(
        "Blocked delete of append-only record %s#%s",
        target.__tablename__, target.id,
    )
    raise ImmutableRecordError(
        f"{target.__tablename__} records are append-only and cannot be deleted"
    )


def register_immutability_listeners() -> None:
    """Attach the listeners. Safe to call more than once."""
    for model in APPEND_ONLY_MODELS:
        if not event.contains(model, "before_update", _reject_update):
            event.listen(model, "before_update", _reject_update)
        if not event.contains(model, "before_delete", _reject_delete):
            event.listen(model, "before_delete", _reject_delete)

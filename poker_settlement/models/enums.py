"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored.
"""

import enum


class GameStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TransactionType(str, enum.Enum):
    """Direction of money relative to the pot."""
    BUYIN = "buyin"
    CASHOUT = "cashout"


class SettlementStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AuditAction(str, enum.Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"


class CalculationOutcome(str, enum.Enum):
    """Result of a calculate() call."""
    CREATED = "created"        # this call computed and stored the result
    EXISTING = "existing"      # a previous call already stored it
    IMBALANCED = "imbalanced"  # nothing stored; totals do not balance

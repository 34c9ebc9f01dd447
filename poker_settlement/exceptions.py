"""
Error taxonomy for the settlement engine.

InputError subclasses ValueError so callers that only care about
"bad request" can keep catching ValueError. Validation outcomes
(balanced or not) are never raised; they are returned as data.
"""


class SettlementError(Exception):
    """Base class for all engine failures."""


# --- Input errors: surfaced immediately, never retried ---

class InputError(SettlementError, ValueError):
    pass


class NotFoundError(InputError):
    pass


class GameNotFoundError(NotFoundError):

    def __init__(self, game_id):
        self.game_id = game_id
        super().__init__(f"Game {game_id} not found")


class SettlementNotFoundError(NotFoundError):

    def __init__(self, settlement_id):
        self.settlement_id = settlement_id
        super().__init__(f"Settlement {settlement_id} not found")


class NoParticipantsError(InputError):

    def __init__(self, game_id):
        self.game_id = game_id
        super().__init__(f"No participants found for game {game_id}")


class InvalidAmountError(InputError):
    pass


class InvalidStateError(InputError):
    pass


# --- Concurrency ---

class SettlementBusyError(SettlementError):
    """Another caller holds the settlement lock for this game. Retry later."""

    def __init__(self, game_id, retry_after: int = 1):
        self.game_id = game_id
        self.retry_after = retry_after
        super().__init__(
            f"Settlement calculation already in progress for game {game_id}"
        )


# --- Persistence ---

class PersistenceError(SettlementError):
    """A storage write failed; the unit of work was rolled back."""


class AuditFailure(PersistenceError):
    pass


class ImmutableRecordError(PersistenceError):
    pass

"""Error taxonomy for the game core and its storage boundary.

Every error is scoped to one session or one request; none of them is
fatal to the process. ``status_code`` is what the HTTP layer answers with.
"""


class GameError(Exception):
    status_code = 400

    def __init__(self, message: str = None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__

    def to_dict(self):
        return {'error': self.message, 'type': self.__class__.__name__}


class InvalidTraitEdit(GameError):
    """This trait cannot be edited"""


class BudgetExceeded(GameError):
    """Not enough points left for this allocation"""


class InvalidSubmission(GameError):
    """Organism submission is incomplete or malformed"""


class NoOrganisms(GameError):
    """Wait for students to join and create organisms"""


class InvalidPhaseTransition(GameError):
    """Action not allowed in the current game state"""
    status_code = 409


class SessionNotFound(GameError):
    """Game not found"""
    status_code = 404


class RepositoryError(GameError):
    """Session store unavailable"""
    status_code = 503


class ReadError(RepositoryError):
    """Failed to read from the session store"""


class WriteError(RepositoryError):
    """Failed to write to the session store"""

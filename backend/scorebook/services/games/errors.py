class GameRuleError(Exception):
    """Base class for every error the live-game engine raises."""


class InvalidState(GameRuleError):
    """The command is not allowed in the current game state.

    Rejected synchronously with no state change; the scorekeeper is expected
    to correct the selection and try again.
    """


class ConfigurationError(GameRuleError):
    """Game settings failed validation; the previous settings are kept."""


class PreconditionFailure(GameRuleError):
    """Benign no-op, e.g. undo with an empty history."""


class NothingToUndo(PreconditionFailure):
    def __init__(self, message='Nothing to undo'):
        super().__init__(message)


class NoActiveFreeThrows(PreconditionFailure):
    def __init__(self, message='No free throw sequence in progress'):
        super().__init__(message)

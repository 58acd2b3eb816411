"""Game domain services: the live-game rules engine and its adapters.

The engine modules (clock, rules, events, ledger, fouls, free_throws,
attribution, roster, history, session) are pure logic with no Flask or
database imports, so they can be driven directly from tests. ``store`` and
``scheduler`` adapt a :class:`GameSession` to the database and to the
Socket.IO server and should be what HTTP routes import.
"""

from .errors import ConfigurationError, GameRuleError, InvalidState, NoActiveFreeThrows, NothingToUndo, PreconditionFailure
from .rules import BonusMode, FoulType, GameSettings, GameStatus, QuickStat, ShotType
from .session import GameSession

__all__ = [
    'BonusMode',
    'ConfigurationError',
    'FoulType',
    'GameRuleError',
    'GameSession',
    'GameSettings',
    'GameStatus',
    'InvalidState',
    'NoActiveFreeThrows',
    'NothingToUndo',
    'PreconditionFailure',
    'QuickStat',
    'ShotType',
]

"""Ruleset constants and per-game settings.

Thresholds and the treatment of technical/flagrant fouls differ between
leagues, so they are explicit settings rather than baked-in numbers. Two
presets cover the common cases: ``college`` (bonus at 7 team fouls shot as a
one-and-one, double bonus at 10) and ``nba`` (two shots from the 5th foul).
"""

from dataclasses import dataclass, asdict, fields, replace
from enum import Enum
from typing import Any, Dict, Mapping

from .errors import ConfigurationError


class GameStatus(str, Enum):
    SCHEDULED = 'scheduled'
    ACTIVE = 'active'
    PAUSED = 'paused'
    COMPLETED = 'completed'


class ShotType(str, Enum):
    TWO = '2pt'
    THREE = '3pt'

    @property
    def points(self) -> int:
        return 3 if self is ShotType.THREE else 2


class FoulType(str, Enum):
    PERSONAL = 'personal'
    SHOOTING = 'shooting'
    OFFENSIVE = 'offensive'
    TECHNICAL = 'technical'
    FLAGRANT1 = 'flagrant1'
    FLAGRANT2 = 'flagrant2'

    @property
    def is_flagrant(self) -> bool:
        return self in (FoulType.FLAGRANT1, FoulType.FLAGRANT2)


class QuickStat(str, Enum):
    STEAL = 'steal'
    BLOCK = 'block'
    TURNOVER = 'turnover'


class BonusMode(str, Enum):
    COLLEGE = 'college'
    NBA = 'nba'


MAX_PLAYERS_ON_COURT = 5

# Court geometry in feet, basket at the origin.
THREE_POINT_DISTANCE = 23.75
CORNER_THREE_SIDELINE = 22.0
CORNER_THREE_DEPTH = 14.0

_BONUS_PRESETS = {
    BonusMode.COLLEGE: {'bonus_threshold': 7, 'double_bonus_threshold': 10, 'one_and_one_in_bonus': True},
    BonusMode.NBA: {'bonus_threshold': 5, 'double_bonus_threshold': 5, 'one_and_one_in_bonus': False},
}


@dataclass(frozen=True)
class GameSettings:
    quarter_length_seconds: int = 720
    overtime_length_seconds: int = 300
    regulation_quarters: int = 4
    foul_limit_per_player: int = 5
    technical_foul_limit: int = 2
    bonus_threshold: int = 7
    double_bonus_threshold: int = 10
    one_and_one_in_bonus: bool = True
    timeouts_per_team: int = 4
    technical_fouls_count_toward_bonus: bool = False
    flagrant_fouls_count_toward_bonus: bool = False
    offensive_fouls_count_toward_bonus: bool = True
    offensive_fouls_shoot_bonus: bool = True
    technical_free_throws: int = 1
    flagrant_free_throws: int = 2
    reset_team_fouls_each_overtime: bool = False

    @classmethod
    def for_mode(cls, mode, **overrides) -> 'GameSettings':
        try:
            preset = _BONUS_PRESETS[BonusMode(mode)]
        except ValueError:
            raise ConfigurationError(f'Unknown bonus mode: {mode!r}')
        settings = cls(**{**preset, **overrides})
        settings.validate()
        return settings

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'GameSettings':
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f'Unknown settings: {", ".join(sorted(unknown))}')
        settings = cls(**dict(data))
        settings.validate()
        return settings

    def updated(self, **changes) -> 'GameSettings':
        """Return a validated copy; ``self`` is untouched when validation fails."""
        if 'bonus_mode' in changes:
            changes = {**_BONUS_PRESETS.get(_mode_or_raise(changes.pop('bonus_mode'))), **changes}
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ConfigurationError(f'Unknown settings: {", ".join(sorted(unknown))}')
        settings = replace(self, **changes)
        settings.validate()
        return settings

    def validate(self) -> None:
        for name in ('quarter_length_seconds', 'overtime_length_seconds'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ConfigurationError(f'{name} must be a positive number of seconds')
            if value > 3600:
                raise ConfigurationError(f'{name} cannot exceed one hour')
        for name in ('regulation_quarters', 'foul_limit_per_player', 'technical_foul_limit',
                     'bonus_threshold', 'double_bonus_threshold'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ConfigurationError(f'{name} must be at least 1')
        for name in ('timeouts_per_team', 'technical_free_throws', 'flagrant_free_throws'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ConfigurationError(f'{name} cannot be negative')
        if self.double_bonus_threshold < self.bonus_threshold:
            raise ConfigurationError('double_bonus_threshold cannot be lower than bonus_threshold')

    def is_overtime(self, quarter: int) -> bool:
        return quarter > self.regulation_quarters

    def period_length(self, quarter: int) -> int:
        if self.is_overtime(quarter):
            return self.overtime_length_seconds
        return self.quarter_length_seconds

    def period_label(self, quarter: int) -> str:
        if self.is_overtime(quarter):
            return f'ot{quarter - self.regulation_quarters}'
        return f'q{quarter}'

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _mode_or_raise(mode) -> BonusMode:
    try:
        return BonusMode(mode)
    except ValueError:
        raise ConfigurationError(f'Unknown bonus mode: {mode!r}')

"""Foul & bonus rules.

Pure functions over counters and settings: whether a foul counts toward
the team total, the bonus state a team-foul count implies, whether a
player is disqualified, and how many free throws a foul awards. The ledger
uses them to recompute derived flags, the session uses them to assess a
foul before it is committed.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import InvalidState
from .rules import FoulType, GameSettings, ShotType


@dataclass(frozen=True)
class FreeThrowAward:
    attempts: int = 0
    one_and_one: bool = False
    # technical and flagrant free throws are dead balls: no rebound after a miss
    live: bool = True
    shooter_must_be_on_court: bool = True


NO_FREE_THROWS = FreeThrowAward()


@dataclass(frozen=True)
class FoulAssessment:
    foul_type: FoulType
    player_fouls: int
    fouled_out: bool
    counts_toward_team: bool
    team_fouls_this_quarter: int
    in_bonus: bool
    in_double_bonus: bool
    award: FreeThrowAward


def counts_toward_team_fouls(foul_type: FoulType, settings: GameSettings) -> bool:
    if foul_type is FoulType.TECHNICAL:
        return settings.technical_fouls_count_toward_bonus
    if foul_type.is_flagrant:
        return settings.flagrant_fouls_count_toward_bonus
    if foul_type is FoulType.OFFENSIVE:
        return settings.offensive_fouls_count_toward_bonus
    return True


def bonus_state(team_fouls_this_quarter: int, settings: GameSettings) -> Tuple[bool, bool]:
    in_bonus = team_fouls_this_quarter >= settings.bonus_threshold
    in_double_bonus = in_bonus and team_fouls_this_quarter >= settings.double_bonus_threshold
    return in_bonus, in_double_bonus


def is_disqualified(fouls: int, technical_fouls: int, flagrant2_fouls: int, settings: GameSettings) -> bool:
    return (
        fouls >= settings.foul_limit_per_player
        or technical_fouls >= settings.technical_foul_limit
        or flagrant2_fouls > 0
    )


def resets_team_fouls(from_quarter: int, to_quarter: int, settings: GameSettings) -> bool:
    if from_quarter == to_quarter:
        return False
    if settings.is_overtime(from_quarter) and settings.is_overtime(to_quarter):
        return settings.reset_team_fouls_each_overtime
    return True


def free_throw_award(foul_type: FoulType, settings: GameSettings, in_bonus: bool, in_double_bonus: bool,
                     shot_type: Optional[ShotType] = None, was_and_one: bool = False) -> FreeThrowAward:
    if foul_type is FoulType.TECHNICAL:
        return FreeThrowAward(settings.technical_free_throws, live=False, shooter_must_be_on_court=False)
    if foul_type.is_flagrant:
        return FreeThrowAward(settings.flagrant_free_throws, live=False)
    if foul_type is FoulType.SHOOTING:
        if shot_type is None:
            raise InvalidState('A shooting foul needs the shot type (2pt or 3pt)')
        if was_and_one:
            return FreeThrowAward(1)
        return FreeThrowAward(shot_type.points)
    if foul_type is FoulType.OFFENSIVE and not settings.offensive_fouls_shoot_bonus:
        return NO_FREE_THROWS
    if not in_bonus:
        return NO_FREE_THROWS
    one_and_one = settings.one_and_one_in_bonus and not in_double_bonus
    return FreeThrowAward(2, one_and_one=one_and_one)


def assess_foul(player_line, team_line, foul_type: FoulType, settings: GameSettings,
                shot_type: Optional[ShotType] = None, was_and_one: bool = False) -> FoulAssessment:
    """Work out what recording ``foul_type`` against ``player_line`` would do.

    Nothing is mutated; the caller turns the assessment into an event.
    """
    if player_line.fouled_out:
        raise InvalidState('Player has fouled out and cannot be charged with another foul')
    if was_and_one and foul_type is not FoulType.SHOOTING:
        raise InvalidState('Only a shooting foul can be an and-one')

    player_fouls = player_line.fouls + 1
    technicals = player_line.technical_fouls + (1 if foul_type is FoulType.TECHNICAL else 0)
    flagrant2 = player_line.flagrant2_fouls + (1 if foul_type is FoulType.FLAGRANT2 else 0)
    fouled_out = is_disqualified(player_fouls, technicals, flagrant2, settings)

    counts = counts_toward_team_fouls(foul_type, settings)
    team_fouls = team_line.fouls_this_quarter + (1 if counts else 0)
    in_bonus, in_double_bonus = bonus_state(team_fouls, settings)
    award = free_throw_award(foul_type, settings, in_bonus, in_double_bonus, shot_type, was_and_one)

    return FoulAssessment(
        foul_type=foul_type,
        player_fouls=player_fouls,
        fouled_out=fouled_out,
        counts_toward_team=counts,
        team_fouls_this_quarter=team_fouls,
        in_bonus=in_bonus,
        in_double_bonus=in_double_bonus,
        award=award,
    )

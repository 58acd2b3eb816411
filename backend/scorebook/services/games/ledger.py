"""Stat ledger: per-player and per-team counters for one game.

The ledger is only ever changed by applying (or reverting) the
:class:`~.events.Effect` of a committed event, so folding the event log over
a fresh ledger reproduces the live one exactly. Boolean flags that follow
from counters (``fouled_out``, ``in_bonus``, ``in_double_bonus``) are never
stored in effects; :meth:`Ledger.refresh_flags` recomputes them after every
change.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from . import fouls
from .errors import InvalidState
from .events import (
    GAME, PLAYER, TEAM,
    AssistCredit, CommittedEvent, Delta, Effect, FoulCommitted, FreeThrowAttempt, LineupChange,
    OvertimeStart, Payload, QuarterChange, ReboundCredit, ShotAttempt, StatCredit, Substitution,
    TimeoutCalled,
)
from .rules import FoulType, GameSettings, QuickStat

_QUICK_STAT_FIELDS = {
    QuickStat.STEAL.value: 'steals',
    QuickStat.BLOCK.value: 'blocks',
    QuickStat.TURNOVER.value: 'turnovers',
}


@dataclass
class PlayerLine:
    player_id: int
    team_id: int
    is_home_team: bool
    points: int = 0
    field_goals_made: int = 0
    field_goals_attempted: int = 0
    three_pointers_made: int = 0
    three_pointers_attempted: int = 0
    free_throws_made: int = 0
    free_throws_attempted: int = 0
    offensive_rebounds: int = 0
    defensive_rebounds: int = 0
    assists: int = 0
    steals: int = 0
    blocks: int = 0
    turnovers: int = 0
    fouls: int = 0
    technical_fouls: int = 0
    flagrant_fouls: int = 0
    flagrant2_fouls: int = 0
    plus_minus: int = 0
    is_on_court: bool = False
    fouled_out: bool = False

    @property
    def rebounds(self) -> int:
        return self.offensive_rebounds + self.defensive_rebounds

    def to_dict(self) -> dict:
        data = asdict(self)
        data['rebounds'] = self.rebounds
        return data


@dataclass
class TeamLine:
    team_id: int
    is_home_team: bool
    fouls_this_quarter: int = 0
    fouls_total: int = 0
    timeouts_remaining: int = 0
    team_rebounds: int = 0
    in_bonus: bool = False
    in_double_bonus: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class GameLine:
    home_score: int = 0
    away_score: int = 0
    current_quarter: int = 1

    def to_dict(self) -> dict:
        return asdict(self)


class Ledger:
    def __init__(self, settings: GameSettings, home_team_id: int, away_team_id: int,
                 roster: Iterable[Tuple[int, int]]):
        """``roster`` yields ``(player_id, team_id)`` pairs in display order."""
        self.settings = settings
        self.home_team_id = home_team_id
        self.away_team_id = away_team_id
        self.game = GameLine()
        self.teams: Dict[int, TeamLine] = {
            home_team_id: TeamLine(home_team_id, True, timeouts_remaining=settings.timeouts_per_team),
            away_team_id: TeamLine(away_team_id, False, timeouts_remaining=settings.timeouts_per_team),
        }
        self.players: Dict[int, PlayerLine] = {}
        for player_id, team_id in roster:
            if team_id not in self.teams:
                raise InvalidState(f'Player {player_id} does not belong to either team')
            self.players[player_id] = PlayerLine(player_id, team_id, team_id == home_team_id)

    # ---- lookups ----

    def player(self, player_id: int) -> PlayerLine:
        try:
            return self.players[player_id]
        except KeyError:
            raise InvalidState(f'Player {player_id} is not on either roster for this game')

    def team(self, team_id: int) -> TeamLine:
        try:
            return self.teams[team_id]
        except KeyError:
            raise InvalidState(f'Team {team_id} is not playing in this game')

    def opponent_of(self, team_id: int) -> int:
        self.team(team_id)
        return self.away_team_id if team_id == self.home_team_id else self.home_team_id

    def roster(self, team_id: Optional[int] = None) -> List[PlayerLine]:
        return [p for p in self.players.values() if team_id is None or p.team_id == team_id]

    def on_court(self, team_id: Optional[int] = None) -> List[PlayerLine]:
        return [p for p in self.roster(team_id) if p.is_on_court]

    def bench(self, team_id: int) -> List[PlayerLine]:
        return [p for p in self.roster(team_id) if not p.is_on_court and not p.fouled_out]

    # ---- mutation ----

    def set_lineup(self, lineup: Mapping[int, Sequence[int]]) -> None:
        """Place starters on court; only used when a game starts or is rehydrated."""
        for player in self.players.values():
            player.is_on_court = False
        for team_id, player_ids in lineup.items():
            for player_id in player_ids:
                player = self.player(player_id)
                if player.team_id != int(team_id):
                    raise InvalidState(f'Player {player_id} does not play for team {team_id}')
                player.is_on_court = True

    def apply(self, effect: Effect) -> None:
        for delta in effect.deltas:
            self._apply_delta(delta)
        for change in effect.lineup:
            self.player(change.player_id).is_on_court = change.after
        self.refresh_flags()

    def revert(self, effect: Effect) -> None:
        self.apply(effect.inverted())

    def _apply_delta(self, delta: Delta) -> None:
        if delta.target == PLAYER:
            line = self.player(delta.key)
        elif delta.target == TEAM:
            line = self.team(delta.key)
        elif delta.target == GAME:
            line = self.game
        else:
            raise ValueError(f'unknown delta target: {delta.target!r}')
        setattr(line, delta.field, getattr(line, delta.field) + delta.amount)

    def refresh_flags(self) -> None:
        for team in self.teams.values():
            team.in_bonus, team.in_double_bonus = fouls.bonus_state(team.fouls_this_quarter, self.settings)
        for player in self.players.values():
            player.fouled_out = fouls.is_disqualified(
                player.fouls, player.technical_fouls, player.flagrant2_fouls, self.settings)

    # ---- effects ----

    def effect_for(self, payload: Payload) -> Effect:
        """Compute the exact effect committing ``payload`` has on this ledger."""
        try:
            builder = _BUILDERS[type(payload)]
        except KeyError:
            raise ValueError(f'no effect builder for {type(payload).__name__}')
        return builder(self, payload)

    def _score_deltas(self, team_id: int, points: int) -> List[Delta]:
        if points == 0:
            return []
        score_field = 'home_score' if team_id == self.home_team_id else 'away_score'
        deltas = [Delta(GAME, None, score_field, points)]
        for player in self.on_court():
            sign = 1 if player.team_id == team_id else -1
            deltas.append(Delta(PLAYER, player.player_id, 'plus_minus', sign * points))
        return deltas

    # ---- read models ----

    def snapshot(self) -> dict:
        return {
            'game': self.game.to_dict(),
            'players': [p.to_dict() for p in self.players.values()],
            'teams': [t.to_dict() for t in self.teams.values()],
        }

    @classmethod
    def fold(cls, settings: GameSettings, home_team_id: int, away_team_id: int,
             roster: Iterable[Tuple[int, int]], events: Iterable[CommittedEvent],
             starting_lineup: Optional[Mapping[int, Sequence[int]]] = None) -> 'Ledger':
        ledger = cls(settings, home_team_id, away_team_id, roster)
        if starting_lineup:
            ledger.set_lineup(starting_lineup)
        for event in events:
            ledger.apply(event.effect)
        ledger.refresh_flags()
        return ledger


def _shot_effect(ledger: Ledger, shot: ShotAttempt) -> Effect:
    pid = shot.shooter_id
    deltas = [Delta(PLAYER, pid, 'field_goals_attempted', 1)]
    if shot.shot_type == '3pt':
        deltas.append(Delta(PLAYER, pid, 'three_pointers_attempted', 1))
    if shot.made:
        deltas.append(Delta(PLAYER, pid, 'field_goals_made', 1))
        if shot.shot_type == '3pt':
            deltas.append(Delta(PLAYER, pid, 'three_pointers_made', 1))
        deltas.append(Delta(PLAYER, pid, 'points', shot.points))
        deltas.extend(ledger._score_deltas(shot.shooter_team_id, shot.points))
    return Effect(tuple(deltas))


def _foul_effect(ledger: Ledger, foul: FoulCommitted) -> Effect:
    pid = foul.fouler_id
    foul_type = FoulType(foul.foul_type)
    deltas = [Delta(PLAYER, pid, 'fouls', 1)]
    if foul_type is FoulType.TECHNICAL:
        deltas.append(Delta(PLAYER, pid, 'technical_fouls', 1))
    if foul_type.is_flagrant:
        deltas.append(Delta(PLAYER, pid, 'flagrant_fouls', 1))
    if foul_type is FoulType.FLAGRANT2:
        deltas.append(Delta(PLAYER, pid, 'flagrant2_fouls', 1))
    if fouls.counts_toward_team_fouls(foul_type, ledger.settings):
        deltas.append(Delta(TEAM, foul.fouler_team_id, 'fouls_this_quarter', 1))
        deltas.append(Delta(TEAM, foul.fouler_team_id, 'fouls_total', 1))
    lineup = ()
    if foul.fouled_out and ledger.player(pid).is_on_court:
        lineup = (LineupChange(pid, True, False),)
    return Effect(tuple(deltas), lineup)


def _free_throw_effect(ledger: Ledger, attempt: FreeThrowAttempt) -> Effect:
    pid = attempt.shooter_id
    deltas = [Delta(PLAYER, pid, 'free_throws_attempted', 1)]
    if attempt.made:
        deltas.append(Delta(PLAYER, pid, 'free_throws_made', 1))
        deltas.append(Delta(PLAYER, pid, 'points', 1))
        deltas.extend(ledger._score_deltas(attempt.shooter_team_id, 1))
    return Effect(tuple(deltas))


def _rebound_effect(ledger: Ledger, rebound: ReboundCredit) -> Effect:
    if rebound.player_id is None:
        return Effect((Delta(TEAM, rebound.rebound_team_id, 'team_rebounds', 1),))
    field = 'offensive_rebounds' if rebound.offensive else 'defensive_rebounds'
    return Effect((Delta(PLAYER, rebound.player_id, field, 1),))


def _assist_effect(ledger: Ledger, assist: AssistCredit) -> Effect:
    return Effect((Delta(PLAYER, assist.assister_id, 'assists', 1),))


def _stat_effect(ledger: Ledger, credit: StatCredit) -> Effect:
    return Effect((Delta(PLAYER, credit.player_id, _QUICK_STAT_FIELDS[credit.stat], 1),))


def _substitution_effect(ledger: Ledger, sub: Substitution) -> Effect:
    lineup = []
    if sub.player_out_id is not None:
        lineup.append(LineupChange(sub.player_out_id, True, False))
    lineup.append(LineupChange(sub.player_in_id, False, True))
    return Effect((), tuple(lineup))


def _timeout_effect(ledger: Ledger, timeout: TimeoutCalled) -> Effect:
    return Effect((Delta(TEAM, timeout.timeout_team_id, 'timeouts_remaining', -1),))


def _period_effect(ledger: Ledger, change) -> Effect:
    deltas = [Delta(GAME, None, 'current_quarter', change.to_quarter - change.from_quarter)]
    if fouls.resets_team_fouls(change.from_quarter, change.to_quarter, ledger.settings):
        for team in ledger.teams.values():
            if team.fouls_this_quarter:
                deltas.append(Delta(TEAM, team.team_id, 'fouls_this_quarter', -team.fouls_this_quarter))
    return Effect(tuple(deltas))


_BUILDERS = {
    ShotAttempt: _shot_effect,
    FoulCommitted: _foul_effect,
    FreeThrowAttempt: _free_throw_effect,
    ReboundCredit: _rebound_effect,
    AssistCredit: _assist_effect,
    StatCredit: _stat_effect,
    Substitution: _substitution_effect,
    TimeoutCalled: _timeout_effect,
    QuarterChange: _period_effect,
    OvertimeStart: _period_effect,
}

"""On-court set and substitution rules.

These helpers only validate and build :class:`~.events.Substitution`
payloads; the lineup itself changes when the session commits the event.
"""

from typing import Dict, List, Mapping, Sequence

from .errors import InvalidState
from .events import Substitution
from .rules import MAX_PLAYERS_ON_COURT


def validate_swap(ledger, out_player_id: int, in_player_id: int, team_id=None) -> Substitution:
    out_line = ledger.player(out_player_id)
    in_line = ledger.player(in_player_id)
    if team_id is None:
        team_id = out_line.team_id
    if out_line.team_id != team_id or in_line.team_id != team_id:
        raise InvalidState('Both players in a substitution must play for the same team')
    if out_player_id == in_player_id:
        raise InvalidState('A player cannot substitute for themselves')
    if not out_line.is_on_court:
        raise InvalidState('The player coming out is not on the court')
    if in_line.is_on_court:
        raise InvalidState('The player coming in is already on the court')
    if in_line.fouled_out:
        raise InvalidState('A fouled-out player cannot re-enter the game')
    on_court = len(ledger.on_court(team_id))
    if on_court != MAX_PLAYERS_ON_COURT:
        raise InvalidState(
            f'A swap needs exactly {MAX_PLAYERS_ON_COURT} players on court; '
            f'team has {on_court}, fill the open spot first')
    return Substitution(team_id, in_player_id, out_player_id)


def validate_fill(ledger, in_player_id: int) -> Substitution:
    in_line = ledger.player(in_player_id)
    if in_line.is_on_court:
        raise InvalidState('The player coming in is already on the court')
    if in_line.fouled_out:
        raise InvalidState('A fouled-out player cannot re-enter the game')
    if len(ledger.on_court(in_line.team_id)) >= MAX_PLAYERS_ON_COURT:
        raise InvalidState('Lineup is full; use a substitution instead')
    return Substitution(in_line.team_id, in_player_id, None)


def vacancies(ledger) -> Dict[int, int]:
    """Open on-court spots per team that an eligible bench player could fill."""
    result = {}
    for team_id in (ledger.home_team_id, ledger.away_team_id):
        open_spots = MAX_PLAYERS_ON_COURT - len(ledger.on_court(team_id))
        if open_spots > 0 and ledger.bench(team_id):
            result[team_id] = open_spots
    return result


def toggle_starter(starters: Mapping[int, Sequence[int]], team_id: int, player_id: int) -> Dict[int, List[int]]:
    updated = {int(t): list(ids) for t, ids in starters.items()}
    team_starters = updated.setdefault(team_id, [])
    if player_id in team_starters:
        team_starters.remove(player_id)
    elif len(team_starters) >= MAX_PLAYERS_ON_COURT:
        raise InvalidState(f'A team can only have {MAX_PLAYERS_ON_COURT} starters')
    else:
        team_starters.append(player_id)
    return updated


def complete_lineup(ledger, starters: Mapping[int, Sequence[int]]) -> Dict[int, List[int]]:
    """Top each team up to five starters from roster order."""
    lineup = {}
    for team_id in (ledger.home_team_id, ledger.away_team_id):
        chosen = [pid for pid in starters.get(team_id, []) if ledger.player(pid).team_id == team_id]
        for line in ledger.roster(team_id):
            if len(chosen) >= MAX_PLAYERS_ON_COURT:
                break
            if line.player_id not in chosen:
                chosen.append(line.player_id)
        if len(chosen) != MAX_PLAYERS_ON_COURT:
            raise InvalidState(f'Team {team_id} needs at least {MAX_PLAYERS_ON_COURT} players to start')
        lineup[team_id] = chosen
    return lineup

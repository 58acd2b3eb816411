"""Persistence adapter between GameSession and the database.

Sessions are cached per game on the Flask app and guarded by a lock, since
request threads and the period-end timer can both drive the same game.
Committed events and undos are drained from the session outbox in commit
order and written as ``game_event`` rows together with the player, team
and game snapshots. A session can always be rebuilt from those rows alone.
"""

import json
import threading
import time
from contextlib import contextmanager
from typing import List, Tuple

from flask import current_app

from scorebook import db
from scorebook.models import Game, GameEvent, Player, PlayerStat, TeamGameStat
from .events import CommittedEvent
from .ledger import PlayerLine, TeamLine
from .rules import GameSettings
from .session import COMMIT, UNDO, GameSession

_EXTENSION_KEY = 'scorebook.sessions'

_PLAYER_FIELDS = [
    'points', 'field_goals_made', 'field_goals_attempted', 'three_pointers_made', 'three_pointers_attempted',
    'free_throws_made', 'free_throws_attempted', 'offensive_rebounds', 'defensive_rebounds', 'assists',
    'steals', 'blocks', 'turnovers', 'fouls', 'technical_fouls', 'flagrant_fouls', 'flagrant2_fouls',
    'plus_minus', 'is_on_court', 'fouled_out',
]
_TEAM_FIELDS = [
    'fouls_this_quarter', 'fouls_total', 'timeouts_remaining', 'team_rebounds', 'in_bonus', 'in_double_bonus',
]


class _Entry:
    def __init__(self, session: GameSession):
        self.session = session
        self.lock = threading.RLock()


def _registry(app) -> dict:
    return app.extensions.setdefault(_EXTENSION_KEY, {'lock': threading.Lock(), 'sessions': {}})


def default_settings(config, **overrides) -> GameSettings:
    """Per-game settings seeded from app config, then request overrides."""
    base = {
        'quarter_length_seconds': int(config.get('QUARTER_LENGTH_SEC', 720)),
        'overtime_length_seconds': int(config.get('OVERTIME_LENGTH_SEC', 300)),
        'foul_limit_per_player': int(config.get('FOUL_LIMIT', 5)),
        'timeouts_per_team': int(config.get('TIMEOUTS_PER_TEAM', 4)),
    }
    mode = overrides.pop('bonus_mode', None) or config.get('BONUS_MODE', 'college')
    return GameSettings.for_mode(mode, **{**base, **overrides})


def roster_for(game: Game) -> List[Tuple[int, int]]:
    ids = []
    for team_id in (game.home_team_id, game.away_team_id):
        for player in Player.query.filter_by(team_id=team_id).order_by(Player.id).all():
            ids.append((player.id, team_id))
    return ids


def build_session(game: Game) -> GameSession:
    """Rehydrate a session purely from persisted rows."""
    settings = GameSettings.from_dict(game.settings_dict()) if game.settings else default_settings(current_app.config)
    events = [CommittedEvent.from_dict(row.to_record()) for row in game.events.all()]
    return GameSession.restore(
        game.home_team_id,
        game.away_team_id,
        roster_for(game),
        settings,
        game.status,
        events,
        starting_lineup=json.loads(game.starting_lineup) if game.starting_lineup else None,
        starters=json.loads(game.starters) if game.starters else None,
        clock_seconds=game.clock_seconds_remaining,
        clock_running=bool(game.clock_running),
        clock_anchor=game.clock_anchor,
        clock_carry=game.clock_carry or 0.0,
        game_id=game.id,
        now=time.time,
    )


def _entry_for(game: Game) -> _Entry:
    app = current_app._get_current_object()
    registry = _registry(app)
    with registry['lock']:
        entry = registry['sessions'].get(game.id)
        if entry is None:
            entry = _Entry(build_session(game))
            registry['sessions'][game.id] = entry
            app.logger.info(f"[session-load] game={game.id} events={len(entry.session.history)}")
        return entry


@contextmanager
def locked_session(game: Game):
    """Yield the cached session for ``game`` while holding its lock."""
    entry = _entry_for(game)
    with entry.lock:
        yield entry.session


def evict(game_id: int) -> None:
    registry = _registry(current_app._get_current_object())
    with registry['lock']:
        registry['sessions'].pop(game_id, None)


def evict_team(team_id: int) -> None:
    """Drop cached sessions whose roster includes ``team_id``."""
    registry = _registry(current_app._get_current_object())
    with registry['lock']:
        for game_id, entry in list(registry['sessions'].items()):
            if team_id in entry.session.ledger.teams:
                registry['sessions'].pop(game_id, None)


def _event_row(game_id: int, event: CommittedEvent) -> GameEvent:
    payload = event.payload
    return GameEvent(
        game_id=game_id,
        seq=event.seq,
        kind=event.kind,
        parent_seq=event.parent_seq,
        quarter=event.quarter,
        clock_seconds=event.clock_seconds,
        timestamp=event.timestamp,
        actor_player_id=payload.actor_player_id,
        secondary_player_id=payload.secondary_player_id,
        team_id=payload.team_id,
        payload=json.dumps(event.to_dict()['payload']),
        effect=json.dumps(event.effect.to_dict()),
        description=event.description,
    )


def _player_row(game: Game, line: PlayerLine) -> PlayerStat:
    row = PlayerStat.query.filter_by(game_id=game.id, player_id=line.player_id).first()
    if row is None:
        row = PlayerStat(game_id=game.id, player_id=line.player_id, team_id=line.team_id,
                         is_home_team=line.is_home_team)
        db.session.add(row)
    return row


def _team_row(game: Game, line: TeamLine) -> TeamGameStat:
    row = TeamGameStat.query.filter_by(game_id=game.id, team_id=line.team_id).first()
    if row is None:
        row = TeamGameStat(game_id=game.id, team_id=line.team_id, is_home_team=line.is_home_team)
        db.session.add(row)
    return row


def write_snapshot(game: Game, session: GameSession) -> None:
    clock = session.clock.snapshot()
    game.status = session.status.value
    game.current_quarter = session.current_quarter
    game.clock_seconds_remaining = clock['seconds']
    game.clock_running = clock['running']
    game.clock_anchor = clock['anchor']
    game.clock_carry = clock['carry']
    game.home_score = session.ledger.game.home_score
    game.away_score = session.ledger.game.away_score
    game.settings = json.dumps(session.settings.to_dict())
    game.starters = json.dumps(session.starters)
    game.starting_lineup = json.dumps(session.starting_lineup) if session.starting_lineup else None
    db.session.add(game)
    played = session.playing_time()
    for line in session.ledger.players.values():
        row = _player_row(game, line)
        for name in _PLAYER_FIELDS:
            setattr(row, name, getattr(line, name))
        row.seconds_played = played.get(line.player_id, 0)
    for line in session.ledger.teams.values():
        row = _team_row(game, line)
        for name in _TEAM_FIELDS:
            setattr(row, name, getattr(line, name))


def persist(game: Game, session: GameSession) -> int:
    """Write the drained outbox and current snapshots in one transaction.

    On failure the transaction is rolled back and the cached session is
    evicted, so the next request rebuilds from what the database holds.
    """
    ops = session.drain_outbox()
    try:
        for op, event in ops:
            if op == COMMIT:
                db.session.add(_event_row(game.id, event))
                db.session.flush()
            elif op == UNDO:
                GameEvent.query.filter_by(game_id=game.id, seq=event.seq).delete()
                db.session.flush()
        write_snapshot(game, session)
        db.session.commit()
    except Exception:
        db.session.rollback()
        evict(game.id)
        current_app.logger.exception(f"[persist-failed] game={game.id} ops={len(ops)}")
        raise
    for op, event in ops:
        current_app.logger.info(f"[{op}] game={game.id} seq={event.seq} kind={event.kind}")
    return len(ops)


def reload(game: Game) -> dict:
    """Rebuild the session from the event log and repair drifted snapshots."""
    evict(game.id)
    with locked_session(game) as session:
        drift = []
        stored_players = {row.player_id: row for row in PlayerStat.query.filter_by(game_id=game.id).all()}
        for line in session.ledger.players.values():
            row = stored_players.get(line.player_id)
            if row is None:
                continue
            for name in _PLAYER_FIELDS:
                if getattr(row, name) != getattr(line, name):
                    drift.append({'player_id': line.player_id, 'field': name,
                                  'stored': getattr(row, name), 'folded': getattr(line, name)})
        stored_teams = {row.team_id: row for row in TeamGameStat.query.filter_by(game_id=game.id).all()}
        for line in session.ledger.teams.values():
            row = stored_teams.get(line.team_id)
            if row is None:
                continue
            for name in _TEAM_FIELDS:
                if getattr(row, name) != getattr(line, name):
                    drift.append({'team_id': line.team_id, 'field': name,
                                  'stored': getattr(row, name), 'folded': getattr(line, name)})
        for item in drift:
            current_app.logger.warning(f"[drift] game={game.id} {item}")
        persist(game, session)
        return {'drift': drift, 'state': session.snapshot()}

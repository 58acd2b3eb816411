from flask import Blueprint, jsonify, request, current_app
import json
from flask_login import current_user, login_required
from werkzeug.exceptions import BadRequest
from scorebook import db, socketio
from scorebook.models import Game, GameEvent, Player, Team
from scorebook.services.games import store
from scorebook.services.games.errors import ConfigurationError, GameRuleError, PreconditionFailure
from scorebook.services.games.scheduler import schedule_period_end


games = Blueprint('games', __name__)


def _body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BadRequest('Request body must be a JSON object')
    return data


def _bool(data: dict, key: str, default=None) -> bool:
    value = data.get(key)
    if value is None:
        if default is None:
            raise BadRequest(f'{key} is required')
        return default
    # only JSON true or false; "false" and 0 are rejected
    if not isinstance(value, bool):
        raise BadRequest(f'{key} must be true or false')
    return value


def _int(data: dict, key: str, required: bool = True):
    value = data.get(key)
    if value is None:
        if required:
            raise BadRequest(f'{key} is required')
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequest(f'{key} must be an integer')


def _float(data: dict, key: str):
    value = data.get(key)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise BadRequest(f'{key} must be a number')


def _event_json(event):
    if event is None:
        return None
    return {
        'seq': event.seq,
        'kind': event.kind,
        'description': event.description,
        'parent_seq': event.parent_seq,
        'quarter': event.quarter,
        'clock_seconds': event.clock_seconds,
    }


@games.errorhandler(BadRequest)
def _bad_request(exc):
    return jsonify({'error': exc.description}), 400


def _broadcast(game_id: int, snapshot: dict) -> None:
    socketio.emit('state_update', {'game_id': game_id, 'state': snapshot}, to=f"game:{game_id}", namespace='/ws')


def _forbidden(game: Game):
    if game.scorekeeper_id is not None and (
            not current_user.is_authenticated or current_user.id != game.scorekeeper_id):
        return jsonify({'error': 'Only the scorekeeper can update this game'}), 403
    return None


def _run(game_id: int, tag: str, command):
    """Run ``command(session)`` for the scorekeeper, persist, broadcast.

    Rule violations come back as 400 with the unchanged state; benign
    precondition failures (nothing to undo, no free throws) as 202.
    """
    game = Game.query.filter_by(id=game_id).first_or_404()
    forbidden = _forbidden(game)
    if forbidden:
        return forbidden

    with store.locked_session(game) as session:
        try:
            result = command(session)
        except PreconditionFailure as exc:
            current_app.logger.info(f"[{tag}-noop] game={game.id} {exc}")
            return jsonify({'message': str(exc), 'state': session.snapshot()}), 202
        except GameRuleError as exc:
            current_app.logger.info(f"[{tag}-rejected] game={game.id} {exc}")
            return jsonify({'error': str(exc), 'state': session.snapshot()}), 400
        except ValueError as exc:
            return jsonify({'error': str(exc)}), 400
        store.persist(game, session)
        snapshot = session.snapshot()
        running = session.clock.is_running

    _broadcast(game.id, snapshot)
    if running:
        schedule_period_end(current_app._get_current_object(), game.id)
    body = {'state': snapshot}
    if isinstance(result, dict):
        body.update(result)
    return jsonify(body)


# ---- games ----

@games.route('/create', methods=['POST'])
@login_required
def create_game():
    data = _body()
    home_team_id = _int(data, 'home_team_id')
    away_team_id = _int(data, 'away_team_id')
    if home_team_id == away_team_id:
        return jsonify({'error': 'A team cannot play itself'}), 400
    home = Team.query.filter_by(id=home_team_id).first()
    away = Team.query.filter_by(id=away_team_id).first()
    if not (home and away):
        return jsonify({'error': 'Both teams must exist'}), 404

    try:
        settings = store.default_settings(current_app.config, **(data.get('settings') or {}))
    except (ConfigurationError, TypeError) as exc:
        return jsonify({'error': str(exc)}), 400

    new_game = Game(home_team_id=home.id, away_team_id=away.id, scorekeeper_id=current_user.id,
                    status='scheduled', settings=json.dumps(settings.to_dict()))
    db.session.add(new_game)
    db.session.commit()

    with store.locked_session(new_game) as session:
        store.persist(new_game, session)
        snapshot = session.snapshot()
    current_app.logger.info(f"[create] game={new_game.id} home={home.id} away={away.id} by={current_user.id}")
    return jsonify({
        'message': 'New game created!',
        'game_id': new_game.id,
        'state': snapshot,
    }), 201


@games.route('/<int:game_id>/state', methods=['GET'])
def get_game_state(game_id):
    game = Game.query.filter_by(id=game_id).first_or_404()
    with store.locked_session(game) as session:
        if session.tick():
            store.persist(game, session)
        payload = session.snapshot()
    payload['home_team'] = game.home_team.name
    payload['away_team'] = game.away_team.name
    payload['scorekeeper_id'] = game.scorekeeper_id
    return jsonify(payload)


@games.route('/<int:game_id>/events', methods=['GET'])
def get_game_events(game_id):
    game = Game.query.filter_by(id=game_id).first_or_404()
    rows = GameEvent.query.filter_by(game_id=game.id).order_by(GameEvent.seq).all()
    return jsonify([row.to_dict() for row in rows])


@games.route('/<int:game_id>/export', methods=['GET'])
def export_game(game_id):
    """Final ledger and event log for the CSV/PDF exporters."""
    game = Game.query.filter_by(id=game_id).first_or_404()
    with store.locked_session(game) as session:
        payload = session.export_snapshot()
    names = {p.id: p.to_dict() for p in Player.query.filter(
        Player.team_id.in_([game.home_team_id, game.away_team_id])).all()}
    for line in payload['players']:
        player = names.get(line['player_id'])
        if player:
            line['name'] = player['name']
            line['number'] = player['number']
    payload['game']['home_team'] = game.home_team.name
    payload['game']['away_team'] = game.away_team.name
    return jsonify(payload)


@games.route('/<int:game_id>/shot-chart', methods=['GET'])
def get_shot_chart(game_id):
    game = Game.query.filter_by(id=game_id).first_or_404()
    team_id = request.args.get('team_id', type=int)
    with store.locked_session(game) as session:
        return jsonify(session.shot_chart(team_id))


@games.route('/<int:game_id>/lineups', methods=['GET'])
def get_lineups(game_id):
    game = Game.query.filter_by(id=game_id).first_or_404()
    team_id = request.args.get('team_id', type=int)
    with store.locked_session(game) as session:
        return jsonify({
            'stints': session.lineup_stints(team_id),
            'seconds_played': session.playing_time(),
        })


@games.route('/<int:game_id>/settings', methods=['POST'])
def update_settings(game_id):
    changes = _body()
    return _run(game_id, 'settings', lambda s: {'settings': s.update_settings(**changes).to_dict()})


@games.route('/<int:game_id>/starters', methods=['POST'])
def toggle_starter(game_id):
    player_id = _int(_body(), 'player_id')

    def _toggle(session):
        session.toggle_starter(player_id)
        return {'starters': session.snapshot()['starters']}

    return _run(game_id, 'starter', _toggle)


# ---- lifecycle ----

@games.route('/<int:game_id>/start', methods=['POST'])
def start_game(game_id):
    return _run(game_id, 'start', lambda s: s.start_game())


@games.route('/<int:game_id>/pause', methods=['POST'])
def pause_game(game_id):
    return _run(game_id, 'pause', lambda s: s.pause_game())


@games.route('/<int:game_id>/resume', methods=['POST'])
def resume_game(game_id):
    return _run(game_id, 'resume', lambda s: s.resume_game())


@games.route('/<int:game_id>/end', methods=['POST'])
def end_game(game_id):
    force = _bool(_body(), 'force', default=False)
    return _run(game_id, 'end', lambda s: s.end_game(force=force))


@games.route('/<int:game_id>/reactivate', methods=['POST'])
def reactivate_game(game_id):
    return _run(game_id, 'reactivate', lambda s: s.reactivate_game())


# ---- clock & periods ----

@games.route('/<int:game_id>/clock', methods=['POST'])
def set_clock(game_id):
    seconds = _int(_body(), 'seconds')
    return _run(game_id, 'clock', lambda s: s.set_clock(seconds))


@games.route('/<int:game_id>/quarter', methods=['POST'])
def set_quarter(game_id):
    data = _body()
    quarter = _int(data, 'quarter')
    reset_time = _bool(data, 'reset_time', default=True)
    return _run(game_id, 'quarter', lambda s: {'event': _event_json(s.set_quarter(quarter, reset_time=reset_time))})


@games.route('/<int:game_id>/end-period', methods=['POST'])
def end_period(game_id):
    return _run(game_id, 'end-period', lambda s: {'result': s.end_period()})


@games.route('/<int:game_id>/overtime', methods=['POST'])
def start_overtime(game_id):
    return _run(game_id, 'overtime', lambda s: {'event': _event_json(s.start_overtime())})


# ---- shots, assists, rebounds ----

@games.route('/<int:game_id>/shots/begin', methods=['POST'])
def begin_shot(game_id):
    data = _body()
    x, y = _float(data, 'x'), _float(data, 'y')
    shot_type = data.get('shot_type')
    return _run(game_id, 'shot-begin', lambda s: {'pending': s.begin_shot(x, y, shot_type).to_dict()})


@games.route('/<int:game_id>/shots/resolve', methods=['POST'])
def resolve_shot(game_id):
    data = _body()
    player_id = _int(data, 'player_id')
    made = _bool(data, 'made')
    return _run(game_id, 'shot', lambda s: {'event': _event_json(s.resolve_shot(player_id, made))})


@games.route('/<int:game_id>/shots', methods=['POST'])
def record_shot(game_id):
    data = _body()
    player_id = _int(data, 'player_id')
    made = _bool(data, 'made')
    x, y = _float(data, 'x'), _float(data, 'y')
    shot_type = data.get('shot_type')
    return _run(game_id, 'shot', lambda s: {'event': _event_json(s.record_shot(player_id, made, shot_type, x, y))})


@games.route('/<int:game_id>/assist', methods=['POST'])
def resolve_assist(game_id):
    player_id = _int(_body(), 'player_id', required=False)
    return _run(game_id, 'assist', lambda s: {'event': _event_json(s.resolve_assist(player_id))})


@games.route('/<int:game_id>/rebound', methods=['POST'])
def resolve_rebound(game_id):
    data = _body()
    player_id = _int(data, 'player_id', required=False)
    team_id = _int(data, 'team_id', required=False)
    return _run(game_id, 'rebound', lambda s: {'event': _event_json(s.resolve_rebound(player_id, team_id))})


@games.route('/<int:game_id>/pending/cancel', methods=['POST'])
def cancel_pending(game_id):
    return _run(game_id, 'cancel', lambda s: {'cancelled': s.cancel_pending()})


# ---- stats, fouls, free throws ----

@games.route('/<int:game_id>/stats', methods=['POST'])
def record_stat(game_id):
    data = _body()
    player_id = _int(data, 'player_id')
    stat = data.get('stat')
    detail = data.get('detail')
    return _run(game_id, 'stat', lambda s: {'event': _event_json(s.record_stat(player_id, stat, detail))})


@games.route('/<int:game_id>/fouls', methods=['POST'])
def record_foul(game_id):
    data = _body()
    player_id = _int(data, 'player_id')
    foul_type = data.get('foul_type') or 'personal'
    kwargs = {
        'shot_type': data.get('shot_type'),
        'was_and_one': _bool(data, 'was_and_one', default=False),
        'fouled_player_id': _int(data, 'fouled_player_id', required=False),
        'shooter_id': _int(data, 'shooter_id', required=False),
    }
    return _run(game_id, 'foul', lambda s: {'event': _event_json(s.record_foul(player_id, foul_type, **kwargs))})


@games.route('/<int:game_id>/free-throws', methods=['POST'])
def record_free_throw(game_id):
    made = _bool(_body(), 'made')
    return _run(game_id, 'free-throw', lambda s: {'event': _event_json(s.record_free_throw(made))})


@games.route('/<int:game_id>/free-throws/start', methods=['POST'])
def start_free_throws(game_id):
    data = _body()
    player_id = _int(data, 'player_id')
    attempts = _int(data, 'attempts')
    one_and_one = _bool(data, 'one_and_one', default=False)
    return _run(game_id, 'free-throw-start',
                lambda s: {'free_throw_sequence': s.start_free_throws(player_id, attempts, one_and_one).to_dict()})


# ---- lineup & timeouts ----

@games.route('/<int:game_id>/substitutions', methods=['POST'])
def swap_substitute(game_id):
    data = _body()
    out_id = _int(data, 'out_player_id')
    in_id = _int(data, 'in_player_id')
    team_id = _int(data, 'team_id', required=False)
    return _run(game_id, 'sub', lambda s: {'event': _event_json(s.swap(out_id, in_id, team_id))})


@games.route('/<int:game_id>/fill-vacancy', methods=['POST'])
def fill_vacancy(game_id):
    player_id = _int(_body(), 'player_id')
    return _run(game_id, 'fill', lambda s: {'event': _event_json(s.fill_vacancy(player_id))})


@games.route('/<int:game_id>/timeouts', methods=['POST'])
def record_timeout(game_id):
    team_id = _int(_body(), 'team_id')
    return _run(game_id, 'timeout', lambda s: {'event': _event_json(s.record_timeout(team_id))})


# ---- undo & reload ----

@games.route('/<int:game_id>/undo', methods=['POST'])
def undo_last(game_id):
    return _run(game_id, 'undo', lambda s: {'undone': _event_json(s.undo_last())})


@games.route('/<int:game_id>/reload', methods=['POST'])
def reload_game(game_id):
    game = Game.query.filter_by(id=game_id).first_or_404()
    forbidden = _forbidden(game)
    if forbidden:
        return forbidden
    result = store.reload(game)
    _broadcast(game.id, result['state'])
    return jsonify(result)

from scorebook import db
from scorebook.models import GameEvent, PlayerStat


def _ids(teams, side):
    return [p['id'] for p in teams[side]['players']]


def test_create_game_requires_login(flask_app):
    anonymous = flask_app.test_client()
    res = anonymous.post('/api/games/create', json={'home_team_id': 1, 'away_team_id': 2})
    assert res.status_code == 401


def test_create_game(client, teams):
    res = client.post('/api/games/create', json={
        'home_team_id': teams['home']['id'],
        'away_team_id': teams['away']['id'],
        'settings': {'quarter_length_seconds': 600},
    })
    assert res.status_code == 201
    data = res.get_json()
    state = data['state']
    assert state['status'] == 'scheduled'
    assert state['clock']['seconds_remaining'] == 600
    assert state['home_score'] == 0
    assert len(state['players']) == 16


def test_create_game_validation(client, teams):
    res = client.post('/api/games/create', json={
        'home_team_id': teams['home']['id'], 'away_team_id': teams['home']['id']})
    assert res.status_code == 400
    res = client.post('/api/games/create', json={'home_team_id': teams['home']['id'], 'away_team_id': 999})
    assert res.status_code == 404
    res = client.post('/api/games/create', json={
        'home_team_id': teams['home']['id'], 'away_team_id': teams['away']['id'],
        'settings': {'bonus_threshold': 0}})
    assert res.status_code == 400
    res = client.post('/api/games/create', json={'home_team_id': 'abc', 'away_team_id': teams['away']['id']})
    assert res.status_code == 400


def test_state_includes_team_names(client, game_id):
    res = client.get(f'/api/games/{game_id}/state')
    assert res.status_code == 200
    state = res.get_json()
    assert state['home_team'] == 'Hawks'
    assert state['away_team'] == 'Owls'
    assert client.get('/api/games/999/state').status_code == 404


def test_live_game_flow(client, teams, game_id):
    home, away = _ids(teams, 'home'), _ids(teams, 'away')
    res = client.post(f'/api/games/{game_id}/start')
    assert res.status_code == 200
    state = res.get_json()['state']
    assert state['status'] == 'active'
    assert state['starters']['home'] == home[:5]

    res = client.post(f'/api/games/{game_id}/shots', json={'player_id': home[0], 'made': True, 'x': 0, 'y': 25})
    assert res.status_code == 200
    body = res.get_json()
    assert body['event']['kind'] == 'shot'
    assert body['state']['home_score'] == 3
    assert body['state']['pending']['kind'] == 'assist'

    res = client.post(f'/api/games/{game_id}/assist', json={'player_id': home[1]})
    assert res.get_json()['event']['parent_seq'] == body['event']['seq']

    client.post(f'/api/games/{game_id}/shots', json={'player_id': away[0], 'made': False, 'shot_type': '2pt'})
    res = client.post(f'/api/games/{game_id}/rebound', json={'team_id': teams['home']['id']})
    assert res.status_code == 200

    res = client.post(f'/api/games/{game_id}/fouls', json={'player_id': home[2], 'foul_type': 'personal'})
    team = next(t for t in res.get_json()['state']['teams'] if t['team_id'] == teams['home']['id'])
    assert team['fouls_this_quarter'] == 1

    events = client.get(f'/api/games/{game_id}/events').get_json()
    assert [e['kind'] for e in events] == ['shot', 'assist', 'shot', 'rebound', 'foul']

    res = client.post(f'/api/games/{game_id}/undo')
    assert res.get_json()['undone']['kind'] == 'foul'
    assert GameEvent.query.filter_by(game_id=game_id).count() == 4


def test_rule_violation_returns_400_with_unchanged_state(client, teams, game_id):
    home = _ids(teams, 'home')
    client.post(f'/api/games/{game_id}/start')
    res = client.post(f'/api/games/{game_id}/shots', json={'player_id': home[6], 'made': True, 'shot_type': '2pt'})
    assert res.status_code == 400
    body = res.get_json()
    assert 'not on the court' in body['error']
    assert body['state']['home_score'] == 0

    res = client.post(f'/api/games/{game_id}/substitutions', json={'out_player_id': home[0], 'in_player_id': home[1]})
    assert res.status_code == 400


def test_benign_noops_return_202(client, game_id):
    client.post(f'/api/games/{game_id}/start')
    res = client.post(f'/api/games/{game_id}/undo')
    assert res.status_code == 202
    assert res.get_json()['message'] == 'Nothing to undo'
    res = client.post(f'/api/games/{game_id}/free-throws', json={'made': True})
    assert res.status_code == 202


def test_missing_fields_are_bad_requests(client, game_id):
    client.post(f'/api/games/{game_id}/start')
    res = client.post(f'/api/games/{game_id}/stats', json={'stat': 'steal'})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'player_id is required'


def test_only_scorekeeper_can_update(flask_app, game_id):
    other = flask_app.test_client()
    assert other.post('/register', json={'username': 'fan', 'password': 'pw'}).status_code == 201
    res = other.post(f'/api/games/{game_id}/start')
    assert res.status_code == 403
    # reads stay public
    assert other.get(f'/api/games/{game_id}/state').status_code == 200


def test_settings_and_starters_before_tipoff(client, teams, game_id):
    home = _ids(teams, 'home')
    res = client.post(f'/api/games/{game_id}/settings', json={'bonus_mode': 'nba', 'quarter_length_seconds': 600})
    assert res.status_code == 200
    assert res.get_json()['settings']['bonus_threshold'] == 5

    res = client.post(f'/api/games/{game_id}/settings', json={'quarter_length_seconds': -5})
    assert res.status_code == 400

    res = client.post(f'/api/games/{game_id}/starters', json={'player_id': home[7]})
    assert res.get_json()['starters']['home'] == [home[7]]

    state = client.post(f'/api/games/{game_id}/start').get_json()['state']
    assert state['clock']['seconds_remaining'] == 600
    on_court = [p['player_id'] for p in state['players'] if p['is_on_court'] and p['team_id'] == teams['home']['id']]
    assert home[7] in on_court


def test_free_throw_flow_over_http(client, teams, game_id):
    home, away = _ids(teams, 'home'), _ids(teams, 'away')
    client.post(f'/api/games/{game_id}/start')
    res = client.post(f'/api/games/{game_id}/fouls', json={
        'player_id': home[0], 'foul_type': 'shooting', 'shot_type': '2pt', 'fouled_player_id': away[1]})
    sequence = res.get_json()['state']['free_throw_sequence']
    assert sequence['shooter_id'] == away[1]
    assert sequence['total_attempts'] == 2

    client.post(f'/api/games/{game_id}/free-throws', json={'made': True})
    res = client.post(f'/api/games/{game_id}/free-throws', json={'made': False})
    state = res.get_json()['state']
    assert state['away_score'] == 1
    assert state['free_throw_sequence'] is None
    assert state['pending']['kind'] == 'rebound'
    assert state['pending']['source'] == 'free_throw'


def test_reload_rebuilds_from_event_log_and_repairs_drift(client, teams, game_id):
    home = _ids(teams, 'home')
    client.post(f'/api/games/{game_id}/start')
    client.post(f'/api/games/{game_id}/shots', json={'player_id': home[0], 'made': True, 'shot_type': '3pt'})
    client.post(f'/api/games/{game_id}/assist', json={})

    res = client.post(f'/api/games/{game_id}/reload')
    assert res.status_code == 200
    assert res.get_json()['drift'] == []

    row = PlayerStat.query.filter_by(game_id=game_id, player_id=home[0]).first()
    row.points = 99
    db.session.commit()

    body = client.post(f'/api/games/{game_id}/reload').get_json()
    assert body['drift'] == [{'player_id': home[0], 'field': 'points', 'stored': 99, 'folded': 3}]
    assert PlayerStat.query.filter_by(game_id=game_id, player_id=home[0]).first().points == 3
    assert body['state']['home_score'] == 3


def test_export_and_shot_chart(client, teams, game_id):
    home = _ids(teams, 'home')
    client.post(f'/api/games/{game_id}/start')
    client.post(f'/api/games/{game_id}/shots', json={'player_id': home[0], 'made': False, 'x': 23, 'y': 5})
    client.post(f'/api/games/{game_id}/rebound', json={'player_id': home[1]})

    export = client.get(f'/api/games/{game_id}/export').get_json()
    assert export['game']['home_team'] == 'Hawks'
    shooter = next(p for p in export['players'] if p['player_id'] == home[0])
    assert shooter['name'] == 'Hawks 1'
    assert shooter['three_pointers_attempted'] == 1
    assert [e['kind'] for e in export['events']] == ['shot', 'rebound']

    chart = client.get(f"/api/games/{game_id}/shot-chart?team_id={teams['home']['id']}").get_json()
    assert chart['zones'] == {'right_corner_3': {'made': 0, 'attempted': 1}}


def test_end_game_and_active_list(client, game_id):
    client.post(f'/api/games/{game_id}/start')
    assert [g['id'] for g in client.get('/games/active').get_json()] == [game_id]
    res = client.post(f'/api/games/{game_id}/end')
    assert res.status_code == 400
    res = client.post(f'/api/games/{game_id}/end', json={'force': True})
    assert res.get_json()['state']['status'] == 'completed'
    assert client.get('/games/active').get_json() == []


def test_only_scorekeeper_can_reload(flask_app, client, game_id):
    client.post(f'/api/games/{game_id}/start')
    other = flask_app.test_client()
    assert other.post('/register', json={'username': 'fan', 'password': 'pw'}).status_code == 201
    res = other.post(f'/api/games/{game_id}/reload')
    assert res.status_code == 403
    assert res.get_json()['error'] == 'Only the scorekeeper can update this game'
    assert client.post(f'/api/games/{game_id}/reload').status_code == 200


def test_body_must_be_an_object_with_real_booleans(client, teams, game_id):
    home = _ids(teams, 'home')
    res = client.post(f'/api/games/{game_id}/settings', json=[1, 2])
    assert res.status_code == 400
    assert res.get_json()['error'] == 'Request body must be a JSON object'

    client.post(f'/api/games/{game_id}/start')
    res = client.post(f'/api/games/{game_id}/shots', json={'player_id': home[0], 'made': 'false', 'shot_type': '2pt'})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'made must be true or false'
    res = client.post(f'/api/games/{game_id}/shots', json={'player_id': home[0], 'shot_type': '2pt'})
    assert res.get_json()['error'] == 'made is required'
    res = client.post(f'/api/games/{game_id}/end', json={'force': 1})
    assert res.status_code == 400

    state = client.get(f'/api/games/{game_id}/state').get_json()
    assert state['home_score'] == 0
    assert state['status'] == 'active'


def test_playing_time_and_lineups(client, teams, game_id):
    home = _ids(teams, 'home')
    client.post(f'/api/games/{game_id}/start')
    client.post(f'/api/games/{game_id}/pause')
    client.post(f'/api/games/{game_id}/clock', json={'seconds': 700})
    client.post(f'/api/games/{game_id}/substitutions', json={'out_player_id': home[0], 'in_player_id': home[5]})
    client.post(f'/api/games/{game_id}/clock', json={'seconds': 690})

    body = client.get(f"/api/games/{game_id}/lineups?team_id={teams['home']['id']}").get_json()
    first, second = body['stints']
    assert first['players'] == sorted(home[:5])
    assert (first['seconds_played'], first['is_active']) == (20, False)
    assert second['seconds_played'] == 10
    assert second['is_active']
    assert body['seconds_played'][str(home[0])] == 20
    assert body['seconds_played'][str(home[5])] == 10

    state = client.get(f'/api/games/{game_id}/state').get_json()
    starter = next(p for p in state['players'] if p['player_id'] == home[1])
    assert (starter['seconds_played'], starter['minutes_played']) == (30, '0:30')
    assert PlayerStat.query.filter_by(game_id=game_id, player_id=home[1]).first().seconds_played == 30

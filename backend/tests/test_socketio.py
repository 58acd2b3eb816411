def _connected(sio_client):
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')
    # Flush the connect greeting
    sio_client.get_received('/ws')
    return sio_client


def test_socket_connect_and_join(sio_client, game_id):
    client = _connected(sio_client)
    client.emit('join_game', {'game_id': game_id}, namespace='/ws')
    received = client.get_received('/ws')
    joined = [pkt for pkt in received if pkt['name'] == 'joined']
    assert joined
    assert joined[0]['args'][0]['room'] == f'game:{game_id}'


def test_join_unknown_game_errors(sio_client, flask_app):
    client = _connected(sio_client)
    client.emit('join_game', {'game_id': 4242}, namespace='/ws')
    received = client.get_received('/ws')
    assert any(pkt['name'] == 'error' for pkt in received)

    client.emit('join_game', {}, namespace='/ws')
    received = client.get_received('/ws')
    assert received[0]['args'][0]['message'] == 'game_id is required'


def test_room_receives_state_updates(sio_client, client, teams, game_id):
    watcher = _connected(sio_client)
    watcher.emit('join_game', {'game_id': game_id}, namespace='/ws')
    watcher.get_received('/ws')

    client.post(f'/api/games/{game_id}/start')
    home_player = teams['home']['players'][0]['id']
    client.post(f'/api/games/{game_id}/shots', json={'player_id': home_player, 'made': True, 'shot_type': '2pt'})

    updates = [pkt for pkt in watcher.get_received('/ws') if pkt['name'] == 'state_update']
    assert len(updates) == 2
    latest = updates[-1]['args'][0]
    assert latest['game_id'] == game_id
    assert latest['state']['home_score'] == 2


def test_leave_and_ping(sio_client, game_id):
    client = _connected(sio_client)
    client.emit('leave_game', {'game_id': game_id}, namespace='/ws')
    client.emit('ping', {'n': 1}, namespace='/ws')
    names = [pkt['name'] for pkt in client.get_received('/ws')]
    assert names == ['left', 'pong']


def test_period_end_timer_emits_quarter_end(flask_app, sio_client, client, game_id):
    watcher = _connected(sio_client)
    watcher.emit('join_game', {'game_id': game_id}, namespace='/ws')
    client.post(f'/api/games/{game_id}/start')
    watcher.get_received('/ws')

    # the timer runs inline under TESTING, so keep the remaining time short
    flask_app.config['ENABLE_SCHEDULER_IN_TESTS'] = True
    client.post(f'/api/games/{game_id}/clock', json={'seconds': 1})

    received = watcher.get_received('/ws')
    quarter_end = [pkt['args'][0] for pkt in received if pkt['name'] == 'quarter_end']
    assert quarter_end == [{'game_id': game_id, 'quarter': 1}]
    state = client.get(f'/api/games/{game_id}/state').get_json()
    assert state['status'] == 'paused'
    assert state['period_ended'] is True
    assert state['clock']['seconds_remaining'] == 0

from conftest import HOST, RUNNER, host_post, submit


def _events(sio_client, name):
    return [pkt['args'][0] for pkt in sio_client.get_received('/ws') if pkt['name'] == name]


def test_socket_connect_and_join(sio_client, game_code):
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')
    sio_client.get_received('/ws')

    sio_client.emit('join_game', {'game_code': game_code}, namespace='/ws')
    received = sio_client.get_received('/ws')
    names = [pkt['name'] for pkt in received]
    assert 'joined' in names
    state = next(pkt['args'][0] for pkt in received if pkt['name'] == 'state_update')
    assert state == {'game_code': game_code, 'state': 'waiting'}
    roster = next(pkt['args'][0] for pkt in received if pkt['name'] == 'roster_update')
    assert roster['organisms'] == []


def test_join_unknown_game_reports_error(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('join_game', {'game_code': 'ZZZZZZ'}, namespace='/ws')
    errors = _events(sio_client, 'error')
    assert errors and 'not found' in errors[0]['message']


def test_room_receives_roster_and_phase_updates(sio_client, client, game_code):
    sio_client.emit('join_game', {'game_code': game_code}, namespace='/ws')
    sio_client.get_received('/ws')

    submit(client, game_code, 'Alice', RUNNER)
    rosters = _events(sio_client, 'roster_update')
    assert rosters[-1]['game_code'] == game_code
    assert [o['name'] for o in rosters[-1]['organisms']] == ['Prairie Runner']

    host_post(client, game_code, 'start')
    states = _events(sio_client, 'state_update')
    assert states[-1] == {'game_code': game_code, 'state': 'environment'}


def test_end_game_notifies_room(sio_client, client, game_code):
    sio_client.emit('join_game', {'game_code': game_code}, namespace='/ws')
    sio_client.get_received('/ws')

    host_post(client, game_code, 'end', host_name=HOST)
    ended = _events(sio_client, 'session_ended')
    assert ended == [{'game_code': game_code}]


def test_leave_game_stops_updates(sio_client, client, game_code):
    sio_client.emit('join_game', {'game_code': game_code}, namespace='/ws')
    sio_client.emit('leave_game', {'game_code': game_code}, namespace='/ws')
    assert 'left' in [pkt['name'] for pkt in sio_client.get_received('/ws')]

    submit(client, game_code, 'Alice', RUNNER)
    assert _events(sio_client, 'roster_update') == []

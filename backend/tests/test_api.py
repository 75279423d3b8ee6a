from survivor.errors import WriteError
from survivor.repository import SqlSessionRepository

from conftest import BUG, HOST, LILY, MOLD, RUNNER, host_post, submit


def test_create_game(client):
    res = client.post('/api/games/create', json={'host_name': HOST})
    assert res.status_code == 201
    data = res.get_json()
    assert len(data['game_code']) == 6


def test_create_game_requires_host_name(client):
    res = client.post('/api/games/create')
    assert res.status_code == 400


def test_join_and_state(client, game_code):
    res = client.post('/api/games/join', json={'game_code': game_code, 'name': 'Alice'})
    assert res.status_code == 201
    res = client.get(f'/api/games/{game_code}/state')
    assert res.status_code == 200
    game = res.get_json()
    assert game['game_code'] == game_code
    assert game['state'] == 'waiting'
    assert game['host_name'] == HOST
    assert any(p['name'] == 'Alice' for p in game['players'])


def test_join_unknown_game(client):
    res = client.post('/api/games/join', json={'game_code': 'NOPE00', 'name': 'Alice'})
    assert res.status_code == 404
    assert res.get_json()['type'] == 'SessionNotFound'


def test_late_join_can_be_disabled(client):
    code = client.post('/api/games/create', json={
        'host_name': HOST, 'settings': {'allowLateJoin': False},
    }).get_json()['game_code']
    assert submit(client, code, 'Alice', RUNNER).status_code == 201
    assert host_post(client, code, 'start').status_code == 200
    res = client.post('/api/games/join', json={'game_code': code, 'name': 'Latecomer'})
    assert res.status_code == 403


def test_traits_catalog(client):
    res = client.get('/api/games/traits')
    assert res.status_code == 200
    catalog = res.get_json()
    assert set(catalog) == {'Animal', 'Plant', 'Fungi', 'Protist', 'Bacteria', 'Archaea'}
    assert catalog['Bacteria']['inherent'] == ['mutation', 'horizontalGeneTransfer']

    assert client.get('/api/games/traits/Fungi').get_json()['inherent'] == ['decomposer']
    assert client.get('/api/games/traits/Dragon').status_code == 404


def test_trait_editing_preview(client):
    res = client.post('/api/games/traits/Animal/set', json={'stats': {}, 'stat': 'strength', 'value': 2})
    stats = res.get_json()['stats']
    res = client.post('/api/games/traits/Animal/set', json={'stats': stats, 'stat': 'agility', 'value': 3})
    assert res.status_code == 200
    data = res.get_json()
    assert data['stats']['agility'] == 3
    assert data['stats']['strength'] == 0
    assert data['stats']['mobility'] == 5
    assert data['used_points'] == 3
    assert data['available_points'] == 8


def test_trait_editing_errors(client):
    res = client.post('/api/games/traits/Bacteria/set', json={'stats': {}, 'stat': 'mutation', 'value': 1})
    assert res.status_code == 400
    assert res.get_json()['type'] == 'InvalidTraitEdit'

    stats = {'agility': 5, 'strength': 5, 'mobility': 5}
    res = client.post('/api/games/traits/Animal/set', json={'stats': stats, 'stat': 'vision', 'value': 2})
    assert res.status_code == 400
    assert res.get_json()['type'] == 'BudgetExceeded'

    res = client.post('/api/games/traits/Animal/set', json={'stats': {}})
    assert res.status_code == 400


def test_submit_and_list_organisms(client, game_code):
    res = submit(client, game_code, 'Alice', RUNNER)
    assert res.status_code == 201
    created = res.get_json()
    assert created['id']
    assert created['status'] == 'alive'
    assert created['player_name'] == 'Alice'
    assert created['stats']['mobility'] == 5

    organisms = client.get(f'/api/games/{game_code}/organisms').get_json()['organisms']
    assert [o['name'] for o in organisms] == ['Prairie Runner']
    assert organisms[0]['id'] == created['id']


def test_submit_rejects_invalid_organisms(client, game_code):
    assert client.post(f'/api/games/{game_code}/organisms', json={'player_name': 'Alice'}).status_code == 400
    res = submit(client, game_code, 'Alice', {'name': 'X', 'kingdom': 'Dragon', 'environment': 'Desert'})
    assert res.status_code == 400
    assert res.get_json()['type'] == 'InvalidSubmission'
    res = submit(client, game_code, 'Alice', {'name': 'X', 'kingdom': 'Animal', 'environment': 'Desert',
                                              'stats': {'agility': 5, 'strength': 5, 'vision': 5}})
    assert res.get_json()['type'] == 'BudgetExceeded'
    assert client.get(f'/api/games/{game_code}/organisms').get_json()['organisms'] == []


def test_start_without_organisms(client, game_code):
    res = host_post(client, game_code, 'start')
    assert res.status_code == 400
    assert res.get_json()['type'] == 'NoOrganisms'
    assert client.get(f'/api/games/{game_code}/state').get_json()['state'] == 'waiting'


def test_only_host_controls_the_game(client, game_code):
    submit(client, game_code, 'Alice', RUNNER)
    res = host_post(client, game_code, 'start', host_name='Alice')
    assert res.status_code == 403
    assert client.get(f'/api/games/{game_code}/state').get_json()['state'] == 'waiting'


def test_full_game_flow(client, game_code):
    for player, organism in [('Alice', RUNNER), ('Bob', LILY), ('Cara', BUG), ('Dev', MOLD)]:
        assert submit(client, game_code, player, organism).status_code == 201

    state = host_post(client, game_code, 'start').get_json()
    assert state['state'] == 'environment'

    # no submissions once the game is running
    assert submit(client, game_code, 'Eve', RUNNER).status_code == 400

    state = host_post(client, game_code, 'environment/run').get_json()
    statuses = {o['name']: o['status'] for o in state['organisms']}
    assert statuses == {
        'Prairie Runner': 'thriving',
        'Sand Lily': 'extinct',
        'Sewer Bug': 'surviving',
        'Leaf Mold': 'struggling',
    }
    assert state['summary']['surviving'] == 3
    assert state['winners'] == []

    assert host_post(client, game_code, 'city').get_json()['state'] == 'city'
    state = host_post(client, game_code, 'city/run').get_json()
    assert state['state'] == 'results'
    assert sorted(w['name'] for w in state['winners']) == ['Leaf Mold', 'Prairie Runner', 'Sewer Bug']
    assert state['ultimate_survivor']['status'] == 'city_survivor'
    assert state['summary']['by_status']['city_adapter'] == 1

    state = host_post(client, game_code, 'reset').get_json()
    assert state['state'] == 'waiting'
    assert {o['status'] for o in state['organisms']} == {'alive'}
    assert state['ultimate_survivor'] is None

    res = host_post(client, game_code, 'end')
    assert res.status_code == 200
    assert res.get_json()['message'] == f'Game {game_code} has ended.'
    assert client.get(f'/api/games/{game_code}/state').status_code == 404


def test_results_can_hide_ultimate_survivor(client):
    code = client.post('/api/games/create', json={
        'host_name': HOST, 'settings': {'showResults': False},
    }).get_json()['game_code']
    submit(client, code, 'Alice', RUNNER)
    host_post(client, code, 'city')
    state = host_post(client, code, 'city/run').get_json()
    assert [w['name'] for w in state['winners']] == ['Prairie Runner']
    assert state['ultimate_survivor'] is None


def test_out_of_order_actions_conflict(client, game_code):
    submit(client, game_code, 'Alice', RUNNER)
    res = host_post(client, game_code, 'environment/run')
    assert res.status_code == 409
    assert res.get_json()['type'] == 'InvalidPhaseTransition'
    assert host_post(client, game_code, 'city/run').status_code == 409

    host_post(client, game_code, 'start')
    host_post(client, game_code, 'city')
    assert host_post(client, game_code, 'environment/run').status_code == 409
    assert client.get(f'/api/games/{game_code}/state').get_json()['state'] == 'city'


def test_start_twice_is_harmless(client, game_code):
    submit(client, game_code, 'Alice', RUNNER)
    assert host_post(client, game_code, 'start').status_code == 200
    res = host_post(client, game_code, 'start')
    assert res.status_code == 200
    assert res.get_json()['state'] == 'environment'


def test_index_and_health(client):
    assert client.get('/health').get_json() == {'status': 'ok'}
    assert 'message' in client.get('/').get_json()


def test_db_reset_seeds_demo_game(flask_app):
    result = flask_app.test_cli_runner().invoke(args=['db-reset'])
    assert result.exit_code == 0
    code = result.output.strip().rsplit(' ', 1)[-1]
    res = flask_app.test_client().get(f'/api/games/{code}/state')
    assert res.status_code == 200
    assert len(res.get_json()['organisms']) == 3


def test_trait_editing_keeps_inherent_traits_fixed(client):
    res = client.post('/api/games/traits/Animal/set', json={'stats': {'mobility': 0}, 'stat': 'agility', 'value': 1})
    assert res.status_code == 400
    assert res.get_json()['type'] == 'InvalidTraitEdit'

    res = client.post('/api/games/traits/Animal/set', json={'stats': {'mobility': 5}, 'stat': 'agility', 'value': 1})
    assert res.status_code == 200
    assert res.get_json()['stats']['mobility'] == 5


def test_trait_editing_rejects_malformed_drafts(client):
    res = client.post('/api/games/traits/Animal/set', json={'stats': {'strength': 'lots'}, 'stat': 'agility', 'value': 1})
    assert res.status_code == 400
    assert res.get_json()['type'] == 'InvalidTraitEdit'

    res = client.post('/api/games/traits/Animal/set', json={'stats': {'wings': 2}, 'stat': 'agility', 'value': 1})
    assert res.status_code == 400

    res = client.post('/api/games/traits/Animal/set', json={'stats': ['agility'], 'stat': 'agility', 'value': 1})
    assert res.status_code == 400
    assert res.get_json()['type'] == 'InvalidSubmission'


def test_submission_survives_a_transient_store_error(client, game_code, monkeypatch):
    original = SqlSessionRepository.add_organism
    failed = []

    def flaky_add(self, code, player_name, organism):
        if not failed:
            failed.append(code)
            raise WriteError('database is busy')
        return original(self, code, player_name, organism)

    monkeypatch.setattr(SqlSessionRepository, 'add_organism', flaky_add)
    res = submit(client, game_code, 'Alice', RUNNER)
    assert res.status_code == 201
    assert failed == [game_code]
    organisms = client.get(f'/api/games/{game_code}/organisms').get_json()['organisms']
    assert [o['name'] for o in organisms] == ['Prairie Runner']


def test_submission_reports_a_persistent_store_error(client, game_code, monkeypatch):
    def broken_add(self, code, player_name, organism):
        raise WriteError('database is down')

    monkeypatch.setattr(SqlSessionRepository, 'add_organism', broken_add)
    res = submit(client, game_code, 'Alice', RUNNER)
    assert res.status_code == 503
    assert res.get_json()['type'] == 'WriteError'

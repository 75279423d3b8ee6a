from flask import Blueprint, jsonify, request, current_app
import random
import time
from survivor.errors import GameError
from survivor.repository import SqlSessionRepository, with_retries
from survivor.services.simulation.builder import normalize_stats, set_stat, used_points, validate_submission
from survivor.services.simulation.phases import controller_for
from survivor.services.simulation.results import pick_ultimate_survivor, summarize_roster, winners
from survivor.services.simulation.scheduler import cancel_phase_timers, schedule_phase_timer
from survivor.services.simulation.traits import POINT_BUDGET, catalog_dict
from survivor.services.simulation.types import GameState, Kingdom


games = Blueprint('games', __name__)

_last_controller_action: dict[str, float] = {}
_SETTING_KEYS = ('allowLateJoin', 'autoAdvance', 'showResults')


@games.errorhandler(GameError)
def handle_game_error(exc):
    current_app.logger.info(f"[rejected] {exc.__class__.__name__}: {exc.message}")
    return jsonify(exc.to_dict()), exc.status_code


def _repository() -> SqlSessionRepository:
    return SqlSessionRepository(code_length=int(current_app.config.get('GAME_CODE_LENGTH', 6)))


def _retrying(operation, *args):
    cfg = current_app.config
    return with_retries(operation, *args, max_attempts=int(cfg.get('REPOSITORY_MAX_ATTEMPTS', 3)),
                        backoff=float(cfg.get('REPOSITORY_BACKOFF_SEC', 1.0)))


def _debounced(action: str, game_code: str, host_name) -> bool:
    try:
        debounce_ms = int(current_app.config.get('CONTROLLER_DEBOUNCE_MS', 0))
    except (TypeError, ValueError):
        debounce_ms = 0
    if debounce_ms <= 0:
        return False
    key = f"{action}:{game_code.upper()}:{host_name}"
    now = time.time() * 1000.0
    last = _last_controller_action.get(key, 0)
    if now - last < debounce_ms:
        return True
    _last_controller_action[key] = now
    return False


def _state_payload(repository: SqlSessionRepository, game_code: str) -> dict:
    payload = repository.get_session(game_code)
    roster = repository.get_roster(game_code)
    scorable = [o for o in roster if o.is_well_formed()]
    payload['organisms'] = [o.to_dict() for o in roster]
    payload['summary'] = summarize_roster(scorable)
    payload['winners'] = []
    payload['ultimate_survivor'] = None
    if payload['state'] == GameState.RESULTS.value:
        survivors = winners(scorable)
        payload['winners'] = [o.to_dict() for o in survivors]
        if payload['settings'].get('showResults', True):
            # Seeded by game code so every client sees the same pick
            ultimate = pick_ultimate_survivor(survivors, random.Random(payload['game_code']))
            payload['ultimate_survivor'] = ultimate.to_dict() if ultimate else None
    return payload


def _host_action(game_code: str, action: str):
    """Run one controller action for the host; returns an error response or None."""
    data = request.get_json(silent=True) or {}
    host_name = data.get('host_name')
    if _debounced(action, game_code, host_name):
        return jsonify({'message': 'debounced'}), 202
    repository = _repository()
    session = repository.get_session(game_code)
    if host_name != session['host_name']:
        return jsonify({'error': 'Only the host may control the game'}), 403
    controller = controller_for(current_app, game_code, repository)
    getattr(controller, action)()
    current_app.logger.info(f"[host] game={game_code.upper()} action={action}")
    return None


@games.route('/create', methods=['POST'])
def create_game():
    data = request.get_json(silent=True) or {}
    host_name = (data.get('host_name') or '').strip()
    if not host_name:
        return jsonify({'error': 'Please enter your name'}), 400
    raw_settings = data.get('settings') or {}
    settings = {k: bool(raw_settings[k]) for k in _SETTING_KEYS if k in raw_settings}
    code = _repository().create_session(host_name, settings)
    current_app.logger.info(f"[create] game={code} host={host_name}")
    return jsonify({
        'message': 'New game created!',
        'game_code': code
    }), 201


@games.route('/join', methods=['POST'])
def join_game():
    data = request.get_json(silent=True) or {}
    game_code = data.get('game_code')
    name = (data.get('name') or '').strip()
    if not all([game_code, name]):
        return jsonify({'error': 'Game code and player name are required'}), 400

    repository = _repository()
    session = repository.get_session(game_code)
    if session['state'] != GameState.WAITING.value and not session['settings'].get('allowLateJoin'):
        return jsonify({'error': 'Game has already started'}), 403

    player = repository.add_player(game_code, name)
    return jsonify(player), 201


@games.route('/traits', methods=['GET'])
def list_traits():
    return jsonify({k.value: catalog_dict(k) for k in Kingdom})


@games.route('/traits/<string:kingdom>', methods=['GET'])
def get_traits(kingdom):
    try:
        kingdom = Kingdom(kingdom)
    except ValueError:
        return jsonify({'error': f'Unknown kingdom: {kingdom}'}), 404
    return jsonify(catalog_dict(kingdom))


@games.route('/traits/<string:kingdom>/set', methods=['POST'])
def preview_stat(kingdom):
    """Apply one stat edit to a draft organism's stats."""
    try:
        kingdom = Kingdom(kingdom)
    except ValueError:
        return jsonify({'error': f'Unknown kingdom: {kingdom}'}), 404
    data = request.get_json(silent=True) or {}
    stat = data.get('stat')
    if not stat or 'value' not in data:
        return jsonify({'error': 'stat and value are required'}), 400
    draft = normalize_stats(data.get('stats') or {}, kingdom)
    stats = set_stat(draft, kingdom, stat, data.get('value'))
    return jsonify({
        'stats': stats,
        'used_points': used_points(stats, kingdom),
        'available_points': POINT_BUDGET - used_points(stats, kingdom),
    })


@games.route('/<string:game_code>/organisms', methods=['POST'])
def submit_organism(game_code):
    data = request.get_json(silent=True) or {}
    player_name = (data.get('player_name') or '').strip()
    if not player_name or not isinstance(data.get('organism'), dict):
        return jsonify({'error': 'Player name and organism are required'}), 400

    repository = _repository()
    if _retrying(repository.get_phase, game_code) != GameState.WAITING:
        return jsonify({'error': 'You can only submit organisms while the game is waiting.'}), 400

    organism = validate_submission(data['organism'], player_name)
    organism_id = _retrying(repository.add_organism, game_code, player_name, organism)
    current_app.logger.info(f"[submit] game={game_code.upper()} organism={organism_id} kingdom={organism.kingdom.value}")
    payload = organism.to_dict()
    payload['id'] = organism_id
    return jsonify(payload), 201


@games.route('/<string:game_code>/organisms', methods=['GET'])
def list_organisms(game_code):
    return jsonify({'organisms': [o.to_dict() for o in _repository().get_roster(game_code)]})


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    return jsonify(_state_payload(_repository(), game_code))


@games.route('/<string:game_code>/start', methods=['POST'])
def start_game(game_code):
    rejected = _host_action(game_code, 'start')
    if rejected:
        return rejected
    schedule_phase_timer(current_app._get_current_object(), game_code)
    return jsonify(_state_payload(_repository(), game_code))


@games.route('/<string:game_code>/environment/run', methods=['POST'])
def run_environment(game_code):
    rejected = _host_action(game_code, 'run_environment_phase')
    if rejected:
        return rejected
    return jsonify(_state_payload(_repository(), game_code))


@games.route('/<string:game_code>/city', methods=['POST'])
def move_to_city(game_code):
    rejected = _host_action(game_code, 'move_to_city_phase')
    if rejected:
        return rejected
    schedule_phase_timer(current_app._get_current_object(), game_code)
    return jsonify(_state_payload(_repository(), game_code))


@games.route('/<string:game_code>/city/run', methods=['POST'])
def run_city(game_code):
    rejected = _host_action(game_code, 'run_city_phase')
    if rejected:
        return rejected
    return jsonify(_state_payload(_repository(), game_code))


@games.route('/<string:game_code>/reset', methods=['POST'])
def reset_game(game_code):
    rejected = _host_action(game_code, 'reset_game')
    if rejected:
        return rejected
    cancel_phase_timers(game_code)
    return jsonify(_state_payload(_repository(), game_code))


@games.route('/<string:game_code>/end', methods=['POST'])
def end_game(game_code):
    rejected = _host_action(game_code, 'end_game')
    if rejected:
        return rejected
    cancel_phase_timers(game_code)
    return jsonify({'message': f'Game {game_code.upper()} has ended.'})
